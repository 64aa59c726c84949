from __future__ import annotations

from dataclasses import dataclass, field, fields as dataclass_fields
from datetime import datetime
from typing import Any, Callable, Mapping

from .models import (
    BrokerTranslation,
    ContentType,
    PostTranslation,
    ProductTranslation,
    Translation,
)


@dataclass(frozen=True)
class FieldAccessor:
    name: str
    get: Callable[[Translation], str | None]
    set: Callable[[Translation, str | None], None]


def _accessor(name: str) -> FieldAccessor:
    def _get(translation: Translation) -> str | None:
        return getattr(translation, name)

    def _set(translation: Translation, value: str | None) -> None:
        setattr(translation, name, value)

    return FieldAccessor(name=name, get=_get, set=_set)


@dataclass(frozen=True)
class ContentSchema:
    content_type: ContentType
    translation_cls: type[Translation]
    content_id_field: str
    required_fields: tuple[str, ...]
    optional_fields: tuple[str, ...]
    table: str
    parent_table: str
    parent_view: str
    accessors: dict[str, FieldAccessor] = field(default_factory=dict)

    @property
    def translatable_fields(self) -> tuple[str, ...]:
        return self.required_fields + self.optional_fields


def _schema(
    content_type: ContentType,
    translation_cls: type[Translation],
    content_id_field: str,
    required: tuple[str, ...],
    optional: tuple[str, ...],
) -> ContentSchema:
    declared = {f.name for f in dataclass_fields(translation_cls)}
    missing = [name for name in required + optional if name not in declared]
    if missing:
        raise ValueError(
            f"{translation_cls.__name__} does not declare fields: {', '.join(missing)}"
        )
    name = content_type.value
    return ContentSchema(
        content_type=content_type,
        translation_cls=translation_cls,
        content_id_field=content_id_field,
        required_fields=required,
        optional_fields=optional,
        table=f"{name}_translations",
        parent_table=name,
        parent_view=f"{name}_with_translations",
        accessors={n: _accessor(n) for n in required + optional},
    )


REGISTRY: dict[ContentType, ContentSchema] = {
    s.content_type: s
    for s in (
        _schema(ContentType.POSTS, PostTranslation, "post_id", ("title",), ("excerpt", "content")),
        _schema(ContentType.PRODUCTS, ProductTranslation, "product_id", ("name",), ("description",)),
        _schema(ContentType.BROKERS, BrokerTranslation, "broker_id", ("description",), ("affiliate_link",)),
    )
}


def as_content_type(content_type: ContentType | str) -> ContentType:
    try:
        return ContentType(content_type)
    except ValueError:
        raise ValueError(f"unknown content type: {content_type!r}") from None


def schema_for(content_type: ContentType | str) -> ContentSchema:
    ct = as_content_type(content_type)
    try:
        return REGISTRY[ct]
    except KeyError:
        raise ValueError(f"no schema registered for content type: {ct.value}") from None


def required_fields(content_type: ContentType | str) -> list[str]:
    return list(schema_for(content_type).required_fields)


def optional_fields(content_type: ContentType | str) -> list[str]:
    return list(schema_for(content_type).optional_fields)


def translatable_fields(content_type: ContentType | str) -> list[str]:
    return list(schema_for(content_type).translatable_fields)


def content_id_field(content_type: ContentType | str) -> str:
    return schema_for(content_type).content_id_field


def translation_class(content_type: ContentType | str) -> type[Translation]:
    return schema_for(content_type).translation_cls


def content_type_of(translation: Translation) -> ContentType:
    return type(translation).content_type


def get_field(translation: Translation, name: str) -> str | None:
    accessor = schema_for(content_type_of(translation)).accessors.get(name)
    if accessor is None:
        return None
    return accessor.get(translation)


def set_field(translation: Translation, name: str, value: str | None) -> None:
    schema = schema_for(content_type_of(translation))
    accessor = schema.accessors.get(name)
    if accessor is None:
        raise ValueError(f"{name!r} is not a translatable field of {schema.content_type.value}")
    accessor.set(translation, value)


def _as_datetime(value: Any) -> datetime | None:
    if value is None or isinstance(value, datetime):
        return value
    text = str(value)
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    return datetime.fromisoformat(text)


def build_translation(content_type: ContentType | str, row: Mapping[str, Any]) -> Translation:
    """Build a typed translation from a store row keyed by column name."""
    schema = schema_for(content_type)
    values: dict[str, Any] = {}
    for name in schema.translatable_fields:
        if name in row:
            value = row[name]
            values[name] = None if value is None else str(value)
    for name in schema.required_fields:
        # required attributes are typed str; a partial row reads as blank
        if values.get(name) is None:
            values[name] = ""
    raw_id = row.get("id")
    return schema.translation_cls(
        id=None if raw_id is None else str(raw_id),
        content_id=str(row[schema.content_id_field]),
        language_code=str(row["language_code"]),
        created_at=_as_datetime(row.get("created_at")),
        updated_at=_as_datetime(row.get("updated_at")),
        **values,
    )


def translation_row(translation: Translation) -> dict[str, Any]:
    schema = schema_for(content_type_of(translation))
    row: dict[str, Any] = {
        schema.content_id_field: translation.content_id,
        "language_code": translation.language_code,
    }
    for name, accessor in schema.accessors.items():
        row[name] = accessor.get(translation)
    return row

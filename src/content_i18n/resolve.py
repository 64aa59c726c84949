from __future__ import annotations

from typing import Any, Iterable, Mapping

from .languages import ENGLISH
from .models import ContentItem, TranslatedField, Translation
from .schema import get_field, translatable_fields


def _translations_of(item: ContentItem | Mapping[str, Any]) -> list[Translation]:
    if isinstance(item, ContentItem):
        return item.translations
    translations = item.get("translations")
    if isinstance(translations, (list, tuple)):
        return [t for t in translations if isinstance(t, Translation)]
    return []


def _legacy_value(item: ContentItem | Mapping[str, Any], field: str) -> Any:
    if isinstance(item, ContentItem):
        return item.fields.get(field)
    return item.get(field)


def _text(value: Any) -> str | None:
    if isinstance(value, str) and value:
        return value
    return None


def _find(translations: Iterable[Translation], language: str) -> Translation | None:
    for translation in translations:
        if translation.language_code == language:
            return translation
    return None


def resolve_field(
    item: ContentItem | Mapping[str, Any],
    field: str,
    requested_language: str,
    fallback_language: str = ENGLISH,
) -> TranslatedField:
    """Resolve ``field`` for display in ``requested_language``.

    Order, first match wins: the requested-language translation, the
    fallback-language translation, the item's own (pre-translation) field, and
    finally an empty value. An empty ``value`` always means "untranslated".
    """
    translations = _translations_of(item)

    requested = _find(translations, requested_language)
    if requested is not None:
        value = _text(get_field(requested, field))
        if value:
            return TranslatedField(
                value=value,
                language=requested_language,
                is_fallback=False,
                is_original=requested_language == fallback_language,
            )

    if requested_language != fallback_language:
        fallback = _find(translations, fallback_language)
        if fallback is not None:
            value = _text(get_field(fallback, field))
            if value:
                return TranslatedField(
                    value=value,
                    language=fallback_language,
                    is_fallback=True,
                    is_original=True,
                )

    value = _text(_legacy_value(item, field))
    if value:
        return TranslatedField(
            value=value,
            language=fallback_language,
            is_fallback=requested_language != fallback_language,
            is_original=True,
        )

    return TranslatedField(value="", language=fallback_language, is_fallback=True, is_original=False)


def resolve_fields(
    item: ContentItem | Mapping[str, Any],
    fields: Iterable[str],
    requested_language: str,
    fallback_language: str = ENGLISH,
) -> dict[str, TranslatedField]:
    return {
        name: resolve_field(item, name, requested_language, fallback_language)
        for name in fields
    }


def localize(item: ContentItem, language: str, fallback_language: str = ENGLISH) -> dict[str, str]:
    resolved = resolve_fields(item, translatable_fields(item.content_type), language, fallback_language)
    return {name: result.value for name, result in resolved.items()}


def current_translation(item: ContentItem | Mapping[str, Any], language: str | None) -> Translation | None:
    if not language:
        return None
    return _find(_translations_of(item), language)


def format_translation_field(
    value: str | None,
    max_length: int | None = None,
    placeholder: str = "Not translated",
) -> str:
    if not value or not value.strip():
        return placeholder
    if max_length and len(value) > max_length:
        return value[:max_length] + "..."
    return value

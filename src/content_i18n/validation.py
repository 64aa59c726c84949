from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping

from .languages import LanguageSettings
from .models import ContentType
from .schema import schema_for


@dataclass
class ValidationResult:
    errors: dict[str, str] = field(default_factory=dict)
    warnings: dict[str, str] = field(default_factory=dict)

    @property
    def is_valid(self) -> bool:
        return not self.errors

    def summary(self) -> str:
        return ", ".join(f"{name}: {message}" for name, message in self.errors.items())


def _check_values(content_type: ContentType | str, fields: Mapping[str, Any], result: ValidationResult) -> None:
    schema = schema_for(content_type)
    for name, value in fields.items():
        if name not in schema.accessors:
            result.errors[name] = f"{name} is not a translatable field of {schema.content_type.value}"
        elif value is not None and not isinstance(value, str):
            result.errors[name] = f"{name} must be text"


def validate_create(
    content_type: ContentType | str,
    content_id: str | None,
    language_code: str | None,
    fields: Mapping[str, Any],
    languages: LanguageSettings,
) -> ValidationResult:
    schema = schema_for(content_type)
    result = ValidationResult()

    if not languages.is_supported(language_code):
        result.errors["language_code"] = (
            f"Valid language code is required (one of {', '.join(languages.supported)})"
        )
    if not content_id or not str(content_id).strip():
        result.errors[schema.content_id_field] = f"{schema.content_id_field} is required"

    _check_values(content_type, fields, result)
    for name in schema.required_fields:
        value = fields.get(name)
        if name in result.errors:
            continue
        if not isinstance(value, str) or not value.strip():
            result.errors[name] = f"{name} is required"
    return result


def validate_update(content_type: ContentType | str, fields: Mapping[str, Any]) -> ValidationResult:
    schema = schema_for(content_type)
    result = ValidationResult()
    _check_values(content_type, fields, result)
    for name in schema.required_fields:
        if name in fields and name not in result.errors:
            value = fields[name]
            if value is None:
                result.errors[name] = f"{name} cannot be cleared to null"
            elif not value.strip():
                result.warnings[name] = f"{name} is empty; translation is now incomplete"
    return result

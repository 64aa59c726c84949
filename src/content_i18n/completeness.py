from __future__ import annotations

from typing import Iterable, Sequence

from .models import ContentItem, Translation, TranslationCompleteness, TranslationStatistics
from .schema import content_type_of, get_field, schema_for

STATUS_FILTERS = ("complete", "incomplete", "missing")


def _unique(languages: Iterable[str]) -> list[str]:
    out: list[str] = []
    for lang in languages:
        if lang not in out:
            out.append(lang)
    return out


def _filled(value: str | None) -> bool:
    return isinstance(value, str) and value.strip() != ""


def is_complete(translation: Translation) -> bool:
    schema = schema_for(content_type_of(translation))
    return all(_filled(get_field(translation, name)) for name in schema.required_fields)


def incomplete_fields(translation: Translation) -> list[str]:
    schema = schema_for(content_type_of(translation))
    return [name for name in schema.required_fields if not _filled(get_field(translation, name))]


def find_translation(translations: Iterable[Translation], language: str) -> Translation | None:
    for translation in translations:
        if translation.language_code == language:
            return translation
    return None


def has_translation(translations: Iterable[Translation], language: str) -> bool:
    return find_translation(translations, language) is not None


def get_completeness(
    translations: Sequence[Translation], required_languages: Iterable[str]
) -> TranslationCompleteness:
    required = _unique(required_languages)
    completed = 0
    missing: list[str] = []
    for lang in required:
        translation = find_translation(translations, lang)
        if translation is None:
            missing.append(lang)
        elif is_complete(translation):
            completed += 1
    total = len(required)
    percentage = round(completed / total * 100) if total else 0
    return TranslationCompleteness(
        total=total,
        completed=completed,
        missing=missing,
        percentage=percentage,
    )


def missing_languages(item: ContentItem, required_languages: Iterable[str]) -> list[str]:
    present = {t.language_code for t in item.translations}
    return [lang for lang in _unique(required_languages) if lang not in present]


def get_translation_statistics(
    items: Sequence[ContentItem], required_languages: Iterable[str]
) -> TranslationStatistics:
    # coarse: an item counts once it has any translation, complete or not
    required = _unique(required_languages)
    total = len(items)
    with_translations = sum(1 for item in items if item.translations)
    by_language = {
        lang: sum(1 for item in items if has_translation(item.translations, lang))
        for lang in required
    }
    return TranslationStatistics(
        total_content=total,
        with_translations=with_translations,
        without_translations=total - with_translations,
        translations_by_language=by_language,
        completeness=round(with_translations / total * 100) if total else 0,
    )


def filter_by_translation_status(items: Iterable[ContentItem], status: str) -> list[ContentItem]:
    """Keep items by coarse list-page status.

    ``complete`` means at least one complete translation, ``incomplete`` means
    translations exist but none is complete, ``missing`` means none exist.
    """
    if status not in STATUS_FILTERS:
        raise ValueError(f"status must be one of: {', '.join(STATUS_FILTERS)}")
    out = []
    for item in items:
        if not item.translations:
            state = "missing"
        elif any(is_complete(t) for t in item.translations):
            state = "complete"
        else:
            state = "incomplete"
        if state == status:
            out.append(item)
    return out


def translations_equal(first: Translation, second: Translation) -> bool:
    if content_type_of(first) != content_type_of(second):
        return False
    if first.language_code != second.language_code:
        return False
    schema = schema_for(content_type_of(first))
    return all(
        (get_field(first, name) or "").strip() == (get_field(second, name) or "").strip()
        for name in schema.translatable_fields
    )

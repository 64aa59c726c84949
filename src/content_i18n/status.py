from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Sequence

from .completeness import find_translation, get_completeness, is_complete
from .models import ContentItem, Translation, TranslationCompleteness, TranslationStatus


@dataclass(frozen=True)
class ItemSummary:
    content_id: str
    has_any: bool
    total_translations: int
    completed_translations: int
    languages: list[str]
    completeness: TranslationCompleteness


def get_translation_status(
    translations: Sequence[Translation], required_languages: Iterable[str]
) -> list[TranslationStatus]:
    statuses = []
    seen: set[str] = set()
    for lang in required_languages:
        if lang in seen:
            continue
        seen.add(lang)
        translation = find_translation(translations, lang)
        statuses.append(
            TranslationStatus(
                language_code=lang,
                has_translation=translation is not None,
                is_complete=translation is not None and is_complete(translation),
                last_updated=translation.updated_at if translation else None,
            )
        )
    return statuses


def summarize_item(item: ContentItem, required_languages: Iterable[str]) -> ItemSummary:
    required = list(required_languages)
    return ItemSummary(
        content_id=item.id,
        has_any=bool(item.translations),
        total_translations=len(item.translations),
        completed_translations=sum(1 for t in item.translations if is_complete(t)),
        languages=[t.language_code for t in item.translations],
        completeness=get_completeness(item.translations, required),
    )

from __future__ import annotations

from typing import Any, Iterable, Mapping, Protocol

from ..models import ContentItem, ContentType, Translation


class TranslationStore(Protocol):
    """CRUD over the translations of one content type.

    Rows come back typed; ``list`` is ordered by ``language_code`` ascending and
    ``list_with_parent`` by parent ``created_at`` descending. ``update`` refreshes
    ``updated_at``. ``delete`` and ``update`` raise ``TranslationNotFound`` for an
    unknown id; ``insert`` raises ``DuplicateTranslation`` when the store enforces
    one row per (content id, language).
    """

    content_type: ContentType

    def list(self, content_id: str, language_code: str | None = None) -> list[Translation]:
        ...

    def get(self, translation_id: str) -> Translation | None:
        ...

    def exists(self, content_id: str, language_code: str) -> bool:
        ...

    def insert(self, translation: Translation) -> Translation:
        ...

    def update(self, translation_id: str, fields: Mapping[str, Any]) -> Translation:
        ...

    def delete(self, translation_id: str) -> Translation:
        ...

    def list_with_parent(self) -> list[ContentItem]:
        ...

    def bulk_delete(self, content_ids: Iterable[str], language_code: str | None = None) -> int:
        ...

    def count_by_language(self) -> dict[str, int]:
        ...

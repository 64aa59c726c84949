from __future__ import annotations

import threading
import uuid
from collections import Counter
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Any, Callable, Iterable, Mapping

from ..errors import DuplicateTranslation, TranslationNotFound
from ..models import ContentItem, ContentType, Translation
from ..schema import as_content_type, content_type_of, schema_for, set_field


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class MemoryTranslationStore:
    """Process-local store; ``unique=False`` drops the one-per-language constraint."""

    content_type: ContentType
    unique: bool = True
    clock: Callable[[], datetime] = _utcnow

    _rows: dict[str, Translation] = field(default_factory=dict, init=False, repr=False)
    _parents: dict[str, ContentItem] = field(default_factory=dict, init=False, repr=False)
    _lock: threading.Lock = field(default_factory=threading.Lock, init=False, repr=False)

    def __post_init__(self) -> None:
        self.content_type = as_content_type(self.content_type)

    def add_parent(self, content_id: str, created_at: datetime | None = None, **fields: Any) -> ContentItem:
        item = ContentItem(
            id=content_id,
            content_type=self.content_type,
            fields=dict(fields),
            created_at=created_at or self.clock(),
        )
        with self._lock:
            self._parents[content_id] = item
        return item

    def list(self, content_id: str, language_code: str | None = None) -> list[Translation]:
        with self._lock:
            rows = [
                replace(t)
                for t in self._rows.values()
                if t.content_id == content_id
                and (language_code is None or t.language_code == language_code)
            ]
        return sorted(rows, key=lambda t: t.language_code)

    def get(self, translation_id: str) -> Translation | None:
        with self._lock:
            row = self._rows.get(translation_id)
            return replace(row) if row else None

    def exists(self, content_id: str, language_code: str) -> bool:
        with self._lock:
            return any(
                t.content_id == content_id and t.language_code == language_code
                for t in self._rows.values()
            )

    def insert(self, translation: Translation) -> Translation:
        if content_type_of(translation) != self.content_type:
            raise ValueError(
                f"cannot store {content_type_of(translation).value} translation "
                f"in {self.content_type.value} store"
            )
        now = self.clock()
        row = replace(translation, id=str(uuid.uuid4()), created_at=now, updated_at=now)
        with self._lock:
            if self.unique and any(
                t.content_id == row.content_id and t.language_code == row.language_code
                for t in self._rows.values()
            ):
                raise DuplicateTranslation(
                    f"duplicate key: {schema_for(self.content_type).content_id_field}="
                    f"{row.content_id} language_code={row.language_code}"
                )
            self._rows[row.id] = row
            return replace(row)

    def update(self, translation_id: str, fields: Mapping[str, Any]) -> Translation:
        accessors = schema_for(self.content_type).accessors
        unknown = [name for name in fields if name not in accessors]
        if unknown:
            raise ValueError(f"not translatable fields: {', '.join(unknown)}")
        with self._lock:
            row = self._rows.get(translation_id)
            if row is None:
                raise TranslationNotFound(f"translation {translation_id} not found")
            for name, value in fields.items():
                set_field(row, name, value)
            row.updated_at = self.clock()
            return replace(row)

    def delete(self, translation_id: str) -> Translation:
        with self._lock:
            row = self._rows.pop(translation_id, None)
        if row is None:
            raise TranslationNotFound(f"translation {translation_id} not found")
        return row

    def list_with_parent(self) -> list[ContentItem]:
        with self._lock:
            parents = list(self._parents.values())
            rows = list(self._rows.values())
        items = []
        for parent in parents:
            translations = sorted(
                (replace(t) for t in rows if t.content_id == parent.id),
                key=lambda t: t.language_code,
            )
            items.append(replace(parent, fields=dict(parent.fields), translations=translations))
        items.sort(key=lambda item: item.created_at or datetime.min.replace(tzinfo=timezone.utc), reverse=True)
        return items

    def bulk_delete(self, content_ids: Iterable[str], language_code: str | None = None) -> int:
        ids = set(content_ids)
        with self._lock:
            doomed = [
                key
                for key, t in self._rows.items()
                if t.content_id in ids
                and (language_code is None or t.language_code == language_code)
            ]
            for key in doomed:
                del self._rows[key]
        return len(doomed)

    def count_by_language(self) -> dict[str, int]:
        with self._lock:
            counts = Counter(t.language_code for t in self._rows.values())
        return dict(sorted(counts.items()))

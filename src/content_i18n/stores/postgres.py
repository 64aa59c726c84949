from __future__ import annotations

import logging
import uuid
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Iterable, Iterator, Mapping

import psycopg
from psycopg import sql
from psycopg.rows import dict_row

from ..db import get_conn
from ..errors import DuplicateTranslation, StoreError, TranslationNotFound
from ..models import ContentItem, ContentType, Translation
from ..schema import (
    ContentSchema,
    as_content_type,
    build_translation,
    content_type_of,
    schema_for,
    translation_row,
)

log = logging.getLogger("content_i18n.stores.postgres")


def _is_uuid(value: Any) -> bool:
    try:
        uuid.UUID(str(value))
    except ValueError:
        return False
    return True


@dataclass
class PostgresTranslationStore:
    content_type: ContentType
    dsn: str

    def __post_init__(self) -> None:
        self.content_type = as_content_type(self.content_type)

    @property
    def schema(self) -> ContentSchema:
        return schema_for(self.content_type)

    @contextmanager
    def _cursor(self) -> Iterator[psycopg.Cursor]:
        try:
            with get_conn(self.dsn) as conn:
                with conn.cursor(row_factory=dict_row) as cur:
                    yield cur
        except psycopg.errors.UniqueViolation as exc:
            raise DuplicateTranslation(str(exc)) from exc
        except psycopg.Error as exc:
            log.warning("%s store error: %s", self.content_type.value, exc)
            raise StoreError(str(exc)) from exc

    def _build(self, row: Mapping[str, Any]) -> Translation:
        return build_translation(self.content_type, row)

    def list(self, content_id: str, language_code: str | None = None) -> list[Translation]:
        query = sql.SQL("SELECT * FROM {} WHERE {} = %s").format(
            sql.Identifier(self.schema.table),
            sql.Identifier(self.schema.content_id_field),
        )
        params: list[Any] = [content_id]
        if language_code:
            query = query + sql.SQL(" AND language_code = %s")
            params.append(language_code)
        query = query + sql.SQL(" ORDER BY language_code ASC")
        with self._cursor() as cur:
            cur.execute(query, params)
            rows = cur.fetchall()
        return [self._build(row) for row in rows]

    def get(self, translation_id: str) -> Translation | None:
        if not _is_uuid(translation_id):
            return None
        query = sql.SQL("SELECT * FROM {} WHERE id = %s").format(sql.Identifier(self.schema.table))
        with self._cursor() as cur:
            cur.execute(query, (translation_id,))
            row = cur.fetchone()
        return self._build(row) if row else None

    def exists(self, content_id: str, language_code: str) -> bool:
        query = sql.SQL(
            "SELECT 1 FROM {} WHERE {} = %s AND language_code = %s LIMIT 1"
        ).format(
            sql.Identifier(self.schema.table),
            sql.Identifier(self.schema.content_id_field),
        )
        with self._cursor() as cur:
            cur.execute(query, (content_id, language_code))
            return cur.fetchone() is not None

    def insert(self, translation: Translation) -> Translation:
        if content_type_of(translation) != self.content_type:
            raise ValueError(
                f"cannot store {content_type_of(translation).value} translation "
                f"in {self.content_type.value} store"
            )
        row = translation_row(translation)
        columns = list(row)
        query = sql.SQL("INSERT INTO {} ({}) VALUES ({}) RETURNING *").format(
            sql.Identifier(self.schema.table),
            sql.SQL(", ").join(sql.Identifier(c) for c in columns),
            sql.SQL(", ").join([sql.Placeholder()] * len(columns)),
        )
        with self._cursor() as cur:
            cur.execute(query, [row[c] for c in columns])
            created = cur.fetchone()
        return self._build(created)

    def update(self, translation_id: str, fields: Mapping[str, Any]) -> Translation:
        unknown = [name for name in fields if name not in self.schema.accessors]
        if unknown:
            raise ValueError(f"not translatable fields: {', '.join(unknown)}")
        if not _is_uuid(translation_id):
            raise TranslationNotFound(f"translation {translation_id} not found")
        assignments = [
            sql.SQL("{} = %s").format(sql.Identifier(name)) for name in fields
        ]
        assignments.append(sql.SQL("updated_at = NOW()"))
        query = sql.SQL("UPDATE {} SET {} WHERE id = %s RETURNING *").format(
            sql.Identifier(self.schema.table),
            sql.SQL(", ").join(assignments),
        )
        with self._cursor() as cur:
            cur.execute(query, [*fields.values(), translation_id])
            row = cur.fetchone()
            if row is None:
                raise TranslationNotFound(f"translation {translation_id} not found")
        return self._build(row)

    def delete(self, translation_id: str) -> Translation:
        # ids are UUID columns; anything else cannot match a row
        if not _is_uuid(translation_id):
            raise TranslationNotFound(f"translation {translation_id} not found")
        query = sql.SQL("DELETE FROM {} WHERE id = %s RETURNING *").format(
            sql.Identifier(self.schema.table)
        )
        with self._cursor() as cur:
            cur.execute(query, (translation_id,))
            row = cur.fetchone()
            if row is None:
                raise TranslationNotFound(f"translation {translation_id} not found")
        return self._build(row)

    def list_with_parent(self) -> list[ContentItem]:
        query = sql.SQL(
            """
            SELECT p.*,
                   COALESCE(
                       (SELECT json_agg(t ORDER BY t.language_code)
                        FROM {table} t
                        WHERE t.{cid} = p.id::text),
                       '[]'::json
                   ) AS translations
            FROM {parent} p
            ORDER BY p.created_at DESC
            """
        ).format(
            table=sql.Identifier(self.schema.table),
            cid=sql.Identifier(self.schema.content_id_field),
            parent=sql.Identifier(self.schema.parent_table),
        )
        with self._cursor() as cur:
            cur.execute(query)
            rows = cur.fetchall()
        items = []
        for row in rows:
            row = dict(row)
            translations = row.pop("translations", None) or []
            item_id = str(row.pop("id"))
            items.append(
                ContentItem(
                    id=item_id,
                    content_type=self.content_type,
                    fields=row,
                    translations=[self._build(t) for t in translations],
                    created_at=row.get("created_at"),
                )
            )
        return items

    def bulk_delete(self, content_ids: Iterable[str], language_code: str | None = None) -> int:
        ids = list(content_ids)
        if not ids:
            return 0
        query = sql.SQL("DELETE FROM {} WHERE {} = ANY(%s)").format(
            sql.Identifier(self.schema.table),
            sql.Identifier(self.schema.content_id_field),
        )
        params: list[Any] = [ids]
        if language_code:
            query = query + sql.SQL(" AND language_code = %s")
            params.append(language_code)
        with self._cursor() as cur:
            cur.execute(query, params)
            return int(cur.rowcount)

    def count_by_language(self) -> dict[str, int]:
        query = sql.SQL(
            """
            SELECT language_code, COUNT(*) AS count
            FROM {}
            GROUP BY language_code
            ORDER BY language_code
            """
        ).format(sql.Identifier(self.schema.table))
        with self._cursor() as cur:
            cur.execute(query)
            rows = cur.fetchall()
        return {row["language_code"]: int(row["count"]) for row in rows}

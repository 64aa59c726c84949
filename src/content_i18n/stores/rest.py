from __future__ import annotations

import logging
import time
from collections import Counter
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Iterable, Mapping

import requests

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

log = logging.getLogger("content_i18n.stores.rest")

RETRY_STATUS = (429, 503)
UNIQUE_VIOLATION = "23505"


def _quote(value: str) -> str:
    escaped = value.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def in_filter(values: Iterable[str]) -> str:
    return "in.(" + ",".join(_quote(str(v)) for v in values) + ")"


class RestStoreError(StoreError):
    def __init__(self, message: str, status: int | None = None, code: str | None = None):
        super().__init__(message)
        self.status = status
        self.code = code


@dataclass
class RestTranslationStore:
    """Translation store backed by a PostgREST-compatible HTTP API."""

    content_type: ContentType
    api_url: str
    api_key: str
    session: requests.Session
    timeout: int = 30
    max_attempts: int = 5

    def __post_init__(self) -> None:
        self.content_type = as_content_type(self.content_type)

    @property
    def schema(self) -> ContentSchema:
        return schema_for(self.content_type)

    def _request(
        self,
        method: str,
        resource: str,
        params: dict[str, Any] | None = None,
        payload: Any = None,
        prefer: str | None = None,
    ) -> Any:
        url = f"{self.api_url.rstrip('/')}/{resource}"
        headers = {
            "apikey": self.api_key,
            "Authorization": f"Bearer {self.api_key}",
            "Accept": "application/json",
        }
        if prefer:
            headers["Prefer"] = prefer
        backoff = 1
        for attempt in range(self.max_attempts):
            try:
                resp = self.session.request(
                    method,
                    url,
                    params=params,
                    json=payload,
                    headers=headers,
                    timeout=self.timeout,
                )
            except requests.RequestException as exc:
                raise StoreError(f"{method} {resource} failed: {exc}") from exc
            if resp.status_code in RETRY_STATUS and attempt < self.max_attempts - 1:
                log.warning("%s %s returned %s; backing off %ss", method, resource, resp.status_code, backoff)
                time.sleep(backoff)
                backoff *= 2
                continue
            if resp.status_code >= 400:
                raise self._error(method, resource, resp)
            if not resp.content:
                return None
            try:
                return resp.json()
            except ValueError as exc:
                raise RestStoreError(
                    f"{method} {resource}: response is not JSON: {exc}", status=resp.status_code
                ) from exc
        raise StoreError(f"{method} {resource}: exceeded retry attempts")

    def _error(self, method: str, resource: str, resp: requests.Response) -> StoreError:
        code = None
        message = resp.text
        try:
            body = resp.json()
        except ValueError:
            body = None
        if isinstance(body, dict):
            code = body.get("code")
            message = body.get("message") or message
        if code == UNIQUE_VIOLATION or resp.status_code == 409:
            return DuplicateTranslation(message)
        return RestStoreError(
            f"{method} {resource} HTTP {resp.status_code}: {message}",
            status=resp.status_code,
            code=code,
        )

    def _build(self, row: Mapping[str, Any]) -> Translation:
        return build_translation(self.content_type, row)

    def list(self, content_id: str, language_code: str | None = None) -> list[Translation]:
        params: dict[str, Any] = {
            "select": "*",
            self.schema.content_id_field: f"eq.{content_id}",
            "order": "language_code.asc",
        }
        if language_code:
            params["language_code"] = f"eq.{language_code}"
        rows = self._request("GET", self.schema.table, params=params) or []
        return [self._build(row) for row in rows]

    def get(self, translation_id: str) -> Translation | None:
        rows = self._request(
            "GET",
            self.schema.table,
            params={"select": "*", "id": f"eq.{translation_id}", "limit": 1},
        ) or []
        return self._build(rows[0]) if rows else None

    def exists(self, content_id: str, language_code: str) -> bool:
        rows = self._request(
            "GET",
            self.schema.table,
            params={
                "select": "id",
                self.schema.content_id_field: f"eq.{content_id}",
                "language_code": f"eq.{language_code}",
                "limit": 1,
            },
        )
        return bool(rows)

    def insert(self, translation: Translation) -> Translation:
        if content_type_of(translation) != self.content_type:
            raise ValueError(
                f"cannot store {content_type_of(translation).value} translation "
                f"in {self.content_type.value} store"
            )
        rows = self._request(
            "POST",
            self.schema.table,
            payload=translation_row(translation),
            prefer="return=representation",
        )
        if not rows:
            raise StoreError(f"insert into {self.schema.table} returned no row")
        return self._build(rows[0])

    def update(self, translation_id: str, fields: Mapping[str, Any]) -> Translation:
        unknown = [name for name in fields if name not in self.schema.accessors]
        if unknown:
            raise ValueError(f"not translatable fields: {', '.join(unknown)}")
        payload = {**fields, "updated_at": datetime.now(timezone.utc).isoformat()}
        rows = self._request(
            "PATCH",
            self.schema.table,
            params={"id": f"eq.{translation_id}"},
            payload=payload,
            prefer="return=representation",
        )
        if not rows:
            raise TranslationNotFound(f"translation {translation_id} not found")
        return self._build(rows[0])

    def delete(self, translation_id: str) -> Translation:
        rows = self._request(
            "DELETE",
            self.schema.table,
            params={"id": f"eq.{translation_id}"},
            prefer="return=representation",
        )
        if not rows:
            raise TranslationNotFound(f"translation {translation_id} not found")
        return self._build(rows[0])

    def list_with_parent(self) -> list[ContentItem]:
        rows = self._request(
            "GET",
            self.schema.parent_view,
            params={"select": "*", "order": "created_at.desc"},
        ) or []
        items = []
        for row in rows:
            row = dict(row)
            translations = row.pop("translations", None)
            if not isinstance(translations, list):
                translations = []
            created_at = row.get("created_at")
            items.append(
                ContentItem(
                    id=str(row.pop("id")),
                    content_type=self.content_type,
                    fields=row,
                    translations=[self._build(t) for t in translations],
                    created_at=datetime.fromisoformat(created_at.replace("Z", "+00:00"))
                    if isinstance(created_at, str)
                    else created_at,
                )
            )
        return items

    def bulk_delete(self, content_ids: Iterable[str], language_code: str | None = None) -> int:
        ids = [str(c) for c in content_ids]
        if not ids:
            return 0
        params = {self.schema.content_id_field: in_filter(ids)}
        if language_code:
            params["language_code"] = f"eq.{language_code}"
        rows = self._request(
            "DELETE",
            self.schema.table,
            params=params,
            prefer="return=representation",
        )
        return len(rows or [])

    def count_by_language(self) -> dict[str, int]:
        rows = self._request("GET", self.schema.table, params={"select": "language_code"}) or []
        counts = Counter(row["language_code"] for row in rows)
        return dict(sorted(counts.items()))

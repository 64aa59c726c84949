from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from typing import Any, Iterable, Mapping

import requests

from .bulk import BulkOperations
from .cache import (
    TYPE_WIDE,
    VIEW_COMPLETENESS,
    VIEW_ITEMS,
    VIEW_STATISTICS,
    VIEW_STATUS,
    VIEW_TRANSLATIONS,
    TranslationCache,
    make_key,
)
from .completeness import get_completeness, get_translation_statistics
from .config import Config
from .languages import DEFAULT_LANGUAGES, LanguageSettings
from .lifecycle import InvalidationCallback, TranslationManager
from .models import (
    BulkResult,
    ContentItem,
    ContentType,
    OperationResult,
    TranslatedField,
    Translation,
    TranslationCompleteness,
    TranslationStatistics,
    TranslationStatus,
)
from .resolve import resolve_field
from .schema import as_content_type
from .status import get_translation_status
from .stores.base import TranslationStore
from .stores.postgres import PostgresTranslationStore
from .stores.rest import RestTranslationStore

log = logging.getLogger("content_i18n.service")


def make_store(
    cfg: Config, content_type: ContentType | str, session: requests.Session | None = None
) -> TranslationStore:
    ct = as_content_type(content_type)
    if cfg.store == "rest":
        if not cfg.api_url or not cfg.api_key:
            raise RuntimeError("CONTENT_API_URL and CONTENT_API_KEY are required for the rest store")
        return RestTranslationStore(
            ct,
            cfg.api_url,
            cfg.api_key,
            session or requests.Session(),
            timeout=cfg.http_timeout,
        )
    if not cfg.pg_dsn:
        raise RuntimeError("DATABASE_URL is required for the postgres store")
    return PostgresTranslationStore(ct, cfg.pg_dsn)


@dataclass
class TranslationService:
    """Per-content-type stores, managers and bulk operations behind one cache.

    Reads go through the cache; every mutation made through this service
    drops the cached views of the affected item (and the content type's list
    views) before ``listeners`` are told about it.
    """

    stores: Mapping[ContentType | str, TranslationStore]
    languages: LanguageSettings = DEFAULT_LANGUAGES
    required_languages: tuple[str, ...] | None = None
    cache: TranslationCache = field(default_factory=TranslationCache)
    enforce_unique: bool = True
    listeners: list[InvalidationCallback] = field(default_factory=list)

    _managers: dict[ContentType, TranslationManager] = field(default_factory=dict, init=False, repr=False)
    _bulk: dict[ContentType, BulkOperations] = field(default_factory=dict, init=False, repr=False)

    def __post_init__(self) -> None:
        self.stores = {as_content_type(ct): store for ct, store in self.stores.items()}
        if self.required_languages is None:
            self.required_languages = self.languages.supported
        for lang in self.required_languages:
            self.languages.require(lang)
        for ct, store in self.stores.items():
            manager = TranslationManager(
                content_type=ct,
                store=store,
                languages=self.languages,
                on_mutated=self._on_mutated,
                enforce_unique=self.enforce_unique,
            )
            self._managers[ct] = manager
            self._bulk[ct] = BulkOperations(manager)

    @classmethod
    def from_config(cls, cfg: Config, session: requests.Session | None = None) -> "TranslationService":
        return cls(
            stores={ct: make_store(cfg, ct, session) for ct in ContentType},
            languages=cfg.language_settings(),
            required_languages=cfg.required_languages,
            cache=TranslationCache(ttl_seconds=cfg.cache_ttl_seconds),
            enforce_unique=cfg.enforce_unique,
        )

    def _on_mutated(self, content_type: ContentType, content_id: str) -> None:
        self.cache.invalidate(content_type, content_id)
        for listener in self.listeners:
            try:
                listener(content_type, content_id)
            except Exception:
                log.exception("listener failed for %s:%s", content_type.value, content_id)

    def subscribe(self, listener: InvalidationCallback) -> None:
        self.listeners.append(listener)

    def manager(self, content_type: ContentType | str) -> TranslationManager:
        ct = as_content_type(content_type)
        try:
            return self._managers[ct]
        except KeyError:
            raise ValueError(f"no store configured for content type: {ct.value}") from None

    def bulk(self, content_type: ContentType | str) -> BulkOperations:
        return self._bulk[self.manager(content_type).content_type]

    def _required(self, required_languages: Iterable[str] | None) -> list[str]:
        return list(required_languages if required_languages is not None else self.required_languages)

    # reads

    def translations(self, content_type: ContentType | str, content_id: str) -> list[Translation]:
        manager = self.manager(content_type)
        cached = self.cache.get_or_load(
            make_key(manager.content_type, content_id, VIEW_TRANSLATIONS),
            lambda: manager.get_translations(content_id),
        )
        # cached rows are shared across callers
        return [replace(t) for t in cached]

    def status(
        self,
        content_type: ContentType | str,
        content_id: str,
        required_languages: Iterable[str] | None = None,
    ) -> list[TranslationStatus]:
        required = self._required(required_languages)
        return self.cache.get_or_load(
            make_key(content_type, content_id, f"{VIEW_STATUS}:{','.join(required)}"),
            lambda: get_translation_status(self.translations(content_type, content_id), required),
        )

    def completeness(
        self,
        content_type: ContentType | str,
        content_id: str,
        required_languages: Iterable[str] | None = None,
    ) -> TranslationCompleteness:
        required = self._required(required_languages)
        return self.cache.get_or_load(
            make_key(content_type, content_id, f"{VIEW_COMPLETENESS}:{','.join(required)}"),
            lambda: get_completeness(self.translations(content_type, content_id), required),
        )

    def items(self, content_type: ContentType | str) -> list[ContentItem]:
        manager = self.manager(content_type)
        cached = self.cache.get_or_load(
            make_key(manager.content_type, TYPE_WIDE, VIEW_ITEMS),
            manager.store.list_with_parent,
        )
        return [
            replace(item, fields=dict(item.fields), translations=[replace(t) for t in item.translations])
            for item in cached
        ]

    def statistics(
        self, content_type: ContentType | str, required_languages: Iterable[str] | None = None
    ) -> TranslationStatistics:
        required = self._required(required_languages)
        return self.cache.get_or_load(
            make_key(content_type, TYPE_WIDE, f"{VIEW_STATISTICS}:{','.join(required)}"),
            lambda: get_translation_statistics(self.items(content_type), required),
        )

    def language_counts(self, content_type: ContentType | str) -> dict[str, int]:
        """Stored translation rows per language, complete or not."""
        manager = self.manager(content_type)
        return self.cache.get_or_load(
            make_key(manager.content_type, TYPE_WIDE, f"{VIEW_STATISTICS}:rows"),
            manager.store.count_by_language,
        )

    def resolve_field(
        self,
        item: ContentItem | Mapping[str, Any],
        field_name: str,
        language: str,
        fallback_language: str | None = None,
    ) -> TranslatedField:
        return resolve_field(item, field_name, language, fallback_language or self.languages.default)

    # writes

    def create_translation(
        self, content_type: ContentType | str, content_id: str, language_code: str, fields: Mapping[str, Any]
    ) -> OperationResult:
        return self.manager(content_type).create_translation(content_id, language_code, fields)

    def update_translation(
        self, content_type: ContentType | str, translation_id: str, fields: Mapping[str, Any]
    ) -> OperationResult:
        return self.manager(content_type).update_translation(translation_id, fields)

    def delete_translation(self, content_type: ContentType | str, translation_id: str) -> OperationResult:
        return self.manager(content_type).delete_translation(translation_id)

    def bulk_delete(
        self, content_type: ContentType | str, content_ids: Iterable[str], language_code: str | None = None
    ) -> BulkResult:
        return self.bulk(content_type).bulk_delete(content_ids, language_code)

    def bulk_copy(
        self,
        content_type: ContentType | str,
        content_ids: Iterable[str],
        source_language: str,
        target_language: str,
        overwrite: bool = False,
    ) -> BulkResult:
        return self.bulk(content_type).bulk_copy(content_ids, source_language, target_language, overwrite)

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from typing import Any, Callable, Mapping

from .completeness import incomplete_fields
from .errors import DuplicateTranslation, StoreError, TranslationNotFound
from .languages import DEFAULT_LANGUAGES, LanguageSettings
from .models import ContentType, OperationResult, Translation
from .schema import as_content_type, translation_class
from .stores.base import TranslationStore
from .validation import validate_create, validate_update

log = logging.getLogger("content_i18n.lifecycle")

InvalidationCallback = Callable[[ContentType, str], None]
LOCK_STRIPES = 64


@dataclass
class TranslationManager:
    """Validated create/update/delete of one content type's translations.

    Public methods return an ``OperationResult`` and do not raise. After every
    successful mutation ``on_mutated(content_type, content_id)`` is called so
    cached lists and aggregates for that item can be dropped.

    With ``enforce_unique`` creates for the same (content id, language) are
    serialized in-process and preceded by an existence check. Separate
    processes still need the store's unique constraint.
    """

    content_type: ContentType
    store: TranslationStore
    languages: LanguageSettings = DEFAULT_LANGUAGES
    on_mutated: InvalidationCallback | None = None
    enforce_unique: bool = True

    _locks: tuple[threading.Lock, ...] = field(
        default_factory=lambda: tuple(threading.Lock() for _ in range(LOCK_STRIPES)), init=False, repr=False
    )

    def __post_init__(self) -> None:
        self.content_type = as_content_type(self.content_type)

    @property
    def label(self) -> str:
        return self.content_type.value.rstrip("s").capitalize()

    def _key_lock(self, content_id: str, language_code: str) -> threading.Lock:
        # fixed stripe set; unrelated keys may share a lock
        return self._locks[hash((content_id, language_code)) % len(self._locks)]

    def notify_mutated(self, content_id: str) -> None:
        if self.on_mutated is None:
            return
        try:
            self.on_mutated(self.content_type, content_id)
        except Exception:
            log.exception("invalidation failed for %s:%s", self.content_type.value, content_id)

    def get_translations(self, content_id: str, language_code: str | None = None) -> list[Translation]:
        return self.store.list(content_id, language_code)

    def translation_exists(self, content_id: str, language_code: str) -> bool:
        return self.store.exists(content_id, language_code)

    def _insert(self, translation: Translation) -> Translation | None:
        if not self.enforce_unique:
            return self.store.insert(translation)
        with self._key_lock(translation.content_id, translation.language_code):
            if self.store.exists(translation.content_id, translation.language_code):
                return None
            return self.store.insert(translation)

    def create_translation(
        self, content_id: str, language_code: str, fields: Mapping[str, Any]
    ) -> OperationResult:
        failed = f"Failed to create {self.label.lower()} translation"
        validation = validate_create(self.content_type, content_id, language_code, fields, self.languages)
        if not validation.is_valid:
            log.warning(
                "rejected %s translation content_id=%s lang=%s: %s",
                self.content_type.value,
                content_id,
                language_code,
                validation.summary(),
            )
            return OperationResult(
                success=False,
                message=failed,
                error=validation.summary(),
                errors=validation.errors,
            )

        translation = translation_class(self.content_type)(
            content_id=str(content_id),
            language_code=language_code,
            **dict(fields),
        )
        duplicate = f"{language_code} translation already exists for {content_id}"
        try:
            created = self._insert(translation)
        except DuplicateTranslation as exc:
            log.warning("duplicate %s translation content_id=%s lang=%s", self.content_type.value, content_id, language_code)
            return OperationResult(
                success=False,
                message=failed,
                error=str(exc),
                errors={"language_code": duplicate},
            )
        except StoreError as exc:
            log.warning("create %s translation failed: %s", self.content_type.value, exc)
            return OperationResult(success=False, message=failed, error=str(exc))
        except Exception as exc:
            log.exception("create %s translation failed", self.content_type.value)
            return OperationResult(success=False, message=failed, error=str(exc) or "Unknown error")

        if created is None:
            log.warning("duplicate %s translation content_id=%s lang=%s", self.content_type.value, content_id, language_code)
            return OperationResult(
                success=False,
                message=failed,
                error=duplicate,
                errors={"language_code": duplicate},
            )

        log.info(
            "created %s translation id=%s content_id=%s lang=%s",
            self.content_type.value,
            created.id,
            created.content_id,
            created.language_code,
        )
        self.notify_mutated(created.content_id)
        return OperationResult(
            success=True,
            message=f"{self.label} translation created successfully",
            translation=created,
        )

    def update_translation(self, translation_id: str, fields: Mapping[str, Any]) -> OperationResult:
        failed = f"Failed to update {self.label.lower()} translation"
        if not fields:
            return OperationResult(
                success=False,
                message=failed,
                error="no fields to update",
                errors={"fields": "no fields to update"},
            )
        validation = validate_update(self.content_type, fields)
        if not validation.is_valid:
            log.warning("rejected %s translation update id=%s: %s", self.content_type.value, translation_id, validation.summary())
            return OperationResult(
                success=False,
                message=failed,
                error=validation.summary(),
                errors=validation.errors,
            )

        try:
            updated = self.store.update(translation_id, dict(fields))
        except TranslationNotFound as exc:
            return OperationResult(success=False, message=failed, error=str(exc))
        except StoreError as exc:
            log.warning("update %s translation %s failed: %s", self.content_type.value, translation_id, exc)
            return OperationResult(success=False, message=failed, error=str(exc))
        except Exception as exc:
            log.exception("update %s translation %s failed", self.content_type.value, translation_id)
            return OperationResult(success=False, message=failed, error=str(exc) or "Unknown error")

        log.info("updated %s translation id=%s fields=%s", self.content_type.value, translation_id, ",".join(fields))
        self.notify_mutated(updated.content_id)

        message = f"{self.label} translation updated successfully"
        warnings = dict(validation.warnings)
        blank = incomplete_fields(updated)
        if blank:
            message = f"{self.label} translation updated; incomplete (missing {', '.join(blank)})"
            for name in blank:
                warnings.setdefault(name, f"{name} is required for a complete translation")
        return OperationResult(success=True, message=message, translation=updated, warnings=warnings)

    def delete_translation(self, translation_id: str) -> OperationResult:
        failed = f"Failed to delete {self.label.lower()} translation"
        try:
            deleted = self.store.delete(translation_id)
        except TranslationNotFound:
            log.info("%s translation %s already deleted", self.content_type.value, translation_id)
            return OperationResult(success=True, message=f"{self.label} translation already deleted")
        except StoreError as exc:
            log.warning("delete %s translation %s failed: %s", self.content_type.value, translation_id, exc)
            return OperationResult(success=False, message=failed, error=str(exc))
        except Exception as exc:
            log.exception("delete %s translation %s failed", self.content_type.value, translation_id)
            return OperationResult(success=False, message=failed, error=str(exc) or "Unknown error")

        log.info("deleted %s translation id=%s content_id=%s", self.content_type.value, translation_id, deleted.content_id)
        self.notify_mutated(deleted.content_id)
        return OperationResult(
            success=True,
            message=f"{self.label} translation deleted successfully",
            translation=deleted,
        )

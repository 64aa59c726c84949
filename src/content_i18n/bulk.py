from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Iterable, Mapping

from .completeness import find_translation, get_completeness, incomplete_fields
from .errors import StoreError
from .lifecycle import TranslationManager
from .models import BulkResult, OperationResult
from .schema import get_field, translatable_fields

log = logging.getLogger("content_i18n.bulk")

EXPORT_VERSION = "1.0"


def _unique_ids(content_ids: Iterable[str]) -> list[str]:
    out: list[str] = []
    for cid in content_ids:
        cid = str(cid).strip()
        if cid and cid not in out:
            out.append(cid)
    return out


@dataclass
class BulkOperations:
    manager: TranslationManager

    @property
    def store(self):
        return self.manager.store

    def _check_language(self, name: str, code: str | None) -> BulkResult | None:
        if code is None or self.manager.languages.is_supported(code):
            return None
        return BulkResult(success=False, errors={name: f"unsupported language code: {code}"})

    def bulk_delete(self, content_ids: Iterable[str], language_code: str | None = None) -> BulkResult:
        """Delete translations of many items, optionally only one language.

        Each content id is deleted and reported on its own, so one failing id
        does not hide the rows removed for the others.
        """
        rejected = self._check_language("language_code", language_code)
        if rejected:
            return rejected

        result = BulkResult(success=True)
        for cid in _unique_ids(content_ids):
            try:
                removed = self.store.bulk_delete([cid], language_code)
            except StoreError as exc:
                result.failed += 1
                result.errors[cid] = str(exc)
                log.warning("bulk delete %s %s failed: %s", self.manager.content_type.value, cid, exc)
                continue
            except Exception as exc:
                result.failed += 1
                result.errors[cid] = str(exc) or type(exc).__name__
                log.exception("bulk delete %s %s failed", self.manager.content_type.value, cid)
                continue
            result.processed += 1
            result.deleted_count += removed
            if removed:
                self.manager.notify_mutated(cid)
        result.success = result.failed == 0
        log.info(
            "bulk delete %s lang=%s processed=%s deleted=%s failed=%s",
            self.manager.content_type.value,
            language_code or "*",
            result.processed,
            result.deleted_count,
            result.failed,
        )
        return result

    def bulk_copy(
        self,
        content_ids: Iterable[str],
        source_language: str,
        target_language: str,
        overwrite: bool = False,
    ) -> BulkResult:
        rejected = self._check_language("source_language", source_language) or self._check_language(
            "target_language", target_language
        )
        if rejected:
            return rejected
        if source_language == target_language:
            return BulkResult(
                success=False,
                errors={"target_language": "target language must differ from source language"},
            )

        fields = translatable_fields(self.manager.content_type)
        result = BulkResult(success=True)
        for cid in _unique_ids(content_ids):
            try:
                translations = self.store.list(cid)
            except StoreError as exc:
                result.failed += 1
                result.errors[cid] = str(exc)
                continue
            except Exception as exc:
                result.failed += 1
                result.errors[cid] = str(exc) or type(exc).__name__
                log.exception("bulk copy %s %s failed", self.manager.content_type.value, cid)
                continue
            source = find_translation(translations, source_language)
            if source is None:
                result.failed += 1
                result.errors[cid] = f"no {source_language} translation to copy"
                continue
            values = {name: get_field(source, name) for name in fields}
            existing = find_translation(translations, target_language)
            if existing is not None and not overwrite:
                op = OperationResult(
                    success=True,
                    message=f"{target_language} translation exists; skipped",
                    translation=existing,
                )
            elif existing is not None:
                op = self.manager.update_translation(existing.id, values)
            else:
                op = self.manager.create_translation(cid, target_language, values)
            result.results.append(op)
            if op.success:
                result.processed += 1
            else:
                result.failed += 1
                result.errors[cid] = op.error or op.message
        result.success = result.failed == 0
        log.info(
            "bulk copy %s %s->%s processed=%s failed=%s",
            self.manager.content_type.value,
            source_language,
            target_language,
            result.processed,
            result.failed,
        )
        return result

    def bulk_validate(
        self, content_ids: Iterable[str], required_languages: Iterable[str] | None = None
    ) -> BulkResult:
        required = list(required_languages or self.manager.languages.supported)
        result = BulkResult(success=True)
        for cid in _unique_ids(content_ids):
            try:
                translations = self.store.list(cid)
            except StoreError as exc:
                result.failed += 1
                result.errors[cid] = str(exc)
                continue
            except Exception as exc:
                result.failed += 1
                result.errors[cid] = str(exc) or type(exc).__name__
                log.exception("bulk validate %s %s failed", self.manager.content_type.value, cid)
                continue
            completeness = get_completeness(translations, required)
            ok = completeness.completed == completeness.total
            problems = []
            if completeness.missing:
                problems.append(f"missing {','.join(completeness.missing)}")
            for lang in required:
                translation = find_translation(translations, lang)
                if translation is not None and incomplete_fields(translation):
                    problems.append(f"{lang} incomplete ({','.join(incomplete_fields(translation))})")
            result.results.append(
                OperationResult(
                    success=ok,
                    message=f"{cid}: {completeness.completed}/{completeness.total} complete ({completeness.percentage}%)",
                )
            )
            if ok:
                result.processed += 1
            else:
                result.failed += 1
                result.errors[cid] = "; ".join(problems)
        result.success = result.failed == 0
        return result

    def export_translations(
        self, content_id: str, content_title: str = "", exported_by: str = "content-i18n"
    ) -> dict[str, Any]:
        fields = translatable_fields(self.manager.content_type)
        translations = self.store.list(content_id)
        return {
            "contentType": self.manager.content_type.value,
            "contentId": content_id,
            "contentTitle": content_title,
            "translations": {
                t.language_code: {
                    name: value for name in fields if (value := get_field(t, name)) is not None
                }
                for t in translations
            },
            "metadata": {
                "exportedAt": datetime.now(timezone.utc).isoformat(),
                "exportedBy": exported_by,
                "version": EXPORT_VERSION,
            },
        }

    def import_translations(self, data: Mapping[str, Any], overwrite: bool = True) -> BulkResult:
        content_type = data.get("contentType")
        if content_type != self.manager.content_type.value:
            return BulkResult(
                success=False,
                errors={"contentType": f"expected {self.manager.content_type.value}, got {content_type}"},
            )
        entries = data.get("translations") or []
        if isinstance(entries, Mapping):
            # single-item export payload: {lang: {field: value}}
            entries = [
                {"contentId": data.get("contentId"), "languageCode": lang, "fields": values}
                for lang, values in entries.items()
            ]
        if not isinstance(entries, (list, tuple)):
            return BulkResult(success=False, errors={"translations": "translations must be a list or an object"})
        result = BulkResult(success=True)
        for index, entry in enumerate(entries):
            if not isinstance(entry, Mapping):
                result.failed += 1
                result.errors[f"entry {index}"] = "translation entry must be an object"
                continue
            cid = str(entry.get("contentId") or "")
            lang = entry.get("languageCode")
            key = f"{cid}:{lang}"
            fields = entry.get("fields") or {}
            if not isinstance(fields, Mapping):
                result.failed += 1
                result.errors[key] = "fields must be an object"
                continue
            values = dict(fields)
            try:
                existing = self.store.list(cid, lang) if cid and lang else []
            except StoreError as exc:
                result.failed += 1
                result.errors[key] = str(exc)
                continue
            except Exception as exc:
                result.failed += 1
                result.errors[key] = str(exc) or type(exc).__name__
                log.exception("import %s %s failed", self.manager.content_type.value, key)
                continue
            if existing and not overwrite:
                op = OperationResult(success=True, message=f"{key} exists; skipped", translation=existing[0])
            elif existing:
                op = self.manager.update_translation(existing[0].id, values)
            else:
                op = self.manager.create_translation(cid, lang, values)
            result.results.append(op)
            if op.success:
                result.processed += 1
            else:
                result.failed += 1
                result.errors[key] = op.error or op.message
        result.success = result.failed == 0
        log.info(
            "imported %s translations processed=%s failed=%s",
            self.manager.content_type.value,
            result.processed,
            result.failed,
        )
        return result

from __future__ import annotations


class StoreError(RuntimeError):
    pass


class TranslationNotFound(StoreError):
    pass


class DuplicateTranslation(StoreError):
    pass

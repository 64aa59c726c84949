from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, ClassVar


class ContentType(str, Enum):
    POSTS = "posts"
    PRODUCTS = "products"
    BROKERS = "brokers"

    def __str__(self) -> str:
        return self.value


@dataclass(kw_only=True)
class Translation:
    """One language variant of a content item.

    The concrete subclass is the content-type discriminant; it is chosen once
    when the row is built and never re-inferred from which fields are set.
    """

    content_type: ClassVar[ContentType]

    content_id: str
    language_code: str
    id: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


@dataclass(kw_only=True)
class PostTranslation(Translation):
    content_type: ClassVar[ContentType] = ContentType.POSTS

    title: str = ""
    excerpt: str | None = None
    content: str | None = None


@dataclass(kw_only=True)
class ProductTranslation(Translation):
    content_type: ClassVar[ContentType] = ContentType.PRODUCTS

    name: str = ""
    description: str | None = None


@dataclass(kw_only=True)
class BrokerTranslation(Translation):
    content_type: ClassVar[ContentType] = ContentType.BROKERS

    description: str = ""
    affiliate_link: str | None = None


@dataclass
class ContentItem:
    id: str
    content_type: ContentType
    fields: dict[str, Any] = field(default_factory=dict)
    translations: list[Translation] = field(default_factory=list)
    created_at: datetime | None = None

    def get(self, name: str) -> Any:
        return self.fields.get(name)


@dataclass(frozen=True)
class TranslatedField:
    value: str
    language: str
    is_fallback: bool
    is_original: bool


@dataclass(frozen=True)
class TranslationStatus:
    language_code: str
    has_translation: bool
    is_complete: bool
    last_updated: datetime | None = None


@dataclass(frozen=True)
class TranslationCompleteness:
    total: int
    completed: int
    missing: list[str]
    percentage: int


@dataclass(frozen=True)
class TranslationStatistics:
    total_content: int
    with_translations: int
    without_translations: int
    translations_by_language: dict[str, int]
    completeness: int


@dataclass
class OperationResult:
    success: bool
    message: str
    translation: Translation | None = None
    error: str | None = None
    errors: dict[str, str] = field(default_factory=dict)
    warnings: dict[str, str] = field(default_factory=dict)


@dataclass
class BulkResult:
    success: bool
    processed: int = 0
    failed: int = 0
    deleted_count: int = 0
    errors: dict[str, str] = field(default_factory=dict)
    results: list[OperationResult] = field(default_factory=list)

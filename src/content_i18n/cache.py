"""
In-process cache for translation lists and the views derived from them.

Entries are keyed by ``(content_type, content_id, view)`` and expire after
``ttl_seconds``; ``invalidate`` drops every view of one content item and is
shaped to be passed straight in as a lifecycle ``on_mutated`` callback.
"""
from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass, field
from typing import Any, Callable, TypeVar

from .models import ContentType
from .schema import as_content_type

log = logging.getLogger("content_i18n.cache")

T = TypeVar("T")

VIEW_TRANSLATIONS = "translations"
VIEW_STATUS = "status"
VIEW_COMPLETENESS = "completeness"
VIEW_ITEMS = "items"
VIEW_STATISTICS = "statistics"

# content-type wide views, keyed with content_id "*"
TYPE_WIDE = "*"


def make_key(content_type: ContentType | str, content_id: str, view: str) -> tuple[str, str, str]:
    return (as_content_type(content_type).value, str(content_id), view)


@dataclass
class TranslationCache:
    ttl_seconds: float = 300
    clock: Callable[[], float] = time.monotonic

    _entries: dict[tuple[str, str, str], tuple[float, Any]] = field(
        default_factory=dict, init=False, repr=False
    )
    _loading: dict[tuple[str, str, str], object] = field(default_factory=dict, init=False, repr=False)
    _lock: threading.RLock = field(default_factory=threading.RLock, init=False, repr=False)

    def get(self, key: tuple[str, str, str]) -> Any | None:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            expires_at, value = entry
            if self.clock() >= expires_at:
                del self._entries[key]
                return None
            return value

    def set(self, key: tuple[str, str, str], value: Any) -> None:
        with self._lock:
            self._entries[key] = (self.clock() + self.ttl_seconds, value)

    def get_or_load(self, key: tuple[str, str, str], loader: Callable[[], T]) -> T:
        cached = self.get(key)
        if cached is not None:
            return cached
        # loader runs outside the lock; an invalidation that lands while it runs
        # drops the ticket, and the loaded value is then returned uncached
        ticket = object()
        with self._lock:
            self._loading[key] = ticket
        try:
            value = loader()
        except BaseException:
            with self._lock:
                if self._loading.get(key) is ticket:
                    del self._loading[key]
            raise
        with self._lock:
            if self._loading.get(key) is ticket:
                del self._loading[key]
                self.set(key, value)
        return value

    def _drop(self, match: Callable[[tuple[str, str, str]], bool]) -> int:
        with self._lock:
            for key in [k for k in self._loading if match(k)]:
                del self._loading[key]
            doomed = [key for key in self._entries if match(key)]
            for key in doomed:
                del self._entries[key]
        return len(doomed)

    def invalidate(self, content_type: ContentType | str, content_id: str) -> int:
        ct = as_content_type(content_type).value
        cid = str(content_id)
        dropped = self._drop(lambda key: key[0] == ct and key[1] in (cid, TYPE_WIDE))
        log.debug("invalidated %s entries for %s:%s", dropped, ct, content_id)
        return dropped

    def invalidate_type(self, content_type: ContentType | str) -> int:
        ct = as_content_type(content_type).value
        dropped = self._drop(lambda key: key[0] == ct)
        log.debug("invalidated %s entries for %s", dropped, ct)
        return dropped

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
            self._loading.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

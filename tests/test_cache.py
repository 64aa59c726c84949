import pytest

from content_i18n.cache import (
    TYPE_WIDE,
    VIEW_ITEMS,
    VIEW_STATUS,
    VIEW_TRANSLATIONS,
    TranslationCache,
    make_key,
)


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now


def test_make_key_normalizes_content_type():
    assert make_key("posts", 7, VIEW_STATUS) == ("posts", "7", "status")


def test_entries_expire_after_ttl():
    clock = FakeClock()
    cache = TranslationCache(ttl_seconds=300, clock=clock)
    key = make_key("posts", "a", VIEW_TRANSLATIONS)
    cache.set(key, ["x"])

    clock.now += 299
    assert cache.get(key) == ["x"]
    clock.now += 1
    assert cache.get(key) is None
    assert len(cache) == 0


def test_get_or_load_calls_loader_once():
    cache = TranslationCache()
    calls = []

    def loader():
        calls.append(1)
        return []

    key = make_key("products", "p1", VIEW_TRANSLATIONS)
    assert cache.get_or_load(key, loader) == []
    assert cache.get_or_load(key, loader) == []
    assert len(calls) == 1


def test_invalidate_only_touches_that_item_and_type_wide_views():
    cache = TranslationCache()
    cache.set(make_key("posts", "a", VIEW_TRANSLATIONS), 1)
    cache.set(make_key("posts", "a", VIEW_STATUS), 2)
    cache.set(make_key("posts", "b", VIEW_TRANSLATIONS), 3)
    cache.set(make_key("posts", TYPE_WIDE, VIEW_ITEMS), 4)
    cache.set(make_key("brokers", "a", VIEW_TRANSLATIONS), 5)

    assert cache.invalidate("posts", "a") == 3
    assert cache.get(make_key("posts", "a", VIEW_STATUS)) is None
    assert cache.get(make_key("posts", TYPE_WIDE, VIEW_ITEMS)) is None
    assert cache.get(make_key("posts", "b", VIEW_TRANSLATIONS)) == 3
    assert cache.get(make_key("brokers", "a", VIEW_TRANSLATIONS)) == 5


def test_invalidate_type_and_clear():
    cache = TranslationCache()
    cache.set(make_key("posts", "a", VIEW_STATUS), 1)
    cache.set(make_key("brokers", "a", VIEW_STATUS), 2)

    assert cache.invalidate_type("posts") == 1
    assert len(cache) == 1
    cache.clear()
    assert len(cache) == 0


def test_invalidation_during_load_discards_loaded_value():
    cache = TranslationCache()
    key = make_key("posts", "a", VIEW_TRANSLATIONS)

    def loader():
        cache.invalidate("posts", "a")
        return ["stale"]

    assert cache.get_or_load(key, loader) == ["stale"]
    assert cache.get(key) is None
    assert cache.get_or_load(key, lambda: ["fresh"]) == ["fresh"]
    assert cache.get(key) == ["fresh"]


def test_type_wide_load_discarded_when_an_item_changes():
    cache = TranslationCache()
    key = make_key("posts", TYPE_WIDE, VIEW_ITEMS)

    def loader():
        cache.invalidate("posts", "b")
        return ["old list"]

    cache.get_or_load(key, loader)
    assert cache.get(key) is None


def test_unrelated_invalidation_keeps_loaded_value():
    cache = TranslationCache()
    key = make_key("posts", "a", VIEW_TRANSLATIONS)

    def loader():
        cache.invalidate("posts", "b")
        cache.invalidate("brokers", "a")
        return ["kept"]

    cache.get_or_load(key, loader)
    assert cache.get(key) == ["kept"]


def test_failed_load_leaves_nothing_behind():
    cache = TranslationCache()
    key = make_key("posts", "a", VIEW_TRANSLATIONS)

    def loader():
        raise RuntimeError("store down")

    with pytest.raises(RuntimeError):
        cache.get_or_load(key, loader)
    assert len(cache) == 0
    assert cache.get_or_load(key, lambda: ["ok"]) == ["ok"]

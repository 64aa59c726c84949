import threading

from content_i18n.errors import StoreError
from content_i18n.lifecycle import TranslationManager
from content_i18n.models import ContentType
from content_i18n.stores.memory import MemoryTranslationStore


def _manager(content_type="posts", unique=True, enforce_unique=True, calls=None):
    store = MemoryTranslationStore(content_type, unique=unique)
    on_mutated = None
    if calls is not None:
        on_mutated = lambda ct, cid: calls.append((ct, cid))
    return TranslationManager(
        content_type=content_type,
        store=store,
        on_mutated=on_mutated,
        enforce_unique=enforce_unique,
    )


def test_create_then_list_round_trip():
    calls = []
    manager = _manager(calls=calls)

    result = manager.create_translation("a", "pt", {"title": "Olá", "excerpt": "Resumo"})
    assert result.success
    assert result.message == "Post translation created successfully"
    assert result.translation.id
    assert result.translation.created_at is not None

    listed = manager.get_translations("a", "pt")
    assert len(listed) == 1
    assert listed[0].title == "Olá"
    assert listed[0].excerpt == "Resumo"
    assert listed[0].content is None
    assert manager.translation_exists("a", "pt")
    assert calls == [(ContentType.POSTS, "a")]


def test_create_rejects_invalid_input():
    calls = []
    manager = _manager(calls=calls)

    result = manager.create_translation("", "fr", {"title": " ", "colour": "red"})
    assert not result.success
    assert set(result.errors) == {"language_code", "post_id", "title", "colour"}
    assert manager.get_translations("") == []
    assert calls == []


def test_create_rejects_non_text_values():
    manager = _manager("products")
    result = manager.create_translation("p1", "en", {"name": "Widget", "description": 12})
    assert not result.success
    assert "description" in result.errors


def test_duplicate_create_rejected_by_store_constraint():
    manager = _manager(unique=True, enforce_unique=False)
    assert manager.create_translation("a", "en", {"title": "One"}).success

    second = manager.create_translation("a", "en", {"title": "Two"})
    assert not second.success
    assert "already exists" in second.errors["language_code"]
    assert len(manager.get_translations("a")) == 1


def test_duplicates_possible_without_any_uniqueness():
    manager = _manager(unique=False, enforce_unique=False)
    assert manager.create_translation("a", "en", {"title": "One"}).success
    assert manager.create_translation("a", "en", {"title": "Two"}).success
    assert len(manager.get_translations("a", "en")) == 2


def test_concurrent_creates_serialized_per_key():
    manager = _manager(unique=False, enforce_unique=True)
    barrier = threading.Barrier(8)
    results = []
    results_lock = threading.Lock()

    def create(n):
        barrier.wait()
        result = manager.create_translation("a", "en", {"title": f"Title {n}"})
        with results_lock:
            results.append(result)

    threads = [threading.Thread(target=create, args=(n,)) for n in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert sum(1 for r in results if r.success) == 1
    assert len(manager.get_translations("a", "en")) == 1


def test_update_changes_only_given_fields():
    calls = []
    manager = _manager(calls=calls)
    created = manager.create_translation("a", "en", {"title": "Hello", "excerpt": "Short"}).translation

    result = manager.update_translation(created.id, {"content": "Body"})
    assert result.success
    assert result.message == "Post translation updated successfully"
    assert result.warnings == {}
    assert result.translation.title == "Hello"
    assert result.translation.excerpt == "Short"
    assert result.translation.content == "Body"
    assert calls == [(ContentType.POSTS, "a"), (ContentType.POSTS, "a")]


def test_update_blanking_required_field_reports_incomplete():
    manager = _manager()
    created = manager.create_translation("a", "en", {"title": "Hello"}).translation

    result = manager.update_translation(created.id, {"title": ""})
    assert result.success
    assert "incomplete" in result.message
    assert "title" in result.warnings
    assert manager.get_translations("a")[0].title == ""


def test_update_rejects_null_required_field_and_unknown_field():
    manager = _manager()
    created = manager.create_translation("a", "en", {"title": "Hello"}).translation

    result = manager.update_translation(created.id, {"title": None, "slug": "x"})
    assert not result.success
    assert set(result.errors) == {"title", "slug"}
    assert manager.get_translations("a")[0].title == "Hello"


def test_update_with_no_fields_or_unknown_id():
    manager = _manager()
    assert not manager.update_translation("missing", {}).success
    result = manager.update_translation("missing", {"title": "x"})
    assert not result.success
    assert "not found" in result.error


def test_delete_is_idempotent():
    calls = []
    manager = _manager("brokers", calls=calls)
    created = manager.create_translation("b1", "en", {"description": "Broker"}).translation

    first = manager.delete_translation(created.id)
    assert first.success
    assert first.message == "Broker translation deleted successfully"
    assert manager.get_translations("b1") == []

    second = manager.delete_translation(created.id)
    assert second.success
    assert second.message == "Broker translation already deleted"
    assert calls == [(ContentType.BROKERS, "b1"), (ContentType.BROKERS, "b1")]


def test_store_errors_become_failed_results():
    class BrokenStore(MemoryTranslationStore):
        def delete(self, translation_id):
            raise StoreError("connection refused")

    manager = TranslationManager(content_type="posts", store=BrokenStore("posts"))
    result = manager.delete_translation("x")
    assert not result.success
    assert result.error == "connection refused"


def test_failing_callback_does_not_fail_the_mutation():
    def explode(ct, cid):
        raise RuntimeError("cache down")

    manager = TranslationManager(
        content_type="posts", store=MemoryTranslationStore("posts"), on_mutated=explode
    )
    assert manager.create_translation("a", "en", {"title": "Hello"}).success


def test_lock_table_does_not_grow_with_distinct_keys():
    manager = _manager()
    before = len(manager._locks)

    for i in range(500):
        assert manager.create_translation(f"post-{i}", "en", {"title": f"T{i}"}).success

    assert len(manager._locks) == before
    assert manager._key_lock("post-1", "en") is manager._key_lock("post-1", "en")

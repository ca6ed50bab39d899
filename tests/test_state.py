"""Tests for sync/state.py: RevisionStore, PageIndexCache, SyncContext."""

import json
from unittest.mock import MagicMock

import pytest

from oddmuse_sync.models import PageKey
from oddmuse_sync.sync.state import PageIndexCache, RevisionStore, SyncContext

CONTACT = PageKey(wiki="Alex", page="Contact")


class TestRevisionStore:
    def test_get_unknown_is_none(self):
        assert RevisionStore().get(CONTACT) is None

    def test_put_overwrites(self):
        store = RevisionStore()
        store.put(CONTACT, "new")
        store.put(CONTACT, "59")
        assert store.get(CONTACT) == "59"
        assert len(store) == 1
        assert CONTACT in store

    def test_keys_are_case_sensitive(self):
        store = RevisionStore()
        store.put(CONTACT, "59")
        assert store.get(PageKey(wiki="Alex", page="contact")) is None

    def test_snapshot_is_a_copy(self):
        store = RevisionStore()
        store.put(CONTACT, "59")
        snapshot = store.snapshot()
        store.put(CONTACT, "60")
        assert snapshot == {CONTACT: "59"}


class TestRevisionStorePersistence:
    def test_save_then_load(self, tmp_path):
        path = tmp_path / "state" / "revisions.json"
        store = RevisionStore()
        store.put(CONTACT, "59")
        store.put(PageKey(wiki="Alex", page="Home Page"), "new")
        store.save(path)

        restored = RevisionStore()
        assert restored.load(path) == 2
        assert restored.snapshot() == store.snapshot()

    def test_file_format(self, tmp_path):
        path = tmp_path / "revisions.json"
        store = RevisionStore()
        store.put(CONTACT, "59")
        store.save(path)

        data = json.loads(path.read_text(encoding="utf-8"))
        assert data["version"] == 1
        assert data["revisions"] == [
            {"wiki": "Alex", "page": "Contact", "revision": "59"}
        ]
        assert list(tmp_path.glob("*.tmp")) == []

    def test_memory_wins_over_file(self, tmp_path):
        path = tmp_path / "revisions.json"
        old = RevisionStore()
        old.put(CONTACT, "58")
        old.save(path)

        store = RevisionStore()
        store.put(CONTACT, "59")
        assert store.load(path) == 0
        assert store.get(CONTACT) == "59"

    def test_missing_file_loads_nothing(self, tmp_path):
        assert RevisionStore().load(tmp_path / "absent.json") == 0

    @pytest.mark.parametrize(
        "text",
        [
            "{not json",
            "[]",
            '{"revisions": [{"wiki": "Alex", "page": "Contact"}]}',
            '{"revisions": 5}',
        ],
    )
    def test_malformed_file_raises_value_error(self, tmp_path, text):
        path = tmp_path / "revisions.json"
        path.write_text(text, encoding="utf-8")
        store = RevisionStore()
        with pytest.raises(ValueError):
            store.load(path)
        assert store.snapshot() == {}


class TestPageIndexCache:
    def test_get_or_load_calls_loader_once(self):
        cache = PageIndexCache()
        loader = MagicMock(return_value={"HomePage", "Contact"})

        first = cache.get_or_load("Alex", loader)
        second = cache.get_or_load("Alex", loader)

        loader.assert_called_once()
        assert first is second
        assert first == {"HomePage", "Contact"}

    def test_loader_failure_leaves_wiki_unloaded(self):
        cache = PageIndexCache()
        loader = MagicMock(side_effect=RuntimeError("boom"))
        with pytest.raises(RuntimeError):
            cache.get_or_load("Alex", loader)
        assert not cache.is_loaded("Alex")

    def test_reload_replaces(self):
        cache = PageIndexCache()
        cache.get_or_load("Alex", lambda: {"Old"})
        assert cache.reload("Alex", lambda: {"New"}) == {"New"}
        assert cache.snapshot() == {"Alex": frozenset({"New"})}

    def test_add_to_loaded_set(self):
        cache = PageIndexCache()
        cache.get_or_load("Alex", lambda: {"HomePage"})
        cache.add("Alex", "Contact")
        assert "Contact" in cache.get_or_load("Alex", lambda: set())

    def test_add_before_load_is_noop(self):
        cache = PageIndexCache()
        cache.add("Alex", "Contact")
        assert not cache.is_loaded("Alex")
        assert cache.snapshot() == {}

    def test_wikis_are_independent(self):
        cache = PageIndexCache()
        cache.get_or_load("Alex", lambda: {"Contact"})
        cache.get_or_load("Emacs", lambda: {"SiteMap"})
        assert cache.snapshot() == {
            "Alex": frozenset({"Contact"}),
            "Emacs": frozenset({"SiteMap"}),
        }


class TestSyncContext:
    def test_each_context_owns_its_stores(self):
        a, b = SyncContext(), SyncContext()
        a.revisions.put(CONTACT, "59")
        assert b.revisions.get(CONTACT) is None
        assert a.index is not b.index

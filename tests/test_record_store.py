"""Tests for RecordStore and SelectionSet."""

import logging

from resource_hub.catalog.store import RecordStore, SelectionSet


class TestRecordStore:
    def test_upsert_new_goes_to_front(self, make_resource):
        store = RecordStore([make_resource("a"), make_resource("b")])
        assert store.upsert_local(make_resource("c")) is True
        assert [r.id for r in store.get_all()] == ["c", "a", "b"]

    def test_upsert_existing_replaces_in_place(self, make_resource):
        store = RecordStore([make_resource("a"), make_resource("b")])
        assert store.upsert_local(make_resource("b", name="renamed")) is False
        assert [r.id for r in store.get_all()] == ["a", "b"]
        assert store.get("b").name == "renamed"
        assert len(store) == 2

    def test_replace_all_keeps_first_duplicate(self, make_resource, caplog):
        store = RecordStore()
        with caplog.at_level(logging.WARNING):
            store.replace_all(
                [make_resource("a", name="first"), make_resource("a", name="second")]
            )
        assert len(store) == 1
        assert store.get("a").name == "first"
        assert "duplicate" in caplog.text

    def test_replace_all_replaces_everything(self, make_resource):
        store = RecordStore([make_resource("a")])
        store.replace_all([make_resource("b"), make_resource("c")])
        assert store.ids() == {"b", "c"}
        assert "a" not in store

    def test_remove_local(self, make_resource):
        store = RecordStore([make_resource("a"), make_resource("b")])
        assert store.remove_local("a") is True
        assert store.remove_local("a") is False
        assert [r.id for r in store.get_all()] == ["b"]

    def test_remove_local_batch_ignores_absent(self, make_resource):
        store = RecordStore([make_resource(i) for i in "abc"])
        assert store.remove_local_batch(["a", "c", "zzz"]) == 2
        assert [r.id for r in store.get_all()] == ["b"]
        assert store.remove_local_batch(["nope"]) == 0

    def test_all_tags_sorted_union(self, make_resource):
        store = RecordStore(
            [make_resource("a", tags=["ui", "css"]), make_resource("b", tags=["api", "ui"])]
        )
        assert store.all_tags() == ["api", "css", "ui"]

    def test_get_all_returns_copy(self, make_resource):
        store = RecordStore([make_resource("a")])
        store.get_all().clear()
        assert len(store) == 1

    def test_clear(self, make_resource):
        store = RecordStore([make_resource("a")])
        store.clear()
        assert len(store) == 0
        assert store.get_all() == []


class TestSelectionSet:
    def test_add_ignores_unknown_ids(self, make_resource):
        store = RecordStore([make_resource("a")])
        selection = SelectionSet(store)
        assert selection.add("a") is True
        assert selection.add("ghost") is False
        assert selection.ids() == ["a"]

    def test_toggle(self, make_resource):
        selection = SelectionSet(RecordStore([make_resource("a")]))
        assert selection.toggle("a") is True
        assert "a" in selection
        assert selection.toggle("a") is False
        assert len(selection) == 0

    def test_prune_drops_removed_ids(self, make_resource):
        store = RecordStore([make_resource("a"), make_resource("b")])
        selection = SelectionSet(store)
        selection.add("a")
        selection.add("b")
        store.remove_local("a")

        assert selection.prune() == 1
        assert list(selection) == ["b"]

    def test_iteration_sorted(self, make_resource):
        store = RecordStore([make_resource(i) for i in "cab"])
        selection = SelectionSet(store)
        for rid in "cab":
            selection.add(rid)
        assert list(selection) == ["a", "b", "c"]

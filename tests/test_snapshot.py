"""Tests for SnapshotStore persistence."""

import json

from resource_hub.catalog.snapshot import SnapshotStore


def test_path_uses_storage_name(tmp_path):
    snapshot = SnapshotStore(tmp_path)
    assert snapshot.path == tmp_path / "resource_warehouse.json"


def test_load_missing_returns_none(tmp_path):
    assert SnapshotStore(tmp_path).load() is None


def test_save_then_load(tmp_path, make_resource):
    snapshot = SnapshotStore(tmp_path / "nested", "shelf")
    records = [make_resource("a", tags=["x"]), make_resource("b", rating=9)]
    snapshot.save(records)

    assert snapshot.exists()
    assert snapshot.load() == records


def test_saved_file_uses_wire_format(tmp_path, make_resource):
    snapshot = SnapshotStore(tmp_path)
    snapshot.save([make_resource("a", name="Café")])

    raw = snapshot.path.read_text(encoding="utf-8")
    assert "Café" in raw
    data = json.loads(raw)
    assert data[0]["createdAt"]
    assert "fileSize" in data[0]["metadata"]


def test_save_leaves_no_temp_files(tmp_path, make_resource):
    snapshot = SnapshotStore(tmp_path)
    snapshot.save([make_resource("a")])
    snapshot.save([make_resource("b")])

    assert [p.name for p in tmp_path.iterdir()] == ["resource_warehouse.json"]


def test_corrupt_snapshot_returns_none(tmp_path):
    snapshot = SnapshotStore(tmp_path)
    snapshot.path.write_text("{not json", encoding="utf-8")
    assert snapshot.load() is None


def test_non_list_root_returns_none(tmp_path):
    snapshot = SnapshotStore(tmp_path)
    snapshot.path.write_text('{"id": "a"}', encoding="utf-8")
    assert snapshot.load() is None


def test_invalid_record_returns_none(tmp_path):
    snapshot = SnapshotStore(tmp_path)
    snapshot.path.write_text('[{"id": "a"}]', encoding="utf-8")
    assert snapshot.load() is None


def test_empty_list_is_a_snapshot(tmp_path):
    snapshot = SnapshotStore(tmp_path)
    snapshot.save([])
    assert snapshot.load() == []


def test_clear(tmp_path, make_resource):
    snapshot = SnapshotStore(tmp_path)
    snapshot.save([make_resource("a")])
    snapshot.clear()
    assert not snapshot.exists()
    snapshot.clear()

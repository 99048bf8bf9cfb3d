"""
Tests for storage backends and timeline persistence.
"""

import json

import pytest

from src.models import Edge, Node, Position, Snapshot
from src.storage import (
    FileStore,
    KeyValueStore,
    MemoryStore,
    TimelinePersistence,
    create_store,
    seed_snapshot,
)
from src.storage.persistence import ENTRIES_KEY, INDEX_KEY


class TestFileStore:
    """Tests for FileStore file-based storage."""

    def test_conforms_to_protocol(self, tmp_path):
        assert isinstance(FileStore(str(tmp_path)), KeyValueStore)

    def test_get_missing_key(self, tmp_path):
        assert FileStore(str(tmp_path)).get("entries") is None

    def test_set_and_get(self, tmp_path):
        store = FileStore(str(tmp_path / "db"))
        store.set("index", "3")
        assert (tmp_path / "db" / "index.json").exists()
        assert FileStore(str(tmp_path / "db")).get("index") == "3"

    def test_delete(self, tmp_path):
        store = FileStore(str(tmp_path))
        store.set("index", "1")
        store.delete("index")
        store.delete("index")
        assert store.get("index") is None

    def test_rejects_path_like_keys(self, tmp_path):
        with pytest.raises(ValueError):
            FileStore(str(tmp_path)).set("../escape", "x")


class TestMemoryStore:
    def test_roundtrip_and_write_count(self):
        store = MemoryStore()
        assert isinstance(store, KeyValueStore)
        store.set("a", "1")
        store.set("a", "2")
        assert store.get("a") == "2"
        assert store.writes == 2
        store.delete("a")
        assert store.get("a") is None


class TestFactory:
    def test_memory(self):
        assert create_store("memory").backend_type == "memory"

    def test_file(self, tmp_path):
        store = create_store("file", tmp_path)
        assert store.backend_type == "file"

    def test_unknown_falls_back_to_file(self, tmp_path):
        assert create_store("supabase", tmp_path).backend_type == "file"

    def test_file_without_dir(self):
        with pytest.raises(ValueError):
            create_store("file")


class TestTimelinePersistence:
    @pytest.fixture
    def snapshots(self):
        first = seed_snapshot()
        second = Snapshot(
            nodes=first.nodes + (Node(id="3", position=Position(1, 2), label="New Node",
                                      is_editing=True, background_color="#123456"),),
            edges=(Edge(id="e1-3", source="1", target="3"),),
        )
        return [first, second]

    def test_empty_store_loads_seed(self):
        timeline = TimelinePersistence(MemoryStore()).load()
        assert timeline.entries == [seed_snapshot()]
        assert timeline.cursor == 0

    def test_seed_shape(self):
        seed = seed_snapshot()
        assert [n.id for n in seed.nodes] == ["1", "2"]
        assert [n.label for n in seed.nodes] == ["Node 1", "Node 2"]
        assert seed.edges == ()

    def test_save_then_load(self, snapshots):
        store = MemoryStore()
        TimelinePersistence(store).save(snapshots, 1)
        timeline = TimelinePersistence(store).load()
        assert timeline.entries == snapshots
        assert timeline.cursor == 1

    def test_save_then_load_on_disk(self, tmp_path, snapshots):
        TimelinePersistence(FileStore(str(tmp_path))).save(snapshots, 0)
        timeline = TimelinePersistence(FileStore(str(tmp_path))).load()
        assert timeline.entries == snapshots
        assert timeline.cursor == 0

    def test_save_writes_two_keys(self, snapshots):
        store = MemoryStore()
        TimelinePersistence(store).save(snapshots, 1)
        assert set(store.data) == {ENTRIES_KEY, INDEX_KEY}
        assert json.loads(store.data[INDEX_KEY]) == 1
        assert len(json.loads(store.data[ENTRIES_KEY])) == 2

    @pytest.mark.parametrize("entries, index", [
        ("not json", "0"),
        ("[]", "0"),
        ("{}", "0"),
        ('[{"nodes": [], "edges": []}]', '"0"'),
        ('[{"nodes": [], "edges": []}]', "true"),
        ('[{"nodes": [], "edges": []}]', "1"),
        ('[{"nodes": [], "edges": []}]', "-1"),
        ('[{"nodes": {}, "edges": []}]', "0"),
        ('[{"nodes": [{"label": "no id"}], "edges": []}]', "0"),
        ('[42]', "0"),
    ])
    def test_invalid_state_falls_back_to_seed(self, entries, index):
        store = MemoryStore({ENTRIES_KEY: entries, INDEX_KEY: index})
        timeline = TimelinePersistence(store).load()
        assert timeline.entries == [seed_snapshot()]
        assert timeline.cursor == 0

    def test_missing_index_falls_back_to_seed(self, snapshots):
        store = MemoryStore()
        TimelinePersistence(store).save(snapshots, 1)
        store.delete(INDEX_KEY)
        assert TimelinePersistence(store).load().entries == [seed_snapshot()]

    def test_save_failure_is_not_raised(self, snapshots):
        class BrokenStore(MemoryStore):
            def set(self, key, value):
                raise OSError("disk full")

        TimelinePersistence(BrokenStore()).save(snapshots, 0)

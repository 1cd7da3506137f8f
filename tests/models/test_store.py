"""Unit tests for the node store backends and seeding."""

import json

import pytest

from models.errors import NotFoundError, StoreCorruptedError
from models.node import DIRECTORY_SIZE, FileNode, NodeType
from models.store import (
    IMAGE_FORMAT_VERSION,
    JsonFileStore,
    MemoryFileStore,
    create_store,
    seed_directories,
)
from config import Settings


class TestSeeding:
    """Tests for first-use initialization."""

    def test_seeds_standard_tree(self):
        store = MemoryFileStore()
        assert store.initialize("cvj") is True

        for directory in seed_directories("cvj"):
            node = store.get(directory)
            assert node is not None
            assert node.type == NodeType.DIRECTORY
            assert node.size == DIRECTORY_SIZE

        assert store.get("/home/cvj").parent == "/home"
        assert store.get("/").parent == ""

    def test_seeds_etc_files(self):
        store = MemoryFileStore()
        store.initialize("alice")

        passwd = store.get("/etc/passwd").content.decode()
        assert passwd.startswith("root:x:0:0:root:/root:/bin/bash")
        assert "alice:x:1000:1000:alice,,,:/home/alice:/bin/bash" in passwd
        assert b"CVJ Terminal OS" in store.get("/etc/os-release").content

    def test_records_metadata(self):
        store = MemoryFileStore()
        store.initialize("cvj")
        assert store.get_metadata("seed_user") == "cvj"
        assert store.get_metadata("initialized_at") is not None

    def test_initialize_is_idempotent(self):
        store = MemoryFileStore()
        store.initialize()
        store.put(FileNode.new_file("/tmp/keep.txt", b"keep"))
        count = len(store)

        assert store.initialize() is False
        assert len(store) == count
        assert store.get("/tmp/keep.txt").content == b"keep"

    def test_existing_root_prevents_reseed(self):
        store = MemoryFileStore()
        store.put(FileNode.new_directory("/"))
        assert store.initialize() is False
        assert store.get("/etc/passwd") is None


class TestMemoryFileStore:
    def test_put_overwrites(self):
        store = MemoryFileStore()
        store.put(FileNode.new_file("/a", b"one"))
        store.put(FileNode.new_file("/a", b"two"))
        assert store.get("/a").content == b"two"
        assert len(store) == 1

    def test_get_missing_returns_none(self):
        assert MemoryFileStore().get("/nope") is None

    def test_delete_missing_raises(self):
        with pytest.raises(NotFoundError):
            MemoryFileStore().delete("/nope")

    def test_list_children_sorted_and_direct_only(self, store):
        store.put(FileNode.new_file("/tmp/b.txt", b""))
        store.put(FileNode.new_file("/tmp/a.txt", b""))
        store.put(FileNode.new_directory("/tmp/sub"))
        store.put(FileNode.new_file("/tmp/sub/deep.txt", b""))

        paths = [node.path for node in store.list_children("/tmp")]
        assert paths == ["/tmp/a.txt", "/tmp/b.txt", "/tmp/sub"]

    def test_list_children_excludes_root_itself(self, store):
        paths = [node.path for node in store.list_children("/")]
        assert "/" not in paths
        assert "/etc" in paths

    def test_metadata_default(self):
        assert MemoryFileStore().get_metadata("missing", 42) == 42


class TestJsonFileStore:
    """Tests for the persistent JSON image backend."""

    def test_tree_survives_reload(self, tmp_path):
        image = tmp_path / "image.json"
        store = JsonFileStore(str(image))
        store.initialize("cvj")
        store.put(FileNode.new_file("/tmp/bin.dat", bytes(range(256))))
        store.set_metadata("installed_packages", {"nmap": {"name": "nmap"}})

        reloaded = JsonFileStore(str(image))
        assert reloaded.get("/tmp/bin.dat").content == bytes(range(256))
        assert reloaded.get("/tmp/bin.dat").size == 256
        assert reloaded.get_metadata("installed_packages") == {"nmap": {"name": "nmap"}}
        assert reloaded.initialize("cvj") is False

    def test_image_format(self, tmp_path):
        image = tmp_path / "image.json"
        store = JsonFileStore(str(image))
        store.put(FileNode.new_file("/hello.txt", b"hi"))

        document = json.loads(image.read_text())
        assert document["version"] == IMAGE_FORMAT_VERSION
        assert document["files"]["/hello.txt"]["content"] == "aGk="
        assert document["files"]["/hello.txt"]["type"] == "file"

    def test_delete_is_persisted(self, tmp_path):
        image = tmp_path / "image.json"
        store = JsonFileStore(str(image))
        store.put(FileNode.new_file("/x", b""))
        store.delete("/x")
        assert JsonFileStore(str(image)).get("/x") is None

    def test_missing_image_starts_empty(self, tmp_path):
        store = JsonFileStore(str(tmp_path / "nested" / "image.json"))
        assert len(store) == 0
        store.initialize()
        assert (tmp_path / "nested" / "image.json").exists()

    def test_corrupted_image_raises(self, tmp_path):
        image = tmp_path / "image.json"
        image.write_text("{not json")
        with pytest.raises(StoreCorruptedError):
            JsonFileStore(str(image))

    def test_invalid_utf8_image_raises(self, tmp_path):
        image = tmp_path / "image.json"
        image.write_bytes(b"\xff\xfe{\"version\": 1}")
        with pytest.raises(StoreCorruptedError):
            JsonFileStore(str(image))

    def test_unreadable_image_raises(self, tmp_path):
        image = tmp_path / "image.json"
        image.mkdir()
        with pytest.raises(StoreCorruptedError):
            JsonFileStore(str(image))

    def test_wrong_version_raises(self, tmp_path):
        image = tmp_path / "image.json"
        image.write_text(json.dumps({"version": 99, "files": {}}))
        with pytest.raises(StoreCorruptedError, match="unsupported image version"):
            JsonFileStore(str(image))

    def test_no_temp_files_left_behind(self, tmp_path):
        store = JsonFileStore(str(tmp_path / "image.json"))
        store.initialize()
        assert [p.name for p in tmp_path.iterdir()] == ["image.json"]


class TestCreateStore:
    def test_memory_by_default(self):
        store = create_store(Settings())
        assert type(store) is MemoryFileStore

    def test_json_when_path_set(self, tmp_path):
        store = create_store(Settings(store_path=str(tmp_path / "vts.json")))
        assert isinstance(store, JsonFileStore)

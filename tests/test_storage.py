import sqlite3

import pytest

from sbmt.hashing import Sha256Hasher
from sbmt.merkle import MerkleTree
from sbmt.storage import MemoryStorage, SqliteStorage, StorageError


@pytest.fixture(params=["memory", "sqlite"])
def storage(request, tmp_path):
    if request.param == "memory":
        yield MemoryStorage()
    else:
        store = SqliteStorage(str(tmp_path / "kv.db"))
        yield store
        store.close()


# ---------------------------------------------------------------------------
# Shared backend contract
# ---------------------------------------------------------------------------

def test_get_missing(storage):
    assert storage.get("absent") is None


def test_put_get_delete(storage):
    storage.put("k", "v")
    assert storage.get("k") == "v"
    storage.put("k", "w")
    assert storage.get("k") == "w"
    storage.delete("k")
    assert storage.get("k") is None
    storage.delete("k")


def test_put_batch(storage):
    storage.put_batch({"a": "1", "b": "2"})
    assert storage.get("a") == "1"
    assert storage.get("b") == "2"


def test_put_batch_is_all_or_nothing(storage):
    storage.put("a", "old")
    with pytest.raises(StorageError):
        storage.put_batch({"a": "new", "b": 2})
    assert storage.get("a") == "old"
    assert storage.get("b") is None


def test_put_rejects_non_string(storage):
    with pytest.raises(StorageError, match="must be a string"):
        storage.put("k", None)


# ---------------------------------------------------------------------------
# SQLite specifics
# ---------------------------------------------------------------------------

def test_sqlite_tree_survives_reopen(tmp_path):
    path = str(tmp_path / "tree.db")
    hasher = Sha256Hasher()

    with SqliteStorage(path) as storage:
        tree = MerkleTree("acct", storage, hasher, 8, "0")
        tree.update(17, "a")
        tree.update(200, "b")
        root = tree.root()
        proof = tree.path(17)

    with SqliteStorage(path) as storage:
        tree = MerkleTree("acct", storage, hasher, 8, "0")
        assert tree.root() == root
        assert tree.path(17) == proof
        assert tree.update_log_index() == 1
        tree.rollback(1)
        assert tree.get(200) == "0"


def test_sqlite_errors_are_wrapped(tmp_path):
    storage = SqliteStorage(str(tmp_path / "kv.db"))
    storage.close()
    with pytest.raises(StorageError) as excinfo:
        storage.get("k")
    assert isinstance(excinfo.value.__cause__, sqlite3.Error)
    with pytest.raises(StorageError):
        storage.put_batch({"k": "v"})


def test_sqlite_open_failure(tmp_path):
    with pytest.raises(StorageError, match="Cannot open"):
        SqliteStorage(str(tmp_path / "missing" / "kv.db"))


def test_memory_storage_helpers():
    storage = MemoryStorage()
    storage.put_batch({"a": "1"})
    assert "a" in storage
    assert len(storage) == 1

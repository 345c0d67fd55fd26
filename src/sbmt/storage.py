# storage.py
# Key-value backends the tree persists through.
#
# Keys and values are opaque strings. Backends know nothing about trees;
# they only promise that put_batch() lands all of its keys or none of them.

import sqlite3
from typing import Protocol


class StorageError(Exception):
    """Raised when a backend cannot read or write. Never retried by the tree."""


class Storage(Protocol):
    def get(self, key: str) -> str | None: ...

    def put(self, key: str, value: str) -> None: ...

    def delete(self, key: str) -> None: ...

    def put_batch(self, items: dict[str, str]) -> None: ...


def _check_value(key: str, value: object) -> None:
    if not isinstance(value, str):
        raise StorageError(
            f"Value for '{key}' must be a string, got {type(value).__name__}."
        )


# ---------------------------------------------------------------------------
# In-memory backend
# ---------------------------------------------------------------------------


class MemoryStorage:
    """Dict-backed store. Lost when the process exits."""

    def __init__(self) -> None:
        self._data: dict[str, str] = {}

    def get(self, key: str) -> str | None:
        return self._data.get(key)

    def put(self, key: str, value: str) -> None:
        _check_value(key, value)
        self._data[key] = value

    def delete(self, key: str) -> None:
        self._data.pop(key, None)

    def put_batch(self, items: dict[str, str]) -> None:
        for key, value in items.items():
            _check_value(key, value)
        self._data.update(items)

    def __len__(self) -> int:
        return len(self._data)

    def __contains__(self, key: str) -> bool:
        return key in self._data


# ---------------------------------------------------------------------------
# SQLite backend
# ---------------------------------------------------------------------------

SCHEMA = """
CREATE TABLE IF NOT EXISTS kv (
    key   TEXT PRIMARY KEY,
    value TEXT NOT NULL
);
"""


class SqliteStorage:
    """
    Durable store on a single SQLite file (WAL mode).

    put_batch() runs inside one transaction, so a crash mid-update leaves
    either the old path or the new one, never a mix.

    Usage:
        with SqliteStorage("tree.db") as storage:
            tree = MerkleTree("accounts", storage, Sha256Hasher(), 20, "0")
    """

    def __init__(self, path: str) -> None:
        self.path = path
        try:
            self._conn = sqlite3.connect(path, check_same_thread=False)
            self._conn.execute("PRAGMA journal_mode=WAL")
            self._conn.execute("PRAGMA synchronous=NORMAL")
            self._conn.executescript(SCHEMA)
            self._conn.commit()
        except sqlite3.Error as exc:
            raise StorageError(f"Cannot open SQLite store at {path}: {exc}") from exc

    def get(self, key: str) -> str | None:
        try:
            row = self._conn.execute("SELECT value FROM kv WHERE key = ?", (key,)).fetchone()
        except sqlite3.Error as exc:
            raise StorageError(f"Read of '{key}' failed: {exc}") from exc
        return row[0] if row else None

    def put(self, key: str, value: str) -> None:
        self.put_batch({key: value})

    def delete(self, key: str) -> None:
        try:
            with self._conn:
                self._conn.execute("DELETE FROM kv WHERE key = ?", (key,))
        except sqlite3.Error as exc:
            raise StorageError(f"Delete of '{key}' failed: {exc}") from exc

    def put_batch(self, items: dict[str, str]) -> None:
        for key, value in items.items():
            _check_value(key, value)
        try:
            # The connection context manager commits on success, rolls back on error.
            with self._conn:
                self._conn.executemany(
                    "INSERT OR REPLACE INTO kv (key, value) VALUES (?, ?)",
                    list(items.items()),
                )
        except sqlite3.Error as exc:
            raise StorageError(f"Batch write of {len(items)} keys failed: {exc}") from exc

    def close(self) -> None:
        self._conn.close()

    def __enter__(self) -> "SqliteStorage":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

# config.py
# Tree settings read from the environment (and a local .env file).
#
#   SBMT_PREFIX          namespace for every storage key     (default "sbmt")
#   SBMT_DEPTH           levels above the leaves             (default 20)
#   SBMT_DEFAULT_VALUE   value of never-written leaves       (default "0")
#   SBMT_STORAGE_PATH    SQLite file; unset means in-memory
#   SBMT_SKIP_UNCHANGED  "1"/"true" to make same-value updates a no-op

import os

from dotenv import load_dotenv
from pydantic import BaseModel, Field

from sbmt.hashing import Hasher, Sha256Hasher
from sbmt.merkle import MerkleTree
from sbmt.storage import MemoryStorage, SqliteStorage, Storage

_TRUTHY = {"1", "true", "yes", "on"}


class TreeConfig(BaseModel):
    """Everything needed to open one tree namespace."""

    prefix: str = Field(default="sbmt", min_length=1)
    depth: int = Field(default=20, ge=1, le=64)
    default_value: str = Field(default="0")
    storage_path: str | None = Field(default=None, description="SQLite file, or None for memory.")
    skip_unchanged: bool = Field(default=False)

    @classmethod
    def from_env(cls) -> "TreeConfig":
        load_dotenv()
        values: dict = {}
        if prefix := os.getenv("SBMT_PREFIX"):
            values["prefix"] = prefix
        if depth := os.getenv("SBMT_DEPTH"):
            values["depth"] = depth
        if (default_value := os.getenv("SBMT_DEFAULT_VALUE")) is not None:
            values["default_value"] = default_value
        if storage_path := os.getenv("SBMT_STORAGE_PATH"):
            values["storage_path"] = storage_path
        if skip := os.getenv("SBMT_SKIP_UNCHANGED"):
            values["skip_unchanged"] = skip.strip().lower() in _TRUTHY
        return cls.model_validate(values)

    def open_storage(self) -> Storage:
        if self.storage_path is None:
            return MemoryStorage()
        return SqliteStorage(self.storage_path)

    def build_tree(self, hasher: Hasher | None = None, storage: Storage | None = None) -> MerkleTree:
        return MerkleTree(
            self.prefix,
            storage if storage is not None else self.open_storage(),
            hasher if hasher is not None else Sha256Hasher(),
            self.depth,
            self.default_value,
            skip_unchanged=self.skip_unchanged,
        )

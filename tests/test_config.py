import pytest
from pydantic import ValidationError
from unittest.mock import patch

from sbmt.config import TreeConfig
from sbmt.storage import MemoryStorage, SqliteStorage

ENV_VARS = [
    "SBMT_PREFIX",
    "SBMT_DEPTH",
    "SBMT_DEFAULT_VALUE",
    "SBMT_STORAGE_PATH",
    "SBMT_SKIP_UNCHANGED",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    # Keep a developer's .env out of the tests.
    with patch("sbmt.config.load_dotenv"):
        yield


def test_defaults():
    config = TreeConfig.from_env()
    assert config.prefix == "sbmt"
    assert config.depth == 20
    assert config.default_value == "0"
    assert config.storage_path is None
    assert config.skip_unchanged is False


def test_from_env(monkeypatch, tmp_path):
    monkeypatch.setenv("SBMT_PREFIX", "accounts")
    monkeypatch.setenv("SBMT_DEPTH", "4")
    monkeypatch.setenv("SBMT_DEFAULT_VALUE", "")
    monkeypatch.setenv("SBMT_STORAGE_PATH", str(tmp_path / "tree.db"))
    monkeypatch.setenv("SBMT_SKIP_UNCHANGED", "True")

    config = TreeConfig.from_env()
    assert config.prefix == "accounts"
    assert config.depth == 4
    assert config.default_value == ""
    assert config.skip_unchanged is True

    storage = config.open_storage()
    assert isinstance(storage, SqliteStorage)
    storage.close()


def test_invalid_depth(monkeypatch):
    monkeypatch.setenv("SBMT_DEPTH", "0")
    with pytest.raises(ValidationError):
        TreeConfig.from_env()


def test_build_tree():
    config = TreeConfig(prefix="demo", depth=3, default_value="4")
    tree = config.build_tree()
    assert isinstance(tree.storage, MemoryStorage)
    assert tree.capacity == 8
    tree.update(5, "x")
    assert tree.update_log_index() == 0


def test_build_tree_with_storage():
    storage = MemoryStorage()
    tree = TreeConfig(depth=2).build_tree(storage=storage)
    tree.update(0, "1")
    assert storage.get("sbmt_tree_0_0") == "1"

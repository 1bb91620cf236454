import pytest

from raju import config
from raju.exceptions import StorageUnavailableError
from raju.memory import KeyValueStorage


def test_missing_key_returns_none(tmp_path):
    assert KeyValueStorage(tmp_path).get_item("absent") is None


def test_set_get_remove(tmp_path):
    storage = KeyValueStorage(tmp_path / "nested")
    storage.set_item("raju_experiences", "[]")

    assert storage.get_item("raju_experiences") == "[]"
    assert storage.keys() == ["raju_experiences"]

    storage.remove_item("raju_experiences")
    storage.remove_item("raju_experiences")
    assert storage.get_item("raju_experiences") is None


def test_set_item_leaves_no_temp_files(tmp_path):
    storage = KeyValueStorage(tmp_path)
    storage.set_item("k", "one")
    storage.set_item("k", "two")

    assert storage.get_item("k") == "two"
    assert sorted(p.name for p in tmp_path.iterdir()) == ["k.json"]


def test_default_root_follows_config():
    storage = KeyValueStorage()
    storage.set_item("k", "v")
    assert (config.STORAGE_DIR / "k.json").exists()


@pytest.mark.parametrize("key", ["", "../escape", "a/b", "with space"])
def test_invalid_keys_are_rejected(tmp_path, key):
    with pytest.raises(ValueError):
        KeyValueStorage(tmp_path).get_item(key)


def test_unwritable_root_raises_storage_unavailable(tmp_path):
    blocker = tmp_path / "file"
    blocker.write_text("not a directory")

    storage = KeyValueStorage(blocker / "sub")
    with pytest.raises(StorageUnavailableError):
        storage.set_item("k", "v")
    with pytest.raises(StorageUnavailableError):
        storage.get_item("k")

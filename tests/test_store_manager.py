import json

import pytest

from baseshell.services.errors import PersistenceReadError, PersistenceWriteError
from baseshell.services.store_manager import AsyncStore, StoreManager


def test_dotted_keys_round_trip(tmp_path):
    path = tmp_path / "doc.config"
    store = StoreManager(path)
    store.set("layout.horizontal", [10, 80, 10])
    store.set("window_state.theme", "dark")
    store.set_many({"project_config.name": "Demo", "layout.vertical": [40, 60]})
    store.save()

    doc = json.loads(path.read_text(encoding="utf-8"))
    assert doc["layout"] == {"horizontal": [10, 80, 10], "vertical": [40, 60]}

    reread = StoreManager(path)
    assert reread.get("window_state.theme") == "dark"
    assert reread.get("project_config") == {"name": "Demo"}
    assert reread.get_many(["layout.vertical", "nope"]) == {"layout.vertical": [40, 60], "nope": None}
    assert reread.has("layout.horizontal")
    assert not reread.has("layout.diagonal")
    assert reread.get("layout.diagonal", 5) == 5


def test_get_returns_copies(tmp_path):
    store = StoreManager(tmp_path / "doc.config")
    store.set("a.b", [1, 2])
    value = store.get("a.b")
    value.append(3)
    assert store.get("a.b") == [1, 2]


def test_set_replaces_scalar_parent(tmp_path):
    store = StoreManager(tmp_path / "doc.config")
    store.set("a", 1)
    store.set("a.b", 2)
    assert store.snapshot() == {"a": {"b": 2}}


def test_missing_file_is_empty(tmp_path):
    store = StoreManager(tmp_path / "missing.config")
    store.reload()
    assert store.snapshot() == {}


@pytest.mark.parametrize("content", ["{not json", "[1, 2, 3]"])
def test_corrupt_document_is_backed_up(tmp_path, content):
    path = tmp_path / "doc.config"
    path.write_text(content, encoding="utf-8")
    store = StoreManager(path)
    store.reload()
    assert store.snapshot() == {}
    backup = tmp_path / "doc.config.corrupt.bak"
    assert backup.exists()
    assert backup.read_text(encoding="utf-8") == content
    assert not path.exists()


def test_unreadable_document_raises(tmp_path):
    path = tmp_path / "adir"
    path.mkdir()
    with pytest.raises(PersistenceReadError):
        StoreManager(path).reload()


def test_save_failure_raises_write_error(tmp_path):
    blocker = tmp_path / "afile"
    blocker.write_text("x", encoding="utf-8")
    store = StoreManager(blocker / "doc.config")
    store.set("a", 1)
    with pytest.raises(PersistenceWriteError):
        store.save()
    # in-memory state survives the failed write
    assert store.get("a") == 1


def test_save_is_atomic_and_leaves_no_tmp(tmp_path):
    path = tmp_path / "doc.config"
    store = StoreManager(path)
    store.set("x", 1)
    assert store.save() == path
    assert not (tmp_path / "doc.config.tmp").exists()


def test_async_store_set_then_get_in_order(qtbot, tmp_path):
    async_store = AsyncStore(StoreManager(tmp_path / "doc.config"))
    results = []
    async_store.set("layout.horizontal", [20, 60, 20], lambda r, e: results.append(("set", e)))
    async_store.get("layout.horizontal", lambda r, e: results.append(("get", r)))
    async_store.get_many(["layout.horizontal", "x"], lambda r, e: results.append(("many", r)))
    qtbot.waitUntil(lambda: len(results) == 3, timeout=2000)
    assert results == [
        ("set", None),
        ("get", [20, 60, 20]),
        ("many", {"layout.horizontal": [20, 60, 20], "x": None}),
    ]
    assert async_store.pending() == 0
    assert async_store.shutdown(1000)


def test_async_store_delivers_errors(qtbot, tmp_path):
    blocker = tmp_path / "afile"
    blocker.write_text("x", encoding="utf-8")
    async_store = AsyncStore(StoreManager(blocker / "doc.config"))
    errors = []
    async_store.set_many({"a": 1}, lambda r, e: errors.append(e))
    qtbot.waitUntil(lambda: bool(errors), timeout=2000)
    assert isinstance(errors[0], PersistenceWriteError)


def test_async_store_copies_payload(qtbot, tmp_path):
    async_store = AsyncStore(StoreManager(tmp_path / "doc.config"))
    value = [1, 2]
    done = []
    async_store.set("v", value, lambda r, e: done.append(e))
    value.append(3)
    qtbot.waitUntil(lambda: bool(done), timeout=2000)
    assert async_store.store.get("v") == [1, 2]

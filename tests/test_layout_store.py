import json

from baseshell.services.errors import PersistenceReadError, PersistenceWriteError
from baseshell.services.layout_controller import LayoutConfig
from baseshell.services.layout_store import HORIZONTAL_KEY, VERTICAL_KEY, LayoutStore
from baseshell.services.store_manager import AsyncStore, StoreManager


class FailingBackend:
    def __init__(self, exc):
        self.exc = exc

    def get_many(self, keys, callback):
        callback(None, self.exc)

    def set_many(self, values, callback=None):
        if callback:
            callback(None, self.exc)


def test_write_then_read_through_async_store(qtbot, tmp_path):
    path = tmp_path / "BaseProject.config"
    backend = AsyncStore(StoreManager(path))
    store = LayoutStore(backend)
    written = []
    store.write(LayoutConfig.from_raw([20, 60, 20], [30, 70]), written.append)
    qtbot.waitUntil(lambda: written == [None], timeout=2000)

    doc = json.loads(path.read_text(encoding="utf-8"))
    assert doc["layout"] == {"horizontal": [20.0, 60.0, 20.0], "vertical": [30.0, 70.0]}

    results = []
    store.read(lambda raw, err: results.append((raw, err)))
    qtbot.waitUntil(lambda: bool(results), timeout=2000)
    assert results[0] == ({"horizontal": [20.0, 60.0, 20.0], "vertical": [30.0, 70.0]}, None)
    assert backend.shutdown(1000)


def test_read_missing_keys_returns_none_values(qtbot, tmp_path):
    store = LayoutStore(AsyncStore(StoreManager(tmp_path / "none.config")))
    results = []
    store.read(lambda raw, err: results.append((raw, err)))
    qtbot.waitUntil(lambda: bool(results), timeout=2000)
    assert results[0] == ({"horizontal": None, "vertical": None}, None)


def test_keys_share_document_with_other_owners(qtbot, tmp_path):
    manager = StoreManager(tmp_path / "shared.config")
    manager.set("window_state.width", 1024)
    manager.save()
    backend = AsyncStore(manager)
    done = []
    LayoutStore(backend).write(LayoutConfig.default(), done.append)
    qtbot.waitUntil(lambda: bool(done), timeout=2000)
    assert done == [None]
    reread = StoreManager(tmp_path / "shared.config")
    assert reread.get("window_state.width") == 1024
    assert reread.get(HORIZONTAL_KEY) == [10.0, 80.0, 10.0]
    assert reread.get(VERTICAL_KEY) == [40.0, 60.0]


def test_backend_errors_are_mapped():
    store = LayoutStore(FailingBackend(OSError("no disk")))
    reads, writes = [], []
    store.read(lambda raw, err: reads.append((raw, err)))
    store.write(LayoutConfig.default(), writes.append)
    assert reads[0][0] is None
    assert isinstance(reads[0][1], PersistenceReadError)
    assert isinstance(writes[0], PersistenceWriteError)
    assert "no disk" in str(writes[0])


def test_typed_errors_pass_through():
    err = PersistenceWriteError("full")
    writes = []
    LayoutStore(FailingBackend(err)).write(LayoutConfig.default(), writes.append)
    assert writes == [err]


def test_write_without_callback():
    backend = FailingBackend(OSError("ignored"))
    LayoutStore(backend).write(LayoutConfig.default())

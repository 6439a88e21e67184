"""Key-value persistence for the application document.

The whole shell configuration lives in one JSON document
(``BaseProject.config``). ``StoreManager`` exposes it through dotted keys so
unrelated owners can share the file without knowing each other's schema::

    store.get("layout.horizontal")        # -> [10, 80, 10] or None
    store.set("window_state.theme", "dark")
    store.save()

``AsyncStore`` is the UI-facing wrapper: each call runs on a private
single-thread pool and its ``(result, error)`` is delivered back on the UI
thread through a queued signal, so the event thread never blocks on disk.
A single worker thread keeps execution in submission order.

Design notes:
 - Atomic save (write ``.tmp`` then replace) like the rest of our persisted files
 - Corrupt documents load as empty and are kept aside as ``.corrupt.bak``
 - RLock guards the in-memory document; the pool thread and the UI thread
   may both touch it
"""

from __future__ import annotations

import copy
import json
import logging
import os
from pathlib import Path
from threading import RLock
from typing import Any, Callable, Dict, Iterable, Optional

from PyQt6.QtCore import QObject, QRunnable, QThreadPool, pyqtSignal, pyqtSlot

from .errors import PersistenceReadError, PersistenceWriteError

__all__ = ["StoreManager", "AsyncStore", "StoreCallback"]

logger = logging.getLogger(__name__)

StoreCallback = Callable[[Any, Optional[Exception]], None]

_MISSING = object()


class StoreManager:
    """JSON document with dotted-key access."""

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)
        self._lock = RLock()
        self._data: Dict[str, Any] = {}
        self._loaded = False

    @property
    def path(self) -> Path:
        return self._path

    # Loading -----------------------------------------------------------
    def reload(self) -> None:
        """(Re)read the document from disk.

        A missing file yields an empty document. Unparsable content is
        backed up and replaced by an empty document. Any other OS failure is
        raised as ``PersistenceReadError``.
        """
        with self._lock:
            self._loaded = True
            if not self._path.exists():
                self._data = {}
                return
            try:
                text = self._path.read_text(encoding="utf-8")
            except OSError as exc:
                self._data = {}
                raise PersistenceReadError(f"Cannot read {self._path}: {exc}") from exc
            try:
                data = json.loads(text) if text.strip() else {}
            except json.JSONDecodeError as exc:
                logger.warning("Store document %s is corrupt (%s); starting empty", self._path, exc)
                self._backup_corrupt()
                data = {}
            if not isinstance(data, dict):
                logger.warning("Store document %s is not an object; starting empty", self._path)
                self._backup_corrupt()
                data = {}
            self._data = data

    def _ensure_loaded(self) -> None:
        if not self._loaded:
            self.reload()

    def _backup_corrupt(self) -> None:
        backup = self._path.with_name(self._path.name + ".corrupt.bak")
        try:
            os.replace(self._path, backup)
        except OSError as exc:
            logger.warning("Could not back up corrupt store %s: %s", self._path, exc)

    # Access ------------------------------------------------------------
    def has(self, key: str) -> bool:
        return self.get(key, _MISSING) is not _MISSING

    def get(self, key: str, default: Any = None) -> Any:
        with self._lock:
            self._ensure_loaded()
            node: Any = self._data
            for part in key.split("."):
                if not isinstance(node, dict) or part not in node:
                    return default
                node = node[part]
            return copy.deepcopy(node)

    def get_many(self, keys: Iterable[str]) -> Dict[str, Any]:
        with self._lock:
            return {k: self.get(k) for k in keys}

    def set(self, key: str, value: Any) -> None:
        parts = key.split(".")
        with self._lock:
            self._ensure_loaded()
            node = self._data
            for part in parts[:-1]:
                child = node.get(part)
                if not isinstance(child, dict):
                    child = {}
                    node[part] = child
                node = child
            node[parts[-1]] = copy.deepcopy(value)

    def set_many(self, values: Dict[str, Any]) -> None:
        with self._lock:
            for k, v in values.items():
                self.set(k, v)

    def snapshot(self) -> Dict[str, Any]:
        with self._lock:
            self._ensure_loaded()
            return copy.deepcopy(self._data)

    # Persistence -------------------------------------------------------
    def save(self) -> Path:
        with self._lock:
            self._ensure_loaded()
            text = json.dumps(self._data, indent=2, ensure_ascii=False)
            tmp = self._path.with_name(self._path.name + ".tmp")
            try:
                self._path.parent.mkdir(parents=True, exist_ok=True)
                tmp.write_text(text, encoding="utf-8")
                tmp.replace(self._path)
            except OSError as exc:
                raise PersistenceWriteError(f"Cannot write {self._path}: {exc}") from exc
        return self._path


class _Relay(QObject):
    """Carries one task result from the pool thread back to the UI thread."""

    done = pyqtSignal(object, object)  # result, error

    def __init__(self, owner: "AsyncStore", callback: StoreCallback | None) -> None:
        super().__init__(owner)
        self._owner = owner
        self._callback = callback
        self.done.connect(self._finish)

    @pyqtSlot(object, object)
    def _finish(self, result: Any, error: Optional[Exception]) -> None:
        self._owner._relays.discard(self)
        self.deleteLater()
        if self._callback is not None:
            self._callback(result, error)
        elif error is not None:
            logger.warning("Store operation failed: %s", error)


class _StoreTask(QRunnable):
    def __init__(self, func: Callable[[], Any], relay: _Relay) -> None:
        super().__init__()
        self._func = func
        self._relay = relay

    def run(self) -> None:  # executed on the pool thread
        try:
            result = self._func()
        except Exception as exc:  # noqa: BLE001 - delivered to the caller's callback
            self._relay.done.emit(None, exc)
        else:
            self._relay.done.emit(result, None)


class AsyncStore(QObject):
    """Asynchronous facade over ``StoreManager`` for the UI thread."""

    def __init__(self, store: StoreManager, parent: QObject | None = None) -> None:
        super().__init__(parent)
        self._store = store
        self._pool = QThreadPool(self)
        self._pool.setMaxThreadCount(1)
        self._relays: set[_Relay] = set()

    @property
    def store(self) -> StoreManager:
        return self._store

    def get(self, key: str, callback: StoreCallback) -> None:
        self._submit(lambda: self._store.get(key), callback)

    def get_many(self, keys: Iterable[str], callback: StoreCallback) -> None:
        keys = list(keys)
        self._submit(lambda: self._store.get_many(keys), callback)

    def set(self, key: str, value: Any, callback: StoreCallback | None = None) -> None:
        self.set_many({key: value}, callback)

    def set_many(self, values: Dict[str, Any], callback: StoreCallback | None = None) -> None:
        payload = copy.deepcopy(values)

        def _write() -> None:
            self._store.set_many(payload)
            self._store.save()

        self._submit(_write, callback)

    def pending(self) -> int:
        return len(self._relays)

    def shutdown(self, timeout_ms: int = 1000) -> bool:
        """Wait for queued store work; returns False if it did not finish in time."""
        return self._pool.waitForDone(timeout_ms)

    def _submit(self, func: Callable[[], Any], callback: StoreCallback | None) -> None:
        # Relay is created on the UI thread, so its slot runs there (queued from the pool).
        relay = _Relay(self, callback)
        self._relays.add(relay)
        self._pool.start(_StoreTask(func, relay))

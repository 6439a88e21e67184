"""Persisted representation of the main pane proportions.

Two keys of the application document hold the layout:

    layout.horizontal  -> [left, center, right]   (percent)
    layout.vertical    -> [content, log]          (percent)

``LayoutStore`` only moves those values in and out of the key-value backend;
shape validation belongs to ``LayoutConfig.from_raw``.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Callable, Dict, Iterable, Optional, Protocol

from .errors import PersistenceReadError, PersistenceWriteError

if TYPE_CHECKING:  # pragma: no cover
    from .layout_controller import LayoutConfig

__all__ = [
    "HORIZONTAL_KEY",
    "VERTICAL_KEY",
    "KeyValueBackend",
    "LayoutStore",
]

HORIZONTAL_KEY = "layout.horizontal"
VERTICAL_KEY = "layout.vertical"

ReadCallback = Callable[[Optional[Dict[str, Any]], Optional[PersistenceReadError]], None]
WriteCallback = Callable[[Optional[PersistenceWriteError]], None]


class KeyValueBackend(Protocol):
    """Asynchronous key-value collaborator (``AsyncStore`` in the running app)."""

    def get_many(
        self, keys: Iterable[str], callback: Callable[[Any, Optional[Exception]], None]
    ) -> None: ...  # pragma: no cover - structural

    def set_many(
        self,
        values: Dict[str, Any],
        callback: Callable[[Any, Optional[Exception]], None] | None = None,
    ) -> None: ...  # pragma: no cover - structural


class LayoutStore:
    def __init__(self, backend: KeyValueBackend) -> None:
        self._backend = backend

    def read(self, callback: ReadCallback) -> None:
        """Fetch the stored arrays; ``callback(raw, error)`` runs on the UI thread.

        ``raw`` is ``{"horizontal": ..., "vertical": ...}`` with the stored
        values as-is (``None`` where a key is absent).
        """

        def _done(values: Any, error: Optional[Exception]) -> None:
            if error is not None:
                if not isinstance(error, PersistenceReadError):
                    error = PersistenceReadError(str(error))
                callback(None, error)
                return
            values = values or {}
            callback(
                {
                    "horizontal": values.get(HORIZONTAL_KEY),
                    "vertical": values.get(VERTICAL_KEY),
                },
                None,
            )

        self._backend.get_many([HORIZONTAL_KEY, VERTICAL_KEY], _done)

    def write(self, config: "LayoutConfig", callback: WriteCallback | None = None) -> None:
        """Store both arrays; ``callback(error)`` reports the outcome."""

        def _done(_result: Any, error: Optional[Exception]) -> None:
            if error is not None and not isinstance(error, PersistenceWriteError):
                error = PersistenceWriteError(str(error))
            if callback is not None:
                callback(error)

        self._backend.set_many(
            {
                HORIZONTAL_KEY: list(config.horizontal),
                VERTICAL_KEY: list(config.vertical),
            },
            _done,
        )

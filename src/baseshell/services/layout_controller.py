"""Main pane layout controller.

Owns the authoritative pane proportions of the shell (three horizontal panes,
the centre one split vertically into content + log), applies resize events
from the splitter surface, debounces persistence and restores the layout on
startup.

Behaviour
---------
* ``on_resize(axis, sizes)``: last value wins. The axis array is replaced,
  normalized, re-applied to the surface (so a splitter that drifted after a
  collapse gesture converges back) and a persist is scheduled.
* Debounce: a single-shot timer (``LAYOUT_PERSIST_DELAY_MS``, 200 ms) is
  restarted on every change; only its final firing writes, and it writes the
  state current at that moment. At most one pending write exists.
* ``load()`` is asynchronous. Missing / corrupt / out-of-tolerance records
  fall back to the default layout with a warning. If the user resized while
  the read was in flight, the in-memory state wins and the record is dropped.
* Surfaces are attached and released explicitly (``attach_surface`` /
  ``release`` or the ``mounted`` context manager). Releasing stops the timer.

Normalization
-------------
Stored sums within ``LAYOUT_SUM_TOLERANCE`` (1.0 point) of 100 are rescaled
to exactly 100. Values below a pane minimum (10 for the side panes and the
log pane) are raised to it and the difference is taken from the largest pane
of the same axis.
"""

from __future__ import annotations

import logging
import math
from contextlib import contextmanager
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Iterator, Optional, Protocol, Sequence, Tuple

from PyQt6.QtCore import QObject, QTimer, pyqtSignal

from config import settings

from .errors import PersistenceReadError, PersistenceWriteError
from .event_bus import EventBus, ShellEvent
from .layout_store import LayoutStore

__all__ = [
    "Axis",
    "PaneId",
    "AXIS_PANES",
    "PANE_MINIMUMS",
    "DEFAULT_HORIZONTAL",
    "DEFAULT_VERTICAL",
    "LayoutConfig",
    "PaneSurface",
    "LayoutController",
    "normalize_sizes",
]

logger = logging.getLogger(__name__)


class Axis(str, Enum):
    HORIZONTAL = "horizontal"
    VERTICAL = "vertical"


class PaneId(str, Enum):
    LEFT = "left"
    CENTER = "center"
    RIGHT = "right"
    CENTER_TOP = "center_top"
    LOG = "log"


AXIS_PANES: Dict[Axis, Tuple[PaneId, ...]] = {
    Axis.HORIZONTAL: (PaneId.LEFT, PaneId.CENTER, PaneId.RIGHT),
    Axis.VERTICAL: (PaneId.CENTER_TOP, PaneId.LOG),
}

PANE_MINIMUMS: Dict[PaneId, float] = {
    PaneId.LEFT: 10.0,
    PaneId.CENTER: 0.0,
    PaneId.RIGHT: 10.0,
    PaneId.CENTER_TOP: 0.0,
    PaneId.LOG: 10.0,
}

DEFAULT_HORIZONTAL: Tuple[float, float, float] = (10.0, 80.0, 10.0)
DEFAULT_VERTICAL: Tuple[float, float] = (40.0, 60.0)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def normalize_sizes(sizes: Sequence[float], minimums: Sequence[float]) -> Tuple[float, ...]:
    """Rescale ``sizes`` to sum to 100 and lift panes to their minimums.

    Raises ValueError for non-finite / negative values or a zero total.
    """
    values = [float(v) for v in sizes]
    if any(not math.isfinite(v) or v < 0 for v in values):
        raise ValueError(f"invalid pane sizes: {list(sizes)!r}")
    total = sum(values)
    if total <= 0:
        raise ValueError(f"pane sizes must not sum to zero: {list(sizes)!r}")
    values = [v * 100.0 / total for v in values]
    deficit = 0.0
    for i, floor in enumerate(minimums):
        if values[i] < floor:
            deficit += floor - values[i]
            values[i] = float(floor)
    if deficit > 0:
        # Take the shortfall from the largest panes first, never below their own minimum.
        for i in sorted(range(len(values)), key=lambda j: values[j], reverse=True):
            spare = values[i] - minimums[i]
            if spare <= 0:
                continue
            take = min(spare, deficit)
            values[i] -= take
            deficit -= take
            if deficit <= 0:
                break
    largest = max(range(len(values)), key=lambda j: values[j])
    values[largest] = 100.0 - sum(v for j, v in enumerate(values) if j != largest)
    return tuple(values)


def _axis_minimums(axis: Axis) -> Tuple[float, ...]:
    return tuple(PANE_MINIMUMS[p] for p in AXIS_PANES[axis])


@dataclass(frozen=True)
class LayoutConfig:
    """Pane proportions in percent; each axis sums to 100."""

    horizontal: Tuple[float, float, float] = DEFAULT_HORIZONTAL
    vertical: Tuple[float, float] = DEFAULT_VERTICAL

    @classmethod
    def default(cls) -> "LayoutConfig":
        return cls()

    @classmethod
    def from_raw(
        cls, horizontal: Any, vertical: Any, *, tolerance: float = settings.LAYOUT_SUM_TOLERANCE
    ) -> "LayoutConfig":
        """Validate a stored record and return the normalized config.

        Raises PersistenceReadError on wrong arity, non-numeric values or a
        sum outside ``100 ± tolerance``.
        """
        checked: Dict[Axis, Tuple[float, ...]] = {}
        for axis, raw in ((Axis.HORIZONTAL, horizontal), (Axis.VERTICAL, vertical)):
            expected = len(AXIS_PANES[axis])
            if not isinstance(raw, (list, tuple)) or len(raw) != expected:
                raise PersistenceReadError(f"{axis.value}: expected {expected} sizes, got {raw!r}")
            if not all(_is_number(v) for v in raw):
                raise PersistenceReadError(f"{axis.value}: invalid sizes {raw!r}")
            try:
                values = [float(v) for v in raw]
            except (OverflowError, TypeError, ValueError) as exc:
                raise PersistenceReadError(f"{axis.value}: sizes out of range") from exc
            if not all(math.isfinite(v) and v >= 0 for v in values):
                raise PersistenceReadError(f"{axis.value}: invalid sizes {values!r}")
            total = sum(values)
            if abs(total - 100.0) > tolerance:
                raise PersistenceReadError(f"{axis.value}: sizes sum to {total:.3f}, not 100")
            checked[axis] = normalize_sizes(values, _axis_minimums(axis))
        return cls(horizontal=checked[Axis.HORIZONTAL], vertical=checked[Axis.VERTICAL])  # type: ignore[arg-type]

    def sizes(self, axis: Axis | str) -> Tuple[float, ...]:
        return self.horizontal if Axis(axis) is Axis.HORIZONTAL else self.vertical

    def with_axis(self, axis: Axis | str, sizes: Sequence[float]) -> "LayoutConfig":
        axis = Axis(axis)
        expected = len(AXIS_PANES[axis])
        if len(sizes) != expected:
            raise ValueError(f"{axis.value} expects {expected} sizes, got {len(sizes)}")
        normalized = normalize_sizes(sizes, _axis_minimums(axis))
        if axis is Axis.HORIZONTAL:
            return LayoutConfig(horizontal=normalized, vertical=self.vertical)  # type: ignore[arg-type]
        return LayoutConfig(horizontal=self.horizontal, vertical=normalized)  # type: ignore[arg-type]

    def pane_sizes(self) -> Dict[PaneId, float]:
        out: Dict[PaneId, float] = {}
        for axis, panes in AXIS_PANES.items():
            out.update(zip(panes, self.sizes(axis)))
        return out

    def to_dict(self) -> Dict[str, list]:
        return {"horizontal": list(self.horizontal), "vertical": list(self.vertical)}


class PaneSurface(Protocol):
    """Panel-resize surface: accepts per-pane size commands (percent)."""

    def set_pane_size(self, pane: PaneId, percent: float) -> None: ...  # pragma: no cover


class LayoutController(QObject):
    """Authoritative owner of the pane proportions."""

    layout_changed = pyqtSignal(object)  # LayoutConfig
    loaded = pyqtSignal(object)  # LayoutConfig
    persisted = pyqtSignal(object)  # LayoutConfig
    persist_failed = pyqtSignal(str)

    def __init__(
        self,
        store: LayoutStore,
        *,
        delay_ms: int = settings.LAYOUT_PERSIST_DELAY_MS,
        event_bus: EventBus | None = None,
        parent: QObject | None = None,
    ) -> None:
        super().__init__(parent)
        self._store = store
        self._delay_ms = max(0, int(delay_ms))
        self._bus = event_bus
        self._config = LayoutConfig.default()
        self._timer: Optional[QTimer] = None
        self._surface: Optional[PaneSurface] = None
        self._apply_pending = True
        self._loading = False
        self._changed_while_loading = False

    # Introspection -----------------------------------------------------
    @property
    def config(self) -> LayoutConfig:
        return self._config

    @property
    def surface(self) -> Optional[PaneSurface]:
        return self._surface

    def has_pending_persist(self) -> bool:
        return self._timer is not None and self._timer.isActive()

    def is_loading(self) -> bool:
        return self._loading

    # Startup -----------------------------------------------------------
    def load(self) -> None:
        self._loading = True
        self._changed_while_loading = False
        self._store.read(self._on_loaded)

    def _on_loaded(self, raw: Optional[Dict[str, Any]], error: Optional[PersistenceReadError]) -> None:
        self._loading = False
        if self._changed_while_loading:
            logger.info("Stored layout ignored; panes were resized before it arrived")
            return
        if error is not None:
            logger.warning("Layout could not be read, using default: %s", error)
            self._publish(ShellEvent.PERSISTENCE_ERROR, {"op": "read", "error": str(error)})
            config = LayoutConfig.default()
        elif not raw or (raw.get("horizontal") is None and raw.get("vertical") is None):
            logger.info("No stored layout, using default")
            config = LayoutConfig.default()
        else:
            try:
                config = LayoutConfig.from_raw(raw.get("horizontal"), raw.get("vertical"))
            except PersistenceReadError as exc:
                logger.warning("Stored layout rejected, using default: %s", exc)
                config = LayoutConfig.default()
            else:
                logger.info(
                    "Layout loaded: H=%s V=%s", list(config.horizontal), list(config.vertical)
                )
        self._commit(config, persist=False)
        self.loaded.emit(config)

    # Resize events -----------------------------------------------------
    def on_resize(self, axis: Axis | str, sizes: Sequence[float]) -> LayoutConfig:
        """Replace one axis from a surface drag; returns the committed config."""
        config = self._config.with_axis(axis, sizes)
        if self._loading:
            self._changed_while_loading = True
        self._commit(config, persist=True)
        return config

    def reset(self) -> None:
        """Return to the default layout (persisted like a user change)."""
        logger.info("Layout reset to default")
        self._commit(LayoutConfig.default(), persist=True)

    def _commit(self, config: LayoutConfig, *, persist: bool) -> None:
        self._config = config
        self.layout_changed.emit(config)
        self._publish(ShellEvent.LAYOUT_CHANGED, config.to_dict())
        if persist:
            self.schedule_persist()
        self.apply_to_surface()

    # Surface -----------------------------------------------------------
    def attach_surface(self, surface: PaneSurface) -> None:
        self._surface = surface
        self.apply_to_surface()

    def apply_to_surface(self) -> None:
        """Push the in-memory sizes to every pane; deferred while no surface is attached."""
        surface = self._surface
        if surface is None:
            self._apply_pending = True
            return
        try:
            for pane, size in self._config.pane_sizes().items():
                surface.set_pane_size(pane, size)
        except RuntimeError as exc:  # wrapped C++ widget already deleted
            logger.warning("Pane surface gone, detaching: %s", exc)
            self._surface = None
            self._apply_pending = True
            return
        self._apply_pending = False

    @property
    def apply_pending(self) -> bool:
        return self._apply_pending

    # Persistence -------------------------------------------------------
    def schedule_persist(self) -> None:
        if self._timer is None:
            self._timer = QTimer(self)
            self._timer.setSingleShot(True)
            self._timer.timeout.connect(self._on_persist_timeout)
        # start() on an active timer restarts it: the previous pending write is cancelled
        self._timer.start(self._delay_ms)

    def flush(self) -> bool:
        """Write a pending change immediately; returns False if nothing was pending."""
        if not self.has_pending_persist():
            return False
        self._timer.stop()  # type: ignore[union-attr]
        self._write(self._config)
        return True

    def _on_persist_timeout(self) -> None:
        self._write(self._config)

    def _write(self, config: LayoutConfig) -> None:
        self._store.write(config, lambda error: self._on_written(config, error))

    def _on_written(self, config: LayoutConfig, error: Optional[PersistenceWriteError]) -> None:
        if error is not None:
            logger.warning("Layout could not be saved (will retry on next change): %s", error)
            self.persist_failed.emit(str(error))
            self._publish(ShellEvent.PERSISTENCE_ERROR, {"op": "write", "error": str(error)})
            return
        logger.info("Layout saved: H=%s V=%s", list(config.horizontal), list(config.vertical))
        self.persisted.emit(config)
        self._publish(ShellEvent.LAYOUT_PERSISTED, config.to_dict())

    # Teardown ----------------------------------------------------------
    def release(self, *, flush: bool = False) -> None:
        """Cancel (or flush) the pending write and detach the surface. Idempotent."""
        if flush:
            self.flush()
        if self._timer is not None:
            self._timer.stop()
            self._timer.deleteLater()
            self._timer = None
        self._surface = None
        self._apply_pending = True

    @contextmanager
    def mounted(self, surface: PaneSurface, *, flush_on_exit: bool = False) -> Iterator["LayoutController"]:
        self.attach_surface(surface)
        try:
            yield self
        finally:
            self.release(flush=flush_on_exit)

    def _publish(self, name: ShellEvent, payload: Any) -> None:
        if self._bus is not None:
            self._bus.publish(name, payload)

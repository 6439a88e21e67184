"""Menu bar interaction state machine.

Pure logic (no Qt import) so every transition is unit-testable headless.
The Qt menu bar forwards raw interaction (button click, button hover,
pointer-down, item selection, popover hidden) and renders whatever state
this machine reports.

States: ``Closed`` or ``Open(key)``, plus the ``is_active`` flag recording
that the bar was engaged by a click. Hover only switches menus while active,
so passing the mouse across an idle bar never opens anything.

Outside-interaction listening is an explicit lease: the machine acquires the
``OutsideListener`` when it leaves ``Closed`` and releases it when it returns
to ``Closed`` and on ``teardown()``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Iterable, List, Optional, Protocol, Sequence

from baseshell.services.event_bus import EventBus, ShellEvent

__all__ = [
    "MenuInteractionState",
    "CLOSED",
    "MENUBAR_REGION",
    "POPOVER_REGION",
    "OutsideListener",
    "MenuStateMachine",
]

logger = logging.getLogger(__name__)

MENUBAR_REGION = "menubar"
POPOVER_REGION = "popover"


@dataclass(frozen=True)
class MenuInteractionState:
    open_menu: Optional[str] = None
    is_active: bool = False

    @property
    def is_open(self) -> bool:
        return self.open_menu is not None

    def __str__(self) -> str:  # pragma: no cover - debug helper
        return f"Open({self.open_menu})" if self.open_menu else "Closed"


CLOSED = MenuInteractionState()


class OutsideListener(Protocol):
    """Pointer-down listener installed only while a menu is open."""

    def acquire(self) -> None: ...  # pragma: no cover

    def release(self) -> None: ...  # pragma: no cover


StateListener = Callable[[MenuInteractionState], None]


class MenuStateMachine:
    def __init__(
        self,
        keys: Iterable[str],
        dispatch: Callable[[str], Any] | None = None,
        *,
        event_bus: EventBus | None = None,
        outside_listener: OutsideListener | None = None,
    ) -> None:
        self._keys = tuple(keys)
        if not self._keys:
            raise ValueError("menu bar needs at least one top-level key")
        self._dispatch = dispatch
        self._bus = event_bus
        self._outside = outside_listener
        self._outside_held = False
        self._state = CLOSED
        self._listeners: List[StateListener] = []

    # Introspection -----------------------------------------------------
    @property
    def state(self) -> MenuInteractionState:
        return self._state

    @property
    def open_menu(self) -> Optional[str]:
        return self._state.open_menu

    @property
    def is_active(self) -> bool:
        return self._state.is_active

    @property
    def keys(self) -> tuple[str, ...]:
        return self._keys

    @property
    def outside_listener_held(self) -> bool:
        return self._outside_held

    def add_listener(self, fn: StateListener) -> Callable[[], None]:
        """Subscribe to state changes; returns an unsubscribe callable."""
        self._listeners.append(fn)

        def _remove() -> None:
            if fn in self._listeners:
                self._listeners.remove(fn)

        return _remove

    def set_outside_listener(self, listener: OutsideListener | None) -> None:
        self.release_outside_listener()
        self._outside = listener
        if self._state.is_open:
            self.acquire_outside_listener()

    def set_dispatch(self, dispatch: Callable[[str], Any] | None) -> None:
        self._dispatch = dispatch

    # Events ------------------------------------------------------------
    def click(self, key: str) -> MenuInteractionState:
        """Top-level button pressed: open, toggle off, or switch."""
        self._check_key(key)
        if self._state.open_menu == key:
            return self._transition(CLOSED)
        return self._transition(MenuInteractionState(key, True))

    def hover(self, key: str) -> MenuInteractionState:
        """Pointer entered a top-level button; switches only while engaged."""
        self._check_key(key)
        s = self._state
        if s.is_open and s.is_active and s.open_menu != key:
            return self._transition(MenuInteractionState(key, True))
        return s

    def open(self, key: str, *, engaged: bool = False) -> MenuInteractionState:
        """Open ``key`` programmatically (keyboard); ``engaged`` enables hover switching."""
        self._check_key(key)
        return self._transition(MenuInteractionState(key, engaged or self._state.is_active))

    def pointer_down(self, target_path: Sequence[str] = ()) -> MenuInteractionState:
        """Pointer pressed somewhere; closes unless the path lies in the bar or a popover."""
        if not self._state.is_open:
            return self._state
        if MENUBAR_REGION in target_path or POPOVER_REGION in target_path:
            return self._state
        logger.debug("Outside pointer-down closed menu %s", self._state.open_menu)
        return self._transition(CLOSED)

    def submenu(self, submenu_id: str) -> MenuInteractionState:
        """Nested popover opened; top-level state is unchanged."""
        logger.debug("Submenu %s opened in %s", submenu_id, self._state.open_menu)
        return self._state

    def select(self, item_id: str) -> bool:
        """Leaf chosen: dispatch exactly once, then close regardless of outcome."""
        ok = False
        try:
            if self._dispatch is None:
                logger.debug("No action handler for menu item %s", item_id)
            else:
                ok = self._dispatch(item_id) is not False
        except Exception:  # noqa: BLE001 - closing must not depend on handler success
            logger.exception("Menu action handler failed for %s", item_id)
            ok = False
        finally:
            self._transition(CLOSED)
        return ok

    def dismiss(self) -> MenuInteractionState:
        """Escape pressed or popover hidden by the platform."""
        return self._transition(CLOSED)

    close = dismiss

    # Lifecycle ---------------------------------------------------------
    def acquire_outside_listener(self) -> None:
        if self._outside is None or self._outside_held:
            return
        self._outside.acquire()
        self._outside_held = True

    def release_outside_listener(self) -> None:
        if self._outside is None or not self._outside_held:
            return
        self._outside_held = False
        try:
            self._outside.release()
        except Exception:  # noqa: BLE001
            logger.exception("Outside listener release failed")

    def teardown(self) -> None:
        """Close, release the outside listener and drop all subscribers."""
        try:
            self._transition(CLOSED)
        finally:
            self.release_outside_listener()
            self._listeners.clear()

    # Internal ----------------------------------------------------------
    def _check_key(self, key: str) -> None:
        if key not in self._keys:
            raise KeyError(f"Unknown top-level menu: {key!r}")

    def _transition(self, new: MenuInteractionState) -> MenuInteractionState:
        old = self._state
        if new == old:
            return old
        self._state = new
        if new.is_open and not old.is_open:
            self.acquire_outside_listener()
        elif old.is_open and not new.is_open:
            self.release_outside_listener()
        logger.debug("Menu state: %s -> %s", old, new)
        for fn in list(self._listeners):
            try:
                fn(new)
            except Exception:  # noqa: BLE001
                logger.exception("Menu state listener failed")
        if self._bus is not None:
            self._bus.publish(
                ShellEvent.MENU_STATE_CHANGED,
                {"open_menu": new.open_menu, "is_active": new.is_active},
            )
        return new

"""Menu action registry.

Maps menu item ids (``new``, ``exit``, ``toggleTheme`` ...) to callables and
is the single dispatch target of the menu state machine and of shortcuts.

Responsibilities:
 - Register handlers by item id (duplicate ids rejected unless replaced explicitly)
 - Dispatch with error isolation: a failing handler is logged, never raised
 - Publish ``ShellEvent.MENU_ACTION`` for every dispatched id
 - Unknown ids are logged at debug level ("unhandled") and reported as False

Thread-safety: Not thread-safe; access from GUI thread only.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional

from .event_bus import EventBus, ShellEvent

__all__ = ["ActionEntry", "ActionRegistry"]

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ActionEntry:
    action_id: str
    callback: Callable[[], None]
    description: str = ""


class ActionRegistry:
    def __init__(self, *, event_bus: EventBus | None = None) -> None:
        self._actions: Dict[str, ActionEntry] = {}
        self._bus = event_bus
        self._last_error: Optional[str] = None

    # Registration -------------------------------------------------
    def register(
        self,
        action_id: str,
        callback: Callable[[], None],
        description: str = "",
        *,
        replace: bool = False,
    ) -> bool:
        """Register a handler. Returns False if id already exists and ``replace`` is off."""
        if action_id in self._actions and not replace:
            return False
        self._actions[action_id] = ActionEntry(action_id, callback, description)
        return True

    def unregister(self, action_id: str) -> None:
        self._actions.pop(action_id, None)

    def is_registered(self, action_id: str) -> bool:
        return action_id in self._actions

    def list(self) -> List[ActionEntry]:
        return list(self._actions.values())

    @property
    def last_error(self) -> Optional[str]:
        return self._last_error

    # Execution ----------------------------------------------------
    def dispatch(self, action_id: str) -> bool:
        """Run the handler for ``action_id``; True only if it ran without raising."""
        if self._bus is not None:
            self._bus.publish(ShellEvent.MENU_ACTION, action_id)
        entry = self._actions.get(action_id)
        if entry is None:
            logger.debug("Unhandled menu action: %s", action_id)
            return False
        try:
            entry.callback()
        except Exception as exc:  # noqa: BLE001 - handler failures never escape the menu
            self._last_error = f"{action_id}: {exc}"
            logger.exception("Menu action %s failed", action_id)
            return False
        logger.info("Menu action: %s", action_id)
        return True

    __call__ = dispatch

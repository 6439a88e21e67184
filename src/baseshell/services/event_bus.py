"""Synchronous publish/subscribe bus for shell-wide notifications.

Producers (menu state machine, layout controller, action registry, logging
service) publish typed ``ShellEvent`` names; consumers (status bar, log pane,
diagnostics) subscribe without importing the producers.

 - Handlers run on the publishing thread, in subscription order
 - One failing handler doesn't break the publish cycle (failure recorded)
 - ``once`` subscriptions are removed after their first successful call
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from threading import RLock
from time import perf_counter
from typing import Any, Dict, List, Protocol

__all__ = [
    "ShellEvent",
    "Event",
    "EventBus",
    "EventHandler",
    "Subscription",
]


class ShellEvent(str, Enum):
    STARTUP_COMPLETE = "startup_complete"
    MENU_ACTION = "menu_action"
    MENU_STATE_CHANGED = "menu_state_changed"
    LAYOUT_CHANGED = "layout_changed"
    LAYOUT_PERSISTED = "layout_persisted"
    PERSISTENCE_ERROR = "persistence_error"
    SHORTCUT_TRIGGERED = "shortcut_triggered"
    THEME_CHANGED = "theme_changed"
    PROJECT_CHANGED = "project_changed"
    LOG_RECORD_ADDED = "log_record_added"
    UNCAUGHT_EXCEPTION = "uncaught_exception"


@dataclass
class Event:
    name: str
    payload: Any
    timestamp: float


class EventHandler(Protocol):
    def __call__(self, event: Event) -> None: ...  # pragma: no cover - structural


@dataclass
class Subscription:
    event: str
    handler: EventHandler
    once: bool
    active: bool = True

    def cancel(self) -> None:
        self.active = False


def _key(name: str | ShellEvent) -> str:
    return name.value if isinstance(name, ShellEvent) else name


class EventBus:
    """Synchronous event dispatcher.

    Subscriber lists are guarded by a re-entrant lock; handlers are invoked
    with the lock released (snapshot first) so they may subscribe or
    unsubscribe from inside a handler.
    """

    def __init__(self) -> None:
        self._lock = RLock()
        self._subs: Dict[str, List[Subscription]] = {}
        self._errors: List[tuple[Event, BaseException]] = []

    # ------------------------------------------------------------------
    # Subscription management
    # ------------------------------------------------------------------
    def subscribe(
        self, name: str | ShellEvent, handler: EventHandler, *, once: bool = False
    ) -> Subscription:
        sub = Subscription(event=_key(name), handler=handler, once=once)
        with self._lock:
            self._subs.setdefault(sub.event, []).append(sub)
        return sub

    def unsubscribe(self, sub: Subscription) -> None:
        with self._lock:
            bucket = self._subs.get(sub.event)
            if bucket:
                self._subs[sub.event] = [s for s in bucket if s is not sub]
                if not self._subs[sub.event]:
                    self._subs.pop(sub.event, None)
        sub.active = False

    def clear(self) -> None:
        with self._lock:
            self._subs.clear()
            self._errors.clear()

    # ------------------------------------------------------------------
    # Publishing
    # ------------------------------------------------------------------
    def publish(self, name: str | ShellEvent, payload: Any = None) -> Event:
        key = _key(name)
        evt = Event(name=key, payload=payload, timestamp=perf_counter())
        with self._lock:
            subs = list(self._subs.get(key, ()))
        finished: List[Subscription] = []
        for sub in subs:
            if not sub.active:
                continue
            try:
                sub.handler(evt)
            except Exception as exc:  # noqa: BLE001 - isolate subscriber failures
                with self._lock:
                    self._errors.append((evt, exc))
            else:
                if sub.once:
                    finished.append(sub)
        for sub in finished:
            self.unsubscribe(sub)
        return evt

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------
    def subscriber_count(self, name: str | ShellEvent) -> int:
        with self._lock:
            return len(self._subs.get(_key(name), ()))

    @property
    def errors(self) -> list[tuple[Event, BaseException]]:
        with self._lock:
            return list(self._errors)

"""Logging setup and in-process log capture.

``configure_logging`` wires the root logger to stdout plus a size-rotated
file under the config directory, using the shell's ``[time]:[LEVEL]: msg``
line format.

``LoggingService`` attaches a ring-buffer handler to the root logger so the
log pane can show recent records. Each captured record is also published as
``ShellEvent.LOG_RECORD_ADDED`` on the registered event bus.
"""

from __future__ import annotations

import logging
import logging.handlers
import os
import sys
from collections import deque
from dataclasses import dataclass
from threading import RLock
from typing import Deque, List, Optional

from config import settings

from .event_bus import EventBus, ShellEvent
from .service_locator import ServiceKey, services

__all__ = [
    "LogEntry",
    "LoggingService",
    "configure_logging",
    "get_logging_service",
]

_HANDLER_TAG = "_baseshell_handler"


def configure_logging(
    log_dir: str | None = None, *, level: str | int | None = None, to_stdout: bool = True
) -> logging.Logger:
    """Install console and rotating file handlers on the root logger (idempotent)."""
    root = logging.getLogger()
    resolved = level if level is not None else settings.LOG_LEVEL
    if isinstance(resolved, str):
        resolved = logging.getLevelName(resolved.upper())
        if not isinstance(resolved, int):
            resolved = logging.DEBUG
    root.setLevel(resolved)
    if any(getattr(h, _HANDLER_TAG, False) for h in root.handlers):
        return root
    formatter = logging.Formatter(settings.LOG_FORMAT, datefmt=settings.LOG_DATEFMT)
    if to_stdout:
        console = logging.StreamHandler(sys.stdout)
        console.setFormatter(formatter)
        setattr(console, _HANDLER_TAG, True)
        root.addHandler(console)
    target_dir = log_dir or settings.CONFIG_DIR
    try:
        os.makedirs(target_dir, exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(
            os.path.join(target_dir, settings.LOG_FILENAME),
            maxBytes=settings.LOG_MAX_BYTES,
            backupCount=settings.LOG_BACKUP_COUNT,
            encoding="utf-8",
        )
    except OSError as exc:
        root.warning("File logging disabled (%s): %s", target_dir, exc)
    else:
        file_handler.setFormatter(formatter)
        setattr(file_handler, _HANDLER_TAG, True)
        root.addHandler(file_handler)
    return root


@dataclass(frozen=True)
class LogEntry:
    level: str
    name: str
    message: str
    created: float


class _RingBufferHandler(logging.Handler):
    def __init__(self, svc: "LoggingService") -> None:
        super().__init__()
        self._svc = svc

    def emit(self, record: logging.LogRecord) -> None:  # noqa: D401
        try:
            self._svc._ingest_record(record)
        except Exception:  # noqa: BLE001 - logging must never raise
            self.handleError(record)


class LoggingService:
    def __init__(self, capacity: int = 500) -> None:
        self._lock = RLock()
        self._entries: Deque[LogEntry] = deque(maxlen=capacity)
        self._handler = _RingBufferHandler(self)
        self._handler.setLevel(logging.DEBUG)
        self._attached = False

    # Lifecycle --------------------------------------------------------
    def attach_root(self) -> None:
        if self._attached:
            return
        logging.getLogger().addHandler(self._handler)
        self._attached = True

    def detach_root(self) -> None:
        if not self._attached:
            return
        logging.getLogger().removeHandler(self._handler)
        self._attached = False

    @property
    def attached(self) -> bool:
        return self._attached

    # Internal ingestion -----------------------------------------------
    def _ingest_record(self, record: logging.LogRecord) -> None:
        entry = LogEntry(
            level=record.levelname,
            name=record.name,
            message=record.getMessage(),
            created=record.created,
        )
        with self._lock:
            self._entries.append(entry)
        bus = services.try_get(ServiceKey.EVENT_BUS)
        if isinstance(bus, EventBus):
            bus.publish(ShellEvent.LOG_RECORD_ADDED, entry)

    # Query ------------------------------------------------------------
    def recent(self, limit: Optional[int] = None) -> List[LogEntry]:
        with self._lock:
            data = list(self._entries)
        return data[-limit:] if limit is not None else data

    def filter(self, *, level: str | None = None, name_contains: str | None = None) -> List[LogEntry]:
        out: List[LogEntry] = []
        for e in self.recent():
            if level and e.level != level:
                continue
            if name_contains and name_contains not in e.name:
                continue
            out.append(e)
        return out

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()


def get_logging_service() -> LoggingService:
    """Return the registered LoggingService, creating and registering one if absent."""
    svc = services.try_get(ServiceKey.LOGGING)
    if isinstance(svc, LoggingService):
        return svc
    svc = LoggingService()
    services.register(ServiceKey.LOGGING, svc, allow_override=True)
    return svc

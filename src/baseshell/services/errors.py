"""Error taxonomy for the shell coordination core.

None of these errors is fatal to the process. Each one is raised at the
boundary where it happens and recovered by the owning controller:

 - ``PersistenceReadError``: layout/config could not be read or parsed; the
   caller falls back to defaults.
 - ``PersistenceWriteError``: a store write failed; in-memory state is kept
   and the next change retries.
 - ``ShortcutRegistrationError``: the host shortcut facility rejected a combo
   (duplicate, unparsable, not registered); the shortcut simply does not fire.
"""

from __future__ import annotations

__all__ = [
    "ShellCoreError",
    "PersistenceReadError",
    "PersistenceWriteError",
    "ShortcutRegistrationError",
]


class ShellCoreError(Exception):
    """Base class for recoverable shell errors."""


class PersistenceReadError(ShellCoreError):
    """Stored data is missing, unreadable or has an invalid shape."""


class PersistenceWriteError(ShellCoreError):
    """Stored data could not be written."""


class ShortcutRegistrationError(ShellCoreError):
    """The shortcut facility refused a register/unregister request."""

    def __init__(self, combo: str, reason: str) -> None:
        super().__init__(f"{combo}: {reason}")
        self.combo = combo
        self.reason = reason

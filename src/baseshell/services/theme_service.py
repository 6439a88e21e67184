"""Theme service.

Keeps the active colour variant (``light``, ``dark`` or ``auto``), resolves
``auto`` against the OS colour scheme, produces the application QSS and
publishes ``ShellEvent.THEME_CHANGED``. The chosen variant is persisted in
``window_state.theme`` through the ``persist`` callback handed in by
bootstrap.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Mapping, Optional

from .event_bus import EventBus, ShellEvent
from .service_locator import ServiceKey, services

__all__ = ["THEME_VARIANTS", "PALETTES", "ThemeService", "get_theme_service"]

logger = logging.getLogger(__name__)

THEME_VARIANTS: tuple[str, ...] = ("light", "dark", "auto")

PALETTES: Dict[str, Dict[str, str]] = {
    "light": {
        "background.primary": "#F5F5F5",
        "background.secondary": "#E8E8E8",
        "surface.card": "#FFFFFF",
        "text.primary": "#1E1E1E",
        "text.muted": "#5A5A5A",
        "accent.base": "#3D6DF2",
        "border.medium": "#C8C8C8",
    },
    "dark": {
        "background.primary": "#1E1E1E",
        "background.secondary": "#2A2A2A",
        "surface.card": "#252526",
        "text.primary": "#F0F0F0",
        "text.muted": "#A0A0A0",
        "accent.base": "#5B8CFF",
        "border.medium": "#3C3C3C",
    },
}


def _system_prefers_dark() -> bool:
    try:
        from PyQt6.QtCore import Qt
        from PyQt6.QtGui import QGuiApplication

        app = QGuiApplication.instance()
        if app is None:
            return False
        return QGuiApplication.styleHints().colorScheme() == Qt.ColorScheme.Dark
    except (ImportError, AttributeError):  # Qt < 6.5 has no colorScheme()
        return False


@dataclass
class ThemeService:
    variant: str = "auto"
    persist: Optional[Callable[[str], None]] = None
    system_dark: Callable[[], bool] = _system_prefers_dark
    _listeners: List[Callable[[str], None]] = field(default_factory=list)

    def __post_init__(self) -> None:
        if self.variant not in THEME_VARIANTS:
            logger.warning("Unknown theme %r, using auto", self.variant)
            self.variant = "auto"

    # Query --------------------------------------------------------------
    @property
    def effective(self) -> str:
        """``light`` or ``dark``; ``auto`` follows the OS colour scheme."""
        if self.variant == "auto":
            return "dark" if self.system_dark() else "light"
        return self.variant

    def colors(self) -> Mapping[str, str]:
        return PALETTES[self.effective]

    def available_variants(self) -> List[str]:
        return list(THEME_VARIANTS)

    # Mutation -----------------------------------------------------------
    def set_variant(self, variant: str) -> bool:
        """Switch variant; returns False if unknown or unchanged."""
        if variant not in THEME_VARIANTS:
            logger.warning("Ignoring unknown theme variant %r", variant)
            return False
        if variant == self.variant:
            return False
        self.variant = variant
        logger.info("Theme changed: %s (effective %s)", variant, self.effective)
        if self.persist is not None:
            try:
                self.persist(variant)
            except Exception as exc:  # noqa: BLE001 - persistence is best-effort
                logger.warning("Theme could not be saved: %s", exc)
        self._notify()
        return True

    def cycle(self) -> str:
        """light -> dark -> auto -> light (the View menu toggle)."""
        idx = THEME_VARIANTS.index(self.variant)
        self.set_variant(THEME_VARIANTS[(idx + 1) % len(THEME_VARIANTS)])
        return self.variant

    def add_listener(self, fn: Callable[[str], None]) -> None:
        self._listeners.append(fn)

    # QSS ---------------------------------------------------------------
    def generate_qss(self) -> str:
        c = self.colors()
        bg = c["background.primary"]
        bg2 = c["background.secondary"]
        surf = c["surface.card"]
        txt = c["text.primary"]
        muted = c["text.muted"]
        accent = c["accent.base"]
        border = c["border.medium"]
        return f"""
/* THEME ({self.effective}) */
QMainWindow, QDialog {{ background: {bg}; color: {txt}; }}
QWidget#chromeTitleBar {{ background: {bg2}; }}
QLabel {{ color: {txt}; }}
QLabel#paneSizeLabel {{ color: {muted}; }}
QToolButton#menuBarButton {{ background: transparent; color: {txt}; padding: 2px 8px; border: none; }}
QToolButton#menuBarButton:checked, QToolButton#menuBarButton:hover {{ background: {accent}; color: {bg}; }}
QMenu {{ background: {bg2}; color: {txt}; border: 1px solid {border}; }}
QMenu::item:selected {{ background: {accent}; color: {bg}; }}
QMenu::separator {{ height: 1px; background: {border}; margin: 3px 6px; }}
QSplitter::handle {{ background: {border}; }}
QPlainTextEdit#logPane {{ background: {surf}; color: {txt}; border: none; }}
QWidget#statusBar {{ background: {bg2}; color: {muted}; }}
"""

    def apply(self, app=None) -> None:
        """Install the QSS on ``app`` (or the running QApplication)."""
        if app is None:
            from PyQt6.QtWidgets import QApplication

            app = QApplication.instance()
        if app is not None:
            app.setStyleSheet(self.generate_qss())

    # Internal ----------------------------------------------------------
    def _notify(self) -> None:
        bus = services.try_get(ServiceKey.EVENT_BUS)
        if isinstance(bus, EventBus):
            bus.publish(ShellEvent.THEME_CHANGED, {"variant": self.variant, "effective": self.effective})
        for fn in list(self._listeners):
            try:
                fn(self.variant)
            except Exception:  # noqa: BLE001
                logger.exception("Theme listener failed")


def get_theme_service() -> ThemeService:
    return services.get_typed(ServiceKey.THEME, ThemeService)

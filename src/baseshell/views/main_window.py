"""Shell main window.

Composition:
 - Frameless custom chrome title bar hosting the ``MenuBarWidget``
 - ``MainContent`` (three columns, centre split into content + log pane)
 - ``StatusBarWidget`` (message + clock) in the native status bar container

Wiring:
 - Splitter drags -> ``LayoutController.on_resize``; the controller applies
   the authoritative sizes back and persists them (debounced) through the
   ``AsyncStore``.
 - Menu selections, the global exit shortcut and the shortcuts advertised
   in the menus all dispatch through the ``ActionRegistry``.
 - ``closeEvent`` saves the window state, flushes the pending layout write and
   releases shortcuts, menu listeners and timers.

Shared services are taken from the service locator unless passed in.
"""

from __future__ import annotations

import logging
import os
from typing import Optional

from PyQt6.QtCore import Qt, QUrl
from PyQt6.QtGui import QDesktopServices
from PyQt6.QtWidgets import QMainWindow, QMessageBox, QWidget

from config import settings

from baseshell.app.config_store import AppConfig, WINDOW_STATE_KEY, WindowState
from baseshell.components.log_panel import LogPanel
from baseshell.components.project_info_dialog import ProjectInfoDialog
from baseshell.components.status_bar import StatusBarWidget
from baseshell.menu.menubar import MenuBarWidget
from baseshell.menu.model import DEFAULT_MENUS, hinted_leaves
from baseshell.menu.state_machine import MenuStateMachine
from baseshell.services.action_registry import ActionRegistry
from baseshell.services.event_bus import Event, EventBus, ShellEvent
from baseshell.services.layout_controller import LayoutController
from baseshell.services.layout_store import LayoutStore
from baseshell.services.logging_service import LoggingService
from baseshell.services.service_locator import ServiceKey, services
from baseshell.services.shortcut_registry import QtShortcutFacility, ShortcutRegistry
from baseshell.services.store_manager import AsyncStore, StoreManager
from baseshell.services.theme_service import ThemeService

from .main_content import MainContent
from .shortcut_cheatsheet import ShortcutCheatSheetDialog
from .window_chrome import install_custom_chrome

__all__ = ["MainWindow"]

logger = logging.getLogger(__name__)


class MainWindow(QMainWindow):
    def __init__(
        self,
        *,
        app_config: AppConfig | None = None,
        async_store: AsyncStore | None = None,
        event_bus: EventBus | None = None,
        custom_chrome: bool = True,
        persist_delay_ms: int = settings.LAYOUT_PERSIST_DELAY_MS,
        parent: QWidget | None = None,
    ) -> None:
        super().__init__(parent)
        self.app_config = app_config or services.try_get(ServiceKey.APP_CONFIG) or AppConfig()
        self._bus: EventBus = event_bus or services.try_get(ServiceKey.EVENT_BUS) or EventBus()
        self.async_store: AsyncStore = async_store or services.try_get(ServiceKey.ASYNC_STORE)
        if self.async_store is None:
            store = services.try_get(ServiceKey.STORE)
            if not isinstance(store, StoreManager):
                store = StoreManager(os.path.join(settings.CONFIG_DIR, settings.CONFIG_FILENAME))
            self.async_store = AsyncStore(store, self)
        self.theme: Optional[ThemeService] = services.try_get(ServiceKey.THEME)
        registry = services.try_get(ServiceKey.ACTIONS)
        self.actions = registry if isinstance(registry, ActionRegistry) else ActionRegistry(event_bus=self._bus)
        self._closed = False

        # Menu bar --------------------------------------------------------
        self.menu_state = MenuStateMachine(DEFAULT_MENUS.keys(), self.actions.dispatch, event_bus=self._bus)
        self.menu_bar = MenuBarWidget(DEFAULT_MENUS, self.menu_state)

        # Content ---------------------------------------------------------
        log_svc = services.try_get(ServiceKey.LOGGING)
        self.log_panel = LogPanel(
            logging_service=log_svc if isinstance(log_svc, LoggingService) else None,
            event_bus=self._bus,
        )
        self.content = MainContent(log_widget=self.log_panel)
        self.setCentralWidget(self.content)
        self.status = StatusBarWidget()
        self.statusBar().addPermanentWidget(self.status, 1)

        # Layout ----------------------------------------------------------
        self.layout_controller = LayoutController(
            LayoutStore(self.async_store), delay_ms=persist_delay_ms, event_bus=self._bus, parent=self
        )
        self.content.resized.connect(self.layout_controller.on_resize)  # type: ignore
        self.layout_controller.persist_failed.connect(
            lambda _msg: self.status.update_message("Layout could not be saved", 4000)
        )
        self.layout_controller.attach_surface(self.content)
        self.layout_controller.load()

        # Shortcuts -------------------------------------------------------
        self.shortcuts = ShortcutRegistry(QtShortcutFacility(self), event_bus=self._bus)
        services.register(
            ServiceKey.SHORTCUTS,
            self.shortcuts,
            allow_override=True,
            origin="main_window",
            on_shutdown=self.shortcuts.teardown,
        )
        self.shortcuts.register(
            settings.EXIT_SHORTCUT,
            lambda: self.actions.dispatch("exit"),
            description="Exit application",
            category="Application",
        )
        for definition, leaf in hinted_leaves(DEFAULT_MENUS):
            if self.shortcuts.is_registered(leaf.shortcut_hint):
                continue
            self.shortcuts.register(
                leaf.shortcut_hint,
                lambda action_id=leaf.id: self.actions.dispatch(action_id),
                description=leaf.label,
                category=definition.label,
            )

        self._register_actions()
        self._project_sub = self._bus.subscribe(ShellEvent.PROJECT_CHANGED, self._on_project_changed)

        self._apply_window_config()
        if custom_chrome:
            self.title_bar = install_custom_chrome(self, self.menu_bar)
        else:
            self.title_bar = None
            self.setMenuWidget(self.menu_bar)

    # Window config ------------------------------------------------------
    def _window_title(self) -> str:
        name = self.app_config.project.name
        base = self.app_config.window.title
        return f"{base} - {name}" if name else base

    def _apply_window_config(self) -> None:
        wc = self.app_config.window
        ws = self.app_config.state
        self.setWindowTitle(self._window_title())
        self.setMinimumSize(wc.min_width, wc.min_height)
        self.setMaximumSize(wc.max_width, wc.max_height)
        self.resize(ws.width, ws.height)
        self.move(ws.x, ws.y)
        if ws.fullscreen:
            self.setWindowState(self.windowState() | Qt.WindowState.WindowFullScreen)

    def current_window_state(self) -> WindowState:
        geo = self.normalGeometry() if self.isFullScreen() or self.isMaximized() else self.geometry()
        return WindowState(
            width=geo.width(),
            height=geo.height(),
            x=geo.x(),
            y=geo.y(),
            fullscreen=self.isFullScreen(),
            theme=self.theme.variant if self.theme is not None else self.app_config.state.theme,
        )

    # Actions ------------------------------------------------------------
    def _register_actions(self) -> None:
        for action_id, fn, desc in (
            ("new", self.open_project_dialog, "Create a new project"),
            ("exit", self.close, "Exit application"),
            ("about", self._show_about, "About this application"),
            ("docs", self._open_docs, "Open documentation"),
            ("shortcuts", self.open_shortcut_cheatsheet, "Show keyboard shortcuts"),
            ("toggleTheme", self.toggle_theme, "Cycle light / dark / auto theme"),
            ("resetLayout", self.reset_layout, "Restore the default pane layout"),
        ):
            self.actions.register(action_id, fn, desc, replace=True)

    def open_project_dialog(self, *, required: bool = False) -> ProjectInfoDialog:
        store = services.try_get(ServiceKey.STORE)
        dlg = ProjectInfoDialog(
            self,
            project=self.app_config.project if required else None,
            store=store if isinstance(store, StoreManager) else None,
            event_bus=self._bus,
            required=required,
            on_exit=self.close,
        )
        dlg.exec()
        return dlg

    def _on_project_changed(self, evt: Event) -> None:
        payload = evt.payload or {}
        self.app_config.project.name = payload.get("name", self.app_config.project.name)
        self.app_config.project.filepath = payload.get("filepath", self.app_config.project.filepath)
        self.app_config.project.remarks = payload.get("remarks", self.app_config.project.remarks)
        self.setWindowTitle(self._window_title())
        self.status.update_message(f"Project: {self.app_config.project.name}", 4000)

    def _show_about(self) -> None:  # pragma: no cover - modal
        QMessageBox.about(
            self,
            f"About {settings.APP_DISPLAY_NAME}",
            f"{settings.APP_DISPLAY_NAME} {settings.APP_VERSION}",
        )

    def _open_docs(self) -> None:  # pragma: no cover - launches browser
        if not QDesktopServices.openUrl(QUrl(settings.DOCS_URL)):
            logger.warning("Could not open documentation URL %s", settings.DOCS_URL)

    def open_shortcut_cheatsheet(self) -> None:  # pragma: no cover - modal
        ShortcutCheatSheetDialog(self.shortcuts, self).exec()

    def toggle_theme(self) -> None:
        if self.theme is None:
            logger.debug("No theme service registered")
            return
        variant = self.theme.cycle()
        self.theme.apply()
        self.status.update_message(f"Theme: {variant}", 3000)

    def reset_layout(self) -> None:
        self.layout_controller.reset()
        self.status.update_message("Layout restored to defaults", 3000)

    # Lifecycle ----------------------------------------------------------
    def closeEvent(self, event):  # type: ignore[override]
        if not self._closed:
            self._closed = True
            state = self.current_window_state()
            self.async_store.set(WINDOW_STATE_KEY, state.to_dict())
            self.layout_controller.release(flush=True)
            self.shortcuts.teardown()
            self.menu_bar.teardown()
            self.status.teardown()
            self.log_panel.teardown()
            self._bus.unsubscribe(self._project_sub)
            logger.info("Main window closed")
        super().closeEvent(event)

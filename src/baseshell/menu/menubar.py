"""Qt menu bar driven by ``MenuStateMachine``.

One checkable button per top-level key plus one ``QMenu`` popover per key,
built recursively from the menu tree. The state machine is the only source
of truth: widgets forward raw interaction to it and re-render on every state
notification.

Qt specifics handled here:
 - An open popover grabs the mouse, so button hover/press while a menu is
   open arrives at the popover; an event filter on each popover maps the
   global position back to a bar button.
 - A popover closed by the platform (Escape, click elsewhere) reports
   ``aboutToHide``; that becomes ``dismiss()`` only if the machine still
   believes that menu is open.
 - ``OutsideClickFilter`` is an application event filter installed only while
   a menu is open.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Mapping, Optional, Tuple

from PyQt6.QtCore import QEvent, QObject, QPoint, QRect, Qt, pyqtSignal
from PyQt6.QtGui import QAction
from PyQt6.QtWidgets import QApplication, QHBoxLayout, QMenu, QToolButton, QWidget

from .model import DEFAULT_MENUS, Leaf, MenuDefinition, MenuVisitor, Separator, Submenu, render_tree
from .state_machine import MENUBAR_REGION, POPOVER_REGION, MenuInteractionState, MenuStateMachine

__all__ = ["MenuBarWidget", "OutsideClickFilter", "build_popover"]

logger = logging.getLogger(__name__)


def build_popover(
    tree, parent: QWidget, on_select: Callable[[str], Any], on_submenu: Callable[[str], Any]
) -> QMenu:
    """Render a menu tree into a ``QMenu``; submenus recurse through the same visitor."""
    menu = QMenu(parent)
    _populate(menu, tree, on_select, on_submenu)
    return menu


def _populate(menu: QMenu, tree, on_select, on_submenu) -> None:
    def _leaf(node: Leaf) -> QAction:
        text = f"{node.label}\t{node.shortcut_hint}" if node.shortcut_hint else node.label
        act = QAction(text, menu)
        act.setObjectName(f"menuItem_{node.id}")
        act.setData(node.id)
        act.triggered.connect(lambda _checked=False, nid=node.id: on_select(nid))  # type: ignore
        menu.addAction(act)
        return act

    def _separator(_node: Separator) -> QAction:
        return menu.addSeparator()

    def _submenu(node: Submenu) -> QMenu:
        sub = QMenu(node.label, menu)
        sub.setObjectName(f"submenu_{node.id}")
        _populate(sub, node.children, on_select, on_submenu)
        sub.aboutToShow.connect(lambda nid=node.id: on_submenu(nid))  # type: ignore
        menu.addMenu(sub)
        return sub

    render_tree(tree, MenuVisitor(leaf=_leaf, separator=_separator, submenu=_submenu))


def _visible_popovers(root: QMenu):
    if root.isVisible():
        yield root
    for child in root.findChildren(QMenu):
        if child.isVisible():
            yield child


class OutsideClickFilter(QObject):
    """Application-wide pointer-down listener for the open menu."""

    def __init__(self, bar: "MenuBarWidget") -> None:
        super().__init__(bar)
        self._bar = bar
        self._installed = False

    @property
    def installed(self) -> bool:
        return self._installed

    def acquire(self) -> None:
        app = QApplication.instance()
        if app is None or self._installed:
            return
        app.installEventFilter(self)
        self._installed = True

    def release(self) -> None:
        if not self._installed:
            return
        app = QApplication.instance()
        if app is not None:
            app.removeEventFilter(self)
        self._installed = False

    def eventFilter(self, obj, ev):  # type: ignore[override]
        if ev.type() == QEvent.Type.MouseButtonPress:
            try:
                pos = ev.globalPosition().toPoint()
            except AttributeError:  # pragma: no cover - non-pointer event subclass
                return False
            self._bar.state_machine.pointer_down(self._bar.target_path(pos))
        return False


class MenuBarWidget(QWidget):
    """Row of top-level menu buttons with their popovers."""

    state_changed = pyqtSignal(object)  # MenuInteractionState

    def __init__(
        self,
        menus: Mapping[str, MenuDefinition] = DEFAULT_MENUS,
        state_machine: MenuStateMachine | None = None,
        parent: QWidget | None = None,
    ) -> None:
        super().__init__(parent)
        self.setObjectName("menuBar")
        self._menus = menus
        self.state_machine = state_machine or MenuStateMachine(menus.keys())
        self.outside_filter = OutsideClickFilter(self)
        self.state_machine.set_outside_listener(self.outside_filter)
        self.buttons: Dict[str, QToolButton] = {}
        self.popovers: Dict[str, QMenu] = {}
        self._torn_down = False

        lay = QHBoxLayout(self)
        lay.setContentsMargins(0, 0, 0, 0)
        lay.setSpacing(2)
        for key, definition in menus.items():
            btn = QToolButton(self)
            btn.setObjectName("menuBarButton")
            btn.setText(definition.label)
            btn.setCheckable(True)
            btn.setAccessibleName(f"{definition.label} menu")
            btn.clicked.connect(lambda _checked=False, k=key: self.state_machine.click(k))  # type: ignore
            btn.installEventFilter(self)
            lay.addWidget(btn)
            self.buttons[key] = btn

            pop = build_popover(definition.tree, self, self.state_machine.select, self.state_machine.submenu)
            pop.setObjectName(f"popover_{key}")
            pop.aboutToHide.connect(lambda k=key: self._on_popover_hidden(k))  # type: ignore
            pop.installEventFilter(self)
            self.popovers[key] = pop
        lay.addStretch(1)

        self._remove_listener = self.state_machine.add_listener(self._render)

    # Geometry helpers --------------------------------------------------
    def button_at(self, global_pos: QPoint) -> Optional[str]:
        for key, btn in self.buttons.items():
            if not btn.isVisible():
                continue
            rect = QRect(btn.mapToGlobal(QPoint(0, 0)), btn.size())
            if rect.contains(global_pos):
                return key
        return None

    def target_path(self, global_pos: QPoint) -> Tuple[str, ...]:
        """Regions containing ``global_pos`` (bar and/or open popovers)."""
        path = []
        for pop in self.popovers.values():
            if any(p.geometry().contains(global_pos) for p in _visible_popovers(pop)):
                path.append(POPOVER_REGION)
                break
        if QRect(self.mapToGlobal(QPoint(0, 0)), self.size()).contains(global_pos):
            path.append(MENUBAR_REGION)
        return tuple(path)

    # Keyboard entry ------------------------------------------------------
    def open_menu(self, key: str) -> None:
        self.state_machine.open(key)

    # Rendering -----------------------------------------------------------
    def _render(self, state: MenuInteractionState) -> None:
        if self._torn_down:
            return
        for key, btn in self.buttons.items():
            btn.setChecked(key == state.open_menu)
        for key, pop in self.popovers.items():
            if key != state.open_menu and pop.isVisible():
                pop.hide()
        if state.open_menu is not None:
            pop = self.popovers[state.open_menu]
            if not pop.isVisible():
                btn = self.buttons[state.open_menu]
                pop.popup(btn.mapToGlobal(QPoint(0, btn.height())))
        self.state_changed.emit(state)

    def _on_popover_hidden(self, key: str) -> None:
        if self.state_machine.open_menu == key:
            self.state_machine.dismiss()

    # Event filtering -----------------------------------------------------
    def eventFilter(self, obj, ev):  # type: ignore[override]
        t = ev.type()
        if isinstance(obj, QToolButton) and t == QEvent.Type.Enter:
            key = next((k for k, b in self.buttons.items() if b is obj), None)
            if key is not None:
                self.state_machine.hover(key)
            return False
        if isinstance(obj, QMenu) and t in (QEvent.Type.MouseMove, QEvent.Type.MouseButtonPress):
            key = self.button_at(ev.globalPosition().toPoint())
            if key is None:
                return False
            if t == QEvent.Type.MouseMove:
                self.state_machine.hover(key)
                return False
            if ev.button() == Qt.MouseButton.LeftButton:
                # Handle the press here so the popover does not close itself first
                self.state_machine.click(key)
                return True
        return False

    # Teardown ------------------------------------------------------------
    def teardown(self) -> None:
        if self._torn_down:
            return
        self._remove_listener()
        self.state_machine.teardown()
        self._torn_down = True
        for pop in self.popovers.values():
            pop.hide()
        for btn in self.buttons.values():
            btn.setChecked(False)

import pytest
from PyQt6.QtCore import QEvent, QPoint, QPointF, Qt
from PyQt6.QtGui import QAction, QMouseEvent
from PyQt6.QtWidgets import QApplication, QMenu, QWidget

from baseshell.menu.menubar import MenuBarWidget
from baseshell.menu.model import DEFAULT_MENUS
from baseshell.menu.state_machine import CLOSED, MenuStateMachine


def _send_mouse(target, kind, global_pos, button=Qt.MouseButton.NoButton):
    ev = QMouseEvent(
        kind,
        QPointF(target.mapFromGlobal(global_pos)),
        QPointF(global_pos),
        button,
        button,
        Qt.KeyboardModifier.NoModifier,
    )
    return QApplication.sendEvent(target, ev)


def _center(widget):
    return widget.mapToGlobal(widget.rect().center())


@pytest.fixture
def dispatched():
    return []


@pytest.fixture
def bar(qtbot, dispatched):
    sm = MenuStateMachine(DEFAULT_MENUS.keys(), dispatched.append)
    w = MenuBarWidget(DEFAULT_MENUS, sm)
    qtbot.addWidget(w)
    w.show()
    qtbot.waitExposed(w)
    yield w
    w.teardown()


def test_buttons_and_popovers_built(bar):
    assert list(bar.buttons) == ["file", "edit", "view", "help"]
    assert [b.text() for b in bar.buttons.values()] == ["File", "Edit", "View", "Help"]
    file_menu = bar.popovers["file"]
    assert file_menu.findChild(QAction, "menuItem_save") is not None
    assert file_menu.findChild(QMenu, "submenu_saveAs") is not None
    assert file_menu.findChild(QAction, "menuItem_saveAsSQL") is not None
    texts = [a.text() for a in file_menu.actions() if not a.isSeparator()]
    assert texts[0] == "New Project\tCtrl+N"


def test_click_opens_popover(bar):
    bar.buttons["file"].click()
    assert bar.state_machine.open_menu == "file"
    assert bar.popovers["file"].isVisible()
    assert bar.buttons["file"].isChecked()


def test_click_other_button_switches(bar):
    bar.buttons["file"].click()
    bar.buttons["edit"].click()
    assert bar.state_machine.open_menu == "edit"
    assert not bar.popovers["file"].isVisible()
    assert bar.popovers["edit"].isVisible()
    assert not bar.buttons["file"].isChecked()


def test_click_same_button_closes(bar):
    bar.buttons["view"].click()
    bar.buttons["view"].click()
    assert bar.state_machine.state == CLOSED
    assert not bar.popovers["view"].isVisible()
    assert not bar.buttons["view"].isChecked()


def test_selecting_item_dispatches_and_closes(bar, dispatched):
    bar.buttons["file"].click()
    bar.popovers["file"].findChild(QAction, "menuItem_save").trigger()
    assert dispatched == ["save"]
    assert bar.state_machine.state == CLOSED
    assert not bar.popovers["file"].isVisible()


def test_nested_item_dispatches(bar, dispatched):
    bar.buttons["file"].click()
    bar.popovers["file"].findChild(QAction, "menuItem_saveAsVGS").trigger()
    assert dispatched == ["saveAsVGS"]
    assert bar.state_machine.state == CLOSED


def test_popover_hidden_by_platform_dismisses(bar):
    bar.buttons["help"].click()
    bar.popovers["help"].hide()
    assert bar.state_machine.state == CLOSED
    assert not bar.buttons["help"].isChecked()


def test_outside_filter_installed_only_while_open(bar):
    assert not bar.outside_filter.installed
    bar.buttons["edit"].click()
    assert bar.outside_filter.installed
    bar.state_machine.dismiss()
    assert not bar.outside_filter.installed


def test_target_path_regions(bar):
    inside = bar.buttons["file"].mapToGlobal(QPoint(2, 2))
    assert "menubar" in bar.target_path(inside)
    assert bar.button_at(inside) == "file"
    far = QPoint(-5000, -5000)
    assert bar.target_path(far) == ()
    assert bar.button_at(far) is None


def test_state_changed_signal(qtbot, bar):
    with qtbot.waitSignal(bar.state_changed, timeout=1000) as blocker:
        bar.open_menu("view")
    assert blocker.args[0].open_menu == "view"
    assert not blocker.args[0].is_active


def test_teardown_is_idempotent(bar):
    bar.buttons["file"].click()
    bar.teardown()
    bar.teardown()
    assert bar.state_machine.state == CLOSED
    assert not bar.outside_filter.installed
    assert not bar.popovers["file"].isVisible()
    assert not any(b.isChecked() for b in bar.buttons.values())


def test_moving_over_other_button_while_popover_grabs_switches(bar):
    bar.buttons["file"].click()
    popover = bar.popovers["file"]
    _send_mouse(popover, QEvent.Type.MouseMove, _center(bar.buttons["edit"]))
    assert bar.state_machine.open_menu == "edit"
    assert bar.popovers["edit"].isVisible()
    assert not popover.isVisible()


def test_moving_inside_popover_keeps_menu(bar):
    bar.buttons["file"].click()
    popover = bar.popovers["file"]
    _send_mouse(popover, QEvent.Type.MouseMove, _center(popover))
    assert bar.state_machine.open_menu == "file"


def test_press_on_other_button_through_popover_switches_without_closing(bar):
    states = []
    bar.buttons["file"].click()
    remove = bar.state_machine.add_listener(states.append)
    consumed = _send_mouse(
        bar.popovers["file"],
        QEvent.Type.MouseButtonPress,
        _center(bar.buttons["view"]),
        Qt.MouseButton.LeftButton,
    )
    remove()
    assert consumed
    assert bar.state_machine.open_menu == "view"
    assert [s.open_menu for s in states] == ["view"]
    assert bar.buttons["view"].isChecked()


def test_press_outside_bar_and_popover_closes(qtbot, bar):
    other = QWidget()
    qtbot.addWidget(other)
    other.show()
    bar.buttons["edit"].click()
    _send_mouse(other, QEvent.Type.MouseButtonPress, QPoint(-5000, -5000), Qt.MouseButton.LeftButton)
    assert bar.state_machine.state == CLOSED
    assert not bar.popovers["edit"].isVisible()
    assert not bar.outside_filter.installed


def test_press_inside_bar_region_keeps_menu_open(qtbot, bar):
    other = QWidget()
    qtbot.addWidget(other)
    other.show()
    bar.buttons["help"].click()
    inside_bar = bar.mapToGlobal(QPoint(bar.width() - 2, 2))
    _send_mouse(other, QEvent.Type.MouseButtonPress, inside_bar, Qt.MouseButton.LeftButton)
    assert bar.state_machine.open_menu == "help"
    assert bar.outside_filter.installed


def test_outside_filter_ignores_presses_while_closed(qtbot, bar):
    other = QWidget()
    qtbot.addWidget(other)
    other.show()
    _send_mouse(other, QEvent.Type.MouseButtonPress, QPoint(-5000, -5000), Qt.MouseButton.LeftButton)
    assert bar.state_machine.state == CLOSED
    assert not bar.outside_filter.installed

import pytest

from baseshell.services.layout_controller import Axis, LayoutController, PaneId
from baseshell.services.layout_store import LayoutStore
from baseshell.views.main_content import MainContent

from fakes import FakeBackend


@pytest.fixture
def content(qtbot):
    w = MainContent()
    qtbot.addWidget(w)
    w.resize(1000, 600)
    w.show()
    qtbot.waitExposed(w)
    return w


def _apply(content, h, v):
    for pane, pct in zip((PaneId.LEFT, PaneId.CENTER, PaneId.RIGHT), h):
        content.set_pane_size(pane, pct)
    for pane, pct in zip((PaneId.CENTER_TOP, PaneId.LOG), v):
        content.set_pane_size(pane, pct)


def test_pane_labels_show_percentages(content):
    _apply(content, (20, 60, 20), (30, 70))
    assert content.label_text(PaneId.LEFT) == "Left Sidebar: 20%"
    assert content.label_text(PaneId.CENTER) == "Center: 60%"
    assert content.label_text(PaneId.LOG) == "Log: 70%"


def test_splitters_follow_commanded_sizes(content):
    _apply(content, (20, 60, 20), (30, 70))
    h = content.size_percentages(Axis.HORIZONTAL)
    v = content.size_percentages("vertical")
    assert h == pytest.approx([20, 60, 20], abs=1.5)
    assert v == pytest.approx([30, 70], abs=1.5)


def test_user_drag_emits_resized(qtbot, content):
    _apply(content, (10, 80, 10), (40, 60))
    with qtbot.waitSignal(content.resized, timeout=1000) as blocker:
        content.h_splitter.splitterMoved.emit(150, 1)
    axis, sizes = blocker.args
    assert axis == "horizontal"
    assert len(sizes) == 3 and sum(sizes) > 0


def test_programmatic_sizes_do_not_emit(qtbot, content):
    received = []
    content.resized.connect(lambda axis, sizes: received.append(axis))
    _apply(content, (30, 40, 30), (50, 50))
    qtbot.wait(20)
    assert received == []


def test_controller_round_trip(qtbot, content):
    backend = FakeBackend()
    ctl = LayoutController(LayoutStore(backend), delay_ms=20)
    content.resized.connect(ctl.on_resize)
    with ctl.mounted(content, flush_on_exit=True):
        content.v_splitter.setSizes([250, 250])
        content.v_splitter.splitterMoved.emit(250, 1)
        assert ctl.config.vertical == pytest.approx((50.0, 50.0), abs=1.0)
        assert content.label_text(PaneId.LOG).startswith("Log: ")
    assert len(backend.writes) == 1

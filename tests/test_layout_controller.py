import pytest

from baseshell.services.errors import PersistenceReadError, PersistenceWriteError
from baseshell.services.event_bus import EventBus, ShellEvent
from baseshell.services.layout_controller import Axis, LayoutConfig, LayoutController, PaneId
from baseshell.services.layout_store import HORIZONTAL_KEY, VERTICAL_KEY, LayoutStore
from baseshell.services.store_manager import AsyncStore, StoreManager

from fakes import DeadSurface, FakeBackend, FakeSurface

DELAY_MS = 40


@pytest.fixture
def backend():
    return FakeBackend()


@pytest.fixture
def controller(qtbot, backend):
    ctl = LayoutController(LayoutStore(backend), delay_ms=DELAY_MS)
    yield ctl
    ctl.release()


def test_burst_of_resizes_writes_once_with_last_value(qtbot, controller, backend):
    controller.on_resize(Axis.HORIZONTAL, [5, 85, 10])
    controller.on_resize(Axis.HORIZONTAL, [8, 82, 10])
    controller.on_resize(Axis.HORIZONTAL, [12, 78, 10])
    assert backend.writes == []
    assert controller.has_pending_persist()
    qtbot.waitUntil(lambda: len(backend.writes) == 1, timeout=2000)
    qtbot.wait(DELAY_MS * 3)
    assert len(backend.writes) == 1
    assert backend.writes[0] == {HORIZONTAL_KEY: [12.0, 78.0, 10.0], VERTICAL_KEY: [40.0, 60.0]}
    assert not controller.has_pending_persist()


def test_in_memory_state_updates_synchronously(controller):
    cfg = controller.on_resize(Axis.VERTICAL, [30, 70])
    assert cfg.vertical == (30.0, 70.0)
    assert controller.config.vertical == (30.0, 70.0)
    assert controller.config.horizontal == (10.0, 80.0, 10.0)


def test_resize_reapplies_normalized_sizes_to_surface(controller):
    surface = FakeSurface()
    controller.attach_surface(surface)
    controller.on_resize(Axis.HORIZONTAL, [5, 85, 10])
    sizes = surface.last_sizes()
    assert sizes[PaneId.LEFT] == 10.0
    assert sizes[PaneId.CENTER] == 80.0
    assert sizes[PaneId.RIGHT] == 10.0


def test_load_applies_stored_layout_to_surface(qtbot, backend):
    backend.data = {HORIZONTAL_KEY: [20, 60, 20], VERTICAL_KEY: [30, 70]}
    ctl = LayoutController(LayoutStore(backend), delay_ms=DELAY_MS)
    surface = FakeSurface()
    ctl.attach_surface(surface)
    with qtbot.waitSignal(ctl.loaded, timeout=1000) as blocker:
        ctl.load()
    assert blocker.args[0] == LayoutConfig.from_raw([20, 60, 20], [30, 70])
    assert surface.last_sizes() == {
        PaneId.LEFT: 20.0,
        PaneId.CENTER: 60.0,
        PaneId.RIGHT: 20.0,
        PaneId.CENTER_TOP: 30.0,
        PaneId.LOG: 70.0,
    }
    # loading is not a user change
    assert not ctl.has_pending_persist()
    assert backend.writes == []
    ctl.release()


@pytest.mark.parametrize(
    "stored",
    [
        {},
        {HORIZONTAL_KEY: [30, 60, 20], VERTICAL_KEY: [40, 60]},
        {HORIZONTAL_KEY: "garbage", VERTICAL_KEY: [40, 60]},
        {HORIZONTAL_KEY: [10 ** 400, 80, 10], VERTICAL_KEY: [40, 60]},
        {HORIZONTAL_KEY: [10, 80, 10]},
    ],
)
def test_missing_or_invalid_record_falls_back_to_default(controller, backend, stored):
    backend.data = stored
    controller.load()
    assert controller.config == LayoutConfig.default()
    assert not controller.is_loading()


def test_read_error_falls_back_and_publishes(qtbot, backend):
    bus = EventBus()
    errors = []
    bus.subscribe(ShellEvent.PERSISTENCE_ERROR, lambda evt: errors.append(evt.payload))
    backend.read_error = PersistenceReadError("disk gone")
    ctl = LayoutController(LayoutStore(backend), delay_ms=DELAY_MS, event_bus=bus)
    ctl.load()
    assert ctl.config == LayoutConfig.default()
    assert errors and errors[0]["op"] == "read"
    ctl.release()


def test_resize_during_load_wins(qtbot):
    backend = FakeBackend(
        {HORIZONTAL_KEY: [20, 60, 20], VERTICAL_KEY: [30, 70]}, defer_reads=True
    )
    ctl = LayoutController(LayoutStore(backend), delay_ms=DELAY_MS)
    ctl.load()
    assert ctl.is_loading()
    ctl.on_resize(Axis.HORIZONTAL, [15, 70, 15])
    backend.release_reads()
    assert not ctl.is_loading()
    assert ctl.config.horizontal == (15.0, 70.0, 15.0)
    assert ctl.config.vertical == (40.0, 60.0)
    qtbot.waitUntil(lambda: len(backend.writes) == 1, timeout=2000)
    assert backend.writes[0][HORIZONTAL_KEY] == [15.0, 70.0, 15.0]
    ctl.release()


def test_write_failure_keeps_state_and_retries(qtbot, backend, controller):
    backend.write_error = PersistenceWriteError("read-only volume")
    failures = []
    controller.persist_failed.connect(failures.append)
    controller.on_resize(Axis.HORIZONTAL, [20, 60, 20])
    qtbot.waitUntil(lambda: len(failures) == 1, timeout=2000)
    assert "read-only" in failures[0]
    assert controller.config.horizontal == (20.0, 60.0, 20.0)

    backend.write_error = None
    with qtbot.waitSignal(controller.persisted, timeout=2000):
        controller.on_resize(Axis.HORIZONTAL, [25, 50, 25])
    assert backend.writes == [{HORIZONTAL_KEY: [25.0, 50.0, 25.0], VERTICAL_KEY: [40.0, 60.0]}]


def test_release_cancels_pending_write(qtbot, backend, controller):
    controller.on_resize(Axis.HORIZONTAL, [20, 60, 20])
    controller.release()
    qtbot.wait(DELAY_MS * 4)
    assert backend.writes == []
    assert not controller.has_pending_persist()
    controller.release()  # idempotent


def test_release_with_flush_writes_immediately(backend, controller):
    controller.on_resize(Axis.VERTICAL, [25, 75])
    controller.release(flush=True)
    assert backend.writes == [{HORIZONTAL_KEY: [10.0, 80.0, 10.0], VERTICAL_KEY: [25.0, 75.0]}]


def test_flush_without_pending_change(controller, backend):
    assert controller.flush() is False
    controller.on_resize(Axis.VERTICAL, [25, 75])
    assert controller.flush() is True
    assert len(backend.writes) == 1
    assert controller.flush() is False


def test_mounted_detaches_surface_even_on_error(qtbot, backend, controller):
    surface = FakeSurface()
    with pytest.raises(KeyError):
        with controller.mounted(surface) as ctl:
            assert ctl.surface is surface
            ctl.on_resize(Axis.HORIZONTAL, [20, 60, 20])
            raise KeyError("boom")
    assert controller.surface is None
    qtbot.wait(DELAY_MS * 4)
    assert backend.writes == []


def test_surface_attached_later_receives_current_sizes(controller):
    controller.on_resize(Axis.HORIZONTAL, [20, 60, 20])
    assert controller.apply_pending
    surface = FakeSurface()
    controller.attach_surface(surface)
    assert not controller.apply_pending
    assert surface.last_sizes()[PaneId.LEFT] == 20.0


def test_deleted_surface_is_detached(controller):
    controller.attach_surface(DeadSurface())
    assert controller.surface is None
    assert controller.apply_pending
    # state keeps working without a surface
    controller.on_resize(Axis.HORIZONTAL, [20, 60, 20])
    assert controller.config.horizontal == (20.0, 60.0, 20.0)


def test_reset_restores_default_and_persists(qtbot, backend, controller):
    controller.on_resize(Axis.HORIZONTAL, [20, 60, 20])
    controller.reset()
    assert controller.config == LayoutConfig.default()
    qtbot.waitUntil(lambda: len(backend.writes) == 1, timeout=2000)
    assert backend.writes[0][HORIZONTAL_KEY] == [10.0, 80.0, 10.0]


def test_bus_events_for_change_and_persist(qtbot, backend):
    bus = EventBus()
    seen = []
    bus.subscribe(ShellEvent.LAYOUT_CHANGED, lambda evt: seen.append(("changed", evt.payload)))
    bus.subscribe(ShellEvent.LAYOUT_PERSISTED, lambda evt: seen.append(("persisted", evt.payload)))
    ctl = LayoutController(LayoutStore(backend), delay_ms=DELAY_MS, event_bus=bus)
    ctl.on_resize(Axis.VERTICAL, [50, 50])
    qtbot.waitUntil(lambda: any(kind == "persisted" for kind, _ in seen), timeout=2000)
    assert seen[0] == ("changed", {"horizontal": [10.0, 80.0, 10.0], "vertical": [50.0, 50.0]})
    assert seen[-1] == ("persisted", {"horizontal": [10.0, 80.0, 10.0], "vertical": [50.0, 50.0]})
    ctl.release()


def test_oversized_number_on_disk_loads_default(qtbot, tmp_path):
    path = tmp_path / "BaseProject.config"
    path.write_text(
        '{"layout": {"horizontal": [1' + "0" * 400 + ', 80, 10], "vertical": [40, 60]}}',
        encoding="utf-8",
    )
    async_store = AsyncStore(StoreManager(path))
    ctl = LayoutController(LayoutStore(async_store), delay_ms=DELAY_MS)
    with qtbot.waitSignal(ctl.loaded, timeout=2000) as blocker:
        ctl.load()
    assert blocker.args[0] == LayoutConfig.default()
    assert not ctl.is_loading()
    ctl.release()
    assert async_store.shutdown(1000)

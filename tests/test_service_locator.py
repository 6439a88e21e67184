import pytest

from baseshell.services.service_locator import (
    services,
    ServiceKey,
    ServiceAlreadyRegisteredError,
    ServiceNotFoundError,
    ServiceLocator,
)


def test_register_and_get():
    services.register("app_config", {"theme": "dark"})
    assert services.get("app_config")["theme"] == "dark"


def test_double_register_raises():
    services.register("store", 1)
    with pytest.raises(ServiceAlreadyRegisteredError):
        services.register("store", 2)


def test_allow_override_replaces():
    services.register("store", 1)
    services.register("store", 2, allow_override=True, origin="test")
    assert services.get("store") == 2


def test_get_typed_checks_type():
    services.register("answer", 42)
    assert services.get_typed("answer", int) == 42
    with pytest.raises(TypeError):
        services.get_typed("answer", str)


def test_try_get_default():
    assert services.try_get("missing", 123) == 123


def test_override_context_restores_previous():
    services.register("event_bus", "real")
    with services.override_context(event_bus="fake", extra=1):
        assert services.get("event_bus") == "fake"
        assert services.get("extra") == 1
    assert services.get("event_bus") == "real"
    assert services.try_get("extra") is None


def test_unregister():
    services.register("temp", object())
    services.unregister("temp")
    with pytest.raises(ServiceNotFoundError):
        services.get("temp")
    services.unregister("temp")  # no-op


def test_list_keys():
    services.register("a", 1)
    services.register("b", 2)
    assert set(services.list_keys()) == {"a", "b"}


def test_local_instance_isolated():
    local = ServiceLocator()
    local.register("foo", 1)
    assert local.get("foo") == 1
    with pytest.raises(ServiceNotFoundError):
        services.get("foo")


def test_service_key_and_plain_string_are_interchangeable():
    services.register(ServiceKey.EVENT_BUS, "bus", origin="bootstrap")
    assert services.get("event_bus") == "bus"
    assert services.origin_of("event_bus") == "bootstrap"
    assert list(services.list_keys()) == ["event_bus"]
    with pytest.raises(ServiceAlreadyRegisteredError):
        services.register("event_bus", "other")
    services.unregister(ServiceKey.EVENT_BUS)
    assert services.try_get(ServiceKey.EVENT_BUS) is None


def test_shutdown_runs_hooks_newest_first():
    calls = []
    services.register(ServiceKey.ASYNC_STORE, 1, on_shutdown=lambda: calls.append("store"))
    services.register(ServiceKey.APP_CONFIG, 2)
    services.register(ServiceKey.SHORTCUTS, 3, on_shutdown=lambda: calls.append("shortcuts"))
    assert services.shutdown() == []
    assert calls == ["shortcuts", "store"]
    # services stay registered, hooks are spent
    assert services.get(ServiceKey.SHORTCUTS) == 3
    assert services.shutdown() == []
    assert calls == ["shortcuts", "store"]


def test_reregistering_moves_service_to_newest_slot():
    calls = []
    services.register("a", 1, on_shutdown=lambda: calls.append("a"))
    services.register("b", 2, on_shutdown=lambda: calls.append("b"))
    services.register("a", 3, allow_override=True, on_shutdown=lambda: calls.append("a2"))
    services.shutdown()
    assert calls == ["a2", "b"]


def test_failing_hook_does_not_stop_the_rest(caplog):
    calls = []

    def _boom():
        raise RuntimeError("stuck")

    services.register("first", 1, on_shutdown=lambda: calls.append("first"))
    services.register("second", 2, on_shutdown=_boom)
    with caplog.at_level("ERROR"):
        assert services.shutdown() == ["second"]
    assert calls == ["first"]
    assert "second" in caplog.text

# Shared fixtures: headless Qt platform, isolated config directory and a
# clean service locator for every test.

import logging
import os

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

import pytest

from baseshell.services.service_locator import services


@pytest.fixture(autouse=True)
def _isolated_services():
    services.clear()
    yield
    svc = services.try_get("error_service")
    if svc is not None:
        svc.uninstall()
    log_svc = services.try_get("logging_service")
    if log_svc is not None:
        log_svc.detach_root()
    services.clear()


@pytest.fixture
def config_dir(tmp_path, monkeypatch):
    d = tmp_path / "config"
    d.mkdir()
    monkeypatch.setenv("BASESHELL_CONFIG_DIR", str(d))
    return d


@pytest.fixture
def quiet_root_logger():
    """Restore root logger handlers/level after tests that call configure_logging."""
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield root
    for h in list(root.handlers):
        if h not in handlers:
            root.removeHandler(h)
            h.close()
    root.setLevel(level)

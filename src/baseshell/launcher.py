"""Launcher for `python -m baseshell` and the ``baseshell`` console script.

Delegates to the unified bootstrap (``create_application``) so logging,
config defaults, service registration and the single-instance guard run the
same way for every launch.
"""

from __future__ import annotations

import logging

from baseshell.app.bootstrap import create_application, release_single_instance
from baseshell.services.event_bus import ShellEvent
from baseshell.services.service_locator import ServiceKey

logger = logging.getLogger(__name__)


def main() -> int:  # pragma: no cover - runtime
    ctx = create_application()
    if ctx.metadata.get("single_instance_acquired") is False:
        print("Another instance is already running.")  # noqa: T201
        return 0
    from baseshell.views.main_window import MainWindow

    try:
        win = MainWindow(app_config=ctx.app_config, async_store=ctx.async_store)
        win.show()
        ctx.services.get(ServiceKey.EVENT_BUS).publish(ShellEvent.STARTUP_COMPLETE, {"duration_s": ctx.duration_s})
        if ctx.app_config.project.is_blank:
            dlg = win.open_project_dialog(required=True)
            if dlg.exit_requested:
                return 0
        code = ctx.qt_app.exec()
    finally:
        failed = ctx.services.shutdown()
        if failed:
            logger.warning("Services failed to shut down cleanly: %s", ", ".join(failed))
        release_single_instance()
    return code


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())

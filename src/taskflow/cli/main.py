# src/taskflow/cli/main.py

"""
CLI entrypoint.

Initializes logging, builds AppState, then:
- requests notification permission (once, if still undecided),
- starts the alarm scheduler on a background event loop thread,
- runs the console REPL in the main thread (optional).
"""

from __future__ import annotations

import locale
import logging
import signal
import threading

from ..alerts.notify import NotificationPermission
from ..assistant.jobs import schedule_summary_refresh
from ..cli.bootstrap import create_initial_state
from ..config import get_settings
from ..connectors.console_connector import make_alarm_presenter, run_console_loop
from ..core.state import AppState
from ..logging_setup import setup_logging
from ..tasks.alarm_scheduler import start_background_runner

logger = logging.getLogger(__name__)


def _shutdown(state: AppState) -> None:
    """Best-effort shutdown (no exceptions should escape)."""
    runner = state.runner
    if runner is not None:
        runner.stop()
        runner.join(timeout=10.0)
        state.runner = None

    # An alarm left open at exit keeps its reminder armed: it fires again next start.
    try:
        with state.lock:
            state.task_store.persist()
            state.theme_store.persist()
    except Exception:
        logger.exception("Failed to persist state on shutdown.")

    state.alarms.shutdown()


def main() -> None:
    settings = get_settings()

    log_file = setup_logging(log_dir=settings.data_dir, console_level=settings.log_level)
    logger.info("Starting %s (log file: %s)", settings.app_name, log_file)

    try:
        # Name sorting collates with the user's locale rather than C code points.
        locale.setlocale(locale.LC_COLLATE, "")
    except locale.Error:
        logger.warning("Unsupported locale; name sorting falls back to accent-folded order.")

    state = create_initial_state(settings=settings)

    if state.notifier.permission == NotificationPermission.DEFAULT:
        state.notifier.request_permission()

    state.runner = start_background_runner(
        state.alarms,
        interval_seconds=settings.alarm_interval_seconds,
    )
    if state.runner is None:
        logger.error("Alarm scheduler is not running; reminders are disabled for this session.")

    stop_main = threading.Event()

    def _handle_signal(signum, _frame) -> None:
        logger.info("Signal %s received, shutting down...", signum)
        stop_main.set()

    try:
        signal.signal(signal.SIGTERM, _handle_signal)
        if not settings.console_enabled:
            signal.signal(signal.SIGINT, _handle_signal)
    except (ValueError, OSError, AttributeError):
        # Not on the main thread, or the platform lacks the signal.
        logger.debug("Signal handlers not installed.", exc_info=True)

    try:
        if settings.console_enabled:
            schedule_summary_refresh(state, emit=None)
            run_console_loop(state)
            stop_main.set()
        else:
            state.alarms.add_listener(make_alarm_presenter(state))
            logger.info("Console disabled. Running alarms only. Press Ctrl+C to stop.")
            stop_main.wait()
    finally:
        _shutdown(state)
        logger.info("Bye.")


if __name__ == "__main__":
    main()

# src/taskflow/connectors/console_connector.py

from __future__ import annotations

import logging
import sys
import threading
import time
from datetime import datetime

from ..cli.commands import registry as command_registry, render_alarm
from ..core.state import AppState
from ..tasks.task_models import Task

logger = logging.getLogger(__name__)

_print_lock = threading.Lock()


def _ts_local() -> str:
    return datetime.now().astimezone().strftime("%Y-%m-%d %H:%M:%S")


def _print_ts(text: str) -> None:
    # Background jobs print too; keep lines from interleaving.
    with _print_lock:
        print(f"[{_ts_local()}] {text}", flush=True)


def _rewrite_prev_line(line: str) -> None:
    """
    Replace the last terminal line with `line`.
    Best-effort: if not a TTY, just print a new line.
    """
    try:
        if sys.stdout.isatty():
            sys.stdout.write("\033[1A\033[2K\r")
            sys.stdout.write(line + "\n")
            sys.stdout.flush()
        else:
            print(line)
    except Exception:
        print(line)


def make_alarm_presenter(state: AppState):
    """Listener for AlarmController: prints the alarm with its resolving commands."""
    presets = list(getattr(state.settings, "snooze_presets", [5, 15]))

    def present(task: Task) -> None:
        _print_ts("\n" + render_alarm(task, presets, now_ts=time.time()))

    return present


def run_console_loop(state: AppState) -> None:
    logger.info("Console connector started.")
    app_name = str(getattr(getattr(state, "settings", None), "app_name", "TaskFlow"))
    _print_ts(f"[{app_name}] Use /help for commands, /add to create a task, /exit to quit.\n")

    state.alarms.add_listener(make_alarm_presenter(state))

    def emit(text: str) -> None:
        _print_ts(text)

    while True:
        try:
            user_input = input(">>> ").strip()
            _rewrite_prev_line(f"[{_ts_local()}] >>> {user_input}")
        except EOFError:
            logger.info("Console EOF received, exiting.")
            break
        except KeyboardInterrupt:
            logger.info("Console KeyboardInterrupt, exiting.")
            print()
            break

        if not user_input:
            continue

        if user_input.lower() in ("/exit", "/quit"):
            logger.info("Console exit command received.")
            break

        if not user_input.startswith("/"):
            # Bare text is a quick-add with default priority and due "now".
            user_input = "/add " + user_input

        try:
            cmd_response = command_registry.handle(state, user_input, emit=emit)
        except Exception:
            logger.exception("Command handler crashed.")
            cmd_response = "Internal error while handling a command."

        if cmd_response is not None:
            _print_ts(cmd_response)

    logger.info("Console connector finished.")

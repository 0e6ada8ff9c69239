# src/taskflow/cli/bootstrap.py

"""
CLI bootstrap helpers.

This module is the "composition root":
- loads settings once,
- ensures the local (gitignored) data directory exists,
- wires concrete implementations into AppState (blobs/tasks/theme/alarms/LLM).
"""

from __future__ import annotations

import logging
import threading

from ..alerts.notify import DesktopNotifier
from ..alerts.sound import TerminalBell
from ..config import get_settings
from ..core.ports import LLMClient
from ..core.state import AppState
from ..llm.client import OpenRouterLLMClient
from ..llm.offline import OfflineLLMClient
from ..storage.file_store import FileBlobStore
from ..storage.theme_store import ThemeStore
from ..tasks.alarm import AlarmController
from ..tasks.task_store import TaskStore

logger = logging.getLogger(__name__)


def create_initial_state(*, settings=None) -> AppState:
    """
    Create AppState from the provided settings.

    Keeping settings injectable makes the app easier to test and avoids hidden global config reads.
    If settings is None, falls back to get_settings().
    """
    if settings is None:
        settings = get_settings()

    settings.data_dir.mkdir(parents=True, exist_ok=True)
    blobs = FileBlobStore(settings.data_dir)

    llm_client: LLMClient
    try:
        llm_client = OpenRouterLLMClient(settings)
    except RuntimeError as e:
        logger.info("Assistant running offline: %s", e)
        llm_client = OfflineLLMClient()

    lock = threading.RLock()
    task_store = TaskStore(blobs, settings.tasks_key)
    notifier = DesktopNotifier(enabled=settings.notifications_enabled, app_name=settings.app_name)
    alarms = AlarmController(
        task_store,
        sound=TerminalBell(
            enabled=settings.bell_enabled,
            interval_seconds=settings.bell_interval_seconds,
        ),
        notifier=notifier,
        lock=lock,
        notification_title=f"{settings.app_name} Reminder",
    )

    return AppState(
        settings=settings,
        llm=llm_client,
        task_store=task_store,
        theme_store=ThemeStore(blobs, settings.theme_key),
        alarms=alarms,
        notifier=notifier,
        lock=lock,
    )

# src/taskflow/core/state.py

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Any

from ..storage.theme_store import ThemeStore
from ..tasks.alarm import AlarmController
from ..tasks.alarm_scheduler import BackgroundRunner
from ..tasks.task_store import TaskStore
from .ports import LLMClient, Notifier

SUMMARY_PLACEHOLDER = "Analyzing your focus areas..."


@dataclass
class AppState:
    """
    Runtime state shared by connectors, commands and background jobs.

    lock serializes every read/write of task_store and the alarm session
    between the console thread and the background loop; the AlarmController
    must be built with the same lock.
    """

    settings: Any

    llm: LLMClient
    task_store: TaskStore
    theme_store: ThemeStore
    alarms: AlarmController
    notifier: Notifier

    lock: threading.RLock = field(default_factory=threading.RLock)
    daily_summary: str = SUMMARY_PLACEHOLDER
    runner: BackgroundRunner | None = None

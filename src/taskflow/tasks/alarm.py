# src/taskflow/tasks/alarm.py

from __future__ import annotations

"""
Alarm evaluation and the alarm session.

AlarmController is a two-state machine:
- IDLE: tick() scans the store (store order, first match wins) for a task that
  is due, incomplete and not yet acknowledged, and opens a session for it.
- ALARMING: tick() is a no-op; only dismiss()/snooze()/complete() close the session.

Entering ALARMING starts the sound and sends a notification. Both are best-effort:
their failures are logged and the session stays open.
"""

import logging
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass

from ..core.ports import AlarmSound, Notifier
from .task_models import Task
from .task_store import TaskStore

logger = logging.getLogger(__name__)

AlarmListener = Callable[[Task], None]


@dataclass(slots=True)
class AlarmSession:
    active: bool = False
    task: Task | None = None
    # due_at the alarm was raised for; an edit while alarming moves the task past it.
    due_at: float | None = None


class AlarmController:
    def __init__(
        self,
        store: TaskStore,
        *,
        sound: AlarmSound,
        notifier: Notifier,
        lock: threading.RLock | None = None,
        notification_title: str = "TaskFlow Reminder",
    ) -> None:
        self._store = store
        self._sound = sound
        self._notifier = notifier
        self._lock = lock or threading.RLock()
        self._title = notification_title
        self._session = AlarmSession()
        self._listeners: list[AlarmListener] = []

    @property
    def session(self) -> AlarmSession:
        return self._session

    @property
    def active(self) -> bool:
        return self._session.active

    def add_listener(self, listener: AlarmListener) -> None:
        """Register a callback invoked after each activation, outside the lock."""
        self._listeners.append(listener)

    # ---- evaluator ----

    def find_trigger(self, now_ts: float) -> Task | None:
        for task in self._store.list_tasks():
            if task.is_due(now_ts):
                return task
        return None

    def tick(self, now_ts: float | None = None) -> Task | None:
        """
        One evaluation step. Returns the task that was just activated,
        or None (already alarming, or nothing due).
        """
        now = time.time() if now_ts is None else float(now_ts)
        with self._lock:
            if self._session.active:
                return None
            task = self.find_trigger(now)
            if task is None:
                return None
            self._session = AlarmSession(active=True, task=task, due_at=task.due_at)

        logger.info("Alarm raised task_id=%s title=%r", task.id, task.title)
        self._start_side_effects(task)
        for listener in list(self._listeners):
            try:
                listener(task)
            except Exception:
                logger.exception("Alarm listener failed task_id=%s", task.id)
        return task

    def _start_side_effects(self, task: Task) -> None:
        try:
            self._sound.start()
        except Exception:
            logger.exception("Alarm sound failed to start task_id=%s", task.id)
        try:
            self._notifier.notify(title=self._title, body=task.title)
        except Exception:
            logger.exception("Alarm notification failed task_id=%s", task.id)

    # ---- session resolution ----

    def _end_session(self) -> None:
        self._session = AlarmSession()
        try:
            self._sound.stop()
        except Exception:
            logger.exception("Alarm sound failed to stop")

    def shutdown(self) -> None:
        """Silence the sound without resolving the session (the reminder stays armed)."""
        try:
            self._sound.stop()
        except Exception:
            logger.debug("Alarm sound stop failed.", exc_info=True)

    def _shown_due_date(self, task: Task) -> bool:
        return task.due_at == self._session.due_at

    def dismiss(self) -> Task | None:
        """
        Acknowledge: the same due date will not alarm again.

        If the due date was edited while alarming, the new one was never shown
        and stays armed.
        """
        with self._lock:
            task = self._session.task
            if not self._session.active or task is None:
                return None
            if self._shown_due_date(task):
                updated = self._store.update_task(task.id, reminder_sent=True)
            else:
                updated = self._store.get_task(task.id)
            self._end_session()
        logger.info("Alarm dismissed task_id=%s", task.id)
        return updated

    def snooze(self, minutes: int, now_ts: float | None = None) -> Task | None:
        """Move due_at to now + minutes and re-arm the reminder."""
        if isinstance(minutes, bool) or not isinstance(minutes, int) or minutes <= 0:
            raise ValueError(f"snooze minutes must be a positive integer, got {minutes!r}")

        now = time.time() if now_ts is None else float(now_ts)
        with self._lock:
            task = self._session.task
            if not self._session.active or task is None:
                return None
            updated = self._store.update_task(
                task.id,
                due_at=now + minutes * 60,
                reminder_sent=False,
            )
            self._end_session()
        logger.info("Alarm snoozed task_id=%s minutes=%d", task.id, minutes)
        return updated

    def complete(self) -> Task | None:
        with self._lock:
            task = self._session.task
            if not self._session.active or task is None:
                return None
            updated = self._store.update_task(
                task.id,
                completed=True,
                reminder_sent=True if self._shown_due_date(task) else None,
            )
            self._end_session()
        logger.info("Alarm completed task_id=%s", task.id)
        return updated

# src/taskflow/tasks/task_view.py

"""
Read-only projections of the task collection.

Everything here is a pure function of (tasks, selectors, now_ts); callers
recompute on every change instead of caching.
"""

from __future__ import annotations

import locale
import unicodedata
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime

from .task_models import Task, TaskFilter, TaskSort


@dataclass(slots=True, frozen=True)
class TaskStats:
    total: int
    completed: int
    pending: int
    overdue: int

    @property
    def completion_percent(self) -> int:
        if self.total == 0:
            return 0
        return round(self.completed / self.total * 100)


def _local_day(ts: float):
    return datetime.fromtimestamp(ts).date()


def _fold(title: str) -> str:
    # "Éclair" -> "eclair": accents must not push titles past "z" in the C locale.
    decomposed = unicodedata.normalize("NFKD", title)
    return "".join(c for c in decomposed if not unicodedata.combining(c)).casefold()


def _name_key(task: Task) -> tuple[str, str]:
    return _fold(task.title), locale.strxfrm(task.title.casefold())


def filter_tasks(tasks: Iterable[Task], task_filter: TaskFilter, *, now_ts: float) -> list[Task]:
    if task_filter == TaskFilter.TODAY:
        today = _local_day(now_ts)
        return [t for t in tasks if _local_day(t.due_at) == today]
    if task_filter == TaskFilter.UPCOMING:
        return [t for t in tasks if not t.completed and t.due_at > now_ts]
    if task_filter == TaskFilter.COMPLETED:
        return [t for t in tasks if t.completed]
    return list(tasks)


def sort_tasks(tasks: Iterable[Task], sort: TaskSort) -> list[Task]:
    # sorted() is stable, so equal keys keep store order.
    if sort == TaskSort.PRIORITY:
        return sorted(tasks, key=lambda t: t.priority.rank, reverse=True)
    if sort == TaskSort.NAME:
        return sorted(tasks, key=_name_key)
    return sorted(tasks, key=lambda t: t.due_at)


def project(
    tasks: Iterable[Task],
    task_filter: TaskFilter = TaskFilter.ALL,
    sort: TaskSort = TaskSort.DATE,
    *,
    now_ts: float,
) -> list[Task]:
    """Filtered + sorted view used for display."""
    return sort_tasks(filter_tasks(tasks, task_filter, now_ts=now_ts), sort)


def compute_stats(tasks: Iterable[Task], *, now_ts: float) -> TaskStats:
    items = list(tasks)
    completed = sum(1 for t in items if t.completed)
    return TaskStats(
        total=len(items),
        completed=completed,
        pending=len(items) - completed,
        overdue=sum(1 for t in items if t.is_overdue(now_ts)),
    )

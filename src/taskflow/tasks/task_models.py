# src/taskflow/tasks/task_models.py

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any


class Priority(StrEnum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"

    @property
    def rank(self) -> int:
        return _PRIORITY_RANK[self]

    @classmethod
    def parse(cls, raw: str | None) -> Priority:
        """Lenient parser for stored and user-typed values ("high", "H", ...)."""
        if not raw:
            return cls.MEDIUM
        s = str(raw).strip().upper()
        for p in cls:
            if p.value == s or p.value[0] == s:
                return p
        raise ValueError(f"unknown priority: {raw!r}")


_PRIORITY_RANK = {Priority.LOW: 1, Priority.MEDIUM: 2, Priority.HIGH: 3}


class TaskFilter(StrEnum):
    ALL = "ALL"
    TODAY = "TODAY"
    UPCOMING = "UPCOMING"
    COMPLETED = "COMPLETED"


class TaskSort(StrEnum):
    DATE = "DATE"
    PRIORITY = "PRIORITY"
    NAME = "NAME"


def _flag(value: Any) -> bool:
    # Only real JSON booleans count; "false" or 1 from a hand-edited file do not.
    return value if isinstance(value, bool) else False


@dataclass(slots=True)
class Task:
    id: str
    title: str
    due_at: float
    created_at: float

    description: str = ""
    priority: Priority = Priority.MEDIUM
    completed: bool = False
    reminder_sent: bool = False
    sub_tasks: list[str] = field(default_factory=list)

    def is_due(self, now_ts: float) -> bool:
        """True when this task should raise an alarm at now_ts."""
        return not self.completed and not self.reminder_sent and self.due_at <= now_ts

    def is_overdue(self, now_ts: float) -> bool:
        return not self.completed and self.due_at < now_ts

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "priority": self.priority.value,
            "due_at": self.due_at,
            "completed": self.completed,
            "created_at": self.created_at,
            "reminder_sent": self.reminder_sent,
            "sub_tasks": list(self.sub_tasks),
        }

    @staticmethod
    def from_dict(d: dict[str, Any]) -> Task:
        """
        Build a Task from its stored form.

        Raises KeyError/ValueError/TypeError on records that cannot be trusted
        (missing id/title/due_at); optional fields fall back to their defaults.
        """
        subs = d.get("sub_tasks") or []
        if not isinstance(subs, list):
            subs = []
        return Task(
            id=str(d["id"]),
            title=str(d["title"]),
            due_at=float(d["due_at"]),
            created_at=float(d["due_at"] if d.get("created_at") is None else d["created_at"]),
            description=str(d.get("description") or ""),
            priority=Priority.parse(d.get("priority")),
            completed=_flag(d.get("completed")),
            reminder_sent=_flag(d.get("reminder_sent")),
            sub_tasks=[str(s) for s in subs],
        )

# src/taskflow/tasks/task_api.py

"""
Small high-level helpers shared by commands and connectors:
parsing user-typed values and rendering tasks as text.
"""

from __future__ import annotations

import re
from datetime import datetime, time as dtime, timedelta

from .task_models import Task

_RELATIVE = re.compile(r"^\+(\d+)\s*([mhd])$", re.IGNORECASE)
_DATE_FORMATS = ("%Y-%m-%d %H:%M", "%Y-%m-%dT%H:%M", "%Y-%m-%d %H:%M:%S", "%Y-%m-%dT%H:%M:%S")
_UNIT_SECONDS = {"m": 60, "h": 3600, "d": 86400}


def parse_due(raw: str, *, now_ts: float) -> float:
    """
    Parse a due time typed by the user into epoch seconds (local time).

    Accepted forms:
      now | +30m | +2h | +1d | HH:MM (today) | YYYY-MM-DD (09:00) |
      YYYY-MM-DD HH:MM | YYYY-MM-DDTHH:MM[:SS]
    """
    s = (raw or "").strip()
    if not s:
        raise ValueError("empty due time")

    if s.lower() == "now":
        return float(now_ts)

    m = _RELATIVE.match(s)
    if m:
        return float(now_ts) + int(m.group(1)) * _UNIT_SECONDS[m.group(2).lower()]

    for fmt in _DATE_FORMATS:
        try:
            return datetime.strptime(s, fmt).timestamp()
        except ValueError:
            continue

    try:
        day = datetime.strptime(s, "%Y-%m-%d").date()
        return datetime.combine(day, dtime(9, 0)).timestamp()
    except ValueError:
        pass

    try:
        clock = datetime.strptime(s, "%H:%M").time()
    except ValueError:
        raise ValueError(f"unrecognized due time: {raw!r}") from None
    today = datetime.fromtimestamp(now_ts).date()
    return datetime.combine(today, clock).timestamp()


def split_fields(args: list[str], keys: set[str]) -> tuple[str, dict[str, str]]:
    """
    Split command args into free text and key=value fields.

    ['Write', 'report', 'due=+1h', 'priority=high'] ->
    ('Write report', {'due': '+1h', 'priority': 'high'})
    Tokens whose key is not in `keys` stay part of the free text.
    """
    words: list[str] = []
    fields: dict[str, str] = {}
    for tok in args:
        key, sep, value = tok.partition("=")
        if sep and key.lower() in keys:
            fields[key.lower()] = value
        else:
            words.append(tok)
    return " ".join(words).strip(), fields


def split_steps(raw: str) -> list[str]:
    return [s.strip() for s in (raw or "").split(";") if s.strip()]


def format_due(ts: float) -> str:
    return datetime.fromtimestamp(ts).strftime("%b %d %H:%M")


def format_task_line(task: Task, *, now_ts: float) -> str:
    box = "[x]" if task.completed else "[ ]"
    flags = ""
    if task.is_overdue(now_ts):
        flags += " OVERDUE"
    if task.sub_tasks:
        flags += f" ({len(task.sub_tasks)} steps)"
    return f"{box} {task.id}  {task.priority.value:<6} {format_due(task.due_at)}  {task.title}{flags}"


def format_task_detail(task: Task, *, now_ts: float) -> str:
    lines = [
        format_task_line(task, now_ts=now_ts),
        f"  created: {datetime.fromtimestamp(task.created_at).strftime('%Y-%m-%d %H:%M')}",
    ]
    if task.description:
        lines.append(f"  {task.description}")
    for i, step in enumerate(task.sub_tasks, start=1):
        lines.append(f"  {i}. {step}")
    return "\n".join(lines)


def progress_bar(percent: int, width: int = 20) -> str:
    filled = max(0, min(width, round(width * percent / 100)))
    return "[" + "#" * filled + "-" * (width - filled) + f"] {percent}%"


def minutes_until(ts: float, now_ts: float) -> int:
    return int(timedelta(seconds=ts - now_ts).total_seconds() // 60)

# src/taskflow/assistant/planner.py

from __future__ import annotations

import asyncio
import json
import logging
import re
from collections.abc import Iterable
from datetime import datetime

from ..core.ports import LLMClient
from ..tasks.task_models import Task

logger = logging.getLogger(__name__)

ALL_CAUGHT_UP = "All caught up! Why not take a break or plan something new?"
SUMMARY_FALLBACK = "You've got tasks to do. Stay focused!"

MAX_STEPS = 5
MAX_STEP_CHARS = 120
MAX_SUMMARY_CHARS = 400

BREAKDOWN_SYSTEM_PROMPT = """
You are a planning module that breaks a task into sub-tasks.

Input: a task title and an optional description.

Task:
- Produce 3-5 small, concrete, actionable sub-tasks, in the order they should be done.

Rules:
- Each sub-task is a short imperative phrase (max ~10 words).
- No numbering, no commentary.
- Reply with JSON only, exactly in this shape:
  {"sub_tasks": ["...", "..."]}
""".strip()

SUMMARY_SYSTEM_PROMPT = """
You are a friendly productivity coach.

Input: the user's pending tasks (title, priority, due time).

Task:
- Give a short, motivating 2-sentence summary of today's workload.

Rules:
- Address the user directly ("you").
- Mention what deserves attention first (overdue or high priority).
- No lists, no emojis.
""".strip()

_FENCE = re.compile(r"^```(?:json)?\s*|\s*```$", re.IGNORECASE)
_BULLET = re.compile(r"^\s*(?:[-*•]|\d+[.)])\s*")


def _ask(llm: LLMClient, user_text: str, system_prompt: str) -> str:
    return (llm.complete([{"role": "user", "content": user_text}], system_prompt) or "").strip()


def _clean_step(s: str) -> str:
    s = _BULLET.sub("", str(s)).strip().strip('"').strip()
    if len(s) > MAX_STEP_CHARS:
        s = s[:MAX_STEP_CHARS].rstrip() + "…"
    return s


def parse_sub_tasks(raw: str) -> list[str]:
    """
    Extract steps from a model reply.

    Accepts the requested JSON object (also inside a ``` fence), a bare JSON
    list, or as a last resort a plain bulleted/numbered list.
    """
    text = _FENCE.sub("", (raw or "").strip()).strip()
    if not text:
        return []

    items: list = []
    try:
        data = json.loads(text)
    except ValueError:
        data = None

    if isinstance(data, dict):
        val = data.get("sub_tasks", data.get("subTasks"))
        items = val if isinstance(val, list) else []
    elif isinstance(data, list):
        items = data
    elif data is None:
        items = [line for line in text.splitlines() if _BULLET.match(line)]

    steps = [_clean_step(s) for s in items if isinstance(s, str)]
    return [s for s in steps if s][:MAX_STEPS]


def _breakdown_prompt(title: str, description: str) -> str:
    lines = [f"Title: {title.strip()}"]
    if description and description.strip():
        lines.append(f"Description: {description.strip()}")
    return "\n".join(lines)


def _summary_prompt(pending: Iterable[Task], now_ts: float) -> str:
    rows = []
    for t in pending:
        due = datetime.fromtimestamp(t.due_at).strftime("%Y-%m-%d %H:%M")
        flag = " (overdue)" if t.is_overdue(now_ts) else ""
        rows.append(f"- {t.title} [{t.priority.value}] due {due}{flag}")
    return "Pending tasks:\n" + "\n".join(rows)


def break_down_task(llm: LLMClient, title: str, description: str = "") -> list[str]:
    """
    Ask the model for 3-5 sub-tasks. Returns [] on any failure.
    """
    if not title or not title.strip():
        return []
    try:
        raw = _ask(llm, _breakdown_prompt(title, description), BREAKDOWN_SYSTEM_PROMPT)
    except Exception:
        logger.exception("Task breakdown failed.")
        return []

    steps = parse_sub_tasks(raw)
    logger.debug("Task breakdown produced %d steps", len(steps))
    return steps


def daily_summary(llm: LLMClient, pending: list[Task], *, now_ts: float) -> str:
    """
    Short motivational summary of pending tasks.

    No pending tasks -> ALL_CAUGHT_UP without calling the model;
    failure or empty reply -> SUMMARY_FALLBACK.
    """
    if not pending:
        return ALL_CAUGHT_UP
    try:
        summary = _ask(llm, _summary_prompt(pending, now_ts), SUMMARY_SYSTEM_PROMPT)
    except Exception:
        logger.exception("Daily summary failed.")
        return SUMMARY_FALLBACK

    if not summary:
        return SUMMARY_FALLBACK
    if len(summary) > MAX_SUMMARY_CHARS:
        summary = summary[:MAX_SUMMARY_CHARS].rstrip() + "…"
    return summary


async def fetch_task_breakdown(llm: LLMClient, title: str, description: str = "") -> list[str]:
    """Async wrapper: the SDK call is blocking, so run it in a worker thread."""
    return await asyncio.to_thread(break_down_task, llm, title, description)


async def fetch_daily_summary(llm: LLMClient, pending: list[Task], *, now_ts: float) -> str:
    if not pending:
        return ALL_CAUGHT_UP
    return await asyncio.to_thread(daily_summary, llm, pending, now_ts=now_ts)

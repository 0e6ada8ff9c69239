# src/taskflow/assistant/jobs.py

"""
Assistant jobs bound to AppState.

The AI calls run on the background loop (state.runner), or on a short-lived
thread when it is missing, so the console never waits on the network. Overlapping requests are not cancelled: whichever
finishes last writes its result (last-write-wins).
"""

from __future__ import annotations

import asyncio
import logging
import threading
import time
from collections.abc import Callable, Coroutine
from concurrent.futures import Future
from typing import Any

from ..core.state import AppState
from .planner import fetch_daily_summary, fetch_task_breakdown

logger = logging.getLogger(__name__)

Emitter = Callable[[str], None]


def _locked(state: AppState, fn: Callable[[], Any]) -> Any:
    with state.lock:
        return fn()


async def _under_lock(state: AppState, fn: Callable[[], Any]) -> Any:
    # The lock is shared with the console thread; waiting for it must not stall the
    # loop that also runs the alarm scheduler.
    return await asyncio.to_thread(_locked, state, fn)


async def update_summary(state: AppState) -> str:
    now_ts = time.time()
    pending = await _under_lock(
        state, lambda: [t for t in state.task_store.list_tasks() if not t.completed]
    )

    summary = await fetch_daily_summary(state.llm, pending, now_ts=now_ts)

    def store() -> None:
        state.daily_summary = summary

    await _under_lock(state, store)
    logger.debug("Daily summary updated (pending=%d)", len(pending))
    return summary


async def apply_breakdown(state: AppState, task_id: str) -> list[str]:
    """
    Fetch AI steps for a task and store them as its checklist.
    An empty result leaves the existing checklist untouched.
    """
    def snapshot() -> tuple[str, str] | None:
        task = state.task_store.get_task(task_id)
        return None if task is None else (task.title, task.description)

    found = await _under_lock(state, snapshot)
    if found is None:
        return []

    steps = await fetch_task_breakdown(state.llm, *found)
    if steps:
        # The task may have been deleted meanwhile; set_sub_tasks is then a no-op.
        await _under_lock(state, lambda: state.task_store.set_sub_tasks(task_id, steps))
    return steps


def _report(emit: Emitter | None, render: Callable[[Any], str]) -> Callable[[Any], None]:
    def done(fut) -> None:
        try:
            result = fut.result()
        except Exception:
            logger.exception("Assistant job failed.")
            return
        if emit is not None:
            try:
                emit(render(result))
            except Exception:
                logger.debug("Assistant emit failed.", exc_info=True)

    return done


def _run_detached(coro: Coroutine[Any, Any, Any]) -> Future:
    fut: Future = Future()

    def target() -> None:
        try:
            fut.set_result(asyncio.run(coro))
        except Exception as e:
            fut.set_exception(e)

    threading.Thread(target=target, name="taskflow-assistant", daemon=True).start()
    return fut


def run_job(
    state: AppState,
    coro: Coroutine[Any, Any, Any],
    *,
    emit: Emitter | None = None,
    render: Callable[[Any], str] = str,
) -> Future:
    """
    Run an assistant coroutine on the background loop, or on a short-lived
    thread when there is none. Never blocks the caller.
    """
    if state.runner is not None:
        fut = state.runner.submit(coro)
    else:
        fut = _run_detached(coro)
    fut.add_done_callback(_report(emit, render))
    return fut


def schedule_summary_refresh(state: AppState, emit: Emitter | None = None) -> Future:
    return run_job(state, update_summary(state), emit=emit, render=lambda s: f"[INSIGHTS] {s}")


def schedule_breakdown(state: AppState, task_id: str, emit: Emitter | None = None) -> Future:
    def render(steps: list[str]) -> str:
        if not steps:
            return f"[AI] No sub-tasks suggested for {task_id}."
        lines = [f"[AI] Sub-tasks for {task_id}:"]
        lines.extend(f"  {i}. {s}" for i, s in enumerate(steps, start=1))
        return "\n".join(lines)

    return run_job(state, apply_breakdown(state, task_id), emit=emit, render=render)

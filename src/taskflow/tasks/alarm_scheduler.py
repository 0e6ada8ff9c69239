# src/taskflow/tasks/alarm_scheduler.py

from __future__ import annotations

"""
Alarm scheduler.

A small polling loop that calls AlarmController.tick() on a fixed interval,
plus a background runner that hosts it (and the assistant jobs) on a dedicated
event loop thread, because the console REPL blocks on input().
"""

import asyncio
import contextlib
import logging
import threading
from collections.abc import Coroutine
from concurrent.futures import Future
from dataclasses import dataclass
from typing import Any

from .alarm import AlarmController

logger = logging.getLogger(__name__)


async def run_alarm_scheduler(
        controller: AlarmController,
        *,
        interval_seconds: float = 10.0,
) -> None:
    """
    Every interval_seconds:
    - tick the controller (no-op while an alarm is active)
    - log and swallow tick failures so one bad tick never stops reminders

    To stop the scheduler, cancel the coroutine/task.
    """
    sleep_s = max(0.01, float(interval_seconds))
    logger.debug("Alarm scheduler started interval=%.2fs", sleep_s)

    while True:
        try:
            controller.tick()
        except Exception:
            logger.exception("Alarm tick failed")

        await asyncio.sleep(sleep_s)


@dataclass
class BackgroundRunner:
    thread: threading.Thread
    loop: asyncio.AbstractEventLoop
    stop_event: asyncio.Event

    def submit(self, coro: Coroutine[Any, Any, Any]) -> Future[Any]:
        """Schedule a coroutine on the background loop from any thread."""
        return asyncio.run_coroutine_threadsafe(coro, self.loop)

    def stop(self) -> None:
        try:
            self.loop.call_soon_threadsafe(self.stop_event.set)
        except Exception:
            logger.debug("Failed to signal background runner stop.", exc_info=True)

    def join(self, timeout: float | None = None) -> None:
        self.thread.join(timeout=timeout)


async def _serve(controller: AlarmController, interval_seconds: float, stop_event: asyncio.Event) -> None:
    scheduler = asyncio.create_task(
        run_alarm_scheduler(controller, interval_seconds=interval_seconds)
    )
    try:
        await stop_event.wait()
    finally:
        scheduler.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await scheduler
        logger.debug("Alarm scheduler stopped")


def start_background_runner(
        controller: AlarmController,
        *,
        interval_seconds: float = 10.0,
) -> BackgroundRunner | None:
    """
    Start the alarm scheduler on its own event loop in a daemon thread.
    Returns None if the loop failed to come up.
    """
    ready = threading.Event()
    holder: dict[str, object] = {}

    def runner() -> None:
        loop = asyncio.new_event_loop()
        asyncio.set_event_loop(loop)
        stop_event = asyncio.Event()

        holder["loop"] = loop
        holder["stop_event"] = stop_event
        ready.set()

        try:
            loop.run_until_complete(_serve(controller, interval_seconds, stop_event))
        finally:
            with contextlib.suppress(Exception):
                loop.run_until_complete(loop.shutdown_asyncgens())
            with contextlib.suppress(Exception):
                loop.close()

    t = threading.Thread(target=runner, name="taskflow-alarms", daemon=True)
    t.start()

    ready.wait(timeout=5.0)
    loop = holder.get("loop")
    stop_event = holder.get("stop_event")

    if not isinstance(loop, asyncio.AbstractEventLoop) or not isinstance(stop_event, asyncio.Event):
        logger.error("Alarm thread did not initialize properly.")
        return None

    logger.info("Alarm scheduler thread started (interval=%.1fs).", interval_seconds)
    return BackgroundRunner(thread=t, loop=loop, stop_event=stop_event)

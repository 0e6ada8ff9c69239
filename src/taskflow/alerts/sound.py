# src/taskflow/alerts/sound.py

from __future__ import annotations

import logging
import sys
import threading
from typing import TextIO

logger = logging.getLogger(__name__)


class TerminalBell:
    """
    Looping audible alert using the terminal bell (BEL).

    start() spawns a worker that rings every interval_seconds until stop().
    Calling start() while already ringing is a no-op.
    """

    def __init__(
        self,
        *,
        enabled: bool = True,
        interval_seconds: float = 1.5,
        stream: TextIO | None = None,
    ) -> None:
        self.enabled = enabled
        self._interval = max(0.05, float(interval_seconds))
        self._stream = stream
        self._stop = threading.Event()
        self._worker: threading.Thread | None = None
        self._lock = threading.Lock()

    @property
    def playing(self) -> bool:
        return self._worker is not None and self._worker.is_alive()

    def _ring_loop(self) -> None:
        stream = self._stream or sys.stdout
        while not self._stop.is_set():
            try:
                stream.write("\a")
                stream.flush()
            except Exception:
                # e.g. stdout closed / detached: the alarm stays on screen without sound
                logger.warning("Terminal bell failed; continuing silently.", exc_info=True)
                return
            self._stop.wait(self._interval)

    def start(self) -> None:
        if not self.enabled:
            return
        with self._lock:
            if self.playing:
                return
            self._stop.clear()
            self._worker = threading.Thread(target=self._ring_loop, name="taskflow-bell", daemon=True)
            self._worker.start()

    def stop(self) -> None:
        with self._lock:
            self._stop.set()
            worker = self._worker
            self._worker = None
        if worker is not None and worker is not threading.current_thread():
            worker.join(timeout=2.0)

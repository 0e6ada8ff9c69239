# src/taskflow/logging_setup.py

from __future__ import annotations

import logging
import sys
from pathlib import Path

LOG_FILE_NAME = "taskflow.log"

# Loggers that talk to the LLM provider; their INFO lines are per-request noise.
_CHATTY_LIBRARIES = ("httpx", "httpcore", "openai")

# Per-logger minimum level on the console. Longest prefix wins.
_CONSOLE_FLOORS: dict[str, int] = {
    "taskflow.": logging.DEBUG,
    # Runs every few seconds on the background thread; would break the prompt.
    "taskflow.tasks.alarm_scheduler": logging.WARNING,
    "py.warnings": logging.ERROR,
}


class _ConsoleNoiseFilter(logging.Filter):
    """Keep the REPL readable: our own records pass, everything else only at ERROR+."""

    def filter(self, record: logging.LogRecord) -> bool:
        floor = logging.ERROR
        matched = ""
        for prefix, level in _CONSOLE_FLOORS.items():
            if record.name.startswith(prefix) and len(prefix) > len(matched):
                floor, matched = level, prefix
        return record.levelno >= floor


def _level(name: str | int) -> int:
    if isinstance(name, int):
        return name
    level = logging.getLevelName(str(name).strip().upper())
    return level if isinstance(level, int) else logging.INFO


def setup_logging(
    *,
    log_dir: str | Path = ".local/taskflow",
    console_level: str | int = "INFO",
    file_level: str | int = logging.DEBUG,
) -> Path:
    """
    Route all logging to stderr (filtered) and to <log_dir>/taskflow.log (everything).

    Replaces handlers already on the root logger, so calling it twice is harmless.
    Returns the log file path.
    """
    log_dir = Path(log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / LOG_FILE_NAME

    root = logging.getLogger()
    root.setLevel(logging.DEBUG)
    for h in list(root.handlers):
        root.removeHandler(h)

    fmt = logging.Formatter(
        fmt="%(asctime)s %(levelname)s %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(_level(console_level))
    console.setFormatter(fmt)
    console.addFilter(_ConsoleNoiseFilter())
    root.addHandler(console)

    to_file = logging.FileHandler(log_file, encoding="utf-8")
    to_file.setLevel(_level(file_level))
    to_file.setFormatter(fmt)
    root.addHandler(to_file)

    for name in _CHATTY_LIBRARIES:
        logging.getLogger(name).setLevel(logging.WARNING)

    logging.captureWarnings(True)
    return log_file

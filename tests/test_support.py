# tests/test_support.py

from __future__ import annotations

import io
import logging
import time
from datetime import datetime
from pathlib import Path

import pytest

from taskflow.alerts.notify import DesktopNotifier, NotificationPermission
from taskflow.alerts.sound import TerminalBell
from taskflow.config import Settings
from taskflow.logging_setup import _ConsoleNoiseFilter, setup_logging
from taskflow.storage.theme_store import DEFAULT_ACCENT, ThemeStore
from taskflow.tasks.task_api import parse_due, split_fields

from .fakes import MemoryBlobStore

NOW = datetime(2026, 10, 19, 8, 30).timestamp()


class RecordingBackend:
    """Stand-in for plyer.notification."""

    def __init__(self, fail: bool = False) -> None:
        self.sent: list[dict] = []
        self.fail = fail

    def notify(self, **kwargs) -> None:
        if self.fail:
            raise NotImplementedError("no usable implementation found")
        self.sent.append(kwargs)


def test_parse_due_forms() -> None:
    assert parse_due("now", now_ts=NOW) == NOW
    assert parse_due("+30m", now_ts=NOW) == NOW + 1800
    assert parse_due("+2H", now_ts=NOW) == NOW + 7200
    assert parse_due("+1d", now_ts=NOW) == NOW + 86400
    assert parse_due("17:45", now_ts=NOW) == datetime(2026, 10, 19, 17, 45).timestamp()
    assert parse_due("2026-10-21", now_ts=NOW) == datetime(2026, 10, 21, 9, 0).timestamp()
    assert parse_due("2026-10-21 14:00", now_ts=NOW) == datetime(2026, 10, 21, 14, 0).timestamp()
    assert parse_due("2026-10-21T14:00", now_ts=NOW) == datetime(2026, 10, 21, 14, 0).timestamp()

    for bad in ("", "tomorrow-ish", "+5w", "25:99"):
        with pytest.raises(ValueError):
            parse_due(bad, now_ts=NOW)


def test_split_fields_keeps_unknown_keys_in_text() -> None:
    text, fields = split_fields(["a=b", "Call", "Bob", "DUE=+1h"], {"due"})
    assert text == "a=b Call Bob"
    assert fields == {"due": "+1h"}


def test_settings_from_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("TASKFLOW_DATA_DIR", str(tmp_path))
    monkeypatch.setenv("TASKFLOW_ALARM_INTERVAL_SECONDS", "2.5")
    monkeypatch.setenv("TASKFLOW_SNOOZE_PRESETS", "10, x, -3, 30")
    monkeypatch.setenv("TASKFLOW_NOTIFICATIONS_ENABLED", "no")
    monkeypatch.setenv("TASKFLOW_LLM_MODELS", "a/b c/d")
    monkeypatch.delenv("TASKFLOW_OPENROUTER_API_KEY", raising=False)
    monkeypatch.delenv("OPENROUTER_API_KEY", raising=False)

    s = Settings.from_env()

    assert s.data_dir == tmp_path
    assert s.alarm_interval_seconds == 2.5
    assert s.snooze_presets == [10, 30]
    assert s.notifications_enabled is False
    assert s.llm_models == ["a/b", "c/d"]
    assert s.openrouter_api_key is None
    assert s.tasks_key == "taskflow_tasks"


def test_settings_defaults_on_bad_values(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("TASKFLOW_ALARM_INTERVAL_SECONDS", "soon")
    monkeypatch.setenv("TASKFLOW_SNOOZE_PRESETS", "never")
    s = Settings.from_env()
    assert s.alarm_interval_seconds == 10.0
    assert s.snooze_presets == [5, 15]


def test_theme_store_defaults_and_bad_blob() -> None:
    assert ThemeStore(MemoryBlobStore()).theme.accent_color == DEFAULT_ACCENT
    broken = ThemeStore(MemoryBlobStore({"taskflow_theme": "[[["}))
    assert broken.theme.dark_mode is False
    odd = ThemeStore(MemoryBlobStore({"taskflow_theme": '{"dark_mode": true, "accent_color": "red"}'}))
    assert odd.theme.dark_mode is True
    assert odd.theme.accent_color == DEFAULT_ACCENT


def test_notifier_requests_permission_once() -> None:
    backend = RecordingBackend()
    sent = backend.sent

    n = DesktopNotifier(enabled=True, backend=backend)
    n.notify(title="t", body="before permission")
    assert sent == []

    assert n.request_permission() == NotificationPermission.GRANTED
    n.notify(title="TaskFlow Reminder", body="Pay rent")
    assert sent[0]["title"] == "TaskFlow Reminder"
    assert sent[0]["message"] == "Pay rent"

    denied = DesktopNotifier(enabled=False, backend=backend)
    assert denied.request_permission() == NotificationPermission.DENIED
    denied.notify(title="t", body="b")
    assert len(sent) == 1


def test_notifier_swallows_backend_errors() -> None:
    n = DesktopNotifier(enabled=True, backend=RecordingBackend(fail=True))
    n.request_permission()
    n.notify(title="t", body="b")


def test_terminal_bell_loops_until_stopped() -> None:
    out = io.StringIO()
    bell = TerminalBell(interval_seconds=0.05, stream=out)

    bell.start()
    bell.start()  # already ringing: no second worker
    time.sleep(0.2)
    bell.stop()

    rings = out.getvalue().count("\a")
    assert rings >= 2
    assert not bell.playing
    time.sleep(0.1)
    assert out.getvalue().count("\a") == rings


def test_disabled_bell_is_silent() -> None:
    out = io.StringIO()
    bell = TerminalBell(enabled=False, stream=out)
    bell.start()
    bell.stop()
    assert out.getvalue() == ""


def test_console_filter_floors() -> None:
    flt = _ConsoleNoiseFilter()

    def rec(name: str, level: int) -> logging.LogRecord:
        return logging.LogRecord(name, level, __file__, 1, "msg", None, None)

    assert flt.filter(rec("taskflow.tasks.alarm", logging.DEBUG))
    assert not flt.filter(rec("taskflow.tasks.alarm_scheduler", logging.INFO))
    assert flt.filter(rec("taskflow.tasks.alarm_scheduler", logging.WARNING))
    assert not flt.filter(rec("openai", logging.WARNING))
    assert flt.filter(rec("openai", logging.ERROR))


def test_setup_logging_writes_file(tmp_path: Path) -> None:
    root = logging.getLogger()
    saved = list(root.handlers), root.level
    try:
        log_file = setup_logging(log_dir=tmp_path, console_level="warning")
        logging.getLogger("taskflow.test").debug("hello file")
        for h in root.handlers:
            h.flush()
        assert "hello file" in log_file.read_text(encoding="utf-8")
    finally:
        for h in list(root.handlers):
            root.removeHandler(h)
            h.close()
        for h in saved[0]:
            root.addHandler(h)
        root.setLevel(saved[1])
        logging.captureWarnings(False)

# tests/conftest.py

from __future__ import annotations

import threading
from pathlib import Path
from types import SimpleNamespace

import pytest

from taskflow.core.state import AppState
from taskflow.storage.theme_store import ThemeStore
from taskflow.tasks.alarm import AlarmController
from taskflow.tasks.task_store import TaskStore

from .fakes import FakeLLMClient, FakeNotifier, FakeSound, MemoryBlobStore


@pytest.fixture()
def settings(tmp_path: Path) -> SimpleNamespace:
    """
    Minimal settings object compatible with AppState and the commands.

    We intentionally use a SimpleNamespace rather than importing real config,
    to keep unit tests isolated and deterministic.
    """
    return SimpleNamespace(
        app_name="TaskFlow",
        data_dir=tmp_path / "data",
        tasks_key="taskflow_tasks",
        theme_key="taskflow_theme",
        alarm_interval_seconds=10.0,
        snooze_presets=[5, 15],
        llm_models=["fake/model"],
    )


@pytest.fixture()
def blobs() -> MemoryBlobStore:
    return MemoryBlobStore()


@pytest.fixture()
def store(blobs: MemoryBlobStore) -> TaskStore:
    return TaskStore(blobs)


@pytest.fixture()
def sound() -> FakeSound:
    return FakeSound()


@pytest.fixture()
def notifier() -> FakeNotifier:
    return FakeNotifier()


@pytest.fixture()
def alarms(store: TaskStore, sound: FakeSound, notifier: FakeNotifier) -> AlarmController:
    return AlarmController(store, sound=sound, notifier=notifier)


@pytest.fixture()
def llm() -> FakeLLMClient:
    return FakeLLMClient()


@pytest.fixture()
def state(
    settings: SimpleNamespace,
    blobs: MemoryBlobStore,
    store: TaskStore,
    sound: FakeSound,
    notifier: FakeNotifier,
    llm: FakeLLMClient,
) -> AppState:
    """AppState wired with in-memory blobs and deterministic fakes; no runner thread."""
    lock = threading.RLock()
    return AppState(
        settings=settings,
        llm=llm,
        task_store=store,
        theme_store=ThemeStore(blobs, settings.theme_key),
        alarms=AlarmController(store, sound=sound, notifier=notifier, lock=lock),
        notifier=notifier,
        lock=lock,
    )

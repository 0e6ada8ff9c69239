# tests/test_alarm.py

from __future__ import annotations

import pytest

from taskflow.alerts.notify import NotificationPermission
from taskflow.tasks.alarm import AlarmController
from taskflow.tasks.task_store import TaskStore

from .fakes import FakeNotifier, FakeSound

NOW = 1_760_000_000.0
MIN = 60.0


def _add(store: TaskStore, title: str, due_at: float, **fields):
    t = store.add_task(title=title, due_at=due_at, now_ts=NOW - 3600)
    if fields:
        store.update_task(t.id, **fields)
    return t


def test_tick_selects_first_due_task_in_store_order(store: TaskStore, alarms: AlarmController) -> None:
    # add_task prepends, so add B first to get store order [A, B].
    b = _add(store, "B", NOW - 2 * MIN)
    a = _add(store, "A", NOW - 1 * MIN)
    assert [t.id for t in store.list_tasks()] == [a.id, b.id]

    assert alarms.tick(NOW) is a
    assert alarms.session.active is True
    assert alarms.session.task is a

    # While alarming, ticks do not re-scan.
    assert alarms.tick(NOW + MIN) is None
    assert alarms.session.task is a

    alarms.dismiss()
    assert alarms.tick(NOW + MIN) is b


def test_tick_skips_completed_acknowledged_and_future(store: TaskStore, alarms: AlarmController) -> None:
    _add(store, "future", NOW + MIN)
    _add(store, "done", NOW - MIN, completed=True)
    _add(store, "acked", NOW - MIN, reminder_sent=True)

    assert alarms.tick(NOW) is None
    assert alarms.session.active is False


def test_due_exactly_now_triggers(store: TaskStore, alarms: AlarmController) -> None:
    t = _add(store, "edge", NOW)
    assert alarms.tick(NOW) is t


def test_activation_starts_sound_and_notifies(
    store: TaskStore, alarms: AlarmController, sound: FakeSound, notifier: FakeNotifier
) -> None:
    _add(store, "Pay rent", NOW - MIN)
    alarms.tick(NOW)

    assert sound.playing
    assert notifier.sent == [("TaskFlow Reminder", "Pay rent")]


def test_no_notification_without_permission(store: TaskStore, sound: FakeSound) -> None:
    notifier = FakeNotifier(permission=NotificationPermission.DENIED)
    alarms = AlarmController(store, sound=sound, notifier=notifier)
    _add(store, "quiet", NOW - MIN)

    assert alarms.tick(NOW) is not None
    assert notifier.sent == []


def test_side_effect_failures_keep_alarm_active(store: TaskStore) -> None:
    sound = FakeSound(fail_start=True)
    notifier = FakeNotifier(fail=True)
    alarms = AlarmController(store, sound=sound, notifier=notifier)
    t = _add(store, "blocked audio", NOW - MIN)

    assert alarms.tick(NOW) is t
    assert alarms.active is True


def test_listeners_are_told_and_their_errors_contained(store: TaskStore, alarms: AlarmController) -> None:
    seen = []

    def boom(task):
        raise RuntimeError("render failed")

    alarms.add_listener(boom)
    alarms.add_listener(seen.append)
    t = _add(store, "listen", NOW - MIN)

    assert alarms.tick(NOW) is t
    assert seen == [t]


def test_dismiss_acknowledges_without_touching_due_or_completion(
    store: TaskStore, alarms: AlarmController, sound: FakeSound
) -> None:
    t = _add(store, "A", NOW - MIN)
    alarms.tick(NOW)

    alarms.dismiss()

    assert t.reminder_sent is True
    assert t.completed is False
    assert t.due_at == NOW - MIN
    assert alarms.active is False
    assert not sound.playing

    # No re-trigger until the due date changes.
    assert alarms.tick(NOW + 60 * MIN) is None
    store.update_task(t.id, due_at=NOW + 2 * MIN)
    assert alarms.tick(NOW + 2 * MIN) is t


def test_snooze_moves_due_and_retriggers(store: TaskStore, alarms: AlarmController, sound: FakeSound) -> None:
    t = _add(store, "A", NOW - MIN)
    alarms.tick(NOW)

    alarms.snooze(5, now_ts=NOW)

    assert t.due_at == NOW + 5 * MIN
    assert t.reminder_sent is False
    assert t.completed is False
    assert alarms.active is False
    assert not sound.playing

    assert alarms.tick(NOW + 4 * MIN) is None
    assert alarms.tick(NOW + 5 * MIN) is t


@pytest.mark.parametrize("bad", [0, -5, 2.5, "5", True])
def test_snooze_requires_positive_integer(store: TaskStore, alarms: AlarmController, bad) -> None:
    _add(store, "A", NOW - MIN)
    alarms.tick(NOW)

    with pytest.raises(ValueError):
        alarms.snooze(bad, now_ts=NOW)
    assert alarms.active is True


def test_complete_marks_done_and_acknowledged(store: TaskStore, alarms: AlarmController, sound: FakeSound) -> None:
    t = _add(store, "A", NOW - MIN)
    alarms.tick(NOW)

    alarms.complete()

    assert t.completed is True
    assert t.reminder_sent is True
    assert alarms.active is False
    assert sound.stops == 1


def test_actions_without_session_are_noops(store: TaskStore, alarms: AlarmController, sound: FakeSound) -> None:
    t = _add(store, "A", NOW + MIN)

    assert alarms.dismiss() is None
    assert alarms.snooze(5, now_ts=NOW) is None
    assert alarms.complete() is None

    assert t.reminder_sent is False
    assert t.due_at == NOW + MIN
    assert sound.stops == 0


def test_resolving_deleted_task_still_ends_session(store: TaskStore, alarms: AlarmController) -> None:
    t = _add(store, "A", NOW - MIN)
    alarms.tick(NOW)
    store.delete_task(t.id)

    assert alarms.dismiss() is None
    assert alarms.active is False


def test_dismiss_after_due_date_edit_keeps_new_date_armed(
    store: TaskStore, alarms: AlarmController, sound: FakeSound
) -> None:
    t = _add(store, "A", NOW - MIN)
    alarms.tick(NOW)

    store.update_task(t.id, due_at=NOW + 30 * MIN)
    alarms.dismiss()

    assert alarms.active is False
    assert not sound.playing
    assert t.reminder_sent is False
    assert alarms.tick(NOW + 30 * MIN + 1) is t


def test_complete_after_due_date_edit_still_completes(store: TaskStore, alarms: AlarmController) -> None:
    t = _add(store, "A", NOW - MIN)
    alarms.tick(NOW)

    store.update_task(t.id, due_at=NOW + 30 * MIN)
    alarms.complete()

    assert t.completed is True
    assert t.reminder_sent is False
    assert alarms.tick(NOW + 60 * MIN) is None

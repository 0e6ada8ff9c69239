# src/taskflow/cli/commands.py

from __future__ import annotations

import inspect
import logging
import shlex
import time
from collections.abc import Callable
from typing import cast

from ..assistant.jobs import schedule_breakdown, schedule_summary_refresh
from ..core.state import AppState
from ..storage.theme_store import Theme
from ..tasks.task_api import (
    format_task_detail,
    format_task_line,
    minutes_until,
    parse_due,
    progress_bar,
    split_fields,
    split_steps,
)
from ..tasks.task_models import Priority, Task, TaskFilter, TaskSort
from ..tasks.task_view import compute_stats, project

CommandEmitter = Callable[[str], None]
CommandHandler2 = Callable[[AppState, list[str]], str]
CommandHandler3 = Callable[[AppState, list[str], CommandEmitter | None], str]
CommandHandler = CommandHandler2 | CommandHandler3

logger = logging.getLogger(__name__)

TASK_FIELDS = {"due", "priority", "desc", "steps", "title"}


class CommandRegistry:
    """Simple slash-command registry used by the console connector (/help, /add, ...)."""

    def __init__(self) -> None:
        self._handlers: dict[str, CommandHandler] = {}
        self._help: dict[str, str] = {}

    def register(
        self,
        name: str,
        handler: CommandHandler,
        help_text: str,
        aliases: list[str] | None = None,
    ) -> None:
        aliases = aliases or []
        key = name.lower()
        self._handlers[key] = handler
        self._help[key] = help_text
        for alias in aliases:
            self._handlers[alias.lower()] = handler

    def handle(
        self,
        state: AppState,
        line: str,
        emit: CommandEmitter | None = None,
    ) -> str | None:
        """
        Handle a string like '/command arg "quoted arg" key=value'.
        Returns a reply string or None if not a command.
        """
        if not line.startswith("/"):
            return None

        try:
            parts = shlex.split(line[1:])
        except ValueError:
            parts = line[1:].split()
        if not parts:
            return "Empty command. Use /help to list available commands."

        name = parts[0].lower()
        args = parts[1:]

        handler = self._handlers.get(name)
        if not handler:
            return f"Unknown command: /{name}. Use /help to list available commands."

        try:
            nparams = len(inspect.signature(handler).parameters)
        except (TypeError, ValueError):
            nparams = 3

        try:
            if nparams >= 3:
                h3 = cast(CommandHandler3, handler)
                return h3(state, args, emit)
            h2 = cast(CommandHandler2, handler)
            return h2(state, args)
        except ValueError as e:
            return f"Error: {e}"

    def build_help(self) -> str:
        lines = ["Available commands:"]
        for name, help_text in self._help.items():
            lines.append(f"  /{name} - {help_text}")
        return "\n".join(lines)


registry = CommandRegistry()


def _resolve(state: AppState, args: list[str]) -> Task:
    if not args:
        raise ValueError("task id is required")
    task = state.task_store.find_by_prefix(args[0])
    if task is None:
        raise ValueError(f"no task matches id {args[0]!r}")
    return task


def _count_changed(state: AppState, before: int, emit: CommandEmitter | None) -> None:
    if len(state.task_store) != before:
        schedule_summary_refresh(state, emit)


def cmd_help(state: AppState, args: list[str]) -> str:
    return registry.build_help()


def cmd_status(state: AppState, args: list[str]) -> str:
    s = state.settings
    models = ", ".join(list(getattr(s, "llm_models", []) or []))
    llm_mode = "offline" if type(state.llm).__name__.startswith("Offline") else "online"
    theme = state.theme_store.theme
    return (
        "Status:\n"
        f"  Data dir: {getattr(s, 'data_dir', '?')}\n"
        f"  Alarm check every: {getattr(s, 'alarm_interval_seconds', '?')}s\n"
        f"  Notifications: {state.notifier.permission}\n"
        f"  Theme: {'dark' if theme.dark_mode else 'light'} accent={theme.accent_color}\n"
        f"  Assistant: {llm_mode} (models: {models})"
    )


def cmd_add(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    """
    /add Title words [due=+30m|HH:MM|YYYY-MM-DD HH:MM] [priority=low|medium|high]
         [desc="..."] [steps="a; b; c"]
    """
    title, fields = split_fields(args, TASK_FIELDS)
    title = fields.get("title", title)
    if not title:
        return 'Usage: /add <title> [due=+30m] [priority=high] [desc="..."] [steps="a; b"]'

    now_ts = time.time()
    due_at = parse_due(fields["due"], now_ts=now_ts) if "due" in fields else None
    priority = Priority.parse(fields.get("priority"))

    with state.lock:
        before = len(state.task_store)
        task = state.task_store.add_task(
            title=title,
            description=fields.get("desc", ""),
            priority=priority,
            due_at=due_at,
            sub_tasks=split_steps(fields.get("steps", "")),
            now_ts=now_ts,
        )
        _count_changed(state, before, emit)
    return "Added: " + format_task_line(task, now_ts=now_ts)


def cmd_edit(state: AppState, args: list[str]) -> str:
    """/edit <id> [title="..."] [due=...] [priority=...] [desc="..."] [steps="a; b"]"""
    now_ts = time.time()
    with state.lock:
        task = _resolve(state, args)
        _, fields = split_fields(args[1:], TASK_FIELDS)
        if not fields:
            return 'Usage: /edit <id> [title="..."] [due=...] [priority=...] [desc="..."] [steps="a; b"]'
        updated = state.task_store.update_task(
            task.id,
            title=fields.get("title"),
            description=fields.get("desc"),
            priority=Priority.parse(fields["priority"]) if "priority" in fields else None,
            due_at=parse_due(fields["due"], now_ts=now_ts) if "due" in fields else None,
            sub_tasks=split_steps(fields["steps"]) if "steps" in fields else None,
        )
    if updated is None:
        return "Task not found."
    return "Updated: " + format_task_line(updated, now_ts=now_ts)


def cmd_done(state: AppState, args: list[str]) -> str:
    with state.lock:
        task = _resolve(state, args)
        ringing = state.alarms.session.task
        if state.alarms.active and ringing is not None and ringing.id == task.id and not task.completed:
            # Completing the alarming task also closes its alarm and silences the bell.
            state.alarms.complete()
        else:
            state.task_store.toggle_completed(task.id)
    return ("Completed: " if task.completed else "Reopened: ") + task.title


def cmd_rm(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    with state.lock:
        task = _resolve(state, args)
        before = len(state.task_store)
        state.task_store.delete_task(task.id)
        _count_changed(state, before, emit)
    return f"Deleted: {task.title}"


def _parse_view(args: list[str]) -> tuple[TaskFilter, TaskSort]:
    task_filter, sort = TaskFilter.ALL, TaskSort.DATE
    for a in args:
        up = a.upper()
        if up in TaskFilter.__members__:
            task_filter = TaskFilter(up)
        elif up in TaskSort.__members__:
            sort = TaskSort(up)
        else:
            raise ValueError(
                f"unknown filter/sort {a!r} (filters: all, today, upcoming, completed; "
                "sorts: date, priority, name)"
            )
    return task_filter, sort


def cmd_list(state: AppState, args: list[str]) -> str:
    """/list [all|today|upcoming|completed] [date|priority|name]"""
    task_filter, sort = _parse_view(args)
    now_ts = time.time()
    with state.lock:
        items = project(state.task_store.list_tasks(), task_filter, sort, now_ts=now_ts)

    title = "Everything" if task_filter == TaskFilter.ALL else task_filter.value.capitalize()
    if not items:
        return f"{title}: nothing on your plate right now."
    lines = [f"{title} ({len(items)}), sorted by {sort.value.lower()}:"]
    lines.extend("  " + format_task_line(t, now_ts=now_ts) for t in items)
    return "\n".join(lines)


def cmd_show(state: AppState, args: list[str]) -> str:
    with state.lock:
        task = _resolve(state, args)
        return format_task_detail(task, now_ts=time.time())


def cmd_stats(state: AppState, args: list[str]) -> str:
    with state.lock:
        stats = compute_stats(state.task_store.list_tasks(), now_ts=time.time())
        summary = state.daily_summary
    lines = [
        f"Insights: {summary}",
        f"Completion {progress_bar(stats.completion_percent)}",
        f"  {stats.completed} of {stats.total} done, {stats.pending} pending, {stats.overdue} overdue",
    ]
    if stats.overdue:
        lines.append(f"  Prioritize now: {stats.overdue} task(s) past due date.")
    return "\n".join(lines)


def cmd_step(state: AppState, args: list[str]) -> str:
    """
    /step <id> add <text>   -> append a checklist item
    /step <id> rm <n>       -> remove checklist item n (1-based)
    """
    usage = "Usage: /step <id> add <text> | /step <id> rm <n>"
    if len(args) < 3:
        return usage
    sub = args[1].lower()
    with state.lock:
        task = _resolve(state, args)
        if sub == "add":
            text = " ".join(args[2:]).strip()
            state.task_store.set_sub_tasks(task.id, [*task.sub_tasks, text])
        elif sub in ("rm", "del", "remove"):
            try:
                n = int(args[2])
            except ValueError:
                raise ValueError(f"step number must be an integer, got {args[2]!r}") from None
            if not (1 <= n <= len(task.sub_tasks)):
                return f"Task {task.id} has no step {n}."
            state.task_store.remove_sub_task(task.id, n - 1)
        else:
            return usage
        return format_task_detail(task, now_ts=time.time())


def cmd_breakdown(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    with state.lock:
        task = _resolve(state, args)
    schedule_breakdown(state, task.id, emit)
    return f"Asking the assistant to break down '{task.title}'..."


def cmd_summary(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    if args and args[0].lower() == "refresh":
        schedule_summary_refresh(state, emit)
        return "Refreshing insights..."
    with state.lock:
        return f"Insights: {state.daily_summary}"


def _render_theme(theme: Theme) -> str:
    return f"Theme: {'dark' if theme.dark_mode else 'light'} mode, accent {theme.accent_color}"


def cmd_theme(state: AppState, args: list[str]) -> str:
    """
    /theme                     -> show
    /theme dark on|off|toggle  -> dark mode
    /theme accent #RRGGBB      -> accent color
    """
    store = state.theme_store
    if not args:
        return _render_theme(store.theme)

    sub = args[0].lower()
    if sub == "dark":
        arg = args[1].lower() if len(args) > 1 else "toggle"
        if arg in ("on", "1", "true", "yes"):
            return _render_theme(store.set_dark_mode(True))
        if arg in ("off", "0", "false", "no"):
            return _render_theme(store.set_dark_mode(False))
        if arg == "toggle":
            return _render_theme(store.toggle_dark_mode())
        return "Usage: /theme dark on|off|toggle"
    if sub == "accent" and len(args) > 1:
        return _render_theme(store.set_accent_color(args[1]))
    return "Usage: /theme | /theme dark on|off|toggle | /theme accent #4f46e5"


def render_alarm(task: Task, presets: list[int], *, now_ts: float) -> str:
    late = max(0, -minutes_until(task.due_at, now_ts))
    lines = [f"[ALARM] Reminder: {task.title}"]
    if task.description:
        lines.append(f"        {task.description}")
    if late:
        lines.append(f"        due {late} min ago")
    snoozes = " | ".join(f"/snooze {m}" for m in presets)
    lines.append(f"        /complete | {snoozes} | /dismiss")
    return "\n".join(lines)


def cmd_alarm(state: AppState, args: list[str]) -> str:
    with state.lock:
        session = state.alarms.session
        if not session.active or session.task is None:
            return "No active alarm."
        presets = list(getattr(state.settings, "snooze_presets", [5, 15]))
        return render_alarm(session.task, presets, now_ts=time.time())


def cmd_dismiss(state: AppState, args: list[str]) -> str:
    task = state.alarms.dismiss()
    return "No active alarm." if task is None else f"Dismissed: {task.title}"


def cmd_snooze(state: AppState, args: list[str]) -> str:
    presets = list(getattr(state.settings, "snooze_presets", [5, 15]))
    if args:
        try:
            minutes = int(args[0])
        except ValueError:
            raise ValueError(f"minutes must be an integer, got {args[0]!r}") from None
    else:
        minutes = presets[0] if presets else 5
    task = state.alarms.snooze(minutes)
    return "No active alarm." if task is None else f"Snoozed {minutes} min: {task.title}"


def cmd_complete(state: AppState, args: list[str]) -> str:
    task = state.alarms.complete()
    return "No active alarm." if task is None else f"Completed: {task.title}"


registry.register("help", cmd_help, help_text="Show available commands.", aliases=["h", "?"])
registry.register("status", cmd_status, help_text="Show current settings.")
registry.register(
    "add",
    cmd_add,
    help_text='Add a task: /add <title> [due=+30m] [priority=high] [desc="..."] [steps="a; b"].',
    aliases=["new"],
)
registry.register("edit", cmd_edit, help_text="Edit a task: /edit <id> key=value ...")
registry.register("done", cmd_done, help_text="Toggle completion: /done <id>.", aliases=["toggle"])
registry.register("rm", cmd_rm, help_text="Delete a task: /rm <id>.", aliases=["delete"])
registry.register(
    "list",
    cmd_list,
    help_text="List tasks: /list [all|today|upcoming|completed] [date|priority|name].",
    aliases=["ls"],
)
registry.register("show", cmd_show, help_text="Show one task with its steps: /show <id>.")
registry.register("stats", cmd_stats, help_text="Progress, counters and insights.")
registry.register("step", cmd_step, help_text="Edit checklist: /step <id> add <text> | rm <n>.")
registry.register("breakdown", cmd_breakdown, help_text="AI sub-task suggestions: /breakdown <id>.")
registry.register("summary", cmd_summary, help_text="Show insights: /summary [refresh].")
registry.register("theme", cmd_theme, help_text="Appearance: /theme dark on|off | accent #hex.")
registry.register("alarm", cmd_alarm, help_text="Show the active alarm.")
registry.register("dismiss", cmd_dismiss, help_text="Dismiss the active alarm.")
registry.register("snooze", cmd_snooze, help_text="Snooze the active alarm: /snooze [minutes].")
registry.register("complete", cmd_complete, help_text="Complete the active alarm's task.")

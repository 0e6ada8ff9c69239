# src/taskflow/tasks/task_store.py

from __future__ import annotations

import json
import logging
import time
import uuid

from ..core.ports import BlobStore
from .task_models import Priority, Task

logger = logging.getLogger(__name__)


class TaskStore:
    """
    In-memory ordered task collection mirrored to a blob.

    - The list is newest-first: add_task() prepends, nothing else reorders.
    - Every mutation rewrites the whole blob (persist()).
    - Unknown ids are a no-op (None / False), never an error.

    Thread-safety:
    - none here; callers serialize access through AppState.lock
    """

    def __init__(self, blobs: BlobStore, key: str = "taskflow_tasks") -> None:
        self._blobs = blobs
        self._key = key
        self._tasks: list[Task] = self.load()
        logger.info("TaskStore ready key=%s total=%s", key, len(self._tasks))

    # ---- persistence boundary ----

    def load(self) -> list[Task]:
        """
        Read the task blob. Missing or unparsable data means "no tasks";
        individually malformed records are skipped.
        """
        try:
            raw = self._blobs.get(self._key)
        except Exception:
            logger.exception("Failed to read task blob key=%s", self._key)
            return []
        if not raw:
            return []

        try:
            data = json.loads(raw)
        except ValueError:
            logger.warning("Task blob key=%s is not valid JSON; starting empty.", self._key)
            return []
        if not isinstance(data, list):
            logger.warning("Task blob key=%s is not a list; starting empty.", self._key)
            return []

        out: list[Task] = []
        seen: set[str] = set()
        for item in data:
            if not isinstance(item, dict):
                continue
            try:
                task = Task.from_dict(item)
            except (KeyError, ValueError, TypeError):
                logger.debug("Skipping malformed task record: %r", item)
                continue
            if task.id in seen:
                continue
            seen.add(task.id)
            out.append(task)
        return out

    def persist(self) -> None:
        payload = json.dumps([t.to_dict() for t in self._tasks], ensure_ascii=False, indent=2)
        try:
            self._blobs.set(self._key, payload)
        except Exception:
            logger.exception("Failed to persist %d tasks key=%s", len(self._tasks), self._key)

    # ---- low-level helpers ----

    def _new_id(self) -> str:
        existing = {t.id for t in self._tasks}
        while True:
            candidate = uuid.uuid4().hex[:9]
            if candidate not in existing:
                return candidate

    def _index_of(self, task_id: str) -> int | None:
        for i, t in enumerate(self._tasks):
            if t.id == task_id:
                return i
        return None

    # ---- public API ----

    def __len__(self) -> int:
        return len(self._tasks)

    def list_tasks(self) -> list[Task]:
        """Snapshot of the collection in store order (newest first)."""
        return list(self._tasks)

    def get_task(self, task_id: str) -> Task | None:
        idx = self._index_of(task_id)
        return None if idx is None else self._tasks[idx]

    def find_by_prefix(self, prefix: str) -> Task | None:
        """Resolve a full id or a unique id prefix; ambiguous prefixes resolve to None."""
        prefix = (prefix or "").strip()
        if not prefix:
            return None
        exact = self.get_task(prefix)
        if exact is not None:
            return exact
        matches = [t for t in self._tasks if t.id.startswith(prefix)]
        return matches[0] if len(matches) == 1 else None

    def add_task(
        self,
        *,
        title: str,
        description: str = "",
        priority: Priority = Priority.MEDIUM,
        due_at: float | None = None,
        sub_tasks: list[str] | None = None,
        now_ts: float | None = None,
    ) -> Task:
        if not title or not title.strip():
            raise ValueError("title is required")

        now = time.time() if now_ts is None else float(now_ts)
        task = Task(
            id=self._new_id(),
            title=title.strip(),
            description=(description or "").strip(),
            priority=priority,
            due_at=now if due_at is None else float(due_at),
            created_at=now,
            completed=False,
            reminder_sent=False,
            sub_tasks=[s.strip() for s in (sub_tasks or []) if s and s.strip()],
        )
        self._tasks.insert(0, task)
        self.persist()
        logger.debug("Task added id=%s priority=%s due_at=%s", task.id, task.priority.value, task.due_at)
        return task

    def update_task(
        self,
        task_id: str,
        *,
        title: str | None = None,
        description: str | None = None,
        priority: Priority | None = None,
        due_at: float | None = None,
        completed: bool | None = None,
        reminder_sent: bool | None = None,
        sub_tasks: list[str] | None = None,
    ) -> Task | None:
        """
        Partial in-place update. A changed due_at re-arms the reminder
        (reminder_sent=False) unless reminder_sent is passed explicitly.
        """
        task = self.get_task(task_id)
        if task is None:
            return None

        if title is not None:
            if not title.strip():
                raise ValueError("title cannot be empty")
            task.title = title.strip()
        if description is not None:
            task.description = description.strip()
        if priority is not None:
            task.priority = priority
        if due_at is not None and float(due_at) != task.due_at:
            task.due_at = float(due_at)
            if reminder_sent is None:
                task.reminder_sent = False
        if completed is not None:
            task.completed = bool(completed)
        if reminder_sent is not None:
            task.reminder_sent = bool(reminder_sent)
        if sub_tasks is not None:
            task.sub_tasks = [s.strip() for s in sub_tasks if s and s.strip()]

        self.persist()
        return task

    def toggle_completed(self, task_id: str) -> Task | None:
        task = self.get_task(task_id)
        if task is None:
            return None
        task.completed = not task.completed
        self.persist()
        logger.debug("Task %s completed=%s", task_id, task.completed)
        return task

    def delete_task(self, task_id: str) -> bool:
        idx = self._index_of(task_id)
        if idx is None:
            return False
        del self._tasks[idx]
        self.persist()
        logger.debug("Task deleted id=%s", task_id)
        return True

    def set_sub_tasks(self, task_id: str, steps: list[str]) -> Task | None:
        return self.update_task(task_id, sub_tasks=steps)

    def remove_sub_task(self, task_id: str, index: int) -> Task | None:
        """Drop the checklist item at a zero-based index; out-of-range is a no-op."""
        task = self.get_task(task_id)
        if task is None or not (0 <= index < len(task.sub_tasks)):
            return task
        del task.sub_tasks[index]
        self.persist()
        return task

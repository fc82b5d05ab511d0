from __future__ import annotations

import logging
from collections.abc import Collection
from enum import Enum
from typing import Any

import inject

from src.scripthub.application.audit import AuditLog
from src.scripthub.domain.events import TaskEvent
from src.scripthub.domain.models.task import Task
from src.scripthub.domain.models.task_changes import TaskChanges
from src.scripthub.domain.models.task_status import TaskStatus
from src.scripthub.domain.repositories import TaskRepository

logger = logging.getLogger(__name__)

# Terminal writes are guarded by the non-final states only. A row that is
# already final is never rewritten; the reload below turns a same-data race
# into an idempotent success and a different-data race into a refusal.
_OPEN_STATES = frozenset({TaskStatus.PENDING, TaskStatus.PROCESSING})


class Transition(str, Enum):
    """How a terminal transition request ended."""

    WRITTEN = "written"
    # Stored state already equals the requested one; nothing was written.
    MATCHED = "matched"
    REFUSED = "refused"

    @property
    def succeeded(self) -> bool:
        return self != Transition.REFUSED


class TaskStateMachine:
    """
    Task lifecycle transitions enforced with conditional updates.

    Every transition is a single compare-and-set against the task row. When the
    update affects no rows another writer moved the task first, so the task is
    reloaded and the call succeeds only if the stored state is exactly the one
    requested. All methods update the given ``Task`` in place.
    """

    def __init__(
        self,
        repository: TaskRepository | None = None,
        audit: AuditLog | None = None,
    ) -> None:
        self._repository = repository or inject.instance(TaskRepository)
        self._audit = audit or inject.instance(AuditLog)

    async def mark_processing(self, task: Task) -> bool:
        if task.status == TaskStatus.PROCESSING:
            return True
        if not task.can_process():
            return False

        old_status = task.status
        changes = TaskChanges(status=TaskStatus.PROCESSING)
        if await self._apply(task, {TaskStatus.PENDING}, changes):
            await self._audit.record(TaskEvent.status_changed(task, old_status))
            return True

        await self.refresh(task)
        return task.status == TaskStatus.PROCESSING

    async def mark_completed(
        self, task: Task, output: str, metadata: dict[str, Any] | None = None
    ) -> bool:
        return (await self.complete(task, output, metadata)).succeeded

    async def mark_failed(self, task: Task, detail: str) -> bool:
        return (await self.fail(task, detail)).succeeded

    async def complete(
        self, task: Task, output: str, metadata: dict[str, Any] | None = None
    ) -> Transition:
        """Move ``task`` to COMPLETED, reporting whether this call did the write."""
        metadata = metadata or {}
        if task.status == TaskStatus.COMPLETED:
            return _matched(task.has_completion(output, metadata))
        if task.is_final():
            return Transition.REFUSED

        old_status = task.status
        changes = TaskChanges(
            status=TaskStatus.COMPLETED,
            result_output=output,
            result_metadata=metadata,
            failure_detail=None,
            touch_results=True,
        )
        if await self._apply(task, _OPEN_STATES, changes):
            await self._audit.record(TaskEvent.status_changed(task, old_status))
            await self._audit.record(TaskEvent.completed(task))
            return Transition.WRITTEN

        await self.refresh(task)
        return _matched(task.has_completion(output, metadata))

    async def fail(self, task: Task, detail: str) -> Transition:
        """Move ``task`` to FAILED, reporting whether this call did the write."""
        if task.status == TaskStatus.FAILED:
            return _matched(task.has_failure(detail))
        if task.is_final():
            return Transition.REFUSED

        old_status = task.status
        changes = TaskChanges(
            status=TaskStatus.FAILED,
            result_output=None,
            result_metadata=None,
            failure_detail=detail,
            touch_results=True,
        )
        if await self._apply(task, _OPEN_STATES, changes):
            await self._audit.record(TaskEvent.status_changed(task, old_status))
            await self._audit.record(TaskEvent.failed(task))
            return Transition.WRITTEN

        await self.refresh(task)
        return _matched(task.has_failure(detail))

    async def refresh(self, task: Task) -> Task:
        """Overwrite ``task`` with its persisted state."""
        stored = await self._repository.get_task(_require_id(task))
        for field in Task.model_fields:
            setattr(task, field, getattr(stored, field))
        return task

    async def _apply(
        self, task: Task, expected: Collection[TaskStatus], changes: TaskChanges
    ) -> bool:
        task_id = _require_id(task)
        affected = await self._repository.compare_and_set(task_id, expected, changes)
        if affected == 0:
            logger.info(
                "Conditional update matched no rows",
                extra={"task_id": task_id, "target": changes.status.value},
            )
            return False

        task.status = changes.status
        if changes.touch_results:
            task.result_output = changes.result_output
            task.result_metadata = changes.result_metadata
            task.failure_detail = changes.failure_detail
        return True


def _require_id(task: Task) -> str:
    if task.id is None:
        raise ValueError("Task id is required for state transitions.")
    return task.id


def _matched(same: bool) -> Transition:
    return Transition.MATCHED if same else Transition.REFUSED

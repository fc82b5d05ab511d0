from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any, cast

import inject

from src.scripthub.application.audit import AuditLog
from src.scripthub.application.reconciler import ResultReconciler
from src.scripthub.application.state_machine import TaskStateMachine
from src.scripthub.domain.events import TaskEvent
from src.scripthub.domain.exceptions import (
    InvalidTaskStateError,
    PayloadValidationError,
    TaskNotFoundError,
)
from src.scripthub.domain.models import ReconcileOutcome, ResultPayload, Task, TaskStatus
from src.scripthub.domain.repositories import TaskManagerRepository, TaskRepository

logger = logging.getLogger(__name__)

_REQUIRED_FIELDS = ("reference_input", "outcome_goal")


class TaskService:
    """Create, dispatch and reconcile script transformation tasks."""

    def __init__(
        self,
        repository: TaskRepository | None = None,
        task_manager: TaskManagerRepository | None = None,
        audit: AuditLog | None = None,
    ) -> None:
        self._repository = repository or cast(TaskRepository, inject.instance(TaskRepository))
        self._task_manager = task_manager or cast(
            TaskManagerRepository, inject.instance(TaskManagerRepository)
        )
        self._audit = audit or cast(AuditLog, inject.instance(AuditLog))
        self._state_machine = TaskStateMachine(self._repository, self._audit)
        self._reconciler = ResultReconciler(self._state_machine, self._audit)

    async def create(self, data: Mapping[str, Any]) -> Task:
        """Validate and store a new pending task."""
        errors = {
            name: "This field is required."
            for name in _REQUIRED_FIELDS
            if not isinstance(data.get(name), str) or not data[name].strip()
        }
        if errors:
            raise PayloadValidationError(
                f"Invalid input for fields: {', '.join(errors)}", errors=errors
            )

        task = await self._repository.create_task(
            Task(
                reference_input=data["reference_input"],
                outcome_goal=data["outcome_goal"],
                status=TaskStatus.PENDING,
            )
        )
        logger.info("Task created", extra={"task_id": task.id})
        await self._audit.record(TaskEvent.created(task))
        return task

    async def create_and_dispatch(self, data: Mapping[str, Any]) -> Task:
        """
        Create a task and hand it to the dispatch substrate.

        If handing off fails the task is kept and marked failed before the
        error is re-raised; it is never rolled back.
        """
        task = await self.create(data)
        try:
            await self.dispatch(task)
        except Exception as exc:
            logger.exception("Task dispatch failed", extra={"task_id": task.id})
            await self._state_machine.mark_failed(task, f"Failed to enqueue task: {exc}")
            raise
        return task

    async def dispatch(self, task: Task) -> None:
        if not task.can_process():
            raise InvalidTaskStateError(task.id or "", task.status.value, "dispatch")
        await self._task_manager.enqueue(task)
        logger.info("Task dispatched", extra={"task_id": task.id})
        await self._audit.record(TaskEvent.dispatched(task))

    async def reconcile(self, task: Task, payload: ResultPayload) -> ReconcileOutcome:
        return await self._reconciler.reconcile(task, payload)

    async def find(self, task_id: str) -> Task:
        return await self._repository.get_task(task_id)

    async def process_callback(self, task_id: str, payload: ResultPayload) -> ReconcileOutcome:
        """Reconcile a callback by task id, folding lookups and validation into the outcome."""
        try:
            task = await self.find(task_id)
        except TaskNotFoundError:
            logger.warning("Callback for unknown task", extra={"task_id": task_id})
            return ReconcileOutcome.not_found(task_id)

        try:
            return await self.reconcile(task, payload)
        except PayloadValidationError as exc:
            logger.warning(
                "Rejected malformed callback", extra={"task_id": task_id, "error": str(exc)}
            )
            return ReconcileOutcome.rejected(task_id, str(exc), status=task.status)

from __future__ import annotations

from collections.abc import Collection
from typing import Protocol

from src.scripthub.domain.events import TaskEvent
from src.scripthub.domain.models.task import Task
from src.scripthub.domain.models.task_changes import TaskChanges
from src.scripthub.domain.models.task_status import TaskStatus
from src.scripthub.domain.models.work_request import WorkerResponse, WorkRequest


class TaskRepository(Protocol):
    """Durable task rows keyed by id, mutated only through conditional updates."""

    async def create_task(self, task: Task) -> Task:
        """Persist a new task, assigning id and timestamps, and return the stored copy."""

    async def get_task(self, task_id: str) -> Task:
        """Fetch a task by id or raise ``TaskNotFoundError``."""

    async def compare_and_set(
        self,
        task_id: str,
        expected: Collection[TaskStatus],
        changes: TaskChanges,
    ) -> int:
        """Apply ``changes`` only if the row's status is in ``expected``; return rows affected."""


class TaskManagerRepository(Protocol):
    """Hands a stored task to the dispatch substrate."""

    async def enqueue(self, task: Task) -> str:
        """Schedule dispatch of the task and return its identifier."""


class WorkerClient(Protocol):
    """Capability for sending work requests to the external worker."""

    async def send(self, request: WorkRequest) -> WorkerResponse:
        """Send a work request; raise ``TransientWorkerError`` for retryable failures."""

    def webhook_address(self) -> str:
        """Address requests are sent to, for diagnostics."""


class AuditSink(Protocol):
    async def publish(self, event: TaskEvent) -> None:
        """Record a task lifecycle event."""

from __future__ import annotations

import asyncio

from src.scripthub.domain.models.task import Task
from src.scripthub.domain.repositories import TaskManagerRepository
from src.scripthub.infrastructure.celery.app import celery_app

DISPATCH_TASK_NAME = "dispatch_script_task"


class CeleryTaskManager(TaskManagerRepository):
    """
    Queues task dispatch on the Celery broker; the worker runs the dispatcher.
    """

    def __init__(self, celery_app_instance=celery_app, queue: str | None = None):
        self._celery_app = celery_app_instance
        self._queue = queue

    async def enqueue(self, task: Task) -> str:
        """
        Enqueue dispatch of a stored task and return the broker message id.
        """
        if task.id is None:
            raise ValueError("Task id is required to enqueue a task.")
        async_result = await asyncio.to_thread(
            self._celery_app.send_task,
            DISPATCH_TASK_NAME,
            args=[task.id],
            queue=self._queue,
        )
        return async_result.id

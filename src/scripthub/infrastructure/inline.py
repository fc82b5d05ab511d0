from __future__ import annotations

from src.scripthub.application.dispatcher import Dispatcher
from src.scripthub.domain.models.task import Task
from src.scripthub.domain.repositories import TaskManagerRepository


class InlineTaskManager(TaskManagerRepository):
    """Runs the dispatcher in the calling process instead of going through a broker."""

    def __init__(self, dispatcher: Dispatcher) -> None:
        self._dispatcher = dispatcher

    async def enqueue(self, task: Task) -> str:
        if task.id is None:
            raise ValueError("Task id is required to enqueue a task.")
        await self._dispatcher.dispatch(task)
        return task.id

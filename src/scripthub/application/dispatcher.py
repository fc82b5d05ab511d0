from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from src.scripthub.application.state_machine import TaskStateMachine
from src.scripthub.domain.exceptions import InvalidTaskStateError, TransientWorkerError
from src.scripthub.domain.models.task import Task
from src.scripthub.domain.models.work_request import WorkerResponse, WorkRequest
from src.scripthub.domain.repositories import WorkerClient

logger = logging.getLogger(__name__)

Sleep = Callable[[float], Awaitable[None]]


@dataclass(frozen=True)
class RetryPolicy:
    max_attempts: int = 3
    backoff_seconds: tuple[float, ...] = (10.0, 30.0, 60.0)

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if any(delay < 0 for delay in self.backoff_seconds):
            raise ValueError("backoff delays must be non-negative")

    def delay_for(self, attempt: int) -> float:
        """Pause after the given failed attempt (1-based); the last delay repeats."""
        if not self.backoff_seconds:
            return 0.0
        index = min(attempt, len(self.backoff_seconds)) - 1
        return self.backoff_seconds[index]


class Dispatcher:
    """
    Sends a task's work request to the external worker.

    Transient send failures are retried according to the retry policy. Each
    retry reloads the task first, so a task finalized by a callback or an
    operator between attempts is never sent again. When every attempt fails the
    task is marked failed; that failure is final for this component.
    """

    def __init__(
        self,
        client: WorkerClient,
        state_machine: TaskStateMachine,
        *,
        policy: RetryPolicy | None = None,
        callback_url_template: str | None = None,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self._client = client
        self._state_machine = state_machine
        self._policy = policy or RetryPolicy()
        self._callback_url_template = callback_url_template
        self._sleep = sleep

    @property
    def policy(self) -> RetryPolicy:
        return self._policy

    async def dispatch(self, task: Task) -> WorkerResponse | None:
        """
        Deliver ``task`` to the worker.

        Returns the worker's response, or ``None`` when nothing was accepted
        (attempts exhausted, or the task left a dispatchable state between
        attempts). Raises ``InvalidTaskStateError`` if the task cannot be
        dispatched on the first attempt.
        """
        logger.info(
            "Dispatching task to worker",
            extra={"task_id": task.id, "webhook_url": self._client.webhook_address()},
        )
        last_error: TransientWorkerError | None = None
        for attempt in range(1, self._policy.max_attempts + 1):
            if attempt > 1:
                await self._sleep(self._policy.delay_for(attempt - 1))
                await self._state_machine.refresh(task)
                if not task.can_process():
                    logger.info(
                        "Task is no longer dispatchable, stopping retries",
                        extra={"task_id": task.id, "status": task.status.value},
                    )
                    return None

            try:
                response = await self._attempt(task)
            except TransientWorkerError as exc:
                last_error = exc
                logger.warning(
                    "Worker send failed",
                    extra={
                        "task_id": task.id,
                        "attempt": attempt,
                        "max_attempts": self._policy.max_attempts,
                        "error": str(exc),
                    },
                )
                continue

            if not response.success:
                reason = response.message or "no reason given"
                logger.warning(
                    "Worker rejected task", extra={"task_id": task.id, "reason": reason}
                )
                await self._state_machine.mark_failed(task, f"Worker rejected task: {reason}")
                return response

            logger.info(
                "Worker accepted task",
                extra={
                    "task_id": task.id,
                    "attempt": attempt,
                    "worker_message": response.message,
                },
            )
            return response

        detail = (
            f"Failed to trigger worker after {self._policy.max_attempts} attempts: {last_error}"
        )
        logger.error("Dispatch attempts exhausted", extra={"task_id": task.id, "detail": detail})
        await self._state_machine.mark_failed(task, detail)
        return None

    def build_request(self, task: Task) -> WorkRequest:
        if task.id is None:
            raise ValueError("Task id is required to build a work request.")
        callback_url = None
        if self._callback_url_template:
            callback_url = self._callback_url_template.format(task_id=task.id)
        return WorkRequest(
            task_id=task.id,
            reference_input=task.reference_input,
            outcome_goal=task.outcome_goal,
            callback_url=callback_url,
        )

    async def _attempt(self, task: Task) -> WorkerResponse:
        if not task.can_process():
            raise InvalidTaskStateError(task.id or "", task.status.value, "dispatch")
        if not await self._state_machine.mark_processing(task):
            raise InvalidTaskStateError(task.id or "", task.status.value, "dispatch")
        return await self._client.send(self.build_request(task))

from __future__ import annotations

import logging
from typing import Any

from src.scripthub.application.audit import AuditLog
from src.scripthub.application.state_machine import TaskStateMachine, Transition
from src.scripthub.domain.events import TaskEvent
from src.scripthub.domain.exceptions import PayloadValidationError
from src.scripthub.domain.models.outcome import ReconcileOutcome
from src.scripthub.domain.models.result_payload import PayloadKind, ResultPayload
from src.scripthub.domain.models.task import Task
from src.scripthub.domain.models.task_status import TaskStatus

logger = logging.getLogger(__name__)


class ResultReconciler:
    """
    Applies worker callbacks to tasks exactly once.

    A callback that matches the stored terminal state is an idempotent replay
    and reported as applied. A callback that disagrees with a finalized task is
    reported as a conflict; it is an expected outcome of duplicate or racing
    callbacks, not an error. The reported status is always the stored one.
    """

    def __init__(self, state_machine: TaskStateMachine, audit: AuditLog) -> None:
        self._state_machine = state_machine
        self._audit = audit

    async def reconcile(self, task: Task, payload: ResultPayload) -> ReconcileOutcome:
        kind = payload.kind
        logger.info(
            "Reconciling worker result",
            extra={"task_id": task.id, "status": task.status.value, "payload_type": kind.value},
        )
        if kind == PayloadKind.MALFORMED:
            raise PayloadValidationError(
                "Either new_script or error must be provided.",
                errors={"payload": "missing new_script and error"},
            )
        if kind == PayloadKind.SUCCESS:
            return await self._complete(task, payload.output or "", payload.metadata or {})
        return await self._fail(task, payload.error_message or "")

    async def _complete(
        self, task: Task, output: str, metadata: dict[str, Any]
    ) -> ReconcileOutcome:
        transition = await self._state_machine.complete(task, output, metadata)
        if transition.succeeded:
            return await self._applied(
                task, "completion", replay=transition == Transition.MATCHED
            )

        if task.status == TaskStatus.FAILED:
            message = "Conflict with final failed state"
        else:
            message = "Conflicting completion for finalized task"
        return await self._conflict(task, "completion", message)

    async def _fail(self, task: Task, detail: str) -> ReconcileOutcome:
        transition = await self._state_machine.fail(task, detail)
        if transition.succeeded:
            return await self._applied(task, "failure", replay=transition == Transition.MATCHED)

        if task.status == TaskStatus.COMPLETED:
            message = "Conflict with final completed state"
        else:
            message = "Conflicting failure for finalized task"
        return await self._conflict(task, "failure", message)

    async def _applied(self, task: Task, operation: str, *, replay: bool) -> ReconcileOutcome:
        if replay:
            await self._audit.record(TaskEvent.idempotent_replay(task, operation))
            message = "Result already applied"
        else:
            message = "Result applied"
        logger.info(
            message,
            extra={"task_id": task.id, "status": task.status.value, "operation": operation},
        )
        return ReconcileOutcome.applied_to(
            task.id or "", task.status, message, was_updated=not replay
        )

    async def _conflict(self, task: Task, operation: str, message: str) -> ReconcileOutcome:
        logger.warning(
            message,
            extra={"task_id": task.id, "status": task.status.value, "operation": operation},
        )
        await self._audit.record(TaskEvent.conflict(task, operation))
        return ReconcileOutcome.conflicting(task.id or "", task.status, message)

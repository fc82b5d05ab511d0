from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field

from src.scripthub.domain.models.task_status import TaskStatus


class OutcomeKind(str, Enum):
    APPLIED = "applied"
    CONFLICT = "conflict"
    REJECTED = "rejected"
    NOT_FOUND = "not_found"


class ReconcileOutcome(BaseModel):
    """Result of feeding a worker callback through the reconciler."""

    kind: OutcomeKind = Field(description="Which branch the callback ended in.")
    task_id: str = Field(description="Identifier of the reconciled task.")
    status: TaskStatus | None = Field(
        default=None, description="Persisted status after the call; None if the task is unknown."
    )
    message: str = Field(description="Human-readable explanation.")
    was_updated: bool = Field(
        default=False, description="Whether this call wrote to the store."
    )

    @property
    def applied(self) -> bool:
        return self.kind == OutcomeKind.APPLIED

    @property
    def conflict(self) -> bool:
        return self.kind == OutcomeKind.CONFLICT

    @classmethod
    def applied_to(
        cls, task_id: str, status: TaskStatus, message: str, *, was_updated: bool
    ) -> ReconcileOutcome:
        return cls(
            kind=OutcomeKind.APPLIED,
            task_id=task_id,
            status=status,
            message=message,
            was_updated=was_updated,
        )

    @classmethod
    def conflicting(cls, task_id: str, status: TaskStatus, message: str) -> ReconcileOutcome:
        return cls(kind=OutcomeKind.CONFLICT, task_id=task_id, status=status, message=message)

    @classmethod
    def rejected(
        cls, task_id: str, message: str, status: TaskStatus | None = None
    ) -> ReconcileOutcome:
        return cls(kind=OutcomeKind.REJECTED, task_id=task_id, status=status, message=message)

    @classmethod
    def not_found(cls, task_id: str) -> ReconcileOutcome:
        return cls(
            kind=OutcomeKind.NOT_FOUND,
            task_id=task_id,
            message=f"Task with id '{task_id}' was not found.",
        )

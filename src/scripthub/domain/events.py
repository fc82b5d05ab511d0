from __future__ import annotations

from datetime import UTC, datetime
from enum import Enum
from typing import Any
from uuid import uuid4

from pydantic import BaseModel, Field

from src.scripthub.domain.models.task import Task
from src.scripthub.domain.models.task_status import TaskStatus


class EventType(str, Enum):
    TASK_CREATED = "task.created"
    TASK_DISPATCHED = "task.dispatched"
    TASK_STATUS_CHANGED = "task.status_changed"
    TASK_COMPLETED = "task.completed"
    TASK_FAILED = "task.failed"
    TASK_IDEMPOTENT_REPLAY = "task.idempotent_replay"
    TASK_CONFLICT = "task.conflict"


class TaskEvent(BaseModel):
    event_id: str = Field(default_factory=lambda: uuid4().hex)
    type: EventType
    task_id: str
    ts: datetime = Field(default_factory=lambda: datetime.now(UTC))
    payload: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def created(cls, task: Task) -> TaskEvent:
        return cls(
            type=EventType.TASK_CREATED,
            task_id=task.id or "",
            payload={
                "reference_input_length": len(task.reference_input),
                "outcome_goal_length": len(task.outcome_goal),
                "status": task.status.value,
            },
        )

    @classmethod
    def dispatched(cls, task: Task) -> TaskEvent:
        return cls(
            type=EventType.TASK_DISPATCHED,
            task_id=task.id or "",
            payload={"status": task.status.value},
        )

    @classmethod
    def status_changed(cls, task: Task, old_status: TaskStatus) -> TaskEvent:
        return cls(
            type=EventType.TASK_STATUS_CHANGED,
            task_id=task.id or "",
            payload={"old_status": old_status.value, "new_status": task.status.value},
        )

    @classmethod
    def completed(cls, task: Task) -> TaskEvent:
        return cls(
            type=EventType.TASK_COMPLETED,
            task_id=task.id or "",
            payload={
                "output_length": len(task.result_output or ""),
                "metadata_keys": sorted((task.result_metadata or {}).keys()),
            },
        )

    @classmethod
    def failed(cls, task: Task) -> TaskEvent:
        return cls(
            type=EventType.TASK_FAILED,
            task_id=task.id or "",
            payload={"failure_detail": task.failure_detail},
        )

    @classmethod
    def idempotent_replay(cls, task: Task, operation: str) -> TaskEvent:
        return cls(
            type=EventType.TASK_IDEMPOTENT_REPLAY,
            task_id=task.id or "",
            payload={"operation": operation, "status": task.status.value},
        )

    @classmethod
    def conflict(cls, task: Task, operation: str) -> TaskEvent:
        return cls(
            type=EventType.TASK_CONFLICT,
            task_id=task.id or "",
            payload={"operation": operation, "status": task.status.value},
        )

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from src.scripthub.domain.models.task import Task
from src.scripthub.domain.models.task_status import TaskStatus


class TaskView(BaseModel):
    """Client-facing representation of a task; result fields follow the status."""

    id: str = Field(description="Unique task identifier.")
    status: TaskStatus = Field(description="Current lifecycle status.")
    new_script: str | None = Field(default=None, description="Transformed script.")
    analysis: dict[str, Any] | None = Field(default=None, description="Worker analysis.")
    error_details: str | None = Field(default=None, description="Failure description.")
    created_at: datetime | None = Field(default=None, description="Creation timestamp.")
    updated_at: datetime | None = Field(default=None, description="Last update timestamp.")

    @classmethod
    def from_task(cls, task: Task) -> "TaskView":
        view = cls(
            id=task.id or "",
            status=task.status,
            created_at=task.created_at,
            updated_at=task.updated_at,
        )
        if task.status == TaskStatus.COMPLETED:
            view.new_script = task.result_output
            view.analysis = task.result_metadata
        elif task.status == TaskStatus.FAILED:
            view.error_details = task.failure_detail
        return view

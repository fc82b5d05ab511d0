from typing import Any

from pydantic import BaseModel, Field

from src.scripthub.domain.models.task_status import TaskStatus


class TaskChanges(BaseModel):
    """Column values written by a single conditional update."""

    status: TaskStatus = Field(description="Target status.")
    result_output: str | None = Field(default=None, description="Output to store.")
    result_metadata: dict[str, Any] | None = Field(default=None, description="Metadata to store.")
    failure_detail: str | None = Field(default=None, description="Failure detail to store.")
    # Status-only transitions leave result/failure columns untouched.
    touch_results: bool = Field(
        default=False, description="Whether result and failure columns are written."
    )

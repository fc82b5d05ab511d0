from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from src.scripthub.domain.models.task_status import TaskStatus


class Task(BaseModel):
    id: str | None = Field(default=None, description="Unique task identifier.")
    reference_input: str = Field(description="Original script to transform.")
    outcome_goal: str = Field(description="Natural-language description of the desired outcome.")
    status: TaskStatus = Field(default=TaskStatus.PENDING, description="Current lifecycle status.")
    result_output: str | None = Field(
        default=None, description="Transformed script, set only on completion."
    )
    result_metadata: dict[str, Any] | None = Field(
        default=None, description="Worker analysis accompanying the transformed script."
    )
    failure_detail: str | None = Field(
        default=None, description="Human-readable error, set only on failure."
    )
    created_at: datetime | None = Field(default=None, description="When the task was stored.")
    updated_at: datetime | None = Field(default=None, description="Last store mutation.")

    def is_final(self) -> bool:
        return self.status.is_final()

    def can_process(self) -> bool:
        return self.status.can_process()

    def has_completion(self, output: str, metadata: dict[str, Any]) -> bool:
        return (
            self.status == TaskStatus.COMPLETED
            and self.result_output == output
            and (self.result_metadata or {}) == metadata
        )

    def has_failure(self, detail: str) -> bool:
        return self.status == TaskStatus.FAILED and self.failure_detail == detail

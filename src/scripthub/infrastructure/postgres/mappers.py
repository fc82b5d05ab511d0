from __future__ import annotations

from src.scripthub.domain.models.task import Task
from src.scripthub.infrastructure.postgres.orm import ScriptTaskRow


class OrmMapper:
    @staticmethod
    def to_task_row(task: Task) -> ScriptTaskRow:
        if task.id is None:
            raise ValueError("Task id is required to persist ScriptTaskRow.")
        if task.created_at is None or task.updated_at is None:
            raise ValueError("Task timestamps are required to persist ScriptTaskRow.")
        return ScriptTaskRow(
            id=task.id,
            reference_input=task.reference_input,
            outcome_goal=task.outcome_goal,
            status=task.status,
            result_output=task.result_output,
            result_metadata=task.result_metadata,
            failure_detail=task.failure_detail,
            created_at=task.created_at,
            updated_at=task.updated_at,
        )

    @staticmethod
    def to_domain_task(row: ScriptTaskRow) -> Task:
        return Task(
            id=row.id,
            reference_input=row.reference_input,
            outcome_goal=row.outcome_goal,
            status=row.status,
            result_output=row.result_output,
            result_metadata=row.result_metadata,
            failure_detail=row.failure_detail,
            created_at=row.created_at,
            updated_at=row.updated_at,
        )

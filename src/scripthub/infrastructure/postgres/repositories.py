from __future__ import annotations

from collections.abc import Collection, Iterator
from contextlib import contextmanager
from datetime import UTC, datetime
from typing import Any
from uuid import uuid4

from sqlalchemy import update
from sqlalchemy.exc import SQLAlchemyError

from src.scripthub.domain.exceptions import PersistenceError, TaskNotFoundError
from src.scripthub.domain.models.task import Task
from src.scripthub.domain.models.task_changes import TaskChanges
from src.scripthub.domain.models.task_status import TaskStatus
from src.scripthub.domain.repositories import TaskRepository
from src.scripthub.infrastructure.postgres.mappers import OrmMapper
from src.scripthub.infrastructure.postgres.orm import PostgresOrm, ScriptTaskRow


@contextmanager
def _persistence_errors(operation: str) -> Iterator[None]:
    try:
        yield
    except SQLAlchemyError as exc:
        raise PersistenceError(f"Task store failed to {operation}: {exc}") from exc


class PostgresTaskRepository(TaskRepository):
    """Task storage on SQLAlchemy async sessions; transitions are single conditional UPDATEs."""

    def __init__(self, orm: PostgresOrm) -> None:
        self._orm = orm

    async def create_task(self, task: Task) -> Task:
        """Persist a new task and return it with id and timestamps filled in."""
        now = datetime.now(UTC)
        stored = task.model_copy(
            update={"id": task.id or uuid4().hex, "created_at": now, "updated_at": now}
        )
        task_row = OrmMapper.to_task_row(stored)

        with _persistence_errors("create task"):
            async with self._orm.session_factory() as session:
                async with session.begin():
                    session.add(task_row)
        return stored

    async def get_task(self, task_id: str) -> Task:
        """Fetch a task by id."""
        with _persistence_errors("load task"):
            async with self._orm.session_factory() as session:
                task_row = await session.get(ScriptTaskRow, task_id)

        if task_row is None:
            raise TaskNotFoundError(task_id)
        return OrmMapper.to_domain_task(task_row)

    async def compare_and_set(
        self,
        task_id: str,
        expected: Collection[TaskStatus],
        changes: TaskChanges,
    ) -> int:
        """UPDATE ... WHERE id = :id AND status IN (:expected); returns the affected row count."""
        values: dict[str, Any] = {
            "status": changes.status,
            "updated_at": datetime.now(UTC),
        }
        if changes.touch_results:
            values["result_output"] = changes.result_output
            values["result_metadata"] = changes.result_metadata
            values["failure_detail"] = changes.failure_detail

        statement = (
            update(ScriptTaskRow)
            .where(
                ScriptTaskRow.id == task_id,
                ScriptTaskRow.status.in_(sorted(expected, key=lambda status: status.value)),
            )
            .values(**values)
            .execution_options(synchronize_session=False)
        )

        with _persistence_errors("update task"):
            async with self._orm.session_factory() as session:
                async with session.begin():
                    result = await session.execute(statement)
                    affected = result.rowcount
        return affected

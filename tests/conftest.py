from __future__ import annotations

import asyncio
from collections.abc import Callable, Collection
from datetime import UTC, datetime
from uuid import uuid4

import pytest
import pytest_asyncio

from src.scripthub.application.audit import AuditLog
from src.scripthub.application.dispatcher import Dispatcher, RetryPolicy
from src.scripthub.application.services import TaskService
from src.scripthub.application.state_machine import TaskStateMachine
from src.scripthub.domain.events import EventType, TaskEvent
from src.scripthub.domain.exceptions import TaskNotFoundError
from src.scripthub.domain.models.task import Task
from src.scripthub.domain.models.task_changes import TaskChanges
from src.scripthub.domain.models.task_status import TaskStatus
from src.scripthub.domain.models.work_request import WorkerResponse, WorkRequest
from src.scripthub.domain.repositories import AuditSink, TaskRepository, WorkerClient
from src.scripthub.infrastructure.inline import InlineTaskManager
from src.scripthub.infrastructure.postgres.orm import PostgresOrm


class InMemoryTaskRepository(TaskRepository):
    """Dict-backed task store with the same conditional update contract as the SQL one."""

    def __init__(self) -> None:
        self.rows: dict[str, Task] = {}
        self.cas_calls: list[tuple[str, frozenset[TaskStatus], TaskStatus]] = []
        self.writes = 0

    async def create_task(self, task: Task) -> Task:
        now = datetime.now(UTC)
        stored = task.model_copy(
            update={"id": task.id or uuid4().hex, "created_at": now, "updated_at": now}
        )
        self.rows[stored.id] = stored.model_copy(deep=True)
        return stored

    async def get_task(self, task_id: str) -> Task:
        if task_id not in self.rows:
            raise TaskNotFoundError(task_id)
        return self.rows[task_id].model_copy(deep=True)

    async def compare_and_set(
        self,
        task_id: str,
        expected: Collection[TaskStatus],
        changes: TaskChanges,
    ) -> int:
        # Yield like a real round trip so concurrent callers interleave.
        await asyncio.sleep(0)
        self.cas_calls.append((task_id, frozenset(expected), changes.status))
        row = self.rows.get(task_id)
        if row is None or row.status not in expected:
            return 0

        row.status = changes.status
        row.updated_at = datetime.now(UTC)
        if changes.touch_results:
            row.result_output = changes.result_output
            row.result_metadata = changes.result_metadata
            row.failure_detail = changes.failure_detail
        self.writes += 1
        return 1

    def put(self, task: Task) -> Task:
        """Store a task in an arbitrary state, bypassing the lifecycle."""
        now = datetime.now(UTC)
        stored = task.model_copy(
            update={"id": task.id or uuid4().hex, "created_at": now, "updated_at": now}
        )
        self.rows[stored.id] = stored.model_copy(deep=True)
        return stored


class StubWorkerClient(WorkerClient):
    """Replays scripted responses; an exception in the script is raised instead."""

    def __init__(self, script: list[WorkerResponse | Exception] | None = None) -> None:
        self.script = list(script or [])
        self.requests: list[WorkRequest] = []
        self.on_send: Callable[[WorkRequest], object] | None = None

    async def send(self, request: WorkRequest) -> WorkerResponse:
        self.requests.append(request)
        if self.on_send is not None:
            await self.on_send(request)
        outcome = self.script.pop(0) if self.script else WorkerResponse(success=True)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    def webhook_address(self) -> str:
        return "http://worker.test/webhook/trigger"


class RecordingAuditSink(AuditSink):
    def __init__(self) -> None:
        self.events: list[TaskEvent] = []

    async def publish(self, event: TaskEvent) -> None:
        self.events.append(event)

    def types(self) -> list[EventType]:
        return [event.type for event in self.events]


class RecordingSleep:
    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


@pytest.fixture
def repository() -> InMemoryTaskRepository:
    return InMemoryTaskRepository()


@pytest.fixture
def audit_sink() -> RecordingAuditSink:
    return RecordingAuditSink()


@pytest.fixture
def audit(audit_sink: RecordingAuditSink) -> AuditLog:
    return AuditLog([audit_sink])


@pytest.fixture
def state_machine(repository: InMemoryTaskRepository, audit: AuditLog) -> TaskStateMachine:
    return TaskStateMachine(repository, audit)


@pytest.fixture
def worker_client() -> StubWorkerClient:
    return StubWorkerClient()


@pytest.fixture
def sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def dispatcher(
    worker_client: StubWorkerClient,
    state_machine: TaskStateMachine,
    sleep: RecordingSleep,
) -> Dispatcher:
    return Dispatcher(
        worker_client,
        state_machine,
        policy=RetryPolicy(max_attempts=3, backoff_seconds=(10.0, 30.0, 60.0)),
        callback_url_template="http://api.test/api/ad-scripts/{task_id}/result",
        sleep=sleep,
    )


@pytest.fixture
def service(
    repository: InMemoryTaskRepository,
    audit: AuditLog,
    dispatcher: Dispatcher,
) -> TaskService:
    return TaskService(repository, InlineTaskManager(dispatcher), audit)


@pytest.fixture
def new_task(repository: InMemoryTaskRepository) -> Callable[..., Task]:
    def factory(status: TaskStatus = TaskStatus.PENDING, **fields) -> Task:
        return repository.put(
            Task(
                reference_input=fields.pop("reference_input", "X"),
                outcome_goal=fields.pop("outcome_goal", "Y"),
                status=status,
                **fields,
            )
        )

    return factory


@pytest_asyncio.fixture
async def orm(tmp_path):
    """SQLAlchemy ORM on a throwaway SQLite file."""
    sqlite_orm = PostgresOrm(f"sqlite+aiosqlite:///{tmp_path / 'tasks.db'}")
    await sqlite_orm.create_schema()
    yield sqlite_orm
    await sqlite_orm.dispose()

import pytest

from src.scripthub.application.dispatcher import Dispatcher, RetryPolicy
from src.scripthub.domain.exceptions import InvalidTaskStateError, TransientWorkerError
from src.scripthub.domain.models.task_status import TaskStatus
from src.scripthub.domain.models.work_request import WorkerResponse


def test_retry_policy_delays() -> None:
    policy = RetryPolicy(max_attempts=5, backoff_seconds=(10.0, 30.0, 60.0))

    assert [policy.delay_for(attempt) for attempt in range(1, 5)] == [10.0, 30.0, 60.0, 60.0]
    assert RetryPolicy(backoff_seconds=()).delay_for(1) == 0.0


@pytest.mark.parametrize(
    "kwargs",
    [{"max_attempts": 0}, {"backoff_seconds": (1.0, -1.0)}],
)
def test_retry_policy_rejects_invalid_settings(kwargs) -> None:
    with pytest.raises(ValueError):
        RetryPolicy(**kwargs)


@pytest.mark.asyncio
async def test_dispatch_marks_processing_and_sends_one_request(
    dispatcher, worker_client, repository, new_task
):
    task = new_task(reference_input="X", outcome_goal="Y")

    response = await dispatcher.dispatch(task)

    assert response is not None and response.success
    assert repository.rows[task.id].status == TaskStatus.PROCESSING
    assert len(worker_client.requests) == 1
    request = worker_client.requests[0]
    assert request.task_id == task.id
    assert (request.reference_input, request.outcome_goal) == ("X", "Y")
    assert request.callback_url == f"http://api.test/api/ad-scripts/{task.id}/result"


@pytest.mark.asyncio
async def test_dispatch_retries_transient_failures(dispatcher, worker_client, sleep, new_task):
    worker_client.script = [TransientWorkerError("connection reset"), WorkerResponse()]
    task = new_task()

    response = await dispatcher.dispatch(task)

    assert response is not None and response.success
    assert len(worker_client.requests) == 2
    assert sleep.delays == [10.0]
    assert task.status == TaskStatus.PROCESSING


@pytest.mark.asyncio
async def test_dispatch_fails_task_after_exhausting_attempts(
    dispatcher, worker_client, repository, sleep, new_task
):
    worker_client.script = [TransientWorkerError("HTTP 503", status_code=503)] * 3
    task = new_task()

    response = await dispatcher.dispatch(task)

    assert response is None
    assert len(worker_client.requests) == 3
    assert sleep.delays == [10.0, 30.0]
    stored = repository.rows[task.id]
    assert stored.status == TaskStatus.FAILED
    assert stored.failure_detail == "Failed to trigger worker after 3 attempts: HTTP 503"


@pytest.mark.asyncio
@pytest.mark.parametrize("status", [TaskStatus.COMPLETED, TaskStatus.FAILED])
async def test_dispatch_refuses_final_task_without_sending(
    dispatcher, worker_client, new_task, status
):
    task = new_task(status=status)

    with pytest.raises(InvalidTaskStateError):
        await dispatcher.dispatch(task)

    assert worker_client.requests == []


@pytest.mark.asyncio
async def test_dispatch_refuses_when_store_already_final(
    dispatcher, worker_client, repository, new_task
):
    task = new_task()
    repository.rows[task.id].status = TaskStatus.COMPLETED

    with pytest.raises(InvalidTaskStateError):
        await dispatcher.dispatch(task)

    assert worker_client.requests == []


@pytest.mark.asyncio
async def test_dispatch_stops_when_task_finalized_between_attempts(
    worker_client, state_machine, repository, new_task
):
    task = new_task()
    worker_client.script = [TransientWorkerError("timeout")]

    async def finalize_during_backoff(delay: float) -> None:
        row = repository.rows[task.id]
        row.status = TaskStatus.COMPLETED
        row.result_output = "X2"

    dispatcher = Dispatcher(worker_client, state_machine, sleep=finalize_during_backoff)

    assert await dispatcher.dispatch(task) is None
    assert len(worker_client.requests) == 1
    assert repository.rows[task.id].status == TaskStatus.COMPLETED
    assert task.status == TaskStatus.COMPLETED


@pytest.mark.asyncio
async def test_dispatch_treats_rejection_as_final(dispatcher, worker_client, repository, new_task):
    worker_client.script = [WorkerResponse(success=False, message="quota exceeded")]
    task = new_task()

    response = await dispatcher.dispatch(task)

    assert response is not None and not response.success
    assert len(worker_client.requests) == 1
    stored = repository.rows[task.id]
    assert stored.status == TaskStatus.FAILED
    assert stored.failure_detail == "Worker rejected task: quota exceeded"


@pytest.mark.asyncio
async def test_dispatch_resends_processing_task(dispatcher, worker_client, repository, new_task):
    task = new_task(status=TaskStatus.PROCESSING)

    await dispatcher.dispatch(task)

    assert len(worker_client.requests) == 1
    assert repository.writes == 0


def test_build_request_without_callback_template(worker_client, state_machine, new_task) -> None:
    task = new_task()

    request = Dispatcher(worker_client, state_machine).build_request(task)

    assert request.callback_url is None
    assert request.task_id == task.id

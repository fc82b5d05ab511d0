import pytest

from src.scripthub.domain.models import (
    PayloadKind,
    ResultPayload,
    Task,
    TaskStatus,
    TaskView,
    WorkRequest,
)


@pytest.mark.parametrize(
    ("status", "final", "processable"),
    [
        (TaskStatus.PENDING, False, True),
        (TaskStatus.PROCESSING, False, True),
        (TaskStatus.COMPLETED, True, False),
        (TaskStatus.FAILED, True, False),
    ],
)
def test_status_predicates(status: TaskStatus, final: bool, processable: bool) -> None:
    assert status.is_final() is final
    assert status.can_process() is processable
    task = Task(reference_input="X", outcome_goal="Y", status=status)
    assert task.is_final() is final
    assert task.can_process() is processable


def test_status_values_match_wire_names() -> None:
    assert TaskStatus.values() == ["pending", "processing", "completed", "failed"]


def test_payload_classification() -> None:
    assert ResultPayload.model_validate({"new_script": "X2"}).kind == PayloadKind.SUCCESS
    assert ResultPayload.model_validate({"error": "boom"}).kind == PayloadKind.FAILURE
    assert ResultPayload.model_validate({}).kind == PayloadKind.MALFORMED
    assert ResultPayload.model_validate({"new_script": "", "error": ""}).kind == (
        PayloadKind.MALFORMED
    )


def test_payload_output_wins_over_error() -> None:
    payload = ResultPayload.model_validate({"new_script": "X2", "error": "ignored"})

    assert payload.is_success()
    assert not payload.is_error()


def test_payload_reads_analysis_alias() -> None:
    payload = ResultPayload.model_validate(
        {"new_script": "X2", "analysis": {"tone": "casual"}}
    )

    assert payload.output == "X2"
    assert payload.metadata == {"tone": "casual"}


def test_task_completion_comparison_treats_missing_metadata_as_empty() -> None:
    task = Task(
        reference_input="X",
        outcome_goal="Y",
        status=TaskStatus.COMPLETED,
        result_output="X2",
        result_metadata=None,
    )

    assert task.has_completion("X2", {})
    assert not task.has_completion("X2", {"a": 1})
    assert not task.has_failure("X2")


def test_work_request_serializes_worker_field_names() -> None:
    request = WorkRequest(
        task_id="t-1",
        reference_input="X",
        outcome_goal="Y",
        callback_url="http://api.test/cb",
    )

    assert request.model_dump(by_alias=True) == {
        "task_id": "t-1",
        "reference_script": "X",
        "outcome_description": "Y",
        "callback_url": "http://api.test/cb",
    }


def test_task_view_exposes_results_only_for_matching_status() -> None:
    completed = Task(
        id="t-1",
        reference_input="X",
        outcome_goal="Y",
        status=TaskStatus.COMPLETED,
        result_output="X2",
        result_metadata={"k": "v"},
    )
    failed = Task(
        id="t-2",
        reference_input="X",
        outcome_goal="Y",
        status=TaskStatus.FAILED,
        failure_detail="boom",
    )
    pending = Task(id="t-3", reference_input="X", outcome_goal="Y")

    completed_view = TaskView.from_task(completed)
    failed_view = TaskView.from_task(failed)
    pending_view = TaskView.from_task(pending)

    assert (completed_view.new_script, completed_view.analysis) == ("X2", {"k": "v"})
    assert completed_view.error_details is None
    assert failed_view.error_details == "boom"
    assert failed_view.new_script is None
    assert pending_view.new_script is None and pending_view.error_details is None

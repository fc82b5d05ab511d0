from src.scripthub.domain.models.outcome import OutcomeKind, ReconcileOutcome
from src.scripthub.domain.models.result_payload import PayloadKind, ResultPayload
from src.scripthub.domain.models.task import Task
from src.scripthub.domain.models.task_changes import TaskChanges
from src.scripthub.domain.models.task_status import TaskStatus
from src.scripthub.domain.models.task_view import TaskView
from src.scripthub.domain.models.work_request import WorkerResponse, WorkRequest

__all__ = [
    "Task",
    "TaskStatus",
    "TaskChanges",
    "TaskView",
    "ResultPayload",
    "PayloadKind",
    "ReconcileOutcome",
    "OutcomeKind",
    "WorkRequest",
    "WorkerResponse",
]

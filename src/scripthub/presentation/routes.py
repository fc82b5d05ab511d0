from __future__ import annotations

import logging
from datetime import datetime
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Path, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from src.scripthub.application.services import TaskService
from src.scripthub.domain.exceptions import PayloadValidationError
from src.scripthub.domain.models import OutcomeKind, ResultPayload, TaskStatus, TaskView
from src.scripthub.presentation.security import verify_signature

router = APIRouter(prefix="/api/ad-scripts", tags=["ad-scripts"])
logger = logging.getLogger(__name__)

_OUTCOME_STATUS_CODES = {
    OutcomeKind.APPLIED: status.HTTP_200_OK,
    OutcomeKind.CONFLICT: 422,
    OutcomeKind.REJECTED: 422,
    OutcomeKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
}


def get_task_service() -> TaskService:
    return TaskService()


class CreateTaskRequest(BaseModel):
    reference_script: str = Field(
        ..., min_length=10, max_length=10000, description="Script to transform."
    )
    outcome_description: str = Field(
        ..., min_length=5, max_length=1000, description="What the new script should achieve."
    )


class CreatedTask(BaseModel):
    id: str
    status: TaskStatus
    created_at: datetime | None = None


class ApiResponse(BaseModel):
    success: bool
    message: str
    data: Any = None


@router.post(
    "",
    status_code=status.HTTP_202_ACCEPTED,
    response_model=ApiResponse,
    summary="Create a script task",
    description="Stores a new task and hands it to the worker. Poll the task id for the result.",
    responses={422: {"description": "Invalid input."}, 500: {"description": "Dispatch failed."}},
)
async def create_task(
    body: CreateTaskRequest,
    service: TaskService = Depends(get_task_service),
) -> ApiResponse:
    try:
        task = await service.create_and_dispatch(
            {
                "reference_input": body.reference_script,
                "outcome_goal": body.outcome_description,
            }
        )
    except PayloadValidationError:
        raise
    except Exception:
        raise HTTPException(  # noqa: B904
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to dispatch task.",
        )

    created = CreatedTask(id=task.id or "", status=task.status, created_at=task.created_at)
    return ApiResponse(
        success=True,
        message="Task accepted",
        data=created.model_dump(mode="json"),
    )


@router.get(
    "/{task_id}",
    response_model=ApiResponse,
    summary="Get a script task",
    responses={404: {"description": "Unknown task."}},
)
async def get_task(
    task_id: str = Path(..., description="Task id"),
    service: TaskService = Depends(get_task_service),
) -> ApiResponse:
    task = await service.find(task_id)
    return ApiResponse(
        success=True,
        message="Task found",
        data=TaskView.from_task(task).model_dump(mode="json"),
    )


@router.post(
    "/{task_id}/result",
    response_model=ApiResponse,
    summary="Worker result callback",
    description=(
        "Called by the worker when a task is processed. The body must carry either "
        "`new_script` (with optional `analysis`) or `error`, and be signed with "
        "`X-Signature: sha256=<hex>`. Replays of an applied result return 200."
    ),
    dependencies=[Depends(verify_signature)],
    responses={
        401: {"description": "Missing or invalid signature."},
        404: {"description": "Unknown task."},
        422: {"description": "Malformed payload or conflicting result."},
    },
)
async def receive_result(
    payload: ResultPayload,
    task_id: str = Path(..., description="Task id"),
    service: TaskService = Depends(get_task_service),
) -> JSONResponse:
    outcome = await service.process_callback(task_id, payload)
    logger.info(
        "Callback processed",
        extra={"task_id": task_id, "outcome": outcome.kind.value},
    )
    body = ApiResponse(
        success=outcome.applied,
        message=outcome.message,
        data={
            "task_id": outcome.task_id,
            "status": outcome.status.value if outcome.status else None,
            "was_updated": outcome.was_updated,
        },
    )
    return JSONResponse(
        status_code=_OUTCOME_STATUS_CODES[outcome.kind],
        content=body.model_dump(mode="json"),
    )

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import inject
from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from src.scripthub.application.audit import AuditLog
from src.scripthub.domain.exceptions import (
    InvalidTaskStateError,
    PayloadValidationError,
    PersistenceError,
    TaskNotFoundError,
)
from src.scripthub.infrastructure.postgres.orm import PostgresOrm
from src.setup.api_config import get_api_settings
from src.setup.app_config import configure_di
from src.setup.logging_config import configure_logging

logger = logging.getLogger(__name__)

settings = get_api_settings()
configure_logging(settings.LOG_LEVEL)


@asynccontextmanager
async def lifespan(_: FastAPI) -> AsyncIterator[None]:
    configure_di()
    try:
        yield
    finally:
        await inject.instance(PostgresOrm).dispose()
        await inject.instance(AuditLog).close()


app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Script transformation tasks reconciled from asynchronous worker callbacks",
    lifespan=lifespan,
)


def _error(status_code: int, message: str, data: dict | None = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "message": message, "data": data},
    )


async def _payload_invalid(_: Request, exc: PayloadValidationError) -> JSONResponse:
    return _error(422, str(exc), {"errors": exc.errors})


async def _task_not_found(_: Request, exc: TaskNotFoundError) -> JSONResponse:
    return _error(status.HTTP_404_NOT_FOUND, str(exc), {"task_id": exc.task_id})


async def _invalid_state(_: Request, exc: InvalidTaskStateError) -> JSONResponse:
    return _error(status.HTTP_409_CONFLICT, str(exc), {"task_id": exc.task_id})


async def _persistence_failed(_: Request, exc: PersistenceError) -> JSONResponse:
    logger.error("Task store failure", extra={"error": str(exc)})
    return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error.")


app.add_exception_handler(PayloadValidationError, _payload_invalid)
app.add_exception_handler(TaskNotFoundError, _task_not_found)
app.add_exception_handler(InvalidTaskStateError, _invalid_state)
app.add_exception_handler(PersistenceError, _persistence_failed)

from src.scripthub.presentation.routes import router as api_router  # noqa: E402

app.include_router(api_router, prefix="")

from functools import partial

import inject

from src.scripthub.application.audit import AuditLog, LoggingAuditSink
from src.scripthub.application.dispatcher import Dispatcher, RetryPolicy
from src.scripthub.application.state_machine import TaskStateMachine
from src.scripthub.domain.repositories import (
    AuditSink,
    TaskManagerRepository,
    TaskRepository,
    WorkerClient,
)
from src.scripthub.infrastructure.inline import InlineTaskManager
from src.scripthub.infrastructure.postgres.orm import PostgresOrm
from src.scripthub.infrastructure.postgres.repositories import PostgresTaskRepository
from src.scripthub.infrastructure.worker.http_client import HttpWorkerClient
from src.setup.celery_config import get_celery_settings
from src.setup.db_config import get_database_settings
from src.setup.dispatch_config import get_dispatch_settings
from src.setup.stream_config import build_audit_stream_sink


def _build_audit_log(*, sync_streams: bool) -> AuditLog:
    sinks: list[AuditSink] = [LoggingAuditSink()]
    stream_sink = build_audit_stream_sink(sync=sync_streams)
    if stream_sink is not None:
        sinks.append(stream_sink)
    return AuditLog(sinks)


def _build_task_manager(backend: str, dispatcher: Dispatcher) -> TaskManagerRepository:
    if backend == "inline":
        return InlineTaskManager(dispatcher)

    from src.scripthub.infrastructure.celery.repositories import CeleryTaskManager

    return CeleryTaskManager(queue=get_celery_settings().DISPATCH_QUEUE)


def _config(binder: inject.Binder, *, sync_streams: bool) -> None:
    db_settings = get_database_settings()
    dispatch_settings = get_dispatch_settings()

    orm = PostgresOrm(db_settings.DATABASE_URL, echo=db_settings.DATABASE_ECHO)
    repository = PostgresTaskRepository(orm)
    audit = _build_audit_log(sync_streams=sync_streams)
    worker_client = HttpWorkerClient(
        dispatch_settings.WORKER_WEBHOOK_URL,
        auth_header_key=dispatch_settings.WORKER_AUTH_HEADER_KEY,
        auth_header_value=dispatch_settings.WORKER_AUTH_HEADER_VALUE,
        timeout_seconds=dispatch_settings.WORKER_TIMEOUT_SEC,
    )
    dispatcher = Dispatcher(
        worker_client,
        TaskStateMachine(repository, audit),
        policy=RetryPolicy(
            max_attempts=dispatch_settings.DISPATCH_MAX_ATTEMPTS,
            backoff_seconds=tuple(dispatch_settings.DISPATCH_BACKOFF_SEC),
        ),
        callback_url_template=dispatch_settings.callback_url_template(),
    )

    binder.bind(PostgresOrm, orm)
    binder.bind(TaskRepository, repository)
    binder.bind(AuditLog, audit)
    binder.bind(WorkerClient, worker_client)
    binder.bind(Dispatcher, dispatcher)
    binder.bind(
        TaskManagerRepository,
        _build_task_manager(dispatch_settings.DISPATCH_BACKEND, dispatcher),
    )


def configure_di(*, sync_streams: bool = False) -> None:
    """
    Bind production implementations once per process.

    The Celery worker passes ``sync_streams=True`` so audit events reach Redis
    through a client that survives the per-task event loops.
    """
    if inject.is_configured():
        return
    inject.configure(partial(_config, sync_streams=sync_streams))

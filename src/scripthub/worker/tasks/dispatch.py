import asyncio
import logging

import inject

from src.scripthub.application.dispatcher import Dispatcher
from src.scripthub.domain.exceptions import InvalidTaskStateError, TaskNotFoundError
from src.scripthub.domain.repositories import TaskRepository
from src.scripthub.infrastructure.celery.app import celery_app
from src.scripthub.infrastructure.celery.repositories import DISPATCH_TASK_NAME
from src.scripthub.infrastructure.postgres.orm import PostgresOrm
from src.setup.app_config import configure_di

logger = logging.getLogger(__name__)


async def run_dispatch(task_id: str, repository: TaskRepository, dispatcher: Dispatcher) -> bool:
    """Load a task and push it to the worker; returns False when there was nothing to send."""
    try:
        task = await repository.get_task(task_id)
    except TaskNotFoundError:
        logger.warning("Dispatch requested for unknown task", extra={"task_id": task_id})
        return False

    if not task.can_process():
        # Redelivered message for a task that is already settled.
        logger.info(
            "Skipping dispatch of finalized task",
            extra={"task_id": task_id, "status": task.status.value},
        )
        return False

    try:
        response = await dispatcher.dispatch(task)
    except InvalidTaskStateError as exc:
        logger.info("Dispatch refused", extra={"task_id": task_id, "error": str(exc)})
        return False
    return response is not None


async def _dispatch(task_id: str) -> bool:
    configure_di(sync_streams=True)
    orm: PostgresOrm = inject.instance(PostgresOrm)
    try:
        return await run_dispatch(
            task_id, inject.instance(TaskRepository), inject.instance(Dispatcher)
        )
    finally:
        # Connections are bound to this event loop; asyncio.run closes it afterwards.
        await orm.dispose()


@celery_app.task(name=DISPATCH_TASK_NAME, bind=True, acks_late=True)
def dispatch_script_task(self, task_id: str) -> dict:
    """
    Send one task to the external worker, retrying transient failures in-process.
    """
    sent = asyncio.run(_dispatch(task_id))
    return {"task_id": task_id, "sent": sent, "delivery": self.request.id}

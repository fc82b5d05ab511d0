from celery import Celery

from src.setup.celery_config import get_celery_settings

_settings = get_celery_settings()

celery_app = Celery(
    "scripthub",
    broker=_settings.REDIS_URL,
    backend=_settings.REDIS_URL,
    include=["src.scripthub.worker.tasks.dispatch"],
)

celery_app.conf.update(
    task_ignore_result=False,
    result_expires=_settings.RESULT_TTL_SECONDS,
    # Dispatch messages are acknowledged after the run so a lost worker redelivers them.
    task_acks_late=True,
    task_reject_on_worker_lost=True,
)

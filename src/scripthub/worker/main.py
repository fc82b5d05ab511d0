import os

from src.scripthub.infrastructure.celery.app import celery_app
from src.setup.api_config import get_api_settings
from src.setup.celery_config import get_celery_settings


def main() -> None:
    log_level = os.getenv("LOG_LEVEL", get_api_settings().LOG_LEVEL)
    concurrency = os.getenv("CELERY_CONCURRENCY", "2")
    queues = os.getenv("CELERY_QUEUES", get_celery_settings().DISPATCH_QUEUE or "celery")
    celery_app.worker_main(
        [
            "worker",
            "-l",
            log_level,
            "--concurrency",
            concurrency,
            "-Q",
            queues,
        ]
    )


if __name__ == "__main__":
    main()

import logging

_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level: str = "INFO") -> None:
    """Set up root logging for the API process; the Celery worker configures its own."""
    logging.basicConfig(level=level.upper(), format=_FORMAT)
    logging.getLogger("scripthub.audit").setLevel(logging.INFO)

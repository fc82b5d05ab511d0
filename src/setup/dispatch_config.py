from typing import Literal

from pydantic import ConfigDict
from pydantic_settings import BaseSettings


class DispatchSettings(BaseSettings):
    """Worker webhook and retry envelope used by the dispatcher."""
    WORKER_WEBHOOK_URL: str
    WORKER_AUTH_HEADER_KEY: str = "X-Trigger-Auth"
    WORKER_AUTH_HEADER_VALUE: str | None = None
    WORKER_TIMEOUT_SEC: float = 30.0
    DISPATCH_MAX_ATTEMPTS: int = 3
    DISPATCH_BACKOFF_SEC: list[float] = [10.0, 30.0, 60.0]
    # "inline" sends from the API process itself; no broker or Celery worker needed.
    DISPATCH_BACKEND: Literal["celery", "inline"] = "celery"
    # Public base URL of this API, used to build the callback address sent to the worker.
    CALLBACK_BASE_URL: str | None = None

    model_config = ConfigDict(env_file=".env", extra="ignore")

    def callback_url_template(self) -> str | None:
        if not self.CALLBACK_BASE_URL:
            return None
        return self.CALLBACK_BASE_URL.rstrip("/") + "/api/ad-scripts/{task_id}/result"


def get_dispatch_settings() -> DispatchSettings:
    """Return a fresh dispatch settings instance."""
    return DispatchSettings()  # type: ignore[call-arg]

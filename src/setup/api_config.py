from pydantic import ConfigDict
from pydantic_settings import BaseSettings


class ApiSettings(BaseSettings):
    APP_NAME: str = "scripthub"
    APP_VERSION: str = "0.1.0"
    LOG_LEVEL: str = "INFO"
    # Shared secret for HMAC signatures on worker callbacks.
    CALLBACK_HMAC_SECRET: str | None = None

    model_config = ConfigDict(env_file=".env", extra="ignore")


def get_api_settings() -> ApiSettings:
    return ApiSettings()  # type: ignore[call-arg]

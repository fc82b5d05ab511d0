from __future__ import annotations

import logging

import httpx

from src.scripthub.domain.exceptions import TransientWorkerError, WorkerConfigurationError
from src.scripthub.domain.models.work_request import WorkerResponse, WorkRequest
from src.scripthub.domain.repositories import WorkerClient

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 30.0
CONNECT_TIMEOUT_SECONDS = 10.0
USER_AGENT = "scripthub-worker-client/1.0"
_MAX_BODY_IN_ERROR = 500


class HttpWorkerClient(WorkerClient):
    """Posts work requests to the worker's trigger webhook."""

    def __init__(
        self,
        webhook_url: str,
        *,
        auth_header_key: str | None = None,
        auth_header_value: str | None = None,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        if not webhook_url:
            raise WorkerConfigurationError("Webhook URL is required")
        try:
            url = httpx.URL(webhook_url)
        except httpx.InvalidURL as exc:
            raise WorkerConfigurationError("Webhook URL is not valid") from exc
        if url.scheme not in {"http", "https"} or not url.host:
            raise WorkerConfigurationError("Webhook URL is not valid")
        if timeout_seconds <= 0:
            raise WorkerConfigurationError("Timeout must be greater than 0")

        self._webhook_url = webhook_url
        self._auth_header_key = auth_header_key
        self._auth_header_value = auth_header_value
        self._timeout = httpx.Timeout(timeout_seconds, connect=CONNECT_TIMEOUT_SECONDS)
        self._transport = transport
        logger.info(
            "Worker client configured",
            extra={
                "webhook_url": webhook_url,
                "auth_header_key": auth_header_key,
                "auth_header_value_set": bool(auth_header_value),
            },
        )

    def webhook_address(self) -> str:
        return self._webhook_url

    async def send(self, request: WorkRequest) -> WorkerResponse:
        body = request.model_dump(mode="json", by_alias=True, exclude_none=True)
        try:
            async with httpx.AsyncClient(
                timeout=self._timeout,
                headers=self._build_headers(),
                transport=self._transport,
            ) as client:
                response = await client.post(self._webhook_url, json=body)
        except httpx.TimeoutException as exc:
            raise TransientWorkerError(
                f"Request to worker webhook at {self._webhook_url} timed out"
            ) from exc
        except httpx.HTTPError as exc:
            raise TransientWorkerError(
                f"Failed to connect to worker webhook at {self._webhook_url}: {exc}"
            ) from exc

        status_code = response.status_code
        if status_code >= 500 or status_code == 429:
            raise TransientWorkerError(
                f"Worker webhook returned HTTP {status_code}: {response.text[:_MAX_BODY_IN_ERROR]}",
                status_code=status_code,
            )
        if response.is_error:
            return WorkerResponse(
                success=False,
                message=f"HTTP {status_code}: {response.text[:_MAX_BODY_IN_ERROR]}",
            )

        logger.info(
            "Worker webhook accepted request",
            extra={"task_id": request.task_id, "status_code": status_code},
        )
        return self._parse(response)

    def _build_headers(self) -> dict[str, str]:
        headers = {
            "Content-Type": "application/json",
            "Accept": "application/json",
            "User-Agent": USER_AGENT,
        }
        if self._auth_header_key and self._auth_header_value:
            headers[self._auth_header_key] = self._auth_header_value
        return headers

    @staticmethod
    def _parse(response: httpx.Response) -> WorkerResponse:
        try:
            data = response.json()
        except ValueError:
            data = {}
        if not isinstance(data, dict):
            data = {}
        message = data.get("message")
        return WorkerResponse(
            success=bool(data.get("success", True)),
            message=str(message) if message is not None else None,
        )

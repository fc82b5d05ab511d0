import json

import httpx
import pytest

from src.scripthub.domain.exceptions import TransientWorkerError, WorkerConfigurationError
from src.scripthub.domain.models import WorkRequest
from src.scripthub.infrastructure.worker.http_client import USER_AGENT, HttpWorkerClient

WEBHOOK_URL = "http://worker.test/webhook/trigger"


def _request() -> WorkRequest:
    return WorkRequest(
        task_id="t-1",
        reference_input="X",
        outcome_goal="Y",
        callback_url="http://api.test/api/ad-scripts/t-1/result",
    )


def _client(handler, **kwargs) -> HttpWorkerClient:
    return HttpWorkerClient(WEBHOOK_URL, transport=httpx.MockTransport(handler), **kwargs)


@pytest.mark.asyncio
async def test_send_posts_aliased_body_with_auth_header():
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"success": True, "message": "queued"})

    client = _client(handler, auth_header_key="X-Trigger-Auth", auth_header_value="s3cret")

    response = await client.send(_request())

    assert response.success and response.message == "queued"
    [request] = seen
    assert str(request.url) == WEBHOOK_URL
    assert request.headers["X-Trigger-Auth"] == "s3cret"
    assert request.headers["User-Agent"] == USER_AGENT
    assert json.loads(request.content) == {
        "task_id": "t-1",
        "reference_script": "X",
        "outcome_description": "Y",
        "callback_url": "http://api.test/api/ad-scripts/t-1/result",
    }


@pytest.mark.asyncio
async def test_send_without_auth_value_omits_header():
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, text="ok")

    client = _client(handler, auth_header_key="X-Trigger-Auth")

    response = await client.send(_request())

    assert response.success and response.message is None
    assert "X-Trigger-Auth" not in seen[0].headers


@pytest.mark.asyncio
@pytest.mark.parametrize("status_code", [500, 502, 503, 429])
async def test_server_errors_are_transient(status_code):
    client = _client(lambda request: httpx.Response(status_code, text="busy"))

    with pytest.raises(TransientWorkerError) as exc_info:
        await client.send(_request())

    assert exc_info.value.status_code == status_code


@pytest.mark.asyncio
async def test_client_errors_are_rejections():
    client = _client(lambda request: httpx.Response(400, text="bad payload"))

    response = await client.send(_request())

    assert not response.success
    assert response.message == "HTTP 400: bad payload"


@pytest.mark.asyncio
async def test_explicit_failure_in_body_is_rejection():
    client = _client(
        lambda request: httpx.Response(200, json={"success": False, "message": "no credits"})
    )

    response = await client.send(_request())

    assert not response.success
    assert response.message == "no credits"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "error",
    [httpx.ReadTimeout("timed out"), httpx.ConnectError("refused")],
)
async def test_network_failures_are_transient(error):
    def handler(request: httpx.Request) -> httpx.Response:
        raise error

    with pytest.raises(TransientWorkerError):
        await _client(handler).send(_request())


@pytest.mark.parametrize(
    ("url", "timeout"),
    [("", 30.0), ("ftp://worker.test/hook", 30.0), ("not a url", 30.0), (WEBHOOK_URL, 0)],
)
def test_invalid_configuration(url, timeout):
    with pytest.raises(WorkerConfigurationError):
        HttpWorkerClient(url, timeout_seconds=timeout)


def test_webhook_address():
    assert HttpWorkerClient(WEBHOOK_URL).webhook_address() == WEBHOOK_URL

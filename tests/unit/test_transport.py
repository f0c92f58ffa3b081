import json
import logging

import httpx
import pytest

from inoovum_eventstore.config import ClientConfig
from inoovum_eventstore.errors import TransportError
from inoovum_eventstore.transport import AsyncHTTPTransport, HTTPTransport
from tests.support.eventstore_helpers import RecordingTransport, static_handler

CONFIG = ClientConfig(api_url="http://store.local/", api_version="v1", auth_token="tok")


def test_send_attaches_auth_user_agent_and_accept() -> None:
    recorder = RecordingTransport(static_handler("ok", content_type="text/plain"))
    transport = HTTPTransport(CONFIG, transport=recorder.transport())

    response = transport.send("pinging", "GET", "status/ping", accept="text/plain")

    assert response.text == "ok"
    request = recorder.last
    assert str(request.url) == "http://store.local/api/v1/status/ping"
    assert request.headers["Authorization"] == "Bearer tok"
    assert request.headers["User-Agent"] == "inoovum-eventstore-sdk-python"
    assert request.headers["Accept"] == "text/plain"
    assert request.content == b""


def test_send_posts_json_body() -> None:
    recorder = RecordingTransport(static_handler())
    transport = HTTPTransport(CONFIG, transport=recorder.transport())

    transport.send("streaming events", "POST", "stream", json_body={"subject": "s"})

    request = recorder.last
    assert request.method == "POST"
    assert request.headers["Content-Type"] == "application/json"
    assert json.loads(request.content) == {"subject": "s"}


@pytest.mark.parametrize("status_code", [400, 401, 404, 500, 503])
def test_non_success_status_raises_http_status(
    status_code: int,
    caplog: pytest.LogCaptureFixture,
) -> None:
    transport = HTTPTransport(
        CONFIG,
        transport=httpx.MockTransport(static_handler("nope", status_code=status_code)),
    )

    with caplog.at_level(logging.ERROR), pytest.raises(TransportError) as exc_info:
        transport.send("querying", "POST", "q", json_body={"query": "x"})

    assert exc_info.value.category == "http_status"
    assert exc_info.value.status_code == status_code
    assert exc_info.value.operation == "querying"
    errors = [record for record in caplog.records if record.levelno == logging.ERROR]
    assert len(errors) == 1
    assert errors[0].getMessage().startswith("Error while querying")


def test_redirects_are_followed_before_status_policy() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path == "/api/v1/status/ping":
            return httpx.Response(307, headers={"Location": "http://store.local/moved"})
        return httpx.Response(200, text="moved pong")

    transport = HTTPTransport(CONFIG, transport=httpx.MockTransport(handler))
    assert transport.send("pinging", "GET", "status/ping").text == "moved pong"


def test_timeout_maps_to_network_timeout() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("timed out", request=request)

    transport = HTTPTransport(CONFIG, transport=httpx.MockTransport(handler))
    with pytest.raises(TransportError) as exc_info:
        transport.send("pinging", "GET", "status/ping")
    assert exc_info.value.category == "network_timeout"
    assert isinstance(exc_info.value.__cause__, httpx.ReadTimeout)


def test_connection_error_maps_to_transport_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    transport = HTTPTransport(CONFIG, transport=httpx.MockTransport(handler))
    with pytest.raises(TransportError) as exc_info:
        transport.send("running audit", "GET", "status/audit")
    assert exc_info.value.category == "transport_error"
    assert "connection refused" in str(exc_info.value)


def test_injected_client_is_not_closed() -> None:
    client = httpx.Client(transport=httpx.MockTransport(static_handler("pong")))
    with HTTPTransport(CONFIG, client=client) as transport:
        assert transport.send("pinging", "GET", "status/ping").text == "pong"
    assert not client.is_closed
    client.close()


def test_owned_client_is_closed() -> None:
    transport = HTTPTransport(CONFIG, transport=httpx.MockTransport(static_handler()))
    transport.close()
    assert transport._client.is_closed


@pytest.mark.asyncio
async def test_async_send_and_failure_mapping() -> None:
    recorder = RecordingTransport(static_handler("pong", content_type="text/plain"))
    async with AsyncHTTPTransport(CONFIG, transport=recorder.transport()) as transport:
        response = await transport.send("pinging", "GET", "status/ping", accept="text/plain")
    assert response.text == "pong"
    assert recorder.last.headers["Authorization"] == "Bearer tok"

    failing = AsyncHTTPTransport(
        CONFIG,
        transport=httpx.MockTransport(static_handler(status_code=502)),
    )
    with pytest.raises(TransportError) as exc_info:
        await failing.send("pinging", "GET", "status/ping")
    assert exc_info.value.status_code == 502
    await failing.aclose()

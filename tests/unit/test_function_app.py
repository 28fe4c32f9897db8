"""Tests for the Azure Functions HTTP wiring of the advisor proxy."""

from __future__ import annotations

import json
from unittest.mock import MagicMock

import httpx
import pytest
from azurefunctions.extensions.http.fastapi import Request, Response, StreamingResponse

from function_app import dispatch_advisor_request
from terrapulse.advisor.proxy import AdvisorProxy, ProxyResponse
from terrapulse.core.config import AdvisorConfig
from terrapulse.models.field import AdvisorRequest
from tests.conftest import sse_stream


def _request(method: str, body: bytes = b"") -> Request:
    scope = {
        "type": "http",
        "method": method,
        "path": "/api/rural-advisor",
        "query_string": b"",
        "headers": [(b"content-type", b"application/json")],
    }

    async def receive() -> dict[str, object]:
        return {"type": "http.request", "body": body, "more_body": False}

    return Request(scope, receive)


async def _read_body(response: Response) -> bytes:
    if isinstance(response, StreamingResponse):
        return b"".join([chunk async for chunk in response.body_iterator])
    return response.body


def _gateway_proxy(config: AdvisorConfig, upstream: httpx.Response) -> AdvisorProxy:
    return AdvisorProxy(
        config,
        http_client=httpx.Client(transport=httpx.MockTransport(lambda _: upstream)),
    )


@pytest.fixture()
def proxy() -> MagicMock:
    mock = MagicMock(spec=AdvisorProxy)
    mock.preflight.return_value = ProxyResponse(status_code=200, headers={"Access-Control-Allow-Origin": "*"})
    mock.handle.return_value = ProxyResponse(
        status_code=200,
        body=iter([b"data: [DONE]\n\n"]),
        headers={"Content-Type": "text/event-stream"},
    )
    return mock


class TestDispatch:
    @pytest.mark.asyncio
    async def test_options_is_preflight(self, proxy: MagicMock) -> None:
        response = await dispatch_advisor_request(_request("OPTIONS"), proxy)

        assert response.status_code == 200
        assert response.headers["Access-Control-Allow-Origin"] == "*"
        proxy.handle.assert_not_called()

    @pytest.mark.asyncio
    async def test_post_forwards_json_body(self, proxy: MagicMock, field_request: AdvisorRequest) -> None:
        payload = field_request.to_payload()

        response = await dispatch_advisor_request(_request("POST", json.dumps(payload).encode()), proxy)

        proxy.handle.assert_called_once_with(payload)
        assert isinstance(response, StreamingResponse)
        assert response.status_code == 200
        assert response.headers["Content-Type"] == "text/event-stream"
        assert await _read_body(response) == b"data: [DONE]\n\n"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("body", [b"", b"{not json"])
    async def test_non_json_body_is_400(self, proxy: MagicMock, body: bytes) -> None:
        response = await dispatch_advisor_request(_request("POST", body), proxy)

        assert response.status_code == 400
        error = json.loads(await _read_body(response))
        assert error["error"] == "Request body must be JSON"
        assert error["category"] == "validation"
        proxy.handle.assert_not_called()


class TestEndToEnd:
    """Dispatch through a real proxy backed by a mock gateway."""

    @pytest.mark.asyncio
    async def test_stream_relayed(self, advisor_config: AdvisorConfig, field_request: AdvisorRequest) -> None:
        upstream = sse_stream("Looks ", "good.")
        real_proxy = _gateway_proxy(advisor_config, httpx.Response(200, content=upstream))
        body = json.dumps(field_request.to_payload()).encode()

        response = await dispatch_advisor_request(_request("POST", body), real_proxy)

        assert isinstance(response, StreamingResponse)
        assert response.status_code == 200
        assert await _read_body(response) == upstream

    @pytest.mark.asyncio
    async def test_gateway_rate_limit(self, advisor_config: AdvisorConfig, field_request: AdvisorRequest) -> None:
        real_proxy = _gateway_proxy(advisor_config, httpx.Response(429))
        body = json.dumps(field_request.to_payload()).encode()

        response = await dispatch_advisor_request(_request("POST", body), real_proxy)

        assert response.status_code == 429
        error = json.loads(await _read_body(response))
        assert "Rate limit" in error["error"]
        assert error["code"] == "ADVISOR_RATE_LIMITED"

"""Azure Functions entry point for the TerraPulse advisor proxy.

This module registers the HTTP function that fronts the chat-completion
gateway, using the Python v2 programming model with the HTTP streaming
extension (``azurefunctions-extensions-http-fastapi``), so the gateway's
SSE body reaches the browser chunk by chunk.

All business logic lives in the terrapulse package. This file is purely
the wiring layer between Azure Functions bindings and application code.

The host needs ``PYTHON_ENABLE_INIT_INDEXING=1`` for HTTP streams.
"""

from __future__ import annotations

import asyncio
import logging
from functools import lru_cache

import azure.functions as func
from azurefunctions.extensions.http.fastapi import Request, Response, StreamingResponse

from terrapulse.advisor.errors import AdvisorRequestError
from terrapulse.advisor.proxy import AdvisorProxy, ProxyResponse
from terrapulse.core.config import AdvisorConfig

app = func.FunctionApp(http_auth_level=func.AuthLevel.ANONYMOUS)

logger = logging.getLogger("terrapulse.function_app")


@lru_cache(maxsize=1)
def _get_proxy() -> AdvisorProxy:
    """Build the proxy once per worker from environment configuration."""
    return AdvisorProxy(AdvisorConfig.from_env())


def _to_http_response(response: ProxyResponse) -> Response:
    if response.is_stream:
        return StreamingResponse(
            response.body,
            status_code=response.status_code,
            headers=response.headers,
        )
    return Response(
        content=response.body,
        status_code=response.status_code,
        headers=response.headers,
    )


# ---------------------------------------------------------------------------
# HTTP: Rural advisor (streaming chat-completion proxy)
# ---------------------------------------------------------------------------


@app.function_name("rural_advisor")
@app.route(route="rural-advisor", methods=["POST", "OPTIONS"])
async def rural_advisor(req: Request) -> Response:
    """Validate the advisor request and relay the gateway's SSE stream.

    ``OPTIONS`` answers the CORS preflight.  A body that is not JSON is
    rejected with 400 before the gateway is contacted.
    """
    return await dispatch_advisor_request(req, _get_proxy())


async def dispatch_advisor_request(req: Request, proxy: AdvisorProxy) -> Response:
    """Route an advisor HTTP request to the proxy."""
    if req.method == "OPTIONS":
        return _to_http_response(proxy.preflight())

    try:
        body = await req.json()
    except ValueError:
        logger.warning("Advisor request body is not valid JSON")
        return _to_http_response(ProxyResponse.from_error(AdvisorRequestError("Request body must be JSON")))

    # The gateway call blocks until upstream headers arrive.
    result = await asyncio.to_thread(proxy.handle, body)
    return _to_http_response(result)

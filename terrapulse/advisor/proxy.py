"""Passthrough proxy between the dashboard and the chat-completion gateway.

Validates the advisor request body, wraps it in the advisor prompts, and
forwards a streaming completion request to the gateway with the
server-side API key.  Once the gateway answers 2xx, its SSE body is
relayed chunk by chunk as it arrives, with
``Content-Type: text/event-stream``; nothing is buffered.

Upstream failures are translated into JSON error bodies:
- 429 -> 429 rate limited
- 402 -> 402 payment required
- anything else -> 500 service unavailable

Error bodies are ``{"error": <message>, "category", "code", "stage",
"retryable"}`` built from the advisor error taxonomy.  Every response
carries permissive CORS headers so the browser dashboard can call the
proxy directly.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

import httpx
import pydantic

from terrapulse.advisor.errors import (
    AdvisorRequestError,
    AdvisorUnavailableError,
    QuotaExhaustedError,
    RateLimitedError,
)
from terrapulse.advisor.prompts import build_gateway_payload
from terrapulse.core.constants import EVENT_STREAM_CONTENT_TYPE
from terrapulse.models.field import AdvisorRequest

if TYPE_CHECKING:
    from collections.abc import Iterator
    from types import TracebackType

    from terrapulse.advisor.errors import AdvisorError
    from terrapulse.core.config import AdvisorConfig

logger = logging.getLogger("terrapulse.advisor.proxy")

PROXY_STAGE = "advisor_proxy"

CORS_HEADERS: dict[str, str] = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": "authorization, x-client-info, apikey, content-type",
}

PROXY_RATE_LIMITED_MESSAGE = "Rate limit exceeded. Please try again later."
PROXY_PAYMENT_REQUIRED_MESSAGE = "Payment required. Please add credits to continue using AI features."
PROXY_UNAVAILABLE_MESSAGE = "AI service unavailable"
MISSING_GATEWAY_KEY_MESSAGE = "Gateway API key is not configured"


@dataclass(frozen=True, slots=True)
class ProxyResponse:
    """Transport-neutral HTTP response produced by the proxy.

    Attributes:
        status_code: HTTP status to return.
        body: Complete body, or an iterator of chunks to stream as they
            are produced.
        headers: Response headers, CORS included.
    """

    status_code: int
    body: bytes | Iterator[bytes] = b""
    headers: dict[str, str] = field(default_factory=dict)

    @property
    def content_type(self) -> str:
        return self.headers.get("Content-Type", "")

    @property
    def is_stream(self) -> bool:
        return not isinstance(self.body, bytes)

    @classmethod
    def from_error(cls, error: AdvisorError) -> ProxyResponse:
        """Render an advisor error as a JSON error response."""
        details = error.to_error_dict()
        payload = {"error": details.pop("message"), **details}
        return cls(
            status_code=error.status_code,
            body=json.dumps(payload).encode("utf-8"),
            headers={**CORS_HEADERS, "Content-Type": "application/json"},
        )


class AdvisorProxy:
    """Forward advisor requests to the chat-completion gateway.

    Args:
        config: Gateway URL, model, API key and timeout.
        http_client: Optional pre-built ``httpx.Client``.  When omitted
            the proxy owns and closes its own.
    """

    def __init__(
        self,
        config: AdvisorConfig,
        *,
        http_client: httpx.Client | None = None,
    ) -> None:
        self._config = config
        self._owns_client = http_client is None
        self._client = http_client or httpx.Client(timeout=config.timeout_s)

    def __enter__(self) -> AdvisorProxy:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    def preflight(self) -> ProxyResponse:
        """Answer a CORS ``OPTIONS`` request."""
        return ProxyResponse(status_code=200, headers=dict(CORS_HEADERS))

    def handle(self, body: object) -> ProxyResponse:
        """Validate *body*, call the gateway, and relay its stream.

        Returns as soon as the gateway's status line is known.  On success
        the response body is a chunk iterator that reads from the gateway
        while it is being consumed and closes the upstream response when
        exhausted or closed.
        """
        try:
            request = AdvisorRequest.model_validate(body)
        except pydantic.ValidationError as exc:
            logger.warning("Rejected advisor request body | errors=%d", exc.error_count())
            return ProxyResponse.from_error(
                AdvisorRequestError(f"Invalid advisor request: {exc.error_count()} error(s)")
            )

        if not self._config.gateway_api_key:
            logger.error("Gateway API key is not configured")
            return ProxyResponse.from_error(
                AdvisorUnavailableError(MISSING_GATEWAY_KEY_MESSAGE, status_code=500, stage=PROXY_STAGE)
            )

        upstream_request = self._client.build_request(
            "POST",
            self._config.gateway_url,
            json=build_gateway_payload(request, self._config.model),
            headers={
                "Authorization": f"Bearer {self._config.gateway_api_key}",
                "Content-Type": "application/json",
            },
        )

        logger.info(
            "Forwarding advisor request | field=%s | model=%s | has_query=%s",
            request.field.name,
            self._config.model,
            bool(request.query),
        )

        try:
            response = self._client.send(upstream_request, stream=True)
            if not response.is_success:
                try:
                    error_body = response.read()
                finally:
                    response.close()
                return ProxyResponse.from_error(self._upstream_error(response.status_code, error_body))
        except httpx.HTTPError as exc:
            logger.error("Gateway request failed | error=%s", exc)
            return ProxyResponse.from_error(self._unavailable())

        return ProxyResponse(
            status_code=200,
            body=self._relay(response),
            headers={**CORS_HEADERS, "Content-Type": EVENT_STREAM_CONTENT_TYPE},
        )

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _relay(self, response: httpx.Response) -> Iterator[bytes]:
        relayed = 0
        try:
            for chunk in response.iter_bytes():
                relayed += len(chunk)
                yield chunk
        except httpx.HTTPError as exc:
            logger.error("Gateway stream interrupted | relayed=%d bytes | error=%s", relayed, exc)
            raise
        finally:
            response.close()
        logger.info("Gateway stream relayed | bytes=%d", relayed)

    def _upstream_error(self, status_code: int, body: bytes) -> AdvisorError:
        if status_code == 429:
            logger.warning("Gateway rate limited the advisor request")
            return RateLimitedError(PROXY_RATE_LIMITED_MESSAGE, stage=PROXY_STAGE)
        if status_code == 402:
            logger.warning("Gateway credits exhausted")
            return QuotaExhaustedError(PROXY_PAYMENT_REQUIRED_MESSAGE, stage=PROXY_STAGE)
        logger.error(
            "Gateway error | status=%d | body=%s",
            status_code,
            body.decode("utf-8", errors="replace")[:500],
        )
        return self._unavailable()

    @staticmethod
    def _unavailable() -> AdvisorUnavailableError:
        return AdvisorUnavailableError(PROXY_UNAVAILABLE_MESSAGE, status_code=500, stage=PROXY_STAGE)

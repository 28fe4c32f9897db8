"""HTTP client for the streaming advisor endpoint.

Posts an ``AdvisorRequest`` to the advisor proxy and decodes the
``text/event-stream`` response into growing-text snapshots with a fresh
``DeltaDecoder`` per request.

Status handling happens before any stream processing:
- 429 -> ``RateLimitedError``
- 402 -> ``QuotaExhaustedError``
- other non-2xx -> ``AdvisorUnavailableError``

Transport failures (connect, read, timeout) and an empty body raise
``AdvisorStreamError``.  No retry is attempted here.
"""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING

import httpx

from terrapulse.advisor.errors import AdvisorStreamError, error_for_status
from terrapulse.streaming.sse import DeltaDecoder

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Callable, Iterator
    from types import TracebackType

    from terrapulse.core.config import AdvisorConfig
    from terrapulse.models.field import AdvisorRequest

logger = logging.getLogger("terrapulse.advisor.client")


def _build_headers(config: AdvisorConfig) -> dict[str, str]:
    headers = {"Content-Type": "application/json"}
    if config.api_key:
        headers["Authorization"] = f"Bearer {config.api_key}"
    return headers


def _error_detail(body: bytes) -> str:
    """Pull the ``error`` field out of a JSON error body, if there is one."""
    try:
        data = json.loads(body)
    except (json.JSONDecodeError, UnicodeDecodeError):
        return ""
    if isinstance(data, dict):
        return str(data.get("error", ""))
    return ""


class AdvisorClient:
    """Synchronous advisor client.

    Args:
        config: Advisor endpoint, key and timeout.
        http_client: Optional pre-built ``httpx.Client`` (tests inject one
            with a mock transport).  When omitted the client owns and
            closes its own.
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

    def __enter__(self) -> AdvisorClient:
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

    def stream_advice(
        self,
        request: AdvisorRequest,
        *,
        should_stop: Callable[[], bool] | None = None,
    ) -> Iterator[str]:
        """Yield growing advice snapshots as the response streams in.

        Closing the generator early closes the HTTP response.  *should_stop*
        is checked before every received chunk, keepalives included; once
        it returns true the stream ends without further snapshots.

        Raises:
            AdvisorError: On a non-2xx status, an empty body, or a
                transport failure.
        """
        url = self._config.advisor_url
        logger.info("Advisor request started | url=%s | field=%s", url, request.field.name)

        try:
            with self._client.stream(
                "POST",
                url,
                json=request.to_payload(),
                headers=_build_headers(self._config),
            ) as response:
                if not response.is_success:
                    detail = _error_detail(response.read())
                    logger.warning(
                        "Advisor request rejected | status=%d | detail=%s",
                        response.status_code,
                        detail,
                    )
                    raise error_for_status(response.status_code, detail)

                decoder = DeltaDecoder()
                received = 0
                for chunk in response.iter_bytes():
                    if should_stop is not None and should_stop():
                        logger.info("Advisor stream stopped by caller | received=%d bytes", received)
                        return
                    received += len(chunk)
                    yield from decoder.feed(chunk)
                    if decoder.done:
                        break
                if not received:
                    msg = "Advisor response has no body"
                    raise AdvisorStreamError(msg)
                yield from decoder.close()
        except httpx.HTTPError as exc:
            logger.warning("Advisor stream failed | url=%s | error=%s", url, exc)
            msg = f"Advisor stream failed: {exc}"
            raise AdvisorStreamError(msg) from exc

        logger.info("Advisor request completed | received=%d bytes | chars=%d", received, len(decoder.text))

    def request_advice(self, request: AdvisorRequest) -> str:
        """Stream the full response and return the final text."""
        text = ""
        for snapshot in self.stream_advice(request):
            text = snapshot
        return text


class AsyncAdvisorClient:
    """Asynchronous advisor client built on ``httpx.AsyncClient``."""

    def __init__(
        self,
        config: AdvisorConfig,
        *,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self._config = config
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(timeout=config.timeout_s)

    async def __aenter__(self) -> AsyncAdvisorClient:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def stream_advice(self, request: AdvisorRequest) -> AsyncIterator[str]:
        """Async counterpart of ``AdvisorClient.stream_advice``."""
        url = self._config.advisor_url
        logger.info("Advisor request started | url=%s | field=%s", url, request.field.name)

        try:
            async with self._client.stream(
                "POST",
                url,
                json=request.to_payload(),
                headers=_build_headers(self._config),
            ) as response:
                if not response.is_success:
                    detail = _error_detail(await response.aread())
                    logger.warning(
                        "Advisor request rejected | status=%d | detail=%s",
                        response.status_code,
                        detail,
                    )
                    raise error_for_status(response.status_code, detail)

                decoder = DeltaDecoder()
                received = 0
                async for chunk in response.aiter_bytes():
                    received += len(chunk)
                    for snapshot in decoder.feed(chunk):
                        yield snapshot
                    if decoder.done:
                        break
                if not received:
                    msg = "Advisor response has no body"
                    raise AdvisorStreamError(msg)
                for snapshot in decoder.close():
                    yield snapshot
        except httpx.HTTPError as exc:
            logger.warning("Advisor stream failed | url=%s | error=%s", url, exc)
            msg = f"Advisor stream failed: {exc}"
            raise AdvisorStreamError(msg) from exc

        logger.info("Advisor request completed | received=%d bytes | chars=%d", received, len(decoder.text))

    async def request_advice(self, request: AdvisorRequest) -> str:
        text = ""
        async for snapshot in self.stream_advice(request):
            text = snapshot
        return text

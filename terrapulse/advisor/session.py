"""Caller-side policy for one advisor conversation panel.

Failures are terminal for the in-flight request and never reach the
user as exceptions: the partially accumulated text is discarded and a
short notification is raised through the ``notify`` hook instead.

A session runs one request at a time; concurrent requests use separate
sessions (each client call already owns its own decoder).
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from typing import TYPE_CHECKING

from terrapulse.advisor.errors import AdvisorError

if TYPE_CHECKING:
    from collections.abc import Callable

    from terrapulse.advisor.client import AdvisorClient, AsyncAdvisorClient
    from terrapulse.models.field import AdvisorRequest

logger = logging.getLogger("terrapulse.advisor.session")


class AdvisorSession:
    """Run advisor requests and expose the growing text.

    Args:
        client: The advisor client used to issue requests.
        notify: Called with a user-facing message when a request fails.
        on_update: Called with every new text snapshot.
    """

    def __init__(
        self,
        client: AdvisorClient,
        *,
        notify: Callable[[str], None],
        on_update: Callable[[str], None] | None = None,
    ) -> None:
        self._client = client
        self._notify = notify
        self._on_update = on_update
        self._cancelled = False
        self.text = ""
        self.loading = False

    def cancel(self) -> None:
        """Stop reading the current stream before its next chunk.

        The flag is checked for every chunk the client receives, keepalive
        comments included, so a stream that never produces text still ends.
        """
        self._cancelled = True

    def run(self, request: AdvisorRequest) -> str:
        """Issue *request* and return the final text.

        Returns ``""`` when the request failed or was cancelled.
        """
        self._cancelled = False
        self.loading = True
        self._set_text("")
        try:
            stream = self._client.stream_advice(request, should_stop=lambda: self._cancelled)
            with contextlib.closing(stream):
                for snapshot in stream:
                    if self._cancelled:
                        break
                    self._set_text(snapshot)
            if self._cancelled:
                logger.info("Advisor request cancelled | field=%s", request.field.name)
                self._set_text("")
        except AdvisorError as exc:
            logger.error(
                "Advisor request failed | field=%s | code=%s | error=%s",
                request.field.name,
                exc.code,
                exc,
            )
            self._set_text("")
            self._notify(exc.user_message)
        finally:
            self.loading = False
        return self.text

    def _set_text(self, text: str) -> None:
        self.text = text
        if self._on_update is not None:
            self._on_update(text)


class AsyncAdvisorSession:
    """Asynchronous counterpart of ``AdvisorSession``.

    Cancelling the task running ``run()`` aborts the stream; the
    partial text is discarded before ``CancelledError`` propagates.
    """

    def __init__(
        self,
        client: AsyncAdvisorClient,
        *,
        notify: Callable[[str], None],
        on_update: Callable[[str], None] | None = None,
    ) -> None:
        self._client = client
        self._notify = notify
        self._on_update = on_update
        self.text = ""
        self.loading = False

    async def run(self, request: AdvisorRequest) -> str:
        self.loading = True
        self._set_text("")
        try:
            async for snapshot in self._client.stream_advice(request):
                self._set_text(snapshot)
        except AdvisorError as exc:
            logger.error(
                "Advisor request failed | field=%s | code=%s | error=%s",
                request.field.name,
                exc.code,
                exc,
            )
            self._set_text("")
            self._notify(exc.user_message)
        except asyncio.CancelledError:
            self._set_text("")
            raise
        finally:
            self.loading = False
        return self.text

    def _set_text(self, text: str) -> None:
        self.text = text
        if self._on_update is not None:
            self._on_update(text)

"""Advisor exception hierarchy.

Distinguishes the HTTP statuses that carry specific meaning (429 rate
limited, 402 quota exhausted) from generic failures.  Every error carries
a ``user_message`` suitable for a transient notification; callers show
that instead of letting the exception reach the user.

The same classes describe failures on both sides of the wire: the client
raises them for the statuses it receives, and the proxy renders them as
the JSON error bodies it sends (``status_code`` + ``to_error_dict()``).
"""

from __future__ import annotations

from terrapulse.core.exceptions import PermanentError, TerraPulseError, TransientError, ValidationError

RATE_LIMITED_MESSAGE = "Rate limit exceeded. Please try again later."
QUOTA_EXHAUSTED_MESSAGE = "AI credits depleted. Please add credits to continue."
GENERIC_FAILURE_MESSAGE = "Failed to get AI response. Please try again."


class AdvisorError(TerraPulseError):
    """Base exception for advisor request failures.

    Attributes:
        status_code: HTTP status associated with the failure (0 when the
            failure happened below HTTP).
        user_message: Short, user-facing notification text.
    """

    default_stage = "advisor_client"
    default_code = "ADVISOR_ERROR"
    user_message: str = GENERIC_FAILURE_MESSAGE

    def __init__(
        self,
        message: str,
        *,
        status_code: int = 0,
        retryable: bool = False,
        stage: str = "",
    ) -> None:
        self.status_code = status_code
        super().__init__(message, stage=stage, retryable=retryable)


class RateLimitedError(AdvisorError, TransientError):
    """HTTP 429: retry later.  Never retried automatically."""

    default_code = "ADVISOR_RATE_LIMITED"
    user_message = RATE_LIMITED_MESSAGE

    def __init__(self, message: str = RATE_LIMITED_MESSAGE, *, stage: str = "") -> None:
        super().__init__(message, status_code=429, retryable=True, stage=stage)


class QuotaExhaustedError(AdvisorError, PermanentError):
    """HTTP 402: AI credits exhausted."""

    default_code = "ADVISOR_QUOTA_EXHAUSTED"
    user_message = QUOTA_EXHAUSTED_MESSAGE

    def __init__(self, message: str = QUOTA_EXHAUSTED_MESSAGE, *, stage: str = "") -> None:
        super().__init__(message, status_code=402, retryable=False, stage=stage)


class AdvisorUnavailableError(AdvisorError):
    """Any other non-2xx status from the advisor endpoint."""

    default_code = "ADVISOR_UNAVAILABLE"


class AdvisorRequestError(AdvisorError, ValidationError):
    """HTTP 400: the advisor request body was rejected by the proxy."""

    default_stage = "advisor_proxy"
    default_code = "ADVISOR_REQUEST_INVALID"

    def __init__(self, message: str) -> None:
        super().__init__(message, status_code=400)


class AdvisorStreamError(AdvisorError):
    """Missing response body or a network failure mid-stream."""

    default_code = "ADVISOR_STREAM_FAILED"

    def __init__(self, message: str) -> None:
        super().__init__(message, retryable=True)


def error_for_status(status_code: int, detail: str = "") -> AdvisorError:
    """Map a non-2xx HTTP status onto the advisor error taxonomy."""
    if status_code == 429:
        return RateLimitedError()
    if status_code == 402:
        return QuotaExhaustedError()
    message = f"Advisor endpoint returned HTTP {status_code}"
    if detail:
        message = f"{message}: {detail}"
    return AdvisorUnavailableError(message, status_code=status_code)

"""AI advisor: streaming client, caller-side session, and gateway proxy."""

from terrapulse.advisor.client import AdvisorClient, AsyncAdvisorClient
from terrapulse.advisor.errors import (
    AdvisorError,
    AdvisorRequestError,
    AdvisorStreamError,
    AdvisorUnavailableError,
    QuotaExhaustedError,
    RateLimitedError,
)
from terrapulse.advisor.proxy import AdvisorProxy, ProxyResponse
from terrapulse.advisor.session import AdvisorSession, AsyncAdvisorSession

__all__ = [
    "AdvisorClient",
    "AdvisorError",
    "AdvisorProxy",
    "AdvisorRequestError",
    "AdvisorSession",
    "AdvisorStreamError",
    "AdvisorUnavailableError",
    "AsyncAdvisorClient",
    "AsyncAdvisorSession",
    "ProxyResponse",
    "QuotaExhaustedError",
    "RateLimitedError",
]

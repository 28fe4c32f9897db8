"""Unified exception taxonomy.

Every domain exception inherits from ``TerraPulseError`` and records the
component that raised it (``stage``), a machine-readable ``code`` and
whether the caller may retry.  The advisor proxy serialises these fields
into its JSON error bodies via ``to_error_dict()``.

Categories
----------
- ``ValidationError``: bad input (request bodies, uploads, models), never retryable.
- ``TransientError``: throttling and network failures, retryable.
- ``PermanentError``: failures a retry cannot fix (exhausted credits).
"""

from __future__ import annotations


class TerraPulseError(Exception):
    """Base exception for all TerraPulse domain errors.

    Attributes:
        message: Human-readable error description.
        stage: Component where the error occurred
            (e.g. ``"advisor_proxy"``, ``"custom_layer"``).
        code: Machine-readable error code (e.g. ``"ADVISOR_RATE_LIMITED"``).
        retryable: Whether the caller may retry the operation.
    """

    default_stage: str = ""
    default_code: str = ""

    def __init__(
        self,
        message: str = "",
        *,
        stage: str = "",
        code: str = "",
        retryable: bool = False,
    ) -> None:
        self.message = message
        self.stage = stage or self.default_stage
        self.code = code or self.default_code
        self.retryable = retryable
        super().__init__(message)

    @property
    def category(self) -> str:
        """``"validation"``, ``"transient"`` or ``"permanent"``."""
        if isinstance(self, ValidationError):
            return "validation"
        if isinstance(self, TransientError):
            return "transient"
        if isinstance(self, PermanentError):
            return "permanent"
        return "transient" if self.retryable else "permanent"

    def to_error_dict(self) -> dict[str, object]:
        """Structured payload with stable keys for logs and HTTP error bodies."""
        return {
            "category": self.category,
            "code": self.code,
            "stage": self.stage,
            "message": self.message,
            "retryable": self.retryable,
        }


class ValidationError(TerraPulseError):
    """Input or domain-model validation failure. Never retryable."""

    def __init__(self, message: str = "", **kwargs: object) -> None:
        kwargs.setdefault("retryable", False)
        super().__init__(message, **kwargs)  # type: ignore[arg-type]


class TransientError(TerraPulseError):
    """Temporary failure that may succeed on retry."""

    def __init__(self, message: str = "", **kwargs: object) -> None:
        kwargs.setdefault("retryable", True)
        super().__init__(message, **kwargs)  # type: ignore[arg-type]


class PermanentError(TerraPulseError):
    """Failure that a retry cannot fix."""

    def __init__(self, message: str = "", **kwargs: object) -> None:
        kwargs.setdefault("retryable", False)
        super().__init__(message, **kwargs)  # type: ignore[arg-type]

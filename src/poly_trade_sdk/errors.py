"""Error taxonomy for the order pipeline.

Every error carries the pipeline ``stage`` that failed and an optional
``detail`` mapping with the underlying chain or service message, so callers
can decide whether to retry with fresh order parameters.
"""

from typing import Any, Dict, Optional


class PipelineError(Exception):
    """Base class for all pipeline failures."""

    stage = "pipeline"

    def __init__(
        self,
        message: str,
        *,
        stage: Optional[str] = None,
        detail: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        if stage is not None:
            self.stage = stage
        self.detail = detail or {}

    def __str__(self) -> str:
        return f"[{self.stage}] {self.message}"


class ConfigError(PipelineError):
    """Configuration is missing a field or holds a malformed value."""

    stage = "config"


class InvalidOrder(PipelineError):
    """Order parameters are invalid. Raised before any side effect."""

    stage = "validation"


class InvalidAmount(InvalidOrder):
    """Price or size outside its domain."""


class ApprovalFailed(PipelineError):
    """An approval transaction reverted or did not confirm in time."""

    stage = "approval"


class SigningFailed(PipelineError):
    """Signing key unavailable or typed-data signature could not be built."""

    stage = "signing"


class CredentialError(PipelineError):
    """API credentials could not be derived or were rejected."""

    stage = "credentials"


class SubmissionRejected(PipelineError):
    """The matching service returned a structured rejection."""

    stage = "submission"

    def __init__(self, message: str, *, result: Any = None, **kwargs: Any):
        super().__init__(message, **kwargs)
        self.result = result


class SubmissionTimeout(PipelineError):
    """No response within the request timeout. The outcome is unknown.

    Query the order status before resubmitting.
    """

    stage = "submission"

    def __init__(self, message: str, *, salt: Optional[int] = None, **kwargs: Any):
        super().__init__(message, **kwargs)
        self.salt = salt


__all__ = [
    "PipelineError",
    "ConfigError",
    "InvalidOrder",
    "InvalidAmount",
    "ApprovalFailed",
    "SigningFailed",
    "CredentialError",
    "SubmissionRejected",
    "SubmissionTimeout",
]

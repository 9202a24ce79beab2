"""Matching service (CLOB) authentication and order submission."""

from .types import ApiCredentials, SubmissionResult
from .auth import (
    CLOB_AUTH_MESSAGE,
    build_clob_auth_typed_data,
    build_hmac_signature,
    l1_headers,
    l2_headers,
)
from .credentials import CredentialManager
from .client import SubmissionClient

__all__ = [
    "ApiCredentials",
    "SubmissionResult",
    "CLOB_AUTH_MESSAGE",
    "build_clob_auth_typed_data",
    "build_hmac_signature",
    "l1_headers",
    "l2_headers",
    "CredentialManager",
    "SubmissionClient",
]

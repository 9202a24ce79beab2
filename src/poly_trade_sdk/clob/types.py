"""CLOB Types."""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from ..errors import SubmissionRejected


@dataclass(frozen=True)
class ApiCredentials:
    """API credentials bound to one signing address.

    Sensitive: kept in memory for the session only.
    """

    api_key: str
    api_secret: str = field(repr=False)
    api_passphrase: str = field(repr=False)

    @classmethod
    def from_response(cls, data: Dict[str, Any]) -> "ApiCredentials":
        return cls(
            api_key=str(data["apiKey"]).strip(),
            api_secret=str(data["secret"]).strip(),
            api_passphrase=str(data["passphrase"]).strip(),
        )


@dataclass
class SubmissionResult:
    """Outcome of an order submission as reported by the matching service."""

    success: bool
    order_id: Optional[str] = None
    status: Optional[str] = None
    error_message: Optional[str] = None
    """Service message, unmodified."""

    transaction_hashes: List[str] = field(default_factory=list)
    http_status: Optional[int] = None
    raw: Dict[str, Any] = field(default_factory=dict, repr=False)

    @classmethod
    def from_response(cls, data: Dict[str, Any], http_status: int) -> "SubmissionResult":
        error_message = data.get("errorMsg") or data.get("error") or None
        success = data.get("success")
        if success is None:
            success = http_status < 400 and not error_message
        return cls(
            success=bool(success),
            order_id=data.get("orderID") or data.get("orderId") or None,
            status=data.get("status"),
            error_message=error_message,
            transaction_hashes=list(
                data.get("transactionsHashes") or data.get("transactionHashes") or []
            ),
            http_status=http_status,
            raw=data,
        )

    def raise_for_rejection(self) -> "SubmissionResult":
        """Raise SubmissionRejected if the service did not accept the order."""
        if not self.success:
            raise SubmissionRejected(
                self.error_message or f"Order rejected (HTTP {self.http_status})",
                result=self,
                detail={"status": self.status, "http_status": self.http_status},
            )
        return self

"""Approval Types.

Approval requests are derived from live chain state on every attempt and
never cached beyond the chain's own allowance storage.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional


class ApprovalKind(str, Enum):
    ERC20_ALLOWANCE = "erc20_allowance"
    ERC1155_OPERATOR = "erc1155_operator"


@dataclass(frozen=True)
class ApprovalRequest:
    """One permission the funding account must hold before trading."""

    kind: ApprovalKind

    token: str
    """Token contract (collateral ERC-20 or conditional tokens ERC-1155)."""

    owner: str
    """Funding account."""

    spender: str
    """Exchange contract (spender for ERC-20, operator for ERC-1155)."""

    required_amount: Optional[int] = None
    """Minimum allowance for ERC-20 requests."""

    grant_amount: Optional[int] = None
    """Allowance ceiling to approve when the current one is insufficient."""


@dataclass(frozen=True)
class ApprovalStatus:
    """Live chain state for an ApprovalRequest."""

    request: ApprovalRequest
    satisfied: bool
    current_allowance: Optional[int] = None
    approved: Optional[bool] = None


@dataclass(frozen=True)
class TransactionIntent:
    """A contract call to be executed by the funding account."""

    to: str
    data: str
    """ABI-encoded calldata (0x hex)."""

    chain_id: int
    value: int = 0
    description: str = ""


@dataclass(frozen=True)
class PreparedTransaction:
    """Intent accepted by a smart-account executor, awaiting authorization."""

    intent: TransactionIntent

    root_hash: str
    """Hash the owner key must sign to authorize execution."""

    handle: Any = field(default=None, compare=False)
    """Executor-specific object passed back on send."""


@dataclass(frozen=True)
class ApprovalOutcome:
    """Result of ensuring one approval."""

    request: ApprovalRequest
    skipped: bool
    """True when chain state already satisfied the request."""

    tx_ref: Optional[str] = None
    """Transaction hash or executor reference when a transaction was sent."""

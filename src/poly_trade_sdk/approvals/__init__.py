"""Token approvals required before trading on the exchange."""

from .types import (
    ApprovalKind,
    ApprovalRequest,
    ApprovalStatus,
    ApprovalOutcome,
    TransactionIntent,
    PreparedTransaction,
)
from .chain import (
    ChainGateway,
    TransactionExecutor,
    Web3ChainGateway,
    encode_approve,
    encode_set_approval_for_all,
)
from .orchestrator import ApprovalOrchestrator

__all__ = [
    "ApprovalKind",
    "ApprovalRequest",
    "ApprovalStatus",
    "ApprovalOutcome",
    "TransactionIntent",
    "PreparedTransaction",
    "ChainGateway",
    "TransactionExecutor",
    "Web3ChainGateway",
    "encode_approve",
    "encode_set_approval_for_all",
    "ApprovalOrchestrator",
]

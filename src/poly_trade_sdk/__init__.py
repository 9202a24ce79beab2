"""Poly Trade SDK.

Client-side pipeline for placing signed limit orders on the Polymarket CTF
Exchange: approvals, order construction, EIP-712 signing, API credentials,
and submission to the matching service.
"""

from .config import PipelineConfig
from .errors import (
    PipelineError,
    ConfigError,
    InvalidOrder,
    InvalidAmount,
    ApprovalFailed,
    SigningFailed,
    CredentialError,
    SubmissionRejected,
    SubmissionTimeout,
)
from .order import (
    Side,
    SignatureType,
    OrderType,
    TokenAmount,
    Order,
    SignedOrder,
    OrderBuilder,
    compute_amounts,
    sign_order,
    verify_order_signature,
    LocalAccountSigner,
    format_usdc,
    parse_usdc,
)
from .approvals import ApprovalOrchestrator, TransactionExecutor, Web3ChainGateway
from .clob import ApiCredentials, CredentialManager, SubmissionClient, SubmissionResult
from .pipeline import OrderPipeline, OrderRequest

__version__ = "0.1.0"

__all__ = [
    "PipelineConfig",
    # Errors
    "PipelineError",
    "ConfigError",
    "InvalidOrder",
    "InvalidAmount",
    "ApprovalFailed",
    "SigningFailed",
    "CredentialError",
    "SubmissionRejected",
    "SubmissionTimeout",
    # Orders
    "Side",
    "SignatureType",
    "OrderType",
    "TokenAmount",
    "Order",
    "SignedOrder",
    "OrderBuilder",
    "compute_amounts",
    "sign_order",
    "verify_order_signature",
    "LocalAccountSigner",
    "format_usdc",
    "parse_usdc",
    # Approvals
    "ApprovalOrchestrator",
    "TransactionExecutor",
    "Web3ChainGateway",
    # CLOB
    "ApiCredentials",
    "CredentialManager",
    "SubmissionClient",
    "SubmissionResult",
    # Pipeline
    "OrderPipeline",
    "OrderRequest",
]

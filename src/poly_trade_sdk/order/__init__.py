"""CTF Exchange Order Module.

This module provides order construction and signing for the CTF Exchange.

Key components:
- Amount calculation (Decimal based, rounded to token precision)
- Order assembly (random salt, serialised nonce source)
- Order signing and verification (EIP-712)
- Utility functions for USDC formatting

Example usage:
    ```python
    from poly_trade_sdk.order import (
        OrderBuilder,
        Side,
        compute_amounts,
        sign_order,
        CTF_EXCHANGE_POLYGON,
    )

    maker_amount, taker_amount = compute_amounts(Side.BUY, "0.42", 100)

    builder = OrderBuilder(maker="0x...", signer="0x...")
    order = builder.build(
        token_id="3412...",
        side=Side.BUY,
        maker_amount=maker_amount,
        taker_amount=taker_amount,
    )

    signed = sign_order(
        private_key="0x...",
        exchange_address=CTF_EXCHANGE_POLYGON,
        order=order,
        chain_id=137,
    )
    ```
"""

from .types import (
    Side,
    SignatureType,
    OrderType,
    TokenAmount,
    Order,
    SignedOrder,
    ORDER_TYPES,
)
from .amounts import compute_amounts
from .builder import (
    OrderBuilder,
    NonceSource,
    MonotonicNonceSource,
    FixedNonceSource,
    generate_salt,
    validate_expiration,
)
from .signing import (
    create_eip712_domain,
    build_order_typed_data,
    sign_order,
    sign_order_with_signer,
    recover_order_signer,
    verify_order_signature,
    LocalAccountSigner,
    TypedDataSigner,
)
from .utils import (
    USDC_POLYGON,
    CONDITIONAL_TOKENS_POLYGON,
    CTF_EXCHANGE_POLYGON,
    NEG_RISK_CTF_EXCHANGE_POLYGON,
    NEG_RISK_ADAPTER_POLYGON,
    CLOB_HOST,
    POLYGON_CHAIN_ID,
    ZERO_ADDRESS,
    MAX_UINT256,
    format_usdc,
    parse_usdc,
    to_token_units,
)

__all__ = [
    # Types
    "Side",
    "SignatureType",
    "OrderType",
    "TokenAmount",
    "Order",
    "SignedOrder",
    "ORDER_TYPES",
    # Amounts
    "compute_amounts",
    # Builder
    "OrderBuilder",
    "NonceSource",
    "MonotonicNonceSource",
    "FixedNonceSource",
    "generate_salt",
    "validate_expiration",
    # Signing
    "create_eip712_domain",
    "build_order_typed_data",
    "sign_order",
    "sign_order_with_signer",
    "recover_order_signer",
    "verify_order_signature",
    "LocalAccountSigner",
    "TypedDataSigner",
    # Utils
    "USDC_POLYGON",
    "CONDITIONAL_TOKENS_POLYGON",
    "CTF_EXCHANGE_POLYGON",
    "NEG_RISK_CTF_EXCHANGE_POLYGON",
    "NEG_RISK_ADAPTER_POLYGON",
    "CLOB_HOST",
    "POLYGON_CHAIN_ID",
    "ZERO_ADDRESS",
    "MAX_UINT256",
    "format_usdc",
    "parse_usdc",
    "to_token_units",
]

"""Order Types for the CTF Exchange.

User-facing types for order construction and signing.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum, IntEnum
from typing import Any, Dict, Union


class Side(IntEnum):
    """Order side as encoded in the signed struct."""

    BUY = 0
    SELL = 1

    @classmethod
    def parse(cls, value: Union["Side", str, int]) -> "Side":
        if isinstance(value, Side):
            return value
        if isinstance(value, str):
            try:
                return cls[value.strip().upper()]
            except KeyError:
                raise ValueError(f"Invalid side: {value!r}. Must be BUY or SELL") from None
        return cls(value)


class SignatureType(IntEnum):
    """Custody model of the signing key."""

    EOA = 0
    POLY_PROXY = 1
    POLY_GNOSIS_SAFE = 2


class OrderType(str, Enum):
    """Order lifetime policy."""

    GTC = "GTC"
    """Good-till-canceled."""

    FOK = "FOK"
    """Fill-or-kill."""

    FAK = "FAK"
    """Fill-and-kill."""

    GTD = "GTD"
    """Good-till-date. Requires a non-zero expiration."""


@dataclass(frozen=True)
class TokenAmount:
    """Exact amount in a token's smallest unit."""

    value: int
    """Integer amount in base units (e.g. 1000000 = 1 USDC)."""

    decimals: int
    """Decimal precision of the token."""

    def __post_init__(self) -> None:
        if isinstance(self.value, bool) or not isinstance(self.value, int):
            raise TypeError(f"TokenAmount value must be int, got {type(self.value).__name__}")
        if self.value < 0:
            raise ValueError(f"TokenAmount must be non-negative, got {self.value}")
        if self.decimals < 0:
            raise ValueError(f"Invalid decimals: {self.decimals}")

    def to_decimal(self) -> Decimal:
        return Decimal(self.value).scaleb(-self.decimals)

    def __int__(self) -> int:
        return self.value

    def __str__(self) -> str:
        return str(self.value)


@dataclass(frozen=True)
class Order:
    """Unsigned order. Field order matches ORDER_TYPES."""

    salt: int
    """Random 128-bit value, unique per order."""

    maker: str
    """Funding address (EOA, proxy, or Safe)."""

    signer: str
    """Address of the signing key."""

    taker: str
    """Counterparty. Zero address means any taker."""

    token_id: int
    """Outcome token (ERC-1155) id."""

    maker_amount: TokenAmount
    """Amount the maker gives up."""

    taker_amount: TokenAmount
    """Amount the maker receives."""

    expiration: int
    """Unix seconds; 0 means no expiration."""

    nonce: int
    """Maker nonce."""

    fee_rate_bps: int
    """Fee rate in basis points (0 - 10000)."""

    side: Side
    """BUY or SELL."""

    signature_type: SignatureType
    """Signer custody model."""

    def to_message(self) -> Dict[str, Any]:
        """EIP-712 message dict (camelCase keys, integer values)."""
        return {
            "salt": self.salt,
            "maker": self.maker,
            "signer": self.signer,
            "taker": self.taker,
            "tokenId": self.token_id,
            "makerAmount": self.maker_amount.value,
            "takerAmount": self.taker_amount.value,
            "expiration": self.expiration,
            "nonce": self.nonce,
            "feeRateBps": self.fee_rate_bps,
            "side": int(self.side),
            "signatureType": int(self.signature_type),
        }


@dataclass(frozen=True)
class SignedOrder:
    """Order with its EIP-712 signature."""

    order: Order

    signature: str = field(repr=False)
    """EIP-712 signature (65 bytes packed hex string)."""

    def to_payload(self) -> Dict[str, Any]:
        """Wire representation expected by the CLOB ``/order`` endpoint."""
        order = self.order
        return {
            "salt": str(order.salt),
            "maker": order.maker,
            "signer": order.signer,
            "taker": order.taker,
            "tokenId": str(order.token_id),
            "makerAmount": str(order.maker_amount.value),
            "takerAmount": str(order.taker_amount.value),
            "expiration": str(order.expiration),
            "nonce": str(order.nonce),
            "feeRateBps": str(order.fee_rate_bps),
            "side": order.side.name,
            "signatureType": int(order.signature_type),
            "signature": self.signature,
        }


# EIP-712 types for the exchange order
ORDER_TYPES = {
    "Order": [
        {"name": "salt", "type": "uint256"},
        {"name": "maker", "type": "address"},
        {"name": "signer", "type": "address"},
        {"name": "taker", "type": "address"},
        {"name": "tokenId", "type": "uint256"},
        {"name": "makerAmount", "type": "uint256"},
        {"name": "takerAmount", "type": "uint256"},
        {"name": "expiration", "type": "uint256"},
        {"name": "nonce", "type": "uint256"},
        {"name": "feeRateBps", "type": "uint256"},
        {"name": "side", "type": "uint8"},
        {"name": "signatureType", "type": "uint8"},
    ],
}

EIP712_DOMAIN_TYPE = [
    {"name": "name", "type": "string"},
    {"name": "version", "type": "string"},
    {"name": "chainId", "type": "uint256"},
    {"name": "verifyingContract", "type": "address"},
]

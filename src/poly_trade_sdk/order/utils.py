"""Contract addresses and unit helpers for the CTF Exchange on Polygon."""

from decimal import Decimal, ROUND_HALF_UP
from typing import Union

# USDC.e on Polygon (the exchange settles in bridged USDC, not native USDC)
USDC_POLYGON = "0x2791Bca1f2de4661ED88A30C99A7a9449Aa84174"

# Conditional Tokens (ERC-1155 outcome tokens)
CONDITIONAL_TOKENS_POLYGON = "0x4D97DCd97eC945f40cF65F87097ACe5EA0476045"

# Exchange contracts
CTF_EXCHANGE_POLYGON = "0x4bFb41d5B3570DeFd03C39a9A4D8dE6Bd8B8982E"
NEG_RISK_CTF_EXCHANGE_POLYGON = "0xC5d563A36AE78145C45a50134d48A1215220f80a"
NEG_RISK_ADAPTER_POLYGON = "0xd91E80cF2E7be2e162c6513ceD06f1dD0dA35296"

CLOB_HOST = "https://clob.polymarket.com"
POLYGON_CHAIN_ID = 137

# Zero address
ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"

MAX_UINT256 = 2**256 - 1

USDC_DECIMALS = 6
SHARE_DECIMALS = 6

MAX_FEE_RATE_BPS = 10_000

Number = Union[Decimal, int, float, str]


def to_decimal(value: Number) -> Decimal:
    """Convert to Decimal without going through binary float digits."""
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool):
        raise TypeError("bool is not a number")
    if isinstance(value, float):
        return Decimal(repr(value))
    return Decimal(value)


def to_token_units(amount: Number, decimals: int) -> int:
    """Round a human amount to ``decimals`` places and return base units.

    Args:
        amount: Human readable amount (e.g. "1.5")
        decimals: Token precision

    Returns:
        Integer amount (e.g. 1500000 for 6 decimals)
    """
    quantum = Decimal(1).scaleb(-decimals)
    rounded = to_decimal(amount).quantize(quantum, rounding=ROUND_HALF_UP)
    return int(rounded.scaleb(decimals))


def format_usdc(amount: int) -> str:
    """Format USDC amount (6 decimals) to human readable string.

    Args:
        amount: USDC amount in 6 decimals (e.g., 1000000 = $1)

    Returns:
        Human readable string (e.g., "1")
    """
    text = f"{Decimal(amount).scaleb(-USDC_DECIMALS):.6f}"
    return text.rstrip("0").rstrip(".")


def parse_usdc(amount: Number) -> int:
    """Parse human readable amount to USDC (6 decimals).

    Args:
        amount: Human readable amount (e.g., 1.50)

    Returns:
        USDC amount in 6 decimals (e.g., 1500000)
    """
    return to_token_units(amount, USDC_DECIMALS)

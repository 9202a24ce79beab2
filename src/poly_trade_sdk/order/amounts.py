"""Maker/taker amount calculation.

All arithmetic runs in ``Decimal``. Values are rounded to the token precision
with ROUND_HALF_UP and only then converted to integer base units.
"""

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Tuple, Union

from ..errors import InvalidAmount
from .types import Side, TokenAmount
from .utils import Number, SHARE_DECIMALS, USDC_DECIMALS, to_decimal


def _as_decimal(name: str, value: Number) -> Decimal:
    try:
        result = to_decimal(value)
    except (InvalidOperation, TypeError, ValueError) as exc:
        raise InvalidAmount(f"Invalid {name}: {value!r}", detail={name: value}) from exc
    if not result.is_finite():
        raise InvalidAmount(f"Invalid {name}: {value!r}", detail={name: value})
    return result


def _quantize(value: Decimal, decimals: int) -> Decimal:
    return value.quantize(Decimal(1).scaleb(-decimals), rounding=ROUND_HALF_UP)


def compute_amounts(
    side: Union[Side, str, int],
    price: Number,
    size: Number,
    collateral_decimals: int = USDC_DECIMALS,
    share_decimals: int = SHARE_DECIMALS,
) -> Tuple[TokenAmount, TokenAmount]:
    """Convert a price and share count into maker and taker amounts.

    For a BUY order the maker pays ``price * size`` collateral and receives
    ``size`` shares. For a SELL order the maker gives ``size`` shares and
    receives ``price * size`` collateral.

    Args:
        side: BUY or SELL
        price: Price per share, strictly between 0 and 1
        size: Number of shares, strictly positive
        collateral_decimals: Collateral token precision (6 for USDC)
        share_decimals: Outcome token precision

    Returns:
        (maker_amount, taker_amount)

    Raises:
        InvalidAmount: If price or size is outside its domain, or rounds to zero
    """
    try:
        side = Side.parse(side)
    except ValueError as exc:
        raise InvalidAmount(str(exc), detail={"side": side}) from exc

    price_d = _as_decimal("price", price)
    size_d = _as_decimal("size", size)

    if price_d <= 0 or price_d >= 1:
        raise InvalidAmount(
            f"Invalid price: {price}. Must be between 0 and 1 (exclusive)",
            detail={"price": str(price_d)},
        )
    if size_d <= 0:
        raise InvalidAmount(
            f"Invalid size: {size}. Must be greater than 0",
            detail={"size": str(size_d)},
        )

    price_d = _quantize(price_d, collateral_decimals)
    size_d = _quantize(size_d, share_decimals)
    if price_d <= 0 or price_d >= 1:
        raise InvalidAmount(
            f"Price {price} rounds outside (0, 1) at {collateral_decimals} decimals",
            detail={"price": str(price_d)},
        )

    collateral_d = _quantize(price_d * size_d, collateral_decimals)

    shares = TokenAmount(int(size_d.scaleb(share_decimals)), share_decimals)
    collateral = TokenAmount(int(collateral_d.scaleb(collateral_decimals)), collateral_decimals)

    if shares.value == 0 or collateral.value == 0:
        raise InvalidAmount(
            f"Order too small: {size} shares @ {price} rounds to zero",
            detail={"price": str(price_d), "size": str(size_d)},
        )

    if side == Side.BUY:
        return collateral, shares  # maker pays collateral
    return shares, collateral  # maker gives shares

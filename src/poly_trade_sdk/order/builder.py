"""Order assembly.

Builds unsigned ``Order`` records. Salts come from ``secrets`` (128 bits);
nonces from a ``NonceSource`` whose generation is serialised by a lock so
concurrent builders for the same maker never collide.
"""

import secrets
import threading
import time
from typing import Optional, Protocol, Union

from eth_utils import is_address, to_checksum_address

from ..errors import InvalidOrder
from .types import Order, OrderType, Side, SignatureType, TokenAmount
from .utils import MAX_FEE_RATE_BPS, ZERO_ADDRESS

SALT_BITS = 128

# The exchange rejects GTD orders expiring within this window
MIN_GTD_LEAD_SECONDS = 60


class NonceSource(Protocol):
    """Source of order nonces."""

    def next_nonce(self) -> int:
        ...


class MonotonicNonceSource:
    """Strictly increasing nonces seeded from wall-clock milliseconds.

    Survives process restarts without going backwards as long as the clock
    does not, and never repeats within a process.
    """

    def __init__(self, start: Optional[int] = None):
        self._last = start if start is not None else int(time.time() * 1000) - 1
        self._lock = threading.Lock()

    def next_nonce(self) -> int:
        with self._lock:
            self._last = max(self._last + 1, int(time.time() * 1000))
            return self._last


class FixedNonceSource:
    """Constant nonce.

    For exchanges that treat the nonce as an on-chain cancellation epoch
    rather than a per-order counter.
    """

    def __init__(self, nonce: int = 0):
        if nonce < 0:
            raise ValueError(f"Invalid nonce: {nonce}")
        self._nonce = nonce

    def next_nonce(self) -> int:
        return self._nonce


def generate_salt() -> int:
    """Return a random 128-bit salt."""
    return secrets.randbits(SALT_BITS)


def _checksum(name: str, address: str) -> str:
    if not is_address(address):
        raise InvalidOrder(f"Invalid {name} address: {address}", detail={name: address})
    return to_checksum_address(address)


def validate_expiration(
    order_type: Union[OrderType, str],
    expiration: int,
    now: Optional[int] = None,
) -> None:
    """Check the expiration is consistent with the lifetime policy.

    Raises:
        InvalidOrder: If a GTD order lacks a future expiration or a non-GTD
            order carries one
    """
    order_type = OrderType(order_type)
    if expiration < 0:
        raise InvalidOrder(f"Invalid expiration: {expiration}")
    if order_type == OrderType.GTD:
        now = int(time.time()) if now is None else now
        if expiration < now + MIN_GTD_LEAD_SECONDS:
            raise InvalidOrder(
                f"GTD expiration must be at least {MIN_GTD_LEAD_SECONDS}s in the future",
                detail={"expiration": expiration, "now": now},
            )
    elif expiration != 0:
        raise InvalidOrder(
            f"Expiration is only allowed for GTD orders, got {order_type.value}",
            detail={"expiration": expiration},
        )


class OrderBuilder:
    """Assembles unsigned orders for one (maker, signer) pair."""

    def __init__(
        self,
        maker: str,
        signer: str,
        signature_type: SignatureType = SignatureType.EOA,
        nonce_source: Optional[NonceSource] = None,
    ):
        self.maker = _checksum("maker", maker)
        self.signer = _checksum("signer", signer)
        self.signature_type = SignatureType(signature_type)
        self.nonce_source = nonce_source or MonotonicNonceSource()

    def build(
        self,
        token_id: Union[int, str],
        side: Union[Side, str],
        maker_amount: TokenAmount,
        taker_amount: TokenAmount,
        expiration: int = 0,
        fee_rate_bps: int = 0,
        taker: str = ZERO_ADDRESS,
        salt: Optional[int] = None,
        nonce: Optional[int] = None,
    ) -> Order:
        """Create an unsigned order.

        Args:
            token_id: Outcome token id (decimal string, 0x hex, or int)
            side: BUY or SELL
            maker_amount: Amount the maker gives
            taker_amount: Amount the maker receives
            expiration: Unix seconds (0 = never)
            fee_rate_bps: Fee rate in basis points
            taker: Counterparty (zero address = open order)
            salt: Override the random salt
            nonce: Override the nonce source

        Returns:
            Unsigned Order

        Raises:
            InvalidOrder: If any field is out of range
        """
        try:
            side = Side.parse(side)
        except ValueError as exc:
            raise InvalidOrder(str(exc)) from exc

        try:
            token_int = int(token_id, 0) if isinstance(token_id, str) else int(token_id)
        except ValueError as exc:
            raise InvalidOrder(f"Invalid token_id: {token_id}") from exc
        if token_int <= 0:
            raise InvalidOrder(f"Invalid token_id: {token_id}")

        if not 0 <= fee_rate_bps <= MAX_FEE_RATE_BPS:
            raise InvalidOrder(
                f"Invalid fee_rate_bps: {fee_rate_bps}. Must be between 0 and {MAX_FEE_RATE_BPS}"
            )
        if expiration < 0:
            raise InvalidOrder(f"Invalid expiration: {expiration}")

        return Order(
            salt=generate_salt() if salt is None else salt,
            maker=self.maker,
            signer=self.signer,
            taker=_checksum("taker", taker),
            token_id=token_int,
            maker_amount=maker_amount,
            taker_amount=taker_amount,
            expiration=expiration,
            nonce=self.nonce_source.next_nonce() if nonce is None else nonce,
            fee_rate_bps=fee_rate_bps,
            side=side,
            signature_type=self.signature_type,
        )

"""Order Signing for the CTF Exchange.

Provides EIP-712 signing functions that work with various wallet types:
- eth_account.Account (direct signing)
- Any TypedDataSigner (local key wrapper, remote wallets)
"""

import logging
from typing import Any, Dict, Protocol

from eth_account import Account
from eth_account.messages import encode_defunct, encode_typed_data
from eth_utils import is_address, to_checksum_address, to_hex

from ..errors import SigningFailed
from .types import EIP712_DOMAIN_TYPE, ORDER_TYPES, Order, SignedOrder

logger = logging.getLogger(__name__)

EXCHANGE_DOMAIN_NAME = "Polymarket CTF Exchange"
EXCHANGE_DOMAIN_VERSION = "1"


def create_eip712_domain(
    exchange_address: str,
    chain_id: int,
    name: str = EXCHANGE_DOMAIN_NAME,
    version: str = EXCHANGE_DOMAIN_VERSION,
) -> Dict[str, Any]:
    """Create EIP-712 domain for the exchange contract.

    Args:
        exchange_address: Address of the exchange (verifying contract)
        chain_id: Chain ID (137 for Polygon)
        name: Domain name registered by the exchange
        version: Domain version registered by the exchange

    Returns:
        EIP-712 domain dictionary

    Raises:
        ValueError: If exchange address is invalid
    """
    if not is_address(exchange_address):
        raise ValueError(f"Invalid exchange address: {exchange_address}")

    return {
        "name": name,
        "version": version,
        "chainId": chain_id,
        "verifyingContract": to_checksum_address(exchange_address),
    }


def build_order_typed_data(order: Order, domain: Dict[str, Any]) -> Dict[str, Any]:
    """Full EIP-712 payload (types, primaryType, domain, message) for an order."""
    return {
        "types": {"EIP712Domain": EIP712_DOMAIN_TYPE, **ORDER_TYPES},
        "primaryType": "Order",
        "domain": domain,
        "message": order.to_message(),
    }


def _with_domain_type(params: Dict[str, Any]) -> Dict[str, Any]:
    types = dict(params["types"])
    types.setdefault("EIP712Domain", EIP712_DOMAIN_TYPE)
    return {**params, "types": types}


class TypedDataSigner(Protocol):
    """Protocol for signers that can sign EIP-712 typed data."""

    async def get_address(self) -> str:
        """Get the signer's address."""
        ...

    async def sign_typed_data(self, params: Dict[str, Any]) -> str:
        """Sign EIP-712 typed data.

        Args:
            params: Dict with domain, types, primaryType, and message

        Returns:
            Signature as hex string
        """
        ...


class LocalAccountSigner:
    """TypedDataSigner backed by a local private key.

    Also signs EIP-191 personal messages, used to authorize smart-account
    operations. The key is never exposed through ``repr`` or logs.
    """

    def __init__(self, private_key: str):
        try:
            self._account = Account.from_key(private_key)
        except Exception as exc:
            raise SigningFailed("Signing key could not be loaded") from exc

    def __repr__(self) -> str:
        return f"LocalAccountSigner(address={self.address})"

    @property
    def address(self) -> str:
        return self._account.address

    async def get_address(self) -> str:
        return self._account.address

    async def sign_typed_data(self, params: Dict[str, Any]) -> str:
        signable = encode_typed_data(full_message=_with_domain_type(params))
        return to_hex(self._account.sign_message(signable).signature)

    async def sign_message(self, message: bytes) -> str:
        """Sign raw bytes as an EIP-191 personal message."""
        return to_hex(self._account.sign_message(encode_defunct(primitive=message)).signature)


def sign_order(
    private_key: str,
    exchange_address: str,
    order: Order,
    chain_id: int = 137,
) -> SignedOrder:
    """Sign an order with EIP-712 using a private key.

    Use this when you have direct access to a private key.

    Args:
        private_key: Private key (hex string with or without 0x prefix)
        exchange_address: Address of the exchange contract
        order: Order to sign
        chain_id: Chain ID (default: 137 for Polygon)

    Returns:
        SignedOrder with signature

    Raises:
        SigningFailed: If the key is unusable or the payload cannot be encoded
    """
    try:
        domain = create_eip712_domain(exchange_address, chain_id)
        account = Account.from_key(private_key)
        if account.address.lower() != order.signer.lower():
            raise SigningFailed(
                f"Key address {account.address} does not match order signer {order.signer}"
            )
        signable = encode_typed_data(full_message=build_order_typed_data(order, domain))
        signed_message = account.sign_message(signable)
    except SigningFailed:
        raise
    except Exception as exc:
        raise SigningFailed(f"Order signing failed: {exc}") from exc

    return SignedOrder(order=order, signature=to_hex(signed_message.signature))


async def sign_order_with_signer(
    signer: TypedDataSigner,
    exchange_address: str,
    order: Order,
    chain_id: int = 137,
) -> SignedOrder:
    """Sign an order with EIP-712 using any compatible signer.

    Args:
        signer: Signer that implements TypedDataSigner protocol
        exchange_address: Address of the exchange contract
        order: Order to sign
        chain_id: Chain ID (default: 137 for Polygon)

    Returns:
        SignedOrder with signature
    """
    try:
        domain = create_eip712_domain(exchange_address, chain_id)
        signer_address = await signer.get_address()
        if signer_address.lower() != order.signer.lower():
            raise SigningFailed(
                f"Signer address {signer_address} does not match order signer {order.signer}"
            )
        signature = await signer.sign_typed_data(
            {
                "domain": domain,
                "types": ORDER_TYPES,
                "primaryType": "Order",
                "message": order.to_message(),
            }
        )
    except SigningFailed:
        raise
    except Exception as exc:
        raise SigningFailed(f"Order signing failed: {exc}") from exc

    logger.debug("Signed order salt=%s side=%s", order.salt, order.side.name)
    return SignedOrder(order=order, signature=signature)


def recover_order_signer(
    signed_order: SignedOrder,
    exchange_address: str,
    chain_id: int,
) -> str:
    """Recover the address that produced an order signature."""
    domain = create_eip712_domain(exchange_address, chain_id)
    signable = encode_typed_data(
        full_message=build_order_typed_data(signed_order.order, domain)
    )
    signature = signed_order.signature
    return Account.recover_message(
        signable,
        signature=bytes.fromhex(signature[2:] if signature.startswith("0x") else signature),
    )


def verify_order_signature(
    signed_order: SignedOrder,
    exchange_address: str,
    chain_id: int,
    expected_signer: str,
) -> bool:
    """Verify an order signature locally (for EOA signatures).

    Note: This only works for EOA signatures. For Safe signatures,
    verification must happen on-chain via EIP-1271.

    Returns:
        True if signature is valid and from expected signer
    """
    try:
        recovered = recover_order_signer(signed_order, exchange_address, chain_id)
    except Exception:
        return False
    return recovered.lower() == expected_signer.lower()

"""CLOB authentication headers.

Two levels:
- L1: EIP-712 signature over a ``ClobAuth`` struct, proving control of the
  signing key. Used to create or derive API credentials.
- L2: HMAC-SHA256 over ``timestamp + METHOD + path + body`` keyed by the API
  secret. Used for every order-management call.
"""

import base64
import hashlib
import hmac
import json
import time
from typing import Any, Dict, Optional

from ..order.signing import TypedDataSigner
from .types import ApiCredentials

CLOB_AUTH_MESSAGE = "This message attests that I control the given wallet"

CLOB_AUTH_DOMAIN_NAME = "ClobAuthDomain"
CLOB_AUTH_DOMAIN_VERSION = "1"

CLOB_AUTH_TYPES = {
    "EIP712Domain": [
        {"name": "name", "type": "string"},
        {"name": "version", "type": "string"},
        {"name": "chainId", "type": "uint256"},
    ],
    "ClobAuth": [
        {"name": "address", "type": "address"},
        {"name": "timestamp", "type": "string"},
        {"name": "nonce", "type": "uint256"},
        {"name": "message", "type": "string"},
    ],
}


def build_clob_auth_typed_data(
    address: str, chain_id: int, timestamp: int, nonce: int = 0
) -> Dict[str, Any]:
    return {
        "types": CLOB_AUTH_TYPES,
        "primaryType": "ClobAuth",
        "domain": {
            "name": CLOB_AUTH_DOMAIN_NAME,
            "version": CLOB_AUTH_DOMAIN_VERSION,
            "chainId": chain_id,
        },
        "message": {
            "address": address,
            "timestamp": str(timestamp),
            "nonce": nonce,
            "message": CLOB_AUTH_MESSAGE,
        },
    }


async def l1_headers(
    signer: TypedDataSigner,
    chain_id: int,
    nonce: int = 0,
    timestamp: Optional[int] = None,
) -> Dict[str, str]:
    """Headers for the credential endpoints."""
    address = await signer.get_address()
    timestamp = int(time.time()) if timestamp is None else timestamp
    signature = await signer.sign_typed_data(
        build_clob_auth_typed_data(address, chain_id, timestamp, nonce)
    )
    return {
        "POLY_ADDRESS": address,
        "POLY_SIGNATURE": signature,
        "POLY_TIMESTAMP": str(timestamp),
        "POLY_NONCE": str(nonce),
    }


def serialize_body(body: Any) -> str:
    """Compact JSON. The exact string sent must be the one that was signed."""
    if body is None or body == "":
        return ""
    if isinstance(body, str):
        return body
    return json.dumps(body, separators=(",", ":"))


def build_hmac_signature(
    secret: str, timestamp: int, method: str, path: str, body: str = ""
) -> str:
    key = base64.urlsafe_b64decode(secret + "=" * (-len(secret) % 4))
    message = f"{timestamp}{method.upper()}{path}{body}"
    digest = hmac.new(key, message.encode("utf-8"), hashlib.sha256).digest()
    return base64.urlsafe_b64encode(digest).decode("utf-8")


def l2_headers(
    credentials: ApiCredentials,
    address: str,
    method: str,
    path: str,
    body: str = "",
    timestamp: Optional[int] = None,
) -> Dict[str, str]:
    """Headers for authenticated order-management calls.

    Args:
        credentials: API credentials for ``address``
        address: Signing address the credentials are bound to
        method: HTTP method
        path: Request path without query string
        body: Serialized request body exactly as sent
    """
    timestamp = int(time.time()) if timestamp is None else timestamp
    return {
        "POLY_ADDRESS": address,
        "POLY_SIGNATURE": build_hmac_signature(
            credentials.api_secret, timestamp, method, path, body
        ),
        "POLY_TIMESTAMP": str(timestamp),
        "POLY_API_KEY": credentials.api_key,
        "POLY_PASSPHRASE": credentials.api_passphrase,
    }

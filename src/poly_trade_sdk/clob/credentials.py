"""API credential management.

Credentials are derived by challenge-response: the signing key signs a
``ClobAuth`` message and the service returns the key/secret/passphrase triple
bound to that address. Deriving is deterministic, so ``create_or_derive`` is
idempotent for an identity. Credentials are cached for the session only.
"""

import asyncio
import logging
from typing import Optional

import httpx

from ..errors import CredentialError
from ..order.signing import TypedDataSigner
from .auth import l1_headers
from .types import ApiCredentials

logger = logging.getLogger(__name__)

DERIVE_API_KEY_PATH = "/auth/derive-api-key"
CREATE_API_KEY_PATH = "/auth/api-key"


class CredentialManager:
    """Create-or-derive and cache API credentials for one signer."""

    def __init__(
        self,
        host: str,
        signer: TypedDataSigner,
        chain_id: int,
        http_client: httpx.AsyncClient,
        credentials: Optional[ApiCredentials] = None,
        nonce: int = 0,
    ):
        self.host = host.rstrip("/")
        self.signer = signer
        self.chain_id = chain_id
        self.nonce = nonce
        self._http = http_client
        self._cached = credentials
        self._lock = asyncio.Lock()

    async def get_credentials(self) -> ApiCredentials:
        """Return session credentials, deriving them on first use."""
        async with self._lock:
            if self._cached is None:
                self._cached = await self.create_or_derive()
            return self._cached

    def invalidate(self) -> None:
        """Drop cached credentials so the next call derives them again."""
        self._cached = None

    async def create_or_derive(self) -> ApiCredentials:
        """Derive existing credentials, creating them if none exist.

        Raises:
            CredentialError: If both derive and create fail
        """
        derived = await self._call("GET", DERIVE_API_KEY_PATH)
        if derived is not None:
            logger.info("Derived existing API credentials")
            return derived

        created = await self._call("POST", CREATE_API_KEY_PATH)
        if created is not None:
            logger.info("Created new API credentials")
            return created

        raise CredentialError(
            "Could not create or derive API credentials",
            detail={"address": await self.signer.get_address()},
        )

    async def _call(self, method: str, path: str) -> Optional[ApiCredentials]:
        try:
            headers = await l1_headers(self.signer, self.chain_id, nonce=self.nonce)
        except Exception as exc:
            raise CredentialError(f"Could not sign auth challenge: {exc}") from exc

        try:
            response = await self._http.request(method, f"{self.host}{path}", headers=headers)
        except httpx.HTTPError as exc:
            raise CredentialError(f"{method} {path} failed: {exc}") from exc

        if response.status_code != 200:
            logger.debug("%s %s returned %s", method, path, response.status_code)
            return None
        try:
            return ApiCredentials.from_response(response.json())
        except (ValueError, KeyError, TypeError) as exc:
            raise CredentialError(
                f"Malformed credential response from {path}",
                detail={"status": response.status_code},
            ) from exc

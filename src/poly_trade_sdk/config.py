"""Pipeline configuration.

All settings are carried by an explicit ``PipelineConfig`` passed to the
pipeline at construction time. ``from_env`` is the only place that reads the
process environment.
"""

import os
from dataclasses import dataclass, field
from typing import List, Mapping, Optional

from dotenv import load_dotenv
from eth_account import Account
from eth_utils import is_address, to_checksum_address

from .errors import ConfigError
from .order.types import SignatureType
from .order.utils import (
    CLOB_HOST,
    CONDITIONAL_TOKENS_POLYGON,
    CTF_EXCHANGE_POLYGON,
    MAX_UINT256,
    NEG_RISK_ADAPTER_POLYGON,
    NEG_RISK_CTF_EXCHANGE_POLYGON,
    POLYGON_CHAIN_ID,
    SHARE_DECIMALS,
    USDC_DECIMALS,
    USDC_POLYGON,
)

_ADDRESS_FIELDS = (
    "collateral_address",
    "conditional_tokens_address",
    "exchange_address",
    "neg_risk_exchange_address",
    "neg_risk_adapter_address",
)


@dataclass
class PipelineConfig:
    """Resolved configuration with all defaults applied."""

    rpc_url: str
    """Polygon JSON-RPC endpoint."""

    private_key: str = field(repr=False)
    """Signing key of the owner EOA. Never logged."""

    funder_address: Optional[str] = None
    """Funding account. Defaults to the signer (EOA model)."""

    chain_id: int = POLYGON_CHAIN_ID
    clob_host: str = CLOB_HOST
    signature_type: SignatureType = SignatureType.EOA

    collateral_address: str = USDC_POLYGON
    conditional_tokens_address: str = CONDITIONAL_TOKENS_POLYGON
    exchange_address: str = CTF_EXCHANGE_POLYGON
    neg_risk_exchange_address: str = NEG_RISK_CTF_EXCHANGE_POLYGON
    neg_risk_adapter_address: str = NEG_RISK_ADAPTER_POLYGON

    collateral_decimals: int = USDC_DECIMALS
    share_decimals: int = SHARE_DECIMALS

    service_api_key: Optional[str] = field(default=None, repr=False)
    """Optional key sent as X-API-KEY to the matching service."""

    api_key: Optional[str] = None
    api_secret: Optional[str] = field(default=None, repr=False)
    api_passphrase: Optional[str] = field(default=None, repr=False)
    """Static CLOB credentials. When all three are set derivation is skipped."""

    request_timeout: float = 15.0
    """Seconds before an HTTP call is abandoned."""

    approval_timeout: float = 120.0
    """Seconds to wait for an approval transaction to confirm."""

    min_allowance: int = 1000 * 10**USDC_DECIMALS
    """Re-approve when the allowance drops below this (base units)."""

    allowance_ceiling: int = MAX_UINT256
    """Allowance granted by an approval transaction."""

    min_priority_fee_gwei: int = 30
    """Polygon rejects transactions below this priority fee."""

    def __post_init__(self) -> None:
        self.validate()

    @property
    def signer_address(self) -> str:
        return Account.from_key(self.private_key).address

    @property
    def maker_address(self) -> str:
        return self.funder_address or self.signer_address

    @property
    def uses_proxy_funder(self) -> bool:
        return self.maker_address.lower() != self.signer_address.lower()

    def has_static_credentials(self) -> bool:
        return bool(self.api_key and self.api_secret and self.api_passphrase)

    def approval_spenders(self, neg_risk: bool = False) -> List[str]:
        """Contracts that must be approved to move the funder's tokens."""
        if neg_risk:
            return [
                self.exchange_address,
                self.neg_risk_exchange_address,
                self.neg_risk_adapter_address,
            ]
        return [self.exchange_address]

    def verifying_contract(self, neg_risk: bool = False) -> str:
        return self.neg_risk_exchange_address if neg_risk else self.exchange_address

    def validate(self) -> None:
        """Check every required field once, at construction.

        Raises:
            ConfigError: On the first missing or malformed field
        """
        if not self.rpc_url:
            raise ConfigError("rpc_url is required")
        if not self.private_key:
            raise ConfigError("private_key is required")
        try:
            Account.from_key(self.private_key)
        except Exception as exc:
            raise ConfigError("private_key is not a valid secp256k1 key") from exc

        if self.funder_address is not None:
            if not is_address(self.funder_address):
                raise ConfigError(f"Invalid funder_address: {self.funder_address}")
            self.funder_address = to_checksum_address(self.funder_address)

        for name in _ADDRESS_FIELDS:
            value = getattr(self, name)
            if not is_address(value):
                raise ConfigError(f"Invalid {name}: {value}")
            setattr(self, name, to_checksum_address(value))

        if not self.clob_host.startswith(("http://", "https://")):
            raise ConfigError(f"Invalid clob_host: {self.clob_host}")
        self.clob_host = self.clob_host.rstrip("/")

        if self.chain_id <= 0:
            raise ConfigError(f"Invalid chain_id: {self.chain_id}")
        try:
            self.signature_type = SignatureType(self.signature_type)
        except ValueError as exc:
            raise ConfigError(f"Invalid signature_type: {self.signature_type}") from exc

        # EOA orders are funded by the signer; proxy and safe orders by another account
        if self.uses_proxy_funder and self.signature_type == SignatureType.EOA:
            raise ConfigError(
                f"funder_address {self.funder_address} differs from the signer; "
                "set signature_type to POLY_PROXY or POLY_GNOSIS_SAFE"
            )
        if not self.uses_proxy_funder and self.signature_type != SignatureType.EOA:
            raise ConfigError(
                f"signature_type {self.signature_type.name} requires a funder_address "
                "different from the signer"
            )

        if self.request_timeout <= 0 or self.approval_timeout <= 0:
            raise ConfigError("Timeouts must be positive")
        if self.allowance_ceiling < self.min_allowance:
            raise ConfigError("allowance_ceiling must be >= min_allowance")

        static = (self.api_key, self.api_secret, self.api_passphrase)
        if any(static) and not all(static):
            raise ConfigError("api_key, api_secret and api_passphrase must be set together")

    @classmethod
    def from_env(
        cls,
        env: Optional[Mapping[str, str]] = None,
        dotenv_path: Optional[str] = None,
    ) -> "PipelineConfig":
        """Build a config from environment variables.

        Loads a ``.env`` file first unless an explicit mapping is given.

        Raises:
            ConfigError: If a required variable is missing or invalid
        """
        if env is None:
            load_dotenv(dotenv_path)
            env = os.environ

        required = ["POLYGON_RPC", "OWNER_EOA_PK"]
        missing = [var for var in required if not env.get(var)]
        if missing:
            raise ConfigError(f"Missing required environment variables: {', '.join(missing)}")

        def _int(name: str, default: int) -> int:
            raw = env.get(name)
            if not raw:
                return default
            try:
                return int(raw)
            except ValueError as exc:
                raise ConfigError(f"{name} must be an integer, got {raw!r}") from exc

        return cls(
            rpc_url=env["POLYGON_RPC"],
            private_key=env["OWNER_EOA_PK"],
            funder_address=env.get("FUNDER_ADDRESS") or env.get("OWNER_EOA") or None,
            chain_id=_int("CHAIN_ID", POLYGON_CHAIN_ID),
            clob_host=env.get("CLOB_HOST") or CLOB_HOST,
            signature_type=_int("SIGNATURE_TYPE", int(SignatureType.EOA)),
            exchange_address=env.get("EXCHANGE_ADDRESS") or CTF_EXCHANGE_POLYGON,
            conditional_tokens_address=(
                env.get("CONDITIONAL_TOKENS_ADDRESS") or CONDITIONAL_TOKENS_POLYGON
            ),
            service_api_key=env.get("POLYMARKET_API_KEY") or None,
            api_key=env.get("CLOB_API_KEY") or None,
            api_secret=env.get("CLOB_SECRET") or None,
            api_passphrase=env.get("CLOB_PASS_PHRASE") or None,
        )

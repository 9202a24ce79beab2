"""Order placement pipeline.

Runs the full flow for one order:
1. Validate the request and compute maker/taker amounts
2. Assemble the unsigned order (salt, nonce)
3. Ensure on-chain approvals for the funding account
4. Sign the order (EIP-712)
5. Create or derive API credentials
6. Submit to the matching service

Validation (1, 2) completes before any chain or network call.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Union

import httpx

from .approvals import ApprovalOrchestrator, ApprovalOutcome, ChainGateway, TransactionExecutor
from .approvals.chain import Web3ChainGateway
from .clob import ApiCredentials, CredentialManager, SubmissionClient, SubmissionResult
from .config import PipelineConfig
from .errors import CredentialError, InvalidOrder
from .order import (
    NonceSource,
    Order,
    OrderBuilder,
    OrderType,
    Side,
    SignedOrder,
    compute_amounts,
    sign_order_with_signer,
    validate_expiration,
)
from .order.signing import LocalAccountSigner
from .order.utils import Number

logger = logging.getLogger(__name__)


@dataclass
class OrderRequest:
    """Parameters for placing a limit order."""

    token_id: Union[int, str]
    """Outcome token id."""

    side: Union[Side, str]
    """BUY or SELL."""

    price: Number
    """Price per share, strictly between 0 and 1."""

    size: Number
    """Number of shares."""

    order_type: Union[OrderType, str] = OrderType.GTC
    """Lifetime policy: GTC, FOK, FAK or GTD."""

    expiration: int = 0
    """Unix seconds. Required for GTD, must be 0 otherwise."""

    fee_rate_bps: int = 0
    """Fee rate in basis points."""

    neg_risk: bool = False
    """Market settles through the neg-risk exchange."""

    skip_approvals: bool = False
    """Skip the on-chain approval check for this order."""


class OrderPipeline:
    """Approval, signing, authentication and submission for one account.

    Example:
        ```python
        config = PipelineConfig.from_env()
        async with OrderPipeline(config) as pipeline:
            result = await pipeline.place_order(OrderRequest(
                token_id="3412...",
                side="BUY",
                price="0.38",
                size=5,
            ))
            if not result.success:
                print(result.error_message)
        ```
    """

    def __init__(
        self,
        config: PipelineConfig,
        chain: Optional[ChainGateway] = None,
        executor: Optional[TransactionExecutor] = None,
        http_client: Optional[httpx.AsyncClient] = None,
        nonce_source: Optional[NonceSource] = None,
    ):
        """Initialize the pipeline.

        Args:
            config: Validated configuration
            chain: Chain gateway (default: AsyncWeb3 against ``config.rpc_url``)
            executor: Smart-account executor for proxy-funded accounts
            http_client: Shared HTTP client (default: one owned by the pipeline)
            nonce_source: Order nonce source (default: monotonic counter)
        """
        self.config = config
        self.signer = LocalAccountSigner(config.private_key)

        self._owns_http = http_client is None
        self._http = http_client or httpx.AsyncClient(timeout=config.request_timeout)

        self.chain = chain or Web3ChainGateway(
            rpc_url=config.rpc_url,
            private_key=config.private_key,
            chain_id=config.chain_id,
            min_priority_fee_gwei=config.min_priority_fee_gwei,
            request_timeout=config.request_timeout,
        )
        self.approvals = ApprovalOrchestrator(config, self.chain, executor, self.signer)
        self.builder = OrderBuilder(
            maker=config.maker_address,
            signer=self.signer.address,
            signature_type=config.signature_type,
            nonce_source=nonce_source,
        )

        static_credentials = None
        if config.has_static_credentials():
            static_credentials = ApiCredentials(
                api_key=config.api_key,
                api_secret=config.api_secret,
                api_passphrase=config.api_passphrase,
            )
        self.credentials = CredentialManager(
            host=config.clob_host,
            signer=self.signer,
            chain_id=config.chain_id,
            http_client=self._http,
            credentials=static_credentials,
        )
        self.client = SubmissionClient(
            host=config.clob_host,
            address=self.signer.address,
            http_client=self._http,
            timeout=config.request_timeout,
            service_api_key=config.service_api_key,
        )

    async def __aenter__(self) -> "OrderPipeline":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    async def close(self) -> None:
        if self._owns_http:
            await self._http.aclose()

    def build_order(self, request: OrderRequest) -> Order:
        """Validate a request and assemble the unsigned order. No I/O.

        Raises:
            InvalidOrder: If any parameter is out of range
            InvalidAmount: If price or size is outside its domain
        """
        try:
            side = Side.parse(request.side)
            order_type = OrderType(request.order_type)
        except ValueError as exc:
            raise InvalidOrder(str(exc)) from exc
        validate_expiration(order_type, request.expiration)

        maker_amount, taker_amount = compute_amounts(
            side,
            request.price,
            request.size,
            collateral_decimals=self.config.collateral_decimals,
            share_decimals=self.config.share_decimals,
        )
        return self.builder.build(
            token_id=request.token_id,
            side=side,
            maker_amount=maker_amount,
            taker_amount=taker_amount,
            expiration=request.expiration,
            fee_rate_bps=request.fee_rate_bps,
        )

    async def ensure_approvals(self, order: Order, neg_risk: bool = False) -> List[ApprovalOutcome]:
        required = order.maker_amount.value if order.side == Side.BUY else None
        return await self.approvals.ensure_approvals(order.side, required, neg_risk)

    async def sign(self, order: Order, neg_risk: bool = False) -> SignedOrder:
        return await sign_order_with_signer(
            self.signer,
            self.config.verifying_contract(neg_risk),
            order,
            self.config.chain_id,
        )

    async def submit(
        self, signed_order: SignedOrder, order_type: Union[OrderType, str] = OrderType.GTC
    ) -> SubmissionResult:
        """Submit a signed order once. Never retried.

        Raises:
            CredentialError: Credentials could not be obtained or were rejected
            SubmissionTimeout: Outcome unknown; call ``reconcile`` before resubmitting
        """
        credentials = await self.credentials.get_credentials()
        try:
            return await self.client.post_order(signed_order, order_type, credentials)
        except CredentialError:
            self.credentials.invalidate()
            raise

    async def place_order(self, request: OrderRequest) -> SubmissionResult:
        """Place an order end to end.

        Returns:
            SubmissionResult. A service rejection comes back with
            ``success=False`` and the service's ``error_message``; call
            ``result.raise_for_rejection()`` to turn it into an exception.
        """
        order = self.build_order(request)
        logger.info(
            "Placing %s %s: maker=%s taker=%s token=%s",
            OrderType(request.order_type).value,
            order.side.name,
            order.maker_amount,
            order.taker_amount,
            order.token_id,
        )

        if not request.skip_approvals:
            await self.ensure_approvals(order, request.neg_risk)

        signed_order = await self.sign(order, request.neg_risk)
        return await self.submit(signed_order, request.order_type)

    async def reconcile(self, order_id: str) -> Dict[str, Any]:
        """Look up an order's status, e.g. after a SubmissionTimeout."""
        credentials = await self.credentials.get_credentials()
        return await self.client.get_order(order_id, credentials)

    async def cancel(self, order_id: str) -> Dict[str, Any]:
        credentials = await self.credentials.get_credentials()
        return await self.client.cancel_order(order_id, credentials)

    async def open_orders(self, asset_id: Optional[str] = None) -> List[Dict[str, Any]]:
        credentials = await self.credentials.get_credentials()
        return await self.client.get_open_orders(credentials, asset_id=asset_id)

    async def collateral_balance(self) -> int:
        """Collateral balance of the funding account in base units."""
        return await self.chain.balance_of(self.config.collateral_address, self.config.maker_address)

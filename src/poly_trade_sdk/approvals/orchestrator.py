"""Approval orchestration.

Makes sure the funding account has granted the exchange contracts permission
to move its tokens before an order is signed:

- BUY orders spend collateral, so each exchange needs an ERC-20 allowance.
- SELL orders give outcome tokens, so each exchange needs ERC-1155 operator
  approval.

Checks run against live chain state (check-then-act). Allowance changes made
out of band between the check and the trade only affect liveness: the next
attempt re-checks.
"""

import asyncio
import logging
from typing import List, Optional, Union

from eth_utils import to_bytes

from ..config import PipelineConfig
from ..errors import ApprovalFailed
from ..order.signing import LocalAccountSigner
from ..order.types import Side
from .chain import (
    ChainGateway,
    TransactionExecutor,
    encode_approve,
    encode_set_approval_for_all,
)
from .types import (
    ApprovalKind,
    ApprovalOutcome,
    ApprovalRequest,
    ApprovalStatus,
    TransactionIntent,
)

logger = logging.getLogger(__name__)


class ApprovalOrchestrator:
    """Check-then-act approval gate for one funding account.

    With no executor, approval transactions are signed by the gateway's key
    and sent directly (the funder must be that key's address). With an
    executor, they are handed to the smart-account relay as intents which
    the owner key authorizes.
    """

    def __init__(
        self,
        config: PipelineConfig,
        chain: ChainGateway,
        executor: Optional[TransactionExecutor] = None,
        signer: Optional[LocalAccountSigner] = None,
    ):
        if executor is not None and signer is None:
            raise ValueError("A signer is required to authorize executor transactions")
        self.config = config
        self.chain = chain
        self.executor = executor
        self.signer = signer

    @property
    def owner(self) -> str:
        return self.config.maker_address

    def required_approvals(
        self,
        side: Union[Side, str],
        required_amount: Optional[int] = None,
        neg_risk: bool = False,
    ) -> List[ApprovalRequest]:
        """Approvals needed to trade ``side`` from the funding account."""
        side = Side.parse(side)
        spenders = self.config.approval_spenders(neg_risk)

        if side == Side.BUY:
            threshold = max(required_amount or 0, self.config.min_allowance)
            grant = max(self.config.allowance_ceiling, threshold)
            return [
                ApprovalRequest(
                    kind=ApprovalKind.ERC20_ALLOWANCE,
                    token=self.config.collateral_address,
                    owner=self.owner,
                    spender=spender,
                    required_amount=threshold,
                    grant_amount=grant,
                )
                for spender in spenders
            ]

        return [
            ApprovalRequest(
                kind=ApprovalKind.ERC1155_OPERATOR,
                token=self.config.conditional_tokens_address,
                owner=self.owner,
                spender=spender,
            )
            for spender in spenders
        ]

    async def check(self, request: ApprovalRequest) -> ApprovalStatus:
        """Read the current allowance or operator flag for ``request``."""
        try:
            if request.kind == ApprovalKind.ERC20_ALLOWANCE:
                current = await self.chain.allowance(request.token, request.owner, request.spender)
                return ApprovalStatus(
                    request=request,
                    satisfied=current >= (request.required_amount or 0),
                    current_allowance=current,
                )
            approved = await self.chain.is_approved_for_all(
                request.token, request.owner, request.spender
            )
            return ApprovalStatus(request=request, satisfied=bool(approved), approved=bool(approved))
        except Exception as exc:
            raise ApprovalFailed(
                f"Could not read approval state for {request.spender}: {exc}",
                detail={"spender": request.spender, "token": request.token},
            ) from exc

    async def ensure_approvals(
        self,
        side: Union[Side, str],
        required_amount: Optional[int] = None,
        neg_risk: bool = False,
    ) -> List[ApprovalOutcome]:
        """Submit any missing approvals and wait for them to confirm.

        Checks for all spenders run concurrently. Approval transactions are
        sent one at a time, each awaited to confirmation.

        Raises:
            ApprovalFailed: If a check fails, or a transaction reverts or
                does not confirm in time
        """
        requests = self.required_approvals(side, required_amount, neg_risk)
        statuses = await asyncio.gather(*(self.check(request) for request in requests))

        outcomes = []
        for status in statuses:
            request = status.request
            if status.satisfied:
                logger.info("%s already approved for %s", request.spender, request.kind.value)
                outcomes.append(ApprovalOutcome(request=request, skipped=True))
                continue

            logger.info("Approving %s for %s", request.spender, request.kind.value)
            tx_ref = await self._execute(self._intent_for(request), request)
            logger.info("Approved %s (tx %s)", request.spender, tx_ref)
            outcomes.append(ApprovalOutcome(request=request, skipped=False, tx_ref=tx_ref))
        return outcomes

    def _intent_for(self, request: ApprovalRequest) -> TransactionIntent:
        if request.kind == ApprovalKind.ERC20_ALLOWANCE:
            return TransactionIntent(
                to=request.token,
                data=encode_approve(request.spender, request.grant_amount),
                chain_id=self.config.chain_id,
                description=f"approve {request.spender}",
            )
        return TransactionIntent(
            to=request.token,
            data=encode_set_approval_for_all(request.spender, True),
            chain_id=self.config.chain_id,
            description=f"setApprovalForAll {request.spender}",
        )

    async def _execute(self, intent: TransactionIntent, request: ApprovalRequest) -> str:
        if self.executor is not None:
            return await self._execute_via_executor(intent, request)
        return await self._execute_direct(intent, request)

    async def _execute_direct(self, intent: TransactionIntent, request: ApprovalRequest) -> str:
        if self.config.uses_proxy_funder:
            raise ApprovalFailed(
                f"Funder {self.owner} is not the signing key; an executor is required to approve",
                detail={"spender": request.spender},
            )

        detail = {"spender": request.spender, "token": request.token}
        try:
            tx_hash = await self.chain.send_transaction(intent)
        except Exception as exc:
            raise ApprovalFailed(f"Approval transaction failed to send: {exc}", detail=detail) from exc

        detail["tx_hash"] = tx_hash
        try:
            receipt = await self.chain.wait_for_receipt(tx_hash, self.config.approval_timeout)
        except (TimeoutError, asyncio.TimeoutError) as exc:
            raise ApprovalFailed(
                f"Approval {tx_hash} not confirmed within {self.config.approval_timeout}s",
                detail=detail,
            ) from exc
        except Exception as exc:
            raise ApprovalFailed(f"Approval {tx_hash} failed: {exc}", detail=detail) from exc

        if receipt.get("status") != 1:
            raise ApprovalFailed(f"Approval {tx_hash} reverted", detail=detail)
        return tx_hash

    async def _execute_via_executor(
        self, intent: TransactionIntent, request: ApprovalRequest
    ) -> str:
        detail = {"spender": request.spender, "token": request.token}
        try:
            # 1. build intent, 2. authorize it with the owner key, 3. await execution
            prepared = await self.executor.prepare(intent)
            authorization = await self.signer.sign_message(to_bytes(hexstr=prepared.root_hash))
            tx_ref = await self.executor.send(prepared, authorization)
        except Exception as exc:
            raise ApprovalFailed(f"Executor rejected approval: {exc}", detail=detail) from exc

        detail["tx_ref"] = tx_ref
        try:
            confirmed = await self.executor.wait_for_confirmation(
                tx_ref, self.config.approval_timeout
            )
        except (TimeoutError, asyncio.TimeoutError) as exc:
            raise ApprovalFailed(
                f"Approval {tx_ref} not confirmed within {self.config.approval_timeout}s",
                detail=detail,
            ) from exc
        except Exception as exc:
            raise ApprovalFailed(f"Approval {tx_ref} failed: {exc}", detail=detail) from exc

        if not confirmed:
            raise ApprovalFailed(f"Approval {tx_ref} failed to execute", detail=detail)
        return tx_ref

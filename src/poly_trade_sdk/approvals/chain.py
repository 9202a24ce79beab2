"""Chain access for approvals.

``ChainGateway`` is the seam between the orchestrator and the node: reads of
allowance and operator state, and sending a signed transaction from the
key-holding account. ``TransactionExecutor`` is the seam to a smart-account
relay for proxy-funded accounts.
"""

import asyncio
import logging
from typing import Any, Dict, Optional, Protocol

from eth_abi import encode
from eth_account import Account
from eth_utils import keccak, to_checksum_address, to_hex
from web3 import AsyncHTTPProvider, AsyncWeb3
from web3.exceptions import TimeExhausted
from web3.middleware import ExtraDataToPOAMiddleware

from .types import PreparedTransaction, TransactionIntent

logger = logging.getLogger(__name__)

ERC20_ABI = [
    {
        "inputs": [
            {"name": "owner", "type": "address"},
            {"name": "spender", "type": "address"},
        ],
        "name": "allowance",
        "outputs": [{"name": "", "type": "uint256"}],
        "stateMutability": "view",
        "type": "function",
    },
    {
        "inputs": [{"name": "owner", "type": "address"}],
        "name": "balanceOf",
        "outputs": [{"name": "", "type": "uint256"}],
        "stateMutability": "view",
        "type": "function",
    },
]

ERC1155_ABI = [
    {
        "inputs": [
            {"name": "account", "type": "address"},
            {"name": "operator", "type": "address"},
        ],
        "name": "isApprovedForAll",
        "outputs": [{"name": "", "type": "bool"}],
        "stateMutability": "view",
        "type": "function",
    },
]


def _calldata(signature: str, arg_types: list, args: list) -> str:
    selector = keccak(text=signature)[:4]
    return to_hex(selector + encode(arg_types, args))


def encode_approve(spender: str, amount: int) -> str:
    """Calldata for ERC-20 ``approve(spender, amount)``."""
    return _calldata(
        "approve(address,uint256)",
        ["address", "uint256"],
        [to_checksum_address(spender), amount],
    )


def encode_set_approval_for_all(operator: str, approved: bool = True) -> str:
    """Calldata for ERC-1155 ``setApprovalForAll(operator, approved)``."""
    return _calldata(
        "setApprovalForAll(address,bool)",
        ["address", "bool"],
        [to_checksum_address(operator), approved],
    )


class ChainGateway(Protocol):
    """Reads and writes the orchestrator needs from the chain."""

    async def allowance(self, token: str, owner: str, spender: str) -> int:
        ...

    async def is_approved_for_all(self, token: str, owner: str, operator: str) -> bool:
        ...

    async def balance_of(self, token: str, owner: str) -> int:
        ...

    async def send_transaction(self, intent: TransactionIntent) -> str:
        """Sign and broadcast from the key-holding account. Returns the tx hash."""
        ...

    async def wait_for_receipt(self, tx_hash: str, timeout: float) -> Dict[str, Any]:
        """Wait for a receipt.

        Raises:
            TimeoutError: If the transaction is not mined within ``timeout``
        """
        ...


class TransactionExecutor(Protocol):
    """Smart-account relay that executes intents on behalf of a proxy funder."""

    async def prepare(self, intent: TransactionIntent) -> PreparedTransaction:
        """Build the account operation and return the hash to authorize."""
        ...

    async def send(self, prepared: PreparedTransaction, authorization: str) -> str:
        """Submit with the owner's authorization. Returns a transaction reference."""
        ...

    async def wait_for_confirmation(self, tx_ref: str, timeout: float) -> bool:
        """True once executed successfully, False if it failed.

        Raises:
            TimeoutError: If no outcome is known within ``timeout``
        """
        ...


class Web3ChainGateway:
    """ChainGateway backed by ``AsyncWeb3`` and a local signing key."""

    def __init__(
        self,
        rpc_url: str,
        private_key: str,
        chain_id: int,
        min_priority_fee_gwei: int = 30,
        request_timeout: float = 15.0,
        web3: Optional[AsyncWeb3] = None,
    ):
        self._account = Account.from_key(private_key)
        self.chain_id = chain_id
        self.min_priority_fee = AsyncWeb3.to_wei(min_priority_fee_gwei, "gwei")
        if web3 is None:
            web3 = AsyncWeb3(
                AsyncHTTPProvider(rpc_url, request_kwargs={"timeout": request_timeout})
            )
            web3.middleware_onion.inject(ExtraDataToPOAMiddleware, layer=0)
        self.web3 = web3
        self._send_lock = asyncio.Lock()

    @property
    def address(self) -> str:
        return self._account.address

    def _erc20(self, token: str):
        return self.web3.eth.contract(address=to_checksum_address(token), abi=ERC20_ABI)

    async def allowance(self, token: str, owner: str, spender: str) -> int:
        return await self._erc20(token).functions.allowance(
            to_checksum_address(owner), to_checksum_address(spender)
        ).call()

    async def balance_of(self, token: str, owner: str) -> int:
        return await self._erc20(token).functions.balanceOf(to_checksum_address(owner)).call()

    async def is_approved_for_all(self, token: str, owner: str, operator: str) -> bool:
        contract = self.web3.eth.contract(address=to_checksum_address(token), abi=ERC1155_ABI)
        return await contract.functions.isApprovedForAll(
            to_checksum_address(owner), to_checksum_address(operator)
        ).call()

    async def _fee_params(self) -> Dict[str, int]:
        latest = await self.web3.eth.get_block("latest")
        priority = max(await self.web3.eth.max_priority_fee, self.min_priority_fee)
        return {
            "maxPriorityFeePerGas": priority,
            "maxFeePerGas": latest["baseFeePerGas"] * 2 + priority,
        }

    async def send_transaction(self, intent: TransactionIntent) -> str:
        # Nonce lookup and broadcast must not interleave for the same account
        async with self._send_lock:
            tx = {
                "from": self.address,
                "to": to_checksum_address(intent.to),
                "data": intent.data,
                "value": intent.value,
                "chainId": self.chain_id,
                "nonce": await self.web3.eth.get_transaction_count(self.address, "pending"),
                **(await self._fee_params()),
            }
            tx["gas"] = await self.web3.eth.estimate_gas(tx)
            signed = self._account.sign_transaction(tx)
            tx_hash = await self.web3.eth.send_raw_transaction(signed.raw_transaction)
        logger.info("Sent %s: %s", intent.description or "transaction", to_hex(tx_hash))
        return to_hex(tx_hash)

    async def wait_for_receipt(self, tx_hash: str, timeout: float) -> Dict[str, Any]:
        try:
            receipt = await self.web3.eth.wait_for_transaction_receipt(tx_hash, timeout=timeout)
        except TimeExhausted as exc:
            raise TimeoutError(f"Transaction {tx_hash} not mined within {timeout}s") from exc
        return dict(receipt)

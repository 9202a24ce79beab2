"""Shared fixtures and in-memory fakes for chain and smart-account access."""

from typing import Any, Dict, List

import pytest
from eth_abi import decode
from eth_account import Account

from poly_trade_sdk.approvals.types import PreparedTransaction, TransactionIntent
from poly_trade_sdk.config import PipelineConfig
from poly_trade_sdk.order.types import SignatureType

# Test wallet (DO NOT use in production)
TEST_PRIVATE_KEY = "0x" + "ab" * 32  # Deterministic test key
TEST_ACCOUNT = Account.from_key(TEST_PRIVATE_KEY)
TEST_ADDRESS = TEST_ACCOUNT.address

PROXY_ADDRESS = "0x1111111111111111111111111111111111111111"
TOKEN_ID = "34124572068052077909406302056995239675264911172488920973407960367842984448300"
CLOB = "https://clob.test"

APPROVE_SELECTOR = "0x095ea7b3"
SET_APPROVAL_FOR_ALL_SELECTOR = "0xa22cb465"


class FakeChain:
    """ChainGateway that applies approve/setApprovalForAll to in-memory state."""

    def __init__(self, receipt_status: int = 1, timeout: bool = False):
        self.allowances: Dict[tuple, int] = {}
        self.operators: Dict[tuple, bool] = {}
        self.balances: Dict[tuple, int] = {}
        self.sent: List[TransactionIntent] = []
        self.receipt_status = receipt_status
        self.timeout = timeout
        self.sender = TEST_ADDRESS

    async def allowance(self, token: str, owner: str, spender: str) -> int:
        return self.allowances.get((token.lower(), owner.lower(), spender.lower()), 0)

    async def is_approved_for_all(self, token: str, owner: str, operator: str) -> bool:
        return self.operators.get((token.lower(), owner.lower(), operator.lower()), False)

    async def balance_of(self, token: str, owner: str) -> int:
        return self.balances.get((token.lower(), owner.lower()), 0)

    async def send_transaction(self, intent: TransactionIntent) -> str:
        self.sent.append(intent)
        return "0x" + f"{len(self.sent):064x}"

    async def wait_for_receipt(self, tx_hash: str, timeout: float) -> Dict[str, Any]:
        if self.timeout:
            raise TimeoutError(f"{tx_hash} not mined")
        if self.receipt_status == 1:
            apply_intent(self, self.sent[-1], self.sender)
        return {"status": self.receipt_status, "transactionHash": tx_hash}


def apply_intent(chain: FakeChain, intent: TransactionIntent, owner: str) -> None:
    payload = bytes.fromhex(intent.data[10:])
    key_prefix = (intent.to.lower(), owner.lower())
    if intent.data.startswith(APPROVE_SELECTOR):
        spender, amount = decode(["address", "uint256"], payload)
        chain.allowances[key_prefix + (spender.lower(),)] = amount
    elif intent.data.startswith(SET_APPROVAL_FOR_ALL_SELECTOR):
        operator, approved = decode(["address", "bool"], payload)
        chain.operators[key_prefix + (operator.lower(),)] = approved


class FakeExecutor:
    """Smart-account executor recording the prepare/authorize/send handshake."""

    def __init__(self, chain: FakeChain, owner: str, confirmed: bool = True):
        self.chain = chain
        self.owner = owner
        self.confirmed = confirmed
        self.prepared: List[PreparedTransaction] = []
        self.authorizations: List[str] = []

    async def prepare(self, intent: TransactionIntent) -> PreparedTransaction:
        prepared = PreparedTransaction(intent=intent, root_hash="0x" + "11" * 32)
        self.prepared.append(prepared)
        return prepared

    async def send(self, prepared: PreparedTransaction, authorization: str) -> str:
        self.authorizations.append(authorization)
        return f"ua-tx-{len(self.authorizations)}"

    async def wait_for_confirmation(self, tx_ref: str, timeout: float) -> bool:
        if self.confirmed:
            apply_intent(self.chain, self.prepared[-1].intent, self.owner)
        return self.confirmed


@pytest.fixture
def config():
    return PipelineConfig(
        rpc_url="http://localhost:8545",
        private_key=TEST_PRIVATE_KEY,
        clob_host=CLOB,
    )


@pytest.fixture
def proxy_config():
    return PipelineConfig(
        rpc_url="http://localhost:8545",
        private_key=TEST_PRIVATE_KEY,
        funder_address=PROXY_ADDRESS,
        signature_type=SignatureType.POLY_PROXY,
        clob_host=CLOB,
    )


@pytest.fixture
def chain():
    return FakeChain()

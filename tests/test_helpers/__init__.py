"""
Test doubles for the AnchorLayer SDK.

FakeSigner is an in-memory Signer whose fee data, broadcast outcomes and
receipts can be scripted per test. No network access.
"""
from typing import Any, Dict, List, Optional, Union

from anchorlayer_sdk.exceptions import TransportError, TransportErrorKind
from anchorlayer_sdk.models import (
    BlockHeader,
    FeeEstimate,
    TransactionReceipt,
    TransactionRequest,
    TransactionResponse,
)

# Test constants used throughout tests
TEST_ADDRESS = "0x1234567890123456789012345678901234567890"
TEST_CONTRACT = "0x0987654321098765432109876543210987654321"
TEST_PRIV_KEY = "0x0123456789abcdef0123456789abcdef0123456789abcdef0123456789abcdef"
TEST_RPC_URL = "https://rpc.example.com"
TEST_CHAIN_ID = 5
TEST_NONCE = 7
TEST_BLOCK_TIMESTAMP = 1700000000
TEST_GAS_LIMIT = 21000


def tx_hash(index: int) -> str:
    """Hash FakeSigner assigns to its index-th broadcast (1-based)"""
    return "0x" + format(index, "064x")


def block_hash(number: int) -> str:
    return "0xb" + format(number, "063x")


def make_receipt(hash_: str, status: int = 1, block_number: int = 100) -> TransactionReceipt:
    return TransactionReceipt(
        tx_hash=hash_,
        block_number=block_number,
        block_hash=block_hash(block_number),
        status=status,
    )


def transport_error(kind: TransportErrorKind, message: str = "transport failure") -> TransportError:
    return TransportError(message, kind)


ReceiptOutcome = Union[TransactionReceipt, Exception, None]


class FakeSigner:
    """Scriptable Signer implementation for tests"""

    def __init__(
        self,
        chain_id: int = TEST_CHAIN_ID,
        nonce: int = TEST_NONCE,
        balance: int = 10**18,
        gas_estimate: int = TEST_GAS_LIMIT,
        fee_estimates: Optional[List[FeeEstimate]] = None,
        address: str = TEST_ADDRESS,
    ):
        self.address = address
        self.chain_id = chain_id
        self.nonce = nonce
        self.balance = balance
        self.gas_estimate = gas_estimate
        # consumed in order; the last one repeats
        self.fee_estimates = fee_estimates or [FeeEstimate(gas_price=1000)]
        # broadcast outcomes consumed in order; None means "accept"
        self.broadcast_outcomes: List[Optional[Exception]] = []
        # per-hash receipt outcomes consumed in order; the last one repeats
        self.receipts: Dict[str, List[ReceiptOutcome]] = {}

        self.broadcasts: List[TransactionRequest] = []
        self.wait_calls: List[str] = []
        self.nonce_calls = 0
        self.balance_calls = 0
        self.estimate_calls = 0
        self.chain_id_error: Optional[Exception] = None
        self.nonce_error: Optional[Exception] = None
        self._fee_calls = 0

    def script_receipts(self, hash_: str, *outcomes: ReceiptOutcome) -> None:
        self.receipts[hash_] = list(outcomes)

    async def get_chain_id(self) -> int:
        if self.chain_id_error is not None:
            raise self.chain_id_error
        return self.chain_id

    async def get_nonce(self, address: str) -> int:
        self.nonce_calls += 1
        if self.nonce_error is not None:
            raise self.nonce_error
        return self.nonce

    async def get_balance(self, address: str) -> int:
        self.balance_calls += 1
        return self.balance

    async def get_fee_estimate(self) -> FeeEstimate:
        index = min(self._fee_calls, len(self.fee_estimates) - 1)
        self._fee_calls += 1
        return self.fee_estimates[index]

    async def estimate_gas(self, request: TransactionRequest) -> int:
        self.estimate_calls += 1
        return self.gas_estimate

    async def broadcast(self, request: TransactionRequest) -> TransactionResponse:
        self.broadcasts.append(request.model_copy())
        outcome = self.broadcast_outcomes.pop(0) if self.broadcast_outcomes else None
        if outcome is not None:
            raise outcome
        return TransactionResponse(
            hash=tx_hash(len(self.broadcasts)),
            chain_id=self.chain_id,
            from_address=self.address,
            raw_data=request.data,
        )

    async def wait_for_receipt(
        self,
        tx_hash: str,
        confirmations: int,
        timeout_secs: float
    ) -> Optional[TransactionReceipt]:
        self.wait_calls.append(tx_hash)
        outcomes = self.receipts.get(tx_hash)
        if not outcomes:
            return None
        outcome = outcomes.pop(0) if len(outcomes) > 1 else outcomes[0]
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    async def get_block(self, block_hash: str) -> BlockHeader:
        return BlockHeader(number=100, hash=block_hash, timestamp=TEST_BLOCK_TIMESTAMP)


class RecordingObserver:
    """Observer that keeps every event it receives"""

    def __init__(self):
        self.events: List[Any] = []

    def record(self, event) -> None:
        self.events.append(event)

    def types(self) -> List[str]:
        return [event.type for event in self.events]

    def of_type(self, type_: str) -> List[Any]:
        return [event for event in self.events if event.type == type_]

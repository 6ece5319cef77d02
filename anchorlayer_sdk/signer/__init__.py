"""
Signer capability consumed by the submission engine.

A Signer owns the signing key and the connection to the ledger. Every
method may raise TransportError; implementations are responsible for
classifying raw transport failures into a TransportErrorKind.
"""
from typing import Optional, Protocol

from ..models import (
    BlockHeader,
    FeeEstimate,
    TransactionReceipt,
    TransactionRequest,
    TransactionResponse,
)


class Signer(Protocol):
    """Protocol for signers that can price, broadcast and track transactions"""
    address: str

    async def get_chain_id(self) -> int:
        """Return the numeric chain id of the connected ledger"""
        ...

    async def get_nonce(self, address: str) -> int:
        """Return the next nonce for address"""
        ...

    async def get_balance(self, address: str) -> int:
        """Return the balance of address in wei"""
        ...

    async def get_fee_estimate(self) -> FeeEstimate:
        """Return current network fee conditions"""
        ...

    async def estimate_gas(self, request: TransactionRequest) -> int:
        """Estimate the gas limit for a fully priced request"""
        ...

    async def broadcast(self, request: TransactionRequest) -> TransactionResponse:
        """Sign and broadcast request"""
        ...

    async def wait_for_receipt(
        self,
        tx_hash: str,
        confirmations: int,
        timeout_secs: float
    ) -> Optional[TransactionReceipt]:
        """Wait for a receipt buried under confirmations blocks; None on timeout"""
        ...

    async def get_block(self, block_hash: str) -> BlockHeader:
        """Return the header of the block with the given hash"""
        ...


__all__ = ["Signer"]

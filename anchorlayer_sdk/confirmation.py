"""
Waits for a broadcast transaction to reach finality.
"""
import logging
from datetime import datetime, timezone
from typing import Optional

from .events import NullObserver, Observer, TxReceipt
from .exceptions import ConfirmationTimeoutError, MinedFailureError
from .models import AnchorTransaction, TransactionResponse
from .signer import Signer
from .utils import caip_chain_id

logger = logging.getLogger(__name__)

NUM_BLOCKS_TO_WAIT = 4


class ConfirmationWaiter:
    """Turns a TransactionResponse into an AnchorTransaction once it is final"""

    def __init__(
        self,
        signer: Signer,
        chain_id: int,
        confirmations: int = NUM_BLOCKS_TO_WAIT,
        timeout_secs: float = 120,
        observer: Optional[Observer] = None,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize the waiter

        Args:
            signer: Signer used to watch receipts and read blocks
            chain_id: Chain id cached at connect time
            confirmations: Blocks required, counting the containing block
            timeout_secs: Deadline for each confirmation wait
            observer: Telemetry sink
            logger: Optional logger instance
        """
        self.signer = signer
        self.chain_id = chain_id
        self.confirmations = confirmations
        self.timeout_secs = timeout_secs
        self.observer = observer or NullObserver()
        self.logger = logger or logging.getLogger(__name__)

    async def confirm(self, response: TransactionResponse) -> AnchorTransaction:
        """
        Wait for response to be mined and return the anchor record

        Args:
            response: Response from the broadcast

        Returns:
            AnchorTransaction for the confirmed transaction

        Raises:
            ConfirmationTimeoutError: If no receipt arrives before the deadline
            MinedFailureError: If the transaction was mined with a failure status
            TransportError: If the signer fails while waiting
        """
        self.logger.info(f"Waiting to confirm transaction with hash {response.hash}")
        receipt = await self.signer.wait_for_receipt(
            response.hash,
            self.confirmations,
            self.timeout_secs
        )
        if receipt is None:
            raise ConfirmationTimeoutError(response.hash, self.timeout_secs)

        self.observer.record(TxReceipt(receipt=receipt.model_dump(by_alias=True)))

        block = await self.signer.get_block(receipt.block_hash)
        status = "success" if receipt.succeeded else "failure"
        self.logger.info(
            f"Transaction {receipt.tx_hash} completed in block {receipt.block_number}. "
            f"Status: {status}."
        )
        if not receipt.succeeded:
            raise MinedFailureError(receipt.tx_hash)

        return AnchorTransaction(
            chain_id=caip_chain_id(self.chain_id),
            transaction_hash=receipt.tx_hash,
            block_number=receipt.block_number,
            block_timestamp=datetime.fromtimestamp(block.timestamp, tz=timezone.utc),
        )

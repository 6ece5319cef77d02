"""
Signer implementation backed by web3.py's AsyncWeb3 and a local eth_account key.
"""
import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, Optional

from eth_account import Account
from eth_account.signers.local import LocalAccount
from web3 import AsyncWeb3, Web3
from web3.exceptions import TransactionNotFound, Web3Exception

from .._rate_limited_log import rate_limited_log
from ..exceptions import TransportError
from ..models import (
    BlockHeader,
    FeeEstimate,
    TransactionReceipt,
    TransactionRequest,
    TransactionResponse,
)
from .errors import classify_transport_error

logger = logging.getLogger(__name__)

# Priority fee used when the node does not implement eth_maxPriorityFeePerGas
DEFAULT_PRIORITY_FEE_WEI = 10**9


class Web3Signer:
    """
    Signer that talks JSON-RPC through AsyncWeb3 and signs locally.

    Every RPC failure is converted to a classified TransportError before
    it leaves this class.
    """

    def __init__(
        self,
        w3: AsyncWeb3,
        account: LocalAccount,
        poll_interval_secs: float = 1.0,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize the signer

        Args:
            w3: Connected AsyncWeb3 instance
            account: Local account holding the signing key
            poll_interval_secs: How often to poll for receipts and new blocks
            logger: Optional logger instance
        """
        self.w3 = w3
        self.account = account
        self.poll_interval_secs = poll_interval_secs
        self.logger = logger or logging.getLogger(__name__)

    @classmethod
    def from_private_key(
        cls,
        rpc_url: str,
        private_key: str,
        poll_interval_secs: float = 1.0,
        logger: Optional[logging.Logger] = None
    ) -> "Web3Signer":
        """
        Create a signer for an HTTP JSON-RPC endpoint

        Args:
            rpc_url: Ethereum RPC endpoint URL
            private_key: Hex-encoded private key
            poll_interval_secs: Receipt polling interval
            logger: Optional logger instance

        Returns:
            Web3Signer instance
        """
        w3 = AsyncWeb3(AsyncWeb3.AsyncHTTPProvider(rpc_url))
        account = Account.from_key(private_key)
        return cls(w3, account, poll_interval_secs=poll_interval_secs, logger=logger)

    @property
    def address(self) -> str:
        return self.account.address

    @asynccontextmanager
    async def _classified(self, operation: str) -> AsyncIterator[None]:
        try:
            yield
        except TransportError:
            raise
        except Exception as e:
            error = classify_transport_error(e)
            self.logger.debug(f"{operation} failed ({error.kind.value}): {error}")
            raise error from e

    async def get_chain_id(self) -> int:
        async with self._classified("get_chain_id"):
            return await self.w3.eth.chain_id

    async def get_nonce(self, address: str) -> int:
        async with self._classified("get_nonce"):
            return await self.w3.eth.get_transaction_count(address)

    async def get_balance(self, address: str) -> int:
        async with self._classified("get_balance"):
            return await self.w3.eth.get_balance(address)

    async def get_fee_estimate(self) -> FeeEstimate:
        """
        Estimate current fees the way ethers' getFeeData does.

        Returns:
            FeeEstimate with gas_price always set, and fee-market fields set
            when the latest block carries a base fee
        """
        async with self._classified("get_fee_estimate"):
            gas_price = await self.w3.eth.gas_price
            block = await self.w3.eth.get_block("latest")
            base_fee = block.get("baseFeePerGas")
            if base_fee is None:
                rate_limited_log(
                    "Latest block has no baseFeePerGas; using legacy gas pricing",
                    level="info",
                    logger_instance=self.logger
                )
                return FeeEstimate(gas_price=gas_price)

            try:
                priority_fee = await self.w3.eth.max_priority_fee
            except (Web3Exception, ValueError) as e:
                rate_limited_log(
                    f"eth_maxPriorityFeePerGas unavailable, using {DEFAULT_PRIORITY_FEE_WEI} wei: {e}",
                    logger_instance=self.logger
                )
                priority_fee = DEFAULT_PRIORITY_FEE_WEI

            return FeeEstimate(
                gas_price=gas_price,
                max_fee_per_gas=base_fee * 2 + priority_fee,
                max_priority_fee_per_gas=priority_fee,
            )

    async def estimate_gas(self, request: TransactionRequest) -> int:
        tx = self._tx_params(request)
        tx["from"] = request.from_address
        # a previous attempt's limit would cap the new estimate
        tx.pop("gas", None)
        async with self._classified("estimate_gas"):
            return await self.w3.eth.estimate_gas(tx)

    async def broadcast(self, request: TransactionRequest) -> TransactionResponse:
        """
        Sign request locally and send it as a raw transaction

        Args:
            request: Fully priced transaction request

        Returns:
            TransactionResponse for the broadcast transaction
        """
        async with self._classified("broadcast"):
            chain_id = await self.w3.eth.chain_id
            tx = self._tx_params(request)
            tx["chainId"] = chain_id
            signed = self.account.sign_transaction(tx)
            # eth_account renamed rawTransaction to raw_transaction
            raw = getattr(signed, "raw_transaction", None) or signed.rawTransaction
            tx_hash = await self.w3.eth.send_raw_transaction(raw)

        return TransactionResponse(
            hash=Web3.to_hex(tx_hash),
            chain_id=chain_id,
            from_address=self.address,
            raw_data=request.data,
        )

    async def wait_for_receipt(
        self,
        tx_hash: str,
        confirmations: int,
        timeout_secs: float
    ) -> Optional[TransactionReceipt]:
        """
        Wait until tx_hash is mined and buried under confirmations blocks

        Args:
            tx_hash: Transaction hash
            confirmations: Required number of blocks, counting the containing block
            timeout_secs: Deadline for the whole wait

        Returns:
            TransactionReceipt, or None if the deadline passed first
        """
        try:
            receipt = await asyncio.wait_for(
                self._poll_receipt(tx_hash, confirmations),
                timeout=timeout_secs
            )
        except asyncio.TimeoutError:
            self.logger.debug(f"No receipt for {tx_hash} within {timeout_secs} seconds")
            return None
        return self._convert_receipt(receipt)

    async def _poll_receipt(self, tx_hash: str, confirmations: int) -> Dict[str, Any]:
        while True:
            async with self._classified("wait_for_receipt"):
                try:
                    receipt = await self.w3.eth.get_transaction_receipt(tx_hash)
                except TransactionNotFound:
                    receipt = None

                if receipt is not None:
                    head = await self.w3.eth.block_number
                    if head - receipt["blockNumber"] + 1 >= confirmations:
                        return receipt

            await asyncio.sleep(self.poll_interval_secs)

    async def get_block(self, block_hash: str) -> BlockHeader:
        async with self._classified("get_block"):
            block = await self.w3.eth.get_block(block_hash)
        return BlockHeader(
            number=block["number"],
            hash=Web3.to_hex(block["hash"]),
            timestamp=block["timestamp"],
        )

    def _tx_params(self, request: TransactionRequest) -> Dict[str, Any]:
        tx: Dict[str, Any] = {
            "to": request.to,
            "data": request.data,
            "nonce": request.nonce,
            "value": 0,
        }
        if request.gas_limit is not None:
            tx["gas"] = request.gas_limit
        if request.is_fee_market:
            tx["maxFeePerGas"] = request.max_fee_per_gas
            tx["maxPriorityFeePerGas"] = request.max_priority_fee_per_gas
        elif request.gas_price is not None:
            tx["gasPrice"] = request.gas_price
        return tx

    def _convert_receipt(self, web3_receipt: Any) -> TransactionReceipt:
        """
        Convert a web3 receipt to our TransactionReceipt model

        Args:
            web3_receipt: The web3 transaction receipt

        Returns:
            Our TransactionReceipt model
        """
        receipt_dict = dict(web3_receipt)

        # Convert bytes to hex strings
        for key, value in list(receipt_dict.items()):
            if isinstance(value, bytes):
                receipt_dict[key] = Web3.to_hex(value)

        return TransactionReceipt.model_validate(receipt_dict)

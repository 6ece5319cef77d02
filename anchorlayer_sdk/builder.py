"""
Builds the unsigned transaction request for one anchor submission.
"""
import logging
from typing import Optional, Union

from eth_abi import encode as abi_encode
from web3 import Web3

from .exceptions import ConfigurationError, PayloadError
from .models import TransactionRequest
from .signer import Signer
from .utils import anchor_digest

logger = logging.getLogger(__name__)

ANCHOR_FUNCTION_SIGNATURE = "anchorDagCbor(bytes32)"


def encode_anchor_call(digest: bytes) -> str:
    """
    ABI-encode a call to the anchor contract

    Args:
        digest: 32-byte digest to anchor

    Returns:
        Hex call data, 0x-prefixed
    """
    selector = Web3.keccak(text=ANCHOR_FUNCTION_SIGNATURE)[:4]
    return Web3.to_hex(selector + abi_encode(["bytes32"], [digest]))


class TransactionBuilder:
    """
    Turns an anchor payload into a TransactionRequest.

    Two modes, fixed at construction time:
    - raw data: the payload is the transaction data, sent to our own address
    - smart contract: the payload digest is passed to anchorDagCbor(bytes32)
    """

    def __init__(
        self,
        signer: Signer,
        use_smart_contract_anchors: bool = False,
        contract_address: Optional[str] = None,
        logger: Optional[logging.Logger] = None
    ):
        if use_smart_contract_anchors and not contract_address:
            raise ConfigurationError("Smart contract anchors require a contract address")
        self.signer = signer
        self.use_smart_contract_anchors = use_smart_contract_anchors
        self.contract_address = (
            Web3.to_checksum_address(contract_address) if contract_address else None
        )
        self.logger = logger or logging.getLogger(__name__)

    async def build(self, payload: Union[bytes, bytearray]) -> TransactionRequest:
        """
        Build the request; reads the account nonce once

        Args:
            payload: Opaque anchor payload

        Returns:
            TransactionRequest with to, data, nonce and from set

        Raises:
            PayloadError: If the payload is empty or has no usable digest
            TransportError: If the nonce cannot be read
        """
        if not payload:
            raise PayloadError("Anchor payload is empty")

        self.logger.debug("Preparing ethereum transaction")
        address = self.signer.address
        nonce = await self.signer.get_nonce(address)

        if not self.use_smart_contract_anchors:
            data = "0x" + bytes(payload).hex()
            self.logger.debug(f"Hex encoded anchor payload {data}")
            return TransactionRequest(to=address, data=data, nonce=nonce, from_address=address)

        data = encode_anchor_call(anchor_digest(payload))
        return TransactionRequest(
            to=self.contract_address,
            data=data,
            nonce=nonce,
            from_address=address,
        )

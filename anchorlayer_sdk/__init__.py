"""
AnchorLayer SDK - commit content-identifier anchors to Ethereum-compatible ledgers.
"""
from .client import AnchorClient
from .config import AnchorConfig, NetworkConfig
from .events import LoggingObserver, NullObserver, Observer
from .exceptions import (
    AnchorLayerError,
    ChainIdMismatchError,
    ConfigurationError,
    ConfirmationTimeoutError,
    InsufficientFundsError,
    MinedFailureError,
    NonceConflictError,
    PayloadError,
    PriorAttemptsUnconfirmedError,
    RetriesExhaustedError,
    TransportError,
    TransportErrorKind,
    UnhandledTransportError,
)
from .models import (
    AnchorTransaction,
    FeeEstimate,
    TransactionReceipt,
    TransactionRequest,
    TransactionResponse,
)
from .signer import Signer
from .signer.web3_signer import Web3Signer
from .utils import caip_chain_id, cid_to_payload
from .version import __version__

__all__ = [
    "AnchorClient",
    "AnchorConfig",
    "NetworkConfig",
    "Observer",
    "LoggingObserver",
    "NullObserver",
    "Signer",
    "Web3Signer",
    "AnchorTransaction",
    "FeeEstimate",
    "TransactionReceipt",
    "TransactionRequest",
    "TransactionResponse",
    "AnchorLayerError",
    "ChainIdMismatchError",
    "ConfigurationError",
    "ConfirmationTimeoutError",
    "InsufficientFundsError",
    "MinedFailureError",
    "NonceConflictError",
    "PayloadError",
    "PriorAttemptsUnconfirmedError",
    "RetriesExhaustedError",
    "TransportError",
    "TransportErrorKind",
    "UnhandledTransportError",
    "caip_chain_id",
    "cid_to_payload",
    "__version__",
]

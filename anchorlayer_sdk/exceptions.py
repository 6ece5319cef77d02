"""
Exceptions for the AnchorLayer SDK.
"""
from enum import Enum
from typing import Optional


class AnchorLayerError(Exception):
    """Base exception for all AnchorLayer SDK errors"""
    pass


class ConfigurationError(AnchorLayerError):
    """Raised when the engine cannot be configured or connected"""
    pass


class PayloadError(AnchorLayerError):
    """Raised when an anchor payload or CID string cannot be used"""
    pass


class ChainIdMismatchError(AnchorLayerError):
    """Raised when a transaction response reports a different chain than the one we connected to"""

    def __init__(self, expected: str, actual: str):
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Chain ID of connected blockchain changed from {expected} to {actual}"
        )


class InsufficientFundsError(AnchorLayerError):
    """Raised when the transaction cost exceeds the wallet balance"""

    def __init__(self, message: str, tx_cost: Optional[int] = None, balance: Optional[int] = None):
        self.tx_cost = tx_cost
        self.balance = balance
        super().__init__(message)


class ConfirmationTimeoutError(AnchorLayerError):
    """Raised when a broadcast transaction is not mined within the deadline"""

    def __init__(self, tx_hash: str, timeout_secs: float):
        self.tx_hash = tx_hash
        self.timeout_secs = timeout_secs
        super().__init__(
            f"Transaction {tx_hash} timed out after {timeout_secs} seconds without being mined"
        )


class NonceConflictError(AnchorLayerError):
    """Raised when the network rejects our nonce and no prior attempt explains it"""

    def __init__(self, message: str, nonce: Optional[int] = None):
        self.nonce = nonce
        super().__init__(message)


class MinedFailureError(AnchorLayerError):
    """Raised when a transaction was mined with a failure status"""

    def __init__(self, tx_hash: str):
        self.tx_hash = tx_hash
        super().__init__(f"Transaction {tx_hash} completed with a failure status")


class PriorAttemptsUnconfirmedError(AnchorLayerError):
    """Raised when none of the previously broadcast attempts can be confirmed"""
    pass


class RetriesExhaustedError(AnchorLayerError):
    """Raised when every submission attempt has been spent without success"""

    def __init__(self, attempts: int):
        self.attempts = attempts
        super().__init__(f"Failed to send transaction after {attempts} attempts")


class UnhandledTransportError(AnchorLayerError):
    """Raised for transport failures that the engine does not know how to recover from"""
    pass


class TransportErrorKind(str, Enum):
    """
    Closed set of transport failure categories.

    Signer implementations map raw RPC failures onto one of these; the
    submission engine never inspects raw transport messages.
    """
    INSUFFICIENT_FUNDS = "INSUFFICIENT_FUNDS"
    NONCE_EXPIRED = "NONCE_EXPIRED"
    TIMEOUT = "TIMEOUT"
    UNKNOWN = "UNKNOWN"


class TransportError(AnchorLayerError):
    """Raised by a Signer when the underlying transport call fails."""

    def __init__(self, message: str, kind: TransportErrorKind = TransportErrorKind.UNKNOWN):
        self.kind = kind
        super().__init__(message)

"""
Observer capability and the telemetry events emitted during a submission.

Events are plain records with a fixed payload shape. They are handed to an
Observer, which decides how to publish them (logs, metrics, ...). The
default LoggingObserver writes one JSON line per event.
"""
import json
import logging
from dataclasses import dataclass, field
from typing import Any, ClassVar, Dict, Optional, Protocol

from web3 import Web3

events_logger = logging.getLogger("anchorlayer_sdk.events")


@dataclass(frozen=True)
class ObserverEvent:
    """Base class for all observer events"""
    type: ClassVar[str] = "event"

    def payload(self) -> Dict[str, Any]:
        return {}

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.type, **self.payload()}


@dataclass(frozen=True)
class InsufficientFunds(ObserverEvent):
    type: ClassVar[str] = "insufficientFunds"
    tx_cost: Optional[int]
    balance: int

    def payload(self) -> Dict[str, Any]:
        return {"txCost": self.tx_cost, "balance": self.balance}


@dataclass(frozen=True)
class TransactionTimeout(ObserverEvent):
    type: ClassVar[str] = "transactionTimeout"
    timeout_secs: float

    def payload(self) -> Dict[str, Any]:
        return {"timeoutSecs": self.timeout_secs}


@dataclass(frozen=True)
class NonceExpired(ObserverEvent):
    type: ClassVar[str] = "nonceExpired"
    nonce: int

    def payload(self) -> Dict[str, Any]:
        return {"nonce": self.nonce}


@dataclass(frozen=True)
class TxRequest(ObserverEvent):
    type: ClassVar[str] = "txRequest"
    request: Dict[str, Any] = field(default_factory=dict)

    def payload(self) -> Dict[str, Any]:
        return {"request": self.request}


@dataclass(frozen=True)
class TxResponse(ObserverEvent):
    type: ClassVar[str] = "txResponse"
    hash: str
    block_number: Optional[int]
    block_hash: Optional[str]
    from_address: str

    def payload(self) -> Dict[str, Any]:
        return {
            "hash": self.hash,
            "blockNumber": self.block_number,
            "blockHash": self.block_hash,
            "from": self.from_address,
        }


@dataclass(frozen=True)
class TxReceipt(ObserverEvent):
    type: ClassVar[str] = "txReceipt"
    receipt: Dict[str, Any] = field(default_factory=dict)

    def payload(self) -> Dict[str, Any]:
        return {"receipt": self.receipt}


@dataclass(frozen=True)
class WalletBalance(ObserverEvent):
    type: ClassVar[str] = "walletBalance"
    balance: int

    def payload(self) -> Dict[str, Any]:
        return {"balance": self.balance}


class Observer(Protocol):
    """Protocol for telemetry sinks"""

    def record(self, event: ObserverEvent) -> None:
        """Publish one event. Must not raise."""
        ...


class NullObserver:
    """Observer that drops every event"""

    def record(self, event: ObserverEvent) -> None:
        pass


class LoggingObserver:
    """Observer that writes each event as a JSON line"""

    def __init__(self, logger: Optional[logging.Logger] = None, level: int = logging.INFO):
        self.logger = logger or events_logger
        self.level = level

    def record(self, event: ObserverEvent) -> None:
        data = event.to_dict()
        # Balances are easier to read in gwei
        if isinstance(event, (WalletBalance, InsufficientFunds)):
            data["balanceGwei"] = str(Web3.from_wei(event.balance, "gwei"))
        self.logger.log(self.level, json.dumps(data, default=str, sort_keys=True))

"""
Wallet balance telemetry around a full submission.

The reports are observational only: a failed balance read is logged and
never changes the outcome of the wrapped operation.
"""
import logging
from typing import Awaitable, Callable, Optional, TypeVar

from ._rate_limited_log import rate_limited_log
from .events import NullObserver, Observer, WalletBalance
from .exceptions import TransportError
from .signer import Signer

T = TypeVar('T')

logger = logging.getLogger(__name__)


class BalanceObserver:
    """Reports the wallet balance before and after an operation"""

    def __init__(
        self,
        signer: Signer,
        observer: Optional[Observer] = None,
        logger: Optional[logging.Logger] = None
    ):
        self.signer = signer
        self.observer = observer or NullObserver()
        self.logger = logger or logging.getLogger(__name__)

    async def _report_balance(self) -> Optional[int]:
        try:
            balance = await self.signer.get_balance(self.signer.address)
        except TransportError as e:
            rate_limited_log(
                f"Unable to read wallet balance: {e}",
                logger_instance=self.logger
            )
            return None
        self.observer.record(WalletBalance(balance=balance))
        self.logger.debug(f"Current wallet balance is {balance}")
        return balance

    async def observe(self, operation: Callable[[], Awaitable[T]]) -> T:
        """
        Run operation between two balance reports

        Args:
            operation: Coroutine function to run

        Returns:
            The result of operation, unchanged
        """
        await self._report_balance()
        result = await operation()
        await self._report_balance()
        return result

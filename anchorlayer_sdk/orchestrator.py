"""
Bounded retry loop for one logical anchor submission.

Each attempt reprices the same request (same nonce), broadcasts it and
waits for confirmation. Failures are classified into retry, recovery or
fatal outcomes:

1. insufficient funds: fatal once the fresh balance cannot cover the cost
2. confirmation timeout: retry with an escalated fee
3. nonce conflict: one of our own earlier attempts was probably mined, so
   scan the attempt history for it; unexplained conflicts are fatal
4. anything else: fatal, wrapped in UnhandledTransportError
"""
import asyncio
import logging
from typing import List, Optional

from .confirmation import ConfirmationWaiter
from .events import (
    InsufficientFunds,
    NonceExpired,
    NullObserver,
    Observer,
    TransactionTimeout,
    TxRequest,
    TxResponse,
)
from .exceptions import (
    AnchorLayerError,
    ChainIdMismatchError,
    ConfirmationTimeoutError,
    InsufficientFundsError,
    NonceConflictError,
    PriorAttemptsUnconfirmedError,
    RetriesExhaustedError,
    TransportError,
    TransportErrorKind,
    UnhandledTransportError,
)
from .fees import FeeEstimator
from .models import AnchorTransaction, TransactionRequest, TransactionResponse
from .signer import Signer
from .utils import caip_chain_id

logger = logging.getLogger(__name__)

MAX_ATTEMPTS = 3
RETRY_DELAY_SECS = 5.0


class SubmissionOrchestrator:
    """Drives price -> broadcast -> confirm attempts for a single request"""

    def __init__(
        self,
        signer: Signer,
        fee_estimator: FeeEstimator,
        waiter: ConfirmationWaiter,
        chain_id: int,
        observer: Optional[Observer] = None,
        max_attempts: int = MAX_ATTEMPTS,
        retry_delay_secs: float = RETRY_DELAY_SECS,
        logger: Optional[logging.Logger] = None
    ):
        self.signer = signer
        self.fee_estimator = fee_estimator
        self.waiter = waiter
        self.chain_id = chain_id
        self.observer = observer or NullObserver()
        self.max_attempts = max_attempts
        self.retry_delay_secs = retry_delay_secs
        self.logger = logger or logging.getLogger(__name__)

    async def run(self, request: TransactionRequest) -> AnchorTransaction:
        """
        Submit request until one attempt is confirmed

        Args:
            request: Request built for this submission; its fee fields are
                rewritten on every attempt, its nonce never changes

        Returns:
            AnchorTransaction of the confirmed attempt

        Raises:
            InsufficientFundsError, NonceConflictError, ChainIdMismatchError,
            MinedFailureError, PriorAttemptsUnconfirmedError,
            UnhandledTransportError: Fatal failures
            RetriesExhaustedError: If every attempt failed with a retryable error
        """
        # Broadcasts of this submission only; never outlives this call
        history: List[TransactionResponse] = []

        for attempt in range(self.max_attempts):
            try:
                await self.fee_estimator.price(request)
                response = await self._try_send_transaction(request)
                history.append(response)
                return await self.waiter.confirm(response)
            except Exception as err:
                self.logger.error(f"Attempt {attempt + 1} of {self.max_attempts} failed: {err}")
                result = await self._handle_failure(err, request, attempt, history)
                if result is not None:
                    return result

            remaining = self.max_attempts - attempt - 1
            self.logger.warning(f"Failed to send transaction; {remaining} retries remain")
            if remaining:
                await asyncio.sleep(self.retry_delay_secs)

        raise RetriesExhaustedError(self.max_attempts)

    async def _try_send_transaction(self, request: TransactionRequest) -> TransactionResponse:
        """One broadcast of the priced request"""
        self.logger.info(f"Transaction data: {request.to_log_dict()}")
        self.observer.record(TxRequest(request=request.to_log_dict()))

        response = await self.signer.broadcast(request)
        self.observer.record(TxResponse(
            hash=response.hash,
            block_number=response.block_number,
            block_hash=response.block_hash,
            from_address=response.from_address,
        ))
        self.logger.info(f"Transaction sent: {response.hash}")

        if response.chain_id != self.chain_id:
            raise ChainIdMismatchError(caip_chain_id(self.chain_id), caip_chain_id(response.chain_id))
        return response

    async def _handle_failure(
        self,
        err: Exception,
        request: TransactionRequest,
        attempt: int,
        history: List[TransactionResponse]
    ) -> Optional[AnchorTransaction]:
        """
        Decide what a failed attempt means

        Returns:
            AnchorTransaction if a prior attempt was recovered, None to retry.
            Raises for fatal outcomes.
        """
        kind = err.kind if isinstance(err, TransportError) else None

        if kind is TransportErrorKind.INSUFFICIENT_FUNDS:
            await self._check_funds(request, err)
            return None

        if isinstance(err, ConfirmationTimeoutError) or kind is TransportErrorKind.TIMEOUT:
            self.observer.record(TransactionTimeout(timeout_secs=self.waiter.timeout_secs))
            self.logger.error(
                f"Transaction timed out after {self.waiter.timeout_secs} seconds without being mined"
            )
            return None

        if kind is TransportErrorKind.NONCE_EXPIRED:
            # Most likely one of our earlier attempts timed out but was mined anyway
            self.observer.record(NonceExpired(nonce=request.nonce))
            if attempt == 0 or not history:
                raise NonceConflictError(
                    f"Nonce {request.nonce} rejected with no prior attempt to explain it: {err}",
                    nonce=request.nonce
                ) from err
            return await self._check_for_previous_transaction_success(history)

        if isinstance(err, AnchorLayerError) and not isinstance(err, TransportError):
            raise err

        raise UnhandledTransportError(f"Unhandled error in attempt: {err}") from err

    async def _check_funds(self, request: TransactionRequest, err: Exception) -> None:
        """Raise InsufficientFundsError unless a fresh balance covers the cost"""
        try:
            balance = await self.signer.get_balance(request.from_address)
        except TransportError as e:
            raise UnhandledTransportError(
                f"Unable to read balance after insufficient funds error: {e}"
            ) from e
        tx_cost = request.tx_cost()
        if tx_cost is not None and tx_cost <= balance:
            self.logger.warning(
                f"Transport reported insufficient funds but balance covers the cost "
                f"[txCost: {tx_cost}, balance: {balance}]"
            )
            return

        self.observer.record(InsufficientFunds(tx_cost=tx_cost, balance=balance))
        cost_repr = hex(tx_cost) if tx_cost is not None else "unknown"
        message = (
            f"Transaction cost is greater than our current balance. "
            f"[txCost: {cost_repr}, balance: {hex(balance)}]"
        )
        self.logger.error(message)
        raise InsufficientFundsError(message, tx_cost=tx_cost, balance=balance) from err

    async def _check_for_previous_transaction_success(
        self,
        history: List[TransactionResponse]
    ) -> AnchorTransaction:
        """
        Find a prior attempt that was mined, most recent first

        Args:
            history: Responses of earlier broadcasts of this submission

        Returns:
            AnchorTransaction of the first prior attempt that confirms

        Raises:
            PriorAttemptsUnconfirmedError: If none of them confirm
        """
        for response in reversed(history):
            try:
                return await self.waiter.confirm(response)
            except AnchorLayerError as e:
                self.logger.error(f"Prior attempt {response.hash} not confirmed: {e}")
        raise PriorAttemptsUnconfirmedError("Failed to confirm any previous transaction attempts")

"""
Gas pricing for each submission attempt.

A retry reuses the nonce of the pending transaction, so the network only
accepts it as a replacement when its price is at least 10% above the
previous attempt. Every attempt therefore prices from
max(current estimate, previous price) and pads the result by 10%.

For fee-market (EIP-1559) networks only the priority fee is escalated.
maxFeePerGas is recomputed from the current base fee plus the new
priority fee, so the base-fee buffer tracks live network conditions
instead of being eaten by the growing tip.
"""
import logging
from typing import Optional

from .exceptions import ConfigurationError, TransportError
from .models import TransactionRequest
from .signer import Signer

logger = logging.getLogger(__name__)


def add_padding(amount: int) -> int:
    """
    Add a 10% margin, rounding the margin down

    Args:
        amount: Non-negative amount in wei

    Returns:
        amount + floor(amount / 10)
    """
    return amount + amount // 10


def increase_gas_price_per_attempt(estimate: int, previous: Optional[int] = None) -> int:
    """
    Price for the next attempt

    Args:
        estimate: Currently estimated gas price (or priority fee)
        previous: Price used by the previous attempt, None on the first attempt

    Returns:
        pad(max(estimate, previous))
    """
    if previous is None:
        return add_padding(estimate)
    return add_padding(max(estimate, previous))


class FeeEstimator:
    """Prices a TransactionRequest in place before each attempt"""

    def __init__(
        self,
        signer: Signer,
        override_gas_config: bool = False,
        gas_limit: Optional[int] = None,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize the estimator

        Args:
            signer: Signer used for fee data and gas estimation
            override_gas_config: Use gas_limit instead of estimating it
            gas_limit: Fixed gas limit for override mode
            logger: Optional logger instance

        Raises:
            ConfigurationError: If override mode has no positive gas limit
        """
        if override_gas_config and (gas_limit is None or gas_limit <= 0):
            raise ConfigurationError("override_gas_config requires a positive gas_limit")
        self.signer = signer
        self.override_gas_config = override_gas_config
        self.gas_limit = gas_limit
        self.logger = logger or logging.getLogger(__name__)

    async def price(self, request: TransactionRequest) -> TransactionRequest:
        """
        Rewrite the fee fields and gas limit of request for the next attempt

        Args:
            request: Request carrying the previous attempt's fees, if any

        Returns:
            The same request, repriced

        Raises:
            TransportError: If fee data or gas estimation fails
        """
        if not self.override_gas_config:
            # a stale limit must not be paired with the new fees
            request.gas_limit = None

        fee_data = await self.signer.get_fee_estimate()

        if fee_data.is_fee_market:
            base_fee = fee_data.max_fee_per_gas - fee_data.max_priority_fee_per_gas
            # a legacy gasPrice acts as both cap and tip for the pending attempt
            previous_tip = (
                request.max_priority_fee_per_gas if request.is_fee_market else request.gas_price
            )
            next_priority_fee = increase_gas_price_per_attempt(
                fee_data.max_priority_fee_per_gas,
                previous_tip
            )
            request.max_priority_fee_per_gas = next_priority_fee
            # must stay above baseFee + maxPriorityFeePerGas
            request.max_fee_per_gas = add_padding(base_fee + next_priority_fee)
            request.gas_price = None
            self.logger.debug(
                f"Estimated maxPriorityFeePerGas: {request.max_priority_fee_per_gas} wei; "
                f"maxFeePerGas: {request.max_fee_per_gas} wei"
            )
        else:
            if fee_data.gas_price is None:
                raise TransportError("Unavailable gas price for pre-EIP-1559 transaction")
            request.gas_price = increase_gas_price_per_attempt(fee_data.gas_price, request.fee_per_gas)
            request.max_fee_per_gas = None
            request.max_priority_fee_per_gas = None
            self.logger.debug(f"Estimated gasPrice: {request.gas_price} wei")

        if self.override_gas_config:
            request.gas_limit = self.gas_limit
            self.logger.debug(f"Overriding gas limit: {request.gas_limit}")
        else:
            request.gas_limit = await self.signer.estimate_gas(request)
            self.logger.debug(f"Estimated gas limit: {request.gas_limit}")

        return request

"""
Tests for the retry, recovery and failure classification of SubmissionOrchestrator.
"""
import pytest
from unittest.mock import AsyncMock, patch

from anchorlayer_sdk.exceptions import (
    ChainIdMismatchError,
    InsufficientFundsError,
    MinedFailureError,
    NonceConflictError,
    PriorAttemptsUnconfirmedError,
    RetriesExhaustedError,
    TransportErrorKind,
    UnhandledTransportError,
)
from anchorlayer_sdk.models import FeeEstimate, TransactionRequest
from tests.test_helpers import (
    TEST_ADDRESS,
    TEST_NONCE,
    FakeSigner,
    make_receipt,
    transport_error,
    tx_hash,
)


def _request() -> TransactionRequest:
    return TransactionRequest(to=TEST_ADDRESS, data="0xabcd", nonce=TEST_NONCE, from_address=TEST_ADDRESS)


@pytest.mark.asyncio
async def test_first_attempt_confirms(signer, observer, make_orchestrator):
    signer.script_receipts(tx_hash(1), make_receipt(tx_hash(1)))

    result = await make_orchestrator(signer).run(_request())

    assert result.transaction_hash == tx_hash(1)
    assert result.chain_id == "eip155:5"
    assert len(signer.broadcasts) == 1
    assert observer.types() == ["txRequest", "txResponse", "txReceipt"]


@pytest.mark.asyncio
async def test_timeouts_exhaust_retries(signer, observer, make_orchestrator):
    with pytest.raises(RetriesExhaustedError, match="after 3 attempts"):
        await make_orchestrator(signer).run(_request())

    assert len(signer.broadcasts) == 3
    assert len(observer.of_type("transactionTimeout")) == 3
    assert observer.of_type("transactionTimeout")[0].timeout_secs == 30


@pytest.mark.asyncio
async def test_every_attempt_reuses_nonce_and_escalates_fee(signer, make_orchestrator):
    with pytest.raises(RetriesExhaustedError):
        await make_orchestrator(signer).run(_request())

    assert {tx.nonce for tx in signer.broadcasts} == {TEST_NONCE}
    assert [tx.gas_price for tx in signer.broadcasts] == [1100, 1210, 1331]


@pytest.mark.asyncio
async def test_fee_market_attempts_escalate(make_orchestrator):
    signer = FakeSigner(fee_estimates=[FeeEstimate(max_fee_per_gas=2000, max_priority_fee_per_gas=100)])

    with pytest.raises(RetriesExhaustedError):
        await make_orchestrator(signer).run(_request())

    tips = [tx.max_priority_fee_per_gas for tx in signer.broadcasts]
    max_fees = [tx.max_fee_per_gas for tx in signer.broadcasts]
    assert tips == [110, 121, 133]
    assert max_fees == [2211, 2223, 2236]
    assert all(tx.gas_price is None for tx in signer.broadcasts)


@pytest.mark.asyncio
async def test_retry_delay_between_attempts_only(signer, make_orchestrator):
    orchestrator = make_orchestrator(signer)
    orchestrator.retry_delay_secs = 5.0

    with patch("anchorlayer_sdk.orchestrator.asyncio.sleep", new_callable=AsyncMock) as mock_sleep:
        with pytest.raises(RetriesExhaustedError):
            await orchestrator.run(_request())

    assert mock_sleep.await_count == 2
    mock_sleep.assert_awaited_with(5.0)


@pytest.mark.asyncio
async def test_timeout_then_success(signer, observer, make_orchestrator):
    signer.script_receipts(tx_hash(2), make_receipt(tx_hash(2)))

    result = await make_orchestrator(signer).run(_request())

    assert result.transaction_hash == tx_hash(2)
    assert len(observer.of_type("transactionTimeout")) == 1


@pytest.mark.asyncio
async def test_timeout_kind_from_broadcast_is_retried(signer, observer, make_orchestrator):
    signer.broadcast_outcomes = [transport_error(TransportErrorKind.TIMEOUT, "request timed out")]
    signer.script_receipts(tx_hash(2), make_receipt(tx_hash(2)))

    result = await make_orchestrator(signer).run(_request())

    assert result.transaction_hash == tx_hash(2)
    assert len(observer.of_type("transactionTimeout")) == 1


@pytest.mark.asyncio
async def test_insufficient_funds_is_fatal(observer, make_orchestrator):
    signer = FakeSigner(balance=1000)
    signer.broadcast_outcomes = [transport_error(TransportErrorKind.INSUFFICIENT_FUNDS, "insufficient funds")]

    with pytest.raises(InsufficientFundsError) as exc_info:
        await make_orchestrator(signer).run(_request())

    tx_cost = 21000 * 1100
    assert exc_info.value.tx_cost == tx_cost
    assert exc_info.value.balance == 1000
    assert hex(tx_cost) in str(exc_info.value)
    assert "Transaction cost is greater than our current balance" in str(exc_info.value)
    assert len(signer.broadcasts) == 1
    assert signer.balance_calls == 1

    events = observer.of_type("insufficientFunds")
    assert len(events) == 1
    assert events[0].to_dict() == {"type": "insufficientFunds", "txCost": tx_cost, "balance": 1000}


@pytest.mark.asyncio
async def test_insufficient_funds_with_covering_balance_retries(signer, observer, make_orchestrator):
    signer.broadcast_outcomes = [transport_error(TransportErrorKind.INSUFFICIENT_FUNDS)]
    signer.script_receipts(tx_hash(2), make_receipt(tx_hash(2)))

    result = await make_orchestrator(signer).run(_request())

    assert result.transaction_hash == tx_hash(2)
    assert observer.of_type("insufficientFunds") == []


@pytest.mark.asyncio
async def test_balance_read_failure_during_funds_check(signer, make_orchestrator):
    signer.broadcast_outcomes = [transport_error(TransportErrorKind.INSUFFICIENT_FUNDS)]
    signer.get_balance = AsyncMock(side_effect=transport_error(TransportErrorKind.UNKNOWN, "rpc down"))

    with pytest.raises(UnhandledTransportError, match="rpc down"):
        await make_orchestrator(signer).run(_request())


@pytest.mark.asyncio
async def test_nonce_conflict_on_first_attempt_is_fatal(signer, observer, make_orchestrator):
    signer.broadcast_outcomes = [transport_error(TransportErrorKind.NONCE_EXPIRED, "nonce too low")]

    with pytest.raises(NonceConflictError) as exc_info:
        await make_orchestrator(signer).run(_request())

    assert exc_info.value.nonce == TEST_NONCE
    assert signer.wait_calls == []
    assert len(observer.of_type("nonceExpired")) == 1


@pytest.mark.asyncio
async def test_nonce_conflict_recovers_earlier_attempt(signer, observer, make_orchestrator):
    """Attempt 2 was mined after we stopped waiting; attempt 4 hits the spent nonce"""
    signer.broadcast_outcomes = [None, None, None, transport_error(TransportErrorKind.NONCE_EXPIRED)]
    signer.script_receipts(tx_hash(2), None, make_receipt(tx_hash(2), block_number=120))

    result = await make_orchestrator(signer, max_attempts=4).run(_request())

    assert result.transaction_hash == tx_hash(2)
    assert result.block_number == 120
    assert len(signer.broadcasts) == 4
    # most recent attempt is checked first
    assert signer.wait_calls[-2:] == [tx_hash(3), tx_hash(2)]
    assert len(observer.of_type("nonceExpired")) == 1
    assert len(observer.of_type("transactionTimeout")) == 3


@pytest.mark.asyncio
async def test_nonce_conflict_with_no_confirmed_attempt(signer, make_orchestrator):
    signer.broadcast_outcomes = [None, None, transport_error(TransportErrorKind.NONCE_EXPIRED)]

    with pytest.raises(PriorAttemptsUnconfirmedError, match="Failed to confirm any previous"):
        await make_orchestrator(signer).run(_request())

    assert signer.wait_calls == [tx_hash(1), tx_hash(2), tx_hash(2), tx_hash(1)]


@pytest.mark.asyncio
async def test_nonce_conflict_after_failed_broadcasts_only(signer, make_orchestrator):
    signer.broadcast_outcomes = [
        transport_error(TransportErrorKind.TIMEOUT),
        transport_error(TransportErrorKind.NONCE_EXPIRED),
    ]

    with pytest.raises(NonceConflictError):
        await make_orchestrator(signer).run(_request())


@pytest.mark.asyncio
async def test_chain_id_change_is_fatal(make_orchestrator):
    signer = FakeSigner(chain_id=1)

    with pytest.raises(ChainIdMismatchError) as exc_info:
        await make_orchestrator(signer, chain_id=5).run(_request())

    message = str(exc_info.value)
    assert "eip155:5" in message
    assert "eip155:1" in message
    assert len(signer.broadcasts) == 1
    assert signer.wait_calls == []


@pytest.mark.asyncio
async def test_mined_failure_is_fatal(signer, make_orchestrator):
    signer.script_receipts(tx_hash(1), make_receipt(tx_hash(1), status=0))

    with pytest.raises(MinedFailureError):
        await make_orchestrator(signer).run(_request())

    assert len(signer.broadcasts) == 1


@pytest.mark.asyncio
async def test_unknown_transport_error_is_wrapped(signer, make_orchestrator):
    cause = transport_error(TransportErrorKind.UNKNOWN, "execution reverted")
    signer.broadcast_outcomes = [cause]

    with pytest.raises(UnhandledTransportError) as exc_info:
        await make_orchestrator(signer).run(_request())

    assert exc_info.value.__cause__ is cause
    assert "execution reverted" in str(exc_info.value)
    assert len(signer.broadcasts) == 1


@pytest.mark.asyncio
async def test_unexpected_exception_is_wrapped(signer, make_orchestrator):
    cause = RuntimeError("boom")
    signer.broadcast_outcomes = [cause]

    with pytest.raises(UnhandledTransportError) as exc_info:
        await make_orchestrator(signer).run(_request())

    assert exc_info.value.__cause__ is cause


@pytest.mark.asyncio
async def test_single_attempt_configuration(signer, make_orchestrator):
    with pytest.raises(RetriesExhaustedError, match="after 1 attempts"):
        await make_orchestrator(signer, max_attempts=1).run(_request())

    assert len(signer.broadcasts) == 1


@pytest.mark.asyncio
async def test_insufficient_funds_from_gas_estimate_reports_unknown_cost(signer, observer, make_orchestrator):
    """The first attempt times out; the second fails while estimating gas"""
    signer.estimate_gas = AsyncMock(side_effect=[
        21000,
        transport_error(TransportErrorKind.INSUFFICIENT_FUNDS, "insufficient funds for gas"),
    ])

    with pytest.raises(InsufficientFundsError, match="txCost: unknown") as exc_info:
        await make_orchestrator(signer).run(_request())

    assert exc_info.value.tx_cost is None
    assert len(signer.broadcasts) == 1
    assert observer.of_type("insufficientFunds")[0].tx_cost is None

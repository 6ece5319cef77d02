"""
Pytest fixtures for the AnchorLayer SDK tests.
"""
import pytest

from anchorlayer_sdk._rate_limited_log import reset_rate_limited_log
from anchorlayer_sdk.config import NetworkConfig
from anchorlayer_sdk.confirmation import ConfirmationWaiter
from anchorlayer_sdk.fees import FeeEstimator
from anchorlayer_sdk.orchestrator import SubmissionOrchestrator
from tests.test_helpers import TEST_CHAIN_ID, FakeSigner, RecordingObserver


@pytest.fixture(autouse=True)
def _fresh_module_state():
    """Reset caches shared across tests"""
    reset_rate_limited_log()
    NetworkConfig._networks_cache = None
    yield
    NetworkConfig._networks_cache = None


@pytest.fixture
def signer():
    return FakeSigner()


@pytest.fixture
def observer():
    return RecordingObserver()


@pytest.fixture
def make_orchestrator(observer):
    """Factory for an orchestrator wired to a FakeSigner, with no retry delay"""

    def _make(signer, chain_id=TEST_CHAIN_ID, max_attempts=3, timeout_secs=30, **fee_kwargs):
        waiter = ConfirmationWaiter(
            signer,
            chain_id,
            confirmations=4,
            timeout_secs=timeout_secs,
            observer=observer,
        )
        return SubmissionOrchestrator(
            signer,
            FeeEstimator(signer, **fee_kwargs),
            waiter,
            chain_id,
            observer=observer,
            max_attempts=max_attempts,
            retry_delay_secs=0,
        )

    return _make

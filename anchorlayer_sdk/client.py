"""
AnchorClient - Main client for anchoring content identifiers on Ethereum.
"""
import logging
from typing import Optional, Union

from .balance import BalanceObserver
from .builder import TransactionBuilder
from .config import AnchorConfig, NetworkConfig
from .confirmation import ConfirmationWaiter
from .events import LoggingObserver, Observer
from .exceptions import ConfigurationError, TransportError, UnhandledTransportError
from .fees import FeeEstimator
from .models import AnchorTransaction
from .orchestrator import SubmissionOrchestrator
from .signer import Signer
from .signer.web3_signer import Web3Signer
from .utils import caip_chain_id, cid_to_payload


class AnchorClient:
    """
    Client that commits anchor payloads to an Ethereum-compatible ledger.

    This client handles:
    1. Building the transaction (raw data or smart contract call)
    2. Pricing and repricing it on every attempt
    3. Broadcasting and waiting for confirmation
    4. Recovering when an earlier attempt was mined after we gave up on it

    Only one submission per signing account may be in flight at a time;
    callers must serialize submit() calls that share a signer.
    """

    def __init__(
        self,
        signer: Signer,
        config: Optional[AnchorConfig] = None,
        observer: Optional[Observer] = None,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize the AnchorClient

        Args:
            signer: Signer capability (key + ledger connection)
            config: Engine settings (defaults apply when omitted)
            observer: Telemetry sink; defaults to LoggingObserver
            logger: Optional logger instance to use for debug/info logging

        Raises:
            ConfigurationError: If no signer is provided or the config is inconsistent
        """
        if signer is None:
            raise ConfigurationError("A signer must be provided")

        self.signer = signer
        self.config = (config or AnchorConfig()).validate_config()
        self.observer = observer or LoggingObserver()
        self.logger = logger or logging.getLogger(__name__)
        self._chain_id: Optional[int] = None

        self.builder = TransactionBuilder(
            signer,
            use_smart_contract_anchors=self.config.use_smart_contract_anchors,
            contract_address=self.config.resolve_contract_address(),
            logger=self.logger,
        )
        self.fee_estimator = FeeEstimator(
            signer,
            override_gas_config=self.config.override_gas_config,
            gas_limit=self.config.gas_limit,
            logger=self.logger,
        )
        self.balance_observer = BalanceObserver(signer, self.observer, logger=self.logger)

    @classmethod
    def from_config(
        cls,
        config: AnchorConfig,
        private_key: str,
        observer: Optional[Observer] = None,
        logger: Optional[logging.Logger] = None
    ) -> "AnchorClient":
        """
        Create a client with a Web3Signer for the configured endpoint

        Args:
            config: Engine settings; rpc_url or a known network is required
            private_key: Hex-encoded private key of the anchoring wallet
            observer: Telemetry sink
            logger: Optional logger instance

        Returns:
            AnchorClient (not yet connected)
        """
        if not private_key:
            raise ConfigurationError("A private key must be provided")
        rpc_url = config.resolve_rpc_url()
        signer = Web3Signer.from_private_key(
            rpc_url,
            private_key,
            poll_interval_secs=config.poll_interval_secs,
            logger=logger,
        )
        return cls(signer, config, observer=observer, logger=logger)

    @classmethod
    def from_network(
        cls,
        network: str,
        private_key: str,
        rpc_url: Optional[str] = None,
        observer: Optional[Observer] = None,
        logger: Optional[logging.Logger] = None,
        **config_overrides
    ) -> "AnchorClient":
        """
        Create a client for one of the bundled networks

        Args:
            network: Network name from networks.json
            private_key: Hex-encoded private key
            rpc_url: Optional RPC URL override
            observer: Telemetry sink
            logger: Optional logger instance
            config_overrides: Further AnchorConfig fields

        Returns:
            AnchorClient (not yet connected)
        """
        config = AnchorConfig(
            network=network,
            rpc_url=NetworkConfig.get_rpc_url(network, override=rpc_url),
            **config_overrides
        )
        return cls.from_config(config, private_key, observer=observer, logger=logger)

    async def connect(self) -> None:
        """
        Query and cache the chain id

        Raises:
            ConfigurationError: If the endpoint is unreachable or serves an unexpected chain
        """
        network = self.config.network or "configured"
        self.logger.info(f"Connecting to {network} blockchain...")
        try:
            chain_id = await self.signer.get_chain_id()
        except TransportError as e:
            raise ConfigurationError(f"Failed to connect to {network} blockchain: {e}") from e

        if NetworkConfig.has_network(self.config.network):
            expected = NetworkConfig.get_chain_id(self.config.network)
            if chain_id != expected:
                raise ConfigurationError(
                    f"Chain ID mismatch for {network}: expected {caip_chain_id(expected)}, "
                    f"got {caip_chain_id(chain_id)}"
                )

        self._chain_id = chain_id
        self.logger.info(f"Connected to {network} blockchain with chain ID {self.chain_id}")

    @property
    def chain_id(self) -> str:
        """
        CAIP-2 id of the connected chain; valid only after connect()

        Raises:
            ConfigurationError: If connect() has not succeeded
        """
        if self._chain_id is None:
            raise ConfigurationError("No chainId available")
        return caip_chain_id(self._chain_id)

    @property
    def address(self) -> str:
        return self.signer.address

    def _orchestrator(self) -> SubmissionOrchestrator:
        waiter = ConfirmationWaiter(
            self.signer,
            self._chain_id,
            confirmations=self.config.confirmations,
            timeout_secs=self.config.transaction_timeout_secs,
            observer=self.observer,
            logger=self.logger,
        )
        return SubmissionOrchestrator(
            self.signer,
            self.fee_estimator,
            waiter,
            self._chain_id,
            observer=self.observer,
            max_attempts=self.config.max_attempts,
            retry_delay_secs=self.config.retry_delay_secs,
            logger=self.logger,
        )

    async def submit(self, payload: Union[bytes, bytearray]) -> AnchorTransaction:
        """
        Anchor payload on chain

        Args:
            payload: Opaque anchor payload

        Returns:
            AnchorTransaction for the confirmed transaction

        Raises:
            ConfigurationError: If the client is not connected
            AnchorLayerError: One of the fatal taxonomy errors
        """
        if self._chain_id is None:
            raise ConfigurationError("No chainId available; call connect() first")

        orchestrator = self._orchestrator()
        try:
            request = await self.builder.build(payload)
        except TransportError as e:
            # the nonce read happens outside the retry loop
            raise UnhandledTransportError(f"Unhandled error in submission: {e}") from e
        return await self.balance_observer.observe(lambda: orchestrator.run(request))

    async def anchor_cid(self, cid: str) -> AnchorTransaction:
        """
        Anchor a CID given as a string

        Args:
            cid: Hex, base58btc or multibase CID string

        Returns:
            AnchorTransaction for the confirmed transaction
        """
        return await self.submit(cid_to_payload(cid))

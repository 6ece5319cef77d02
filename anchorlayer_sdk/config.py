"""
Network and engine configuration for the AnchorLayer SDK.
"""
import json
import os
import logging
import urllib.parse
import importlib.resources
from typing import Dict, Any, Optional

from pydantic import BaseModel

from .exceptions import ConfigurationError

logger = logging.getLogger(__name__)


def _env_bool(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


def validate_rpc_url(url: str) -> None:
    """
    Require https:// for anything that is not a local node

    Raises:
        ConfigurationError: If a remote URL does not use https
    """
    parsed = urllib.parse.urlparse(url)
    # Check if it's a localhost or 127.0.0.1 address (with or without port)
    host = parsed.netloc.split(':')[0]
    is_local = host in ('localhost', '127.0.0.1')
    if parsed.scheme != 'https' and not is_local:
        raise ConfigurationError(f"rpc_url must use https:// for security (got: {parsed.scheme}://)")


class NetworkConfig:
    """Known networks, loaded once from the bundled networks.json"""

    _networks_cache: Optional[Dict[str, Dict[str, Any]]] = None

    @classmethod
    def load_networks(cls) -> Dict[str, Dict[str, Any]]:
        if cls._networks_cache is None:
            raw = importlib.resources.files("anchorlayer_sdk").joinpath("networks.json").read_text()
            cls._networks_cache = json.loads(raw)
        return cls._networks_cache

    @classmethod
    def get_network(cls, name: str) -> Dict[str, Any]:
        """
        Get the configuration of a named network

        Raises:
            ConfigurationError: If the network is unknown
        """
        networks = cls.load_networks()
        if name not in networks:
            available = ", ".join(sorted(networks))
            raise ConfigurationError(
                f"Cannot connect to {name}, it is an unknown network. Available networks: {available}"
            )
        return networks[name]

    @classmethod
    def has_network(cls, name: Optional[str]) -> bool:
        return bool(name) and name in cls.load_networks()

    @classmethod
    def get_rpc_url(cls, name: str, override: Optional[str] = None) -> str:
        """
        Resolve the RPC URL: explicit override, then <NAME>_RPC_URL, then the bundled default
        """
        if override:
            return override
        env_var = name.upper().replace("-", "_") + "_RPC_URL"
        env_value = os.environ.get(env_var)
        if env_value:
            return env_value
        return cls.get_network(name)["rpc"]

    @classmethod
    def get_chain_id(cls, name: str) -> int:
        return int(cls.get_network(name)["chainId"])

    @classmethod
    def get_anchor_contract(cls, name: str) -> Optional[str]:
        return cls.get_network(name).get("anchorContract")


class AnchorConfig(BaseModel):
    """Settings for one anchoring engine"""
    network: Optional[str] = None
    rpc_url: Optional[str] = None
    contract_address: Optional[str] = None
    use_smart_contract_anchors: bool = False
    transaction_timeout_secs: float = 120
    confirmations: int = 4
    override_gas_config: bool = False
    gas_limit: Optional[int] = None
    max_attempts: int = 3
    retry_delay_secs: float = 5.0
    poll_interval_secs: float = 1.0

    def resolve_rpc_url(self) -> str:
        """
        Pick the endpoint: rpc_url if set, else the named network's RPC

        Raises:
            ConfigurationError: If neither is available
        """
        if self.rpc_url:
            url = self.rpc_url
        elif NetworkConfig.has_network(self.network):
            url = NetworkConfig.get_rpc_url(self.network)
        else:
            raise ConfigurationError(
                f"Cannot connect to {self.network}, it is an unknown network. "
                f"Please provide rpc_url"
            )
        validate_rpc_url(url)
        return url

    def resolve_contract_address(self) -> Optional[str]:
        if self.contract_address:
            return self.contract_address
        if NetworkConfig.has_network(self.network):
            return NetworkConfig.get_anchor_contract(self.network)
        return None

    def validate_config(self) -> "AnchorConfig":
        """
        Check settings that depend on each other

        Raises:
            ConfigurationError: On inconsistent settings
        """
        if self.use_smart_contract_anchors and not self.resolve_contract_address():
            raise ConfigurationError("use_smart_contract_anchors requires contract_address")
        if self.override_gas_config and (self.gas_limit is None or self.gas_limit <= 0):
            raise ConfigurationError("override_gas_config requires a positive gas_limit")
        if self.max_attempts < 1:
            raise ConfigurationError("max_attempts must be at least 1")
        if self.confirmations < 1:
            raise ConfigurationError("confirmations must be at least 1")
        return self

    @classmethod
    def from_env(cls, **overrides: Any) -> "AnchorConfig":
        """
        Build a config from ANCHOR_* environment variables

        Args:
            overrides: Values that take precedence over the environment

        Returns:
            Validated AnchorConfig
        """
        env = os.environ
        values: Dict[str, Any] = {}
        if env.get("ANCHOR_NETWORK"):
            values["network"] = env["ANCHOR_NETWORK"]
        if env.get("ANCHOR_RPC_URL"):
            values["rpc_url"] = env["ANCHOR_RPC_URL"]
        if env.get("ANCHOR_CONTRACT_ADDRESS"):
            values["contract_address"] = env["ANCHOR_CONTRACT_ADDRESS"]
        if env.get("ANCHOR_USE_SMART_CONTRACT"):
            values["use_smart_contract_anchors"] = _env_bool(env["ANCHOR_USE_SMART_CONTRACT"])
        if env.get("ANCHOR_TX_TIMEOUT_SECS"):
            values["transaction_timeout_secs"] = float(env["ANCHOR_TX_TIMEOUT_SECS"])
        if env.get("ANCHOR_CONFIRMATIONS"):
            values["confirmations"] = int(env["ANCHOR_CONFIRMATIONS"])
        if env.get("ANCHOR_OVERRIDE_GAS_CONFIG"):
            values["override_gas_config"] = _env_bool(env["ANCHOR_OVERRIDE_GAS_CONFIG"])
        if env.get("ANCHOR_GAS_LIMIT"):
            values["gas_limit"] = int(env["ANCHOR_GAS_LIMIT"])
        values.update(overrides)
        return cls(**values).validate_config()

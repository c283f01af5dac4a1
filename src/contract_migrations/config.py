"""Migration configuration loading for contract-migrations library."""

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional, Union

from eth_utils import is_address, to_checksum_address

from .constants import CHAIN_CONFIG, DEFAULT_RPC_URL, ZERO_ADDRESS
from .exceptions import ConfigError


def _checksum(value: Any, where: str) -> str:
    if not isinstance(value, str) or not is_address(value):
        raise ConfigError(f"Invalid address for {where}: {value!r}")
    return to_checksum_address(value)


@dataclass(frozen=True)
class Role:
    """An account authorized for a named role."""

    name: str
    address: str


@dataclass(frozen=True)
class RoleConfig:
    """Read-only mapping from role name to account."""

    roles: Dict[str, Role] = field(default_factory=dict)

    def __contains__(self, name: str) -> bool:
        return name in self.roles

    def __getitem__(self, name: str) -> Role:
        return self.roles[name]

    def address_of(self, name: str) -> str:
        """Get the address for a role, or the zero address if unconfigured."""
        role = self.roles.get(name)
        return role.address if role is not None else ZERO_ADDRESS

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RoleConfig":
        """
        Build from {"role": {"address": "0x..."}} or {"role": "0x..."}.

        Raises:
            ConfigError: If an address is malformed
        """
        roles = {}
        for name, entry in data.items():
            address = entry.get("address") if isinstance(entry, dict) else entry
            roles[name] = Role(name=name, address=_checksum(address, f"role '{name}'"))
        return cls(roles=roles)


@dataclass(frozen=True)
class MigrationConfig:
    """Configuration snapshot threaded into every step through the network."""

    chain: str = "localhost"
    rpc_url: Optional[str] = None
    roles: RoleConfig = field(default_factory=RoleConfig)
    addresses: Dict[str, str] = field(default_factory=dict)  # Externally deployed contracts

    @property
    def chain_id(self) -> Optional[int]:
        chain_info = CHAIN_CONFIG.get(self.chain)
        return chain_info["chain_id"] if chain_info else None

    def external_address(self, name: str) -> str:
        """Get a configured address for a contract deployed elsewhere, or zero."""
        return self.addresses.get(name, ZERO_ADDRESS)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MigrationConfig":
        """
        Build a configuration from parsed JSON.

        Raises:
            ConfigError: If roles or addresses are malformed
        """
        if not isinstance(data, dict):
            raise ConfigError("Configuration must be a JSON object")

        addresses = {
            name: _checksum(address, f"contract '{name}'")
            for name, address in data.get("addresses", {}).items()
        }

        return cls(
            chain=data.get("chain", "localhost"),
            rpc_url=data.get("rpc_url"),
            roles=RoleConfig.from_dict(data.get("roles", {})),
            addresses=addresses,
        )


def load_config(config_path: Union[Path, str]) -> MigrationConfig:
    """
    Load migration configuration from a JSON file.

    Args:
        config_path: Path to the config file

    Returns:
        MigrationConfig

    Raises:
        ConfigError: If the file is missing, not valid JSON, or malformed
    """
    config_path = Path(config_path)
    try:
        with open(config_path) as f:
            data = json.load(f)
    except FileNotFoundError as e:
        raise ConfigError(f"Config file not found: {config_path}") from e
    except json.JSONDecodeError as e:
        raise ConfigError(f"Config file is not valid JSON: {config_path}: {e}") from e

    return MigrationConfig.from_dict(data)


def resolve_rpc_url(config: MigrationConfig, rpc_url: Optional[str] = None) -> str:
    """
    Pick the RPC endpoint for a run.

    Precedence: explicit argument, config file, $RPC_URL, the chain's own
    environment variable (e.g. $WEMIX_RPC_URL), then the local default.

    Args:
        config: Loaded configuration
        rpc_url: Explicit endpoint (e.g., from the command line)

    Returns:
        RPC URL string
    """
    if rpc_url:
        return rpc_url
    if config.rpc_url:
        return config.rpc_url

    from_env = os.environ.get("RPC_URL")
    if from_env:
        return from_env

    chain_info = CHAIN_CONFIG.get(config.chain)
    if chain_info is not None:
        from_chain_env = os.environ.get(chain_info["default_rpc_env"])
        if from_chain_env:
            return from_chain_env

    return DEFAULT_RPC_URL

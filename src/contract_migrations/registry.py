"""Contract registry and deployment record management for contract-migrations library."""

import json
import logging
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

from eth_utils import is_address, is_same_address, to_checksum_address

from .constants import ZERO_ADDRESS
from .exceptions import ArtifactNotFoundError, RegistryError
from .types import ContractArtifact, Receipt

logger = logging.getLogger(__name__)


class ContractRegistry:
    """Run-scoped mapping from contract name to artifact and deployed address."""

    def __init__(self, artifacts: Iterable[ContractArtifact] = ()):
        self._artifacts: Dict[str, ContractArtifact] = {}
        for artifact in artifacts:
            self.add(artifact)

    def add(self, artifact: ContractArtifact) -> None:
        """
        Register a compiled artifact.

        Raises:
            RegistryError: If another artifact with the same name is registered
        """
        existing = self._artifacts.get(artifact.name)
        if existing is not None and existing is not artifact:
            raise RegistryError(f"Duplicate artifact name '{artifact.name}'")
        self._artifacts[artifact.name] = artifact

    def __contains__(self, name: str) -> bool:
        return name in self._artifacts

    def __len__(self) -> int:
        return len(self._artifacts)

    def names(self) -> List[str]:
        return list(self._artifacts.keys())

    def get(self, name: str) -> Optional[ContractArtifact]:
        """Get an artifact by name, or None if unknown."""
        return self._artifacts.get(name)

    def require(self, name: str) -> ContractArtifact:
        """
        Get an artifact by name.

        Raises:
            ArtifactNotFoundError: If no artifact is registered under name
        """
        artifact = self._artifacts.get(name)
        if artifact is None:
            raise ArtifactNotFoundError(f"No compiled artifact for contract '{name}'")
        return artifact

    def address_of(self, name: str) -> str:
        """Get the deployed address for name, or the zero address."""
        artifact = self._artifacts.get(name)
        if artifact is None or artifact.address is None:
            return ZERO_ADDRESS
        return artifact.address

    def deployed(self) -> Dict[str, ContractArtifact]:
        """Get all artifacts that have an address, keyed by name."""
        return {name: a for name, a in self._artifacts.items() if a.is_deployed}

    def record_deployment(self, name: str, receipt: Receipt) -> ContractArtifact:
        """
        Store the address from a deployment receipt.

        Addresses are immutable within a run: recording the same address
        again is a no-op, recording a different one is an error.

        Args:
            name: Contract name
            receipt: Successful deployment receipt

        Returns:
            The updated artifact

        Raises:
            ArtifactNotFoundError: If name is not registered
            RegistryError: If the receipt has no address or the artifact
                already has a different address
        """
        artifact = self.require(name)
        if not receipt.contract_address:
            raise RegistryError(f"Receipt for '{name}' carries no contract address")

        address = to_checksum_address(receipt.contract_address)
        if artifact.address is not None:
            if is_same_address(artifact.address, address):
                return artifact
            raise RegistryError(
                f"Contract '{name}' already deployed at {artifact.address}, "
                f"refusing to overwrite with {address}"
            )

        artifact.address = address
        artifact.transaction_hash = receipt.transaction_hash
        return artifact

    def to_record(self) -> Dict[str, Dict[str, Any]]:
        """
        Serialize deployed entries.

        Returns:
            Dictionary mapping name -> {address, transaction_hash, logic}
        """
        record: Dict[str, Dict[str, Any]] = {}
        for name, artifact in self.deployed().items():
            entry: Dict[str, Any] = {"address": artifact.address}
            if artifact.transaction_hash:
                entry["transaction_hash"] = artifact.transaction_hash
            if artifact.logic is not None:
                entry["logic"] = artifact.logic.name
            record[name] = entry
        return record

    def apply_record(self, record: Dict[str, Dict[str, Any]]) -> None:
        """
        Mark contracts from a previous run as deployed.

        Entries for contracts without a compiled artifact, and entries
        without a valid address, are skipped with a warning.

        Args:
            record: Dictionary as produced by to_record()
        """
        for name, entry in record.items():
            artifact = self._artifacts.get(name)
            if artifact is None:
                logger.warning("Recorded contract has no artifact, ignoring: %s", name)
                continue
            if not isinstance(entry, dict) or not is_address(entry.get("address")):
                logger.warning("Recorded entry for %s has no valid address, ignoring", name)
                continue

            receipt = Receipt(
                success=True,
                transaction_hash=entry.get("transaction_hash", ""),
                contract_address=entry["address"],
            )
            self.record_deployment(name, receipt)

        # Logic references resolve after all addresses are in place
        for name, entry in record.items():
            if not isinstance(entry, dict):
                continue
            logic_name = entry.get("logic")
            if logic_name and self.address_of(name) != ZERO_ADDRESS and logic_name in self._artifacts:
                self._artifacts[name].logic = self._artifacts[logic_name]


def load_deployment_record(record_path: Path) -> Dict[str, Dict[str, Any]]:
    """
    Load an existing deployment record or return empty dict.

    Args:
        record_path: Path to deployments.json record file

    Returns:
        Dictionary mapping name -> {address, transaction_hash, logic}
        Empty dict if file doesn't exist or is corrupted
    """
    try:
        with open(record_path) as f:
            data = json.load(f)
    except FileNotFoundError:
        return {}
    except json.JSONDecodeError:
        logger.warning("Deployment record is corrupted, ignoring: %s", record_path)
        return {}

    contracts = data.get("contracts", {}) if isinstance(data, dict) else None
    if not isinstance(contracts, dict):
        logger.warning("Deployment record is corrupted, ignoring: %s", record_path)
        return {}
    return contracts


def save_deployment_record(
    record: Dict[str, Dict[str, Any]], record_path: Path, chain: str = ""
) -> None:
    """
    Save the deployment record to disk.

    Args:
        record: Dictionary as produced by ContractRegistry.to_record()
        record_path: Path to deployments.json record file
        chain: Chain name stored alongside the contracts

    Creates parent directories if they don't exist.
    """
    record_path.parent.mkdir(parents=True, exist_ok=True)
    with open(record_path, "w") as f:
        json.dump({"chain": chain, "contracts": record}, f, indent=2)

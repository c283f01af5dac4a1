"""Network facade shared by all deployment steps."""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

from .config import MigrationConfig
from .constants import ZERO_ADDRESS
from .registry import ContractRegistry, load_deployment_record, save_deployment_record
from .types import ContractArtifact, Receipt

logger = logging.getLogger(__name__)


@dataclass
class Sender:
    """The sending account's view of deployed contracts."""

    address: str
    contracts: Dict[str, ContractArtifact] = field(default_factory=dict)


class Network(ABC):
    """
    Deploy, call and resolve contracts on one chain.

    Holds the run's ContractRegistry and configuration snapshot. Concrete
    networks implement the chain access (deploy, execute_contract, get_code,
    account_address); everything else resolves against the registry.

    When record_path is set, the deployment record is applied to the
    registry on construction and rewritten after every recorded deployment.
    """

    def __init__(
        self,
        registry: ContractRegistry,
        config: MigrationConfig,
        verify_code: bool = False,
        record_path: Optional[Path] = None,
    ):
        self.registry = registry
        self.config = config
        self.verify_code = verify_code
        self.record_path = record_path

        if record_path is not None:
            record = load_deployment_record(record_path)
            if record:
                logger.info("Loaded %d recorded deployments from %s", len(record), record_path)
                registry.apply_record(record)

    @property
    @abstractmethod
    def account_address(self) -> str:
        """Address of the deploying account."""

    @abstractmethod
    def deploy(self, contract: ContractArtifact, value: int, *args: Any) -> Optional[Receipt]:
        """
        Deploy a contract with constructor arguments.

        Returns:
            Receipt, or None if the transaction could not be built or sent
        """

    @abstractmethod
    def execute_contract(
        self,
        sender: Sender,
        contract: ContractArtifact,
        method: str,
        value: int,
        is_static: bool,
        *args: Any,
    ) -> Any:
        """
        Call a contract method.

        Static calls return the decoded outputs (a list); transactions
        return a successful Receipt.

        Raises:
            TransactionFailedError: If the call reverts or the transaction fails
        """

    @abstractmethod
    def get_code(self, address: str) -> str:
        """Get the runtime bytecode at address as 0x-prefixed hex."""

    def get_contract(self, name: str) -> Optional[ContractArtifact]:
        """Get a registered artifact, or None if the name is unknown."""
        return self.registry.get(name)

    def get_address(self, name: str) -> str:
        """
        Resolve a contract address by name.

        Contracts deployed in this run (or recorded) take precedence over
        addresses from the configuration. Unresolved names give the zero
        address.
        """
        address = self.registry.address_of(name)
        if address != ZERO_ADDRESS:
            return address
        return self.config.external_address(name)

    def get_config(self) -> MigrationConfig:
        return self.config

    def sender(self) -> Sender:
        return Sender(address=self.account_address, contracts=self.registry.deployed())

    def call(self, contract: ContractArtifact, method: str, *args: Any) -> Any:
        """Static call from the deploying account."""
        return self.execute_contract(self.sender(), contract, method, 0, True, *args)

    def record_deployment(self, name: str, receipt: Receipt) -> ContractArtifact:
        """Store a deployment in the registry and, in record mode, on disk."""
        artifact = self.registry.record_deployment(name, receipt)
        if self.record_path is not None:
            save_deployment_record(self.registry.to_record(), self.record_path, self.config.chain)
        return artifact

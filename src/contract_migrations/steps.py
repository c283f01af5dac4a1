"""Deployment step lifecycle: plain contract and proxy variants."""

import logging
from abc import ABC, abstractmethod
from typing import Any, Iterable, List, Optional, Sequence

from eth_utils import is_same_address

from .abi import encode_function_call
from .constants import ROLE_PROXY_ADMIN, ZERO_ADDRESS
from .exceptions import (
    BytecodeMismatchError,
    MigrationError,
    StepExecutionError,
    TransactionFailedError,
    UnresolvedContractError,
)
from .network import Network
from .types import ContractArtifact, Receipt

logger = logging.getLogger(__name__)


def is_zero_address(address: Optional[str]) -> bool:
    return not address or is_same_address(address, ZERO_ADDRESS)


def filter_zero_addresses(addresses: Iterable[Optional[str]]) -> List[str]:
    """
    Drop zero and empty addresses, keeping the order of the rest.

    Each dropped entry is logged as a warning so a misconfigured role shows
    up in the run log instead of granting authority to the null account.
    """
    valid = []
    for address in addresses:
        if is_zero_address(address):
            logger.warning("Zero address detected and skipped")
            continue
        valid.append(address)
    return valid


class DeploymentStep(ABC):
    """
    One contract's deployment, run by the Migration engine in five phases.

    init(artifact) -> loaded() -> deployment(network) -> validation(network)
    -> execution(network). A step whose loaded() is true is skipped
    entirely, which is what lets a halted migration resume.

    Subclasses set target_name and, when they resolve other contracts by
    name, list them in depends_on so the engine can check the order before
    sending anything.
    """

    target_name: str = ""
    depends_on: Sequence[str] = ()

    def __init__(self) -> None:
        self.artifact: Optional[ContractArtifact] = None

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.target_name!r})"

    def dependencies(self) -> List[str]:
        return list(self.depends_on)

    def artifact_dependencies(self) -> List[str]:
        """Dependencies that a configured address cannot satisfy."""
        return []

    def init(self, artifact: ContractArtifact) -> None:
        self.artifact = artifact

    def loaded(self) -> bool:
        return self.artifact is not None and self.artifact.is_deployed

    @abstractmethod
    def deployment(self, network: Network) -> Optional[Receipt]:
        """Send the deployment transaction; None means the step failed."""

    def validation(self, network: Network) -> None:
        """
        Check the deployed runtime code when bytecode verification is on.

        Raises:
            BytecodeMismatchError: If there is no code at the address or it
                differs from the artifact's deployed bytecode
        """
        if not network.verify_code:
            return

        code = network.get_code(self.artifact.address)
        if not code or code == "0x":
            raise BytecodeMismatchError(f"No code at {self.artifact.address} for {self.target_name}")

        expected = self.artifact.deployed_bytecode
        if expected and code.lower() != expected.lower():
            raise BytecodeMismatchError(
                f"Runtime code of {self.target_name} at {self.artifact.address} "
                "does not match the compiled artifact"
            )
        logger.info("Verified runtime code of %s", self.target_name)

    def execution(self, network: Network) -> None:
        """Post-deployment configuration; raise to halt the run."""
        return None


class ContractStep(DeploymentStep):
    """Deploys a plain contract with optional constructor arguments."""

    value: int = 0

    def constructor_args(self, network: Network) -> Sequence[Any]:
        return ()

    def deployment(self, network: Network) -> Optional[Receipt]:
        try:
            args = self.constructor_args(network)
        except MigrationError as e:
            logger.error("Failed to resolve constructor arguments for %s: %s", self.target_name, e)
            return None

        return network.deploy(self.artifact, self.value, *args)


class ProxyStep(DeploymentStep):
    """
    Deploys a transparent proxy in front of an already deployed logic contract.

    The proxy constructor receives (logic address, proxy admin, initializer
    calldata). The initializer is encoded against the logic ABI from
    initializer_args(); its structure is opaque to everything but the ABI
    layer. When grant_method is set, the execution phase calls it through
    the proxy with the addresses of grant_roles, as a second, separately
    auditable transaction.
    """

    logic_name: str = ""
    proxy_admin_role: str = ROLE_PROXY_ADMIN
    initializer: str = "initialize"
    grant_method: Optional[str] = None
    grant_roles: Sequence[str] = ()

    def dependencies(self) -> List[str]:
        deps = list(self.depends_on)
        if self.logic_name not in deps:
            deps.insert(0, self.logic_name)
        return deps

    def artifact_dependencies(self) -> List[str]:
        return [self.logic_name]

    def initializer_args(self, network: Network) -> Sequence[Any]:
        return ()

    def deployment(self, network: Network) -> Optional[Receipt]:
        logic = network.get_contract(self.logic_name)
        if logic is None or is_zero_address(logic.address):
            logger.error("Logic contract %s is not deployed, cannot deploy %s", self.logic_name, self.target_name)
            return None

        proxy_admin = network.get_config().roles.address_of(self.proxy_admin_role)
        if is_zero_address(proxy_admin):
            logger.error("Role %s is not configured, cannot deploy %s", self.proxy_admin_role, self.target_name)
            return None

        try:
            init_data = encode_function_call(logic.abi, self.initializer, *self.initializer_args(network))
        except MigrationError as e:
            logger.error("Failed to pack initData for proxy deployment of %s: %s", self.target_name, e)
            return None

        receipt = network.deploy(self.artifact, 0, logic.address, proxy_admin, init_data)
        if receipt is not None and receipt.success:
            self.artifact.logic = logic
        return receipt

    def grant_addresses(self, network: Network) -> List[str]:
        roles = network.get_config().roles
        return [roles.address_of(role) for role in self.grant_roles]

    def execution(self, network: Network) -> None:
        """
        Grant the operational roles through the proxy.

        Raises:
            UnresolvedContractError: If the proxy or logic contract is unknown
            StepExecutionError: If the grant transaction fails
        """
        if not self.grant_method:
            return None

        proxy = network.get_contract(self.target_name)
        logic = network.get_contract(self.logic_name)
        if proxy is None or logic is None:
            logger.error(
                "Failed to get contract: proxy missing=%s, logic missing=%s",
                proxy is None,
                logic is None,
            )
            raise UnresolvedContractError(
                f"Cannot configure {self.target_name}: proxy or logic contract '{self.logic_name}' is unresolved"
            )

        admins = filter_zero_addresses(self.grant_addresses(network))
        if not admins:
            logger.warning("No valid addresses for %s.%s, nothing granted", self.target_name, self.grant_method)
            return None

        sender = network.sender()
        deployed_proxy = sender.contracts.get(self.target_name)
        if deployed_proxy is None:
            raise UnresolvedContractError(f"{self.target_name} is not deployed")

        try:
            network.execute_contract(sender, deployed_proxy, self.grant_method, 0, False, admins)
        except TransactionFailedError as e:
            raise StepExecutionError(f"{self.target_name}.{self.grant_method} failed: {e}") from e

        logger.info("Granted %s to %d accounts on %s", self.grant_method, len(admins), self.target_name)
        return None

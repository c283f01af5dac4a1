"""Ordered execution of deployment steps."""

import logging
from typing import Callable, List, NoReturn, Optional, Sequence

from .constants import (
    PHASE_DEPLOYMENT,
    PHASE_EXECUTION,
    PHASE_INIT,
    PHASE_VALIDATION,
    STATUS_DEPLOYED,
    STATUS_SKIPPED,
    ZERO_ADDRESS,
)
from .exceptions import (
    ArtifactNotFoundError,
    DependencyOrderError,
    EmptyMigrationError,
    MigrationError,
    MigrationHaltedError,
    TransactionFailedError,
)
from .network import Network
from .steps import DeploymentStep
from .types import MigrationResult, StepOutcome

logger = logging.getLogger(__name__)

Matcher = Callable[[str, List[str]], bool]


def parse_filter(name_filter: Optional[str]) -> List[str]:
    """
    Split a filter string into contract names.

    Args:
        name_filter: Comma-separated names, e.g. "GameServerNFT,GameServerNFTProxy"

    Returns:
        List of stripped, non-empty names (empty list means no filter)
    """
    if not name_filter:
        return []
    return [n.strip() for n in name_filter.split(",") if n.strip()]


def exact_match(name: str, patterns: List[str]) -> bool:
    return name in patterns


class Migration:
    """
    Runs deployment steps strictly in list order against one network.

    Later steps resolve earlier deployments by name through the shared
    registry, so steps never run concurrently. The first failure halts the
    run with MigrationHaltedError; contracts already deployed stay deployed
    and are skipped (via loaded()) when the migration is run again.
    """

    def __init__(
        self,
        network: Network,
        steps: Sequence[DeploymentStep],
        name_filter: str = "",
        snapshot_label: str = "",
        matcher: Matcher = exact_match,
    ):
        self.network = network
        self.steps = list(steps)
        self.name_filter = name_filter
        self.snapshot_label = snapshot_label
        self.matcher = matcher

    def select_steps(self) -> List[DeploymentStep]:
        """
        Apply the name filter.

        Raises:
            EmptyMigrationError: If there are no steps before or after filtering
        """
        if not self.steps:
            raise EmptyMigrationError("No deployment steps to run")

        patterns = parse_filter(self.name_filter)
        if not patterns:
            return list(self.steps)

        selected = [s for s in self.steps if self.matcher(s.target_name, patterns)]
        if not selected:
            raise EmptyMigrationError(f"No deployment steps match filter '{self.name_filter}'")
        return selected

    def check_order(self, steps: Sequence[DeploymentStep]) -> None:
        """
        Validate artifacts and dependencies before any transaction is sent.

        A dependency is satisfied by an earlier step of this run or by a
        contract that already has an address (recorded or configured).
        Artifact dependencies, such as a proxy's logic contract, must be
        deployed by an earlier step or recorded; a configured address does
        not count.

        Raises:
            ArtifactNotFoundError: If a step's contract has no compiled artifact
            DependencyOrderError: If a dependency would be unresolved at run time
        """
        earlier = set()
        for step in steps:
            if step.target_name not in self.network.registry:
                raise ArtifactNotFoundError(f"No compiled artifact for step '{step.target_name}'")

            artifact_deps = step.artifact_dependencies()
            for dep in step.dependencies():
                if dep in earlier:
                    continue
                if dep in artifact_deps:
                    if self.network.registry.address_of(dep) != ZERO_ADDRESS:
                        continue
                    raise DependencyOrderError(
                        f"Step '{step.target_name}' needs '{dep}' deployed from its artifact, "
                        "but it is neither recorded nor deployed by an earlier step"
                    )
                if self.network.get_address(dep) != ZERO_ADDRESS:
                    continue
                raise DependencyOrderError(
                    f"Step '{step.target_name}' depends on '{dep}', which is neither "
                    "deployed nor deployed by an earlier step"
                )

            earlier.add(step.target_name)

    def run(self) -> MigrationResult:
        """
        Execute the migration.

        Returns:
            MigrationResult with one outcome per selected step

        Raises:
            EmptyMigrationError: If there is nothing to deploy
            ArtifactNotFoundError: If a step has no compiled artifact
            DependencyOrderError: If the step order cannot resolve dependencies
            MigrationHaltedError: If a step fails; names the step and phase
        """
        steps = self.select_steps()
        self.check_order(steps)

        label = f" '{self.snapshot_label}'" if self.snapshot_label else ""
        logger.info("Running migration%s: %d steps", label, len(steps))

        result = MigrationResult(label=self.snapshot_label)
        for step in steps:
            result.outcomes.append(self._run_step(step))

        logger.info(
            "Migration%s finished: %d deployed, %d skipped",
            label,
            len(result.deployed),
            len(result.skipped),
        )
        return result

    def _run_step(self, step: DeploymentStep) -> StepOutcome:
        name = step.target_name
        try:
            step.init(self.network.registry.require(name))
        except MigrationError as e:
            self._halt(name, PHASE_INIT, e)

        if step.loaded():
            logger.info("Skipping %s: already deployed at %s", name, step.artifact.address)
            return StepOutcome(name=name, status=STATUS_SKIPPED)

        logger.info("Deploying %s", name)
        try:
            receipt = step.deployment(self.network)
        except MigrationError as e:
            self._halt(name, PHASE_DEPLOYMENT, e)

        if receipt is None:
            self._halt(name, PHASE_DEPLOYMENT, TransactionFailedError("no receipt"))
        if not receipt.success:
            self._halt(name, PHASE_DEPLOYMENT, TransactionFailedError(f"transaction {receipt.transaction_hash} reverted"))

        try:
            self.network.record_deployment(name, receipt)
        except MigrationError as e:
            self._halt(name, PHASE_DEPLOYMENT, e)

        for phase, run_phase in ((PHASE_VALIDATION, step.validation), (PHASE_EXECUTION, step.execution)):
            try:
                run_phase(self.network)
            except MigrationError as e:
                self._halt(name, phase, e)

        return StepOutcome(name=name, status=STATUS_DEPLOYED, receipt=receipt)

    def _halt(self, name: str, phase: str, cause: MigrationError) -> NoReturn:
        logger.error("Step %s failed during %s: %s", name, phase, cause)
        raise MigrationHaltedError(name, phase, cause) from cause

"""Data types and dataclasses for contract-migrations library."""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass
class ContractArtifact:
    """Compiled contract and, once deployed, its on-chain location."""

    # Required fields
    name: str  # Contract name, e.g., "GameServerNFT"
    abi: List[Dict[str, Any]]  # Full contract ABI
    bytecode: str  # Creation bytecode, 0x-prefixed

    # Optional fields
    deployed_bytecode: Optional[str] = None  # Runtime bytecode, for verification
    source_format: Optional[str] = None  # "hardhat", "foundry" or "solc-combined"

    # Set during deployment
    address: Optional[str] = None  # Checksummed address
    transaction_hash: Optional[str] = None
    logic: Optional["ContractArtifact"] = None  # Logic contract behind a proxy

    @property
    def is_deployed(self) -> bool:
        return self.address is not None

    def call_abi(self) -> List[Dict[str, Any]]:
        """ABI used for method calls: the logic contract's ABI when this is a proxy."""
        if self.logic is not None:
            return self.logic.abi
        return self.abi


@dataclass
class Receipt:
    """Outcome of a submitted transaction."""

    success: bool
    transaction_hash: str
    contract_address: Optional[str] = None  # Set for deployments
    block_number: Optional[int] = None


@dataclass
class StepOutcome:
    """What the engine did with one step."""

    name: str
    status: str  # "deployed" or "skipped"
    receipt: Optional[Receipt] = None


@dataclass
class MigrationResult:
    """Summary of a completed migration run."""

    label: str
    outcomes: List[StepOutcome] = field(default_factory=list)

    @property
    def deployed(self) -> List[str]:
        return [o.name for o in self.outcomes if o.status == "deployed"]

    @property
    def skipped(self) -> List[str]:
        return [o.name for o in self.outcomes if o.status == "skipped"]

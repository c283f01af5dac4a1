"""
contract-migrations: ordered smart contract deployments with proxy wiring
"""

from importlib.metadata import PackageNotFoundError, version

from .artifacts import load_artifacts
from .compiler import compile_sources
from .config import MigrationConfig, RoleConfig, load_config
from .exceptions import (
    AbiEncodingError,
    ArtifactNotFoundError,
    BytecodeMismatchError,
    CompilationError,
    ConfigError,
    DependencyOrderError,
    EmptyArtifactsError,
    EmptyMigrationError,
    MigrationError,
    MigrationHaltedError,
    RegistryError,
    StepExecutionError,
    TransactionFailedError,
    UnresolvedContractError,
)
from .migration import Migration
from .network import Network, Sender
from .registry import ContractRegistry
from .steps import ContractStep, DeploymentStep, ProxyStep
from .types import ContractArtifact, MigrationResult, Receipt, StepOutcome

try:
    __version__ = version("contract-migrations")
except PackageNotFoundError:
    __version__ = None

__all__ = [
    "Migration",
    "Network",
    "Sender",
    "ContractRegistry",
    "DeploymentStep",
    "ContractStep",
    "ProxyStep",
    "ContractArtifact",
    "Receipt",
    "StepOutcome",
    "MigrationResult",
    "MigrationConfig",
    "RoleConfig",
    "load_artifacts",
    "compile_sources",
    "load_config",
    "MigrationError",
    "ConfigError",
    "CompilationError",
    "ArtifactNotFoundError",
    "EmptyArtifactsError",
    "EmptyMigrationError",
    "DependencyOrderError",
    "RegistryError",
    "AbiEncodingError",
    "TransactionFailedError",
    "UnresolvedContractError",
    "StepExecutionError",
    "BytecodeMismatchError",
    "MigrationHaltedError",
]

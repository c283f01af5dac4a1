"""Custom exception classes for contract-migrations library."""

from typing import Optional


class MigrationError(Exception):
    """Base exception for migration-related errors."""

    pass


class ConfigError(MigrationError, ValueError):
    """Raised when migration configuration is missing or malformed."""

    pass


class ArtifactNotFoundError(MigrationError, KeyError):
    """Raised when a contract name has no compiled artifact in the registry."""

    def __str__(self) -> str:
        # KeyError would otherwise repr() the message
        return str(self.args[0]) if self.args else ""


class EmptyArtifactsError(MigrationError, FileNotFoundError):
    """Raised when no compiled contract artifacts are found."""

    pass


class EmptyMigrationError(MigrationError, ValueError):
    """Raised when there are no deployment steps to run."""

    pass


class DependencyOrderError(MigrationError, ValueError):
    """Raised when a step depends on a contract that is neither deployed nor deployed earlier."""

    pass


class RegistryError(MigrationError):
    """Raised when a registry entry would be overwritten within a run."""

    pass


class CompilationError(MigrationError, RuntimeError):
    """Raised when Solidity sources cannot be compiled or the compiler cannot be installed."""

    pass


class AbiEncodingError(MigrationError, ValueError):
    """Raised when arguments cannot be ABI-encoded for a contract function."""

    pass


class RPCError(MigrationError, RuntimeError):
    """Raised when a JSON-RPC request fails."""

    pass


class ChainMismatchError(RPCError):
    """Raised when the RPC endpoint reports a different chain than configured."""

    pass


class TransactionFailedError(MigrationError):
    """Raised when a contract call or transaction reverts or is rejected."""

    pass


class UnresolvedContractError(MigrationError):
    """Raised when a contract required by a step has no registry entry."""

    pass


class StepExecutionError(MigrationError):
    """Raised when a post-deployment configuration transaction fails."""

    pass


class BytecodeMismatchError(MigrationError):
    """Raised when on-chain runtime code does not match the compiled artifact."""

    pass


class MigrationHaltedError(MigrationError):
    """Raised when the engine stops a run because a step failed."""

    def __init__(self, step_name: str, phase: str, cause: Optional[BaseException] = None):
        self.step_name = step_name
        self.phase = phase
        self.cause = cause
        message = f"Migration halted at step '{step_name}' during {phase}"
        if cause is not None:
            message += f": {cause}"
        super().__init__(message)

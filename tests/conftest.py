"""Shared pytest fixtures for contract-migrations tests."""

import copy
from pathlib import Path
from typing import Any, Dict, List, Optional

import pytest
from eth_account import Account
from eth_account.signers.local import LocalAccount
from eth_utils import to_checksum_address
from web3 import EthereumTesterProvider, Web3

from contract_migrations.artifacts import load_artifacts
from contract_migrations.compiler import DEFAULT_SOLC_VERSION, compile_sources, ensure_solc
from contract_migrations.config import MigrationConfig, RoleConfig
from contract_migrations.exceptions import CompilationError
from contract_migrations.network import Network, Sender
from contract_migrations.registry import ContractRegistry
from contract_migrations.simulation import EphemeralNetwork
from contract_migrations.types import ContractArtifact, Receipt

DEPLOYER = "0x5555555555555555555555555555555555555555"
CONTRACTS_DIR = Path(__file__).parent.parent / "contracts"


class RecordingNetwork(Network):
    """Network that hands out sequential addresses and records every call."""

    def __init__(self, registry: ContractRegistry, config: MigrationConfig, **kwargs: Any):
        super().__init__(registry, config, **kwargs)
        self.deploy_calls: List[tuple] = []
        self.executions: List[tuple] = []
        self.code: Dict[str, str] = {}
        self.fail_execution: Optional[Exception] = None

    @property
    def account_address(self) -> str:
        return DEPLOYER

    def deploy(self, contract: ContractArtifact, value: int, *args: Any) -> Optional[Receipt]:
        self.deploy_calls.append((contract.name, value, args))
        n = len(self.deploy_calls)
        return Receipt(
            success=True,
            transaction_hash="0x" + f"{n:064x}",
            contract_address=to_checksum_address("0x" + f"{n:040x}"),
        )

    def execute_contract(self, sender: Sender, contract: ContractArtifact, method: str, value: int, is_static: bool, *args: Any) -> Any:
        if self.fail_execution is not None:
            raise self.fail_execution
        self.executions.append((sender.address, contract.name, method, value, is_static, args))
        return Receipt(success=True, transaction_hash="0x" + "ab" * 32)

    def get_code(self, address: str) -> str:
        return self.code.get(address, "0x")


@pytest.fixture
def fixtures_dir() -> Path:
    """Return the path to the fixtures directory."""
    return Path(__file__).parent / "fixtures"


@pytest.fixture
def artifacts_dir(fixtures_dir: Path) -> Path:
    """Return the path to the sample hardhat artifacts."""
    return fixtures_dir / "artifacts"


@pytest.fixture
def config_path(fixtures_dir: Path) -> Path:
    """Return the path to the sample config file."""
    return fixtures_dir / "config.json"


@pytest.fixture
def registry(artifacts_dir: Path) -> ContractRegistry:
    """Registry loaded with the sample GameServerNFT artifacts."""
    _, ordered = load_artifacts(artifacts_dir)
    return ContractRegistry(ordered)


@pytest.fixture(scope="session")
def contracts_dir() -> Path:
    """Return the path to the bundled Solidity sources."""
    return CONTRACTS_DIR


@pytest.fixture(scope="session")
def solc() -> str:
    """Install the pinned solc release, skipping when it cannot be downloaded."""
    try:
        ensure_solc(DEFAULT_SOLC_VERSION)
    except CompilationError as e:
        pytest.skip(str(e))
    return DEFAULT_SOLC_VERSION


@pytest.fixture(scope="session")
def compiled_artifacts(solc: str, contracts_dir: Path) -> List[ContractArtifact]:
    """The bundled contracts, compiled once per session."""
    _, ordered = compile_sources(contracts_dir, solc_version=solc)
    return ordered


@pytest.fixture
def role_keys() -> Dict[str, LocalAccount]:
    """Fresh keys for every role used in simulations."""
    names = ["proxy_admin", "super_admin", "admin", "user1", "user2", "user3"]
    return {name: Account.create() for name in names}


@pytest.fixture
def accounts(role_keys: Dict[str, LocalAccount]) -> Dict[str, str]:
    """Addresses of the role keys."""
    return {name: key.address for name, key in role_keys.items()}


@pytest.fixture
def sim_config(accounts: Dict[str, str]) -> MigrationConfig:
    """Configuration whose roles point at the generated accounts."""
    return MigrationConfig(
        chain="localhost",
        roles=RoleConfig.from_dict(
            {
                "proxy_admin": accounts["proxy_admin"],
                "game_server_super_admin": accounts["super_admin"],
                "game_server_admin_role": accounts["admin"],
            }
        ),
    )


@pytest.fixture
def w3() -> Web3:
    """A fresh in-process chain."""
    return Web3(EthereumTesterProvider())


@pytest.fixture
def make_ephemeral_network(compiled_artifacts, sim_config, role_keys, w3):
    """
    Factory for networks over fresh registries sharing one chain.

    Every role key can sign; the super admin deploys unless told otherwise.
    """

    def make(config=None, deployer=None, record_path=None, **kwargs) -> EphemeralNetwork:
        return EphemeralNetwork(
            ContractRegistry(copy.copy(artifact) for artifact in compiled_artifacts),
            config or sim_config,
            deployer=deployer or role_keys["super_admin"],
            signers=role_keys.values(),
            w3=w3,
            record_path=record_path,
            **kwargs,
        )

    return make


@pytest.fixture
def ephemeral_network(make_ephemeral_network) -> EphemeralNetwork:
    """Ephemeral network over the compiled contracts, deploying as the super admin."""
    return make_ephemeral_network()


@pytest.fixture
def recording_network(sim_config: MigrationConfig) -> RecordingNetwork:
    """RecordingNetwork over plain artifacts A, B and C."""
    registry = ContractRegistry(
        ContractArtifact(name=name, abi=[], bytecode="0x6080") for name in ("A", "B", "C")
    )
    return RecordingNetwork(registry, sim_config)


@pytest.fixture
def make_recording_network(sim_config: MigrationConfig):
    """Factory for RecordingNetworks over any registry."""

    def make(registry: ContractRegistry, config: Optional[MigrationConfig] = None, **kwargs: Any) -> RecordingNetwork:
        return RecordingNetwork(registry, config or sim_config, **kwargs)

    return make

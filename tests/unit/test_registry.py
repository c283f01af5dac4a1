"""Unit tests for the contract registry and deployment records."""

import json
import logging
from pathlib import Path

import pytest
from eth_utils import to_checksum_address

from contract_migrations.constants import ZERO_ADDRESS
from contract_migrations.exceptions import ArtifactNotFoundError, RegistryError
from contract_migrations.registry import ContractRegistry, load_deployment_record, save_deployment_record
from contract_migrations.types import ContractArtifact, Receipt

ADDRESS_A = to_checksum_address("0x00000000000000000000000000000000000000aa")
ADDRESS_B = to_checksum_address("0x00000000000000000000000000000000000000bb")


@pytest.fixture
def plain_registry() -> ContractRegistry:
    return ContractRegistry(
        [
            ContractArtifact(name="Logic", abi=[], bytecode="0x6080"),
            ContractArtifact(name="Proxy", abi=[], bytecode="0x6080"),
        ]
    )


class TestLookup:
    """Test registering and resolving artifacts."""

    def test_contains_and_names(self, plain_registry: ContractRegistry):
        """Test membership and name order."""
        assert "Logic" in plain_registry
        assert "Missing" not in plain_registry
        assert plain_registry.names() == ["Logic", "Proxy"]
        assert len(plain_registry) == 2

    def test_get_unknown_returns_none(self, plain_registry: ContractRegistry):
        """Test that get() does not raise for unknown names."""
        assert plain_registry.get("Missing") is None

    def test_require_unknown_raises(self, plain_registry: ContractRegistry):
        """Test that require() raises ArtifactNotFoundError."""
        with pytest.raises(ArtifactNotFoundError, match="Missing"):
            plain_registry.require("Missing")

    def test_duplicate_name_rejected(self, plain_registry: ContractRegistry):
        """Test that a second artifact with the same name is rejected."""
        with pytest.raises(RegistryError, match="Duplicate"):
            plain_registry.add(ContractArtifact(name="Logic", abi=[], bytecode="0x01"))

    def test_address_of_undeployed_is_zero(self, plain_registry: ContractRegistry):
        """Test that unknown and undeployed contracts resolve to zero."""
        assert plain_registry.address_of("Logic") == ZERO_ADDRESS
        assert plain_registry.address_of("Missing") == ZERO_ADDRESS


class TestRecordDeployment:
    """Test storing deployment results."""

    def test_records_checksummed_address(self, plain_registry: ContractRegistry):
        """Test that the stored address is checksummed."""
        artifact = plain_registry.record_deployment("Logic", Receipt(True, "0x01", ADDRESS_A.lower()))

        assert artifact.address == ADDRESS_A
        assert artifact.transaction_hash == "0x01"
        assert plain_registry.address_of("Logic") == artifact.address
        assert list(plain_registry.deployed()) == ["Logic"]

    def test_same_address_is_noop(self, plain_registry: ContractRegistry):
        """Test that recording the same address twice is allowed."""
        plain_registry.record_deployment("Logic", Receipt(True, "0x01", ADDRESS_A))
        artifact = plain_registry.record_deployment("Logic", Receipt(True, "0x02", ADDRESS_A.lower()))

        assert artifact.transaction_hash == "0x01"

    def test_different_address_rejected(self, plain_registry: ContractRegistry):
        """Test that an address is never overwritten within a run."""
        plain_registry.record_deployment("Logic", Receipt(True, "0x01", ADDRESS_A))

        with pytest.raises(RegistryError, match="refusing to overwrite"):
            plain_registry.record_deployment("Logic", Receipt(True, "0x02", ADDRESS_B))
        assert plain_registry.address_of("Logic") == ADDRESS_A

    def test_receipt_without_address_rejected(self, plain_registry: ContractRegistry):
        """Test that a receipt without contract address is rejected."""
        with pytest.raises(RegistryError, match="no contract address"):
            plain_registry.record_deployment("Logic", Receipt(True, "0x01"))

    def test_unknown_name_rejected(self, plain_registry: ContractRegistry):
        """Test that unknown names raise ArtifactNotFoundError."""
        with pytest.raises(ArtifactNotFoundError):
            plain_registry.record_deployment("Missing", Receipt(True, "0x01", ADDRESS_A))


class TestRecordSerialization:
    """Test to_record() and apply_record()."""

    def test_to_record_includes_logic(self, plain_registry: ContractRegistry):
        """Test the record entry of a proxy."""
        plain_registry.record_deployment("Logic", Receipt(True, "0x01", ADDRESS_A))
        plain_registry.record_deployment("Proxy", Receipt(True, "0x02", ADDRESS_B))
        plain_registry.require("Proxy").logic = plain_registry.require("Logic")

        record = plain_registry.to_record()

        assert record == {
            "Logic": {"address": ADDRESS_A, "transaction_hash": "0x01"},
            "Proxy": {"address": ADDRESS_B, "transaction_hash": "0x02", "logic": "Logic"},
        }

    def test_apply_record_restores_addresses_and_logic(self, plain_registry: ContractRegistry):
        """Test that a record restores deployments and proxy links."""
        plain_registry.apply_record(
            {
                "Proxy": {"address": ADDRESS_B, "transaction_hash": "0x02", "logic": "Logic"},
                "Logic": {"address": ADDRESS_A, "transaction_hash": "0x01"},
            }
        )

        assert plain_registry.address_of("Logic") == ADDRESS_A
        assert plain_registry.require("Proxy").logic is plain_registry.require("Logic")

    def test_apply_record_skips_unknown(self, plain_registry: ContractRegistry, caplog):
        """Test that recorded contracts without artifacts are ignored."""
        with caplog.at_level(logging.WARNING):
            plain_registry.apply_record({"Retired": {"address": ADDRESS_A}})

        assert plain_registry.deployed() == {}
        assert "Retired" in caplog.text

    def test_apply_record_skips_entries_without_address(self, plain_registry: ContractRegistry, caplog):
        """Test that hand-edited entries without a usable address are ignored."""
        with caplog.at_level(logging.WARNING):
            plain_registry.apply_record(
                {
                    "Logic": {"transaction_hash": "0x01"},
                    "Proxy": {"address": "not-an-address", "logic": "Logic"},
                }
            )

        assert plain_registry.deployed() == {}
        assert plain_registry.require("Proxy").logic is None
        assert "Recorded entry for Logic has no valid address" in caplog.text
        assert "Recorded entry for Proxy has no valid address" in caplog.text

    def test_apply_record_skips_non_dict_entries(self, plain_registry: ContractRegistry, caplog):
        """Test that an entry that is not an object is ignored."""
        with caplog.at_level(logging.WARNING):
            plain_registry.apply_record({"Logic": ADDRESS_A, "Proxy": {"address": ADDRESS_B}})

        assert plain_registry.address_of("Logic") == ZERO_ADDRESS
        assert plain_registry.address_of("Proxy") == ADDRESS_B


class TestRecordFiles:
    """Test loading and saving deployment record files."""

    def test_round_trip(self, tmp_path: Path):
        """Test that a saved record loads back."""
        path = tmp_path / "wemix" / "deployments.json"
        record = {"Logic": {"address": ADDRESS_A, "transaction_hash": "0x01"}}

        save_deployment_record(record, path, "wemix")

        assert load_deployment_record(path) == record
        with open(path) as f:
            assert json.load(f)["chain"] == "wemix"

    def test_missing_file_returns_empty(self, tmp_path: Path):
        """Test that a missing record means nothing is deployed."""
        assert load_deployment_record(tmp_path / "missing.json") == {}

    def test_corrupted_file_returns_empty(self, tmp_path: Path):
        """Test that a corrupted record is ignored."""
        path = tmp_path / "deployments.json"
        path.write_text("{ invalid json")

        assert load_deployment_record(path) == {}

    @pytest.mark.parametrize("content", [[], {"contracts": []}, {"contracts": "Logic"}, "deployments"])
    def test_unexpected_shape_returns_empty(self, tmp_path: Path, content, caplog):
        """Test that valid JSON of the wrong shape is ignored like a corrupted file."""
        path = tmp_path / "deployments.json"
        path.write_text(json.dumps(content))

        with caplog.at_level(logging.WARNING):
            assert load_deployment_record(path) == {}
        assert "corrupted" in caplog.text

    def test_overwrites_existing_file(self, tmp_path: Path):
        """Test that saving replaces the previous record."""
        path = tmp_path / "deployments.json"
        save_deployment_record({"Old": {"address": ADDRESS_B}}, path)
        save_deployment_record({"Logic": {"address": ADDRESS_A}}, path)

        assert load_deployment_record(path) == {"Logic": {"address": ADDRESS_A}}

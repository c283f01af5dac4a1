"""Compiled artifact loaders for contract-migrations library."""

import json
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

from .exceptions import EmptyArtifactsError
from .types import ContractArtifact


class ArtifactFormat(Enum):
    """
    Compiler output formats.

    Value strings appear as source_format on loaded artifacts:
    - HARDHAT: artifacts/**/Name.json with top-level abi/bytecode strings
    - FOUNDRY: out/Name.sol/Name.json with bytecode.object
    - SOLC_COMBINED: solc --combined-json abi,bin,bin-runtime output
    """

    HARDHAT = "hardhat"
    FOUNDRY = "foundry"
    SOLC_COMBINED = "solc-combined"


def detect_artifact_format(data: Dict[str, Any]) -> Optional[ArtifactFormat]:
    """
    Detect which compiler produced a parsed artifact file.

    Args:
        data: Parsed JSON content of an artifact file

    Returns:
        The detected ArtifactFormat, or None if the file is not an artifact
        (e.g., a hardhat .dbg.json or build-info file)
    """
    if "contracts" in data and isinstance(data["contracts"], dict):
        return ArtifactFormat.SOLC_COMBINED

    if "abi" not in data or "bytecode" not in data:
        return None

    if isinstance(data["bytecode"], dict):
        return ArtifactFormat.FOUNDRY

    return ArtifactFormat.HARDHAT


def _hex(code: Optional[str]) -> Optional[str]:
    if code is None:
        return None
    return code if code.startswith("0x") else "0x" + code


def parse_hardhat_artifact(data: Dict[str, Any], fallback_name: str) -> ContractArtifact:
    """
    Parse a hardhat artifact.

    Args:
        data: Parsed artifact JSON
        fallback_name: Name used when contractName is absent (file stem)

    Returns:
        ContractArtifact with abi, bytecode and deployed bytecode
    """
    return ContractArtifact(
        name=data.get("contractName") or fallback_name,
        abi=data["abi"],
        bytecode=_hex(data["bytecode"]),
        deployed_bytecode=_hex(data.get("deployedBytecode")),
        source_format=ArtifactFormat.HARDHAT.value,
    )


def parse_foundry_artifact(data: Dict[str, Any], fallback_name: str) -> ContractArtifact:
    """
    Parse a foundry artifact (bytecode nested under "object").

    Args:
        data: Parsed artifact JSON
        fallback_name: Name used for the contract (file stem)

    Returns:
        ContractArtifact with abi, bytecode and deployed bytecode
    """
    deployed = data.get("deployedBytecode") or {}
    return ContractArtifact(
        name=fallback_name,
        abi=data["abi"],
        bytecode=_hex(data["bytecode"]["object"]),
        deployed_bytecode=_hex(deployed.get("object")),
        source_format=ArtifactFormat.FOUNDRY.value,
    )


def parse_solc_combined(data: Dict[str, Any]) -> List[ContractArtifact]:
    """
    Parse solc --combined-json output.

    Keys look like "contracts/proxy/GameServerNFT.sol:GameServerNFT"; the
    contract name is the part after the last colon.

    Args:
        data: Parsed combined JSON

    Returns:
        List of ContractArtifacts in key order
    """
    result = []
    for key in sorted(data["contracts"].keys()):
        entry = data["contracts"][key]
        abi = entry["abi"]
        # Older solc releases emit the ABI as a JSON string
        if isinstance(abi, str):
            abi = json.loads(abi)

        result.append(
            ContractArtifact(
                name=key.rsplit(":", 1)[-1],
                abi=abi,
                bytecode=_hex(entry.get("bin", "")),
                deployed_bytecode=_hex(entry.get("bin-runtime")),
                source_format=ArtifactFormat.SOLC_COMBINED.value,
            )
        )
    return result


def parse_artifact_file(file_path: Path) -> List[ContractArtifact]:
    """
    Parse one artifact file of any supported format.

    Args:
        file_path: Path to JSON artifact file

    Returns:
        List of artifacts found in the file (empty if not an artifact)
    """
    with open(file_path) as f:
        data = json.load(f)

    if not isinstance(data, dict):
        return []

    match detect_artifact_format(data):
        case ArtifactFormat.HARDHAT:
            return [parse_hardhat_artifact(data, file_path.stem)]
        case ArtifactFormat.FOUNDRY:
            return [parse_foundry_artifact(data, file_path.stem)]
        case ArtifactFormat.SOLC_COMBINED:
            return parse_solc_combined(data)
        case _:
            return []


def index_artifacts(
    artifacts: Iterable[ContractArtifact], source: Path
) -> tuple[Dict[str, ContractArtifact], List[ContractArtifact]]:
    """
    Keep deployable artifacts, first definition of each name winning.

    Interfaces and abstract contracts (empty bytecode) are skipped.

    Args:
        artifacts: Artifacts in load order
        source: Directory they came from, for the error message

    Returns:
        Tuple of (name_to_artifact, ordered_artifacts)

    Raises:
        EmptyArtifactsError: If no deployable artifacts remain
    """
    by_name: Dict[str, ContractArtifact] = {}
    ordered: List[ContractArtifact] = []

    for artifact in artifacts:
        if not artifact.bytecode or artifact.bytecode == "0x":
            continue
        if artifact.name in by_name:
            continue
        by_name[artifact.name] = artifact
        ordered.append(artifact)

    if not ordered:
        raise EmptyArtifactsError(f"No contracts found in {source}")

    return by_name, ordered


def load_artifacts(
    artifact_dir: Path,
) -> tuple[Dict[str, ContractArtifact], List[ContractArtifact]]:
    """
    Load every compiled contract under a directory.

    When two files define the same contract name the first one in path
    order wins.

    Args:
        artifact_dir: Root of the compiler output tree

    Returns:
        Tuple of (name_to_artifact, ordered_artifacts), ordered by file path

    Raises:
        EmptyArtifactsError: If no deployable artifacts are found
    """
    artifact_dir = Path(artifact_dir)
    if not artifact_dir.exists():
        raise EmptyArtifactsError(f"Artifact directory not found: {artifact_dir}")

    found: List[ContractArtifact] = []
    for file_path in sorted(artifact_dir.rglob("*.json")):
        # Hardhat debug files point at build-info, not contracts
        if file_path.name.endswith(".dbg.json"):
            continue

        try:
            found.extend(parse_artifact_file(file_path))
        except (json.JSONDecodeError, KeyError, TypeError):
            # Not a compiler artifact
            continue

    return index_artifacts(found, artifact_dir)

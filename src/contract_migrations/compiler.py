"""Solidity compilation for contract-migrations library, via py-solc-x."""

import logging
from pathlib import Path
from typing import Dict, List, Union

import requests
import solcx
from solcx.exceptions import DownloadError, SolcError, SolcInstallationError

from .artifacts import index_artifacts, parse_solc_combined
from .exceptions import CompilationError, EmptyArtifactsError
from .types import ContractArtifact

logger = logging.getLogger(__name__)

DEFAULT_SOLC_VERSION = "0.8.24"
DEFAULT_EVM_VERSION = "paris"

# Same fields as solc --combined-json, so the output parses like a combined file
OUTPUT_VALUES = ["abi", "bin", "bin-runtime"]


def ensure_solc(version: str = DEFAULT_SOLC_VERSION) -> None:
    """
    Install a solc release unless it is already available.

    Args:
        version: solc release, e.g. "0.8.24"

    Raises:
        CompilationError: If the release cannot be downloaded
    """
    if version in {str(v) for v in solcx.get_installed_solc_versions()}:
        return

    logger.info("Installing solc %s", version)
    try:
        solcx.install_solc(version)
    except (SolcInstallationError, DownloadError, requests.RequestException) as e:
        raise CompilationError(f"Could not install solc {version}: {e}") from e


def compile_sources(
    source_dir: Union[Path, str],
    solc_version: str = DEFAULT_SOLC_VERSION,
    evm_version: str = DEFAULT_EVM_VERSION,
    optimize: bool = True,
) -> tuple[Dict[str, ContractArtifact], List[ContractArtifact]]:
    """
    Compile every .sol file under a directory.

    The counterpart of load_artifacts() for projects that ship sources
    instead of compiler output. Each file must be self-contained or import
    only files under source_dir.

    Args:
        source_dir: Root of the Solidity sources
        solc_version: solc release to compile with (installed if missing)
        evm_version: Target EVM version
        optimize: Enable the optimizer

    Returns:
        Tuple of (name_to_artifact, ordered_artifacts), ordered by source
        path then contract name

    Raises:
        EmptyArtifactsError: If there are no sources or no deployable contracts
        CompilationError: If solc is unavailable or reports errors
    """
    source_dir = Path(source_dir)
    sources = sorted(source_dir.rglob("*.sol"))
    if not sources:
        raise EmptyArtifactsError(f"No Solidity sources found in {source_dir}")

    ensure_solc(solc_version)
    try:
        output = solcx.compile_files(
            [str(path) for path in sources],
            output_values=OUTPUT_VALUES,
            solc_version=solc_version,
            evm_version=evm_version,
            optimize=optimize,
        )
    except SolcError as e:
        raise CompilationError(f"Compiling {source_dir} failed: {e}") from e

    logger.info("Compiled %d contracts from %d sources in %s", len(output), len(sources), source_dir)
    return index_artifacts(parse_solc_combined({"contracts": output}), source_dir)

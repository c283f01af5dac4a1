"""Path management utilities for contract-migrations library."""

from pathlib import Path
from typing import Optional, Union


def get_default_data_dir() -> Path:
    """
    Get default data directory (current working directory).

    Returns:
        Path to ./data
    """
    return Path.cwd() / "data"


def get_record_path(
    chain: str,
    data_dir: Optional[Union[Path, str]] = None,
    label: str = "",
) -> Path:
    """
    Get the deployment record file path for a chain.

    Args:
        chain: Chain name (e.g., "wemix-testnet")
        data_dir: Custom data directory (defaults to ./data)
        label: Snapshot label; labelled runs keep a separate record

    Returns:
        Path to {data_dir}/{chain}/deployments[-{label}].json
    """
    if data_dir is None:
        data_dir = get_default_data_dir()
    else:
        data_dir = Path(data_dir).absolute()

    filename = f"deployments-{label}.json" if label else "deployments.json"
    return data_dir / chain / filename

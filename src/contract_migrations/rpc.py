"""JSON-RPC preflight checks for contract-migrations library."""

from typing import Any, List, Optional

import requests

from .exceptions import ChainMismatchError, RPCError


def rpc_request(rpc_url: str, method: str, params: Optional[List[Any]] = None, timeout: int = 30) -> Any:
    """
    Send a single JSON-RPC request.

    Args:
        rpc_url: RPC endpoint URL
        method: JSON-RPC method name
        params: Method parameters
        timeout: Request timeout in seconds

    Returns:
        The "result" member of the response

    Raises:
        RPCError: On network errors, non-200 responses, RPC errors or
            responses without a result
    """
    try:
        response = requests.post(
            rpc_url,
            json={
                "jsonrpc": "2.0",
                "method": method,
                "params": params or [],
                "id": 1,
            },
            timeout=timeout,
        )
    except requests.RequestException as e:
        raise RPCError(f"Network error during RPC call to {rpc_url}: {e}") from e

    # Check for HTTP errors
    if response.status_code != 200:
        raise RPCError(f"RPC request failed with status {response.status_code}")

    try:
        result = response.json()
    except ValueError as e:
        raise RPCError(f"RPC endpoint returned invalid JSON: {e}") from e

    # Check for RPC errors
    if "error" in result:
        raise RPCError(f"RPC error: {result['error']}")
    if "result" not in result:
        raise RPCError(f"RPC response has no result: {result}")

    return result["result"]


def get_chain_id(rpc_url: str) -> int:
    """
    Get the chain id reported by an RPC endpoint.

    Raises:
        RPCError: If the request fails or the result is not a hex quantity
    """
    chain_id_hex = rpc_request(rpc_url, "eth_chainId")
    try:
        return int(chain_id_hex, 16)
    except (TypeError, ValueError) as e:
        raise RPCError(f"Invalid chain id from RPC: {chain_id_hex!r}") from e


def check_chain_id(rpc_url: str, expected_chain_id: int) -> int:
    """
    Make sure an endpoint serves the chain we intend to deploy to.

    Args:
        rpc_url: RPC endpoint URL
        expected_chain_id: Chain id from the chain configuration

    Returns:
        The reported chain id

    Raises:
        ChainMismatchError: If the endpoint reports a different chain
        RPCError: If the request fails
    """
    chain_id = get_chain_id(rpc_url)
    if chain_id != expected_chain_id:
        raise ChainMismatchError(
            f"RPC endpoint {rpc_url} serves chain {chain_id}, expected {expected_chain_id}"
        )
    return chain_id

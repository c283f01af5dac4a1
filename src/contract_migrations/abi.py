"""ABI encoding helpers for contract-migrations library."""

from typing import Any, Dict, List, Optional, Sequence

from eth_abi import decode, encode
from eth_abi.exceptions import DecodingError, EncodingError
from eth_utils import keccak, to_checksum_address

from .exceptions import AbiEncodingError

AbiEntry = Dict[str, Any]


def canonical_type(param: Dict[str, Any]) -> str:
    """
    Get the canonical type string of an ABI parameter.

    Tuples are expanded from their components, keeping array suffixes:
    {"type": "tuple[]", "components": [uint256, address]} -> "(uint256,address)[]"
    """
    typ = param["type"]
    if not typ.startswith("tuple"):
        return typ
    inner = ",".join(canonical_type(c) for c in param.get("components", []))
    return f"({inner}){typ[len('tuple'):]}"


def input_types(entry: AbiEntry) -> List[str]:
    return [canonical_type(p) for p in entry.get("inputs", [])]


def output_types(entry: AbiEntry) -> List[str]:
    return [canonical_type(p) for p in entry.get("outputs", [])]


def function_signature(entry: AbiEntry) -> str:
    """Get the signature used for selector hashing, e.g. "initialize(address,address)"."""
    return f"{entry['name']}({','.join(input_types(entry))})"


def function_selector(entry: AbiEntry) -> bytes:
    """Get the 4-byte selector of a function ABI entry."""
    return keccak(text=function_signature(entry))[:4]


def find_function(abi: Sequence[AbiEntry], name: str, arg_count: Optional[int] = None) -> AbiEntry:
    """
    Find a function in an ABI by name.

    Overloads are disambiguated by argument count.

    Args:
        abi: Contract ABI
        name: Function name
        arg_count: Number of arguments the caller passes

    Returns:
        The matching ABI entry

    Raises:
        AbiEncodingError: If no function or more than one overload matches
    """
    candidates = [e for e in abi if e.get("type") == "function" and e.get("name") == name]
    if arg_count is not None and len(candidates) > 1:
        candidates = [e for e in candidates if len(e.get("inputs", [])) == arg_count]

    if not candidates:
        raise AbiEncodingError(f"Function '{name}' not found in ABI")
    if len(candidates) > 1:
        raise AbiEncodingError(f"Function '{name}' is ambiguous: {len(candidates)} overloads")
    return candidates[0]


def find_function_by_selector(abi: Sequence[AbiEntry], selector: bytes) -> Optional[AbiEntry]:
    """Find the function whose selector matches, or None."""
    for entry in abi:
        if entry.get("type") == "function" and function_selector(entry) == selector:
            return entry
    return None


def _encode_args(types: List[str], args: Sequence[Any], what: str) -> bytes:
    if len(types) != len(args):
        raise AbiEncodingError(f"{what} expects {len(types)} arguments, got {len(args)}")
    try:
        return encode(types, list(args))
    except (EncodingError, TypeError, ValueError, OverflowError) as e:
        raise AbiEncodingError(f"Cannot encode arguments for {what}: {e}") from e


def encode_function_call(abi: Sequence[AbiEntry], name: str, *args: Any) -> bytes:
    """
    ABI-encode a function call: selector followed by encoded arguments.

    Args:
        abi: Contract ABI
        name: Function name (e.g., "initialize")
        *args: Function arguments

    Returns:
        Calldata bytes

    Raises:
        AbiEncodingError: If the function is unknown or arguments don't fit
    """
    entry = find_function(abi, name, len(args))
    return function_selector(entry) + _encode_args(input_types(entry), args, function_signature(entry))


def encode_constructor_args(abi: Sequence[AbiEntry], *args: Any) -> bytes:
    """
    ABI-encode constructor arguments (appended to creation bytecode).

    Raises:
        AbiEncodingError: If arguments don't fit the constructor
    """
    constructor = next((e for e in abi if e.get("type") == "constructor"), {"inputs": []})
    return _encode_args(input_types(constructor), args, "constructor")


def _normalize(typ: str, value: Any) -> Any:
    # eth_abi returns lowercase addresses
    if typ.endswith("]"):
        inner = typ[: typ.rindex("[")]
        return [_normalize(inner, v) for v in value]
    if typ == "address":
        return to_checksum_address(value)
    return value


def decode_values(types: List[str], data: bytes) -> List[Any]:
    """
    Decode ABI-encoded values, checksumming addresses.

    Raises:
        AbiEncodingError: If data does not match types
    """
    try:
        values = decode(types, data)
    except (DecodingError, TypeError, ValueError) as e:
        raise AbiEncodingError(f"Cannot decode {types}: {e}") from e
    return [_normalize(t, v) for t, v in zip(types, values)]


def decode_function_call(abi: Sequence[AbiEntry], data: bytes) -> tuple[AbiEntry, List[Any]]:
    """
    Decode calldata into the matching ABI entry and its arguments.

    Raises:
        AbiEncodingError: If no function matches the selector
    """
    entry = find_function_by_selector(abi, bytes(data[:4]))
    if entry is None:
        raise AbiEncodingError(f"No function with selector 0x{bytes(data[:4]).hex()}")
    return entry, decode_values(input_types(entry), bytes(data[4:]))


def encode_function_result(entry: AbiEntry, values: Sequence[Any]) -> bytes:
    return _encode_args(output_types(entry), values, f"{entry['name']} result")


def decode_function_result(entry: AbiEntry, data: bytes) -> List[Any]:
    return decode_values(output_types(entry), data)

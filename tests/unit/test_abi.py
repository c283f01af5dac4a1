"""Unit tests for ABI encoding helpers."""

import pytest
from eth_abi import encode
from eth_utils import keccak, to_checksum_address

from contract_migrations.abi import (
    canonical_type,
    decode_function_call,
    decode_function_result,
    encode_constructor_args,
    encode_function_call,
    find_function,
    function_selector,
    function_signature,
)
from contract_migrations.exceptions import AbiEncodingError

SUPER_ADMIN = to_checksum_address("0x" + "ab" * 20)
BLACKLIST = to_checksum_address("0x" + "cd" * 20)

INITIALIZE = {
    "type": "function",
    "name": "initialize",
    "inputs": [{"name": "superAdmin", "type": "address"}, {"name": "blacklist", "type": "address"}],
    "outputs": [],
}
GRANT = {
    "type": "function",
    "name": "grantAdminRoles",
    "inputs": [{"name": "accounts", "type": "address[]"}],
    "outputs": [],
}
SAFE_TRANSFER_3 = {
    "type": "function",
    "name": "safeTransferFrom",
    "inputs": [{"type": "address"}, {"type": "address"}, {"type": "uint256"}],
    "outputs": [],
}
SAFE_TRANSFER_4 = {
    "type": "function",
    "name": "safeTransferFrom",
    "inputs": [{"type": "address"}, {"type": "address"}, {"type": "uint256"}, {"type": "bytes"}],
    "outputs": [],
}
OWNER_OF = {
    "type": "function",
    "name": "ownerOf",
    "inputs": [{"type": "uint256"}],
    "outputs": [{"type": "address"}],
}
CONSTRUCTOR = {
    "type": "constructor",
    "inputs": [{"type": "address"}, {"type": "address"}, {"type": "bytes"}],
}

ABI = [CONSTRUCTOR, INITIALIZE, GRANT, SAFE_TRANSFER_3, SAFE_TRANSFER_4, OWNER_OF]


class TestSignatures:
    """Test signatures and selectors."""

    def test_signature(self):
        """Test the canonical signature string."""
        assert function_signature(INITIALIZE) == "initialize(address,address)"

    def test_selector_is_keccak_prefix(self):
        """Test that the selector is the first four bytes of keccak(signature)."""
        assert function_selector(GRANT) == keccak(text="grantAdminRoles(address[])")[:4]

    def test_tuple_types_expand(self):
        """Test canonical types of tuple parameters."""
        param = {"type": "tuple[]", "components": [{"type": "uint256"}, {"type": "address"}]}
        assert canonical_type(param) == "(uint256,address)[]"


class TestFindFunction:
    """Test the find_function function."""

    def test_finds_by_name(self):
        """Test a unique function name."""
        assert find_function(ABI, "initialize") is INITIALIZE

    def test_overloads_resolved_by_arg_count(self):
        """Test that overloads are disambiguated by argument count."""
        assert find_function(ABI, "safeTransferFrom", 3) is SAFE_TRANSFER_3
        assert find_function(ABI, "safeTransferFrom", 4) is SAFE_TRANSFER_4

    def test_ambiguous_overload_raises(self):
        """Test that an overload without argument count is ambiguous."""
        with pytest.raises(AbiEncodingError, match="ambiguous"):
            find_function(ABI, "safeTransferFrom")

    def test_unknown_function_raises(self):
        """Test that unknown names raise AbiEncodingError."""
        with pytest.raises(AbiEncodingError, match="not found"):
            find_function(ABI, "upgradeTo")


class TestEncoding:
    """Test call and constructor encoding."""

    def test_encode_initializer(self):
        """Test that calldata is selector plus encoded arguments."""
        data = encode_function_call(ABI, "initialize", SUPER_ADMIN, BLACKLIST)

        assert data[:4] == keccak(text="initialize(address,address)")[:4]
        assert data[4:] == encode(["address", "address"], [SUPER_ADMIN, BLACKLIST])

    def test_encode_address_array(self):
        """Test encoding a dynamic array argument."""
        data = encode_function_call(ABI, "grantAdminRoles", [SUPER_ADMIN, BLACKLIST])
        assert data[4:] == encode(["address[]"], [[SUPER_ADMIN, BLACKLIST]])

    def test_wrong_argument_count_raises(self):
        """Test that a missing argument raises AbiEncodingError."""
        with pytest.raises(AbiEncodingError, match="expects 2 arguments"):
            encode_function_call(ABI, "initialize", SUPER_ADMIN)

    def test_wrong_argument_type_raises(self):
        """Test that a value of the wrong type raises AbiEncodingError."""
        with pytest.raises(AbiEncodingError):
            encode_function_call(ABI, "initialize", "not an address", BLACKLIST)

    def test_encode_constructor_args(self):
        """Test constructor argument encoding."""
        data = encode_constructor_args(ABI, SUPER_ADMIN, BLACKLIST, b"\x01\x02")
        assert data == encode(["address", "address", "bytes"], [SUPER_ADMIN, BLACKLIST, b"\x01\x02"])

    def test_encode_without_constructor(self):
        """Test that an ABI without constructor takes no arguments."""
        assert encode_constructor_args([INITIALIZE]) == b""
        with pytest.raises(AbiEncodingError):
            encode_constructor_args([INITIALIZE], 1)


class TestDecoding:
    """Test calldata and result decoding."""

    def test_decode_call_checksums_addresses(self):
        """Test that decoded addresses are checksummed."""
        data = encode_function_call(ABI, "grantAdminRoles", [SUPER_ADMIN.lower()])

        entry, args = decode_function_call(ABI, data)

        assert entry is GRANT
        assert args == [[SUPER_ADMIN]]

    def test_decode_unknown_selector_raises(self):
        """Test that unknown selectors raise AbiEncodingError."""
        with pytest.raises(AbiEncodingError, match="No function"):
            decode_function_call(ABI, b"\xde\xad\xbe\xef")

    def test_decode_result(self):
        """Test decoding return values."""
        assert decode_function_result(OWNER_OF, encode(["address"], [SUPER_ADMIN])) == [SUPER_ADMIN]

    def test_decode_truncated_result_raises(self):
        """Test that malformed return data raises AbiEncodingError."""
        with pytest.raises(AbiEncodingError):
            decode_function_result(OWNER_OF, b"\x00\x01")

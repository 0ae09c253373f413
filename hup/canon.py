"""
Fixed-width encoding helpers for deterministic hashing.

Everything that goes into a keccak preimage passes through here so width and
range problems surface as EncodingError before any hash is computed.
"""
from typing import Any, Sequence, Union

from eth_abi import encode as _abi_encode
from eth_abi.exceptions import EncodingError as _AbiEncodingError
from eth_abi.packed import encode_packed as _abi_encode_packed
from eth_utils import is_hex_address, keccak, to_canonical_address, to_checksum_address
from hexbytes import HexBytes

from hup.errors import EncodingError

BytesLike = Union[bytes, bytearray, str]

UINT8_MAX = 2**8 - 1
UINT32_MAX = 2**32 - 1
UINT128_MAX = 2**128 - 1
UINT256_MAX = 2**256 - 1

_UINT_MAX = {8: UINT8_MAX, 32: UINT32_MAX, 128: UINT128_MAX, 256: UINT256_MAX}


def keccak256(data: bytes) -> bytes:
    return keccak(data)


def to_raw(value: BytesLike, field: str = "value") -> bytes:
    """Hex string (with or without 0x) or bytes -> raw bytes."""
    if isinstance(value, (bytes, bytearray)):
        return bytes(value)
    if isinstance(value, str):
        try:
            return bytes(HexBytes(value))
        except ValueError as e:
            raise EncodingError(f"{field} is not valid hex", {"field": field}) from e
    raise EncodingError(f"{field} must be bytes or hex string", {"field": field, "type": type(value).__name__})


def to_bytes32(value: BytesLike, field: str = "value") -> bytes:
    raw = to_raw(value, field)
    if len(raw) != 32:
        raise EncodingError(f"{field} must be 32 bytes, got {len(raw)}", {"field": field, "length": len(raw)})
    return raw


def to_address_bytes(value: BytesLike, field: str = "address") -> bytes:
    """Address as its 20 canonical bytes."""
    if isinstance(value, str):
        if not is_hex_address(value):
            raise EncodingError(f"{field} is not a 20-byte hex address", {"field": field, "value": value})
        return to_canonical_address(value)
    raw = to_raw(value, field)
    if len(raw) != 20:
        raise EncodingError(f"{field} must be 20 bytes, got {len(raw)}", {"field": field, "length": len(raw)})
    return raw


def canon_addr(addr: BytesLike, field: str = "address") -> str:
    """Checksummed 0x address for display and equality checks."""
    return to_checksum_address(to_address_bytes(addr, field))


def check_uint(value: Any, bits: int, field: str = "value") -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise EncodingError(f"{field} must be an integer", {"field": field, "type": type(value).__name__})
    if value < 0 or value > _UINT_MAX[bits]:
        raise EncodingError(f"{field} out of range for uint{bits}", {"field": field, "value": value})
    return int(value)


def abi_encode(types: Sequence[str], values: Sequence[Any]) -> bytes:
    """Standard 32-byte slot encoding (abi.encode)."""
    try:
        return _abi_encode(list(types), list(values))
    except _AbiEncodingError as e:
        raise EncodingError(f"abi encoding failed: {e}", {"types": list(types)}) from e


def packed_encode(types: Sequence[str], values: Sequence[Any]) -> bytes:
    """Tight, non-padded encoding (abi.encodePacked)."""
    try:
        return _abi_encode_packed(list(types), list(values))
    except _AbiEncodingError as e:
        raise EncodingError(f"packed encoding failed: {e}", {"types": list(types)}) from e


def hex32(value: bytes) -> str:
    return "0x" + bytes(value).hex()

"""
Deterministic canonical encoding primitives.

Two families live here:
- fixed-width big-endian integer packing, used for every signed message and
  for the binary wire format;
- canonical JSON + tagged sha256 digests, used for state snapshots.
"""

from __future__ import annotations

import hashlib
import json
from typing import Any

from Crypto.Hash import keccak


UINT16_MAX = (1 << 16) - 1
UINT32_MAX = (1 << 32) - 1
UINT64_MAX = (1 << 64) - 1
UINT128_MAX = (1 << 128) - 1
UINT256_MAX = (1 << 256) - 1

ADDRESS_BYTES = 20

_DIGEST_PREFIX = b"receiptnet:"


def require_uint(value: Any, *, bits: int, name: str) -> int:
    if not isinstance(value, int) or isinstance(value, bool):
        raise TypeError(f"{name} must be an int")
    if value < 0 or value >> bits:
        raise ValueError(f"{name} must fit in u{bits}: {value}")
    return int(value)


def encode_uint(value: int, *, nbytes: int, name: str = "value") -> bytes:
    """Big-endian fixed-width unsigned encoding (abi.encodePacked style)."""
    return require_uint(value, bits=8 * nbytes, name=name).to_bytes(nbytes, "big")


def decode_uint(data: bytes, offset: int, nbytes: int) -> int:
    end = offset + nbytes
    if offset < 0 or end > len(data):
        raise ValueError(f"read of {nbytes} bytes at offset {offset} exceeds buffer length {len(data)}")
    return int.from_bytes(data[offset:end], "big")


def keccak256(data: bytes) -> bytes:
    return keccak.new(digest_bits=256, data=bytes(data)).digest()


# -- hex ------------------------------------------------------------------


def fixed_hex_to_bytes(value: str, *, nbytes: int, name: str) -> bytes:
    """Parse exactly `nbytes` of hex, with or without a 0x prefix."""
    if not isinstance(value, str):
        raise TypeError(f"{name} must be a str")
    digits = value.strip()
    if digits[:2] in ("0x", "0X"):
        digits = digits[2:]
    if len(digits) != 2 * nbytes or not all(c in "0123456789abcdefABCDEF" for c in digits):
        raise ValueError(f"{name} must be {nbytes} bytes of hex")
    return bytes.fromhex(digits)


def canonical_address(address: str) -> str:
    """Lowercase 0x-prefixed 20-byte address."""
    return "0x" + fixed_hex_to_bytes(address, nbytes=ADDRESS_BYTES, name="address").hex()


def address_to_bytes(address: str) -> bytes:
    return fixed_hex_to_bytes(address, nbytes=ADDRESS_BYTES, name="address")


def address_from_bytes(data: bytes) -> str:
    if len(data) != ADDRESS_BYTES:
        raise ValueError(f"address must be {ADDRESS_BYTES} bytes")
    return "0x" + bytes(data).hex()


# -- canonical JSON ---------------------------------------------------------


def _check_json_value(value: Any, path: str) -> None:
    if value is None or isinstance(value, (bool, int, str)):
        return
    if isinstance(value, (list, tuple)):
        for i, item in enumerate(value):
            _check_json_value(item, f"{path}[{i}]")
        return
    if isinstance(value, dict):
        for key, item in value.items():
            if not isinstance(key, str):
                raise TypeError(f"{path}: object keys must be str, got {type(key).__name__}")
            _check_json_value(item, f"{path}.{key}")
        return
    # Floats included: their text form is not canonical.
    raise TypeError(f"{path}: {type(value).__name__} is not allowed in canonical JSON")


def canonical_json_bytes(value: Any) -> bytes:
    """UTF-8 JSON with sorted keys and no whitespace; ints, str, bool, null, lists and objects only."""
    _check_json_value(value, "$")
    return json.dumps(value, sort_keys=True, separators=(",", ":"), ensure_ascii=False).encode("utf-8")


def tagged_sha256(tag: str, payload: bytes) -> bytes:
    """sha256 over `receiptnet:<tag>\\x00 || payload`."""
    if not tag or "\x00" in tag or not tag.isascii():
        raise ValueError("tag must be non-empty ASCII without NUL")
    return hashlib.sha256(_DIGEST_PREFIX + tag.encode("ascii") + b"\x00" + bytes(payload)).digest()

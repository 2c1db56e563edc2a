"""Keccak digests of normalized strings and their 128-bit limb split."""

from __future__ import annotations

from typing import Iterable

from eth_utils import keccak

from .config import DIGEST_BYTES, LIMB_BITS, MASK_128, ZERO_DIGEST
from .exceptions import ValidationError
from .types import Limb128Pair


def digest(value: str) -> bytes:
    """Keccak-256 of the UTF-8 encoding of an already normalized string."""
    return keccak(value.encode("utf-8"))


def digest_or_zero(value: str) -> bytes:
    """Like :func:`digest`, but the empty string maps to the all-zero sentinel."""
    if len(value) == 0:
        return ZERO_DIGEST
    return digest(value)


def split_limbs(value: bytes | bytearray | int) -> Limb128Pair:
    """
    Split a 32-byte digest (or an int below 2**256) into big-endian limbs.

    The bytes are read as one big-endian integer, which is how the circuits
    interpret their byte-array inputs.
    """
    as_int = _to_uint256(value)
    return Limb128Pair(hi=as_int >> LIMB_BITS, lo=as_int & MASK_128)


def limbs_to_value(limbs: Limb128Pair) -> int:
    if limbs.hi < 0 or limbs.hi > MASK_128 or limbs.lo < 0 or limbs.lo > MASK_128:
        raise ValidationError("limbs", "each limb must fit in 128 bits")
    return (limbs.hi << LIMB_BITS) | limbs.lo


def limbs_to_bytes(limbs: Limb128Pair) -> bytes:
    return limbs_to_value(limbs).to_bytes(DIGEST_BYTES, byteorder="big")


def to_hex32(value: bytes | int) -> str:
    return "0x" + _to_uint256(value).to_bytes(DIGEST_BYTES, byteorder="big").hex()


def bytes32_from_array(values: Iterable, field: str) -> bytes:
    """Validate a JSON byte array (32 integers in [0, 255]) and return bytes."""
    if isinstance(values, (str, bytes, bytearray)) or not hasattr(values, "__iter__"):
        raise ValidationError(field, "must be an array of length 32")
    items = list(values)
    if len(items) != DIGEST_BYTES:
        raise ValidationError(field, f"must contain exactly {DIGEST_BYTES} elements")

    out = bytearray()
    for idx, item in enumerate(items):
        numeric = _byte_value(item)
        if numeric is None:
            raise ValidationError(
                f"{field}[{idx}]", f"must be an integer in [0, 255], received {item!r}"
            )
        out.append(numeric)
    return bytes(out)


def bytes32_to_array(value: bytes) -> list[int]:
    if len(value) != DIGEST_BYTES:
        raise ValidationError("digest", f"must be exactly {DIGEST_BYTES} bytes")
    return list(value)


def _byte_value(item) -> int | None:
    if isinstance(item, bool):
        return None
    if isinstance(item, str):
        try:
            item = int(item.strip(), 10)
        except ValueError:
            return None
    if not isinstance(item, int) or item < 0 or item > 255:
        return None
    return item


def _to_uint256(value: bytes | bytearray | int) -> int:
    if isinstance(value, (bytes, bytearray)):
        if len(value) != DIGEST_BYTES:
            raise ValidationError("digest", f"must be exactly {DIGEST_BYTES} bytes")
        return int.from_bytes(value, byteorder="big")
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError("digest", "must be bytes or int")
    if value < 0 or value.bit_length() > DIGEST_BYTES * 8:
        raise ValidationError("digest", "must fit in 256 bits")
    return value

"""Tests for keccak digests and limb splitting."""

import pytest

from lineage_zk.identity.config import MASK_128, ZERO_DIGEST
from lineage_zk.identity.digest import (
    bytes32_from_array,
    bytes32_to_array,
    digest,
    digest_or_zero,
    limbs_to_bytes,
    limbs_to_value,
    split_limbs,
    to_hex32,
)
from lineage_zk.identity.exceptions import ValidationError
from lineage_zk.identity.types import Limb128Pair

KECCAK_EMPTY = "0xc5d2460186f7233c927e7db2dcc703c0e500b653ca82273b7bfad8045d85a470"
KECCAK_ABC = "0x4e03657aea45a94fc7d47ba826c8d667c0d1e6e33a64a036ec44f58fa12d6c45"


def test_digest_is_keccak256() -> None:
    assert to_hex32(digest("")) == KECCAK_EMPTY
    assert to_hex32(digest("abc")) == KECCAK_ABC


def test_digest_or_zero_uses_sentinel_for_empty() -> None:
    assert digest_or_zero("") == ZERO_DIGEST
    assert digest_or_zero("abc") == digest("abc")


def test_sentinel_is_stable() -> None:
    assert ZERO_DIGEST == bytes(32)
    limbs = split_limbs(ZERO_DIGEST)
    assert (limbs.hi, limbs.lo) == (0, 0)


def test_split_limbs_is_big_endian() -> None:
    value = bytes(range(32))
    limbs = split_limbs(value)
    assert limbs.hi == int.from_bytes(value[:16], "big")
    assert limbs.lo == int.from_bytes(value[16:], "big")


@pytest.mark.parametrize(
    "value",
    [
        bytes(32),
        b"\xff" * 32,
        bytes(range(32)),
        bytes.fromhex(KECCAK_ABC[2:]),
    ],
)
def test_limb_round_trip(value) -> None:
    limbs = split_limbs(value)
    assert 0 <= limbs.hi <= MASK_128
    assert 0 <= limbs.lo <= MASK_128
    assert limbs_to_bytes(limbs) == value
    assert limbs_to_value(limbs) == int.from_bytes(value, "big")


def test_split_limbs_rejects_wrong_length() -> None:
    with pytest.raises(ValidationError):
        split_limbs(b"\x01" * 31)


def test_limbs_must_fit_128_bits() -> None:
    with pytest.raises(ValidationError):
        limbs_to_value(Limb128Pair(hi=1 << 128, lo=0))


class TestBytes32Array:
    """Witness byte arrays."""

    def test_round_trip(self):
        value = digest("Alice Smith")
        assert bytes32_from_array(bytes32_to_array(value), "fullNameHash") == value

    def test_accepts_decimal_strings(self):
        assert bytes32_from_array(["7"] * 32, "saltHash") == bytes([7] * 32)

    def test_rejects_wrong_length(self):
        with pytest.raises(ValidationError, match="exactly 32"):
            bytes32_from_array([0] * 31, "fullNameHash")

    @pytest.mark.parametrize("bad", [256, -1, "x", 1.5, True])
    def test_rejects_bad_element(self, bad):
        values = [0] * 32
        values[5] = bad
        with pytest.raises(ValidationError) as excinfo:
            bytes32_from_array(values, "fullNameHash")
        assert excinfo.value.field == "fullNameHash[5]"

    def test_rejects_string(self):
        with pytest.raises(ValidationError):
            bytes32_from_array("00" * 32, "fullNameHash")

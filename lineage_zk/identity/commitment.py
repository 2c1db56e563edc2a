"""
Two-stage Poseidon commitment to an identity record.

Stage 1, salted-name commitment:
    S = Poseidon5([nameHi, nameLo, saltHi, saltLo, 0])
    name = keccak256(NFC(trim(full_name))), salt = keccak256(NFKD(passphrase))
    or the all-zero digest when there is no passphrase.

Stage 2, person commitment:
    P = Poseidon3([S_hi, S_lo, packed_birth_data])
    packed = (year << 24) | (month << 16) | (day << 8) | (gender << 1) | bc

Limbs are big-endian 128-bit halves. The ledger keys a person by
keccak256(P as 32 big-endian bytes).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional

from eth_utils import keccak

from .config import (
    BIRTH_DAY_MAX,
    BIRTH_DAY_SHIFT,
    BIRTH_MONTH_MAX,
    BIRTH_MONTH_SHIFT,
    BIRTH_YEAR_MAX,
    BIRTH_YEAR_SHIFT,
    DIGEST_BYTES,
    FIELD_MODULUS,
    GENDER_MAX,
    GENDER_SHIFT,
    SALTED_NAME_PADDING,
)
from .digest import digest, digest_or_zero, limbs_to_value, split_limbs, to_hex32
from .exceptions import ValidationError
from .normalize import normalize_passphrase, require_name
from .types import BirthData, IdentityRecord, Limb128Pair


# ============================================================================
# BIRTH DATA PACKING
# ============================================================================


def _check_range(field: str, value, maximum: int) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(field, f"must be an integer, got {value!r}")
    if value < 0 or value > maximum:
        raise ValidationError(field, f"must be between 0 and {maximum}, got {value}")
    return value


def _check_flag(field: str, value) -> int:
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int) and value in (0, 1):
        return value
    raise ValidationError(field, f"must be 0/1 or a bool, got {value!r}")


def pack_birth_data(
    birth_year,
    birth_month: int = 0,
    birth_day: int = 0,
    gender: int = 0,
    is_birth_bc=False,
    *,
    prefix: str = "",
) -> int:
    """
    Range-check and pack birth metadata into one integer.

    ``birth_year`` may also be an IdentityRecord, whose birth fields are
    packed and the remaining arguments ignored.

    Args:
        prefix: Prepended to field names in error messages (e.g. "father_")

    Raises:
        ValidationError: Naming the first out-of-range field
    """
    if isinstance(birth_year, IdentityRecord):
        return pack_record(birth_year, prefix=prefix)
    year = _check_range(f"{prefix}birthYear", birth_year, BIRTH_YEAR_MAX)
    month = _check_range(f"{prefix}birthMonth", birth_month, BIRTH_MONTH_MAX)
    day = _check_range(f"{prefix}birthDay", birth_day, BIRTH_DAY_MAX)
    sex = _check_range(f"{prefix}gender", gender, GENDER_MAX)
    bc = _check_flag(f"{prefix}isBirthBC", is_birth_bc)
    return (
        (year << BIRTH_YEAR_SHIFT)
        | (month << BIRTH_MONTH_SHIFT)
        | (day << BIRTH_DAY_SHIFT)
        | (sex << GENDER_SHIFT)
        | bc
    )


def pack_record(record: IdentityRecord, *, prefix: str = "") -> int:
    return pack_birth_data(
        record.birth_year,
        record.birth_month,
        record.birth_day,
        record.gender,
        record.is_birth_bc,
        prefix=prefix,
    )


def unpack_birth_data(packed: int) -> BirthData:
    """Inverse of :func:`pack_birth_data` for values it can produce."""
    if packed < 0 or packed >> BIRTH_YEAR_SHIFT > BIRTH_YEAR_MAX:
        raise ValidationError("packedBirthData", "outside the packed range")
    return BirthData(
        birth_year=packed >> BIRTH_YEAR_SHIFT,
        birth_month=(packed >> BIRTH_MONTH_SHIFT) & 0xFF,
        birth_day=(packed >> BIRTH_DAY_SHIFT) & 0xFF,
        gender=(packed >> GENDER_SHIFT) & 0x7F,
        is_birth_bc=bool(packed & 1),
    )


# ============================================================================
# COMMITMENTS
# ============================================================================


@dataclass(frozen=True)
class PersonCommitment:
    """
    Every intermediate of the commitment chain for one record.

    Attributes:
        name_hash: keccak256 of the normalized name
        salt_hash: keccak256 of the normalized passphrase, or all-zero
        name_limbs / salt_limbs: Big-endian limb splits of the two digests
        salted_commitment: Stage 1 Poseidon output
        packed_birth_data: Packed birth metadata
        commitment: Stage 2 Poseidon output
    """

    name_hash: bytes
    salt_hash: bytes
    name_limbs: Limb128Pair
    salt_limbs: Limb128Pair
    salted_commitment: int
    packed_birth_data: int
    commitment: int

    @property
    def salted_limbs(self) -> Limb128Pair:
        return split_limbs(self.salted_commitment)

    @property
    def limbs(self) -> Limb128Pair:
        return split_limbs(self.commitment)

    @property
    def person_hash(self) -> bytes:
        return person_hash(self.commitment)


class CommitmentEncoder:
    """
    Computes salted-name and person commitments.

    Args:
        hasher: A Poseidon instance exposing ``hash(inputs) -> int`` with the
            circuit's 3- and 5-input parameter sets. Defaults to the
            toolchain constants located by the artifact resolver.
    """

    def __init__(self, hasher=None):
        if hasher is None:
            from .poseidon import default_poseidon

            hasher = default_poseidon()
        self._hasher = hasher

    @property
    def hasher(self):
        return self._hasher

    def salted_name_commitment(self, name_limbs: Limb128Pair, salt_limbs: Limb128Pair) -> int:
        return self._hasher.hash(
            [name_limbs.hi, name_limbs.lo, salt_limbs.hi, salt_limbs.lo, SALTED_NAME_PADDING]
        )

    def person_commitment(self, salted_commitment: int, packed_birth_data: int) -> int:
        salted = split_limbs(salted_commitment)
        return self._hasher.hash([salted.hi, salted.lo, packed_birth_data])

    def commit_hashes(
        self,
        name_hash: bytes,
        salt_hash: bytes,
        packed_birth_data: int,
    ) -> PersonCommitment:
        """Run the chain from already-computed name and salt digests."""
        name_limbs = split_limbs(name_hash)
        salt_limbs = split_limbs(salt_hash)
        salted = self.salted_name_commitment(name_limbs, salt_limbs)
        return PersonCommitment(
            name_hash=bytes(name_hash),
            salt_hash=bytes(salt_hash),
            name_limbs=name_limbs,
            salt_limbs=salt_limbs,
            salted_commitment=salted,
            packed_birth_data=packed_birth_data,
            commitment=self.person_commitment(salted, packed_birth_data),
        )

    def commit(self, record: IdentityRecord, *, prefix: str = "") -> PersonCommitment:
        name = require_name(record.full_name, f"{prefix}fullName")
        passphrase = normalize_passphrase(record.passphrase)
        return self.commit_hashes(
            digest(name),
            digest_or_zero(passphrase),
            pack_record(record, prefix=prefix),
        )

    def salted_name(self, full_name: str, passphrase: str = "") -> PersonCommitment:
        """Stage 1 only; birth fields are zero in the returned chain."""
        return self.commit(IdentityRecord(full_name=full_name, passphrase=passphrase))

    def basic_info(self, record: IdentityRecord) -> Dict[str, Any]:
        """The plaintext fields submitted alongside a person proof."""
        chain = self.commit(record)
        return {
            "fullNameCommitment": to_hex32(chain.salted_commitment),
            "isBirthBC": bool(record.is_birth_bc),
            "birthYear": record.birth_year,
            "birthMonth": record.birth_month,
            "birthDay": record.birth_day,
            "gender": record.gender,
        }


# ============================================================================
# LEDGER IDENTIFIER
# ============================================================================


def person_hash(commitment: int) -> bytes:
    """keccak256 over the commitment's 32-byte big-endian encoding."""
    if commitment < 0 or commitment >= FIELD_MODULUS:
        raise ValidationError("commitment", "must be a field element")
    return keccak(commitment.to_bytes(DIGEST_BYTES, byteorder="big"))


def person_hash_from_limbs(hi: int, lo: int, expected: Optional[bytes] = None) -> bytes:
    """
    Rebuild the ledger identifier from ``publicSignals[0..1]``.

    If ``expected`` is given, a mismatch raises ValidationError.
    """
    value = person_hash(limbs_to_value(Limb128Pair(hi=hi, lo=lo)))
    if expected is not None and value != bytes(expected):
        raise ValidationError(
            "personHash",
            f"limbs rebuild {to_hex32(value)}, expected {to_hex32(bytes(expected))}",
        )
    return value

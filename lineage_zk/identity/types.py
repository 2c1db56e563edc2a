"""
Common types for the identity commitment pipeline.

This module provides:
1. IdentityRecord - one person snapshot (self, father or mother)
2. Present / Absent - tagged parent input
3. Limb128Pair - big-endian hi/lo split of a 256-bit value
4. BirthData - unpacked view of the packed birth metadata
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union

from .config import LIMB_BITS


# ============================================================================
# IDENTITY
# ============================================================================


@dataclass(frozen=True)
class IdentityRecord:
    """
    One person snapshot as entered by the user.

    Attributes:
        full_name: Full name, raw (normalized before hashing)
        passphrase: Optional salt passphrase, raw; "" means no passphrase
        is_birth_bc: True if the birth year is BC
        birth_year: 0-65535, 0 means unknown
        birth_month: 0-12, 0 means unknown
        birth_day: 0-31, 0 means unknown
        gender: 0=unknown, 1=male, 2=female, 3=other

    A changed field yields a different commitment; records are never mutated.

    Example:
        >>> alice = IdentityRecord(full_name="Alice Smith", birth_year=1990, gender=2)
    """

    full_name: str
    passphrase: str = ""
    is_birth_bc: bool = False
    birth_year: int = 0
    birth_month: int = 0
    birth_day: int = 0
    gender: int = 0


@dataclass(frozen=True)
class Present:
    """A parent whose identity is known."""

    record: IdentityRecord


@dataclass(frozen=True)
class Absent:
    """A parent that is not part of the submission."""


ABSENT = Absent()

ParentInput = Union[Present, Absent]


# ============================================================================
# LIMBS
# ============================================================================


@dataclass(frozen=True)
class Limb128Pair:
    """Big-endian split of a 256-bit value: ``(hi << 128) | lo``."""

    hi: int
    lo: int

    @property
    def value(self) -> int:
        return (self.hi << LIMB_BITS) | self.lo

    def as_list(self) -> list[int]:
        return [self.hi, self.lo]


@dataclass(frozen=True)
class BirthData:
    """Unpacked birth metadata."""

    birth_year: int
    birth_month: int
    birth_day: int
    gender: int
    is_birth_bc: bool

"""
Circuit input builders.

The dicts built here are written verbatim as the JSON the proving toolchain
consumes. Key names and insertion order are part of the compatibility surface
with the compiled circuits; do not rename them.
"""

from __future__ import annotations

import dataclasses
import json
from pathlib import Path
from typing import Any, Dict

from eth_utils import is_checksum_address, is_checksum_formatted_address, is_hex_address

from .config import (
    ADDRESS_LIMIT,
    DEFAULT_FATHER_GENDER,
    DEFAULT_MOTHER_GENDER,
    ZERO_DIGEST,
)
from .commitment import pack_record
from .digest import bytes32_to_array, digest, digest_or_zero
from .exceptions import ValidationError
from .normalize import normalize_name, normalize_passphrase, require_name
from .types import ABSENT, Absent, IdentityRecord, ParentInput, Present

_PARENT_DEFAULT_GENDER = {
    "father": DEFAULT_FATHER_GENDER,
    "mother": DEFAULT_MOTHER_GENDER,
}


# ============================================================================
# SUBMITTER
# ============================================================================


def normalize_submitter(value, field: str = "submitter") -> int:
    """
    Coerce a submitter/minter to an integer below 2**160.

    Accepts an int, a decimal string, or a 0x-prefixed 20-byte address
    (mixed-case addresses must carry a valid EIP-55 checksum).
    """
    if value is None:
        raise ValidationError(field, "is required")
    if isinstance(value, bool):
        raise ValidationError(field, "must be an int, decimal string or hex address")

    if isinstance(value, int):
        as_int = value
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            raise ValidationError(field, "is required")
        if text[:2] in ("0x", "0X"):
            if not is_hex_address(text):
                raise ValidationError(field, f"invalid address {text!r}")
            # all-lowercase and all-uppercase addresses carry no checksum
            if is_checksum_formatted_address(text) and not is_checksum_address(text):
                raise ValidationError(field, f"invalid address {text!r} (bad checksum)")
            as_int = int(text, 16)
        else:
            try:
                as_int = int(text, 10)
            except ValueError:
                raise ValidationError(field, f"invalid decimal value {text!r}") from None
    else:
        raise ValidationError(field, "must be an int, decimal string or hex address")

    if as_int < 0 or as_int >= ADDRESS_LIMIT:
        raise ValidationError(field, "must fit within 160 bits (address range)")
    return as_int


# ============================================================================
# PARENTS
# ============================================================================


def parent_from_fields(
    full_name=None,
    passphrase: str = "",
    is_birth_bc: bool = False,
    birth_year: int = 0,
    birth_month: int = 0,
    birth_day: int = 0,
    gender: int = 0,
) -> ParentInput:
    """ABSENT when the name is blank, otherwise a Present record."""
    if not normalize_name(full_name):
        return ABSENT
    return Present(
        IdentityRecord(
            full_name=full_name,
            passphrase=passphrase or "",
            is_birth_bc=is_birth_bc,
            birth_year=birth_year,
            birth_month=birth_month,
            birth_day=birth_day,
            gender=gender,
        )
    )


def effective_parent(parent: ParentInput, role: str) -> IdentityRecord | None:
    """
    The record actually proven for a parent, or None when absent.

    A present parent with unknown gender (0) is proven with the role default
    (father 1, mother 2).
    """
    if isinstance(parent, Absent):
        return None
    if not isinstance(parent, Present):
        raise ValidationError(role, "must be Present(record) or ABSENT")
    record = parent.record
    if record.gender == 0:
        record = dataclasses.replace(record, gender=_PARENT_DEFAULT_GENDER[role])
    return record


# ============================================================================
# WITNESS BUILDERS
# ============================================================================


def _identity_fields(record: IdentityRecord, prefix: str) -> Dict[str, Any]:
    name = require_name(record.full_name, f"{prefix}fullName")
    passphrase = normalize_passphrase(record.passphrase)
    # Range-checks every birth sub-field
    pack_record(record, prefix=prefix)
    return {
        f"{prefix}fullNameHash": bytes32_to_array(digest(name)),
        f"{prefix}saltHash": bytes32_to_array(digest_or_zero(passphrase)),
        f"{prefix}isBirthBC": 1 if record.is_birth_bc else 0,
        f"{prefix}birthYear": record.birth_year,
        f"{prefix}birthMonth": record.birth_month,
        f"{prefix}birthDay": record.birth_day,
        f"{prefix}gender": record.gender,
    }


def _absent_fields(prefix: str) -> Dict[str, Any]:
    return {
        f"{prefix}fullNameHash": bytes32_to_array(ZERO_DIGEST),
        f"{prefix}saltHash": bytes32_to_array(ZERO_DIGEST),
        f"{prefix}isBirthBC": 0,
        f"{prefix}birthYear": 0,
        f"{prefix}birthMonth": 0,
        f"{prefix}birthDay": 0,
        f"{prefix}gender": 0,
    }


def build_name_witness(full_name, passphrase="", minter=None) -> Dict[str, Any]:
    """Input for the salted-name circuit."""
    name = require_name(full_name, "fullName")
    salt = normalize_passphrase(passphrase)
    return {
        "fullNameHash": bytes32_to_array(digest(name)),
        "saltHash": bytes32_to_array(digest_or_zero(salt)),
        "minter": str(normalize_submitter(minter, "minter")),
    }


def build_person_witness(
    person: IdentityRecord,
    father: ParentInput = ABSENT,
    mother: ParentInput = ABSENT,
    submitter=None,
) -> Dict[str, Any]:
    """
    Input for the person-hash circuit.

    Parent birth fields are taken as given; zeroed sub-fields of a present
    parent are not rejected.
    """
    witness = _identity_fields(person, "")

    for role, parent in (("father", father), ("mother", mother)):
        prefix = f"{role}_"
        flag = "hasFather" if role == "father" else "hasMother"
        record = effective_parent(parent, role)
        if record is None:
            witness.update(_absent_fields(prefix))
            witness[flag] = 0
        else:
            witness.update(_identity_fields(record, prefix))
            witness[flag] = 1

    witness["submitter"] = str(normalize_submitter(submitter))
    return witness


def write_witness(witness: Dict[str, Any], path: str | Path) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(witness, indent=2), encoding="utf-8")
    return path


def load_witness(path: str | Path) -> Dict[str, Any]:
    path = Path(path)
    raw = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(raw, dict):
        raise ValidationError("input", "witness JSON must be an object")
    return raw

"""
Independent re-derivation of the public signals each circuit must expose.

The oracle never touches the prover. It recomputes the commitment chain
directly from identity data (or from a persisted witness file) so that drift
between the off-chain encoder and the compiled circuit shows up as a per-index
signal mismatch.

Signal layouts:
    name_poseidon: [saltedHi, saltedLo, nameHi, nameLo, minter]
    person_hash:   [personHi, personLo, fatherHi, fatherLo,
                    motherHi, motherLo, submitter]
An absent parent contributes (0, 0).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, List, Mapping, Optional, Sequence, Tuple

from .commitment import CommitmentEncoder, pack_birth_data
from .config import NAME_CIRCUIT, PERSON_CIRCUIT, SIGNAL_COUNTS, ZERO_DIGEST
from .digest import bytes32_from_array
from .exceptions import SignalMismatchError, ValidationError
from .types import ABSENT, IdentityRecord, ParentInput
from .witness import effective_parent, normalize_submitter


@dataclass(frozen=True)
class SignalMismatch:
    index: int
    expected: Optional[str]
    actual: Optional[str]


@dataclass(frozen=True)
class SignalComparison:
    match: bool
    mismatches: Tuple[SignalMismatch, ...] = field(default_factory=tuple)


class SignalOracle:
    """Recomputes expected public signals from raw identity inputs."""

    def __init__(self, encoder: Optional[CommitmentEncoder] = None):
        self._encoder = encoder or CommitmentEncoder()

    @property
    def encoder(self) -> CommitmentEncoder:
        return self._encoder

    def expected_name_signals(self, full_name, passphrase="", minter=None) -> List[int]:
        chain = self._encoder.salted_name(full_name, passphrase)
        salted = chain.salted_limbs
        return [
            salted.hi,
            salted.lo,
            chain.name_limbs.hi,
            chain.name_limbs.lo,
            normalize_submitter(minter, "minter"),
        ]

    def expected_person_signals(
        self,
        person: IdentityRecord,
        father: ParentInput = ABSENT,
        mother: ParentInput = ABSENT,
        submitter=None,
    ) -> List[int]:
        signals = self._encoder.commit(person).limbs.as_list()
        for role, parent in (("father", father), ("mother", mother)):
            record = effective_parent(parent, role)
            if record is None:
                signals.extend([0, 0])
            else:
                signals.extend(self._encoder.commit(record, prefix=f"{role}_").limbs.as_list())
        signals.append(normalize_submitter(submitter))
        return signals

    def expected_signals_from_witness(self, witness: Mapping[str, Any], circuit: str) -> List[int]:
        """Recompute the signal vector from a persisted circuit input."""
        if circuit == NAME_CIRCUIT:
            return self._name_signals_from_witness(witness)
        if circuit == PERSON_CIRCUIT:
            return self._person_signals_from_witness(witness)
        raise ValidationError("circuit", f"unknown circuit {circuit!r}")

    def _name_signals_from_witness(self, witness: Mapping[str, Any]) -> List[int]:
        name_hash = bytes32_from_array(witness.get("fullNameHash"), "fullNameHash")
        salt_hash = bytes32_from_array(witness.get("saltHash"), "saltHash")
        chain = self._encoder.commit_hashes(name_hash, salt_hash, 0)
        salted = chain.salted_limbs
        return [
            salted.hi,
            salted.lo,
            chain.name_limbs.hi,
            chain.name_limbs.lo,
            normalize_submitter(witness.get("minter"), "minter"),
        ]

    def _person_signals_from_witness(self, witness: Mapping[str, Any]) -> List[int]:
        signals: List[int] = []
        for prefix, flag in (("", None), ("father_", "hasFather"), ("mother_", "hasMother")):
            if flag is not None and _int_field(witness, flag, default=1) == 0:
                signals.extend([0, 0])
                continue
            name_hash = bytes32_from_array(
                witness.get(f"{prefix}fullNameHash"), f"{prefix}fullNameHash"
            )
            salt_raw = witness.get(f"{prefix}saltHash")
            salt_hash = (
                ZERO_DIGEST
                if salt_raw is None
                else bytes32_from_array(salt_raw, f"{prefix}saltHash")
            )
            packed = pack_birth_data(
                _int_field(witness, f"{prefix}birthYear"),
                _int_field(witness, f"{prefix}birthMonth"),
                _int_field(witness, f"{prefix}birthDay"),
                _int_field(witness, f"{prefix}gender"),
                _int_field(witness, f"{prefix}isBirthBC"),
                prefix=prefix,
            )
            signals.extend(self._encoder.commit_hashes(name_hash, salt_hash, packed).limbs.as_list())
        signals.append(normalize_submitter(witness.get("submitter")))
        return signals


def _int_field(witness: Mapping[str, Any], key: str, default: Optional[int] = None) -> int:
    value = witness.get(key, default)
    if value is None:
        raise ValidationError(key, "is required")
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value.strip(), 10)
        except ValueError:
            pass
    raise ValidationError(key, f"must be an integer, got {value!r}")


# ============================================================================
# COMPARISON
# ============================================================================


def _canonical(value) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, int) and not isinstance(value, bool):
        return str(value)
    text = str(value).strip()
    try:
        return str(int(text, 0 if text[:2] in ("0x", "0X") else 10))
    except ValueError:
        return text


def compare(expected: Sequence, actual: Sequence) -> SignalComparison:
    """
    Index-wise comparison over the longer of the two vectors.

    A length difference shows up as trailing mismatches with ``None`` on the
    shorter side.
    """
    mismatches = []
    for index in range(max(len(expected), len(actual))):
        want = _canonical(expected[index]) if index < len(expected) else None
        got = _canonical(actual[index]) if index < len(actual) else None
        if want != got:
            mismatches.append(SignalMismatch(index=index, expected=want, actual=got))
    return SignalComparison(match=not mismatches, mismatches=tuple(mismatches))


def assert_signals_match(expected: Sequence, actual: Sequence) -> SignalComparison:
    comparison = compare(expected, actual)
    if not comparison.match:
        raise SignalMismatchError(comparison)
    return comparison


def signal_labels(circuit: str) -> Tuple[str, ...]:
    if circuit == NAME_CIRCUIT:
        labels = ("poseidonHi", "poseidonLo", "nameHashHi", "nameHashLo", "minter")
    elif circuit == PERSON_CIRCUIT:
        labels = (
            "personHi",
            "personLo",
            "fatherHi",
            "fatherLo",
            "motherHi",
            "motherLo",
            "submitter",
        )
    else:
        raise ValidationError("circuit", f"unknown circuit {circuit!r}")
    assert len(labels) == SIGNAL_COUNTS[circuit]
    return labels

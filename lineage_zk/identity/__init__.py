"""Identity commitments, circuit witnesses and expected-signal checks."""

from __future__ import annotations

from .commitment import (
    CommitmentEncoder,
    PersonCommitment,
    pack_birth_data,
    person_hash,
    person_hash_from_limbs,
    unpack_birth_data,
)
from .digest import digest, digest_or_zero, limbs_to_value, split_limbs
from .exceptions import (
    ArtifactNotFoundError,
    ConfigurationError,
    LineageZKError,
    ProofStructureError,
    ProverError,
    SignalMismatchError,
    ValidationError,
)
from .normalize import normalize_name, normalize_passphrase
from .oracle import SignalComparison, SignalOracle, assert_signals_match, compare
from .types import ABSENT, Absent, IdentityRecord, Limb128Pair, ParentInput, Present
from .witness import (
    build_name_witness,
    build_person_witness,
    normalize_submitter,
    parent_from_fields,
)

__all__ = [
    "ABSENT",
    "Absent",
    "ArtifactNotFoundError",
    "CommitmentEncoder",
    "ConfigurationError",
    "IdentityRecord",
    "Limb128Pair",
    "LineageZKError",
    "ParentInput",
    "PersonCommitment",
    "Present",
    "ProofStructureError",
    "ProverError",
    "SignalComparison",
    "SignalMismatchError",
    "SignalOracle",
    "ValidationError",
    "assert_signals_match",
    "build_name_witness",
    "build_person_witness",
    "compare",
    "digest",
    "digest_or_zero",
    "limbs_to_value",
    "normalize_name",
    "normalize_passphrase",
    "normalize_submitter",
    "pack_birth_data",
    "parent_from_fields",
    "person_hash",
    "person_hash_from_limbs",
    "split_limbs",
    "unpack_birth_data",
]

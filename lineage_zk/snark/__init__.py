"""Groth16 proving, proof normalization and artifact lookup."""

from __future__ import annotations

from .assets import ArtifactResolver, resolve
from .batch import ProofJob, prove_all, prove_many
from .proof import (
    Groth16Proof,
    ProofBundle,
    load_proof,
    load_public_signals,
    normalize_proof,
    normalize_public_signals,
    to_verifier_coordinate_order,
)
from .prover import CIRCUITS, Circuit, ProofEngine

__all__ = [
    "ArtifactResolver",
    "CIRCUITS",
    "Circuit",
    "Groth16Proof",
    "ProofBundle",
    "ProofEngine",
    "ProofJob",
    "load_proof",
    "load_public_signals",
    "normalize_proof",
    "normalize_public_signals",
    "prove_all",
    "prove_many",
    "resolve",
    "to_verifier_coordinate_order",
]

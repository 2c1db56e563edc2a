"""
Groth16 proof normalization for the on-chain verifier.

snarkjs encodes each G2 coordinate as ``[c0, c1]`` (real part first). The
Solidity pairing verifier expects ``[c1, c0]``. The swap is applied once, in
:func:`to_verifier_coordinate_order`; a proof that skips it is well-formed but
never verifies, and a proof swapped twice is back in prover order.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Sequence, Tuple

from py_ecc.bn128 import FQ, FQ2, b, b2, field_modulus, is_on_curve

from ..identity.config import FIELD_MODULUS, SIGNAL_COUNTS
from ..identity.exceptions import ProofStructureError, ValidationError

G1Point = Tuple[int, int]
G2Point = Tuple[Tuple[int, int], Tuple[int, int]]


@dataclass(frozen=True)
class Groth16Proof:
    """Proof points in verifier coordinate order."""

    a: G1Point
    b: G2Point
    c: G1Point

    def to_json(self) -> Dict[str, Any]:
        return {
            "a": [str(v) for v in self.a],
            "b": [[str(v) for v in row] for row in self.b],
            "c": [str(v) for v in self.c],
        }

    def to_snarkjs(self) -> Dict[str, Any]:
        """Prover-order JSON, as read by ``snarkjs groth16 verify``."""
        (x1, x0), (y1, y0) = self.b
        return {
            "pi_a": [str(self.a[0]), str(self.a[1]), "1"],
            "pi_b": [[str(x0), str(x1)], [str(y0), str(y1)], ["1", "0"]],
            "pi_c": [str(self.c[0]), str(self.c[1]), "1"],
            "protocol": "groth16",
            "curve": "bn128",
        }


# ============================================================================
# COORDINATES
# ============================================================================


def _coordinate(value, label: str) -> int:
    if isinstance(value, bool):
        raise ProofStructureError(f"{label} must be a field element")
    if isinstance(value, int):
        as_int = value
    elif isinstance(value, str):
        text = value.strip()
        try:
            as_int = int(text, 16) if text[:2] in ("0x", "0X") else int(text, 10)
        except ValueError:
            raise ProofStructureError(f"{label} is not an integer: {value!r}") from None
    else:
        raise ProofStructureError(f"{label} must be a string or int")
    if not 0 <= as_int < field_modulus:
        raise ProofStructureError(f"{label} is outside the base field")
    return as_int


def _pair(value, label: str) -> Tuple[int, int]:
    if not isinstance(value, (list, tuple)) or len(value) < 2:
        raise ProofStructureError(f"{label} must have two coordinates")
    # snarkjs appends the projective z coordinate; it must be 1 for affine output
    if len(value) > 3 or (len(value) == 3 and _coordinate(value[2], f"{label}[2]") != 1):
        raise ProofStructureError(f"{label} is not an affine point")
    return _coordinate(value[0], f"{label}[0]"), _coordinate(value[1], f"{label}[1]")


def to_verifier_coordinate_order(pi_b: Sequence) -> G2Point:
    """
    Swap the two Fq2 components of each G2 coordinate.

    ``[[x0, x1], [y0, y1], ...]`` (prover) -> ``((x1, x0), (y1, y0))`` (verifier).
    """
    if not isinstance(pi_b, (list, tuple)) or len(pi_b) < 2:
        raise ProofStructureError("pi_b must have two rows")
    x0, x1 = _fq2(pi_b[0], "pi_b[0]")
    y0, y1 = _fq2(pi_b[1], "pi_b[1]")
    return (x1, x0), (y1, y0)


def _fq2(value, label: str) -> Tuple[int, int]:
    if not isinstance(value, (list, tuple)) or len(value) != 2:
        raise ProofStructureError(f"{label} must have two field elements")
    return _coordinate(value[0], f"{label}[0]"), _coordinate(value[1], f"{label}[1]")


def _check_points(proof: Groth16Proof) -> None:
    for label, (x, y) in (("a", proof.a), ("c", proof.c)):
        if not is_on_curve((FQ(x), FQ(y)), b):
            raise ProofStructureError(f"proof.{label} is not on the BN254 G1 curve")
    (x1, x0), (y1, y0) = proof.b
    if not is_on_curve((FQ2([x0, x1]), FQ2([y0, y1])), b2):
        raise ProofStructureError("proof.b is not on the BN254 G2 twist")


def normalize_proof(raw, *, check_points: bool = True) -> Groth16Proof:
    """
    Convert raw snarkjs output to verifier coordinate order.

    Accepts ``{"pi_a", "pi_b", "pi_c", ...}`` from the prover. A proof that is
    already in verifier order (a ``Groth16Proof`` or ``{"a", "b", "c"}``) is
    returned as-is, so normalizing twice never swaps back.

    Raises:
        ProofStructureError: If a component is missing or malformed
    """
    if isinstance(raw, Groth16Proof):
        proof = raw
    elif not isinstance(raw, Mapping):
        raise ProofStructureError("proof must be an object")
    elif all(key in raw for key in ("pi_a", "pi_b", "pi_c")):
        proof = Groth16Proof(
            a=_pair(raw["pi_a"], "pi_a"),
            b=to_verifier_coordinate_order(raw["pi_b"]),
            c=_pair(raw["pi_c"], "pi_c"),
        )
    elif all(key in raw for key in ("a", "b", "c")):
        rows = raw["b"]
        if not isinstance(rows, (list, tuple)) or len(rows) != 2:
            raise ProofStructureError("b must have two rows")
        proof = Groth16Proof(
            a=_pair(raw["a"], "a"),
            b=(_fq2(rows[0], "b[0]"), _fq2(rows[1], "b[1]")),
            c=_pair(raw["c"], "c"),
        )
    else:
        missing = [key for key in ("pi_a", "pi_b", "pi_c") if key not in raw]
        raise ProofStructureError(f"invalid proof structure, missing {', '.join(missing)}")

    if check_points:
        _check_points(proof)
    return proof


# ============================================================================
# PUBLIC SIGNALS
# ============================================================================


def _signal_list(raw) -> list:
    if isinstance(raw, Mapping):
        raw = raw.get("publicSignals")
    if not isinstance(raw, (list, tuple)):
        raise ProofStructureError("public signals must be an array or {publicSignals: [...]}")
    return list(raw)


def parse_signals(raw) -> list[int]:
    """Parse a signal vector of any length into field elements."""
    signals = []
    for idx, value in enumerate(_signal_list(raw)):
        if isinstance(value, bool):
            raise ProofStructureError(f"publicSignals[{idx}] must be an integer")
        try:
            as_int = int(value) if isinstance(value, int) else int(str(value).strip(), 10)
        except ValueError:
            raise ProofStructureError(f"publicSignals[{idx}] is not an integer: {value!r}") from None
        if not 0 <= as_int < FIELD_MODULUS:
            raise ProofStructureError(f"publicSignals[{idx}] is outside the scalar field")
        signals.append(as_int)
    return signals


def normalize_public_signals(raw, circuit: str) -> Tuple[int, ...]:
    """
    Parse and enforce the circuit's exact signal count.

    Raises:
        ProofStructureError: On any count mismatch; vectors are never padded
            or truncated
    """
    if circuit not in SIGNAL_COUNTS:
        raise ValidationError("circuit", f"unknown circuit {circuit!r}")
    signals = parse_signals(raw)
    expected = SIGNAL_COUNTS[circuit]
    if len(signals) != expected:
        raise ProofStructureError(
            f"{circuit} public signals length mismatch (expected {expected}, got {len(signals)})"
        )
    return tuple(signals)


# ============================================================================
# FILES
# ============================================================================


def read_json(path: str | Path):
    path = Path(path)
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except ValueError as exc:
        raise ProofStructureError(f"{path} is not valid JSON: {exc}") from exc


def load_public_signals(path: str | Path) -> list[int]:
    """Read an array or ``{publicSignals: [...]}`` file without an arity check."""
    return parse_signals(read_json(path))


def load_proof(path: str | Path, *, check_points: bool = True) -> Groth16Proof:
    return normalize_proof(read_json(path), check_points=check_points)


def _write_json(path: Path, data) -> Path:
    path.write_text(json.dumps(data, indent=2), encoding="utf-8")
    return path


@dataclass(frozen=True)
class ProofBundle:
    """
    A normalized proof, its public signals and where they came from.

    Attributes:
        circuit: Circuit name
        proof: Proof in verifier coordinate order
        public_signals: Exactly SIGNAL_COUNTS[circuit] field elements
        raw_proof: The prover's original JSON (needed by snarkjs verify)
        witness: The circuit input the proof was generated from
        artifacts: Resolved artifact paths
    """

    circuit: str
    proof: Groth16Proof
    public_signals: Tuple[int, ...]
    raw_proof: Optional[Dict[str, Any]] = None
    witness: Optional[Dict[str, Any]] = None
    artifacts: Dict[str, str] = field(default_factory=dict)

    def contract_args(self) -> Tuple[G1Point, G2Point, G1Point, list[int]]:
        """``(a, b, c, publicSignals)`` for the on-chain write call."""
        return self.proof.a, self.proof.b, self.proof.c, list(self.public_signals)

    def file_names(self) -> Dict[str, str]:
        return {
            "input": f"{self.circuit}_input.json",
            "proof": f"{self.circuit}_proof.json",
            "public": f"{self.circuit}_public.json",
        }

    def write(self, output_dir: str | Path, *, include_witness: bool = True) -> Dict[str, Path]:
        """Persist proof and public signals (and optionally the plaintext witness)."""
        output_dir = Path(output_dir)
        if output_dir.exists() and not output_dir.is_dir():
            raise ValidationError("output", f"exists and is not a directory: {output_dir}")
        output_dir.mkdir(parents=True, exist_ok=True)

        names = self.file_names()
        written = {
            "proof": _write_json(
                output_dir / names["proof"],
                self.raw_proof if self.raw_proof is not None else self.proof.to_snarkjs(),
            ),
            "public": _write_json(
                output_dir / names["public"],
                {"publicSignals": [str(v) for v in self.public_signals]},
            ),
        }
        if include_witness and self.witness is not None:
            written["input"] = _write_json(output_dir / names["input"], self.witness)
        return written

    @classmethod
    def from_files(
        cls,
        proof_path: str | Path,
        public_path: str | Path,
        circuit: str,
        *,
        check_points: bool = True,
    ) -> "ProofBundle":
        raw_proof = read_json(proof_path)
        return cls(
            circuit=circuit,
            proof=normalize_proof(raw_proof, check_points=check_points),
            public_signals=normalize_public_signals(read_json(public_path), circuit),
            raw_proof=raw_proof if isinstance(raw_proof, dict) and "pi_a" in raw_proof else None,
        )

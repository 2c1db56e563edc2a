"""
Poseidon hash over the BN254 scalar field, circomlib flavour.

The permutation follows circomlib's reference construction:

    state = [0, x_1, ..., x_n]            (t = n + 1)
    for each of R_F + R_P rounds:
        state += C[round]                 (ARK)
        S-box x^5 on every element in the first and last R_F/2 rounds,
        on state[0] only in the R_P partial rounds
        state = M * state                 (MDS)
    output = state[0]

Round constants and MDS matrices are NOT hardcoded. They are loaded from the
constants file shipped with the circuit toolchain so that the off-chain hash
uses exactly the parameters compiled into the circuits. Two layouts are
accepted:

    circomlibjs export:  {"C": [[...], ...], "M": [[[...]]], ...}
                         indexed by t - 2; C[t-2] is flat, length t*(R_F+R_P)
    per-width list:      [{"t": 3, "C": [...], "M": [[...]], "R_F": 8, "R_P": 57}, ...]

Numbers may be decimal strings, 0x-hex strings or JSON integers.
"""

from __future__ import annotations

import json
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Sequence

from .config import (
    FIELD_MODULUS,
    POSEIDON_FULL_ROUNDS,
    POSEIDON_PARTIAL_ROUNDS,
)
from .exceptions import ConfigurationError, ValidationError


@dataclass(frozen=True)
class PoseidonParams:
    """
    Parameters of one Poseidon width.

    Attributes:
        t: State width (number of inputs + 1)
        full_rounds: R_F, split evenly before and after the partial rounds
        partial_rounds: R_P
        constants: Flat round constants, length t * (R_F + R_P)
        mds: t x t MDS matrix
    """

    t: int
    full_rounds: int
    partial_rounds: int
    constants: tuple[int, ...]
    mds: tuple[tuple[int, ...], ...]

    def __post_init__(self):
        if self.t < 2:
            raise ConfigurationError("t must be >= 2")
        if self.full_rounds % 2 != 0:
            raise ConfigurationError("full_rounds must be even")
        expected = self.t * (self.full_rounds + self.partial_rounds)
        if len(self.constants) != expected:
            raise ConfigurationError(
                f"t={self.t}: expected {expected} round constants, got {len(self.constants)}"
            )
        if len(self.mds) != self.t or any(len(row) != self.t for row in self.mds):
            raise ConfigurationError(f"t={self.t}: MDS matrix must be {self.t}x{self.t}")
        for value in self.constants:
            if not 0 <= value < FIELD_MODULUS:
                raise ConfigurationError(f"t={self.t}: round constant outside the field")
        for row in self.mds:
            for value in row:
                if not 0 <= value < FIELD_MODULUS:
                    raise ConfigurationError(f"t={self.t}: MDS entry outside the field")


def _pow5(x: int) -> int:
    x2 = x * x % FIELD_MODULUS
    return x2 * x2 % FIELD_MODULUS * x % FIELD_MODULUS


def permute(state: Sequence[int], params: PoseidonParams) -> list[int]:
    """Apply the Poseidon permutation to a full width-t state."""
    t = params.t
    if len(state) != t:
        raise ValueError(f"state length {len(state)} != t={t}")

    half = params.full_rounds // 2
    total = params.full_rounds + params.partial_rounds
    constants = params.constants
    mds = params.mds

    x = [int(v) % FIELD_MODULUS for v in state]
    for r in range(total):
        offset = r * t
        x = [(x[i] + constants[offset + i]) % FIELD_MODULUS for i in range(t)]
        if r < half or r >= half + params.partial_rounds:
            x = [_pow5(v) for v in x]
        else:
            x[0] = _pow5(x[0])
        x = [sum(row[j] * x[j] for j in range(t)) % FIELD_MODULUS for row in mds]
    return x


class Poseidon:
    """Poseidon hash with one parameter set per supported width."""

    def __init__(self, params_by_width: Mapping[int, PoseidonParams]):
        if not params_by_width:
            raise ConfigurationError("at least one Poseidon width is required")
        for t, params in params_by_width.items():
            if params.t != t:
                raise ConfigurationError(f"params registered under t={t} have t={params.t}")
        self._params = dict(params_by_width)

    @property
    def widths(self) -> tuple[int, ...]:
        return tuple(sorted(self._params))

    def supports(self, n_inputs: int) -> bool:
        return n_inputs + 1 in self._params

    def hash(self, inputs: Sequence[int]) -> int:
        t = len(inputs) + 1
        params = self._params.get(t)
        if params is None:
            raise ConfigurationError(
                f"no Poseidon parameters for {len(inputs)} inputs (t={t}); "
                f"available widths: {', '.join(str(w) for w in self.widths)}"
            )
        for idx, value in enumerate(inputs):
            if isinstance(value, bool) or not isinstance(value, int):
                raise ValidationError(f"poseidon_input[{idx}]", "must be an int")
            if not 0 <= value < FIELD_MODULUS:
                raise ValidationError(f"poseidon_input[{idx}]", "must be a field element")
        return permute([0, *inputs], params)[0]


# ============================================================================
# PARAMETER FILES
# ============================================================================


def load_params_file(path: str | Path) -> dict[int, PoseidonParams]:
    """
    Load Poseidon parameters for every width present in a constants file.

    Raises:
        ConfigurationError: If the file cannot be parsed or is inconsistent
    """
    path = Path(path)
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        raise ConfigurationError(f"cannot read Poseidon constants {path}: {exc}") from exc
    return parse_params(raw)


def parse_params(raw) -> dict[int, PoseidonParams]:
    if isinstance(raw, dict) and "C" in raw and "M" in raw:
        return _parse_indexed(raw)
    if isinstance(raw, list):
        result = {}
        for entry in raw:
            params = _parse_entry(entry)
            result[params.t] = params
        if not result:
            raise ConfigurationError("Poseidon constants list is empty")
        return result
    raise ConfigurationError("unrecognised Poseidon constants layout")


def _parse_indexed(raw: dict) -> dict[int, PoseidonParams]:
    constants_by_index = raw["C"]
    mds_by_index = raw["M"]
    if len(constants_by_index) != len(mds_by_index):
        raise ConfigurationError("C and M must cover the same widths")
    result = {}
    for index, (constants, mds) in enumerate(zip(constants_by_index, mds_by_index)):
        t = index + 2
        result[t] = _build(t, constants, mds, None, None)
    return result


def _parse_entry(entry) -> PoseidonParams:
    if not isinstance(entry, dict) or "t" not in entry:
        raise ConfigurationError("each Poseidon entry must be an object with 't'")
    return _build(
        int(entry["t"]),
        entry.get("C"),
        entry.get("M"),
        entry.get("R_F"),
        entry.get("R_P"),
    )


def _build(t: int, constants, mds, full_rounds, partial_rounds) -> PoseidonParams:
    if constants is None or mds is None:
        raise ConfigurationError(f"t={t}: both C and M are required")
    if partial_rounds is None:
        if t - 2 >= len(POSEIDON_PARTIAL_ROUNDS):
            raise ConfigurationError(f"t={t}: no default partial round count")
        partial_rounds = POSEIDON_PARTIAL_ROUNDS[t - 2]
    if full_rounds is None:
        full_rounds = POSEIDON_FULL_ROUNDS
    flat = _flatten(constants)
    return PoseidonParams(
        t=t,
        full_rounds=int(full_rounds),
        partial_rounds=int(partial_rounds),
        constants=tuple(_to_int(v) for v in flat),
        mds=tuple(tuple(_to_int(v) for v in row) for row in mds),
    )


def _flatten(constants) -> list:
    if constants and isinstance(constants[0], list):
        return [value for row in constants for value in row]
    return list(constants)


def _to_int(value) -> int:
    if isinstance(value, bool):
        raise ConfigurationError("boolean is not a field element")
    if isinstance(value, int):
        return value
    text = str(value).strip().lower()
    try:
        if text.startswith("0x"):
            return int(text, 16)
        return int(text, 10)
    except ValueError as exc:
        raise ConfigurationError(f"invalid field element {value!r}") from exc


# ============================================================================
# DEFAULT INSTANCE
# ============================================================================

_cache: dict[Path, Poseidon] = {}
_cache_lock = threading.Lock()


def poseidon_from_file(path: str | Path) -> Poseidon:
    """Return a Poseidon instance for a constants file, memoized per resolved path."""
    resolved = Path(path).resolve()
    with _cache_lock:
        instance = _cache.get(resolved)
        if instance is None:
            instance = Poseidon(load_params_file(resolved))
            _cache[resolved] = instance
        return instance


def default_poseidon(explicit_path: str | Path | None = None) -> Poseidon:
    """Locate the circuit toolchain's constants file and load it."""
    from ..snark.assets import ArtifactResolver

    return poseidon_from_file(ArtifactResolver().resolve_poseidon_constants(explicit_path))


__all__ = [
    "Poseidon",
    "PoseidonParams",
    "default_poseidon",
    "load_params_file",
    "parse_params",
    "permute",
    "poseidon_from_file",
]

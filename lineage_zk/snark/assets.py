"""Helpers to resolve proving artifacts with prioritized fallbacks."""

from __future__ import annotations

import logging
import os
import shutil
import threading
from pathlib import Path
from typing import Dict, Iterable, Optional, Sequence, Tuple

from ..identity.config import NAME_CIRCUIT, PERSON_CIRCUIT
from ..identity.exceptions import ArtifactNotFoundError, ValidationError

logger = logging.getLogger(__name__)

ARTIFACTS_DIR_ENV = "LINEAGE_ZK_ARTIFACTS_DIR"
POSEIDON_CONSTANTS_ENV = "LINEAGE_ZK_POSEIDON_CONSTANTS"
SNARKJS_ENV = "SNARKJS_BIN"

ARTIFACT_KINDS = frozenset({"wasm", "zkey", "vkey"})

# File names relative to each search root, most specific first
_CIRCUIT_FILES: Dict[str, Dict[str, Tuple[str, ...]]] = {
    NAME_CIRCUIT: {
        "wasm": (
            "name_poseidon_zk.wasm",
            "name_poseidon_zk_js/name_poseidon_zk.wasm",
            "name_poseidon_js/name_poseidon.wasm",
        ),
        "zkey": (
            "name_poseidon_zk_final.zkey",
            "name_poseidon_0001.zkey",
            "name_poseidon_0000.zkey",
            "name_poseidon_final.zkey",
        ),
        "vkey": (
            "name_poseidon_zk_verification_key.json",
            "name_poseidon_verification_key.json",
        ),
    },
    PERSON_CIRCUIT: {
        "wasm": (
            "person_hash_zk.wasm",
            "person_hash_zk_js/person_hash_zk.wasm",
        ),
        "zkey": (
            "person_hash_zk_final.zkey",
            "person_hash_zk_0001.zkey",
        ),
        "vkey": (
            "person_hash_zk_verification_key.json",
            "person_hash_verification_key.json",
        ),
    },
}

_DEFAULT_ROOTS = (
    Path("frontend") / "public" / "zk",
    Path("artifacts") / "circuits",
    Path("circuits"),
    Path("zk"),
)

_POSEIDON_FILES = (
    Path("poseidon_constants.json"),
)

_POSEIDON_PACKAGES = (
    Path("node_modules") / "circomlib" / "src" / "poseidon_constants.json",
    Path("node_modules") / "circomlibjs" / "src" / "poseidon_constants.json",
)


def resolve(kind: str, explicit_path: str | Path | None, candidates: Iterable[str | Path]) -> Path:
    """
    Return the first existing artifact path.

    An explicit path wins when given; a given-but-missing explicit path is an
    error rather than a silent fallback to the candidates.

    Raises:
        ArtifactNotFoundError: Listing every path checked
    """
    if explicit_path is not None and str(explicit_path).strip():
        path = Path(explicit_path).expanduser().resolve()
        if path.is_file():
            return path
        raise ArtifactNotFoundError(kind, [path])

    checked = []
    for candidate in candidates:
        if candidate is None:
            continue
        path = Path(candidate)
        checked.append(path)
        if path.is_file():
            return path
    raise ArtifactNotFoundError(kind, checked)


class ArtifactResolver:
    """
    Locate circuit artifacts, the snarkjs CLI and Poseidon constants.

    Search roots, in order: ``base_dirs`` if given, otherwise the
    ``LINEAGE_ZK_ARTIFACTS_DIR`` entries followed by the conventional build
    output directories under ``root`` (default: the working directory).

    Results are memoized on the full argument tuple; a cached path that has
    since disappeared is re-resolved.
    """

    def __init__(
        self,
        base_dirs: Optional[Sequence[str | Path]] = None,
        root: str | Path | None = None,
    ) -> None:
        self._root = Path(root) if root is not None else Path.cwd()
        if base_dirs is not None:
            self._base_dirs = tuple(Path(d) for d in base_dirs)
        else:
            self._base_dirs = _env_dirs() + tuple(self._root / d for d in _DEFAULT_ROOTS)
        self._cache: Dict[tuple, Path] = {}
        self._lock = threading.Lock()

    @property
    def base_dirs(self) -> Tuple[Path, ...]:
        return self._base_dirs

    def candidates(self, circuit: str, kind: str) -> list[Path]:
        if circuit not in _CIRCUIT_FILES:
            raise ValidationError("circuit", f"unknown circuit {circuit!r}")
        if kind not in ARTIFACT_KINDS:
            raise ValidationError("kind", f"must be one of {', '.join(sorted(ARTIFACT_KINDS))}")
        names = _CIRCUIT_FILES[circuit][kind]
        return [base / name for base in self._base_dirs for name in names]

    def resolve_artifact(
        self,
        circuit: str,
        kind: str,
        explicit_path: str | Path | None = None,
    ) -> Path:
        return self._cached(
            f"{circuit} circuit {kind}",
            explicit_path,
            self.candidates(circuit, kind),
        )

    def resolve_wasm(self, circuit: str, explicit_path: str | Path | None = None) -> Path:
        return self.resolve_artifact(circuit, "wasm", explicit_path)

    def resolve_zkey(self, circuit: str, explicit_path: str | Path | None = None) -> Path:
        return self.resolve_artifact(circuit, "zkey", explicit_path)

    def resolve_vkey(self, circuit: str, explicit_path: str | Path | None = None) -> Path:
        return self.resolve_artifact(circuit, "vkey", explicit_path)

    def resolve_snarkjs(self, explicit_path: str | Path | None = None) -> Path:
        candidates: list[Path] = []
        env_value = os.getenv(SNARKJS_ENV)
        if env_value:
            candidates.append(Path(env_value))
        candidates.append(self._root / "node_modules" / ".bin" / "snarkjs")
        on_path = shutil.which("snarkjs")
        if on_path:
            candidates.append(Path(on_path))
        return self._cached("snarkjs CLI", explicit_path, candidates)

    def resolve_poseidon_constants(self, explicit_path: str | Path | None = None) -> Path:
        candidates: list[Path] = []
        env_value = os.getenv(POSEIDON_CONSTANTS_ENV)
        if env_value:
            candidates.append(Path(env_value))
        candidates.extend(base / name for base in self._base_dirs for name in _POSEIDON_FILES)
        candidates.extend(self._root / name for name in _POSEIDON_PACKAGES)
        return self._cached("Poseidon constants", explicit_path, candidates)

    def _cached(self, kind: str, explicit_path, candidates: Sequence[Path]) -> Path:
        key = (kind, str(explicit_path) if explicit_path is not None else None, tuple(candidates))
        with self._lock:
            cached = self._cache.get(key)
        if cached is not None and cached.is_file():
            return cached

        path = resolve(kind, explicit_path, candidates)
        logger.debug("resolved %s -> %s", kind, path)
        with self._lock:
            self._cache[key] = path
        return path


def _env_dirs() -> Tuple[Path, ...]:
    value = os.getenv(ARTIFACTS_DIR_ENV)
    if not value:
        return ()
    return tuple(Path(part) for part in value.split(os.pathsep) if part.strip())

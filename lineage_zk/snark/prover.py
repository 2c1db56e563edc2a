"""snarkjs driver for the name and person circuits."""

from __future__ import annotations

import json
import logging
import os
import subprocess
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Tuple

from ..identity.config import NAME_CIRCUIT, PERSON_CIRCUIT, SIGNAL_COUNTS
from ..identity.exceptions import ConfigurationError, ProverError, ValidationError
from ..identity.types import ABSENT, IdentityRecord, ParentInput
from ..identity.witness import build_name_witness, build_person_witness, write_witness
from .assets import ArtifactResolver
from .proof import ProofBundle, read_json, normalize_proof, normalize_public_signals

logger = logging.getLogger(__name__)

PROVER_TIMEOUT_ENV = "LINEAGE_ZK_PROVER_TIMEOUT"
DEFAULT_PROVER_TIMEOUT = 300


@dataclass(frozen=True)
class Circuit:
    name: str
    signal_count: int
    description: str


CIRCUITS: Mapping[str, Circuit] = {
    NAME_CIRCUIT: Circuit(
        name=NAME_CIRCUIT,
        signal_count=SIGNAL_COUNTS[NAME_CIRCUIT],
        description="salted full-name commitment bound to a minter",
    ),
    PERSON_CIRCUIT: Circuit(
        name=PERSON_CIRCUIT,
        signal_count=SIGNAL_COUNTS[PERSON_CIRCUIT],
        description="person commitment with optional parents bound to a submitter",
    ),
}


def get_circuit(name: str) -> Circuit:
    try:
        return CIRCUITS[name]
    except KeyError:
        raise ValidationError("circuit", f"unknown circuit {name!r}") from None


def _timeout_from_env() -> Optional[float]:
    value = os.getenv(PROVER_TIMEOUT_ENV)
    if value is None or not value.strip():
        return DEFAULT_PROVER_TIMEOUT
    try:
        timeout = float(value)
    except ValueError:
        raise ConfigurationError(f"{PROVER_TIMEOUT_ENV} must be a number, got {value!r}") from None
    # 0 disables the timeout
    return timeout if timeout > 0 else None


class ProofEngine:
    """
    Produce Groth16 proofs with ``snarkjs groth16 fullprove``.

    Each call runs in its own temporary directory and touches no shared
    state, so independent proofs can run on separate threads.
    """

    def __init__(
        self,
        resolver: Optional[ArtifactResolver] = None,
        snarkjs: str | Path | None = None,
        timeout: Optional[float] = None,
    ) -> None:
        self._resolver = resolver or ArtifactResolver()
        self._snarkjs = snarkjs
        self._timeout = timeout if timeout is not None else _timeout_from_env()

    @property
    def resolver(self) -> ArtifactResolver:
        return self._resolver

    @property
    def timeout(self) -> Optional[float]:
        return self._timeout

    def prove(
        self,
        witness: Dict[str, Any],
        circuit: str,
        *,
        wasm: str | Path | None = None,
        zkey: str | Path | None = None,
    ) -> ProofBundle:
        """
        Generate a proof for ``witness`` and normalize it for the verifier.

        Raises:
            ArtifactNotFoundError: If the wasm, zkey or snarkjs cannot be found
            ProverError: If snarkjs exits non-zero or times out
            ProofStructureError: If the output is malformed or has the wrong arity
        """
        target = get_circuit(circuit)
        wasm_path = self._resolver.resolve_wasm(target.name, wasm)
        zkey_path = self._resolver.resolve_zkey(target.name, zkey)

        with tempfile.TemporaryDirectory(prefix=f"{target.name}_") as tmp_dir:
            tmp = Path(tmp_dir)
            input_path = write_witness(witness, tmp / "input.json")
            proof_path = tmp / "proof.json"
            public_path = tmp / "public.json"

            logger.info("proving %s with %s", target.name, zkey_path.name)
            self._run(
                "fullprove",
                [
                    "groth16",
                    "fullprove",
                    str(input_path),
                    str(wasm_path),
                    str(zkey_path),
                    str(proof_path),
                    str(public_path),
                ],
            )
            if not proof_path.is_file() or not public_path.is_file():
                raise ProverError("snarkjs fullprove did not write proof.json/public.json")
            raw_proof = read_json(proof_path)
            raw_public = read_json(public_path)

        return ProofBundle(
            circuit=target.name,
            proof=normalize_proof(raw_proof),
            public_signals=normalize_public_signals(raw_public, target.name),
            raw_proof=raw_proof,
            witness=dict(witness),
            artifacts={"wasm": str(wasm_path), "zkey": str(zkey_path)},
        )

    def prove_name(
        self,
        full_name: str,
        passphrase: str = "",
        minter=None,
        *,
        wasm: str | Path | None = None,
        zkey: str | Path | None = None,
    ) -> ProofBundle:
        witness = build_name_witness(full_name, passphrase, minter)
        return self.prove(witness, NAME_CIRCUIT, wasm=wasm, zkey=zkey)

    def prove_person(
        self,
        person: IdentityRecord,
        father: ParentInput = ABSENT,
        mother: ParentInput = ABSENT,
        submitter=None,
        *,
        wasm: str | Path | None = None,
        zkey: str | Path | None = None,
    ) -> ProofBundle:
        witness = build_person_witness(person, father, mother, submitter)
        return self.prove(witness, PERSON_CIRCUIT, wasm=wasm, zkey=zkey)

    def verify(self, bundle: ProofBundle | str | Path, circuit: Optional[str] = None, *, vkey=None) -> bool:
        """
        Check a proof against the circuit's verification key.

        ``bundle`` is a ProofBundle or a directory holding the files written by
        ``ProofBundle.write``. Returns False when snarkjs rejects the proof.

        Raises:
            ArtifactNotFoundError: If no verification key can be found
            ProverError: If snarkjs cannot be run at all
        """
        if not isinstance(bundle, ProofBundle):
            if circuit is None:
                raise ValidationError("circuit", "is required when verifying from a directory")
            directory = Path(bundle)
            bundle = ProofBundle.from_files(
                directory / f"{circuit}_proof.json",
                directory / f"{circuit}_public.json",
                circuit,
            )
        vkey_path = self._resolver.resolve_vkey(bundle.circuit, vkey)

        with tempfile.TemporaryDirectory(prefix=f"{bundle.circuit}_verify_") as tmp_dir:
            tmp = Path(tmp_dir)
            proof_path = tmp / "proof.json"
            public_path = tmp / "public.json"
            raw_proof = bundle.raw_proof if bundle.raw_proof is not None else bundle.proof.to_snarkjs()
            proof_path.write_text(json.dumps(raw_proof), encoding="utf-8")
            # snarkjs verify wants the bare array, not the {publicSignals} wrapper
            public_path.write_text(json.dumps([str(v) for v in bundle.public_signals]), encoding="utf-8")
            result = self._run(
                "verify",
                ["groth16", "verify", str(vkey_path), str(public_path), str(proof_path)],
                check=False,
            )
        ok = result.returncode == 0 and "OK" in result.stdout
        logger.info("verify %s: %s", bundle.circuit, "ok" if ok else "rejected")
        return ok

    def _command(self) -> Tuple[str, ...]:
        snarkjs = self._resolver.resolve_snarkjs(self._snarkjs)
        if snarkjs.suffix in (".js", ".cjs", ".mjs"):
            return ("node", str(snarkjs))
        return (str(snarkjs),)

    def _run(self, step: str, args, *, check: bool = True) -> subprocess.CompletedProcess:
        command = [*self._command(), *args]
        logger.debug("running %s", " ".join(command))
        try:
            result = subprocess.run(
                command,
                capture_output=True,
                text=True,
                check=False,
                timeout=self._timeout,
            )
        except subprocess.TimeoutExpired as exc:
            raise ProverError(f"snarkjs {step} timed out after {exc.timeout}s") from exc
        except OSError as exc:
            raise ProverError(f"unable to run snarkjs: {exc}") from exc

        if check and result.returncode != 0:
            stderr = (result.stderr or "").strip() or (result.stdout or "").strip() or "unknown prover error"
            raise ProverError(f"snarkjs {step} failed: {stderr}")
        return result

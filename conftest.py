"""Shared fixtures: deterministic Poseidon parameters and a stand-in snarkjs."""

from __future__ import annotations

import hashlib
import json
import subprocess
from pathlib import Path

import pytest

from lineage_zk.identity.commitment import CommitmentEncoder
from lineage_zk.identity.config import (
    FIELD_MODULUS,
    NAME_CIRCUIT,
    PERSON_CIRCUIT,
    POSEIDON_FULL_ROUNDS,
    POSEIDON_PARTIAL_ROUNDS,
)
from lineage_zk.identity.exceptions import ArtifactNotFoundError
from lineage_zk.identity.oracle import SignalOracle
from lineage_zk.identity.poseidon import Poseidon, parse_params, poseidon_from_file
from lineage_zk.snark.assets import ArtifactResolver

# Test-only widths: t=3 (2 inputs), t=4 (person commitment), t=6 (salted name)
TOY_WIDTHS = (3, 4, 6)

# BN254 generators, coordinates as snarkjs writes them (Fq2 real part first)
G1_X, G1_Y = 1, 2
G2_X = (
    10857046999023057135944570762232829481370756359578518086990519993285655852781,
    11559732032986387107991004021392285783925812861821192530917403151452391805634,
)
G2_Y = (
    8495653923123431417604973247489272438418190587263600148770280649306958101930,
    4082367875863433681332203403145435568316851327593401208105741076214120093531,
)

CIRCOMLIB_CONSTANTS = (
    Path(__file__).parent / "lineage_zk" / "identity" / "tests" / "data" / "circomlib_poseidon.json"
)

ARTIFACT_FILES = {
    NAME_CIRCUIT: (
        "name_poseidon_zk.wasm",
        "name_poseidon_zk_final.zkey",
        "name_poseidon_zk_verification_key.json",
    ),
    PERSON_CIRCUIT: (
        "person_hash_zk.wasm",
        "person_hash_zk_final.zkey",
        "person_hash_zk_verification_key.json",
    ),
}


def pytest_configure(config):
    config.addinivalue_line("markers", "slow: needs compiled circuits and RUN_SLOW=1")


def toy_poseidon_constants(widths=TOY_WIDTHS) -> list:
    """Per-width parameter list with SHA3-derived round constants and a Vandermonde MDS."""
    entries = []
    for t in widths:
        rounds = POSEIDON_FULL_ROUNDS + POSEIDON_PARTIAL_ROUNDS[t - 2]
        constants = [
            str(
                int.from_bytes(
                    hashlib.sha3_256(f"lineage-zk/test/t={t}/c={i}".encode()).digest(), "big"
                )
                % FIELD_MODULUS
            )
            for i in range(t * rounds)
        ]
        mds = [[str(pow(j + 2, i + 1, FIELD_MODULUS)) for j in range(t)] for i in range(t)]
        entries.append({"t": t, "C": constants, "M": mds})
    return entries


def proof_json(a=(G1_X, G1_Y), c=(G1_X, G1_Y)) -> dict:
    """A snarkjs-shaped proof whose points lie on BN254."""
    return {
        "pi_a": [str(a[0]), str(a[1]), "1"],
        "pi_b": [
            [str(G2_X[0]), str(G2_X[1])],
            [str(G2_Y[0]), str(G2_Y[1])],
            ["1", "0"],
        ],
        "pi_c": [str(c[0]), str(c[1]), "1"],
        "protocol": "groth16",
        "curve": "bn128",
    }


@pytest.fixture(scope="session")
def toy_poseidon() -> Poseidon:
    return Poseidon(parse_params(toy_poseidon_constants()))


@pytest.fixture
def encoder(toy_poseidon) -> CommitmentEncoder:
    return CommitmentEncoder(toy_poseidon)


@pytest.fixture
def oracle(encoder) -> SignalOracle:
    return SignalOracle(encoder)


@pytest.fixture
def poseidon_constants_file(tmp_path) -> Path:
    path = tmp_path / "poseidon_constants.json"
    path.write_text(json.dumps(toy_poseidon_constants()), encoding="utf-8")
    return path


@pytest.fixture(scope="session")
def circomlib_poseidon() -> Poseidon:
    """circomlib parameters for t=3, 4 and 6, checked in under identity/tests/data."""
    return poseidon_from_file(CIRCOMLIB_CONSTANTS)


@pytest.fixture
def real_poseidon() -> Poseidon:
    try:
        path = ArtifactResolver().resolve_poseidon_constants()
    except ArtifactNotFoundError:
        pytest.skip("circomlib Poseidon constants not available")
    return poseidon_from_file(path)


@pytest.fixture
def artifact_dir(tmp_path, poseidon_constants_file) -> Path:
    """Placeholder wasm/zkey/vkey files plus a snarkjs entry point."""
    directory = tmp_path / "zk"
    directory.mkdir()
    for names in ARTIFACT_FILES.values():
        for name in names:
            (directory / name).write_text("placeholder", encoding="utf-8")
    (directory / "snarkjs").write_text("#!/bin/sh\n", encoding="utf-8")
    (directory / "poseidon_constants.json").write_text(
        poseidon_constants_file.read_text(encoding="utf-8"), encoding="utf-8"
    )
    return directory


class FakeSnarkjs:
    """
    Stands in for ``subprocess.run`` calls to snarkjs.

    ``fullprove`` writes an on-curve proof and, as public signals, the values
    the oracle derives from the input file (or ``public_signals`` when set).
    ``verify`` succeeds unless ``verify_ok`` is False.
    """

    def __init__(self, oracle: SignalOracle):
        self.oracle = oracle
        self.calls: list[list[str]] = []
        self.public_signals = None
        self.returncode = 0
        self.stderr = ""
        self.verify_ok = True

    def __call__(self, command, **kwargs):
        self.calls.append(list(command))
        if self.returncode != 0:
            return subprocess.CompletedProcess(command, self.returncode, "", self.stderr)

        step = command[command.index("groth16") + 1]
        if step == "fullprove":
            input_path, _wasm, _zkey, proof_path, public_path = command[-5:]
            witness = json.loads(Path(input_path).read_text(encoding="utf-8"))
            circuit = NAME_CIRCUIT if "minter" in witness else PERSON_CIRCUIT
            signals = self.public_signals
            if signals is None:
                signals = self.oracle.expected_signals_from_witness(witness, circuit)
            Path(proof_path).write_text(json.dumps(proof_json()), encoding="utf-8")
            Path(public_path).write_text(json.dumps([str(v) for v in signals]), encoding="utf-8")
            return subprocess.CompletedProcess(command, 0, "", "")

        if step == "verify":
            public = json.loads(Path(command[-2]).read_text(encoding="utf-8"))
            if not isinstance(public, list):
                return subprocess.CompletedProcess(command, 1, "", "publicSignals must be an array\n")
            if self.verify_ok:
                return subprocess.CompletedProcess(command, 0, "[INFO]  snarkJS: OK!\n", "")
            return subprocess.CompletedProcess(command, 1, "", "[ERROR] snarkJS: Invalid proof\n")

        raise AssertionError(f"unexpected snarkjs command: {command}")


@pytest.fixture
def fake_snarkjs(monkeypatch, oracle) -> FakeSnarkjs:
    fake = FakeSnarkjs(oracle)
    monkeypatch.setattr(subprocess, "run", fake)
    return fake


@pytest.fixture
def raw_proof() -> dict:
    return proof_json()


@pytest.fixture
def toy_entry():
    """Factory for the single-width parameter list of width ``t``."""

    def _entry(t: int) -> list:
        return toy_poseidon_constants(widths=(t,))

    return _entry


@pytest.fixture
def engine(artifact_dir):
    from lineage_zk.snark.prover import ProofEngine

    resolver = ArtifactResolver([artifact_dir], root=artifact_dir)
    return ProofEngine(resolver, snarkjs=artifact_dir / "snarkjs", timeout=30)

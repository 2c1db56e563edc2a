"""CLI tests using click's runner; snarkjs is replaced by the shared stand-in."""

from __future__ import annotations

import json

import pytest
from click.testing import CliRunner

from lineage_zk import __version__, cli
from lineage_zk.identity.digest import to_hex32
from lineage_zk.identity.types import IdentityRecord
from lineage_zk.snark import assets

MINTER = "0x5aAeb6053F3E94C9b9A09f33669435E7Ef1BeAed"
STRONG = "Granite-Harbor 7 Violet^Lantern"


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture
def base_args(artifact_dir):
    return [
        "--artifacts-dir", str(artifact_dir),
        "--poseidon-constants", str(artifact_dir / "poseidon_constants.json"),
        "--snarkjs", str(artifact_dir / "snarkjs"),
    ]


def test_version(runner) -> None:
    result = runner.invoke(cli.main, ["--version"])
    assert result.exit_code == 0
    assert __version__ in result.output


class TestPassphraseStrength:
    def test_argument(self, runner):
        result = runner.invoke(cli.main, ["passphrase-strength", STRONG])
        assert result.exit_code == 0
        assert "Level:" in result.output
        assert "Entropy:" in result.output

    def test_prompt(self, runner):
        result = runner.invoke(cli.main, ["passphrase-strength"], input="password\n")
        assert result.exit_code == 0
        assert "weak" in result.output


class TestPersonHash:
    def test_prints_chain(self, runner, base_args, encoder):
        result = runner.invoke(
            cli.main,
            base_args + [
                "person-hash", "--fullname", "Alice Smith", "--passphrase", "pw",
                "--birth-year", "1990", "--birth-month", "5", "--birth-day", "17", "--gender", "2",
            ],
        )
        assert result.exit_code == 0, result.output
        chain = encoder.commit(
            IdentityRecord(full_name="Alice Smith", passphrase="pw", birth_year=1990,
                           birth_month=5, birth_day=17, gender=2)
        )
        assert to_hex32(chain.commitment) in result.output
        assert to_hex32(chain.person_hash) in result.output

    def test_range_error(self, runner, base_args):
        result = runner.invoke(cli.main, base_args + ["person-hash", "--fullname", "Alice", "--birth-month", "13"])
        assert result.exit_code == 1
        assert "birthMonth" in result.output

    def test_missing_constants(self, runner, tmp_path, monkeypatch):
        monkeypatch.delenv(assets.POSEIDON_CONSTANTS_ENV, raising=False)
        monkeypatch.chdir(tmp_path)
        result = runner.invoke(
            cli.main, ["--artifacts-dir", str(tmp_path / "empty"), "person-hash", "--fullname", "Alice"]
        )
        assert result.exit_code == 1
        assert "Unable to locate Poseidon constants" in result.output


class TestNameProof:
    def test_skip_proof_writes_input_only(self, runner, base_args, tmp_path, fake_snarkjs):
        out = tmp_path / "out"
        result = runner.invoke(
            cli.main,
            base_args + [
                "name-proof", "--fullname", "Alice Smith", "--passphrase", STRONG,
                "--minter", MINTER, "--output", str(out), "--skip-proof",
            ],
        )
        assert result.exit_code == 0, result.output
        witness = json.loads((out / "name_poseidon_input.json").read_text())
        assert witness["minter"] == str(int(MINTER, 16))
        assert fake_snarkjs.calls == []

    def test_proves_and_checks(self, runner, base_args, tmp_path, fake_snarkjs):
        out = tmp_path / "out"
        result = runner.invoke(
            cli.main,
            base_args + [
                "name-proof", "--fullname", "Alice Smith", "--passphrase", STRONG,
                "--minter", MINTER, "--output", str(out), "--check",
            ],
        )
        assert result.exit_code == 0, result.output
        assert "Public signals match" in result.output
        for name in ("input", "proof", "public"):
            assert (out / f"name_poseidon_{name}.json").is_file()
        args = json.loads(result.output.strip().splitlines()[-1])
        assert len(args["publicSignals"]) == 5
        assert args["publicSignals"][4] == str(int(MINTER, 16))

    def test_weak_passphrase_warns(self, runner, base_args, tmp_path):
        result = runner.invoke(
            cli.main,
            base_args + [
                "name-proof", "--fullname", "Alice", "--minter", "1",
                "--output", str(tmp_path), "--skip-proof",
            ],
        )
        assert result.exit_code == 0
        assert "Weak passphrase" in result.output

    def test_invalid_minter(self, runner, base_args, tmp_path):
        result = runner.invoke(
            cli.main,
            base_args + ["name-proof", "--fullname", "Alice", "--minter", "0xnope", "--output", str(tmp_path)],
        )
        assert result.exit_code == 1
        assert "minter" in result.output

    def test_prover_failure(self, runner, base_args, tmp_path, fake_snarkjs):
        fake_snarkjs.returncode = 1
        fake_snarkjs.stderr = "Error: Scalar size does not match"
        result = runner.invoke(
            cli.main,
            base_args + ["name-proof", "--fullname", "Alice", "--minter", "1", "--output", str(tmp_path)],
        )
        assert result.exit_code == 1
        assert "Scalar size does not match" in result.output


class TestPersonProof:
    def test_parent_flags(self, runner, base_args, tmp_path, fake_snarkjs):
        out = tmp_path / "out"
        result = runner.invoke(
            cli.main,
            base_args + [
                "person-proof", "--fullname", "Alice Smith", "--passphrase", STRONG,
                "--birth-year", "1990", "--gender", "2",
                "--father-fullname", "Bob Smith", "--father-birth-year", "1960",
                "--submitter", MINTER, "--output", str(out), "--check",
            ],
        )
        assert result.exit_code == 0, result.output
        witness = json.loads((out / "person_hash_input.json").read_text())
        assert witness["hasFather"] == 1
        assert witness["father_gender"] == 1
        assert witness["hasMother"] == 0
        public = json.loads((out / "person_hash_public.json").read_text())["publicSignals"]
        assert public[4:6] == ["0", "0"]


class TestCheckSignals:
    def _input(self, runner, base_args, tmp_path):
        runner.invoke(
            cli.main,
            base_args + [
                "person-proof", "--fullname", "Alice Smith", "--submitter", "7",
                "--output", str(tmp_path), "--skip-proof",
            ],
        )
        return tmp_path / "person_hash_input.json"

    def test_expected_only(self, runner, base_args, tmp_path, oracle):
        input_path = self._input(runner, base_args, tmp_path)
        result = runner.invoke(
            cli.main, base_args + ["check-signals", "--circuit", "person_hash", "--input", str(input_path)]
        )
        assert result.exit_code == 0, result.output
        expected = oracle.expected_person_signals(IdentityRecord(full_name="Alice Smith"), submitter=7)
        assert str(expected[0]) in result.output

    def test_matching_public_file(self, runner, base_args, tmp_path, oracle):
        input_path = self._input(runner, base_args, tmp_path)
        expected = oracle.expected_person_signals(IdentityRecord(full_name="Alice Smith"), submitter=7)
        public = tmp_path / "public.json"
        public.write_text(json.dumps({"publicSignals": [str(v) for v in expected]}))
        result = runner.invoke(
            cli.main,
            base_args + ["check-signals", "--circuit", "person_hash", "--input", str(input_path),
                         "--public", str(public)],
        )
        assert result.exit_code == 0, result.output
        assert "Public signals match" in result.output

    def test_mismatch(self, runner, base_args, tmp_path):
        input_path = self._input(runner, base_args, tmp_path)
        public = tmp_path / "public.json"
        public.write_text(json.dumps(["0"] * 6))
        result = runner.invoke(
            cli.main,
            base_args + ["check-signals", "--circuit", "person_hash", "--input", str(input_path),
                         "--public", str(public)],
        )
        assert result.exit_code == 1
        assert "do not match" in result.output
        assert "[6] expected=7 actual=None" in result.output

    def test_prove_with_submitter_override(self, runner, base_args, tmp_path, fake_snarkjs):
        input_path = self._input(runner, base_args, tmp_path)
        result = runner.invoke(
            cli.main,
            base_args + ["check-signals", "--circuit", "person_hash", "--input", str(input_path),
                         "--prove", "--submitter", MINTER],
        )
        assert result.exit_code == 0, result.output
        assert "Public signals match" in result.output
        assert str(int(MINTER, 16)) in result.output

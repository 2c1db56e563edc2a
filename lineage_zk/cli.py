"""
Command-line interface for lineage-zk.

Builds circuit inputs, generates Groth16 proofs through snarkjs and checks
public signals against an independent recomputation.
"""

import json
import logging
import sys
from pathlib import Path
from typing import Optional

import click

from lineage_zk import __version__
from lineage_zk.identity.commitment import CommitmentEncoder
from lineage_zk.identity.config import NAME_CIRCUIT, PERSON_CIRCUIT
from lineage_zk.identity.digest import to_hex32
from lineage_zk.identity.exceptions import LineageZKError, SignalMismatchError
from lineage_zk.identity.oracle import SignalOracle, assert_signals_match, signal_labels
from lineage_zk.identity.poseidon import poseidon_from_file
from lineage_zk.identity.strength import assess_passphrase
from lineage_zk.identity.types import IdentityRecord
from lineage_zk.identity.witness import (
    build_name_witness,
    build_person_witness,
    load_witness,
    normalize_submitter,
    parent_from_fields,
    write_witness,
)
from lineage_zk.snark.assets import ArtifactResolver
from lineage_zk.snark.proof import load_public_signals
from lineage_zk.snark.prover import ProofEngine


class _State:
    """Per-invocation settings shared by the subcommands."""

    def __init__(self, artifacts_dirs, poseidon_constants, snarkjs, timeout):
        self.resolver = ArtifactResolver(artifacts_dirs or None)
        self.poseidon_constants = poseidon_constants
        self.snarkjs = snarkjs
        self.timeout = timeout

    def encoder(self) -> CommitmentEncoder:
        path = self.resolver.resolve_poseidon_constants(self.poseidon_constants)
        return CommitmentEncoder(poseidon_from_file(path))

    def oracle(self) -> SignalOracle:
        return SignalOracle(self.encoder())

    def engine(self) -> ProofEngine:
        return ProofEngine(self.resolver, snarkjs=self.snarkjs, timeout=self.timeout)


def _fail(exc: Exception) -> None:
    click.echo(click.style(f"✗ Error: {exc}", fg="red"), err=True)
    sys.exit(1)


def _record_options(prefix: str = "", required: bool = True):
    """Identity flags; ``prefix`` is "father" or "mother" for parent records."""
    flag = f"--{prefix}-" if prefix else "--"
    dest = f"{prefix}_" if prefix else ""
    whose = f"{prefix.capitalize()}'s" if prefix else "Person's"
    options = [
        click.option(f"{flag}fullname", f"{dest}fullname", required=required, default=None,
                     help=f"{whose} full name" + ("" if required else " (omit for an absent parent)")),
        click.option(f"{flag}passphrase", f"{dest}passphrase", default="",
                     help=f"{whose} passphrase used as the name salt"),
        click.option(f"{flag}birth-year", f"{dest}birth_year", type=int, default=0,
                     help=f"{whose} birth year (0 = unknown)"),
        click.option(f"{flag}birth-month", f"{dest}birth_month", type=int, default=0,
                     help=f"{whose} birth month (0 = unknown)"),
        click.option(f"{flag}birth-day", f"{dest}birth_day", type=int, default=0,
                     help=f"{whose} birth day (0 = unknown)"),
        click.option(f"{flag}gender", f"{dest}gender", type=int, default=0,
                     help=f"{whose} gender code 0-3"),
        click.option(f"{flag}bc", f"{dest}bc", is_flag=True,
                     help=f"{whose} birth year is BC"),
    ]

    def decorator(func):
        for option in reversed(options):
            func = option(func)
        return func

    return decorator


def _record(fields: dict, prefix: str = "") -> IdentityRecord:
    dest = f"{prefix}_" if prefix else ""
    return IdentityRecord(
        full_name=fields[f"{dest}fullname"],
        passphrase=fields[f"{dest}passphrase"] or "",
        is_birth_bc=fields[f"{dest}bc"],
        birth_year=fields[f"{dest}birth_year"],
        birth_month=fields[f"{dest}birth_month"],
        birth_day=fields[f"{dest}birth_day"],
        gender=fields[f"{dest}gender"],
    )


def _parent(fields: dict, prefix: str):
    dest = f"{prefix}_"
    return parent_from_fields(
        full_name=fields[f"{dest}fullname"],
        passphrase=fields[f"{dest}passphrase"],
        is_birth_bc=fields[f"{dest}bc"],
        birth_year=fields[f"{dest}birth_year"],
        birth_month=fields[f"{dest}birth_month"],
        birth_day=fields[f"{dest}birth_day"],
        gender=fields[f"{dest}gender"],
    )


def _warn_passphrase(passphrase: str, who: str = "passphrase") -> None:
    strength = assess_passphrase(passphrase, include_recommendation=True)
    if not strength.is_strong:
        click.echo(
            click.style(f"⚠️  Weak {who} ({strength.level}). {strength.recommendation}", fg="yellow"),
            err=True,
        )


def _print_signals(circuit: str, signals) -> None:
    for label, value in zip(signal_labels(circuit), signals):
        click.echo(f"  {label:<11} {value}")


def _prove_and_write(state: _State, witness: dict, circuit: str, wasm, zkey, output, check: bool) -> None:
    engine = state.engine()
    click.echo(click.style(f"Generating {circuit} proof...", fg="cyan"))
    bundle = engine.prove(witness, circuit, wasm=wasm, zkey=zkey)
    written = bundle.write(output)

    click.echo(click.style("✓ Proof generated", fg="green"))
    for kind, path in written.items():
        click.echo(f"  {kind:<7} {path}")
    click.echo("Public signals:")
    _print_signals(circuit, bundle.public_signals)

    if check:
        expected = state.oracle().expected_signals_from_witness(witness, circuit)
        assert_signals_match(expected, bundle.public_signals)
        click.echo(click.style("✓ Public signals match the recomputed commitment", fg="green"))

    a, b, c, public = bundle.contract_args()
    click.echo("Contract arguments:")
    args = {
        "a": [str(v) for v in a],
        "b": [[str(v) for v in row] for row in b],
        "c": [str(v) for v in c],
        "publicSignals": [str(v) for v in public],
    }
    click.echo(json.dumps(args))


@click.group()
@click.version_option(version=__version__)
@click.option('--verbose', '-v', is_flag=True, help='Enable debug logging')
@click.option(
    '--artifacts-dir',
    'artifacts_dirs',
    multiple=True,
    type=click.Path(file_okay=False),
    help='Directory to search for circuit artifacts (repeatable)'
)
@click.option(
    '--poseidon-constants',
    type=click.Path(dir_okay=False),
    default=None,
    help='Poseidon constants JSON (default: LINEAGE_ZK_POSEIDON_CONSTANTS or the artifact dirs)'
)
@click.option('--snarkjs', type=click.Path(dir_okay=False), default=None, help='snarkjs executable')
@click.option('--timeout', type=float, default=None, help='Prover timeout in seconds')
@click.pass_context
def main(ctx, verbose, artifacts_dirs, poseidon_constants, snarkjs, timeout):
    """
    lineage-zk - identity commitments and Groth16 proofs

    Names, birth dates and passphrases stay local; only commitments and
    proofs are meant to leave this machine.
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    ctx.obj = _State(list(artifacts_dirs), poseidon_constants, snarkjs, timeout)


@main.command('name-proof')
@click.option('--fullname', required=True, help='Full name to commit to')
@click.option('--passphrase', default='', help='Passphrase used as the name salt')
@click.option('--minter', required=True, help='Minter address or decimal value')
@click.option('--wasm', type=click.Path(dir_okay=False), default=None, help='Circuit wasm override')
@click.option('--zkey', type=click.Path(dir_okay=False), default=None, help='Proving key override')
@click.option(
    '--output',
    type=click.Path(file_okay=False),
    default='.',
    help='Directory for the input, proof and public-signal files'
)
@click.option('--skip-proof', is_flag=True, help='Only write the circuit input')
@click.option('--check', is_flag=True, help='Recompute expected signals and compare after proving')
@click.pass_obj
def name_proof(state, fullname, passphrase, minter, wasm, zkey, output, skip_proof, check):
    """Prove a salted full-name commitment."""
    try:
        _warn_passphrase(passphrase)
        witness = build_name_witness(fullname, passphrase, minter)
        if skip_proof:
            path = write_witness(witness, Path(output) / f"{NAME_CIRCUIT}_input.json")
            click.echo(click.style(f"✓ Circuit input written to: {path}", fg="green"))
            return
        _prove_and_write(state, witness, NAME_CIRCUIT, wasm, zkey, output, check)
    except LineageZKError as e:
        _fail(e)


@main.command('person-proof')
@_record_options()
@_record_options("father", required=False)
@_record_options("mother", required=False)
@click.option('--submitter', required=True, help='Submitter address or decimal value')
@click.option('--wasm', type=click.Path(dir_okay=False), default=None, help='Circuit wasm override')
@click.option('--zkey', type=click.Path(dir_okay=False), default=None, help='Proving key override')
@click.option(
    '--output',
    type=click.Path(file_okay=False),
    default='.',
    help='Directory for the input, proof and public-signal files'
)
@click.option('--skip-proof', is_flag=True, help='Only write the circuit input')
@click.option('--check', is_flag=True, help='Recompute expected signals and compare after proving')
@click.pass_obj
def person_proof(state, submitter, wasm, zkey, output, skip_proof, check, **fields):
    """Prove a person commitment with optional parents."""
    try:
        person = _record(fields)
        _warn_passphrase(person.passphrase)
        witness = build_person_witness(
            person,
            _parent(fields, "father"),
            _parent(fields, "mother"),
            submitter,
        )
        if skip_proof:
            path = write_witness(witness, Path(output) / f"{PERSON_CIRCUIT}_input.json")
            click.echo(click.style(f"✓ Circuit input written to: {path}", fg="green"))
            return
        _prove_and_write(state, witness, PERSON_CIRCUIT, wasm, zkey, output, check)
    except LineageZKError as e:
        _fail(e)


@main.command('check-signals')
@click.option(
    '--circuit',
    type=click.Choice([NAME_CIRCUIT, PERSON_CIRCUIT]),
    required=True,
    help='Circuit the input belongs to'
)
@click.option('--input', 'input_path', type=click.Path(exists=True, dir_okay=False), required=True,
              help='Circuit input JSON')
@click.option('--public', 'public_path', type=click.Path(exists=True, dir_okay=False), default=None,
              help='Public signals JSON to compare against')
@click.option('--prove', is_flag=True, help='Generate a fresh proof and compare its signals')
@click.option('--wasm', type=click.Path(dir_okay=False), default=None, help='Circuit wasm override')
@click.option('--zkey', type=click.Path(dir_okay=False), default=None, help='Proving key override')
@click.option('--submitter', default=None, help='Override the submitter/minter in the input')
@click.pass_obj
def check_signals(state, circuit, input_path, public_path, prove, wasm, zkey, submitter):
    """Recompute expected public signals for a circuit input and compare."""
    try:
        witness = load_witness(input_path)
        if submitter is not None:
            key = "minter" if circuit == NAME_CIRCUIT else "submitter"
            witness[key] = str(normalize_submitter(submitter, key))

        expected = state.oracle().expected_signals_from_witness(witness, circuit)
        click.echo("Expected public signals:")
        _print_signals(circuit, expected)

        actual: Optional[list] = None
        if prove:
            actual = list(state.engine().prove(witness, circuit, wasm=wasm, zkey=zkey).public_signals)
        elif public_path is not None:
            actual = load_public_signals(public_path)
        if actual is None:
            return

        assert_signals_match(expected, actual)
        click.echo(click.style("✓ Public signals match", fg="green"))
    except SignalMismatchError as e:
        click.echo(click.style("✗ Public signals do not match", fg="red"), err=True)
        for mismatch in e.comparison.mismatches:
            click.echo(f"  [{mismatch.index}] expected={mismatch.expected} actual={mismatch.actual}", err=True)
        sys.exit(1)
    except LineageZKError as e:
        _fail(e)


@main.command('person-hash')
@_record_options()
@click.pass_obj
def person_hash_command(state, **fields):
    """Print the commitment chain and ledger person hash."""
    try:
        chain = state.encoder().commit(_record(fields))
    except LineageZKError as e:
        _fail(e)
        return

    limbs = chain.limbs
    click.echo(f"nameHash:          {to_hex32(chain.name_hash)}")
    click.echo(f"saltHash:          {to_hex32(chain.salt_hash)}")
    click.echo(f"saltedCommitment:  {to_hex32(chain.salted_commitment)}")
    click.echo(f"packedBirthData:   {chain.packed_birth_data}")
    click.echo(f"commitment:        {to_hex32(chain.commitment)}")
    click.echo(f"limbs:             hi={limbs.hi} lo={limbs.lo}")
    click.echo(click.style(f"personHash:        {to_hex32(chain.person_hash)}", bold=True))


@main.command('passphrase-strength')
@click.argument('passphrase', required=False)
def passphrase_strength(passphrase):
    """Estimate passphrase entropy (prompts when no argument is given)."""
    if passphrase is None:
        passphrase = click.prompt("Passphrase", hide_input=True, default="", show_default=False)
    strength = assess_passphrase(passphrase, include_recommendation=True)
    color = "green" if strength.is_strong else "yellow"
    click.echo(click.style(f"Level:   {strength.level}", fg=color, bold=True))
    click.echo(f"Entropy: {strength.entropy:.1f} bits (raw {strength.raw_entropy:.1f})")
    if strength.recommendation:
        click.echo(strength.recommendation)


if __name__ == '__main__':
    main()

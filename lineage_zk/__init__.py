"""
lineage-zk: commitments, witnesses and Groth16 proofs for on-chain lineage records.

Identity data (names, birth dates, passphrases) stays off-chain. What goes
on-chain is a Poseidon commitment to it plus a Groth16 proof that the
commitment was formed correctly.
"""

__version__ = "0.1.0"

"""
Custom exceptions for the identity commitment pipeline.

None of these are transient: every one of them reflects bad input or a
toolchain/artifact problem, so nothing in this package retries on them.
"""


class LineageZKError(Exception):
    """Base exception for lineage-zk errors."""

    pass


class ValidationError(LineageZKError, ValueError):
    """An identity field, submitter or witness value is malformed or out of range."""

    def __init__(self, field: str, message: str):
        self.field = field
        super().__init__(f"{field}: {message}")


class ConfigurationError(LineageZKError):
    """Configuration error (e.g. an unusable Poseidon parameter file)."""

    pass


class ArtifactNotFoundError(LineageZKError, FileNotFoundError):
    """A proving artifact could not be located."""

    def __init__(self, kind: str, checked):
        self.kind = kind
        self.checked = [str(path) for path in checked]
        listing = "\n".join(f"  - {path}" for path in self.checked) or "  (none)"
        super().__init__(f"Unable to locate {kind}. Checked paths:\n{listing}")


class ProofStructureError(LineageZKError):
    """The prover returned a malformed proof or public-signal vector."""

    pass


class ProverError(LineageZKError):
    """The external proving toolchain failed."""

    pass


class SignalMismatchError(LineageZKError):
    """Expected and actual public signals diverge."""

    def __init__(self, comparison):
        self.comparison = comparison
        lines = [
            f"  [{m.index}] expected={m.expected} actual={m.actual}"
            for m in comparison.mismatches
        ]
        super().__init__("Public signals do not match expected values:\n" + "\n".join(lines))

"""Run independent proving jobs concurrently."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import trio

from ..identity.exceptions import ValidationError
from .proof import ProofBundle
from .prover import ProofEngine, get_circuit

logger = logging.getLogger(__name__)

DEFAULT_MAX_CONCURRENCY = 2


@dataclass(frozen=True)
class ProofJob:
    """One witness to prove against one circuit."""

    witness: Dict[str, Any]
    circuit: str
    wasm: Optional[str | Path] = None
    zkey: Optional[str | Path] = None
    label: Optional[str] = None

    def describe(self, index: int) -> str:
        return self.label or f"{self.circuit}#{index}"


async def prove_all(
    engine: ProofEngine,
    jobs: Sequence[ProofJob],
    max_concurrency: int = DEFAULT_MAX_CONCURRENCY,
) -> List[ProofBundle]:
    """
    Prove every job on worker threads, at most ``max_concurrency`` at a time.

    Results come back in job order. The first failure cancels the jobs still
    waiting for a slot and is re-raised; jobs already inside snarkjs run to
    completion on their thread.
    """
    if max_concurrency < 1:
        raise ValidationError("max_concurrency", "must be at least 1")
    for job in jobs:
        get_circuit(job.circuit)

    limiter = trio.CapacityLimiter(max_concurrency)
    results: List[Optional[ProofBundle]] = [None] * len(jobs)
    failures: List[BaseException] = []

    async def _prove(index: int, job: ProofJob, cancel_scope: trio.CancelScope) -> None:
        def _work() -> ProofBundle:
            return engine.prove(job.witness, job.circuit, wasm=job.wasm, zkey=job.zkey)

        try:
            results[index] = await trio.to_thread.run_sync(_work, limiter=limiter)
        except Exception as exc:
            logger.warning("proof job %s failed: %s", job.describe(index), exc)
            if not failures:
                failures.append(exc)
            cancel_scope.cancel()
            return
        logger.info("proof job %s done", job.describe(index))

    async with trio.open_nursery() as nursery:
        for index, job in enumerate(jobs):
            nursery.start_soon(_prove, index, job, nursery.cancel_scope)

    if failures:
        raise failures[0]
    return [bundle for bundle in results if bundle is not None]


def prove_many(
    engine: ProofEngine,
    jobs: Sequence[ProofJob],
    max_concurrency: int = DEFAULT_MAX_CONCURRENCY,
) -> List[ProofBundle]:
    """Blocking wrapper around :func:`prove_all`."""
    return trio.run(prove_all, engine, list(jobs), max_concurrency)

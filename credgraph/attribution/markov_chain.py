"""Stationary distribution of a sparse Markov chain by power iteration."""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable, Sequence
from dataclasses import dataclass

import numpy as np
import scipy.sparse as sp

__all__ = [
    "DEFAULT_YIELD_AFTER_MS",
    "StationaryDistributionResult",
    "compute_delta",
    "find_stationary_distribution",
    "sparse_markov_chain_action",
    "sparse_markov_chain_from_transition_matrix",
    "uniform_distribution",
]

logger = logging.getLogger(__name__)

DEFAULT_YIELD_AFTER_MS = 30


@dataclass(frozen=True)
class StationaryDistributionResult:
    pi: np.ndarray
    # max |chain @ pi - pi| for the returned ``pi``
    convergence_delta: float
    iterations: int


def uniform_distribution(n: int) -> np.ndarray:
    if n <= 0:
        raise ValueError(f"Cannot create a uniform distribution over {n} elements")
    return np.full(n, 1.0 / n, dtype=np.float64)


def sparse_markov_chain_from_transition_matrix(matrix: Sequence[Sequence[float]]) -> sp.csr_matrix:
    """Build a chain from a dense row-stochastic matrix.

    ``matrix[i][j]`` is the probability of moving from state ``i`` to state
    ``j``; the result is transposed into the incoming-row layout used by the
    solver.

    Raises
    ------
    ValueError
        If the matrix is not square, has negative entries, or a row does not
        sum to 1 (within 1e-9).

    """
    dense = np.asarray(matrix, dtype=np.float64)
    if dense.ndim != 2 or dense.shape[0] != dense.shape[1]:
        raise ValueError(f"expected a square matrix, got shape {dense.shape}")
    if (dense < 0).any():
        raise ValueError("transition probabilities must be non-negative")
    row_sums = dense.sum(axis=1)
    bad = np.flatnonzero(np.abs(row_sums - 1.0) > 1e-9)
    if bad.size:
        raise ValueError(f"row {int(bad[0])} sums to {row_sums[bad[0]]}, expected 1")
    return sp.csr_matrix(dense.T)


def sparse_markov_chain_action(chain: sp.csr_matrix, pi: np.ndarray) -> np.ndarray:
    """One transition step: ``out[j] = sum_i chain[j, i] * pi[i]``."""
    return chain @ pi


def compute_delta(pi0: np.ndarray, pi1: np.ndarray) -> float:
    """Max-abs (L-infinity) distance between two distributions."""
    if pi0.shape != pi1.shape:
        raise ValueError(f"shape mismatch: {pi0.shape} vs {pi1.shape}")
    if pi0.size == 0:
        return 0.0
    return float(np.max(np.abs(pi1 - pi0)))


async def find_stationary_distribution(
    chain: sp.csr_matrix,
    *,
    convergence_threshold: float,
    max_iterations: int,
    yield_after_ms: float = DEFAULT_YIELD_AFTER_MS,
    verbose: bool = False,
    on_yield: Callable[[], None] | None = None,
) -> StationaryDistributionResult:
    """Power iteration from the uniform distribution.

    Parameters
    ----------
    chain : scipy.sparse.csr_matrix
        Square chain in incoming-row layout (``chain[dst, src]``).
    convergence_threshold : float
        Stop once ``max|chain @ pi - pi| <= convergence_threshold``.
    max_iterations : int
        Maximum number of transition steps applied to the starting
        distribution. ``0`` returns the uniform distribution.
    yield_after_ms : float, default 30
        Wall-clock interval after which control is handed back to the event
        loop. Yielding has no effect on the numbers computed.
    verbose : bool, default False
        Log the delta of every iteration at INFO.
    on_yield : callable, optional
        Called after every yield; may raise to abort the computation.

    Returns
    -------
    StationaryDistributionResult
        The last distribution, its residual delta, and the number of steps
        applied. Hitting ``max_iterations`` is not an error: the delta may
        then exceed the threshold.

    Notes
    -----
    The distribution is never renormalized; floating error from the
    mat-vec products is left in place.

    """
    n, m = chain.shape
    if n != m:
        raise ValueError(f"chain must be square, got shape {chain.shape}")
    if max_iterations < 0:
        raise ValueError(f"max_iterations must be >= 0, got {max_iterations}")
    if convergence_threshold < 0:
        raise ValueError(f"convergence_threshold must be >= 0, got {convergence_threshold}")

    pi = uniform_distribution(n)
    iteration = 0
    yield_after_s = yield_after_ms / 1000.0
    start = time.monotonic()
    while True:
        pi_next = sparse_markov_chain_action(chain, pi)
        delta = compute_delta(pi, pi_next)
        if verbose:
            logger.info("[%d] delta = %g", iteration, delta)
        if delta <= convergence_threshold or iteration >= max_iterations:
            logger.debug(
                "stationary distribution: %d nodes, %d iterations, delta=%g (threshold %g)",
                n, iteration, delta, convergence_threshold,
            )
            return StationaryDistributionResult(pi=pi, convergence_delta=delta, iterations=iteration)
        pi = pi_next
        iteration += 1
        if time.monotonic() - start >= yield_after_s:
            await asyncio.sleep(0)
            if on_yield is not None:
                on_yield()
            start = time.monotonic()

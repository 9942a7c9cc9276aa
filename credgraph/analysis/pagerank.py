from __future__ import annotations

import logging
import warnings
from dataclasses import dataclass, replace

from ..attribution.graph_to_markov_chain import DEFAULT_SYNTHETIC_LOOP_WEIGHT, as_edge_evaluator
from ..attribution.markov_chain import DEFAULT_YIELD_AFTER_MS
from ..core.address import NodeAddress
from ..core.graph import Graph
from ..core.scored_graph import DEFAULT_CONVERGENCE_THRESHOLD, DEFAULT_MAX_ITERATIONS, ScoredGraph
from .decomposition import NodeDecomposition, decompose
from .node_score import score_by_constant_total

__all__ = ["PagerankOptions", "PagerankResult", "pagerank"]

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PagerankOptions:
    self_loop_weight: float = DEFAULT_SYNTHETIC_LOOP_WEIGHT
    convergence_threshold: float = DEFAULT_CONVERGENCE_THRESHOLD
    max_iterations: int = DEFAULT_MAX_ITERATIONS
    # Scores are normalized so that the nodes matching the prefix sum to total_score
    total_score: float = 1000.0
    total_score_node_prefix: str = NodeAddress.empty
    yield_after_ms: float = DEFAULT_YIELD_AFTER_MS
    verbose: bool = False

    def with_overrides(self, **overrides) -> PagerankOptions:
        """Copy with the given fields replaced; ``None`` values are ignored."""
        return replace(self, **{k: v for k, v in overrides.items() if v is not None})


@dataclass(frozen=True)
class PagerankResult:
    scored_graph: ScoredGraph
    node_scores: dict[str, float]
    decomposition: dict[str, NodeDecomposition]
    convergence_delta: float


async def pagerank(graph: Graph, evaluator, options: PagerankOptions | None = None) -> PagerankResult:
    """Score every node of ``graph`` and explain the scores.

    Parameters
    ----------
    graph : Graph
        Non-empty graph.
    evaluator : EdgeEvaluator or callable
        Edge weighting policy.
    options : PagerankOptions, optional

    Returns
    -------
    PagerankResult
        The converged ScoredGraph, the normalized node scores, and the
        decomposition expressed in the same normalized units.

    """
    options = options or PagerankOptions()
    logger.debug(
        "pagerank: %d nodes, %d edges, options=%s",
        graph.number_of_nodes(), graph.number_of_edges(), options,
    )
    scored = ScoredGraph(graph, as_edge_evaluator(evaluator), options.self_loop_weight)
    report = await scored.run_pagerank(
        options.max_iterations,
        options.convergence_threshold,
        yield_after_ms=options.yield_after_ms,
        verbose=options.verbose,
    )
    if report.convergence_delta > options.convergence_threshold:
        warnings.warn(
            f"PageRank stopped after {report.iterations} iterations with delta "
            f"{report.convergence_delta:g} above threshold {options.convergence_threshold:g}",
            stacklevel=2,
        )
    pi = {node: score for node, score in scored.nodes()}
    node_scores = score_by_constant_total(pi, options.total_score, options.total_score_node_prefix)
    matching = sum(p for node, p in pi.items() if node.startswith(options.total_score_node_prefix))
    unit_score = options.total_score / matching
    return PagerankResult(
        scored_graph=scored,
        node_scores=node_scores,
        decomposition=decompose(scored, unit_score),
        convergence_delta=report.convergence_delta,
    )

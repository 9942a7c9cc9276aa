from __future__ import annotations

import logging
import math
from collections.abc import Iterator, Mapping
from typing import NamedTuple

from ..attribution.graph_to_markov_chain import (
    DEFAULT_SYNTHETIC_LOOP_WEIGHT,
    EdgeWeight,
    FunctionEdgeEvaluator,
    WeightedGraph,
    as_edge_evaluator,
    create_connections,
    create_ordered_sparse_markov_chain,
    create_weighted_graph,
    distribution_to_node_distribution,
    total_out_weights,
    validate_edge_weight,
    validate_synthetic_loop_weight,
)
from ..attribution.markov_chain import DEFAULT_YIELD_AFTER_MS, find_stationary_distribution
from ..utils.validation import from_compat, to_compat
from .address import EdgeAddress, NodeAddress
from .graph import Edge, Graph
from .structure import Direction

__all__ = [
    "COMPAT_INFO",
    "DEFAULT_CONVERGENCE_THRESHOLD",
    "DEFAULT_MAX_ITERATIONS",
    "GraphModifiedError",
    "PagerankConvergenceReport",
    "ScoredGraph",
    "ScoredNeighbor",
    "ScoredNode",
    "WeightedEdge",
]

logger = logging.getLogger(__name__)

COMPAT_INFO = {"type": "credgraph/scoredGraph", "version": "0.1.0"}

DEFAULT_MAX_ITERATIONS = 255
DEFAULT_CONVERGENCE_THRESHOLD = 1e-7


class GraphModifiedError(RuntimeError):
    """The graph behind a ScoredGraph changed after the view was built."""


class ScoredNode(NamedTuple):
    node: str
    score: float


class WeightedEdge(NamedTuple):
    edge: Edge
    weight: EdgeWeight


class ScoredNeighbor(NamedTuple):
    scored_node: ScoredNode
    weighted_edge: WeightedEdge
    # part of the target's score that flowed in from this neighbor via this edge
    score_contribution: float


class PagerankConvergenceReport(NamedTuple):
    convergence_delta: float
    iterations: int


class ScoredGraph:
    """A graph decorated with edge weights and PageRank scores.

    The view reads the graph it was given and records its modification
    count. Any later call to a mutator of that graph, by its owner or through
    ``graph()``, invalidates the view for good: every subsequent call raises
    ``GraphModifiedError``, and so does a ``run_pagerank`` still in flight.

    Scores start as the uniform distribution and are replaced by
    ``run_pagerank``.

    Parameters
    ----------
    graph : Graph
        Non-empty graph. It is not copied; do not mutate it while the view
        is in use.
    edge_evaluator : EdgeEvaluator or callable
        Evaluated once per edge at construction.
    synthetic_loop_weight : float, default 1e-3
        Weight of the self-loop added to every node; must be positive.

    Raises
    ------
    ValueError
        If the graph is empty or a weight is invalid.

    """

    def __init__(self, graph: Graph, edge_evaluator, synthetic_loop_weight: float = DEFAULT_SYNTHETIC_LOOP_WEIGHT):
        if not isinstance(graph, Graph):
            raise TypeError(f"expected Graph, got {type(graph).__name__}")
        if graph.number_of_nodes() == 0:
            raise ValueError("Cannot construct ScoredGraph with empty graph")
        weighted = create_weighted_graph(graph, as_edge_evaluator(edge_evaluator), synthetic_loop_weight)
        n = graph.number_of_nodes()
        self._initialize(weighted, {node: 1.0 / n for node in graph.nodes()})

    @classmethod
    def _from_parts(
        cls,
        graph: Graph,
        edge_weights: Mapping[str, EdgeWeight],
        synthetic_loop_weight: float,
        scores: Mapping[str, float],
    ) -> ScoredGraph:
        """Build from raw fields, deriving caches exactly as ``__init__`` does."""
        if graph.number_of_nodes() == 0:
            raise ValueError("Cannot construct ScoredGraph with empty graph")
        weighted = WeightedGraph(
            graph,
            {address: validate_edge_weight(w) for address, w in edge_weights.items()},
            validate_synthetic_loop_weight(synthetic_loop_weight),
        )
        self = cls.__new__(cls)
        self._initialize(weighted, scores)
        return self

    def _initialize(self, weighted: WeightedGraph, scores: Mapping[str, float]) -> None:
        graph = weighted.graph
        if set(weighted.edge_weights) != {e.address for e in graph.edges()}:
            raise ValueError("edge weights must cover exactly the edges of the graph")
        if set(scores) != set(graph.nodes()):
            raise ValueError("scores must cover exactly the nodes of the graph")
        for node, score in scores.items():
            if isinstance(score, bool) or not isinstance(score, (int, float)):
                raise ValueError(f"score of {NodeAddress.to_string(node)} must be a number, got {score!r}")
            if not (math.isfinite(score) and 0 <= score <= 1):
                raise ValueError(f"score of {NodeAddress.to_string(node)} must be in [0, 1], got {score!r}")
        self._graph = graph
        self._weighted = weighted
        self._synthetic_loop_weight = weighted.synthetic_loop_weight
        self._edge_weights = dict(weighted.edge_weights)
        self._scores = {node: float(score) for node, score in scores.items()}
        self._total_out_weight = total_out_weights(weighted)
        self._graph_modification_count = graph.modification_count()
        # evaluator reading back the stored weights; never re-evaluates policy
        self._edge_evaluator = FunctionEdgeEvaluator(lambda edge: self._edge_weights[edge.address])

    def __repr__(self) -> str:
        return (
            f"<ScoredGraph | N={self._graph.number_of_nodes()} · E={self._graph.number_of_edges()} · "
            f"loop={self._synthetic_loop_weight}>"
        )

    # Modification check

    def _verify_graph_not_modified(self) -> None:
        if self._graph.modified_since(self._graph_modification_count):
            raise GraphModifiedError("underlying Graph has been modified")

    def _verify_node_exists(self, node: str) -> None:
        if not self._graph.has_node(node):
            raise KeyError(f"non-existent node: {NodeAddress.to_string(node)}")

    # Accessors

    def graph(self) -> Graph:
        """The graph behind this view. Mutating it discards the view."""
        return self._graph

    def synthetic_loop_weight(self) -> float:
        return self._synthetic_loop_weight

    def edge_evaluator(self):
        return self._edge_evaluator

    def node(self, node: str) -> ScoredNode | None:
        self._verify_graph_not_modified()
        if self._graph.node(node) is None:
            return None
        return ScoredNode(node, self._scores[node])

    def nodes(self, prefix: str = NodeAddress.empty) -> Iterator[ScoredNode]:
        self._verify_graph_not_modified()
        scores = self._scores
        return (ScoredNode(node, scores[node]) for node in self._graph.nodes(prefix))

    def edge(self, address: str) -> WeightedEdge | None:
        self._verify_graph_not_modified()
        edge = self._graph.edge(address)
        if edge is None:
            return None
        return WeightedEdge(edge, self._edge_weights[address])

    def edges(
        self,
        address_prefix: str = EdgeAddress.empty,
        src_prefix: str = NodeAddress.empty,
        dst_prefix: str = NodeAddress.empty,
    ) -> Iterator[WeightedEdge]:
        self._verify_graph_not_modified()
        weights = self._edge_weights
        return (
            WeightedEdge(edge, weights[edge.address])
            for edge in self._graph.edges(address_prefix, src_prefix, dst_prefix)
        )

    def total_out_weight(self, node: str) -> float:
        """Loop weight plus all flow leaving ``node``.

        Raises
        ------
        GraphModifiedError
        KeyError
            If ``node`` is not in the graph.

        """
        self._verify_graph_not_modified()
        self._verify_node_exists(node)
        return self._total_out_weight[node]

    def synthetic_loop_score_contribution(self, node: str) -> float:
        """Part of ``node``'s score that flowed in through its own synthetic loop."""
        self._verify_graph_not_modified()
        self._verify_node_exists(node)
        return self._scores[node] * self._synthetic_loop_weight / self._total_out_weight[node]

    def neighbors(
        self,
        node: str,
        direction: Direction = Direction.ANY,
        node_prefix: str = NodeAddress.empty,
        edge_prefix: str = EdgeAddress.empty,
    ) -> Iterator[ScoredNeighbor]:
        """``Graph.neighbors`` decorated with scores, weights and score contributions.

        The contribution of neighbor ``n`` via edge ``e`` is
        ``score(n) * raw_weight / total_out_weight(n)``, where ``raw_weight``
        adds ``to_weight`` if ``e.dst == node`` and ``fro_weight`` if
        ``e.src == node`` (both for a loop on ``node``).

        Summed over ``Direction.ANY`` with no filters, plus
        ``synthetic_loop_score_contribution(node)``, the contributions give
        back ``node``'s score.

        Raises
        ------
        GraphModifiedError
        KeyError
            If ``node`` is not in the graph.

        """
        self._verify_graph_not_modified()
        self._verify_node_exists(node)
        neighbors = list(self._graph.neighbors(node, direction, node_prefix, edge_prefix))
        scores = self._scores
        weights = self._edge_weights
        out_weights = self._total_out_weight

        def _iter():
            for neighbor, edge in neighbors:
                weight = weights[edge.address]
                raw_weight = 0.0
                if edge.dst == node:
                    raw_weight += weight.to_weight
                if edge.src == node:
                    raw_weight += weight.fro_weight
                score = scores[neighbor]
                yield ScoredNeighbor(
                    ScoredNode(neighbor, score),
                    WeightedEdge(edge, weight),
                    score * raw_weight / out_weights[neighbor],
                )

        return _iter()

    # Computation

    async def run_pagerank(
        self,
        max_iterations: int = DEFAULT_MAX_ITERATIONS,
        convergence_threshold: float = DEFAULT_CONVERGENCE_THRESHOLD,
        *,
        yield_after_ms: float = DEFAULT_YIELD_AFTER_MS,
        verbose: bool = False,
    ) -> PagerankConvergenceReport:
        """Recompute scores as the stationary distribution of the weighted graph.

        The scores are replaced only if the computation completes and the
        graph is still unmodified.

        Returns
        -------
        PagerankConvergenceReport
            ``convergence_delta`` may exceed ``convergence_threshold`` when
            ``max_iterations`` was reached first.

        Raises
        ------
        GraphModifiedError
            If the graph is modified before or during the run.

        """
        self._verify_graph_not_modified()
        connections = create_connections(self._weighted, self._total_out_weight)
        osmc = create_ordered_sparse_markov_chain(connections)
        result = await find_stationary_distribution(
            osmc.chain,
            convergence_threshold=convergence_threshold,
            max_iterations=max_iterations,
            yield_after_ms=yield_after_ms,
            verbose=verbose,
            on_yield=self._verify_graph_not_modified,
        )
        self._verify_graph_not_modified()
        self._scores = distribution_to_node_distribution(osmc.node_order, result.pi)
        logger.debug(
            "pagerank over %d nodes finished after %d iterations (delta=%g)",
            len(osmc.node_order), result.iterations, result.convergence_delta,
        )
        return PagerankConvergenceReport(result.convergence_delta, result.iterations)

    # Equality / serialization

    def equals(self, other: ScoredGraph) -> bool:
        """Exact equality of loop weight, graph, edge weights and scores.

        Raises
        ------
        TypeError
            If ``other`` is not a ScoredGraph.
        GraphModifiedError
            If either graph was modified.

        """
        if not isinstance(other, ScoredGraph):
            raise TypeError(f"Expected ScoredGraph, got {type(other).__name__}")
        self._verify_graph_not_modified()
        other._verify_graph_not_modified()
        return (
            self._synthetic_loop_weight == other._synthetic_loop_weight
            and self._graph == other._graph
            and self._edge_weights == other._edge_weights
            and self._scores == other._scores
        )

    def __eq__(self, other) -> bool:
        if not isinstance(other, ScoredGraph):
            return NotImplemented
        return self.equals(other)

    __hash__ = None

    def to_json(self) -> list:
        """Canonical JSON-compatible representation.

        Scores and weights are stored as arrays aligned with the node and
        edge order of the embedded graph JSON (sorted by address).
        """
        self._verify_graph_not_modified()
        nodes = sorted(self._graph.nodes())
        edges = sorted(self._edge_weights)
        return to_compat(
            COMPAT_INFO,
            {
                "graphJSON": self._graph.to_json(),
                "scores": [self._scores[n] for n in nodes],
                "toWeights": [self._edge_weights[a].to_weight for a in edges],
                "froWeights": [self._edge_weights[a].fro_weight for a in edges],
                "syntheticLoopWeight": self._synthetic_loop_weight,
            },
        )

    @classmethod
    def from_json(cls, obj) -> ScoredGraph:
        payload = from_compat(COMPAT_INFO, obj)
        graph = Graph.from_json(payload["graphJSON"])
        nodes = sorted(graph.nodes())
        edges = sorted(e.address for e in graph.edges())
        scores, to_weights, fro_weights = payload["scores"], payload["toWeights"], payload["froWeights"]
        if len(scores) != len(nodes):
            raise ValueError(f"expected {len(nodes)} scores, got {len(scores)}")
        if len(to_weights) != len(edges) or len(fro_weights) != len(edges):
            raise ValueError(f"expected {len(edges)} edge weights")
        edge_weights = {a: EdgeWeight(t, f) for a, t, f in zip(edges, to_weights, fro_weights)}
        return cls._from_parts(graph, edge_weights, payload["syntheticLoopWeight"], dict(zip(nodes, scores)))

"""Explain each node's score as a sum of contributions.

A node's score is the flow it receives in one transition step from the
stationary distribution: through its own synthetic loop, and from each
neighbor across each incident edge. ``decompose`` lists those parts, largest
first.
"""

from __future__ import annotations

from typing import NamedTuple

from ..attribution.graph_to_markov_chain import AdjacencyType
from ..core.address import EdgeAddress, NodeAddress
from ..core.graph import Edge
from ..core.scored_graph import ScoredGraph
from ..core.structure import Direction
from ..utils.validation import to_compat

__all__ = [
    "COMPAT_INFO",
    "NodeDecomposition",
    "ScoreContribution",
    "decompose",
    "to_json",
]

COMPAT_INFO = {"type": "credgraph/pagerankNodeDecomposition", "version": "0.1.0"}

_KIND_ORDER = {AdjacencyType.SYNTHETIC_LOOP: 0, AdjacencyType.IN_EDGE: 1, AdjacencyType.OUT_EDGE: 2}


class ScoreContribution(NamedTuple):
    kind: AdjacencyType
    source: str
    edge: Edge | None
    # transition probability from ``source`` into the target along this connection
    weight: float
    contribution: float


class NodeDecomposition(NamedTuple):
    score: float
    contributions: tuple[ScoreContribution, ...]


def _sort_key(c: ScoreContribution):
    return (-c.contribution, _KIND_ORDER[c.kind], c.edge.address if c.edge is not None else "")


def decompose(scored_graph: ScoredGraph, unit_score: float = 1.0) -> dict[str, NodeDecomposition]:
    """Per-node breakdown of scores, in canonical node order.

    Parameters
    ----------
    scored_graph : ScoredGraph
        Usually after ``run_pagerank``; the breakdown is exact only at a
        stationary distribution.
    unit_score : float, default 1.0
        Factor applied to scores and contributions alike, e.g. the factor
        used by ``score_by_constant_total``.

    Returns
    -------
    dict[str, NodeDecomposition]
        Contributions of each node ordered by size (descending), ties broken
        by kind then edge address.

    """
    result = {}
    for node in sorted(n.node for n in scored_graph.nodes()):
        scored = scored_graph.node(node)
        out_weight = scored_graph.total_out_weight(node)
        contributions = [
            ScoreContribution(
                AdjacencyType.SYNTHETIC_LOOP,
                node,
                None,
                scored_graph.synthetic_loop_weight() / out_weight,
                scored_graph.synthetic_loop_score_contribution(node) * unit_score,
            )
        ]
        for neighbor in scored_graph.neighbors(node, Direction.ANY):
            edge, weight = neighbor.weighted_edge
            source = neighbor.scored_node.node
            raw_weight = (weight.to_weight if edge.dst == node else 0.0) + (
                weight.fro_weight if edge.src == node else 0.0
            )
            kind = AdjacencyType.IN_EDGE if edge.dst == node else AdjacencyType.OUT_EDGE
            contributions.append(
                ScoreContribution(
                    kind,
                    source,
                    edge,
                    raw_weight / scored_graph.total_out_weight(source),
                    neighbor.score_contribution * unit_score,
                )
            )
        contributions.sort(key=_sort_key)
        result[node] = NodeDecomposition(scored.score * unit_score, tuple(contributions))
    return result


def to_json(decomposition: dict[str, NodeDecomposition]) -> list:
    """Canonical JSON-compatible form, keyed by node address parts order."""
    nodes = []
    for node in sorted(decomposition):
        d = decomposition[node]
        nodes.append(
            {
                "node": NodeAddress.to_parts(node),
                "score": d.score,
                "contributions": [
                    {
                        "kind": c.kind.value,
                        "source": NodeAddress.to_parts(c.source),
                        "edge": EdgeAddress.to_parts(c.edge.address) if c.edge is not None else None,
                        "weight": c.weight,
                        "contribution": c.contribution,
                    }
                    for c in d.contributions
                ],
            }
        )
    return to_compat(COMPAT_INFO, nodes)

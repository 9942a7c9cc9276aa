from __future__ import annotations

import math
from collections.abc import Mapping

from ..core.address import NodeAddress

__all__ = ["score_by_constant_total", "score_by_maximum_probability"]


def score_by_maximum_probability(pi: Mapping[str, float], max_score: float) -> dict[str, float]:
    """Scale a node distribution so the highest-probability node scores ``max_score``."""
    if not (max_score > 0 and math.isfinite(max_score)):
        raise ValueError(f"Invalid argument: max_score must be > 0, got {max_score!r}")
    max_probability = max(pi.values(), default=0.0)
    if max_probability <= 0:
        raise ValueError("Invalid distribution: no node has positive probability")
    unit_score = max_score / max_probability
    return {node: p * unit_score for node, p in pi.items()}


def score_by_constant_total(
    pi: Mapping[str, float],
    total_score: float,
    node_prefix: str = NodeAddress.empty,
) -> dict[str, float]:
    """Scale a node distribution so the nodes matching ``node_prefix`` sum to ``total_score``.

    Every node is scaled by the same factor, including those outside the
    prefix.

    Raises
    ------
    ValueError
        If ``total_score`` is not positive, or the matching nodes have no
        probability mass.

    """
    if not (total_score > 0 and math.isfinite(total_score)):
        raise ValueError(f"Invalid argument: total_score must be > 0, got {total_score!r}")
    NodeAddress.assert_valid(node_prefix, what="node_prefix")
    total_probability = sum(p for node, p in pi.items() if node.startswith(node_prefix))
    if total_probability == 0:
        raise ValueError("Tried to normalize based on nodes with no score")
    unit_score = total_score / total_probability
    return {node: p * unit_score for node, p in pi.items()}

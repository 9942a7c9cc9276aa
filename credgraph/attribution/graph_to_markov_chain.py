"""Turn a graph and an edge evaluator into a sparse Markov chain.

Every node gets a synthetic self-loop of weight ``synthetic_loop_weight``.
Each edge carries flow ``to_weight`` from ``src`` to ``dst`` and
``fro_weight`` from ``dst`` back to ``src``. A node's total out-weight is
the loop weight plus all flow leaving it; transition probabilities are the
flows divided by the out-weight of their source.
"""

from __future__ import annotations

import math
from abc import ABC, abstractmethod
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass
from enum import Enum
from typing import NamedTuple

import numpy as np
import scipy.sparse as sp

from ..core.address import NodeAddress
from ..core.graph import Edge, Graph, edge_to_string

__all__ = [
    "DEFAULT_SYNTHETIC_LOOP_WEIGHT",
    "AdjacencyType",
    "ConstantEdgeEvaluator",
    "Connection",
    "EdgeEvaluator",
    "EdgeWeight",
    "FunctionEdgeEvaluator",
    "OrderedSparseMarkovChain",
    "WeightedGraph",
    "adjacency_source",
    "as_edge_evaluator",
    "create_connections",
    "create_ordered_sparse_markov_chain",
    "create_weighted_graph",
    "distribution_to_node_distribution",
    "total_out_weights",
    "validate_edge_weight",
    "validate_synthetic_loop_weight",
]

DEFAULT_SYNTHETIC_LOOP_WEIGHT = 1e-3


class EdgeWeight(NamedTuple):
    to_weight: float
    fro_weight: float


def validate_edge_weight(weight, edge: Edge | None = None) -> EdgeWeight:
    """Coerce ``weight`` to ``EdgeWeight`` and check both halves are finite and >= 0.

    Accepts an ``EdgeWeight`` (or any object with ``to_weight`` /
    ``fro_weight``), a ``(to, fro)`` pair, or a mapping with
    ``toWeight``/``froWeight`` keys.
    """
    where = f" for edge {edge_to_string(edge)}" if edge is not None else ""
    if isinstance(weight, Mapping):
        try:
            to_w, fro_w = weight["toWeight"], weight["froWeight"]
        except KeyError as e:
            raise ValueError(f"edge weight mapping is missing {e.args[0]!r}{where}") from None
    elif hasattr(weight, "to_weight") and hasattr(weight, "fro_weight"):
        to_w, fro_w = weight.to_weight, weight.fro_weight
    elif isinstance(weight, tuple) and len(weight) == 2:
        to_w, fro_w = weight
    else:
        raise TypeError(f"expected EdgeWeight, got {type(weight).__name__}{where}")
    for label, w in (("to_weight", to_w), ("fro_weight", fro_w)):
        if isinstance(w, bool) or not isinstance(w, (int, float, np.number)):
            raise TypeError(f"{label} must be numeric, got {type(w).__name__}{where}")
        if not math.isfinite(w) or w < 0:
            raise ValueError(f"{label} must be finite and non-negative, got {w!r}{where}")
    return EdgeWeight(float(to_w), float(fro_w))


def validate_synthetic_loop_weight(weight) -> float:
    if isinstance(weight, bool) or not isinstance(weight, (int, float, np.number)):
        raise TypeError(f"synthetic loop weight must be numeric, got {type(weight).__name__}")
    if not math.isfinite(weight) or weight <= 0:
        raise ValueError(f"synthetic loop weight must be finite and positive, got {weight!r}")
    return float(weight)


class EdgeEvaluator(ABC):
    """Weighting policy: maps each edge to its ``EdgeWeight``.

    Implementations must be pure: the same edge always gets the same weight.
    """

    @abstractmethod
    def evaluate(self, edge: Edge) -> EdgeWeight:
        pass

    def __call__(self, edge: Edge) -> EdgeWeight:
        return self.evaluate(edge)


class FunctionEdgeEvaluator(EdgeEvaluator):
    """Adapts a plain ``(Edge) -> weight`` callable."""

    def __init__(self, fn: Callable[[Edge], object]):
        self._fn = fn

    def evaluate(self, edge: Edge) -> EdgeWeight:
        return validate_edge_weight(self._fn(edge), edge)


class ConstantEdgeEvaluator(EdgeEvaluator):
    def __init__(self, to_weight: float = 1.0, fro_weight: float = 0.0):
        self.weight = validate_edge_weight(EdgeWeight(to_weight, fro_weight))

    def evaluate(self, edge: Edge) -> EdgeWeight:
        return self.weight

    def __repr__(self) -> str:
        return f"ConstantEdgeEvaluator(to_weight={self.weight.to_weight}, fro_weight={self.weight.fro_weight})"


def as_edge_evaluator(evaluator) -> EdgeEvaluator:
    if isinstance(evaluator, EdgeEvaluator):
        return evaluator
    if callable(evaluator):
        return FunctionEdgeEvaluator(evaluator)
    raise TypeError(f"expected EdgeEvaluator or callable, got {type(evaluator).__name__}")


@dataclass(frozen=True)
class WeightedGraph:
    graph: Graph
    edge_weights: Mapping[str, EdgeWeight]  # edge address -> weight
    synthetic_loop_weight: float


def create_weighted_graph(
    graph: Graph,
    evaluator,
    synthetic_loop_weight: float = DEFAULT_SYNTHETIC_LOOP_WEIGHT,
) -> WeightedGraph:
    """Evaluate every edge of ``graph`` once.

    Raises
    ------
    ValueError
        If the evaluator returns a negative or non-finite weight, or the
        loop weight is not positive.

    """
    evaluator = as_edge_evaluator(evaluator)
    loop_weight = validate_synthetic_loop_weight(synthetic_loop_weight)
    edge_weights = {}
    for edge in graph.edges():
        edge_weights[edge.address] = validate_edge_weight(evaluator.evaluate(edge), edge)
    return WeightedGraph(graph, edge_weights, loop_weight)


def total_out_weights(wg: WeightedGraph) -> dict[str, float]:
    """Total out-weight of every node: loop weight plus all flow leaving it.

    Edges are visited in address order so the sums do not depend on the
    graph's mutation history.
    """
    out = {node: wg.synthetic_loop_weight for node in sorted(wg.graph.nodes())}
    for edge in sorted(wg.graph.edges(), key=lambda e: e.address):
        weight = wg.edge_weights[edge.address]
        out[edge.src] += weight.to_weight
        out[edge.dst] += weight.fro_weight
    return out


class AdjacencyType(str, Enum):
    SYNTHETIC_LOOP = "SYNTHETIC_LOOP"
    IN_EDGE = "IN_EDGE"
    OUT_EDGE = "OUT_EDGE"


class Connection(NamedTuple):
    """One source of probability flowing into a target node.

    ``weight`` is normalized by the total out-weight of the source.
    """

    adjacency: AdjacencyType
    edge: Edge | None
    weight: float


def adjacency_source(target: str, connection: Connection) -> str:
    if connection.adjacency is AdjacencyType.SYNTHETIC_LOOP:
        return target
    if connection.adjacency is AdjacencyType.IN_EDGE:
        return connection.edge.src
    return connection.edge.dst


def create_connections(
    wg: WeightedGraph, out_weights: Mapping[str, float] | None = None
) -> dict[str, list[Connection]]:
    """Incoming connections of every node, in canonical node order.

    Parameters
    ----------
    wg : WeightedGraph
    out_weights : Mapping[str, float], optional
        Precomputed ``total_out_weights(wg)``.

    """
    if out_weights is None:
        out_weights = total_out_weights(wg)
    result: dict[str, list[Connection]] = {}
    for node in sorted(wg.graph.nodes()):
        result[node] = [
            Connection(AdjacencyType.SYNTHETIC_LOOP, None, wg.synthetic_loop_weight / out_weights[node])
        ]
    for edge in sorted(wg.graph.edges(), key=lambda e: e.address):
        weight = wg.edge_weights[edge.address]
        result[edge.dst].append(
            Connection(AdjacencyType.IN_EDGE, edge, weight.to_weight / out_weights[edge.src])
        )
        result[edge.src].append(
            Connection(AdjacencyType.OUT_EDGE, edge, weight.fro_weight / out_weights[edge.dst])
        )
    return result


@dataclass(frozen=True)
class OrderedSparseMarkovChain:
    """Markov chain over ``node_order``.

    ``chain[dst, src]`` is the probability of moving from ``src`` to ``dst``;
    row ``j`` lists the incoming transitions of node ``node_order[j]`` and
    every column sums to 1.
    """

    node_order: tuple[str, ...]
    chain: sp.csr_matrix

    def index(self) -> dict[str, int]:
        return {node: i for i, node in enumerate(self.node_order)}


def create_ordered_sparse_markov_chain(
    connections: Mapping[str, Iterable[Connection]],
) -> OrderedSparseMarkovChain:
    """Assemble the chain; parallel connections between one pair of nodes are summed.

    Raises
    ------
    ValueError
        If a connection points at a node that has no entry of its own
        (connections built from a different graph state).

    """
    node_order = tuple(sorted(connections))
    index = {node: i for i, node in enumerate(node_order)}
    rows, cols, data = [], [], []
    for target in node_order:
        j = index[target]
        for connection in connections[target]:
            source = adjacency_source(target, connection)
            try:
                i = index[source]
            except KeyError:
                raise ValueError(
                    f"connection into {NodeAddress.to_string(target)} comes from "
                    f"unknown node {NodeAddress.to_string(source)}"
                ) from None
            rows.append(j)
            cols.append(i)
            data.append(connection.weight)
    n = len(node_order)
    chain = sp.coo_matrix(
        (np.asarray(data, dtype=np.float64), (np.asarray(rows, dtype=np.int64), np.asarray(cols, dtype=np.int64))),
        shape=(n, n),
    ).tocsr()
    chain.sum_duplicates()
    return OrderedSparseMarkovChain(node_order, chain)


def distribution_to_node_distribution(node_order: Iterable[str], pi) -> dict[str, float]:
    node_order = list(node_order)
    if len(node_order) != len(pi):
        raise ValueError(f"distribution has {len(pi)} entries for {len(node_order)} nodes")
    return {node: float(p) for node, p in zip(node_order, pi)}

from .graph_to_markov_chain import (
    ConstantEdgeEvaluator,
    EdgeEvaluator,
    EdgeWeight,
    FunctionEdgeEvaluator,
    OrderedSparseMarkovChain,
    WeightedGraph,
    create_connections,
    create_ordered_sparse_markov_chain,
    create_weighted_graph,
    total_out_weights,
)
from .markov_chain import find_stationary_distribution, uniform_distribution

__all__ = [
    "ConstantEdgeEvaluator",
    "EdgeEvaluator",
    "EdgeWeight",
    "FunctionEdgeEvaluator",
    "OrderedSparseMarkovChain",
    "WeightedGraph",
    "create_connections",
    "create_ordered_sparse_markov_chain",
    "create_weighted_graph",
    "find_stationary_distribution",
    "total_out_weights",
    "uniform_distribution",
]

from importlib import import_module

from .address import EdgeAddress, NodeAddress
from .graph import Edge, Graph, Neighbor
from .structure import Direction

__all__ = [
    "Direction",
    "Edge",
    "EdgeAddress",
    "Graph",
    "GraphModifiedError",
    "Neighbor",
    "NodeAddress",
    "ScoredGraph",
]

# scored_graph depends on credgraph.attribution, which imports this package
_lazy = {"ScoredGraph", "GraphModifiedError"}


def __getattr__(name):
    if name in _lazy:
        return getattr(import_module(".scored_graph", __name__), name)
    raise AttributeError(name)

# credgraph/__init__.py
"""credgraph: PageRank-based credit attribution over contribution graphs."""
from __future__ import annotations

from importlib import import_module
from importlib.metadata import PackageNotFoundError
from importlib.metadata import version as _pkg_version
from typing import Any

# Lazily exposed submodules (imported on first attribute access)
_lazy_submodules = {
    "core": "credgraph.core",
    "attribution": "credgraph.attribution",
    "analysis": "credgraph.analysis",
    "io": "credgraph.io",
    "utils": "credgraph.utils",
    "dataframes": "credgraph.io.dataframes",
    "networkx": "credgraph.io.networkx",
}

# Curated top-level symbols (lazy). name -> (module, attribute)
_lazy_symbols: dict[str, tuple[str, str]] = {
    # Core
    "Graph": ("credgraph.core.graph", "Graph"),
    "Edge": ("credgraph.core.graph", "Edge"),
    "Direction": ("credgraph.core.structure", "Direction"),
    "NodeAddress": ("credgraph.core.address", "NodeAddress"),
    "EdgeAddress": ("credgraph.core.address", "EdgeAddress"),
    "ScoredGraph": ("credgraph.core.scored_graph", "ScoredGraph"),
    "GraphModifiedError": ("credgraph.core.scored_graph", "GraphModifiedError"),

    # Edge weighting
    "EdgeWeight": ("credgraph.attribution.graph_to_markov_chain", "EdgeWeight"),
    "ConstantEdgeEvaluator": ("credgraph.attribution.graph_to_markov_chain", "ConstantEdgeEvaluator"),

    # Pipeline
    "pagerank": ("credgraph.analysis.pagerank", "pagerank"),
    "PagerankOptions": ("credgraph.analysis.pagerank", "PagerankOptions"),
    "decompose": ("credgraph.analysis.decomposition", "decompose"),

    # JSON files
    "read_graph": ("credgraph.io.json_io", "read_graph"),
    "write_graph": ("credgraph.io.json_io", "write_graph"),
    "read_scored_graph": ("credgraph.io.json_io", "read_scored_graph"),
    "write_scored_graph": ("credgraph.io.json_io", "write_scored_graph"),

    # NetworkX (optional dependency)
    "to_nx": ("credgraph.io.networkx", "to_nx"),
    "from_nx": ("credgraph.io.networkx", "from_nx"),
}

__all__ = sorted(set(list(_lazy_submodules) + list(_lazy_symbols)))


def __getattr__(name: str) -> Any:  # PEP 562: lazy attribute resolution
    if name in _lazy_submodules:
        return import_module(_lazy_submodules[name])
    if name in _lazy_symbols:
        mod, attr = _lazy_symbols[name]
        return getattr(import_module(mod), attr)
    raise AttributeError(name)


def __dir__() -> list[str]:
    return sorted(list(globals().keys()) + list(__all__))


try:
    __version__ = _pkg_version("credgraph")
except PackageNotFoundError:
    __version__ = "0.0.0"

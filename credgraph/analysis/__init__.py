from .decomposition import NodeDecomposition, ScoreContribution, decompose
from .loader import AdapterError, AnalysisAdapter, JsonGraphAdapter, RepoId, load_graph
from .node_score import score_by_constant_total, score_by_maximum_probability
from .pagerank import PagerankOptions, PagerankResult, pagerank

__all__ = [
    "AdapterError",
    "AnalysisAdapter",
    "JsonGraphAdapter",
    "NodeDecomposition",
    "PagerankOptions",
    "PagerankResult",
    "RepoId",
    "ScoreContribution",
    "decompose",
    "load_graph",
    "pagerank",
    "score_by_constant_total",
    "score_by_maximum_probability",
]

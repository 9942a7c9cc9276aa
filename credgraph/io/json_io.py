from __future__ import annotations

import gzip
import json
from pathlib import Path

from ..core.graph import Graph
from ..core.scored_graph import ScoredGraph
from ..utils.validation import canonical_dumps

__all__ = [
    "dump_json",
    "json_sizes",
    "read_graph",
    "read_json",
    "read_scored_graph",
    "write_graph",
    "write_json",
    "write_scored_graph",
]


def _is_gzip(path: Path) -> bool:
    return path.suffix == ".gz"


def dump_json(obj) -> str:
    """Canonical text: sorted keys, compact separators, no NaN."""
    return canonical_dumps(obj)


def json_sizes(obj) -> tuple[int, int]:
    """Byte sizes of the canonical JSON of ``obj``, uncompressed and gzipped."""
    data = dump_json(obj).encode("utf-8")
    return len(data), len(gzip.compress(data, mtime=0))


def write_json(obj, path: str | Path, *, overwrite: bool = False) -> int:
    """Write ``obj`` as canonical JSON; a ``.gz`` suffix selects gzip.

    Parameters
    ----------
    obj
        JSON-compatible object.
    path : str | Path
    overwrite : bool, default False
        Allow replacing an existing file.

    Returns
    -------
    int
        Number of bytes written to disk.

    Raises
    ------
    FileExistsError
        If ``path`` exists and ``overwrite`` is False.

    """
    path = Path(path)
    if path.exists() and not overwrite:
        raise FileExistsError(f"{path} already exists. Set overwrite=True.")
    path.parent.mkdir(parents=True, exist_ok=True)
    data = dump_json(obj).encode("utf-8")
    if _is_gzip(path):
        # mtime=0 keeps the compressed bytes reproducible
        data = gzip.compress(data, mtime=0)
    path.write_bytes(data)
    return len(data)


def read_json(path: str | Path):
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"{path} does not exist")
    data = path.read_bytes()
    if _is_gzip(path):
        data = gzip.decompress(data)
    return json.loads(data.decode("utf-8"))


def write_graph(graph: Graph, path: str | Path, *, overwrite: bool = False) -> int:
    return write_json(graph.to_json(), path, overwrite=overwrite)


def read_graph(path: str | Path) -> Graph:
    return Graph.from_json(read_json(path))


def write_scored_graph(scored_graph: ScoredGraph, path: str | Path, *, overwrite: bool = False) -> int:
    return write_json(scored_graph.to_json(), path, overwrite=overwrite)


def read_scored_graph(path: str | Path) -> ScoredGraph:
    return ScoredGraph.from_json(read_json(path))

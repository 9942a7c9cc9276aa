"""Loading graphs from external sources through adapters.

An adapter turns whatever it knows how to read (a VCS checkout, an issue
tracker mirror, a JSON file) into a ``Graph`` for one repository. Graphs
from several adapters are merged into one.
"""

from __future__ import annotations

import logging
import re
from abc import ABC, abstractmethod
from collections.abc import Sequence
from pathlib import Path
from typing import NamedTuple

from ..core.graph import Graph
from ..io.json_io import read_graph

__all__ = [
    "AdapterError",
    "AnalysisAdapter",
    "JsonGraphAdapter",
    "RepoId",
    "load_graph",
    "repo_id_to_string",
    "repository_data_directory",
    "string_to_repo_id",
]

logger = logging.getLogger(__name__)

_NAME_RE = re.compile(r"^[A-Za-z0-9._-]+$")


class AdapterError(RuntimeError):
    """An adapter failed to load its graph; the message names the adapter."""


class RepoId(NamedTuple):
    owner: str
    name: str


def string_to_repo_id(s: str) -> RepoId:
    """Parse ``"OWNER/NAME"``.

    Raises
    ------
    ValueError
        ``"Invalid repo string: ..."`` if the string is not of that form.

    """
    parts = s.split("/")
    if len(parts) != 2 or not all(_NAME_RE.match(p) for p in parts) or parts[0].startswith("-"):
        raise ValueError(f"Invalid repo string: {s}")
    return RepoId(parts[0], parts[1])


def repo_id_to_string(repo_id: RepoId) -> str:
    return f"{repo_id.owner}/{repo_id.name}"


def repository_data_directory(directory: str | Path, repo_id: RepoId) -> Path:
    return Path(directory) / "data" / repo_id.owner / repo_id.name


class AnalysisAdapter(ABC):
    """Produces the graph contributed by one data source."""

    name: str = "adapter"

    @abstractmethod
    def load(self, directory: str | Path, repo_id: RepoId) -> Graph:
        pass


class JsonGraphAdapter(AnalysisAdapter):
    """Reads ``<directory>/data/<owner>/<name>/<filename>`` written by ``write_graph``.

    Falls back to ``<filename>.gz`` when the plain file is absent.
    """

    name = "json"

    def __init__(self, filename: str = "graph.json"):
        self.filename = filename

    def load(self, directory: str | Path, repo_id: RepoId) -> Graph:
        path = repository_data_directory(directory, repo_id) / self.filename
        if not path.exists():
            gz = path.with_name(path.name + ".gz")
            if gz.exists():
                path = gz
        return read_graph(path)


def load_graph(adapters: Sequence[AnalysisAdapter], directory: str | Path, repo_id: RepoId) -> Graph:
    """Load one graph per adapter and merge them.

    Raises
    ------
    ValueError
        If no adapters are given.
    AdapterError
        If an adapter fails; the original exception is chained.

    """
    if not adapters:
        raise ValueError("no adapters available")
    graphs = []
    for adapter in adapters:
        try:
            graph = adapter.load(directory, repo_id)
        except Exception as e:
            raise AdapterError(f'plugin "{adapter.name}" errored: {e}') from e
        logger.debug(
            "adapter %s loaded %d nodes, %d edges for %s",
            adapter.name, graph.number_of_nodes(), graph.number_of_edges(), repo_id_to_string(repo_id),
        )
        graphs.append(graph)
    return Graph.merge(graphs)

"""Serialization and interchange.

- ``json_io``: canonical JSON (optionally gzip) files for graphs and scored graphs
- ``dataframes``: Polars tables for reporting
- ``networkx``: MultiDiGraph export/import (optional dependency)
"""

from .json_io import read_graph, read_scored_graph, write_graph, write_scored_graph

__all__ = ["read_graph", "read_scored_graph", "write_graph", "write_scored_graph"]

from __future__ import annotations

from typing import Dict, Union

import polars as pl

from ..core.address import EdgeAddress, NodeAddress
from ..core.graph import Graph
from ..core.scored_graph import ScoredGraph

__all__ = ["decomposition_to_dataframe", "to_dataframes"]


def _node_label(address: str) -> str:
    return "/".join(NodeAddress.to_parts(address))


def _edge_label(address: str) -> str:
    return "/".join(EdgeAddress.to_parts(address))


def to_dataframes(graph: Union[Graph, ScoredGraph]) -> Dict[str, pl.DataFrame]:
    """
    Export a graph (or scored graph) to Polars DataFrames.

    Returns a dictionary of DataFrames, rows in canonical address order:
    - 'nodes': address, parts, and ``score`` for scored graphs
    - 'edges': address, src, dst, and ``to_weight`` / ``fro_weight`` /
      ``src_out_weight`` for scored graphs

    Addresses are rendered as ``/``-joined parts; the list-typed ``parts``,
    ``src_parts`` and ``dst_parts`` columns keep the exact parts.

    Args:
        graph: Graph or ScoredGraph to export

    Returns:
        Dictionary mapping table names to Polars DataFrames
    """
    scored = graph if isinstance(graph, ScoredGraph) else None
    G = scored.graph() if scored is not None else graph

    nodes_data = []
    if scored is not None:
        node_rows = sorted(scored.nodes(), key=lambda sn: sn.node)
        for node, score in node_rows:
            nodes_data.append(
                {"address": _node_label(node), "parts": NodeAddress.to_parts(node), "score": score}
            )
    else:
        for node in sorted(G.nodes()):
            nodes_data.append({"address": _node_label(node), "parts": NodeAddress.to_parts(node)})

    node_schema = {"address": pl.Utf8, "parts": pl.List(pl.Utf8)}
    if scored is not None:
        node_schema["score"] = pl.Float64
    nodes = pl.DataFrame(nodes_data, schema=node_schema)

    edges_data = []
    for edge in sorted(G.edges(), key=lambda e: e.address):
        row = {
            "address": _edge_label(edge.address),
            "src": _node_label(edge.src),
            "dst": _node_label(edge.dst),
            "src_parts": NodeAddress.to_parts(edge.src),
            "dst_parts": NodeAddress.to_parts(edge.dst),
        }
        if scored is not None:
            weight = scored.edge(edge.address).weight
            row["to_weight"] = weight.to_weight
            row["fro_weight"] = weight.fro_weight
            row["src_out_weight"] = scored.total_out_weight(edge.src)
        edges_data.append(row)

    edge_schema = {
        "address": pl.Utf8,
        "src": pl.Utf8,
        "dst": pl.Utf8,
        "src_parts": pl.List(pl.Utf8),
        "dst_parts": pl.List(pl.Utf8),
    }
    if scored is not None:
        edge_schema.update({"to_weight": pl.Float64, "fro_weight": pl.Float64, "src_out_weight": pl.Float64})
    edges = pl.DataFrame(edges_data, schema=edge_schema)

    return {"nodes": nodes, "edges": edges}


def decomposition_to_dataframe(decomposition) -> pl.DataFrame:
    """One row per (node, contribution), in the decomposition's order.

    Columns: node, node_score, kind, source, edge (null for the synthetic
    loop), weight, contribution.
    """
    rows = []
    for node, d in decomposition.items():
        for c in d.contributions:
            rows.append(
                {
                    "node": _node_label(node),
                    "node_score": d.score,
                    "kind": c.kind.value,
                    "source": _node_label(c.source),
                    "edge": _edge_label(c.edge.address) if c.edge is not None else None,
                    "weight": c.weight,
                    "contribution": c.contribution,
                }
            )
    return pl.DataFrame(
        rows,
        schema={
            "node": pl.Utf8,
            "node_score": pl.Float64,
            "kind": pl.Utf8,
            "source": pl.Utf8,
            "edge": pl.Utf8,
            "weight": pl.Float64,
            "contribution": pl.Float64,
        },
    )

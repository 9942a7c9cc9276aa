try:
    import networkx as nx
except ModuleNotFoundError as e:
    raise ModuleNotFoundError(
        "The 'networkx' package is not installed. "
        "Install with: pip install networkx"
    ) from e

from ..core.address import EdgeAddress, NodeAddress
from ..core.graph import Edge, Graph
from ..core.scored_graph import ScoredGraph

__all__ = ["from_nx", "to_nx"]


def to_nx(graph):
    """
    Export a Graph or ScoredGraph to a NetworkX MultiDiGraph.

    Parameters
    ----------
    graph : Graph | ScoredGraph
        Source graph. For a ScoredGraph, nodes carry ``score`` and
        ``total_out_weight`` and edges carry ``to_weight`` / ``fro_weight``.

    Returns
    -------
    networkx.MultiDiGraph
        Nodes keyed by node address, edges keyed by edge address. Every node
        has a ``parts`` attribute; every edge an ``address_parts`` attribute.
        Nodes and edges are inserted in canonical address order.
    """
    scored = graph if isinstance(graph, ScoredGraph) else None
    G = scored.graph() if scored is not None else graph

    out = nx.MultiDiGraph()
    for node in sorted(G.nodes()):
        attrs = {"parts": NodeAddress.to_parts(node)}
        if scored is not None:
            attrs["score"] = scored.node(node).score
            attrs["total_out_weight"] = scored.total_out_weight(node)
        out.add_node(node, **attrs)

    for edge in sorted(G.edges(), key=lambda e: e.address):
        attrs = {"address_parts": EdgeAddress.to_parts(edge.address)}
        if scored is not None:
            weight = scored.edge(edge.address).weight
            attrs["to_weight"] = weight.to_weight
            attrs["fro_weight"] = weight.fro_weight
        out.add_edge(edge.src, edge.dst, key=edge.address, **attrs)
    return out


def from_nx(nxG) -> Graph:
    """
    Import a NetworkX multigraph produced by ``to_nx`` (or built the same way).

    Node keys must be node addresses, or nodes must carry a ``parts``
    attribute. Edge keys must be edge addresses, or edges must carry an
    ``address_parts`` attribute.

    Raises
    ------
    ValueError
        If the graph is not a multigraph, or a node/edge cannot be addressed.
    """
    if not nxG.is_multigraph():
        raise ValueError("from_nx requires a MultiGraph/MultiDiGraph with edge keys")

    def _node_address(n, data):
        if NodeAddress.is_valid(n):
            return n
        if "parts" in data:
            return NodeAddress.from_parts(data["parts"])
        raise ValueError(f"cannot derive a NodeAddress for node {n!r}")

    G = Graph()
    mapping = {}
    for n, data in nxG.nodes(data=True):
        mapping[n] = G.add_node(_node_address(n, data))

    for u, v, key, data in nxG.edges(keys=True, data=True):
        if EdgeAddress.is_valid(key):
            address = key
        elif "address_parts" in data:
            address = EdgeAddress.from_parts(data["address_parts"])
        else:
            raise ValueError(f"cannot derive an EdgeAddress for edge {u!r} -> {v!r} (key {key!r})")
        G.add_edge(Edge(address=address, src=mapping[u], dst=mapping[v]))
    return G

from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from itertools import chain
from typing import NamedTuple

from ..utils.validation import from_compat, obj_canonicalized_hash, to_compat, unique_iter
from ._state import _State
from .address import EdgeAddress, NodeAddress
from .structure import Direction

__all__ = [
    "COMPAT_INFO",
    "Edge",
    "Graph",
    "Neighbor",
    "edge_to_string",
]

COMPAT_INFO = {"type": "credgraph/graph", "version": "0.1.0"}


@dataclass(frozen=True)
class Edge:
    """A directed, addressed edge between two nodes of the same graph."""

    address: str
    src: str
    dst: str


class Neighbor(NamedTuple):
    node: str
    edge: Edge


def edge_to_string(edge: Edge) -> str:
    return (
        f"{{address: {EdgeAddress.to_string(edge.address)}, "
        f"src: {NodeAddress.to_string(edge.src)}, "
        f"dst: {NodeAddress.to_string(edge.dst)}}}"
    )


class Graph:
    """Mutable store of addressed nodes and edges.

    Nodes are identified by a ``NodeAddress`` and carry no other data. Edges
    are identified by an ``EdgeAddress`` and connect two nodes that must be
    present in the graph; parallel edges and loops are allowed.

    Notes
    -----
    - Every call to a mutator (``add_node``, ``add_edge``, ``remove_node``,
      ``remove_edge``) increments the modification count, even when the call
      does not change the content. Derived views snapshot this count and
      compare it on every access.
    - Equality, ``to_json`` and ``checksum`` depend only on the current node
      and edge sets, never on the order of mutations that produced them.
    - Removing a node that still has incident edges is an error; remove the
      edges first.

    See Also
    --------
    add_node, add_edge, neighbors, to_json, credgraph.core.scored_graph.ScoredGraph

    """

    def __init__(self):
        # Insertion-ordered sets / maps keyed by address
        self._nodes: dict[str, None] = {}
        self._edges: dict[str, Edge] = {}
        self._in_edges: dict[str, dict[str, Edge]] = {}  # node -> {edge address: edge}
        self._out_edges: dict[str, dict[str, Edge]] = {}

        self._state = _State()

    def __repr__(self) -> str:
        return f"<Graph | N={len(self._nodes)} · E={len(self._edges)} · version={self._state.version}>"

    # Mutation

    def add_node(self, node: str) -> str:
        """Add a node. Adding a node that is already present changes nothing.

        Parameters
        ----------
        node : str
            A ``NodeAddress``.

        Returns
        -------
        str
            The node address (echoed).

        """
        NodeAddress.assert_valid(node)
        if node not in self._nodes:
            self._nodes[node] = None
            self._in_edges[node] = {}
            self._out_edges[node] = {}
        self._state.bump()
        return node

    def remove_node(self, node: str) -> str:
        """Remove a node. Removing an absent node changes nothing.

        Parameters
        ----------
        node : str

        Raises
        ------
        ValueError
            If the node is the ``src`` or ``dst`` of an edge in the graph.

        """
        NodeAddress.assert_valid(node)
        if node in self._nodes:
            for edge in chain(self._out_edges[node].values(), self._in_edges[node].values()):
                role = "src" if edge.src == node else "dst"
                raise ValueError(
                    f"Attempted to remove {NodeAddress.to_string(node)}, "
                    f"which is the {role} of edge {edge_to_string(edge)}"
                )
            del self._nodes[node]
            del self._in_edges[node]
            del self._out_edges[node]
        self._state.bump()
        return node

    def add_edge(self, edge: Edge) -> Edge:
        """Add an edge between two nodes already in the graph.

        Parameters
        ----------
        edge : Edge

        Returns
        -------
        Edge
            The edge (echoed).

        Raises
        ------
        ValueError
            If ``src`` or ``dst`` is missing from the graph, or an edge with
            the same address but different endpoints already exists.

        """
        if not isinstance(edge, Edge):
            raise TypeError(f"expected Edge, got {type(edge).__name__}")
        EdgeAddress.assert_valid(edge.address, what="edge address")
        NodeAddress.assert_valid(edge.src, what="edge src")
        NodeAddress.assert_valid(edge.dst, what="edge dst")
        if edge.src not in self._nodes:
            raise ValueError(f"Missing src on edge: {edge_to_string(edge)}")
        if edge.dst not in self._nodes:
            raise ValueError(f"Missing dst on edge: {edge_to_string(edge)}")
        existing = self._edges.get(edge.address)
        if existing is not None:
            if existing != edge:
                raise ValueError(
                    f"conflict between new edge {edge_to_string(edge)} "
                    f"and existing edge {edge_to_string(existing)}"
                )
        else:
            self._edges[edge.address] = edge
            self._out_edges[edge.src][edge.address] = edge
            self._in_edges[edge.dst][edge.address] = edge
        self._state.bump()
        return edge

    def remove_edge(self, address: str) -> str:
        """Remove an edge by address. Removing an absent edge changes nothing."""
        EdgeAddress.assert_valid(address)
        edge = self._edges.pop(address, None)
        if edge is not None:
            del self._out_edges[edge.src][address]
            del self._in_edges[edge.dst][address]
        self._state.bump()
        return address

    def modification_count(self) -> int:
        """Number of mutator calls so far; strictly increasing."""
        return self._state.version

    def modified_since(self, count: int) -> bool:
        """True if a mutator was called after ``modification_count()`` returned ``count``."""
        return self._state.dirty_since(count)

    # Queries

    def has_node(self, node: str) -> bool:
        NodeAddress.assert_valid(node)
        return node in self._nodes

    def node(self, node: str) -> str | None:
        """Return ``node`` if present in the graph, else ``None``."""
        return node if self.has_node(node) else None

    def nodes(self, prefix: str = NodeAddress.empty) -> Iterator[str]:
        """Iterate over nodes whose address starts with ``prefix``.

        Parameters
        ----------
        prefix : str, default ``NodeAddress.empty``
            Node address prefix; the empty address matches every node.

        Raises
        ------
        ValueError, TypeError
            If ``prefix`` is not a ``NodeAddress``.

        """
        NodeAddress.assert_valid(prefix, what="prefix")
        return (node for node in list(self._nodes) if node.startswith(prefix))

    def number_of_nodes(self) -> int:
        return len(self._nodes)

    def has_edge(self, address: str) -> bool:
        EdgeAddress.assert_valid(address)
        return address in self._edges

    def edge(self, address: str) -> Edge | None:
        EdgeAddress.assert_valid(address)
        return self._edges.get(address)

    def edges(
        self,
        address_prefix: str = EdgeAddress.empty,
        src_prefix: str = NodeAddress.empty,
        dst_prefix: str = NodeAddress.empty,
    ) -> Iterator[Edge]:
        """Iterate over edges matching all three prefix filters.

        Parameters
        ----------
        address_prefix : str, default ``EdgeAddress.empty``
        src_prefix : str, default ``NodeAddress.empty``
        dst_prefix : str, default ``NodeAddress.empty``

        """
        EdgeAddress.assert_valid(address_prefix, what="address_prefix")
        NodeAddress.assert_valid(src_prefix, what="src_prefix")
        NodeAddress.assert_valid(dst_prefix, what="dst_prefix")
        return (
            edge
            for edge in list(self._edges.values())
            if edge.address.startswith(address_prefix)
            and edge.src.startswith(src_prefix)
            and edge.dst.startswith(dst_prefix)
        )

    def number_of_edges(self) -> int:
        return len(self._edges)

    def neighbors(
        self,
        node: str,
        direction: Direction = Direction.ANY,
        node_prefix: str = NodeAddress.empty,
        edge_prefix: str = EdgeAddress.empty,
    ) -> Iterator[Neighbor]:
        """Adjacent nodes of ``node`` together with the connecting edge.

        Parameters
        ----------
        node : str
            Target node; must be in the graph.
        direction : Direction, default ``Direction.ANY``
            ``IN`` follows edges ending at ``node``, ``OUT`` edges starting
            at it, ``ANY`` both (IN adjacencies first).
        node_prefix : str
            Only neighbors whose address has this prefix are reported.
        edge_prefix : str
            Only edges whose address has this prefix are followed.

        Returns
        -------
        Iterator[Neighbor]
            One entry per matching (edge, direction) pair. A loop edge on
            ``node`` matches both ``IN`` and ``OUT``; under ``Direction.ANY``
            it is reported once (with ``node`` as its own neighbor), so that
            a consumer summing ``to_weight + fro_weight`` for the loop counts
            its flow exactly once.

        Raises
        ------
        KeyError
            If ``node`` is not in the graph.

        """
        NodeAddress.assert_valid(node)
        NodeAddress.assert_valid(node_prefix, what="node_prefix")
        EdgeAddress.assert_valid(edge_prefix, what="edge_prefix")
        if node not in self._nodes:
            raise KeyError(f"non-existent node: {NodeAddress.to_string(node)}")
        direction = Direction(direction)

        adjacencies = []
        if direction in (Direction.IN, Direction.ANY):
            adjacencies.append((Direction.IN, list(self._in_edges[node].values())))
        if direction in (Direction.OUT, Direction.ANY):
            adjacencies.append((Direction.OUT, list(self._out_edges[node].values())))

        def _iter():
            for adjacency, edges in adjacencies:
                for edge in edges:
                    if direction is Direction.ANY and adjacency is Direction.IN and edge.src == edge.dst:
                        continue  # loop: reported once, from the OUT side
                    if not edge.address.startswith(edge_prefix):
                        continue
                    neighbor = edge.src if adjacency is Direction.IN else edge.dst
                    if neighbor.startswith(node_prefix):
                        yield Neighbor(neighbor, edge)

        return _iter()

    # Combination / copying

    @staticmethod
    def merge(graphs: Iterable[Graph]) -> Graph:
        """Union of the nodes and edges of ``graphs``.

        Raises
        ------
        ValueError
            If two graphs hold an edge with the same address but different
            endpoints.

        """
        graphs = list(graphs)
        result = Graph()
        for node in unique_iter(chain.from_iterable(g.nodes() for g in graphs)):
            result.add_node(node)
        for g in graphs:
            for edge in g.edges():
                result.add_edge(edge)
        return result

    def copy(self) -> Graph:
        """Return an independent graph with the same nodes and edges.

        The copy starts its own modification count at zero.
        """
        G = Graph()
        G._nodes = dict(self._nodes)
        G._edges = dict(self._edges)
        G._in_edges = {n: dict(adj) for n, adj in self._in_edges.items()}
        G._out_edges = {n: dict(adj) for n, adj in self._out_edges.items()}
        return G

    # Equality / serialization

    def __eq__(self, other) -> bool:
        if not isinstance(other, Graph):
            return NotImplemented
        return self._nodes.keys() == other._nodes.keys() and self._edges == other._edges

    __hash__ = None  # mutable

    def to_json(self) -> list:
        """Canonical, history-independent JSON-compatible representation.

        Returns
        -------
        list
            ``[compat_header, {"nodes": [...], "edges": [...]}]`` with nodes
            given as address parts and sorted by address, and edges sorted by
            address, each as ``{"address", "src", "dst"}`` parts.

        """
        nodes = [NodeAddress.to_parts(n) for n in sorted(self._nodes)]
        edges = [
            {
                "address": EdgeAddress.to_parts(e.address),
                "src": NodeAddress.to_parts(e.src),
                "dst": NodeAddress.to_parts(e.dst),
            }
            for e in sorted(self._edges.values(), key=lambda e: e.address)
        ]
        return to_compat(COMPAT_INFO, {"nodes": nodes, "edges": edges})

    @classmethod
    def from_json(cls, obj) -> Graph:
        """Inverse of ``to_json``.

        Raises
        ------
        ValueError
            On a wrong compat header or invalid content.

        """
        payload = from_compat(COMPAT_INFO, obj)
        G = cls()
        for parts in payload["nodes"]:
            G.add_node(NodeAddress.from_parts(parts))
        for e in payload["edges"]:
            G.add_edge(
                Edge(
                    address=EdgeAddress.from_parts(e["address"]),
                    src=NodeAddress.from_parts(e["src"]),
                    dst=NodeAddress.from_parts(e["dst"]),
                )
            )
        return G

    def checksum(self) -> str:
        """SHA-256 of the canonical JSON; equal graphs have equal checksums."""
        return obj_canonicalized_hash(self.to_json())

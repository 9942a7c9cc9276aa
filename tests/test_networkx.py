import unittest

import networkx as nx

from credgraph.attribution.graph_to_markov_chain import ConstantEdgeEvaluator
from credgraph.core.address import EdgeAddress, NodeAddress
from credgraph.core.scored_graph import ScoredGraph
from credgraph.io.networkx import from_nx, to_nx

from graph_test_util import advanced_graph


class TestNetworkXExport(unittest.TestCase):

    def setUp(self):
        self.ag = advanced_graph()
        self.graph = self.ag.graph1()

    def test_roundtrip(self):
        nxG = to_nx(self.graph)
        self.assertIsInstance(nxG, nx.MultiDiGraph)
        self.assertEqual(nxG.number_of_nodes(), 4)
        self.assertEqual(nxG.number_of_edges(), 3)
        # parallel edges stay distinct
        self.assertEqual(nxG.number_of_edges(self.ag.nodes.src, self.ag.nodes.dst), 2)
        self.assertEqual(from_nx(nxG), self.graph)

    def test_scored_attributes(self):
        sg = ScoredGraph(self.graph, ConstantEdgeEvaluator(2, 1), 0.5)
        nxG = to_nx(sg)
        n, e = self.ag.nodes, self.ag.edges
        self.assertEqual(nxG.nodes[n.src]["score"], 0.25)
        self.assertEqual(nxG.nodes[n.src]["total_out_weight"], 4.5)
        self.assertEqual(nxG.nodes[n.src]["parts"], ["src"])
        data = nxG.get_edge_data(n.src, n.dst, key=e.hom1.address)
        self.assertEqual(data["to_weight"], 2.0)
        self.assertEqual(data["fro_weight"], 1.0)
        self.assertEqual(data["address_parts"], ["hom", "1"])

    def test_from_plain_labels(self):
        G = nx.MultiDiGraph()
        G.add_node("a", parts=["a"])
        G.add_node("b", parts=["b"])
        G.add_edge("a", "b", key="k", address_parts=["a-b"])
        graph = from_nx(G)
        a, b = NodeAddress.from_parts(["a"]), NodeAddress.from_parts(["b"])
        (edge,) = list(graph.edges())
        self.assertEqual((edge.address, edge.src, edge.dst), (EdgeAddress.from_parts(["a-b"]), a, b))

    def test_rejects_unaddressable(self):
        with self.assertRaises(ValueError):
            from_nx(nx.DiGraph())
        G = nx.MultiDiGraph()
        G.add_node("x")
        with self.assertRaisesRegex(ValueError, "NodeAddress"):
            from_nx(G)


if __name__ == "__main__":
    unittest.main()

import math
import unittest

import numpy as np

from credgraph.attribution.graph_to_markov_chain import (
    AdjacencyType,
    ConstantEdgeEvaluator,
    Connection,
    EdgeWeight,
    FunctionEdgeEvaluator,
    adjacency_source,
    as_edge_evaluator,
    create_connections,
    create_ordered_sparse_markov_chain,
    create_weighted_graph,
    distribution_to_node_distribution,
    total_out_weights,
    validate_edge_weight,
)
from credgraph.core.graph import Graph

from graph_test_util import advanced_graph, edge, node


class TestEdgeWeights(unittest.TestCase):

    def test_accepted_forms(self):
        expected = EdgeWeight(1.0, 2.0)
        self.assertEqual(validate_edge_weight(EdgeWeight(1, 2)), expected)
        self.assertEqual(validate_edge_weight((1, 2)), expected)
        self.assertEqual(validate_edge_weight({"toWeight": 1, "froWeight": 2}), expected)
        self.assertEqual(validate_edge_weight((np.float64(1), np.int64(2))), expected)

    def test_rejected(self):
        with self.assertRaises(ValueError):
            validate_edge_weight((-1, 0))
        with self.assertRaises(ValueError):
            validate_edge_weight((math.nan, 0))
        with self.assertRaises(ValueError):
            validate_edge_weight((0, math.inf))
        with self.assertRaises(ValueError):
            validate_edge_weight({"toWeight": 1})
        with self.assertRaises(TypeError):
            validate_edge_weight(1.0)
        with self.assertRaises(TypeError):
            validate_edge_weight(("1", 0))

    def test_evaluators(self):
        e = advanced_graph().edges.hom1
        self.assertEqual(ConstantEdgeEvaluator(3, 1)(e), EdgeWeight(3.0, 1.0))
        fn = as_edge_evaluator(lambda _edge: {"toWeight": 4, "froWeight": 0})
        self.assertIsInstance(fn, FunctionEdgeEvaluator)
        self.assertEqual(fn.evaluate(e), EdgeWeight(4.0, 0.0))
        with self.assertRaises(TypeError):
            as_edge_evaluator(42)
        bad = as_edge_evaluator(lambda _edge: (-1, 0))
        with self.assertRaisesRegex(ValueError, "for edge"):
            bad(e)


class TestWeightedGraph(unittest.TestCase):

    def test_total_out_weights(self):
        ag = advanced_graph()
        n = ag.nodes
        wg = create_weighted_graph(ag.graph1(), ConstantEdgeEvaluator(1, 2), 0.5)
        out = total_out_weights(wg)
        self.assertEqual(out[n.src], 0.5 + 1 + 1)
        self.assertEqual(out[n.dst], 0.5 + 2 + 2)
        self.assertEqual(out[n.loop], 0.5 + 1 + 2)
        self.assertEqual(out[n.isolated], 0.5)

    def test_invalid_loop_weight(self):
        g = advanced_graph().graph1()
        for bad in (0, -1, math.inf):
            with self.assertRaises(ValueError):
                create_weighted_graph(g, ConstantEdgeEvaluator(), bad)

    def test_evaluator_called_once_per_edge(self):
        calls = []

        def evaluator(e):
            calls.append(e.address)
            return (1, 0)

        g = advanced_graph().graph1()
        create_weighted_graph(g, evaluator)
        self.assertEqual(sorted(calls), sorted(e.address for e in g.edges()))


class TestConnections(unittest.TestCase):

    def test_connections_are_normalized(self):
        ag = advanced_graph()
        wg = create_weighted_graph(ag.graph1(), ConstantEdgeEvaluator(1, 2), 0.5)
        connections = create_connections(wg)
        # outgoing probability of every node sums to 1
        outflow = {n: 0.0 for n in connections}
        for target, conns in connections.items():
            for c in conns:
                outflow[adjacency_source(target, c)] += c.weight
        for total in outflow.values():
            self.assertAlmostEqual(total, 1.0)

    def test_connection_kinds(self):
        ag = advanced_graph()
        n, e = ag.nodes, ag.edges
        wg = create_weighted_graph(ag.graph1(), ConstantEdgeEvaluator(1, 2), 0.5)
        connections = create_connections(wg)
        self.assertEqual(connections[n.isolated], [Connection(AdjacencyType.SYNTHETIC_LOOP, None, 1.0)])
        dst_kinds = [(c.adjacency, c.edge) for c in connections[n.dst]]
        self.assertEqual(
            dst_kinds,
            [
                (AdjacencyType.SYNTHETIC_LOOP, None),
                (AdjacencyType.IN_EDGE, e.hom1),
                (AdjacencyType.IN_EDGE, e.hom2),
            ],
        )
        self.assertEqual(connections[n.dst][1].weight, 1 / 2.5)
        src_out = [c for c in connections[n.src] if c.adjacency is AdjacencyType.OUT_EDGE]
        self.assertEqual([c.weight for c in src_out], [2 / 4.5, 2 / 4.5])
        loop_kinds = sorted(c.adjacency.value for c in connections[n.loop])
        self.assertEqual(loop_kinds, ["IN_EDGE", "OUT_EDGE", "SYNTHETIC_LOOP"])


class TestOrderedSparseMarkovChain(unittest.TestCase):

    def test_chain_is_column_stochastic(self):
        ag = advanced_graph()
        wg = create_weighted_graph(ag.graph1(), ConstantEdgeEvaluator(1, 2), 1e-3)
        osmc = create_ordered_sparse_markov_chain(create_connections(wg))
        self.assertEqual(list(osmc.node_order), sorted(ag.graph1().nodes()))
        col_sums = np.asarray(osmc.chain.sum(axis=0)).ravel()
        np.testing.assert_allclose(col_sums, np.ones(4))

    def test_parallel_edges_are_summed(self):
        ag = advanced_graph()
        n = ag.nodes
        wg = create_weighted_graph(ag.graph1(), ConstantEdgeEvaluator(1, 0), 1.0)
        osmc = create_ordered_sparse_markov_chain(create_connections(wg))
        idx = osmc.index()
        self.assertAlmostEqual(osmc.chain[idx[n.dst], idx[n.src]], 2 / 3)
        self.assertAlmostEqual(osmc.chain[idx[n.src], idx[n.src]], 1 / 3)

    def test_same_chain_for_different_histories(self):
        ag = advanced_graph()
        ev = ConstantEdgeEvaluator(1, 2)
        c1 = create_ordered_sparse_markov_chain(create_connections(create_weighted_graph(ag.graph1(), ev)))
        c2 = create_ordered_sparse_markov_chain(create_connections(create_weighted_graph(ag.graph2(), ev)))
        self.assertEqual(c1.node_order, c2.node_order)
        self.assertEqual((c1.chain != c2.chain).nnz, 0)

    def test_unknown_source(self):
        a, b = node("a"), node("b")
        stray = edge("stray", b, a)
        connections = {a: [Connection(AdjacencyType.IN_EDGE, stray, 1.0)]}
        with self.assertRaisesRegex(ValueError, "unknown node"):
            create_ordered_sparse_markov_chain(connections)

    def test_distribution_to_node_distribution(self):
        a, b = node("a"), node("b")
        self.assertEqual(distribution_to_node_distribution([a, b], np.array([0.25, 0.75])), {a: 0.25, b: 0.75})
        with self.assertRaises(ValueError):
            distribution_to_node_distribution([a], np.array([0.5, 0.5]))

    def test_single_node(self):
        g = Graph()
        g.add_node(node("only"))
        osmc = create_ordered_sparse_markov_chain(create_connections(create_weighted_graph(g, ConstantEdgeEvaluator())))
        self.assertEqual(osmc.chain.shape, (1, 1))
        self.assertEqual(osmc.chain[0, 0], 1.0)


if __name__ == "__main__":
    unittest.main()

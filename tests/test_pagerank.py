import unittest
import warnings

from credgraph.analysis.pagerank import PagerankOptions, pagerank
from credgraph.attribution.graph_to_markov_chain import ConstantEdgeEvaluator
from credgraph.core.graph import Graph

from graph_test_util import advanced_graph, node


class TestPagerankOptions(unittest.TestCase):

    def test_defaults(self):
        options = PagerankOptions()
        self.assertEqual(options.self_loop_weight, 1e-3)
        self.assertEqual(options.convergence_threshold, 1e-7)
        self.assertEqual(options.max_iterations, 255)
        self.assertEqual(options.total_score, 1000.0)

    def test_with_overrides_ignores_none(self):
        options = PagerankOptions().with_overrides(max_iterations=3, total_score=None)
        self.assertEqual(options.max_iterations, 3)
        self.assertEqual(options.total_score, 1000.0)


class TestPagerank(unittest.IsolatedAsyncioTestCase):

    async def test_scores_sum_to_total(self):
        result = await pagerank(advanced_graph().graph1(), ConstantEdgeEvaluator(), PagerankOptions(total_score=100))
        self.assertAlmostEqual(sum(result.node_scores.values()), 100)
        self.assertLessEqual(result.convergence_delta, 1e-7)

    async def test_decomposition_uses_normalized_units(self):
        result = await pagerank(advanced_graph().graph1(), ConstantEdgeEvaluator(2, 1))
        for n, d in result.decomposition.items():
            self.assertAlmostEqual(d.score, result.node_scores[n])

    async def test_prefix_normalization(self):
        ag = advanced_graph()
        options = PagerankOptions(total_score=10, total_score_node_prefix=node("loop"))
        result = await pagerank(ag.graph1(), ConstantEdgeEvaluator(), options)
        self.assertAlmostEqual(result.node_scores[ag.nodes.loop], 10)

    async def test_callable_evaluator(self):
        result = await pagerank(advanced_graph().graph1(), lambda _e: (1, 0))
        self.assertEqual(len(result.node_scores), 4)

    async def test_warns_when_not_converged(self):
        options = PagerankOptions(max_iterations=0)
        with self.assertWarnsRegex(UserWarning, "above threshold"):
            result = await pagerank(advanced_graph().graph1(), ConstantEdgeEvaluator(), options)
        self.assertGreater(result.convergence_delta, options.convergence_threshold)

    async def test_no_warning_when_converged(self):
        with warnings.catch_warnings(record=True) as caught:
            warnings.simplefilter("always")
            await pagerank(advanced_graph().graph1(), ConstantEdgeEvaluator())
        self.assertFalse([w for w in caught if "above threshold" in str(w.message)])

    async def test_empty_graph(self):
        with self.assertRaisesRegex(ValueError, "empty graph"):
            await pagerank(Graph(), ConstantEdgeEvaluator())


if __name__ == "__main__":
    unittest.main()

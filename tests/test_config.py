import unittest
from pathlib import Path

from credgraph.analysis.pagerank import PagerankOptions
from credgraph.config import Settings, default_directory


class TestSettings(unittest.TestCase):

    def test_defaults(self):
        settings = Settings.from_env({})
        self.assertEqual(settings.directory, default_directory())
        self.assertEqual(settings.max_iterations, 255)
        self.assertEqual(settings.convergence_threshold, 1e-7)
        self.assertEqual(settings.self_loop_weight, 1e-3)

    def test_from_env(self):
        settings = Settings.from_env(
            {
                "CREDGRAPH_DIRECTORY": "/data/cred",
                "CREDGRAPH_MAX_ITERATIONS": "12",
                "CREDGRAPH_CONVERGENCE_THRESHOLD": "1e-3",
                "CREDGRAPH_SELF_LOOP_WEIGHT": "0.5",
            }
        )
        self.assertEqual(settings.directory, Path("/data/cred"))
        self.assertEqual(settings.max_iterations, 12)
        self.assertEqual(settings.convergence_threshold, 1e-3)
        self.assertEqual(settings.self_loop_weight, 0.5)

    def test_malformed_values(self):
        with self.assertRaisesRegex(ValueError, "CREDGRAPH_MAX_ITERATIONS"):
            Settings.from_env({"CREDGRAPH_MAX_ITERATIONS": "lots"})
        with self.assertRaisesRegex(ValueError, "CREDGRAPH_SELF_LOOP_WEIGHT"):
            Settings.from_env({"CREDGRAPH_SELF_LOOP_WEIGHT": "heavy"})

    def test_pagerank_options(self):
        settings = Settings(max_iterations=7, self_loop_weight=0.2)
        options = settings.pagerank_options(total_score=50.0, convergence_threshold=None)
        self.assertIsInstance(options, PagerankOptions)
        self.assertEqual(options.max_iterations, 7)
        self.assertEqual(options.self_loop_weight, 0.2)
        self.assertEqual(options.convergence_threshold, 1e-7)
        self.assertEqual(options.total_score, 50.0)


if __name__ == "__main__":
    unittest.main()

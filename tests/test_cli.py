import io
import os
import tempfile
import unittest
from contextlib import redirect_stderr, redirect_stdout
from pathlib import Path
from unittest import mock

from credgraph.analysis.loader import RepoId, repository_data_directory
from credgraph.cli import main
from credgraph.io.json_io import dump_json, read_json, read_scored_graph, write_graph

from graph_test_util import advanced_graph


class TestCli(unittest.TestCase):

    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.directory = Path(self._tmp.name)
        self.repo_id = RepoId("owner", "name")
        self.data_dir = repository_data_directory(self.directory, self.repo_id)
        self.graph = advanced_graph().graph1()
        write_graph(self.graph, self.data_dir / "graph.json")

    def tearDown(self):
        self._tmp.cleanup()

    def run_cli(self, *argv):
        out, err = io.StringIO(), io.StringIO()
        with redirect_stdout(out), redirect_stderr(err):
            code = main(["--directory", str(self.directory), *argv])
        return code, out.getvalue(), err.getvalue()

    def test_export_graph(self):
        code, out, err = self.run_cli("export-graph", "owner/name")
        self.assertEqual(code, 0, err)
        self.assertEqual(out, dump_json(self.graph.to_json()) + "\n")

    def test_directory_from_environment(self):
        out = io.StringIO()
        with mock.patch.dict(os.environ, {"CREDGRAPH_DIRECTORY": str(self.directory)}):
            with redirect_stdout(out):
                code = main(["export-graph", "owner/name"])
        self.assertEqual(code, 0)
        self.assertEqual(out.getvalue().strip(), dump_json(self.graph.to_json()))

    def test_analyze(self):
        code, out, err = self.run_cli("analyze", "owner/name", "--total-score", "100")
        self.assertEqual(code, 0, err)
        self.assertIn("scoredGraph.json", out)
        self.assertIn("pagerankNodeDecomposition.json", out)

        scored = read_scored_graph(self.data_dir / "scoredGraph.json")
        self.assertEqual(scored.graph(), self.graph)
        self.assertAlmostEqual(sum(sn.score for sn in scored.nodes()), 1.0)

        header, nodes = read_json(self.data_dir / "pagerankNodeDecomposition.json")
        self.assertEqual(header["type"], "credgraph/pagerankNodeDecomposition")
        self.assertAlmostEqual(sum(n["score"] for n in nodes), 100)

    def test_analyze_size_table(self):
        code, out, err = self.run_cli("analyze", "owner/name")
        self.assertEqual(code, 0, err)
        header, *rows = out.splitlines()
        self.assertEqual(header.split(), ["file", "uncompressed", "compressed", "ratio"])
        name, uncompressed, compressed, _ratio = rows[0].split()
        self.assertEqual(name, "scoredGraph.json")
        self.assertEqual(int(uncompressed), (self.data_dir / name).stat().st_size)
        self.assertLess(int(compressed), int(uncompressed))

    def test_analyze_total_score_node_prefix(self):
        code, _out, err = self.run_cli(
            "analyze", "owner/name", "--total-score", "100", "--total-score-node-prefix", "dst"
        )
        self.assertEqual(code, 0, err)
        _header, nodes = read_json(self.data_dir / "pagerankNodeDecomposition.json")
        scores = {tuple(n["node"]): n["score"] for n in nodes}
        self.assertAlmostEqual(scores[("dst",)], 100)
        self.assertGreater(sum(scores.values()), 100)

    def test_analyze_prefix_without_score(self):
        code, _out, err = self.run_cli("analyze", "owner/name", "--total-score-node-prefix", "isolated/none")
        self.assertEqual(code, 1)
        self.assertIn("fatal: Tried to normalize based on nodes with no score", err)

    def test_analyze_gzip_overwrites(self):
        for _ in range(2):
            code, _out, err = self.run_cli("analyze", "owner/name", "--gzip", "--fro-weight", "0.5")
            self.assertEqual(code, 0, err)
        scored = read_scored_graph(self.data_dir / "scoredGraph.json.gz")
        self.assertEqual({we.weight.fro_weight for we in scored.edges()}, {0.5})

    def test_invalid_repo_id(self):
        code, out, err = self.run_cli("export-graph", "not-a-repo")
        self.assertEqual(code, 1)
        self.assertEqual(out, "")
        self.assertTrue(err.startswith("fatal: Invalid repo string: not-a-repo"))

    def test_missing_graph(self):
        code, _out, err = self.run_cli("analyze", "owner/other")
        self.assertEqual(code, 1)
        self.assertIn('fatal: plugin "json" errored', err)

    def test_invalid_weight(self):
        code, _out, err = self.run_cli("analyze", "owner/name", "--to-weight", "-1")
        self.assertEqual(code, 1)
        self.assertIn("fatal:", err)


if __name__ == "__main__":
    unittest.main()

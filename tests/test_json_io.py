import gzip
import json
import tempfile
import unittest
from pathlib import Path

from credgraph.attribution.graph_to_markov_chain import ConstantEdgeEvaluator
from credgraph.core.scored_graph import ScoredGraph
from credgraph.io.json_io import (
    dump_json,
    json_sizes,
    read_graph,
    read_json,
    read_scored_graph,
    write_graph,
    write_json,
    write_scored_graph,
)

from graph_test_util import advanced_graph


class TestJsonIO(unittest.TestCase):

    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.tmpdir = Path(self._tmp.name)
        self.graph = advanced_graph().graph1()

    def tearDown(self):
        self._tmp.cleanup()

    def test_dump_is_canonical(self):
        self.assertEqual(dump_json({"b": 1, "a": [1, 2]}), '{"a":[1,2],"b":1}')
        with self.assertRaises(ValueError):
            dump_json({"x": float("nan")})

    def test_graph_roundtrip(self):
        path = self.tmpdir / "graph.json"
        size = write_graph(self.graph, path)
        self.assertEqual(size, path.stat().st_size)
        self.assertEqual(read_graph(path), self.graph)
        self.assertEqual(path.read_text(), dump_json(self.graph.to_json()))

    def test_gzip_roundtrip(self):
        path = self.tmpdir / "nested" / "graph.json.gz"
        write_graph(self.graph, path)
        self.assertEqual(read_graph(path), self.graph)
        self.assertEqual(json.loads(gzip.decompress(path.read_bytes())), self.graph.to_json())

    def test_gzip_bytes_are_reproducible(self):
        a = self.tmpdir / "a.json.gz"
        b = self.tmpdir / "b.json.gz"
        write_graph(advanced_graph().graph1(), a)
        write_graph(advanced_graph().graph2(), b)
        self.assertEqual(a.read_bytes(), b.read_bytes())

    def test_sizes_match_written_files(self):
        plain = self.tmpdir / "graph.json"
        packed = self.tmpdir / "graph.json.gz"
        obj = self.graph.to_json()
        self.assertEqual(json_sizes(obj), (write_json(obj, plain), write_json(obj, packed)))
        self.assertEqual(json_sizes(obj), (plain.stat().st_size, packed.stat().st_size))

    def test_overwrite_protection(self):
        path = self.tmpdir / "graph.json"
        write_json([1], path)
        with self.assertRaises(FileExistsError):
            write_json([2], path)
        write_json([2], path, overwrite=True)
        self.assertEqual(read_json(path), [2])

    def test_missing_file(self):
        with self.assertRaises(FileNotFoundError):
            read_json(self.tmpdir / "missing.json")

    def test_scored_graph_roundtrip(self):
        sg = ScoredGraph(self.graph, ConstantEdgeEvaluator(2, 1), 0.25)
        path = self.tmpdir / "scoredGraph.json"
        write_scored_graph(sg, path)
        self.assertTrue(read_scored_graph(path).equals(sg))


if __name__ == "__main__":
    unittest.main()

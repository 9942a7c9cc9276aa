"""
Command line entry point.

    credgraph export-graph OWNER/NAME
    credgraph analyze OWNER/NAME [--to-weight W] [--fro-weight W] [--gzip] ...

Graphs are read from ``<directory>/data/<owner>/<name>/graph.json`` (or
``graph.json.gz``); ``analyze`` writes its results next to them.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
import warnings
from pathlib import Path

from .analysis.decomposition import to_json as decomposition_to_json
from .analysis.loader import JsonGraphAdapter, load_graph, repository_data_directory, string_to_repo_id
from .analysis.pagerank import pagerank
from .attribution.graph_to_markov_chain import ConstantEdgeEvaluator
from .config import Settings
from .core.address import NodeAddress
from .io.json_io import dump_json, json_sizes, write_json

logger = logging.getLogger(__name__)

SCORED_GRAPH_FILENAME = "scoredGraph.json"
DECOMPOSITION_FILENAME = "pagerankNodeDecomposition.json"


def _fatal(message) -> int:
    for line in str(message).splitlines() or [""]:
        print(f"fatal: {line}", file=sys.stderr)
    return 1


def _adapters():
    return [JsonGraphAdapter()]


def _node_prefix(text: str) -> str:
    """``a/b`` -> node address with parts ``a``, ``b``; empty text is the empty address."""
    return NodeAddress.from_parts(text.split("/") if text else [])


def _export_graph(args, settings: Settings) -> int:
    repo_id = string_to_repo_id(args.repo_id)
    graph = load_graph(_adapters(), settings.directory, repo_id)
    print(dump_json(graph.to_json()))
    return 0


def _analyze(args, settings: Settings) -> int:
    repo_id = string_to_repo_id(args.repo_id)
    graph = load_graph(_adapters(), settings.directory, repo_id)
    options = settings.pagerank_options(
        max_iterations=args.max_iterations,
        convergence_threshold=args.convergence_threshold,
        total_score=args.total_score,
        total_score_node_prefix=args.total_score_node_prefix,
        verbose=args.verbose or None,
    )
    evaluator = ConstantEdgeEvaluator(args.to_weight, args.fro_weight)

    with warnings.catch_warnings(record=True) as caught:
        warnings.simplefilter("always")
        result = asyncio.run(pagerank(graph, evaluator, options))
    for w in caught:
        logger.warning("%s", w.message)

    out_dir = repository_data_directory(settings.directory, repo_id)
    suffix = ".gz" if args.gzip else ""
    outputs = [
        (SCORED_GRAPH_FILENAME + suffix, result.scored_graph.to_json()),
        (DECOMPOSITION_FILENAME + suffix, decomposition_to_json(result.decomposition)),
    ]
    rows = []
    for filename, obj in outputs:
        write_json(obj, out_dir / filename, overwrite=True)
        rows.append((filename, *json_sizes(obj)))

    width = max(len(name) for name, _, _ in rows)
    print(f"{'file'.ljust(width)}  {'uncompressed':>12}  {'compressed':>10}  ratio")
    for name, uncompressed, compressed in rows:
        print(f"{name.ljust(width)}  {uncompressed:>12}  {compressed:>10}  {compressed / uncompressed:.2f}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog="credgraph", description="Score contribution graphs with PageRank.")
    ap.add_argument("--directory", default=None, help="Data directory (default: $CREDGRAPH_DIRECTORY)")
    ap.add_argument("-v", "--verbose", action="store_true", help="Log debug output")
    sub = ap.add_subparsers(dest="command", required=True)

    export = sub.add_parser("export-graph", help="Print the merged graph as canonical JSON")
    export.add_argument("repo_id", metavar="REPO_ID", help="OWNER/NAME")
    export.set_defaults(func=_export_graph)

    analyze = sub.add_parser("analyze", help="Run PageRank and write scores and their decomposition")
    analyze.add_argument("repo_id", metavar="REPO_ID", help="OWNER/NAME")
    analyze.add_argument("--to-weight", type=float, default=1.0, help="Forward weight of every edge (default: 1)")
    analyze.add_argument("--fro-weight", type=float, default=0.0, help="Backward weight of every edge (default: 0)")
    analyze.add_argument("--max-iterations", type=int, default=None)
    analyze.add_argument("--convergence-threshold", type=float, default=None)
    analyze.add_argument("--total-score", type=float, default=None, help="Sum of all normalized scores")
    analyze.add_argument(
        "--total-score-node-prefix",
        type=_node_prefix,
        default=None,
        metavar="PART/PART",
        help="Only nodes under this prefix count toward --total-score (default: all nodes)",
    )
    analyze.add_argument("--gzip", action="store_true", help="Write .json.gz files")
    analyze.set_defaults(func=_analyze)
    return ap


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    try:
        settings = Settings.from_env()
        if args.directory is not None:
            settings.directory = Path(args.directory)
        return args.func(args, settings)
    except Exception as e:
        logger.debug("command %s failed", args.command, exc_info=True)
        return _fatal(e)


if __name__ == "__main__":
    sys.exit(main())

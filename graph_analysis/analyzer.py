"""
Graph analysis orchestration and CLI.

Usage::

    python -m graph_analysis.analyzer \\
        --db ./data/graphs.db \\
        --graph-id algebra-101 --user teacher-7 \\
        --out ./data/algebra-101_analysis.json

    # Load a graph document first, then analyse it
    python -m graph_analysis.analyzer --db ./data/graphs.db \\
        --import-json tests/sample_graph.json --owner teacher-7 \\
        --graph-id sample-graph --user teacher-7

Resolves the graph through a ``GraphRepository``, builds the adjacency
snapshot once and runs centrality, clustering, learning-path discovery,
recommendations and structural metrics concurrently. The result is
all-or-nothing: any stage failure aborts the whole analysis.

Exit codes: 0 success, 1 analysis failure, 2 graph not found.
"""

import argparse
import json
import logging
import os
import sys
from concurrent.futures import FIRST_EXCEPTION, ThreadPoolExecutor, wait
from typing import Any, Callable, Dict, Optional

from graph_analysis.centrality import CentralityAnalyzer
from graph_analysis.clustering import ClusterDetector
from graph_analysis.config import AnalysisConfig, load_config, save_config
from graph_analysis.exceptions import (
    ComputationError,
    GraphAnalysisError,
    GraphNotFoundError,
    ResourceExhaustedError,
)
from graph_analysis.graph_data import GraphData, build_graph_data
from graph_analysis.learning_paths import LearningPathDiscovery
from graph_analysis.models import GraphAnalysis, GraphDocument
from graph_analysis.recommendations import RecommendationEngine
from graph_analysis.repository import GraphNotFound, GraphRepository, SQLiteGraphRepository
from graph_analysis.utils import Deadline, setup_logging, timed
from graph_analysis.validation import compute_metrics, find_prerequisite_cycle

logger = logging.getLogger(__name__)


# =========================================================================
# Analyzer
# =========================================================================


class GraphAnalyzer:
    """Runs every analysis stage against one repository-resolved graph."""

    def __init__(
        self,
        repository: GraphRepository,
        config: Optional[AnalysisConfig] = None,
    ) -> None:
        self.repository = repository
        self.config = config or AnalysisConfig()
        self.centrality = CentralityAnalyzer(self.config)
        self.clusters = ClusterDetector(self.config)
        self.learning_paths = LearningPathDiscovery(self.config)
        self.recommendations = RecommendationEngine(self.config)

    def _stages(self) -> Dict[str, Callable[[GraphData, Deadline], Any]]:
        return {
            "centrality": self.centrality.analyze,
            "clusters": self.clusters.analyze,
            "learning_paths": self.learning_paths.analyze,
            "recommendations": self.recommendations.analyze,
            "metrics": compute_metrics,
        }

    def _check_node_budget(self, graph_id: str, n_nodes: int) -> None:
        limit = self.config.max_nodes
        if limit is not None and n_nodes > limit:
            raise ResourceExhaustedError(
                f"graph {graph_id!r} has {n_nodes} nodes; budget is {limit}"
            )

    def run_stages(self, graph: GraphData) -> Dict[str, Any]:
        """Run all stages concurrently on the shared snapshot.

        Every stage polls a shared ``Deadline``. Once the wall-clock budget
        runs out, or another stage fails, the remaining stages stop at their
        next check and every worker thread has exited before this returns.

        Raises:
            ComputationError: a stage raised; no partial results are returned.
            ResourceExhaustedError: the wall-clock budget ran out.
        """
        stages = self._stages()
        budget = self.config.time_budget_seconds
        deadline = Deadline(budget)

        def _run(name: str, fn: Callable[[GraphData, Deadline], Any]) -> Any:
            with timed(f"Stage {name}"):
                return fn(graph, deadline)

        executor = ThreadPoolExecutor(
            max_workers=len(stages), thread_name_prefix="graph-analysis"
        )
        try:
            futures = {name: executor.submit(_run, name, fn) for name, fn in stages.items()}
            done, not_done = wait(futures.values(), timeout=budget, return_when=FIRST_EXCEPTION)
            if not_done:
                deadline.cancel()

            for name, future in futures.items():
                if future in done and future.exception() is not None:
                    exc = future.exception()
                    if isinstance(exc, ResourceExhaustedError):
                        raise exc
                    logger.error("Stage %s failed: %s", name, exc, exc_info=exc)
                    raise ComputationError(name, exc) from exc

            if not_done:
                pending = sorted(name for name, f in futures.items() if f in not_done)
                raise ResourceExhaustedError(
                    f"time budget of {budget}s exceeded; unfinished: {', '.join(pending)}"
                )

            return {name: future.result() for name, future in futures.items()}
        finally:
            deadline.cancel()
            executor.shutdown(wait=True, cancel_futures=True)

    def analyze_graph(self, graph_id: str, requester_id: Optional[str] = None) -> GraphAnalysis:
        """Resolve, snapshot and analyse *graph_id* for *requester_id*.

        Raises:
            GraphNotFoundError: no accessible graph matches *graph_id*.
            ResourceExhaustedError: the graph exceeds the configured budget.
            ComputationError: any analysis stage failed.
        """
        with timed(f"Resolve graph {graph_id}"):
            resolved = self.repository.resolve(graph_id, requester_id)
        if isinstance(resolved, GraphNotFound):
            logger.warning("Graph %s not found or not accessible.", graph_id)
            raise GraphNotFoundError(graph_id)

        self._check_node_budget(graph_id, len(resolved.nodes))

        graph = build_graph_data(resolved.nodes, resolved.edges)
        logger.info(
            "Analysing graph %s: %d nodes, %d edges.",
            graph_id, len(graph.nodes), len(graph.edges),
        )

        results = self.run_stages(graph)

        metrics = results["metrics"]
        if metrics.dangling_references:
            logger.warning(
                "Graph %s has %d edge(s) referencing undeclared nodes.",
                graph_id, metrics.dangling_references,
            )
        if not metrics.prerequisite_is_dag:
            logger.warning(
                "Graph %s has a prerequisite cycle: %s",
                graph_id, find_prerequisite_cycle(graph),
            )

        return GraphAnalysis(
            graph_id=graph_id,
            centrality=results["centrality"],
            clusters=results["clusters"],
            learning_paths=results["learning_paths"],
            recommendations=results["recommendations"],
            metrics=metrics,
        )


def analyze_graph(
    graph_id: str,
    requester_id: Optional[str] = None,
    *,
    repository: GraphRepository,
    config: Optional[AnalysisConfig] = None,
) -> GraphAnalysis:
    """Functional entry-point: ``GraphAnalyzer(repository, config).analyze_graph``."""
    return GraphAnalyzer(repository, config).analyze_graph(graph_id, requester_id)


# =========================================================================
# CLI
# =========================================================================


def _import_document(
    repository: SQLiteGraphRepository,
    path: str,
    owner: Optional[str],
    public: bool,
) -> GraphDocument:
    with open(path, encoding="utf-8") as fh:
        raw = json.load(fh)
    document = GraphDocument.model_validate(raw)
    if owner is not None:
        document.owner_id = owner
    if public:
        document.is_public = True
    repository.save_graph(document)
    return document


def _parse_args(argv=None):
    parser = argparse.ArgumentParser(
        prog="python -m graph_analysis.analyzer",
        description="Analyse a stored knowledge graph.",
    )
    parser.add_argument("--db", default="./data/graphs.db")
    parser.add_argument("--graph-id", default=None)
    parser.add_argument("--user", default=None, help="Requester id (owner check).")
    parser.add_argument(
        "--import-json", default=None,
        help="Load a graph document JSON into the store before analysing.",
    )
    parser.add_argument("--owner", default=None, help="Owner id for --import-json.")
    parser.add_argument("--public", action="store_true", help="Mark the imported graph public.")
    parser.add_argument("--config", default=None, help="Apply a saved config JSON.")
    parser.add_argument(
        "--save-config", default=None,
        help="Save current settings to a config JSON and exit.",
    )
    parser.add_argument("--out", default=None, help="Write the report JSON here.")
    parser.add_argument("--verbose", action="store_true")
    return parser.parse_args(argv)


def main(argv=None) -> int:
    """CLI entry-point."""
    args = _parse_args(argv)
    setup_logging(level=logging.DEBUG if args.verbose else logging.INFO)

    config = load_config(args.config) if args.config else AnalysisConfig()

    if args.save_config:
        save_config(config, args.save_config)
        return 0

    repository = SQLiteGraphRepository(args.db)
    repository.migrate()

    graph_id = args.graph_id
    if args.import_json:
        document = _import_document(repository, args.import_json, args.owner, args.public)
        graph_id = graph_id or document.graph_id

    if not graph_id:
        logger.error("No --graph-id given and nothing imported.")
        return 1

    try:
        analysis = GraphAnalyzer(repository, config).analyze_graph(graph_id, args.user)
    except GraphNotFoundError as exc:
        logger.error("%s", exc)
        return 2
    except GraphAnalysisError as exc:
        logger.error("Analysis unavailable: %s", exc)
        return 1

    report = analysis.model_dump(mode="json")
    if args.out:
        os.makedirs(os.path.dirname(os.path.abspath(args.out)), exist_ok=True)
        with open(args.out, "w", encoding="utf-8") as fh:
            json.dump(report, fh, indent=2)
        logger.info("📄 Report → %s", args.out)
    else:
        json.dump(report, sys.stdout, indent=2)
        sys.stdout.write("\n")

    logger.info(
        "✅ Analysis complete: nodes=%d, clusters=%d, paths=%d, recommendations=%d",
        analysis.metrics.total_nodes,
        len(analysis.clusters),
        len(analysis.learning_paths),
        len(analysis.recommendations),
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())

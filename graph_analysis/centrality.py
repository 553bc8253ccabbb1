"""
PageRank-style node importance scoring.

Scores propagate along forward adjacency entries: each pass every node
starts from ``(1 - d) / N`` and receives ``d * score / out_degree`` from
each predecessor. Iteration stops once every per-node delta is within
``tolerance`` or after ``max_iterations`` passes.

Dangling nodes (out-degree 0) have nowhere to send their score. With
``redistribute_dangling`` enabled their mass is spread uniformly over all
nodes, keeping the total at 1; otherwise it leaks out of the system.
"""

import logging
from typing import List, Optional

import numpy as np

from graph_analysis.config import AnalysisConfig
from graph_analysis.graph_data import GraphData
from graph_analysis.models import CentralityScore
from graph_analysis.utils import Deadline

logger = logging.getLogger(__name__)


class CentralityAnalyzer:
    """Iterative importance scoring over a ``GraphData`` snapshot."""

    def __init__(self, config: AnalysisConfig) -> None:
        self.damping_factor = config.damping_factor
        self.max_iterations = config.max_iterations
        self.tolerance = config.tolerance
        self.redistribute_dangling = config.redistribute_dangling

    def compute_scores(
        self, graph: GraphData, deadline: Optional[Deadline] = None
    ) -> np.ndarray:
        """Return the ``(N,)`` score vector aligned with ``graph.nodes``."""
        n = len(graph.nodes)
        if n == 0:
            return np.zeros(0, dtype=np.float64)

        d = self.damping_factor

        # One (source, target) pair per adjacency entry, so parallel and
        # bidirectional edges count once per entry.
        sources: List[int] = []
        targets: List[int] = []
        for node in graph.nodes:
            src_idx = graph.node_index[node.id]
            for neighbor_id, _edge in graph.adjacency[node.id]:
                sources.append(src_idx)
                targets.append(graph.node_index[neighbor_id])
        src_arr = np.asarray(sources, dtype=np.int64)
        tgt_arr = np.asarray(targets, dtype=np.int64)

        out_degree = np.bincount(src_arr, minlength=n).astype(np.float64)
        dangling = out_degree == 0
        safe_degree = np.where(dangling, 1.0, out_degree)

        scores = np.full(n, 1.0 / n, dtype=np.float64)
        converged = False
        iteration = 0
        for iteration in range(1, self.max_iterations + 1):
            if deadline is not None:
                deadline.check("centrality")
            new_scores = np.full(n, (1.0 - d) / n, dtype=np.float64)

            contribution = d * scores / safe_degree
            np.add.at(new_scores, tgt_arr, contribution[src_arr])

            if self.redistribute_dangling and dangling.any():
                new_scores += d * scores[dangling].sum() / n

            delta = np.abs(new_scores - scores)
            scores = new_scores
            if np.all(delta <= self.tolerance):
                converged = True
                break

        logger.info(
            "Centrality: N=%d, iterations=%d, converged=%s, mass=%.6f.",
            n, iteration, converged, float(scores.sum()),
        )
        return scores

    def analyze(
        self, graph: GraphData, deadline: Optional[Deadline] = None
    ) -> List[CentralityScore]:
        """Rank nodes by descending score (ties keep declaration order)."""
        scores = self.compute_scores(graph, deadline)
        ranked = [
            CentralityScore(node_id=node.id, score=float(scores[idx]))
            for idx, node in enumerate(graph.nodes)
        ]
        ranked.sort(key=lambda c: c.score, reverse=True)
        return ranked

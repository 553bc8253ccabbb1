"""
Learning-path discovery.

Nodes without an incoming prerequisite edge are *foundational*; nodes
with at least one are *advanced*. Shortest paths are searched from a
sample of foundational nodes to a sample of advanced nodes, preferring
prerequisite and contains relations. The sample sizes are configurable
and bound the work to ``foundational × advanced`` Dijkstra runs.
"""

import logging
from typing import List, Optional, Tuple

from graph_analysis.config import AnalysisConfig
from graph_analysis.graph_data import GraphData
from graph_analysis.models import GraphNode, LearningPath
from graph_analysis.pathfinding import PathFinder
from graph_analysis.utils import Deadline

logger = logging.getLogger(__name__)


def classify_nodes(graph: GraphData) -> Tuple[List[GraphNode], List[GraphNode]]:
    """Split nodes into ``(foundational, advanced)`` in declaration order."""
    foundational: List[GraphNode] = []
    advanced: List[GraphNode] = []
    for node in graph.nodes:
        incoming = graph.reverse_adjacency.get(node.id, ())
        if any(edge.type == "prerequisite" for _, edge in incoming):
            advanced.append(node)
        else:
            foundational.append(node)
    return foundational, advanced


class LearningPathDiscovery:
    """Ranks sampled foundational → advanced routes by mean difficulty."""

    def __init__(self, config: AnalysisConfig) -> None:
        self.config = config

    def path_difficulty(self, graph: GraphData, path: List[str]) -> float:
        nodes = [graph.get_node(node_id) for node_id in path]
        ratings = [n.metadata.effective_difficulty for n in nodes if n is not None]
        return sum(ratings) / len(ratings) if ratings else 0.0

    def analyze(
        self, graph: GraphData, deadline: Optional[Deadline] = None
    ) -> List[LearningPath]:
        cfg = self.config
        foundational, advanced = classify_nodes(graph)
        starts = foundational[: cfg.foundational_sample_size]
        ends = advanced[: cfg.advanced_sample_size]

        finder = PathFinder(graph, cfg)
        paths: List[LearningPath] = []
        for start in starts:
            for end in ends:
                if deadline is not None:
                    deadline.check("learning_paths")
                result = finder.find_shortest_path(
                    start.id,
                    end.id,
                    preferred_types=cfg.learning_path_preferred_types,
                )
                if result is None or len(result.path) <= 1:
                    continue
                paths.append(
                    LearningPath(
                        start_id=start.id,
                        end_id=end.id,
                        path=result.path,
                        difficulty=self.path_difficulty(graph, result.path),
                        distance=result.distance,
                    )
                )

        paths.sort(key=lambda p: p.difficulty)
        logger.info(
            "Learning paths: %d found from %d×%d probes (foundational=%d, advanced=%d).",
            len(paths), len(starts), len(ends), len(foundational), len(advanced),
        )
        return paths[: cfg.max_learning_paths]

"""
Topical cluster detection.

Clusters are the connected components of the graph restricted to
"strong" relation types (related / similar / extends by default).
Structural relations such as prerequisite and contains carry no
clustering signal. An edge joins its endpoints regardless of direction,
and singleton components are dropped.
"""

import logging
from collections import Counter
from typing import Dict, List, Optional, Set

from graph_analysis.config import AnalysisConfig
from graph_analysis.graph_data import GraphData
from graph_analysis.models import Cluster
from graph_analysis.utils import Deadline

logger = logging.getLogger(__name__)


class ClusterDetector:
    """Connected components over strong relations, via iterative DFS."""

    def __init__(self, config: AnalysisConfig) -> None:
        self.strong_types = frozenset(config.strong_relation_types)

    def _strong_neighbors(self, graph: GraphData) -> Dict[str, List[str]]:
        """Undirected neighbour lists using only strong edges."""
        view: Dict[str, List[str]] = {node.id: [] for node in graph.nodes}
        for node in graph.nodes:
            for neighbor_id, edge in graph.neighbors(node.id, "both"):
                if edge.type in self.strong_types:
                    view[node.id].append(neighbor_id)
        return view

    @staticmethod
    def _collect_component(
        start_id: str,
        view: Dict[str, List[str]],
        visited: Set[str],
    ) -> List[str]:
        # Explicit stack: large graphs would blow the recursion limit.
        component: List[str] = []
        stack = [start_id]
        while stack:
            node_id = stack.pop()
            if node_id in visited:
                continue
            visited.add(node_id)
            component.append(node_id)
            for neighbor_id in view.get(node_id, ()):
                if neighbor_id not in visited:
                    stack.append(neighbor_id)
        return component

    def analyze(self, graph: GraphData, deadline: Optional[Deadline] = None) -> List[Cluster]:
        """Return clusters of two or more nodes, labelled by dominant type."""
        view = self._strong_neighbors(graph)
        visited: Set[str] = set()
        clusters: List[Cluster] = []

        for node in graph.nodes:
            if node.id in visited:
                continue
            if deadline is not None:
                deadline.check("clusters")
            component = self._collect_component(node.id, view, visited)
            if len(component) < 2:
                continue

            # most_common keeps first-encountered order among equal counts.
            type_counts = Counter(
                graph.get_node(node_id).type for node_id in component
            )
            dominant_type = type_counts.most_common(1)[0][0]

            clusters.append(
                Cluster(
                    id=f"cluster_{len(clusters)}",
                    node_ids=component,
                    label=f"{dominant_type} cluster ({len(component)} nodes)",
                )
            )

        logger.info(
            "Clusters: %d detected over %d nodes.", len(clusters), len(graph.nodes)
        )
        return clusters

"""
Weighted shortest-path search (Dijkstra) over forward adjacency.

Edges whose relation type is "preferred" by the caller have their weight
multiplied by ``preferred_edge_discount`` (0.5 by default), biasing the
search toward pedagogically meaningful routes. Ties between equal
tentative distances are broken by node declaration order, so results are
reproducible.
"""

import heapq
import logging
import math
from typing import Dict, Iterable, List, NamedTuple, Optional

from graph_analysis.config import AnalysisConfig
from graph_analysis.graph_data import GraphData

logger = logging.getLogger(__name__)


class PathResult(NamedTuple):
    path: List[str]
    distance: float


class PathFinder:
    """Dijkstra search bound to one ``GraphData`` snapshot."""

    def __init__(self, graph: GraphData, config: AnalysisConfig) -> None:
        self.graph = graph
        self.discount = config.preferred_edge_discount

    def edge_cost(self, weight: float, edge_type: str, preferred: frozenset) -> float:
        if edge_type in preferred:
            return weight * self.discount
        return weight

    def find_shortest_path(
        self,
        start_id: str,
        end_id: str,
        preferred_types: Iterable[str] = (),
        exclude: Iterable[str] = (),
    ) -> Optional[PathResult]:
        """Find the cheapest forward path from *start_id* to *end_id*.

        Args:
            start_id: First node of the path.
            end_id: Last node of the path.
            preferred_types: Relation types that receive the weight discount.
            exclude: Node ids removed from the search entirely.

        Returns:
            ``PathResult`` with the ordered node ids and total cost, or
            ``None`` when *end_id* is unreachable. "No path" is a normal
            outcome, not an error.
        """
        if start_id == end_id:
            return PathResult([start_id], 0.0)

        excluded = frozenset(exclude)
        if start_id in excluded or end_id in excluded:
            return None
        if start_id not in self.graph or end_id not in self.graph:
            return None

        preferred = frozenset(preferred_types)
        order = self.graph.node_index

        distances: Dict[str, float] = {start_id: 0.0}
        previous: Dict[str, str] = {}
        settled = set()
        heap = [(0.0, order[start_id], start_id)]

        while heap:
            dist, _, node_id = heapq.heappop(heap)
            if node_id in settled:
                continue
            settled.add(node_id)

            if node_id == end_id:
                return PathResult(self._reconstruct(previous, end_id), dist)

            for neighbor_id, edge in self.graph.adjacency[node_id]:
                if neighbor_id in settled or neighbor_id in excluded:
                    continue
                candidate = dist + self.edge_cost(edge.weight, edge.type, preferred)
                if candidate < distances.get(neighbor_id, math.inf):
                    distances[neighbor_id] = candidate
                    previous[neighbor_id] = node_id
                    heapq.heappush(heap, (candidate, order[neighbor_id], neighbor_id))

        logger.debug("No path from %s to %s.", start_id, end_id)
        return None

    @staticmethod
    def _reconstruct(previous: Dict[str, str], end_id: str) -> List[str]:
        path = [end_id]
        while path[-1] in previous:
            path.append(previous[path[-1]])
        path.reverse()
        return path

"""
Immutable adjacency snapshot of a knowledge graph.

``build_graph_data`` turns flat node/edge lists into forward and reverse
adjacency indexes that every analysis stage reads from. The snapshot is
built once per analysis and never mutated afterwards, so it can be
shared across worker threads.
"""

import logging
from collections import deque
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Literal, NamedTuple, Optional, Sequence

from graph_analysis.models import GraphEdge, GraphNode

logger = logging.getLogger(__name__)

Direction = Literal["forward", "backward", "both"]


class Neighbor(NamedTuple):
    """One adjacency entry: the node on the other end and the edge used."""

    node_id: str
    edge: GraphEdge


@dataclass(frozen=True)
class GraphData:
    """Node/edge lists plus adjacency maps keyed by node id.

    Adjacency maps contain an entry (possibly empty) for every declared
    node, in declaration order.
    """

    nodes: List[GraphNode]
    edges: List[GraphEdge]
    adjacency: Dict[str, List[Neighbor]]
    reverse_adjacency: Dict[str, List[Neighbor]]
    node_index: Dict[str, int] = field(default_factory=dict)

    def __len__(self) -> int:
        return len(self.nodes)

    def __contains__(self, node_id: object) -> bool:
        return node_id in self.node_index

    def get_node(self, node_id: str) -> Optional[GraphNode]:
        idx = self.node_index.get(node_id)
        return None if idx is None else self.nodes[idx]

    def out_degree(self, node_id: str) -> int:
        return len(self.adjacency.get(node_id, ()))

    def neighbors(self, node_id: str, direction: Direction = "forward") -> List[Neighbor]:
        """Adjacency entries of *node_id* in the requested direction."""
        result: List[Neighbor] = []
        if direction in ("forward", "both"):
            result.extend(self.adjacency.get(node_id, ()))
        if direction in ("backward", "both"):
            result.extend(self.reverse_adjacency.get(node_id, ()))
        return result

    # ------------------------------------------------------------------
    # Traversal
    # ------------------------------------------------------------------

    def traverse(
        self,
        start_id: str,
        max_depth: int = 10,
        direction: Direction = "forward",
        edge_types: Sequence[str] = (),
        node_types: Sequence[str] = (),
    ) -> List[str]:
        """Breadth-first traversal from *start_id*.

        Args:
            start_id: Node to start from.
            max_depth: Nodes further than this many hops are skipped.
            direction: Follow ``forward`` edges, ``backward`` edges or ``both``.
            edge_types: Only follow edges of these types (empty = all).
            node_types: Only visit nodes of these types (empty = all).
                Filtered-out nodes are neither returned nor expanded.

        Returns:
            Visited node ids in BFS order.
        """
        edge_filter = set(edge_types)
        node_filter = set(node_types)

        visited = set()
        result: List[str] = []
        queue = deque([(start_id, 0)])

        while queue:
            node_id, depth = queue.popleft()
            if node_id in visited or depth > max_depth:
                continue
            visited.add(node_id)

            node = self.get_node(node_id)
            if node is not None and node_filter and node.type not in node_filter:
                continue

            result.append(node_id)

            for neighbor_id, edge in self.neighbors(node_id, direction):
                if edge_filter and edge.type not in edge_filter:
                    continue
                if neighbor_id not in visited:
                    queue.append((neighbor_id, depth + 1))

        return result


# =========================================================================
# Builder
# =========================================================================


def build_graph_data(
    nodes: Iterable[GraphNode],
    edges: Iterable[GraphEdge],
) -> GraphData:
    """Build forward and reverse adjacency indexes.

    Entries are pre-initialised for every declared node. Edges that
    reference an undeclared node (either endpoint) are skipped without
    raising; use ``validation.find_dangling_references`` for strict
    checking.
    """
    node_list = list(nodes)
    edge_list = list(edges)

    adjacency: Dict[str, List[Neighbor]] = {}
    reverse: Dict[str, List[Neighbor]] = {}
    node_index: Dict[str, int] = {}
    for idx, node in enumerate(node_list):
        adjacency[node.id] = []
        reverse[node.id] = []
        node_index.setdefault(node.id, idx)

    skipped = 0
    for edge in edge_list:
        if edge.source not in adjacency or edge.target not in adjacency:
            skipped += 1
            logger.debug(
                "Skipping edge %s → %s: endpoint not declared.",
                edge.source, edge.target,
            )
            continue

        adjacency[edge.source].append(Neighbor(edge.target, edge))
        reverse[edge.target].append(Neighbor(edge.source, edge))

        if edge.bidirectional:
            adjacency[edge.target].append(Neighbor(edge.source, edge))
            reverse[edge.source].append(Neighbor(edge.target, edge))

    if skipped:
        logger.info("Ignored %d edge(s) with undeclared endpoints.", skipped)

    return GraphData(
        nodes=node_list,
        edges=edge_list,
        adjacency=adjacency,
        reverse_adjacency=reverse,
        node_index=node_index,
    )

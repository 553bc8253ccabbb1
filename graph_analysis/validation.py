"""
Structural validation and summary metrics.

Uses ``networkx`` for cycle detection, DAG depth and component counts.
None of these checks block an analysis; the analyzer logs what they find
and reports the numbers in ``GraphAnalysis.metrics``.
"""

import logging
from typing import Iterable, List, Optional, Tuple

import networkx as nx

from graph_analysis.graph_data import GraphData
from graph_analysis.models import GraphEdge, GraphMetrics, GraphNode
from graph_analysis.utils import Deadline

logger = logging.getLogger(__name__)


# =========================================================================
# Referential integrity
# =========================================================================


def find_dangling_references(
    nodes: Iterable[GraphNode],
    edges: Iterable[GraphEdge],
) -> List[GraphEdge]:
    """Return edges whose source or target is not a declared node."""
    declared = {node.id for node in nodes}
    return [e for e in edges if e.source not in declared or e.target not in declared]


# =========================================================================
# networkx views
# =========================================================================


def to_networkx(graph: GraphData) -> nx.MultiDiGraph:
    """Directed multigraph of the snapshot's forward adjacency."""
    G = nx.MultiDiGraph()
    for node in graph.nodes:
        G.add_node(node.id, type=node.type, level=node.level)
    for node in graph.nodes:
        for neighbor_id, edge in graph.adjacency[node.id]:
            G.add_edge(node.id, neighbor_id, type=edge.type, weight=edge.weight)
    return G


def _prerequisite_digraph(graph: GraphData) -> nx.DiGraph:
    G = nx.DiGraph()
    G.add_nodes_from(node.id for node in graph.nodes)
    for node in graph.nodes:
        for neighbor_id, edge in graph.adjacency[node.id]:
            if edge.type == "prerequisite":
                G.add_edge(node.id, neighbor_id)
    return G


def find_prerequisite_cycle(graph: GraphData) -> List[Tuple[str, str]]:
    """Return the ``(u, v)`` edges of one prerequisite cycle, or ``[]``."""
    G = _prerequisite_digraph(graph)
    try:
        cycle = nx.find_cycle(G, orientation="original")
    except nx.NetworkXNoCycle:
        return []
    return [(u, v) for u, v, _ in cycle]


# =========================================================================
# Metrics
# =========================================================================


def compute_metrics(graph: GraphData, deadline: Optional[Deadline] = None) -> GraphMetrics:
    """Compute a structural summary of *graph*."""
    G = to_networkx(graph)
    if deadline is not None:
        deadline.check("metrics")
    n_nodes = G.number_of_nodes()
    n_entries = G.number_of_edges()

    isolated = sum(1 for _ in nx.isolates(G))
    components = nx.number_weakly_connected_components(G) if n_nodes else 0

    if deadline is not None:
        deadline.check("metrics")
    prereq = _prerequisite_digraph(graph)
    is_dag = nx.is_directed_acyclic_graph(prereq)
    if is_dag and prereq.number_of_edges() > 0:
        max_depth = nx.dag_longest_path_length(prereq)
    else:
        max_depth = 0

    dangling = len(find_dangling_references(graph.nodes, graph.edges))

    return GraphMetrics(
        total_nodes=n_nodes,
        total_edges=len(graph.edges),
        avg_out_degree=round(n_entries / n_nodes, 4) if n_nodes else 0.0,
        isolated_nodes_count=isolated,
        weakly_connected_components=components,
        prerequisite_is_dag=is_dag,
        max_prerequisite_depth=max_depth,
        dangling_references=dangling,
    )

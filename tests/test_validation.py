"""
pytest suite for structural validation and metrics.
"""

import os
import sys

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from graph_analysis.graph_data import build_graph_data
from graph_analysis.models import GraphEdge, GraphNode
from graph_analysis.validation import (
    compute_metrics,
    find_dangling_references,
    find_prerequisite_cycle,
    to_networkx,
)


def _nodes(*ids):
    return [GraphNode(id=n, label=n, type="concept") for n in ids]


def _edge(source, target, edge_type="prerequisite", bidirectional=False):
    return GraphEdge(source=source, target=target, type=edge_type, bidirectional=bidirectional)


class TestReferences:
    def test_dangling_references_found(self):
        edges = [_edge("a", "b"), _edge("a", "ghost"), _edge("phantom", "b")]
        dangling = find_dangling_references(_nodes("a", "b"), edges)
        assert [(e.source, e.target) for e in dangling] == [("a", "ghost"), ("phantom", "b")]

    def test_clean_graph(self):
        assert find_dangling_references(_nodes("a", "b"), [_edge("a", "b")]) == []


class TestCycles:
    def test_prerequisite_cycle_detected(self):
        graph = build_graph_data(_nodes("a", "b", "c"), [_edge("a", "b"), _edge("b", "a")])
        cycle = find_prerequisite_cycle(graph)
        assert set(cycle) == {("a", "b"), ("b", "a")}

    def test_non_prerequisite_cycles_ignored(self):
        graph = build_graph_data(
            _nodes("a", "b"), [_edge("a", "b"), _edge("b", "a", "related")]
        )
        assert find_prerequisite_cycle(graph) == []


class TestMetrics:
    def test_chain_with_isolated_node(self):
        graph = build_graph_data(
            _nodes("a", "b", "c", "d"), [_edge("a", "b"), _edge("b", "c")]
        )
        m = compute_metrics(graph)
        assert m.total_nodes == 4
        assert m.total_edges == 2
        assert m.avg_out_degree == 0.5
        assert m.isolated_nodes_count == 1
        assert m.weakly_connected_components == 2
        assert m.prerequisite_is_dag is True
        assert m.max_prerequisite_depth == 2
        assert m.dangling_references == 0

    def test_cyclic_prerequisites(self):
        graph = build_graph_data(_nodes("a", "b"), [_edge("a", "b"), _edge("b", "a")])
        m = compute_metrics(graph)
        assert m.prerequisite_is_dag is False
        assert m.max_prerequisite_depth == 0

    def test_empty_graph(self):
        m = compute_metrics(build_graph_data([], []))
        assert m.total_nodes == 0
        assert m.avg_out_degree == 0.0
        assert m.weakly_connected_components == 0

    def test_dangling_counted(self):
        graph = build_graph_data(_nodes("a"), [_edge("a", "ghost")])
        m = compute_metrics(graph)
        assert m.dangling_references == 1
        assert m.isolated_nodes_count == 1

    def test_networkx_view_includes_bidirectional_entries(self):
        graph = build_graph_data(_nodes("a", "b"), [_edge("a", "b", "related", bidirectional=True)])
        G = to_networkx(graph)
        assert G.has_edge("a", "b")
        assert G.has_edge("b", "a")
        assert G.nodes["a"]["type"] == "concept"

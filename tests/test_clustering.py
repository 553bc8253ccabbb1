"""
pytest suite for strong-relation cluster detection.
"""

import os
import sys

import networkx as nx

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from graph_analysis.clustering import ClusterDetector
from graph_analysis.config import AnalysisConfig
from graph_analysis.graph_data import build_graph_data
from graph_analysis.models import GraphEdge, GraphNode


# =========================================================================
# Helpers
# =========================================================================


def _node(node_id, node_type="concept"):
    return GraphNode(id=node_id, label=node_id, type=node_type)


def _edge(source, target, edge_type):
    return GraphEdge(source=source, target=target, type=edge_type)


def _detect(nodes, edges, config=None):
    return ClusterDetector(config or AnalysisConfig()).analyze(build_graph_data(nodes, edges))


# =========================================================================
# Tests
# =========================================================================


class TestClusterDetection:
    def test_only_strong_relations_form_clusters(self):
        nodes = [_node(n) for n in ("a", "b", "c", "d", "e", "f")]
        edges = [
            _edge("a", "b", "related"),
            _edge("b", "c", "similar"),
            _edge("e", "f", "prerequisite"),
            _edge("c", "e", "contains"),
        ]
        clusters = _detect(nodes, edges)
        assert len(clusters) == 1
        assert set(clusters[0].node_ids) == {"a", "b", "c"}

    def test_singletons_never_reported(self):
        nodes = [_node(n) for n in ("a", "b", "isolated")]
        clusters = _detect(nodes, [_edge("a", "b", "extends")])
        members = {m for c in clusters for m in c.node_ids}
        assert "isolated" not in members
        assert all(len(c.node_ids) >= 2 for c in clusters)

    def test_no_strong_edges_no_clusters(self):
        nodes = [_node(n) for n in ("a", "b")]
        assert _detect(nodes, [_edge("a", "b", "prerequisite")]) == []

    def test_edge_direction_does_not_matter(self):
        # "a" is declared first but only has an incoming strong edge.
        nodes = [_node("a"), _node("b")]
        clusters = _detect(nodes, [_edge("b", "a", "related")])
        assert len(clusters) == 1
        assert set(clusters[0].node_ids) == {"a", "b"}

    def test_sequential_ids(self):
        nodes = [_node(n) for n in ("a", "b", "c", "d")]
        edges = [_edge("a", "b", "related"), _edge("c", "d", "similar")]
        clusters = _detect(nodes, edges)
        assert [c.id for c in clusters] == ["cluster_0", "cluster_1"]
        assert clusters[0].node_ids[0] == "a"
        assert clusters[1].node_ids[0] == "c"

    def test_strong_types_configurable(self):
        nodes = [_node("a"), _node("b")]
        config = AnalysisConfig(strong_relation_types=("prerequisite",))
        assert len(_detect(nodes, [_edge("a", "b", "prerequisite")], config)) == 1
        assert _detect(nodes, [_edge("a", "b", "related")], config) == []

    def test_matches_networkx_components(self):
        ids = [f"n{i}" for i in range(12)]
        nodes = [_node(n) for n in ids]
        pairs = [
            ("n0", "n1", "related"), ("n1", "n2", "similar"), ("n3", "n2", "extends"),
            ("n4", "n5", "related"), ("n6", "n7", "prerequisite"), ("n8", "n9", "similar"),
            ("n9", "n10", "contains"), ("n10", "n11", "related"), ("n5", "n4", "related"),
        ]
        clusters = _detect(nodes, [_edge(s, t, k) for s, t, k in pairs])

        G = nx.Graph()
        G.add_nodes_from(ids)
        G.add_edges_from(
            (s, t) for s, t, k in pairs if k in ("related", "similar", "extends")
        )
        expected = {frozenset(c) for c in nx.connected_components(G) if len(c) > 1}
        assert {frozenset(c.node_ids) for c in clusters} == expected

    def test_long_chain_does_not_recurse(self):
        ids = [f"n{i}" for i in range(5000)]
        nodes = [_node(n) for n in ids]
        edges = [_edge(ids[i], ids[i + 1], "related") for i in range(len(ids) - 1)]
        clusters = _detect(nodes, edges)
        assert len(clusters) == 1
        assert len(clusters[0].node_ids) == 5000


class TestClusterLabels:
    def test_dominant_type_label(self):
        nodes = [_node("a", "concept"), _node("b", "concept"), _node("c", "skill")]
        edges = [_edge("a", "b", "related"), _edge("b", "c", "related")]
        assert _detect(nodes, edges)[0].label == "concept cluster (3 nodes)"

    def test_tie_goes_to_first_encountered_type(self):
        nodes = [_node("a", "skill"), _node("b", "concept")]
        clusters = _detect(nodes, [_edge("a", "b", "similar")])
        assert clusters[0].label == "skill cluster (2 nodes)"

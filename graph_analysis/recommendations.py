"""
Heuristic structural recommendations.

Three independent signals are merged, ranked by confidence and capped:

1. **Missing connections**: unconnected node pairs scored from level
   adjacency, shared tags and label similarity.
2. **New nodes**: expected node types that are under-represented.
3. **Work suggestions**: nodes with no attached content, paired with a
   content type suited to the node type.

Each signal is best-effort: a failure is logged and yields no
suggestions from that signal, while the other signals still report.
"""

import logging
from collections import Counter
from typing import Any, Callable, Dict, List, Optional, Set, Tuple

from graph_analysis.config import AnalysisConfig
from graph_analysis.exceptions import ResourceExhaustedError
from graph_analysis.graph_data import GraphData
from graph_analysis.models import KNOWN_NODE_TYPES, GraphNode, Recommendation
from graph_analysis.utils import Deadline

logger = logging.getLogger(__name__)

# Signal weights
LEVEL_ADJACENCY_BONUS = 0.3
SHARED_TAG_BONUS = 0.2
LABEL_SIMILARITY_WEIGHT = 0.3

# When several signals fire, the suggested relation follows the first
# match in this order.
RELATION_PRECEDENCE = ("similar", "related", "contains")

NEW_NODE_CONFIDENCE = 0.6
NEW_NODE_LEVELS = {"subject": 0, "chapter": 1}

# node type → (content type, confidence)
WORK_TYPE_BY_NODE_TYPE: Dict[str, Tuple[str, float]] = {
    "concept": ("explanation", 0.8),
    "skill": ("exercise", 0.9),
    "topic": ("tutorial", 0.7),
}
DEFAULT_WORK_TYPE = ("article", 0.5)


# =========================================================================
# Lexical similarity
# =========================================================================


def string_similarity(a: str, b: str) -> float:
    """Jaccard similarity of the lower-cased character sets of *a* and *b*."""
    set_a = set(a.lower())
    set_b = set(b.lower())
    union = set_a | set_b
    if not union:
        return 0.0
    return len(set_a & set_b) / len(union)


def pick_relation_type(signals: Set[str]) -> str:
    """Choose the suggested relation for the signals that fired."""
    for relation in RELATION_PRECEDENCE:
        if relation in signals:
            return relation
    return "related"


# =========================================================================
# Engine
# =========================================================================


class RecommendationEngine:
    """Produces ranked ``Recommendation`` objects for a graph snapshot."""

    def __init__(self, config: AnalysisConfig) -> None:
        self.config = config

    # ------------------------------------------------------------------
    # Missing connections
    # ------------------------------------------------------------------

    def score_pair(self, a: GraphNode, b: GraphNode) -> Tuple[float, str, Dict[str, Any]]:
        """Return ``(confidence, relation_type, evidence)`` for a node pair."""
        confidence = 0.0
        signals: Set[str] = set()
        evidence: Dict[str, Any] = {}

        if abs(a.level - b.level) == 1:
            confidence += LEVEL_ADJACENCY_BONUS
            signals.add("contains")
            evidence["level_adjacent"] = True

        tags_b = set(b.metadata.tags)
        shared = [tag for tag in dict.fromkeys(a.metadata.tags) if tag in tags_b]
        if shared:
            confidence += SHARED_TAG_BONUS * len(shared)
            signals.add("related")
            evidence["shared_tags"] = shared

        similarity = string_similarity(a.label, b.label)
        if similarity > self.config.label_similarity_min:
            confidence += similarity * LABEL_SIMILARITY_WEIGHT
            signals.add("similar")
            evidence["label_similarity"] = round(similarity, 4)

        return confidence, pick_relation_type(signals), evidence

    def detect_missing_connections(
        self, graph: GraphData, deadline: Optional[Deadline] = None
    ) -> List[Dict[str, Any]]:
        connected = {frozenset((e.source, e.target)) for e in graph.edges}
        nodes = graph.nodes
        found: List[Dict[str, Any]] = []

        for i, a in enumerate(nodes):
            if deadline is not None:
                deadline.check("recommendations")
            for b in nodes[i + 1:]:
                if frozenset((a.id, b.id)) in connected:
                    continue
                confidence, relation, evidence = self.score_pair(a, b)
                if confidence <= self.config.min_confidence:
                    continue
                found.append({
                    "source_id": a.id,
                    "target_id": b.id,
                    "source_label": a.label,
                    "target_label": b.label,
                    "edge_type": relation,
                    "confidence": min(confidence, 1.0),
                    "evidence": evidence,
                })

        found.sort(key=lambda c: c["confidence"], reverse=True)
        logger.debug("Missing connections: %d candidate pair(s).", len(found))
        return found[: self.config.max_missing_connections]

    # ------------------------------------------------------------------
    # New nodes
    # ------------------------------------------------------------------

    def suggest_new_nodes(
        self, graph: GraphData, deadline: Optional[Deadline] = None
    ) -> List[Dict[str, Any]]:
        total = len(graph.nodes)
        if total <= self.config.new_node_min_graph_size:
            return []

        type_counts = Counter(node.type for node in graph.nodes)
        suggestions: List[Dict[str, Any]] = []
        for node_type in KNOWN_NODE_TYPES:
            share = type_counts.get(node_type, 0) / total
            if share < self.config.new_node_max_share:
                suggestions.append({
                    "label": f"New {node_type} node",
                    "type": node_type,
                    "level": NEW_NODE_LEVELS.get(node_type, 2),
                    "confidence": NEW_NODE_CONFIDENCE,
                    "current_share": round(share, 4),
                })
        return suggestions[: self.config.max_new_node_suggestions]

    # ------------------------------------------------------------------
    # Work suggestions
    # ------------------------------------------------------------------

    def suggest_work_mounts(
        self, graph: GraphData, deadline: Optional[Deadline] = None
    ) -> List[Dict[str, Any]]:
        suggestions: List[Dict[str, Any]] = []
        for node in graph.nodes:
            if node.metadata.content_count != 0:
                continue
            work_type, confidence = WORK_TYPE_BY_NODE_TYPE.get(node.type, DEFAULT_WORK_TYPE)
            suggestions.append({
                "node_id": node.id,
                "node_label": node.label,
                "work_type": work_type,
                "confidence": confidence,
            })
        return suggestions[: self.config.max_work_suggestions]

    # ------------------------------------------------------------------
    # Merge
    # ------------------------------------------------------------------

    @staticmethod
    def _best_effort(
        name: str,
        signal: Callable[..., List[Dict[str, Any]]],
        graph: GraphData,
        deadline: Optional[Deadline] = None,
    ) -> List[Dict[str, Any]]:
        try:
            return signal(graph, deadline)
        except ResourceExhaustedError:
            raise
        except Exception as exc:
            logger.warning(
                "Recommendation signal %r failed, skipping: %s", name, exc, exc_info=True
            )
            return []

    def analyze(
        self, graph: GraphData, deadline: Optional[Deadline] = None
    ) -> List[Recommendation]:
        recommendations: List[Recommendation] = []

        signal_results = self._best_effort(
            "missing_connection", self.detect_missing_connections, graph, deadline
        )
        for conn in signal_results:
            recommendations.append(Recommendation(
                type="missing_connection",
                description=(
                    f'Consider adding a "{conn["edge_type"]}" relation between '
                    f'"{conn["source_label"]}" and "{conn["target_label"]}".'
                ),
                confidence=conn["confidence"],
                data=conn,
            ))

        signal_results = self._best_effort(
            "new_node", self.suggest_new_nodes, graph, deadline
        )
        for suggestion in signal_results:
            recommendations.append(Recommendation(
                type="new_node",
                description=(
                    f'Consider adding a "{suggestion["label"]}" to round out '
                    f"the knowledge structure."
                ),
                confidence=suggestion["confidence"],
                data=suggestion,
            ))

        signal_results = self._best_effort(
            "work_suggestion", self.suggest_work_mounts, graph, deadline
        )
        for suggestion in signal_results:
            recommendations.append(Recommendation(
                type="work_suggestion",
                description=(
                    f'Node "{suggestion["node_label"]}" has no attached content; '
                    f'consider adding {suggestion["work_type"]} material.'
                ),
                confidence=suggestion["confidence"],
                data=suggestion,
            ))

        recommendations.sort(key=lambda r: r.confidence, reverse=True)
        logger.info("Recommendations: %d generated.", len(recommendations))
        return recommendations[: self.config.max_recommendations]

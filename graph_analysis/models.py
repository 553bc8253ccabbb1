"""
Pydantic models for the Concept Graph Analysis Engine.

Input: graph nodes, edges and stored graph documents.
Output: centrality scores, clusters, learning paths, recommendations,
structural metrics and the assembled analysis report.
"""

from typing import Any, Dict, List, Literal, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field


# =========================================================================
# Literals & constants
# =========================================================================

EdgeType = Literal["prerequisite", "contains", "related", "similar", "extends"]
RecommendationType = Literal["missing_connection", "new_node", "work_suggestion"]

# Open taxonomy: other node types are accepted, these are the ones the
# recommendation heuristics know about.
KNOWN_NODE_TYPES = ("subject", "chapter", "topic", "concept", "skill")

# Mid-point of the 1..5 difficulty scale.
DEFAULT_DIFFICULTY = 3.0


# =========================================================================
# Graph input models
# =========================================================================


class NodeMetadata(BaseModel):
    """Optional per-node attributes."""

    model_config = ConfigDict(frozen=True)

    tags: Tuple[str, ...] = ()
    difficulty: Optional[float] = Field(default=None, ge=1, le=5)
    content_count: int = Field(default=0, ge=0)
    description: Optional[str] = None

    @property
    def effective_difficulty(self) -> float:
        """Difficulty rating, falling back to the mid-scale default."""
        if self.difficulty is None:
            return DEFAULT_DIFFICULTY
        return self.difficulty


class GraphNode(BaseModel):
    """A learning concept. Immutable for the duration of one analysis."""

    model_config = ConfigDict(frozen=True)

    id: str
    label: str
    type: str
    level: int = Field(default=0, ge=0)
    metadata: NodeMetadata = Field(default_factory=NodeMetadata)


class GraphEdge(BaseModel):
    """A typed, weighted relation. ``weight`` is a traversal cost."""

    model_config = ConfigDict(frozen=True)

    source: str
    target: str
    type: EdgeType
    weight: float = Field(default=1.0, ge=0)
    bidirectional: bool = False
    id: Optional[str] = None


class GraphDocument(BaseModel):
    """A stored graph together with its ownership and visibility."""

    graph_id: str
    owner_id: Optional[str] = None
    is_public: bool = False
    title: Optional[str] = None
    nodes: List[GraphNode] = Field(default_factory=list)
    edges: List[GraphEdge] = Field(default_factory=list)


# =========================================================================
# Analysis output models
# =========================================================================


class CentralityScore(BaseModel):
    node_id: str
    score: float


class Cluster(BaseModel):
    id: str
    node_ids: List[str]
    label: str


class LearningPath(BaseModel):
    """An ordered route from a foundational to an advanced concept."""

    start_id: str
    end_id: str
    path: List[str]
    difficulty: float
    distance: float


class Recommendation(BaseModel):
    type: RecommendationType
    description: str
    confidence: float = Field(ge=0.0, le=1.0)
    data: Dict[str, Any] = Field(default_factory=dict)


class GraphMetrics(BaseModel):
    """Structural summary of a graph snapshot."""

    total_nodes: int = 0
    total_edges: int = 0
    avg_out_degree: float = 0.0
    isolated_nodes_count: int = 0
    weakly_connected_components: int = 0
    prerequisite_is_dag: bool = True
    max_prerequisite_depth: int = 0
    dangling_references: int = 0


class GraphAnalysis(BaseModel):
    """Complete analysis report for one graph."""

    graph_id: str
    centrality: List[CentralityScore] = Field(default_factory=list)
    clusters: List[Cluster] = Field(default_factory=list)
    learning_paths: List[LearningPath] = Field(default_factory=list)
    recommendations: List[Recommendation] = Field(default_factory=list)
    metrics: GraphMetrics = Field(default_factory=GraphMetrics)

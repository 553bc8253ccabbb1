"""
Analysis configuration.

Every numeric knob of the engine lives on ``AnalysisConfig`` and is
passed into each component's constructor. Configs round-trip through
JSON via ``load_config`` / ``save_config`` (used by the CLI
``--config`` / ``--save-config`` flags).
"""

import json
import logging
import os
from typing import Optional, Tuple

from pydantic import BaseModel, Field

from graph_analysis.models import EdgeType

logger = logging.getLogger(__name__)


class AnalysisConfig(BaseModel):
    """Tunable parameters for all analysis stages."""

    # --- Centrality ---
    damping_factor: float = Field(default=0.85, gt=0.0, lt=1.0)
    max_iterations: int = Field(default=100, ge=1)
    tolerance: float = Field(default=1e-6, gt=0.0)
    redistribute_dangling: bool = Field(
        default=True,
        description=(
            "Spread the score of zero-out-degree nodes uniformly each "
            "iteration so total mass stays 1. False reproduces the legacy "
            "leaking behaviour."
        ),
    )

    # --- Clustering ---
    strong_relation_types: Tuple[EdgeType, ...] = ("related", "similar", "extends")

    # --- Path finding ---
    preferred_edge_discount: float = Field(default=0.5, gt=0.0, le=1.0)
    learning_path_preferred_types: Tuple[EdgeType, ...] = ("prerequisite", "contains")

    # --- Learning-path sampling ---
    foundational_sample_size: int = Field(
        default=5,
        ge=0,
        description="Foundational nodes probed; bounds searches to this × advanced_sample_size.",
    )
    advanced_sample_size: int = Field(
        default=5,
        ge=0,
        description="Advanced nodes probed per foundational node.",
    )
    max_learning_paths: int = Field(default=10, ge=0)

    # --- Recommendations ---
    min_confidence: float = Field(
        default=0.5,
        ge=0.0,
        le=1.0,
        description="A missing connection must score strictly above this.",
    )
    max_recommendations: int = Field(default=10, ge=0)
    max_missing_connections: int = Field(default=5, ge=0)
    max_new_node_suggestions: int = Field(default=3, ge=0)
    max_work_suggestions: int = Field(default=5, ge=0)
    label_similarity_min: float = Field(
        default=0.3,
        ge=0.0,
        le=1.0,
        description="Label Jaccard similarity must exceed this to count as a signal.",
    )
    new_node_min_graph_size: int = Field(
        default=5,
        ge=0,
        description="New-node suggestions need strictly more nodes than this.",
    )
    new_node_max_share: float = Field(
        default=0.1,
        ge=0.0,
        le=1.0,
        description="Node types whose share of the graph is below this are suggested.",
    )

    # --- Resource budget ---
    max_nodes: Optional[int] = Field(
        default=1000,
        ge=1,
        description="Graphs above this size are rejected before the O(n²) pair scan.",
    )
    time_budget_seconds: Optional[float] = Field(default=30.0, gt=0.0)


def load_config(path: str) -> AnalysisConfig:
    """Read an ``AnalysisConfig`` from a JSON file."""
    with open(path, encoding="utf-8") as fh:
        raw = json.load(fh)
    config = AnalysisConfig.model_validate(raw)
    logger.info("Loaded analysis config from %s.", path)
    return config


def save_config(config: AnalysisConfig, path: str) -> None:
    """Write *config* as indented JSON, creating parent directories."""
    os.makedirs(os.path.dirname(os.path.abspath(path)), exist_ok=True)
    with open(path, "w", encoding="utf-8") as fh:
        json.dump(config.model_dump(mode="json"), fh, indent=2)
    logger.info("Config saved → %s", path)

"""
Concept Graph Analysis Engine
Centrality, clustering, learning-path discovery and structural
recommendations for knowledge graphs of learning concepts.
"""

from graph_analysis.analyzer import GraphAnalyzer, analyze_graph
from graph_analysis.config import AnalysisConfig
from graph_analysis.exceptions import (
    ComputationError,
    GraphAnalysisError,
    GraphNotFoundError,
    RepositoryError,
    ResourceExhaustedError,
)

__version__ = "0.1.0"

__all__ = [
    "AnalysisConfig",
    "ComputationError",
    "GraphAnalysisError",
    "GraphAnalyzer",
    "GraphNotFoundError",
    "RepositoryError",
    "ResourceExhaustedError",
    "analyze_graph",
]

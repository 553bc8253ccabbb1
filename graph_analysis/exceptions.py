"""
Typed exceptions raised by the analysis engine.

``analyze_graph`` is all-or-nothing: callers either get a complete
``GraphAnalysis`` or one of the errors below.
"""

from typing import Optional


class GraphAnalysisError(Exception):
    """Base class for every error raised by the engine."""


class GraphNotFoundError(GraphAnalysisError):
    """No graph matches *graph_id* that the requester owns or that is public.

    Missing and forbidden graphs raise the same error.
    """

    def __init__(self, graph_id: str) -> None:
        self.graph_id = graph_id
        super().__init__(f"graph {graph_id!r} does not exist or is not accessible")


class ComputationError(GraphAnalysisError):
    """An unexpected fault inside one of the analysis stages.

    Attributes:
        stage: Name of the failing stage (``'centrality'``, ``'clusters'`` …).
        original: The underlying exception.
    """

    def __init__(self, stage: str, original: Optional[BaseException] = None) -> None:
        self.stage = stage
        self.original = original
        super().__init__(f"stage={stage}: {original}")


class ResourceExhaustedError(GraphAnalysisError):
    """The graph exceeds the configured node-count or wall-clock budget."""

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(reason)


class RepositoryError(GraphAnalysisError):
    """The graph store failed while resolving or persisting a graph."""

"""
Graph storage collaborators.

The analysis core only needs one call:
``GraphRepository.resolve(graph_id, requester_id)``. It returns
``GraphFound`` when the graph exists and is either owned by the
requester or public, and ``GraphNotFound`` otherwise.

Provides:
- ``InMemoryGraphRepository``: dict-backed store for tests and embedding.
- ``SQLiteGraphRepository``: ``KnowledgeGraphs`` table with JSON-encoded
  node/edge lists.
"""

import json
import logging
import os
import sqlite3
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, List, Optional, Union

from graph_analysis.exceptions import RepositoryError
from graph_analysis.models import GraphDocument, GraphEdge, GraphNode

logger = logging.getLogger(__name__)


# =========================================================================
# Resolve results
# =========================================================================


@dataclass(frozen=True)
class GraphFound:
    graph_id: str
    nodes: List[GraphNode] = field(default_factory=list)
    edges: List[GraphEdge] = field(default_factory=list)


@dataclass(frozen=True)
class GraphNotFound:
    graph_id: str


ResolveResult = Union[GraphFound, GraphNotFound]


def _is_visible(document: GraphDocument, requester_id: Optional[str]) -> bool:
    if document.is_public:
        return True
    return requester_id is not None and document.owner_id == requester_id


class GraphRepository(ABC):
    """Resolves a graph id to its node/edge collection for a requester."""

    @abstractmethod
    def resolve(self, graph_id: str, requester_id: Optional[str] = None) -> ResolveResult:
        """Return ``GraphFound`` or ``GraphNotFound``; never raise for absence."""


# =========================================================================
# In-memory
# =========================================================================


class InMemoryGraphRepository(GraphRepository):
    def __init__(self, documents: Optional[List[GraphDocument]] = None) -> None:
        self._documents: Dict[str, GraphDocument] = {}
        for doc in documents or []:
            self.save_graph(doc)

    def save_graph(self, document: GraphDocument) -> None:
        self._documents[document.graph_id] = document

    def resolve(self, graph_id: str, requester_id: Optional[str] = None) -> ResolveResult:
        doc = self._documents.get(graph_id)
        if doc is None or not _is_visible(doc, requester_id):
            return GraphNotFound(graph_id)
        return GraphFound(graph_id, list(doc.nodes), list(doc.edges))


# =========================================================================
# SQLite
# =========================================================================

_CREATE_KNOWLEDGE_GRAPHS = """\
CREATE TABLE IF NOT EXISTS KnowledgeGraphs (
    id          TEXT    PRIMARY KEY,
    owner_id    TEXT,
    is_public   INTEGER NOT NULL DEFAULT 0,
    title       TEXT,
    nodes_json  TEXT    NOT NULL,
    edges_json  TEXT    NOT NULL,
    updated_at  TIMESTAMP
);
"""

_CREATE_IDX_OWNER = """\
CREATE INDEX IF NOT EXISTS idx_graphs_owner
    ON KnowledgeGraphs(owner_id);
"""


def get_connection(db_path: str) -> sqlite3.Connection:
    """Return a new SQLite connection with WAL mode and row-factory enabled."""
    os.makedirs(os.path.dirname(os.path.abspath(db_path)), exist_ok=True)
    conn = sqlite3.connect(db_path, timeout=10)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA journal_mode=WAL;")
    return conn


class SQLiteGraphRepository(GraphRepository):
    """Graph documents stored one row per graph.

    A fresh connection is opened per call so the repository can be used
    from any thread.
    """

    def __init__(self, db_path: str) -> None:
        self.db_path = db_path

    def migrate(self) -> None:
        """Create (or verify) the ``KnowledgeGraphs`` table + index."""
        conn = self._connect()
        try:
            conn.execute(_CREATE_KNOWLEDGE_GRAPHS)
            conn.execute(_CREATE_IDX_OWNER)
            conn.commit()
            logger.info("KnowledgeGraphs migration OK (%s).", self.db_path)
        except sqlite3.Error as exc:
            raise RepositoryError(f"migration failed: {exc}") from exc
        finally:
            conn.close()

    def save_graph(self, document: GraphDocument) -> None:
        """Insert or replace *document*."""
        nodes_json = json.dumps([n.model_dump(mode="json") for n in document.nodes])
        edges_json = json.dumps([e.model_dump(mode="json") for e in document.edges])
        now = datetime.now(timezone.utc).isoformat()

        conn = self._connect()
        try:
            conn.execute(
                """INSERT OR REPLACE INTO KnowledgeGraphs
                       (id, owner_id, is_public, title, nodes_json,
                        edges_json, updated_at)
                   VALUES (?, ?, ?, ?, ?, ?, ?)""",
                (document.graph_id, document.owner_id, int(document.is_public),
                 document.title, nodes_json, edges_json, now),
            )
            conn.commit()
        except sqlite3.Error as exc:
            raise RepositoryError(f"saving graph {document.graph_id!r} failed: {exc}") from exc
        finally:
            conn.close()
        logger.info(
            "Saved graph %s (%d nodes, %d edges).",
            document.graph_id, len(document.nodes), len(document.edges),
        )

    def delete_graph(self, graph_id: str, owner_id: str) -> bool:
        """Delete a graph owned by *owner_id*. Returns ``True`` if a row was removed."""
        conn = self._connect()
        try:
            cur = conn.execute(
                "DELETE FROM KnowledgeGraphs WHERE id = ? AND owner_id = ?",
                (graph_id, owner_id),
            )
            conn.commit()
            return cur.rowcount > 0
        except sqlite3.Error as exc:
            raise RepositoryError(f"deleting graph {graph_id!r} failed: {exc}") from exc
        finally:
            conn.close()

    def resolve(self, graph_id: str, requester_id: Optional[str] = None) -> ResolveResult:
        conn = self._connect()
        try:
            row = conn.execute(
                """SELECT id, nodes_json, edges_json
                   FROM KnowledgeGraphs
                   WHERE id = ? AND (owner_id = ? OR is_public = 1)""",
                (graph_id, requester_id),
            ).fetchone()
        except sqlite3.Error as exc:
            raise RepositoryError(f"resolving graph {graph_id!r} failed: {exc}") from exc
        finally:
            conn.close()

        if row is None:
            return GraphNotFound(graph_id)

        try:
            nodes = [GraphNode.model_validate(n) for n in json.loads(row["nodes_json"])]
            edges = [GraphEdge.model_validate(e) for e in json.loads(row["edges_json"])]
        except (ValueError, TypeError) as exc:
            raise RepositoryError(
                f"graph {graph_id!r} has a corrupt stored row: {exc}"
            ) from exc
        return GraphFound(graph_id, nodes, edges)

    def _connect(self) -> sqlite3.Connection:
        try:
            return get_connection(self.db_path)
        except sqlite3.Error as exc:
            raise RepositoryError(f"cannot open {self.db_path}: {exc}") from exc

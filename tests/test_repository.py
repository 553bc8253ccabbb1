"""
pytest suite for graph repositories and the owner-or-public visibility rule.
"""

import os
import sqlite3
import sys

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from graph_analysis.exceptions import RepositoryError
from graph_analysis.models import GraphDocument, GraphEdge, GraphNode, NodeMetadata
from graph_analysis.repository import (
    GraphFound,
    GraphNotFound,
    InMemoryGraphRepository,
    SQLiteGraphRepository,
)


# =========================================================================
# Fixtures
# =========================================================================


def _document(graph_id="g1", owner_id="alice", is_public=False):
    return GraphDocument(
        graph_id=graph_id,
        owner_id=owner_id,
        is_public=is_public,
        title="Algebra",
        nodes=[
            GraphNode(id="a", label="Variables", type="concept", level=1,
                      metadata=NodeMetadata(tags=["algebra"], difficulty=2)),
            GraphNode(id="b", label="Equations", type="skill", level=2),
        ],
        edges=[GraphEdge(source="a", target="b", type="prerequisite", weight=0.5,
                         bidirectional=True)],
    )


@pytest.fixture()
def tmp_db(tmp_path):
    """Return a DB path inside a temporary directory."""
    return str(tmp_path / "graphs" / "test_graphs.db")


@pytest.fixture()
def sqlite_repo(tmp_db):
    repo = SQLiteGraphRepository(tmp_db)
    repo.migrate()
    return repo


@pytest.fixture(params=["memory", "sqlite"])
def repo_factory(request, tmp_db):
    """Build either repository pre-loaded with the given documents."""

    def _build(*documents):
        if request.param == "memory":
            return InMemoryGraphRepository(list(documents))
        repo = SQLiteGraphRepository(tmp_db)
        repo.migrate()
        for doc in documents:
            repo.save_graph(doc)
        return repo

    return _build


# =========================================================================
# Test: Visibility (both implementations)
# =========================================================================


class TestVisibility:
    def test_owner_sees_private_graph(self, repo_factory):
        repo = repo_factory(_document())
        result = repo.resolve("g1", "alice")
        assert isinstance(result, GraphFound)
        assert [n.id for n in result.nodes] == ["a", "b"]
        assert len(result.edges) == 1

    def test_other_user_cannot_see_private_graph(self, repo_factory):
        repo = repo_factory(_document())
        assert repo.resolve("g1", "mallory") == GraphNotFound("g1")
        assert repo.resolve("g1", None) == GraphNotFound("g1")

    def test_public_graph_visible_to_anyone(self, repo_factory):
        repo = repo_factory(_document(is_public=True))
        assert isinstance(repo.resolve("g1", "mallory"), GraphFound)
        assert isinstance(repo.resolve("g1"), GraphFound)

    def test_missing_graph(self, repo_factory):
        repo = repo_factory(_document())
        assert repo.resolve("nope", "alice") == GraphNotFound("nope")


# =========================================================================
# Test: SQLite persistence
# =========================================================================


class TestSQLiteRepository:
    def test_table_created(self, sqlite_repo, tmp_db):
        conn = sqlite3.connect(tmp_db)
        tables = conn.execute(
            "SELECT name FROM sqlite_master WHERE type='table'"
        ).fetchall()
        conn.close()
        assert "KnowledgeGraphs" in {r[0] for r in tables}

    def test_round_trip_preserves_models(self, sqlite_repo):
        doc = _document()
        sqlite_repo.save_graph(doc)
        result = sqlite_repo.resolve("g1", "alice")
        assert result.nodes == doc.nodes
        assert result.edges == doc.edges
        assert result.nodes[0].metadata.difficulty == 2
        assert result.edges[0].bidirectional is True

    def test_save_replaces_existing(self, sqlite_repo):
        sqlite_repo.save_graph(_document())
        updated = _document(is_public=True)
        updated.nodes = updated.nodes[:1]
        updated.edges = []
        sqlite_repo.save_graph(updated)

        result = sqlite_repo.resolve("g1", "someone-else")
        assert isinstance(result, GraphFound)
        assert len(result.nodes) == 1

    def test_delete_requires_owner(self, sqlite_repo):
        sqlite_repo.save_graph(_document())
        assert sqlite_repo.delete_graph("g1", "mallory") is False
        assert sqlite_repo.delete_graph("g1", "alice") is True
        assert sqlite_repo.resolve("g1", "alice") == GraphNotFound("g1")

    def test_unmigrated_store_raises_repository_error(self, tmp_db):
        repo = SQLiteGraphRepository(tmp_db)
        with pytest.raises(RepositoryError):
            repo.resolve("g1", "alice")

    @pytest.mark.parametrize("nodes_json", ["{not json", '[{"id": "a"}]'])
    def test_corrupt_row_raises_repository_error(self, sqlite_repo, tmp_db, nodes_json):
        sqlite_repo.save_graph(_document())
        conn = sqlite3.connect(tmp_db)
        conn.execute("UPDATE KnowledgeGraphs SET nodes_json = ? WHERE id = 'g1'", (nodes_json,))
        conn.commit()
        conn.close()

        with pytest.raises(RepositoryError, match="corrupt"):
            sqlite_repo.resolve("g1", "alice")

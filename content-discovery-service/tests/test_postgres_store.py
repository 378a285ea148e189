"""Tests for SQL compilation and the asyncpg-backed content store."""

import pytest

from content_discovery_service.application.query_builder import (
    build_notes_query,
    build_study_rooms_query,
)
from content_discovery_service.domain.models import Difficulty, ILike, SourceQuery
from content_discovery_service.exceptions import ContentStoreError
from content_discovery_service.infrastructure.database.repositories import (
    PostgresContentStore,
    compile_query,
)
from content_discovery_service.schemas import DiscoveryFilter, SearchParams


def normalize(sql):
    return " ".join(sql.split())


class FakeDatabase:
    """Stands in for Database; records every statement it is asked to run"""

    def __init__(self, rows=None, count=0, error=None):
        self.rows = rows or []
        self.count = count
        self.error = error
        self.calls = []

    async def fetch_all(self, query, *args):
        self.calls.append((normalize(query), args))
        if self.error:
            raise self.error
        return self.rows

    async def fetch_one(self, query, *args):
        self.calls.append((normalize(query), args))
        return {"count": self.count} if self.count is not None else None


def test_compile_full_notes_query():
    params = SearchParams(
        query="react",
        filters=DiscoveryFilter(difficulty=[Difficulty.BEGINNER], topics=["react"]),
        page=2,
        limit=5,
    )

    select_sql, count_sql, args = compile_query(build_notes_query(params))

    where = "is_public = $1 AND title ILIKE $2 AND difficulty = ANY($3) AND tags && $4::text[]"
    assert normalize(select_sql) == (
        f"SELECT * FROM notes WHERE {where} ORDER BY created_at DESC, id LIMIT $5 OFFSET $6"
    )
    assert normalize(count_sql) == f"SELECT COUNT(*) AS count FROM notes WHERE {where}"
    assert args == [True, "%react%", ["beginner"], ["react"]]


def test_compile_study_rooms_topic_filter():
    params = SearchParams(filters=DiscoveryFilter(topics=["python"], difficulty=[Difficulty.ADVANCED]))

    select_sql, _, args = compile_query(build_study_rooms_query(params))

    assert "topic = ANY($2)" in normalize(select_sql)
    assert "difficulty" not in select_sql
    assert args == [True, ["python"]]


def test_compile_without_predicates():
    query = SourceQuery(table="roadmaps", predicates=(), order_by="view_count", descending=False)

    select_sql, count_sql, args = compile_query(query)

    assert normalize(select_sql) == (
        "SELECT * FROM roadmaps WHERE TRUE ORDER BY view_count ASC, id LIMIT $1 OFFSET $2"
    )
    assert normalize(count_sql) == "SELECT COUNT(*) AS count FROM roadmaps WHERE TRUE"
    assert args == []


@pytest.mark.parametrize(
    "query",
    [
        SourceQuery(table="users", predicates=(), order_by="created_at"),
        SourceQuery(table="notes", predicates=(), order_by="password"),
        SourceQuery(table="notes", predicates=(ILike("title; DROP TABLE notes", "%x%"),), order_by="created_at"),
        SourceQuery(table="study_rooms", predicates=(ILike("title", "%x%"),), order_by="created_at"),
    ],
)
def test_compile_rejects_unknown_identifiers(query):
    with pytest.raises(ContentStoreError):
        compile_query(query)


@pytest.mark.anyio
async def test_store_passes_window_and_returns_count():
    rows = [{"id": "n1", "title": "React Hooks Basics"}]
    db = FakeDatabase(rows=rows, count=17)
    query = build_notes_query(SearchParams(page=3, limit=4))

    result = await PostgresContentStore(db).execute(query)

    assert result.rows == rows
    assert result.count == 17
    (select_sql, select_args), (count_sql, count_args) = db.calls
    assert select_sql.startswith("SELECT * FROM notes")
    assert select_args == (True, 4, 8)
    assert count_args == (True,)


@pytest.mark.anyio
async def test_store_missing_count_row_means_zero():
    db = FakeDatabase(count=None)

    result = await PostgresContentStore(db).execute(build_notes_query(SearchParams()))

    assert result.rows == []
    assert result.count == 0


@pytest.mark.anyio
async def test_store_wraps_connection_errors():
    db = FakeDatabase(error=ConnectionRefusedError("connection refused"))

    with pytest.raises(ContentStoreError) as exc_info:
        await PostgresContentStore(db).execute(build_notes_query(SearchParams()))

    assert "connection refused" in exc_info.value.message
    assert isinstance(exc_info.value.__cause__, ConnectionRefusedError)

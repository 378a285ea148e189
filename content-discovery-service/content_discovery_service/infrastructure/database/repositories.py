"""
Repository implementations - Data access layer
"""
from typing import Any, Dict, List, Tuple
import logging

import asyncpg

from ...domain.models import Equals, ILike, InSet, Overlaps, SourceQuery, StoreResult
from ...domain.repositories import IContentStore
from ...exceptions import ContentStoreError
from .connection import Database

logger = logging.getLogger(__name__)

# Identifiers are interpolated into SQL, so only these are accepted
ALLOWED_COLUMNS: Dict[str, frozenset] = {
    "notes": frozenset({
        "is_public", "title", "difficulty", "tags", "created_at", "view_count",
    }),
    "roadmaps": frozenset({
        "is_public", "title", "difficulty", "tags", "created_at", "view_count",
    }),
    "study_rooms": frozenset({
        "is_public", "name", "topic", "created_at", "view_count",
    }),
}


def _check_identifier(table: str, column: str) -> str:
    if column not in ALLOWED_COLUMNS.get(table, ()):
        raise ContentStoreError(f"Column '{column}' is not queryable on '{table}'")
    return column


def compile_where(query: SourceQuery) -> Tuple[str, List[Any]]:
    """Build the WHERE clause and its positional arguments"""
    if query.table not in ALLOWED_COLUMNS:
        raise ContentStoreError(f"Unknown table '{query.table}'")

    clauses: List[str] = []
    args: List[Any] = []

    def param(value: Any) -> str:
        args.append(value)
        return f"${len(args)}"

    for predicate in query.predicates:
        column = _check_identifier(query.table, predicate.column)
        if isinstance(predicate, Equals):
            clauses.append(f"{column} = {param(predicate.value)}")
        elif isinstance(predicate, ILike):
            clauses.append(f"{column} ILIKE {param(predicate.pattern)}")
        elif isinstance(predicate, InSet):
            clauses.append(f"{column} = ANY({param(list(predicate.values))})")
        elif isinstance(predicate, Overlaps):
            clauses.append(f"{column} && {param(list(predicate.values))}::text[]")
        else:
            raise ContentStoreError(f"Unsupported predicate {predicate!r}")

    where = " AND ".join(clauses) if clauses else "TRUE"
    return where, args


def compile_query(query: SourceQuery) -> Tuple[str, str, List[Any]]:
    """
    Compile a SourceQuery to a page query and a count query

    Returns:
        Tuple of (select_sql, count_sql, args); the select takes two extra
        arguments for LIMIT and OFFSET appended after args
    """
    where, args = compile_where(query)
    order_column = _check_identifier(query.table, query.order_by)
    direction = "DESC" if query.descending else "ASC"
    n = len(args)

    # id keeps equal sort keys in a stable order across pages
    select_sql = f"""
        SELECT * FROM {query.table}
        WHERE {where}
        ORDER BY {order_column} {direction}, id
        LIMIT ${n + 1} OFFSET ${n + 2}
    """
    count_sql = f"SELECT COUNT(*) AS count FROM {query.table} WHERE {where}"
    return select_sql, count_sql, args


class PostgresContentStore(IContentStore):
    """Content store implementation using PostgreSQL"""

    def __init__(self, db: Database):
        self.db = db

    async def execute(self, query: SourceQuery) -> StoreResult:
        select_sql, count_sql, args = compile_query(query)
        try:
            rows = await self.db.fetch_all(select_sql, *args, query.limit, query.range_from)
            total = await self.db.fetch_one(count_sql, *args)
        except (asyncpg.PostgresError, asyncpg.InterfaceError, OSError) as e:
            logger.error(f"Query on {query.table} failed: {e}")
            raise ContentStoreError(str(e)) from e

        return StoreResult(rows=rows, count=total["count"] if total else 0)

"""In-memory collaborators shared by the discovery tests."""

import asyncio
import re
from typing import Any, Dict, List, Optional, Set

from content_discovery_service.application.services import IDiscoveryBackend
from content_discovery_service.domain.models import (
    Equals,
    ILike,
    InSet,
    Overlaps,
    SourceQuery,
    StoreResult,
)
from content_discovery_service.domain.repositories import IContentStore
from content_discovery_service.exceptions import ContentStoreError
from content_discovery_service.schemas import SearchParams


def _unescape_like(pattern: str) -> str:
    needle = pattern[1:-1] if pattern.startswith("%") and pattern.endswith("%") else pattern
    return re.sub(r"\\(.)", r"\1", needle)


def _matches(predicate, row: Dict[str, Any]) -> bool:
    value = row.get(predicate.column)
    if isinstance(predicate, Equals):
        return value == predicate.value
    if isinstance(predicate, ILike):
        return _unescape_like(predicate.pattern).lower() in (value or "").lower()
    if isinstance(predicate, InSet):
        return value in predicate.values
    if isinstance(predicate, Overlaps):
        return bool(set(value or []) & set(predicate.values))
    raise AssertionError(f"unexpected predicate {predicate!r}")


class FakeContentStore(IContentStore):
    """In-memory store that evaluates SourceQuery the way PostgreSQL would"""

    def __init__(self, tables: Optional[Dict[str, List[Dict[str, Any]]]] = None):
        self.tables = tables or {}
        self.queries: List[SourceQuery] = []
        self.failing: Set[str] = set()

    async def execute(self, query: SourceQuery) -> StoreResult:
        self.queries.append(query)
        if query.table in self.failing:
            raise ContentStoreError(f"relation {query.table} is unavailable")

        rows = [
            row for row in self.tables.get(query.table, [])
            if all(_matches(p, row) for p in query.predicates)
        ]
        # ORDER BY <column> <direction>, id
        rows.sort(key=lambda row: row["id"])
        rows.sort(key=lambda row: row[query.order_by], reverse=query.descending)
        window = rows[query.range_from:query.range_to + 1]
        return StoreResult(rows=[dict(row) for row in window], count=len(rows))

    @property
    def queried_tables(self) -> List[str]:
        return [query.table for query in self.queries]


def make_note(id, title, *, difficulty="beginner", tags=(), view_count=0,
              created_at="2024-01-01T00:00:00+00:00", is_public=True, **extra):
    return {
        "id": id,
        "title": title,
        "content": f"{title} content",
        "user_id": "user-1",
        "author_name": "Ada",
        "tags": list(tags),
        "difficulty": difficulty,
        "view_count": view_count,
        "like_count": 1,
        "created_at": created_at,
        "updated_at": created_at,
        "is_public": is_public,
        **extra,
    }


def make_roadmap(id, title, *, difficulty="beginner", tags=(), view_count=0,
                 created_at="2024-01-01T00:00:00+00:00", is_public=True, **extra):
    return {
        "id": id,
        "title": title,
        "description": f"{title} description",
        "user_id": "user-2",
        "tags": list(tags),
        "difficulty": difficulty,
        "view_count": view_count,
        "total_steps": 10,
        "completed_steps": 2,
        "category": "programming",
        "created_at": created_at,
        "updated_at": created_at,
        "is_public": is_public,
        **extra,
    }


def make_room(id, name, *, topic=None, status="scheduled", view_count=0,
              created_at="2024-01-01T00:00:00+00:00", is_public=True, **extra):
    return {
        "id": id,
        "name": name,
        "host_id": "user-3",
        "topic": topic,
        "status": status,
        "view_count": view_count,
        "current_users": 3,
        "max_participants": 8,
        "created_at": created_at,
        "updated_at": created_at,
        "is_public": is_public,
        **extra,
    }


def sample_tables() -> Dict[str, List[Dict[str, Any]]]:
    return {
        "notes": [
            make_note("n1", "React Hooks Basics", tags=["react", "frontend"],
                      view_count=50, created_at="2024-01-05T00:00:00+00:00"),
            make_note("n2", "Advanced React Patterns", difficulty="advanced", tags=["react"],
                      view_count=120, created_at="2024-01-03T00:00:00+00:00"),
            make_note("n3", "Python for Data Science", difficulty="intermediate",
                      tags=["python", "data-science"], view_count=80,
                      created_at="2024-01-04T00:00:00+00:00"),
            make_note("n4", "Private React Notes", tags=["react"], view_count=999,
                      created_at="2024-01-06T00:00:00+00:00", is_public=False),
            make_note("n5", "Intro to React Native", tags=["react", "mobile"],
                      view_count=10, created_at="2024-01-01T00:00:00+00:00"),
        ],
        "roadmaps": [
            make_roadmap("r1", "React Developer Path", tags=["react", "frontend"],
                         view_count=200, created_at="2024-01-02T00:00:00+00:00"),
            make_roadmap("r2", "Machine Learning Roadmap", difficulty="advanced",
                         tags=["ai", "machine-learning"], view_count=300,
                         created_at="2024-01-07T00:00:00+00:00"),
            make_roadmap("r3", "Backend with Python", difficulty="intermediate",
                         tags=["python", "backend"], view_count=40,
                         created_at="2024-01-01T00:00:00+00:00"),
        ],
        "study_rooms": [
            make_room("s1", "React Study Group", topic="react", status="active",
                      view_count=5, created_at="2024-01-03T00:00:00+00:00"),
            make_room("s2", "Python Night", topic="python", view_count=15,
                      created_at="2024-01-02T00:00:00+00:00"),
            make_room("s3", "Private React Room", topic="react", view_count=1,
                      created_at="2024-01-08T00:00:00+00:00", is_public=False),
        ],
    }


class GatedBackend(IDiscoveryBackend):
    """Wraps a backend; while `hold` is set each search waits for the test to open its gate"""

    def __init__(self, inner: IDiscoveryBackend):
        self.inner = inner
        self.hold = False
        self.calls: List[SearchParams] = []
        self.gates: List[asyncio.Event] = []

    async def search_content(self, params: SearchParams):
        gate = asyncio.Event()
        if not self.hold:
            gate.set()
        self.calls.append(params)
        self.gates.append(gate)
        await gate.wait()
        return await self.inner.search_content(params)

    async def get_trending(self):
        return await self.inner.get_trending()

    async def get_user_recommendations(self):
        return await self.inner.get_user_recommendations()

    async def wait_for_calls(self, count: int) -> None:
        for _ in range(1000):
            if len(self.calls) >= count:
                return
            await asyncio.sleep(0)
        raise AssertionError(f"expected {count} search calls, saw {len(self.calls)}")

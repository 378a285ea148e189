"""
FastAPI dependencies for Content Discovery Service
"""
from fastapi import Depends, Query
from typing import List, Optional

from .application.services import DiscoveryService
from .config import settings
from .domain.models import ContentType, Difficulty, SortBy
from .domain.repositories import IContentStore
from .infrastructure.database.connection import Database, get_db
from .infrastructure.database.repositories import PostgresContentStore
from .schemas import DiscoveryFilter, DurationRange, SearchParams


async def get_content_store(db: Database = Depends(get_db)) -> IContentStore:
    """Content store backed by the shared connection pool"""
    return PostgresContentStore(db)


async def get_discovery_service(
    store: IContentStore = Depends(get_content_store),
) -> DiscoveryService:
    """Get DiscoveryService instance with dependencies"""
    return DiscoveryService(store)


def get_search_params(
    q: str = Query("", description="Search text matched against titles"),
    topics: List[str] = Query([], description="Topics, matched against tags"),
    difficulty: List[Difficulty] = Query([], description="Difficulty levels"),
    content_type: List[ContentType] = Query([], description="Sources to search (default: all)"),
    sort_by: SortBy = Query(SortBy.RECENT, description="Sort mode"),
    duration_min: Optional[int] = Query(None, ge=0),
    duration_max: Optional[int] = Query(None, ge=0),
    page: int = Query(1, ge=1, description="Page number (1-indexed)"),
    limit: int = Query(
        settings.DEFAULT_PAGE_SIZE,
        ge=1,
        le=settings.MAX_PAGE_SIZE,
        description="Items per page, per source",
    ),
) -> SearchParams:
    """Collect query string parameters into SearchParams"""
    duration = None
    if duration_min is not None or duration_max is not None:
        duration = DurationRange(min=duration_min or 0, max=duration_max or 0)

    return SearchParams(
        query=q,
        filters=DiscoveryFilter(
            topics=topics,
            difficulty=difficulty,
            content_type=content_type,
            sort_by=sort_by,
            duration=duration,
        ),
        page=page,
        limit=limit,
    )

"""
Application services - Business logic layer

This module contains the discovery logic:
- Per-source reads (notes, roadmaps, study rooms)
- Aggregated search across the selected sources
- Trending content
- Recommendations
"""
from abc import ABC, abstractmethod
from typing import List, Optional
import asyncio
import logging

from ..config import settings
from ..domain.models import ALL_CONTENT_TYPES, ContentType, SortBy
from ..domain.repositories import IContentStore
from ..exceptions import InvalidSearchParamsError
from ..schemas import DiscoveryFilter, Recommendation, SearchPage, SearchParams, SearchResult
from .recommendations import IRecommender, StaticRecommender, wrap_recommendations
from .sources import FETCHERS

logger = logging.getLogger(__name__)


class IDiscoveryBackend(ABC):
    """What a discovery session needs from the service, local or remote"""

    @abstractmethod
    async def search_content(self, params: SearchParams) -> SearchPage:
        pass

    @abstractmethod
    async def get_trending(self) -> List[SearchResult]:
        pass

    @abstractmethod
    async def get_user_recommendations(self) -> List[Recommendation]:
        pass


def validate_params(params: SearchParams) -> None:
    """Reject out-of-range pagination instead of clamping it"""
    if params.page < 1:
        raise InvalidSearchParamsError(f"page must be >= 1, got {params.page}")
    if params.limit <= 0:
        raise InvalidSearchParamsError(f"limit must be > 0, got {params.limit}")


def selected_content_types(filters: DiscoveryFilter) -> List[ContentType]:
    """Sources to query, always in note, roadmap, studyroom order"""
    if not filters.content_type:
        return list(ALL_CONTENT_TYPES)
    requested = set(filters.content_type)
    return [content_type for content_type in ALL_CONTENT_TYPES if content_type in requested]


class DiscoveryService(IDiscoveryBackend):
    """Discovery service - fans queries out to the content sources"""

    def __init__(self, store: IContentStore, recommender: Optional[IRecommender] = None):
        self.store = store
        self.recommender = recommender or StaticRecommender()

    async def _fetch(self, content_type: ContentType, params: Optional[SearchParams]) -> SearchPage:
        params = params or SearchParams(limit=settings.DEFAULT_PAGE_SIZE)
        validate_params(params)
        return await FETCHERS[content_type].fetch(self.store, params)

    async def get_notes(self, params: Optional[SearchParams] = None) -> SearchPage:
        """Get one page of public notes"""
        return await self._fetch(ContentType.NOTE, params)

    async def get_roadmaps(self, params: Optional[SearchParams] = None) -> SearchPage:
        """Get one page of public roadmaps"""
        return await self._fetch(ContentType.ROADMAP, params)

    async def get_study_rooms(self, params: Optional[SearchParams] = None) -> SearchPage:
        """Get one page of public study rooms"""
        return await self._fetch(ContentType.STUDYROOM, params)

    async def search_content(self, params: SearchParams) -> SearchPage:
        """
        Search every selected source and merge the pages

        Each source applies the same page window on its own, so page N holds
        up to `limit` items from every source rather than `limit` items in
        total. Results are concatenated in source order; has_more is true when
        any queried source has more.

        Raises:
            InvalidSearchParamsError: If page or limit are out of range
            SourceFetchError: If any queried source fails
        """
        validate_params(params)
        content_types = selected_content_types(params.filters)

        pages = await asyncio.gather(*[
            FETCHERS[content_type].fetch(self.store, params)
            for content_type in content_types
        ])

        results: List[SearchResult] = []
        has_more = False
        for page in pages:
            results.extend(page.results)
            has_more = has_more or page.has_more

        logger.info(
            f"Search '{params.query}' page {params.page} over "
            f"{[t.value for t in content_types]}: {len(results)} results, has_more={has_more}"
        )
        return SearchPage(results=results, has_more=has_more)

    def _top_params(self, limit: int, sort_by: SortBy = SortBy.RECENT) -> SearchParams:
        return SearchParams(filters=DiscoveryFilter(sort_by=sort_by), page=1, limit=limit)

    async def get_trending(self) -> List[SearchResult]:
        """Most viewed notes followed by most viewed roadmaps"""
        params = self._top_params(settings.TRENDING_LIMIT, SortBy.TRENDING)
        notes, roadmaps = await asyncio.gather(
            self.get_notes(params),
            self.get_roadmaps(params),
        )
        return [*notes.results, *roadmaps.results]

    async def get_user_recommendations(self) -> List[Recommendation]:
        """Sample recent notes and roadmaps and let the recommender explain them"""
        params = self._top_params(settings.RECOMMENDATION_LIMIT)
        notes, roadmaps = await asyncio.gather(
            self.get_notes(params),
            self.get_roadmaps(params),
        )
        return wrap_recommendations([*notes.results, *roadmaps.results], self.recommender)

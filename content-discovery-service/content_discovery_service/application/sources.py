"""
Per-source fetchers

Each fetcher runs one SourceQuery against the content store and maps the rows.
The "more available" signal comes from the store's total count, per source.
"""
from dataclasses import dataclass
from typing import Callable, Dict
import logging

from ..domain.models import ContentType, SourceQuery
from ..domain.repositories import IContentStore
from ..exceptions import ContentStoreError, SourceFetchError
from ..schemas import SearchPage, SearchParams
from .mappers import MAPPERS, Record
from .query_builder import QUERY_BUILDERS

logger = logging.getLogger(__name__)


def has_more_rows(query: SourceQuery, count) -> bool:
    """True when rows exist past the end of the query's window"""
    if not count:
        return False
    return query.range_to + 1 < count


@dataclass(frozen=True)
class SourceFetcher:
    """Fetch one page from one content source"""
    content_type: ContentType
    label: str
    build: Callable[[SearchParams], SourceQuery]
    mapper: Callable[[Record], object]

    @property
    def error_message(self) -> str:
        return f"Failed to fetch {self.label}"

    async def fetch(self, store: IContentStore, params: SearchParams) -> SearchPage:
        query = self.build(params)
        try:
            result = await store.execute(query)
        except ContentStoreError as e:
            logger.error(f"{self.error_message}: {e.message}")
            raise SourceFetchError(self.content_type.value, self.error_message) from e

        results = [self.mapper(row) for row in result.rows or []]
        has_more = has_more_rows(query, result.count)
        logger.debug(
            f"Fetched {len(results)} {self.label} "
            f"(rows {query.range_from}-{query.range_to} of {result.count}, has_more={has_more})"
        )
        return SearchPage(results=results, has_more=has_more)


FETCHERS: Dict[ContentType, SourceFetcher] = {
    ContentType.NOTE: SourceFetcher(
        content_type=ContentType.NOTE,
        label="notes",
        build=QUERY_BUILDERS[ContentType.NOTE],
        mapper=MAPPERS[ContentType.NOTE],
    ),
    ContentType.ROADMAP: SourceFetcher(
        content_type=ContentType.ROADMAP,
        label="roadmaps",
        build=QUERY_BUILDERS[ContentType.ROADMAP],
        mapper=MAPPERS[ContentType.ROADMAP],
    ),
    ContentType.STUDYROOM: SourceFetcher(
        content_type=ContentType.STUDYROOM,
        label="study rooms",
        build=QUERY_BUILDERS[ContentType.STUDYROOM],
        mapper=MAPPERS[ContentType.STUDYROOM],
    ),
}

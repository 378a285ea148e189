"""
Discovery search session - client-held search state

Mirrors what a discovery screen needs: the typed query echoed immediately,
a debounced committed search, filter changes that reset pagination, and an
append-only load_more. Every committed search bumps a generation counter;
a response is applied only if its generation is still current, so a slow
superseded request can never overwrite newer state.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Any, List, Optional, Set, Tuple
import asyncio
import logging

from .application.services import IDiscoveryBackend
from .config import settings
from .domain.models import ContentType, Difficulty, SortBy
from .exceptions import DiscoveryError
from .schemas import DiscoveryFilter, Recommendation, SearchParams, SearchResult

logger = logging.getLogger(__name__)

TOGGLEABLE_FILTERS = {
    "topics": str,
    "difficulty": Difficulty,
    "content_type": ContentType,
}


class SearchStatus(str, Enum):
    """Session lifecycle"""
    IDLE = "idle"
    SEARCHING = "searching"
    LOADING_MORE = "loading_more"
    SUCCESS = "success"
    FAILED = "failed"


@dataclass(frozen=True)
class DiscoveryState:
    """Immutable snapshot of a session"""
    search_query: str
    filters: DiscoveryFilter
    results: Tuple[SearchResult, ...]
    trending: Tuple[SearchResult, ...]
    recommended: Tuple[Recommendation, ...]
    is_loading: bool
    has_more: bool
    error: Optional[str]
    page: int
    status: SearchStatus


class DiscoverySession:
    """Search state machine driving an IDiscoveryBackend"""

    def __init__(
        self,
        backend: IDiscoveryBackend,
        debounce_seconds: Optional[float] = None,
        page_size: Optional[int] = None,
    ):
        self.backend = backend
        self.debounce_seconds = (
            settings.SEARCH_DEBOUNCE_SECONDS if debounce_seconds is None else debounce_seconds
        )
        self.page_size = settings.DEFAULT_PAGE_SIZE if page_size is None else page_size

        self._search_query = ""
        self._committed_query: Optional[str] = None
        self._filters = DiscoveryFilter()
        self._results: List[SearchResult] = []
        self._trending: List[SearchResult] = []
        self._recommended: List[Recommendation] = []
        self._is_loading = False
        self._has_more = True
        self._error: Optional[str] = None
        self._page = 1
        self._status = SearchStatus.IDLE

        self._generation = 0
        self._debounce_task: Optional[asyncio.Task] = None
        self._background: Set[asyncio.Task] = set()
        self._closed = False

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def state(self) -> DiscoveryState:
        return DiscoveryState(
            search_query=self._search_query,
            filters=self._filters,
            results=tuple(self._results),
            trending=tuple(self._trending),
            recommended=tuple(self._recommended),
            is_loading=self._is_loading,
            has_more=self._has_more,
            error=self._error,
            page=self._page,
            status=self._status,
        )

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def closed(self) -> bool:
        return self._closed

    def _ensure_open(self) -> None:
        if self._closed:
            raise RuntimeError("Discovery session is closed")

    def _is_current(self, generation: int) -> bool:
        return not self._closed and generation == self._generation

    def _fail(self, message: str) -> None:
        # Accumulated results stay visible
        self._is_loading = False
        self._error = message
        self._status = SearchStatus.FAILED

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def start(self) -> None:
        """Load trending and recommended content and run the initial search"""
        self._ensure_open()
        await asyncio.gather(
            self._load_trending(),
            self._load_recommended(),
            self._commit_search(),
        )

    async def close(self) -> None:
        """Stop all further state changes; in-flight responses are dropped"""
        if self._closed:
            return
        self._closed = True
        self._generation += 1
        self._cancel_debounce()
        pending = [task for task in self._background if not task.done()]
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
        logger.debug("Discovery session closed")

    async def wait_idle(self) -> None:
        """Wait for the pending debounce timer and any search it started"""
        while True:
            pending = [
                task for task in (self._debounce_task, *self._background)
                if task is not None and not task.done()
            ]
            if not pending:
                return
            await asyncio.gather(*pending, return_exceptions=True)

    async def _load_trending(self) -> None:
        try:
            trending = await self.backend.get_trending()
        except DiscoveryError as e:
            logger.error(f"Failed to load trending content: {e.message}")
            return
        if not self._closed:
            self._trending = list(trending)

    async def _load_recommended(self) -> None:
        try:
            recommended = await self.backend.get_user_recommendations()
        except DiscoveryError as e:
            logger.error(f"Failed to load recommendations: {e.message}")
            return
        if not self._closed:
            self._recommended = list(recommended)

    # ------------------------------------------------------------------
    # Query text (debounced)
    # ------------------------------------------------------------------

    def update_search_query(self, query: str) -> None:
        """Echo the text now; search once typing has been quiet for the debounce delay"""
        self._ensure_open()
        self._search_query = query
        self._cancel_debounce()
        self._debounce_task = asyncio.get_running_loop().create_task(self._debounce(query))

    def _cancel_debounce(self) -> None:
        task = self._debounce_task
        self._debounce_task = None
        if task is not None and not task.done():
            task.cancel()

    async def _debounce(self, query: str) -> None:
        await asyncio.sleep(self.debounce_seconds)

        task = asyncio.current_task()
        if self._debounce_task is task:
            self._debounce_task = None
        if self._closed or query == self._committed_query:
            return

        # From here on the task is a search, not a timer: keystrokes no longer cancel it
        self._background.add(task)
        task.add_done_callback(self._background.discard)
        await self._commit_search()

    # ------------------------------------------------------------------
    # Filters (immediate)
    # ------------------------------------------------------------------

    async def update_filters(self, **changes: Any) -> None:
        """Merge filter changes, reset pagination and search right away"""
        self._ensure_open()
        merged = {**self._filters.model_dump(), **changes}
        self._filters = DiscoveryFilter.model_validate(merged)
        await self._reset_and_search()

    async def toggle_filter(self, kind: str, value: Any) -> None:
        """Add value to a multi-valued filter, or remove it if already present"""
        self._ensure_open()
        if kind not in TOGGLEABLE_FILTERS:
            raise ValueError(f"'{kind}' is not a toggleable filter")
        value = TOGGLEABLE_FILTERS[kind](value)
        current = list(getattr(self._filters, kind))
        if value in current:
            current.remove(value)
        else:
            current.append(value)
        await self.update_filters(**{kind: current})

    async def set_sort(self, sort_by: SortBy) -> None:
        await self.update_filters(sort_by=SortBy(sort_by))

    async def clear_filters(self) -> None:
        self._ensure_open()
        self._filters = DiscoveryFilter()
        await self._reset_and_search()

    async def _reset_and_search(self) -> None:
        self._results = []
        self._has_more = True
        self._page = 1
        await self._commit_search()

    # ------------------------------------------------------------------
    # Searching
    # ------------------------------------------------------------------

    async def search(self) -> None:
        """Commit a search for the current text without waiting for the debounce"""
        self._ensure_open()
        await self._commit_search()

    async def _commit_search(self) -> None:
        # A committed search supersedes the pending timer and everything in flight
        self._cancel_debounce()
        self._generation += 1
        generation = self._generation
        query = self._search_query
        self._committed_query = query

        self._is_loading = True
        self._error = None
        self._status = SearchStatus.SEARCHING

        params = SearchParams(query=query, filters=self._filters, page=1, limit=self.page_size)
        logger.info(f"Committed search #{generation} for '{query}'")
        try:
            page = await self.backend.search_content(params)
        except DiscoveryError as e:
            logger.error(f"Search #{generation} failed: {e.message}")
            self._commit_failed(generation, e.message)
            return
        except Exception as e:
            logger.exception(f"Search #{generation} failed unexpectedly: {e}")
            self._commit_failed(generation, f"Search failed: {e}")
            return

        if not self._is_current(generation):
            logger.debug(f"Discarding superseded search #{generation}")
            return

        self._results = list(page.results)
        self._has_more = page.has_more
        self._page = 1
        self._is_loading = False
        self._status = SearchStatus.SUCCESS

    def _commit_failed(self, generation: int, message: str) -> None:
        if not self._is_current(generation):
            logger.debug(f"Ignoring failure of superseded search #{generation}")
            return
        # No page of this search has loaded; the next load_more fetches page 1
        self._page = 0
        self._has_more = True
        self._fail(message)

    async def load_more(self) -> None:
        """
        Append the next page; no-op while loading or when nothing is left

        After a failed committed search no page of it is shown yet, so this
        fetches page 1 and replaces whatever results are still on screen.
        """
        self._ensure_open()
        if self._is_loading or not self._has_more:
            return

        generation = self._generation
        next_page = self._page + 1
        self._is_loading = True
        self._error = None
        self._status = SearchStatus.SEARCHING if next_page == 1 else SearchStatus.LOADING_MORE

        params = SearchParams(
            query=self._committed_query or "",
            filters=self._filters,
            page=next_page,
            limit=self.page_size,
        )
        try:
            page = await self.backend.search_content(params)
        except DiscoveryError as e:
            if self._is_current(generation):
                logger.error(f"Loading page {next_page} failed: {e.message}")
                self._fail(e.message)
            return
        except Exception as e:
            if self._is_current(generation):
                logger.exception(f"Loading page {next_page} failed unexpectedly: {e}")
                self._fail(f"Search failed: {e}")
            return

        if not self._is_current(generation):
            logger.debug(f"Discarding page {next_page} of superseded search #{generation}")
            return

        if next_page == 1:
            self._results = []
        seen = {(item.type, item.id) for item in self._results}
        for item in page.results:
            key = (item.type, item.id)
            if key not in seen:
                seen.add(key)
                self._results.append(item)
        self._has_more = page.has_more
        self._page = next_page
        self._is_loading = False
        self._status = SearchStatus.SUCCESS

"""
HTTP client for a remote Content Discovery Service

Implements the same backend interface as DiscoveryService so a
DiscoverySession can run against either.
"""
import httpx
from pydantic import BaseModel, ValidationError
from typing import Optional, List, Dict, Any, Type, TypeVar
import logging

from .application.services import IDiscoveryBackend
from .config import settings
from .exceptions import DiscoveryClientError
from .schemas import (
    Recommendation,
    RecommendationsResponse,
    SearchPage,
    SearchParams,
    SearchResult,
    TrendingResponse,
)

logger = logging.getLogger(__name__)

API_PREFIX = "/api/v1/discovery"

ModelT = TypeVar("ModelT", bound=BaseModel)


def search_query_params(params: SearchParams) -> Dict[str, Any]:
    """Flatten SearchParams into query string parameters"""
    filters = params.filters
    query: Dict[str, Any] = {
        "q": params.query,
        "page": params.page,
        "limit": params.limit,
        "sort_by": filters.sort_by.value,
    }
    if filters.topics:
        query["topics"] = list(filters.topics)
    if filters.difficulty:
        query["difficulty"] = [d.value for d in filters.difficulty]
    if filters.content_type:
        query["content_type"] = [t.value for t in filters.content_type]
    if filters.duration is not None:
        query["duration_min"] = filters.duration.min
        query["duration_max"] = filters.duration.max
    return query


class DiscoveryClient(IDiscoveryBackend):
    """HTTP client for the discovery API"""

    def __init__(
        self,
        base_url: Optional[str] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.base_url = base_url or settings.DISCOVERY_SERVICE_URL
        self.timeout = httpx.Timeout(settings.CLIENT_TIMEOUT_SECONDS, connect=5.0)
        self.client: Optional[httpx.AsyncClient] = client

    async def start(self):
        """Initialize HTTP client"""
        if self.client is None:
            self.client = httpx.AsyncClient(base_url=self.base_url, timeout=self.timeout)
        logger.info("Discovery client initialized")

    async def stop(self):
        """Close HTTP client"""
        if self.client:
            await self.client.aclose()
            logger.info("Discovery client closed")

    async def __aenter__(self) -> "DiscoveryClient":
        await self.start()
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.stop()

    async def _get(
        self,
        path: str,
        model: Type[ModelT],
        params: Optional[Dict[str, Any]] = None,
    ) -> ModelT:
        """GET a discovery endpoint and validate its JSON body as model"""
        if not self.client:
            raise DiscoveryClientError("Discovery client not initialized")

        url = f"{API_PREFIX}{path}"
        try:
            response = await self.client.get(url, params=params)
            response.raise_for_status()
            return model.model_validate(response.json())
        except httpx.HTTPStatusError as e:
            message = _error_message(e.response)
            logger.error(f"HTTP error {e.response.status_code} for {url}: {message}")
            raise DiscoveryClientError(message, status=e.response.status_code) from e
        except httpx.HTTPError as e:
            logger.error(f"Request failed for {url}: {e}")
            raise DiscoveryClientError(f"Discovery service unavailable: {e}") from e
        except (ValueError, ValidationError) as e:
            logger.error(f"Invalid response from {url}: {e}")
            raise DiscoveryClientError(f"Invalid response from discovery service: {e}", status=502) from e

    async def search_content(self, params: SearchParams) -> SearchPage:
        return await self._get("/search", SearchPage, params=search_query_params(params))

    async def get_notes(self, params: Optional[SearchParams] = None) -> SearchPage:
        return await self._get("/notes", SearchPage, params=search_query_params(params or SearchParams()))

    async def get_roadmaps(self, params: Optional[SearchParams] = None) -> SearchPage:
        return await self._get("/roadmaps", SearchPage, params=search_query_params(params or SearchParams()))

    async def get_study_rooms(self, params: Optional[SearchParams] = None) -> SearchPage:
        return await self._get("/study-rooms", SearchPage, params=search_query_params(params or SearchParams()))

    async def get_trending(self) -> List[SearchResult]:
        response = await self._get("/trending", TrendingResponse)
        return response.items

    async def get_user_recommendations(self) -> List[Recommendation]:
        response = await self._get("/recommendations", RecommendationsResponse)
        return response.items


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text or f"HTTP {response.status_code}"
    if isinstance(body, dict):
        return str(body.get("message") or body.get("detail") or body)
    return str(body)

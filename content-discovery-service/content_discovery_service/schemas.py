"""
Pydantic schemas for Content Discovery Service
"""
from pydantic import BaseModel, Field
from typing import Annotated, Optional, List, Literal, Union
from datetime import datetime

from .domain.models import ContentType, Difficulty, SortBy


class Author(BaseModel):
    """Content author"""
    id: str = ""
    name: str = "Unknown"
    avatar: Optional[str] = None


class BaseContent(BaseModel):
    """Fields shared by every search result"""
    id: str
    title: str = ""
    description: str = ""
    author: Author = Field(default_factory=Author)
    tags: List[str] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime
    likes: int = 0
    views: int = 0
    is_bookmarked: bool = False
    is_liked: bool = False


class NoteResult(BaseContent):
    """Note card"""
    type: Literal["note"] = "note"
    preview: str = ""
    subject: Optional[str] = None
    difficulty: Difficulty = Difficulty.BEGINNER
    reading_time: int = 0  # minutes
    is_public: bool = False
    is_favorite: bool = False
    word_count: int = 0


class RoadmapResult(BaseContent):
    """Roadmap card"""
    type: Literal["roadmap"] = "roadmap"
    total_steps: int = 0
    completed_steps: int = 0
    estimated_time: Optional[str] = None  # e.g. "12 hours"
    difficulty: Difficulty = Difficulty.BEGINNER
    category: str = ""
    is_public: bool = False


class StudyRoomResult(BaseContent):
    """Study room card"""
    type: Literal["studyroom"] = "studyroom"
    is_live: bool = False
    current_users: int = 0
    max_users: int = 10
    topic: Optional[str] = None
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    is_public: bool = False


SearchResult = Annotated[
    Union[NoteResult, RoadmapResult, StudyRoomResult],
    Field(discriminator="type"),
]


class DurationRange(BaseModel):
    """Duration bounds in minutes (accepted but not applied by any source)"""
    min: int = 0
    max: int = 0


class DiscoveryFilter(BaseModel):
    """User-selected filters; list fields behave as sets"""
    topics: List[str] = Field(default_factory=list)
    difficulty: List[Difficulty] = Field(default_factory=list)
    content_type: List[ContentType] = Field(default_factory=list)
    sort_by: SortBy = SortBy.RECENT
    duration: Optional[DurationRange] = None


class SearchParams(BaseModel):
    """One logical discovery query"""
    query: str = ""
    filters: DiscoveryFilter = Field(default_factory=DiscoveryFilter)
    page: int = 1
    limit: int = 12


class SearchPage(BaseModel):
    """A page of results plus the "more available" signal"""
    results: List[SearchResult] = Field(default_factory=list)
    has_more: bool = False


class Recommendation(BaseModel):
    """A result wrapped with the reason it was recommended"""
    id: str
    content: SearchResult
    reason: str
    confidence: float = Field(ge=0.0, le=1.0)


class TrendingResponse(BaseModel):
    """Trending content response"""
    items: List[SearchResult]


class RecommendationsResponse(BaseModel):
    """Recommendations response"""
    items: List[Recommendation]


class ErrorResponse(BaseModel):
    """Error body returned by the exception handler"""
    code: int
    message: str

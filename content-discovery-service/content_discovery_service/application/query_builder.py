"""
Source query builders

Translate a logical SearchParams into one SourceQuery per content table.
Private rows are excluded here, at the query level, for every source.
"""
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Tuple

from ..domain.models import (
    ContentType,
    Equals,
    ILike,
    InSet,
    Overlaps,
    Predicate,
    SortBy,
    SourceQuery,
)
from ..schemas import SearchParams

SORT_COLUMNS: Dict[SortBy, str] = {
    SortBy.RECENT: "created_at",
    SortBy.POPULAR: "view_count",
    SortBy.TRENDING: "view_count",
}
DEFAULT_SORT_COLUMN = "created_at"


def sort_column(sort_by: Optional[SortBy]) -> str:
    """Column a sort mode orders by; unknown modes fall back to creation time"""
    return SORT_COLUMNS.get(sort_by, DEFAULT_SORT_COLUMN)


def page_window(page: int, limit: int) -> Tuple[int, int]:
    """Zero-based inclusive row range for a 1-based page"""
    range_from = (page - 1) * limit
    return range_from, range_from + limit - 1


def escape_like(text: str) -> str:
    """Escape LIKE wildcards so the query text matches literally"""
    return text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


@dataclass(frozen=True)
class SourceSchema:
    """Where a source keeps the columns the builder needs"""
    table: str
    title_column: str
    topic_column: str
    topic_is_array: bool
    has_difficulty: bool


SOURCE_SCHEMAS: Dict[ContentType, SourceSchema] = {
    ContentType.NOTE: SourceSchema(
        table="notes",
        title_column="title",
        topic_column="tags",
        topic_is_array=True,
        has_difficulty=True,
    ),
    ContentType.ROADMAP: SourceSchema(
        table="roadmaps",
        title_column="title",
        topic_column="tags",
        topic_is_array=True,
        has_difficulty=True,
    ),
    ContentType.STUDYROOM: SourceSchema(
        table="study_rooms",
        title_column="name",
        topic_column="topic",
        topic_is_array=False,
        has_difficulty=False,
    ),
}


def build_query(schema: SourceSchema, params: SearchParams) -> SourceQuery:
    """Compose visibility, text, difficulty and topic predicates plus order and window"""
    filters = params.filters
    predicates: List[Predicate] = [Equals("is_public", True)]

    if params.query:
        predicates.append(ILike(schema.title_column, f"%{escape_like(params.query)}%"))

    if schema.has_difficulty and filters.difficulty:
        predicates.append(InSet("difficulty", tuple(d.value for d in filters.difficulty)))

    if filters.topics:
        topics = tuple(filters.topics)
        if schema.topic_is_array:
            predicates.append(Overlaps(schema.topic_column, topics))
        else:
            predicates.append(InSet(schema.topic_column, topics))

    range_from, range_to = page_window(params.page, params.limit)
    return SourceQuery(
        table=schema.table,
        predicates=tuple(predicates),
        order_by=sort_column(filters.sort_by),
        descending=True,
        range_from=range_from,
        range_to=range_to,
    )


def build_notes_query(params: SearchParams) -> SourceQuery:
    return build_query(SOURCE_SCHEMAS[ContentType.NOTE], params)


def build_roadmaps_query(params: SearchParams) -> SourceQuery:
    return build_query(SOURCE_SCHEMAS[ContentType.ROADMAP], params)


def build_study_rooms_query(params: SearchParams) -> SourceQuery:
    return build_query(SOURCE_SCHEMAS[ContentType.STUDYROOM], params)


QUERY_BUILDERS: Dict[ContentType, Callable[[SearchParams], SourceQuery]] = {
    ContentType.NOTE: build_notes_query,
    ContentType.ROADMAP: build_roadmaps_query,
    ContentType.STUDYROOM: build_study_rooms_query,
}

"""
Domain models - Core business entities
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple, Union


class ContentType(str, Enum):
    """Content sources, in aggregation order"""
    NOTE = "note"
    ROADMAP = "roadmap"
    STUDYROOM = "studyroom"


class Difficulty(str, Enum):
    """Difficulty levels shared by notes and roadmaps"""
    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"


class SortBy(str, Enum):
    """Sort modes offered to the user"""
    RECENT = "recent"
    POPULAR = "popular"
    TRENDING = "trending"
    RECOMMENDED = "recommended"


ALL_CONTENT_TYPES: Tuple[ContentType, ...] = (
    ContentType.NOTE,
    ContentType.ROADMAP,
    ContentType.STUDYROOM,
)


# Query primitives understood by every IContentStore

@dataclass(frozen=True)
class Equals:
    """column = value"""
    column: str
    value: Any


@dataclass(frozen=True)
class ILike:
    """Case-insensitive substring match on a text column"""
    column: str
    pattern: str


@dataclass(frozen=True)
class InSet:
    """Scalar column value is one of values"""
    column: str
    values: Tuple[Any, ...]


@dataclass(frozen=True)
class Overlaps:
    """Array column shares at least one element with values"""
    column: str
    values: Tuple[Any, ...]


Predicate = Union[Equals, ILike, InSet, Overlaps]


@dataclass(frozen=True)
class SourceQuery:
    """A store-agnostic read query against one content table"""
    table: str
    predicates: Tuple[Predicate, ...]
    order_by: str
    descending: bool = True
    range_from: int = 0
    range_to: int = 11

    @property
    def limit(self) -> int:
        return self.range_to - self.range_from + 1


@dataclass
class StoreResult:
    """Raw rows for the requested window plus the total matching count"""
    rows: List[Dict[str, Any]] = field(default_factory=list)
    count: Optional[int] = None

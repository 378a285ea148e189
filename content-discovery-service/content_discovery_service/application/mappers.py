"""
Record mappers - raw store rows to typed search results

Mappers never raise. Every missing or malformed field falls back to a safe
default so callers never have to deal with absent values. Text previews are cut
at a fixed character length, not at word boundaries.
"""
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Mapping, Optional

from ..config import settings
from ..domain.models import ContentType, Difficulty
from ..schemas import Author, NoteResult, RoadmapResult, SearchResult, StudyRoomResult

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
UNKNOWN_AUTHOR = "Unknown"

Record = Mapping[str, Any]


def _text(value: Any) -> str:
    if value is None:
        return ""
    return value if isinstance(value, str) else str(value)


def _optional_text(value: Any) -> Optional[str]:
    text = _text(value)
    return text or None


def _int(value: Any, default: int = 0) -> int:
    if isinstance(value, bool):
        return int(value)
    try:
        return int(value) if value is not None else default
    except (TypeError, ValueError, OverflowError):
        return default


def _bool(value: Any) -> bool:
    return bool(value) if value is not None else False


def _tags(value: Any) -> List[str]:
    if not value or isinstance(value, (str, bytes)):
        return []
    try:
        return [str(tag) for tag in value if tag is not None]
    except TypeError:
        return []


def _timestamp(value: Any) -> Optional[datetime]:
    if isinstance(value, datetime):
        return value
    if isinstance(value, str) and value:
        try:
            return datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return None
    return None


def _difficulty(value: Any) -> Difficulty:
    try:
        return Difficulty(value)
    except (TypeError, ValueError):
        return Difficulty.BEGINNER


def _author(record: Record, id_field: str) -> Author:
    return Author(
        id=_text(record.get(id_field)),
        name=_text(record.get("author_name")) or UNKNOWN_AUTHOR,
        avatar=_optional_text(record.get("author_avatar")),
    )


def map_note(record: Record) -> NoteResult:
    """Convert a raw notes row"""
    content = _text(record.get("content"))
    is_favorite = _bool(record.get("is_favorite"))
    return NoteResult(
        id=_text(record.get("id")),
        title=_text(record.get("title")),
        description=content[:settings.DESCRIPTION_PREVIEW_CHARS],
        author=_author(record, "user_id"),
        tags=_tags(record.get("tags")),
        created_at=_timestamp(record.get("created_at")) or EPOCH,
        updated_at=_timestamp(record.get("updated_at")) or EPOCH,
        likes=_int(record.get("like_count")),
        views=_int(record.get("view_count")),
        is_bookmarked=is_favorite,
        is_liked=False,
        preview=content[:settings.NOTE_PREVIEW_CHARS],
        subject=_optional_text(record.get("skill_id")),
        difficulty=_difficulty(record.get("difficulty")),
        reading_time=_int(record.get("reading_time")),
        is_public=_bool(record.get("is_public")),
        is_favorite=is_favorite,
        word_count=_int(record.get("word_count")),
    )


def map_roadmap(record: Record) -> RoadmapResult:
    """Convert a raw roadmaps row"""
    total_steps = max(_int(record.get("total_steps")), 0)
    completed_steps = min(max(_int(record.get("completed_steps")), 0), total_steps)
    duration = record.get("estimated_duration")
    return RoadmapResult(
        id=_text(record.get("id")),
        title=_text(record.get("title")),
        description=_text(record.get("description")),
        author=_author(record, "user_id"),
        tags=_tags(record.get("tags")),
        created_at=_timestamp(record.get("created_at")) or EPOCH,
        updated_at=_timestamp(record.get("updated_at")) or EPOCH,
        likes=_int(record.get("like_count")),
        views=_int(record.get("view_count")),
        total_steps=total_steps,
        completed_steps=completed_steps,
        estimated_time=f"{duration} hours" if duration else None,
        difficulty=_difficulty(record.get("difficulty")),
        category=_text(record.get("category")),
        is_public=_bool(record.get("is_public")),
    )


def map_study_room(record: Record) -> StudyRoomResult:
    """Convert a raw study_rooms row"""
    topic = _optional_text(record.get("topic"))
    return StudyRoomResult(
        id=_text(record.get("id")),
        title=_text(record.get("name")),
        description=_text(record.get("description")),
        author=_author(record, "host_id"),
        tags=[topic] if topic else [],
        created_at=_timestamp(record.get("created_at")) or EPOCH,
        updated_at=_timestamp(record.get("updated_at")) or EPOCH,
        likes=_int(record.get("like_count")),
        views=_int(record.get("view_count")),
        is_live=record.get("status") == "active",
        current_users=max(_int(record.get("current_users")), 0),
        max_users=_int(record.get("max_participants")) or settings.DEFAULT_MAX_PARTICIPANTS,
        topic=topic,
        start_time=_timestamp(record.get("actual_start")),
        end_time=_timestamp(record.get("actual_end")),
        is_public=_bool(record.get("is_public")),
    )


MAPPERS: Dict[ContentType, Callable[[Record], SearchResult]] = {
    ContentType.NOTE: map_note,
    ContentType.ROADMAP: map_roadmap,
    ContentType.STUDYROOM: map_study_room,
}


def map_record(content_type: ContentType, record: Record) -> SearchResult:
    """Map a raw record from the given source"""
    return MAPPERS[content_type](record)

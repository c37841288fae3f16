"""Engine-neutral media items returned to the frontend."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any

from homeassistant.util import dt as dt_util

from .models import EngineType, MediaType


@dataclass(slots=True)
class ViewMedia:
    """One clip, snapshot or recording, regardless of the backend it came from."""

    media_type: MediaType
    camera_id: str
    id: str
    engine: EngineType
    content_id: str | None = None
    start_time: datetime | None = None
    end_time: datetime | None = None
    title: str | None = None
    thumbnail: str | None = None
    what: list[str] | None = None
    where: list[str] | None = None
    tags: list[str] | None = None
    score: float | None = None
    favorite: bool | None = None
    event_count: int | None = None
    in_progress: bool = False

    @property
    def is_event(self) -> bool:
        return self.media_type in (MediaType.CLIP, MediaType.SNAPSHOT)

    @property
    def is_recording(self) -> bool:
        return self.media_type is MediaType.RECORDING

    def as_dict(self) -> dict[str, Any]:
        return {
            "media_type": str(self.media_type),
            "camera_id": self.camera_id,
            "id": self.id,
            "engine": str(self.engine),
            "content_id": self.content_id,
            "start_time": self.start_time.isoformat() if self.start_time else None,
            "end_time": self.end_time.isoformat() if self.end_time else None,
            "title": self.title,
            "thumbnail": self.thumbnail,
            "what": self.what,
            "where": self.where,
            "tags": self.tags,
            "score": self.score,
            "favorite": self.favorite,
            "event_count": self.event_count,
            "in_progress": self.in_progress,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ViewMedia:
        return cls(
            media_type=MediaType(data["media_type"]),
            camera_id=str(data["camera_id"]),
            id=str(data["id"]),
            engine=EngineType(data["engine"]),
            content_id=data.get("content_id"),
            start_time=_parse_time(data.get("start_time")),
            end_time=_parse_time(data.get("end_time")),
            title=data.get("title"),
            thumbnail=data.get("thumbnail"),
            what=data.get("what"),
            where=data.get("where"),
            tags=data.get("tags"),
            score=data.get("score"),
            favorite=data.get("favorite"),
            event_count=data.get("event_count"),
            in_progress=bool(data.get("in_progress", False)),
        )


def _parse_time(value: Any) -> datetime | None:
    if isinstance(value, datetime):
        return value
    if not value:
        return None
    parsed = dt_util.parse_datetime(str(value))
    return dt_util.as_utc(parsed) if parsed else None


def sort_media(media: list[ViewMedia]) -> list[ViewMedia]:
    """Deduplicate by id (first wins) and order most recent first."""
    unique: dict[str, ViewMedia] = {}
    for item in media:
        unique.setdefault(item.id, item)
    dated = [item for item in unique.values() if item.start_time is not None]
    undated = [item for item in unique.values() if item.start_time is None]
    return sorted(dated, key=lambda item: item.start_time, reverse=True) + undated


def format_date_and_time(value: datetime) -> str:
    return value.strftime("%Y-%m-%d %H:%M")


def prettify_title(value: str | None) -> str | None:
    if not value:
        return None
    return " ".join(word.capitalize() for word in value.replace("_", " ").split())

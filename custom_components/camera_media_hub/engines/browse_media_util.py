"""Helpers shared by engines that read media from a browse media tree."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass, replace
from datetime import datetime, timedelta
import logging

from homeassistant.components.media_source import async_resolve_media
from homeassistant.core import HomeAssistant
from homeassistant.util import dt as dt_util

from ..browse_media import RichBrowseMedia
from ..cache import RequestCache
from ..const import BROWSE_MEDIA_CACHE_SECONDS, MEDIA_CLASS_IMAGE, MEDIA_CLASS_VIDEO
from ..media import ViewMedia, format_date_and_time
from ..models import (
    CameraEndpoint,
    DataQuery,
    EngineOptions,
    EngineType,
    EventQuery,
    MediaCapabilities,
    MediaType,
    QueryResults,
    QueryType,
)
from ..range import DateRange, ranges_overlap

_LOGGER = logging.getLogger(__name__)

BROWSE_MEDIA_MEDIA_CAPABILITIES = MediaCapabilities(can_favorite=False, can_download=True)


@dataclass(frozen=True, slots=True)
class BrowseMediaMetadata:
    """Time bounds reconstructed from folder and file names.

    A missing bound means the node is not limited in that direction.
    """

    camera_id: str
    start_date: datetime | None
    end_date: datetime | None


def media_within_dates(
    media: RichBrowseMedia[BrowseMediaMetadata],
    start: datetime | None = None,
    end: datetime | None = None,
) -> bool:
    metadata = media.metadata
    if metadata is None:
        return False
    if start is None and end is None:
        return True

    media_start = metadata.start_date or datetime.min.replace(tzinfo=dt_util.UTC)
    media_end = metadata.end_date or datetime.max.replace(tzinfo=dt_util.UTC)
    if start is not None and end is not None:
        return ranges_overlap(DateRange(media_start, media_end), DateRange(start, end))
    if end is not None:
        return media_start <= end
    return media_end >= start


def should_use_cache(options: EngineOptions | None) -> bool:
    return options is None or options.use_cache


def event_query_never_matches(query: EventQuery, *, has_snapshot: bool = True) -> bool:
    """Browse trees carry no favorites, labels, zones or tags."""
    return bool(
        query.favorite
        or query.tags
        or query.what
        or query.where
        or (not has_snapshot and query.has_snapshot)
    )


def default_event_query(camera_ids: Iterable[str], **filters) -> list[EventQuery]:
    return [EventQuery(camera_ids=frozenset(camera_ids), **filters)]


def query_result_max_age(query: DataQuery) -> int | None:
    if query.type is QueryType.EVENT:
        return BROWSE_MEDIA_CACHE_SECONDS
    return None


def browse_media_expiry() -> datetime:
    return dt_util.utcnow() + timedelta(seconds=BROWSE_MEDIA_CACHE_SECONDS)


def sort_and_limit(
    media: list[RichBrowseMedia[BrowseMediaMetadata]], limit: int
) -> list[RichBrowseMedia[BrowseMediaMetadata]]:
    """Most recent first, cut at `limit`."""
    dated = [item for item in media if item.metadata and item.metadata.start_date]
    dated.sort(key=lambda item: item.metadata.start_date, reverse=True)
    return dated[:limit]


async def async_get_results_per_camera(
    query: EventQuery,
    cache: RequestCache[EventQuery, QueryResults],
    options: EngineOptions | None,
    fetch: Callable[[EventQuery, str], Awaitable[QueryResults | None]],
) -> dict[EventQuery, QueryResults]:
    """Split `query` into one query per camera, each cached on its own."""
    output: dict[EventQuery, QueryResults] = {}
    use_cache = should_use_cache(options)

    async def _fetch_camera(camera_id: str) -> None:
        camera_query = replace(query, camera_ids=frozenset({camera_id}))
        if use_cache and (cached := cache.get(camera_query)) is not None:
            _LOGGER.debug("Event cache hit for camera %s", camera_id)
            output[camera_query] = cached
            return

        result = await fetch(camera_query, camera_id)
        if result is None:
            return
        if use_cache:
            cache.set(camera_query, replace(result, cached=True), result.expiry)
        output[camera_query] = result

    await asyncio.gather(*(_fetch_camera(camera_id) for camera_id in sorted(query.camera_ids)))
    return output


def view_media_from_browse_media(
    browse_media: list[RichBrowseMedia[BrowseMediaMetadata]], engine: EngineType
) -> list[ViewMedia]:
    """Convert walked file nodes, keeping a clip over a snapshot taken at the same second."""
    lookup: dict[str, ViewMedia] = {}
    for item in browse_media:
        metadata = item.metadata
        if metadata is None or not metadata.camera_id:
            continue

        if item.media_class == MEDIA_CLASS_VIDEO:
            media_type = MediaType.CLIP
        elif item.media_class == MEDIA_CLASS_IMAGE:
            media_type = MediaType.SNAPSHOT
        else:
            continue

        start = metadata.start_date
        media = ViewMedia(
            media_type=media_type,
            camera_id=metadata.camera_id,
            id=(
                f"{metadata.camera_id}/{start:%Y-%m-%d %H:%M:%S}"
                if start
                else item.media_content_id
            ),
            engine=engine,
            content_id=item.media_content_id,
            start_time=start,
            end_time=metadata.end_date if metadata.end_date != start else None,
            title=format_date_and_time(start) if start else item.title,
            thumbnail=item.thumbnail,
        )
        existing = lookup.get(media.id)
        if existing is None or (
            existing.media_type is MediaType.SNAPSHOT and media.media_type is MediaType.CLIP
        ):
            lookup[media.id] = media
    return list(lookup.values())


async def async_resolve_download_path(
    hass: HomeAssistant, media: ViewMedia
) -> CameraEndpoint | None:
    if not media.content_id:
        return None
    resolved = await async_resolve_media(hass, media.content_id, None)
    return CameraEndpoint(endpoint=resolved.url, sign=resolved.url.startswith("/"))

"""Reolink engine: events are the clips exposed by the Reolink media source."""

from __future__ import annotations

from dataclasses import replace
from datetime import date, datetime, timedelta
import logging
import re
from typing import Any

from homeassistant.core import HomeAssistant
from homeassistant.util import dt as dt_util

from ..browse_media import (
    BrowseMediaStep,
    BrowseMediaWalker,
    RichBrowseMedia,
    sort_media_by_start_date,
)
from ..cache import RequestCache
from ..camera import Camera
from ..const import EVENT_LIMIT_DEFAULT, MEDIA_CLASS_VIDEO, MEDIA_SOURCE_REOLINK_ROOT
from ..engine import (
    CameraEndpointsContext,
    CameraManagerEngine,
    EventQueryResultsMap,
    MediaMetadataQueryResultsMap,
)
from ..errors import CameraInitializationError
from ..media import ViewMedia
from ..models import (
    BrowseMediaEventQueryResults,
    CameraConfig,
    CameraEndpoint,
    CameraEndpoints,
    CameraMetadata,
    DataQuery,
    EngineOptions,
    EngineType,
    EventQuery,
    MediaCapabilities,
    MediaMetadata,
    MediaMetadataQuery,
    MediaMetadataQueryResults,
    QueryResults,
    is_browse_media_event_results,
)
from ..registry import EntityRegistryManager
from ..store import CameraManagerStore
from .browse_media_util import (
    BROWSE_MEDIA_MEDIA_CAPABILITIES,
    BrowseMediaMetadata,
    async_get_results_per_camera,
    async_resolve_download_path,
    browse_media_expiry,
    default_event_query,
    event_query_never_matches,
    media_within_dates,
    query_result_max_age,
    should_use_cache,
    sort_and_limit,
    view_media_from_browse_media,
)

_LOGGER = logging.getLogger(__name__)

_CHANNEL_PATTERN = re.compile(r"(.*)_(?P<channel>\d+)")
_CLIP_TITLE_PATTERN = re.compile(
    r"^(?P<start>\d{1,2}:\d{2}:\d{2})(?:\s+(?P<duration>\d+:\d{2}:\d{2}))?"
)
_DAY_TITLE_PATTERN = re.compile(r"(\d{4})/(\d{1,2})/(\d{1,2})")
_REOLINK_LOGO = "https://brands.home-assistant.io/reolink/logo.png"


def _duration_token_to_seconds(token: str) -> int | None:
    parts = token.split(":")
    if len(parts) != 3:
        return None
    try:
        hours = int(parts[0])
        minutes = int(parts[1])
        seconds = int(parts[2])
    except ValueError:
        return None
    return hours * 3600 + minutes * 60 + seconds


def _parse_day_from_media_node(media: RichBrowseMedia[Any]) -> date | None:
    media_id = media.media_content_id or ""

    # media-source://reolink/DAY|<entry>|<channel>|<stream>|<year>|<month>|<day>
    if "DAY|" in media_id:
        try:
            identifier = media_id.split(f"{MEDIA_SOURCE_REOLINK_ROOT}/", 1)[1]
            parts = identifier.split("|")
            if parts[0] == "DAY" and len(parts) >= 7:
                return date(int(parts[4]), int(parts[5]), int(parts[6].split("/")[0]))
        except (IndexError, ValueError):
            pass

    match = _DAY_TITLE_PATTERN.search(media.title or "")
    if match:
        try:
            return date(int(match.group(1)), int(match.group(2)), int(match.group(3)))
        except ValueError:
            return None
    return None


def _reolink_directory_metadata(
    camera_id: str,
    media: RichBrowseMedia[BrowseMediaMetadata],
    parent: RichBrowseMedia[BrowseMediaMetadata] | None,
) -> BrowseMediaMetadata | None:
    day = _parse_day_from_media_node(media)
    if day is None:
        _LOGGER.debug("Skipping Reolink folder %s: no day in title or id", media.title)
        return None
    start = dt_util.start_of_local_day(day)
    return BrowseMediaMetadata(
        camera_id, start, start.replace(hour=23, minute=59, second=59, microsecond=999999)
    )


def _reolink_file_metadata(
    camera_id: str,
    media: RichBrowseMedia[BrowseMediaMetadata],
    parent: RichBrowseMedia[BrowseMediaMetadata] | None,
) -> BrowseMediaMetadata | None:
    parent_metadata = parent.metadata if parent else None
    if parent_metadata is None or parent_metadata.start_date is None:
        return None

    # Detection type folders ("Person", "Vehicle") cover the whole day.
    if media.can_expand:
        return parent_metadata

    # Clip titles are local wall-clock times: "HH:MM:SS [duration]".
    match = _CLIP_TITLE_PATTERN.match((media.title or "").strip())
    if not match:
        _LOGGER.debug("Skipping Reolink clip %s: unrecognized title", media.title)
        return None
    try:
        clip_time = datetime.strptime(match.group("start"), "%H:%M:%S").time()
    except ValueError:
        return None

    start = parent_metadata.start_date.replace(
        hour=clip_time.hour, minute=clip_time.minute, second=clip_time.second, microsecond=0
    )
    duration_token = match.group("duration")
    duration = _duration_token_to_seconds(duration_token) if duration_token else None
    end = start + timedelta(seconds=duration) if duration is not None else start
    return BrowseMediaMetadata(camera_id, start, end)


class ReolinkCameraManagerEngine(CameraManagerEngine):
    """Engine for cameras of the Reolink integration."""

    def __init__(
        self,
        hass: HomeAssistant,
        entity_registry: EntityRegistryManager,
        directory_walker: BrowseMediaWalker[BrowseMediaMetadata] | None = None,
        file_walker: BrowseMediaWalker[BrowseMediaMetadata] | None = None,
    ) -> None:
        super().__init__(hass, entity_registry)
        self._directory_walker: BrowseMediaWalker[BrowseMediaMetadata] = (
            directory_walker
            if directory_walker is not None
            else BrowseMediaWalker.for_hass(hass)
        )
        self._file_walker: BrowseMediaWalker[BrowseMediaMetadata] = (
            file_walker if file_walker is not None else BrowseMediaWalker.for_hass(hass)
        )
        self._request_cache: RequestCache[DataQuery, QueryResults] = RequestCache()

    @property
    def engine_type(self) -> EngineType:
        return EngineType.REOLINK

    def _default_capabilities(self) -> dict[str, Any]:
        return {
            "clips": True,
            "live": True,
            "menu": True,
            "snapshots": False,
            "substream": True,
        }

    async def async_initialize_camera(self, camera_config: CameraConfig) -> Camera:
        camera = await super().async_initialize_camera(camera_config)
        unique_id = getattr(camera.entity, "unique_id", None) or ""
        match = _CHANNEL_PATTERN.match(unique_id)
        if not match:
            raise CameraInitializationError(
                f"Could not determine Reolink channel of {camera_config.camera_entity}",
                camera_config,
            )
        camera.channel = int(match.group("channel"))
        return camera

    def _root_media_content_id(self, camera: Camera) -> str | None:
        if camera.config_entry_id is None or camera.channel is None:
            return None
        stream = "sub" if camera.config.reolink.media_resolution == "low" else "main"
        return (
            f"{MEDIA_SOURCE_REOLINK_ROOT}/RES|{camera.config_entry_id}|{camera.channel}|{stream}"
        )

    async def _async_get_matching_directories(
        self,
        camera: Camera,
        *,
        start: datetime | None = None,
        end: datetime | None = None,
        options: EngineOptions | None = None,
    ) -> list[RichBrowseMedia[BrowseMediaMetadata]]:
        root = self._root_media_content_id(camera)
        camera_id = camera.id
        if root is None or camera_id is None:
            return []

        return await self._directory_walker.async_walk(
            [
                BrowseMediaStep(
                    targets=[root],
                    metadata_generator=lambda media, parent: _reolink_directory_metadata(
                        camera_id, media, parent
                    ),
                    matcher=lambda media: media.can_expand
                    and media_within_dates(media, start, end),
                    sorter=sort_media_by_start_date,
                )
            ],
            use_cache=should_use_cache(options),
        )

    def _file_step(
        self,
        camera_id: str,
        targets: list[RichBrowseMedia[BrowseMediaMetadata]],
        query: EventQuery,
    ) -> BrowseMediaStep[BrowseMediaMetadata]:
        limit = query.limit or EVENT_LIMIT_DEFAULT

        def _matcher(media: RichBrowseMedia[BrowseMediaMetadata]) -> bool:
            if media.can_expand:
                return media.metadata is not None
            return media.media_class == MEDIA_CLASS_VIDEO and media_within_dates(
                media, query.start, query.end
            )

        def _advance(
            matched: list[RichBrowseMedia[BrowseMediaMetadata]],
        ) -> list[BrowseMediaStep[BrowseMediaMetadata]]:
            folders = [media for media in matched if media.can_expand]
            return [self._file_step(camera_id, folders, query)] if folders else []

        return BrowseMediaStep(
            targets=targets,
            metadata_generator=lambda media, parent: _reolink_file_metadata(
                camera_id, media, parent
            ),
            matcher=_matcher,
            advance=_advance,
            # One day at a time, newest first, until the limit is reached.
            concurrency=1,
            early_exit=lambda matched: (
                sum(1 for media in matched if not media.can_expand) >= limit
            ),
        )

    def generate_default_event_query(
        self, store: CameraManagerStore, camera_ids: set[str], **filters: Any
    ) -> list[EventQuery] | None:
        return default_event_query(camera_ids, **filters)

    async def async_get_events(
        self,
        store: CameraManagerStore,
        query: EventQuery,
        options: EngineOptions | None = None,
    ) -> EventQueryResultsMap | None:
        if event_query_never_matches(query, has_snapshot=False):
            return None

        async def _fetch(camera_query: EventQuery, camera_id: str) -> QueryResults | None:
            camera = store.get_camera(camera_id)
            if camera is None:
                return None
            directories = await self._async_get_matching_directories(
                camera, start=camera_query.start, end=camera_query.end, options=options
            )
            media = await self._file_walker.async_walk(
                [self._file_step(camera_id, directories, camera_query)] if directories else [],
                use_cache=should_use_cache(options),
            )
            return BrowseMediaEventQueryResults(
                engine=EngineType.REOLINK,
                browse_media=sort_and_limit(
                    [item for item in media if not item.can_expand],
                    camera_query.limit or EVENT_LIMIT_DEFAULT,
                ),
                expiry=browse_media_expiry(),
            )

        return await async_get_results_per_camera(query, self._request_cache, options, _fetch)

    def generate_media_from_events(
        self, store: CameraManagerStore, query: EventQuery, results: QueryResults
    ) -> list[ViewMedia] | None:
        if not is_browse_media_event_results(results, EngineType.REOLINK):
            return None
        return view_media_from_browse_media(results.browse_media, EngineType.REOLINK)

    async def async_get_media_metadata(
        self,
        store: CameraManagerStore,
        query: MediaMetadataQuery,
        options: EngineOptions | None = None,
    ) -> MediaMetadataQueryResultsMap | None:
        use_cache = should_use_cache(options)
        if use_cache and (cached := self._request_cache.get(query)) is not None:
            return {query: cached}

        days: set[str] = set()
        for camera_id in sorted(query.camera_ids):
            camera = store.get_camera(camera_id)
            if camera is None:
                continue
            for directory in await self._async_get_matching_directories(camera, options=options):
                if directory.metadata and directory.metadata.start_date:
                    days.add(directory.metadata.start_date.strftime("%Y-%m-%d"))

        result = MediaMetadataQueryResults(
            engine=EngineType.REOLINK,
            metadata=MediaMetadata(days=days),
            expiry=browse_media_expiry(),
        )
        if use_cache:
            self._request_cache.set(query, replace(result, cached=True), result.expiry)
        return {query: result}

    async def async_get_media_download_path(
        self, camera_config: CameraConfig, media: ViewMedia
    ) -> CameraEndpoint | None:
        return await async_resolve_download_path(self.hass, media)

    def get_query_result_max_age(self, query: DataQuery) -> int | None:
        return query_result_max_age(query)

    def get_media_capabilities(self, media: ViewMedia) -> MediaCapabilities | None:
        return BROWSE_MEDIA_MEDIA_CAPABILITIES

    def get_camera_metadata(self, camera_config: CameraConfig) -> CameraMetadata:
        metadata = super().get_camera_metadata(camera_config)
        return CameraMetadata(title=metadata.title, icon=metadata.icon, engine_logo=_REOLINK_LOGO)

    def get_camera_endpoints(
        self, camera_config: CameraConfig, context: CameraEndpointsContext | None = None
    ) -> CameraEndpoints | None:
        endpoints = super().get_camera_endpoints(camera_config, context) or CameraEndpoints()
        if camera_config.reolink.url:
            endpoints.ui = CameraEndpoint(camera_config.reolink.url)
        if endpoints.ui is None and endpoints.go2rtc is None:
            return None
        return endpoints

    def clear_caches(self) -> None:
        self._request_cache.clear()
        self._directory_walker.cache.clear()
        self._file_walker.cache.clear()

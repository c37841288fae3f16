"""motionEye engine: events reconstructed from the motionEye media source tree.

motionEye stores movies and images under user-configurable directory and file
name patterns (``%Y-%m-%d/%H-%M-%S.mp4`` by default). Each ``/``-separated
directory part becomes one walker step; parts without a date directive must
match the folder title literally.
"""

from __future__ import annotations

from dataclasses import replace
from datetime import datetime
from functools import partial
import logging
import re
from typing import Any

from homeassistant.core import HomeAssistant
from homeassistant.util import dt as dt_util

from ..browse_media import BrowseMediaStep, BrowseMediaWalker, RichBrowseMedia
from ..cache import RequestCache
from ..camera import Camera
from ..const import (
    EVENT_LIMIT_DEFAULT,
    MEDIA_CLASS_IMAGE,
    MEDIA_CLASS_VIDEO,
    MEDIA_SOURCE_MOTIONEYE_ROOT,
)
from ..date_pattern import DatePattern, compile_date_pattern, pattern_has_date
from ..engine import (
    CameraEndpointsContext,
    CameraManagerEngine,
    EventQueryResultsMap,
    MediaMetadataQueryResultsMap,
)
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
_EXTENSION_PATTERN = re.compile(r"\.[^/.]+$")
_MOTIONEYE_LOGO = "https://brands.home-assistant.io/motioneye/logo.png"


def _date_pattern_or_none(part: str) -> DatePattern | None:
    return compile_date_pattern(part) if pattern_has_date(part) else None


def _motioneye_directory_metadata(
    camera_id: str,
    pattern: DatePattern | None,
    media: RichBrowseMedia[BrowseMediaMetadata],
    parent: RichBrowseMedia[BrowseMediaMetadata] | None,
) -> BrowseMediaMetadata | None:
    parent_metadata = parent.metadata if parent else None
    if pattern is None:
        if parent_metadata is None:
            return BrowseMediaMetadata(camera_id, None, None)
        return BrowseMediaMetadata(camera_id, parent_metadata.start_date, parent_metadata.end_date)

    reference = (parent_metadata.start_date if parent_metadata else None) or dt_util.now()
    parsed = pattern.parse(media.title, reference)
    if parsed is None:
        _LOGGER.debug(
            "Skipping motionEye directory %s: does not match %s", media.title, pattern.pattern
        )
        return None
    start, end = pattern.period(parsed)
    return BrowseMediaMetadata(camera_id, start, end)


def _motioneye_file_metadata(
    camera_id: str,
    pattern: DatePattern | None,
    media: RichBrowseMedia[BrowseMediaMetadata],
    parent: RichBrowseMedia[BrowseMediaMetadata] | None,
) -> BrowseMediaMetadata | None:
    parent_metadata = parent.metadata if parent else None
    start = (parent_metadata.start_date if parent_metadata else None) or dt_util.now()
    if pattern is not None:
        parsed = pattern.parse(_EXTENSION_PATTERN.sub("", media.title), start)
        if parsed is None:
            _LOGGER.debug(
                "Skipping motionEye file %s: does not match %s", media.title, pattern.pattern
            )
            return None
        start = parsed
    # motionEye only records start times.
    return BrowseMediaMetadata(camera_id, start, start)


def _generate_directory_steps(
    camera_id: str,
    parts: list[str],
    targets: list[Any],
    start: datetime | None,
    end: datetime | None,
) -> list[BrowseMediaStep[BrowseMediaMetadata]]:
    if not parts:
        return []
    part, remaining = parts[0], parts[1:]
    pattern = _date_pattern_or_none(part)

    def _matcher(media: RichBrowseMedia[BrowseMediaMetadata]) -> bool:
        return (
            media.can_expand
            and (pattern is not None or media.title == part)
            and media_within_dates(media, start, end)
        )

    return [
        BrowseMediaStep(
            targets=targets,
            metadata_generator=partial(_motioneye_directory_metadata, camera_id, pattern),
            matcher=_matcher,
            advance=lambda media: _generate_directory_steps(
                camera_id, remaining, media, start, end
            ),
        )
    ]


class MotionEyeCameraManagerEngine(CameraManagerEngine):
    """Engine for cameras of the motionEye integration."""

    def __init__(
        self,
        hass: HomeAssistant,
        entity_registry: EntityRegistryManager,
        walker: BrowseMediaWalker[BrowseMediaMetadata] | None = None,
    ) -> None:
        super().__init__(hass, entity_registry)
        self._walker: BrowseMediaWalker[BrowseMediaMetadata] = (
            walker if walker is not None else BrowseMediaWalker.for_hass(hass)
        )
        self._request_cache: RequestCache[DataQuery, QueryResults] = RequestCache()

    @property
    def engine_type(self) -> EngineType:
        return EngineType.MOTIONEYE

    def _default_capabilities(self) -> dict[str, Any]:
        return {
            "clips": True,
            "live": True,
            "menu": True,
            "snapshots": True,
            "substream": True,
        }

    async def async_initialize_camera(self, camera_config: CameraConfig) -> Camera:
        camera = await super().async_initialize_camera(camera_config)
        if camera.config_entry_id is None or camera.device_id is None:
            _LOGGER.warning(
                "motionEye camera %s has no registry device; media will be unavailable",
                camera.id,
            )
        return camera

    async def _async_get_matching_directories(
        self,
        camera: Camera,
        *,
        start: datetime | None = None,
        end: datetime | None = None,
        has_clip: bool | None = None,
        has_snapshot: bool | None = None,
        options: EngineOptions | None = None,
    ) -> list[RichBrowseMedia[BrowseMediaMetadata]]:
        config_entry_id = camera.config_entry_id
        device_id = camera.device_id
        camera_id = camera.id
        if not config_entry_id or not device_id or not camera_id:
            return []

        root = f"{MEDIA_SOURCE_MOTIONEYE_ROOT}/{config_entry_id}#{device_id}"
        motioneye = camera.config.motioneye
        steps: list[BrowseMediaStep[BrowseMediaMetadata]] = []
        # Snapshots and clips live under separate roots.
        if has_clip is not False and not has_snapshot:
            steps.extend(
                _generate_directory_steps(
                    camera_id,
                    motioneye.movies.directory_pattern.split("/"),
                    [f"{root}#movies"],
                    start,
                    end,
                )
            )
        if has_snapshot is not False and not has_clip:
            steps.extend(
                _generate_directory_steps(
                    camera_id,
                    motioneye.images.directory_pattern.split("/"),
                    [f"{root}#images"],
                    start,
                    end,
                )
            )
        return await self._walker.async_walk(steps, use_cache=should_use_cache(options))

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
        if event_query_never_matches(query):
            return None

        async def _fetch(camera_query: EventQuery, camera_id: str) -> QueryResults | None:
            camera = store.get_camera(camera_id)
            if camera is None:
                return None
            directories = await self._async_get_matching_directories(
                camera,
                start=camera_query.start,
                end=camera_query.end,
                has_clip=camera_query.has_clip,
                has_snapshot=camera_query.has_snapshot,
                options=options,
            )
            if not directories:
                return None

            movies_pattern = _date_pattern_or_none(camera.config.motioneye.movies.file_pattern)
            images_pattern = _date_pattern_or_none(camera.config.motioneye.images.file_pattern)

            def _file_metadata(
                media: RichBrowseMedia[BrowseMediaMetadata],
                parent: RichBrowseMedia[BrowseMediaMetadata] | None,
            ) -> BrowseMediaMetadata | None:
                if media.media_class == MEDIA_CLASS_VIDEO:
                    return _motioneye_file_metadata(camera_id, movies_pattern, media, parent)
                if media.media_class == MEDIA_CLASS_IMAGE:
                    return _motioneye_file_metadata(camera_id, images_pattern, media, parent)
                return None

            media = await self._walker.async_walk(
                [
                    BrowseMediaStep(
                        targets=directories,
                        metadata_generator=_file_metadata,
                        matcher=lambda media: not media.can_expand
                        and media_within_dates(media, camera_query.start, camera_query.end),
                    )
                ],
                use_cache=should_use_cache(options),
            )
            return BrowseMediaEventQueryResults(
                engine=EngineType.MOTIONEYE,
                browse_media=sort_and_limit(media, camera_query.limit or EVENT_LIMIT_DEFAULT),
                expiry=browse_media_expiry(),
            )

        output = await async_get_results_per_camera(query, self._request_cache, options, _fetch)
        return output or None

    def generate_media_from_events(
        self, store: CameraManagerStore, query: EventQuery, results: QueryResults
    ) -> list[ViewMedia] | None:
        if not is_browse_media_event_results(results, EngineType.MOTIONEYE):
            return None
        return view_media_from_browse_media(results.browse_media, EngineType.MOTIONEYE)

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
            engine=EngineType.MOTIONEYE,
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
        return CameraMetadata(title=metadata.title, icon=metadata.icon, engine_logo=_MOTIONEYE_LOGO)

    def get_camera_endpoints(
        self, camera_config: CameraConfig, context: CameraEndpointsContext | None = None
    ) -> CameraEndpoints | None:
        if not camera_config.motioneye.url:
            return None
        return CameraEndpoints(ui=CameraEndpoint(camera_config.motioneye.url))

    def clear_caches(self) -> None:
        self._request_cache.clear()
        self._walker.cache.clear()

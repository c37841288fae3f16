"""Camera manager: binds cameras to engines and fans queries out across them."""

from __future__ import annotations

import asyncio
from collections.abc import Iterable
from dataclasses import dataclass, replace
from datetime import datetime, timedelta
import logging
import time
from typing import Any, Literal

from homeassistant.core import HomeAssistant
from homeassistant.util import dt as dt_util

from .camera import Camera
from .capabilities import Capabilities
from .const import CAPABILITY_KEYS, DEFAULT_MEDIA_CHUNK_SIZE
from .engine import CameraEndpointsContext, CameraManagerEngine
from .engine_factory import CameraManagerEngineFactory
from .errors import CameraInitializationError
from .media import ViewMedia, sort_media
from .models import (
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
    MediaQuery,
    QueryResults,
    QueryResultsType,
    QueryType,
    RecordingQuery,
    RecordingSegmentsQuery,
)
from .registry import EntityRegistryManager
from .store import CameraManagerStore

_LOGGER = logging.getLogger(__name__)

Direction = Literal["earlier", "later"]


@dataclass(slots=True)
class ExtendedMediaQueryResult:
    queries: list[MediaQuery]
    media: list[ViewMedia]


class CameraManager:
    """Composition root for camera data access."""

    def __init__(
        self,
        hass: HomeAssistant,
        engine_factory: CameraManagerEngineFactory | None = None,
        media_chunk_size: int = DEFAULT_MEDIA_CHUNK_SIZE,
    ) -> None:
        self.hass = hass
        self._engine_factory = (
            engine_factory
            if engine_factory is not None
            else CameraManagerEngineFactory(hass, EntityRegistryManager(hass))
        )
        self._media_chunk_size = media_chunk_size
        self._store = CameraManagerStore()

    @property
    def store(self) -> CameraManagerStore:
        return self._store

    def is_initialized(self) -> bool:
        return self._store.get_camera_count() > 0

    async def async_initialize_cameras(self, camera_configs: Iterable[CameraConfig]) -> None:
        started = time.monotonic()
        configs = list(camera_configs)
        self._store.reset()

        # One engine per type, shared by every camera it serves.
        engines: dict[EngineType, CameraManagerEngine] = {}
        engine_by_index: list[CameraManagerEngine] = []
        for config in configs:
            engine_type = self._engine_factory.get_engine_type(config)
            if engine_type not in engines:
                engines[engine_type] = self._engine_factory.create_engine(engine_type)
            engine_by_index.append(engines[engine_type])

        cameras: list[Camera] = await asyncio.gather(
            *(
                engine.async_initialize_camera(config)
                for config, engine in zip(configs, engine_by_index)
            )
        )

        for config, camera, engine in zip(configs, cameras, engine_by_index):
            camera_id = camera.id
            if not camera_id:
                raise CameraInitializationError("Camera has no id", config)
            if self._store.has_camera_id(camera_id):
                raise CameraInitializationError(f"Duplicate camera id: {camera_id}", config)
            self._store.add_camera(camera, engine)

        if not self._store.get_camera_count():
            raise CameraInitializationError("No cameras configured")

        _LOGGER.info(
            "Initialized %s camera(s) across %s engine(s) in %.3fs",
            self._store.get_camera_count(),
            len(engines),
            time.monotonic() - started,
        )

    # Default queries

    def _generate_default_queries(
        self, query_type: QueryType, camera_ids: str | Iterable[str], **filters: Any
    ) -> list[Any] | None:
        ids = {camera_ids} if isinstance(camera_ids, str) else set(camera_ids)
        engines = self._store.get_engines_for_camera_ids(ids)
        if not engines:
            return None

        output: list[Any] = []
        for engine, engine_camera_ids in engines.items():
            if query_type is QueryType.EVENT:
                queries = engine.generate_default_event_query(
                    self._store, engine_camera_ids, **filters
                )
            elif query_type is QueryType.RECORDING:
                queries = engine.generate_default_recording_query(
                    self._store, engine_camera_ids, **filters
                )
            else:
                queries = engine.generate_default_recording_segments_query(
                    self._store, engine_camera_ids, **filters
                )
            output.extend(queries or [])
        return output or None

    def generate_default_event_queries(
        self, camera_ids: str | Iterable[str], **filters: Any
    ) -> list[EventQuery] | None:
        return self._generate_default_queries(QueryType.EVENT, camera_ids, **filters)

    def generate_default_recording_queries(
        self, camera_ids: str | Iterable[str], **filters: Any
    ) -> list[RecordingQuery] | None:
        return self._generate_default_queries(QueryType.RECORDING, camera_ids, **filters)

    def generate_default_recording_segments_queries(
        self, camera_ids: str | Iterable[str], **filters: Any
    ) -> list[RecordingSegmentsQuery] | None:
        return self._generate_default_queries(
            QueryType.RECORDING_SEGMENTS, camera_ids, **filters
        )

    # Queries

    async def _async_handle_query(
        self,
        queries: DataQuery | Iterable[DataQuery],
        options: EngineOptions | None = None,
    ) -> dict[DataQuery, QueryResults]:
        query_list = [queries] if not isinstance(queries, Iterable) else list(queries)
        results: dict[DataQuery, QueryResults] = {}
        started = time.monotonic()

        async def _process_engine_query(engine: CameraManagerEngine, query: DataQuery) -> None:
            if query.type is QueryType.EVENT:
                engine_result = await engine.async_get_events(self._store, query, options)
            elif query.type is QueryType.RECORDING:
                engine_result = await engine.async_get_recordings(self._store, query, options)
            elif query.type is QueryType.RECORDING_SEGMENTS:
                engine_result = await engine.async_get_recording_segments(
                    self._store, query, options
                )
            else:
                engine_result = await engine.async_get_media_metadata(
                    self._store, query, options
                )
            results.update(engine_result or {})

        async def _process_query(query: DataQuery) -> None:
            engines = self._store.get_engines_for_camera_ids(query.camera_ids)
            if not engines:
                return
            await asyncio.gather(
                *(
                    _process_engine_query(engine, replace(query, camera_ids=frozenset(ids)))
                    for engine, ids in engines.items()
                )
            )

        await asyncio.gather(*(_process_query(query) for query in query_list))

        _LOGGER.debug(
            "Handled %s query(s): %s cached of %s result(s) in %.3fs",
            len(query_list),
            sum(1 for result in results.values() if result.cached),
            len(results),
            time.monotonic() - started,
        )
        return results

    async def async_get_events(
        self, queries: EventQuery | Iterable[EventQuery], options: EngineOptions | None = None
    ) -> dict[DataQuery, QueryResults]:
        return await self._async_handle_query(queries, options)

    async def async_get_recordings(
        self,
        queries: RecordingQuery | Iterable[RecordingQuery],
        options: EngineOptions | None = None,
    ) -> dict[DataQuery, QueryResults]:
        return await self._async_handle_query(queries, options)

    async def async_get_recording_segments(
        self,
        queries: RecordingSegmentsQuery | Iterable[RecordingSegmentsQuery],
        options: EngineOptions | None = None,
    ) -> dict[DataQuery, QueryResults]:
        return await self._async_handle_query(queries, options)

    async def async_get_media_metadata(self) -> MediaMetadata | None:
        results = await self._async_handle_query(
            MediaMetadataQuery(camera_ids=frozenset(self._store.get_camera_ids()))
        )
        metadata = MediaMetadata()
        for result in results.values():
            if isinstance(result, MediaMetadataQueryResults):
                metadata.merge(result.metadata)

        if not (metadata.what or metadata.where or metadata.days):
            return None
        return metadata

    async def async_execute_media_queries(
        self, queries: Iterable[MediaQuery], options: EngineOptions | None = None
    ) -> list[ViewMedia]:
        return self._convert_query_results_to_media(
            await self._async_handle_query(queries, options)
        )

    async def async_extend_media_queries(
        self,
        queries: list[MediaQuery],
        media: list[ViewMedia],
        direction: Direction,
        options: EngineOptions | None = None,
    ) -> ExtendedMediaQueryResult | None:
        """Fetch the next chunk before or after `media`.

        Returns the widened queries and the combined media, or None when the
        backends have nothing new.
        """
        start_times = [item.start_time for item in media if item.start_time is not None]
        chunk_size = self._media_chunk_size

        chunk_queries: list[MediaQuery] = []
        extended_queries: list[MediaQuery] = []
        for query in queries:
            chunk_query = replace(query, limit=chunk_size)
            if direction == "later" and start_times:
                chunk_query = replace(chunk_query, start=max(start_times))
            elif direction == "earlier" and start_times:
                chunk_query = replace(chunk_query, end=min(start_times))
            chunk_queries.append(chunk_query)
            extended_queries.append(replace(query, limit=(query.limit or 0) + chunk_size))

        chunk_media = await self.async_execute_media_queries(chunk_queries, options)
        if not chunk_media:
            return None

        combined = sort_media(media + chunk_media)
        # A wider limit that yields nothing unseen means there is no more media.
        if len(combined) == len(media):
            return None
        return ExtendedMediaQueryResult(queries=extended_queries, media=combined)

    def are_media_queries_results_fresh(
        self, queries: Iterable[MediaQuery], results_timestamp: datetime
    ) -> bool:
        now = dt_util.utcnow()
        for query in queries:
            engines = self._store.get_engines_for_camera_ids(query.camera_ids) or {}
            for engine, ids in engines.items():
                max_age = engine.get_query_result_max_age(
                    replace(query, camera_ids=frozenset(ids))
                )
                if max_age is not None and results_timestamp + timedelta(seconds=max_age) < now:
                    return False
        return True

    def _convert_query_results_to_media(
        self, results: dict[DataQuery, QueryResults]
    ) -> list[ViewMedia]:
        output: list[ViewMedia] = []
        for query, result in results.items():
            engine = self._store.get_engine_of_type(result.engine)
            if engine is None:
                continue
            media: list[ViewMedia] | None = None
            if query.type is QueryType.EVENT and result.type is QueryResultsType.EVENT:
                media = engine.generate_media_from_events(self._store, query, result)
            elif query.type is QueryType.RECORDING and result.type is QueryResultsType.RECORDING:
                media = engine.generate_media_from_recordings(self._store, query, result)
            output.extend(media or [])
        return sort_media(output)

    # Media actions

    async def async_get_media_download_path(self, media: ViewMedia) -> CameraEndpoint | None:
        camera_config = self._store.get_camera_config_for_media(media)
        engine = self._store.get_engine_for_media(media)
        if camera_config is None or engine is None:
            return None
        return await engine.async_get_media_download_path(camera_config, media)

    def get_media_capabilities(self, media: ViewMedia) -> MediaCapabilities | None:
        engine = self._store.get_engine_for_media(media)
        return engine.get_media_capabilities(media) if engine else None

    async def async_favorite_media(self, media: ViewMedia, favorite: bool) -> None:
        camera_config = self._store.get_camera_config_for_media(media)
        engine = self._store.get_engine_for_media(media)
        if camera_config is None or engine is None:
            return
        started = time.monotonic()
        await engine.async_favorite_media(camera_config, media, favorite)
        _LOGGER.debug(
            "Set favorite=%s on media %s in %.3fs", favorite, media.id, time.monotonic() - started
        )

    async def async_get_media_seek_time(
        self, media: ViewMedia, target: datetime
    ) -> float | None:
        engine = self._store.get_engine_for_media(media)
        if (
            engine is None
            or self._store.get_camera_config_for_media(media) is None
            or media.start_time is None
            or media.end_time is None
            or not media.start_time <= target <= media.end_time
        ):
            return None
        return await engine.async_get_media_seek_time(self._store, media, target)

    # Camera description

    def get_camera_endpoints(
        self, camera_id: str, context: CameraEndpointsContext | None = None
    ) -> CameraEndpoints | None:
        camera_config = self._store.get_camera_config(camera_id)
        engine = self._store.get_engine_for_camera_id(camera_id)
        if camera_config is None or engine is None:
            return None
        return engine.get_camera_endpoints(camera_config, context)

    def get_camera_metadata(self, camera_id: str) -> CameraMetadata | None:
        camera_config = self._store.get_camera_config(camera_id)
        engine = self._store.get_engine_for_camera_id(camera_id)
        if camera_config is None or engine is None:
            return None
        return engine.get_camera_metadata(camera_config)

    def get_camera_capabilities(self, camera_id: str) -> Capabilities | None:
        camera = self._store.get_camera(camera_id)
        engine = self._store.get_engine_for_camera_id(camera_id)
        if camera is None or engine is None:
            return None
        return engine.get_camera_capabilities(camera)

    def get_aggregate_camera_capabilities(
        self, camera_ids: Iterable[str] | None = None
    ) -> dict[str, bool]:
        """Which capabilities at least one of the cameras has."""
        per_camera = [
            self.get_camera_capabilities(camera_id)
            for camera_id in (
                camera_ids if camera_ids is not None else self._store.get_camera_ids()
            )
        ]
        return {
            key: any(capabilities.has(key) for capabilities in per_camera if capabilities)
            for key in CAPABILITY_KEYS
            if key != "ptz"
        }

    def clear_caches(self) -> None:
        for engine in self._store.get_all_engines():
            engine.clear_caches()
        _LOGGER.debug("Cleared caches of %s engine(s)", len(self._store.get_all_engines()))

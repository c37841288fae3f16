"""Frigate engine: native event, recording and segment queries."""

from __future__ import annotations

import asyncio
from dataclasses import replace
from datetime import datetime, timedelta
import logging
import re
from typing import Any

from homeassistant.core import CALLBACK_TYPE, HomeAssistant, callback
from homeassistant.helpers.event import async_call_later
from homeassistant.util import dt as dt_util

from ..cache import RecordingSegmentsCache, RequestCache
from ..camera import Camera
from ..capabilities import Capabilities
from ..const import (
    EVENT_LIMIT_DEFAULT,
    EVENT_REQUEST_CACHE_MAX_AGE_SECONDS,
    FRIGATE_CAMERA_BIRDSEYE,
    MEDIA_METADATA_REQUEST_CACHE_MAX_AGE_SECONDS,
    RECORDING_SUMMARY_REQUEST_CACHE_MAX_AGE_SECONDS,
    SEGMENT_GARBAGE_COLLECTION_INTERVAL_SECONDS,
)
from ..engine import (
    CameraEndpointsContext,
    CameraManagerEngine,
    EventQueryResultsMap,
    MediaMetadataQueryResultsMap,
    RecordingQueryResultsMap,
    RecordingSegmentsQueryResultsMap,
)
from ..errors import CameraInitializationError
from ..media import ViewMedia, format_date_and_time, prettify_title
from ..models import (
    CameraConfig,
    CameraEndpoint,
    CameraEndpoints,
    CameraMetadata,
    DataQuery,
    EngineOptions,
    EngineType,
    EventQuery,
    FrigateEvent,
    FrigateEventQueryResults,
    FrigateRecording,
    FrigateRecordingQueryResults,
    FrigateRecordingSegmentsQueryResults,
    MediaCapabilities,
    MediaMetadata,
    MediaMetadataQuery,
    MediaMetadataQueryResults,
    MediaType,
    QueryResults,
    QueryType,
    RecordingQuery,
    RecordingSegment,
    RecordingSegmentsQuery,
    is_frigate_event_results,
    is_frigate_recording_results,
    is_frigate_recording_segments_results,
)
from ..range import DateRange
from ..registry import EntityRegistryManager
from ..store import CameraManagerStore
from .frigate_api import FrigateApiClient, FrigateApiClientFactory, hass_client_factory

_LOGGER = logging.getLogger(__name__)

_CAMERA_UNIQUE_ID_PATTERN = re.compile(r":camera:(?P<camera>[^:]+)$")
_FRIGATE_LOGO = "https://brands.home-assistant.io/frigate/logo.png"


def _camera_name_from_entity(entity: Any) -> str | None:
    unique_id = getattr(entity, "unique_id", None)
    if getattr(entity, "platform", None) != "frigate" or not isinstance(unique_id, str):
        return None
    match = _CAMERA_UNIQUE_ID_PATTERN.search(unique_id)
    return match.group("camera") if match else None


def _find_sensor(entities: list[Any], pattern: str) -> str | None:
    regex = re.compile(pattern)
    for entity in entities:
        unique_id = getattr(entity, "unique_id", None)
        if isinstance(unique_id, str) and regex.search(unique_id):
            return entity.entity_id
    return None


def _motion_sensor(camera_name: str | None, entities: list[Any]) -> str | None:
    if not camera_name:
        return None
    return _find_sensor(entities, f":motion_sensor:{re.escape(camera_name)}")


def _occupancy_sensors(
    camera_name: str | None,
    zones: tuple[str, ...] | None,
    labels: tuple[str, ...] | None,
    entities: list[Any],
) -> list[str]:
    if not camera_name:
        return []
    # With zones configured the camera-wide sensor is left out.
    output: list[str] = []
    for camera_or_zone in zones or (camera_name,):
        for label in labels or ("all",):
            entity_id = _find_sensor(
                entities,
                f":occupancy_sensor:{re.escape(camera_or_zone)}_{re.escape(label)}",
            )
            if entity_id:
                output.append(entity_id)
    return output


def _split_sub_labels(value: Any) -> list[str]:
    # Frigate sub labels may hold several comma separated names.
    if not value:
        return []
    if isinstance(value, (list, tuple)):
        value = value[0] if value else ""
    return [part.strip() for part in str(value).split(",") if part.strip()]


def _event_title(event: FrigateEvent) -> str:
    start = dt_util.as_local(dt_util.utc_from_timestamp(event.start_time))
    end_time = event.end_time if event.end_time is not None else dt_util.utcnow().timestamp()
    duration = round(end_time - event.start_time)
    score = f" {round(event.top_score * 100)}%" if event.top_score is not None else ""
    return f"{format_date_and_time(start)} [{duration}s, {prettify_title(event.label)}{score}]"


def _seek_time_in_segments(
    start: datetime, target: datetime, segments: list[RecordingSegment]
) -> float | None:
    """Seconds of recorded video between `start` and `target`.

    `segments` must be sorted oldest first.
    """
    if not segments:
        return None
    start_ts = start.timestamp()
    target_ts = target.timestamp()
    seek = 0.0
    for segment in segments:
        if segment.start_time > target_ts:
            break
        seek += min(segment.end_time, target_ts) - max(segment.start_time, start_ts)
    return seek


def _hour_id(camera_id: str, value: datetime) -> str:
    local = dt_util.as_local(value)
    return f"{camera_id}/{local.day}/{local.hour}"


class FrigateCameraManagerEngine(CameraManagerEngine):
    """Engine for cameras of the Frigate integration."""

    def __init__(
        self,
        hass: HomeAssistant,
        entity_registry: EntityRegistryManager,
        client_factory: FrigateApiClientFactory | None = None,
    ) -> None:
        super().__init__(hass, entity_registry)
        self._client_factory = (
            client_factory if client_factory is not None else hass_client_factory(hass)
        )
        self._request_cache: RequestCache[DataQuery, QueryResults] = RequestCache()
        self._recording_segments_cache = RecordingSegmentsCache()
        self._unsub_segment_gc: CALLBACK_TYPE | None = None

    @property
    def engine_type(self) -> EngineType:
        return EngineType.FRIGATE

    @property
    def recording_segments_cache(self) -> RecordingSegmentsCache:
        return self._recording_segments_cache

    def _default_capabilities_for(self, camera_config: CameraConfig) -> dict[str, Any]:
        is_birdseye = camera_config.frigate.camera_name == FRIGATE_CAMERA_BIRDSEYE
        return {
            "clips": not is_birdseye,
            "favorite-events": not is_birdseye,
            "favorite-recordings": not is_birdseye,
            "live": True,
            "menu": True,
            "recordings": not is_birdseye,
            "seek": True,
            "snapshots": not is_birdseye,
            "substream": True,
        }

    async def async_initialize_camera(self, camera_config: CameraConfig) -> Camera:
        config = camera_config
        has_auto_triggers = config.triggers.motion or config.triggers.occupancy

        entity = None
        # The registry entry is needed to resolve the camera name or the sensors.
        if config.camera_entity and (not config.frigate.camera_name or has_auto_triggers):
            entity = self._entity_registry.async_get_entity(config.camera_entity)
            if entity is None:
                raise CameraInitializationError(
                    f"Could not find camera entity {config.camera_entity}", camera_config
                )

        if entity is not None and not config.frigate.camera_name:
            camera_name = _camera_name_from_entity(entity)
            if camera_name:
                config = replace(config, frigate=replace(config.frigate, camera_name=camera_name))

        if has_auto_triggers:
            config_entry_id = getattr(entity, "config_entry_id", None)
            binary_sensors = self._entity_registry.async_get_matching_entities(
                lambda entry: entry.config_entry_id == config_entry_id
                and not entry.disabled_by
                and entry.entity_id.startswith("binary_sensor.")
            )
            trigger_entities = list(config.triggers.entities)
            if config.triggers.motion and (
                motion := _motion_sensor(config.frigate.camera_name, binary_sensors)
            ):
                trigger_entities.append(motion)
            if config.triggers.occupancy:
                trigger_entities.extend(
                    _occupancy_sensors(
                        config.frigate.camera_name,
                        config.frigate.zones,
                        config.frigate.labels,
                        binary_sensors,
                    )
                )
            config = replace(
                config,
                triggers=replace(config.triggers, entities=tuple(dict.fromkeys(trigger_entities))),
            )

        if not config.frigate.url:
            _LOGGER.debug(
                "Frigate camera %s has no url; media queries are disabled", config.camera_id
            )

        return Camera(
            config=config,
            engine_type=self.engine_type,
            capabilities=Capabilities.for_camera(config, self._default_capabilities_for(config)),
            entity=entity,
        )

    # Helpers

    def _get_queryable_camera_config(
        self, store: CameraManagerStore, camera_id: str
    ) -> CameraConfig | None:
        config = store.get_camera_config(camera_id)
        if (
            config is None
            or not config.frigate.camera_name
            or config.frigate.camera_name == FRIGATE_CAMERA_BIRDSEYE
        ):
            return None
        return config

    def _get_client(self, camera_config: CameraConfig) -> FrigateApiClient | None:
        if not camera_config.frigate.url:
            return None
        return self._client_factory(camera_config.frigate.client_id, camera_config.frigate.url)

    def _build_instance_to_camera_ids(
        self, store: CameraManagerStore, camera_ids: frozenset[str]
    ) -> dict[str, set[str]]:
        output: dict[str, set[str]] = {}
        for camera_id in sorted(camera_ids):
            config = self._get_queryable_camera_config(store, camera_id)
            if config and config.frigate.client_id:
                output.setdefault(config.frigate.client_id, set()).add(camera_id)
        return output

    def _camera_names(self, store: CameraManagerStore, camera_ids: set[str]) -> list[str]:
        names: set[str] = set()
        for camera_id in camera_ids:
            config = self._get_queryable_camera_config(store, camera_id)
            if config and config.frigate.camera_name:
                names.add(config.frigate.camera_name)
        return sorted(names)

    def _instance_client(
        self, store: CameraManagerStore, camera_ids: set[str]
    ) -> FrigateApiClient | None:
        for camera_id in sorted(camera_ids):
            config = store.get_camera_config(camera_id)
            if config and (client := self._get_client(config)):
                return client
        return None

    def _get_camera_id_match(
        self, store: CameraManagerStore, query: DataQuery, instance_id: str, camera_name: str
    ) -> str | None:
        # A single-camera query owns every result.
        if len(query.camera_ids) == 1:
            return next(iter(query.camera_ids))
        for camera_id, camera in store.get_cameras().items():
            frigate = camera.config.frigate
            if frigate.client_id == instance_id and frigate.camera_name == camera_name:
                return camera_id
        return None

    # Default queries

    def generate_default_event_query(
        self, store: CameraManagerStore, camera_ids: set[str], **filters: Any
    ) -> list[EventQuery] | None:
        configs = {camera_id: store.get_camera_config(camera_id) for camera_id in camera_ids}
        unique_zones = {config.frigate.zones if config else None for config in configs.values()}
        unique_labels = {config.frigate.labels if config else None for config in configs.values()}

        # One batched query when every camera filters identically.
        if len(unique_zones) == 1 and len(unique_labels) == 1:
            labels = next(iter(unique_labels))
            zones = next(iter(unique_zones))
            return [
                EventQuery(
                    camera_ids=frozenset(camera_ids),
                    **{
                        "what": frozenset(labels) if labels else None,
                        "where": frozenset(zones) if zones else None,
                        **filters,
                    },
                )
            ]

        output: list[EventQuery] = []
        for camera_id, config in sorted(configs.items()):
            if config is None:
                continue
            output.append(
                EventQuery(
                    camera_ids=frozenset({camera_id}),
                    **{
                        "what": frozenset(config.frigate.labels) if config.frigate.labels else None,
                        "where": frozenset(config.frigate.zones) if config.frigate.zones else None,
                        **filters,
                    },
                )
            )
        return output or None

    def generate_default_recording_query(
        self, store: CameraManagerStore, camera_ids: set[str], **filters: Any
    ) -> list[RecordingQuery] | None:
        return [RecordingQuery(camera_ids=frozenset(camera_ids), **filters)]

    def generate_default_recording_segments_query(
        self, store: CameraManagerStore, camera_ids: set[str], **filters: Any
    ) -> list[RecordingSegmentsQuery] | None:
        if not filters.get("start") or not filters.get("end"):
            return None
        return [RecordingSegmentsQuery(camera_ids=frozenset(camera_ids), **filters)]

    # Queries

    async def async_get_events(
        self,
        store: CameraManagerStore,
        query: EventQuery,
        options: EngineOptions | None = None,
    ) -> EventQueryResultsMap | None:
        use_cache = options is None or options.use_cache
        output: EventQueryResultsMap = {}

        async def _process_instance(instance_id: str, camera_ids: set[str]) -> None:
            instance_query = replace(query, camera_ids=frozenset(camera_ids))
            if use_cache and (cached := self._request_cache.get(instance_query)) is not None:
                output[instance_query] = cached
                return

            client = self._instance_client(store, camera_ids)
            if client is None:
                return

            events = await client.async_get_events(
                cameras=self._camera_names(store, camera_ids),
                labels=sorted(query.what) if query.what else None,
                zones=sorted(query.where) if query.where else None,
                sub_labels=sorted(query.tags) if query.tags else None,
                before=int(query.end.timestamp()) if query.end else None,
                after=int(query.start.timestamp()) if query.start else None,
                limit=query.limit or EVENT_LIMIT_DEFAULT,
                has_clip=True if query.has_clip else None,
                has_snapshot=True if query.has_snapshot else None,
                favorites=True if query.favorite else None,
            )
            result = FrigateEventQueryResults(
                instance_id=instance_id,
                events=[FrigateEvent.from_dict(event) for event in events],
                expiry=dt_util.utcnow() + timedelta(seconds=EVENT_REQUEST_CACHE_MAX_AGE_SECONDS),
            )
            if use_cache:
                self._request_cache.set(instance_query, replace(result, cached=True), result.expiry)
            output[instance_query] = result

        # Frigate searches many cameras at once, so query once per instance.
        instances = self._build_instance_to_camera_ids(store, query.camera_ids)
        await asyncio.gather(
            *(_process_instance(instance_id, ids) for instance_id, ids in instances.items())
        )
        return output or None

    async def async_get_recordings(
        self,
        store: CameraManagerStore,
        query: RecordingQuery,
        options: EngineOptions | None = None,
    ) -> RecordingQueryResultsMap | None:
        use_cache = options is None or options.use_cache
        output: RecordingQueryResultsMap = {}

        async def _process_camera(camera_id: str) -> None:
            camera_query = replace(query, camera_ids=frozenset({camera_id}))
            if use_cache and (cached := self._request_cache.get(camera_query)) is not None:
                output[camera_query] = cached
                return

            config = self._get_queryable_camera_config(store, camera_id)
            if config is None or (client := self._get_client(config)) is None:
                return

            summary = await client.async_get_recordings_summary(
                config.frigate.camera_name, self.hass.config.time_zone
            )
            recordings: list[FrigateRecording] = []
            for day_data in summary:
                day_start = dt_util.start_of_local_day(day_data["day"])
                for hour_data in day_data["hours"]:
                    start = day_start.replace(hour=hour_data["hour"])
                    end = start.replace(minute=59, second=59, microsecond=999999)
                    if (query.start is None or start >= query.start) and (
                        query.end is None or end <= query.end
                    ):
                        recordings.append(
                            FrigateRecording(
                                camera_id=camera_id,
                                start_time=start,
                                end_time=end,
                                events=hour_data["events"],
                            )
                        )

            # Frigate cannot limit recording searches natively.
            if query.limit is not None:
                recordings.sort(key=lambda recording: recording.start_time, reverse=True)
                recordings = recordings[: query.limit]

            result = FrigateRecordingQueryResults(
                instance_id=config.frigate.client_id,
                recordings=recordings,
                expiry=dt_util.utcnow()
                + timedelta(seconds=RECORDING_SUMMARY_REQUEST_CACHE_MAX_AGE_SECONDS),
            )
            if use_cache:
                self._request_cache.set(camera_query, replace(result, cached=True), result.expiry)
            output[camera_query] = result

        await asyncio.gather(
            *(_process_camera(camera_id) for camera_id in sorted(query.camera_ids))
        )
        return output or None

    async def async_get_recording_segments(
        self,
        store: CameraManagerStore,
        query: RecordingSegmentsQuery,
        options: EngineOptions | None = None,
    ) -> RecordingSegmentsQueryResultsMap | None:
        use_cache = options is None or options.use_cache
        output: RecordingSegmentsQueryResultsMap = {}
        range_ = DateRange(query.start, query.end)

        async def _process_camera(camera_id: str) -> None:
            camera_query = replace(query, camera_ids=frozenset({camera_id}))
            config = self._get_queryable_camera_config(store, camera_id)
            if config is None:
                return

            # Segment queries run at seek frequency, so the ranged cache is
            # consulted even though results are never exactly repeated.
            cached = self._recording_segments_cache.get(camera_id, range_) if use_cache else None
            if cached is not None:
                output[camera_query] = FrigateRecordingSegmentsQueryResults(
                    instance_id=config.frigate.client_id, segments=cached, cached=True
                )
                return

            client = self._get_client(config)
            if client is None:
                return
            segments = [
                RecordingSegment.from_dict(segment)
                for segment in await client.async_get_recording_segments(
                    config.frigate.camera_name,
                    after=int(query.start.timestamp()),
                    before=int(query.end.timestamp()),
                )
            ]
            if use_cache:
                self._recording_segments_cache.add(camera_id, range_, segments)
            output[camera_query] = FrigateRecordingSegmentsQueryResults(
                instance_id=config.frigate.client_id, segments=segments
            )

        await asyncio.gather(
            *(_process_camera(camera_id) for camera_id in sorted(query.camera_ids))
        )
        self._schedule_segment_garbage_collection(store)
        return output or None

    @callback
    def _schedule_segment_garbage_collection(self, store: CameraManagerStore) -> None:
        """Collect at most once per interval, at the end of it."""
        if self._unsub_segment_gc is not None:
            return

        @callback
        def _collect(_now: datetime) -> None:
            self._unsub_segment_gc = None
            self.hass.async_create_task(self.async_garbage_collect_segments(store))

        self._unsub_segment_gc = async_call_later(
            self.hass, SEGMENT_GARBAGE_COLLECTION_INTERVAL_SECONDS, _collect
        )

    async def async_garbage_collect_segments(self, store: CameraManagerStore) -> None:
        """Drop cached segments whose hour no longer has a recording upstream."""
        camera_ids = self._recording_segments_cache.camera_ids()
        if not camera_ids:
            return

        def _count() -> int:
            return sum(
                self._recording_segments_cache.size(camera_id) or 0 for camera_id in camera_ids
            )

        segments_before = _count()
        results = await self.async_get_recordings(
            store, RecordingQuery(camera_ids=frozenset(camera_ids))
        )
        for query, result in (results or {}).items():
            if not is_frigate_recording_results(result):
                continue
            good_hours = {
                _hour_id(recording.camera_id, recording.start_time)
                for recording in result.recordings
            }
            camera_id = next(iter(query.camera_ids))
            self._recording_segments_cache.expire_matches(
                camera_id,
                lambda segment, camera_id=camera_id: _hour_id(
                    camera_id, dt_util.utc_from_timestamp(segment.start_time)
                )
                not in good_hours,
            )

        _LOGGER.debug(
            "Recording segment garbage collection released %s segment(s)",
            segments_before - _count(),
        )

    async def async_get_media_metadata(
        self,
        store: CameraManagerStore,
        query: MediaMetadataQuery,
        options: EngineOptions | None = None,
    ) -> MediaMetadataQueryResultsMap | None:
        use_cache = options is None or options.use_cache
        if use_cache and (cached := self._request_cache.get(query)) is not None:
            return {query: cached}

        metadata = MediaMetadata()

        async def _process_event_summary(camera_ids: set[str]) -> None:
            client = self._instance_client(store, camera_ids)
            if client is None:
                return
            camera_names = set(self._camera_names(store, camera_ids))
            for entry in await client.async_get_events_summary(self.hass.config.time_zone):
                # Cameras of the instance that are not configured here are skipped.
                if entry["camera"] not in camera_names:
                    continue
                if entry["label"]:
                    metadata.what.add(entry["label"])
                metadata.where.update(entry["zones"])
                if entry["day"]:
                    metadata.days.add(entry["day"])
                metadata.tags.update(_split_sub_labels(entry.get("sub_label")))

        async def _process_recordings(camera_ids: set[str]) -> None:
            results = await self.async_get_recordings(
                store, RecordingQuery(camera_ids=frozenset(camera_ids)), options
            )
            for result in (results or {}).values():
                if not is_frigate_recording_results(result):
                    continue
                # Recordings are single hours, so never span a day.
                metadata.days.update(
                    recording.start_time.strftime("%Y-%m-%d") for recording in result.recordings
                )

        instances = self._build_instance_to_camera_ids(store, query.camera_ids)
        await asyncio.gather(
            *(
                task
                for camera_ids in instances.values()
                for task in (_process_event_summary(camera_ids), _process_recordings(camera_ids))
            )
        )

        result = MediaMetadataQueryResults(
            engine=EngineType.FRIGATE,
            metadata=metadata,
            expiry=dt_util.utcnow()
            + timedelta(seconds=MEDIA_METADATA_REQUEST_CACHE_MAX_AGE_SECONDS),
        )
        if use_cache:
            self._request_cache.set(query, replace(result, cached=True), result.expiry)
        return {query: result}

    # Result conversion

    def generate_media_from_events(
        self, store: CameraManagerStore, query: EventQuery, results: QueryResults
    ) -> list[ViewMedia] | None:
        if not is_frigate_event_results(results):
            return None

        output: list[ViewMedia] = []
        for event in results.events:
            camera_id = self._get_camera_id_match(store, query, results.instance_id, event.camera)
            if camera_id is None:
                continue
            config = self._get_queryable_camera_config(store, camera_id)
            if config is None:
                continue

            media_type: MediaType | None = None
            if not query.has_clip and not query.has_snapshot and (
                event.has_clip or event.has_snapshot
            ):
                media_type = MediaType.CLIP if event.has_clip else MediaType.SNAPSHOT
            elif query.has_snapshot and event.has_snapshot:
                media_type = MediaType.SNAPSHOT
            elif query.has_clip and event.has_clip:
                media_type = MediaType.CLIP
            if media_type is None:
                continue

            client_id = config.frigate.client_id
            folder = "clips" if media_type is MediaType.CLIP else "snapshots"
            output.append(
                ViewMedia(
                    media_type=media_type,
                    camera_id=camera_id,
                    id=event.id,
                    engine=EngineType.FRIGATE,
                    content_id=(
                        f"media-source://frigate/{client_id}/event/{folder}/"
                        f"{config.frigate.camera_name}/{event.id}"
                    ),
                    start_time=dt_util.utc_from_timestamp(event.start_time),
                    end_time=(
                        dt_util.utc_from_timestamp(event.end_time)
                        if event.end_time is not None
                        else None
                    ),
                    title=_event_title(event),
                    thumbnail=f"/api/frigate/{client_id}/thumbnail/{event.id}",
                    what=[event.label],
                    where=list(event.zones),
                    tags=_split_sub_labels(event.sub_label) or None,
                    score=event.top_score,
                    favorite=event.retain_indefinitely,
                    in_progress=event.end_time is None,
                )
            )
        return output

    def generate_media_from_recordings(
        self, store: CameraManagerStore, query: RecordingQuery, results: QueryResults
    ) -> list[ViewMedia] | None:
        if not is_frigate_recording_results(results):
            return None

        output: list[ViewMedia] = []
        for recording in results.recordings:
            config = self._get_queryable_camera_config(store, recording.camera_id)
            if config is None:
                continue
            frigate = config.frigate
            start = recording.start_time
            end = recording.end_time
            local_start = dt_util.as_local(start)
            output.append(
                ViewMedia(
                    media_type=MediaType.RECORDING,
                    camera_id=recording.camera_id,
                    # Zones of one camera share recordings, so dedupe on the camera name.
                    id=(
                        f"{frigate.client_id}/{frigate.camera_name}/"
                        f"{int(start.timestamp() * 1000)}/{int(end.timestamp() * 1000)}"
                    ),
                    engine=EngineType.FRIGATE,
                    content_id=(
                        f"media-source://frigate/{frigate.client_id}/recordings/"
                        f"{frigate.camera_name}/{local_start:%Y-%m-%d}/{local_start:%H}"
                    ),
                    start_time=start,
                    end_time=end,
                    title=(
                        f"{self.get_camera_metadata(config).title} "
                        f"{format_date_and_time(local_start)}"
                    ),
                    event_count=recording.events,
                )
            )
        return output

    # Media actions

    async def async_get_media_download_path(
        self, camera_config: CameraConfig, media: ViewMedia
    ) -> CameraEndpoint | None:
        client_id = camera_config.frigate.client_id
        if media.is_event:
            filename = "clip.mp4" if media.media_type is MediaType.CLIP else "snapshot.jpg"
            return CameraEndpoint(
                f"/api/frigate/{client_id}/notifications/{media.id}/{filename}?download=true",
                sign=True,
            )
        if media.is_recording and media.start_time and media.end_time:
            return CameraEndpoint(
                f"/api/frigate/{client_id}/recording/{camera_config.frigate.camera_name}"
                f"/start/{int(media.start_time.timestamp())}"
                f"/end/{int(media.end_time.timestamp())}?download=true",
                sign=True,
            )
        return None

    async def async_favorite_media(
        self, camera_config: CameraConfig, media: ViewMedia, favorite: bool
    ) -> None:
        if not media.is_event:
            return
        client = self._get_client(camera_config)
        if client is None:
            return
        await client.async_retain_event(media.id, favorite)
        media.favorite = favorite

    def get_query_result_max_age(self, query: DataQuery) -> int | None:
        if query.type is QueryType.EVENT:
            return EVENT_REQUEST_CACHE_MAX_AGE_SECONDS
        if query.type is QueryType.RECORDING:
            return RECORDING_SUMMARY_REQUEST_CACHE_MAX_AGE_SECONDS
        return None

    async def async_get_media_seek_time(
        self,
        store: CameraManagerStore,
        media: ViewMedia,
        target: datetime,
        options: EngineOptions | None = None,
    ) -> float | None:
        start = media.start_time
        end = media.end_time
        if start is None or end is None or target < start or target > end:
            return None

        results = await self.async_get_recording_segments(
            store,
            RecordingSegmentsQuery(camera_ids=frozenset({media.camera_id}), start=start, end=end),
            options,
        )
        if not results:
            return None
        # Segment queries are per camera, so there is a single result.
        result = next(iter(results.values()))
        if not is_frigate_recording_segments_results(result):
            return None
        return _seek_time_in_segments(start, target, result.segments)

    def get_media_capabilities(self, media: ViewMedia) -> MediaCapabilities | None:
        return MediaCapabilities(can_favorite=media.is_event, can_download=True)

    # Camera description

    def get_camera_metadata(self, camera_config: CameraConfig) -> CameraMetadata:
        metadata = super().get_camera_metadata(camera_config)
        return CameraMetadata(
            title=(
                camera_config.title
                or self._entity_title(camera_config.camera_entity)
                or prettify_title(camera_config.frigate.camera_name)
                or camera_config.id
                or ""
            ),
            icon=metadata.icon,
            engine_logo=_FRIGATE_LOGO,
        )

    def get_camera_endpoints(
        self, camera_config: CameraConfig, context: CameraEndpointsContext | None = None
    ) -> CameraEndpoints | None:
        frigate = camera_config.frigate
        client_path = f"/api/frigate/{frigate.client_id}"
        stream = camera_config.go2rtc.stream or frigate.camera_name
        return CameraEndpoints(
            ui=self._get_ui_endpoint(camera_config, context),
            # The integration serves every go2rtc mode under the mse path.
            go2rtc=CameraEndpoint(f"{client_path}/mse/api/ws?src={stream}", sign=True),
            jsmpeg=CameraEndpoint(f"{client_path}/jsmpeg/{frigate.camera_name}", sign=True),
            webrtc_card=CameraEndpoint(frigate.camera_name) if frigate.camera_name else None,
        )

    def _get_ui_endpoint(
        self, camera_config: CameraConfig, context: CameraEndpointsContext | None
    ) -> CameraEndpoint | None:
        frigate = camera_config.frigate
        if not frigate.url:
            return None
        if not frigate.camera_name:
            return CameraEndpoint(frigate.url)

        camera_url = f"{frigate.url}/cameras/{frigate.camera_name}"
        view = context.view if context else None
        media = context.media if context else None
        if view == "live":
            return CameraEndpoint(camera_url)

        events_url = f"{frigate.url}/events?camera={frigate.camera_name}"
        recordings_url = f"{frigate.url}/recording/{frigate.camera_name}"

        if media is not None:
            if media.is_event:
                return CameraEndpoint(events_url)
            if media.is_recording and media.start_time:
                return CameraEndpoint(
                    f"{recordings_url}/{dt_util.as_local(media.start_time):%Y-%m-%d/%H}"
                )

        if view in ("clip", "clips", "snapshot", "snapshots"):
            return CameraEndpoint(events_url)
        if view in ("recording", "recordings"):
            return CameraEndpoint(recordings_url)
        return CameraEndpoint(camera_url)

    def clear_caches(self) -> None:
        self._request_cache.clear()
        self._recording_segments_cache.clear()
        if self._unsub_segment_gc is not None:
            self._unsub_segment_gc()
            self._unsub_segment_gc = None

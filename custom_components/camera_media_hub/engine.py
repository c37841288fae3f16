"""The query contract every camera engine implements.

`CameraManagerEngine` is also the generic engine: cameras it serves can be
viewed live but have no queryable media, so every query method answers
``None`` ("nothing matched").
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
import logging
from typing import TYPE_CHECKING, Any

from homeassistant.core import HomeAssistant

from .camera import Camera
from .capabilities import Capabilities
from .media import ViewMedia
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
    MediaMetadataQuery,
    QueryResults,
    RecordingQuery,
    RecordingSegmentsQuery,
)
from .registry import EntityRegistryManager

if TYPE_CHECKING:
    from .store import CameraManagerStore

_LOGGER = logging.getLogger(__name__)

DEFAULT_CAMERA_ICON = "mdi:video"

EventQueryResultsMap = dict[EventQuery, QueryResults]
RecordingQueryResultsMap = dict[RecordingQuery, QueryResults]
RecordingSegmentsQueryResultsMap = dict[RecordingSegmentsQuery, QueryResults]
MediaMetadataQueryResultsMap = dict[MediaMetadataQuery, QueryResults]


@dataclass(frozen=True, slots=True)
class CameraEndpointsContext:
    """What the frontend is showing when it asks for endpoints."""

    view: str | None = None
    media: ViewMedia | None = None


class CameraManagerEngine:
    """Base engine. Subclasses override the parts their backend supports."""

    def __init__(self, hass: HomeAssistant, entity_registry: EntityRegistryManager) -> None:
        self.hass = hass
        self._entity_registry = entity_registry

    @property
    def engine_type(self) -> EngineType:
        return EngineType.GENERIC

    def _default_capabilities(self) -> dict[str, Any]:
        return {"live": True, "menu": True}

    async def async_initialize_camera(self, camera_config: CameraConfig) -> Camera:
        return Camera(
            config=camera_config,
            engine_type=self.engine_type,
            capabilities=Capabilities.for_camera(camera_config, self._default_capabilities()),
            entity=self._entity_registry.async_get_entity(camera_config.camera_entity),
        )

    # Default queries

    def generate_default_event_query(
        self, store: CameraManagerStore, camera_ids: set[str], **filters: Any
    ) -> list[EventQuery] | None:
        return None

    def generate_default_recording_query(
        self, store: CameraManagerStore, camera_ids: set[str], **filters: Any
    ) -> list[RecordingQuery] | None:
        return None

    def generate_default_recording_segments_query(
        self, store: CameraManagerStore, camera_ids: set[str], **filters: Any
    ) -> list[RecordingSegmentsQuery] | None:
        return None

    # Queries

    async def async_get_events(
        self,
        store: CameraManagerStore,
        query: EventQuery,
        options: EngineOptions | None = None,
    ) -> EventQueryResultsMap | None:
        return None

    async def async_get_recordings(
        self,
        store: CameraManagerStore,
        query: RecordingQuery,
        options: EngineOptions | None = None,
    ) -> RecordingQueryResultsMap | None:
        return None

    async def async_get_recording_segments(
        self,
        store: CameraManagerStore,
        query: RecordingSegmentsQuery,
        options: EngineOptions | None = None,
    ) -> RecordingSegmentsQueryResultsMap | None:
        return None

    async def async_get_media_metadata(
        self,
        store: CameraManagerStore,
        query: MediaMetadataQuery,
        options: EngineOptions | None = None,
    ) -> MediaMetadataQueryResultsMap | None:
        return None

    # Result conversion

    def generate_media_from_events(
        self, store: CameraManagerStore, query: EventQuery, results: QueryResults
    ) -> list[ViewMedia] | None:
        return None

    def generate_media_from_recordings(
        self, store: CameraManagerStore, query: RecordingQuery, results: QueryResults
    ) -> list[ViewMedia] | None:
        return None

    # Media actions

    async def async_get_media_download_path(
        self, camera_config: CameraConfig, media: ViewMedia
    ) -> CameraEndpoint | None:
        return None

    async def async_favorite_media(
        self, camera_config: CameraConfig, media: ViewMedia, favorite: bool
    ) -> None:
        return None

    def get_query_result_max_age(self, query: DataQuery) -> int | None:
        """Seconds a result for `query` may be shown before it is considered stale."""
        return None

    async def async_get_media_seek_time(
        self,
        store: CameraManagerStore,
        media: ViewMedia,
        target: datetime,
        options: EngineOptions | None = None,
    ) -> float | None:
        return None

    # Camera description

    def get_camera_capabilities(self, camera: Camera) -> Capabilities:
        return camera.capabilities

    def get_camera_metadata(self, camera_config: CameraConfig) -> CameraMetadata:
        return CameraMetadata(
            title=(
                camera_config.title
                or self._entity_title(camera_config.camera_entity)
                or camera_config.id
                or ""
            ),
            icon=(
                camera_config.icon
                or self._entity_icon(camera_config.camera_entity)
                or DEFAULT_CAMERA_ICON
            ),
        )

    def get_camera_endpoints(
        self, camera_config: CameraConfig, context: CameraEndpointsContext | None = None
    ) -> CameraEndpoints | None:
        go2rtc = camera_config.go2rtc
        if go2rtc.url and go2rtc.stream:
            return CameraEndpoints(
                go2rtc=CameraEndpoint(f"{go2rtc.url.rstrip('/')}/api/ws?src={go2rtc.stream}")
            )
        return None

    def get_media_capabilities(self, media: ViewMedia) -> MediaCapabilities | None:
        return None

    def clear_caches(self) -> None:
        """Drop every cache the engine owns."""

    def _entity_title(self, entity_id: str | None) -> str | None:
        if not entity_id or (state := self.hass.states.get(entity_id)) is None:
            return None
        return state.attributes.get("friendly_name")

    def _entity_icon(self, entity_id: str | None) -> str | None:
        if not entity_id or (state := self.hass.states.get(entity_id)) is None:
            return None
        return state.attributes.get("icon")

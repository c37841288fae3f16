"""Data models for the Camera Media Hub integration."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum
from typing import TYPE_CHECKING, Any

from .const import (
    ENGINE_AUTO,
    FRIGATE_DEFAULT_CLIENT_ID,
    MOTIONEYE_DEFAULT_DIRECTORY_PATTERN,
    MOTIONEYE_DEFAULT_FILE_PATTERN,
)

if TYPE_CHECKING:
    from .browse_media import RichBrowseMedia


class EngineType(StrEnum):
    """Backend integrations a camera can be served by."""

    FRIGATE = "frigate"
    GENERIC = "generic"
    MOTIONEYE = "motioneye"
    REOLINK = "reolink"


class QueryType(StrEnum):
    EVENT = "event-query"
    RECORDING = "recording-query"
    RECORDING_SEGMENTS = "recording-segments-query"
    MEDIA_METADATA = "media-metadata"


class QueryResultsType(StrEnum):
    EVENT = "event-results"
    RECORDING = "recording-results"
    RECORDING_SEGMENTS = "recording-segments-results"
    MEDIA_METADATA = "media-metadata-results"


class MediaType(StrEnum):
    CLIP = "clip"
    SNAPSHOT = "snapshot"
    RECORDING = "recording"


# =======
# Queries
# =======


@dataclass(frozen=True, slots=True, kw_only=True)
class EventQuery:
    """Search for events (clips/snapshots)."""

    camera_ids: frozenset[str]
    start: datetime | None = None
    end: datetime | None = None
    limit: int | None = None
    favorite: bool | None = None
    has_clip: bool | None = None
    has_snapshot: bool | None = None
    what: frozenset[str] | None = None
    tags: frozenset[str] | None = None
    where: frozenset[str] | None = None
    type: QueryType = field(default=QueryType.EVENT, init=False)


@dataclass(frozen=True, slots=True, kw_only=True)
class RecordingQuery:
    """Search for continuous recordings."""

    camera_ids: frozenset[str]
    start: datetime | None = None
    end: datetime | None = None
    limit: int | None = None
    favorite: bool | None = None
    type: QueryType = field(default=QueryType.RECORDING, init=False)


@dataclass(frozen=True, slots=True, kw_only=True)
class RecordingSegmentsQuery:
    """Fetch the recording segments covering a time window."""

    camera_ids: frozenset[str]
    start: datetime
    end: datetime
    type: QueryType = field(default=QueryType.RECORDING_SEGMENTS, init=False)


@dataclass(frozen=True, slots=True, kw_only=True)
class MediaMetadataQuery:
    """Fetch the filterable metadata (days, labels, zones, tags)."""

    camera_ids: frozenset[str]
    type: QueryType = field(default=QueryType.MEDIA_METADATA, init=False)


DataQuery = EventQuery | RecordingQuery | RecordingSegmentsQuery | MediaMetadataQuery
MediaQuery = EventQuery | RecordingQuery


@dataclass(slots=True)
class EngineOptions:
    use_cache: bool = True


# =======
# Results
# =======


@dataclass(frozen=True, slots=True)
class RecordingSegment:
    """A span of continuous recording, in unix seconds."""

    start_time: float
    end_time: float
    id: str

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> RecordingSegment:
        return cls(
            start_time=float(data["start_time"]),
            end_time=float(data["end_time"]),
            id=str(data["id"]),
        )


@dataclass(slots=True)
class MediaMetadata:
    days: set[str] = field(default_factory=set)
    tags: set[str] = field(default_factory=set)
    what: set[str] = field(default_factory=set)
    where: set[str] = field(default_factory=set)

    def merge(self, other: MediaMetadata) -> None:
        self.days |= other.days
        self.tags |= other.tags
        self.what |= other.what
        self.where |= other.where


@dataclass(slots=True, kw_only=True)
class QueryResults:
    type: QueryResultsType
    engine: EngineType
    expiry: datetime | None = None
    cached: bool = False


@dataclass(frozen=True, slots=True)
class FrigateEvent:
    """One event as reported by the Frigate API."""

    id: str
    camera: str
    label: str
    start_time: float
    end_time: float | None
    has_clip: bool
    has_snapshot: bool
    zones: tuple[str, ...] = ()
    sub_label: str | None = None
    top_score: float | None = None
    false_positive: bool | None = None
    retain_indefinitely: bool = False

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> FrigateEvent:
        sub_label = data.get("sub_label")
        # Newer Frigate versions report sub labels as [label, score].
        if isinstance(sub_label, (list, tuple)):
            sub_label = sub_label[0] if sub_label else None
        return cls(
            id=data["id"],
            camera=data["camera"],
            label=data["label"],
            start_time=float(data["start_time"]),
            end_time=float(data["end_time"]) if data.get("end_time") is not None else None,
            has_clip=bool(data["has_clip"]),
            has_snapshot=bool(data["has_snapshot"]),
            zones=tuple(data.get("zones") or ()),
            sub_label=sub_label,
            top_score=data.get("top_score"),
            false_positive=data.get("false_positive"),
            retain_indefinitely=bool(data.get("retain_indefinitely", False)),
        )


@dataclass(frozen=True, slots=True)
class FrigateRecording:
    """An hour of recording summarised by Frigate."""

    camera_id: str
    start_time: datetime
    end_time: datetime
    events: int


@dataclass(slots=True, kw_only=True)
class FrigateEventQueryResults(QueryResults):
    type: QueryResultsType = QueryResultsType.EVENT
    engine: EngineType = EngineType.FRIGATE
    instance_id: str
    events: list[FrigateEvent]


@dataclass(slots=True, kw_only=True)
class FrigateRecordingQueryResults(QueryResults):
    type: QueryResultsType = QueryResultsType.RECORDING
    engine: EngineType = EngineType.FRIGATE
    instance_id: str
    recordings: list[FrigateRecording]


@dataclass(slots=True, kw_only=True)
class RecordingSegmentsQueryResults(QueryResults):
    type: QueryResultsType = QueryResultsType.RECORDING_SEGMENTS
    segments: list[RecordingSegment]


@dataclass(slots=True, kw_only=True)
class FrigateRecordingSegmentsQueryResults(RecordingSegmentsQueryResults):
    engine: EngineType = EngineType.FRIGATE
    instance_id: str


@dataclass(slots=True, kw_only=True)
class MediaMetadataQueryResults(QueryResults):
    type: QueryResultsType = QueryResultsType.MEDIA_METADATA
    metadata: MediaMetadata


@dataclass(slots=True, kw_only=True)
class BrowseMediaEventQueryResults(QueryResults):
    """Event results of an engine that walks a browse media tree."""

    type: QueryResultsType = QueryResultsType.EVENT
    browse_media: list[RichBrowseMedia]


def is_frigate_event_results(results: QueryResults) -> bool:
    return (
        isinstance(results, FrigateEventQueryResults)
        and results.engine is EngineType.FRIGATE
        and results.type is QueryResultsType.EVENT
    )


def is_frigate_recording_results(results: QueryResults) -> bool:
    return (
        isinstance(results, FrigateRecordingQueryResults)
        and results.engine is EngineType.FRIGATE
        and results.type is QueryResultsType.RECORDING
    )


def is_frigate_recording_segments_results(results: QueryResults) -> bool:
    return (
        isinstance(results, FrigateRecordingSegmentsQueryResults)
        and results.engine is EngineType.FRIGATE
        and results.type is QueryResultsType.RECORDING_SEGMENTS
    )


def is_browse_media_event_results(results: QueryResults, engine: EngineType) -> bool:
    return (
        isinstance(results, BrowseMediaEventQueryResults)
        and results.engine is engine
        and results.type is QueryResultsType.EVENT
    )


# ================
# Endpoints & misc
# ================


@dataclass(frozen=True, slots=True)
class CameraEndpoint:
    endpoint: str
    sign: bool = False


@dataclass(slots=True)
class CameraEndpoints:
    ui: CameraEndpoint | None = None
    go2rtc: CameraEndpoint | None = None
    jsmpeg: CameraEndpoint | None = None
    webrtc_card: CameraEndpoint | None = None


@dataclass(frozen=True, slots=True)
class CameraMetadata:
    title: str
    icon: str
    engine_logo: str | None = None


@dataclass(frozen=True, slots=True)
class MediaCapabilities:
    can_favorite: bool
    can_download: bool


# =============
# Camera config
# =============


@dataclass(frozen=True, slots=True)
class FrigateCameraConfig:
    client_id: str = FRIGATE_DEFAULT_CLIENT_ID
    camera_name: str | None = None
    url: str | None = None
    labels: tuple[str, ...] | None = None
    zones: tuple[str, ...] | None = None


@dataclass(frozen=True, slots=True)
class MotionEyePatternConfig:
    directory_pattern: str = MOTIONEYE_DEFAULT_DIRECTORY_PATTERN
    file_pattern: str = MOTIONEYE_DEFAULT_FILE_PATTERN


@dataclass(frozen=True, slots=True)
class MotionEyeCameraConfig:
    url: str | None = None
    images: MotionEyePatternConfig = field(default_factory=MotionEyePatternConfig)
    movies: MotionEyePatternConfig = field(default_factory=MotionEyePatternConfig)


@dataclass(frozen=True, slots=True)
class ReolinkCameraConfig:
    url: str | None = None
    media_resolution: str = "high"


@dataclass(frozen=True, slots=True)
class Go2RtcCameraConfig:
    url: str | None = None
    stream: str | None = None


@dataclass(frozen=True, slots=True)
class TriggersConfig:
    motion: bool = False
    occupancy: bool = False
    entities: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class CapabilitiesConfig:
    disable: tuple[str, ...] = ()
    disable_except: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class CameraConfig:
    """One configured camera."""

    id: str | None = None
    camera_entity: str | None = None
    engine: str = ENGINE_AUTO
    title: str | None = None
    icon: str | None = None
    frigate: FrigateCameraConfig = field(default_factory=FrigateCameraConfig)
    motioneye: MotionEyeCameraConfig = field(default_factory=MotionEyeCameraConfig)
    reolink: ReolinkCameraConfig = field(default_factory=ReolinkCameraConfig)
    go2rtc: Go2RtcCameraConfig = field(default_factory=Go2RtcCameraConfig)
    triggers: TriggersConfig = field(default_factory=TriggersConfig)
    capabilities: CapabilitiesConfig = field(default_factory=CapabilitiesConfig)
    ptz: dict[str, Any] = field(default_factory=dict, compare=False, hash=False)

    @property
    def camera_id(self) -> str | None:
        """The identity of the camera within the manager."""
        return (
            self.id
            or self.camera_entity
            or self.frigate.camera_name
            or self.go2rtc.stream
            or None
        )

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> CameraConfig:
        frigate = data.get("frigate") or {}
        motioneye = data.get("motioneye") or {}
        reolink = data.get("reolink") or {}
        go2rtc = data.get("go2rtc") or {}
        triggers = data.get("triggers") or {}
        capabilities = data.get("capabilities") or {}
        return cls(
            id=data.get("id"),
            camera_entity=data.get("camera_entity"),
            engine=data.get("engine", ENGINE_AUTO),
            title=data.get("title"),
            icon=data.get("icon"),
            frigate=FrigateCameraConfig(
                client_id=frigate.get("client_id", FRIGATE_DEFAULT_CLIENT_ID),
                camera_name=frigate.get("camera_name"),
                url=frigate.get("url"),
                labels=_optional_tuple(frigate.get("labels")),
                zones=_optional_tuple(frigate.get("zones")),
            ),
            motioneye=MotionEyeCameraConfig(
                url=motioneye.get("url"),
                images=MotionEyePatternConfig(**(motioneye.get("images") or {})),
                movies=MotionEyePatternConfig(**(motioneye.get("movies") or {})),
            ),
            reolink=ReolinkCameraConfig(
                url=reolink.get("url"),
                media_resolution=reolink.get("media_resolution", "high"),
            ),
            go2rtc=Go2RtcCameraConfig(url=go2rtc.get("url"), stream=go2rtc.get("stream")),
            triggers=TriggersConfig(
                motion=bool(triggers.get("motion", False)),
                occupancy=bool(triggers.get("occupancy", False)),
                entities=tuple(triggers.get("entities") or ()),
            ),
            capabilities=CapabilitiesConfig(
                disable=tuple(capabilities.get("disable") or ()),
                disable_except=tuple(capabilities.get("disable_except") or ()),
            ),
            ptz=dict(data.get("ptz") or {}),
        )


def _optional_tuple(value: Any) -> tuple[str, ...] | None:
    if value is None:
        return None
    if isinstance(value, str):
        return (value,)
    return tuple(value)

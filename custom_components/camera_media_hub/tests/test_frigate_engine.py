"""Unit tests for the Frigate engine."""

from __future__ import annotations

import asyncio
from datetime import date, datetime, timezone
from types import SimpleNamespace

import pytest

from custom_components.camera_media_hub.engine import CameraEndpointsContext
from custom_components.camera_media_hub.engines import frigate as frigate_engine
from custom_components.camera_media_hub.engines.frigate import (
    FrigateCameraManagerEngine,
    _seek_time_in_segments,
)
from custom_components.camera_media_hub.errors import CameraInitializationError
from custom_components.camera_media_hub.media import ViewMedia
from custom_components.camera_media_hub.models import (
    CameraConfig,
    EngineType,
    EventQuery,
    FrigateCameraConfig,
    MediaMetadataQuery,
    MediaType,
    RecordingQuery,
    RecordingSegment,
    RecordingSegmentsQuery,
    RecordingSegmentsQueryResults,
    TriggersConfig,
)
from custom_components.camera_media_hub.store import CameraManagerStore

_URL = "http://frigate.local:5000"


def _at(hour: int, minute: int = 0, second: int = 0) -> datetime:
    return datetime(2026, 2, 19, hour, minute, second, tzinfo=timezone.utc)


def _ts(hour: int, minute: int = 0, second: int = 0) -> float:
    return _at(hour, minute, second).timestamp()


class _FakeClient:
    """Records calls and answers with canned Frigate payloads."""

    def __init__(self) -> None:
        self.calls: list[tuple] = []
        self.events: list[dict] = []
        self.summary: list[dict] = []
        self.segments: list[dict] = []
        self.events_summary: list[dict] = []
        self.retained: list[tuple[str, bool]] = []

    async def async_get_events(self, **kwargs):
        self.calls.append(("events", kwargs))
        return self.events

    async def async_get_recordings_summary(self, camera, timezone):
        self.calls.append(("summary", camera))
        return self.summary

    async def async_get_recording_segments(self, camera, after, before):
        self.calls.append(("segments", camera, after, before))
        return self.segments

    async def async_retain_event(self, event_id, retain):
        self.retained.append((event_id, retain))

    async def async_get_events_summary(self, timezone):
        self.calls.append(("events_summary",))
        return self.events_summary


class _FakeRegistry:
    def __init__(self, entities: list[SimpleNamespace] | None = None) -> None:
        self.entities = entities or []

    def async_get_entity(self, entity_id):
        return next((entity for entity in self.entities if entity.entity_id == entity_id), None)

    def async_get_matching_entities(self, predicate):
        return [entity for entity in self.entities if predicate(entity)]


def _hass() -> SimpleNamespace:
    return SimpleNamespace(
        states=SimpleNamespace(get=lambda entity_id: None),
        config=SimpleNamespace(time_zone="UTC"),
    )


def _engine(client: _FakeClient, registry: _FakeRegistry | None = None) -> FrigateCameraManagerEngine:
    return FrigateCameraManagerEngine(
        _hass(), registry or _FakeRegistry(), client_factory=lambda client_id, url: client
    )


def _config(camera_id: str, camera_name: str, **frigate) -> CameraConfig:
    return CameraConfig(
        id=camera_id,
        frigate=FrigateCameraConfig(camera_name=camera_name, url=_URL, **frigate),
    )


def _store(engine: FrigateCameraManagerEngine, *configs: CameraConfig) -> CameraManagerStore:
    store = CameraManagerStore()
    for config in configs or (_config("front", "front_door"), _config("back", "back_yard")):
        store.add_camera(asyncio.run(engine.async_initialize_camera(config)), engine)
    return store


def _event(event_id: str, camera: str, **overrides) -> dict:
    return {
        "id": event_id,
        "camera": camera,
        "label": "person",
        "start_time": _ts(10),
        "end_time": _ts(10, 0, 12),
        "has_clip": True,
        "has_snapshot": True,
        "zones": ["porch"],
        "sub_label": None,
        "top_score": 0.87,
        "retain_indefinitely": False,
        **overrides,
    }


@pytest.fixture
def scheduled(monkeypatch: pytest.MonkeyPatch) -> list[float]:
    delays: list[float] = []

    def _fake_call_later(hass, delay, action):
        delays.append(delay)
        return lambda: None

    monkeypatch.setattr(frigate_engine, "async_call_later", _fake_call_later)
    return delays


def test_seek_time_in_segments_skips_gaps() -> None:
    segments = [
        RecordingSegment(start_time=_ts(10), end_time=_ts(10, 0, 10), id="a"),
        RecordingSegment(start_time=_ts(10, 0, 20), end_time=_ts(10, 0, 30), id="b"),
        RecordingSegment(start_time=_ts(11), end_time=_ts(11, 0, 10), id="c"),
    ]

    assert _seek_time_in_segments(_at(10), _at(10, 0, 25), segments) == 15
    assert _seek_time_in_segments(_at(10), _at(10, 0, 5), segments) == 5
    assert _seek_time_in_segments(_at(10), _at(10, 0, 5), []) is None


def test_initialize_camera_resolves_name_and_triggers() -> None:
    entities = [
        SimpleNamespace(
            entity_id="camera.front_door",
            platform="frigate",
            unique_id="8f2a:camera:front_door",
            config_entry_id="entry",
            disabled_by=None,
        ),
        SimpleNamespace(
            entity_id="binary_sensor.front_door_motion",
            platform="frigate",
            unique_id="8f2a:motion_sensor:front_door",
            config_entry_id="entry",
            disabled_by=None,
        ),
        SimpleNamespace(
            entity_id="binary_sensor.front_door_all_occupancy",
            platform="frigate",
            unique_id="8f2a:occupancy_sensor:front_door_all",
            config_entry_id="entry",
            disabled_by=None,
        ),
        SimpleNamespace(
            entity_id="binary_sensor.front_door_person_occupancy",
            platform="frigate",
            unique_id="8f2a:occupancy_sensor:front_door_person",
            config_entry_id="entry",
            disabled_by="user",
        ),
    ]
    engine = _engine(_FakeClient(), _FakeRegistry(entities))
    config = CameraConfig(
        camera_entity="camera.front_door",
        triggers=TriggersConfig(
            motion=True, occupancy=True, entities=("binary_sensor.front_door_motion",)
        ),
    )

    camera = asyncio.run(engine.async_initialize_camera(config))

    assert camera.config.frigate.camera_name == "front_door"
    assert camera.config.triggers.entities == (
        "binary_sensor.front_door_motion",
        "binary_sensor.front_door_all_occupancy",
    )
    assert camera.capabilities.has("recordings")


def test_initialize_camera_with_unknown_entity_raises() -> None:
    engine = _engine(_FakeClient())

    with pytest.raises(CameraInitializationError):
        asyncio.run(engine.async_initialize_camera(CameraConfig(camera_entity="camera.missing")))


def test_birdseye_has_no_media_capabilities() -> None:
    engine = _engine(_FakeClient())

    camera = asyncio.run(engine.async_initialize_camera(_config("birdseye", "birdseye")))

    assert camera.capabilities.has("live")
    assert not camera.capabilities.has("clips")
    assert not camera.capabilities.has("recordings")


def test_default_event_queries_batch_identical_filters() -> None:
    engine = _engine(_FakeClient())
    store = _store(engine)

    queries = engine.generate_default_event_query(store, {"front", "back"}, limit=5)
    assert queries == [EventQuery(camera_ids=frozenset({"front", "back"}), limit=5)]

    store = _store(
        engine,
        _config("front", "front_door", labels=("person",)),
        _config("back", "back_yard"),
    )
    queries = engine.generate_default_event_query(store, {"front", "back"})
    assert queries == [
        EventQuery(camera_ids=frozenset({"back"})),
        EventQuery(camera_ids=frozenset({"front"}), what=frozenset({"person"})),
    ]


def test_default_segments_query_requires_bounds() -> None:
    engine = _engine(_FakeClient())
    store = _store(engine)

    assert engine.generate_default_recording_segments_query(store, {"front"}) is None
    assert engine.generate_default_recording_segments_query(
        store, {"front"}, start=_at(10), end=_at(11)
    ) == [RecordingSegmentsQuery(camera_ids=frozenset({"front"}), start=_at(10), end=_at(11))]


def test_get_events_queries_once_per_instance() -> None:
    client = _FakeClient()
    client.events = [
        _event("e1", "front_door", sub_label="alice,bob", retain_indefinitely=True),
        _event("e2", "back_yard", end_time=None, has_clip=False, start_time=_ts(11)),
    ]
    engine = _engine(client)
    store = _store(engine)
    query = EventQuery(
        camera_ids=frozenset({"front", "back"}), what=frozenset({"person"}), limit=20
    )

    results = asyncio.run(engine.async_get_events(store, query))

    assert len(client.calls) == 1
    kwargs = client.calls[0][1]
    assert kwargs["cameras"] == ["back_yard", "front_door"]
    assert kwargs["labels"] == ["person"]
    assert kwargs["limit"] == 20

    media = engine.generate_media_from_events(store, query, results[query])
    clip, snapshot = media
    assert clip.camera_id == "front"
    assert clip.media_type is MediaType.CLIP
    assert clip.content_id == "media-source://frigate/frigate/event/clips/front_door/e1"
    assert clip.thumbnail == "/api/frigate/frigate/thumbnail/e1"
    assert clip.title == "2026-02-19 10:00 [12s, Person 87%]"
    assert clip.tags == ["alice", "bob"]
    assert clip.where == ["porch"]
    assert clip.favorite is True
    assert not clip.in_progress
    assert snapshot.camera_id == "back"
    assert snapshot.media_type is MediaType.SNAPSHOT
    assert snapshot.in_progress
    assert snapshot.end_time is None


def test_get_events_respects_media_type_filters_and_cache() -> None:
    client = _FakeClient()
    client.events = [_event("e1", "front_door"), _event("e2", "front_door", has_clip=False)]
    engine = _engine(client)
    store = _store(engine)
    query = EventQuery(camera_ids=frozenset({"front"}), has_clip=True)

    results = asyncio.run(engine.async_get_events(store, query))
    cached = asyncio.run(engine.async_get_events(store, query))

    media = engine.generate_media_from_events(store, query, results[query])
    assert [item.id for item in media] == ["e1"]
    assert cached[query].cached
    assert len(client.calls) == 1
    assert client.calls[0][1]["has_clip"] is True


def test_get_events_without_url_returns_none() -> None:
    client = _FakeClient()
    engine = _engine(client)
    store = _store(
        engine, CameraConfig(id="front", frigate=FrigateCameraConfig(camera_name="front"))
    )
    query = EventQuery(camera_ids=frozenset({"front"}))

    assert asyncio.run(engine.async_get_events(store, query)) is None
    assert client.calls == []


def _summary() -> list[dict]:
    return [
        {
            "day": date(2026, 2, 19),
            "events": 3,
            "hours": [
                {"hour": 10, "duration": 3600, "events": 1},
                {"hour": 11, "duration": 3600, "events": 2},
            ],
        }
    ]


def test_get_recordings_filters_hours_and_builds_media() -> None:
    client = _FakeClient()
    client.summary = _summary()
    engine = _engine(client)
    store = _store(engine)
    query = RecordingQuery(camera_ids=frozenset({"front"}), start=_at(10, 30))

    results = asyncio.run(engine.async_get_recordings(store, query))
    media = engine.generate_media_from_recordings(store, query, results[query])

    assert len(media) == 1
    recording = media[0]
    end = _at(11).replace(minute=59, second=59, microsecond=999999)
    assert recording.media_type is MediaType.RECORDING
    assert recording.id == (
        f"frigate/front_door/{int(_ts(11) * 1000)}/{int(end.timestamp() * 1000)}"
    )
    assert recording.content_id == "media-source://frigate/frigate/recordings/front_door/2026-02-19/11"
    assert recording.title == "Front Door 2026-02-19 11:00"
    assert recording.event_count == 2


def test_get_recordings_applies_limit_newest_first() -> None:
    client = _FakeClient()
    client.summary = _summary()
    engine = _engine(client)
    store = _store(engine)
    query = RecordingQuery(camera_ids=frozenset({"front"}), limit=1)

    results = asyncio.run(engine.async_get_recordings(store, query))

    assert [recording.start_time for recording in results[query].recordings] == [_at(11)]


def _segments() -> list[dict]:
    return [
        {"start_time": _ts(10), "end_time": _ts(10, 0, 10), "id": "s1"},
        {"start_time": _ts(10, 0, 20), "end_time": _ts(10, 0, 30), "id": "s2"},
        {"start_time": _ts(11), "end_time": _ts(11, 0, 10), "id": "s3"},
    ]


def test_recording_segments_are_served_from_ranged_cache(scheduled: list[float]) -> None:
    client = _FakeClient()
    client.segments = _segments()
    engine = _engine(client)
    store = _store(engine)
    wide = RecordingSegmentsQuery(camera_ids=frozenset({"front"}), start=_at(10), end=_at(12))
    narrow = RecordingSegmentsQuery(
        camera_ids=frozenset({"front"}), start=_at(10), end=_at(10, 30)
    )

    first = asyncio.run(engine.async_get_recording_segments(store, wide))
    second = asyncio.run(engine.async_get_recording_segments(store, narrow))

    assert [segment.id for segment in first[wide].segments] == ["s1", "s2", "s3"]
    assert [segment.id for segment in second[narrow].segments] == ["s1", "s2"]
    assert second[narrow].cached
    assert [call[0] for call in client.calls] == ["segments"]
    assert scheduled == [3600]


def test_garbage_collection_drops_segments_without_recordings(scheduled: list[float]) -> None:
    client = _FakeClient()
    client.segments = _segments()
    client.summary = [
        {"day": date(2026, 2, 19), "events": 1, "hours": [{"hour": 10, "duration": 3600, "events": 1}]}
    ]
    engine = _engine(client)
    store = _store(engine)
    query = RecordingSegmentsQuery(camera_ids=frozenset({"front"}), start=_at(10), end=_at(12))
    asyncio.run(engine.async_get_recording_segments(store, query))

    asyncio.run(engine.async_garbage_collect_segments(store))

    assert engine.recording_segments_cache.size("front") == 2
    # Coverage survives so the hour is not fetched again.
    assert engine.recording_segments_cache.has_coverage(
        "front", frigate_engine.DateRange(_at(10), _at(12))
    )


def test_media_seek_time_uses_segments(scheduled: list[float]) -> None:
    client = _FakeClient()
    client.segments = _segments()
    engine = _engine(client)
    store = _store(engine)
    recording = ViewMedia(
        media_type=MediaType.RECORDING,
        camera_id="front",
        id="r1",
        engine=EngineType.FRIGATE,
        start_time=_at(10),
        end_time=_at(10, 59, 59),
    )

    assert asyncio.run(engine.async_get_media_seek_time(store, recording, _at(10, 0, 25))) == 15
    assert asyncio.run(engine.async_get_media_seek_time(store, recording, _at(11, 30))) is None


def test_media_seek_time_ignores_results_of_another_engine(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    engine = _engine(_FakeClient())
    store = _store(engine)
    recording = ViewMedia(
        media_type=MediaType.RECORDING,
        camera_id="front",
        id="r1",
        engine=EngineType.FRIGATE,
        start_time=_at(10),
        end_time=_at(10, 59, 59),
    )
    foreign = RecordingSegmentsQueryResults(
        engine=EngineType.GENERIC,
        segments=[RecordingSegment(start_time=_ts(10), end_time=_ts(10, 0, 10), id="s1")],
    )

    async def _segments_of_another_engine(*args, **kwargs):
        return {"query": foreign}

    monkeypatch.setattr(engine, "async_get_recording_segments", _segments_of_another_engine)

    assert asyncio.run(engine.async_get_media_seek_time(store, recording, _at(10, 0, 5))) is None


def test_media_metadata_combines_event_summary_and_recordings() -> None:
    client = _FakeClient()
    client.summary = _summary()
    client.events_summary = [
        {"camera": "front_door", "day": "2026-02-18", "label": "person", "sub_label": "alice", "zones": ["porch"]},
        {"camera": "garage", "day": "2026-02-17", "label": "car", "zones": []},
    ]
    engine = _engine(client)
    store = _store(engine, _config("front", "front_door"))
    query = MediaMetadataQuery(camera_ids=frozenset({"front"}))

    results = asyncio.run(engine.async_get_media_metadata(store, query))

    metadata = results[query].metadata
    assert metadata.days == {"2026-02-18", "2026-02-19"}
    assert metadata.what == {"person"}
    assert metadata.where == {"porch"}
    assert metadata.tags == {"alice"}


def test_download_path_and_favorite() -> None:
    client = _FakeClient()
    engine = _engine(client)
    config = _config("front", "front_door")
    clip = ViewMedia(media_type=MediaType.CLIP, camera_id="front", id="e1", engine=EngineType.FRIGATE)
    recording = ViewMedia(
        media_type=MediaType.RECORDING,
        camera_id="front",
        id="r1",
        engine=EngineType.FRIGATE,
        start_time=_at(10),
        end_time=_at(11),
    )

    clip_path = asyncio.run(engine.async_get_media_download_path(config, clip))
    recording_path = asyncio.run(engine.async_get_media_download_path(config, recording))

    assert clip_path.endpoint == "/api/frigate/frigate/notifications/e1/clip.mp4?download=true"
    assert clip_path.sign
    assert recording_path.endpoint == (
        f"/api/frigate/frigate/recording/front_door/start/{int(_ts(10))}"
        f"/end/{int(_ts(11))}?download=true"
    )
    assert engine.get_media_capabilities(clip).can_favorite
    assert not engine.get_media_capabilities(recording).can_favorite

    asyncio.run(engine.async_favorite_media(config, clip, True))
    asyncio.run(engine.async_favorite_media(config, recording, True))
    assert client.retained == [("e1", True)]
    assert clip.favorite is True


def test_camera_endpoints_follow_context() -> None:
    engine = _engine(_FakeClient())
    config = _config("front", "front_door")
    recording = ViewMedia(
        media_type=MediaType.RECORDING,
        camera_id="front",
        id="r1",
        engine=EngineType.FRIGATE,
        start_time=_at(10),
    )

    endpoints = engine.get_camera_endpoints(config)
    assert endpoints.ui.endpoint == f"{_URL}/cameras/front_door"
    assert endpoints.go2rtc.endpoint == "/api/frigate/frigate/mse/api/ws?src=front_door"
    assert endpoints.go2rtc.sign
    assert endpoints.jsmpeg.endpoint == "/api/frigate/frigate/jsmpeg/front_door"
    assert endpoints.webrtc_card.endpoint == "front_door"

    clips = engine.get_camera_endpoints(config, CameraEndpointsContext(view="clips"))
    assert clips.ui.endpoint == f"{_URL}/events?camera=front_door"
    media = engine.get_camera_endpoints(config, CameraEndpointsContext(media=recording))
    assert media.ui.endpoint == f"{_URL}/recording/front_door/2026-02-19/10"


def test_camera_metadata_falls_back_to_camera_name() -> None:
    engine = _engine(_FakeClient())

    metadata = engine.get_camera_metadata(_config("front", "front_door"))

    assert metadata.title == "Front Door"
    assert metadata.engine_logo


def test_clear_caches_cancels_garbage_collection(monkeypatch: pytest.MonkeyPatch) -> None:
    cancelled: list[bool] = []
    monkeypatch.setattr(
        frigate_engine, "async_call_later", lambda hass, delay, action: lambda: cancelled.append(True)
    )
    client = _FakeClient()
    client.segments = _segments()
    engine = _engine(client)
    store = _store(engine)
    query = RecordingSegmentsQuery(camera_ids=frozenset({"front"}), start=_at(10), end=_at(12))
    asyncio.run(engine.async_get_recording_segments(store, query))

    engine.clear_caches()

    assert cancelled == [True]
    assert engine.recording_segments_cache.camera_ids() == []

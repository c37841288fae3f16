"""Unit tests for the motionEye engine."""

from __future__ import annotations

import asyncio
from datetime import datetime, timezone
from types import SimpleNamespace

from custom_components.camera_media_hub.browse_media import BrowseMediaWalker
from custom_components.camera_media_hub.engines.motioneye import MotionEyeCameraManagerEngine
from custom_components.camera_media_hub.models import (
    CameraConfig,
    EventQuery,
    MediaMetadataQuery,
    MediaType,
    MotionEyeCameraConfig,
    MotionEyePatternConfig,
)
from custom_components.camera_media_hub.store import CameraManagerStore

_MOVIES = "media-source://motioneye/entry#device#movies"
_IMAGES = "media-source://motioneye/entry#device#images"


def _node(content_id: str, title: str, media_class: str, children=None) -> SimpleNamespace:
    return SimpleNamespace(
        title=title,
        media_content_id=content_id,
        media_class=media_class,
        media_content_type="",
        can_play=media_class != "directory",
        can_expand=media_class == "directory",
        thumbnail=None,
        children=children or [],
    )


class _FakeBrowser:
    def __init__(self, tree: dict[str, SimpleNamespace]) -> None:
        self.calls: list[str] = []
        self.tree = tree

    async def __call__(self, media_content_id: str) -> SimpleNamespace:
        self.calls.append(media_content_id)
        return self.tree[media_content_id]


def _default_tree() -> dict[str, SimpleNamespace]:
    return {
        _MOVIES: _node(
            _MOVIES,
            "Movies",
            "directory",
            [
                _node("movies/2026-02-19", "2026-02-19", "directory"),
                _node("movies/lost+found", "lost+found", "directory"),
            ],
        ),
        "movies/2026-02-19": _node(
            "movies/2026-02-19",
            "2026-02-19",
            "directory",
            [
                _node("movie-1", "10-00-05.mp4", "video"),
                _node("movie-thumb", "10-00-05.mp4.thumb", "image"),
            ],
        ),
        _IMAGES: _node(
            _IMAGES, "Images", "directory", [_node("images/2026-02-19", "2026-02-19", "directory")]
        ),
        "images/2026-02-19": _node(
            "images/2026-02-19",
            "2026-02-19",
            "directory",
            [
                _node("image-1", "10-00-05.jpg", "image"),
                _node("image-2", "11-30-00.jpg", "image"),
            ],
        ),
    }


def _engine(browser: _FakeBrowser) -> MotionEyeCameraManagerEngine:
    entity = SimpleNamespace(config_entry_id="entry", device_id="device")
    return MotionEyeCameraManagerEngine(
        SimpleNamespace(states=SimpleNamespace(get=lambda entity_id: None)),
        SimpleNamespace(async_get_entity=lambda entity_id: entity),
        walker=BrowseMediaWalker(browser),
    )


def _store(engine: MotionEyeCameraManagerEngine, config: CameraConfig) -> CameraManagerStore:
    store = CameraManagerStore()
    store.add_camera(asyncio.run(engine.async_initialize_camera(config)), engine)
    return store


def test_get_events_merges_movies_and_images() -> None:
    browser = _FakeBrowser(_default_tree())
    engine = _engine(browser)
    store = _store(engine, CameraConfig(id="garden", camera_entity="camera.garden"))
    query = EventQuery(camera_ids=frozenset({"garden"}))

    results = asyncio.run(engine.async_get_events(store, query))
    media = engine.generate_media_from_events(store, query, results[query])

    assert [(item.id, item.media_type) for item in media] == [
        ("garden/2026-02-19 11:30:00", MediaType.SNAPSHOT),
        ("garden/2026-02-19 10:00:05", MediaType.CLIP),
    ]
    assert media[1].content_id == "movie-1"
    assert media[0].start_time == datetime(2026, 2, 19, 11, 30, tzinfo=timezone.utc)
    assert "movies/lost+found" not in browser.calls


def test_get_events_only_clips_skips_image_tree() -> None:
    browser = _FakeBrowser(_default_tree())
    engine = _engine(browser)
    store = _store(engine, CameraConfig(id="garden", camera_entity="camera.garden"))
    query = EventQuery(camera_ids=frozenset({"garden"}), has_clip=True)

    results = asyncio.run(engine.async_get_events(store, query))

    assert [item.media_content_id for item in results[query].browse_media] == ["movie-1"]
    assert _IMAGES not in browser.calls


def test_get_events_with_nested_directory_pattern() -> None:
    tree = {
        _MOVIES: _node(_MOVIES, "Movies", "directory", [_node("2026", "2026", "directory")]),
        "2026": _node("2026", "2026", "directory", [_node("2026/02", "02", "directory")]),
        "2026/02": _node(
            "2026/02", "02", "directory", [_node("2026/02/19", "19", "directory")]
        ),
        "2026/02/19": _node(
            "2026/02/19", "19", "directory", [_node("movie-1", "07.15.00.mp4", "video")]
        ),
    }
    engine = _engine(_FakeBrowser(tree))
    pattern = MotionEyePatternConfig(directory_pattern="%Y/%m/%d", file_pattern="%H.%M.%S")
    config = CameraConfig(
        id="garden",
        camera_entity="camera.garden",
        motioneye=MotionEyeCameraConfig(movies=pattern, images=pattern),
    )
    store = _store(engine, config)
    query = EventQuery(camera_ids=frozenset({"garden"}), has_clip=True)

    results = asyncio.run(engine.async_get_events(store, query))
    media = engine.generate_media_from_events(store, query, results[query])

    assert [item.start_time for item in media] == [
        datetime(2026, 2, 19, 7, 15, tzinfo=timezone.utc)
    ]


def test_get_events_returns_none_without_media() -> None:
    engine = _engine(_FakeBrowser({_MOVIES: _node(_MOVIES, "Movies", "directory")}))
    store = _store(engine, CameraConfig(id="garden", camera_entity="camera.garden"))

    assert (
        asyncio.run(
            engine.async_get_events(store, EventQuery(camera_ids=frozenset({"garden"}), has_clip=True))
        )
        is None
    )


def test_get_events_never_matches_favorites() -> None:
    engine = _engine(_FakeBrowser(_default_tree()))
    store = _store(engine, CameraConfig(id="garden", camera_entity="camera.garden"))

    assert (
        asyncio.run(
            engine.async_get_events(store, EventQuery(camera_ids=frozenset({"garden"}), favorite=True))
        )
        is None
    )


def test_media_metadata_lists_days() -> None:
    engine = _engine(_FakeBrowser(_default_tree()))
    store = _store(engine, CameraConfig(id="garden", camera_entity="camera.garden"))
    query = MediaMetadataQuery(camera_ids=frozenset({"garden"}))

    results = asyncio.run(engine.async_get_media_metadata(store, query))
    cached = asyncio.run(engine.async_get_media_metadata(store, query))

    assert results[query].metadata.days == {"2026-02-19"}
    assert cached[query].cached


def test_camera_endpoints_use_motioneye_url() -> None:
    engine = _engine(_FakeBrowser({}))

    assert engine.get_camera_endpoints(CameraConfig(id="garden")) is None
    endpoints = engine.get_camera_endpoints(
        CameraConfig(id="garden", motioneye=MotionEyeCameraConfig(url="http://motioneye:8765"))
    )
    assert endpoints.ui.endpoint == "http://motioneye:8765"

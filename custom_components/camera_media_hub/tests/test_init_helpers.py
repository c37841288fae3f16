"""Unit tests for integration init helper functions."""

from __future__ import annotations

import asyncio
from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

import pytest

import custom_components.camera_media_hub as integration
from custom_components.camera_media_hub.const import DOMAIN
from custom_components.camera_media_hub.models import CameraEndpoint, CameraEndpoints


class _FakeHass:
    """Minimal hass stub for helper unit tests."""

    def __init__(self) -> None:
        self.data: dict = {}


def test_async_setup_without_config_is_noop() -> None:
    hass = _FakeHass()

    assert asyncio.run(integration.async_setup(hass, {})) is True
    assert DOMAIN not in hass.data


def test_sign_path_only_signs_local_paths(monkeypatch: pytest.MonkeyPatch) -> None:
    signed: list[tuple[str, timedelta]] = []

    def _fake_sign(hass, path, expiration, use_content_user=False):
        signed.append((path, expiration))
        return f"{path}&authSig=token"

    monkeypatch.setattr(integration, "async_sign_path", _fake_sign)
    hass = _FakeHass()

    assert integration._sign_path_if_needed(hass, None) is None
    assert integration._sign_path_if_needed(hass, CameraEndpoint("/api/x")) == "/api/x"
    assert (
        integration._sign_path_if_needed(hass, CameraEndpoint("http://nvr.local", sign=True))
        == "http://nvr.local"
    )
    assert (
        integration._sign_path_if_needed(hass, CameraEndpoint("/api/x?authSig=a", sign=True))
        == "/api/x?authSig=a"
    )
    assert (
        integration._sign_path_if_needed(hass, CameraEndpoint("/api/x?a=1", sign=True))
        == "/api/x?a=1&authSig=token"
    )
    assert signed == [("/api/x?a=1", timedelta(days=7))]


def test_endpoints_as_dict_keeps_missing_endpoints() -> None:
    endpoints = CameraEndpoints(ui=CameraEndpoint("http://frigate.local"))

    assert integration._endpoints_as_dict(_FakeHass(), endpoints) == {
        "ui": "http://frigate.local",
        "go2rtc": None,
        "jsmpeg": None,
        "webrtc_card": None,
    }
    assert integration._endpoints_as_dict(_FakeHass(), None) is None


def test_query_filters_skip_unset_values() -> None:
    start = datetime(2026, 2, 19, 10, tzinfo=timezone.utc)

    filters = integration._query_filters(
        {
            "id": 1,
            "type": "camera_media_hub/events",
            "start": start,
            "limit": 20,
            "has_clip": False,
            "what": ["person", "car"],
            "where": [],
        }
    )

    assert filters == {
        "start": start,
        "limit": 20,
        "has_clip": False,
        "what": frozenset({"person", "car"}),
    }


def test_requested_camera_ids_default_to_all_cameras() -> None:
    manager = SimpleNamespace(store=SimpleNamespace(get_camera_ids=lambda: ["front", "back"]))

    assert integration._requested_camera_ids(manager, {}) == {"front", "back"}
    assert integration._requested_camera_ids(manager, {"camera_ids": ["front"]}) == {"front"}

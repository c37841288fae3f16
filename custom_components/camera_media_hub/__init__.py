"""Camera Media Hub integration."""

from __future__ import annotations

from dataclasses import asdict
from datetime import timedelta
import logging
from typing import Any

import voluptuous as vol

from homeassistant.components import websocket_api
from homeassistant.components.http.auth import async_sign_path
from homeassistant.core import HomeAssistant, ServiceCall, callback
from homeassistant.exceptions import HomeAssistantError
from homeassistant.helpers import config_validation as cv
from homeassistant.util import dt as dt_util

from .config import CONFIG_SCHEMA, cameras_from_config, media_chunk_size_from_config
from .const import DOMAIN
from .errors import CameraInitializationError
from .manager import CameraManager
from .media import ViewMedia
from .models import (
    CameraEndpoint,
    CameraEndpoints,
    EngineOptions,
    RecordingSegmentsQueryResults,
)

_LOGGER = logging.getLogger(__name__)

__all__ = ["CONFIG_SCHEMA", "async_setup"]

_SIGNED_PATH_EXPIRY = timedelta(days=7)

_MEDIA_QUERY_SCHEMA = {
    vol.Optional("camera_ids"): vol.All(cv.ensure_list, [cv.string]),
    vol.Optional("start"): cv.datetime,
    vol.Optional("end"): cv.datetime,
    vol.Optional("limit"): cv.positive_int,
    vol.Optional("favorite"): cv.boolean,
}

_EVENT_FILTER_SCHEMA = {
    vol.Optional("has_clip"): cv.boolean,
    vol.Optional("has_snapshot"): cv.boolean,
    vol.Optional("what"): vol.All(cv.ensure_list, [cv.string]),
    vol.Optional("where"): vol.All(cv.ensure_list, [cv.string]),
    vol.Optional("tags"): vol.All(cv.ensure_list, [cv.string]),
}


async def async_setup(hass: HomeAssistant, config: dict) -> bool:
    """Set up cameras from YAML."""
    domain_config = config.get(DOMAIN)
    if domain_config is None:
        return True

    manager = CameraManager(hass, media_chunk_size=media_chunk_size_from_config(domain_config))
    try:
        await manager.async_initialize_cameras(cameras_from_config(domain_config))
    except CameraInitializationError as err:
        _LOGGER.error("Could not initialize cameras: %s", err)
        return False

    hass.data[DOMAIN] = manager
    _async_register_ws_commands(hass)
    _async_register_services(hass)
    return True


def _get_manager(hass: HomeAssistant) -> CameraManager | None:
    return hass.data.get(DOMAIN)


def _sign_path_if_needed(hass: HomeAssistant, endpoint: CameraEndpoint | None) -> str | None:
    if endpoint is None:
        return None
    url = endpoint.endpoint
    if not endpoint.sign or not url.startswith("/"):
        return url
    if "authSig=" in url:
        return url
    return async_sign_path(hass, url, _SIGNED_PATH_EXPIRY, use_content_user=True)


def _endpoints_as_dict(
    hass: HomeAssistant, endpoints: CameraEndpoints | None
) -> dict[str, str | None] | None:
    if endpoints is None:
        return None
    return {
        "ui": _sign_path_if_needed(hass, endpoints.ui),
        "go2rtc": _sign_path_if_needed(hass, endpoints.go2rtc),
        "jsmpeg": _sign_path_if_needed(hass, endpoints.jsmpeg),
        "webrtc_card": _sign_path_if_needed(hass, endpoints.webrtc_card),
    }


def _query_filters(msg: dict) -> dict[str, Any]:
    filters: dict[str, Any] = {}
    for key in ("start", "end"):
        if msg.get(key) is not None:
            filters[key] = dt_util.as_utc(msg[key])
    for key in ("limit", "favorite", "has_clip", "has_snapshot"):
        if msg.get(key) is not None:
            filters[key] = msg[key]
    for key in ("what", "where", "tags"):
        if msg.get(key):
            filters[key] = frozenset(msg[key])
    return filters


def _requested_camera_ids(manager: CameraManager, msg: dict) -> set[str]:
    return set(msg.get("camera_ids") or manager.store.get_camera_ids())


@callback
def _async_register_ws_commands(hass: HomeAssistant) -> None:
    if hass.data.get(f"{DOMAIN}_ws_registered"):
        return
    websocket_api.async_register_command(hass, ws_list_cameras)
    websocket_api.async_register_command(hass, ws_get_events)
    websocket_api.async_register_command(hass, ws_get_recordings)
    websocket_api.async_register_command(hass, ws_get_recording_segments)
    websocket_api.async_register_command(hass, ws_get_media_metadata)
    websocket_api.async_register_command(hass, ws_get_media_download_path)
    websocket_api.async_register_command(hass, ws_favorite_media)
    websocket_api.async_register_command(hass, ws_get_media_seek_time)
    hass.data[f"{DOMAIN}_ws_registered"] = True


@callback
def _async_register_services(hass: HomeAssistant) -> None:
    if hass.services.has_service(DOMAIN, "clear_cache"):
        return

    async def _handle_clear_cache(call: ServiceCall) -> None:
        manager = _get_manager(hass)
        if manager is not None:
            manager.clear_caches()

    hass.services.async_register(DOMAIN, "clear_cache", _handle_clear_cache, schema=vol.Schema({}))


@websocket_api.websocket_command({"type": "camera_media_hub/cameras"})
@websocket_api.async_response
async def ws_list_cameras(
    hass: HomeAssistant, connection: websocket_api.ActiveConnection, msg: dict
) -> None:
    """Describe every configured camera."""
    manager = _get_manager(hass)
    if manager is None:
        connection.send_error(msg["id"], "not_loaded", "camera_media_hub is not loaded")
        return

    cameras = []
    for camera_id in sorted(manager.store.get_camera_ids()):
        metadata = manager.get_camera_metadata(camera_id)
        capabilities = manager.get_camera_capabilities(camera_id)
        camera = manager.store.get_camera(camera_id)
        cameras.append(
            {
                "id": camera_id,
                "engine": str(camera.engine_type) if camera else None,
                "metadata": asdict(metadata) if metadata else None,
                "capabilities": capabilities.as_dict() if capabilities else None,
                "endpoints": _endpoints_as_dict(hass, manager.get_camera_endpoints(camera_id)),
            }
        )

    connection.send_result(
        msg["id"],
        {
            "cameras": cameras,
            "capabilities": manager.get_aggregate_camera_capabilities(),
        },
    )


@websocket_api.websocket_command(
    {
        "type": "camera_media_hub/events",
        **_MEDIA_QUERY_SCHEMA,
        **_EVENT_FILTER_SCHEMA,
        vol.Optional("use_cache", default=True): cv.boolean,
    }
)
@websocket_api.async_response
async def ws_get_events(
    hass: HomeAssistant, connection: websocket_api.ActiveConnection, msg: dict
) -> None:
    """Return clips and snapshots newest-first."""
    manager = _get_manager(hass)
    if manager is None:
        connection.send_error(msg["id"], "not_loaded", "camera_media_hub is not loaded")
        return

    queries = manager.generate_default_event_queries(
        _requested_camera_ids(manager, msg), **_query_filters(msg)
    )
    if not queries:
        connection.send_result(msg["id"], {"media": []})
        return

    try:
        media = await manager.async_execute_media_queries(
            queries, EngineOptions(use_cache=msg["use_cache"])
        )
    except HomeAssistantError as err:
        connection.send_error(msg["id"], "query_failed", str(err))
        return

    connection.send_result(msg["id"], {"media": [item.as_dict() for item in media]})


@websocket_api.websocket_command(
    {
        "type": "camera_media_hub/recordings",
        **_MEDIA_QUERY_SCHEMA,
        vol.Optional("use_cache", default=True): cv.boolean,
    }
)
@websocket_api.async_response
async def ws_get_recordings(
    hass: HomeAssistant, connection: websocket_api.ActiveConnection, msg: dict
) -> None:
    """Return hourly recordings newest-first."""
    manager = _get_manager(hass)
    if manager is None:
        connection.send_error(msg["id"], "not_loaded", "camera_media_hub is not loaded")
        return

    queries = manager.generate_default_recording_queries(
        _requested_camera_ids(manager, msg), **_query_filters(msg)
    )
    if not queries:
        connection.send_result(msg["id"], {"media": []})
        return

    try:
        media = await manager.async_execute_media_queries(
            queries, EngineOptions(use_cache=msg["use_cache"])
        )
    except HomeAssistantError as err:
        connection.send_error(msg["id"], "query_failed", str(err))
        return

    connection.send_result(msg["id"], {"media": [item.as_dict() for item in media]})


@websocket_api.websocket_command(
    {
        "type": "camera_media_hub/recording_segments",
        vol.Optional("camera_ids"): vol.All(cv.ensure_list, [cv.string]),
        vol.Required("start"): cv.datetime,
        vol.Required("end"): cv.datetime,
    }
)
@websocket_api.async_response
async def ws_get_recording_segments(
    hass: HomeAssistant, connection: websocket_api.ActiveConnection, msg: dict
) -> None:
    """Return continuous recording spans per camera."""
    manager = _get_manager(hass)
    if manager is None:
        connection.send_error(msg["id"], "not_loaded", "camera_media_hub is not loaded")
        return

    queries = manager.generate_default_recording_segments_queries(
        _requested_camera_ids(manager, msg),
        start=dt_util.as_utc(msg["start"]),
        end=dt_util.as_utc(msg["end"]),
    )
    try:
        results = await manager.async_get_recording_segments(queries or [])
    except HomeAssistantError as err:
        connection.send_error(msg["id"], "query_failed", str(err))
        return

    segments: dict[str, list[dict[str, Any]]] = {}
    for query, result in results.items():
        if not isinstance(result, RecordingSegmentsQueryResults):
            continue
        for camera_id in query.camera_ids:
            segments.setdefault(camera_id, []).extend(
                asdict(segment) for segment in result.segments
            )

    connection.send_result(msg["id"], {"segments": segments})


@websocket_api.websocket_command({"type": "camera_media_hub/media_metadata"})
@websocket_api.async_response
async def ws_get_media_metadata(
    hass: HomeAssistant, connection: websocket_api.ActiveConnection, msg: dict
) -> None:
    """Return the days, labels, zones and tags that media exists for."""
    manager = _get_manager(hass)
    if manager is None:
        connection.send_error(msg["id"], "not_loaded", "camera_media_hub is not loaded")
        return

    try:
        metadata = await manager.async_get_media_metadata()
    except HomeAssistantError as err:
        connection.send_error(msg["id"], "query_failed", str(err))
        return

    if metadata is None:
        connection.send_result(msg["id"], None)
        return
    connection.send_result(
        msg["id"],
        {
            "days": sorted(metadata.days),
            "what": sorted(metadata.what),
            "where": sorted(metadata.where),
            "tags": sorted(metadata.tags),
        },
    )


def _media_from_msg(connection: websocket_api.ActiveConnection, msg: dict) -> ViewMedia | None:
    try:
        return ViewMedia.from_dict(msg["media"])
    except (KeyError, TypeError, ValueError):
        connection.send_error(msg["id"], "invalid_media", "media could not be parsed")
        return None


@websocket_api.websocket_command(
    {
        "type": "camera_media_hub/media_download_path",
        vol.Required("media"): dict,
    }
)
@websocket_api.async_response
async def ws_get_media_download_path(
    hass: HomeAssistant, connection: websocket_api.ActiveConnection, msg: dict
) -> None:
    """Resolve a URL the media can be downloaded from."""
    manager = _get_manager(hass)
    if manager is None:
        connection.send_error(msg["id"], "not_loaded", "camera_media_hub is not loaded")
        return
    media = _media_from_msg(connection, msg)
    if media is None:
        return

    capabilities = manager.get_media_capabilities(media)
    if capabilities is None or not capabilities.can_download:
        connection.send_error(msg["id"], "not_supported", "media cannot be downloaded")
        return

    try:
        endpoint = await manager.async_get_media_download_path(media)
    except HomeAssistantError as err:
        connection.send_error(msg["id"], "download_failed", str(err))
        return

    if endpoint is None:
        connection.send_error(msg["id"], "not_found", "no download path for media")
        return
    connection.send_result(msg["id"], {"url": _sign_path_if_needed(hass, endpoint)})


@websocket_api.websocket_command(
    {
        "type": "camera_media_hub/favorite_media",
        vol.Required("media"): dict,
        vol.Required("favorite"): cv.boolean,
    }
)
@websocket_api.async_response
async def ws_favorite_media(
    hass: HomeAssistant, connection: websocket_api.ActiveConnection, msg: dict
) -> None:
    """Mark or unmark media as a favorite."""
    manager = _get_manager(hass)
    if manager is None:
        connection.send_error(msg["id"], "not_loaded", "camera_media_hub is not loaded")
        return
    media = _media_from_msg(connection, msg)
    if media is None:
        return

    capabilities = manager.get_media_capabilities(media)
    if capabilities is None or not capabilities.can_favorite:
        connection.send_error(msg["id"], "not_supported", "media cannot be favorited")
        return

    try:
        await manager.async_favorite_media(media, msg["favorite"])
    except HomeAssistantError as err:
        connection.send_error(msg["id"], "favorite_failed", str(err))
        return

    connection.send_result(msg["id"], {"ok": True})


@websocket_api.websocket_command(
    {
        "type": "camera_media_hub/media_seek_time",
        vol.Required("media"): dict,
        vol.Required("target"): cv.datetime,
    }
)
@websocket_api.async_response
async def ws_get_media_seek_time(
    hass: HomeAssistant, connection: websocket_api.ActiveConnection, msg: dict
) -> None:
    """Translate a wall-clock time into an offset within the media."""
    manager = _get_manager(hass)
    if manager is None:
        connection.send_error(msg["id"], "not_loaded", "camera_media_hub is not loaded")
        return
    media = _media_from_msg(connection, msg)
    if media is None:
        return

    try:
        seek_time = await manager.async_get_media_seek_time(media, dt_util.as_utc(msg["target"]))
    except HomeAssistantError as err:
        connection.send_error(msg["id"], "query_failed", str(err))
        return

    connection.send_result(msg["id"], {"seek_time": seek_time})

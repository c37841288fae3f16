"""YAML configuration for Camera Media Hub."""

from __future__ import annotations

from typing import Any

from homeassistant.helpers import config_validation as cv
import voluptuous as vol

from .const import (
    CONF_CAMERA_ENTITY,
    CONF_CAMERAS,
    CONF_CAPABILITIES,
    CONF_ENGINE,
    CONF_FRIGATE,
    CONF_GO2RTC,
    CONF_ICON,
    CONF_MEDIA_CHUNK_SIZE,
    CONF_MOTIONEYE,
    CONF_PTZ,
    CONF_REOLINK,
    CONF_TITLE,
    CONF_TRIGGERS,
    DEFAULT_MEDIA_CHUNK_SIZE,
    DOMAIN,
    ENGINE_AUTO,
    FRIGATE_DEFAULT_CLIENT_ID,
    MAX_MEDIA_CHUNK_SIZE,
    MIN_MEDIA_CHUNK_SIZE,
    MOTIONEYE_DEFAULT_DIRECTORY_PATTERN,
    MOTIONEYE_DEFAULT_FILE_PATTERN,
    PTZ_ACTION_KEYS,
    REOLINK_MEDIA_RESOLUTIONS,
)
from .models import CameraConfig, EngineType

_ENGINES = [ENGINE_AUTO, *(str(engine_type) for engine_type in EngineType)]

_MOTIONEYE_PATTERN_SCHEMA = vol.Schema(
    {
        vol.Optional("directory_pattern", default=MOTIONEYE_DEFAULT_DIRECTORY_PATTERN): cv.string,
        vol.Optional("file_pattern", default=MOTIONEYE_DEFAULT_FILE_PATTERN): cv.string,
    }
)

_PTZ_ACTION_SCHEMA = vol.Schema(dict, extra=vol.ALLOW_EXTRA)

_PTZ_SCHEMA = vol.Schema(
    {
        **{
            vol.Optional(f"actions_{action}{phase}"): _PTZ_ACTION_SCHEMA
            for action in PTZ_ACTION_KEYS
            for phase in ("", "_start", "_stop")
        },
        vol.Optional("presets"): vol.Schema({cv.string: _PTZ_ACTION_SCHEMA}),
    }
)

CAMERA_SCHEMA = vol.Schema(
    {
        vol.Optional("id"): cv.string,
        vol.Optional(CONF_CAMERA_ENTITY): cv.entity_id,
        vol.Optional(CONF_ENGINE, default=ENGINE_AUTO): vol.In(_ENGINES),
        vol.Optional(CONF_TITLE): cv.string,
        vol.Optional(CONF_ICON): cv.icon,
        vol.Optional(CONF_FRIGATE, default=dict): vol.Schema(
            {
                vol.Optional("client_id", default=FRIGATE_DEFAULT_CLIENT_ID): cv.string,
                vol.Optional("camera_name"): cv.string,
                vol.Optional("url"): cv.url,
                vol.Optional("labels"): vol.All(cv.ensure_list, [cv.string]),
                vol.Optional("zones"): vol.All(cv.ensure_list, [cv.string]),
            }
        ),
        vol.Optional(CONF_MOTIONEYE, default=dict): vol.Schema(
            {
                vol.Optional("url"): cv.url,
                vol.Optional("images", default=dict): _MOTIONEYE_PATTERN_SCHEMA,
                vol.Optional("movies", default=dict): _MOTIONEYE_PATTERN_SCHEMA,
            }
        ),
        vol.Optional(CONF_REOLINK, default=dict): vol.Schema(
            {
                vol.Optional("url"): cv.url,
                vol.Optional("media_resolution", default="high"): vol.In(
                    REOLINK_MEDIA_RESOLUTIONS
                ),
            }
        ),
        vol.Optional(CONF_GO2RTC, default=dict): vol.Schema(
            {
                vol.Optional("url"): cv.url,
                vol.Optional("stream"): cv.string,
            }
        ),
        vol.Optional(CONF_TRIGGERS, default=dict): vol.Schema(
            {
                vol.Optional("motion", default=False): cv.boolean,
                vol.Optional("occupancy", default=False): cv.boolean,
                vol.Optional("entities", default=list): cv.entity_ids,
            }
        ),
        vol.Optional(CONF_CAPABILITIES, default=dict): vol.Schema(
            {
                vol.Optional("disable", default=list): vol.All(cv.ensure_list, [cv.string]),
                vol.Optional("disable_except", default=list): vol.All(
                    cv.ensure_list, [cv.string]
                ),
            }
        ),
        vol.Optional(CONF_PTZ, default=dict): _PTZ_SCHEMA,
    }
)

CONFIG_SCHEMA = vol.Schema(
    {
        DOMAIN: vol.Schema(
            {
                vol.Required(CONF_CAMERAS): vol.All(cv.ensure_list, [CAMERA_SCHEMA]),
                vol.Optional(CONF_MEDIA_CHUNK_SIZE, default=DEFAULT_MEDIA_CHUNK_SIZE): vol.Coerce(
                    int
                ),
            }
        )
    },
    extra=vol.ALLOW_EXTRA,
)


def _coerce_int(value: Any, *, default: int, minimum: int, maximum: int) -> int:
    try:
        parsed = int(value)
    except (TypeError, ValueError):
        return default
    return max(minimum, min(maximum, parsed))


def media_chunk_size_from_config(config: dict[str, Any]) -> int:
    return _coerce_int(
        config.get(CONF_MEDIA_CHUNK_SIZE, DEFAULT_MEDIA_CHUNK_SIZE),
        default=DEFAULT_MEDIA_CHUNK_SIZE,
        minimum=MIN_MEDIA_CHUNK_SIZE,
        maximum=MAX_MEDIA_CHUNK_SIZE,
    )


def cameras_from_config(config: dict[str, Any]) -> list[CameraConfig]:
    return [CameraConfig.from_dict(camera) for camera in config.get(CONF_CAMERAS, [])]

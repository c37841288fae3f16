"""Constants for the Camera Media Hub integration."""

from __future__ import annotations

DOMAIN = "camera_media_hub"

CONF_CAMERAS = "cameras"
CONF_MEDIA_CHUNK_SIZE = "media_chunk_size"
CONF_CAMERA_ENTITY = "camera_entity"
CONF_ENGINE = "engine"
CONF_ICON = "icon"
CONF_TITLE = "title"
CONF_FRIGATE = "frigate"
CONF_MOTIONEYE = "motioneye"
CONF_REOLINK = "reolink"
CONF_GO2RTC = "go2rtc"
CONF_TRIGGERS = "triggers"
CONF_CAPABILITIES = "capabilities"
CONF_PTZ = "ptz"

DEFAULT_MEDIA_CHUNK_SIZE = 50
MIN_MEDIA_CHUNK_SIZE = 1
MAX_MEDIA_CHUNK_SIZE = 1000

# Upper bound on events requested from any single engine query.
EVENT_LIMIT_DEFAULT = 10000

BROWSE_MEDIA_CACHE_SECONDS = 60
EVENT_REQUEST_CACHE_MAX_AGE_SECONDS = 60
RECORDING_SUMMARY_REQUEST_CACHE_MAX_AGE_SECONDS = 60
MEDIA_METADATA_REQUEST_CACHE_MAX_AGE_SECONDS = 60
SEGMENT_GARBAGE_COLLECTION_INTERVAL_SECONDS = 3600

MEDIA_CLASS_VIDEO = "video"
MEDIA_CLASS_IMAGE = "image"

MEDIA_SOURCE_MOTIONEYE_ROOT = "media-source://motioneye"
MEDIA_SOURCE_REOLINK_ROOT = "media-source://reolink"

FRIGATE_CAMERA_BIRDSEYE = "birdseye"
FRIGATE_DEFAULT_CLIENT_ID = "frigate"

MOTIONEYE_DEFAULT_DIRECTORY_PATTERN = "%Y-%m-%d"
MOTIONEYE_DEFAULT_FILE_PATTERN = "%H-%M-%S"

REOLINK_MEDIA_RESOLUTIONS: tuple[str, ...] = ("high", "low")

CAPABILITY_KEYS: tuple[str, ...] = (
    "clips",
    "favorite-events",
    "favorite-recordings",
    "live",
    "menu",
    "ptz",
    "recordings",
    "seek",
    "snapshots",
    "substream",
)

PTZ_ACTION_KEYS: tuple[str, ...] = (
    "left",
    "right",
    "up",
    "down",
    "zoom_in",
    "zoom_out",
)

ENGINE_AUTO = "auto"

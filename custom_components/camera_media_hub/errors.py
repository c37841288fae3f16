"""Exceptions raised by the Camera Media Hub integration."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from homeassistant.exceptions import HomeAssistantError

if TYPE_CHECKING:
    from .models import CameraConfig


class CameraManagerError(HomeAssistantError):
    """Base error for camera data access."""

    def __init__(self, message: str, context: Any = None) -> None:
        super().__init__(message)
        self.context = context


class CameraInitializationError(CameraManagerError):
    """A camera could not be bound to an engine."""

    def __init__(self, message: str, camera_config: CameraConfig | None = None) -> None:
        super().__init__(message, camera_config)
        self.camera_config = camera_config


class FrigateApiError(CameraManagerError):
    """The Frigate backend rejected or failed a request."""

"""A configured camera bound to its engine."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from .capabilities import Capabilities
from .models import CameraConfig, EngineType


@dataclass(slots=True)
class Camera:
    """Initialized camera: resolved config, capabilities and registry entity."""

    config: CameraConfig
    engine_type: EngineType
    capabilities: Capabilities
    entity: Any = None
    # Reolink NVR channel, parsed from the entity unique id.
    channel: int | None = None

    @property
    def id(self) -> str | None:
        return self.config.camera_id

    @property
    def config_entry_id(self) -> str | None:
        return getattr(self.entity, "config_entry_id", None)

    @property
    def device_id(self) -> str | None:
        return getattr(self.entity, "device_id", None)

"""Decide which engine serves a camera and build engines on demand."""

from __future__ import annotations

import logging

from homeassistant.core import HomeAssistant

from .const import ENGINE_AUTO
from .engine import CameraManagerEngine
from .engines.frigate import FrigateCameraManagerEngine
from .engines.frigate_api import FrigateApiClientFactory
from .engines.motioneye import MotionEyeCameraManagerEngine
from .engines.reolink import ReolinkCameraManagerEngine
from .errors import CameraInitializationError
from .models import CameraConfig, EngineType
from .registry import EntityRegistryManager

_LOGGER = logging.getLogger(__name__)

_PLATFORM_ENGINES: dict[str, EngineType] = {
    "frigate": EngineType.FRIGATE,
    "motioneye": EngineType.MOTIONEYE,
    "reolink": EngineType.REOLINK,
}


class CameraManagerEngineFactory:
    """Resolves engine types and creates one engine instance per type."""

    def __init__(
        self,
        hass: HomeAssistant,
        entity_registry: EntityRegistryManager,
        frigate_client_factory: FrigateApiClientFactory | None = None,
    ) -> None:
        self.hass = hass
        self._entity_registry = entity_registry
        self._frigate_client_factory = frigate_client_factory

    def get_engine_type(self, camera_config: CameraConfig) -> EngineType:
        if camera_config.engine != ENGINE_AUTO:
            try:
                return EngineType(camera_config.engine)
            except ValueError as err:
                raise CameraInitializationError(
                    f"Unknown engine: {camera_config.engine}", camera_config
                ) from err

        if camera_config.camera_entity:
            entity = self._entity_registry.async_get_entity(camera_config.camera_entity)
            if entity is not None:
                return _PLATFORM_ENGINES.get(entity.platform, EngineType.GENERIC)
            # Template or YAML cameras have a state but no registry entry.
            if self.hass.states.get(camera_config.camera_entity) is not None:
                return EngineType.GENERIC
            raise CameraInitializationError(
                f"Could not find camera entity {camera_config.camera_entity}", camera_config
            )

        if camera_config.frigate.camera_name:
            return EngineType.FRIGATE
        if camera_config.go2rtc.url and camera_config.go2rtc.stream:
            return EngineType.GENERIC
        raise CameraInitializationError(
            "Could not determine an engine for camera", camera_config
        )

    def create_engine(self, engine_type: EngineType) -> CameraManagerEngine:
        _LOGGER.debug("Creating %s engine", engine_type)
        if engine_type is EngineType.FRIGATE:
            return FrigateCameraManagerEngine(
                self.hass, self._entity_registry, self._frigate_client_factory
            )
        if engine_type is EngineType.MOTIONEYE:
            return MotionEyeCameraManagerEngine(self.hass, self._entity_registry)
        if engine_type is EngineType.REOLINK:
            return ReolinkCameraManagerEngine(self.hass, self._entity_registry)
        return CameraManagerEngine(self.hass, self._entity_registry)

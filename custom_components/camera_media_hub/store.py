"""Camera to engine bookkeeping."""

from __future__ import annotations

from collections.abc import Iterable

from .camera import Camera
from .engine import CameraManagerEngine
from .media import ViewMedia
from .models import CameraConfig, EngineType


class CameraManagerStore:
    """Maps each camera id to its camera and the engine that serves it."""

    def __init__(self) -> None:
        self._cameras: dict[str, Camera] = {}
        self._engines: dict[str, CameraManagerEngine] = {}
        self._engines_by_type: dict[EngineType, CameraManagerEngine] = {}

    def add_camera(self, camera: Camera, engine: CameraManagerEngine) -> None:
        camera_id = camera.id
        if camera_id is None:
            raise ValueError("camera has no id")
        self._cameras[camera_id] = camera
        self._engines[camera_id] = engine
        self._engines_by_type[engine.engine_type] = engine

    def reset(self) -> None:
        self._cameras.clear()
        self._engines.clear()
        self._engines_by_type.clear()

    def get_camera_count(self) -> int:
        return len(self._cameras)

    def has_camera_id(self, camera_id: str) -> bool:
        return camera_id in self._cameras

    def get_camera(self, camera_id: str) -> Camera | None:
        return self._cameras.get(camera_id)

    def get_camera_config(self, camera_id: str) -> CameraConfig | None:
        camera = self._cameras.get(camera_id)
        return camera.config if camera else None

    def get_cameras(self) -> dict[str, Camera]:
        return dict(self._cameras)

    def get_camera_ids(self) -> set[str]:
        return set(self._cameras)

    def get_camera_config_for_media(self, media: ViewMedia) -> CameraConfig | None:
        return self.get_camera_config(media.camera_id)

    def get_engine_of_type(self, engine_type: EngineType) -> CameraManagerEngine | None:
        return self._engines_by_type.get(engine_type)

    def get_engine_for_camera_id(self, camera_id: str) -> CameraManagerEngine | None:
        return self._engines.get(camera_id)

    def get_engine_for_media(self, media: ViewMedia) -> CameraManagerEngine | None:
        return self.get_engine_for_camera_id(media.camera_id)

    def get_engines_for_camera_ids(
        self, camera_ids: Iterable[str]
    ) -> dict[CameraManagerEngine, set[str]] | None:
        output: dict[CameraManagerEngine, set[str]] = {}
        for camera_id in camera_ids:
            engine = self.get_engine_for_camera_id(camera_id)
            if engine is None:
                continue
            output.setdefault(engine, set()).add(camera_id)
        return output or None

    def get_all_engines(self) -> list[CameraManagerEngine]:
        return list(dict.fromkeys(self._engines.values()))

"""Per-camera capability flags."""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from .const import CAPABILITY_KEYS, PTZ_ACTION_KEYS
from .models import CameraConfig

PTZ_MOVEMENT_CONTINUOUS = "continuous"
PTZ_MOVEMENT_RELATIVE = "relative"


class Capabilities:
    """Capabilities an engine grants a camera, minus what the user disabled."""

    def __init__(
        self,
        capabilities: dict[str, Any],
        *,
        disable: Iterable[str] = (),
        disable_except: Iterable[str] = (),
    ) -> None:
        self._capabilities = dict(capabilities)
        for key in disable:
            self._capabilities.pop(key, None)

        keep = set(disable_except)
        if keep:
            for key in CAPABILITY_KEYS:
                if key not in keep:
                    self._capabilities.pop(key, None)

    @classmethod
    def for_camera(
        cls, camera_config: CameraConfig, capabilities: dict[str, Any]
    ) -> Capabilities:
        """Build capabilities honoring the camera's disable options and PTZ config."""
        return cls(
            {**capabilities, "ptz": ptz_capabilities_from_config(camera_config)},
            disable=camera_config.capabilities.disable,
            disable_except=camera_config.capabilities.disable_except,
        )

    def has(self, capability: str) -> bool:
        return bool(self._capabilities.get(capability))

    def as_dict(self) -> dict[str, Any]:
        return {key: value for key, value in self._capabilities.items() if value}


def _has_ptz_action(ptz: dict[str, Any], action: str, phase: str | None = None) -> bool:
    key = f"actions_{action}_{phase}" if phase else f"actions_{action}"
    return bool(ptz.get(key))


def ptz_movement_types(camera_config: CameraConfig, action: str) -> list[str] | None:
    ptz = camera_config.ptz
    continuous = _has_ptz_action(ptz, action, "start") and _has_ptz_action(ptz, action, "stop")
    relative = _has_ptz_action(ptz, action)
    movements = [
        movement
        for movement, present in (
            (PTZ_MOVEMENT_CONTINUOUS, continuous),
            (PTZ_MOVEMENT_RELATIVE, relative),
        )
        if present
    ]
    return movements or None


def ptz_capabilities_from_config(camera_config: CameraConfig) -> dict[str, list[str]] | None:
    """Only actions with some configured movement are included."""
    output: dict[str, list[str]] = {}
    for action in PTZ_ACTION_KEYS:
        movements = ptz_movement_types(camera_config, action)
        if movements:
            output[action] = movements

    presets = camera_config.ptz.get("presets")
    if presets:
        output["presets"] = list(presets)
    return output or None

"""Entity registry lookups used to bind cameras to their backend."""

from __future__ import annotations

from collections.abc import Callable
import logging

from homeassistant.core import HomeAssistant, callback
from homeassistant.helpers import entity_registry as er

_LOGGER = logging.getLogger(__name__)


class EntityRegistryManager:
    """Read-only view of the entity registry that never raises for unknown entities."""

    def __init__(self, hass: HomeAssistant) -> None:
        self.hass = hass

    @callback
    def async_get_entity(self, entity_id: str | None) -> er.RegistryEntry | None:
        if not entity_id:
            return None
        entry = er.async_get(self.hass).async_get(entity_id)
        if entry is None:
            _LOGGER.debug("Entity %s is not in the entity registry", entity_id)
        return entry

    @callback
    def async_get_matching_entities(
        self, predicate: Callable[[er.RegistryEntry], bool]
    ) -> list[er.RegistryEntry]:
        return [
            entry for entry in er.async_get(self.hass).entities.values() if predicate(entry)
        ]

"""Minimal client for the Frigate HTTP API."""

from __future__ import annotations

from collections.abc import Callable
from datetime import date
import logging
from typing import Any

import aiohttp
from homeassistant.core import HomeAssistant
from homeassistant.helpers.aiohttp_client import async_get_clientsession
import voluptuous as vol

from ..errors import FrigateApiError

_LOGGER = logging.getLogger(__name__)

_REQUEST_TIMEOUT_SECONDS = 10


def _day(value: Any) -> date:
    try:
        return date.fromisoformat(str(value))
    except ValueError as err:
        raise vol.Invalid(f"invalid day: {value}") from err


def _hour(value: Any) -> int:
    hour = int(value)
    if not 0 <= hour <= 23:
        raise vol.Invalid(f"invalid hour: {value}")
    return hour


_NON_NEGATIVE = vol.All(vol.Coerce(float), vol.Range(min=0))

EVENT_SCHEMA = vol.Schema(
    {
        vol.Required("camera"): str,
        vol.Required("end_time"): vol.Any(None, vol.Coerce(float)),
        vol.Optional("false_positive"): vol.Any(None, bool),
        vol.Required("has_clip"): bool,
        vol.Required("has_snapshot"): bool,
        vol.Required("id"): str,
        vol.Required("label"): str,
        vol.Optional("sub_label"): vol.Any(None, str, list),
        vol.Required("start_time"): vol.Coerce(float),
        vol.Optional("top_score"): vol.Any(None, vol.Coerce(float)),
        vol.Optional("zones", default=list): [str],
        vol.Optional("retain_indefinitely"): bool,
    },
    extra=vol.ALLOW_EXTRA,
)
EVENTS_SCHEMA = vol.Schema([EVENT_SCHEMA])

RECORDING_SUMMARY_SCHEMA = vol.Schema(
    [
        vol.Schema(
            {
                vol.Required("day"): _day,
                vol.Required("events"): vol.Coerce(int),
                vol.Required("hours"): [
                    vol.Schema(
                        {
                            vol.Required("hour"): _hour,
                            vol.Required("duration"): _NON_NEGATIVE,
                            vol.Required("events"): vol.All(vol.Coerce(int), vol.Range(min=0)),
                        },
                        extra=vol.ALLOW_EXTRA,
                    )
                ],
            },
            extra=vol.ALLOW_EXTRA,
        )
    ]
)

RECORDING_SEGMENTS_SCHEMA = vol.Schema(
    [
        vol.Schema(
            {
                vol.Required("start_time"): vol.Coerce(float),
                vol.Required("end_time"): vol.Coerce(float),
                vol.Required("id"): str,
            },
            extra=vol.ALLOW_EXTRA,
        )
    ]
)

RETAIN_RESULT_SCHEMA = vol.Schema(
    {vol.Required("success"): bool, vol.Optional("message", default=""): str},
    extra=vol.ALLOW_EXTRA,
)

EVENT_SUMMARY_SCHEMA = vol.Schema(
    [
        vol.Schema(
            {
                vol.Required("camera"): str,
                vol.Required("day"): str,
                vol.Required("label"): str,
                vol.Optional("sub_label"): vol.Any(None, str, list),
                vol.Optional("zones", default=list): [str],
            },
            extra=vol.ALLOW_EXTRA,
        )
    ]
)


def _flag(value: bool | None) -> int | None:
    return None if value is None else int(value)


def _join(values: list[str] | None) -> str | None:
    return ",".join(values) if values else None


class FrigateApiClient:
    """Talks to one Frigate instance over its REST API."""

    def __init__(self, session: aiohttp.ClientSession, base_url: str) -> None:
        self._session = session
        self._base_url = base_url.rstrip("/")

    @property
    def base_url(self) -> str:
        return self._base_url

    async def _async_request(
        self,
        method: str,
        path: str,
        schema: vol.Schema,
        params: dict[str, Any] | None = None,
    ) -> Any:
        url = f"{self._base_url}/api/{path}"
        query = {key: value for key, value in (params or {}).items() if value is not None}
        _LOGGER.debug("Frigate request %s %s %s", method, url, query)
        try:
            async with self._session.request(
                method,
                url,
                params=query,
                timeout=aiohttp.ClientTimeout(total=_REQUEST_TIMEOUT_SECONDS),
            ) as response:
                if response.status >= 400:
                    raise FrigateApiError(
                        f"Frigate request failed: HTTP {response.status}",
                        {"url": url, "params": query},
                    )
                payload = await response.json(content_type=None)
        except (aiohttp.ClientError, TimeoutError) as err:
            raise FrigateApiError(f"Failed to connect to Frigate API: {err}", {"url": url}) from err

        try:
            return schema(payload)
        except vol.Invalid as err:
            raise FrigateApiError(
                f"Unexpected Frigate response: {err}", {"url": url, "response": payload}
            ) from err

    async def async_get_events(
        self,
        *,
        cameras: list[str] | None = None,
        labels: list[str] | None = None,
        zones: list[str] | None = None,
        sub_labels: list[str] | None = None,
        after: int | None = None,
        before: int | None = None,
        limit: int | None = None,
        has_clip: bool | None = None,
        has_snapshot: bool | None = None,
        favorites: bool | None = None,
    ) -> list[dict[str, Any]]:
        return await self._async_request(
            "GET",
            "events",
            EVENTS_SCHEMA,
            {
                "cameras": _join(cameras),
                "labels": _join(labels),
                "zones": _join(zones),
                "sub_labels": _join(sub_labels),
                "after": after,
                "before": before,
                "limit": limit,
                "has_clip": _flag(has_clip),
                "has_snapshot": _flag(has_snapshot),
                "favorites": _flag(favorites),
            },
        )

    async def async_get_recordings_summary(
        self, camera: str, timezone: str
    ) -> list[dict[str, Any]]:
        return await self._async_request(
            "GET",
            f"{camera}/recordings/summary",
            RECORDING_SUMMARY_SCHEMA,
            {"timezone": timezone},
        )

    async def async_get_recording_segments(
        self, camera: str, after: int, before: int
    ) -> list[dict[str, Any]]:
        return await self._async_request(
            "GET",
            f"{camera}/recordings",
            RECORDING_SEGMENTS_SCHEMA,
            {"after": after, "before": before},
        )

    async def async_retain_event(self, event_id: str, retain: bool) -> None:
        result = await self._async_request(
            "POST" if retain else "DELETE", f"events/{event_id}/retain", RETAIN_RESULT_SCHEMA
        )
        if not result["success"]:
            raise FrigateApiError(
                f"Frigate refused to change retention of event {event_id}: {result['message']}",
                {"event_id": event_id, "retain": retain},
            )

    async def async_get_events_summary(self, timezone: str) -> list[dict[str, Any]]:
        return await self._async_request(
            "GET", "events/summary", EVENT_SUMMARY_SCHEMA, {"timezone": timezone}
        )


FrigateApiClientFactory = Callable[[str, str], FrigateApiClient]


def hass_client_factory(hass: HomeAssistant) -> FrigateApiClientFactory:
    """Clients sharing Home Assistant's aiohttp session, one per base URL."""
    clients: dict[str, FrigateApiClient] = {}

    def _factory(client_id: str, base_url: str) -> FrigateApiClient:
        key = f"{client_id}|{base_url}"
        if key not in clients:
            clients[key] = FrigateApiClient(async_get_clientsession(hass), base_url)
        return clients[key]

    return _factory

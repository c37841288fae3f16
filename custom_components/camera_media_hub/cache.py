"""In-memory caches owned by camera engines."""

from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass
from datetime import datetime
from typing import Generic, TypeVar

from homeassistant.util import dt as dt_util

from .models import RecordingSegment
from .range import DateRange, MemoryRangeSet

RequestT = TypeVar("RequestT")
ResponseT = TypeVar("ResponseT")
DataT = TypeVar("DataT")


@dataclass(slots=True)
class _RequestCacheItem(Generic[RequestT, ResponseT]):
    request: RequestT
    response: ResponseT
    expires: datetime | None = None


class RequestCache(Generic[RequestT, ResponseT]):
    """Expiring request/response memoizer keyed on structural equality.

    Lookups are a linear scan. Expired entries are only swept out when a new
    entry is written, never on read.
    """

    def __init__(self) -> None:
        self._data: list[_RequestCacheItem[RequestT, ResponseT]] = []

    def get(self, request: RequestT) -> ResponseT | None:
        now = dt_util.utcnow()
        for item in self._data:
            if (item.expires is None or now < item.expires) and item.request == request:
                return item.response
        return None

    def has(self, request: RequestT) -> bool:
        return self.get(request) is not None

    def set(
        self, request: RequestT, response: ResponseT, expiry: datetime | None = None
    ) -> None:
        self._data.append(_RequestCacheItem(request, response, expiry))
        self._expire_old_requests()

    def clear(self) -> None:
        self._data = []

    def __len__(self) -> int:
        return len(self._data)

    def _expire_old_requests(self) -> None:
        now = dt_util.utcnow()
        self._data = [
            item for item in self._data if item.expires is None or now < item.expires
        ]


class RangedCache(Generic[DataT]):
    """Sorted, id-deduplicated store plus the time ranges it fully covers."""

    def __init__(
        self,
        time_func: Callable[[DataT], float],
        id_func: Callable[[DataT], str],
    ) -> None:
        self._ranges = MemoryRangeSet()
        self._data: list[DataT] = []
        self._time_func = time_func
        self._id_func = id_func

    def add(self, range_: DateRange, data: Iterable[DataT]) -> None:
        self._ranges.add(range_)
        by_id = {self._id_func(item): item for item in self._data}
        for item in data:
            by_id[self._id_func(item)] = item
        self._data = sorted(by_id.values(), key=self._time_func)

    def has_coverage(self, range_: DateRange) -> bool:
        return self._ranges.has_coverage(range_)

    def get(self, range_: DateRange) -> list[DataT] | None:
        if not self.has_coverage(range_):
            return None

        start = range_.start.timestamp()
        end = range_.end.timestamp()
        output: list[DataT] = []
        for item in self._data:
            item_time = self._time_func(item)
            if item_time < start:
                continue
            if item_time > end:
                break
            output.append(item)
        return output

    def size(self) -> int:
        return len(self._data)

    def expire_matches(self, predicate: Callable[[DataT], bool]) -> None:
        """Drop matching items without touching coverage.

        The caller asserts these items no longer exist upstream; coverage for
        their ranges keeps reporting True.
        """
        self._data = [item for item in self._data if not predicate(item)]


class RecordingSegmentsCache:
    """Per-camera ranged cache of recording segments."""

    def __init__(self) -> None:
        self._segments: dict[str, RangedCache[RecordingSegment]] = {}

    def add(
        self, camera_id: str, range_: DateRange, segments: Iterable[RecordingSegment]
    ) -> None:
        camera_cache = self._segments.get(camera_id)
        if camera_cache is None:
            camera_cache = RangedCache(
                lambda segment: segment.start_time,
                lambda segment: segment.id,
            )
            self._segments[camera_id] = camera_cache
        camera_cache.add(range_, segments)

    def clear(self) -> None:
        self._segments.clear()

    def has_coverage(self, camera_id: str, range_: DateRange) -> bool:
        camera_cache = self._segments.get(camera_id)
        return camera_cache is not None and camera_cache.has_coverage(range_)

    def get(self, camera_id: str, range_: DateRange) -> list[RecordingSegment] | None:
        camera_cache = self._segments.get(camera_id)
        return camera_cache.get(range_) if camera_cache else None

    def size(self, camera_id: str) -> int | None:
        camera_cache = self._segments.get(camera_id)
        return camera_cache.size() if camera_cache else None

    def camera_ids(self) -> list[str]:
        return list(self._segments)

    def expire_matches(
        self, camera_id: str, predicate: Callable[[RecordingSegment], bool]
    ) -> None:
        camera_cache = self._segments.get(camera_id)
        if camera_cache:
            camera_cache.expire_matches(predicate)

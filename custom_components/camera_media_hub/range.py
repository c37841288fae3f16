"""Time range helpers used by the coverage caches."""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime, timedelta


@dataclass(frozen=True, slots=True)
class DateRange:
    """A closed interval of time."""

    start: datetime
    end: datetime


class MemoryRangeSet:
    """A minimal set of covered ranges, coalesced on every add."""

    def __init__(self, ranges: list[DateRange] | None = None) -> None:
        self._ranges: list[DateRange] = compress_ranges(ranges or [])

    def has_coverage(self, range_: DateRange) -> bool:
        return any(_range_contains(cached, range_) for cached in self._ranges)

    def add(self, range_: DateRange) -> None:
        self._ranges = compress_ranges([*self._ranges, range_])

    def clear(self) -> None:
        self._ranges = []

    @property
    def ranges(self) -> list[DateRange]:
        return list(self._ranges)


def _range_contains(bigger: DateRange, smaller: DateRange) -> bool:
    return smaller.start >= bigger.start and smaller.end <= bigger.end


def ranges_overlap(a: DateRange, b: DateRange) -> bool:
    """Return True if `a` starts, ends or entirely sits around `b`."""
    return (
        (b.start <= a.start <= b.end)
        or (b.start <= a.end <= b.end)
        or (a.start <= b.start and a.end >= b.end)
    )


def compress_ranges(
    ranges: list[DateRange], tolerance_seconds: float = 0
) -> list[DateRange]:
    """Merge overlapping (or within-tolerance) ranges into a sorted minimal list."""
    tolerance = timedelta(seconds=tolerance_seconds)
    compressed: list[DateRange] = []
    current: DateRange | None = None

    for item in sorted(ranges, key=lambda range_: range_.start):
        if current is None:
            current = item
            continue
        if current.end + tolerance >= item.start:
            if item.end > current.end:
                current = replace(current, end=item.end)
        else:
            compressed.append(current)
            current = item

    if current is not None:
        compressed.append(current)
    return compressed

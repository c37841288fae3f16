"""Unit tests for time range helpers."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

from custom_components.camera_media_hub.range import (
    DateRange,
    MemoryRangeSet,
    compress_ranges,
    ranges_overlap,
)

_BASE = datetime(2026, 2, 19, 10, 0, 0, tzinfo=timezone.utc)


def _range(start_minutes: int, end_minutes: int) -> DateRange:
    return DateRange(_BASE + timedelta(minutes=start_minutes), _BASE + timedelta(minutes=end_minutes))


def test_compress_ranges_merges_overlapping_and_sorts() -> None:
    compressed = compress_ranges([_range(30, 40), _range(0, 10), _range(5, 20)])

    assert compressed == [_range(0, 20), _range(30, 40)]


def test_compress_ranges_merges_within_tolerance() -> None:
    ranges = [_range(0, 10), _range(11, 20)]

    assert compress_ranges(ranges) == ranges
    assert compress_ranges(ranges, tolerance_seconds=60) == [_range(0, 20)]


def test_compress_ranges_joins_touching_ranges() -> None:
    assert compress_ranges([_range(60, 120), _range(0, 60)]) == [_range(0, 120)]


def test_compress_ranges_keeps_contained_range_end() -> None:
    assert compress_ranges([_range(0, 60), _range(10, 20)]) == [_range(0, 60)]


def test_ranges_overlap_cases() -> None:
    assert ranges_overlap(_range(0, 10), _range(5, 15))
    assert ranges_overlap(_range(5, 15), _range(0, 10))
    assert ranges_overlap(_range(0, 60), _range(10, 20))
    assert ranges_overlap(_range(10, 20), _range(0, 60))
    assert not ranges_overlap(_range(0, 10), _range(11, 20))


def test_memory_range_set_coverage_requires_full_containment() -> None:
    ranges = MemoryRangeSet()
    ranges.add(_range(0, 30))
    ranges.add(_range(20, 60))

    assert ranges.ranges == [_range(0, 60)]
    assert ranges.has_coverage(_range(10, 50))
    assert not ranges.has_coverage(_range(50, 70))

    ranges.clear()
    assert not ranges.has_coverage(_range(10, 20))

"""Unit tests for the request and ranged caches."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

from homeassistant.util import dt as dt_util
import pytest

from custom_components.camera_media_hub.cache import RangedCache, RecordingSegmentsCache, RequestCache
from custom_components.camera_media_hub.models import EventQuery, RecordingSegment
from custom_components.camera_media_hub.range import DateRange


def _at(hour: int, minute: int = 0) -> datetime:
    return datetime(2026, 2, 19, hour, minute, tzinfo=timezone.utc)


def _segment(segment_id: str, hour: int, minute: int = 0) -> RecordingSegment:
    start = _at(hour, minute).timestamp()
    return RecordingSegment(start_time=start, end_time=start + 60, id=segment_id)


def test_request_cache_keys_on_structural_equality() -> None:
    cache: RequestCache[EventQuery, str] = RequestCache()
    cache.set(EventQuery(camera_ids=frozenset({"front", "back"}), limit=5), "result")

    assert cache.get(EventQuery(camera_ids=frozenset({"back", "front"}), limit=5)) == "result"
    assert cache.has(EventQuery(camera_ids=frozenset({"back", "front"}), limit=5))
    assert cache.get(EventQuery(camera_ids=frozenset({"front"}), limit=5)) is None


def test_request_cache_respects_expiry() -> None:
    now = datetime.now(timezone.utc)
    cache: RequestCache[str, str] = RequestCache()
    cache.set("expired", "old", now - timedelta(seconds=1))
    cache.set("fresh", "new", now + timedelta(minutes=1))
    cache.set("forever", "kept")

    assert cache.get("expired") is None
    assert cache.get("fresh") == "new"
    assert cache.get("forever") == "kept"
    # Expired entries are swept when writing.
    assert len(cache) == 2


def test_request_cache_entry_at_its_expiry_is_gone(monkeypatch: pytest.MonkeyPatch) -> None:
    now = datetime(2026, 2, 19, 10, tzinfo=timezone.utc)
    monkeypatch.setattr(dt_util, "utcnow", lambda: now)
    cache: RequestCache[str, str] = RequestCache()
    cache.set("boundary", "value", now)

    assert cache.get("boundary") is None
    assert not cache.has("boundary")
    assert len(cache) == 0


def test_request_cache_clear() -> None:
    cache: RequestCache[str, str] = RequestCache()
    cache.set("a", "1")
    cache.clear()

    assert len(cache) == 0
    assert cache.get("a") is None


def test_ranged_cache_returns_only_covered_ranges() -> None:
    cache: RangedCache[RecordingSegment] = RangedCache(
        lambda segment: segment.start_time, lambda segment: segment.id
    )
    cache.add(
        DateRange(_at(10), _at(12)),
        [_segment("b", 11), _segment("a", 10, 30), _segment("c", 11, 45)],
    )

    assert cache.has_coverage(DateRange(_at(10, 15), _at(11, 50)))
    assert [segment.id for segment in cache.get(DateRange(_at(10, 15), _at(11, 50)))] == [
        "a",
        "b",
        "c",
    ]
    assert [segment.id for segment in cache.get(DateRange(_at(10, 40), _at(11, 30)))] == ["b"]
    assert cache.get(DateRange(_at(11), _at(13))) is None


def test_ranged_cache_union_of_adjacent_ranges() -> None:
    cache: RangedCache[RecordingSegment] = RangedCache(
        lambda segment: segment.start_time, lambda segment: segment.id
    )
    cache.add(DateRange(_at(10), _at(11)), [_segment("a", 10)])
    cache.add(DateRange(_at(11), _at(12)), [_segment("b", 11, 30)])

    assert cache.has_coverage(DateRange(_at(10), _at(12)))
    assert [segment.id for segment in cache.get(DateRange(_at(10), _at(12)))] == ["a", "b"]


def test_ranged_cache_add_is_idempotent_and_later_duplicates_win() -> None:
    cache: RangedCache[RecordingSegment] = RangedCache(
        lambda segment: segment.start_time, lambda segment: segment.id
    )
    cache.add(DateRange(_at(10), _at(12)), [_segment("a", 10, 30)])
    cache.add(DateRange(_at(10), _at(12)), [_segment("a", 10, 30)])

    assert cache.size() == 1

    replacement = RecordingSegment(
        start_time=_at(10, 30).timestamp(), end_time=_at(10, 45).timestamp(), id="a"
    )
    cache.add(DateRange(_at(10), _at(12)), [replacement])
    assert cache.get(DateRange(_at(10), _at(12))) == [replacement]


def test_ranged_cache_expire_matches_keeps_coverage() -> None:
    cache: RangedCache[RecordingSegment] = RangedCache(
        lambda segment: segment.start_time, lambda segment: segment.id
    )
    cache.add(DateRange(_at(10), _at(12)), [_segment("a", 10, 30), _segment("b", 11)])
    cache.expire_matches(lambda segment: segment.id == "a")

    assert cache.size() == 1
    assert cache.has_coverage(DateRange(_at(10), _at(12)))
    assert [segment.id for segment in cache.get(DateRange(_at(10), _at(12)))] == ["b"]


def test_recording_segments_cache_is_per_camera() -> None:
    cache = RecordingSegmentsCache()
    cache.add("front", DateRange(_at(10), _at(12)), [_segment("a", 11)])

    assert cache.has_coverage("front", DateRange(_at(10), _at(11)))
    assert not cache.has_coverage("back", DateRange(_at(10), _at(11)))
    assert cache.get("back", DateRange(_at(10), _at(11))) is None
    assert cache.size("front") == 1
    assert cache.size("back") is None
    assert cache.camera_ids() == ["front"]

    cache.expire_matches("front", lambda segment: True)
    assert cache.size("front") == 0
    assert cache.get("front", DateRange(_at(10), _at(12))) == []

    cache.clear()
    assert cache.camera_ids() == []

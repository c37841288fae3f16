"""Turn strptime-style naming patterns into date parsers.

Backends that only expose a browse tree encode timestamps in folder and file
names, e.g. ``2024-09-29/21-47-03.mp4`` for ``%Y-%m-%d/%H-%M-%S``. A pattern
is compiled once into a regular expression; parsing fills any field the
pattern does not carry from a reference datetime (usually the parent folder's
start), and returns ``None`` instead of raising when a name does not fit.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from functools import lru_cache
import re

_DIRECTIVES: dict[str, tuple[str, str]] = {
    "Y": ("year", r"\d{4}"),
    "y": ("year2", r"\d{2}"),
    "m": ("month", r"\d{1,2}"),
    "d": ("day", r"\d{1,2}"),
    "H": ("hour", r"\d{1,2}"),
    "M": ("minute", r"\d{1,2}"),
    "S": ("second", r"\d{1,2}"),
}

_RESOLUTION_ORDER: tuple[str, ...] = ("year", "month", "day", "hour", "minute", "second")


@dataclass(frozen=True, slots=True)
class DatePattern:
    """A compiled strptime-style pattern."""

    pattern: str
    regex: re.Pattern[str]
    groups: tuple[tuple[str, str], ...]

    @property
    def fields(self) -> frozenset[str]:
        return frozenset(
            "year" if field_name == "year2" else field_name for _, field_name in self.groups
        )

    @property
    def resolution(self) -> str | None:
        """The finest time unit the pattern encodes."""
        fields = self.fields
        finest: str | None = None
        for unit in _RESOLUTION_ORDER:
            if unit in fields:
                finest = unit
        return finest

    def parse(self, text: str, reference: datetime) -> datetime | None:
        match = self.regex.fullmatch(text.strip())
        if match is None:
            return None
        if not self.groups:
            return reference

        # Units coarser than the pattern's resolution come from the reference,
        # finer ones start at their minimum.
        resolution = self.resolution
        finest = _RESOLUTION_ORDER.index(resolution) if resolution else -1
        values: dict[str, int] = {}
        for position, unit in enumerate(_RESOLUTION_ORDER):
            if position <= finest:
                values[unit] = getattr(reference, unit)
            else:
                values[unit] = 1 if unit in ("month", "day") else 0
        for group, field_name in self.groups:
            number = int(match.group(group))
            if field_name == "year2":
                values["year"] = 2000 + number
            else:
                values[field_name] = number

        try:
            return datetime(tzinfo=reference.tzinfo, **values)
        except ValueError:
            return None

    def period(self, value: datetime) -> tuple[datetime, datetime]:
        """Return the [start, end] of the unit of time `value` names."""
        return period_bounds(value, self.resolution)


@lru_cache(maxsize=64)
def compile_date_pattern(pattern: str) -> DatePattern:
    parts: list[str] = []
    groups: list[tuple[str, str]] = []
    index = 0
    while index < len(pattern):
        char = pattern[index]
        if char == "%" and index + 1 < len(pattern):
            directive = pattern[index + 1]
            index += 2
            if directive == "%":
                parts.append("%")
                continue
            known = _DIRECTIVES.get(directive)
            if known is None:
                parts.append(r".+?")
                continue
            group = f"g{len(groups)}"
            groups.append((group, known[0]))
            parts.append(f"(?P<{group}>{known[1]})")
            continue
        parts.append(re.escape(char))
        index += 1
    return DatePattern(pattern, re.compile("".join(parts)), tuple(groups))


def pattern_has_date(pattern: str) -> bool:
    return bool(compile_date_pattern(pattern).groups)


def period_bounds(value: datetime, resolution: str | None) -> tuple[datetime, datetime]:
    """Start and inclusive end of the year/month/day/... containing `value`."""
    if resolution == "year":
        start = value.replace(month=1, day=1, hour=0, minute=0, second=0, microsecond=0)
        following = start.replace(year=start.year + 1)
    elif resolution == "month":
        start = value.replace(day=1, hour=0, minute=0, second=0, microsecond=0)
        following = (
            start.replace(year=start.year + 1, month=1)
            if start.month == 12
            else start.replace(month=start.month + 1)
        )
    elif resolution == "day" or resolution is None:
        start = value.replace(hour=0, minute=0, second=0, microsecond=0)
        following = start + timedelta(days=1)
    elif resolution == "hour":
        start = value.replace(minute=0, second=0, microsecond=0)
        following = start + timedelta(hours=1)
    elif resolution == "minute":
        start = value.replace(second=0, microsecond=0)
        following = start + timedelta(minutes=1)
    else:
        start = value.replace(microsecond=0)
        following = start + timedelta(seconds=1)
    return start, following - timedelta(microseconds=1)

"""Calendar arithmetic for the chart: parsing, formatting, add/diff and durations.

All values are naive :class:`datetime.datetime` objects. Month and year
arithmetic is calendar aware (via ``dateutil.relativedelta``); fractional
months are measured against the length of the month being entered, so
``add(b, diff(a, b, "month"), "month") == a``.
"""

from __future__ import annotations

import calendar
import math
import re
from datetime import date, datetime, time, timedelta
from typing import Iterator, NamedTuple

from dateutil import parser as date_parser
from dateutil.relativedelta import relativedelta

YEAR = "year"
MONTH = "month"
DAY = "day"
HOUR = "hour"
MINUTE = "minute"
SECOND = "second"
MILLISECOND = "millisecond"

UNITS = (YEAR, MONTH, DAY, HOUR, MINUTE, SECOND, MILLISECOND)

_UNIT_ALIASES: dict[str, str] = {
    "y": YEAR, "year": YEAR, "years": YEAR,
    "m": MONTH, "mo": MONTH, "month": MONTH, "months": MONTH,
    "w": "week", "week": "week", "weeks": "week",
    "d": DAY, "day": DAY, "days": DAY,
    "h": HOUR, "hour": HOUR, "hours": HOUR,
    "min": MINUTE, "minute": MINUTE, "minutes": MINUTE,
    "s": SECOND, "sec": SECOND, "second": SECOND, "seconds": SECOND,
    "ms": MILLISECOND, "millisecond": MILLISECOND, "milliseconds": MILLISECOND,
}

# Fixed conversion table used for scale conversion (a month is 30 days).
_TO_DAYS: dict[str, float] = {
    MILLISECOND: 1 / 86_400_000,
    SECOND: 1 / 86_400,
    MINUTE: 1 / 1_440,
    HOUR: 1 / 24,
    DAY: 1,
    MONTH: 30,
    YEAR: 365,
}

_SECONDS: dict[str, float] = {
    DAY: 86_400,
    HOUR: 3_600,
    MINUTE: 60,
    SECOND: 1,
    MILLISECOND: 0.001,
}

_DURATION_RE = re.compile(r"^\s*(\d+(?:\.\d+)?)\s*([a-zA-Z]+)\s*$")
_DURATION_PART_RE = re.compile(r"(\d+(?:\.\d+)?)\s*([a-zA-Z]+)")
_FORMAT_TOKEN_RE = re.compile(r"YYYY|YY|MMMM|MMM|MM|M|DD|D|HH|H|mm|ss|SSS")


class Duration(NamedTuple):
    """A count of calendar units, e.g. ``Duration(7, "day")``."""

    count: float
    unit: str

    def __str__(self) -> str:
        count = int(self.count) if self.count == int(self.count) else self.count
        return f"{count} {self.unit}"


def _check_unit(unit: str) -> str:
    if unit not in _TO_DAYS:
        raise ValueError(f"Unknown time unit: {unit!r}")
    return unit


def parse_duration(text: str | Duration) -> Duration:
    """Parse a duration string like ``'7d'``, ``'1m'`` or ``'12 hours'``.

    Weeks are normalised to days. Raises ValueError on anything else.
    """
    if isinstance(text, Duration):
        return text
    m = _DURATION_RE.match(str(text))
    if not m:
        raise ValueError(f"Invalid duration: {text!r}")
    count = float(m.group(1))
    unit = _UNIT_ALIASES.get(m.group(2).lower())
    if unit is None:
        raise ValueError(f"Invalid duration unit: {text!r}")
    if unit == "week":
        return Duration(count * 7, DAY)
    return Duration(count, unit)


def parse_durations(text: str) -> list[Duration]:
    """Parse a space separated compound duration such as ``'1d 12h'``."""
    parts = _DURATION_PART_RE.findall(text)
    if not parts or _DURATION_PART_RE.sub("", text).strip():
        raise ValueError(f"Invalid duration: {text!r}")
    return [parse_duration(f"{count}{unit}") for count, unit in parts]


def convert_scales(duration: str | Duration, to_unit: str) -> float:
    """Express *duration* as a (possibly fractional) count of *to_unit*."""
    d = parse_duration(duration)
    return d.count * _TO_DAYS[_check_unit(d.unit)] / _TO_DAYS[_check_unit(to_unit)]


def parse(value: str | date | datetime) -> datetime:
    """Parse an ISO-ish date or datetime. Date-only values map to midnight."""
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime.combine(value, time())
    text = str(value).strip()
    if not text:
        raise ValueError("Empty date value")
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        return date_parser.parse(text)


def start_of(d: datetime, unit: str) -> datetime:
    """Truncate *d* to the beginning of its *unit* period."""
    if unit == YEAR:
        return d.replace(month=1, day=1, hour=0, minute=0, second=0, microsecond=0)
    if unit == MONTH:
        return d.replace(day=1, hour=0, minute=0, second=0, microsecond=0)
    if unit == DAY:
        return d.replace(hour=0, minute=0, second=0, microsecond=0)
    if unit == HOUR:
        return d.replace(minute=0, second=0, microsecond=0)
    if unit == MINUTE:
        return d.replace(second=0, microsecond=0)
    if unit == SECOND:
        return d.replace(microsecond=0)
    if unit == MILLISECOND:
        return d.replace(microsecond=(d.microsecond // 1000) * 1000)
    raise ValueError(f"Unknown time unit: {unit!r}")


def _add_months(d: datetime, months: float) -> datetime:
    whole = math.floor(months)
    frac = months - whole
    base = d + relativedelta(months=int(whole))
    if frac:
        following = d + relativedelta(months=int(whole) + 1)
        base = base + (following - base) * frac
    return base


def add(d: datetime, count: float, unit: str) -> datetime:
    """Return *d* shifted by *count* units (count may be fractional or negative)."""
    if unit == YEAR:
        return _add_months(d, count * 12)
    if unit == MONTH:
        return _add_months(d, count)
    return d + timedelta(seconds=count * _SECONDS[_check_unit(unit)])


def _month_diff(a: datetime, b: datetime) -> float:
    if a < b:
        return -_month_diff(b, a)
    rd = relativedelta(a, b)
    whole = rd.years * 12 + rd.months
    anchor = b + relativedelta(months=whole)
    following = b + relativedelta(months=whole + 1)
    return whole + (a - anchor) / (following - anchor)


def diff(a: datetime, b: datetime, unit: str = DAY) -> float:
    """Return ``a - b`` measured in *unit*."""
    if unit == YEAR:
        return _month_diff(a, b) / 12
    if unit == MONTH:
        return _month_diff(a, b)
    return (a - b).total_seconds() / _SECONDS[_check_unit(unit)]


def iter_days(start: datetime, end: datetime) -> Iterator[datetime]:
    """Yield *start*, *start* + 1 day, ... while strictly before *end*."""
    d = start
    while d < end:
        yield d
        d += timedelta(days=1)


def is_weekend(d: date) -> bool:
    return d.weekday() >= 5


def format_date(d: datetime, pattern: str = "YYYY-MM-DD", locale: str = "en") -> str:
    """Format *d* using ``YYYY``/``MMM``/``D``/``HH``-style tokens.

    Month names are English regardless of *locale*.
    """

    def _token(m: re.Match) -> str:
        tok = m.group(0)
        if tok == "YYYY":
            return f"{d.year:04d}"
        if tok == "YY":
            return f"{d.year % 100:02d}"
        if tok == "MMMM":
            return calendar.month_name[d.month]
        if tok == "MMM":
            return calendar.month_abbr[d.month]
        if tok == "MM":
            return f"{d.month:02d}"
        if tok == "M":
            return str(d.month)
        if tok == "DD":
            return f"{d.day:02d}"
        if tok == "D":
            return str(d.day)
        if tok == "HH":
            return f"{d.hour:02d}"
        if tok == "H":
            return str(d.hour)
        if tok == "mm":
            return f"{d.minute:02d}"
        if tok == "ss":
            return f"{d.second:02d}"
        return f"{d.microsecond // 1000:03d}"

    return _FORMAT_TOKEN_RE.sub(_token, pattern)

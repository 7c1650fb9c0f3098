"""Timestamp parsing and ISO-8601 rendering.

Date-like strings are parsed with python-dateutil. Common North American
zone abbreviations (``EST``, ``PDT``, ...) are resolved to fixed offsets so
``"2001-09-11 8:46 EST"`` keeps its meaning on any host.
"""

from __future__ import annotations

from datetime import UTC, datetime, tzinfo

from dateutil import parser as date_parser
from dateutil import tz

HOUR = 3600

TZ_ABBREVIATIONS: dict[str, int] = {
    "UTC": 0,
    "GMT": 0,
    "Z": 0,
    "AST": -4 * HOUR,
    "ADT": -3 * HOUR,
    "EST": -5 * HOUR,
    "EDT": -4 * HOUR,
    "CST": -6 * HOUR,
    "CDT": -5 * HOUR,
    "MST": -7 * HOUR,
    "MDT": -6 * HOUR,
    "PST": -8 * HOUR,
    "PDT": -7 * HOUR,
    "AKST": -9 * HOUR,
    "AKDT": -8 * HOUR,
    "HST": -10 * HOUR,
}

ISO_FORMAT = "%Y-%m-%dT%H:%M:%S.%fZ"


def resolve_timezone(name: str | None) -> tzinfo:
    """Turn a zone name (``"UTC"``, ``"America/New_York"``, ``"EST"``) into a tzinfo."""
    if not name or name.upper() in ("UTC", "Z"):
        return UTC
    if name.upper() in TZ_ABBREVIATIONS:
        return tz.tzoffset(name.upper(), TZ_ABBREVIATIONS[name.upper()])
    zone = tz.gettz(name)
    if zone is None:
        raise ValueError(f"Unknown timezone: {name}")
    return zone


def parse_timestamp(value: str | int | float | datetime, timezone: str | None = None) -> datetime:
    """Parse *value* into an aware datetime.

    Strings keep the zone they name; naive strings and epoch numbers are
    placed in *timezone* (UTC when omitted).

    Raises:
        ValueError: The string is not a recognizable date.
        OverflowError: The number or date is out of range.
        TypeError: *value* is not a string, number or datetime.
    """
    zone = resolve_timezone(timezone)
    if isinstance(value, datetime):
        return value if value.tzinfo is not None else value.replace(tzinfo=zone)
    if isinstance(value, bool):
        raise TypeError("Booleans are not timestamps")
    if isinstance(value, (int, float)):
        return datetime.fromtimestamp(value, tz=zone)
    if isinstance(value, str):
        parsed = date_parser.parse(value, tzinfos=TZ_ABBREVIATIONS)
        return parsed if parsed.tzinfo is not None else parsed.replace(tzinfo=zone)
    raise TypeError(f"Cannot parse a timestamp from {type(value).__name__}")


def to_iso_string(value: datetime) -> str:
    """UTC ISO-8601 with microseconds and a ``Z`` suffix; naive values count as UTC."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return value.astimezone(UTC).strftime(ISO_FORMAT)

"""
Conversions between times and strings or numbers.
"""

from __future__ import annotations

import datetime
import math
import re
from collections.abc import Callable
from typing import Any

from ..exceptions import (
    ShapeMismatchError,
    ValueOverflowError,
    ValueParseError,
    describe_value,
)
from ..typedefs import Kind
from .primitive import primitive_to_int, primitive_to_primitive

__all__ = [
    "default_time_to_string",
    "default_string_to_time",
    "time_to_primitive",
    "primitive_to_time",
    "parse_time",
    "format_time",
]

_FRACTION_PATTERN = re.compile(r"(\.\d{6})\d+")
"""
Fractional seconds with more digits than `datetime` can hold.
"""


def default_time_to_string(value: datetime.datetime, /) -> str:
    """
    Format a time per RFC 3339 with second precision, e.g.
    `2021-06-03T13:21:22Z` or `2021-06-03T21:21:22+08:00`. Naive times are taken
    as local times.
    """
    if value.tzinfo is None or value.utcoffset() is None:
        value = value.astimezone()

    offset = value.utcoffset()
    assert offset is not None

    stamp = (
        f"{value.year:04d}-{value.month:02d}-{value.day:02d}"
        f"T{value.hour:02d}:{value.minute:02d}:{value.second:02d}"
    )
    if not offset:
        return f"{stamp}Z"

    sign = "-" if offset < datetime.timedelta(0) else "+"
    minutes = abs(offset) // datetime.timedelta(minutes=1)
    return f"{stamp}{sign}{minutes // 60:02d}:{minutes % 60:02d}"


def default_string_to_time(value: str, /) -> datetime.datetime:
    """
    Parse an RFC 3339 time with up to nanosecond precision, keeping the zone given
    by the string. Digits beyond microseconds are truncated.
    """
    result = datetime.datetime.fromisoformat(_FRACTION_PATTERN.sub(r"\1", value, 1))
    if result.tzinfo is None:
        raise ValueError(f"Missing time zone in {value!r}")
    return result


def time_to_primitive(value: datetime.datetime, kind: Kind, /) -> Any:
    """
    Convert a time to a non-string primitive using its Unix timestamp in whole
    seconds; only the zero timestamp is `False`.
    """
    assert kind is not Kind.STRING
    timestamp = math.floor(value.timestamp())
    if kind is Kind.BOOL:
        return timestamp != 0
    return primitive_to_primitive(timestamp, kind)


def primitive_to_time(value: Any, /) -> datetime.datetime:
    """
    Interpret a number as a Unix timestamp in whole seconds, producing an aware
    time in the local zone.
    """
    if isinstance(value, str):
        raise ShapeMismatchError(
            f"cannot convert {describe_value(value)} to datetime without a parser"
        )

    seconds = primitive_to_int(value, Kind.INT64)
    try:
        return datetime.datetime.fromtimestamp(seconds).astimezone()
    except (OverflowError, OSError, ValueError):
        raise ValueOverflowError(
            f"value overflow when converting {describe_value(value)} to datetime"
        ) from None


def parse_time(
    value: str, parser: Callable[[str], datetime.datetime], /
) -> datetime.datetime:
    """
    Parse a string with the given function, reporting any failure as a
    `ValueParseError`.
    """
    try:
        return parser(value)
    except ValueParseError:
        raise
    except (ValueError, TypeError) as e:
        raise ValueParseError(
            f"cannot parse {describe_value(value)} as datetime: {e}"
        ) from e


def format_time(
    value: datetime.datetime, formatter: Callable[[datetime.datetime], str], /
) -> str:
    """
    Format a time with the given function, reporting any failure as a
    `ValueParseError`.
    """
    try:
        return formatter(value)
    except ValueParseError:
        raise
    except (ValueError, TypeError) as e:
        raise ValueParseError(
            f"cannot format {describe_value(value)} as str: {e}"
        ) from e

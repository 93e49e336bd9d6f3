"""
Configuration of conversions.
"""

from __future__ import annotations

import datetime
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from .coercion.timestamps import default_string_to_time, default_time_to_string
from .fields.matcher import FieldMatcherCreator, SimpleMatcherCreator

__all__ = [
    "CustomConverter",
    "Config",
    "DEFAULT_MATCHER_CREATOR",
]

type CustomConverter = Callable[[Any, Any], Any]
"""
Function taking the source value and destination type, returning the converted
value or `None` to defer to the next converter and ultimately the builtin
conversions. Exceptions are reported as `CustomConverterError`.
"""

DEFAULT_MATCHER_CREATOR = SimpleMatcherCreator()
"""
Matcher creator used if none is configured: exact names, no tags.
"""


@dataclass(frozen=True, kw_only=True)
class Config:
    """
    Settings of a `Converter`; each setting is optional.
    """

    string_splitter: Callable[[str], list[str]] | None = None
    """
    Splits a string when converting it to a list. If not set, the whole string is
    a single element.
    """

    field_matcher_creator: FieldMatcherCreator | None = None
    """
    Matches names to record fields. If not set, names must match exactly.
    """

    custom_converters: tuple[CustomConverter, ...] = ()
    """
    Converters run in order before the builtin conversions.
    """

    time_to_string: Callable[[datetime.datetime], str] | None = None
    """
    Formats times. If not set, `default_time_to_string()` is used.
    """

    string_to_time: Callable[[str], datetime.datetime] | None = None
    """
    Parses times. If not set, `default_string_to_time()` is used.
    """

    def split_string(self, value: str, /) -> list[str]:
        if self.string_splitter is None:
            return [value]
        return self.string_splitter(value)

    @property
    def matcher_creator(self) -> FieldMatcherCreator:
        return self.field_matcher_creator or DEFAULT_MATCHER_CREATOR

    @property
    def time_formatter(self) -> Callable[[datetime.datetime], str]:
        return self.time_to_string or default_time_to_string

    @property
    def time_parser(self) -> Callable[[str], datetime.datetime]:
        return self.string_to_time or default_string_to_time

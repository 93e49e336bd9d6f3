"""
Loading of conversion settings from TOML documents (via `tomlkit`), e.g.:

```toml
[convkit]
separator = ","
time_format = "%Y-%m-%d %H:%M"

[convkit.matcher]
tag = "json"
camel_snake_case = true
```
"""

from __future__ import annotations

import datetime
from collections.abc import Mapping
from dataclasses import dataclass, field
from operator import methodcaller
from pathlib import Path
from typing import Any

import tomlkit

from .config import Config, CustomConverter
from .converting.engine import Converter
from .exceptions import ShapeMismatchError
from .fields.matcher import SimpleMatcherConfig, SimpleMatcherCreator

__all__ = [
    "MatcherSection",
    "ConfigDocument",
    "load_config",
]

DEFAULT_TABLE = "convkit"

_DOCUMENT_CONVERTER = Converter(
    Config(
        field_matcher_creator=SimpleMatcherCreator(
            SimpleMatcherConfig(camel_snake_case=True)
        )
    )
)
"""
Converter mapping TOML tables to sections; keys may be in snake-case or
camel-case.
"""


@dataclass(kw_only=True)
class MatcherSection:
    """
    Settings of the field matcher, see `SimpleMatcherConfig`.
    """

    tag: str = ""
    case_insensitive: bool = False
    omit_underscore: bool = False
    camel_snake_case: bool = False


@dataclass(kw_only=True)
class ConfigDocument:
    """
    Conversion settings as stored in a TOML table.
    """

    separator: str | None = None
    """
    Separator for splitting strings into lists.
    """

    time_format: str | None = None
    """
    Format of times for `strftime()`/`strptime()`; RFC 3339 if not set.
    """

    matcher: MatcherSection = field(default_factory=MatcherSection)

    @classmethod
    def loads(cls, text: str, /, *, table: str = DEFAULT_TABLE) -> ConfigDocument:
        """
        Parse a TOML document, reading the settings from the given table. The table
        may be nested using dots, e.g. `tool.convkit`; if it's absent, defaults are
        used.
        """
        data: Any = tomlkit.parse(text).unwrap()

        for key in table.split("."):
            if not isinstance(data, Mapping):
                raise ShapeMismatchError(
                    f"expected a table at '{table}', got {type(data).__name__}"
                )
            data = data.get(key, {})

        return _DOCUMENT_CONVERTER.convert_type(data, cls)

    @classmethod
    def load(cls, path: Path, /, *, table: str = DEFAULT_TABLE) -> ConfigDocument:
        return cls.loads(path.read_text(), table=table)

    def dumps(self, *, table: str = DEFAULT_TABLE) -> str:
        """
        Render the settings as a TOML document; unset settings are omitted.
        """
        data: Any = _DOCUMENT_CONVERTER.record_to_map(self)
        for key in reversed(table.split(".")):
            data = {key: data}
        return tomlkit.dumps(data)

    def to_config(
        self, *, custom_converters: tuple[CustomConverter, ...] = ()
    ) -> Config:
        """
        Create a `Config` from these settings.
        """
        matcher_config = SimpleMatcherConfig(
            tag=self.matcher.tag,
            case_insensitive=self.matcher.case_insensitive,
            omit_underscore=self.matcher.omit_underscore,
            camel_snake_case=self.matcher.camel_snake_case,
        )

        string_splitter = None
        if self.separator is not None:
            string_splitter = methodcaller("split", self.separator)

        time_to_string = None
        string_to_time = None
        if (time_format := self.time_format) is not None:

            def parse(value: str) -> datetime.datetime:
                return datetime.datetime.strptime(value, time_format)

            time_to_string = methodcaller("strftime", time_format)
            string_to_time = parse

        return Config(
            string_splitter=string_splitter,
            field_matcher_creator=SimpleMatcherCreator(matcher_config),
            custom_converters=custom_converters,
            time_to_string=time_to_string,
            string_to_time=string_to_time,
        )


def load_config(
    source: str | Path,
    /,
    *,
    table: str = DEFAULT_TABLE,
    custom_converters: tuple[CustomConverter, ...] = (),
) -> Config:
    """
    Load a `Config` from a TOML document; a `str` is the document's text and a
    `Path` is read from disk.
    """
    if isinstance(source, Path):
        document = ConfigDocument.load(source, table=table)
    else:
        document = ConfigDocument.loads(source, table=table)
    return document.to_config(custom_converters=custom_converters)

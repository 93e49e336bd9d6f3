"""
Resolution of external names, such as mapping keys or source field names, to the
fields of a destination record.
"""

from __future__ import annotations

import logging
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass

from .naming import fold_camel_snake
from .walker import FieldInfo, get_field_walker

__all__ = [
    "FieldMatcherCreator",
    "FieldMatcher",
    "SimpleMatcherConfig",
    "SimpleMatcherCreator",
    "SimpleMatcher",
]

logger = logging.getLogger(__name__)


class FieldMatcher(ABC):
    """
    Resolves names to the fields of one record type.
    """

    @abstractmethod
    def match_field(self, name: str, /) -> FieldInfo | None:
        """
        Get the first field matching the name, or `None` if there's no match. Only
        exported fields are returned.
        """


class FieldMatcherCreator(ABC):
    """
    Provides a `FieldMatcher` per record type for conversions to records.
    """

    @property
    def tag_name(self) -> str:
        """
        Name of the metadata key renaming fields, also used to walk the fields of
        source records; `""` if tags aren't used.
        """
        return ""

    @abstractmethod
    def get_matcher(self, record_type: type, /) -> FieldMatcher:
        """
        Get the matcher for the given record type.
        """


@dataclass(frozen=True, kw_only=True)
class SimpleMatcherConfig:
    """
    Name folding policy of `SimpleMatcherCreator`.
    """

    tag: str = ""
    """
    Metadata key giving fields an alternative name, like `json` tags, e.g. with
    `tag="conv"` a field declared as `old: int = field(metadata={"conv": "new"})`
    is matched by `"new"`.
    """

    case_insensitive: bool = False
    """
    Compare names in lower case, so `ab`, `Ab`, `aB` and `AB` are equal. Disables
    `camel_snake_case`.
    """

    omit_underscore: bool = False
    """
    Remove underscores before comparing, so `ab`, `a_b`, `_ab` and `a__b_` are
    equal. Disables `camel_snake_case`.
    """

    camel_snake_case: bool = False
    """
    Compare names in camel-case or snake-case form: the first rune of each word is
    compared case-insensitively and the others exactly, so `aaBb`, `AaBb`,
    `aa_bb` and `Aa_Bb` are equal, but `aa_bb`, `Aabb`, `AaBb_` and `Aa__Bb` are
    not.
    """

    def fold(self, name: str, /) -> str:
        """
        Normalize a name such that matching names fold to the same string.
        """
        camel_snake = self.camel_snake_case

        if self.case_insensitive:
            name = name.lower()
            camel_snake = False

        if self.omit_underscore:
            name = name.replace("_", "")
            camel_snake = False

        if camel_snake:
            name = fold_camel_snake(name)

        return name


class SimpleMatcher(FieldMatcher):
    """
    Matcher indexing the fields of a record by folded name; the first field to
    claim a folded name wins.
    """

    config: SimpleMatcherConfig
    record_type: type

    __index: dict[str, FieldInfo] | None
    __lock: threading.Lock

    def __init__(self, record_type: type, config: SimpleMatcherConfig):
        self.config = config
        self.record_type = record_type
        self.__index = None
        self.__lock = threading.Lock()

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.record_type.__qualname__}, {self.config})"

    def match_field(self, name: str, /) -> FieldInfo | None:
        if self.__index is None:
            with self.__lock:
                if self.__index is None:
                    self.__index = self.__build_index()
        return self.__index.get(self.config.fold(name))

    def __build_index(self) -> dict[str, FieldInfo]:
        index: dict[str, FieldInfo] = {}
        walker = get_field_walker(self.record_type, self.config.tag)

        for field in walker.fields:
            index.setdefault(self.config.fold(field.external_name), field)

        logger.debug(
            "Indexed %d names of %s", len(index), self.record_type.__qualname__
        )
        return index


class SimpleMatcherCreator(FieldMatcherCreator):
    """
    Creates one `SimpleMatcher` per record type, shared by all conversions using
    this creator.
    """

    config: SimpleMatcherConfig

    __matchers: dict[type, SimpleMatcher]
    __lock: threading.Lock

    def __init__(self, config: SimpleMatcherConfig | None = None):
        self.config = config or SimpleMatcherConfig()
        self.__matchers = {}
        self.__lock = threading.Lock()

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.config})"

    @property
    def tag_name(self) -> str:
        return self.config.tag

    def get_matcher(self, record_type: type, /) -> SimpleMatcher:
        if (matcher := self.__matchers.get(record_type)) is None:
            with self.__lock:
                matcher = self.__matchers.setdefault(
                    record_type, SimpleMatcher(record_type, self.config)
                )
        return matcher

"""
Name folding and comparison for camel-case, snake-case and case-insensitive
matching.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator, Mapping
from enum import Enum, auto
from itertools import zip_longest
from typing import Any

__all__ = [
    "fold_camel_snake",
    "case_insensitive_equal",
    "camel_snake_case_equal",
    "find_key",
]


class _State(Enum):
    WORD_START = auto()
    DELIMITER = auto()
    NON_DELIMITER = auto()


def fold_camel_snake(name: str, /) -> str:
    """
    Rewrite the first rune of each word as `_` followed by the rune in lower case,
    dropping delimiter underscores:

    - `aaBB` -> `_aa_b_b`
    - `AaBb` -> `_aa_bb`
    - `aa_bb` -> `_aa_bb`
    - `_a_b_` -> `__a_b_`

    A rune starts a word if it's the first rune, an upper-case rune, or the rune
    after a single delimiter underscore. An underscore is a delimiter unless it's
    the last rune or directly follows a delimiter. Names containing whitespace are
    returned as-is.
    """
    if any(c.isspace() for c in name):
        return name

    parts: list[str] = []
    state = _State.WORD_START
    last = len(name) - 1

    for i, c in enumerate(name):
        if i == 0 or c.isupper():
            state = _State.WORD_START
        elif state is _State.DELIMITER:
            state = _State.WORD_START
        elif c != "_":
            state = _State.NON_DELIMITER
        elif i < last:
            state = _State.DELIMITER
            continue
        else:
            # trailing underscore is kept verbatim
            state = _State.NON_DELIMITER

        if state is _State.WORD_START:
            parts.append(f"_{c.lower()}")
        else:
            parts.append(c)

    return "".join(parts)


def case_insensitive_equal(x: str, y: str, /) -> bool:
    return x.casefold() == y.casefold()


def camel_snake_case_equal(x: str, y: str, /) -> bool:
    """
    Compare names which may be in camel-case or snake-case: the first rune of each
    word is compared case-insensitively, other runes exactly. If either name
    contains whitespace, the names must be strictly equal.

    Equal: `oneTwoThree`, `OneTwoThree`, `one_two_three`, `One_Two_Three`,
    `one_TwoThree`.

    Not equal to the above: `_oneTwoThree`, `onetwoThree`, `OneTwoThree_`,
    `one__two_three`.
    """
    for rune_x, rune_y in zip_longest(_iter_words(x), _iter_words(y)):
        if rune_x is None or rune_y is None:
            return False

        start_x, c_x = rune_x
        start_y, c_y = rune_y

        if c_x.isspace() or c_y.isspace():
            return x == y

        if start_x and start_y:
            if c_x.casefold() != c_y.casefold():
                return False
            continue

        if start_x or start_y or c_x != c_y:
            return False

    return True


def _iter_words(name: str) -> Iterator[tuple[bool, str]]:
    """
    Yield each rune along with whether it starts a word, skipping delimiter
    underscores.
    """
    i = 0
    last = len(name) - 1

    while i <= last:
        c = name[i]

        if i == 0:
            yield True, c
            i += 1
        elif c.isupper() and name[i - 1].islower():
            yield True, c
            i += 1
        elif c == "_" and name[i - 1] != "_" and i != last:
            yield True, name[i + 1]
            i += 2
        else:
            yield False, c
            i += 1


def find_key(
    mapping: Mapping[str, Any], key: str, equal: Callable[[str, str], bool], /
) -> str | None:
    """
    Get the first key of the mapping which is equal to the given key per the
    comparison function, or `None` if there's no such key.
    """
    for k in mapping:
        if equal(key, k):
            return k
    return None

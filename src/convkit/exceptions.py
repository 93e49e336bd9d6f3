"""
Exception classes.
"""

from __future__ import annotations

import functools
from collections.abc import Callable
from typing import Any

__all__ = [
    "NAMESPACE",
    "ConversionError",
    "NilSourceError",
    "ShapeMismatchError",
    "ValueParseError",
    "ValueOverflowError",
    "PrecisionLossError",
    "ImaginaryPartLossError",
    "FieldConversionError",
    "CustomConverterError",
    "PreconditionError",
    "wrap_errors",
]

NAMESPACE = "convkit"
"""
Prefix of the function names in error messages.
"""


class ConversionError(Exception):
    """
    Base class of the recoverable errors raised when a value can't be converted.

    The message is the detail prefixed by the public functions the error passed
    through, outermost first, e.g.
    `convkit.convert_type: convkit.simple_to_simple: value overflow ...`.
    """

    detail: str
    """
    Description of the failure, without function prefixes.
    """

    functions: list[str]
    """
    Names of the public functions the error escaped from, outermost first.
    """

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail
        self.functions = []

    def __str__(self) -> str:
        return ": ".join(
            (*(f"{NAMESPACE}.{f}" for f in self.functions), self.detail)
        )

    @property
    def path(self) -> str:
        """
        Location of the failure within the converted value, formatted in dot
        notation; `"<root>"` if it failed at the top level.
        """
        return "<root>"

    @property
    def root_cause(self) -> ConversionError:
        """
        Innermost conversion error.
        """
        return self


class NilSourceError(ConversionError):
    """
    A value was required but the source is `None`.
    """


class ShapeMismatchError(ConversionError):
    """
    No conversion exists between the shape of the source and the destination.
    """


class ValueParseError(ConversionError):
    """
    A string couldn't be parsed as the destination kind.
    """


class ValueOverflowError(ConversionError):
    """
    Value is outside the range of the destination kind.
    """


class PrecisionLossError(ConversionError):
    """
    Value has a fractional part but the destination is an integer kind.
    """


class ImaginaryPartLossError(ConversionError):
    """
    Complex value has a non-zero imaginary part but the destination is real.
    """


class CustomConverterError(ConversionError):
    """
    A user-supplied converter failed; later converters are not attempted.
    """


class FieldConversionError(ConversionError):
    """
    Conversion of a field, key, value or element failed.
    """

    segment: str | int
    """
    Field name, key or index at which the nested conversion failed.
    """

    cause: ConversionError
    """
    The nested error.
    """

    def __init__(self, segment: str | int, cause: ConversionError, message: str):
        super().__init__(f"{message}: {cause}")
        self.segment = segment
        self.cause = cause
        self.__cause__ = cause

    @property
    def path(self) -> str:
        """
        Path formatted like `"items[1].value"`.
        """
        segments: list[str | int] = []
        error: ConversionError = self
        while isinstance(error, FieldConversionError):
            segments.append(error.segment)
            error = error.cause

        parts: list[str] = []
        for i, segment in enumerate(segments):
            if isinstance(segment, int):
                # index: append as [n]
                parts.append(f"[{segment}]")
            else:
                # field name: prefix with dot
                prefix = "." if i != 0 else ""
                parts.append(f"{prefix}{segment}")
        return "".join(parts)

    @property
    def root_cause(self) -> ConversionError:
        return self.cause.root_cause


class PreconditionError(Exception):
    """
    The caller broke the calling contract, e.g. passed a destination which is not a
    `Ref`. Not a `ConversionError`: it signals a programming error rather than bad
    input data and is not meant to be handled.
    """


def wrap_errors[**P, R](func: Callable[P, R]) -> Callable[P, R]:
    """
    Prefix any `ConversionError` escaping the decorated public function with the
    function's name.
    """

    @functools.wraps(func)
    def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
        try:
            return func(*args, **kwargs)
        except ConversionError as e:
            e.functions.insert(0, func.__name__)
            raise

    return wrapper


def describe_value(value: Any) -> str:
    """
    Format a value with its runtime type for error messages.
    """
    return f"{value!r} ({type(value).__name__})"

"""
Conversion of values to destination types using a default `Converter`.
"""

from typing import Any

from ..ref import Ref
from .engine import Converter

__all__ = [
    "Converter",
    "DEFAULT_CONVERTER",
    "convert_type",
    "convert",
]

DEFAULT_CONVERTER = Converter()
"""
Converter with the default configuration: exact field names, no string splitting
and RFC 3339 times.
"""


def convert_type(src: Any, dst_type: Any, /) -> Any:
    """
    Convert a value to the destination type using the default converter.
    """
    return DEFAULT_CONVERTER.convert_type(src, dst_type)


def convert(src: Any, dst: Ref[Any], /) -> None:
    """
    Convert a value and store it in the `Ref` using the default converter.
    """
    DEFAULT_CONVERTER.convert(src, dst)

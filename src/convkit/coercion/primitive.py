"""
Conversions among booleans, strings and numbers, with overflow, precision and
imaginary part checks.
"""

from __future__ import annotations

import cmath
import math
import re
import struct
from typing import Any

from ..exceptions import (
    ImaginaryPartLossError,
    PrecisionLossError,
    ShapeMismatchError,
    ValueOverflowError,
    ValueParseError,
    describe_value,
)
from ..typedefs import FLOAT32_MAX, Kind

__all__ = [
    "is_primitive",
    "primitive_to_primitive",
    "primitive_to_bool",
    "primitive_to_str",
    "primitive_to_int",
    "primitive_to_float",
    "primitive_to_complex",
]

TRUE_LITERALS = frozenset(("1", "t", "T", "TRUE", "true", "True"))
FALSE_LITERALS = frozenset(("0", "f", "F", "FALSE", "false", "False"))

_LEGACY_OCTAL_PATTERN = re.compile(r"[+-]?0[0-7_]*[0-7]")
"""
Integers written with a leading zero and no base prefix, e.g. `0755`.
"""


def is_primitive(value: Any, /) -> bool:
    return isinstance(value, (bool, int, float, complex, str))


def primitive_to_primitive(value: Any, kind: Kind, /) -> Any:
    """
    Convert a primitive to the builtin type of the given kind, checking it's
    representable in that kind.
    """
    if kind is Kind.BOOL:
        return primitive_to_bool(value)
    if kind is Kind.STRING:
        return primitive_to_str(value)
    if kind.is_int:
        return primitive_to_int(value, kind)
    if kind.is_float:
        return primitive_to_float(value, kind)
    assert kind.is_complex
    return primitive_to_complex(value, kind)


def primitive_to_bool(value: Any, /) -> bool:
    """
    Convert zero values to `False` and non-zero values to `True`; strings must be
    boolean literals like `"true"`, `"F"` or `"1"`.
    """
    if isinstance(value, str):
        if value in TRUE_LITERALS:
            return True
        if value in FALSE_LITERALS:
            return False
        raise _parse_error(value, Kind.BOOL)
    if isinstance(value, (bool, int, float, complex)):
        return value != 0
    raise _cannot_convert(value, Kind.BOOL)


def primitive_to_str(value: Any, /) -> str:
    """
    Render a primitive as a string. Booleans become `"1"`/`"0"` and complex numbers
    with a zero imaginary part become their real part, so the result can be
    converted back to any number.
    """
    if isinstance(value, bool):
        return "1" if value else "0"
    if isinstance(value, str):
        return str.__str__(value)
    if isinstance(value, complex):
        if value.imag == 0:
            return str(value.real)
        return str(value)
    if isinstance(value, int):
        return int.__repr__(value)
    if isinstance(value, float):
        return float.__repr__(value)
    raise _cannot_convert(value, Kind.STRING)


def primitive_to_int(value: Any, kind: Kind = Kind.INT, /) -> int:
    assert kind.is_int
    num: int

    if isinstance(value, str):
        num = _parse_int(value, kind)
    elif isinstance(value, bool):
        num = int(value)
    elif isinstance(value, int):
        num = int(value)
    elif isinstance(value, float):
        num = _float_to_int(value, value, kind)
    elif isinstance(value, complex):
        if value.imag != 0:
            raise ImaginaryPartLossError(
                f"lost imaginary part when converting {describe_value(value)} to "
                f"{kind.value}"
            )
        num = _float_to_int(value, value.real, kind)
    else:
        raise _cannot_convert(value, kind)

    lo, hi = kind.bounds
    if (lo is not None and num < lo) or (hi is not None and num > hi):
        raise _overflow(value, kind)
    return num


def primitive_to_float(value: Any, kind: Kind = Kind.FLOAT64, /) -> float:
    assert kind.is_float
    num: float

    if isinstance(value, str):
        try:
            num = float(value)
        except ValueError:
            raise _parse_error(value, kind) from None
        if math.isinf(num) and not _is_inf_literal(value):
            raise _overflow(value, kind)
    elif isinstance(value, (bool, int)):
        try:
            num = float(value)
        except OverflowError:
            raise _overflow(value, kind) from None
    elif isinstance(value, float):
        num = float(value)
    elif isinstance(value, complex):
        if value.imag != 0:
            raise ImaginaryPartLossError(
                f"lost imaginary part when converting {describe_value(value)} to "
                f"{kind.value}"
            )
        num = value.real
    else:
        raise _cannot_convert(value, kind)

    if kind is Kind.FLOAT32:
        if abs(num) > FLOAT32_MAX:
            raise _overflow(value, kind)
        num = _round_float32(num)
    return num


def primitive_to_complex(value: Any, kind: Kind = Kind.COMPLEX128, /) -> complex:
    assert kind.is_complex
    num: complex

    if isinstance(value, str):
        try:
            num = complex(value)
        except ValueError:
            raise _parse_error(value, kind) from None
        if cmath.isinf(num) and not _is_inf_literal(value):
            raise _overflow(value, kind)
    elif isinstance(value, (bool, int, float)):
        try:
            num = complex(float(value), 0)
        except OverflowError:
            raise _overflow(value, kind) from None
    elif isinstance(value, complex):
        num = complex(value)
    else:
        raise _cannot_convert(value, kind)

    if kind is Kind.COMPLEX64:
        if abs(num.real) > FLOAT32_MAX or abs(num.imag) > FLOAT32_MAX:
            raise _overflow(value, kind)
        num = complex(_round_float32(num.real), _round_float32(num.imag))
    return num


def _parse_int(value: str, kind: Kind) -> int:
    """
    Parse an integer literal with an optional base prefix; a leading zero without a
    prefix selects octal. Surrounding whitespace is rejected.
    """
    if value != value.strip():
        raise _parse_error(value, kind)
    try:
        if _LEGACY_OCTAL_PATTERN.fullmatch(value):
            return int(value, 8)
        return int(value, 0)
    except ValueError:
        raise _parse_error(value, kind) from None


def _is_inf_literal(value: str) -> bool:
    return "inf" in value.lower()


def _float_to_int(value: Any, real: float, kind: Kind) -> int:
    if math.isinf(real):
        raise _overflow(value, kind)
    if math.isnan(real) or not real.is_integer():
        raise PrecisionLossError(
            f"lost precision when converting {describe_value(value)} to {kind.value}"
        )
    return int(real)


def _round_float32(value: float) -> float:
    if not math.isfinite(value):
        return value
    return struct.unpack("f", struct.pack("f", value))[0]


def _overflow(value: Any, kind: Kind) -> ValueOverflowError:
    return ValueOverflowError(
        f"value overflow when converting {describe_value(value)} to {kind.value}"
    )


def _parse_error(value: str, kind: Kind) -> ValueParseError:
    return ValueParseError(f"cannot parse {describe_value(value)} as {kind.value}")


def _cannot_convert(value: Any, kind: Kind) -> ShapeMismatchError:
    return ShapeMismatchError(f"cannot convert {describe_value(value)} to {kind.value}")

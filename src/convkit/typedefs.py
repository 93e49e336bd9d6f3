"""
Basic definitions for primitive kinds and their sized aliases.
"""

from __future__ import annotations

from enum import Enum
from typing import Annotated

__all__ = [
    "Kind",
    "Int8",
    "Int16",
    "Int32",
    "Int64",
    "UInt",
    "UInt8",
    "UInt16",
    "UInt32",
    "UInt64",
    "Float32",
    "Float64",
    "Complex64",
    "Complex128",
]

FLOAT32_MAX = 3.4028234663852886e38
"""
Largest finite magnitude representable by a 32-bit float.
"""


class Kind(Enum):
    """
    Primitive kind of a value or destination type, carrying width and signedness.

    Plain `int` maps to `INT`, which like `UINT` has arbitrary precision; the sized
    kinds are selected with the `Annotated` aliases of this module, e.g. `Int8`.
    """

    BOOL = "bool"
    INT = "int"
    INT8 = "int8"
    INT16 = "int16"
    INT32 = "int32"
    INT64 = "int64"
    UINT = "uint"
    UINT8 = "uint8"
    UINT16 = "uint16"
    UINT32 = "uint32"
    UINT64 = "uint64"
    FLOAT32 = "float32"
    FLOAT64 = "float64"
    COMPLEX64 = "complex64"
    COMPLEX128 = "complex128"
    STRING = "str"

    @property
    def is_signed_int(self) -> bool:
        return self in _SIGNED_INTS

    @property
    def is_unsigned_int(self) -> bool:
        return self in _UNSIGNED_INTS

    @property
    def is_int(self) -> bool:
        return self.is_signed_int or self.is_unsigned_int

    @property
    def is_float(self) -> bool:
        return self in (Kind.FLOAT32, Kind.FLOAT64)

    @property
    def is_complex(self) -> bool:
        return self in (Kind.COMPLEX64, Kind.COMPLEX128)

    @property
    def bits(self) -> int | None:
        """
        Width in bits, or `None` for the arbitrary-precision integer kinds and for
        kinds without a width.
        """
        return _BITS.get(self)

    @property
    def bounds(self) -> tuple[int | None, int | None]:
        """
        Inclusive `(min, max)` of an integer kind; `None` marks an open end.
        """
        assert self.is_int
        bits = self.bits
        if self.is_unsigned_int:
            return (0, None if bits is None else (1 << bits) - 1)
        if bits is None:
            return (None, None)
        return (-(1 << (bits - 1)), (1 << (bits - 1)) - 1)

    @property
    def base_type(self) -> type:
        """
        Builtin type holding values of this kind.
        """
        if self is Kind.BOOL:
            return bool
        if self.is_int:
            return int
        if self.is_float:
            return float
        if self.is_complex:
            return complex
        return str


_SIGNED_INTS = frozenset((Kind.INT, Kind.INT8, Kind.INT16, Kind.INT32, Kind.INT64))
_UNSIGNED_INTS = frozenset(
    (Kind.UINT, Kind.UINT8, Kind.UINT16, Kind.UINT32, Kind.UINT64)
)

_BITS: dict[Kind, int] = {
    Kind.INT8: 8,
    Kind.INT16: 16,
    Kind.INT32: 32,
    Kind.INT64: 64,
    Kind.UINT8: 8,
    Kind.UINT16: 16,
    Kind.UINT32: 32,
    Kind.UINT64: 64,
    Kind.FLOAT32: 32,
    Kind.FLOAT64: 64,
    Kind.COMPLEX64: 64,
    Kind.COMPLEX128: 128,
}

Int8 = Annotated[int, Kind.INT8]
Int16 = Annotated[int, Kind.INT16]
Int32 = Annotated[int, Kind.INT32]
Int64 = Annotated[int, Kind.INT64]
UInt = Annotated[int, Kind.UINT]
UInt8 = Annotated[int, Kind.UINT8]
UInt16 = Annotated[int, Kind.UINT16]
UInt32 = Annotated[int, Kind.UINT32]
UInt64 = Annotated[int, Kind.UINT64]
Float32 = Annotated[float, Kind.FLOAT32]
Float64 = Annotated[float, Kind.FLOAT64]
Complex64 = Annotated[complex, Kind.COMPLEX64]
Complex128 = Annotated[complex, Kind.COMPLEX128]


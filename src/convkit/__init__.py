"""
Runtime conversion of values to destination types: primitives, times, lists,
dicts and dataclass records, with configurable field name matching.
"""

from .config import Config, CustomConverter
from .converting import Converter, convert, convert_type
from .exceptions import (
    ConversionError,
    CustomConverterError,
    FieldConversionError,
    ImaginaryPartLossError,
    NilSourceError,
    PrecisionLossError,
    PreconditionError,
    ShapeMismatchError,
    ValueOverflowError,
    ValueParseError,
)
from .fields.matcher import (
    FieldMatcher,
    FieldMatcherCreator,
    SimpleMatcherConfig,
    SimpleMatcherCreator,
)
from .fields.walker import FieldInfo, FieldWalker, embedded, get_field_walker
from .ref import Ref
from .typedefs import (
    Complex64,
    Complex128,
    Float32,
    Float64,
    Int8,
    Int16,
    Int32,
    Int64,
    Kind,
    UInt,
    UInt8,
    UInt16,
    UInt32,
    UInt64,
)

__all__ = [
    "Config",
    "CustomConverter",
    "Converter",
    "convert",
    "convert_type",
    "ConversionError",
    "CustomConverterError",
    "FieldConversionError",
    "ImaginaryPartLossError",
    "NilSourceError",
    "PrecisionLossError",
    "PreconditionError",
    "ShapeMismatchError",
    "ValueOverflowError",
    "ValueParseError",
    "FieldMatcher",
    "FieldMatcherCreator",
    "SimpleMatcherConfig",
    "SimpleMatcherCreator",
    "FieldInfo",
    "FieldWalker",
    "embedded",
    "get_field_walker",
    "Ref",
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

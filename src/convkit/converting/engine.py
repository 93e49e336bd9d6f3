"""
Conversion engine: dispatches a source value and destination type to the matching
conversion, recursing into elements, keys, values and fields.
"""

from __future__ import annotations

import datetime
import logging
from collections.abc import Callable, Iterable, Mapping
from typing import Any, get_args

from ..coercion.primitive import is_primitive, primitive_to_primitive
from ..coercion.timestamps import (
    format_time,
    parse_time,
    primitive_to_time,
    time_to_primitive,
)
from ..config import Config
from ..exceptions import (
    ConversionError,
    CustomConverterError,
    FieldConversionError,
    NilSourceError,
    PreconditionError,
    ShapeMismatchError,
    describe_value,
    wrap_errors,
)
from ..fields.walker import FieldInfo, get_field_walker
from ..inspecting.shapes import (
    LayerKind,
    Shape,
    TypeDescriptor,
    describe_type,
    is_record_type,
    shape_of,
    zero_value,
)
from ..ref import Ref, deref
from ..typedefs import Kind

__all__ = [
    "Converter",
]

logger = logging.getLogger(__name__)

STRING_MAP = dict[str, Any]
"""
Default destination of record to map conversions.
"""


class Converter:
    """
    Converts values to destination types per a `Config`:

    | source        | destination  | method               |
    |---------------|--------------|----------------------|
    | simple        | simple       | `simple_to_simple()` |
    | `str`         | simple list  | `string_to_slice()`  |
    | list          | list         | `slice_to_slice()`   |
    | mapping       | `dict`       | `map_to_map()`       |
    | mapping       | record       | `map_to_record()`    |
    | record        | `dict`       | `record_to_map()`    |
    | record        | record       | `record_to_record()` |

    Simple values are primitives and times. Pointer layers of the destination type
    are stripped before dispatching and the result is re-wrapped in new `Ref`
    cells; pointer layers of the source value are dereferenced.
    """

    config: Config

    def __init__(self, config: Config | None = None):
        self.config = config or Config()

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.config})"

    @wrap_errors
    def convert_type(self, src: Any, dst_type: Any, /) -> Any:
        """
        Convert a value to the destination type.

        A mapping with a single entry keyed by `""` stands for the entry's value,
        so `{"": 123}` converts to `123`.
        """
        dst = describe_type(dst_type)

        if dst.shape is Shape.ANY:
            return src

        if src is None and dst.shape is Shape.POINTER:
            return None

        for converter in self.config.custom_converters:
            try:
                result = converter(src, dst.annotation)
            except Exception as e:
                raise CustomConverterError(
                    f"custom converter {_callable_name(converter)} failed to convert "
                    f"{describe_value(src)} to {dst.name}: {e}"
                ) from e

            if result is not None:
                logger.debug(
                    "Custom converter %s converted %s to %s",
                    _callable_name(converter),
                    describe_value(src),
                    dst.name,
                )
                return result

        base = dst.base
        value = deref(src)

        if value is None:
            if dst.shape is Shape.POINTER:
                return None
            if base.shape in (Shape.SLICE, Shape.MAP):
                return zero_value(base)
            raise NilSourceError(f"cannot convert None to {dst.name}")

        if (inner := _flatten_empty_key(value)) is not None:
            return self.convert_type(inner, dst)

        return dst.wrap(self.__dispatch(value, base))

    @wrap_errors
    def convert(self, src: Any, dst: Ref[Any], /) -> None:
        """
        Like `convert_type()`, but store the result in a `Ref`. The destination type
        is the `Ref`'s type parameter; nested cells are followed to the innermost
        one. If the source is `None`, nothing is stored.
        """
        if not isinstance(dst, Ref):
            raise PreconditionError(
                "convkit.convert: the destination value must be a pointer"
            )

        target: Ref[Any] = dst
        descriptor = describe_type(dst.target_type)

        while descriptor.shape is Shape.POINTER:
            layer = descriptor.layers[0]
            if layer.kind is not LayerKind.REF:
                break

            if not isinstance(target.value, Ref):
                raise PreconditionError(
                    "convkit.convert: the pointer must be initialized"
                )

            target = target.value
            args = get_args(layer.annotation)
            descriptor = describe_type(args[0] if args else Any)

        if src is None:
            return

        target.value = self.convert_type(src, descriptor)

    @wrap_errors
    def simple_to_simple(self, src: Any, dst_type: Any, /) -> Any:
        """
        Convert a primitive or time to another primitive or time:

        - Booleans become `0`/`1` or `"0"`/`"1"`.
        - Complex numbers convert to real numbers only if the imaginary part is
          zero.
        - Numbers convert to times as Unix timestamps in the local zone.
        """
        dst = describe_type(dst_type)

        if src is None:
            raise NilSourceError("the source value should not be None")

        match dst.shape:
            case Shape.PRIMITIVE:
                assert dst.kind
                result = self.__to_primitive(src, dst.kind)
            case Shape.TIME:
                result = self.__to_time(src)
            case _:
                raise ShapeMismatchError(
                    f"cannot convert {describe_value(src)} to {dst.name}"
                )

        return _restore_subclass(result, dst)

    @wrap_errors
    def simple_to_bool(self, src: Any, /) -> bool:
        """
        Convert a simple value to a boolean: `None` and zero values are `False`,
        strings must be boolean literals, times are `False` only at the zero Unix
        timestamp.
        """
        if src is None:
            return False
        return self.__to_primitive(src, Kind.BOOL)

    @wrap_errors
    def simple_to_string(self, src: Any, /) -> str:
        """
        Convert a simple value to a string; times are formatted by the configured
        time formatter.
        """
        if src is None:
            raise NilSourceError("the source value should not be None")
        return self.__to_primitive(src, Kind.STRING)

    @wrap_errors
    def string_to_slice(self, src: str, dst_type: Any, /) -> Any:
        """
        Split a string with the configured splitter and convert each part to the
        destination's element type, which must be simple.
        """
        dst = describe_type(dst_type)

        if dst.shape is not Shape.SLICE:
            raise ShapeMismatchError(
                f"the destination type must be a list, got {dst.name}"
            )

        assert dst.elem
        if not dst.elem.shape.is_simple:
            raise ShapeMismatchError(
                f"cannot convert from str to {dst.name}, the element's type must be "
                "a simple type"
            )

        result: list[Any] = []
        for i, part in enumerate(self.config.split_string(src)):
            try:
                result.append(self.simple_to_simple(part, dst.elem))
            except ConversionError as e:
                raise FieldConversionError(
                    i, e, f"cannot convert to {dst.name}, at index {i}"
                ) from e

        return _new_sequence(result, dst)

    @wrap_errors
    def slice_to_slice(self, src: Any, dst_type: Any, /) -> Any:
        """
        Convert each element of a list or tuple to the destination's element type.
        """
        dst = describe_type(dst_type)

        if src is None:
            raise NilSourceError("the source value should not be None")

        if not isinstance(src, (list, tuple)):
            raise ShapeMismatchError(
                f"the source value must be a list, got {type(src).__name__}"
            )

        if dst.shape is not Shape.SLICE:
            raise ShapeMismatchError(
                f"the destination type must be a list, got {dst.name}"
            )

        assert dst.elem
        result: list[Any] = []
        for i, elem in enumerate(src):
            try:
                result.append(self.convert_type(elem, dst.elem))
            except ConversionError as e:
                raise FieldConversionError(
                    i, e, f"cannot convert to {dst.name}, at index {i}"
                ) from e

        return _new_sequence(result, dst)

    @wrap_errors
    def map_to_map(self, src: Any, dst_type: Any, /) -> dict[Any, Any]:
        """
        Convert each key and value of a mapping to the destination's key and value
        types.
        """
        dst = describe_type(dst_type)

        if src is None:
            raise NilSourceError("the source value should not be None")

        if not isinstance(src, Mapping):
            raise ShapeMismatchError(
                f"the source value must be a mapping, got {type(src).__name__}"
            )

        if dst.shape is not Shape.MAP:
            raise ShapeMismatchError(
                f"the destination type must be a dict, got {dst.name}"
            )

        assert dst.key and dst.elem
        result: dict[Any, Any] = {}
        for key, value in src.items():
            try:
                dst_key = self.convert_type(key, dst.key)
            except ConversionError as e:
                raise FieldConversionError(
                    str(key), e, f"cannot convert key {key!r} to {dst.key.name}"
                ) from e

            try:
                dst_value = self.convert_type(value, dst.elem)
            except ConversionError as e:
                raise FieldConversionError(
                    str(key),
                    e,
                    f"cannot convert value of key {key!r} to {dst.elem.name}",
                ) from e

            result[dst_key] = dst_value

        return result

    @wrap_errors
    def map_to_record(self, src: Any, dst_type: Any, /) -> Any:
        """
        Create a record from a mapping with `str` keys. Each key is matched to a
        field by the configured field matcher; unmatched keys are ignored and
        unmatched fields get their default or zero value.
        """
        dst = describe_type(dst_type)

        if src is None:
            raise NilSourceError("the source value should not be None")

        if not isinstance(src, Mapping):
            raise ShapeMismatchError(
                f"the source value must be a mapping, got {type(src).__name__}"
            )

        if dst.shape is not Shape.RECORD:
            raise ShapeMismatchError(
                f"the destination type must be a record, got {dst.name}"
            )

        if bad_keys := [k for k in src if not isinstance(k, str)]:
            raise ShapeMismatchError(
                "when converting a mapping to a record, the keys must be str, got "
                f"{describe_value(bad_keys[0])}"
            )

        return self.__build_record(src.items(), dst)

    @wrap_errors
    def record_to_map(self, src: Any, dst_type: Any = STRING_MAP, /) -> dict[str, Any]:
        """
        Convert a record to a dict keyed by field names, or tag values if tags are
        configured:

        - Nested records are converted recursively.
        - Lists are rebuilt with their elements converted recursively.
        - Mappings are rebuilt with `str` keys; `None` values are dropped.
        - `Ref` values are dereferenced; fields which are `None` are dropped.
        - Simple values are kept as-is.

        If the destination's value type is not `Any`, the resulting dict is
        converted further via `map_to_map()`.
        """
        dst = describe_type(dst_type)

        if src is None:
            raise NilSourceError("the source value should not be None")

        if dst.shape is not Shape.MAP:
            raise ShapeMismatchError(
                f"the destination type must be a dict, got {dst.name}"
            )

        assert dst.key and dst.elem
        if dst.key.shape is not Shape.ANY and dst.key.kind is not Kind.STRING:
            raise ShapeMismatchError(
                "when converting a record to a dict, the key type must be str, got "
                f"{dst.key.name}"
            )

        result = self.__fold_record(src)
        if dst.elem.shape is Shape.ANY:
            return result
        return self.map_to_map(result, dst)

    @wrap_errors
    def record_to_record(self, src: Any, dst_type: Any, /) -> Any:
        """
        Create a record from the fields of another record; source fields are
        matched to destination fields by name. Converting a record to its own type
        makes a deep copy.
        """
        dst = describe_type(dst_type)

        if src is None:
            raise NilSourceError("the source value should not be None")

        if not is_record_type(type(src)):
            raise ShapeMismatchError(
                f"the source value must be a record, got {type(src).__name__}"
            )

        if dst.shape is not Shape.RECORD:
            raise ShapeMismatchError(
                f"the destination type must be a record, got {dst.name}"
            )

        walker = get_field_walker(type(src), self.config.matcher_creator.tag_name)
        return self.__build_record(
            ((f.external_name, v) for f, v in walker.walk_values(src)), dst
        )

    def __dispatch(self, value: Any, dst: TypeDescriptor) -> Any:
        """
        Convert a non-`None` value to a destination type without pointer layers.
        """
        if dst.shape is Shape.ANY:
            return value

        if dst.shape is Shape.UNION:
            return self.__convert_union(value, dst)

        src_shape = shape_of(value)
        conversion = _DISPATCH.get((src_shape, dst.shape))

        # only strings can be split into lists
        if conversion is Converter.string_to_slice and not isinstance(value, str):
            conversion = None

        if conversion is None:
            raise ShapeMismatchError(
                f"cannot convert {describe_value(value)} to {dst.name}"
            )

        return conversion(self, value, dst)

    def __convert_union(self, value: Any, dst: TypeDescriptor) -> Any:
        errors: list[str] = []
        for option in dst.options:
            try:
                return self.convert_type(value, option)
            except ConversionError as e:
                errors.append(f"{option.name}: {e}")

        raise ShapeMismatchError(
            f"cannot convert {describe_value(value)} to {dst.name}: "
            + "; ".join(errors)
        )

    def __to_primitive(self, src: Any, kind: Kind) -> Any:
        if is_primitive(src):
            return primitive_to_primitive(src, kind)
        if isinstance(src, datetime.datetime):
            if kind is Kind.STRING:
                return format_time(src, self.config.time_formatter)
            return time_to_primitive(src, kind)
        raise ShapeMismatchError(
            f"cannot convert {describe_value(src)} to {kind.value}"
        )

    def __to_time(self, src: Any) -> datetime.datetime:
        if isinstance(src, datetime.datetime):
            return src
        if isinstance(src, str):
            return parse_time(src, self.config.time_parser)
        if is_primitive(src):
            return primitive_to_time(src)
        raise ShapeMismatchError(
            f"cannot convert {describe_value(src)} to datetime"
        )

    def __build_record(
        self, items: Iterable[tuple[str, Any]], dst: TypeDescriptor
    ) -> Any:
        """
        Create a record of the destination type from pairs of external names and
        values; the first value matched to a field wins.
        """
        assert dst.concrete_type
        matcher = self.config.matcher_creator.get_matcher(dst.concrete_type)
        assignments: list[tuple[FieldInfo, Any]] = []
        assigned: set[tuple[str, ...]] = set()

        for name, value in items:
            field = matcher.match_field(name)
            if field is None or field.index_path in assigned:
                continue
            assigned.add(field.index_path)

            try:
                converted = self.convert_type(value, field.annotation)
            except ConversionError as e:
                raise FieldConversionError(
                    field.path, e, f"error on converting field '{field.path}'"
                ) from e

            assignments.append((field, converted))

        return get_field_walker(dst.concrete_type).build(assignments)

    def __fold_record(self, src: Any) -> dict[str, Any]:
        if not is_record_type(type(src)):
            raise ShapeMismatchError(
                f"the source value must be a record, got {type(src).__name__}"
            )

        walker = get_field_walker(type(src), self.config.matcher_creator.tag_name)
        result: dict[str, Any] = {}

        for field, value in walker.walk_values(src):
            try:
                folded = self.__fold_value(value)
            except ConversionError as e:
                raise FieldConversionError(
                    field.external_name,
                    e,
                    f"error on converting field '{field.external_name}'",
                ) from e

            if folded is not None:
                result[field.external_name] = folded

        return result

    def __fold_value(self, value: Any) -> Any:
        """
        Convert a field value of a record to a value of a `dict[str, Any]`, or
        `None` if it should be omitted.
        """
        value = deref(value)

        if value is None:
            return None

        if is_record_type(type(value)):
            return self.__fold_record(value)

        if isinstance(value, (list, tuple)):
            elems: list[Any] = []
            for i, elem in enumerate(value):
                try:
                    elems.append(self.__fold_value(elem))
                except ConversionError as e:
                    raise FieldConversionError(i, e, f"index {i}") from e
            return elems

        if isinstance(value, Mapping):
            entries: dict[str, Any] = {}
            for key, elem in value.items():
                try:
                    dst_key = self.convert_type(key, str)
                except ConversionError as e:
                    raise FieldConversionError(str(key), e, f"key {key!r}") from e

                try:
                    folded = self.__fold_value(elem)
                except ConversionError as e:
                    raise FieldConversionError(
                        dst_key, e, f"value of key {dst_key!r}"
                    ) from e

                if folded is not None:
                    entries[dst_key] = folded
            return entries

        if shape_of(value).is_simple:
            return value

        raise ShapeMismatchError(f"must be a simple type, got {type(value).__name__}")


type _Conversion = Callable[[Converter, Any, TypeDescriptor], Any]

_SIMPLE_SHAPES = (Shape.PRIMITIVE, Shape.TIME)

_DISPATCH: dict[tuple[Shape, Shape], _Conversion] = {
    **{
        (src, dst): Converter.simple_to_simple
        for src in _SIMPLE_SHAPES
        for dst in _SIMPLE_SHAPES
    },
    (Shape.PRIMITIVE, Shape.SLICE): Converter.string_to_slice,
    (Shape.SLICE, Shape.SLICE): Converter.slice_to_slice,
    (Shape.MAP, Shape.MAP): Converter.map_to_map,
    (Shape.MAP, Shape.RECORD): Converter.map_to_record,
    (Shape.RECORD, Shape.MAP): Converter.record_to_map,
    (Shape.RECORD, Shape.RECORD): Converter.record_to_record,
}
"""
Conversion by source and destination shape.
"""


def _flatten_empty_key(value: Any) -> Any:
    """
    Get the value of a mapping whose only key is `""`, else `None`.
    """
    if isinstance(value, Mapping) and len(value) == 1:
        return value.get("")
    return None


def _restore_subclass(value: Any, dst: TypeDescriptor) -> Any:
    """
    Re-create a primitive value as the destination's subclass, e.g. an `IntEnum`.
    """
    cls = dst.concrete_type
    if dst.shape is not Shape.PRIMITIVE or cls is None or type(value) is cls:
        return value

    try:
        return cls(value)
    except (ValueError, TypeError) as e:
        raise ShapeMismatchError(
            f"cannot convert {describe_value(value)} to {dst.name}: {e}"
        ) from e


def _new_sequence(elems: list[Any], dst: TypeDescriptor) -> Any:
    if dst.concrete_type is tuple:
        return tuple(elems)
    return elems


def _callable_name(func: Callable[..., Any]) -> str:
    return getattr(func, "__qualname__", None) or repr(func)

"""
Classification of destination types and source values into shapes, which drive the
dispatch of conversions.
"""

from __future__ import annotations

import dataclasses
import datetime
import functools
from collections.abc import Mapping, MutableMapping, MutableSequence, Sequence
from dataclasses import dataclass
from enum import Enum, auto
from typing import Any, Union, get_args, get_origin

from ..ref import Ref
from ..typedefs import Kind
from .annotations import (
    flatten_union,
    is_none,
    is_union,
    normalize_annotation,
    type_name,
)

__all__ = [
    "Shape",
    "LayerKind",
    "PointerLayer",
    "TypeDescriptor",
    "describe_type",
    "shape_of",
    "is_record_type",
    "zero_value",
]

ZERO_TIME = datetime.datetime(1, 1, 1, tzinfo=datetime.UTC)
"""
Zero value of time fields.
"""


class Shape(Enum):
    """
    Category of a type or value used to select a conversion strategy.
    """

    ANY = auto()
    PRIMITIVE = auto()
    TIME = auto()
    SLICE = auto()
    MAP = auto()
    RECORD = auto()
    POINTER = auto()
    UNION = auto()
    UNSUPPORTED = auto()

    @property
    def is_simple(self) -> bool:
        return self in (Shape.PRIMITIVE, Shape.TIME)


class LayerKind(Enum):
    REF = auto()
    """
    Layer created by `Ref[T]`; a value is wrapped in a new cell.
    """

    OPTIONAL = auto()
    """
    Layer created by `T | None`; a value is kept as-is.
    """


@dataclass(frozen=True)
class PointerLayer:
    """
    One level of indirection of a pointer type.
    """

    kind: LayerKind
    annotation: Any
    """
    The layer's annotation, e.g. `Ref[int]`; called to create a cell so the cell
    remembers its parameterization.
    """

    def wrap(self, value: Any) -> Any:
        if self.kind is LayerKind.REF:
            return self.annotation(value)
        return value


@dataclass(frozen=True, eq=False)
class TypeDescriptor:
    """
    Classification of an annotation, derived on demand and never mutated.
    """

    shape: Shape
    annotation: Any
    """
    Annotation as passed by the user.
    """

    concrete_type: type | None = None
    """
    Class of values of this type, if it can be determined.
    """

    kind: Kind | None = None
    """
    Primitive kind, for `Shape.PRIMITIVE`.
    """

    elem: TypeDescriptor | None = None
    """
    Element type of a slice, value type of a map, or the target type of a pointer.
    """

    key: TypeDescriptor | None = None
    """
    Key type of a map.
    """

    options: tuple[TypeDescriptor, ...] = ()
    """
    Members of a union.
    """

    layers: tuple[PointerLayer, ...] = ()
    """
    Indirection layers of a pointer, outermost first.
    """

    def __repr__(self) -> str:
        return f"TypeDescriptor({self.shape.name}, {self.name})"

    @property
    def name(self) -> str:
        if self.kind is not None and self.concrete_type is self.kind.base_type:
            return self.kind.value
        return type_name(self.annotation)

    @property
    def depth(self) -> int:
        return len(self.layers)

    @property
    def base(self) -> TypeDescriptor:
        """
        Descriptor with the pointer layers stripped.
        """
        if self.shape is Shape.POINTER:
            assert self.elem
            return self.elem
        return self

    def wrap(self, value: Any) -> Any:
        """
        Re-wrap a value of the base type in this type's pointer layers.
        """
        for layer in reversed(self.layers):
            value = layer.wrap(value)
        return value


ANY_DESCRIPTOR = TypeDescriptor(Shape.ANY, Any, object)


def describe_type(annotation: Any, /) -> TypeDescriptor:
    """
    Classify an annotation. Results are memoized for hashable annotations.
    """
    if isinstance(annotation, TypeDescriptor):
        return annotation
    try:
        hash(annotation)
    except TypeError:
        # unhashable annotation, e.g. Annotated[] with a dict as extra
        return _describe(annotation)
    return _describe_cached(annotation)


@functools.cache
def _describe_cached(annotation: Any) -> TypeDescriptor:
    return _describe(annotation)


def _describe(annotation: Any) -> TypeDescriptor:
    raw, extras = normalize_annotation(annotation)

    if raw is Any or raw is object:
        return TypeDescriptor(Shape.ANY, annotation, object)

    if is_union(raw):
        return _describe_union(annotation, raw)

    origin = get_origin(raw) or raw
    args = get_args(raw)

    if origin is Ref:
        elem = describe_type(args[0] if args else Any)
        layer = PointerLayer(LayerKind.REF, raw)
        return _pointer(annotation, layer, elem)

    if not isinstance(origin, type):
        return TypeDescriptor(Shape.UNSUPPORTED, annotation)

    if (kind := _primitive_kind(origin, extras)) is not None:
        return TypeDescriptor(Shape.PRIMITIVE, annotation, origin, kind=kind)

    if issubclass(origin, datetime.datetime):
        return TypeDescriptor(Shape.TIME, annotation, origin)

    if dataclasses.is_dataclass(origin):
        return TypeDescriptor(Shape.RECORD, annotation, origin)

    if origin in (dict, Mapping, MutableMapping):
        key, value = args if len(args) == 2 else (Any, Any)
        return TypeDescriptor(
            Shape.MAP,
            annotation,
            dict,
            key=describe_type(key),
            elem=describe_type(value),
        )

    if origin in (list, Sequence, MutableSequence):
        elem = args[0] if args else Any
        return TypeDescriptor(Shape.SLICE, annotation, list, elem=describe_type(elem))

    if origin is tuple:
        # only variadic tuples are slices
        if not args or (len(args) == 2 and args[1] is ...):
            elem = args[0] if args else Any
            return TypeDescriptor(
                Shape.SLICE, annotation, tuple, elem=describe_type(elem)
            )

    return TypeDescriptor(Shape.UNSUPPORTED, annotation, origin)


def _describe_union(annotation: Any, raw: Any) -> TypeDescriptor:
    members = flatten_union(raw)
    non_none = tuple(m for m in members if not is_none(m))

    if len(non_none) < len(members):
        # optional: a pointer layer around the remaining members
        inner = non_none[0] if len(non_none) == 1 else Union[non_none]
        layer = PointerLayer(LayerKind.OPTIONAL, annotation)
        return _pointer(annotation, layer, describe_type(inner))

    return TypeDescriptor(
        Shape.UNION,
        annotation,
        options=tuple(describe_type(m) for m in non_none),
    )


def _pointer(
    annotation: Any, layer: PointerLayer, elem: TypeDescriptor
) -> TypeDescriptor:
    # merge nested pointers so elem is always the base type
    if elem.shape is Shape.POINTER:
        assert elem.elem
        return TypeDescriptor(
            Shape.POINTER, annotation, elem=elem.elem, layers=(layer, *elem.layers)
        )
    return TypeDescriptor(Shape.POINTER, annotation, elem=elem, layers=(layer,))


def _primitive_kind(origin: type, extras: tuple[Any, ...]) -> Kind | None:
    if issubclass(origin, bool):
        base_kind = Kind.BOOL
    elif issubclass(origin, int):
        base_kind = Kind.INT
    elif issubclass(origin, float):
        base_kind = Kind.FLOAT64
    elif issubclass(origin, complex):
        base_kind = Kind.COMPLEX128
    elif issubclass(origin, str):
        base_kind = Kind.STRING
    else:
        return None

    # sized kind from Annotated[int, Kind.INT8] and friends
    kind = next((e for e in extras if isinstance(e, Kind)), base_kind)
    if kind.base_type is not base_kind.base_type:
        raise TypeError(f"Kind {kind} is not applicable to {origin.__name__}")
    return kind


def shape_of(value: Any, /) -> Shape:
    """
    Classify a source value. `None` and `Ref` should be dereferenced beforehand.
    """
    if isinstance(value, (bool, int, float, complex, str)):
        return Shape.PRIMITIVE
    if isinstance(value, datetime.datetime):
        return Shape.TIME
    if isinstance(value, (list, tuple)):
        return Shape.SLICE
    if isinstance(value, Mapping):
        return Shape.MAP
    if is_record_type(type(value)):
        return Shape.RECORD
    if isinstance(value, Ref):
        return Shape.POINTER
    return Shape.UNSUPPORTED


def is_record_type(obj: Any, /) -> bool:
    return isinstance(obj, type) and dataclasses.is_dataclass(obj)


def zero_value(descriptor: TypeDescriptor | Any, /) -> Any:
    """
    Zero value of a type: `False`, `0`, `""`, an empty collection, a record with
    all fields at their defaults or zero values, or `None` for pointers and
    unsupported types.
    """
    descriptor_ = describe_type(descriptor)

    match descriptor_.shape:
        case Shape.PRIMITIVE:
            assert descriptor_.kind
            return descriptor_.kind.base_type()
        case Shape.TIME:
            return ZERO_TIME
        case Shape.SLICE:
            assert descriptor_.concrete_type
            return descriptor_.concrete_type()
        case Shape.MAP:
            return {}
        case Shape.RECORD:
            from ..fields.walker import get_field_walker

            return get_field_walker(descriptor_.concrete_type).build(())
        case Shape.UNION:
            return zero_value(descriptor_.options[0])
        case _:
            return None

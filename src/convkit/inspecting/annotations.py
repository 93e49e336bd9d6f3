"""
Utilities to normalize type annotations before classification.
"""

from __future__ import annotations

from types import GenericAlias, NoneType, UnionType
from typing import (
    Annotated,
    Any,
    NewType,
    TypeAliasType,
    Union,
    get_args,
    get_origin,
)

__all__ = [
    "is_union",
    "is_none",
    "unwrap_alias",
    "split_annotated",
    "normalize_annotation",
    "flatten_union",
    "type_name",
]


def is_union(annotation: Any, /) -> bool:
    """
    Check whether annotation is a union, accommodating both `int | str`
    and `Union[int, str]`.
    """
    return isinstance(annotation, UnionType) or get_origin(annotation) is Union


def is_none(annotation: Any, /) -> bool:
    return annotation is None or annotation is NoneType


def unwrap_alias(annotation: Any, /) -> Any:
    """
    If annotation is a `TypeAlias` or `NewType`, extract the corresponding
    definition.
    """
    while True:
        if isinstance(annotation, TypeAliasType):
            annotation = annotation.__value__
        elif isinstance(annotation, NewType):
            annotation = annotation.__supertype__
        elif isinstance(annotation, GenericAlias) and isinstance(
            get_origin(annotation), TypeAliasType
        ):
            # have e.g. MyType[T] from `type MyType[T] = list[T]`
            annotation = get_origin(annotation).__value__
        else:
            return annotation


def split_annotated(annotation: Any, /) -> tuple[Any, tuple[Any, ...]]:
    """
    If annotation is an `Annotated`, split it into the wrapped annotation and extras.
    """
    if get_origin(annotation) is Annotated:
        args = get_args(annotation)
        assert len(args)
        return args[0], tuple(args[1:])
    return annotation, ()


def normalize_annotation(annotation: Any, /) -> tuple[Any, tuple[Any, ...]]:
    """
    Fully normalize annotation, returning the bare annotation and the extras
    collected from any `Annotated[]` layers:

    - Unwrap aliases and `NewType`
    - Unwrap `Annotated`, possibly nested within aliases
    """
    extras: tuple[Any, ...] = ()
    annotation_ = unwrap_alias(annotation)
    while get_origin(annotation_) is Annotated:
        annotation_, extras_ = split_annotated(annotation_)
        extras += extras_
        annotation_ = unwrap_alias(annotation_)  # Annotated[] might wrap an alias
    return annotation_, extras


def flatten_union(annotation: Any, /) -> tuple[Any, ...]:
    """
    If annotation is a union, recursively flatten it into its constituent types;
    otherwise return the annotation as-is.

    Unwraps aliases at each recursion; keeps `Annotated[]` members intact.
    """
    members: list[Any] = []
    annotation_ = unwrap_alias(annotation)

    if is_union(annotation_):
        for a in get_args(annotation_):
            members += flatten_union(a)
    else:
        members.append(annotation_)

    return tuple(members)


def type_name(annotation: Any, /) -> str:
    """
    Readable name of an annotation for error messages.
    """
    if isinstance(annotation, type) and not isinstance(annotation, GenericAlias):
        return annotation.__qualname__
    return repr(annotation).replace("typing.", "")

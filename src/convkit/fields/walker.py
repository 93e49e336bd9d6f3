"""
Breadth-first traversal of record fields, flattening embedded records.
"""

from __future__ import annotations

import dataclasses
import functools
import logging
import threading
from collections import deque
from collections.abc import Iterable, Iterator
from dataclasses import MISSING, dataclass
from typing import Any, get_type_hints

from ..exceptions import PreconditionError
from ..inspecting.shapes import Shape, describe_type, zero_value
from ..ref import deref

__all__ = [
    "EMBEDDED",
    "FieldInfo",
    "FieldWalker",
    "embedded",
    "get_field_walker",
]

EMBEDDED = "convkit.embedded"
"""
Metadata key marking a field as embedded; the fields of an embedded record are
promoted into the enclosing record.
"""

logger = logging.getLogger(__name__)


def embedded(**kwargs: Any) -> Any:
    """
    Declare an embedded field, taking the same arguments as `dataclasses.field()`.
    The field's type must be a record or a pointer to a record.
    """
    metadata = dict(kwargs.pop("metadata", None) or {})
    metadata[EMBEDDED] = True
    return dataclasses.field(metadata=metadata, **kwargs)


@dataclass(frozen=True, kw_only=True)
class FieldInfo:
    """
    A field reachable from a record, possibly through embedded records.
    """

    name: str
    """
    Attribute name of the field.
    """

    external_name: str
    """
    Name used to match the field: the tag value if tagged, else the attribute
    name.
    """

    index_path: tuple[str, ...]
    """
    Attribute names leading from the root record to this field.
    """

    annotation: Any
    """
    Declared type of the field.
    """

    tag_value: str = ""
    """
    Value of the configured tag, or `""` if the field isn't tagged.
    """

    @property
    def path(self) -> str:
        """
        Dot-separated index path, e.g. `Inner.value`.
        """
        return ".".join(self.index_path)


class FieldWalker:
    """
    Enumerates the fields of a record type in a fixed order. At each level of
    embedding:

    - Tagged fields come first, named by their tag value; embedded records which
      are tagged are not expanded.
    - Untagged fields follow in declaration order, unless a field of the same
      name was already seen.
    - Embedded records are expanded after the current level, in the order they
      were found.

    Unexported fields, i.e. those whose names start with `_`, are skipped.
    Obtain instances via `get_field_walker()`.
    """

    record_type: type
    tag_name: str

    __fields: tuple[FieldInfo, ...] | None
    __lock: threading.Lock

    def __init__(self, record_type: type, tag_name: str = ""):
        self.record_type = record_type
        self.tag_name = tag_name
        self.__fields = None
        self.__lock = threading.Lock()

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}({self.record_type.__qualname__}, "
            f"tag_name={self.tag_name!r})"
        )

    @property
    def fields(self) -> tuple[FieldInfo, ...]:
        if self.__fields is None:
            with self.__lock:
                if self.__fields is None:
                    self.__fields = self.__collect()
        return self.__fields

    def walk_fields(self) -> Iterator[FieldInfo]:
        yield from self.fields

    def walk_values(self, obj: Any, /) -> Iterator[tuple[FieldInfo, Any]]:
        """
        Walk the field values of a record instance. Fields below an embedded
        pointer which is `None` are skipped; nothing is yielded for `None`.
        """
        obj = deref(obj)
        if obj is None:
            return

        for field in self.fields:
            value = obj
            for name in field.index_path[:-1]:
                value = deref(getattr(value, name))
                if value is None:
                    break
            else:
                yield field, getattr(value, field.index_path[-1])

    def build(self, assignments: Iterable[tuple[FieldInfo, Any]], /) -> Any:
        """
        Create a record from the given field values. Unassigned fields get their
        default or the zero value of their type; embedded pointers are allocated
        only if a field below them is assigned.
        """
        tree = _Subtree()
        for field, value in assignments:
            node = tree
            for name in field.index_path[:-1]:
                node = node.setdefault(name, _Subtree())
            node[field.index_path[-1]] = value
        return _instantiate(self.record_type, tree)

    def __collect(self) -> tuple[FieldInfo, ...]:
        fields: list[FieldInfo] = []
        visited: set[str] = set()
        queue: deque[tuple[tuple[str, ...], type]] = deque([((), self.record_type)])

        while queue:
            prefix, record_type = queue.popleft()
            hints = get_field_types(record_type)
            exported = [
                f for f in dataclasses.fields(record_type) if not f.name.startswith("_")
            ]
            tagged: set[str] = set()

            if self.tag_name:
                for f in exported:
                    tag = f.metadata.get(self.tag_name)
                    if not tag:
                        continue

                    tagged.add(f.name)
                    if tag in visited:
                        continue

                    visited.add(tag)
                    fields.append(
                        FieldInfo(
                            name=f.name,
                            external_name=tag,
                            index_path=(*prefix, f.name),
                            annotation=hints.get(f.name, Any),
                            tag_value=tag,
                        )
                    )

            for f in exported:
                if f.name in tagged or f.name in visited:
                    continue

                index_path = (*prefix, f.name)
                annotation = hints.get(f.name, Any)

                if f.metadata.get(EMBEDDED):
                    base = describe_type(annotation).base
                    if base.shape is Shape.RECORD:
                        assert base.concrete_type
                        queue.append((index_path, base.concrete_type))
                        continue

                visited.add(f.name)
                fields.append(
                    FieldInfo(
                        name=f.name,
                        external_name=f.name,
                        index_path=index_path,
                        annotation=annotation,
                    )
                )

        logger.debug(
            "Collected %d fields of %s: %s",
            len(fields),
            self.record_type.__qualname__,
            ", ".join(f.path for f in fields),
        )
        return tuple(fields)


class _Subtree(dict[str, Any]):
    """
    Values to assign to an embedded record, keyed by attribute name.
    """


_walkers: dict[tuple[type, str], FieldWalker] = {}
_walkers_lock = threading.Lock()


def get_field_walker(record_type: type, tag_name: str = "") -> FieldWalker:
    """
    Get the walker for a record type and tag name, creating it on first use.
    """
    key = (record_type, tag_name)
    if (walker := _walkers.get(key)) is None:
        with _walkers_lock:
            walker = _walkers.setdefault(key, FieldWalker(record_type, tag_name))
    return walker


@functools.cache
def get_field_types(record_type: type) -> dict[str, Any]:
    """
    Get the resolved annotations of a record's fields, including `Annotated[]`
    extras.
    """
    return get_type_hints(record_type, include_extras=True)


def _instantiate(record_type: type, tree: _Subtree) -> Any:
    hints = get_field_types(record_type)
    kwargs: dict[str, Any] = {}
    deferred: dict[str, Any] = {}

    for f in dataclasses.fields(record_type):
        annotation = hints.get(f.name, Any)

        if f.name in tree:
            value = tree[f.name]
            if isinstance(value, _Subtree):
                descriptor = describe_type(annotation)
                assert descriptor.base.concrete_type
                value = descriptor.wrap(
                    _instantiate(descriptor.base.concrete_type, value)
                )
        elif not f.init or _has_default(f):
            continue
        else:
            value = zero_value(annotation)

        if f.init:
            kwargs[f.name] = value
        else:
            deferred[f.name] = value

    obj = record_type(**kwargs)

    for name, value in deferred.items():
        try:
            setattr(obj, name, value)
        except AttributeError as e:
            raise PreconditionError(
                f"convkit.build: cannot set field '{name}' of "
                f"{record_type.__qualname__}"
            ) from e

    return obj


def _has_default(f: dataclasses.Field[Any]) -> bool:
    return f.default is not MISSING or f.default_factory is not MISSING

"""
Mutable reference cells, standing in for pointers.
"""

from __future__ import annotations

from typing import Any, get_args

__all__ = [
    "Ref",
    "deref",
]


class Ref[T]:
    """
    Mutable cell holding a value of type `T`, or `None` when nil.

    Used as a destination type to request pointer layers (`Ref[Ref[int]]` is a
    pointer to a pointer to an int) and as the writable destination of
    `convert()`. The target type is taken from the parameterization used to create
    the cell, e.g. `Ref[int]()`, falling back to the type of the held value.
    """

    value: T | None
    """
    The referenced value; `None` if the reference is nil.
    """

    def __init__(self, value: T | None = None, /):
        self.value = value

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.value!r})"

    def __eq__(self, other: Any) -> bool:
        if not isinstance(other, Ref):
            return NotImplemented
        return self.value == other.value

    __hash__ = None  # type: ignore[assignment]

    @property
    def target_type(self) -> Any:
        """
        Type of the referenced value: the type parameter if the cell was created as
        `Ref[T](...)`, else the type of the current value, else `Any`.
        """
        # set by typing upon instantiating a parameterized generic
        if (orig_class := getattr(self, "__orig_class__", None)) is not None:
            if args := get_args(orig_class):
                return args[0]
        if self.value is not None:
            return type(self.value)
        return Any


def deref(value: Any, /) -> Any:
    """
    Follow a chain of references to the underlying value; `None` if any reference
    along the chain is nil.
    """
    while isinstance(value, Ref):
        value = value.value
    return value

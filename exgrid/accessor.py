"""Column accessors.

A column reads its cell value from a row through an accessor. There are two
kinds of accessors:

- `FieldPath` reads a (possibly nested) field using dot notation, like
  `patient.full_name`. Rows can be mappings or plain objects.
- `Derived` computes the value by calling a function with the row.

Both are resolved through `resolve_accessor()`. A field that is missing from
the row resolves to the `MISSING` sentinel so that the presentation layer can
show a placeholder instead of failing.
"""

import logging
from collections.abc import Mapping
from typing import Any, Callable, Union

from attrs import define, field

logger = logging.getLogger(__name__)


class _Missing:
    """Marks a value that could not be located in a row."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "MISSING"

    def __bool__(self) -> bool:
        return False


MISSING: Any = _Missing()


@define(frozen=True)
class FieldPath:
    """Reads a value from a row by following a dot-separated path.

    Attributes:
        path: The path to the value; each part is either a key in a mapping
            or an attribute name.
    """

    path: str = field()

    @path.validator
    def _check_path(self, attribute, value):
        if not isinstance(value, str) or not value.strip():
            raise ValueError("A field path must be a non-empty string")

    @property
    def parts(self) -> tuple[str, ...]:
        return tuple(self.path.split("."))


@define(frozen=True)
class Derived:
    """Computes a value from the whole row.

    Attributes:
        func: Called with the row; the result is the cell value.
        name: Optional name used when the projection must be described
            without the function (for example in an export payload).
    """

    func: Callable[[Any], Any] = field()
    name: str = field(default="")

    @func.validator
    def _check_func(self, attribute, value):
        if not callable(value):
            raise ValueError("A derived accessor needs a callable")


Accessor = Union[FieldPath, Derived]


def as_accessor(value: Union[str, Callable[[Any], Any], Accessor]) -> Accessor:
    """Convert the value given by the host into an accessor.

    This is where strings and functions become tagged accessors; everything
    downstream works with `FieldPath` and `Derived` only.

    Args:
        value: A field path, a function of the row or an accessor.

    Returns:
        The accessor.
    """
    if isinstance(value, (FieldPath, Derived)):
        return value
    if isinstance(value, str):
        return FieldPath(value)
    if callable(value):
        return Derived(value, name=getattr(value, "__name__", ""))
    raise ValueError(f"Cannot use {value!r} as a column accessor")


def _read_part(source: Any, part: str) -> Any:
    if isinstance(source, Mapping):
        return source.get(part, MISSING)
    return getattr(source, part, MISSING)


def resolve_accessor(accessor: Accessor, row: Any) -> Any:
    """Resolve the value of an accessor for a row.

    Args:
        accessor: The accessor to evaluate.
        row: The row; a mapping or an object.

    Returns:
        The value, or `MISSING` when a field along the path does not exist.
        Exceptions raised by derived accessors are propagated.
    """
    if isinstance(accessor, Derived):
        return accessor.func(row)

    crt = row
    for part in accessor.parts:
        if crt is None or crt is MISSING:
            return MISSING
        crt = _read_part(crt, part)
    return crt

from enum import StrEnum
from typing import Any, Callable, Literal, Optional, Union

from attrs import define, field

from exgrid.accessor import Accessor, as_accessor
from exgrid.sort import SortDirection


class WarningSeverity(StrEnum):
    """Visual severity of a cell warning.

    Attributes:
        INFO: Informational note.
        WARNING: Something the user should look at.
        ERROR: The value is known to be wrong.
    """

    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


@define(frozen=True)
class CellWarning:
    """A warning displayed inside a table cell.

    Attributes:
        message: Short message shown in the tooltip or inline.
        severity: Drives the icon and the color.
    """

    message: str
    severity: WarningSeverity = field(
        default=WarningSeverity.WARNING, converter=WarningSeverity
    )


@define(frozen=True)
class FilterDescriptor:
    """Describes how a column participates in filtering.

    Attributes:
        filter_id: The key sent to the data source when filtering by this
            column. Defaults to the key of the column.
        lookup_name: Named lookup source for select-style filters (for
            example `blood_types`).
        filter_only: The entry participates in filtering but it is never
            rendered as a column in the header row.
    """

    filter_id: Optional[str] = field(default=None)
    lookup_name: Optional[str] = field(default=None)
    filter_only: bool = field(default=False)


def _check_key(instance, attribute, value):
    if not isinstance(value, str) or not value:
        raise ValueError("A column key must be a non-empty string")


@define(frozen=True, kw_only=True)
class ColumnSchema:
    """Immutable definition of a column, supplied by the host.

    Attributes:
        key: Unique identifier of the column inside its schema set.
        heading: The header label shown to the user.
        accessor: How the cell value is read from a row. Strings are
            converted to field paths and functions to derived accessors.
            Defaults to the key of the column.
        is_numeric: The column is right-aligned.
        sortable: The user can sort by this column.
        sort_key: The field name sent to the data source when sorting by
            this column. Defaults to the key.
        value_formatter: Turns the raw value into the display string. It
            receives the value and the row.
        filter: Filter configuration; `None` if the column is not
            filterable.
        warning_fn: Returns a `CellWarning` for rows that should be flagged,
            `None` otherwise.
        width: Fixed or minimum width (any CSS-like value).
        pinned: Pins the column to the left or right edge.
        default_visible: Whether the column is shown when the user has not
            changed the column visibility.
    """

    key: str = field(validator=_check_key)
    heading: str = field(default="")
    accessor: Accessor = field(default=None)
    is_numeric: bool = field(default=False)
    sortable: bool = field(default=False)
    sort_key: Optional[str] = field(default=None)
    value_formatter: Optional[Callable[[Any, Any], str]] = field(
        default=None, repr=False
    )
    filter: Optional[FilterDescriptor] = field(default=None)
    warning_fn: Optional[Callable[[Any], Optional[CellWarning]]] = field(
        default=None, repr=False
    )
    width: Optional[Union[str, int, float]] = field(default=None)
    pinned: Optional[Literal["left", "right"]] = field(default=None)
    default_visible: bool = field(default=True)

    def __attrs_post_init__(self) -> None:
        """Provide dynamic defaults."""
        if self.accessor is None:
            object.__setattr__(self, "accessor", as_accessor(self.key))
        else:
            object.__setattr__(self, "accessor", as_accessor(self.accessor))
        if not self.heading:
            object.__setattr__(
                self, "heading", self.key.replace("_", " ").title()
            )

    @property
    def effective_sort_key(self) -> str:
        """The field name used when sorting by this column."""
        return self.sort_key or self.key

    @property
    def filter_key(self) -> str:
        """The field name used when filtering by this column."""
        if self.filter is not None and self.filter.filter_id:
            return self.filter.filter_id
        return self.key

    @property
    def filter_only(self) -> bool:
        """True if the column exists for filtering only."""
        return self.filter is not None and self.filter.filter_only

    @property
    def filterable(self) -> bool:
        return self.filter is not None


@define(kw_only=True)
class ColumnMeta:
    """Runtime state of a column, owned by the column registry.

    Attributes:
        key: The key of the column schema this record belongs to.
        visible: Whether the column is currently rendered.
        is_default: Whether the column is visible by default. Resetting the
            registry restores `visible` to this value.
        sort_direction: The direction of the active sort if this column is
            the active sort column, `None` otherwise.
    """

    key: str = field(validator=_check_key)
    visible: bool = field(default=True)
    is_default: bool = field(default=True)
    sort_direction: Optional[SortDirection] = field(default=None)

"""Render-ready snapshots of a table.

The presentation layer reads a `TableView` and never looks at the slices
directly. A view is immutable; the table creates a new one on request.
"""

import logging
from enum import StrEnum
from typing import Any, List, Literal, Optional, Tuple, Union

from attrs import define, field

from exgrid.accessor import MISSING, resolve_accessor
from exgrid.column import CellWarning, ColumnSchema
from exgrid.constants import PLACEHOLDER
from exgrid.filter import Filter
from exgrid.pagination import Pagination
from exgrid.sort import SortBy, SortDirection

logger = logging.getLogger(__name__)

Align = Literal["left", "right"]


class ViewStatus(StrEnum):
    """What the presentation layer should show.

    Attributes:
        LOADING: The host is loading data; show a loading indicator
            regardless of the rows and columns.
        EMPTY: There are no rows; show the empty message instead of
            headers.
        READY: Show the table.
    """

    LOADING = "loading"
    EMPTY = "empty"
    READY = "ready"


def resolve_cell_value(column: ColumnSchema, row: Any) -> Any:
    """The raw value of a cell.

    A derived accessor that fails is treated like a missing field.
    """
    try:
        return resolve_accessor(column.accessor, row)
    except Exception as e:
        logger.warning(
            "Failed to compute the value of column %s: %s", column.key, e
        )
        return MISSING


def format_cell_value(
    column: ColumnSchema,
    value: Any,
    row: Any,
    placeholder: str = PLACEHOLDER,
) -> str:
    """The text shown in a cell.

    The value formatter of the column is used if there is one; otherwise
    the value is converted to a string. Missing and empty values, as well as
    values the formatter fails on, are shown as the placeholder.
    """
    if column.value_formatter is not None:
        try:
            text = column.value_formatter(
                None if value is MISSING else value, row
            )
        except Exception as e:
            logger.warning(
                "Failed to format the value of column %s: %s", column.key, e
            )
            return placeholder
        if text is None:
            return placeholder
        text = str(text)
        return text if text else placeholder

    if value is MISSING or value is None:
        return placeholder
    text = str(value)
    return text if text else placeholder


def cell_warning(column: ColumnSchema, row: Any) -> Optional[CellWarning]:
    """The warning attached to a cell, if any."""
    if column.warning_fn is None:
        return None
    try:
        return column.warning_fn(row)
    except Exception as e:
        logger.warning(
            "Failed to compute the warning of column %s: %s", column.key, e
        )
        return None


@define(frozen=True)
class HeaderCell:
    """A cell of the header row.

    Attributes:
        key: The key of the column.
        heading: The label.
        sortable: Activating the cell changes the sort.
        sort_direction: The direction if this is the sorted column.
        filterable: The column can be filtered.
        align: Text alignment; numeric columns are right-aligned.
        width: Fixed or minimum width.
        pinned: The edge the column is pinned to, if any.
    """

    key: str
    heading: str
    sortable: bool = False
    sort_direction: Optional[SortDirection] = None
    filterable: bool = False
    align: Align = "left"
    width: Optional[Union[str, int, float]] = None
    pinned: Optional[Literal["left", "right"]] = None

    @classmethod
    def from_schema(
        cls, schema: ColumnSchema, sort_by: Optional[SortBy]
    ) -> "HeaderCell":
        direction = None
        if sort_by is not None and sort_by.column_id == schema.key:
            direction = sort_by.direction
        return cls(
            key=schema.key,
            heading=schema.heading,
            sortable=schema.sortable,
            sort_direction=direction,
            filterable=schema.filterable,
            align="right" if schema.is_numeric else "left",
            width=schema.width,
            pinned=schema.pinned,
        )


@define(frozen=True)
class CellView:
    """A cell of a data row.

    Attributes:
        key: The key of the column.
        value: The raw value; `MISSING` if the row has no such field.
        display: The text to show.
        warning: The warning to show over the cell, if any.
        align: Text alignment.
    """

    key: str
    value: Any = field(repr=False)
    display: str
    warning: Optional[CellWarning] = None
    align: Align = "left"

    @classmethod
    def from_row(
        cls, schema: ColumnSchema, row: Any, placeholder: str = PLACEHOLDER
    ) -> "CellView":
        value = resolve_cell_value(schema, row)
        return cls(
            key=schema.key,
            value=value,
            display=format_cell_value(schema, value, row, placeholder),
            warning=cell_warning(schema, row),
            align="right" if schema.is_numeric else "left",
        )


@define(frozen=True)
class RowView:
    """A data row.

    Attributes:
        row: The row as supplied by the host.
        row_id: The identity of the row.
        selected: The row is part of the selection.
        cells: One cell for each visible column.
    """

    row: Any = field(repr=False)
    row_id: Any
    selected: bool
    cells: Tuple[CellView, ...] = field(converter=tuple)

    @property
    def has_warning(self) -> bool:
        return any(c.warning is not None for c in self.cells)


@define(frozen=True)
class PaginationView:
    """Everything the pagination controls need.

    Attributes:
        pagination: The pagination state.
        page_range: The range text (`1-20 of 47`).
        page_numbers: The window of page numbers to offer.
    """

    pagination: Pagination
    page_range: str
    page_numbers: Tuple[int, ...] = field(converter=tuple)

    @property
    def can_next_page(self) -> bool:
        return self.pagination.has_next

    @property
    def can_prev_page(self) -> bool:
        return self.pagination.has_previous

    @property
    def visible(self) -> bool:
        """Pagination controls are only shown when there are pages."""
        return self.pagination.total_pages > 0


@define(frozen=True, kw_only=True)
class TableView:
    """The render-ready state of a table.

    Attributes:
        status: Loading, empty or ready.
        message: The loading or the empty message; empty when ready.
        columns: The header cells of the visible columns. Empty unless the
            status is ready.
        rows: The rows of the current page. Empty unless the status is
            ready.
        pagination: The state of the pagination controls.
        sort_by: The active sort.
        filters: The filters, in the order they were added.
        selected_items: The selected rows.
        all_selected: State of the "select all" checkbox: every row of the
            current page is selected and there is at least one row.
        selection_text: Summary of the selection (`3 items selected`);
            empty when nothing is selected.
        visible_count: Number of columns that are visible.
        total_count: Number of columns in the schema.
    """

    status: ViewStatus
    message: str = ""
    columns: Tuple[HeaderCell, ...] = field(factory=tuple, converter=tuple)
    rows: Tuple[RowView, ...] = field(factory=tuple, converter=tuple)
    pagination: PaginationView
    sort_by: Optional[SortBy] = None
    filters: Tuple[Filter, ...] = field(factory=tuple, converter=tuple)
    selected_items: Tuple[Any, ...] = field(
        factory=tuple, converter=tuple, repr=False
    )
    all_selected: bool = False
    selection_text: str = ""
    visible_count: int = 0
    total_count: int = 0

    @property
    def is_loading(self) -> bool:
        return self.status == ViewStatus.LOADING

    @property
    def is_empty(self) -> bool:
        return self.status == ViewStatus.EMPTY

    @property
    def has_selection(self) -> bool:
        return len(self.selected_items) > 0

    @property
    def selection_count(self) -> int:
        return len(self.selected_items)

    @property
    def has_active_filters(self) -> bool:
        return any(not f.disabled for f in self.filters)

    @property
    def column_keys(self) -> List[str]:
        return [c.key for c in self.columns]

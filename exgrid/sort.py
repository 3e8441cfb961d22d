import logging
from enum import StrEnum
from typing import TYPE_CHECKING, Dict, Optional

from attrs import define, field

from exgrid.slice import Slice

if TYPE_CHECKING:
    from exgrid.column import ColumnSchema

logger = logging.getLogger(__name__)


class SortDirection(StrEnum):
    """Direction of the active sort.

    Attributes:
        ASC: Smallest values first.
        DESC: Largest values first.
    """

    ASC = "asc"
    DESC = "desc"

    @property
    def flipped(self) -> "SortDirection":
        if self == SortDirection.ASC:
            return SortDirection.DESC
        return SortDirection.ASC


@define(frozen=True)
class SortBy:
    """The active sort of a table.

    Only one column can be sorted at a time.

    Attributes:
        column_id: The key of the sorted column.
        direction: The sort direction.
        sort_key: The field name sent to the data source; falls back to
            `column_id` when not set.
    """

    column_id: str
    direction: SortDirection = field(
        default=SortDirection.ASC, converter=SortDirection
    )
    sort_key: Optional[str] = field(default=None)

    @property
    def effective_key(self) -> str:
        return self.sort_key or self.column_id


def to_sort_request(sort_by: Optional[SortBy]) -> Optional[Dict[str, str]]:
    """Convert the sort state to the format expected by a data source."""
    if sort_by is None:
        return None
    return {
        "sort_by": sort_by.effective_key,
        "sort_order": str(sort_by.direction),
    }


def next_sort_for(
    column: "ColumnSchema", current: Optional[SortBy]
) -> Optional[SortBy]:
    """Compute the sort that results from activating a column header.

    - A column that is not sortable does not change anything; the current
      sort is returned.
    - Activating the sorted column flips the direction.
    - Activating any other column sorts by it in ascending order.

    Args:
        column: The column whose header was activated.
        current: The active sort, if any.

    Returns:
        The new sort.
    """
    if not column.sortable:
        return current

    if current is not None and current.column_id == column.key:
        direction = current.direction.flipped
    else:
        direction = SortDirection.ASC

    return SortBy(
        column_id=column.key,
        direction=direction,
        sort_key=column.effective_sort_key,
    )


@define
class SortSlice(Slice):
    """Single-column sort state.

    The slice only records the intent; ordering the rows is the job of the
    data source. Listeners receive the new `SortBy` or `None` when the sort
    is cleared.
    """

    _sort_by: Optional[SortBy] = field(default=None)

    @property
    def sort_by(self) -> Optional[SortBy]:
        self.check_scope()
        return self._sort_by

    def set_sort_by(self, sort_by: Optional[SortBy]) -> None:
        """Replace the active sort."""
        self.check_scope()
        self._sort_by = sort_by
        self.notify(sort_by)

    def clear_sort(self) -> None:
        """Remove the active sort."""
        self.set_sort_by(None)

    def toggle(self, column: "ColumnSchema") -> bool:
        """React to the activation of a column header.

        Args:
            column: The column whose header was activated.

        Returns:
            True if the sort changed, False if the column is not sortable.
        """
        self.check_scope()
        if not column.sortable:
            logger.debug("Column %s is not sortable", column.key)
            return False

        self.set_sort_by(next_sort_for(column, self._sort_by))
        return True

    def direction_of(self, column_key: str) -> Optional[SortDirection]:
        """The direction of the sort if the column is the sorted one."""
        self.check_scope()
        if self._sort_by is None or self._sort_by.column_id != column_key:
            return None
        return self._sort_by.direction

"""Common base for the mutable pieces of table state.

Each slice (pagination, sort, filters, selection) is owned by exactly one
`TableState`. The owner is set when the table creates the slice. Using a
slice that has no owner, or whose owner has been disposed, is a programming
error and raises `GridScopeError`.

Slices report changes through the `on_changed` callbacks. Each callback
receives the slice and a payload that depends on the slice.
"""

import logging
from typing import TYPE_CHECKING, Any, Callable, List, Optional

from attrs import define, field

if TYPE_CHECKING:
    from exgrid.table import TableState

logger = logging.getLogger(__name__)


class GridScopeError(RuntimeError):
    """A slice was used outside of the table that owns it."""


@define
class Slice:
    """Base class for table state slices.

    Attributes:
        owner: The table that owns this slice.
        on_changed: Callbacks invoked after each successful change.
    """

    owner: Optional["TableState"] = field(
        default=None, kw_only=True, repr=False
    )
    on_changed: List[Callable[["Slice", Any], None]] = field(
        factory=list, kw_only=True, repr=False
    )

    @property
    def slice_name(self) -> str:
        return self.__class__.__name__

    def check_scope(self) -> None:
        """Make sure that the slice is used inside its owning table.

        Raises:
            GridScopeError: the slice has no owner or the owner was disposed.
        """
        if self.owner is None:
            raise GridScopeError(
                f"{self.slice_name} must be used within a TableState"
            )
        if self.owner.disposed:
            raise GridScopeError(
                f"{self.slice_name} belongs to a TableState that was disposed"
            )

    def notify(self, payload: Any) -> None:
        """Inform the listeners about a change."""
        logger.debug("%s changed: %s", self.slice_name, payload)
        for callback in self.on_changed:
            callback(self, payload)

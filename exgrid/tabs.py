import logging
from enum import StrEnum
from typing import Callable, List, Optional, Union

from attrs import define, field

logger = logging.getLogger(__name__)


@define(frozen=True)
class TabConfig:
    """A tab above a table.

    Attributes:
        id: Identifies the tab for the host (passed to the data loader).
        name: The label of the tab.
        icon: Name of the icon shown before the label.
        column_id: The column whose value the tab selects, if any.
    """

    id: Union[int, str]
    name: str
    icon: Optional[str] = None
    column_id: Optional[str] = None


class TabOwnership(StrEnum):
    """Who keeps track of the active tab.

    Attributes:
        COMPONENT: The strip changes its active tab when a tab is activated.
        CALLER: The strip only reports activations; the active tab changes
            when the caller sets it with `set_value`.
    """

    COMPONENT = "component"
    CALLER = "caller"


@define
class TabStrip:
    """A row of tabs with one active tab.

    The ownership of the active index is decided when the strip is created
    and does not change afterwards.

    Attributes:
        tabs: The tabs, in display order.
        ownership: Who changes the active index.
        on_change: Callbacks invoked with the index and the tab each time a
            tab is activated.
    """

    tabs: List[TabConfig] = field(converter=list)
    ownership: TabOwnership = field(
        default=TabOwnership.COMPONENT, converter=TabOwnership
    )
    on_change: List[Callable[[int, TabConfig], None]] = field(
        factory=list, repr=False
    )
    _active_index: int = field(default=0)

    def __attrs_post_init__(self) -> None:
        if self.tabs:
            self._check_index(self._active_index)

    def _check_index(self, index: int) -> None:
        if not 0 <= index < len(self.tabs):
            raise IndexError(
                f"Tab index {index} out of range; "
                f"there are {len(self.tabs)} tabs"
            )

    @property
    def active_index(self) -> int:
        return self._active_index

    @property
    def active_tab(self) -> Optional[TabConfig]:
        if not self.tabs:
            return None
        return self.tabs[self._active_index]

    def is_selected(self, index: int) -> bool:
        return index == self._active_index

    def activate(self, index: int) -> None:
        """React to the user activating a tab.

        A component-owned strip makes the tab active; a caller-owned strip
        leaves that decision to the callbacks.
        """
        self._check_index(index)
        tab = self.tabs[index]
        if self.ownership == TabOwnership.COMPONENT:
            self._active_index = index
        logger.debug("Tab %s (%s) activated", index, tab.name)
        for callback in self.on_change:
            callback(index, tab)

    def set_value(self, index: int) -> None:
        """Set the active tab of a caller-owned strip.

        Raises:
            ValueError: The strip owns its active index.
        """
        if self.ownership != TabOwnership.CALLER:
            raise ValueError(
                "The active tab of a component-owned strip cannot be set"
            )
        self._check_index(index)
        self._active_index = index

import logging
from typing import Any, Callable, Hashable, Iterable, List

from attrs import define, field

from exgrid.accessor import MISSING, FieldPath, resolve_accessor
from exgrid.constants import DEFAULT_ID_FIELD
from exgrid.slice import Slice

logger = logging.getLogger(__name__)

_default_id_path = FieldPath(DEFAULT_ID_FIELD)


def default_identity(row: Any) -> Hashable:
    """Identify a row by its `id` field (or attribute).

    Rows without an `id` are identified by the object itself.
    """
    value = resolve_accessor(_default_id_path, row)
    if value is MISSING:
        logger.warning(
            "Row %r has no %s; using the object identity",
            row,
            DEFAULT_ID_FIELD,
        )
        return ("__object__", id(row))
    return value


@define
class SelectionSlice(Slice):
    """The rows selected by the user.

    Rows are compared by the value returned by the identity function, so two
    distinct objects with the same identity are the same selection. The
    selection keeps the order in which the rows were selected and never
    holds two rows with the same identity.

    Listeners receive the new list of selected rows.

    Attributes:
        identity: Maps a row to a stable, hashable key.
    """

    identity: Callable[[Any], Hashable] = field(default=default_identity)
    _items: List[Any] = field(factory=list, init=False)

    @property
    def selected_items(self) -> List[Any]:
        self.check_scope()
        return list(self._items)

    @property
    def selected_ids(self) -> List[Hashable]:
        self.check_scope()
        return [self.identity(item) for item in self._items]

    @property
    def has_selection(self) -> bool:
        self.check_scope()
        return len(self._items) > 0

    @property
    def selection_count(self) -> int:
        self.check_scope()
        return len(self._items)

    def _index_of(self, item: Any) -> int:
        key = self.identity(item)
        for i, crt in enumerate(self._items):
            if self.identity(crt) == key:
                return i
        return -1

    def _replace(self, items: List[Any]) -> None:
        self._items = items
        self.notify(list(items))

    def is_selected(self, item: Any) -> bool:
        self.check_scope()
        return self._index_of(item) != -1

    def select_item(self, item: Any) -> None:
        """Add a row to the selection unless it is already selected."""
        self.check_scope()
        if self._index_of(item) != -1:
            return
        self._replace(self._items + [item])

    def deselect_item(self, item: Any) -> None:
        """Remove a row from the selection."""
        self.check_scope()
        index = self._index_of(item)
        if index == -1:
            return
        self._replace(self._items[:index] + self._items[index + 1 :])

    def toggle_item(self, item: Any) -> None:
        """Select the row if it is not selected, deselect it otherwise."""
        self.check_scope()
        if self._index_of(item) == -1:
            self.select_item(item)
        else:
            self.deselect_item(item)

    def select_all(self, items: Iterable[Any]) -> None:
        """Replace the selection with exactly these rows.

        The previous selection is discarded, not merged. Rows that repeat an
        identity are only kept once.
        """
        self.check_scope()
        seen = set()
        result: List[Any] = []
        for item in items:
            key = self.identity(item)
            if key in seen:
                continue
            seen.add(key)
            result.append(item)
        self._replace(result)

    def clear_selection(self) -> None:
        self.check_scope()
        self._replace([])

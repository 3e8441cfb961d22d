import logging
from typing import Any, Dict, List, Mapping, Optional

from attrs import define, evolve, field

from exgrid.column import ColumnMeta, ColumnSchema
from exgrid.sort import SortBy

logger = logging.getLogger(__name__)


@define
class ColumnRegistry:
    """Runtime state of the columns of a table.

    The registry holds exactly one `ColumnMeta` for each column schema. The
    records are created eagerly from the schemas, so there is never a
    column without a record.

    Attributes:
        schemas: The column definitions, in display order.
        metas: The runtime records by column key.
    """

    schemas: List[ColumnSchema] = field(factory=list, converter=list)
    metas: Dict[str, ColumnMeta] = field(factory=dict, init=False)

    def __attrs_post_init__(self) -> None:
        keys = set()
        for schema in self.schemas:
            if schema.key in keys:
                raise ValueError(f"Duplicate column key: {schema.key}")
            keys.add(schema.key)
            self.metas[schema.key] = ColumnMeta(
                key=schema.key,
                visible=schema.default_visible,
                is_default=schema.default_visible,
            )

    def __getitem__(self, key: str) -> ColumnSchema:
        for schema in self.schemas:
            if schema.key == key:
                return schema
        raise KeyError(
            f"No column found for key: {key}; "
            f"valid keys are: {[s.key for s in self.schemas]}"
        )

    def __len__(self) -> int:
        return len(self.schemas)

    def __contains__(self, key: object) -> bool:
        return key in self.metas

    def get_meta(self, key: str) -> ColumnMeta:
        try:
            return self.metas[key]
        except KeyError:
            raise KeyError(f"No column found for key: {key}") from None

    def is_visible(self, key: str) -> bool:
        return self.get_meta(key).visible

    def update_column_meta(
        self,
        key: str,
        updates: Optional[Mapping[str, Any]] = None,
        /,
        **kwargs: Any,
    ) -> ColumnMeta:
        """Change the runtime state of a column.

        Args:
            key: The key of the column.
            updates: The attributes to change.
            kwargs: More attributes to change.

        Returns:
            The new record.

        Raises:
            KeyError: There is no column with this key.
            ValueError: The change attempts to modify the key.
        """
        meta = self.get_meta(key)
        changes = dict(updates or {})
        changes.update(kwargs)
        if changes.get("key", key) != key:
            raise ValueError("The key of a column cannot be changed")

        new_meta = evolve(meta, **changes)
        self.metas[key] = new_meta
        logger.debug("Column %s is now %s", key, new_meta)
        return new_meta

    def toggle_column(self, key: str) -> bool:
        """Show the column if it is hidden, hide it otherwise.

        Returns:
            The new visibility.
        """
        visible = not self.get_meta(key).visible
        self.update_column_meta(key, visible=visible)
        return visible

    def reset_to_default(self) -> None:
        """Restore the visibility of every column to its default."""
        for key, meta in list(self.metas.items()):
            if meta.visible != meta.is_default:
                self.metas[key] = evolve(meta, visible=meta.is_default)
        logger.debug("Column visibility was reset")

    def apply_sort(self, sort_by: Optional[SortBy]) -> None:
        """Mirror the active sort in the records of the columns."""
        for key, meta in list(self.metas.items()):
            direction = None
            if sort_by is not None and sort_by.column_id == key:
                direction = sort_by.direction
            if meta.sort_direction != direction:
                self.metas[key] = evolve(meta, sort_direction=direction)

    @property
    def visible_columns(self) -> List[ColumnSchema]:
        """Columns that should be rendered, in display order.

        Columns that exist for filtering only are never rendered.
        """
        return [
            s
            for s in self.schemas
            if self.metas[s.key].visible and not s.filter_only
        ]

    @property
    def visible_count(self) -> int:
        return sum(1 for m in self.metas.values() if m.visible)

    @property
    def total_count(self) -> int:
        return len(self.schemas)

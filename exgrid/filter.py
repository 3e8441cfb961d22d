"""Filter support.

A filter records the intent of the user to restrict the rows by the value
of one column:

```json
    {"id": "age-gt-1f2e3d4c5", "column_id": "age", "operator": "gt",
     "value": 30}
```

The filters of a table form an ordered list; data sources are expected to
combine them with AND. The table never evaluates filters against the rows
it holds, that is the job of the data source (see `exgrid.memory` for an
in-memory implementation).
"""

import logging
from datetime import date, datetime
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union
from uuid import uuid4

from attrs import define, evolve, field

from exgrid.fi_op import FiOp, FilterOperator, filter_op_registry
from exgrid.slice import Slice

logger = logging.getLogger(__name__)

FilterValue = Union[
    str,
    int,
    float,
    bool,
    date,
    datetime,
    List[Union[str, int, float]],
    Tuple[Any, Any],
    None,
]


def _to_operator(value: Any) -> FilterOperator:
    if value is None or value == "":
        raise ValueError("Filter requires column_id, operator, and value")
    return filter_op_registry[value].uniq


def _check_text(instance, attribute, value):
    if not isinstance(value, str) or not value:
        raise ValueError(
            f"Filter requires column_id, operator, and value "
            f"({attribute.name} is {value!r})"
        )


def new_filter_id(column_id: str, operator: str) -> str:
    """Create a unique identifier for a filter."""
    return f"{column_id}-{operator}-{uuid4().hex[:9]}"


@define(frozen=True, kw_only=True)
class Filter:
    """An active filter of a table.

    Construction fails with `ValueError` when the column, the operator or
    the value is missing, or when the value does not fit the operator. The
    null checks (`isNull`, `isNotNull`) are the only operators that accept
    a filter without a value.

    Attributes:
        id: Unique identifier of this filter inside the filter list.
        column_id: The key of the column the filter applies to.
        operator: The operator; aliases like `>=` are accepted.
        value: The value to compare against; a list for `in` and a pair of
            bounds for `between`.
        label: Optional text to display instead of the generated one.
        is_temporary: The filter should not be persisted.
        disabled: The filter is kept in the list but it is not applied.
    """

    id: str = field(validator=_check_text)
    column_id: str = field(validator=_check_text)
    operator: FilterOperator = field(converter=_to_operator)
    value: FilterValue = field(default=None)
    label: Optional[str] = field(default=None)
    is_temporary: bool = field(default=False)
    disabled: bool = field(default=False)

    def __attrs_post_init__(self) -> None:
        self.fi_op.check_value(self.value)
        if isinstance(self.value, list):
            # Keep the filter hashable and safe from outside mutation.
            object.__setattr__(self, "value", tuple(self.value))

    @classmethod
    def create(
        cls,
        column_id: str,
        operator: Union[FilterOperator, str],
        value: FilterValue = None,
        label: Optional[str] = None,
        **kwargs: Any,
    ) -> "Filter":
        """Create a filter with a generated id."""
        if not column_id or not operator:
            raise ValueError("Filter requires column_id, operator, and value")
        return cls(
            id=new_filter_id(column_id, str(operator)),
            column_id=column_id,
            operator=operator,
            value=value,
            label=label,
            **kwargs,
        )

    @property
    def fi_op(self) -> FiOp:
        return filter_op_registry[self.operator]

    @property
    def display_label(self) -> str:
        """The text shown for this filter in the list of active filters."""
        if self.label:
            return self.label
        op_label = self.fi_op.label
        if not self.fi_op.needs_value:
            return f"{self.column_id} {op_label}"
        if self.operator == FilterOperator.BETWEEN:
            low, high = self.value  # type: ignore[misc]
            return f"{self.column_id} {op_label} {low} and {high}"
        if self.operator == FilterOperator.IN:
            values = ", ".join(str(v) for v in self.value)  # type: ignore
            return f"{self.column_id} {op_label} {values}"
        return f"{self.column_id} {op_label} {self.value}"


@define
class FilterBuilder:
    """Creates filters step by step.

    Example:
        flt = (
            FilterBuilder.create()
            .for_column("age")
            .with_operator("gte")
            .with_value(18)
            .build()
        )
    """

    column_id: Optional[str] = field(default=None)
    operator: Optional[str] = field(default=None)
    value: FilterValue = field(default=None)
    label: Optional[str] = field(default=None)

    @classmethod
    def create(cls) -> "FilterBuilder":
        return cls()

    def for_column(self, column_id: str) -> "FilterBuilder":
        self.column_id = column_id
        return self

    def with_operator(
        self, operator: Union[FilterOperator, str]
    ) -> "FilterBuilder":
        self.operator = operator
        return self

    def with_value(self, value: FilterValue) -> "FilterBuilder":
        self.value = value
        return self

    def with_label(self, label: str) -> "FilterBuilder":
        self.label = label
        return self

    def build(self) -> Filter:
        """Create the filter.

        Raises:
            ValueError: The column, the operator or the value is missing.
        """
        op = filter_op_registry.get(self.operator) if self.operator else None
        value_missing = self.value is None and (op is None or op.needs_value)
        if not self.column_id or not self.operator or value_missing:
            raise ValueError("Filter requires column_id, operator, and value")
        return Filter.create(
            column_id=self.column_id,
            operator=self.operator,
            value=self.value,
            label=self.label,
        )


def eq(column_id: str, value: Union[str, int, float, bool]) -> Filter:
    """Create an equality filter."""
    return FilterBuilder(column_id, FilterOperator.EQ, value).build()


def contains(column_id: str, value: str) -> Filter:
    """Create a text search filter."""
    return FilterBuilder(column_id, FilterOperator.CONTAINS, value).build()


def in_array(column_id: str, values: List[Union[str, int, float]]) -> Filter:
    """Create a filter that matches any of the values."""
    return FilterBuilder(column_id, FilterOperator.IN, values).build()


def between(column_id: str, low: Any, high: Any) -> Filter:
    """Create a range filter; both bounds are inclusive."""
    return FilterBuilder(column_id, FilterOperator.BETWEEN, (low, high)).build()


def is_null(column_id: str) -> Filter:
    return FilterBuilder(column_id, FilterOperator.IS_NULL).build()


def is_not_null(column_id: str) -> Filter:
    return FilterBuilder(column_id, FilterOperator.IS_NOT_NULL).build()


@define(frozen=True)
class FilterOption:
    """An option of a select-style filter.

    Attributes:
        value: The value used in the filter.
        label: The text shown to the user.
        group: Optional group of the option.
    """

    value: Union[str, int]
    label: str
    group: Optional[str] = None


def to_filter_request(filters: List[Filter]) -> Dict[str, Dict[str, Any]]:
    """Convert the list of filters to the format expected by a data source.

    The result is keyed by column id; when two filters target the same
    column the later one wins. Disabled filters are left out.
    """
    result: Dict[str, Dict[str, Any]] = {}
    for flt in filters:
        if flt.disabled:
            continue
        value = flt.value
        if isinstance(value, tuple):
            value = list(value)
        result[flt.column_id] = {
            "operator": str(flt.operator),
            "value": value,
        }
    return result


@define
class FilterSlice(Slice):
    """The ordered list of active filters.

    Every change replaces the list; the listeners receive the new list.
    """

    _filters: Tuple[Filter, ...] = field(factory=tuple, converter=tuple)

    def __attrs_post_init__(self) -> None:
        seen = set()
        for flt in self._filters:
            if flt.id in seen:
                raise ValueError(f"Duplicate filter id: {flt.id}")
            seen.add(flt.id)

    @property
    def filters(self) -> List[Filter]:
        self.check_scope()
        return list(self._filters)

    @property
    def active_filters(self) -> List[Filter]:
        """The filters that are not disabled."""
        self.check_scope()
        return [f for f in self._filters if not f.disabled]

    @property
    def has_active_filters(self) -> bool:
        return len(self.active_filters) > 0

    def get_filter(self, filter_id: str) -> Optional[Filter]:
        self.check_scope()
        for flt in self._filters:
            if flt.id == filter_id:
                return flt
        return None

    def _replace(self, filters: Tuple[Filter, ...]) -> None:
        self._filters = filters
        self.notify(list(filters))

    def add_filter(self, flt: Filter) -> None:
        """Append a filter to the list.

        Raises:
            ValueError: A filter with the same id is already in the list.
        """
        self.check_scope()
        if not isinstance(flt, Filter):
            raise ValueError(f"Expected a Filter, got {type(flt)}")
        if any(f.id == flt.id for f in self._filters):
            raise ValueError(f"Duplicate filter id: {flt.id}")
        self._replace(self._filters + (flt,))

    def remove_filter(self, filter_id: str) -> None:
        """Remove the filter with the given id."""
        self.check_scope()
        remaining = tuple(f for f in self._filters if f.id != filter_id)
        if len(remaining) == len(self._filters):
            logger.warning("No filter with id %s to remove", filter_id)
            return
        self._replace(remaining)

    def update_filter(
        self,
        filter_id: str,
        updates: Optional[Mapping[str, Any]] = None,
        **kwargs: Any,
    ) -> None:
        """Change some of the attributes of a filter.

        The filter keeps its position in the list. The changed filter is
        validated just like a new one.

        Args:
            filter_id: The id of the filter to change.
            updates: The attributes to change.
            kwargs: More attributes to change.
        """
        self.check_scope()
        changes = dict(updates or {})
        changes.update(kwargs)

        new_id = changes.get("id", filter_id)
        if new_id != filter_id and any(f.id == new_id for f in self._filters):
            raise ValueError(f"Duplicate filter id: {new_id}")

        found = False
        result = []
        for flt in self._filters:
            if flt.id == filter_id:
                flt = evolve(flt, **changes)
                found = True
            result.append(flt)

        if not found:
            logger.warning("No filter with id %s to update", filter_id)
            return
        self._replace(tuple(result))

    def clear_filters(self) -> None:
        """Remove all filters."""
        self.check_scope()
        self._replace(tuple())

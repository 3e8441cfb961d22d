import logging
from enum import StrEnum
from typing import Any, Callable, Dict, List, Literal, Union

from attrs import define, field

from exgrid.accessor import MISSING
from exgrid.constants import DataType

logger = logging.getLogger(__name__)

Arity = Literal["none", "one", "many", "range"]


class FilterOperator(StrEnum):
    """The closed set of filter operators.

    The values are the names sent to the data source.
    """

    EQ = "eq"
    NEQ = "neq"
    GT = "gt"
    GTE = "gte"
    LT = "lt"
    LTE = "lte"
    CONTAINS = "contains"
    STARTS_WITH = "startsWith"
    ENDS_WITH = "endsWith"
    IN = "in"
    BETWEEN = "between"
    IS_NULL = "isNull"
    IS_NOT_NULL = "isNotNull"


def _is_null(value: Any) -> bool:
    return value is None or value is MISSING


def _compare(op: Callable[[Any, Any], bool]) -> Callable[[Any, Any], bool]:
    """Wrap an ordering comparison so that incomparable values don't match."""

    def predicate(target: Any, value: Any) -> bool:
        if _is_null(target):
            return False
        try:
            return bool(op(target, value))
        except TypeError:
            return False

    return predicate


def _text(op: Callable[[str, str], bool]) -> Callable[[Any, Any], bool]:
    """Wrap a case-insensitive text comparison."""

    def predicate(target: Any, value: Any) -> bool:
        if _is_null(target):
            return False
        return op(str(target).lower(), str(value).lower())

    return predicate


def _between(target: Any, value: Any) -> bool:
    if _is_null(target):
        return False
    low, high = value
    try:
        return bool(low <= target <= high)
    except TypeError:
        return False


def _in(target: Any, value: Any) -> bool:
    if _is_null(target):
        return False
    return target in value


@define
class FiOp:
    """Base class for operators.

    Attributes:
        uniq: The name of the operator.
        label: The name shown to the user.
        arity: What the value of a filter using this operator looks like:
            `none` (no value needed), `one` (a scalar), `many` (a list of
            values) or `range` (a pair of bounds).
        predicate: Evaluates the operator for a row value (first argument)
            and the filter value (second argument). Only used by in-memory
            data sources.
    """

    uniq: FilterOperator
    label: str
    arity: Arity = field(default="one")
    predicate: Callable[[Any, Any], bool] = field(
        default=lambda target, value: target == value, repr=False
    )

    @property
    def needs_value(self) -> bool:
        return self.arity != "none"

    def check_value(self, value: Any) -> None:
        """Make sure that a filter value has the shape this operator needs.

        Raises:
            ValueError: The value is missing or has the wrong shape.
        """
        if self.arity == "none":
            return
        if value is None:
            raise ValueError(f"Operator {self.uniq} requires a value")
        if self.arity == "many":
            if not isinstance(value, (list, tuple, set, frozenset)):
                raise ValueError(
                    f"Operator {self.uniq} requires a list of values, "
                    f"got {value!r}"
                )
        elif self.arity == "range":
            if not isinstance(value, (list, tuple)) or len(value) != 2:
                raise ValueError(
                    f"Operator {self.uniq} requires a pair of bounds, "
                    f"got {value!r}"
                )

    def matches(self, target: Any, value: Any) -> bool:
        """Evaluate the operator."""
        return self.predicate(target, value)


@define
class FiOpRegistry:
    """Registry for operators.

    Attributes:
        _registry: The operators by name, including symbolic aliases.
    """

    _registry: Dict[str, FiOp] = field(factory=dict, repr=False)

    def __attrs_post_init__(self) -> None:
        """Initialize the registry with all operators and their aliases."""
        ops = [
            FiOp(
                FilterOperator.EQ,
                "Equals",
                predicate=lambda t, v: not _is_null(t) and t == v,
            ),
            FiOp(
                FilterOperator.NEQ,
                "Not Equals",
                predicate=lambda t, v: _is_null(t) or t != v,
            ),
            FiOp(
                FilterOperator.GT,
                "Greater Than",
                predicate=_compare(lambda t, v: t > v),
            ),
            FiOp(
                FilterOperator.GTE,
                "Greater Than or Equal",
                predicate=_compare(lambda t, v: t >= v),
            ),
            FiOp(
                FilterOperator.LT,
                "Less Than",
                predicate=_compare(lambda t, v: t < v),
            ),
            FiOp(
                FilterOperator.LTE,
                "Less Than or Equal",
                predicate=_compare(lambda t, v: t <= v),
            ),
            FiOp(
                FilterOperator.CONTAINS,
                "Contains",
                predicate=_text(lambda t, v: v in t),
            ),
            FiOp(
                FilterOperator.STARTS_WITH,
                "Starts With",
                predicate=_text(lambda t, v: t.startswith(v)),
            ),
            FiOp(
                FilterOperator.ENDS_WITH,
                "Ends With",
                predicate=_text(lambda t, v: t.endswith(v)),
            ),
            FiOp(FilterOperator.IN, "Any Of", "many", predicate=_in),
            FiOp(
                FilterOperator.BETWEEN, "Between", "range", predicate=_between
            ),
            FiOp(
                FilterOperator.IS_NULL,
                "Is Empty",
                "none",
                predicate=lambda t, v: _is_null(t),
            ),
            FiOp(
                FilterOperator.IS_NOT_NULL,
                "Is Not Empty",
                "none",
                predicate=lambda t, v: not _is_null(t),
            ),
        ]
        self._registry = {str(op.uniq): op for op in ops}
        self._registry["=="] = self._registry["eq"]
        self._registry["!="] = self._registry["neq"]
        self._registry[">"] = self._registry["gt"]
        self._registry[">="] = self._registry["gte"]
        self._registry["<"] = self._registry["lt"]
        self._registry["<="] = self._registry["lte"]

    def __getitem__(self, key: str) -> FiOp:
        """Return the operator by name.

        Raises:
            ValueError: There is no such operator.
        """
        result = self._registry.get(str(key))
        if result is None:
            raise ValueError(
                f"Unknown filter operator: {key}; valid operators are "
                f"{[str(o) for o in FilterOperator]}"
            )
        return result

    def get(self, key: str) -> Union[FiOp, None]:
        """Return the operator by name or None if it does not exist."""
        return self._registry.get(str(key), None)

    def __contains__(self, key: object) -> bool:
        return str(key) in self._registry

    @property
    def labels(self) -> Dict[FilterOperator, str]:
        """Display names of the operators."""
        return {op: self._registry[str(op)].label for op in FilterOperator}


filter_op_registry = FiOpRegistry()


def operators_for_type(data_type: DataType) -> List[FilterOperator]:
    """Operators that make sense for a type of data.

    Args:
        data_type: One of `string`, `number`, `date` or `boolean`. Unknown
            types get the operators common to all types.
    """
    base = [
        FilterOperator.EQ,
        FilterOperator.NEQ,
        FilterOperator.IS_NULL,
        FilterOperator.IS_NOT_NULL,
    ]
    if data_type == "string":
        return base + [
            FilterOperator.CONTAINS,
            FilterOperator.STARTS_WITH,
            FilterOperator.ENDS_WITH,
            FilterOperator.IN,
        ]
    if data_type == "number":
        return base + [
            FilterOperator.GT,
            FilterOperator.GTE,
            FilterOperator.LT,
            FilterOperator.LTE,
            FilterOperator.BETWEEN,
            FilterOperator.IN,
        ]
    if data_type == "date":
        return base + [
            FilterOperator.GT,
            FilterOperator.GTE,
            FilterOperator.LT,
            FilterOperator.LTE,
            FilterOperator.BETWEEN,
        ]
    if data_type == "boolean":
        return [FilterOperator.EQ, FilterOperator.NEQ]
    return base

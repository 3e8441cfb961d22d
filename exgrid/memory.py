"""A data source that keeps every row in memory.

Hosts that have all their rows at hand use this to answer the queries of a
table. The filters are combined with AND, in the order they were added;
disabled filters are skipped. Rows without a value in the sorted column are
placed last regardless of the direction.
"""

import logging
from typing import Any, List, Optional, Sequence

from attrs import define, field

from exgrid.accessor import MISSING, Accessor, FieldPath, resolve_accessor
from exgrid.column import ColumnSchema
from exgrid.fi_op import filter_op_registry
from exgrid.filter import Filter
from exgrid.pagination import PaginatedResponse, calculate_total_pages
from exgrid.query import TableQuery
from exgrid.registry import ColumnRegistry
from exgrid.sort import SortBy, SortDirection

logger = logging.getLogger(__name__)


def _is_empty(value: Any) -> bool:
    return value is None or value is MISSING


@define
class MemorySource:
    """Answers table queries from a list of rows.

    Attributes:
        rows: All the rows.
        columns: The columns of the table, used to locate the value a
            filter or a sort refers to. Columns that are not listed are
            read as field paths named after the column id.
    """

    rows: List[Any] = field(factory=list, converter=list, repr=False)
    columns: Sequence[ColumnSchema] = field(factory=tuple, repr=False)

    @classmethod
    def from_registry(
        cls, rows: Sequence[Any], registry: ColumnRegistry
    ) -> "MemorySource":
        return cls(rows=rows, columns=list(registry.schemas))

    def _column(self, column_id: str) -> Optional[ColumnSchema]:
        for column in self.columns:
            if column.key == column_id or column.filter_key == column_id:
                return column
        return None

    def _filter_accessor(self, column_id: str) -> Accessor:
        column = self._column(column_id)
        return column.accessor if column is not None else FieldPath(column_id)

    def _sort_accessor(self, sort_by: SortBy) -> Accessor:
        column = self._column(sort_by.column_id)
        if column is not None and sort_by.effective_key == column.key:
            return column.accessor
        return FieldPath(sort_by.effective_key)

    def matches(self, row: Any, filters: Sequence[Filter]) -> bool:
        """Tell if a row satisfies all the enabled filters."""
        for flt in filters:
            if flt.disabled:
                continue
            value = resolve_accessor(
                self._filter_accessor(flt.column_id), row
            )
            if not filter_op_registry[flt.operator].matches(value, flt.value):
                return False
        return True

    def filtered(self, filters: Sequence[Filter]) -> List[Any]:
        return [r for r in self.rows if self.matches(r, filters)]

    def sorted(
        self, rows: Sequence[Any], sort_by: Optional[SortBy]
    ) -> List[Any]:
        """Order the rows by the sort column; the sort is stable."""
        if sort_by is None:
            return list(rows)

        accessor = self._sort_accessor(sort_by)
        keyed = [(resolve_accessor(accessor, r), r) for r in rows]
        empty = [r for v, r in keyed if _is_empty(v)]
        valued = [(v, r) for v, r in keyed if not _is_empty(v)]
        reverse = sort_by.direction == SortDirection.DESC
        try:
            valued.sort(key=lambda item: item[0], reverse=reverse)
        except TypeError:
            logger.debug(
                "Values of %s are not comparable; sorting them as text",
                sort_by.column_id,
            )
            valued.sort(key=lambda item: str(item[0]), reverse=reverse)
        return [r for _, r in valued] + empty

    def fetch(
        self, query: Optional[TableQuery] = None
    ) -> PaginatedResponse[Any]:
        """Filter, sort and slice the rows.

        Returns:
            The rows of the requested page and the number of rows that
            passed the filters. A page past the end yields no rows.
        """
        query = query or TableQuery()
        rows = self.sorted(self.filtered(query.filters), query.sort_by)
        total = len(rows)
        request = query.pagination
        data = rows[request.offset : request.offset + request.limit]
        logger.debug(
            "Query %s matched %d rows; returning %d",
            query.to_request(),
            total,
            len(data),
        )
        return PaginatedResponse(
            data=data,
            total=total,
            page=query.page,
            page_size=query.page_size,
            total_pages=calculate_total_pages(total, query.page_size),
        )

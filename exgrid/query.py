from typing import Any, Dict, Optional, Tuple

from attrs import define, field

from exgrid.constants import DEFAULT_PAGE_SIZE
from exgrid.filter import Filter, to_filter_request
from exgrid.pagination import PaginationRequest
from exgrid.sort import SortBy, to_sort_request


@define(frozen=True)
class TableQuery:
    """Everything a data source needs to produce the rows of a table.

    The table hands one of these to the host each time the user changes the
    page, the page size, the sort or the filters.

    Attributes:
        page: The page to load (1-based).
        page_size: The number of rows per page.
        sort_by: The active sort, if any.
        filters: The filters, in the order they were added. Disabled
            filters are included; data sources skip them.
    """

    page: int = 1
    page_size: int = DEFAULT_PAGE_SIZE
    sort_by: Optional[SortBy] = None
    filters: Tuple[Filter, ...] = field(factory=tuple, converter=tuple)

    @property
    def pagination(self) -> PaginationRequest:
        return PaginationRequest(page=self.page, page_size=self.page_size)

    @property
    def active_filters(self) -> Tuple[Filter, ...]:
        return tuple(f for f in self.filters if not f.disabled)

    def to_request(self) -> Dict[str, Any]:
        """The query in the plain format used by remote data sources."""
        result: Dict[str, Any] = {"pagination": self.pagination.to_dict()}
        sort = to_sort_request(self.sort_by)
        if sort is not None:
            result["sort"] = sort
        filters = to_filter_request(list(self.filters))
        if filters:
            result["filters"] = filters
        return result

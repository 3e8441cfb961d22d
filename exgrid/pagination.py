import logging
import math
from typing import Any, Dict, Generic, List, Optional, Tuple, TypeVar

from attrs import define, field

from exgrid.constants import (
    DEFAULT_PAGE_SIZE,
    DEFAULT_PAGE_SIZE_OPTIONS,
    MAX_PAGE_SIZE,
    MAX_VISIBLE_PAGES,
)
from exgrid.slice import Slice

T = TypeVar("T")
logger = logging.getLogger(__name__)


def calculate_total_pages(total: int, page_size: int) -> int:
    """Number of pages needed to show `total` items.

    Returns 0 when there are no items.
    """
    if total <= 0 or page_size <= 0:
        return 0
    return math.ceil(total / page_size)


def validate_page(page: int, total_pages: int) -> int:
    """Clamp a page number to the valid range.

    The result is always in `[1, max(total_pages, 1)]`.
    """
    if page < 1:
        return 1
    if page > total_pages:
        return total_pages or 1
    return page


def clamp_page_size(page_size: int, max_page_size: int = MAX_PAGE_SIZE) -> int:
    """Clamp a page size to `[1, max_page_size]`."""
    if page_size < 1:
        return 1
    if page_size > max_page_size:
        return max_page_size
    return page_size


def get_page_numbers(
    current_page: int,
    total_pages: int,
    max_visible: int = MAX_VISIBLE_PAGES,
) -> List[int]:
    """Compute the window of page numbers shown by pagination controls.

    The window is centered on the current page when possible. Near the last
    page it is shifted to the left so that it still holds `max_visible`
    numbers.

    Args:
        current_page: The current page (1-based).
        total_pages: The number of pages.
        max_visible: The maximum number of page numbers in the window.

    Returns:
        A contiguous, ascending list of `min(total_pages, max_visible)` page
        numbers.
    """
    if total_pages <= max_visible:
        return list(range(1, total_pages + 1))

    half_visible = max_visible // 2
    start = max(current_page - half_visible, 1)
    end = min(start + max_visible - 1, total_pages)

    if end - start + 1 < max_visible:
        start = max(end - max_visible + 1, 1)

    return list(range(start, end + 1))


@define(frozen=True)
class Pagination:
    """A snapshot of the pagination state.

    Attributes:
        page: Current page number (1-based).
        page_size: Number of items per page.
        total: Total number of items across all pages, as reported by the
            data source.
        total_pages: Number of pages.
        page_size_options: The page sizes the user can choose from.
        has_next: There is a page after the current one.
        has_previous: There is a page before the current one.
    """

    page: int = 1
    page_size: int = DEFAULT_PAGE_SIZE
    total: int = 0
    total_pages: int = 0
    page_size_options: Tuple[int, ...] = field(
        default=tuple(DEFAULT_PAGE_SIZE_OPTIONS), converter=tuple
    )
    has_next: bool = False
    has_previous: bool = False

    @property
    def start(self) -> int:
        """1-based index of the first item on the page (0 if none)."""
        if self.total == 0:
            return 0
        return (self.page - 1) * self.page_size + 1

    @property
    def end(self) -> int:
        """1-based index of the last item on the page."""
        return min(self.page * self.page_size, self.total)


def create_default_pagination() -> Pagination:
    """Pagination state of a table that has no data yet."""
    return Pagination()


def get_page_range_text(pagination: Pagination) -> str:
    """Human readable range of the current page (`1-20 of 47`)."""
    if pagination.total == 0:
        return "0 items"
    return f"{pagination.start}-{pagination.end} of {pagination.total}"


@define(frozen=True)
class PaginationRequest:
    """Pagination parameters sent to a data source.

    Attributes:
        page: Page number to fetch (1-based).
        page_size: Number of items per page.
    """

    page: int = 1
    page_size: int = DEFAULT_PAGE_SIZE

    @property
    def offset(self) -> int:
        """Number of items to skip."""
        return (self.page - 1) * self.page_size

    @property
    def limit(self) -> int:
        """Number of items to retrieve."""
        return self.page_size

    def to_dict(self) -> Dict[str, int]:
        return {
            "page": self.page,
            "page_size": self.page_size,
            "offset": self.offset,
            "limit": self.limit,
        }


@define(frozen=True)
class PaginatedResponse(Generic[T]):
    """A page of items as returned by a data source.

    Attributes:
        data: The items on the page.
        total: Total number of items across all pages.
        page: The page number.
        page_size: Number of items per page.
        total_pages: Number of pages.
    """

    data: List[T]
    total: int
    page: int
    page_size: int
    total_pages: int


def from_paginated_response(
    response: PaginatedResponse[Any],
    page_size_options: Optional[List[int]] = None,
) -> Pagination:
    """Build the pagination state from a data source response."""
    return Pagination(
        page=response.page,
        page_size=response.page_size,
        total=response.total,
        total_pages=response.total_pages,
        page_size_options=tuple(
            page_size_options
            if page_size_options is not None
            else DEFAULT_PAGE_SIZE_OPTIONS
        ),
        has_next=response.page < response.total_pages,
        has_previous=response.page > 1,
    )


def build_api_request(
    pagination: Pagination, **additional: Any
) -> Dict[str, Any]:
    """Build a request for a data source with pagination included.

    Args:
        pagination: The pagination state.
        additional: Other parameters (sort, filters) merged into the
            request.
    """
    result: Dict[str, Any] = {
        "pagination": {
            "page": pagination.page,
            "page_size": pagination.page_size,
        },
    }
    result.update(additional)
    return result


@define
class PaginationSlice(Slice):
    """Page, page size and total of a table.

    The total is authoritative and comes from the host; it is never computed
    from the number of rows delivered for a page.

    Listeners receive a `(page, page_size)` tuple each time the page or the
    page size is changed by the user.

    Attributes:
        page_size_options: The page sizes the user can choose from.
        max_page_size: Largest accepted page size.
        max_visible: Width of the page-number window.
    """

    _page: int = field(default=1)
    _page_size: int = field(default=DEFAULT_PAGE_SIZE)
    _total: int = field(default=0)
    page_size_options: List[int] = field(
        factory=lambda: list(DEFAULT_PAGE_SIZE_OPTIONS)
    )
    max_page_size: int = field(default=MAX_PAGE_SIZE)
    max_visible: int = field(default=MAX_VISIBLE_PAGES)

    def __attrs_post_init__(self) -> None:
        self._page_size = clamp_page_size(self._page_size, self.max_page_size)
        self._total = max(self._total, 0)
        self._page = validate_page(self._page, self._count_pages())

    @property
    def page(self) -> int:
        self.check_scope()
        return self._page

    @property
    def page_size(self) -> int:
        self.check_scope()
        return self._page_size

    @property
    def total(self) -> int:
        self.check_scope()
        return self._total

    def _count_pages(self) -> int:
        return calculate_total_pages(self._total, self._page_size)

    @property
    def total_pages(self) -> int:
        self.check_scope()
        return self._count_pages()

    @property
    def has_next(self) -> bool:
        self.check_scope()
        return self._page < self._count_pages()

    @property
    def has_previous(self) -> bool:
        self.check_scope()
        return self._page > 1

    # Names used by the pagination controls.
    can_next_page = has_next
    can_prev_page = has_previous

    @property
    def pagination(self) -> Pagination:
        """A snapshot of the current state."""
        self.check_scope()
        total_pages = self._count_pages()
        return Pagination(
            page=self._page,
            page_size=self._page_size,
            total=self._total,
            total_pages=total_pages,
            page_size_options=tuple(self.page_size_options),
            has_next=self._page < total_pages,
            has_previous=self._page > 1,
        )

    @property
    def page_range(self) -> str:
        return get_page_range_text(self.pagination)

    @property
    def page_numbers(self) -> List[int]:
        self.check_scope()
        return get_page_numbers(
            self._page, self._count_pages(), self.max_visible
        )

    def set_page(self, page: int) -> None:
        """Go to a page.

        Out of range values are clamped. Listeners are only informed when the
        page actually changes.
        """
        self.check_scope()
        new_page = validate_page(int(page), self._count_pages())
        if new_page != page:
            logger.debug("Page %s clamped to %s", page, new_page)
        if new_page == self._page:
            return
        self._page = new_page
        self.notify((self._page, self._page_size))

    def set_page_size(self, page_size: int) -> None:
        """Change the number of items per page.

        The page always goes back to the first one.
        """
        self.check_scope()
        self._page_size = clamp_page_size(int(page_size), self.max_page_size)
        self._page = 1
        self.notify((self._page, self._page_size))

    def next_page(self) -> None:
        self.set_page(self.page + 1)

    def prev_page(self) -> None:
        self.set_page(self.page - 1)

    def first_page(self) -> None:
        self.set_page(1)

    def last_page(self) -> None:
        self.set_page(self.total_pages)

    def set_total(self, total: int) -> None:
        """Replace the total reported by the data source.

        The current page is clamped to the new number of pages. Listeners are
        not informed; this is a data update, not a user request.
        """
        self.check_scope()
        self._total = max(int(total), 0)
        clamped = validate_page(self._page, self._count_pages())
        if clamped != self._page:
            logger.debug(
                "Page %s no longer exists, moved to %s", self._page, clamped
            )
            self._page = clamped

    def reset_page(self) -> None:
        """Go back to the first page without informing the listeners."""
        self.check_scope()
        self._page = 1

    def request(self) -> PaginationRequest:
        """The pagination parameters for the data source."""
        self.check_scope()
        return PaginationRequest(page=self._page, page_size=self._page_size)

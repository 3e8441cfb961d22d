import pytest

from exgrid.pagination import (
    PaginatedResponse,
    Pagination,
    PaginationRequest,
    PaginationSlice,
    build_api_request,
    calculate_total_pages,
    clamp_page_size,
    create_default_pagination,
    from_paginated_response,
    get_page_numbers,
    get_page_range_text,
    validate_page,
)
from exgrid.slice import GridScopeError


class Owner:
    disposed = False


def make_slice(**kwargs) -> PaginationSlice:
    return PaginationSlice(owner=Owner(), **kwargs)


def test_calculate_total_pages():
    assert calculate_total_pages(47, 20) == 3
    assert calculate_total_pages(40, 20) == 2
    assert calculate_total_pages(1, 20) == 1
    assert calculate_total_pages(0, 20) == 0


@pytest.mark.parametrize("total_pages", [0, 1, 3, 10])
@pytest.mark.parametrize("page", [-5, 0, 1, 2, 3, 9, 10, 11, 100])
def test_validate_page_is_in_range(page, total_pages):
    result = validate_page(page, total_pages)
    assert 1 <= result <= max(total_pages, 1)


def test_validate_page_keeps_valid_pages():
    assert validate_page(2, 3) == 2
    assert validate_page(4, 3) == 3
    assert validate_page(0, 3) == 1


def test_clamp_page_size():
    assert clamp_page_size(0) == 1
    assert clamp_page_size(50) == 50
    assert clamp_page_size(5000, 1000) == 1000


class TestPageNumbers:
    def test_few_pages(self):
        assert get_page_numbers(1, 3) == [1, 2, 3]
        assert get_page_numbers(2, 5) == [1, 2, 3, 4, 5]
        assert get_page_numbers(1, 0) == []

    def test_centered(self):
        assert get_page_numbers(5, 10) == [3, 4, 5, 6, 7]

    def test_start(self):
        assert get_page_numbers(1, 10) == [1, 2, 3, 4, 5]
        assert get_page_numbers(2, 10) == [1, 2, 3, 4, 5]

    def test_shifted_left_near_the_end(self):
        assert get_page_numbers(9, 10) == [6, 7, 8, 9, 10]
        assert get_page_numbers(10, 10) == [6, 7, 8, 9, 10]

    @pytest.mark.parametrize("total_pages", [1, 4, 5, 6, 12])
    def test_window_shape(self, total_pages):
        for current in range(1, total_pages + 1):
            numbers = get_page_numbers(current, total_pages)
            assert len(numbers) == min(total_pages, 5)
            assert numbers == list(range(numbers[0], numbers[-1] + 1))
            assert numbers[0] >= 1
            assert numbers[-1] <= total_pages
            assert current in numbers


class TestRangeText:
    def test_first_page(self):
        p = Pagination(page=1, page_size=20, total=47, total_pages=3)
        assert get_page_range_text(p) == "1-20 of 47"

    def test_last_page(self):
        p = Pagination(page=3, page_size=20, total=47, total_pages=3)
        assert get_page_range_text(p) == "41-47 of 47"

    def test_no_items(self):
        assert get_page_range_text(create_default_pagination()) == "0 items"


def test_pagination_request():
    request = PaginationRequest(page=3, page_size=20)
    assert request.offset == 40
    assert request.limit == 20
    assert request.to_dict() == {
        "page": 3,
        "page_size": 20,
        "offset": 40,
        "limit": 20,
    }


def test_from_paginated_response():
    response = PaginatedResponse(
        data=[1, 2], total=47, page=3, page_size=20, total_pages=3
    )
    p = from_paginated_response(response)
    assert p.page == 3
    assert p.total == 47
    assert not p.has_next
    assert p.has_previous
    assert p.page_size_options == (10, 20, 50, 100)


def test_build_api_request():
    p = Pagination(page=2, page_size=50, total=120, total_pages=3)
    result = build_api_request(p, sort={"sort_by": "name"})
    assert result == {
        "pagination": {"page": 2, "page_size": 50},
        "sort": {"sort_by": "name"},
    }


class TestPaginationSlice:
    def test_defaults(self):
        slc = make_slice()
        assert slc.page == 1
        assert slc.page_size == 20
        assert slc.total == 0
        assert slc.total_pages == 0
        assert slc.page_range == "0 items"
        assert slc.page_numbers == []
        assert not slc.can_next_page
        assert not slc.can_prev_page

    def test_derived_values(self):
        slc = make_slice(total=47)
        assert slc.total_pages == 3
        assert slc.page_range == "1-20 of 47"
        assert slc.has_next
        assert not slc.has_previous
        slc.last_page()
        assert slc.page == 3
        assert slc.page_range == "41-47 of 47"
        assert not slc.has_next
        assert slc.has_previous
        slc.first_page()
        assert slc.page == 1

    def test_set_page_clamps(self):
        slc = make_slice(total=47)
        slc.set_page(10)
        assert slc.page == 3
        slc.set_page(-1)
        assert slc.page == 1

    def test_set_page_notifies_on_change_only(self):
        calls = []
        slc = make_slice(total=47)
        slc.on_changed.append(lambda s, payload: calls.append(payload))
        slc.set_page(2)
        slc.set_page(2)
        slc.next_page()
        slc.next_page()
        assert calls == [(2, 20), (3, 20)]

    @pytest.mark.parametrize("start_page", [1, 2, 3])
    def test_set_page_size_resets_page(self, start_page):
        calls = []
        slc = make_slice(total=47)
        slc.set_page(start_page)
        slc.on_changed.append(lambda s, payload: calls.append(payload))
        slc.set_page_size(10)
        assert slc.page == 1
        assert slc.page_size == 10
        assert slc.total_pages == 5
        assert calls == [(1, 10)]

    def test_set_page_size_clamps(self):
        slc = make_slice(total=47, max_page_size=100)
        slc.set_page_size(500)
        assert slc.page_size == 100
        slc.set_page_size(0)
        assert slc.page_size == 1

    def test_set_total_clamps_silently(self):
        calls = []
        slc = make_slice(total=47)
        slc.last_page()
        slc.on_changed.append(lambda s, payload: calls.append(payload))
        slc.set_total(25)
        assert slc.page == 2
        slc.set_total(0)
        assert slc.page == 1
        assert calls == []

    def test_request(self):
        slc = make_slice(total=47)
        slc.set_page(2)
        assert slc.request() == PaginationRequest(page=2, page_size=20)

    def test_snapshot(self):
        slc = make_slice(total=47, page_size_options=[5, 10])
        p = slc.pagination
        assert p == Pagination(
            page=1,
            page_size=20,
            total=47,
            total_pages=3,
            page_size_options=(5, 10),
            has_next=True,
            has_previous=False,
        )

    def test_without_owner(self):
        slc = PaginationSlice()
        with pytest.raises(GridScopeError, match="within a TableState"):
            slc.set_page(1)
        with pytest.raises(GridScopeError):
            _ = slc.page

"""Tests for PaginationRequestBuilder."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from cqrs_ddd_pagination.constants import MAX_SAFE_INTEGER
from cqrs_ddd_pagination.options import PaginationDefaults, PaginationOptions, QueryParamNames
from cqrs_ddd_pagination.request import (
    PaginationRequest,
    PaginationRequestBuilder,
    base_path_from_url,
    build_pagination_request,
)
from cqrs_ddd_pagination.sort import Sort, SortDirection

ID_DESC = Sort("id", SortDirection.DESC)
NAME_ASC = Sort("name", SortDirection.ASC)


def test_empty_query_uses_defaults() -> None:
    request = build_pagination_request({})
    assert request == PaginationRequest(
        current_page=1,
        items_per_page=10,
        offset=0,
        unpaged=False,
        sort_by=(),
        filter={},
        limit=None,
        base_path="",
    )


def test_page_and_size() -> None:
    request = build_pagination_request({"page": "3", "limit": "20"})
    assert (request.current_page, request.items_per_page, request.offset) == (3, 20, 40)


def test_size_alias_and_precedence() -> None:
    assert build_pagination_request({"size": "7"}).items_per_page == 7
    assert build_pagination_request({"limit": "5", "size": "7"}).items_per_page == 5


def test_repeated_page_uses_first_value() -> None:
    assert build_pagination_request({"page": ["2", "3"]}).current_page == 2


@pytest.mark.parametrize("page", ["0", "-1", "abc", "", "1.5"])
def test_invalid_page_falls_back(page: str) -> None:
    assert build_pagination_request({"page": page}).current_page == 1


def test_invalid_page_falls_back_to_call_site_default() -> None:
    builder = PaginationRequestBuilder(PaginationDefaults(current_page=4))
    assert builder.build({"page": "x"}).current_page == 4
    assert builder.build({}).offset == 30


def test_size_above_max_falls_back_to_default() -> None:
    assert build_pagination_request({"limit": "101"}).items_per_page == 10
    assert build_pagination_request({"limit": "100"}).items_per_page == 100
    assert build_pagination_request({"limit": "0"}).items_per_page == 10


def test_default_size_is_capped_by_max_size() -> None:
    options = PaginationOptions(max_size=5)
    request = build_pagination_request({}, options=options)
    assert request.items_per_page == 5

    defaults = PaginationDefaults(items_per_page=3)
    request = build_pagination_request({"limit": "6"}, defaults=defaults, options=options)
    assert request.items_per_page == 3


def test_offset_overflow_resets_page_and_size() -> None:
    request = build_pagination_request({"page": str(MAX_SAFE_INTEGER), "limit": "50"})
    assert (request.current_page, request.items_per_page, request.offset) == (1, 10, 0)


def test_offset_overflow_with_small_size() -> None:
    request = build_pagination_request({"page": str(MAX_SAFE_INTEGER // 2), "limit": "3"})
    assert (request.current_page, request.items_per_page, request.offset) == (1, 10, 0)


def test_oversized_numbers_fall_back() -> None:
    request = build_pagination_request({"page": "9" * 5000, "limit": "1" * 5000})
    assert (request.current_page, request.items_per_page) == (1, 10)


def test_largest_addressable_page_is_accepted() -> None:
    page = MAX_SAFE_INTEGER // 10 + 1
    request = build_pagination_request({"page": str(page)})
    assert request.current_page == page
    assert request.offset == (page - 1) * 10


def test_size_disabled_ignores_client_value() -> None:
    options = PaginationOptions(enable_size=False)
    assert build_pagination_request({"limit": "50"}, options=options).items_per_page == 10


def test_sort_from_query_replaces_default() -> None:
    defaults = PaginationDefaults(sort_by=(NAME_ASC,))
    request = build_pagination_request(
        {"sortBy": "property[id];direction[desc]"}, defaults=defaults
    )
    assert request.sort_by == (ID_DESC,)


def test_invalid_sort_keeps_default() -> None:
    defaults = PaginationDefaults(sort_by=(NAME_ASC,))
    request = build_pagination_request({"sortBy": "property[id]"}, defaults=defaults)
    assert request.sort_by == (NAME_ASC,)


def test_sort_disabled_keeps_default() -> None:
    defaults = PaginationDefaults(sort_by=(NAME_ASC,))
    options = PaginationOptions(enable_sort=False)
    request = build_pagination_request(
        {"sortBy": "property[id];direction[desc]"}, defaults=defaults, options=options
    )
    assert request.sort_by == (NAME_ASC,)


def test_unpaged_requires_option() -> None:
    assert build_pagination_request({"unpaged": "true"}).unpaged is False

    options = PaginationOptions(enable_unpaged=True)
    assert build_pagination_request({"unpaged": "true"}, options=options).unpaged is True
    assert build_pagination_request({"unpaged": "yes"}, options=options).unpaged is False

    defaults = PaginationDefaults(unpaged=True)
    request = build_pagination_request({"unpaged": "false"}, defaults=defaults, options=options)
    assert request.unpaged is False


def test_filter_from_query_or_defaults() -> None:
    request = build_pagination_request({"filter[id]": "$gte:2"})
    assert request.filter == {"id": "$gte:2"}

    defaults = PaginationDefaults(filter={"status": "active"})
    assert build_pagination_request({}, defaults=defaults).filter == {"status": "active"}


def test_fixed_limit_is_copied_from_options() -> None:
    options = PaginationOptions(limit=15)
    assert build_pagination_request({}, options=options).limit == 15


def test_custom_parameter_names() -> None:
    options = PaginationOptions(params=QueryParamNames(page="p", size=("per_page",), sort="order"))
    request = build_pagination_request(
        {"p": "2", "per_page": "5", "order": "property[id];direction[desc]", "page": "9"},
        options=options,
    )
    assert (request.current_page, request.items_per_page) == (2, 5)
    assert request.sort_by == (ID_DESC,)


def test_base_path_strips_query_and_fragment() -> None:
    assert base_path_from_url("https://api.test/items?page=2#top") == "https://api.test/items"
    assert base_path_from_url("/items?limit=5") == "/items"
    assert base_path_from_url(None) == ""

    request = build_pagination_request({}, url="http://localhost/books?page=1")
    assert request.base_path == "http://localhost/books"


def test_as_unpaged() -> None:
    request = build_pagination_request({"page": "3"}).as_unpaged()
    assert (request.current_page, request.items_per_page, request.offset) == (0, 0, 0)


def test_options_validation() -> None:
    with pytest.raises(ValidationError):
        PaginationOptions(max_size=0)
    with pytest.raises(ValidationError):
        PaginationOptions(limit=0)


def test_options_are_frozen() -> None:
    options = PaginationOptions()
    with pytest.raises(ValidationError):
        options.max_size = 5  # type: ignore[misc]

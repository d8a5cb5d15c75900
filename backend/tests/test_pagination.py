from dcc_sfa.core.config import settings
from dcc_sfa.services.pagination import build_pagination, normalize_page, search_filter


def test_pagination_block():
    block = build_pagination(2, 10, 25)
    assert block == {
        "current_page": 2,
        "per_page": 10,
        "total_count": 25,
        "total_pages": 3,
        "has_next": True,
        "has_previous": True,
    }


def test_pagination_exact_and_empty():
    assert build_pagination(1, 10, 20)["total_pages"] == 2
    empty = build_pagination(1, 10, 0)
    assert empty["total_pages"] == 0
    assert not empty["has_next"]
    assert not empty["has_previous"]


def test_page_and_limit_are_clamped():
    assert normalize_page(0, 5) == (1, 5)
    assert normalize_page(-3, None) == (1, settings.DEFAULT_PAGE_SIZE)
    assert normalize_page(2, 10_000) == (2, settings.MAX_PAGE_SIZE)


def test_blank_search_adds_no_condition():
    from dcc_sfa.models import Depot

    assert search_filter(None, Depot.name) is None
    assert search_filter("   ", Depot.name) is None
    assert search_filter("north", Depot.name, Depot.code) is not None

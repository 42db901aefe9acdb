"""Tests for pagination service."""
from app.schemas.filter_schema import PageRequest
from app.services.pagination_service import paginate


class TestPaginate:
    def test_first_page(self):
        page = paginate(list(range(25)), PageRequest(page=1, limit=10))
        assert page.items == list(range(10))
        assert page.total_items == 25
        assert page.total_pages == 3
        assert (page.first_item, page.last_item) == (1, 10)

    def test_last_partial_page(self):
        page = paginate(list(range(25)), PageRequest(page=3, limit=10))
        assert page.items == [20, 21, 22, 23, 24]
        assert (page.first_item, page.last_item) == (21, 25)

    def test_past_the_end_is_empty(self):
        page = paginate(list(range(25)), PageRequest(page=9, limit=10))
        assert page.items == []
        assert page.total_pages == 3
        assert (page.first_item, page.last_item) == (0, 0)

    def test_empty_collection(self):
        page = paginate([], PageRequest(page=1, limit=10))
        assert page.items == []
        assert page.total_pages == 0

    def test_page_clamped_to_one(self):
        page = paginate(list(range(5)), PageRequest(page=0, limit=10))
        assert page.page == 1
        assert page.items == list(range(5))

    def test_limit_clamped_to_minimum(self):
        page = paginate(list(range(30)), PageRequest(page=1, limit=3), min_limit=10)
        assert page.limit == 10
        assert len(page.items) == 10

    def test_pages_cover_every_item_once(self):
        items = list(range(47))
        seen = []
        for number in range(1, 6):
            seen.extend(paginate(items, PageRequest(page=number, limit=10)).items)
        assert seen == items

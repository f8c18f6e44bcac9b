"""
cjbdash - Incident Table Tests
==============================
Tests: sort toggling, stable ordering, pagination bounds
"""

from datetime import datetime

from cjbdash.table import TableView


def ids(incidents):
    return [i.id for i in incidents]


class TestSorting:

    def test_default_is_newest_first(self, scenario):
        assert ids(TableView().rows(scenario)) == [3, 2, 1]

    def test_same_column_flips_direction(self, scenario):
        view = TableView()
        view.toggle_sort("date")
        assert view.sort_direction == "asc"
        assert ids(view.rows(scenario)) == [1, 2, 3]

    def test_new_column_starts_descending(self, scenario):
        view = TableView(current_page=3)
        view.toggle_sort("undoc")
        assert (view.sort_column, view.sort_direction, view.current_page) == ("undoc", "desc", 1)
        assert ids(view.rows(scenario)) == [1, 3, 2]

    def test_missing_dates_sort_last_when_descending(self, make):
        rows = [make(7), make(1, date=datetime(2025, 1, 1)), make(2, date=datetime(2025, 2, 1))]
        assert ids(TableView().rows(rows)) == [2, 1, 7]

    def test_numeric_ids(self, make):
        rows = [make(10), make(9), make(100), make(1, id="X-1")]
        view = TableView(sort_column="id", sort_direction="asc")
        assert ids(view.rows(rows)) == ["X-1", 9, 10, 100]

    def test_text_columns_ignore_case_and_keep_ties(self, make):
        rows = [make(1, officer="beto"), make(2, officer="Ana"), make(3, officer="ana")]
        view = TableView(sort_column="officer", sort_direction="asc")
        assert ids(view.rows(rows)) == [2, 3, 1]

    def test_input_not_modified(self, scenario):
        before = list(scenario)
        TableView().rows(scenario)
        assert scenario == before


class TestPagination:

    def test_pages(self, sample):
        view = TableView(page_size=25)
        first = view.page(sample)
        assert (first.number, first.total_pages, first.total) == (1, 2, 50)
        assert (first.start, first.end) == (1, 25)
        second = view.page(sample, 2)
        assert (second.start, second.end) == (26, 50)
        assert len(second.items) == 25

    def test_page_number_is_clamped(self, sample):
        view = TableView(page_size=10)
        assert view.page(sample, 99).number == 5
        assert view.current_page == 5
        assert view.page(sample, 0).number == 1

    def test_page_size_change_resets_page(self, sample):
        view = TableView(page_size=10, current_page=4)
        view.set_page_size(50)
        assert view.current_page == 1
        assert view.page(sample).total_pages == 1

    def test_empty(self):
        page = TableView().page([])
        assert page.items == []
        assert (page.number, page.total_pages, page.total, page.start, page.end) == (1, 0, 0, 0, 0)

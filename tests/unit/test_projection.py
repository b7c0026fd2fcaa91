# ---------------------------------------------------------------------------
# Unit Tests: View Projection
#
# Exercises the pure filter / sort / paginate pipeline:
#   - case-insensitive global search across every field
#   - column filters (OR within a column, AND across columns)
#   - sorting with unset values placed last ascending / first descending
#   - page windows, filter options and header-click sort cycling
# ---------------------------------------------------------------------------
# tests/unit/test_projection.py
import itertools

from medgrid.schemas.grid import ViewState
from medgrid.services import projection


def _ids(records, field="ManufacturerId"):
    return [r[field] for r in records]


def test_global_filter_matches_case_insensitively(manufacturer_records):
    hits = projection.apply_global_filter(manufacturer_records, "pfizer")
    assert _ids(hits) == [30]
    assert projection.apply_global_filter(manufacturer_records, "xyz123") == []


def test_global_filter_ignores_zero_and_false_values():
    records = [{"id": 1, "Amount": 0, "isOTC": False}, {"id": 2, "Amount": 10}]
    assert _ids(projection.apply_global_filter(records, "0"), "id") == [2]


def test_column_filters_or_within_and_across(manufacturer_records):
    filters = {"Country": ["USA", "UK"]}
    assert _ids(projection.apply_column_filters(manufacturer_records, filters)) == [30, 33]

    filters["ParentCompany"] = ["Pfizer"]
    assert _ids(projection.apply_column_filters(manufacturer_records, filters)) == [30]


def test_filtering_is_idempotent(manufacturer_records):
    view = ViewState(global_filter="a", column_filters={"Country": ["UK", "Switzerland"]})
    once = projection.filter_and_sort(manufacturer_records, view)
    twice = projection.filter_and_sort(once, view)
    assert once == twice


def test_sort_puts_unset_last_ascending_and_first_descending():
    records = [
        {"id": 1, "Form": "Tablet"},
        {"id": 2, "Form": "N/A"},
        {"id": 3, "Form": "capsule"},
        {"id": 4, "Form": None},
    ]
    asc = projection.sort_records(records, "Form", "asc")
    desc = projection.sort_records(records, "Form", "desc")
    assert _ids(asc, "id")[:2] == [3, 1]
    assert set(_ids(asc, "id")[2:]) == {2, 4}
    assert _ids(desc, "id")[2:] == [1, 3]


def test_sort_descending_reverses_ascending_without_ties():
    records = [{"id": i, "Amount": amount} for i, amount in enumerate([10, 2, 33, "7"])]
    asc = projection.sort_records(records, "Amount", "asc")
    desc = projection.sort_records(records, "Amount", "desc")
    assert _ids(asc, "id") == [1, 3, 0, 2]
    assert desc == list(reversed(asc))


def test_project_pages_the_result(manufacturer_records):
    view = ViewState(page=2, page_size=2)
    page = projection.project(manufacturer_records, view)
    assert page.total == 3
    assert page.total_pages == 2
    assert _ids(page.rows) == [33]


def test_unique_values_skip_sentinels_and_sort():
    records = [{"Form": "Tablet"}, {"Form": "N/A"}, {"Form": ""}, {"Form": "Capsule"}, {"Form": "Tablet"}]
    assert projection.unique_values(records, "Form") == ["Capsule", "Tablet"]


def test_cell_text_drops_integral_float_suffix():
    assert projection.cell_text(2.0) == "2"
    assert projection.cell_text(None) == ""
    assert projection.cell_text(True) == "true"


def test_next_sort_cycles_through_states():
    view = ViewState()
    view = projection.next_sort(view, "Form")
    assert (view.sort_field, view.sort_direction) == ("Form", "asc")
    view = projection.next_sort(view, "Form")
    assert view.sort_direction == "desc"
    view = projection.next_sort(view, "Form")
    assert view.sort_field is None and view.sort_direction is None


def test_mixed_column_sort_is_independent_of_input_order():
    values = ["1a", "10", "2", "b", "3"]
    orders = set()
    for perm in itertools.permutations(values):
        records = [{"Seq": v} for v in perm]
        orders.add(tuple(r["Seq"] for r in projection.sort_records(records, "Seq", "asc")))
    assert orders == {("2", "3", "10", "1a", "b")}


def test_sort_key_orders_numbers_before_text():
    assert projection.sort_key("10") < projection.sort_key("9a")
    assert projection.sort_key(2) == projection.sort_key("2.0")
    assert projection.sort_key("Tablet") == projection.sort_key("tablet")

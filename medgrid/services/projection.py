# MEDGRID REGISTRY GRID

# COMPONENT: VIEW PROJECTION
# REQUIREMENTS SATISFIED: global filter, column filters, sorting, pagination, filter options
"""
medgrid/services/projection.py

Pure derivation of the visible page of rows from the record store and the
current view state. Nothing here mutates its inputs.

Order of application:
    1. global free-text filter (case-insensitive substring over every field)
    2. per-column filters (AND across columns, OR within a column)
    3. sort (unset values last ascending / first descending)
    4. page window
"""
from __future__ import annotations
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple
import math

from medgrid.schemas.grid import ViewPage, ViewState
from medgrid.services.entities import NA, is_unset

Record = Dict[str, Any]

FILTER_SAMPLE_SIZE = 1000


def cell_text(value: Any) -> str:
    """String form of a cell used by filtering and filter options."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _as_number(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return float(value)
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str) and value.strip():
        try:
            number = float(value.strip())
        except ValueError:
            return None
    else:
        return None
    return None if math.isnan(number) else number


def sort_key(value: Any) -> Tuple[int, Any]:
    """Numbers order before text; numbers numerically, text case-insensitively."""
    number = _as_number(value)
    if number is not None:
        return (0, number)
    return (1, cell_text(value).casefold())


def apply_global_filter(records: Iterable[Record], text: str) -> List[Record]:
    needle = (text or "").casefold()
    if not needle:
        return list(records)
    return [
        r for r in records
        if any(v not in (None, "", False, 0) and needle in cell_text(v).casefold() for v in r.values())
    ]


def apply_column_filters(records: Iterable[Record], filters: Mapping[str, Iterable[str]]) -> List[Record]:
    active = {field: set(values) for field, values in (filters or {}).items() if values}
    result = list(records)
    for field, allowed in active.items():
        result = [r for r in result if cell_text(r.get(field)) in allowed]
    return result


def sort_records(records: Iterable[Record], field: Optional[str], direction: Optional[str]) -> List[Record]:
    records = list(records)
    if not field or direction not in ("asc", "desc"):
        return records

    unset = [r for r in records if is_unset(r.get(field))]
    present = [r for r in records if not is_unset(r.get(field))]
    present.sort(
        key=lambda r: sort_key(r.get(field)),
        reverse=(direction == "desc"),
    )
    if direction == "asc":
        return present + unset
    return unset + present


def paginate(records: Sequence[Record], page: int, page_size: int) -> List[Record]:
    page = max(1, page)
    start = (page - 1) * page_size
    return list(records[start:start + page_size])


def filter_and_sort(records: Iterable[Record], view: ViewState) -> List[Record]:
    filtered = apply_global_filter(records, view.global_filter)
    filtered = apply_column_filters(filtered, view.column_filters)
    return sort_records(filtered, view.sort_field, view.sort_direction)


def project(records: Iterable[Record], view: ViewState) -> ViewPage:
    rows = filter_and_sort(records, view)
    total = len(rows)
    return ViewPage(
        rows=paginate(rows, view.page, view.page_size),
        total=total,
        page=view.page,
        page_size=view.page_size,
        total_pages=max(1, math.ceil(total / view.page_size)),
    )


def unique_values(records: Sequence[Record], field: str, sample: Optional[int] = FILTER_SAMPLE_SIZE) -> List[str]:
    """Distinct, non-empty, non-sentinel values of ``field``, sorted."""
    rows = records if sample is None else records[:sample]
    values = set()
    for r in rows:
        value = r.get(field)
        if value is None or value == "" or value == NA:
            continue
        values.add(cell_text(value))
    return sorted(values)


def next_sort(view: ViewState, field: str) -> ViewState:
    """Header click: unsorted -> asc -> desc -> unsorted; new column starts at asc."""
    if view.sort_field == field:
        if view.sort_direction == "asc":
            return view.model_copy(update={"sort_direction": "desc"})
        return view.model_copy(update={"sort_field": None, "sort_direction": None})
    return view.model_copy(update={"sort_field": field, "sort_direction": "asc"})

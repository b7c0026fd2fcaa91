# MEDGRID REGISTRY GRID

# COMPONENT: EXPORT SINK
# REQUIREMENTS SATISFIED: CSV export of the current filtered/sorted view
"""
medgrid/services/export.py

Turns the grid's export rows (ordered records plus ordered
(field, title) pairs) into a CSV file.
"""
from __future__ import annotations
from datetime import date
from typing import Any, Dict, List, Optional, Sequence, Tuple
import csv
import io


def to_csv(records: Sequence[Dict[str, Any]], columns: Sequence[Tuple[str, str]]) -> bytes:
    buf = io.StringIO()
    writer = csv.writer(buf, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerow([title for _, title in columns])
    for row in records:
        writer.writerow(["" if row.get(field) is None else row.get(field) for field, _ in columns])
    return buf.getvalue().encode("utf-8")


def export_key(entity_name: str, today: Optional[date] = None) -> str:
    today = today or date.today()
    return f"exports/{entity_name}-export-{today.isoformat()}.csv"


def export_rows_to_storage(storage, entity_name: str, records: List[Dict[str, Any]],
                           columns: List[Tuple[str, str]]) -> str:
    """Write the CSV through ``storage`` and return a download URL."""
    key = export_key(entity_name)
    storage.put_bytes(key, to_csv(records, columns))
    return storage.presign(key)

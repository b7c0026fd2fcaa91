# MEDGRID REGISTRY GRID

# COMPONENT: DRAG-FILL INTERACTION
# REQUIREMENTS SATISFIED: idle/armed state machine, same-column propagation
"""
medgrid/services/drag_fill.py

Pointer state machine for drag-to-fill.

    idle --press(non-empty value)--> armed --release--> idle

While armed, entering a cell in the source column on another row yields a
``FillTarget``; the grid session applies it (optimistic local update,
pending change, modified marker, history). Entering any other column is a
no-op. The machine itself never touches records.
"""
from __future__ import annotations
from typing import Any, NamedTuple, Optional

from medgrid.services.entities import is_unset

IDLE = "idle"
ARMED = "armed"


class FillTarget(NamedTuple):
    row_id: Any
    column_id: str
    value: Any


class DragFill:
    def __init__(self):
        self.state = IDLE
        self.source_row: Any = None
        self.source_column: Optional[str] = None
        self.value: Any = None

    @property
    def armed(self) -> bool:
        return self.state == ARMED

    def press(self, row_id: Any, column_id: str, value: Any) -> bool:
        """Mouse-down on a cell. Empty and "N/A" cells do not arm the fill."""
        if is_unset(value) or value is False:
            return False
        self.state = ARMED
        self.source_row = row_id
        self.source_column = column_id
        self.value = value
        return True

    def enter(self, row_id: Any, column_id: str) -> Optional[FillTarget]:
        if not self.armed or column_id != self.source_column:
            return None
        if str(row_id) == str(self.source_row):
            return None
        return FillTarget(row_id, column_id, self.value)

    def release(self) -> None:
        self.state = IDLE
        self.source_row = None
        self.source_column = None
        self.value = None

# MEDGRID REGISTRY GRID

# COMPONENT: PENDING-CHANGE TRACKER
# REQUIREMENTS SATISFIED: one entry per cell, original old value preserved, partial drain
"""
medgrid/services/pending.py

Tracks cell edits that have not been confirmed by the registry yet.

At most one entry exists per (row id, column) pair. A second edit of the
same cell only replaces ``new_value``; ``old_value`` stays the value from
before the first edit so a multi-step drag-fill still reports the true
before/after delta. Entries keep insertion order, which is the order the
sync engine sends them in.
"""
from __future__ import annotations
from typing import Any, Dict, Iterable, List, Optional, Tuple

from medgrid.schemas.grid import PendingChange, change_key

Key = Tuple[str, str]


class PendingChangeTracker:
    def __init__(self):
        self._changes: Dict[Key, PendingChange] = {}

    def track(self, row_id: Any, column_id: str, old_value: Any, new_value: Any) -> PendingChange:
        key = change_key(row_id, column_id)
        existing = self._changes.get(key)
        if existing is not None:
            existing.new_value = new_value
            return existing
        change = PendingChange(
            row_id=row_id,
            column_id=column_id,
            old_value=old_value,
            new_value=new_value,
        )
        self._changes[key] = change
        return change

    def drain(self, successful_keys: Iterable[Key]) -> None:
        for key in successful_keys:
            self._changes.pop((str(key[0]), key[1]), None)

    def clear(self) -> None:
        self._changes.clear()

    def changes(self) -> List[PendingChange]:
        return list(self._changes.values())

    def keys(self) -> List[Key]:
        return list(self._changes.keys())

    def get(self, row_id: Any, column_id: str) -> Optional[PendingChange]:
        return self._changes.get(change_key(row_id, column_id))

    def __len__(self) -> int:
        return len(self._changes)

    def __contains__(self, key: Key) -> bool:
        return (str(key[0]), key[1]) in self._changes

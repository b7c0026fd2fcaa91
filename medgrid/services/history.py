# MEDGRID REGISTRY GRID

# COMPONENT: UNDO / REDO HISTORY LOG
# REQUIREMENTS SATISFIED: snapshot history, branch pruning, no-op suppression
"""
medgrid/services/history.py

Snapshot-based undo/redo log over the record store.

Every entry is a full deep copy of the store's records. The cursor always
points at the entry matching the store's current state; entries after it
are redo-able and are pruned as soon as a new mutation is recorded.
Recording a state deep-equal to the one at the cursor is a no-op, so
no-op updates never create history.

Undo and redo only move the cursor and hand back a copy of the entry; the
caller restores it into the store. Restoring must not be recorded again.
"""
from __future__ import annotations
from typing import Any, Dict, List
import copy

from medgrid.errors import NothingToRedo, NothingToUndo

Snapshot = List[Dict[str, Any]]


class HistoryLog:
    def __init__(self):
        self._entries: List[Snapshot] = []
        self._cursor: int = -1

    @property
    def cursor(self) -> int:
        return self._cursor

    @property
    def can_undo(self) -> bool:
        return self._cursor > 0

    @property
    def can_redo(self) -> bool:
        return 0 <= self._cursor < len(self._entries) - 1

    def __len__(self) -> int:
        return len(self._entries)

    def reset(self, snapshot: Snapshot) -> None:
        """Start over from a single entry (bulk load / reload)."""
        self._entries = [copy.deepcopy(snapshot)]
        self._cursor = 0

    def record(self, snapshot: Snapshot) -> bool:
        if self._entries and snapshot == self._entries[self._cursor]:
            return False
        if self._cursor < len(self._entries) - 1:
            del self._entries[self._cursor + 1:]
        self._entries.append(copy.deepcopy(snapshot))
        self._cursor = len(self._entries) - 1
        return True

    def undo(self) -> Snapshot:
        if not self._entries or self._cursor <= 0:
            raise NothingToUndo()
        self._cursor -= 1
        return copy.deepcopy(self._entries[self._cursor])

    def redo(self) -> Snapshot:
        if self._cursor >= len(self._entries) - 1:
            raise NothingToRedo()
        self._cursor += 1
        return copy.deepcopy(self._entries[self._cursor])

    def dump(self) -> Dict[str, Any]:
        return {"entries": copy.deepcopy(self._entries), "cursor": self._cursor}

    def load(self, data: Dict[str, Any]) -> None:
        entries = list(data.get("entries") or [])
        cursor = int(data.get("cursor", len(entries) - 1))
        if entries and not 0 <= cursor < len(entries):
            cursor = len(entries) - 1
        self._entries = copy.deepcopy(entries)
        self._cursor = cursor if entries else -1

# MEDGRID REGISTRY GRID

# COMPONENT: IN-MEMORY RECORD STORE
# REQUIREMENTS SATISFIED: authoritative session collection, identifier uniqueness

"""
medgrid/repositories/record_store.py

Defines the in-memory store holding the authoritative collection of grid
records (drugs or manufacturers) for one session.

Records are plain dicts keyed by their identifier field. Identifiers are
compared by their string form, so a path parameter "30" and a stored
integer 30 address the same record. Insertion order is stable across
every operation.

Key responsibilities:
    - Bulk replace on load and reload
    - Insert, update (field-level merge) and delete with NotFound /
      DuplicateIdentifier on invariant violations
    - Deep snapshots for the history log and table-state saves
    - Local identifier synthesis (max + 1) when the registry cannot assign one
"""
from __future__ import annotations
from typing import Optional, Dict, Any, Iterable, List
import copy
import logging

from medgrid.errors import DuplicateIdentifier, NotFound

logger = logging.getLogger("medgrid")


def _key(record_id: Any) -> str:
    return str(record_id).strip()


class RecordStore:
    def __init__(self, id_field: str):
        self.id_field = id_field
        self._store: Dict[str, Dict[str, Any]] = {}

    def replace_all(self, records: Iterable[Dict[str, Any]]) -> None:
        store: Dict[str, Dict[str, Any]] = {}
        for record in records:
            k = _key(record[self.id_field])
            if k in store:
                logger.warning("Duplicate %s=%s in bulk load; keeping the last one", self.id_field, k)
            store[k] = dict(record)
        self._store = store

    def insert(self, record: Dict[str, Any]) -> Dict[str, Any]:
        k = _key(record[self.id_field])
        if k in self._store:
            raise DuplicateIdentifier(record[self.id_field])
        self._store[k] = dict(record)
        return self._store[k]

    def update(self, record_id: Any, fields: Dict[str, Any]) -> Dict[str, Any]:
        k = _key(record_id)
        if k not in self._store:
            raise NotFound(record_id)
        # the identifier never changes after creation
        changes = {f: v for f, v in fields.items() if f != self.id_field}
        self._store[k].update(changes)
        return self._store[k]

    def delete(self, record_id: Any) -> Dict[str, Any]:
        k = _key(record_id)
        if k not in self._store:
            raise NotFound(record_id)
        return self._store.pop(k)

    def get(self, record_id: Any) -> Optional[Dict[str, Any]]:
        if record_id is None:
            return None
        return self._store.get(_key(record_id))

    def all(self) -> List[Dict[str, Any]]:
        return list(self._store.values())

    def ids(self) -> List[Any]:
        return [r[self.id_field] for r in self._store.values()]

    def snapshot(self) -> List[Dict[str, Any]]:
        return copy.deepcopy(self.all())

    def next_id(self) -> int:
        """max(existing numeric ids) + 1, or 1 for an empty store."""
        numeric = []
        for rid in self.ids():
            try:
                numeric.append(int(rid))
            except (TypeError, ValueError):
                continue
        return max(numeric) + 1 if numeric else 1

    def __len__(self) -> int:
        return len(self._store)

    def __contains__(self, record_id: Any) -> bool:
        return _key(record_id) in self._store

# MEDGRID REGISTRY GRID

# COMPONENT: LOCAL FALLBACK REGISTRY
# REQUIREMENTS SATISFIED: substitute data source when the registry API is unreachable

"""
medgrid/repositories/fallback_repo.py

A small in-process stand-in for the registry API.

The grid session reads from it when the remote list call fails, and the
manufacturer proxy router applies writes to it when the remote write
fails. Every ``LocalRegistry`` owns its own copy of the data: the default
sample dataset is built fresh by ``default_manufacturers()`` each time, so
tests and processes never share mutable state.
"""
from __future__ import annotations
from typing import Any, Dict, List, Optional
import copy

from medgrid.repositories.record_store import RecordStore


def default_manufacturers() -> List[Dict[str, Any]]:
    return [
        {"ManufacturerId": 3, "ManufacturerName": "Laboratoires Besins International",
         "Country": "France", "ParentCompany": "Laboratoires Besins International", "ParentGroup": None},
        {"ManufacturerId": 13, "ManufacturerName": "GlaxoWellcome SA",
         "Country": "Spain", "ParentCompany": "Glaxowellcome", "ParentGroup": None},
        {"ManufacturerId": 16, "ManufacturerName": "Hameln Pharmaceuticals GmbH",
         "Country": "Germany", "ParentCompany": "Hameln Pharmaceuticals", "ParentGroup": None},
        {"ManufacturerId": 18, "ManufacturerName": "Hikma Pharmaceuticals",
         "Country": "Jordan", "ParentCompany": "Hikma Pharmaceuticals", "ParentGroup": None},
        {"ManufacturerId": 24, "ManufacturerName": "Merck Sharp & Dohme BV",
         "Country": "The Netherlands", "ParentCompany": "Merck Sharp & Dohme", "ParentGroup": None},
        {"ManufacturerId": 25, "ManufacturerName": "Merck Sharp & Dohme Ltd",
         "Country": "UK", "ParentCompany": "Merck Sharp & Dohme", "ParentGroup": None},
        {"ManufacturerId": 30, "ManufacturerName": "Pfizer Inc",
         "Country": "USA", "ParentCompany": "Pfizer", "ParentGroup": None},
        {"ManufacturerId": 31, "ManufacturerName": "Roche Pharmaceuticals",
         "Country": "Switzerland", "ParentCompany": "Hoffmann-La Roche", "ParentGroup": None},
        {"ManufacturerId": 32, "ManufacturerName": "Sanofi-Aventis",
         "Country": "France", "ParentCompany": "Sanofi", "ParentGroup": None},
        {"ManufacturerId": 33, "ManufacturerName": "AstraZeneca",
         "Country": "UK", "ParentCompany": "AstraZeneca", "ParentGroup": None},
    ]


class LocalRegistry:
    def __init__(self, id_field: str, records: Optional[List[Dict[str, Any]]] = None):
        self.id_field = id_field
        self._store = RecordStore(id_field)
        self._store.replace_all(records or [])

    def list(self) -> List[Dict[str, Any]]:
        return copy.deepcopy(self._store.all())

    def get(self, record_id: Any) -> Optional[Dict[str, Any]]:
        return self._store.get(record_id)

    def create(self, data: Dict[str, Any]) -> Dict[str, Any]:
        record = {k: v for k, v in data.items() if k != self.id_field}
        record[self.id_field] = self._store.next_id()
        return dict(self._store.insert(record))

    def update(self, record_id: Any, fields: Dict[str, Any]) -> Dict[str, Any]:
        return dict(self._store.update(record_id, fields))

    def delete(self, record_id: Any) -> Dict[str, Any]:
        return self._store.delete(record_id)

    def count(self) -> int:
        return len(self._store)


def default_fallback(entity_name: str) -> Optional[LocalRegistry]:
    """Fresh fallback source for an entity; drugs have no sample dataset."""
    if entity_name == "manufacturers":
        return LocalRegistry("ManufacturerId", default_manufacturers())
    return None

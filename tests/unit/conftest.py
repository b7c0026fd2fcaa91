# ---------------------------------------------------------------------------
# Shared fixtures for the grid unit tests.
#
# FakeRegistry stands in for RegistryClient: it serves in-memory records,
# records every call in order and raises ExternalUnavailable for whichever
# operations a test marks as failing. No test touches the network.
# ---------------------------------------------------------------------------
# tests/unit/conftest.py
import copy

import pytest

from medgrid.errors import ExternalUnavailable
from medgrid.services.entities import DRUG, MANUFACTURER


class FakeRegistry:
    def __init__(self, records=None):
        self.records = copy.deepcopy(records or [])
        self.calls = []
        self.fail = set()
        self.fail_on_call = set()
        self.pages = {}
        self.created_id = None

    def _check(self, op):
        self.calls.append(op)
        if op[0] in self.fail or len(self.calls) in self.fail_on_call:
            raise ExternalUnavailable(op[0], "status 500")

    def list_all(self, entity):
        self._check(("list", entity.name))
        return copy.deepcopy(self.records)

    def get_page(self, entity, page, page_size):
        self._check(("page", page, page_size))
        return copy.deepcopy(self.pages.get(page, [])), len(self.pages) or 1

    def create(self, entity, payload):
        self._check(("create", payload))
        created = {entity.id_field: self.created_id} if self.created_id is not None else {}
        return created

    def put(self, path, payload, operation="update"):
        self._check(("put", path, payload))
        return None

    def update(self, entity, record_id, payload):
        self._check(("update", record_id, payload))
        return payload

    def delete(self, entity, record_id):
        self._check(("delete", record_id))
        return {"success": True}


@pytest.fixture
def drug_records():
    return [
        {"DrugID": 1, "DrugName": "Panadol", "Form": "Tablet", "DFSequence": "A", "Amount": 10},
        {"DrugID": 2, "DrugName": "Augmentin", "Form": "N/A", "DFSequence": "N/A", "Amount": 5},
        {"DrugID": 3, "DrugName": "Zithromax", "Form": "Capsule", "DFSequence": "C", "Amount": 0},
    ]


@pytest.fixture
def manufacturer_records():
    return [
        {"ManufacturerId": 30, "ManufacturerName": "Pfizer Inc", "Country": "USA",
         "ParentCompany": "Pfizer", "ParentGroup": None},
        {"ManufacturerId": 31, "ManufacturerName": "Roche Pharmaceuticals", "Country": "Switzerland",
         "ParentCompany": "Hoffmann-La Roche", "ParentGroup": None},
        {"ManufacturerId": 33, "ManufacturerName": "AstraZeneca", "Country": "UK",
         "ParentCompany": "AstraZeneca", "ParentGroup": None},
    ]


@pytest.fixture
def fake_registry():
    return FakeRegistry()


@pytest.fixture
def drug_entity():
    return DRUG


@pytest.fixture
def manufacturer_entity():
    return MANUFACTURER


@pytest.fixture
def make_registry():
    return FakeRegistry

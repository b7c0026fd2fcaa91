# MEDGRID REGISTRY GRID

# COMPONENT: ERROR TAXONOMY
# REQUIREMENTS SATISFIED: store invariant violations, external failures, history bounds
"""
medgrid/errors.py

Exception types raised by the grid core.

Low-level components (record store, history log, registry client) raise
these. The grid session turns every one of them into an ``Outcome`` and
the HTTP routers map the store errors onto status codes, so none of them
reaches the user as an unhandled fault.
"""
from __future__ import annotations
from typing import Any


class GridError(Exception):
    """Base class for every error raised by the grid core."""


class DuplicateIdentifier(GridError):
    def __init__(self, record_id: Any):
        self.record_id = record_id
        super().__init__(f"Record {record_id} already exists")


class NotFound(GridError):
    def __init__(self, record_id: Any):
        self.record_id = record_id
        super().__init__(f"Record {record_id} not found")


class ExternalUnavailable(GridError):
    """
    The external registry could not complete an operation.

    Covers network errors, timeouts, non-2xx statuses and bodies that are
    not the JSON we expect (HTML error pages included).
    """

    def __init__(self, operation: str, reason: str):
        self.operation = operation
        self.reason = reason
        super().__init__(f"{operation} failed: {reason}")


class NothingToUndo(GridError):
    def __init__(self):
        super().__init__("Nothing to undo")


class NothingToRedo(GridError):
    def __init__(self):
        super().__init__("Nothing to redo")

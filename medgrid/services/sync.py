# MEDGRID REGISTRY GRID

# COMPONENT: SYNC ENGINE
# REQUIREMENTS SATISFIED: sequential per-change sync, partial-failure tolerance, optimistic local commit
"""
medgrid/services/sync.py

Pushes local edits to the external registry.

Pending changes are sent one at a time, in tracker order, each awaited
before the next, so composite updates of one record never interleave and
the results table comes back in a stable order. A failed change is
recorded and the batch carries on; nothing is rolled back.

Row-level operations (save row, delete, create) follow the same
"local state wins" policy: the local store is always updated, and a remote
failure only turns into a warning in the returned outcome.
"""
from __future__ import annotations
from typing import Any, Dict, Iterable, List

import logging

from medgrid.errors import ExternalUnavailable, NotFound
from medgrid.repositories.record_store import RecordStore
from medgrid.schemas.grid import BatchReport, PendingChange, RowSaveOutcome, SaveResult
from medgrid.services.entities import EntitySpec
from medgrid.services.registry_client import RegistryClient

logger = logging.getLogger("medgrid")


class SyncEngine:
    def __init__(self, entity: EntitySpec, client: RegistryClient):
        self.entity = entity
        self.client = client

    # -----------------------------
    # Pending-change batches
    # -----------------------------
    def build_payload(self, change: PendingChange) -> Dict[str, Any]:
        payload = {
            self.entity.id_field: change.row_id,
            change.column_id: change.new_value,
        }
        return self.entity.strip_sentinels(payload)

    def push(self, changes: Iterable[PendingChange]) -> List[SaveResult]:
        results: List[SaveResult] = []
        label = self.entity.label
        for change in list(changes):
            payload = self.build_payload(change)
            try:
                self.client.update(self.entity, change.row_id, payload)
            except ExternalUnavailable as e:
                logger.warning(
                    "Sync failed: %s %s field=%s reason=%s",
                    label, change.row_id, change.column_id, e.reason,
                )
                results.append(SaveResult(
                    row_id=change.row_id,
                    column_id=change.column_id,
                    success=False,
                    message=f"Failed to update {change.column_id}: {e.reason}",
                ))
                continue
            results.append(SaveResult(
                row_id=change.row_id,
                column_id=change.column_id,
                success=True,
                message=f"Successfully updated {change.column_id} for {label} {change.row_id}",
            ))
        return results

    @staticmethod
    def summarize(results: List[SaveResult]) -> BatchReport:
        total = len(results)
        succeeded = sum(1 for r in results if r.success)
        failed = total - succeeded

        if total == 0:
            status, message = "nothing", "No changes to save"
        elif failed == 0:
            status, message = "all_succeeded", f"Successfully saved all {succeeded} changes"
        elif succeeded == 0:
            status, message = "all_failed", f"All {failed} changes failed to save"
        else:
            status = "partial_failure"
            message = f"Saved {succeeded} of {total} changes, but {failed} failed. See details."

        return BatchReport(
            status=status,
            total=total,
            succeeded=succeeded,
            failed=failed,
            message=message,
            results=results,
        )

    # -----------------------------
    # Row-level operations
    # -----------------------------
    def merge_row(self, store: RecordStore, record_id: Any, values: Dict[str, Any]) -> Dict[str, Any]:
        """
        Merge edited values into the stored record, applying derived-field
        rules against the records as they were before this edit.
        """
        current = store.get(record_id)
        if current is None:
            raise NotFound(record_id)

        updated = dict(current)
        updated.update({k: v for k, v in values.items() if k != self.entity.id_field})
        for field, value in values.items():
            if field == self.entity.id_field or value == current.get(field):
                continue
            updated.update(self.entity.derived_updates(record_id, field, value, store.all()))

        return store.update(record_id, updated)

    def save_row(self, store: RecordStore, record_id: Any, values: Dict[str, Any]) -> RowSaveOutcome:
        record = dict(self.merge_row(store, record_id, values))

        try:
            for path, payload in self.entity.row_payloads(record):
                self.client.put(path, payload, f"save {self.entity.label} {record_id}")
        except ExternalUnavailable as e:
            # the local merge stays even though the registry refused it
            logger.warning("Row save failed remotely, keeping local update: %s", e)
            return RowSaveOutcome(
                record=record,
                remote_ok=False,
                message="API error during save, continuing with local update",
            )

        return RowSaveOutcome(
            record=record,
            remote_ok=True,
            message=f"{self.entity.label.capitalize()} updated successfully",
        )

    def delete(self, store: RecordStore, record_id: Any) -> bool:
        """Returns whether the registry confirmed the delete."""
        if record_id not in store:
            raise NotFound(record_id)
        remote_ok = True
        try:
            self.client.delete(self.entity, record_id)
        except ExternalUnavailable as e:
            logger.warning("Delete failed remotely, removing locally anyway: %s", e)
            remote_ok = False
        store.delete(record_id)
        return remote_ok

    def create(self, store: RecordStore, values: Dict[str, Any]) -> RowSaveOutcome:
        payload = self.entity.create_payload(values)
        id_field = self.entity.id_field
        remote_ok = True
        try:
            created = self.client.create(self.entity, payload)
        except ExternalUnavailable as e:
            logger.warning("Create failed remotely, assigning a local id: %s", e)
            created = {}
            remote_ok = False

        raw = {**values, **created}
        if raw.get(id_field) in (None, ""):
            raw[id_field] = store.next_id()

        record = self.entity.normalize(raw)
        store.insert(record)

        message = (
            f"{self.entity.label.capitalize()} added successfully"
            if remote_ok
            else f"Added {self.entity.label} locally due to registry error"
        )
        return RowSaveOutcome(record=record, remote_ok=remote_ok, message=message)

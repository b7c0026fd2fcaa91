# MEDGRID REGISTRY GRID

# COMPONENT: GRID SESSION
# REQUIREMENTS SATISFIED: load with fallback, cell editing, drag-fill, undo/redo, save, row operations, view state
"""
medgrid/services/grid.py

One editing session over one registry entity (drugs or manufacturers).

The session owns the record store, history log, pending-change tracker,
drag-fill state, cell markers, selection and view state, and wires them
together:

    user action -> drag-fill / cell edit / row save
                -> pending change + store mutation -> history entry
    save_all    -> sync engine drains the tracker against the registry
    view()      -> projection of the current store

Every public method returns an ``Outcome`` (or a ``BatchReport`` for
saves). Errors from the store, the history log and the registry client
are caught here and reported; none of them propagates to the caller.

Undo clears pending changes and cell markers; redo clears cell markers
only and keeps pending changes.
"""
from __future__ import annotations
from typing import Any, Dict, Iterable, List, Optional, Tuple
from contextlib import contextmanager
import json
import logging

from medgrid.errors import DuplicateIdentifier, ExternalUnavailable, NotFound, NothingToRedo, NothingToUndo
from medgrid.repositories.fallback_repo import LocalRegistry
from medgrid.repositories.record_store import RecordStore
from medgrid.schemas.grid import BatchReport, Outcome, PendingChange, ViewPage, ViewState, change_key
from medgrid.services import projection
from medgrid.services.drag_fill import DragFill
from medgrid.services.entities import EntitySpec
from medgrid.services.export import to_csv
from medgrid.services.history import HistoryLog
from medgrid.services.pending import PendingChangeTracker
from medgrid.services.registry_client import RegistryClient
from medgrid.services.sync import SyncEngine

logger = logging.getLogger("medgrid")

MODIFIED = "modified"


class GridSession:
    def __init__(
        self,
        entity: EntitySpec,
        client: Optional[RegistryClient] = None,
        fallback: Optional[LocalRegistry] = None,
    ):
        self.entity = entity
        self.client = client or RegistryClient()
        self.fallback = fallback

        self.store = RecordStore(entity.id_field)
        self.history = HistoryLog()
        self.pending = PendingChangeTracker()
        self.drag = DragFill()
        self.sync = SyncEngine(entity, self.client)

        self.cell_status: Dict[Tuple[str, str], str] = {}
        self.view_state = ViewState()
        self.selected_rows: Dict[str, Any] = {}
        self.selected_cells: set = set()
        self.last_selected_row: Optional[Any] = None

        self.busy = False
        self.source: Optional[str] = None
        self.has_unsaved_changes = False

        self.current_page = 0
        self.total_pages = 1
        self.has_more = True

    # -----------------------------
    # Internal helpers
    # -----------------------------
    @property
    def _label(self) -> str:
        return self.entity.label.capitalize()

    @contextmanager
    def _busy(self):
        self.busy = True
        try:
            yield
        finally:
            self.busy = False

    def _reset(self, records: List[Dict[str, Any]]) -> None:
        self.store.replace_all(records)
        self.history.reset(self.store.snapshot())
        self.pending.clear()
        self.cell_status.clear()
        self.drag.release()
        self.clear_selection()
        self.has_unsaved_changes = False

    def _commit(self) -> bool:
        recorded = self.history.record(self.store.snapshot())
        if recorded:
            self.has_unsaved_changes = True
        return recorded

    def _forget_row(self, row_id: Any) -> None:
        rid = str(row_id)
        self.pending.drain([k for k in self.pending.keys() if k[0] == rid])
        for k in [k for k in self.cell_status if k[0] == rid]:
            del self.cell_status[k]
        self.selected_rows.pop(rid, None)
        self.selected_cells = {k for k in self.selected_cells if k[0] != rid}

    def _apply_cell(self, record: Dict[str, Any], column_id: str, value: Any) -> None:
        row_id = record[self.entity.id_field]
        self.pending.track(row_id, column_id, record.get(column_id), value)
        updates = {column_id: value}
        updates.update(self.entity.derived_updates(row_id, column_id, value, self.store.all()))
        self.store.update(row_id, updates)
        self.cell_status[change_key(row_id, column_id)] = MODIFIED
        self._commit()

    # -----------------------------
    # Loading
    # -----------------------------
    def load(self) -> Outcome:
        if self.busy:
            return Outcome.info("Another operation is in progress", ok=False)

        name = self.entity.name
        with self._busy():
            try:
                raws = self.client.list_all(self.entity)
                source = "remote"
            except ExternalUnavailable as e:
                if self.fallback is None:
                    self._reset([])
                    self.source = None
                    return Outcome.error(f"Failed to load {name}: {e.reason}")
                logger.info("Registry unavailable, using local %s data", name)
                raws = self.fallback.list()
                source = "local"

            records = self.entity.normalize_all(raws)
            self._reset(records)
            self.source = source
            self.current_page = 0
            self.has_more = False

        if source == "local":
            return Outcome.info(f"Loaded {len(records)} {name} from local data (registry unavailable)")
        return Outcome.success(f"Loaded {len(records)} {name} successfully")

    def load_more(self, page_size: int = 300) -> Outcome:
        """Lazy loading: fetch the next registry page and append unseen records."""
        name = self.entity.name
        if not self.entity.supports("page"):
            return Outcome.info(f"Paginated loading is not available for {name}", ok=False)
        if not self.has_more:
            return Outcome.info("No more data to load", ok=False)
        if self.busy:
            return Outcome.info("Another operation is in progress", ok=False)

        next_page = self.current_page + 1
        with self._busy():
            try:
                raws, total_pages = self.client.get_page(self.entity, next_page, page_size)
            except ExternalUnavailable as e:
                self.has_more = False
                return Outcome.error(f"Failed to load {name}: {e.reason}")

            if not raws:
                self.has_more = False
                return Outcome.info("No more data to load")

            records = self.entity.normalize_all(raws)

            if next_page == 1:
                self._reset(records)
                fresh = self.store.all()
            else:
                fresh = []
                for record in records:
                    try:
                        fresh.append(self.store.insert(record))
                    except DuplicateIdentifier:
                        logger.warning("Skipping already loaded %s %s on page %d",
                                       self.entity.label, record[self.entity.id_field], next_page)
                self.history.record(self.store.snapshot())

            self.source = "remote"
            self.current_page = next_page
            self.total_pages = total_pages
            self.has_more = next_page < total_pages

        return Outcome.success(f"Loaded {len(fresh)} {name} successfully")

    # -----------------------------
    # Editing
    # -----------------------------
    def edit_cell(self, row_id: Any, column_id: str, value: Any) -> Outcome:
        if column_id == self.entity.id_field:
            return Outcome.error(f"{self.entity.id_field} cannot be edited")
        record = self.store.get(row_id)
        if record is None:
            return Outcome.error(str(NotFound(row_id)))
        if record.get(column_id) == value:
            return Outcome.info("No change")
        self._apply_cell(record, column_id, value)
        return Outcome.success(f"Updated {column_id} for {self.entity.label} {row_id}")

    def press_cell(self, row_id: Any, column_id: str) -> Outcome:
        record = self.store.get(row_id)
        if record is None:
            return Outcome.error(str(NotFound(row_id)))
        if self.drag.press(record[self.entity.id_field], column_id, record.get(column_id)):
            return Outcome.info(f"Filling {column_id} with {record.get(column_id)!r}")
        return Outcome.info("Empty cells cannot be used as a fill source", ok=False)

    def enter_cell(self, row_id: Any, column_id: str) -> Outcome:
        target = self.drag.enter(row_id, column_id)
        if target is None:
            return Outcome.info("No change")
        record = self.store.get(target.row_id)
        if record is None or record.get(target.column_id) == target.value:
            return Outcome.info("No change")
        self._apply_cell(record, target.column_id, target.value)
        return Outcome.success(f"Filled {target.column_id} for {self.entity.label} {target.row_id}")

    def release(self) -> Outcome:
        self.drag.release()
        return Outcome.info("Fill finished")

    # -----------------------------
    # History
    # -----------------------------
    def undo(self) -> Outcome:
        try:
            snapshot = self.history.undo()
        except NothingToUndo as e:
            return Outcome.info(str(e), ok=False)
        self.store.replace_all(snapshot)
        self.pending.clear()
        self.cell_status.clear()
        self.has_unsaved_changes = True
        return Outcome.info("Undo successful")

    def redo(self) -> Outcome:
        try:
            snapshot = self.history.redo()
        except NothingToRedo as e:
            return Outcome.info(str(e), ok=False)
        self.store.replace_all(snapshot)
        self.cell_status.clear()
        self.has_unsaved_changes = True
        return Outcome.info("Redo successful")

    # -----------------------------
    # Sync
    # -----------------------------
    def save_all(self) -> BatchReport:
        if not len(self.pending):
            return BatchReport(status="nothing", message="No changes to save")
        if self.busy:
            return BatchReport(status="nothing", message="A save is already in progress")

        with self._busy():
            results = self.sync.push(self.pending.changes())

        report = self.sync.summarize(results)
        ok_keys = [r.key for r in results if r.success]
        self.pending.drain(ok_keys)
        for key in ok_keys:
            self.cell_status.pop(key, None)
        if report.status == "all_succeeded":
            self.has_unsaved_changes = False

        logger.info("Save all: %s (%d/%d succeeded)", report.status, report.succeeded, report.total)
        return report

    def save_row(self, row_id: Any, values: Dict[str, Any]) -> Outcome:
        record = self.store.get(row_id)
        if record is None:
            return Outcome.error(str(NotFound(row_id)))

        before = dict(record)
        record_id = before[self.entity.id_field]
        tracked = []
        for field, value in values.items():
            if field == self.entity.id_field or before.get(field) == value:
                continue
            self.pending.track(record_id, field, before.get(field), value)
            key = change_key(record_id, field)
            self.cell_status[key] = MODIFIED
            tracked.append(key)

        result = self.sync.save_row(self.store, record_id, values)
        if result.remote_ok:
            self.pending.drain(tracked)
            for key in tracked:
                self.cell_status.pop(key, None)
        self._commit()

        if result.remote_ok:
            return Outcome.success(result.message, data=result.record)
        return Outcome.error(result.message, data=result.record)

    def delete_row(self, row_id: Any) -> Outcome:
        try:
            remote_ok = self.sync.delete(self.store, row_id)
        except NotFound as e:
            return Outcome.error(str(e))
        self._forget_row(row_id)
        self._commit()
        if remote_ok:
            return Outcome.success(f"{self._label} deleted successfully")
        return Outcome.error(f"API error during delete, {self.entity.label} removed locally")

    def delete_selected(self) -> Outcome:
        ids = list(self.selected_rows.values())
        if not ids:
            return Outcome.info("No rows selected", ok=False)
        if self.busy:
            return Outcome.info("Another operation is in progress", ok=False)

        failed = []
        deleted = 0
        with self._busy():
            for row_id in ids:
                try:
                    remote_ok = self.sync.delete(self.store, row_id)
                except NotFound:
                    failed.append(row_id)
                    continue
                deleted += 1
                self._forget_row(row_id)
                if not remote_ok:
                    failed.append(row_id)

        self.clear_selection()
        self._commit()

        name = self.entity.name
        if failed:
            return Outcome.info(
                f"Deleted {len(ids) - len(failed)} {name}, but {len(failed)} failed",
                data={"failed": failed, "removed_locally": deleted},
            )
        return Outcome.success(f"Successfully deleted {len(ids)} {name}")

    def add_record(self, values: Dict[str, Any]) -> Outcome:
        try:
            result = self.sync.create(self.store, values)
        except DuplicateIdentifier as e:
            return Outcome.error(str(e))
        self._commit()
        if result.remote_ok:
            return Outcome.success(result.message, data=result.record)
        return Outcome.info(result.message, data=result.record)

    # -----------------------------
    # Selection
    # -----------------------------
    def select_row(self, row_id: Any, ctrl: bool = False, shift: bool = False) -> List[Any]:
        rid = str(row_id)
        if ctrl:
            if rid in self.selected_rows:
                del self.selected_rows[rid]
            else:
                self.selected_rows[rid] = row_id
            self.last_selected_row = row_id
        elif shift and self.last_selected_row is not None:
            page_ids = [r[self.entity.id_field] for r in self.view().rows]
            page_keys = [str(i) for i in page_ids]
            last = str(self.last_selected_row)
            if rid in page_keys and last in page_keys:
                start, end = sorted((page_keys.index(last), page_keys.index(rid)))
                self.selected_rows = {str(i): i for i in page_ids[start:end + 1]}
        else:
            self.selected_rows = {rid: row_id}
            self.last_selected_row = row_id
        return list(self.selected_rows.values())

    def select_cell(self, row_id: Any, column_id: str, ctrl: bool = False) -> List[Tuple[str, str]]:
        key = change_key(row_id, column_id)
        if ctrl:
            self.selected_cells ^= {key}
        else:
            self.selected_cells = {key}
        return sorted(self.selected_cells)

    def clear_selection(self) -> None:
        self.selected_rows = {}
        self.selected_cells = set()
        self.last_selected_row = None

    # -----------------------------
    # View
    # -----------------------------
    def sort_by(self, field: str) -> ViewState:
        self.view_state = projection.next_sort(self.view_state, field)
        return self.view_state

    def set_filter(self, field: str, values: Iterable[str]) -> ViewState:
        filters = dict(self.view_state.column_filters)
        values = [str(v) for v in values]
        if values:
            filters[field] = values
        else:
            filters.pop(field, None)
        self.view_state = self.view_state.model_copy(update={"column_filters": filters, "page": 1})
        return self.view_state

    def set_global_filter(self, text: str) -> ViewState:
        self.view_state = self.view_state.model_copy(update={"global_filter": text or "", "page": 1})
        return self.view_state

    def clear_filters(self) -> ViewState:
        self.view_state = self.view_state.model_copy(update={"column_filters": {}, "page": 1})
        return self.view_state

    def set_page(self, page: int, page_size: Optional[int] = None) -> ViewState:
        update: Dict[str, Any] = {"page": max(1, page)}
        if page_size:
            update["page_size"] = page_size
        self.view_state = self.view_state.model_copy(update=update)
        return self.view_state

    def set_view(self, view: ViewState) -> ViewState:
        self.view_state = view
        return self.view_state

    @property
    def active_filters(self) -> List[str]:
        return [f for f, v in self.view_state.column_filters.items() if v]

    def view(self) -> ViewPage:
        return projection.project(self.store.all(), self.view_state)

    def filter_options(self, field: str) -> List[str]:
        return projection.unique_values(self.store.all(), field)

    # -----------------------------
    # Export & table state
    # -----------------------------
    def export_rows(self, fields: Optional[List[str]] = None) -> Tuple[List[Dict[str, Any]], List[Tuple[str, str]]]:
        rows = projection.filter_and_sort(self.store.all(), self.view_state)
        return rows, self.entity.column_titles(fields)

    def export_csv(self, fields: Optional[List[str]] = None) -> bytes:
        rows, columns = self.export_rows(fields)
        return to_csv(rows, columns)

    @property
    def state_key(self) -> str:
        return f"state/{self.entity.name}.json"

    def save_state(self, storage) -> Outcome:
        data = {
            "entity": self.entity.name,
            "records": self.store.snapshot(),
            "history": self.history.dump(),
            "pending": [c.model_dump() for c in self.pending.changes()],
            "paging": {
                "current_page": self.current_page,
                "total_pages": self.total_pages,
                "has_more": self.has_more,
            },
        }
        try:
            storage.put_bytes(self.state_key, json.dumps(data).encode("utf-8"))
        except Exception as e:
            logger.error("Failed to save table state for %s: %s", self.entity.name, e)
            return Outcome.error(f"Failed to save table state: {e}")
        return Outcome.success("Table state saved")

    def restore_state(self, storage) -> Outcome:
        try:
            data = json.loads(storage.get_bytes(self.state_key))
        except Exception as e:
            logger.info("No table state restored for %s: %s", self.entity.name, e)
            return Outcome.info("No saved table state found", ok=False)

        records = data.get("records") or []
        if not records:
            return Outcome.info("No saved table state found", ok=False)

        self._reset(records)
        if data.get("history"):
            self.history.load(data["history"])
        for raw in data.get("pending") or []:
            change = PendingChange(**raw)
            self.pending.track(change.row_id, change.column_id, change.old_value, change.new_value)
            self.cell_status[change.key] = MODIFIED
        self.has_unsaved_changes = bool(len(self.pending))

        # without paging info the next lazy load starts over from page 1
        paging = data.get("paging") or {}
        self.current_page = int(paging.get("current_page", 0))
        self.total_pages = int(paging.get("total_pages", 1))
        self.has_more = bool(paging.get("has_more", True))
        self.source = "restored"
        return Outcome.info("Table state restored from last session")

    # -----------------------------
    # Introspection
    # -----------------------------
    def status(self) -> Dict[str, Any]:
        return {
            "entity": self.entity.name,
            "records": len(self.store),
            "pending": len(self.pending),
            "can_undo": self.history.can_undo,
            "can_redo": self.history.can_redo,
            "has_unsaved_changes": self.has_unsaved_changes,
            "source": self.source,
            "busy": self.busy,
            "has_more": self.has_more,
            "dragging": self.drag.armed,
            "selected_rows": list(self.selected_rows.values()),
        }

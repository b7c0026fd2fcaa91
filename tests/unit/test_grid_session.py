# ---------------------------------------------------------------------------
# Unit Tests: Grid Session
#
# End-to-end behavior of one editing session over the in-memory fake
# registry:
#   - loading with fallback to local data when the registry is down
#   - cell edits, drag-fill and the derived DFSequence rule
#   - undo / redo interaction with pending changes and cell markers
#   - save-all with partial failure, row save, delete and add
#   - selection, view state and table-state persistence
# ---------------------------------------------------------------------------
# tests/unit/test_grid_session.py
import json

import pytest

from medgrid.repositories.fallback_repo import LocalRegistry, default_manufacturers
from medgrid.services.entities import DRUG, MANUFACTURER
from medgrid.services.grid import MODIFIED, GridSession


@pytest.fixture
def registry(make_registry, drug_records):
    return make_registry(drug_records)


@pytest.fixture
def session(registry):
    s = GridSession(DRUG, client=registry)
    assert s.load().ok
    return s


class MemoryStorage:
    def __init__(self):
        self.objects = {}

    def put_bytes(self, key, data):
        self.objects[key] = data

    def get_bytes(self, key):
        return self.objects[key]


# -----------------------------
# Loading
# -----------------------------
def test_load_normalizes_and_resets_history(session):
    assert len(session.store) == 3
    assert session.store.get(1)["Amount"] == 10
    assert session.store.get(3)["ATC"] == "N/A"
    assert session.source == "remote"
    assert not session.history.can_undo


def test_load_falls_back_to_local_manufacturers(make_registry):
    registry = make_registry()
    registry.fail.add("list")
    s = GridSession(MANUFACTURER, client=registry,
                    fallback=LocalRegistry("ManufacturerId", default_manufacturers()))

    outcome = s.load()

    assert outcome.ok and outcome.level == "info"
    assert "local data" in outcome.message
    assert s.source == "local"
    assert s.store.get(30)["ManufacturerName"] == "Pfizer Inc"


def test_load_without_fallback_reports_error(make_registry):
    registry = make_registry()
    registry.fail.add("list")
    outcome = GridSession(DRUG, client=registry).load()
    assert not outcome.ok
    assert outcome.message == "Failed to load drugs: status 500"


def test_load_more_appends_unseen_records(make_registry):
    registry = make_registry()
    registry.pages = {1: [{"DrugID": 1}, {"DrugID": 2}], 2: [{"DrugID": 2}, {"DrugID": 3}]}
    s = GridSession(DRUG, client=registry)

    assert s.load_more(2).ok
    assert s.has_more
    assert s.load_more(2).ok
    assert s.store.ids() == [1, 2, 3]
    assert not s.has_more
    assert s.load_more(2).message == "No more data to load"


def test_load_more_not_available_for_manufacturers(make_registry):
    s = GridSession(MANUFACTURER, client=make_registry())
    assert not s.load_more().ok


# -----------------------------
# Editing and history
# -----------------------------
def test_edit_applies_derived_rule_and_tracks_change(session):
    outcome = session.edit_cell(2, "Form", "Tablet")

    assert outcome.ok
    assert session.store.get(2)["DFSequence"] == "A"
    change = session.pending.get(2, "Form")
    assert (change.old_value, change.new_value) == ("N/A", "Tablet")
    assert session.cell_status[("2", "Form")] == MODIFIED
    assert session.history.can_undo


def test_edit_identifier_is_rejected(session):
    assert not session.edit_cell(1, "DrugID", 5).ok
    assert not session.edit_cell(99, "Form", "x").ok


def test_noop_edit_creates_no_history(session):
    outcome = session.edit_cell(1, "Form", "Tablet")
    assert outcome.message == "No change"
    assert len(session.history) == 1
    assert len(session.pending) == 0


def test_undo_clears_pending_and_redo_keeps_it_cleared(session):
    before = session.store.snapshot()
    session.edit_cell(2, "Form", "Tablet")
    after = session.store.snapshot()

    assert session.undo().ok
    assert session.store.snapshot() == before
    assert len(session.pending) == 0
    assert session.cell_status == {}

    assert session.redo().ok
    assert session.store.snapshot() == after
    assert len(session.pending) == 0


def test_edit_after_undo_prunes_redo(session):
    session.edit_cell(1, "DrugName", "a")
    session.edit_cell(1, "DrugName", "b")
    session.undo()
    session.edit_cell(3, "DrugName", "c")

    assert not session.redo().ok
    assert session.pending.keys() == [("3", "DrugName")]


def test_nothing_to_undo_is_informational(session):
    outcome = session.undo()
    assert not outcome.ok
    assert outcome.level == "info"
    assert outcome.message == "Nothing to undo"


def test_drag_fill_propagates_within_column(session):
    assert session.press_cell(1, "Form").level == "info"
    session.enter_cell(2, "Form")
    session.enter_cell(3, "Form")
    session.enter_cell(3, "Route")
    session.release()

    assert session.store.get(2)["Form"] == "Tablet"
    assert session.store.get(3)["Form"] == "Tablet"
    assert session.pending.get(3, "Form").old_value == "Capsule"
    assert session.pending.get(3, "Route") is None
    assert not session.drag.armed


def test_drag_from_empty_cell_does_nothing(session):
    assert not session.press_cell(2, "Form").ok
    session.enter_cell(3, "Form")
    assert session.store.get(3)["Form"] == "Capsule"


# -----------------------------
# Sync
# -----------------------------
def test_save_all_partial_failure_keeps_failed_change(session, registry):
    session.edit_cell(1, "DrugName", "x")
    session.edit_cell(2, "DrugName", "y")
    session.edit_cell(3, "DrugName", "z")
    registry.calls.clear()
    registry.fail_on_call.add(2)

    report = session.save_all()

    assert report.status == "partial_failure"
    assert (report.total, report.failed) == (3, 1)
    assert session.pending.keys() == [("2", "DrugName")]
    assert list(session.cell_status) == [("2", "DrugName")]
    assert session.has_unsaved_changes


def test_save_all_with_nothing_pending(session):
    assert session.save_all().status == "nothing"


def test_row_save_sets_derived_field(session, registry):
    outcome = session.save_row(2, {"Form": "Tablet", "DrugName": "Augmentin Duo"})

    assert outcome.ok
    assert outcome.data["DFSequence"] == "A"
    assert session.store.get(2)["DrugName"] == "Augmentin Duo"
    assert len(session.pending) == 0
    assert [c[1] for c in registry.calls if c[0] == "put"] == [
        "/drugs/update/2", "/dosages/updateByDrug/2", "/presentations/updateByDrug/2",
    ]


def test_row_save_failure_keeps_local_and_pending(session, registry):
    registry.fail.add("put")
    outcome = session.save_row(1, {"DrugName": "Local only"})

    assert not outcome.ok
    assert session.store.get(1)["DrugName"] == "Local only"
    assert session.pending.get(1, "DrugName") is not None


def test_delete_missing_row_leaves_store_unchanged(session):
    before = session.store.snapshot()
    outcome = session.delete_row(42)
    assert not outcome.ok
    assert session.store.snapshot() == before


def test_delete_row_drops_its_pending_changes(session, registry):
    session.edit_cell(3, "DrugName", "z")
    registry.fail.add("delete")

    outcome = session.delete_row(3)

    assert outcome.level == "error"
    assert 3 not in session.store
    assert len(session.pending) == 0


def test_add_record_synthesizes_id_when_registry_fails(session, registry):
    registry.fail.add("create")
    outcome = session.add_record({"DrugName": "Brufen"})

    assert outcome.ok and outcome.level == "info"
    assert outcome.data["DrugID"] == 4
    assert session.store.get(4)["DrugName"] == "Brufen"


def test_add_record_with_existing_id_is_an_error(session, registry):
    registry.created_id = 1
    outcome = session.add_record({"DrugName": "Dup"})
    assert outcome.level == "error"
    assert len(session.store) == 3


# -----------------------------
# Selection and view
# -----------------------------
def test_select_rows_with_ctrl_and_shift(session):
    session.select_row(1)
    assert session.select_row(3, ctrl=True) == [1, 3]
    assert session.select_row(1, ctrl=True) == [3]
    session.select_row(1)
    assert session.select_row(3, shift=True) == [1, 2, 3]


def test_delete_selected_counts_remote_failures(session, registry):
    session.select_row(1)
    session.select_row(2, ctrl=True)
    registry.fail_on_call.add(len(registry.calls) + 2)

    outcome = session.delete_selected()

    assert outcome.data == {"failed": [2], "removed_locally": 2}
    assert len(session.store) == 1
    assert session.selected_rows == {}


def test_filters_reset_page_and_project(session):
    session.set_page(2, page_size=1)
    view = session.set_filter("Form", ["Tablet", "Capsule"])
    assert view.page == 1
    assert session.active_filters == ["Form"]
    assert session.view().total == 2

    session.set_global_filter("zith")
    assert [r["DrugID"] for r in session.view().rows] == [3]

    session.clear_filters()
    session.set_global_filter("")
    assert session.view().total == 3


def test_sort_by_cycles(session):
    session.sort_by("DrugName")
    assert [r["DrugID"] for r in session.view().rows] == [2, 1, 3]
    session.sort_by("DrugName")
    assert [r["DrugID"] for r in session.view().rows] == [3, 1, 2]


def test_filter_options_skip_sentinel(session):
    assert session.filter_options("Form") == ["Capsule", "Tablet"]


def test_export_csv_follows_view(session):
    session.set_filter("Form", ["Tablet"])
    csv_bytes = session.export_csv(["DrugID", "DrugName", "Form"])
    lines = csv_bytes.decode("utf-8").splitlines()
    assert lines == ['"DrugID","DrugName","Dosage-form (clean)"', '"1","Panadol","Tablet"']


# -----------------------------
# Table state
# -----------------------------
def test_save_and_restore_state(session, registry):
    storage = MemoryStorage()
    session.edit_cell(2, "Form", "Tablet")
    assert session.save_state(storage).ok

    fresh = GridSession(DRUG, client=registry)
    outcome = fresh.restore_state(storage)

    assert outcome.ok
    assert fresh.store.get(2)["DFSequence"] == "A"
    assert fresh.pending.get(2, "Form").new_value == "Tablet"
    assert fresh.history.can_undo
    assert fresh.has_unsaved_changes


def test_restore_without_saved_state(registry):
    outcome = GridSession(DRUG, client=registry).restore_state(MemoryStorage())
    assert not outcome.ok
    assert outcome.level == "info"


# -----------------------------
# Lazy loading after restore / repeated entries
# -----------------------------
def test_load_more_skips_ids_repeated_within_a_page(make_registry):
    registry = make_registry()
    registry.pages = {1: [{"DrugID": 1}], 2: [{"DrugID": 2}, {"DrugID": 2}]}
    s = GridSession(DRUG, client=registry)

    assert s.load_more(10).ok
    outcome = s.load_more(10)

    assert outcome.ok
    assert outcome.message == "Loaded 1 drugs successfully"
    assert s.store.ids() == [1, 2]


def test_restore_then_lazy_load_continues_from_saved_page(make_registry, drug_records):
    registry = make_registry()
    registry.pages = {1: drug_records[:2], 2: drug_records[1:]}
    storage = MemoryStorage()
    first = GridSession(DRUG, client=registry)
    first.load_more(2)
    first.save_state(storage)

    restored = GridSession(DRUG, client=registry)
    restored.restore_state(storage)
    assert restored.current_page == 1 and restored.has_more

    assert restored.load_more(2).ok
    assert restored.store.ids() == [1, 2, 3]


def test_restore_without_paging_then_first_page_keeps_registry_records(make_registry, drug_records):
    storage = MemoryStorage()
    loaded = GridSession(DRUG, client=make_registry(drug_records))
    loaded.load()
    loaded.save_state(storage)
    state = json.loads(storage.objects[loaded.state_key])
    del state["paging"]
    storage.objects[loaded.state_key] = json.dumps(state).encode("utf-8")

    registry = make_registry()
    registry.pages = {1: drug_records}
    restored = GridSession(DRUG, client=registry)
    restored.restore_state(storage)

    assert restored.load_more(10).ok
    assert len(restored.store) == 3
    assert restored.store.ids() == [1, 2, 3]


def test_full_load_state_has_nothing_more_to_lazy_load(session, registry):
    storage = MemoryStorage()
    session.save_state(storage)

    restored = GridSession(DRUG, client=registry)
    restored.restore_state(storage)

    assert restored.load_more(10).message == "No more data to load"
    assert len(restored.store) == 3


def test_drag_fill_reentering_same_cell_is_a_noop(session):
    session.press_cell(1, "Form")
    session.enter_cell(2, "Form")
    history_len, pending_len = len(session.history), len(session.pending)

    outcome = session.enter_cell(2, "Form")

    assert outcome.message == "No change"
    assert len(session.history) == history_len == 2
    assert len(session.pending) == pending_len == 1
    assert session.store.get(2)["DFSequence"] == "A"
    session.release()

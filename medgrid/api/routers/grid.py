# MEDGRID REGISTRY GRID

# COMPONENT: GRID API ROUTES
# REQUIREMENTS SATISFIED: HTTP surface over the grid session (edit, fill, history, sync, view, export)
"""
medgrid/api/routers/grid.py

FastAPI endpoints exposing a ``GridSession`` per entity under
``/api/grid/{entity}``. ``entity`` is ``drugs`` or ``manufacturers``.

Grid operations report their own success or failure in the returned
``Outcome`` / ``BatchReport``; HTTP errors are used only for requests that
cannot be served at all (unknown entity or row, duplicate identifier).

Endpoints are plain ``def`` functions: the registry client is blocking, so
FastAPI runs them in its threadpool.
"""
from __future__ import annotations

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Body, Depends, HTTPException, Response

from medgrid.schemas.grid import (
    BatchReport,
    CellEdit,
    CellRef,
    CellSelect,
    FilterUpdate,
    GlobalFilter,
    LoadMoreRequest,
    Outcome,
    PageRequest,
    PendingChange,
    RowSelect,
    ViewPage,
    ViewState,
)
from medgrid.services.export import export_rows_to_storage
from medgrid.services.grid import GridSession
from medgrid.api.deps import get_grid_storage, get_session

router = APIRouter(prefix="/grid/{entity}", tags=["grid"])


def _require_row(session: GridSession, row_id: str) -> None:
    if session.store.get(row_id) is None:
        raise HTTPException(status_code=404, detail=f"{session.entity.label} {row_id} not found")


# ---------------------------------------------------------------------------
# Session / loading
# ---------------------------------------------------------------------------

@router.get("/status")
def status(session: GridSession = Depends(get_session)) -> Dict[str, Any]:
    return session.status()


@router.post("/load", response_model=Outcome)
def load(session: GridSession = Depends(get_session)):
    return session.load()


@router.post("/load-more", response_model=Outcome)
def load_more(req: Optional[LoadMoreRequest] = None,
              session: GridSession = Depends(get_session)):
    return session.load_more(req.page_size if req else 300)


# ---------------------------------------------------------------------------
# View projection
# ---------------------------------------------------------------------------

@router.get("/view", response_model=ViewPage)
def get_view(session: GridSession = Depends(get_session)):
    return session.view()


@router.put("/view", response_model=ViewPage)
def put_view(view: ViewState, session: GridSession = Depends(get_session)):
    session.set_view(view)
    return session.view()


@router.post("/sort/{field}", response_model=ViewState)
def sort(field: str, session: GridSession = Depends(get_session)):
    return session.sort_by(field)


@router.put("/filters/{field}", response_model=ViewState)
def set_filter(field: str, update: FilterUpdate, session: GridSession = Depends(get_session)):
    return session.set_filter(field, update.values)


@router.delete("/filters", response_model=ViewState)
def clear_filters(session: GridSession = Depends(get_session)):
    return session.clear_filters()


@router.get("/filters/{field}/options", response_model=List[str])
def filter_options(field: str, session: GridSession = Depends(get_session)):
    return session.filter_options(field)


@router.put("/search", response_model=ViewState)
def search(req: GlobalFilter, session: GridSession = Depends(get_session)):
    return session.set_global_filter(req.text)


@router.put("/page", response_model=ViewState)
def set_page(req: PageRequest, session: GridSession = Depends(get_session)):
    return session.set_page(req.page, req.page_size)


# ---------------------------------------------------------------------------
# Editing
# ---------------------------------------------------------------------------

@router.put("/cells", response_model=Outcome)
def edit_cell(edit: CellEdit, session: GridSession = Depends(get_session)):
    return session.edit_cell(edit.row_id, edit.column_id, edit.value)


@router.post("/drag/press", response_model=Outcome)
def drag_press(cell: CellRef, session: GridSession = Depends(get_session)):
    return session.press_cell(cell.row_id, cell.column_id)


@router.post("/drag/enter", response_model=Outcome)
def drag_enter(cell: CellRef, session: GridSession = Depends(get_session)):
    return session.enter_cell(cell.row_id, cell.column_id)


@router.post("/drag/release", response_model=Outcome)
def drag_release(session: GridSession = Depends(get_session)):
    return session.release()


@router.post("/undo", response_model=Outcome)
def undo(session: GridSession = Depends(get_session)):
    return session.undo()


@router.post("/redo", response_model=Outcome)
def redo(session: GridSession = Depends(get_session)):
    return session.redo()


# ---------------------------------------------------------------------------
# Sync and row operations
# ---------------------------------------------------------------------------

@router.get("/pending", response_model=List[PendingChange])
def pending(session: GridSession = Depends(get_session)):
    return session.pending.changes()


@router.post("/save", response_model=BatchReport)
def save_all(session: GridSession = Depends(get_session)):
    return session.save_all()


@router.post("/rows", response_model=Outcome, status_code=201)
def add_row(values: Dict[str, Any] = Body(...), session: GridSession = Depends(get_session)):
    outcome = session.add_record(values)
    if outcome.level == "error":
        raise HTTPException(status_code=409, detail=outcome.message)
    return outcome


@router.put("/rows/{row_id}", response_model=Outcome)
def save_row(row_id: str, values: Dict[str, Any] = Body(...),
             session: GridSession = Depends(get_session)):
    _require_row(session, row_id)
    return session.save_row(row_id, values)


@router.delete("/rows/{row_id}", response_model=Outcome)
def delete_row(row_id: str, session: GridSession = Depends(get_session)):
    _require_row(session, row_id)
    return session.delete_row(row_id)


@router.post("/selection/rows")
def select_row(req: RowSelect, session: GridSession = Depends(get_session)):
    return {"selected_rows": session.select_row(req.row_id, ctrl=req.ctrl, shift=req.shift)}


@router.post("/selection/cells")
def select_cell(req: CellSelect, session: GridSession = Depends(get_session)):
    cells = session.select_cell(req.row_id, req.column_id, ctrl=req.ctrl)
    return {"selected_cells": [list(c) for c in cells]}


@router.delete("/selection")
def clear_selection(session: GridSession = Depends(get_session)):
    session.clear_selection()
    return {"selected_rows": [], "selected_cells": []}


@router.delete("/selected", response_model=Outcome)
def delete_selected(session: GridSession = Depends(get_session)):
    return session.delete_selected()


# ---------------------------------------------------------------------------
# Export / table state
# ---------------------------------------------------------------------------

@router.get("/export")
def export_csv(session: GridSession = Depends(get_session)):
    filename = f"{session.entity.name}-export.csv"
    return Response(
        content=session.export_csv(),
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.post("/export", response_model=Outcome)
def export_to_storage(session: GridSession = Depends(get_session), storage=Depends(get_grid_storage)):
    rows, columns = session.export_rows()
    try:
        url = export_rows_to_storage(storage, session.entity.name, rows, columns)
    except Exception as e:
        return Outcome.error(f"Export failed: {e}")
    return Outcome.success(f"Exported {len(rows)} rows", data={"download_url": url})


@router.post("/state/save", response_model=Outcome)
def save_state(session: GridSession = Depends(get_session), storage=Depends(get_grid_storage)):
    return session.save_state(storage)


@router.post("/state/restore", response_model=Outcome)
def restore_state(session: GridSession = Depends(get_session), storage=Depends(get_grid_storage)):
    return session.restore_state(storage)

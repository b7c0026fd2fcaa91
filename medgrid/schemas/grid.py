# MEDGRID REGISTRY GRID

# COMPONENT: GRID SCHEMAS AND DATA MODELS
# REQUIREMENTS SATISFIED: pending changes, per-change results, outcomes, view state, request bodies
"""
medgrid/schemas/grid.py

Defines the Pydantic models shared by the grid core and the HTTP layer.

This module contains:
    - ``PendingChange``: one uncommitted cell edit (row, column, old, new)
    - ``SaveResult`` / ``BatchReport``: the per-change results table and the
      aggregate outcome of a sync pass
    - ``Outcome`` / ``RowSaveOutcome``: the discriminated success-or-failure
      value every user-facing grid operation returns
    - ``ViewState`` / ``ViewPage``: filter, sort and pagination state and
      the projected page of rows
    - request bodies used by the grid and manufacturer routers

Records themselves stay plain dicts: their field set differs per entity
and the grid must accept whatever the registry returns.
"""
from __future__ import annotations
from typing import Any, Dict, List, Literal, Optional, Tuple
from pydantic import BaseModel, Field

Level = Literal["success", "error", "info"]
SortDirection = Literal["asc", "desc"]
BatchStatus = Literal["nothing", "all_succeeded", "partial_failure", "all_failed"]


class PendingChange(BaseModel):
    row_id: Any
    column_id: str
    old_value: Any = None
    new_value: Any = None

    @property
    def key(self) -> Tuple[str, str]:
        return change_key(self.row_id, self.column_id)


def change_key(row_id: Any, column_id: str) -> Tuple[str, str]:
    return (str(row_id), column_id)


class SaveResult(BaseModel):
    row_id: Any
    column_id: str
    success: bool
    message: str = ""

    @property
    def key(self) -> Tuple[str, str]:
        return change_key(self.row_id, self.column_id)


class BatchReport(BaseModel):
    status: BatchStatus
    total: int = 0
    succeeded: int = 0
    failed: int = 0
    message: str = ""
    results: List[SaveResult] = Field(default_factory=list)


class Outcome(BaseModel):
    ok: bool
    level: Level
    message: str
    data: Optional[Any] = None

    @classmethod
    def success(cls, message: str, data: Any = None) -> "Outcome":
        return cls(ok=True, level="success", message=message, data=data)

    @classmethod
    def error(cls, message: str, data: Any = None) -> "Outcome":
        return cls(ok=False, level="error", message=message, data=data)

    @classmethod
    def info(cls, message: str, ok: bool = True, data: Any = None) -> "Outcome":
        return cls(ok=ok, level="info", message=message, data=data)


class RowSaveOutcome(BaseModel):
    record: Dict[str, Any]
    remote_ok: bool
    message: str = ""


# ----------------------------------------------------------------------
# View projection state
# ----------------------------------------------------------------------


class ViewState(BaseModel):
    global_filter: str = ""
    column_filters: Dict[str, List[str]] = Field(default_factory=dict)
    sort_field: Optional[str] = None
    sort_direction: Optional[SortDirection] = None
    page: int = Field(1, ge=1)
    page_size: int = Field(50, ge=1)


class ViewPage(BaseModel):
    rows: List[Dict[str, Any]]
    total: int
    page: int
    page_size: int
    total_pages: int


# ----------------------------------------------------------------------
# Request bodies
# ----------------------------------------------------------------------


class CellRef(BaseModel):
    row_id: Any
    column_id: str


class CellEdit(CellRef):
    value: Any = None


class CellSelect(CellRef):
    ctrl: bool = False


class RowSelect(BaseModel):
    row_id: Any
    ctrl: bool = False
    shift: bool = False


class FilterUpdate(BaseModel):
    values: List[str] = Field(default_factory=list)


class GlobalFilter(BaseModel):
    text: str = ""


class PageRequest(BaseModel):
    page: int = Field(1, ge=1)
    page_size: Optional[int] = Field(None, ge=1)


class LoadMoreRequest(BaseModel):
    page_size: int = Field(300, ge=1)


class ManufacturerCreate(BaseModel):
    ManufacturerName: str = Field(..., min_length=1, examples=["Pfizer Inc"])
    Country: Optional[str] = None
    ParentCompany: Optional[str] = None
    ParentGroup: Optional[str] = None


PendingChange.model_rebuild()
SaveResult.model_rebuild()
BatchReport.model_rebuild()
Outcome.model_rebuild()
RowSaveOutcome.model_rebuild()
ViewState.model_rebuild()
ViewPage.model_rebuild()
CellRef.model_rebuild()
CellEdit.model_rebuild()
CellSelect.model_rebuild()
RowSelect.model_rebuild()
FilterUpdate.model_rebuild()
GlobalFilter.model_rebuild()
PageRequest.model_rebuild()
LoadMoreRequest.model_rebuild()
ManufacturerCreate.model_rebuild()

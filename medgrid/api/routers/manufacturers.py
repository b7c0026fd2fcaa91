# MEDGRID REGISTRY GRID

# COMPONENT: MANUFACTURER REGISTRY PROXY
# REQUIREMENTS SATISFIED: remote-first manufacturer CRUD with local fallback
"""
medgrid/api/routers/manufacturers.py

Proxy routes for manufacturer records.

Every operation is tried against the external registry first. When the
registry is unavailable (``ExternalUnavailable``: network error, timeout,
non-2xx, HTML or malformed body) the same operation is applied to the
process-local fallback registry and the response carries a ``_note``
saying so. This is the single reconciliation policy for all four
operations.

Endpoints:
    - GET    /api/manufacturer        : list manufacturers
    - POST   /api/manufacturer        : add a manufacturer
    - PUT    /api/manufacturer/{id}   : update a manufacturer
    - DELETE /api/manufacturer/{id}   : delete a manufacturer
"""
from __future__ import annotations
from typing import Any, Dict, List

import logging

from fastapi import APIRouter, Body, HTTPException
from fastapi.responses import JSONResponse

from medgrid.errors import ExternalUnavailable, NotFound
from medgrid.schemas.grid import ManufacturerCreate
from medgrid.services.entities import MANUFACTURER
from medgrid.api.deps import get_client, get_fallback

logger = logging.getLogger("medgrid")

router = APIRouter(prefix="/manufacturer", tags=["manufacturers"])


def _local():
    return get_fallback(MANUFACTURER.name)


@router.get("")
def list_manufacturers() -> List[Dict[str, Any]]:
    try:
        return get_client().list_all(MANUFACTURER)
    except ExternalUnavailable as e:
        logger.info("Using local manufacturer data as fallback: %s", e.reason)
        return _local().list()


@router.post("", status_code=201)
def add_manufacturer(body: ManufacturerCreate):
    data = body.model_dump()
    try:
        return get_client().create(MANUFACTURER, data)
    except ExternalUnavailable as e:
        logger.info("Adding manufacturer locally: %s", e.reason)
        created = _local().create(data)
        return JSONResponse(
            {**created, "_note": "Added locally due to external API error"},
            status_code=201,
        )


@router.put("/{manufacturer_id}")
def update_manufacturer(manufacturer_id: str, body: Dict[str, Any] = Body(...)):
    try:
        data = get_client().update(MANUFACTURER, manufacturer_id, body)
    except ExternalUnavailable as e:
        logger.info("Updating manufacturer %s locally: %s", manufacturer_id, e.reason)
        try:
            updated = _local().update(manufacturer_id, body)
        except NotFound:
            raise HTTPException(status_code=404, detail="Manufacturer not found")
        return {**updated, "_note": "Updated locally due to external API error"}

    if data is None:
        return {**body, "_note": "Update succeeded but response parsing failed"}
    return data


@router.delete("/{manufacturer_id}")
def delete_manufacturer(manufacturer_id: str):
    try:
        data = get_client().delete(MANUFACTURER, manufacturer_id)
    except ExternalUnavailable as e:
        logger.info("Deleting manufacturer %s locally: %s", manufacturer_id, e.reason)
        try:
            _local().delete(manufacturer_id)
        except NotFound:
            raise HTTPException(status_code=404, detail="Manufacturer not found")
        return {"success": True, "_note": "Deleted locally due to external API error"}

    if data is None:
        return {"success": True, "_note": "Delete succeeded but response parsing failed"}
    return data

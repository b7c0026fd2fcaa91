# MEDGRID REGISTRY GRID

# COMPONENT: API DEPENDENCIES
# REQUIREMENTS SATISFIED: one registry client and one grid session per entity per process
"""
medgrid/api/deps.py

Process-wide objects shared by the routers: the registry client, the
local fallback registries and one ``GridSession`` per entity. All are
created lazily so importing the app needs no network or AWS access.
"""
from __future__ import annotations
from typing import Dict, Optional

from fastapi import HTTPException, Path

from medgrid.repositories.fallback_repo import LocalRegistry, default_fallback
from medgrid.services.entities import get_entity
from medgrid.services.grid import GridSession
from medgrid.services.registry_client import RegistryClient
from medgrid.services.storage import Storage, get_storage

_client: Optional[RegistryClient] = None
_fallbacks: Dict[str, Optional[LocalRegistry]] = {}
_sessions: Dict[str, GridSession] = {}


def get_client() -> RegistryClient:
    global _client
    if _client is None:
        _client = RegistryClient()
    return _client


def get_fallback(entity_name: str) -> Optional[LocalRegistry]:
    if entity_name not in _fallbacks:
        _fallbacks[entity_name] = default_fallback(entity_name)
    return _fallbacks[entity_name]


def get_session(entity: str = Path(..., description="drugs or manufacturers")) -> GridSession:
    try:
        spec = get_entity(entity)
    except KeyError:
        raise HTTPException(status_code=404, detail=f"Unknown entity '{entity}'")

    session = _sessions.get(spec.name)
    if session is None:
        session = GridSession(spec, client=get_client(), fallback=get_fallback(spec.name))
        _sessions[spec.name] = session
    return session


def get_grid_storage() -> Storage:
    return get_storage()


def reset(client: Optional[RegistryClient] = None) -> None:
    """Drop every session and fallback; optionally install a client (tests)."""
    global _client
    _client = client
    _fallbacks.clear()
    _sessions.clear()

"""Shared FastAPI dependencies injected into route handlers."""

from __future__ import annotations

from typing import Annotated

from fastapi import Depends, HTTPException, Request

from src.config import Settings, get_settings
from src.cycles.config_loader import EngineConfig
from src.cycles.store import CycleStore


async def get_store(request: Request) -> CycleStore:
    """Return the record store attached to the app at startup."""
    store: CycleStore | None = getattr(request.app.state, "store", None)
    if store is None:
        raise HTTPException(status_code=503, detail="Record store not initialized")
    return store


async def get_engine(request: Request) -> EngineConfig:
    """Return the engine config the app was created with."""
    return request.app.state.engine_config


async def get_app_settings(request: Request) -> Settings:
    """Return the settings the app was created with, else the env-derived ones."""
    return getattr(request.app.state, "settings", None) or get_settings()


# Annotated shortcuts for route signatures
CycleStoreDep = Annotated[CycleStore, Depends(get_store)]
EngineConfigDep = Annotated[EngineConfig, Depends(get_engine)]
AppSettings = Annotated[Settings, Depends(get_app_settings)]

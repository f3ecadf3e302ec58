"""Luna API — FastAPI application entry point.

Run locally:
    uvicorn src.main:app --reload --port 8000
"""

from __future__ import annotations

import logging
import random
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from src.config import Settings, get_settings
from src.cycles.base import StoreWriteError
from src.cycles.config_loader import EngineConfig, get_engine_config, load_engine_config
from src.cycles.simulation.dataset import SyntheticDataService, default_span
from src.cycles.store import CycleStore, InMemoryCycleStore
from src.routers import cycles, health

# ---------- Logging ----------

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)-8s %(name)s — %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
    stream=sys.stdout,
)
logger = logging.getLogger("luna")


# ---------- Lifespan ----------

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup / shutdown hooks."""
    settings: Settings = app.state.settings
    logger.info(
        "Starting Luna API v%s [%s]",
        settings.app_version,
        settings.environment,
    )
    if settings.seed_on_startup:
        start, end = default_span(months=settings.synthetic_history_months)
        try:
            SyntheticDataService(app.state.engine_config).regenerate(
                app.state.store, start, end, rng=random.Random(settings.synthetic_seed)
            )
        except StoreWriteError as exc:
            # Serve an empty store rather than refuse to start
            logger.error("Initial synthetic data load failed: %s", exc)
    yield
    logger.info("Luna API shut down")


# ---------- App factory ----------

def create_app(
    settings: Settings | None = None,
    store: CycleStore | None = None,
    engine_config: EngineConfig | None = None,
) -> FastAPI:
    settings = settings or get_settings()
    logging.getLogger("luna").setLevel(settings.log_level.upper())

    app = FastAPI(
        title="Luna API",
        description=(
            "Cycle phase classification, ovulation prediction, and synthetic "
            "hormone / symptom data for the Luna cycle tracker."
        ),
        version=settings.app_version,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.store = store or InMemoryCycleStore()
    app.state.engine_config = engine_config or (
        load_engine_config(settings.engine_config_path)
        if settings.engine_config_path
        else get_engine_config()
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # ---------- Health check (outside v1 prefix, always at /health) ----------
    app.include_router(health.router)

    # ---------- API v1 routes ----------
    app.include_router(cycles.router, prefix="/api/v1")

    return app


app = create_app()

"""Endpoints for cycle phases, predictions, day views, manual logs, and demo data."""

from __future__ import annotations

import logging
import random
from datetime import date
from typing import Any

from fastapi import APIRouter, HTTPException, Query

from src.cycles.base import StoreWriteError
from src.cycles.inference.day_view import build_day_view
from src.cycles.inference.ovulation_predictor import OvulationPredictor
from src.cycles.inference.phase_classifier import PhaseClassifier
from src.cycles.simulation.dataset import SyntheticDataService, default_span
from src.cycles.store import CycleStore, RecordKind
from src.dependencies import AppSettings, CycleStoreDep, EngineConfigDep
from src.models.cycles import (
    CycleRead,
    DatasetSummary,
    DayViewRead,
    HormoneSampleCreate,
    HormoneSampleRead,
    PhaseRead,
    PredictionRead,
    RegenerateRequest,
    SymptomEntryCreate,
    SymptomEntryRead,
)

router = APIRouter(tags=["cycles"])
logger = logging.getLogger("luna.routers.cycles")


def _commit(store: CycleStore) -> None:
    result = store.save()
    if not result.ok:
        store.rollback()
        logger.warning("Store save failed: %s", result.reason)
        raise HTTPException(status_code=503, detail=f"Store write failed: {result.reason}")


# ---------- Cycles ----------

@router.get("/cycles", response_model=list[CycleRead])
async def list_cycles(store: CycleStoreDep) -> Any:
    return [CycleRead.model_validate(c) for c in store.query(RecordKind.cycle, descending=True)]


@router.get("/cycles/phase", response_model=PhaseRead)
async def get_phase(store: CycleStoreDep, day: date = Query(...)) -> Any:
    cycles = store.query(RecordKind.cycle, descending=True)
    phase, cycle_day = PhaseClassifier().classify_with_day(day, cycles)
    return PhaseRead(day=day, phase=phase, cycle_day=cycle_day)


@router.get("/cycles/prediction", response_model=PredictionRead)
async def get_prediction(store: CycleStoreDep, config: EngineConfigDep) -> Any:
    history = store.query(RecordKind.cycle)
    return PredictionRead.model_validate(OvulationPredictor(config).predict(history))


# ---------- Day view ----------

@router.get("/days/{day}", response_model=DayViewRead)
async def get_day(day: date, store: CycleStoreDep, config: EngineConfigDep) -> Any:
    view = build_day_view(
        day,
        store.query(RecordKind.cycle, descending=True),
        store.query(RecordKind.hormone_sample),
        store.query(RecordKind.symptom_entry),
        config=config,
    )
    return DayViewRead.model_validate(view)


# ---------- Manual logs ----------

@router.post("/hormone-samples", response_model=HormoneSampleRead, status_code=201)
async def create_hormone_sample(body: HormoneSampleCreate, store: CycleStoreDep) -> Any:
    sample = body.to_sample()
    store.insert(sample)
    _commit(store)
    return HormoneSampleRead.model_validate(sample)


@router.post("/symptoms", response_model=SymptomEntryRead, status_code=201)
async def create_symptom_entry(body: SymptomEntryCreate, store: CycleStoreDep) -> Any:
    entry = body.to_entry()
    store.insert(entry)
    _commit(store)
    return SymptomEntryRead.model_validate(entry)


# ---------- Synthetic data ----------

@router.post("/synthetic/regenerate", response_model=DatasetSummary)
async def regenerate_synthetic(
    body: RegenerateRequest,
    store: CycleStoreDep,
    config: EngineConfigDep,
    settings: AppSettings,
) -> Any:
    default_start, default_end = default_span(months=settings.synthetic_history_months)
    start = body.start or default_start
    end = body.end or default_end
    if end < start:
        raise HTTPException(status_code=422, detail="end must not precede start")

    seed = body.seed if body.seed is not None else settings.synthetic_seed
    try:
        dataset = SyntheticDataService(config).regenerate(
            store, start, end, rng=random.Random(seed)
        )
    except StoreWriteError as exc:
        raise HTTPException(status_code=503, detail=str(exc)) from exc
    return DatasetSummary(**dataset.counts())

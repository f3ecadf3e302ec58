"""Shared Pydantic base models and utilities."""

from __future__ import annotations

import math
from typing import Any

from pydantic import BaseModel, ConfigDict


class LunaBase(BaseModel):
    """Base model with shared config for all Luna schemas."""

    model_config = ConfigDict(
        from_attributes=True,
        populate_by_name=True,
        str_strip_whitespace=True,
    )


class ErrorDetail(BaseModel):
    detail: str


def parse_optional_float(value: Any) -> float | None:
    """Coerce manual numeric input, treating anything unparseable as not measured.

    Blank strings, non-numeric text, booleans and non-finite numbers all
    become None rather than a validation error, so one bad field never
    blocks the rest of the record.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            number = float(text)
        except ValueError:
            return None
    else:
        return None
    return number if math.isfinite(number) else None

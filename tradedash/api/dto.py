"""DTOs for FastAPI endpoints."""
from __future__ import annotations

from typing import Dict, Optional

from pydantic import BaseModel, Field


class FiltersRequest(BaseModel):
    """Raw URL query values; parsed with the same rules as the page URL."""

    query: Optional[str] = None
    params: Dict[str, str] = Field(default_factory=dict)


class ToggleRequest(BaseModel):
    enabled: bool


class PointerRequest(BaseModel):
    x: str | float


class StateResponse(BaseModel):
    mounted: bool
    generation: int
    query: str
    filters: Optional[Dict[str, object]] = None
    charts: Dict[str, Dict[str, object]] = Field(default_factory=dict)

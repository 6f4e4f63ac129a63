"""Configuration loading utilities for the dashboard."""
from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, List

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field

SUPPORTED_INTERVALS: List[str] = ["1m", "5m", "15m", "1h", "4h", "1d"]
SUPPORTED_GROUPS: List[str] = ["day", "week", "month", "range"]


class BackendSettings(BaseModel):
    base_url: str = "http://localhost:8080"
    timeout_seconds: float = Field(15.0, gt=0.0)


class DashboardSettings(BaseModel):
    symbol: str = "BTCUSDT"
    interval: str = Field("1m", pattern="^(1m|5m|15m|1h|4h|1d)$")
    lookback_days: int = Field(7, ge=1)
    klines_limit: int = Field(1500, ge=1)
    trades_page_size: int = Field(500, ge=1)
    bandit_pull_limit: int = Field(50, ge=1)


class RibbonSettings(BaseModel):
    max_samples: int = Field(60, ge=1)
    tail_duration_ms: int = Field(60_000, gt=0)


class LoggingSettings(BaseModel):
    level: str = "INFO"


class Settings(BaseModel):
    backend: BackendSettings = Field(default_factory=BackendSettings)
    dashboard: DashboardSettings = Field(default_factory=DashboardSettings)
    ribbon: RibbonSettings = Field(default_factory=RibbonSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)


def _load_yaml(path: Path) -> Dict[str, Any]:
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")
    with path.open("r", encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def load_settings(path: Path | str = Path("configs/settings.yaml")) -> Settings:
    """Load dashboard settings from YAML and environment variables."""
    load_dotenv()
    path = Path(path)
    raw = _load_yaml(path) if path.exists() else {}
    settings = Settings.model_validate(raw)

    # allow overriding via environment variables
    backend_url = os.getenv("TRADEDASH_BACKEND_URL")
    symbol = os.getenv("SYMBOL")
    interval = os.getenv("INTERVAL")
    if backend_url:
        settings.backend.base_url = backend_url
    if symbol:
        settings.dashboard.symbol = symbol
    if interval in SUPPORTED_INTERVALS:
        settings.dashboard.interval = interval
    return settings


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return load_settings()

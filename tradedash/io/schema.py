"""Pydantic models for payloads returned by the reporting service.

Every backend response is decoded once here. Numeric fields accept numbers
or numeric strings and fall back to ``None`` for anything else, timestamps
are normalised to canonical ISO-8601 UTC strings, and optional sub-objects
default to ``None`` so the render layer never has to probe raw dicts.
"""
from __future__ import annotations

import math
from typing import Annotated, Any, Dict, List, Optional, Sequence, Type, TypeVar

from pydantic import AliasChoices, BaseModel, BeforeValidator, ConfigDict, Field
from pydantic.alias_generators import to_camel

from ..utils.time import normalise_ts


def _lenient_float(value: Any) -> float | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def _lenient_int(value: Any) -> int | None:
    number = _lenient_float(value)
    return int(number) if number is not None else None


def _lenient_bool(value: Any) -> bool | None:
    if isinstance(value, bool):
        return value
    if isinstance(value, str) and value.lower() in {"true", "false"}:
        return value.lower() == "true"
    return None


def _timestamp(value: Any) -> str | None:
    if value is None:
        return None
    return normalise_ts(value)


def _upper_or_none(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text.upper() or None


LenientFloat = Annotated[Optional[float], BeforeValidator(_lenient_float)]
LenientInt = Annotated[Optional[int], BeforeValidator(_lenient_int)]
LenientBool = Annotated[Optional[bool], BeforeValidator(_lenient_bool)]
Timestamp = Annotated[Optional[str], BeforeValidator(_timestamp)]
Category = Annotated[Optional[str], BeforeValidator(_upper_or_none)]


class BackendModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


class Kline(BackendModel):
    ts: Timestamp = Field(None, validation_alias=AliasChoices("closeTime", "ts", "close_time"))
    open: LenientFloat = None
    high: LenientFloat = None
    low: LenientFloat = None
    close: LenientFloat = None
    volume: LenientFloat = None


class SeriesPoint(BackendModel):
    ts: Timestamp = None
    value: LenientFloat = None


class AtrBand(BackendModel):
    ts: Timestamp = None
    upper: LenientFloat = None
    lower: LenientFloat = None


class SupertrendPoint(BackendModel):
    ts: Timestamp = None
    line: LenientFloat = None
    direction: Optional[str] = None


class Annotation(BackendModel):
    ts: Timestamp = None
    type: Category = None
    price: LenientFloat = None
    qty: LenientFloat = None
    pnl: LenientFloat = None
    fee: LenientFloat = None
    slippage_bps: LenientFloat = None
    text: Optional[str] = None


class Trade(BackendModel):
    id: LenientInt = None
    symbol: Optional[str] = None
    side: Optional[str] = None
    executed_at: Timestamp = None
    price: LenientFloat = None
    quantity: LenientFloat = None
    fee: LenientFloat = None
    pnl: LenientFloat = None
    pnl_r: LenientFloat = None
    slippage_bps: LenientFloat = None
    decision_note: Optional[str] = None


class TradePage(BackendModel):
    content: List[Trade] = Field(default_factory=list)
    total_elements: LenientInt = None


class SummaryBucket(BackendModel):
    label: Optional[str] = None
    period_start: Timestamp = None
    period_end: Timestamp = None
    trades: LenientInt = None
    wins: LenientInt = None
    losses: LenientInt = None
    win_rate: LenientFloat = None
    gross_pnl: LenientFloat = Field(None, alias="grossPnL")
    net_pnl: LenientFloat = Field(None, alias="netPnL")
    fees: LenientFloat = None
    profit_factor: LenientFloat = None
    max_drawdown: LenientFloat = None
    sharpe: LenientFloat = None
    sortino: LenientFloat = None


class HeatmapCell(BackendModel):
    x: LenientInt = None
    y: LenientInt = None
    net_pnl: LenientFloat = None
    trades: LenientInt = None


class Heatmap(BackendModel):
    cells: List[HeatmapCell] = Field(default_factory=list)


class TradingStatus(BackendModel):
    mode: Category = None
    kill_switch: LenientBool = None
    live_enabled: LenientBool = None
    risk_flags: List[str] = Field(default_factory=list)
    market_data_stale: LenientBool = None


class VarStatus(BackendModel):
    ratio: LenientFloat = None
    limit: LenientFloat = None
    exposure: LenientFloat = None
    var: LenientFloat = None
    cvar: LenientFloat = None
    qty_ratio: LenientFloat = None
    timestamp: Timestamp = None


class DriftStatus(BackendModel):
    stage: Category = None
    sizing_multiplier: LenientFloat = None


class HealthStatus(BackendModel):
    healthy: LenientBool = None
    api_error_rate_pct: LenientFloat = None
    ws_reconnects: LenientInt = None
    api_samples: LenientInt = None


class AllocatorStatus(BackendModel):
    symbol: Optional[str] = None
    allowed: LenientBool = None
    reason: Optional[str] = None
    sizing_multiplier: LenientFloat = None


class StatusOverview(BackendModel):
    symbol: Optional[str] = None
    allocator: Optional[AllocatorStatus] = None
    drift: Optional[DriftStatus] = None
    health: Optional[HealthStatus] = None
    trading: Optional[TradingStatus] = None
    var: Optional[VarStatus] = None


class RegimeSample(BackendModel):
    # kept raw; the ribbon builder decides which timestamps are usable
    timestamp: Any = Field(None, validation_alias=AliasChoices("timestamp", "ts", "t"))
    trend: Category = None
    volatility: Category = None


class RegimeState(BackendModel):
    symbol: Optional[str] = None
    regime: Optional[RegimeSample] = None
    changes: LenientInt = None
    trend_share: Dict[str, LenientFloat] = Field(default_factory=dict)
    volatility_share: Dict[str, LenientFloat] = Field(default_factory=dict)
    samples: LenientInt = None
    history: List[RegimeSample] = Field(default_factory=list)


class RegimeStatus(BackendModel):
    symbol: Optional[str] = None
    status: Optional[RegimeState] = None


class TcaStats(BackendModel):
    samples: LenientInt = None
    average_bps: LenientFloat = None
    average_queue_ms: LenientFloat = None
    hourly_average: Dict[int, LenientFloat] = Field(default_factory=dict)


class RiskSnapshot(BackendModel):
    timestamp: Timestamp = None
    symbol: Optional[str] = None
    regime: Optional[str] = None
    preset_key: Optional[str] = None
    preset_id: Optional[str] = None
    reasons_json: Optional[str] = None
    var: LenientFloat = None
    cvar: LenientFloat = None
    qty_ratio: LenientFloat = None


class BanditArmStats(BackendModel):
    pulls: LenientInt = None
    observations: LenientInt = None
    mean: LenientFloat = None
    variance: LenientFloat = None
    effective_count: LenientFloat = None


class BanditArm(BackendModel):
    id: Optional[str] = None
    symbol: Optional[str] = None
    regime: Optional[str] = None
    side: Optional[str] = None
    preset_id: Optional[str] = None
    status: Optional[str] = None
    role: Optional[str] = None
    stats: BanditArmStats = Field(default_factory=BanditArmStats)
    updated_at: Timestamp = None


class BanditPull(BackendModel):
    id: LenientInt = None
    arm_id: Optional[str] = None
    timestamp: Timestamp = None
    decision_id: Optional[str] = None
    reward: LenientFloat = None
    pnl_r: LenientFloat = None
    slippage_bps: LenientFloat = None
    fees_bps: LenientFloat = None
    role: Optional[str] = None


class BanditOverview(BackendModel):
    algorithm: Optional[str] = None
    candidate_share: LenientFloat = None
    total_pulls: LenientInt = None
    candidate_pulls: LenientInt = None


ModelT = TypeVar("ModelT", bound=BaseModel)


def decode_model(model: Type[ModelT], payload: Any) -> ModelT:
    """Validate a JSON object payload; ``null`` becomes the model defaults."""

    if payload is None:
        return model()
    if not isinstance(payload, dict):
        raise ValueError(f"{model.__name__} expects a JSON object, got {type(payload).__name__}")
    return model.model_validate(payload)


def decode_list(model: Type[ModelT], payload: Any) -> List[ModelT]:
    """Validate a JSON array payload item by item, skipping non-object entries."""

    if payload is None:
        return []
    if not isinstance(payload, list):
        raise ValueError(f"{model.__name__} list expects a JSON array, got {type(payload).__name__}")
    items: Sequence[Any] = payload
    return [model.model_validate(item) for item in items if isinstance(item, dict)]

"""Rule-based status badges derived from the backend status overview."""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional

from ..io.schema import (
    AllocatorStatus,
    DriftStatus,
    HealthStatus,
    StatusOverview,
    TradingStatus,
    VarStatus,
)
from ..meta import Meta

VAR_WARN_RATIO = 0.7
VAR_ERROR_RATIO = 1.0


class Severity(str, Enum):
    OK = "ok"
    WARN = "warn"
    ERROR = "error"
    NEUTRAL = "neutral"


@dataclass(slots=True)
class Badge:
    key: str
    label: str
    severity: Severity
    detail: Optional[str] = None

    def as_dict(self) -> Dict[str, Optional[str]]:
        return {
            "key": self.key,
            "label": self.label,
            "severity": self.severity.value,
            "detail": self.detail,
        }


def placeholder(key: str) -> Badge:
    return Badge(key=key, label=Meta.PLACEHOLDER, severity=Severity.NEUTRAL)


def trading_badge(trading: Optional[TradingStatus]) -> Badge:
    if trading is None:
        return placeholder("trading")
    mode = trading.mode
    if trading.kill_switch or mode == "PAUSED":
        return Badge("trading", "Paused", Severity.ERROR, detail=mode)
    if trading.live_enabled:
        return Badge("trading", "Live", Severity.OK, detail=mode)
    if mode == "LIVE":
        return Badge("trading", "Live (disabled)", Severity.WARN, detail=mode)
    return Badge("trading", "Shadow", Severity.WARN, detail=mode)


def var_badge(var: Optional[VarStatus]) -> Badge:
    if var is None or var.ratio is None:
        return placeholder("var")
    ratio = var.ratio
    if ratio >= VAR_ERROR_RATIO:
        severity = Severity.ERROR
    elif ratio >= VAR_WARN_RATIO:
        severity = Severity.WARN
    else:
        severity = Severity.OK
    detail = None
    if var.exposure is not None and var.limit is not None:
        detail = f"{var.exposure:.2f} / {var.limit:.2f}"
    return Badge("var", f"VaR {ratio * 100:.0f}%", severity, detail=detail)


def drift_badge(drift: Optional[DriftStatus]) -> Badge:
    if drift is None or drift.stage is None:
        return placeholder("drift")
    if drift.stage == "NORMAL":
        severity = Severity.OK
    elif drift.stage == "REDUCED":
        severity = Severity.WARN
    else:
        severity = Severity.ERROR
    detail = None
    if drift.sizing_multiplier is not None:
        detail = f"sizing x{drift.sizing_multiplier:.2f}"
    return Badge("drift", f"Drift {drift.stage.title()}", severity, detail=detail)


def health_badge(health: Optional[HealthStatus]) -> Badge:
    if health is None or health.healthy is None:
        return placeholder("health")
    detail = None
    if health.api_error_rate_pct is not None:
        detail = f"API errors {health.api_error_rate_pct:.2f}%"
    if health.healthy:
        return Badge("health", "Healthy", Severity.OK, detail=detail)
    return Badge("health", "Degraded", Severity.ERROR, detail=detail)


def allocator_badge(allocator: Optional[AllocatorStatus]) -> Badge:
    if allocator is None or allocator.allowed is None:
        return placeholder("allocator")
    if allocator.allowed:
        return Badge("allocator", "Allocator on", Severity.OK)
    return Badge("allocator", "Allocator blocked", Severity.WARN, detail=allocator.reason)


def derive_badges(overview: Optional[StatusOverview]) -> List[Badge]:
    """Badges in display order: trading, var, drift, health, allocator."""

    overview = overview or StatusOverview()
    return [
        trading_badge(overview.trading),
        var_badge(overview.var),
        drift_badge(overview.drift),
        health_badge(overview.health),
        allocator_badge(overview.allocator),
    ]

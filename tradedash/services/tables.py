"""Tabular panels: KPI cards, trades, summary, heatmap, TCA, risk and bandit."""
from __future__ import annotations

import json
from typing import Any, Dict, Iterable, List, Optional, Sequence

import numpy as np

from ..io.schema import (
    BanditArm,
    BanditOverview,
    BanditPull,
    Heatmap,
    RegimeStatus,
    RiskSnapshot,
    SummaryBucket,
    TcaStats,
    TradePage,
)
from ..meta import Meta
from ..utils.formatting import escape, fmt, format_ts, pct
from ..utils.logging import get_logger

LOGGER = get_logger(__name__)

Row = Dict[str, str]


def _format(kind: str, value: Any) -> str:
    if kind == "pct":
        return pct(value)
    if kind == "fmt":
        return fmt(value)
    return Meta.PLACEHOLDER if value is None else str(value)


def build_kpis(summary: Sequence[SummaryBucket]) -> List[Row]:
    """KPI cards for the most recent summary bucket."""

    if not summary:
        return []
    latest = summary[-1]
    return [
        {"label": label, "value": _format(kind, getattr(latest, attr))}
        for label, attr, kind in Meta.KPI_FIELDS
    ]


def trade_rows(page: TradePage) -> List[Row]:
    return [
        {
            "executed_at": format_ts(trade.executed_at),
            "symbol": trade.symbol or Meta.PLACEHOLDER,
            "side": trade.side or Meta.PLACEHOLDER,
            "price": fmt(trade.price),
            "quantity": fmt(trade.quantity),
            "fee": fmt(trade.fee),
            "pnl": fmt(trade.pnl),
            "pnl_r": fmt(trade.pnl_r),
            "slippage_bps": fmt(trade.slippage_bps),
            "note": escape(trade.decision_note),
        }
        for trade in page.content
    ]


def summary_rows(summary: Iterable[SummaryBucket]) -> List[Row]:
    return [
        {
            "label": bucket.label or Meta.PLACEHOLDER,
            "trades": _format("raw", bucket.trades),
            "wins": _format("raw", bucket.wins),
            "losses": _format("raw", bucket.losses),
            "win_rate": pct(bucket.win_rate),
            "gross_pnl": fmt(bucket.gross_pnl),
            "net_pnl": fmt(bucket.net_pnl),
            "fees": fmt(bucket.fees),
            "profit_factor": fmt(bucket.profit_factor),
            "max_drawdown": pct(bucket.max_drawdown),
            "sharpe": fmt(bucket.sharpe),
            "sortino": fmt(bucket.sortino),
        }
        for bucket in summary
    ]


def heatmap_points(heatmap: Heatmap) -> Dict[str, Any]:
    """Scale hour/weekday cells to ``[0, 1]`` grid fractions for the heatmap renderer."""

    cells = [cell for cell in heatmap.cells if cell.x is not None and cell.y is not None]
    if not cells:
        return {"max": 0, "data": []}
    values = np.array([cell.net_pnl or 0.0 for cell in cells], dtype=float)
    peak = max(float(np.abs(values).max()), 1.0)
    data = [
        {
            "x": cell.x / (Meta.HEATMAP_HOURS - 1),
            "y": cell.y / (Meta.HEATMAP_DAYS - 1),
            "value": float(value),
        }
        for cell, value in zip(cells, values)
    ]
    return {"max": peak, "data": data}


def tca_summary(stats: TcaStats) -> Dict[str, Any]:
    hourly = [
        {"hour": hour, "average_bps": fmt(value)}
        for hour, value in sorted(stats.hourly_average.items())
    ]
    return {
        "samples": _format("raw", stats.samples),
        "average_bps": fmt(stats.average_bps),
        "average_queue_ms": fmt(stats.average_queue_ms),
        "hourly": hourly,
    }


def format_reasons(raw: Optional[str]) -> str:
    """Render the embedded reasons JSON; malformed payloads are shown verbatim."""

    if not raw:
        return ""
    try:
        decoded = json.loads(raw)
    except json.JSONDecodeError:
        LOGGER.debug("Unparsable reasons payload kept as text: %r", raw)
        return raw
    if isinstance(decoded, list):
        return ", ".join(str(item) for item in decoded)
    if isinstance(decoded, dict):
        return ", ".join(f"{key}={value}" for key, value in decoded.items())
    return str(decoded)


def risk_rows(snapshots: Iterable[RiskSnapshot]) -> List[Row]:
    return [
        {
            "timestamp": format_ts(snapshot.timestamp),
            "regime": snapshot.regime or Meta.PLACEHOLDER,
            "preset": snapshot.preset_key or snapshot.preset_id or Meta.PLACEHOLDER,
            "var": fmt(snapshot.var),
            "cvar": fmt(snapshot.cvar),
            "qty_ratio": fmt(snapshot.qty_ratio),
            "reasons": format_reasons(snapshot.reasons_json),
        }
        for snapshot in snapshots
    ]


def regime_summary(status: RegimeStatus) -> Dict[str, Any]:
    state = status.status
    if state is None:
        return {
            "trend": Meta.PLACEHOLDER,
            "volatility": Meta.PLACEHOLDER,
            "changes": Meta.PLACEHOLDER,
            "trend_share": {},
        }
    current = state.regime
    return {
        "trend": (current.trend if current and current.trend else Meta.PLACEHOLDER),
        "volatility": (current.volatility if current and current.volatility else Meta.PLACEHOLDER),
        "changes": _format("raw", state.changes),
        "trend_share": {key: pct(value) for key, value in state.trend_share.items()},
    }


def bandit_arm_rows(arms: Iterable[BanditArm]) -> List[Row]:
    return [
        {
            "preset_id": arm.preset_id or Meta.PLACEHOLDER,
            "status": arm.status or Meta.PLACEHOLDER,
            "role": arm.role or Meta.PLACEHOLDER,
            "pulls": _format("raw", arm.stats.pulls),
            "mean": fmt(arm.stats.mean),
            "variance": fmt(arm.stats.variance),
        }
        for arm in arms
    ]


def bandit_pull_rows(pulls: Iterable[BanditPull]) -> List[Row]:
    return [
        {
            "timestamp": format_ts(pull.timestamp),
            "arm_id": pull.arm_id or Meta.PLACEHOLDER,
            "reward": fmt(pull.reward),
            "pnl_r": fmt(pull.pnl_r),
            "slippage_bps": fmt(pull.slippage_bps),
            "fees_bps": fmt(pull.fees_bps),
            "decision_id": pull.decision_id or Meta.PLACEHOLDER,
        }
        for pull in pulls
    ]


def bandit_overview(overview: BanditOverview) -> Row:
    return {
        "algorithm": overview.algorithm or Meta.PLACEHOLDER,
        "candidate_share": pct(overview.candidate_share),
        "total_pulls": _format("raw", overview.total_pulls),
        "candidate_pulls": _format("raw", overview.candidate_pulls),
    }

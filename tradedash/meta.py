"""Presentation metadata shared by the chart and badge builders."""
from __future__ import annotations

from typing import Dict, Tuple


class Meta:
    """Holds application-wide lookups such as marker shapes and palette."""

    MARKER_SHAPES: Dict[str, str] = {
        "BUY": "triangle",
        "SELL": "triangle",
        "SL": "rectRot",
        "TP": "rect",
        "BE": "rectRounded",
        "TRAIL": "circle",
    }
    MARKER_COLORS: Dict[str, str] = {
        "BUY": "#22c55e",
        "SELL": "#ef4444",
        "SL": "#fb923c",
        "TP": "#60a5fa",
        "BE": "#9ca3af",
        "TRAIL": "#facc15",
    }
    DEFAULT_MARKER_SHAPE = "circle"
    DEFAULT_MARKER_COLOR = "#f59e0b"
    MARKER_BORDER_COLOR = "#111827"

    CANDLE_COLORS: Dict[str, str] = {
        "up": "#16a34a",
        "down": "#dc2626",
        "unchanged": "#6b7280",
    }
    LINE_COLORS: Dict[str, str] = {
        "price": "#1f6feb",
        "vwap": "#fbbf24",
        "anchored_vwap": "#a855f7",
        "atr": "rgba(59,130,246,0.6)",
        "supertrend": "#ef4444",
        "volume": "rgba(59,130,246,0.35)",
        "equity": "#10b981",
        "drawdown": "#f97316",
        "drawdown_fill": "rgba(249,115,22,0.12)",
    }

    REGIME_COLORS: Dict[str, str] = {
        "TREND_UP": "#16a34a",
        "TREND_DOWN": "#dc2626",
        "RANGE": "#6b7280",
    }
    REGIME_LABELS: Dict[str, str] = {
        "TREND_UP": "Trend up",
        "TREND_DOWN": "Trend down",
        "RANGE": "Range",
    }
    UNKNOWN_REGIME_COLOR = "#d1d5db"
    NO_DATA_LABEL = "No data"

    PLACEHOLDER = "--"
    KPI_FIELDS: Tuple[Tuple[str, str, str], ...] = (
        ("Net PnL", "net_pnl", "fmt"),
        ("Trades", "trades", "raw"),
        ("Win Rate", "win_rate", "pct"),
        ("Profit Factor", "profit_factor", "fmt"),
        ("Max DD", "max_drawdown", "pct"),
        ("Sharpe", "sharpe", "fmt"),
        ("Sortino", "sortino", "fmt"),
    )

    HEATMAP_HOURS = 24
    HEATMAP_DAYS = 7

    @classmethod
    def marker_style(cls, marker_type: str) -> Tuple[str, str]:
        """Return ``(shape, color)`` for an annotation type."""

        return (
            cls.MARKER_SHAPES.get(marker_type, cls.DEFAULT_MARKER_SHAPE),
            cls.MARKER_COLORS.get(marker_type, cls.DEFAULT_MARKER_COLOR),
        )

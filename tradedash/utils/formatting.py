"""Cell formatting shared by tables, tooltips and KPI cards."""
from __future__ import annotations

from ..meta import Meta
from .time import TABLE_FORMAT, parse_instant


def fmt(value: object) -> str:
    if value is None:
        return Meta.PLACEHOLDER
    if isinstance(value, bool):
        return str(value).lower()
    if isinstance(value, (int, float)):
        return f"{value:.2f}"
    return str(value)


def pct(value: object) -> str:
    if value is None or isinstance(value, bool):
        return Meta.PLACEHOLDER
    try:
        number = float(value)
    except (TypeError, ValueError):
        return Meta.PLACEHOLDER
    return f"{number * 100:.2f}%"


def format_ts(value: object) -> str:
    if not value:
        return Meta.PLACEHOLDER
    parsed = parse_instant(value)
    if parsed is None:
        return Meta.PLACEHOLDER
    return parsed.strftime(TABLE_FORMAT)


def escape(value: str | None) -> str:
    if not value:
        return ""
    return value.replace("<", "&lt;").replace(">", "&gt;")

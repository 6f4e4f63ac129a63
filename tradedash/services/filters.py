"""Filter state shared by every dashboard panel and its URL representation."""
from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta
from typing import Dict, Mapping, Optional, Sequence, Union
from urllib.parse import parse_qsl, urlencode

from ..config import SUPPORTED_GROUPS, SUPPORTED_INTERVALS, Settings
from ..utils.time import format_iso, from_display, now_utc, parse_instant, to_display, truncate_ms

QueryInput = Union[str, Mapping[str, Union[str, Sequence[str]]], None]

TOGGLE_NAMES = ("vwap", "anchored", "atr", "supertrend", "volume", "markers")
SIDES = ("BUY", "SELL")


@dataclass(slots=True)
class Toggles:
    """Overlay and panel switches controlled from the filter bar."""

    vwap: bool = True
    anchored: bool = False
    atr: bool = True
    supertrend: bool = False
    volume: bool = True
    markers: bool = True

    def as_dict(self) -> Dict[str, bool]:
        return {name: getattr(self, name) for name in TOGGLE_NAMES}


@dataclass(slots=True)
class FilterState:
    symbol: str
    interval: str
    from_ts: Optional[datetime] = None
    to_ts: Optional[datetime] = None
    side: Optional[str] = None
    status: Optional[str] = None
    group_by: str = "day"
    anchor_ts: Optional[datetime] = None
    toggles: Toggles = field(default_factory=Toggles)

    @property
    def anchored_active(self) -> bool:
        """Anchored VWAP only applies once an anchor instant is chosen."""

        return self.toggles.anchored and self.anchor_ts is not None

    def with_toggle(self, name: str, enabled: bool) -> "FilterState":
        if name not in TOGGLE_NAMES:
            raise ValueError(f"Unknown toggle: {name}")
        toggles = replace(self.toggles, **{name: bool(enabled)})
        return replace(self, toggles=toggles)

    def as_dict(self) -> Dict[str, object]:
        return {
            "symbol": self.symbol,
            "interval": self.interval,
            "from": format_iso(self.from_ts) if self.from_ts else None,
            "to": format_iso(self.to_ts) if self.to_ts else None,
            "side": self.side,
            "status": self.status,
            "groupBy": self.group_by,
            "anchorTs": format_iso(self.anchor_ts) if self.anchor_ts else None,
            "toggles": self.toggles.as_dict(),
        }


@dataclass(slots=True)
class FilterDefaults:
    symbol: str = "BTCUSDT"
    interval: str = "1m"
    from_ts: Optional[datetime] = None
    to_ts: Optional[datetime] = None
    group_by: str = "day"

    @classmethod
    def from_settings(cls, settings: Settings, *, now: Optional[datetime] = None) -> "FilterDefaults":
        end = truncate_ms(now or now_utc())
        start = end - timedelta(days=settings.dashboard.lookback_days)
        return cls(
            symbol=settings.dashboard.symbol,
            interval=settings.dashboard.interval,
            from_ts=start,
            to_ts=end,
        )


def _flatten_query(query: QueryInput) -> Dict[str, str]:
    if query is None:
        return {}
    if isinstance(query, str):
        flat: Dict[str, str] = {}
        for key, value in parse_qsl(query.lstrip("?"), keep_blank_values=True):
            # URLSearchParams.get semantics: first occurrence wins
            flat.setdefault(key, value)
        return flat
    flat = {}
    for key, value in query.items():
        if isinstance(value, (list, tuple)):
            if not value:
                continue
            value = value[0]
        if value is None:
            continue
        flat[key] = str(value)
    return flat


def _instant(raw: Dict[str, str], key: str, fallback: Optional[datetime]) -> Optional[datetime]:
    if key not in raw:
        return fallback
    parsed = parse_instant(raw[key])
    return truncate_ms(parsed) if parsed is not None else None


def parse_filters(query: QueryInput, defaults: FilterDefaults) -> FilterState:
    """Build a :class:`FilterState` from URL query values merged with ``defaults``."""

    raw = _flatten_query(query)

    symbol = (raw.get("symbol") or "").strip() or defaults.symbol
    interval = raw.get("interval", "").strip()
    if interval not in SUPPORTED_INTERVALS:
        interval = defaults.interval

    from_ts = _instant(raw, "from", defaults.from_ts)
    to_ts = _instant(raw, "to", defaults.to_ts)
    if from_ts is not None and to_ts is not None and from_ts > to_ts:
        from_ts, to_ts = to_ts, from_ts

    side = (raw.get("side") or "").strip().upper() or None
    if side not in SIDES:
        side = None
    status = (raw.get("status") or "").strip() or None

    group_by = (raw.get("groupBy") or "").strip()
    if group_by not in SUPPORTED_GROUPS:
        group_by = defaults.group_by

    anchor_ts = _instant(raw, "anchorTs", None)

    toggles = Toggles(
        vwap=raw.get("vwap") != "false",
        anchored=anchor_ts is not None,
        atr=raw.get("atr") != "false",
        supertrend=raw.get("supertrend") == "true",
        volume=raw.get("volume") != "false",
        markers=raw.get("markers") != "false",
    )

    return FilterState(
        symbol=symbol,
        interval=interval,
        from_ts=from_ts,
        to_ts=to_ts,
        side=side,
        status=status,
        group_by=group_by,
        anchor_ts=anchor_ts,
        toggles=toggles,
    )


def _bool(value: bool) -> str:
    return "true" if value else "false"


def query_params(state: FilterState) -> Dict[str, str]:
    """Ordered query mapping mirroring the URL the dashboard keeps in sync."""

    params: Dict[str, str] = {"symbol": state.symbol, "interval": state.interval}
    if state.from_ts is not None:
        params["from"] = format_iso(state.from_ts)
    if state.to_ts is not None:
        params["to"] = format_iso(state.to_ts)
    if state.side:
        params["side"] = state.side
    if state.status:
        params["status"] = state.status
    if state.anchor_ts is not None:
        params["anchorTs"] = format_iso(state.anchor_ts)
    params["groupBy"] = state.group_by
    params["vwap"] = _bool(state.toggles.vwap)
    params["atr"] = _bool(state.toggles.atr)
    params["supertrend"] = _bool(state.toggles.supertrend)
    params["volume"] = _bool(state.toggles.volume)
    params["markers"] = _bool(state.toggles.markers)
    return params


def serialize_filters(state: FilterState) -> str:
    return urlencode(query_params(state))


def base_request_params(state: FilterState) -> Dict[str, object]:
    """Parameters shared by every market/report request."""

    return {
        "symbol": state.symbol,
        "interval": state.interval,
        "from": state.from_ts,
        "to": state.to_ts,
    }


def export_params(state: FilterState) -> Dict[str, object]:
    params = base_request_params(state)
    params.update(
        {
            "side": state.side,
            "status": state.status,
            "groupBy": state.group_by,
            "anchorTs": state.anchor_ts,
        }
    )
    return params


class FilterStateManager:
    """Parse and serialise :class:`FilterState` against fixed defaults."""

    def __init__(self, defaults: FilterDefaults) -> None:
        self.defaults = defaults

    @classmethod
    def from_settings(cls, settings: Settings, *, now: Optional[datetime] = None) -> "FilterStateManager":
        return cls(FilterDefaults.from_settings(settings, now=now))

    def parse(self, query: QueryInput) -> FilterState:
        return parse_filters(query, self.defaults)

    def serialize(self, state: FilterState) -> str:
        return serialize_filters(state)

    def to_request_params(self, state: FilterState) -> Dict[str, object]:
        return base_request_params(state)

    def to_display(self, ts: Optional[datetime]) -> str:
        """Value for the filter bar's ``datetime-local`` inputs."""

        return to_display(ts)

    def from_display(self, text: Optional[str]) -> Optional[datetime]:
        return from_display(text)

"""Thin async JSON client for the bot's reporting service."""
from __future__ import annotations

from datetime import datetime
from typing import Any, Callable, Dict, Mapping, Optional
from urllib.parse import urlencode

import httpx

from ..utils.logging import get_logger
from ..utils.time import format_iso

LOGGER = get_logger(__name__)

MARKET_KLINES = "/api/market/klines"
MARKET_VWAP = "/api/market/vwap"
REPORT_TRADES = "/api/reports/trades"
REPORT_SUMMARY = "/api/reports/summary"
REPORT_EQUITY = "/api/reports/equity"
REPORT_DRAWDOWN = "/api/reports/drawdown"
REPORT_ANNOTATIONS = "/api/reports/annotations"
REPORT_HEATMAP = "/api/reports/heatmap"
INDICATOR_ATR_BANDS = "/api/indicators/atr-bands"
INDICATOR_SUPERTREND = "/api/indicators/supertrend"
STATUS_OVERVIEW = "/api/status/overview"
REGIME_STATUS = "/api/regime/status"
TCA_SLIPPAGE = "/api/tca/slippage"
VAR_SNAPSHOTS = "/api/var/snapshots"
BANDIT_ARMS = "/api/bandit/arms"
BANDIT_PULLS = "/api/bandit/pulls"
BANDIT_OVERVIEW = "/api/bandit/overview"

EXPORT_TRADES_CSV = "/api/reports/trades/export.csv"
EXPORT_TRADES_JSON = "/api/reports/trades/export.json"
EXPORT_SUMMARY_CSV = "/api/reports/summary/export.csv"
EXPORT_HEATMAP_CSV = "/api/reports/heatmap/export.csv"


def clean_params(params: Mapping[str, Any]) -> Dict[str, str]:
    """Drop absent values and render the rest the way the backend expects."""

    cleaned: Dict[str, str] = {}
    for key, value in params.items():
        if value is None or value == "":
            continue
        if isinstance(value, bool):
            cleaned[key] = "true" if value else "false"
        elif isinstance(value, datetime):
            cleaned[key] = format_iso(value)
        else:
            cleaned[key] = str(value)
    return cleaned


class BackendClient:
    """Issue JSON GET requests against the reporting service."""

    def __init__(
        self,
        base_url: str,
        *,
        timeout: float = 15.0,
        client_factory: Optional[Callable[[], httpx.AsyncClient]] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = float(timeout)
        self._client_factory = client_factory

    def session(self) -> httpx.AsyncClient:
        """Return a fresh client; callers own it via ``async with``."""

        if self._client_factory is not None:
            return self._client_factory()
        return httpx.AsyncClient(base_url=self.base_url, timeout=self.timeout)

    async def get_json(
        self, client: httpx.AsyncClient, path: str, params: Mapping[str, Any]
    ) -> Any:
        query = clean_params(params)
        LOGGER.debug("GET %s params=%s", path, query)
        response = await client.get(path, params=query)
        response.raise_for_status()
        return response.json()

    def url_for(self, path: str, params: Mapping[str, Any]) -> str:
        query = urlencode(clean_params(params))
        return f"{self.base_url}{path}?{query}" if query else f"{self.base_url}{path}"

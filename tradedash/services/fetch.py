"""Concurrent, fixed-shape data retrieval for one dashboard refresh cycle."""
from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from functools import partial
from typing import Any, Callable, ClassVar, Dict, List, Mapping, Optional, Sequence, Tuple, Union

import httpx

from ..config import Settings
from ..io import backend as endpoints
from ..io.backend import BackendClient
from ..io.schema import (
    Annotation,
    AtrBand,
    BanditArm,
    BanditOverview,
    BanditPull,
    Heatmap,
    Kline,
    RegimeStatus,
    RiskSnapshot,
    SeriesPoint,
    StatusOverview,
    SummaryBucket,
    SupertrendPoint,
    TcaStats,
    TradePage,
    decode_list,
    decode_model,
)
from ..utils.logging import get_logger
from .filters import FilterState, base_request_params

LOGGER = get_logger(__name__)


@dataclass(frozen=True, slots=True)
class Enabled:
    """Overlay whose toggle was on; ``data`` may still be empty."""

    data: Tuple[Any, ...]
    enabled: ClassVar[bool] = True


@dataclass(frozen=True, slots=True)
class Disabled:
    """Overlay whose toggle was off; no request was issued."""

    enabled: ClassVar[bool] = False

    @property
    def data(self) -> Tuple[Any, ...]:
        return ()


DISABLED = Disabled()
Overlay = Union[Enabled, Disabled]

BASE_SLOTS: Tuple[str, ...] = (
    "candles",
    "trades",
    "summary",
    "equity",
    "drawdown",
    "annotations",
    "heatmap",
    "status",
    "regime",
    "tca",
    "risk",
)
OVERLAY_SLOTS: Tuple[str, ...] = ("vwap", "anchored_vwap", "atr", "supertrend")
SLOTS: Tuple[str, ...] = BASE_SLOTS + OVERLAY_SLOTS


class DashboardFetchError(RuntimeError):
    """Raised when any request of a cycle fails; the whole cycle is void."""

    def __init__(self, slot: str, cause: BaseException) -> None:
        super().__init__(f"Failed to load '{slot}': {cause}")
        self.slot = slot
        self.cause = cause


@dataclass(frozen=True, slots=True)
class RequestDescriptor:
    slot: str
    path: Optional[str]
    params: Mapping[str, object] = field(default_factory=dict)
    decoder: Callable[[Any], Any] = lambda payload: payload
    overlay: bool = False

    @property
    def enabled(self) -> bool:
        return self.path is not None


@dataclass(slots=True)
class FetchResult:
    candles: List[Kline]
    trades: TradePage
    summary: List[SummaryBucket]
    equity: List[SeriesPoint]
    drawdown: List[SeriesPoint]
    annotations: List[Annotation]
    heatmap: Heatmap
    status: StatusOverview
    regime: RegimeStatus
    tca: TcaStats
    risk: List[RiskSnapshot]
    vwap: Overlay = DISABLED
    anchored_vwap: Overlay = DISABLED
    atr: Overlay = DISABLED
    supertrend: Overlay = DISABLED

    def overlays(self) -> Dict[str, Overlay]:
        return {slot: getattr(self, slot) for slot in OVERLAY_SLOTS}


@dataclass(slots=True)
class BanditPanel:
    arms: List[BanditArm]
    overview: BanditOverview
    pulls: Overlay = DISABLED


def _gated(slot: str, enabled: bool, path: str, params: Mapping[str, object], decoder) -> RequestDescriptor:
    if not enabled:
        return RequestDescriptor(slot=slot, path=None, overlay=True)
    return RequestDescriptor(slot=slot, path=path, params=params, decoder=decoder, overlay=True)


class DataFetchOrchestrator:
    """Build and run the fixed set of requests behind one refresh cycle."""

    def __init__(
        self,
        backend: BackendClient,
        *,
        klines_limit: int = 1500,
        trades_page_size: int = 500,
        bandit_pull_limit: int = 50,
    ) -> None:
        self.backend = backend
        self.klines_limit = int(klines_limit)
        self.trades_page_size = int(trades_page_size)
        self.bandit_pull_limit = int(bandit_pull_limit)

    @classmethod
    def from_settings(cls, settings: Settings, **client_kwargs: Any) -> "DataFetchOrchestrator":
        backend = BackendClient(
            settings.backend.base_url,
            timeout=settings.backend.timeout_seconds,
            **client_kwargs,
        )
        return cls(
            backend,
            klines_limit=settings.dashboard.klines_limit,
            trades_page_size=settings.dashboard.trades_page_size,
            bandit_pull_limit=settings.dashboard.bandit_pull_limit,
        )

    def build_requests(self, state: FilterState) -> List[RequestDescriptor]:
        """Return one descriptor per slot, always in :data:`SLOTS` order."""

        base = base_request_params(state)
        toggles = state.toggles
        requests = [
            RequestDescriptor(
                "candles",
                endpoints.MARKET_KLINES,
                {**base, "limit": self.klines_limit},
                partial(decode_list, Kline),
            ),
            RequestDescriptor(
                "trades",
                endpoints.REPORT_TRADES,
                {**base, "side": state.side, "status": state.status, "size": self.trades_page_size},
                partial(decode_model, TradePage),
            ),
            RequestDescriptor(
                "summary",
                endpoints.REPORT_SUMMARY,
                {**base, "groupBy": state.group_by},
                partial(decode_list, SummaryBucket),
            ),
            RequestDescriptor("equity", endpoints.REPORT_EQUITY, base, partial(decode_list, SeriesPoint)),
            RequestDescriptor("drawdown", endpoints.REPORT_DRAWDOWN, base, partial(decode_list, SeriesPoint)),
            RequestDescriptor(
                "annotations",
                endpoints.REPORT_ANNOTATIONS,
                {**base, "includeAdvanced": toggles.markers},
                partial(decode_list, Annotation),
            ),
            RequestDescriptor("heatmap", endpoints.REPORT_HEATMAP, base, partial(decode_model, Heatmap)),
            RequestDescriptor(
                "status",
                endpoints.STATUS_OVERVIEW,
                {"symbol": state.symbol},
                partial(decode_model, StatusOverview),
            ),
            RequestDescriptor(
                "regime",
                endpoints.REGIME_STATUS,
                {"symbol": state.symbol},
                partial(decode_model, RegimeStatus),
            ),
            RequestDescriptor(
                "tca",
                endpoints.TCA_SLIPPAGE,
                {"symbol": state.symbol, "from": state.from_ts, "to": state.to_ts},
                partial(decode_model, TcaStats),
            ),
            RequestDescriptor(
                "risk",
                endpoints.VAR_SNAPSHOTS,
                {"symbol": state.symbol, "from": state.from_ts},
                partial(decode_list, RiskSnapshot),
            ),
            _gated("vwap", toggles.vwap, endpoints.MARKET_VWAP, base, partial(decode_list, SeriesPoint)),
            _gated(
                "anchored_vwap",
                state.anchored_active,
                endpoints.MARKET_VWAP,
                {**base, "anchorTs": state.anchor_ts},
                partial(decode_list, SeriesPoint),
            ),
            _gated("atr", toggles.atr, endpoints.INDICATOR_ATR_BANDS, base, partial(decode_list, AtrBand)),
            _gated(
                "supertrend",
                toggles.supertrend,
                endpoints.INDICATOR_SUPERTREND,
                base,
                partial(decode_list, SupertrendPoint),
            ),
        ]
        return requests

    async def _resolve(self, client: httpx.AsyncClient, request: RequestDescriptor) -> Any:
        if not request.enabled:
            return DISABLED
        payload = await self.backend.get_json(client, request.path, request.params)
        decoded = request.decoder(payload)
        if request.overlay:
            return Enabled(tuple(decoded))
        return decoded

    async def _gather(self, requests: Sequence[RequestDescriptor]) -> Dict[str, Any]:
        async with self.backend.session() as client:
            outcomes = await asyncio.gather(
                *(self._resolve(client, request) for request in requests),
                return_exceptions=True,
            )

        resolved: Dict[str, Any] = {}
        for request, outcome in zip(requests, outcomes):
            if isinstance(outcome, (httpx.HTTPError, ValueError)):
                LOGGER.warning("Request for %s (%s) failed: %s", request.slot, request.path, outcome)
                raise DashboardFetchError(request.slot, outcome) from outcome
            if isinstance(outcome, BaseException):
                raise outcome
            resolved[request.slot] = outcome
        return resolved

    async def fetch(self, state: FilterState) -> FetchResult:
        """Run every request concurrently and return them as one snapshot."""

        requests = self.build_requests(state)
        resolved = await self._gather(requests)
        enabled = sum(1 for request in requests if request.enabled)
        LOGGER.info(
            "Loaded dashboard data for %s %s (%s requests, %s overlays disabled)",
            state.symbol,
            state.interval,
            enabled,
            len(requests) - enabled,
        )
        return FetchResult(**resolved)

    def build_bandit_requests(
        self, symbol: str, regime: Optional[str] = None, side: Optional[str] = None
    ) -> List[RequestDescriptor]:
        pulls_enabled = bool(regime) and bool(side)
        return [
            RequestDescriptor(
                "arms",
                endpoints.BANDIT_ARMS,
                {"symbol": symbol, "regime": regime, "side": side},
                partial(decode_list, BanditArm),
            ),
            RequestDescriptor(
                "overview",
                endpoints.BANDIT_OVERVIEW,
                {"symbol": symbol},
                partial(decode_model, BanditOverview),
            ),
            _gated(
                "pulls",
                pulls_enabled,
                endpoints.BANDIT_PULLS,
                {"symbol": symbol, "regime": regime, "side": side, "limit": self.bandit_pull_limit},
                partial(decode_list, BanditPull),
            ),
        ]

    async def fetch_bandit(
        self, symbol: str, regime: Optional[str] = None, side: Optional[str] = None
    ) -> BanditPanel:
        """Load bandit arms, overview and (when scoped) the recent pulls."""

        resolved = await self._gather(self.build_bandit_requests(symbol, regime, side))
        return BanditPanel(**resolved)

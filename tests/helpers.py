"""Shared constants and the stub reporting backend used across the suite."""
from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Any, Dict, List, Set

import httpx

from tradedash.io import backend as endpoints
from tradedash.utils.time import format_iso, parse_instant

BASE_URL = "http://backend.test"
T0 = 1_700_000_000_000
MINUTE = 60_000
NOW = datetime(2023, 11, 15, 12, 0, tzinfo=timezone.utc)
ANCHORED = "anchored"


def iso(epoch_ms: int) -> str:
    return format_iso(parse_instant(epoch_ms))


def default_payloads() -> Dict[str, Any]:
    return {
        endpoints.MARKET_KLINES: [
            {"closeTime": T0 + idx * MINUTE, "open": "100", "high": 101, "low": 99, "close": 100.5, "volume": 2}
            for idx in range(3)
        ],
        endpoints.MARKET_VWAP: [{"ts": T0 + idx * MINUTE, "value": 100.2} for idx in range(3)],
        ANCHORED: [{"ts": T0 + idx * MINUTE, "value": 100.4} for idx in range(1, 3)],
        endpoints.INDICATOR_ATR_BANDS: [{"ts": T0 + idx * MINUTE, "upper": 102, "lower": 98} for idx in range(3)],
        endpoints.INDICATOR_SUPERTREND: [
            {"ts": T0 + idx * MINUTE, "line": 99.5, "direction": "UP"} for idx in range(3)
        ],
        endpoints.REPORT_TRADES: {
            "content": [
                {
                    "id": 1,
                    "symbol": "BTCUSDT",
                    "side": "BUY",
                    "executedAt": T0,
                    "price": 100,
                    "quantity": "0.1",
                    "fee": 0.01,
                    "pnl": "1.5",
                    "pnlR": 0.3,
                    "slippageBps": 1.1,
                    "decisionNote": "<b>breakout</b>",
                }
            ],
            "totalElements": 1,
        },
        endpoints.REPORT_SUMMARY: [
            {
                "label": "2023-11-14",
                "trades": 3,
                "wins": 2,
                "losses": 1,
                "winRate": 0.6667,
                "grossPnL": 13.0,
                "netPnL": 12.5,
                "fees": 0.5,
                "profitFactor": 2.0,
                "maxDrawdown": 0.05,
                "sharpe": 1.2,
                "sortino": "1.4",
            }
        ],
        endpoints.REPORT_EQUITY: [{"ts": T0, "value": 1000}, {"ts": T0 + 2 * MINUTE, "value": 1010}],
        endpoints.REPORT_DRAWDOWN: [{"ts": T0 + MINUTE, "value": -0.01}],
        endpoints.REPORT_ANNOTATIONS: [
            {"ts": T0, "type": "BUY", "price": 100, "qty": 0.1, "pnl": 0, "fee": 0.01, "slippageBps": 1},
            {"ts": T0 + MINUTE, "type": "weird", "price": 101},
        ],
        endpoints.REPORT_HEATMAP: {"cells": [{"x": 23, "y": 6, "netPnl": -5}, {"x": 0, "y": 0, "netPnl": 2}]},
        endpoints.STATUS_OVERVIEW: {
            "symbol": "BTCUSDT",
            "trading": {"mode": "LIVE", "killSwitch": False, "liveEnabled": True, "riskFlags": []},
            "var": {"ratio": 0.85, "limit": 100, "exposure": 85},
            "drift": {"stage": "NORMAL", "sizingMultiplier": 1},
            "health": {"healthy": True, "apiErrorRatePct": 0.5},
            "allocator": {"allowed": False, "reason": "budget"},
        },
        endpoints.REGIME_STATUS: {
            "symbol": "BTCUSDT",
            "status": {
                "regime": {"trend": "TREND_UP", "volatility": "LO"},
                "changes": 2,
                "trendShare": {"TREND_UP": 0.6, "RANGE": 0.4},
                "history": [
                    {"timestamp": T0 + 2 * MINUTE, "trend": "TREND_UP", "volatility": "HI"},
                    {"timestamp": T0, "trend": "RANGE", "volatility": "LO"},
                ],
            },
        },
        endpoints.TCA_SLIPPAGE: {
            "samples": 10,
            "averageBps": 1.2,
            "averageQueueMs": 30,
            "hourlyAverage": {"3": 1.1, "1": 0.9},
        },
        endpoints.VAR_SNAPSHOTS: [
            {
                "timestamp": T0,
                "regime": "RANGE",
                "presetKey": "p1",
                "reasonsJson": json.dumps(["var_limit"]),
                "var": 1,
                "cvar": 2,
                "qtyRatio": 0.5,
            }
        ],
        endpoints.BANDIT_ARMS: [
            {"id": "a1", "presetId": "p1", "status": "ACTIVE", "role": "CHAMPION", "stats": {"pulls": 5, "mean": 0.2}}
        ],
        endpoints.BANDIT_OVERVIEW: {"algorithm": "THOMPSON", "candidateShare": 0.1, "totalPulls": 5},
        endpoints.BANDIT_PULLS: [{"timestamp": T0, "armId": "a1", "reward": 0.5, "decisionId": "d1"}],
    }


class StubBackend:
    """In-memory reporting service served through ``httpx.MockTransport``."""

    def __init__(self) -> None:
        self.payloads: Dict[str, Any] = default_payloads()
        self.fail: Set[str] = set()
        self.requests: List[httpx.Request] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path
        if path in self.fail:
            return httpx.Response(500, json={"error": "boom"})
        key = path
        if path == endpoints.MARKET_VWAP and "anchorTs" in request.url.params:
            key = ANCHORED
        payload = self.payloads[key]
        if payload is None:
            # httpx sends no body for json=None
            return httpx.Response(200, content=b"null", headers={"content-type": "application/json"})
        return httpx.Response(200, json=payload)

    def client_factory(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self.handler), base_url=BASE_URL)

    def paths(self) -> List[str]:
        return [request.url.path for request in self.requests]

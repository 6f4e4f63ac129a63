from __future__ import annotations

import asyncio

import pytest

from tradedash.io import backend as endpoints
from tradedash.services.compose import SeriesComposer, overlay_datasets
from tradedash.services.fetch import (
    DISABLED,
    BASE_SLOTS,
    DashboardFetchError,
    Enabled,
    SLOTS,
)

from helpers import T0, iso


def _all_toggles_off(manager):
    return manager.parse("vwap=false&atr=false&supertrend=false&volume=false&markers=false")


def test_build_requests_fixed_shape(manager, orchestrator) -> None:
    requests = orchestrator.build_requests(manager.parse(None))

    assert [request.slot for request in requests] == list(SLOTS)
    enabled = {request.slot for request in requests if request.enabled}
    assert enabled == set(BASE_SLOTS) | {"vwap", "atr"}


def test_all_optional_toggles_off_resolve_to_disabled(manager, orchestrator, stub_backend) -> None:
    state = _all_toggles_off(manager)
    result = asyncio.run(orchestrator.fetch(state))

    assert all(overlay is DISABLED for overlay in result.overlays().values())
    assert overlay_datasets(state, result) == []
    assert len(stub_backend.requests) == len(BASE_SLOTS)
    assert endpoints.MARKET_VWAP not in stub_backend.paths()
    assert endpoints.INDICATOR_ATR_BANDS not in stub_backend.paths()
    assert endpoints.INDICATOR_SUPERTREND not in stub_backend.paths()

    price = SeriesComposer().compose(state, result).price
    assert price.dataset_labels() == ["Price"]


def test_enabled_overlays_are_fetched(manager, orchestrator, stub_backend) -> None:
    state = manager.parse("supertrend=true&anchorTs=1700000000000")
    result = asyncio.run(orchestrator.fetch(state))

    assert isinstance(result.vwap, Enabled)
    assert isinstance(result.anchored_vwap, Enabled)
    assert isinstance(result.supertrend, Enabled)
    assert len(result.anchored_vwap.data) == 2
    assert result.vwap.data[0].ts == iso(T0)

    anchored = [
        request
        for request in stub_backend.requests
        if request.url.path == endpoints.MARKET_VWAP and "anchorTs" in request.url.params
    ]
    assert len(anchored) == 1
    assert anchored[0].url.params["anchorTs"] == iso(1_700_000_000_000)


def test_request_parameters(manager, orchestrator, stub_backend) -> None:
    state = manager.parse("symbol=ETHUSDT&interval=5m&side=BUY&status=CLOSED&groupBy=month&markers=false")
    asyncio.run(orchestrator.fetch(state))

    by_path = {request.url.path: request.url.params for request in stub_backend.requests}
    trades = by_path[endpoints.REPORT_TRADES]
    assert trades["symbol"] == "ETHUSDT"
    assert trades["interval"] == "5m"
    assert trades["side"] == "BUY"
    assert trades["status"] == "CLOSED"
    assert trades["size"] == "500"
    assert by_path[endpoints.MARKET_KLINES]["limit"] == "1500"
    assert by_path[endpoints.REPORT_SUMMARY]["groupBy"] == "month"
    assert by_path[endpoints.REPORT_ANNOTATIONS]["includeAdvanced"] == "false"
    assert dict(by_path[endpoints.STATUS_OVERVIEW]) == {"symbol": "ETHUSDT"}
    assert by_path[endpoints.REPORT_EQUITY]["from"].endswith("Z")


def test_decoded_records_are_typed(manager, orchestrator) -> None:
    result = asyncio.run(orchestrator.fetch(manager.parse(None)))

    assert len(result.candles) == 3
    assert result.candles[0].open == 100.0
    assert result.candles[0].ts == iso(T0)
    assert result.trades.content[0].pnl == 1.5
    assert result.summary[0].net_pnl == 12.5
    assert result.status.trading.kill_switch is False
    assert result.regime.status.changes == 2
    assert result.tca.hourly_average == {3: 1.1, 1: 0.9}


def test_failed_endpoint_aborts_cycle(manager, orchestrator, stub_backend) -> None:
    stub_backend.fail.add(endpoints.REPORT_HEATMAP)

    with pytest.raises(DashboardFetchError) as excinfo:
        asyncio.run(orchestrator.fetch(manager.parse(None)))

    assert excinfo.value.slot == "heatmap"


def test_malformed_payload_aborts_cycle(manager, orchestrator, stub_backend) -> None:
    stub_backend.payloads[endpoints.MARKET_KLINES] = {"unexpected": "object"}

    with pytest.raises(DashboardFetchError) as excinfo:
        asyncio.run(orchestrator.fetch(manager.parse(None)))

    assert excinfo.value.slot == "candles"


def test_null_payloads_fall_back_to_defaults(manager, orchestrator, stub_backend) -> None:
    stub_backend.payloads[endpoints.STATUS_OVERVIEW] = None
    stub_backend.payloads[endpoints.REPORT_EQUITY] = None

    result = asyncio.run(orchestrator.fetch(manager.parse(None)))

    assert result.status.trading is None
    assert result.equity == []


def test_bandit_pulls_need_regime_and_side(orchestrator, stub_backend) -> None:
    panel = asyncio.run(orchestrator.fetch_bandit("BTCUSDT", regime="TREND_UP"))

    assert panel.pulls is DISABLED
    assert endpoints.BANDIT_PULLS not in stub_backend.paths()
    assert panel.arms[0].stats.pulls == 5

    scoped = asyncio.run(orchestrator.fetch_bandit("BTCUSDT", regime="TREND_UP", side="BUY"))
    assert scoped.pulls.enabled
    assert scoped.pulls.data[0].arm_id == "a1"
    pulls_request = [request for request in stub_backend.requests if request.url.path == endpoints.BANDIT_PULLS][0]
    assert pulls_request.url.params["limit"] == "50"

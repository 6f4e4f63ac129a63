from __future__ import annotations

import pytest

from tradedash.services.charts import ChartFactory
from tradedash.services.compose import ChartSpec, Dataset, LinePoint
from tradedash.services.sync import CrossChartSynchronizer

from helpers import MINUTE, T0, iso


def _spec(name, epochs):
    labels = [iso(epoch) for epoch in epochs]
    dataset = Dataset(label=name, kind="line", data=[LinePoint(x=label, y=1.0) for label in labels])
    return ChartSpec(name=name, kind="line", labels=labels, datasets=[dataset])


@pytest.fixture()
def charts():
    factory = ChartFactory()
    price = factory.create(_spec("price", [T0, T0 + MINUTE, T0 + 2 * MINUTE, T0 + 3 * MINUTE]))
    equity = factory.create(_spec("equity", [T0, T0 + 2 * MINUTE, T0 + 3 * MINUTE]))
    drawdown = factory.create(_spec("drawdown", [T0 + MINUTE, T0 + 3 * MINUTE]))
    return price, equity, drawdown


@pytest.fixture()
def sync(charts):
    price, equity, drawdown = charts
    synchronizer = CrossChartSynchronizer()
    synchronizer.register(price, [equity, drawdown])
    return synchronizer


def test_shared_timestamp_highlights_both_companions(sync, charts) -> None:
    _, equity, drawdown = charts

    matches = sync.on_pointer(T0 + 3 * MINUTE)

    assert matches == {"equity": 2, "drawdown": 1}
    assert equity.active_index() == 2
    assert drawdown.active_index() == 1
    assert equity.tooltip_elements == equity.active_elements


def test_absent_timestamp_leaves_companion_unchanged(sync, charts) -> None:
    _, equity, drawdown = charts

    sync.on_pointer(T0)
    assert equity.active_index() == 0
    redraws = equity.redraws

    matches = sync.on_pointer(T0 + MINUTE)

    assert matches == {"equity": None, "drawdown": 0}
    assert equity.active_index() == 0
    assert equity.redraws == redraws
    assert drawdown.active_index() == 0


def test_pointer_snaps_to_nearest_candle(sync) -> None:
    assert sync.nearest_index(T0 + 40_000) == 1
    assert sync.nearest_index(T0 - 10 * MINUTE) == 0
    assert sync.nearest_index(T0 + 99 * MINUTE) == 3
    # halfway between two candles resolves to the earlier one
    assert sync.nearest_index(T0 + 30_000) == 0
    assert sync.nearest_index(iso(T0 + 2 * MINUTE)) == 2
    assert sync.nearest_index("not a time") is None


def test_leave_clears_highlights(sync, charts) -> None:
    _, equity, drawdown = charts
    sync.on_pointer(T0 + 3 * MINUTE)

    sync.on_leave()

    assert equity.active_elements == [] and equity.tooltip_elements == []
    assert drawdown.active_index() is None


def test_unregistered_synchronizer_is_inert(charts) -> None:
    sync = CrossChartSynchronizer()
    assert sync.on_pointer(T0) == {}

    price, equity, drawdown = charts
    sync.register(price, [equity, drawdown])
    sync.unregister()
    assert sync.on_pointer(T0) == {}
    assert equity.active_index() is None


def test_destroyed_chart_rejects_updates(charts) -> None:
    _, equity, _ = charts
    equity.destroy()

    with pytest.raises(RuntimeError):
        equity.update()

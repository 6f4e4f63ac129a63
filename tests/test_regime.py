from __future__ import annotations

import pytest

from tradedash.io.schema import RegimeSample
from tradedash.meta import Meta
from tradedash.services.regime import NO_DATA_KEY, RegimeRibbonBuilder


def test_unordered_samples_are_sorted_by_time() -> None:
    ribbon = RegimeRibbonBuilder().build([{"t": 100, "trend": "RANGE"}, {"t": 50, "trend": "TREND_UP"}])

    assert not ribbon.empty
    assert [segment.trend for segment in ribbon.segments] == ["TREND_UP", "RANGE"]
    assert ribbon.segments[0].duration_ms == 50
    assert ribbon.segments[1].duration_ms == 60_000


def test_empty_history_yields_no_data_legend() -> None:
    ribbon = RegimeRibbonBuilder().build([])

    assert ribbon.segments == []
    assert ribbon.empty
    assert [entry.key for entry in ribbon.legend] == [NO_DATA_KEY]
    assert ribbon.legend[0].label == Meta.NO_DATA_LABEL


def test_weights_follow_elapsed_time() -> None:
    samples = [
        RegimeSample(timestamp=0, trend="TREND_UP", volatility="LO"),
        RegimeSample(timestamp=3_000, trend="TREND_DOWN", volatility="HI"),
        RegimeSample(timestamp=4_000, trend="RANGE", volatility="LO"),
    ]
    ribbon = RegimeRibbonBuilder(tail_duration_ms=1_000).build(samples)

    assert [segment.weight for segment in ribbon.segments] == pytest.approx([0.6, 0.2, 0.2])
    assert sum(segment.weight for segment in ribbon.segments) == pytest.approx(1.0)
    assert ribbon.segments[0].end == ribbon.segments[1].start
    assert ribbon.segments[1].label == "Trend down / HI"
    assert ribbon.segments[0].color == Meta.REGIME_COLORS["TREND_UP"]


def test_duplicate_timestamps_keep_input_order() -> None:
    ribbon = RegimeRibbonBuilder().build(
        [
            {"timestamp": "2023-11-14T10:00:00Z", "trend": "RANGE"},
            {"timestamp": "2023-11-14T10:00:00Z", "trend": "TREND_DOWN"},
            {"timestamp": "2023-11-14T10:01:00Z", "trend": "TREND_UP"},
        ]
    )

    assert [segment.trend for segment in ribbon.segments] == ["RANGE", "TREND_DOWN", "TREND_UP"]
    assert ribbon.segments[0].duration_ms == 0
    assert ribbon.segments[1].duration_ms == 60_000


def test_only_most_recent_samples_are_kept() -> None:
    samples = [{"t": idx * 1_000, "trend": "RANGE"} for idx in range(10)]
    ribbon = RegimeRibbonBuilder(max_samples=4).build(reversed(samples))

    assert len(ribbon.segments) == 4
    assert ribbon.segments[0].start == "1970-01-01T00:00:06.000Z"


def test_unparsable_timestamps_are_dropped() -> None:
    ribbon = RegimeRibbonBuilder().build(
        [{"timestamp": "soon", "trend": "RANGE"}, {"timestamp": None, "trend": "RANGE"}, {"t": 10, "trend": "rANGE"}]
    )

    assert len(ribbon.segments) == 1
    assert ribbon.segments[0].trend == "RANGE"


def test_relative_words_are_not_timestamps() -> None:
    ribbon = RegimeRibbonBuilder().build(
        [{"timestamp": "now", "trend": "RANGE"}, {"timestamp": "today", "trend": "TREND_UP"}]
    )

    assert ribbon.empty
    assert ribbon.segments == []


def test_legend_lists_each_trend_once() -> None:
    ribbon = RegimeRibbonBuilder().build(
        [{"t": 1, "trend": "RANGE"}, {"t": 2, "trend": "TREND_UP"}, {"t": 3, "trend": "RANGE"}, {"t": 4}]
    )

    assert [entry.key for entry in ribbon.legend] == ["RANGE", "TREND_UP", "UNKNOWN"]
    assert ribbon.legend[-1].color == Meta.UNKNOWN_REGIME_COLOR


def test_builder_rejects_invalid_limits() -> None:
    with pytest.raises(ValueError):
        RegimeRibbonBuilder(max_samples=0)
    with pytest.raises(ValueError):
        RegimeRibbonBuilder(tail_duration_ms=0)

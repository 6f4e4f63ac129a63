"""Project decoded backend records into renderer-ready chart series."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Sequence

from ..io.schema import Annotation, AtrBand, Kline, SeriesPoint, SupertrendPoint
from ..meta import Meta
from ..utils.formatting import fmt
from .fetch import FetchResult, Overlay
from .filters import FilterState


@dataclass(slots=True)
class CandlePoint:
    x: str
    o: float
    h: float
    l: float
    c: float

    def as_dict(self) -> Dict[str, Any]:
        return {"x": self.x, "o": self.o, "h": self.h, "l": self.l, "c": self.c}


@dataclass(slots=True)
class LinePoint:
    """A single ``{x, y}`` sample, used for lines, bars and markers."""

    x: str
    y: float

    def as_dict(self) -> Dict[str, Any]:
        return {"x": self.x, "y": self.y}


@dataclass(slots=True)
class Dataset:
    label: str
    kind: str
    data: List[Any]
    style: Dict[str, Any] = field(default_factory=dict)
    tooltip: Optional[List[str]] = None

    def as_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "label": self.label,
            "type": self.kind,
            "data": [point.as_dict() for point in self.data],
            **self.style,
        }
        if self.tooltip is not None:
            payload["tooltip"] = list(self.tooltip)
        return payload


@dataclass(slots=True)
class ChartSpec:
    name: str
    kind: str
    labels: List[str]
    datasets: List[Dataset]
    visible: bool = True

    def dataset_labels(self) -> List[str]:
        return [dataset.label for dataset in self.datasets]

    def as_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "type": self.kind,
            "labels": list(self.labels),
            "datasets": [dataset.as_dict() for dataset in self.datasets],
            "visible": self.visible,
        }


@dataclass(slots=True)
class ComposedCharts:
    price: ChartSpec
    volume: ChartSpec
    equity: ChartSpec
    drawdown: ChartSpec

    def specs(self) -> List[ChartSpec]:
        return [self.price, self.volume, self.equity, self.drawdown]

    def as_dict(self) -> Dict[str, Any]:
        return {spec.name: spec.as_dict() for spec in self.specs()}


def to_candles(klines: Iterable[Kline]) -> List[CandlePoint]:
    candles: List[CandlePoint] = []
    for kline in klines:
        values = (kline.open, kline.high, kline.low, kline.close)
        if not kline.ts or any(value is None for value in values):
            continue
        candles.append(
            CandlePoint(
                x=kline.ts,
                o=float(kline.open),
                h=float(kline.high),
                l=float(kline.low),
                c=float(kline.close),
            )
        )
    return candles


def to_volume(klines: Iterable[Kline]) -> List[LinePoint]:
    bars: List[LinePoint] = []
    for kline in klines:
        values = (kline.open, kline.high, kline.low, kline.close)
        if not kline.ts or any(value is None for value in values):
            continue
        bars.append(LinePoint(x=kline.ts, y=float(kline.volume or 0.0)))
    return bars


def line_points(points: Iterable[Any], attr: str = "value") -> List[LinePoint]:
    """Project ``{ts, <attr>}`` records to line points, dropping incomplete ones."""

    projected: List[LinePoint] = []
    for point in points:
        value = getattr(point, attr, None)
        if not point.ts or value is None:
            continue
        projected.append(LinePoint(x=point.ts, y=float(value)))
    return projected


def marker_tooltip(annotation: Annotation) -> List[str]:
    lines = [
        f"{annotation.type or 'UNKNOWN'} @ {fmt(annotation.price)} qty {fmt(annotation.qty)} "
        f"PnL {fmt(annotation.pnl)} fee {fmt(annotation.fee)} slippage {fmt(annotation.slippage_bps)}"
    ]
    if annotation.text:
        lines.append(annotation.text)
    return lines


def build_markers(annotations: Iterable[Annotation]) -> List[Dataset]:
    """One scatter dataset per annotation, styled by its type."""

    datasets: List[Dataset] = []
    for annotation in annotations:
        if not annotation.ts or annotation.price is None:
            continue
        marker_type = annotation.type or "UNKNOWN"
        shape, color = Meta.marker_style(marker_type)
        datasets.append(
            Dataset(
                label=marker_type,
                kind="scatter",
                data=[LinePoint(x=annotation.ts, y=float(annotation.price))],
                style={
                    "yAxisID": "y",
                    "pointRadius": 6,
                    "pointStyle": shape,
                    "pointBackgroundColor": color,
                    "pointBorderColor": Meta.MARKER_BORDER_COLOR,
                    "pointBorderWidth": 1,
                },
                tooltip=marker_tooltip(annotation),
            )
        )
    return datasets


def _line(label: str, points: List[LinePoint], **style: Any) -> Dataset:
    base = {"borderWidth": 1.0, "pointRadius": 0, "yAxisID": "y"}
    base.update(style)
    return Dataset(label=label, kind="line", data=points, style=base)


def _active(toggle: bool, overlay: Overlay) -> bool:
    return toggle and overlay.enabled and bool(overlay.data)


def overlay_datasets(state: FilterState, result: FetchResult) -> List[Dataset]:
    """Line datasets for the enabled, non-empty overlays only."""

    toggles = state.toggles
    datasets: List[Dataset] = []

    if _active(toggles.vwap, result.vwap):
        points = line_points(result.vwap.data)
        if points:
            datasets.append(
                _line("VWAP", points, borderColor=Meta.LINE_COLORS["vwap"], borderWidth=1.5, tension=0.1)
            )
    if _active(state.anchored_active, result.anchored_vwap):
        points = line_points(result.anchored_vwap.data)
        if points:
            datasets.append(
                _line(
                    "Anchored VWAP",
                    points,
                    borderColor=Meta.LINE_COLORS["anchored_vwap"],
                    borderDash=[4, 4],
                    borderWidth=1.2,
                    tension=0.1,
                )
            )
    if _active(toggles.atr, result.atr):
        bands: Sequence[AtrBand] = result.atr.data
        upper = line_points(bands, "upper")
        lower = line_points(bands, "lower")
        if upper:
            datasets.append(_line("ATR Upper", upper, borderColor=Meta.LINE_COLORS["atr"], fill="+1"))
        if lower:
            datasets.append(_line("ATR Lower", lower, borderColor=Meta.LINE_COLORS["atr"]))
    if _active(toggles.supertrend, result.supertrend):
        trend: Sequence[SupertrendPoint] = result.supertrend.data
        points = line_points(trend, "line")
        if points:
            datasets.append(
                _line("Supertrend", points, borderColor=Meta.LINE_COLORS["supertrend"], borderWidth=1.3)
            )
    return datasets


def _series_chart(name: str, label: str, points: Sequence[SeriesPoint], **style: Any) -> ChartSpec:
    data = line_points(points)
    dataset = Dataset(
        label=label,
        kind="line",
        data=data,
        style={"borderWidth": 1.5, "pointRadius": 0, "tension": 0.1, **style},
    )
    return ChartSpec(name=name, kind="line", labels=[point.x for point in data], datasets=[dataset])


class SeriesComposer:
    """Turn one :class:`FetchResult` into the price, volume, equity and drawdown charts."""

    def compose(self, state: FilterState, result: FetchResult) -> ComposedCharts:
        candles = to_candles(result.candles)
        labels = [candle.x for candle in candles]

        price_sets = [
            Dataset(
                label="Price",
                kind="candlestick",
                data=candles,
                style={
                    "yAxisID": "y",
                    "borderColor": Meta.LINE_COLORS["price"],
                    "color": dict(Meta.CANDLE_COLORS),
                },
            )
        ]
        if state.toggles.markers:
            price_sets.extend(build_markers(result.annotations))
        price_sets.extend(overlay_datasets(state, result))

        volume = ChartSpec(
            name="volume",
            kind="bar",
            labels=list(labels),
            datasets=[
                Dataset(
                    label="Volume",
                    kind="bar",
                    data=to_volume(result.candles),
                    style={"backgroundColor": Meta.LINE_COLORS["volume"], "borderWidth": 0},
                )
            ],
            visible=state.toggles.volume,
        )

        return ComposedCharts(
            price=ChartSpec(name="price", kind="candlestick", labels=labels, datasets=price_sets),
            volume=volume,
            equity=_series_chart("equity", "Equity", result.equity, borderColor=Meta.LINE_COLORS["equity"]),
            drawdown=_series_chart(
                "drawdown",
                "Drawdown",
                result.drawdown,
                borderColor=Meta.LINE_COLORS["drawdown"],
                fill=True,
                backgroundColor=Meta.LINE_COLORS["drawdown_fill"],
            ),
        )

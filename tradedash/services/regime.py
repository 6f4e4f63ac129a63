"""Turn irregular regime samples into a duration-weighted timeline ribbon."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Tuple, Union

from ..config import Settings
from ..io.schema import RegimeSample
from ..meta import Meta
from ..utils.time import format_iso, parse_instant

SampleInput = Union[RegimeSample, Mapping[str, Any]]

NO_DATA_KEY = "NO_DATA"


@dataclass(slots=True)
class RibbonSegment:
    start: str
    end: str
    trend: str | None
    volatility: str | None
    duration_ms: int
    weight: float
    label: str
    color: str

    def as_dict(self) -> Dict[str, Any]:
        return {
            "start": self.start,
            "end": self.end,
            "trend": self.trend,
            "volatility": self.volatility,
            "duration_ms": self.duration_ms,
            "weight": self.weight,
            "label": self.label,
            "color": self.color,
        }


@dataclass(slots=True)
class LegendEntry:
    key: str
    label: str
    color: str

    def as_dict(self) -> Dict[str, str]:
        return {"key": self.key, "label": self.label, "color": self.color}


@dataclass(slots=True)
class RegimeRibbon:
    segments: List[RibbonSegment] = field(default_factory=list)
    legend: List[LegendEntry] = field(default_factory=list)
    empty: bool = True

    def as_dict(self) -> Dict[str, Any]:
        return {
            "segments": [segment.as_dict() for segment in self.segments],
            "legend": [entry.as_dict() for entry in self.legend],
            "empty": self.empty,
        }


def _segment_label(trend: str | None, volatility: str | None) -> str:
    trend_label = Meta.REGIME_LABELS.get(trend or "", trend or "Unknown")
    return f"{trend_label} / {volatility or '?'}"


def _coerce(sample: SampleInput) -> RegimeSample:
    if isinstance(sample, RegimeSample):
        return sample
    return RegimeSample.model_validate(dict(sample))


class RegimeRibbonBuilder:
    """Build contiguous ribbon segments whose width follows elapsed time.

    Samples with unparsable timestamps are dropped, the rest are stably
    sorted by time and only the most recent ``max_samples`` are kept. Each
    segment lasts until the next sample starts; the final one gets a fixed
    ``tail_duration_ms`` so it stays visible.
    """

    def __init__(self, *, max_samples: int = 60, tail_duration_ms: int = 60_000) -> None:
        if max_samples <= 0:
            raise ValueError("max_samples must be positive")
        if tail_duration_ms <= 0:
            raise ValueError("tail_duration_ms must be positive")
        self.max_samples = int(max_samples)
        self.tail_duration_ms = int(tail_duration_ms)

    @classmethod
    def from_settings(cls, settings: Settings) -> "RegimeRibbonBuilder":
        return cls(
            max_samples=settings.ribbon.max_samples,
            tail_duration_ms=settings.ribbon.tail_duration_ms,
        )

    def _ordered(self, samples: Iterable[SampleInput]) -> List[Tuple[int, RegimeSample]]:
        timed: List[Tuple[int, RegimeSample]] = []
        for raw in samples:
            sample = _coerce(raw)
            instant = parse_instant(sample.timestamp)
            if instant is None:
                continue
            timed.append((int(instant.timestamp() * 1000), sample))
        timed.sort(key=lambda item: item[0])
        return timed[-self.max_samples:]

    def build(self, samples: Iterable[SampleInput]) -> RegimeRibbon:
        ordered = self._ordered(samples)
        if not ordered:
            return RegimeRibbon(
                segments=[],
                legend=[LegendEntry(NO_DATA_KEY, Meta.NO_DATA_LABEL, Meta.UNKNOWN_REGIME_COLOR)],
                empty=True,
            )

        durations: List[int] = []
        for idx, (epoch_ms, _) in enumerate(ordered):
            if idx + 1 < len(ordered):
                durations.append(ordered[idx + 1][0] - epoch_ms)
            else:
                durations.append(self.tail_duration_ms)
        total = sum(durations)

        segments: List[RibbonSegment] = []
        legend: Dict[str, LegendEntry] = {}
        for (epoch_ms, sample), duration in zip(ordered, durations):
            start = parse_instant(epoch_ms)
            end = parse_instant(epoch_ms + duration)
            color = Meta.REGIME_COLORS.get(sample.trend or "", Meta.UNKNOWN_REGIME_COLOR)
            segments.append(
                RibbonSegment(
                    start=format_iso(start),
                    end=format_iso(end),
                    trend=sample.trend,
                    volatility=sample.volatility,
                    duration_ms=duration,
                    weight=duration / total if total > 0 else 0.0,
                    label=_segment_label(sample.trend, sample.volatility),
                    color=color,
                )
            )
            key = sample.trend or "UNKNOWN"
            if key not in legend:
                legend[key] = LegendEntry(key, Meta.REGIME_LABELS.get(key, key.title()), color)

        return RegimeRibbon(segments=segments, legend=list(legend.values()), empty=False)

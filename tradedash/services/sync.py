"""Mirror hover highlights from the price chart onto its companion charts."""
from __future__ import annotations

from typing import Dict, List, Optional, Sequence

import numpy as np

from ..utils.time import to_epoch_ms
from .charts import ActiveElement, ChartHandle


class CrossChartSynchronizer:
    """Align companions to the primary chart by timestamp label, never by position.

    Companion series (equity, drawdown) are sampled per trade rather than per
    candle, so a hovered candle only highlights companions that carry the
    exact same timestamp label.
    """

    def __init__(self) -> None:
        self.primary: Optional[ChartHandle] = None
        self.companions: List[ChartHandle] = []
        self._sorted_epochs = np.array([], dtype=np.int64)
        self._sorted_positions = np.array([], dtype=np.int64)
        self._companion_lookup: List[Dict[str, int]] = []

    def register(self, primary: ChartHandle, companions: Sequence[ChartHandle]) -> None:
        self.primary = primary
        self.companions = list(companions)

        positions: List[int] = []
        epochs: List[int] = []
        for idx, label in enumerate(primary.labels):
            epoch = to_epoch_ms(label)
            if epoch is None:
                continue
            positions.append(idx)
            epochs.append(epoch)
        epoch_array = np.array(epochs, dtype=np.int64)
        order = np.argsort(epoch_array, kind="stable")
        self._sorted_epochs = epoch_array[order]
        self._sorted_positions = np.array(positions, dtype=np.int64)[order]

        self._companion_lookup = []
        for chart in self.companions:
            lookup: Dict[str, int] = {}
            for idx, label in enumerate(chart.labels):
                lookup.setdefault(label, idx)
            self._companion_lookup.append(lookup)

    def unregister(self) -> None:
        self.primary = None
        self.companions = []
        self._sorted_epochs = np.array([], dtype=np.int64)
        self._sorted_positions = np.array([], dtype=np.int64)
        self._companion_lookup = []

    def nearest_index(self, x: object) -> Optional[int]:
        """Index of the primary label closest to ``x`` along the time axis."""

        target = to_epoch_ms(x)
        if target is None or self._sorted_epochs.size == 0:
            return None
        pos = int(np.searchsorted(self._sorted_epochs, target))
        candidates = [p for p in (pos - 1, pos) if 0 <= p < self._sorted_epochs.size]
        best = min(candidates, key=lambda p: (abs(int(self._sorted_epochs[p]) - target), p))
        return int(self._sorted_positions[best])

    def on_pointer(self, x: object) -> Dict[str, Optional[int]]:
        """Highlight matching companion indices; returns ``{chart: index | None}``."""

        matches: Dict[str, Optional[int]] = {chart.name: None for chart in self.companions}
        if self.primary is None:
            return matches
        index = self.nearest_index(x)
        if index is None:
            return matches
        label = self.primary.labels[index]
        for chart, lookup in zip(self.companions, self._companion_lookup):
            match = lookup.get(label)
            if match is None:
                continue
            element = ActiveElement(dataset_index=0, index=match)
            chart.set_active_elements([element])
            chart.set_tooltip_elements([element])
            chart.update()
            matches[chart.name] = match
        return matches

    def on_leave(self) -> None:
        for chart in self.companions:
            chart.set_active_elements([])
            chart.set_tooltip_elements([])
            chart.update()

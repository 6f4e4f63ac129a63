"""In-process chart instances handed to the rendering engine."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Sequence

from ..utils.logging import get_logger
from .compose import ChartSpec, Dataset

LOGGER = get_logger(__name__)


@dataclass(frozen=True, slots=True)
class ActiveElement:
    dataset_index: int
    index: int

    def as_dict(self) -> Dict[str, int]:
        return {"datasetIndex": self.dataset_index, "index": self.index}


class ChartHandle:
    """Mutable chart instance: data, highlight state and redraw bookkeeping."""

    def __init__(self, spec: ChartSpec) -> None:
        self.name = spec.name
        self.kind = spec.kind
        self.labels: List[str] = list(spec.labels)
        self.datasets: List[Dataset] = list(spec.datasets)
        self.visible = spec.visible
        self.active_elements: List[ActiveElement] = []
        self.tooltip_elements: List[ActiveElement] = []
        self.redraws = 0
        self.destroyed = False

    def _ensure_alive(self) -> None:
        if self.destroyed:
            raise RuntimeError(f"Chart '{self.name}' has been destroyed")

    def set_active_elements(self, elements: Sequence[ActiveElement]) -> None:
        self._ensure_alive()
        self.active_elements = list(elements)

    def set_tooltip_elements(self, elements: Sequence[ActiveElement]) -> None:
        self._ensure_alive()
        self.tooltip_elements = list(elements)

    def update(self) -> None:
        self._ensure_alive()
        self.redraws += 1

    def destroy(self) -> None:
        self.destroyed = True
        self.active_elements = []
        self.tooltip_elements = []

    def active_index(self) -> int | None:
        return self.active_elements[0].index if self.active_elements else None

    def as_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "type": self.kind,
            "labels": list(self.labels),
            "datasets": [dataset.as_dict() for dataset in self.datasets],
            "visible": self.visible,
            "active": [element.as_dict() for element in self.active_elements],
        }


class ChartFactory:
    """Create chart handles; swap in a renderer-backed factory when embedding."""

    def __init__(self) -> None:
        self.created = 0

    def create(self, spec: ChartSpec) -> ChartHandle:
        self.created += 1
        LOGGER.debug("Creating %s chart with %s labels", spec.name, len(spec.labels))
        return ChartHandle(spec)

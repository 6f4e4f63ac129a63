"""Service layer exports for the dashboard pipeline."""

from .charts import ActiveElement, ChartFactory, ChartHandle
from .compose import ChartSpec, ComposedCharts, Dataset, SeriesComposer, build_markers, overlay_datasets
from .exports import export_links
from .fetch import (
    DISABLED,
    BanditPanel,
    DashboardFetchError,
    DataFetchOrchestrator,
    Disabled,
    Enabled,
    FetchResult,
    Overlay,
    RequestDescriptor,
    SLOTS,
)
from .filters import (
    FilterDefaults,
    FilterState,
    FilterStateManager,
    Toggles,
    TOGGLE_NAMES,
    parse_filters,
    serialize_filters,
)
from .regime import RegimeRibbon, RegimeRibbonBuilder, RibbonSegment
from .status import Badge, Severity, derive_badges
from .sync import CrossChartSynchronizer

__all__ = [
    "ActiveElement",
    "ChartFactory",
    "ChartHandle",
    "ChartSpec",
    "ComposedCharts",
    "Dataset",
    "SeriesComposer",
    "build_markers",
    "overlay_datasets",
    "export_links",
    "DISABLED",
    "BanditPanel",
    "DashboardFetchError",
    "DataFetchOrchestrator",
    "Disabled",
    "Enabled",
    "FetchResult",
    "Overlay",
    "RequestDescriptor",
    "SLOTS",
    "FilterDefaults",
    "FilterState",
    "FilterStateManager",
    "Toggles",
    "TOGGLE_NAMES",
    "parse_filters",
    "serialize_filters",
    "RegimeRibbon",
    "RegimeRibbonBuilder",
    "RibbonSegment",
    "Badge",
    "Severity",
    "derive_badges",
    "CrossChartSynchronizer",
]

"""Dashboard controller: filter change -> fetch -> compose -> render."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .config import Settings
from .services.charts import ChartFactory, ChartHandle
from .services.compose import ComposedCharts, SeriesComposer
from .services.exports import export_links
from .services.fetch import DashboardFetchError, DataFetchOrchestrator, FetchResult
from .services.filters import FilterState, FilterStateManager, QueryInput
from .services.regime import RegimeRibbon, RegimeRibbonBuilder
from .services.status import Badge, derive_badges
from .services.sync import CrossChartSynchronizer
from .services import tables
from .utils.logging import get_logger

LOGGER = get_logger(__name__)

COMPANION_CHARTS = ("equity", "drawdown")


@dataclass(slots=True)
class DashboardView:
    """Everything one completed cycle rendered, replaced wholesale next cycle."""

    generation: int
    filters: FilterState
    query: str
    charts: ComposedCharts
    badges: List[Badge]
    ribbon: RegimeRibbon
    regime: Dict[str, Any]
    kpis: List[Dict[str, str]] = field(default_factory=list)
    trades: List[Dict[str, str]] = field(default_factory=list)
    summary: List[Dict[str, str]] = field(default_factory=list)
    heatmap: Dict[str, Any] = field(default_factory=dict)
    tca: Dict[str, Any] = field(default_factory=dict)
    risk: List[Dict[str, str]] = field(default_factory=list)

    def as_dict(self) -> Dict[str, Any]:
        return {
            "generation": self.generation,
            "filters": self.filters.as_dict(),
            "query": self.query,
            "charts": self.charts.as_dict(),
            "badges": [badge.as_dict() for badge in self.badges],
            "ribbon": self.ribbon.as_dict(),
            "regime": self.regime,
            "kpis": self.kpis,
            "trades": self.trades,
            "summary": self.summary,
            "heatmap": self.heatmap,
            "tca": self.tca,
            "risk": self.risk,
        }


class DashboardController:
    """Own the filter state, the chart handles and the refresh cycle.

    Chart handles are created when a cycle renders and destroyed before the
    next render or on unmount. Each refresh takes a new generation number; a
    fetch that completes after a newer refresh has started is discarded so the
    most recently requested state always wins.
    """

    def __init__(
        self,
        orchestrator: DataFetchOrchestrator,
        filters: FilterStateManager,
        *,
        composer: Optional[SeriesComposer] = None,
        ribbon_builder: Optional[RegimeRibbonBuilder] = None,
        chart_factory: Optional[ChartFactory] = None,
    ) -> None:
        self.orchestrator = orchestrator
        self.filters = filters
        self.composer = composer or SeriesComposer()
        self.ribbon_builder = ribbon_builder or RegimeRibbonBuilder()
        self.chart_factory = chart_factory or ChartFactory()
        self.synchronizer = CrossChartSynchronizer()
        self.state: Optional[FilterState] = None
        self.query: str = ""
        self.view: Optional[DashboardView] = None
        self.charts: Dict[str, ChartHandle] = {}
        self.generation = 0

    @classmethod
    def from_settings(cls, settings: Settings, **client_kwargs: Any) -> "DashboardController":
        return cls(
            DataFetchOrchestrator.from_settings(settings, **client_kwargs),
            FilterStateManager.from_settings(settings),
            ribbon_builder=RegimeRibbonBuilder.from_settings(settings),
        )

    @property
    def mounted(self) -> bool:
        return self.state is not None

    def _require_state(self) -> FilterState:
        if self.state is None:
            raise RuntimeError("Dashboard is not mounted")
        return self.state

    async def mount(self, query: QueryInput = None) -> Optional[DashboardView]:
        """Initialise filter state from the URL query and run the first cycle."""

        self.state = self.filters.parse(query)
        self.query = self.filters.serialize(self.state)
        return await self.refresh()

    async def apply_filters(self, query: QueryInput) -> Optional[DashboardView]:
        self.state = self.filters.parse(query)
        self.query = self.filters.serialize(self.state)
        return await self.refresh()

    async def set_toggle(self, name: str, enabled: bool) -> Optional[DashboardView]:
        """Flip one toggle and refresh; the URL query is left as it was."""

        self.state = self._require_state().with_toggle(name, enabled)
        return await self.refresh()

    async def refresh(self) -> Optional[DashboardView]:
        state = self._require_state()
        self.generation += 1
        generation = self.generation
        try:
            result = await self.orchestrator.fetch(state)
        except DashboardFetchError:
            LOGGER.exception("Failed to load dashboard for %s %s", state.symbol, state.interval)
            return None
        if generation != self.generation:
            LOGGER.info(
                "Discarding refresh %s for %s; generation %s is newer",
                generation,
                state.symbol,
                self.generation,
            )
            return None
        return self._render(generation, state, result)

    def _render(self, generation: int, state: FilterState, result: FetchResult) -> DashboardView:
        composed = self.composer.compose(state, result)
        self._destroy_charts()
        self.charts = {spec.name: self.chart_factory.create(spec) for spec in composed.specs()}
        self.synchronizer.register(
            self.charts["price"],
            [self.charts[name] for name in COMPANION_CHARTS],
        )

        history = result.regime.status.history if result.regime.status else []
        self.view = DashboardView(
            generation=generation,
            filters=state,
            query=self.query,
            charts=composed,
            badges=derive_badges(result.status),
            ribbon=self.ribbon_builder.build(history),
            regime=tables.regime_summary(result.regime),
            kpis=tables.build_kpis(result.summary),
            trades=tables.trade_rows(result.trades),
            summary=tables.summary_rows(result.summary),
            heatmap=tables.heatmap_points(result.heatmap),
            tca=tables.tca_summary(result.tca),
            risk=tables.risk_rows(result.risk),
        )
        LOGGER.info(
            "Rendered dashboard generation %s: %s candles, %s price datasets",
            generation,
            len(composed.price.labels),
            len(composed.price.datasets),
        )
        return self.view

    def _destroy_charts(self) -> None:
        self.synchronizer.unregister()
        for chart in self.charts.values():
            chart.destroy()
        self.charts = {}

    def pointer(self, x: object) -> Dict[str, Optional[int]]:
        """Forward a pointer move on the price chart to the synchronizer."""

        return self.synchronizer.on_pointer(x)

    def pointer_leave(self) -> None:
        self.synchronizer.on_leave()

    def exports(self) -> Dict[str, str]:
        return export_links(self.orchestrator.backend, self._require_state())

    async def refresh_bandit(
        self, regime: Optional[str] = None, side: Optional[str] = None
    ) -> Optional[Dict[str, Any]]:
        state = self._require_state()
        try:
            panel = await self.orchestrator.fetch_bandit(state.symbol, regime, side)
        except DashboardFetchError:
            LOGGER.exception("Failed to load bandit panel for %s", state.symbol)
            return None
        return {
            "arms": tables.bandit_arm_rows(panel.arms),
            "pulls": tables.bandit_pull_rows(panel.pulls.data),
            "pulls_enabled": panel.pulls.enabled,
            "overview": tables.bandit_overview(panel.overview),
        }

    def unmount(self) -> None:
        self._destroy_charts()
        self.view = None
        self.state = None

"""FastAPI surface over the dashboard controller."""
from __future__ import annotations

from typing import Any, Dict, Optional

from fastapi import FastAPI, HTTPException, Query, Request, Response
from fastapi.middleware.cors import CORSMiddleware

from ..config import get_settings
from ..controller import DashboardController, DashboardView
from ..services.filters import TOGGLE_NAMES
from ..utils.logging import get_logger
from ..version import APP_VERSION
from .dto import FiltersRequest, PointerRequest, StateResponse, ToggleRequest

LOGGER = get_logger(__name__)

app = FastAPI(title="Trading Dashboard API", version=APP_VERSION)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)


def get_controller(request: Request) -> DashboardController:
    controller = getattr(request.app.state, "controller", None)
    if controller is None:
        controller = DashboardController.from_settings(get_settings())
        LOGGER.info("Created dashboard controller for %s", controller.orchestrator.backend.base_url)
        request.app.state.controller = controller
    return controller


def _require_mounted(controller: DashboardController) -> None:
    if not controller.mounted:
        raise HTTPException(status_code=409, detail="Dashboard is not mounted; POST /dashboard/filters first")


def _view_payload(controller: DashboardController, view: Optional[DashboardView]) -> Dict[str, Any]:
    if view is None:
        raise HTTPException(status_code=502, detail="Failed to load dashboard data")
    return {"query": controller.query, "view": view.as_dict()}


@app.get("/health")
async def health() -> Dict[str, str]:
    return {"status": "ok", "version": APP_VERSION}


@app.get("/dashboard/state", response_model=StateResponse)
async def dashboard_state(request: Request) -> StateResponse:
    controller = get_controller(request)
    state = controller.state
    return StateResponse(
        mounted=controller.mounted,
        generation=controller.generation,
        query=controller.query,
        filters=state.as_dict() if state is not None else None,
        charts={name: chart.as_dict() for name, chart in controller.charts.items()},
    )


@app.post("/dashboard/filters")
async def apply_filters(request: Request, payload: FiltersRequest) -> Dict[str, Any]:
    controller = get_controller(request)
    query: Any = payload.query if payload.query is not None else payload.params
    if controller.mounted:
        view = await controller.apply_filters(query)
    else:
        view = await controller.mount(query)
    return _view_payload(controller, view)


@app.post("/dashboard/toggles/{name}")
async def set_toggle(request: Request, name: str, payload: ToggleRequest) -> Dict[str, Any]:
    if name not in TOGGLE_NAMES:
        raise HTTPException(status_code=400, detail=f"Unknown toggle: {name}")
    controller = get_controller(request)
    _require_mounted(controller)
    view = await controller.set_toggle(name, payload.enabled)
    return _view_payload(controller, view)


@app.get("/dashboard/view")
async def dashboard_view(request: Request) -> Any:
    controller = get_controller(request)
    if controller.view is None:
        return Response(status_code=204)
    return {"query": controller.query, "view": controller.view.as_dict()}


@app.post("/dashboard/pointer")
async def pointer(request: Request, payload: PointerRequest) -> Dict[str, Any]:
    controller = get_controller(request)
    return {"matches": controller.pointer(payload.x)}


@app.post("/dashboard/pointer/leave")
async def pointer_leave(request: Request) -> Dict[str, str]:
    get_controller(request).pointer_leave()
    return {"status": "ok"}


@app.get("/dashboard/exports")
async def exports(request: Request) -> Dict[str, str]:
    controller = get_controller(request)
    _require_mounted(controller)
    return controller.exports()


@app.get("/dashboard/bandit")
async def bandit(
    request: Request,
    regime: str | None = Query(None, description="Regime filter, e.g. TREND_UP"),
    side: str | None = Query(None, description="BUY or SELL"),
) -> Dict[str, Any]:
    controller = get_controller(request)
    _require_mounted(controller)
    panel = await controller.refresh_bandit(regime, side)
    if panel is None:
        raise HTTPException(status_code=502, detail="Failed to load bandit data")
    return panel

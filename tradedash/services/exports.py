"""Download links carrying the active filter parameters."""
from __future__ import annotations

from typing import Dict

from ..io import backend as endpoints
from ..io.backend import BackendClient
from .filters import FilterState, export_params

EXPORTS: Dict[str, str] = {
    "trades_csv": endpoints.EXPORT_TRADES_CSV,
    "trades_json": endpoints.EXPORT_TRADES_JSON,
    "summary_csv": endpoints.EXPORT_SUMMARY_CSV,
    "heatmap_csv": endpoints.EXPORT_HEATMAP_CSV,
}


def export_links(backend: BackendClient, state: FilterState) -> Dict[str, str]:
    """Return absolute export URLs; the browser opens them, nothing is fetched here."""

    params = export_params(state)
    return {name: backend.url_for(path, params) for name, path in EXPORTS.items()}

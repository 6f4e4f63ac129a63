"""Command line interface for the trading dashboard."""
from __future__ import annotations

import argparse
import asyncio
import json
from pathlib import Path
from typing import Optional

import uvicorn

from .config import Settings, load_settings
from .controller import DashboardController
from .services.exports import export_links
from .services.fetch import DataFetchOrchestrator
from .services.filters import FilterStateManager
from .utils.logging import configure_logging, get_logger

LOGGER = get_logger(__name__)


def cmd_snapshot(settings: Settings, query: str, output: Optional[Path]) -> int:
    """Run one dashboard cycle and dump the rendered view as JSON."""

    controller = DashboardController.from_settings(settings)
    view = asyncio.run(controller.mount(query))
    if view is None:
        LOGGER.error("Dashboard cycle failed for query %r", query)
        return 1
    text = json.dumps(view.as_dict(), indent=2)
    if output is None:
        print(text)
    else:
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_text(text, encoding="utf-8")
        LOGGER.info("Wrote dashboard snapshot to %s", output.as_posix())
    controller.unmount()
    return 0


def cmd_query(settings: Settings, query: str) -> int:
    manager = FilterStateManager.from_settings(settings)
    print(manager.serialize(manager.parse(query)))
    return 0


def cmd_exports(settings: Settings, query: str) -> int:
    orchestrator = DataFetchOrchestrator.from_settings(settings)
    state = FilterStateManager.from_settings(settings).parse(query)
    for name, url in export_links(orchestrator.backend, state).items():
        print(f"{name}\t{url}")
    return 0


def cmd_serve(host: str, port: int) -> int:
    uvicorn.run("tradedash.api.app:app", host=host, port=port)
    return 0


def main(argv: Optional[list[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Trading dashboard CLI")
    parser.add_argument("--config", type=Path, default=Path("configs/settings.yaml"))
    sub = parser.add_subparsers(dest="command")

    snapshot = sub.add_parser("snapshot", help="Run one refresh cycle and print the view")
    snapshot.add_argument("--query", default="")
    snapshot.add_argument("--output", type=Path, default=None)

    query = sub.add_parser("query", help="Normalise a dashboard URL query")
    query.add_argument("query")

    exports = sub.add_parser("exports", help="Print export URLs for a query")
    exports.add_argument("--query", default="")

    serve = sub.add_parser("serve", help="Run the HTTP API")
    serve.add_argument("--host", default="127.0.0.1")
    serve.add_argument("--port", type=int, default=8000)

    args = parser.parse_args(argv)

    settings = load_settings(args.config)
    configure_logging(settings.logging.level)

    if args.command == "snapshot":
        return cmd_snapshot(settings, args.query, args.output)
    if args.command == "query":
        return cmd_query(settings, args.query)
    if args.command == "exports":
        return cmd_exports(settings, args.query)
    if args.command == "serve":
        return cmd_serve(args.host, args.port)
    parser.print_help()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())

"""Entry point for the healthagg service."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

import uvicorn
from rich.console import Console
from rich.panel import Panel

from healthagg.config import settings
from healthagg.registry import ProbeRegistry

console = Console()
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
)


def run_server() -> None:
    """Start the FastAPI server."""
    console.print(Panel("Starting healthagg API Server", style="bold green"))
    uvicorn.run(
        "healthagg.api.server:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=False,
    )


def run_check(probes_file: str | None = None) -> int:
    """Evaluate every probe once and print the combined result."""
    registry = ProbeRegistry(Path(probes_file) if probes_file else None)
    checker = registry.build_checker()

    with console.status("[bold green]Checking probes..."):
        health = checker.evaluate()

    style = "bold green" if health.is_up() else "bold red"
    console.print(Panel(health.status.value, title="healthagg", style=style))
    console.print_json(health.to_json())
    return 0 if health.is_up() else 1


def main() -> None:
    parser = argparse.ArgumentParser(description="Composite health-check aggregator")
    sub = parser.add_subparsers(dest="command")

    # Server mode
    sub.add_parser("serve", help="Start the API server")

    # One-shot mode
    check_parser = sub.add_parser("check", help="Run every probe once and print the result")
    check_parser.add_argument("--probes", help="Probe file (defaults to PROBES_FILE)")

    args = parser.parse_args()

    if args.command == "serve":
        run_server()
    elif args.command == "check":
        sys.exit(run_check(args.probes))
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()

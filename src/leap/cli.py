"""CLI entry point for the Leap server and catalog maintenance."""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from leap.config.settings import Settings


def main() -> None:
    """Main CLI entry point for the Leap server."""
    parser = argparse.ArgumentParser(
        prog="leap",
        description="Leap — Bookmark launcher with ranked full-text lookup",
    )
    parser.add_argument(
        "--config",
        "-c",
        type=str,
        default=None,
        help="Path to YAML configuration file",
    )
    parser.add_argument(
        "--host",
        type=str,
        default=None,
        help="Server bind address (overrides config)",
    )
    parser.add_argument(
        "--port",
        "-p",
        type=int,
        default=None,
        help="Server port (overrides config)",
    )
    parser.add_argument(
        "--workers",
        "-w",
        type=int,
        default=None,
        help="Number of worker processes",
    )
    parser.add_argument(
        "--database",
        type=str,
        default=None,
        help="SQLite database path (overrides config)",
    )
    parser.add_argument(
        "--reload",
        action="store_true",
        help="Enable auto-reload for development",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        choices=["debug", "info", "warning", "error"],
        default=None,
        help="Log level (overrides config)",
    )
    parser.add_argument(
        "--import",
        dest="import_file",
        type=str,
        default=None,
        metavar="FILE",
        help="Import a JSON array of items into the catalog and exit",
    )
    parser.add_argument(
        "--rebuild-index",
        action="store_true",
        help="Rebuild the search index from the item table and exit",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"Leap {_get_version()}",
    )

    args = parser.parse_args()

    from leap.config.settings import Settings

    if args.config:
        config_path = Path(args.config)
        if not config_path.exists():
            print(f"Error: Config file not found: {config_path}", file=sys.stderr)
            sys.exit(1)
        settings = Settings.from_yaml(config_path)
    else:
        settings = Settings()

    # Apply CLI overrides
    if args.host:
        settings.server.host = args.host
    if args.port:
        settings.server.port = args.port
    if args.workers:
        settings.server.workers = args.workers
    if args.database:
        settings.storage.database_path = args.database
    if args.log_level:
        settings.observability.log_level = args.log_level

    from leap.observability.logging import setup_logging

    setup_logging(settings.observability)

    if args.import_file or args.rebuild_index:
        sys.exit(asyncio.run(_maintain(settings, args.import_file, args.rebuild_index)))

    import uvicorn

    if args.reload or settings.server.workers > 1:
        # Worker processes rebuild settings from leap-config.yaml and LEAP_* variables.
        uvicorn.run(
            "leap.api.app:create_app",
            factory=True,
            host=settings.server.host,
            port=settings.server.port,
            workers=settings.server.workers if not args.reload else 1,
            reload=args.reload,
            log_level=settings.observability.log_level.lower(),
        )
        return

    from leap.api.app import create_app

    uvicorn.run(
        create_app(settings),
        host=settings.server.host,
        port=settings.server.port,
        log_level=settings.observability.log_level.lower(),
    )


async def _maintain(settings: Settings, import_file: str | None, rebuild: bool) -> int:
    """Run the requested maintenance tasks against the configured catalog.

    Returns:
        Process exit code.
    """
    from leap.core.batch import BatchValidationError
    from leap.core.engine import LeapEngine

    engine = LeapEngine(settings)
    await engine.initialize()
    try:
        if import_file:
            path = Path(import_file)
            try:
                payload = json.loads(path.read_text(encoding="utf-8"))
            except (OSError, json.JSONDecodeError) as e:
                print(f"Error: Cannot read {path}: {e}", file=sys.stderr)
                return 1
            try:
                written = await engine.import_batch(payload)
            except BatchValidationError as e:
                print(f"Error: {e}", file=sys.stderr)
                for err in e.errors:
                    print(f"  [{err.index}] {'.'.join(map(str, err.loc))}: {err.msg}", file=sys.stderr)
                return 1
            print(f"Imported {written} item(s) from {path}")

        if rebuild:
            result = await engine.rebuild_index()
            print(f"Rebuilt search index: {result.indexed} row(s) in {result.processing_time_ms}ms")
    finally:
        await engine.shutdown()
    return 0


def _get_version() -> str:
    """Get the package version."""
    from leap import __version__

    return __version__


if __name__ == "__main__":
    main()

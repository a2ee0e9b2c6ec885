"""Command-line entry point: `manifestkit status | generate | serve`."""
from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import List, Optional, Sequence, TextIO

import uvicorn

from manifestkit.core.config import Settings, load_settings
from manifestkit.core.errors import ManifestKitError, UnknownService
from manifestkit.core.logging import setup_logging
from manifestkit.main import create_app
from manifestkit.models.schemas import ServiceHealth
from manifestkit.services.generator import generate, write_module
from manifestkit.services.manifest_client import ManifestClient
from manifestkit.services.status import StatusContext

logger = logging.getLogger("manifestkit.cli")

EXIT_ERROR = 1
EXIT_USAGE = 2


def build_parser() -> argparse.ArgumentParser:
    """Create the argument parser for all sub-commands."""
    parser = argparse.ArgumentParser(
        prog="manifestkit",
        description="Query service status and generate API definitions from the service manifest",
    )
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    status = sub.add_parser(
        "status",
        help="query the current running status of the services",
        description=(
            "When called without arguments, report the running status of every known "
            "service. Pass one or more service names to limit the report."
        ),
    )
    status.add_argument("services", nargs="*", metavar="SERVICE")
    status.add_argument("--refresh", action="store_true", help="ignore the cached ping URLs and scrape the manifest")
    status.add_argument("--list", action="store_true", help="print the known service names and exit")

    gen = sub.add_parser("generate", help="generate a Python module with every API definition and schema")
    gen.add_argument("--output", "-o", type=Path, required=True, help="path of the module to write")
    gen.add_argument("--manifest-url", type=str, default=None, help="override MANIFEST_URL")
    gen.add_argument("--services-var", type=str, default="SERVICES")
    gen.add_argument("--schemas-var", type=str, default="SCHEMAS")

    serve = sub.add_parser("serve", help="serve the status report over HTTP")
    serve.add_argument("--host", type=str, default="127.0.0.1", help="default: 127.0.0.1")
    serve.add_argument("--port", type=int, default=8000, help="default: 8000")
    return parser


def format_report(rows: Sequence[ServiceHealth]) -> str:
    lines = []
    for row in rows:
        state = "Alive" if row.alive else "Down"
        lines.append(f"{row.service:<24} {state:<6} uptime {row.uptime:.1f}s")
    return "\n".join(lines)


async def run_status(
    settings: Settings,
    services: List[str],
    *,
    refresh: bool = False,
    list_only: bool = False,
    client: Optional[ManifestClient] = None,
    out: TextIO = sys.stdout,
) -> None:
    owned = client is None
    client = client or ManifestClient.from_timeout(settings.request_timeout_s)
    try:
        ctx = StatusContext(settings, client)
        await ctx.endpoints(force_refresh=refresh)
        if list_only:
            print("\n".join(await ctx.known_services()), file=out)
            return
        rows = await ctx.poll(services)
        if rows:
            print(format_report(rows), file=out)
    finally:
        if owned:
            await client.aclose()


async def run_generate(settings: Settings, args: argparse.Namespace, client: Optional[ManifestClient] = None) -> None:
    owned = client is None
    client = client or ManifestClient.from_timeout(settings.request_timeout_s)
    try:
        source = await generate(settings, client, args.services_var, args.schemas_var, args.manifest_url)
    finally:
        if owned:
            await client.aclose()
    write_module(args.output, source)


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging("DEBUG" if args.debug else None)
    try:
        settings = load_settings()
    except RuntimeError as e:
        print(f"error: {e}", file=sys.stderr)
        return EXIT_USAGE

    if args.command == "serve":
        uvicorn.run(create_app(settings), host=args.host, port=args.port)
        return 0

    try:
        if args.command == "status":
            asyncio.run(run_status(settings, args.services, refresh=args.refresh, list_only=args.list))
        else:
            asyncio.run(run_generate(settings, args))
    except UnknownService as e:
        print(f"error: {e}", file=sys.stderr)
        return EXIT_USAGE
    except ManifestKitError as e:
        logger.debug("command failed", exc_info=True)
        print(f"error: {e}", file=sys.stderr)
        return EXIT_ERROR
    return 0


if __name__ == "__main__":
    sys.exit(main())

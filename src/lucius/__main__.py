from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from typing import List

from lucius.config import core
from lucius.errors import ConfigurationMissing
from lucius.packs import build_layer_cache

logger = logging.getLogger("lucius")


def _port(value: str) -> int:
    ivalue = int(value)
    if not 0 < ivalue < 65536:
        raise argparse.ArgumentTypeError("port must be between 1 and 65535")
    return ivalue


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="python -m lucius",
        description="Lucius website chat backend.",
    )
    subparsers = parser.add_subparsers(dest="command", metavar="<command>", required=True)

    serve_cmd = subparsers.add_parser("serve", help="Run the chat HTTP API.")
    serve_cmd.add_argument("--host", default=None, help=f"Bind address (default {core.HOST}).")
    serve_cmd.add_argument("--port", type=_port, default=None, help=f"Bind port (default {core.PORT}).")

    subparsers.add_parser(
        "status",
        help="Resolve every layer once and print the diagnostic report as JSON.",
    )
    subparsers.add_parser(
        "compose",
        help="Resolve every layer once and print the composed instruction document.",
    )
    return parser


async def _resolve_once():
    cache = build_layer_cache()
    return await cache.get_current()


def _serve(args: argparse.Namespace) -> int:
    from aiohttp import web

    from lucius.server import create_app, install_reload_signal

    try:
        core.validate()
    except ConfigurationMissing as exc:
        logger.error("%s", exc)
        return 2

    app = create_app()
    install_reload_signal(app)
    web.run_app(app, host=args.host or core.HOST, port=args.port or core.PORT)
    return 0


def main(argv: List[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command == "serve":
        return _serve(args)

    entry = asyncio.run(_resolve_once())
    if args.command == "status":
        print(json.dumps(entry.report, indent=2))
        return 1 if entry.report["exhausted_layers"] else 0

    sys.stdout.write(entry.document + "\n")
    return 0


if __name__ == "__main__":
    sys.exit(main())

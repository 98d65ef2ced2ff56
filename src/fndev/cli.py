"""Command-line entry point: ``fndev [root] [--port N] [--cache] [--quiet]``."""

from __future__ import annotations

import argparse
import logging
import os
from typing import Sequence

import anyio
from anyio.abc import TaskStatus

from .app import DevApp
from .build import run_build
from .config import Config
from .errors import BindError
from .http.server import Server
from .log import configure_logging


logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="fndev",
        description="Serve api/*.py as serverless-style handlers and public/ as static files.",
    )
    parser.add_argument("root", nargs="?", default=".", help="project directory (default: .)")
    parser.add_argument("-p", "--port", type=int, default=3000, help="port to listen on (default: 3000)")
    parser.add_argument("--host", default="127.0.0.1", help="interface to bind (default: 127.0.0.1)")
    parser.add_argument(
        "--cache",
        dest="module_cache",
        action="store_true",
        help="keep handler modules loaded between requests instead of reloading them",
    )
    parser.add_argument("-q", "--quiet", action="store_true", help="disable logging")
    return parser


async def run(config: Config, *, task_status: TaskStatus[int] = anyio.TASK_STATUS_IGNORED) -> None:
    """Serve ``config.root`` until cancelled, running its build command alongside."""
    app = DevApp(config)
    server = Server(
        app,
        host=config.host,
        fallback_ports=config.fallback_ports,
        max_bind_attempts=config.max_bind_attempts,
        max_header_bytes=config.max_header_bytes,
        max_body_bytes=config.max_body_bytes,
    )
    port = await server.bind(config.port)
    logger.info("Server listening on http://%s:%d", config.host, port)
    if not app.handler_files:
        logger.debug("no handlers found in %s", config.api_path)

    try:
        async with anyio.create_task_group() as tg:
            await tg.start(server.serve)
            task_status.started(port)
            if config.build:
                tg.start_soon(run_build, config.build, config.root)
    finally:
        with anyio.CancelScope(shield=True):
            await server.shutdown()


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    config = Config.from_project(
        args.root,
        host=args.host,
        port=args.port,
        module_cache=args.module_cache,
        quiet=args.quiet,
    )
    configure_logging(quiet=config.quiet)
    os.chdir(config.root)

    try:
        anyio.run(run, config)
    except BindError as e:
        logger.error("%s", e)
        return 1
    except KeyboardInterrupt:
        pass
    return 0

"""
Dispatch layer.

For every request:
  1. Router decides between a handler file and the static responder
  2. adapt() buffers the body and installs the lazy fields and helpers
  3. the handler module is purged and re-executed (unless module_cache is on)
  4. handler(request, response) runs; anything it raises becomes a generic 500
"""

from __future__ import annotations

import inspect
import logging
import sys
from pathlib import Path
from typing import Optional

from .config import Config
from .http import helpers
from .http.adapter import adapt
from .http.messages import Request, Response
from .log import Timers
from .registry.local import ModuleRegistry
from .registry.loader import HandlerLoader
from .router import Router
from .static import StaticResponder
from .templates import error_page


logger = logging.getLogger(__name__)

INTERNAL_ERROR_MESSAGE = "Internal server error"


class DevApp:
    """The ``app(request, response)`` callable served by ``Server``."""

    def __init__(self, config: Config, registry: Optional[ModuleRegistry] = None):
        self.config = config
        self.router = Router(config.api_path, config.api_prefix)
        self.static = StaticResponder(config.public_path)
        self.loader = HandlerLoader(config.root, registry)
        self.timers = Timers(logger)

        # Handlers import their project-local helpers by absolute name.
        root = str(config.root)
        if root not in sys.path:
            sys.path.insert(0, root)

    @property
    def handler_files(self) -> list[str]:
        return list(self.router.files)

    async def __call__(self, request: Request, response: Response) -> None:
        name = f"{request.method} {request.target}"
        self.timers.start(name)
        try:
            script = self.router.match(request.path)
            if script is None:
                await self.static(request, response)
            else:
                await self.dispatch(script, request, response)
        finally:
            # 200 is the success line; anything else stands out.
            level = logging.INFO if response.status_code == 200 else logging.WARNING
            self.timers.end(name, response.status_code, response.status_message, level=level)

    async def dispatch(self, script: Path, request: Request, response: Response) -> None:
        await adapt(request, response)
        try:
            func = self.loader.load_handler(script, fresh=not self.config.module_cache)
            result = func(request, response)
            if inspect.isawaitable(result):
                await result
        except Exception:
            logger.exception("Handler %s failed", script.name)
            self._internal_error(request, response)

    @staticmethod
    def _internal_error(request: Request, response: Response) -> None:
        if response.finished:
            return
        for name, _ in list(response.iter_headers()):
            response.remove_header(name)
        response.status_code = 500
        helpers.send(request, response, error_page(500, INTERNAL_ERROR_MESSAGE))

"""Static asset responder rooted at the project's ``public/`` directory."""

from __future__ import annotations

import logging
import mimetypes
import os
from urllib.parse import unquote

import anyio

from .http.messages import Request, Response
from .templates import error_page


logger = logging.getLogger(__name__)

_TEXT_TYPES = ("text/", "application/javascript", "application/json", "image/svg+xml")


class StaticResponder:
    """Serves files from a directory; ``index.html`` for directories, ``x.html`` for ``/x``."""

    def __init__(self, public_dir: str | os.PathLike[str]):
        self.public_dir = os.path.realpath(public_dir)

    async def __call__(self, request: Request, response: Response) -> None:
        if request.method not in ("GET", "HEAD"):
            response.status_code = 405
            response.set_header("Allow", "GET, HEAD")
            self._html(response, error_page(405, "Method Not Allowed"))
            return

        target = await self._find(request.path)
        if target is None:
            response.status_code = 404
            self._html(response, error_page(404, "The requested path could not be found"))
            return

        data = await target.read_bytes()
        content_type = mimetypes.guess_type(target.name)[0] or "application/octet-stream"
        if content_type.startswith(_TEXT_TYPES):
            content_type += "; charset=utf-8"
        response.set_header("Content-Type", content_type)
        response.set_header("Content-Length", len(data))
        response.end(data)

    async def _find(self, path: str) -> anyio.Path | None:
        root = anyio.Path(self.public_dir)
        rel = unquote(path).lstrip("/")
        try:
            target = await (root / rel).resolve()
        except (OSError, ValueError):
            # e.g. an embedded NUL from "%00"
            logger.debug("unresolvable static path: %s", path)
            return None
        if target != root and root not in target.parents:
            logger.debug("rejected path outside public dir: %s", path)
            return None

        if await target.is_dir():
            target = target / "index.html"
        if await target.is_file():
            return target
        if rel and not target.suffix:
            html = target.with_suffix(".html")
            if await html.is_file():
                return html
        return None

    @staticmethod
    def _html(response: Response, page: str) -> None:
        data = page.encode("utf-8")
        response.set_header("Content-Type", "text/html; charset=utf-8")
        response.set_header("Content-Length", len(data))
        response.end(data)

"""Request routing: handler files under the API prefix, static assets otherwise."""

from __future__ import annotations

import os
from pathlib import Path
from urllib.parse import unquote


def list_handler_files(api_dir: str | os.PathLike[str]) -> list[str]:
    """List routable handler filenames; private (``_x.py``) and hidden files are skipped."""
    try:
        names = os.listdir(api_dir)
    except FileNotFoundError:
        return []
    return sorted(
        name for name in names
        if name.endswith(".py") and not name.startswith(("_", "."))
    )


class Router:
    """
    Matches request paths against the handler filenames known at startup.

    ``/api/hello``, ``/api/hello.py`` and anything below them
    (``/api/hello/x``) route to ``api/hello.py`` as long as the file still
    exists when the request arrives.
    """

    def __init__(self, api_dir: str | os.PathLike[str], prefix: str = "/api/"):
        self.api_dir = Path(api_dir)
        self.prefix = prefix
        self.files = list_handler_files(self.api_dir)

    def match(self, path: str) -> Path | None:
        path = unquote(path)
        if not path.startswith(self.prefix):
            return None
        rest = path[len(self.prefix):]

        for filename in self.files:
            for name in (filename, filename[: -len(".py")]):
                if rest == name or rest.startswith(name + "/"):
                    candidate = self.api_dir / filename
                    if candidate.is_file():
                        return candidate
        return None

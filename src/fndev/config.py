"""Dev server configuration and project manifest lookup."""

from __future__ import annotations

import json
import logging
import os
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any


logger = logging.getLogger(__name__)

PYPROJECT = "pyproject.toml"
PACKAGE_JSON = "package.json"


@dataclass
class Config:
    """
    Options for one dev server run.

    Attributes:
        root: Project directory holding ``api/`` and ``public/``
        host: Interface to listen on
        port: Preferred port; a random fallback port is used if it's taken
        api_prefix: Request path prefix routed to handler modules
        module_cache: Keep handler modules loaded across requests instead
            of re-executing them for every request
        quiet: Suppress all logging
        build: Build command re-run on file changes, if any
    """
    root: Path = field(default_factory=Path.cwd)
    host: str = "127.0.0.1"
    port: int = 3000
    api_prefix: str = "/api/"
    api_dir: str = "api"
    public_dir: str = "public"
    module_cache: bool = False
    quiet: bool = False
    fallback_ports: tuple[int, int] = (3333, 3443)
    max_bind_attempts: int = 10
    max_header_bytes: int = 64 * 1024
    max_body_bytes: int = 10 * 1024 * 1024
    build: str | None = None

    def __post_init__(self):
        self.root = Path(self.root).resolve()
        if not self.api_prefix.startswith("/"):
            self.api_prefix = "/" + self.api_prefix
        if not self.api_prefix.endswith("/"):
            self.api_prefix += "/"
        low, high = self.fallback_ports
        if low > high:
            raise ValueError(f"invalid fallback port range {low}-{high}")

    @property
    def api_path(self) -> Path:
        return self.root / self.api_dir

    @property
    def public_path(self) -> Path:
        return self.root / self.public_dir

    @classmethod
    def from_project(cls, root: str | os.PathLike[str], **overrides: Any) -> "Config":
        """Build a config for ``root``, reading the build command from its manifest."""
        overrides.setdefault("build", read_build_command(root))
        return cls(root=Path(root), **overrides)


def read_build_command(root: str | os.PathLike[str]) -> str | None:
    """
    Find the project's build command.

    ``[tool.fndev] build`` in pyproject.toml wins; otherwise ``scripts.build``
    or ``scripts["now-build"]`` from package.json. Missing or unreadable
    manifests mean no build step.
    """
    root = Path(root)

    pyproject = root / PYPROJECT
    if pyproject.is_file():
        try:
            with pyproject.open("rb") as f:
                data = tomllib.load(f)
        except (OSError, tomllib.TOMLDecodeError) as e:
            logger.warning("Ignoring unreadable %s: %s", pyproject, e)
        else:
            build = data.get("tool", {}).get("fndev", {}).get("build")
            if isinstance(build, str) and build.strip():
                return build

    package_json = root / PACKAGE_JSON
    if package_json.is_file():
        try:
            data = json.loads(package_json.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.warning("Ignoring unreadable %s: %s", package_json, e)
            return None
        scripts = data.get("scripts") if isinstance(data, dict) else None
        if isinstance(scripts, dict):
            build = scripts.get("build") or scripts.get("now-build")
            if isinstance(build, str) and build.strip():
                return build

    return None

"""Re-runs the project's build command whenever its sources change."""

from __future__ import annotations

import logging
import os
from pathlib import Path

from watchfiles import DefaultFilter, arun_process


logger = logging.getLogger(__name__)


class BuildFilter(DefaultFilter):
    """Default watchfiles filter that also ignores the output and handler dirs."""

    def __init__(self, root: str | os.PathLike[str], ignore_dirs: tuple[str, ...] = ("public", "api")):
        root = Path(root).resolve()
        super().__init__(ignore_paths=[root / d for d in ignore_dirs])


async def run_build(command: str, root: str | os.PathLike[str]) -> int:
    """
    Run ``command`` and re-run it whenever a file under ``root`` changes.

    The command runs in the current working directory. Runs until cancelled
    and returns the number of reloads.
    """
    logger.info("Running '%s'", command)

    def on_change(changes: set) -> None:
        logger.info("Re-running '%s' (%d changed files)", command, len(changes))

    return await arun_process(
        root,
        target=command,
        target_type="command",
        watch_filter=BuildFilter(root),
        callback=on_change,
    )

"""Logging setup and named timers for request/build logs."""

from __future__ import annotations

import logging
import sys
import time

ROOT_LOGGER = "fndev"

_FORMAT = "%(asctime)s %(levelname)-7s %(message)s"
_DATE_FORMAT = "%H:%M:%S"


def configure_logging(quiet: bool = False, level: int = logging.INFO) -> logging.Logger:
    """
    Attach a stream handler to the ``fndev`` logger.

    With ``quiet`` every record is dropped, errors included.
    """
    logger = logging.getLogger(ROOT_LOGGER)
    if not any(getattr(h, "_fndev", False) for h in logger.handlers):
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(_FORMAT, _DATE_FORMAT))
        handler._fndev = True  # type: ignore[attr-defined]
        logger.addHandler(handler)
        logger.propagate = False
    logger.setLevel(logging.CRITICAL + 1 if quiet else level)
    return logger


class Timers:
    """
    Named wall-clock timers.

    ``end()`` logs ``"<name> <payload...> [<ms>ms]"`` and forgets the timer;
    ending an unknown name does nothing.
    """

    def __init__(self, logger: logging.Logger):
        self._logger = logger
        self._started: dict[str, float] = {}

    def start(self, name: str) -> None:
        if name:
            self._started[name] = time.perf_counter()

    def end(self, name: str, *payload: object, level: int = logging.INFO) -> float | None:
        started = self._started.pop(name, None)
        if started is None:
            return None
        elapsed_ms = (time.perf_counter() - started) * 1000
        message = " ".join([name, *map(str, payload)])
        self._logger.log(level, "%s [%dms]", message, elapsed_ms)
        return elapsed_ms

    def __contains__(self, name: str) -> bool:
        return name in self._started

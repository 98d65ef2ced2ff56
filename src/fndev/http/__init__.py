"""HTTP layer: wire server, request/response objects and the handler helpers.

Handlers receive a [`Request`](src/fndev/http/messages.py:1) whose ``cookies``,
``query`` and ``body`` are parsed lazily, and a
[`Response`](src/fndev/http/messages.py:1) carrying ``status``/``send``/``json``.
"""

from .adapter import BodyKind, adapt
from .lazy import Lazy
from .messages import Request, Response
from .server import Server

__all__ = [
    "BodyKind",
    "Lazy",
    "Request",
    "Response",
    "Server",
    "adapt",
]

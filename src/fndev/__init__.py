"""Local dev server for serverless-style Python handlers with hot reload."""

from .app import DevApp
from .config import Config, read_build_command
from .errors import (
    BindError,
    ClientInputError,
    DevServerError,
    HandlerError,
    ResponseAlreadySent,
    SerializationError,
)
from .http import BodyKind, Lazy, Request, Response, Server, adapt
from .registry import HandlerLoader, ModuleEntry, ModuleRegistry, purge

__all__ = [
    # HTTP
    "Request",
    "Response",
    "Server",
    "adapt",
    "BodyKind",
    "Lazy",
    # Handler modules
    "HandlerLoader",
    "ModuleEntry",
    "ModuleRegistry",
    "purge",
    # App
    "Config",
    "DevApp",
    "read_build_command",
    # Errors
    "DevServerError",
    "ClientInputError",
    "SerializationError",
    "ResponseAlreadySent",
    "HandlerError",
    "BindError",
]

"""
Response helpers installed on every adapted response.

  - status(code) → sets the status code, returns the response for chaining
  - send(body)   → negotiates content-type, computes length + weak ETag, finalizes
  - json(value)  → serializes ``value`` and hands the text to send()
"""

from __future__ import annotations

import base64
import hashlib
from json import dumps
from typing import Any

from ..errors import SerializationError
from .content_type import format_content_type, parse_content_type
from .messages import Request, Response


# Strings at least this long are encoded once up front and sent as bytes.
_ENCODE_THRESHOLD = 1000

_BODYLESS_STATUSES = (204, 304)


def status(response: Response, code: int) -> Response:
    response.status_code = code
    return response


def set_charset(content_type: str, charset: str) -> str:
    media_type, params = parse_content_type(content_type)
    params["charset"] = charset
    return format_content_type(media_type, params)


def create_etag(body: bytes | str, encoding: str | None = None) -> str:
    """Weak entity tag: ``W/"<hex length>-<base64 sha1, 27 chars>"``."""
    data = body.encode(encoding or "utf-8") if isinstance(body, str) else body
    digest = base64.b64encode(hashlib.sha1(data).digest()).decode("ascii")[:27]
    return f'W/"{len(data):x}-{digest}"'


def send(request: Request, response: Response, body: Any = None) -> Response:
    chunk = body
    encoding: str | None = None

    match chunk:
        case str():
            if not response.get_header("content-type"):
                response.set_header("Content-Type", "text/html")
        case None:
            chunk = ""
        case bytes() | bytearray() | memoryview():
            chunk = bytes(chunk)
            if not response.get_header("content-type"):
                response.set_header("Content-Type", "application/octet-stream")
        case bool() | int() | float() | dict() | list() | tuple():
            return json(request, response, chunk)
        case _:
            raise SerializationError(
                f"`body` is not a valid str, bytes, dict, list, bool, number or None: "
                f"{type(chunk).__name__}"
            )

    if isinstance(chunk, str):
        encoding = "utf-8"
        content_type = response.get_header("content-type")
        if content_type:
            response.set_header("Content-Type", set_charset(content_type, "utf-8"))

    if isinstance(chunk, bytes):
        length = len(chunk)
    elif len(chunk) < _ENCODE_THRESHOLD:
        length = len(chunk.encode(encoding))
    else:
        chunk = chunk.encode(encoding)
        length = len(chunk)
        encoding = None
    response.set_header("Content-Length", length)

    if not response.get_header("etag"):
        response.set_header("ETag", create_etag(chunk, encoding))

    if response.status_code in _BODYLESS_STATUSES:
        response.remove_header("Content-Type")
        response.remove_header("Content-Length")
        response.remove_header("Transfer-Encoding")
        chunk = b""

    if request.method == "HEAD":
        return response.end()
    if encoding:
        return response.end(chunk, encoding)
    return response.end(chunk)


def json(request: Request, response: Response, value: Any) -> Response:
    try:
        body = dumps(value, separators=(",", ":"), ensure_ascii=False)
    except TypeError as e:
        raise SerializationError(f"value is not JSON serializable: {e}") from e

    if not response.get_header("content-type"):
        response.set_header("Content-Type", "application/json; charset=utf-8")
    return send(request, response, body)

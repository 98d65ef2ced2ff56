"""
Request adaptation.

[`adapt()`](src/fndev/http/adapter.py:1) buffers the whole request body, then
attaches the lazy ``cookies``/``query``/``body`` fields to the request and
installs the ``status``/``send``/``json`` helpers on the response.
"""

from __future__ import annotations

import functools
import json
from enum import Enum, auto
from typing import Any, Callable
from urllib.parse import parse_qsl, unquote

from ..errors import ClientInputError
from . import helpers
from .content_type import parse_content_type
from .lazy import Lazy
from .messages import Request, Response


class BodyKind(Enum):
    """How a request body is parsed, decided once from its content-type."""
    JSON = auto()
    RAW_BYTES = auto()
    FORM = auto()
    TEXT = auto()
    UNKNOWN = auto()


_MEDIA_TYPES: dict[str, BodyKind] = {
    "application/json": BodyKind.JSON,
    "application/octet-stream": BodyKind.RAW_BYTES,
    "application/x-www-form-urlencoded": BodyKind.FORM,
    "text/plain": BodyKind.TEXT,
}


def negotiate(content_type: str | None) -> BodyKind:
    if not content_type:
        return BodyKind.UNKNOWN
    media_type, _ = parse_content_type(content_type)
    return _MEDIA_TYPES.get(media_type, BodyKind.UNKNOWN)


def parse_body(kind: BodyKind, body: bytes) -> Any:
    match kind:
        case BodyKind.JSON:
            try:
                text = body.decode("utf-8")
                return json.loads(text) if text else {}
            except ValueError as e:
                raise ClientInputError(400, "Invalid JSON") from e
        case BodyKind.RAW_BYTES:
            return body
        case BodyKind.FORM:
            # Flat mapping: a repeated key keeps its last value.
            return dict(parse_qsl(body.decode("utf-8", errors="replace"), keep_blank_values=True))
        case BodyKind.TEXT:
            return body.decode("utf-8", errors="replace")
        case _:
            return None


def parse_query(query_string: str) -> dict[str, str]:
    return dict(parse_qsl(query_string, keep_blank_values=True))


def parse_cookies(header: str) -> dict[str, str]:
    cookies: dict[str, str] = {}
    for pair in header.split(";"):
        name, sep, value = pair.partition("=")
        if not sep:
            continue
        name = name.strip()
        if not name or name in cookies:
            continue
        value = value.strip()
        if len(value) >= 2 and value[0] == value[-1] == '"':
            value = value[1:-1]
        cookies[name] = unquote(value)
    return cookies


def _body_parser(request: Request) -> Callable[[], Any]:
    kind = negotiate(request.get_header("content-type"))
    return lambda: parse_body(kind, request.raw_body)


def _query_parser(request: Request) -> Callable[[], dict[str, str]]:
    return lambda: parse_query(request.query_string)


def _cookie_parser(request: Request) -> Callable[[], dict[str, str]]:
    def parse() -> dict[str, str]:
        header = request.headers.get("cookie")
        if not header:
            return {}
        if isinstance(header, list):
            header = ";".join(header)
        return parse_cookies(header)
    return parse


async def adapt(request: Request, response: Response) -> None:
    """
    Buffer the request body and install the handler-facing helpers.

    Returns once the body stream is exhausted. Parsing happens lazily on
    first access, so a malformed JSON body only raises ``ClientInputError``
    when the handler reads ``request.body``.
    """
    if request.stream is not None:
        async for chunk in request.stream:
            if chunk:
                request.chunks.append(chunk)

    request.lazy_fields["cookies"] = Lazy(_cookie_parser(request))
    request.lazy_fields["query"] = Lazy(_query_parser(request))
    request.lazy_fields["body"] = Lazy(_body_parser(request))

    response.status = functools.partial(helpers.status, response)
    response.send = functools.partial(helpers.send, request, response)
    response.json = functools.partial(helpers.json, request, response)

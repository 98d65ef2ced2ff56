"""Request and response objects handed to handler modules."""

from __future__ import annotations

from dataclasses import dataclass, field
from http import HTTPStatus
from typing import Any, AsyncIterable, Iterator
from urllib.parse import urlsplit

from ..errors import ResponseAlreadySent
from .lazy import Lazy


HeaderValue = str | list[str]
HeaderMap = dict[str, HeaderValue]


@dataclass(slots=True, eq=False)
class Request:
    """
    An incoming HTTP request.

    Header names are lower-cased. A header delivered more than once keeps
    every value as a list. ``cookies``, ``query`` and ``body`` are lazy: they
    become readable once [`adapt()`](src/fndev/http/adapter.py:1) has buffered
    the body, are computed on first read, and can be overwritten.
    """

    method: str
    target: str
    headers: HeaderMap = field(default_factory=dict)
    stream: AsyncIterable[bytes] | None = None
    version: str = "HTTP/1.1"
    client: tuple[str, int] | None = None
    chunks: list[bytes] = field(default_factory=list)
    lazy_fields: dict[str, Lazy] = field(default_factory=dict, repr=False)

    @property
    def path(self) -> str:
        return urlsplit(self.target).path or "/"

    @property
    def query_string(self) -> str:
        return urlsplit(self.target).query

    @property
    def raw_body(self) -> bytes:
        return b"".join(self.chunks)

    def get_header(self, name: str) -> str | None:
        """Return a header value, joining repeated values with ``", "``."""
        value = self.headers.get(name.lower())
        if isinstance(value, list):
            return ", ".join(value)
        return value

    def lazy(self, name: str) -> Lazy:
        try:
            return self.lazy_fields[name]
        except KeyError:
            raise RuntimeError(
                f"request.{name} is not available before the request is adapted"
            ) from None

    @property
    def cookies(self) -> dict[str, str]:
        return self.lazy("cookies").resolve()

    @cookies.setter
    def cookies(self, value: dict[str, str]) -> None:
        self._override("cookies", value)

    @property
    def query(self) -> dict[str, str]:
        return self.lazy("query").resolve()

    @query.setter
    def query(self, value: dict[str, str]) -> None:
        self._override("query", value)

    @property
    def body(self) -> Any:
        return self.lazy("body").resolve()

    @body.setter
    def body(self, value: Any) -> None:
        self._override("body", value)

    def _override(self, name: str, value: Any) -> None:
        if name in self.lazy_fields:
            self.lazy_fields[name].override(value)
        else:
            self.lazy_fields[name] = Lazy.of(value)


class Response:
    """
    An outgoing HTTP response.

    Status and headers can change freely until the response is finalized by
    [`end()`](src/fndev/http/messages.py:1) (which ``send``/``json`` call).
    After that every mutation raises ``ResponseAlreadySent``.
    """

    def __init__(self, method: str = "GET"):
        self.method = method.upper()
        self._status_code = 200
        # lower-cased name -> (name as set, value)
        self._headers: dict[str, tuple[str, str]] = {}
        self.body = b""
        self.finished = False

    @property
    def status_code(self) -> int:
        return self._status_code

    @status_code.setter
    def status_code(self, code: int) -> None:
        self._check_open()
        self._status_code = code

    @property
    def status_message(self) -> str:
        try:
            return HTTPStatus(self._status_code).phrase
        except ValueError:
            return "Unknown"

    @property
    def headers(self) -> dict[str, str]:
        return {name: value for name, value in self._headers.values()}

    def get_header(self, name: str) -> str | None:
        entry = self._headers.get(name.lower())
        return entry[1] if entry else None

    def has_header(self, name: str) -> bool:
        return name.lower() in self._headers

    def set_header(self, name: str, value: Any) -> "Response":
        self._check_open()
        self._headers[name.lower()] = (name, str(value))
        return self

    def remove_header(self, name: str) -> None:
        self._check_open()
        self._headers.pop(name.lower(), None)

    def iter_headers(self) -> Iterator[tuple[str, str]]:
        yield from self._headers.values()

    def end(self, chunk: bytes | str = b"", encoding: str = "utf-8") -> "Response":
        """Finalize the response with ``chunk`` as its payload."""
        self._check_open()
        if isinstance(chunk, str):
            chunk = chunk.encode(encoding)
        # HEAD responses carry headers only.
        self.body = b"" if self.method == "HEAD" else bytes(chunk)
        self.finished = True
        return self

    def _check_open(self) -> None:
        if self.finished:
            raise ResponseAlreadySent("response has already been sent")

"""HTTP/1.1 server on AnyIO sockets.

Features:
- HTTP/1.1 request line + headers parsing
- Request bodies by Content-Length or chunked transfer-encoding, streamed to the app
- One request per connection (Connection: close)
- Address-in-use retry on a random fallback port, with a bounded number of attempts
- Forced shutdown: every open connection is cancelled, no draining
"""

from __future__ import annotations

import errno
import logging
import random
from typing import Any, AsyncIterator, Awaitable, Callable

import anyio
from anyio.abc import SocketAttribute, SocketStream, TaskGroup, TaskStatus
from anyio.streams.buffered import BufferedByteReceiveStream

from ..errors import BindError
from .messages import HeaderMap, Request, Response


logger = logging.getLogger(__name__)

App = Callable[[Request, Response], Awaitable[None]]

DEFAULT_PORT = 3000
FALLBACK_PORTS = (3333, 3443)


class BadRequest(ValueError):
    """The request head or body framing is malformed."""
    status = 400


class PayloadTooLarge(BadRequest):
    status = 413


def _parse_head(block: bytes) -> tuple[str, str, str, HeaderMap]:
    # block contains request line + headers ending with \r\n\r\n
    head = block.decode("iso-8859-1")

    lines = head.split("\r\n")
    if not lines or not lines[0]:
        raise BadRequest("missing request line")

    parts = lines[0].split(" ")
    if len(parts) != 3:
        raise BadRequest("invalid request line")
    method, target, version = parts
    if not version.startswith("HTTP/"):
        raise BadRequest("invalid request line")

    headers: HeaderMap = {}
    for line in lines[1:]:
        if line == "":
            break
        if ":" not in line:
            continue
        k, v = line.split(":", 1)
        name, value = k.strip().lower(), v.strip()
        existing = headers.get(name)
        if existing is None:
            headers[name] = value
        elif isinstance(existing, list):
            existing.append(value)
        else:
            headers[name] = [existing, value]
    return method.upper(), target, version, headers


async def _fixed_body(reader: BufferedByteReceiveStream, length: int) -> AsyncIterator[bytes]:
    remaining = length
    while remaining > 0:
        try:
            chunk = await reader.receive(min(65536, remaining))
        except anyio.EndOfStream:
            return
        remaining -= len(chunk)
        yield chunk


async def _chunked_body(reader: BufferedByteReceiveStream, max_bytes: int) -> AsyncIterator[bytes]:
    total = 0
    while True:
        try:
            line = await reader.receive_until(b"\r\n", 1024)
            size = int(line.split(b";", 1)[0].strip() or b"x", 16)
        except (anyio.DelimiterNotFound, anyio.IncompleteRead, ValueError) as e:
            raise BadRequest("invalid chunked body") from e
        if size == 0:
            # Skip trailers up to the terminating blank line.
            while await reader.receive_until(b"\r\n", 8192):
                pass
            return
        total += size
        if total > max_bytes:
            raise PayloadTooLarge("payload too large")
        try:
            data = await reader.receive_exactly(size)
            await reader.receive_exactly(2)
        except anyio.IncompleteRead as e:
            raise BadRequest("truncated chunked body") from e
        yield data


def _body_stream(reader: BufferedByteReceiveStream, headers: HeaderMap, max_bytes: int) -> AsyncIterator[bytes] | None:
    encoding = headers.get("transfer-encoding")
    if isinstance(encoding, list):
        encoding = ", ".join(encoding)
    if encoding and "chunked" in encoding.lower():
        return _chunked_body(reader, max_bytes)

    raw_length = headers.get("content-length", "0") or "0"
    if isinstance(raw_length, list):
        raw_length = raw_length[-1]
    try:
        content_length = int(raw_length)
    except ValueError:
        raise BadRequest("invalid content-length") from None
    if content_length < 0:
        raise BadRequest("invalid content-length")
    if content_length > max_bytes:
        raise PayloadTooLarge("payload too large")
    if content_length == 0:
        return None
    return _fixed_body(reader, content_length)


def plain_response(method: str, status: int, text: str) -> Response:
    response = Response(method)
    response.status_code = status
    response.set_header("Content-Type", "text/plain; charset=utf-8")
    return response.end(text)


def serialize_head(response: Response) -> bytes:
    headers = dict((name.lower(), (name, value)) for name, value in response.iter_headers())
    bodyless = response.method == "HEAD" or response.status_code in (204, 304)
    if "content-length" not in headers and "transfer-encoding" not in headers and not bodyless:
        headers["content-length"] = ("Content-Length", str(len(response.body)))
    headers["connection"] = ("Connection", "close")

    start = f"HTTP/1.1 {response.status_code} {response.status_message}\r\n"
    lines = "".join(f"{name}: {value}\r\n" for name, value in headers.values())
    return (start + lines + "\r\n").encode("iso-8859-1")


async def _write_response(stream: SocketStream, response: Response) -> None:
    await stream.send(serialize_head(response) + response.body)


class Server:
    """
    HTTP server lifecycle.

    - bind() acquires a listening socket, retrying on a random fallback
      port while the address is in use
    - serve() accepts connections in its own TaskGroup and hands each request
      to ``app(request, response)``
    - shutdown() force-closes every connection, then the listener
    """

    def __init__(
        self,
        app: App,
        *,
        host: str = "127.0.0.1",
        fallback_ports: tuple[int, int] = FALLBACK_PORTS,
        max_bind_attempts: int = 10,
        max_header_bytes: int = 64 * 1024,
        max_body_bytes: int = 10 * 1024 * 1024,
    ):
        self._app = app
        self._host = host
        self._fallback_ports = fallback_ports
        self._max_bind_attempts = max(1, max_bind_attempts)
        self._max_header_bytes = max_header_bytes
        self._max_body_bytes = max_body_bytes
        # anyio.create_tcp_listener() may return a MultiListener depending on the host.
        self._listener: Any = None
        self._port: int | None = None
        self._task_group: TaskGroup | None = None
        self._connections: set[anyio.CancelScope] = set()
        self._stopped: anyio.Event | None = None

    @property
    def port(self) -> int | None:
        return self._port

    @property
    def listening(self) -> bool:
        return self._listener is not None

    @property
    def connection_count(self) -> int:
        return len(self._connections)

    async def bind(self, port: int = DEFAULT_PORT) -> int:
        """Listen on ``port`` (or a fallback port) and return the bound port."""
        if self._listener is not None:
            raise RuntimeError(f"server is already bound to port {self._port}")
        attempts = 0
        while True:
            attempts += 1
            try:
                self._listener = await anyio.create_tcp_listener(
                    local_host=self._host, local_port=port
                )
            except OSError as e:
                if e.errno != errno.EADDRINUSE:
                    raise BindError(f"Cannot listen on port {port}: {e}", port) from e
                logger.warning("Port `%d` is already in use.", port)
                if attempts >= self._max_bind_attempts:
                    raise BindError(
                        f"No free port found after {attempts} attempts", port
                    ) from e
                logger.info("Trying a random port...")
                port = random.randint(*self._fallback_ports)
                self._close_connections()
                continue

            self._port = self._listener.extra(SocketAttribute.local_port)
            return self._port

    async def serve(
        self,
        port: int = DEFAULT_PORT,
        *,
        task_status: TaskStatus[int] = anyio.TASK_STATUS_IGNORED,
    ) -> None:
        """
        Serve until shutdown() is called.

        Binds first if bind() hasn't been called. Reports the bound port
        through ``task_status`` so callers can use ``await tg.start(server.serve)``.
        """
        if self._listener is None:
            await self.bind(port)
        self._stopped = anyio.Event()

        try:
            async with anyio.create_task_group() as tg:
                self._task_group = tg
                task_status.started(self._port)
                async with self._listener:
                    await self._listener.serve(self._handle_client, task_group=tg)
        finally:
            self._task_group = None
            self._listener = None
            self._stopped.set()

    async def shutdown(self) -> None:
        """Destroy every open connection, then close the listening socket."""
        self._close_connections()
        if self._task_group is not None:
            self._task_group.cancel_scope.cancel()
            if self._stopped is not None:
                await self._stopped.wait()
        elif self._listener is not None:
            await self._listener.aclose()
            self._listener = None
        logger.debug("server closed")

    def _close_connections(self) -> None:
        for scope in list(self._connections):
            scope.cancel()

    async def _handle_client(self, stream: SocketStream) -> None:
        with anyio.CancelScope() as scope:
            self._connections.add(scope)
            try:
                async with stream:
                    await self._handle_request(stream)
            except (anyio.BrokenResourceError, anyio.ClosedResourceError, anyio.EndOfStream):
                logger.debug("connection closed by peer")
            except Exception:
                # One broken connection must not take the accept loop down with it.
                logger.exception("error while writing response")
            finally:
                self._connections.discard(scope)

    async def _handle_request(self, stream: SocketStream) -> None:
        reader = BufferedByteReceiveStream(stream)
        try:
            head = await reader.receive_until(b"\r\n\r\n", self._max_header_bytes)
        except anyio.IncompleteRead:
            return
        except anyio.DelimiterNotFound:
            await _write_response(stream, plain_response("GET", 400, "bad request: header section too large"))
            return

        method = "GET"
        try:
            method, target, version, headers = _parse_head(head + b"\r\n\r\n")
            request = Request(
                method=method,
                target=target,
                headers=headers,
                stream=_body_stream(reader, headers, self._max_body_bytes),
                version=version,
                client=stream.extra(SocketAttribute.remote_address, None),
            )
            response = Response(method)
            await self._app(request, response)
            if not response.finished:
                response.end()
        except BadRequest as e:
            response = plain_response(method, e.status, f"bad request: {e}")
        except Exception:
            logger.exception("unhandled error while serving request")
            response = plain_response(method, 500, "Internal Server Error")

        await _write_response(stream, response)

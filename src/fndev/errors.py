"""Error taxonomy for the dev server."""


class DevServerError(Exception):
    """Base class for every error raised by fndev."""
    pass


class ClientInputError(DevServerError):
    """Raised when request input can't be parsed (e.g. malformed JSON body)."""

    def __init__(self, status_code: int, message: str):
        super().__init__(message)
        self.status_code = status_code
        self.message = message


class SerializationError(DevServerError, TypeError):
    """Raised when ``send()`` is given a body it doesn't know how to write."""
    pass


class ResponseAlreadySent(DevServerError, RuntimeError):
    """Raised when a finalized response is mutated or sent again."""
    pass


class HandlerError(DevServerError):
    """Raised when a handler module doesn't honour the handler contract."""
    pass


class BindError(DevServerError):
    """Raised when the server can't acquire a listening socket."""

    def __init__(self, message: str, port: int):
        super().__init__(message)
        self.port = port

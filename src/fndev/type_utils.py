"""Shared typing helpers."""

from typing import TYPE_CHECKING, Any, Awaitable, Callable, TypeAlias

if TYPE_CHECKING:
    from .http.messages import Request, Response


MaybeAwaitable: TypeAlias = Awaitable[Any] | Any

# handler(request, response) -> None | Awaitable[None]
HandlerFunc: TypeAlias = Callable[["Request", "Response"], MaybeAwaitable]

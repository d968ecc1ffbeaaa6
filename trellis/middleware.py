"""
Middleware system - ordered handler chains with an explicit continuation.

Every layer has the signature ``(request, response, next)`` and may be
sync or async. A layer either responds, calls ``await next()`` to run
the rest of the chain, or calls ``await next(error)`` to hand an error
to the transport's generic error path.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Awaitable, Callable, List, Optional, Sequence, Union
import inspect
import logging

from .request import Request
from .response import Response


Middleware = Callable[[Request, Response, "Next"], Union[None, Awaitable[None]]]

logger = logging.getLogger("trellis.middleware")


async def maybe_await(value: Any) -> Any:
    """Await value if it is awaitable, otherwise return it."""
    if inspect.isawaitable(value):
        return await value
    return value


class Next:
    """
    Continuation handed to each layer of a chain.

    ``await next()`` runs the following layer; past the last layer the
    chain is marked exhausted. ``await next(error)`` records the error,
    which the chain raises once the current layer returns.
    """

    __slots__ = ("_chain", "_position", "_called")

    def __init__(self, chain: "HandlerChain", position: int):
        self._chain = chain
        self._position = position
        self._called = False

    async def __call__(self, error: Optional[BaseException] = None) -> None:
        if self._called:
            logger.warning("next() called more than once; ignoring")
            return
        self._called = True

        if error is not None:
            self._chain.error = error
            return

        await self._chain.dispatch(self._position)


class HandlerChain:
    """One run of an ordered list of layers for a single request."""

    __slots__ = ("handlers", "request", "response", "error", "exhausted")

    def __init__(
        self,
        handlers: Sequence[Middleware],
        request: Request,
        response: Response,
    ):
        self.handlers = list(handlers)
        self.request = request
        self.response = response
        self.error: Optional[BaseException] = None
        self.exhausted = False

    async def run(self) -> None:
        """
        Run the chain from the first layer.

        Raises:
            Whatever a layer raised or forwarded through next(error)
        """
        await self.dispatch(0)
        if self.error is not None:
            raise self.error

    async def dispatch(self, position: int) -> None:
        if self.error is not None:
            return
        if position >= len(self.handlers):
            self.exhausted = True
            return

        layer = self.handlers[position]
        await maybe_await(layer(self.request, self.response, Next(self, position + 1)))


@dataclass
class MiddlewareDescriptor:
    """Descriptor for application-wide middleware registration."""
    middleware: Middleware
    name: str


class MiddlewareStack:
    """Application-wide middlewares, run in registration order before routing."""

    def __init__(self):
        self.middlewares: List[MiddlewareDescriptor] = []

    def add(self, middleware: Middleware, name: Optional[str] = None) -> None:
        """Add middleware to stack."""
        if name is None:
            name = getattr(middleware, "__name__", type(middleware).__name__)
        self.middlewares.append(MiddlewareDescriptor(middleware=middleware, name=name))

    def build(self, final: Middleware) -> List[Middleware]:
        """Layers for one request: every middleware, then final."""
        return [desc.middleware for desc in self.middlewares] + [final]

    def __len__(self) -> int:
        return len(self.middlewares)

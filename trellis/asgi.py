"""
ASGI adapter - bridges the ASGI protocol to trellis Request/Response.

Per HTTP request: read the whole body, pre-parse it, run the
application-wide middlewares followed by the router, then flush the
response. Anything that escapes the chain lands on the generic error
path here.
"""

from __future__ import annotations

from typing import Any, Awaitable, Callable, Optional
import logging

from .faults import Fault, PayloadTooLarge
from .middleware import HandlerChain, Middleware, MiddlewareStack
from .request import Request
from .response import Response
from .router import Router


Receive = Callable[[], Awaitable[dict]]
Send = Callable[[dict], Awaitable[None]]

NOT_FOUND_BODY = {"error": "Not found"}
INTERNAL_ERROR_BODY = {"error": "Internal server error"}
NO_RESPONSE_BODY = {"error": "No response sent"}

DEFAULT_MAX_BODY_SIZE = 1_048_576


class TrellisApp:
    """
    ASGI 3 application.

    Handles HTTP; lifespan messages are acknowledged; websocket
    connections are refused.
    """

    __slots__ = ("router", "middleware_stack", "max_body_size", "logger")

    def __init__(
        self,
        router: Router,
        middleware_stack: Optional[MiddlewareStack] = None,
        max_body_size: int = DEFAULT_MAX_BODY_SIZE,
    ):
        self.router = router
        self.middleware_stack = middleware_stack if middleware_stack is not None else MiddlewareStack()
        self.max_body_size = max_body_size
        self.logger = logging.getLogger("trellis.asgi")

    def use(self, middleware: Middleware, name: Optional[str] = None) -> "TrellisApp":
        """Add an application-wide middleware (runs before routing)."""
        self.middleware_stack.add(middleware, name)
        return self

    async def __call__(self, scope: dict, receive: Receive, send: Send) -> None:
        scope_type = scope["type"]
        if scope_type == "http":
            await self.handle_http(scope, receive, send)
        elif scope_type == "lifespan":
            await self.handle_lifespan(scope, receive, send)
        elif scope_type == "websocket":
            self.logger.warning("WebSocket connections are not supported; closing")
            await send({"type": "websocket.close", "code": 1003})

    async def handle_http(self, scope: dict, receive: Receive, send: Send) -> None:
        response = Response()

        try:
            raw_body = await self._read_body(receive, self.max_body_size)
            request = Request.from_scope(scope, raw_body, max_size=self.max_body_size)
        except Fault as fault:
            self.logger.debug(f"Rejected request body: {fault}")
            response.send_json({"error": fault.to_dict()}, fault.status)
            await response.send_asgi(send)
            return

        await self.dispatch(request, response)
        await response.send_asgi(send)

    async def dispatch(self, request: Request, response: Response) -> None:
        """Run the full chain for request, always leaving response sent."""
        chain = HandlerChain(self.middleware_stack.build(self.router.dispatch), request, response)

        try:
            await chain.run()
        except Exception as e:
            self._handle_error(e, request, response)
            return

        if response.already_sent:
            return

        if chain.exhausted:
            response.send_json(NOT_FOUND_BODY, 404)
        else:
            self.logger.warning(f"{request.method} {request.path}: handler chain sent no response")
            response.send_json(NO_RESPONSE_BODY, 500)

    def _handle_error(self, error: Exception, request: Request, response: Response) -> None:
        """Generic error path."""
        if isinstance(error, Fault) and error.public:
            self.logger.warning(f"{request.method} {request.path}: {error}")
            payload: Any = {"error": error.to_dict()}
            status = error.status
        else:
            self.logger.error(
                f"Unhandled error for {request.method} {request.path}: {error}",
                exc_info=(type(error), error, error.__traceback__),
            )
            payload = INTERNAL_ERROR_BODY
            status = 500

        if response.already_sent:
            self.logger.debug("Response already sent; error not reported to client")
            return
        response.send_json(payload, status)

    async def handle_lifespan(self, scope: dict, receive: Receive, send: Send) -> None:
        """Handle ASGI lifespan events."""
        while True:
            message = await receive()

            if message["type"] == "lifespan.startup":
                self.logger.debug(f"Startup complete ({len(self.router)} routes)")
                await send({"type": "lifespan.startup.complete"})

            elif message["type"] == "lifespan.shutdown":
                self.logger.debug("Shutdown complete")
                await send({"type": "lifespan.shutdown.complete"})
                break

    @staticmethod
    async def _read_body(receive: Receive, max_size: int = DEFAULT_MAX_BODY_SIZE) -> bytes:
        """
        Read the full request body.

        Raises:
            PayloadTooLarge: As soon as more than max_size bytes arrive
        """
        chunks = []
        size = 0
        while True:
            message = await receive()
            if message["type"] == "http.disconnect":
                break
            chunk = message.get("body", b"")
            size += len(chunk)
            if size > max_size:
                raise PayloadTooLarge(
                    "Request body exceeds maximum size",
                    metadata={"max_allowed": max_size},
                )
            chunks.append(chunk)
            if not message.get("more_body", False):
                break
        return b"".join(chunks)

"""
Router - the transport's routing table.

Routes are registered as ``(method, path, *handlers)``; ``:name``
segments capture path parameters. Registering the same (method, path)
again replaces the earlier handler chain.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Pattern, Tuple
import logging
import re

from .middleware import HandlerChain, Middleware, Next
from .request import Request
from .response import Response


SUPPORTED_METHODS = frozenset(("GET", "POST", "PUT", "PATCH", "DELETE"))

_PARAM_RE = re.compile(r":([A-Za-z_][A-Za-z0-9_]*)")

logger = logging.getLogger("trellis.router")


def compile_pattern(path: str) -> Tuple[Pattern[str], List[str]]:
    """
    Compile a route path into a regex.

    Example:
        compile_pattern("/users/:id") matches "/users/42" with {"id": "42"}
    """
    names: List[str] = []
    pattern = ""
    last = 0
    for match in _PARAM_RE.finditer(path):
        pattern += re.escape(path[last:match.start()])
        names.append(match.group(1))
        pattern += f"(?P<{match.group(1)}>[^/]+)"
        last = match.end()
    pattern += re.escape(path[last:])
    return re.compile(f"^{pattern}$"), names


@dataclass
class RouteEntry:
    method: str
    path: str
    handlers: Tuple[Middleware, ...]
    pattern: Pattern[str] = field(repr=False)
    param_names: List[str] = field(default_factory=list)


@dataclass
class RouteMatch:
    entry: RouteEntry
    params: Dict[str, str]


class Router:
    """Ordered routing table keyed by (method, path)."""

    def __init__(self):
        self._routes: Dict[Tuple[str, str], RouteEntry] = {}

    def register(self, method: str, path: str, *handlers: Middleware) -> RouteEntry:
        """
        Register a handler chain.

        Args:
            method: GET, POST, PUT, PATCH or DELETE
            path: Route path; "" is served as "/"
            *handlers: Middlewares followed by the final handler
        """
        method = method.upper()
        if method not in SUPPORTED_METHODS:
            raise ValueError(f"Unsupported HTTP method: {method}")
        if not handlers:
            raise ValueError(f"No handlers given for {method} {path!r}")

        path = path or "/"
        pattern, names = compile_pattern(path)
        entry = RouteEntry(
            method=method,
            path=path,
            handlers=tuple(handlers),
            pattern=pattern,
            param_names=names,
        )

        key = (method, path)
        if key in self._routes:
            logger.debug(f"{method} {path} re-registered; earlier handler is shadowed")
        self._routes[key] = entry
        return entry

    def match(self, method: str, path: str) -> Optional[RouteMatch]:
        """Find the route for a request (trailing slash tolerated)."""
        method = method.upper()
        if path != "/" and path.endswith("/"):
            path = path.rstrip("/") or "/"

        for entry in self._routes.values():
            if entry.method != method:
                continue
            found = entry.pattern.match(path)
            if found:
                # ASGI paths arrive percent-decoded
                return RouteMatch(entry=entry, params=found.groupdict())
        return None

    def routes(self) -> List[Tuple[str, str]]:
        """Registered (method, path) pairs in registration order."""
        return list(self._routes)

    async def dispatch(self, request: Request, response: Response, next: Next) -> None:
        """Final layer of the application chain: run the matched route."""
        matched = self.match(request.method, request.path)
        if matched is None:
            await next()
            return

        request.params = matched.params
        chain = HandlerChain(matched.entry.handlers, request, response)
        await chain.run()
        if chain.exhausted:
            await next()

    def __len__(self) -> int:
        return len(self._routes)

    def __contains__(self, key: Tuple[str, str]) -> bool:
        return key in self._routes

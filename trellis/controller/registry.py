"""
Metadata Registry

Passive side-table of declarative facts keyed by
(controller type, handler name). Registration only appends; lookups
return empty tuples when nothing was registered.
"""

from typing import Any, Callable, Dict, List, Optional, Tuple, Union

from .metadata import (
    ControllerDescriptor,
    HttpMethod,
    MetadataError,
    ParamDescriptor,
    ParamSource,
    RouteDescriptor,
)


MemberKey = Tuple[type, str]


class MetadataRegistry:
    """
    Store for controller prefixes, routes, parameter rules and the
    ordered guard/pipe/middleware/filter lists of each handler.
    """

    def __init__(self):
        self._prefixes: Dict[type, str] = {}
        self._routes: Dict[type, List[RouteDescriptor]] = {}
        self._params: Dict[MemberKey, List[ParamDescriptor]] = {}
        self._guards: Dict[MemberKey, List[Callable[..., Any]]] = {}
        self._pipes: Dict[MemberKey, List[Callable[..., Any]]] = {}
        self._middlewares: Dict[MemberKey, List[Callable[..., Any]]] = {}
        self._filters: Dict[MemberKey, List[Callable[..., Any]]] = {}

    # ========================================================================
    # Registration
    # ========================================================================

    def set_prefix(self, cls: type, prefix: str = "") -> None:
        """Record the controller prefix (write-once)."""
        existing = self._prefixes.get(cls)
        if existing is not None and existing != prefix:
            raise MetadataError(
                f"{cls.__name__} already declared with prefix {existing!r}, got {prefix!r}"
            )
        self._prefixes[cls] = prefix or ""

    def add_route(
        self,
        cls: type,
        method: Union[str, HttpMethod],
        path: str,
        handler_name: str,
    ) -> RouteDescriptor:
        route = RouteDescriptor(
            http_method=HttpMethod.parse(method),
            path=path or "",
            handler_name=handler_name,
        )
        self._routes.setdefault(cls, []).append(route)
        return route

    def add_param(
        self,
        cls: type,
        handler_name: str,
        index: int,
        source: Union[str, ParamSource],
        key: Optional[str] = None,
    ) -> ParamDescriptor:
        descriptor = ParamDescriptor(index=index, source=ParamSource.parse(source), key=key)
        params = self._params.setdefault((cls, handler_name), [])
        if any(p.index == descriptor.index for p in params):
            raise MetadataError(
                f"{cls.__name__}.{handler_name}: parameter index {index} declared twice"
            )
        params.append(descriptor)
        return descriptor

    def add_guards(self, cls: type, handler_name: str, *guards: Callable[..., Any]) -> None:
        self._extend(self._guards, cls, handler_name, guards, "guard")

    def add_pipes(self, cls: type, handler_name: str, *pipes: Callable[..., Any]) -> None:
        self._extend(self._pipes, cls, handler_name, pipes, "pipe")

    def add_middlewares(self, cls: type, handler_name: str, *middlewares: Callable[..., Any]) -> None:
        self._extend(self._middlewares, cls, handler_name, middlewares, "middleware")

    def add_filters(self, cls: type, handler_name: str, *filters: Callable[..., Any]) -> None:
        self._extend(self._filters, cls, handler_name, filters, "filter")

    @staticmethod
    def _extend(
        table: Dict[MemberKey, List[Callable[..., Any]]],
        cls: type,
        handler_name: str,
        items: Tuple[Callable[..., Any], ...],
        kind: str,
    ) -> None:
        for item in items:
            if not callable(item):
                raise MetadataError(
                    f"{cls.__name__}.{handler_name}: {kind} {item!r} is not callable"
                )
        table.setdefault((cls, handler_name), []).extend(items)

    # ========================================================================
    # Lookup
    # ========================================================================

    def is_controller(self, cls: type) -> bool:
        return cls in self._prefixes

    def get_controller(self, cls: type) -> ControllerDescriptor:
        return ControllerDescriptor(
            prefix=self._prefixes.get(cls, ""),
            routes=self.get_routes(cls),
        )

    def get_routes(self, cls: type) -> Tuple[RouteDescriptor, ...]:
        return tuple(self._routes.get(cls, ()))

    def get_params(self, cls: type, handler_name: str) -> Tuple[ParamDescriptor, ...]:
        """Parameter descriptors in declaration order."""
        return tuple(self._params.get((cls, handler_name), ()))

    def get_guards(self, cls: type, handler_name: str) -> Tuple[Callable[..., Any], ...]:
        return tuple(self._guards.get((cls, handler_name), ()))

    def get_pipes(self, cls: type, handler_name: str) -> Tuple[Callable[..., Any], ...]:
        return tuple(self._pipes.get((cls, handler_name), ()))

    def get_middlewares(self, cls: type, handler_name: str) -> Tuple[Callable[..., Any], ...]:
        return tuple(self._middlewares.get((cls, handler_name), ()))

    def get_filters(self, cls: type, handler_name: str) -> Tuple[Callable[..., Any], ...]:
        return tuple(self._filters.get((cls, handler_name), ()))


# Process-wide default
metadata = MetadataRegistry()

"""
Controller Decorators

Method decorators stage declarative metadata on the function object;
the @controller class decorator flushes it into the MetadataRegistry
keyed by (class, member name). Stacked decorators are recorded in
reading order, top to bottom.
"""

from typing import Any, Callable, Hashable, Iterable, List, Optional, Tuple, TypeVar, Union

from ..di.core import InjectableRegistry, injectables
from .metadata import HttpMethod, MetadataError, ParamSource
from .registry import MetadataRegistry, metadata


F = TypeVar("F", bound=Callable[..., Any])
C = TypeVar("C", bound=type)

_STAGED_ATTR = "__trellis_metadata__"

StagedEntry = Tuple[str, Tuple[Any, ...]]


def _stage(func: F, kind: str, payload: Tuple[Any, ...]) -> F:
    """Attach one metadata entry to func without executing anything."""
    staged: List[StagedEntry] = func.__dict__.setdefault(_STAGED_ATTR, [])
    # Decorators apply bottom-up; prepend to keep reading order
    staged.insert(0, (kind, payload))
    return func


def staged_metadata(func: Any) -> List[StagedEntry]:
    """Entries staged on func (empty when undecorated)."""
    return list(getattr(func, _STAGED_ATTR, ()))


# ============================================================================
# Routes
# ============================================================================

class RouteDecorator:
    """
    Base route decorator.

    Attaches route metadata to controller methods for compile-time use.
    """

    method: Optional[HttpMethod] = None

    def __init__(self, path: str = ""):
        self.path = path or ""

    def __call__(self, func: F) -> F:
        if self.method is None:
            raise MetadataError("RouteDecorator used without an HTTP method")
        return _stage(func, "route", (self.method, self.path))


class GET(RouteDecorator):
    """GET request decorator."""
    method = HttpMethod.GET


class POST(RouteDecorator):
    """POST request decorator."""
    method = HttpMethod.POST


class PUT(RouteDecorator):
    """PUT request decorator."""
    method = HttpMethod.PUT


class PATCH(RouteDecorator):
    """PATCH request decorator."""
    method = HttpMethod.PATCH


class DELETE(RouteDecorator):
    """DELETE request decorator."""
    method = HttpMethod.DELETE


def route(
    method: Union[str, HttpMethod, Iterable[Union[str, HttpMethod]]],
    path: str = "",
) -> Callable[[F], F]:
    """
    Generic route decorator.

    Example:
        @route(["GET", "POST"], "/items")
        def items(self, req, res, next):
            ...
    """
    if isinstance(method, (str, HttpMethod)):
        methods = [HttpMethod.parse(method)]
    else:
        methods = [HttpMethod.parse(m) for m in method]

    def decorator(func: F) -> F:
        # Stage last method first so the list reads in the given order
        for http_method in reversed(methods):
            _stage(func, "route", (http_method, path or ""))
        return func

    return decorator


# ============================================================================
# Parameters
# ============================================================================

def _param_decorator(source: ParamSource) -> Callable[..., Callable[[F], F]]:
    def factory(index: int, key: Optional[str] = None) -> Callable[[F], F]:
        if not isinstance(index, int) or index < 0:
            raise MetadataError(f"Parameter index must be a non-negative int, got {index!r}")

        def decorator(func: F) -> F:
            return _stage(func, "param", (index, source, key))

        return decorator

    factory.__name__ = source.value.capitalize()
    factory.__doc__ = (
        f"Bind handler argument `index` to the request {source.value} "
        f"(or its `key` sub-field)."
    )
    return factory


Body = _param_decorator(ParamSource.BODY)
Query = _param_decorator(ParamSource.QUERY)
Param = _param_decorator(ParamSource.PATH)


# ============================================================================
# Guards / Pipes / Middleware / Filters
# ============================================================================

def UseGuards(*guards: Callable[..., Any]) -> Callable[[F], F]:
    """Guards run in order before parameter resolution; False rejects with 403."""
    def decorator(func: F) -> F:
        return _stage(func, "guards", guards)
    return decorator


def UsePipes(*pipes: Callable[..., Any]) -> Callable[[F], F]:
    """Pipes transform every resolved parameter, in order."""
    def decorator(func: F) -> F:
        return _stage(func, "pipes", pipes)
    return decorator


def UseMiddleware(*middlewares: Callable[..., Any]) -> Callable[[F], F]:
    """Transport-level middlewares registered ahead of the compiled handler."""
    def decorator(func: F) -> F:
        return _stage(func, "middlewares", middlewares)
    return decorator


def UseFilters(*filters: Callable[..., Any]) -> Callable[[F], F]:
    """Exception filters tried in order when parameters or the handler fail."""
    def decorator(func: F) -> F:
        return _stage(func, "filters", filters)
    return decorator


# ============================================================================
# Controller
# ============================================================================

def controller(
    prefix: str = "",
    *,
    deps: Optional[Iterable[Hashable]] = None,
    registry: Optional[MetadataRegistry] = None,
    injectable_registry: Optional[InjectableRegistry] = None,
) -> Callable[[C], C]:
    """
    Declare a controller class.

    Records the prefix, flushes every staged method decorator into the
    metadata registry in class-body order, and marks the class injectable.

    Args:
        prefix: Path prefix shared by all routes
        deps: Constructor dependencies, in argument order
        registry: Target metadata registry (defaults to the process-wide one)
        injectable_registry: Target DI side-table

    Example:
        @controller("auth", deps=[AuthService])
        class AuthController:
            def __init__(self, auth):
                self.auth = auth

            @POST("login")
            @Body(0, "email")
            async def login(self, email, req, res, next):
                return {"token": await self.auth.login(email)}
    """
    reg = registry if registry is not None else metadata
    inj = injectable_registry if injectable_registry is not None else injectables

    def decorator(cls: C) -> C:
        reg.set_prefix(cls, prefix)

        for name, member in cls.__dict__.items():
            for kind, payload in staged_metadata(member):
                if kind == "route":
                    method, path = payload
                    reg.add_route(cls, method, path, name)
                elif kind == "param":
                    index, source, key = payload
                    reg.add_param(cls, name, index, source, key)
                elif kind == "guards":
                    reg.add_guards(cls, name, *payload)
                elif kind == "pipes":
                    reg.add_pipes(cls, name, *payload)
                elif kind == "middlewares":
                    reg.add_middlewares(cls, name, *payload)
                elif kind == "filters":
                    reg.add_filters(cls, name, *payload)

        inj.register(cls, tuple(deps or ()))
        return cls

    return decorator

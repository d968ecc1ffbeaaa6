"""
Trellis Controller System

Declarative controllers compiled into per-route request pipelines.

Key Features:
- Metadata side-table keyed by (controller class, handler name)
- Guards, pipes, middlewares and exception filters per handler
- Explicit parameter bindings (Body / Query / Param)
- Singleton controller instances from the DI container

Example:
    from trellis import controller, GET, POST, Body, UseGuards

    @controller("auth", deps=[AuthService])
    class AuthController:
        def __init__(self, auth):
            self.auth = auth

        @POST("login")
        @Body(0, "email")
        @Body(1, "password")
        async def login(self, email, password, req, res, next):
            return {"token": await self.auth.login(email, password)}
"""

from .decorators import (
    GET, POST, PUT, PATCH, DELETE,
    RouteDecorator,
    route,
    Body, Query, Param,
    UseGuards, UsePipes, UseMiddleware, UseFilters,
    controller,
)
from .metadata import (
    MetadataError,
    HttpMethod,
    ParamSource,
    RouteDescriptor,
    ParamDescriptor,
    ControllerDescriptor,
    PipeMeta,
)
from .registry import MetadataRegistry, metadata
from .context import (
    ExecutionContext,
    ExceptionContext,
    Guard,
    Pipe,
    ExceptionFilter,
)
from .results import NoResponse, NO_RESPONSE, JsonBody, HandlerResult, to_result
from .engine import PipelineExecutor
from .compiler import RouteCompiler, CompiledRoute
from .paths import normalize_path, join_paths

__all__ = [
    # Decorators
    "GET", "POST", "PUT", "PATCH", "DELETE",
    "RouteDecorator",
    "route",
    "Body", "Query", "Param",
    "UseGuards", "UsePipes", "UseMiddleware", "UseFilters",
    "controller",
    # Metadata
    "MetadataError",
    "HttpMethod",
    "ParamSource",
    "RouteDescriptor",
    "ParamDescriptor",
    "ControllerDescriptor",
    "PipeMeta",
    "MetadataRegistry",
    "metadata",
    # Contexts
    "ExecutionContext",
    "ExceptionContext",
    "Guard",
    "Pipe",
    "ExceptionFilter",
    # Results
    "NoResponse",
    "NO_RESPONSE",
    "JsonBody",
    "HandlerResult",
    "to_result",
    # Compilation
    "PipelineExecutor",
    "RouteCompiler",
    "CompiledRoute",
    "normalize_path",
    "join_paths",
]

"""
Trellis - declarative controllers over a small ASGI core

Complete integration of:
- DI: Singleton container with explicit dependency declarations
- Controllers: Metadata-driven routes, guards, pipes and filters
- Pipeline: Per-route executor compiled once at startup
- Transport: Router, middleware chain and ASGI adapter
- Config: Environment settings through python-dotenv
"""

__version__ = "0.1.0"

# ============================================================================
# Core Framework
# ============================================================================

from .config import Settings, ConfigError
from .request import Request
from .response import Response
from .server import TrellisServer
from .asgi import TrellisApp
from .router import Router
from .middleware import Next, MiddlewareStack, HandlerChain

# ============================================================================
# Dependency Injection
# ============================================================================

from .di import (
    Container,
    InjectableRegistry,
    container,
    injectables,
    injectable,
    DIError,
    NotInjectableError,
    CyclicDependencyError,
)

# ============================================================================
# Controllers
# ============================================================================

from .controller import (
    GET, POST, PUT, PATCH, DELETE,
    route,
    Body, Query, Param,
    UseGuards, UsePipes, UseMiddleware, UseFilters,
    controller,
    MetadataError,
    MetadataRegistry,
    metadata,
    ExecutionContext,
    ExceptionContext,
    PipeMeta,
    NoResponse,
    NO_RESPONSE,
    JsonBody,
    normalize_path,
    join_paths,
)

# ============================================================================
# Faults
# ============================================================================

from .faults import Fault, BadRequest, InvalidJSON, PayloadTooLarge, ResponseAlreadySent

__all__ = [
    "__version__",
    # Core
    "Settings", "ConfigError",
    "Request", "Response",
    "TrellisServer", "TrellisApp",
    "Router", "Next", "MiddlewareStack", "HandlerChain",
    # DI
    "Container", "InjectableRegistry", "container", "injectables", "injectable",
    "DIError", "NotInjectableError", "CyclicDependencyError",
    # Controllers
    "GET", "POST", "PUT", "PATCH", "DELETE",
    "route",
    "Body", "Query", "Param",
    "UseGuards", "UsePipes", "UseMiddleware", "UseFilters",
    "controller",
    "MetadataError", "MetadataRegistry", "metadata",
    "ExecutionContext", "ExceptionContext", "PipeMeta",
    "NoResponse", "NO_RESPONSE", "JsonBody",
    "normalize_path", "join_paths",
    # Faults
    "Fault", "BadRequest", "InvalidJSON", "PayloadTooLarge", "ResponseAlreadySent",
]

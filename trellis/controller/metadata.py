"""
Controller Metadata

Declarative facts recorded about controllers, routes and handler
parameters. Immutable once compilation starts.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Tuple, Union


class MetadataError(Exception):
    """Raised when a declaration is malformed."""
    pass


class HttpMethod(str, Enum):
    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    PATCH = "PATCH"
    DELETE = "DELETE"

    @classmethod
    def parse(cls, value: Union[str, "HttpMethod"]) -> "HttpMethod":
        """Accept 'get', 'GET' or an HttpMethod member."""
        if isinstance(value, HttpMethod):
            return value
        try:
            return cls(str(value).upper())
        except ValueError:
            raise MetadataError(f"Unsupported HTTP method: {value!r}") from None


class ParamSource(str, Enum):
    """Where a handler argument is extracted from."""
    BODY = "body"
    QUERY = "query"
    PATH = "path"

    @classmethod
    def parse(cls, value: Union[str, "ParamSource"]) -> "ParamSource":
        if isinstance(value, ParamSource):
            return value
        try:
            return cls(str(value).lower())
        except ValueError:
            raise MetadataError(f"Unknown parameter source: {value!r}") from None


@dataclass(frozen=True)
class RouteDescriptor:
    """One (method, path, handler) binding on a controller."""
    http_method: HttpMethod
    path: str
    handler_name: str


@dataclass(frozen=True)
class ParamDescriptor:
    """
    Extraction rule for one positional handler argument.

    Attributes:
        index: Positional slot in the handler call
        source: body, query or path
        key: Sub-field of the source; None takes the whole source
    """
    index: int
    source: ParamSource
    key: Optional[str] = None

    def __post_init__(self):
        if not isinstance(self.index, int) or self.index < 0:
            raise MetadataError(f"Parameter index must be a non-negative int, got {self.index!r}")


@dataclass(frozen=True)
class PipeMeta:
    """Metadata record handed to every pipe alongside the value."""
    source: ParamSource
    key: Optional[str] = None


@dataclass(frozen=True)
class ControllerDescriptor:
    """Prefix and ordered routes of one controller type."""
    prefix: str = ""
    routes: Tuple[RouteDescriptor, ...] = field(default_factory=tuple)

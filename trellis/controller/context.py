"""
Execution contexts and capability types for pipeline stages.
"""

from dataclasses import dataclass
from typing import Any, Awaitable, Callable, TYPE_CHECKING, Union

from .metadata import PipeMeta

if TYPE_CHECKING:
    from ..request import Request
    from ..response import Response
    from ..middleware import Next


@dataclass
class ExecutionContext:
    """What a guard sees: the inbound request and outbound response."""
    request: "Request"
    response: "Response"


@dataclass
class ExceptionContext:
    """What an exception filter sees."""
    request: "Request"
    response: "Response"
    next: "Next"


# Capability types; each may be sync or return an awaitable
Guard = Callable[[ExecutionContext], Union[bool, Awaitable[bool]]]
Pipe = Callable[[Any, PipeMeta], Union[Any, Awaitable[Any]]]
ExceptionFilter = Callable[[BaseException, ExceptionContext], Union[None, Awaitable[None]]]

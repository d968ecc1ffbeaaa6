"""
Handler results.

A handler either hands back a JSON body for the pipeline to send, or
declares that it produces no response body of its own (it already
responded, or deliberately leaves the response to someone else).
Plain return values are normalized: None means NoResponse, anything
else is wrapped in JsonBody.
"""

from dataclasses import dataclass
from typing import Any, Union


class NoResponse:
    """Singleton marker: nothing for the pipeline to send."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "NO_RESPONSE"

    def __bool__(self) -> bool:
        return False


NO_RESPONSE = NoResponse()


@dataclass(frozen=True)
class JsonBody:
    """Value to serialize as JSON with status 200."""
    value: Any


HandlerResult = Union[NoResponse, JsonBody]


def to_result(value: Any) -> HandlerResult:
    """Normalize a handler's return value."""
    if isinstance(value, (NoResponse, JsonBody)):
        return value
    if value is None:
        return NO_RESPONSE
    return JsonBody(value)

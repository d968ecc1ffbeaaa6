"""
Request - inbound HTTP request as seen by handlers.

The transport pre-parses everything the pipeline consumes: the JSON
body, the query mapping and the path parameters.
"""

from __future__ import annotations

import json as stdlib_json
from typing import Any, Dict, List, Mapping, Optional, Union
from urllib.parse import parse_qsl

from .faults import InvalidJSON, PayloadTooLarge


QueryValue = Union[str, List[str]]


def parse_query(query_string: str) -> Dict[str, QueryValue]:
    """
    Parse a query string into a mapping.

    Repeated keys collect into a list, single keys stay strings.

    Example:
        parse_query("a=1&b=2&b=3") -> {"a": "1", "b": ["2", "3"]}
    """
    result: Dict[str, QueryValue] = {}
    for key, value in parse_qsl(query_string, keep_blank_values=True):
        existing = result.get(key)
        if existing is None:
            result[key] = value
        elif isinstance(existing, list):
            existing.append(value)
        else:
            result[key] = [existing, value]
    return result


def parse_json_body(
    raw: bytes,
    content_type: Optional[str] = None,
    *,
    max_size: int = 1_048_576,
) -> Any:
    """
    Parse a raw body as JSON when it is JSON.

    Empty bodies, bodies without a content type and non-JSON content
    types yield {}.

    Raises:
        PayloadTooLarge: If the body exceeds max_size
        InvalidJSON: If a JSON body is malformed
    """
    if not raw:
        return {}

    if not content_type:
        return {}
    media_type = content_type.split(";", 1)[0].strip().lower()
    if media_type != "application/json" and not media_type.endswith("+json"):
        return {}

    if len(raw) > max_size:
        raise PayloadTooLarge(
            "JSON payload exceeds maximum size",
            metadata={"max_allowed": max_size, "actual": len(raw)},
        )

    try:
        return stdlib_json.loads(raw.decode("utf-8"))
    except UnicodeDecodeError as e:
        raise InvalidJSON(f"Invalid UTF-8 in JSON payload: {e}")
    except stdlib_json.JSONDecodeError as e:
        raise InvalidJSON(f"Invalid JSON: {e}")


class Request:
    """
    Request object handed to middlewares, guards, pipes and handlers.

    Attributes:
        method: HTTP method (upper case)
        path: Request path
        headers: Lower-cased header mapping
        body: Parsed JSON body ({} when absent)
        query: Query mapping (str, or list of str for repeated keys)
        params: Path parameters extracted by the router
        state: Free-form per-request storage
    """

    __slots__ = ("method", "path", "headers", "body", "query", "params", "state")

    def __init__(
        self,
        method: str = "GET",
        path: str = "/",
        *,
        headers: Optional[Mapping[str, str]] = None,
        body: Any = None,
        query: Optional[Mapping[str, QueryValue]] = None,
        params: Optional[Mapping[str, str]] = None,
    ):
        self.method = method.upper()
        self.path = path or "/"
        self.headers: Dict[str, str] = {k.lower(): v for k, v in (headers or {}).items()}
        self.body = {} if body is None else body
        self.query: Dict[str, QueryValue] = dict(query or {})
        self.params: Dict[str, str] = dict(params or {})
        self.state: Dict[str, Any] = {}

    @classmethod
    def from_scope(
        cls,
        scope: Mapping[str, Any],
        raw_body: bytes = b"",
        *,
        max_size: int = 1_048_576,
    ) -> "Request":
        """
        Build a request from an ASGI HTTP scope and its full body.

        Raises:
            PayloadTooLarge: If a JSON body exceeds max_size
            InvalidJSON: If a JSON body is malformed
        """
        headers = {
            name.decode("latin-1").lower(): value.decode("latin-1")
            for name, value in scope.get("headers", ())
        }
        query_string = scope.get("query_string", b"").decode("latin-1")
        body = parse_json_body(raw_body, headers.get("content-type"), max_size=max_size)
        return cls(
            method=scope.get("method", "GET"),
            path=scope.get("path", "/"),
            headers=headers,
            body=body,
            query=parse_query(query_string),
        )

    def header(self, name: str, default: Optional[str] = None) -> Optional[str]:
        """Get single header (case-insensitive)."""
        return self.headers.get(name.lower(), default)

    def __repr__(self) -> str:
        return f"<Request {self.method} {self.path}>"

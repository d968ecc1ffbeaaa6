"""
Response - outbound HTTP response buffer.

Handlers, guards and filters write into the response; the transport
flushes it over ASGI once the handler chain settles. A response is
"sent" as soon as a body has been committed, which is what the
pipeline checks before completing a request on its own.
"""

from __future__ import annotations

import json as stdlib_json
import logging
from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple, Union

from .faults import ResponseAlreadySent


logger = logging.getLogger("trellis.response")


def _json_default_serializer(o):
    """Default JSON serializer for non-standard types."""
    if isinstance(o, (set, tuple)):
        return list(o)
    if hasattr(o, "isoformat"):
        return o.isoformat()
    return str(o)


def encode_json(value: Any) -> bytes:
    """Compact JSON encoding used for every JSON response."""
    return stdlib_json.dumps(
        value,
        default=_json_default_serializer,
        separators=(",", ":"),
        ensure_ascii=False,
    ).encode("utf-8")


class Response:
    """
    Mutable response handed to every stage of a request.

    Attributes:
        status_code: Status to send (200 until changed)
        headers: Lower-cased header mapping
        body: Committed body bytes, None until sent
    """

    __slots__ = ("status_code", "headers", "body", "_sent")

    def __init__(self):
        self.status_code = 200
        self.headers: Dict[str, str] = {}
        self.body: Optional[bytes] = None
        self._sent = False

    @property
    def already_sent(self) -> bool:
        """True once a body has been committed."""
        return self._sent

    def set_status(self, code: int) -> "Response":
        """Set the status code (chainable)."""
        self.status_code = int(code)
        return self

    def set_header(self, name: str, value: str) -> "Response":
        """Set a header (chainable)."""
        self.headers[name.lower()] = str(value)
        return self

    def send(
        self,
        content: Union[bytes, str] = b"",
        status_code: Optional[int] = None,
        *,
        media_type: str = "text/plain; charset=utf-8",
    ) -> None:
        """
        Commit a raw body.

        Raises:
            ResponseAlreadySent: If a body was already committed
        """
        if self._sent:
            raise ResponseAlreadySent()
        if status_code is not None:
            self.status_code = int(status_code)
        if isinstance(content, str):
            content = content.encode("utf-8")
        self.headers.setdefault("content-type", media_type)
        self.body = content
        self._sent = True

    def send_json(self, value: Any, status_code: Optional[int] = None) -> None:
        """
        Commit value as a JSON body.

        Args:
            value: JSON-serializable value
            status_code: Overrides the current status (200 unless set_status ran)
        """
        if self._sent:
            raise ResponseAlreadySent()
        self.headers["content-type"] = "application/json; charset=utf-8"
        self.send(encode_json(value), status_code)

    def json(self) -> Any:
        """Decode the committed JSON body (tests and diagnostics)."""
        if self.body is None:
            return None
        return stdlib_json.loads(self.body)

    def _prepare_headers(self) -> List[Tuple[bytes, bytes]]:
        """Prepare headers for ASGI (list of byte tuples)."""
        headers = dict(self.headers)
        headers["content-length"] = str(len(self.body or b""))
        return [
            (name.encode("latin-1"), value.encode("latin-1"))
            for name, value in headers.items()
        ]

    async def send_asgi(self, send: Callable[[dict], Awaitable[None]]) -> None:
        """Flush the committed response over ASGI."""
        await send({
            "type": "http.response.start",
            "status": self.status_code,
            "headers": self._prepare_headers(),
        })
        await send({
            "type": "http.response.body",
            "body": self.body or b"",
        })

    def __repr__(self) -> str:
        state = "sent" if self._sent else "pending"
        return f"<Response {self.status_code} {state}>"

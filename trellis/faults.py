"""
Faults - structured transport-level errors.

A fault is an exception with a stable machine-readable code, an HTTP
status and an explicit flag saying whether its message is safe to expose.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Optional


class Severity(str, Enum):
    """
    Fault severity levels.

    Determines the logging level used when a fault is reported.
    """
    INFO = "info"
    WARN = "warn"
    ERROR = "error"
    FATAL = "fatal"


class Fault(Exception):
    """
    Base fault class.

    Attributes:
        code: Stable machine-readable identifier (e.g., "INVALID_JSON")
        message: Human-readable summary
        status: HTTP status used when the fault reaches the client
        severity: Fault severity
        public: Whether the message is safe to expose to the client
        metadata: Additional context data
    """

    code: str = "FAULT"
    message: str = "Fault"
    status: int = 500
    severity: Severity = Severity.ERROR
    public: bool = False

    def __init__(
        self,
        message: Optional[str] = None,
        *,
        code: Optional[str] = None,
        status: Optional[int] = None,
        severity: Optional[Severity] = None,
        public: Optional[bool] = None,
        metadata: Optional[dict[str, Any]] = None,
    ):
        # Fallback to class attributes if not provided
        if message is not None:
            self.message = message
        if code is not None:
            self.code = code
        if status is not None:
            self.status = status
        if severity is not None:
            self.severity = severity
        if public is not None:
            self.public = public
        self.metadata = metadata or {}
        super().__init__(self.message)

    def __str__(self) -> str:
        return f"[{self.code}] {self.message}"

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}(code={self.code!r}, status={self.status}, "
            f"severity={self.severity.value}, public={self.public})"
        )

    def to_dict(self) -> dict[str, Any]:
        """Client-facing payload."""
        return {
            "code": self.code,
            "message": self.message if self.public else "Internal server error",
        }


class RequestFault(Fault):
    """Base class for request-related faults."""
    severity = Severity.WARN
    public = True
    status = 400


class BadRequest(RequestFault):
    """Malformed request (400)."""
    code = "BAD_REQUEST"
    message = "Bad request"


class InvalidJSON(RequestFault):
    """Invalid JSON payload (400)."""
    code = "INVALID_JSON"
    message = "Invalid JSON"


class PayloadTooLarge(RequestFault):
    """Request payload exceeds limits (413)."""
    code = "PAYLOAD_TOO_LARGE"
    message = "Payload too large"
    status = 413


class ResponseAlreadySent(Fault):
    """A second response was attempted on the same request."""
    code = "RESPONSE_ALREADY_SENT"
    message = "Cannot send a response twice"

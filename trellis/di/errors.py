"""
DI-specific error types with rich diagnostics.
"""

from typing import List, Optional


def token_name(token: object) -> str:
    """Readable name for a DI token (class or string key)."""
    if isinstance(token, type):
        return f"{token.__module__}.{token.__qualname__}"
    return str(token)


class DIError(Exception):
    """Base exception for DI errors."""
    pass


class NotInjectableError(DIError):
    """Requested type was never marked with @injectable."""

    def __init__(
        self,
        token: object,
        requested_by: Optional[List[object]] = None,
    ):
        self.token = token
        self.requested_by = requested_by or []

        name = token_name(token)
        msg = f"Class {name} is not marked as @injectable"

        if self.requested_by:
            chain = " -> ".join(token_name(t) for t in self.requested_by)
            msg += f"\nRequested by: {chain}"

        msg += "\n\nSuggested fixes:"
        msg += f"\n  - Decorate {getattr(token, '__name__', name)} with @injectable(...)"
        msg += "\n  - Seed an instance with container.register_instance(...)"

        super().__init__(msg)


class CyclicDependencyError(DIError):
    """Circular dependency detected before construction."""

    def __init__(self, cycle: List[object]):
        self.cycle = cycle

        names = [token_name(t) for t in cycle]
        if names:
            names.append(names[0])

        msg = "Detected dependency cycle:"
        msg += "\n  " + " -> ".join(names)

        msg += "\n\nSuggested fixes:"
        msg += "\n  - Extract the shared state into a separate service"
        msg += "\n  - Pass one side explicitly instead of injecting it"

        super().__init__(msg)

"""
Decorators for declaring injectable classes.
"""

from typing import Callable, Hashable, Optional, TypeVar

from .core import InjectableRegistry, injectables


T = TypeVar("T", bound=type)


def injectable(
    *dependencies: Hashable,
    registry: Optional[InjectableRegistry] = None,
) -> Callable[[T], T]:
    """
    Mark a class as injectable.

    Dependencies are declared explicitly, in constructor argument order;
    nothing is inferred from type hints.

    Args:
        *dependencies: Tokens passed positionally to the constructor
        registry: Target side-table (defaults to the process-wide one)

    Example:
        @injectable(UserRepo, Settings)
        class AuthService:
            def __init__(self, repo, settings):
                ...
    """
    target = registry if registry is not None else injectables

    def decorator(cls: T) -> T:
        target.register(cls, dependencies)
        return cls

    return decorator

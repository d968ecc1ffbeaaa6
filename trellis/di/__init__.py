"""
Trellis Dependency Injection System

Singleton-only container with explicit dependency declarations.

Key Features:
- @injectable(*deps) side-table, no signature introspection
- One instance per type for the process lifetime
- Fail-fast on non-injectable types before anything is constructed
- Cycle detection (Tarjan) before resolution
"""

from .core import (
    Container,
    InjectableRegistry,
    container,
    injectables,
)

from .decorators import injectable

from .errors import (
    DIError,
    NotInjectableError,
    CyclicDependencyError,
)

from .graph import DependencyGraph


__all__ = [
    "Container",
    "InjectableRegistry",
    "container",
    "injectables",
    "injectable",
    "DIError",
    "NotInjectableError",
    "CyclicDependencyError",
    "DependencyGraph",
]

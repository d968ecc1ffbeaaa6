"""
Core DI types.

Singleton-only container backed by an explicit side-table of
injectable classes and their ordered constructor dependencies.
"""

from typing import Any, Dict, Hashable, List, Optional, Tuple, Type, TypeVar
import logging

from .errors import NotInjectableError, token_name
from .graph import DependencyGraph


T = TypeVar("T")

logger = logging.getLogger("trellis.di")


class InjectableRegistry:
    """
    Side-table: injectable class -> ordered dependency tokens.

    Populated at class-definition time by @injectable. Write-once per class.
    """

    __slots__ = ("_deps",)

    def __init__(self):
        self._deps: Dict[type, Tuple[Hashable, ...]] = {}

    def register(self, cls: type, dependencies: Tuple[Hashable, ...] = ()) -> None:
        """
        Mark cls as injectable with its constructor dependencies.

        Args:
            cls: Class to register
            dependencies: Tokens resolved and passed positionally, in order
        """
        if cls in self._deps:
            logger.debug(f"{token_name(cls)} already injectable; keeping first declaration")
            return
        self._deps[cls] = tuple(dependencies)

    def is_injectable(self, cls: Hashable) -> bool:
        return cls in self._deps

    def dependencies(self, cls: Hashable) -> Tuple[Hashable, ...]:
        """Ordered dependency tokens (empty tuple if unknown)."""
        return self._deps.get(cls, ())

    def __contains__(self, cls: Hashable) -> bool:
        return cls in self._deps

    def __len__(self) -> int:
        return len(self._deps)


class Container:
    """
    DI Container - one instance per injectable type for the process lifetime.

    Instances are shared, unsynchronized, across every request that
    reaches them.
    """

    __slots__ = ("_registry", "_cache")

    def __init__(self, registry: Optional[InjectableRegistry] = None):
        self._registry = registry if registry is not None else injectables
        self._cache: Dict[Hashable, Any] = {}  # {token: instance}

    @property
    def registry(self) -> InjectableRegistry:
        return self._registry

    def register_instance(self, token: Hashable, instance: Any) -> None:
        """
        Seed the singleton cache with a pre-built object.

        Example:
            >>> container.register_instance(Settings, settings)
        """
        if token in self._cache and self._cache[token] is not instance:
            raise ValueError(f"Instance for {token_name(token)} already registered")
        self._cache[token] = instance

    def has(self, token: Hashable) -> bool:
        """Whether a singleton is already cached for token."""
        return token in self._cache

    def resolve(self, token: Type[T]) -> T:
        """
        Resolve a dependency to its singleton.

        Args:
            token: Class (or seeded key)

        Returns:
            The cached or newly constructed instance

        Raises:
            NotInjectableError: If token or any uncached transitive
                dependency is not injectable (nothing is constructed)
            CyclicDependencyError: If the dependency subgraph has a cycle
        """
        # Fast path: check cache
        cached = self._cache.get(token, _MISSING)
        if cached is not _MISSING:
            return cached

        graph = self._build_graph(token)
        graph.assert_acyclic()

        for node in graph.get_resolution_order(token):
            if node in self._cache:
                continue
            deps = [self._cache[dep] for dep in graph.dependencies_of(node)]
            instance = node(*deps)
            self._cache[node] = instance
            logger.debug(f"Constructed singleton {token_name(node)}")

        return self._cache[token]

    def _build_graph(self, root: Hashable) -> DependencyGraph:
        """Collect the uncached subgraph reachable from root."""
        graph = DependencyGraph()
        stack: List[Tuple[Hashable, List[Hashable]]] = [(root, [])]

        while stack:
            token, trail = stack.pop()
            if token in graph or token in self._cache:
                continue
            if not self._registry.is_injectable(token):
                raise NotInjectableError(token, requested_by=trail)

            deps = self._registry.dependencies(token)
            graph.add_node(token, deps)
            for dep in reversed(deps):
                stack.append((dep, trail + [token]))

        return graph

    def graph_for(self, token: Hashable) -> DependencyGraph:
        """Dependency subgraph still to be built for token (diagnostics)."""
        if token in self._cache:
            return DependencyGraph()
        return self._build_graph(token)


_MISSING = object()

# Process-wide defaults
injectables = InjectableRegistry()
container = Container(injectables)

"""
Graph analysis and cycle detection for DI system.
"""

from typing import Dict, Hashable, List, Optional, Set, Tuple

from .errors import CyclicDependencyError


class DependencyGraph:
    """
    Build and analyze dependency graph.

    Uses Tarjan's algorithm for cycle detection and a depth-first
    post-order walk for construction order.
    """

    def __init__(self):
        self.adj_list: Dict[Hashable, Tuple[Hashable, ...]] = {}  # token -> dependencies
        self._index_counter = 0
        self._stack: List[Hashable] = []
        self._lowlinks: Dict[Hashable, int] = {}
        self._index: Dict[Hashable, int] = {}
        self._on_stack: Set[Hashable] = set()
        self._sccs: List[List[Hashable]] = []  # Strongly connected components

    def __contains__(self, token: Hashable) -> bool:
        return token in self.adj_list

    def __len__(self) -> int:
        return len(self.adj_list)

    def add_node(self, token: Hashable, dependencies: Tuple[Hashable, ...] = ()) -> None:
        """
        Add a node to the graph.

        Args:
            token: Node token (usually a class)
            dependencies: Ordered dependency tokens
        """
        self.adj_list[token] = tuple(dependencies)

    def dependencies_of(self, token: Hashable) -> Tuple[Hashable, ...]:
        return self.adj_list.get(token, ())

    def detect_cycles(self) -> List[List[Hashable]]:
        """
        Detect cycles using Tarjan's algorithm.

        Returns:
            List of cycles, each in path order (first node repeats implicitly)
        """
        self._index_counter = 0
        self._stack = []
        self._lowlinks = {}
        self._index = {}
        self._on_stack = set()
        self._sccs = []

        for token in self.adj_list:
            if token not in self._index:
                self._strongconnect(token)

        cycles = []
        for scc in self._sccs:
            # Trivial SCCs are only cycles when they depend on themselves
            if len(scc) == 1 and scc[0] not in self.adj_list[scc[0]]:
                continue
            root = min(scc, key=self._index.__getitem__)
            cycles.append(self._cycle_through(root, set(scc)))

        return cycles

    def _strongconnect(self, token: Hashable) -> None:
        """Tarjan's algorithm recursive helper."""
        self._index[token] = self._index_counter
        self._lowlinks[token] = self._index_counter
        self._index_counter += 1
        self._stack.append(token)
        self._on_stack.add(token)

        for dep in self.adj_list.get(token, ()):
            if dep not in self.adj_list:
                # Leaf outside the graph (already cached)
                continue

            if dep not in self._index:
                self._strongconnect(dep)
                self._lowlinks[token] = min(self._lowlinks[token], self._lowlinks[dep])
            elif dep in self._on_stack:
                self._lowlinks[token] = min(self._lowlinks[token], self._index[dep])

        # Root node: pop the stack and emit the SCC
        if self._lowlinks[token] == self._index[token]:
            scc = []
            while True:
                w = self._stack.pop()
                self._on_stack.remove(w)
                scc.append(w)
                if w == token:
                    break
            self._sccs.append(scc)

    def _cycle_through(self, start: Hashable, members: Set[Hashable]) -> List[Hashable]:
        """Find a simple path start -> ... -> start inside one SCC."""
        path: List[Hashable] = [start]
        visited: Set[Hashable] = {start}
        iters = [iter(self.adj_list[start])]

        while iters:
            for dep in iters[-1]:
                if dep == start:
                    return path
                if dep in members and dep not in visited:
                    visited.add(dep)
                    path.append(dep)
                    iters.append(iter(self.adj_list[dep]))
                    break
            else:
                iters.pop()
                path.pop()

        return [start]

    def assert_acyclic(self) -> None:
        """
        Raises:
            CyclicDependencyError: naming the first cycle found
        """
        cycles = self.detect_cycles()
        if cycles:
            raise CyclicDependencyError(cycle=cycles[0])

    def get_resolution_order(self, root: Optional[Hashable] = None) -> List[Hashable]:
        """
        Construction order: dependencies before dependents.

        Depth-first, left to right, post-order; each node appears once.
        Must only be called on an acyclic graph.

        Args:
            root: Restrict the walk to nodes reachable from root
        """
        roots = [root] if root is not None else list(self.adj_list)
        order: List[Hashable] = []
        seen: Set[Hashable] = set()

        for start in roots:
            if start in seen or start not in self.adj_list:
                continue
            seen.add(start)
            stack = [(start, iter(self.adj_list[start]))]
            while stack:
                token, deps = stack[-1]
                for dep in deps:
                    if dep not in seen and dep in self.adj_list:
                        seen.add(dep)
                        stack.append((dep, iter(self.adj_list[dep])))
                        break
                else:
                    stack.pop()
                    order.append(token)

        return order

    def get_tree_view(self, root: Hashable) -> str:
        """
        Get tree view of dependencies below root.

        Returns:
            Tree view as string
        """
        return self._tree_view_recursive(root, "", set())

    def _tree_view_recursive(
        self,
        token: Hashable,
        prefix: str,
        visited: Set[Hashable],
    ) -> str:
        name = getattr(token, "__name__", str(token))
        if token in visited:
            return f"{prefix}├── {name} (circular)"
        if token not in self.adj_list:
            return f"{prefix}├── {name} (cached)"

        visited.add(token)
        lines = [f"{prefix}├── {name}"]

        deps = self.adj_list[token]
        for i, dep in enumerate(deps):
            is_last = i == len(deps) - 1
            new_prefix = prefix + ("    " if is_last else "│   ")
            lines.append(self._tree_view_recursive(dep, new_prefix, visited.copy()))

        return "\n".join(lines)

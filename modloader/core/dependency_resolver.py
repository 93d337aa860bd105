"""
Dependency Resolver
Inspect declared unit dependencies: what is still pending, cycles, load order.
"""

from typing import Dict, List, Optional, Set

from modloader.core.unit_registry import UnitRegistry
from modloader.exceptions import CyclicDependencyError


class DependencyResolver:
    """
    Read-only view over the dependency graph of a registry.
    Never loads anything itself; the load coordinator recurses through
    the names it returns.
    """

    def __init__(self, registry: UnitRegistry):
        self.registry = registry

    def pending_dependencies(self, name: str) -> List[str]:
        """Direct dependencies of ``name`` that are not loaded yet, in declaration order."""
        entry = self.registry.get(name)
        return [
            dep for dep in entry.descriptor.dependencies
            if not self.registry.is_loaded(dep)
        ]

    def _dependencies_of(self, name: str) -> tuple:
        if not self.registry.contains(name):
            return ()
        return self.registry.get(name).descriptor.dependencies

    def check_acyclic(self, name: str) -> None:
        """
        Walk every dependency reachable from ``name``.

        Raises:
            CyclicDependencyError: naming the units forming the first cycle found
        """
        done: Set[str] = set()
        path: List[str] = []
        on_path: Set[str] = set()

        def _visit(unit: str):
            if unit in done:
                return
            if unit in on_path:
                start = path.index(unit)
                raise CyclicDependencyError(path[start:] + [unit])

            path.append(unit)
            on_path.add(unit)
            for dep in self._dependencies_of(unit):
                _visit(dep)
            on_path.discard(unit)
            path.pop()
            done.add(unit)

        _visit(name)

    def dependency_chain(self, name: str) -> List[str]:
        """Full dependency chain of a unit, dependencies first and ``name`` last."""
        self.check_acyclic(name)
        visited: Set[str] = set()
        chain: List[str] = []

        def _collect_deps(unit: str):
            if unit in visited:
                return
            visited.add(unit)

            if not self.registry.contains(unit):
                return

            for dep in self._dependencies_of(unit):
                _collect_deps(dep)

            chain.append(unit)

        _collect_deps(name)
        return chain

    def load_plan(self, names: Optional[List[str]] = None) -> List[List[str]]:
        """
        Topological levels for a set of units.

        Every unit of a level only depends on units of earlier levels (or on
        units outside the set). Within a level, registration order is kept.

        Args:
            names: Units to plan for, all registered units if omitted

        Returns:
            List of levels, each a list of unit names
        """
        if names is None:
            names = self.registry.names()
        requested = set(names)
        wanted = [n for n in self.registry.names() if n in requested]
        wanted_set = set(wanted)
        graph: Dict[str, Set[str]] = {
            n: {dep for dep in self._dependencies_of(n) if dep in wanted_set}
            for n in wanted
        }

        levels: List[List[str]] = []
        processed: Set[str] = set()

        while len(processed) < len(graph):
            current_level = [
                n for n in wanted
                if n not in processed and graph[n] <= processed
            ]
            if not current_level:
                remaining = [n for n in wanted if n not in processed]
                for n in remaining:
                    self.check_acyclic(n)
                raise CyclicDependencyError(remaining)

            levels.append(current_level)
            processed.update(current_level)

        return levels

    def is_ready(self, name: str) -> bool:
        """Check that every dependency of ``name`` is loaded."""
        return not self.pending_dependencies(name)


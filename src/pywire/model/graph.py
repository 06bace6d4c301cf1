"""
Dependency graph and topological linearization.
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable, Iterator

from ..errors import CycleDetectedError
from .keys import TypeIdentity


class DependencyGraph:
    """
    Maps each provided type to the ordered set of types it is built from.

    Edge sets are dict-backed so that iteration follows insertion order and
    linearization is deterministic.
    """

    def __init__(self) -> None:
        super().__init__()
        self._edges: dict[TypeIdentity, dict[TypeIdentity, None]] = {}

    def add(self, output: TypeIdentity, inputs: Iterable[TypeIdentity]) -> None:
        """Set the inputs of `output`, replacing any previous edge set."""
        self._edges[output] = dict.fromkeys(inputs)

    def dependencies_of(self, key: TypeIdentity) -> tuple[TypeIdentity, ...]:
        """Get the inputs of `key`; unknown types are leaves."""
        return tuple(self._edges.get(key, ()))

    def dependents_of(self, key: TypeIdentity) -> list[TypeIdentity]:
        """Get the types whose inputs include `key`."""
        return [output for output, inputs in self._edges.items() if key in inputs]

    def __contains__(self, key: object) -> bool:
        return key in self._edges

    def __iter__(self) -> Iterator[TypeIdentity]:
        return iter(self._edges)

    def __len__(self) -> int:
        return len(self._edges)

    def __str__(self) -> str:
        lines = [
            f"{output} <- {', '.join(str(dep) for dep in inputs) or '()'}"
            for output, inputs in self._edges.items()
        ]
        return "\n".join(lines)


def linearize(target: TypeIdentity, graph: DependencyGraph) -> list[TypeIdentity]:
    """
    Order the types reachable from `target` so that inputs precede consumers.

    Depth-first search with white/gray/black marking. Each type is appended
    once, when all of its inputs are done, so `target` always comes last.

    Raises:
        CycleDetectedError: If a cycle is reachable from `target`.
    """
    WHITE = 0  # Not visited
    GRAY = 1  # Currently being processed
    BLACK = 2  # Completely processed

    colors: dict[TypeIdentity, int] = defaultdict(lambda: WHITE)
    order: list[TypeIdentity] = []
    path: list[TypeIdentity] = []

    def visit(key: TypeIdentity) -> None:
        if colors[key] == GRAY:
            # Found a back edge
            cycle_start = path.index(key)
            raise CycleDetectedError(path[cycle_start:] + [key])

        if colors[key] == BLACK:
            return

        colors[key] = GRAY
        path.append(key)

        for dep_key in graph.dependencies_of(key):
            visit(dep_key)

        path.pop()
        colors[key] = BLACK
        order.append(key)

    visit(target)
    return order

"""Dependency graph between candidate values and its topological scheduler.

A value depends on another candidate when it contains a token naming it:
``$NAME`` or ``${NAME}``. The braced form ends the name explicitly, so
``${BASE}api`` names ``BASE`` while ``$BASEapi`` names ``BASEapi``. Tokens that
name anything other than a candidate create no edge and are left as literal
text by the expander.
"""

import heapq
import logging
import re
from collections.abc import Mapping
from dataclasses import dataclass, field

from .errors import CycleError
from .types import DependencyEdge

logger = logging.getLogger(__name__)

TOKEN_PATTERN = re.compile(r"\$(?:\{([A-Za-z_][A-Za-z0-9_]*)\}|([A-Za-z_][A-Za-z0-9_]*))")


def token_name(match: re.Match[str]) -> str:
    """Return the identifier a dependency token match names."""
    return match.group(1) or match.group(2)


@dataclass
class DependencyGraph:
    """Directed graph of "from_key's value needs to_key's final value".

    Attributes:
        keys: Candidate keys in candidate order (the scheduler's tie-break)
        values: Key to value text the edges were extracted from
        edges: Distinct edges, self edges included
        names: Token identifier to the candidate key it refers to
    """

    keys: list[str]
    values: dict[str, str] = field(repr=False)
    edges: list[DependencyEdge]
    names: dict[str, str]

    def lookup(self, name: str) -> str | None:
        """Return the candidate key a token identifier refers to, if any."""
        return self.names.get(name)

    def dependencies(self, key: str) -> list[str]:
        return [edge.to_key for edge in self.edges if edge.from_key == key]

    def dependents(self, key: str) -> list[str]:
        return [edge.from_key for edge in self.edges if edge.to_key == key]

    def topological_order(self) -> list[str]:
        """Order keys so that every dependency precedes its dependents.

        Kahn's algorithm. When several keys are ready at once they are taken in
        candidate order, so the same graph always yields the same order.

        Raises:
            CycleError: If some keys never become ready. `keys` names the keys
                on a cycle, `blocked` those that only depend on one.
        """
        position = {key: index for index, key in enumerate(self.keys)}
        in_degree = dict.fromkeys(self.keys, 0)
        dependents: dict[str, list[str]] = {key: [] for key in self.keys}
        for edge in self.edges:
            dependents[edge.to_key].append(edge.from_key)
            in_degree[edge.from_key] += 1

        ready = [position[key] for key in self.keys if in_degree[key] == 0]
        heapq.heapify(ready)

        order: list[str] = []
        while ready:
            current = self.keys[heapq.heappop(ready)]
            order.append(current)
            for dependent in dependents[current]:
                in_degree[dependent] -= 1
                if in_degree[dependent] == 0:
                    heapq.heappush(ready, position[dependent])

        if len(order) != len(self.keys):
            remaining = [key for key in self.keys if in_degree[key] > 0]
            cyclic = self._keys_on_cycles(remaining)
            blocked = [key for key in remaining if key not in cyclic]
            raise CycleError(cyclic, blocked)

        logger.debug(f"Topological sort order: {order}")
        return order

    def _keys_on_cycles(self, candidates: list[str]) -> list[str]:
        # A key is on a cycle when it can reach itself through remaining keys.
        remaining = set(candidates)
        adjacency: dict[str, list[str]] = {key: [] for key in candidates}
        for edge in self.edges:
            if edge.from_key in remaining and edge.to_key in remaining:
                adjacency[edge.from_key].append(edge.to_key)

        on_cycle = []
        for start in candidates:
            stack = list(adjacency[start])
            seen: set[str] = set()
            while stack:
                node = stack.pop()
                if node == start:
                    on_cycle.append(start)
                    break
                if node in seen:
                    continue
                seen.add(node)
                stack.extend(adjacency[node])
        return on_cycle


def build_dependency_graph(
    values: Mapping[str, str], aliases: Mapping[str, str] | None = None
) -> DependencyGraph:
    """Extract the dependency edges between candidate values.

    Args:
        values: Candidate key to value text, in candidate order
        aliases: Extra identifiers that also name a candidate (for example the
            full, prefixed variable name). A key always wins over an alias.

    Returns:
        The dependency graph; self references are kept as self edges
    """
    keys = list(values)
    names = {alias: key for alias, key in (aliases or {}).items() if key in values}
    names.update({key: key for key in keys})

    edges: list[DependencyEdge] = []
    for key in keys:
        seen: set[str] = set()
        for match in TOKEN_PATTERN.finditer(values[key]):
            target = names.get(token_name(match))
            if target is None or target in seen:
                continue
            seen.add(target)
            edges.append(DependencyEdge(key, target))
            if target == key:
                logger.debug(f"Variable {key} references itself")

    logger.debug(f"Built dependency graph with {len(keys)} nodes and {len(edges)} edges")
    return DependencyGraph(keys=keys, values=dict(values), edges=edges, names=names)

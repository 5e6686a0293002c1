"""Substitution of dependency tokens in topological order."""

import logging
import re
from collections.abc import Iterable

from .errors import DependencyError
from .graph import TOKEN_PATTERN, DependencyGraph, token_name

logger = logging.getLogger(__name__)


def expand(
    graph: DependencyGraph, order: list[str], failed: Iterable[str] = ()
) -> tuple[dict[str, str], dict[str, DependencyError]]:
    """Expand every value once, using already-final upstream values.

    Each key is expanded exactly once, after all of its dependencies. The
    substituted text is never scanned again, so a value that happens to look
    like a token is inserted literally. Tokens naming non-candidates stay as
    they are.

    Args:
        graph: The dependency graph
        order: A topological order of `graph.keys`
        failed: Keys that already failed upstream and have no final value

    Returns:
        A tuple of (key to final value in candidate order, key to the
        DependencyError for keys whose dependencies failed)
    """
    unavailable = set(failed)
    final: dict[str, str] = {}
    errors: dict[str, DependencyError] = {}

    for key in order:
        if key in unavailable:
            continue

        broken = [dep for dep in graph.dependencies(key) if dep in unavailable]
        if broken:
            errors[key] = DependencyError(key, broken)
            unavailable.add(key)
            logger.warning(f"Skipping {key}: depends on failed entries {broken}")
            continue

        final[key] = _substitute(graph, graph.values[key], final, key)

    return {key: final[key] for key in graph.keys if key in final}, errors


def _substitute(graph: DependencyGraph, value: str, final: dict[str, str], key: str) -> str:
    unresolved: list[str] = []

    def replace(match: re.Match[str]) -> str:
        name = token_name(match)
        target = graph.lookup(name)
        if target is None or target not in final:
            unresolved.append(name)
            return match.group(0)
        return final[target]

    expanded = TOKEN_PATTERN.sub(replace, value)
    if unresolved:
        logger.debug(f"Variable {key} keeps unresolved references: {unresolved}")
    return expanded

"""
End-to-end secret resolution pipeline.

This module provides the SecretPipeline class that:
1. Captures an environment snapshot and selects prefixed candidates
2. Parses secret references and resolves them concurrently through a backend
3. Expands references between candidates in dependency order
4. Returns the unprefixed, fully resolved mapping with per-entry failures
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import TYPE_CHECKING

from .errors import ParseError, ResolutionError, SecretEnvError
from .expander import expand
from .graph import build_dependency_graph
from .metrics import ResolutionMetrics, Timer
from .parser import contains_references, parse_references, substitute_references
from .resolver import DEFAULT_MAX_WORKERS, SecretResolver
from .scanner import DEFAULT_PREFIX, scan_candidates, snapshot_environment
from .types import CandidateEntry, PipelineResult, SecretReference

if TYPE_CHECKING:
    from secretenv.backends.base import SecretBackend
    from secretenv.config.models import SecretEnvConfigModel

logger = logging.getLogger(__name__)


class SecretPipeline:
    """
    Resolve prefixed environment variables into a flat mapping.

    The pipeline is a pure function of the environment snapshot it is given:
    the input is read once, and nothing is written back to the process
    environment. Resolved values are never logged.

    ## Failure Handling

    - Parse and resolution failures are collected per entry; other entries
      keep resolving. Failed entries are absent from `PipelineResult.resolved`
      and listed in `PipelineResult.failures`.
    - An entry whose value references a failed entry fails with a
      `DependencyError`, so no partially resolved value is ever returned.
    - A dependency cycle raises `CycleError` for the whole run.
    - With `fail_fast=True` the first parse or resolution failure is raised.

    ## Usage

    ```python
    from secretenv.backends import OnePasswordBackend
    from secretenv.core import SecretPipeline

    pipeline = SecretPipeline(OnePasswordBackend(), prefix="SECRETENV_SECRET_")
    result = pipeline.run(os.environ)
    child_env = {**os.environ, **result.resolved}
    ```

    Without a backend, secret references are left untouched and only
    references between candidates are expanded.
    """

    def __init__(
        self,
        backend: SecretBackend | None = None,
        prefix: str = DEFAULT_PREFIX,
        max_workers: int = DEFAULT_MAX_WORKERS,
        allow_bare: bool = True,
        fail_fast: bool = False,
    ):
        self.backend = backend
        self.prefix = prefix
        self.max_workers = max_workers
        self.allow_bare = allow_bare
        self.fail_fast = fail_fast

    @classmethod
    def from_config(cls, config: SecretEnvConfigModel) -> SecretPipeline:
        """Create a pipeline, and its backend, from a configuration model."""
        from secretenv.backends.registry import create_backend

        resolution = config.resolution
        return cls(
            backend=create_backend(config.secret_manager),
            prefix=resolution.prefix,
            max_workers=resolution.max_workers,
            allow_bare=resolution.bare_references,
            fail_fast=resolution.fail_fast,
        )

    def run(self, environ: Mapping[str, str]) -> PipelineResult:
        """Resolve all candidates found in `environ`.

        Raises:
            CycleError: If candidate values reference each other in a cycle
            ParseError: On the first malformed value, only with `fail_fast`
            ResolutionError: On the first failed lookup, only with `fail_fast`
        """
        metrics = ResolutionMetrics()
        failures: dict[str, list[SecretEnvError]] = {}

        with Timer("Total secret resolution") as total:
            with Timer("Phase 1: Collecting candidates"):
                snapshot = snapshot_environment(environ)
                candidates = scan_candidates(snapshot, self.prefix)
                metrics.total_entries = len(candidates)

            with Timer("Phase 2: Resolving secret references"):
                values = self._resolve_secrets(candidates, failures, metrics)

            with Timer("Phase 3: Variable expansion"):
                graph = build_dependency_graph(
                    {c.key: values.get(c.key, c.raw_value) for c in candidates},
                    aliases={c.name: c.key for c in candidates},
                )
                order = graph.topological_order()
                resolved, dependency_errors = expand(graph, order, failed=failures)

        for key, error in dependency_errors.items():
            failures.setdefault(key, []).append(error)
        metrics.total_duration = total.elapsed

        ordered_failures = {c.key: failures[c.key] for c in candidates if c.key in failures}
        logger.debug(
            f"Resolved {len(resolved)} of {len(candidates)} variable(s), "
            f"{len(ordered_failures)} failed"
        )
        return PipelineResult(
            resolved=resolved, failures=ordered_failures, order=order, metrics=metrics
        )

    def _resolve_secrets(
        self,
        candidates: list[CandidateEntry],
        failures: dict[str, list[SecretEnvError]],
        metrics: ResolutionMetrics,
    ) -> dict[str, str]:
        if self.backend is None:
            logger.debug("No secret manager configured, leaving secret references as-is")
            return {c.key: c.raw_value for c in candidates}

        parsed: dict[str, list[SecretReference]] = {}
        for candidate in candidates:
            if not contains_references(
                candidate.raw_value, self.backend.bare_schemes, self.allow_bare
            ):
                parsed[candidate.key] = []
                continue
            try:
                parsed[candidate.key] = parse_references(
                    candidate.raw_value, self.backend.bare_schemes, self.allow_bare
                )
            except ParseError as e:
                error = e.for_key(candidate.key)
                if self.fail_fast:
                    raise error from e
                logger.warning(f"Invalid secret reference syntax in {candidate.name}: {error.reason}")
                failures[candidate.key] = [error]

        texts = [reference.text for references in parsed.values() for reference in references]
        resolver = SecretResolver(self.backend, max_workers=self.max_workers, metrics=metrics)
        results = resolver.resolve_all(texts, fail_fast=self.fail_fast)

        values: dict[str, str] = {}
        for candidate in candidates:
            references = parsed.get(candidate.key)
            if references is None:
                continue

            errors: list[ResolutionError] = []
            replacements: dict[str, str] = {}
            for reference in references:
                outcome = results[reference.text].outcome
                if outcome.error is not None:
                    if outcome.error not in errors:
                        errors.append(outcome.error)
                elif outcome.value is not None:
                    replacements[reference.text] = outcome.value

            if errors:
                failures[candidate.key] = list(errors)
                continue
            values[candidate.key] = substitute_references(
                candidate.raw_value, references, replacements
            )

        return values


def resolve_environment(
    environ: Mapping[str, str], config: SecretEnvConfigModel, fail_fast: bool | None = None
) -> PipelineResult:
    """Build a pipeline from configuration, run it once, and release the backend.

    Args:
        environ: Environment to resolve
        config: Loaded configuration
        fail_fast: Overrides the configured fail-fast setting when not None
    """
    pipeline = SecretPipeline.from_config(config)
    if fail_fast is not None:
        pipeline.fail_fast = fail_fast
    try:
        return pipeline.run(environ)
    finally:
        if pipeline.backend is not None:
            pipeline.backend.cleanup()

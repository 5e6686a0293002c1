"""secretenv core - the secret resolution pipeline.

Stages, in data flow order:

- `scan_candidates`: select prefixed variables from an environment snapshot
- `parse_references`: locate ``{{...}}`` and legacy bare secret references
- `SecretResolver`: resolve reference texts concurrently, once per text
- `build_dependency_graph` / `DependencyGraph.topological_order`: order values
  that reference each other, detecting cycles
- `expand`: substitute upstream values in topological order

`SecretPipeline` glues the stages together.
"""

from .errors import (
    ConfigError,
    CycleError,
    DependencyError,
    ParseError,
    ResolutionError,
    SecretEnvError,
)
from .expander import expand
from .graph import DependencyGraph, build_dependency_graph
from .metrics import ResolutionMetrics
from .parser import parse_references
from .pipeline import SecretPipeline, resolve_environment
from .resolver import SecretResolver
from .scanner import DEFAULT_PREFIX, scan_candidates, snapshot_environment
from .types import (
    CandidateEntry,
    DependencyEdge,
    FailureKind,
    PipelineResult,
    ReferenceSyntax,
    ResolutionOutcome,
    ResolutionResult,
    ResolvedEntry,
    SecretReference,
)

__all__ = [
    "CandidateEntry",
    "ConfigError",
    "CycleError",
    "DEFAULT_PREFIX",
    "DependencyEdge",
    "DependencyError",
    "DependencyGraph",
    "FailureKind",
    "ParseError",
    "PipelineResult",
    "ReferenceSyntax",
    "ResolutionError",
    "ResolutionMetrics",
    "ResolutionOutcome",
    "ResolutionResult",
    "ResolvedEntry",
    "SecretEnvError",
    "SecretPipeline",
    "SecretReference",
    "SecretResolver",
    "build_dependency_graph",
    "expand",
    "parse_references",
    "resolve_environment",
    "scan_candidates",
    "snapshot_environment",
]

"""Value types shared by the pipeline stages.

These are plain frozen dataclasses: they are created once per invocation and
never mutated afterwards. Resolved secret values are excluded from `repr` so an
accidental log line or traceback never prints them.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .errors import ResolutionError, SecretEnvError
    from .metrics import ResolutionMetrics


class ReferenceSyntax(Enum):
    """Surface syntax a secret reference was written in."""

    BARE = "bare"
    DELIMITED = "delimited"


class FailureKind(Enum):
    """Categories of backend resolution failures."""

    NOT_FOUND = "not found"
    BACKEND_UNAVAILABLE = "backend unavailable"
    TIMEOUT = "timeout"
    DENIED = "denied"


@dataclass(frozen=True)
class CandidateEntry:
    """An ambient variable selected for resolution.

    Attributes:
        name: Full ambient variable name, prefix included
        key: Output key, prefix removed
        raw_value: Value as found in the environment snapshot
    """

    name: str
    key: str
    raw_value: str = field(repr=False)


@dataclass(frozen=True)
class SecretReference:
    """A secret reference located inside a value.

    `start` and `end` delimit the whole surface form in the owning value,
    delimiters included, so `value[start:end]` is what gets replaced.
    `text` is what the backend receives.
    """

    start: int
    end: int
    syntax: ReferenceSyntax
    text: str


@dataclass(frozen=True)
class ResolutionOutcome:
    """Either a resolved value or a typed failure."""

    value: str | None = field(default=None, repr=False)
    error: ResolutionError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: str) -> ResolutionOutcome:
        return cls(value=value)

    @classmethod
    def failure(cls, error: ResolutionError) -> ResolutionOutcome:
        return cls(error=error)


@dataclass(frozen=True)
class ResolutionResult:
    """Outcome of resolving one distinct reference text."""

    reference_text: str
    outcome: ResolutionOutcome


@dataclass(frozen=True)
class DependencyEdge:
    """`from_key`'s value contains a token naming `to_key`."""

    from_key: str
    to_key: str


@dataclass(frozen=True)
class ResolvedEntry:
    """Final, fully expanded value for an output key."""

    key: str
    value: str = field(repr=False)


@dataclass
class PipelineResult:
    """Everything a pipeline run produced.

    Attributes:
        resolved: Output key to final value, in candidate order
        failures: Output key to the errors that kept it out of `resolved`
        order: Topological order the expander used
        metrics: Backend call metrics for this run
    """

    resolved: dict[str, str] = field(default_factory=dict, repr=False)
    failures: dict[str, list[SecretEnvError]] = field(default_factory=dict)
    order: list[str] = field(default_factory=list)
    metrics: ResolutionMetrics | None = None

    @property
    def ok(self) -> bool:
        return not self.failures

    def entries(self) -> list[ResolvedEntry]:
        return [ResolvedEntry(key, value) for key, value in self.resolved.items()]

"""Exception hierarchy for the secret resolution pipeline.

Every failure the pipeline reports is a subclass of `SecretEnvError` so callers
can catch the whole family at the command line boundary. Per-entry failures
(`ParseError`, `ResolutionError`, `DependencyError`) are collected and reported
individually; `CycleError` is fatal for an expansion pass.
"""

from __future__ import annotations

from collections.abc import Iterable

from .types import FailureKind


class SecretEnvError(Exception):
    """Base class for all secretenv errors."""


class ConfigError(SecretEnvError):
    """Raised when the configuration file cannot be loaded or is invalid."""


class ParseError(SecretEnvError):
    """Raised when a value contains malformed or ambiguous reference syntax.

    Attributes:
        reason: Human-readable description of the problem
        position: Offset in the value where the problem was detected
        key: Candidate key owning the value, when known
    """

    def __init__(self, reason: str, position: int | None = None, key: str | None = None):
        self.reason = reason
        self.position = position
        self.key = key
        super().__init__(self._format())

    def _format(self) -> str:
        message = self.reason
        if self.position is not None:
            message = f"{message} (at offset {self.position})"
        if self.key is not None:
            message = f"{self.key}: {message}"
        return message

    def for_key(self, key: str) -> ParseError:
        """Return a copy of this error attributed to a candidate key."""
        return ParseError(self.reason, self.position, key)


class ResolutionError(SecretEnvError):
    """Raised when a backend cannot resolve a reference.

    Attributes:
        kind: The failure category
        reference: The reference text that failed
        detail: Backend supplied description, never containing a secret value
    """

    def __init__(self, kind: FailureKind, reference: str, detail: str | None = None):
        self.kind = kind
        self.reference = reference
        self.detail = detail
        message = f"{kind.value}: {reference}"
        if detail:
            message = f"{message} ({detail})"
        super().__init__(message)


class DependencyError(SecretEnvError):
    """Raised for an entry whose value references entries that failed."""

    def __init__(self, key: str, upstream: Iterable[str]):
        self.key = key
        self.upstream = list(upstream)
        super().__init__(f"{key}: depends on failed entries: {', '.join(self.upstream)}")


class CycleError(SecretEnvError):
    """Raised when the dependency graph contains at least one cycle.

    Attributes:
        keys: Keys that sit on a cycle, in candidate order
        blocked: Keys that are not on a cycle but depend on one
    """

    def __init__(self, keys: Iterable[str], blocked: Iterable[str] = ()):
        self.keys = list(keys)
        self.blocked = list(blocked)
        message = f"Circular dependency detected involving variables: {', '.join(self.keys)}"
        if self.blocked:
            message = f"{message} (also blocked: {', '.join(self.blocked)})"
        super().__init__(message)

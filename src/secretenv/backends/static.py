"""
Static backend.

Resolves references from a fixed mapping, for offline use and tests.
"""

from collections.abc import Mapping, Sequence
from typing import Any

from secretenv.core.errors import ResolutionError
from secretenv.core.types import FailureKind

from .base import SecretBackend


class StaticBackend(SecretBackend):
    """Backend answering from an in-memory reference to value mapping.

    Example:
        >>> backend = StaticBackend({"op://vault/item/field": "42"})
        >>> backend.resolve("op://vault/item/field")
        '42'
    """

    def __init__(
        self,
        values: Mapping[str, str] | None = None,
        bare_schemes: Sequence[str] = ("op://",),
        config: dict[str, Any] | None = None,
    ):
        super().__init__(config)
        self.values = dict(values if values is not None else self.config.get("values", {}))
        self._bare_schemes = tuple(bare_schemes)

    @property
    def name(self) -> str:
        return "static"

    @property
    def bare_schemes(self) -> tuple[str, ...]:
        return self._bare_schemes

    def can_resolve(self, reference: str) -> bool:
        return reference in self.values

    def resolve(self, reference: str) -> str:
        try:
            return self.values[reference]
        except KeyError as e:
            raise ResolutionError(FailureKind.NOT_FOUND, reference) from e

"""
Base class for secret backends.

A backend is the single capability the resolver depends on: turn one
reference text into a value, or raise a typed `ResolutionError`.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any

from secretenv.core.errors import ResolutionError
from secretenv.core.types import FailureKind

logger = logging.getLogger(__name__)


class SecretBackend(ABC):
    """
    Abstract base class for secret backends.

    ## Implementation Requirements

    - `name`: Return a unique identifier for the backend
    - `bare_schemes`: Scheme prefixes this backend accepts without `{{...}}`
    - `resolve`: Resolve one reference text to its value

    ## Optional Methods

    - `can_resolve`: Check whether a reference belongs to this backend
      (default: it starts with one of `bare_schemes`)
    - `validate_config`: Validate the backend configuration (default: True)
    - `cleanup`: Release clients or connections (default: no-op)

    ## Error Handling

    `resolve` must raise `ResolutionError` with the matching `FailureKind`:

    ```python
    def resolve(self, reference: str) -> str:
        try:
            return self._client.read(reference)
        except KeyError as e:
            raise ResolutionError(FailureKind.NOT_FOUND, reference) from e
        except ConnectionError as e:
            raise ResolutionError(FailureKind.BACKEND_UNAVAILABLE, reference, str(e)) from e
    ```

    The resolver turns any other exception into `BACKEND_UNAVAILABLE`.

    ## Thread Safety

    `resolve` is called concurrently from the resolver's worker pool for
    distinct references. Implement locking if the backend keeps mutable state
    or uses a client that is not thread safe.

    ## Context Manager Support

    ```python
    with OnePasswordBackend() as backend:
        value = backend.resolve("op://vault/item/field")
    ```
    """

    def __init__(self, config: dict[str, Any] | None = None):
        self.config = config or {}

    @property
    @abstractmethod
    def name(self) -> str:
        """Return the name of this backend."""

    @property
    def bare_schemes(self) -> tuple[str, ...]:
        """Scheme prefixes recognized as bare references."""
        return ()

    def can_resolve(self, reference: str) -> bool:
        """Check if this backend can handle the given reference."""
        return any(reference.startswith(scheme) for scheme in self.bare_schemes)

    @abstractmethod
    def resolve(self, reference: str) -> str:
        """Resolve the reference to its value."""

    def validate_config(self) -> bool:
        """Validate the backend configuration. Override if needed."""
        return True

    def cleanup(self) -> None:
        """
        Clean up any resources used by this backend.
        This method should be idempotent - safe to call multiple times.
        """

    def _unsupported(self, reference: str) -> ResolutionError:
        return ResolutionError(
            FailureKind.NOT_FOUND, reference, f"not a {self.name} reference"
        )

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.cleanup()

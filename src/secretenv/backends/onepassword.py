"""
1Password backend.

This module provides the OnePasswordBackend class for resolving 1Password
references like op://vault/item/field by shelling out to the 1Password CLI
(`op read`).
"""

import logging
import os
import shutil
import subprocess
from typing import Any

from secretenv.core.errors import ResolutionError
from secretenv.core.types import FailureKind

from .base import SecretBackend

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30.0

# Matched case-insensitively against the CLI's stderr
_DENIED_MARKERS = (
    "not signed in",
    "sign in",
    "unauthorized",
    "authorization",
    "authentication",
    "forbidden",
    "permission",
    "access denied",
)
_NOT_FOUND_MARKERS = (
    "isn't an item",
    "isn't a vault",
    "isn't a field",
    "not found",
    "no item",
    "could not find",
    "does not exist",
)


class OnePasswordBackend(SecretBackend):
    """Backend for 1Password references like op://vault/item/field.

    Configuration keys:
        binary: CLI executable, default "op"
        timeout: Seconds before a lookup fails with TIMEOUT, default 30
        token_env: Variable holding a service account token; when set it is
            passed to the CLI as OP_SERVICE_ACCOUNT_TOKEN
    """

    def __init__(self, config: dict[str, Any] | None = None):
        super().__init__(config)
        self.binary = self.config.get("binary") or "op"
        self.timeout = float(self.config.get("timeout") or DEFAULT_TIMEOUT)
        self.token_env = self.config.get("token_env")

    @property
    def name(self) -> str:
        return "onepassword"

    @property
    def bare_schemes(self) -> tuple[str, ...]:
        return ("op://",)

    def validate_config(self) -> bool:
        if shutil.which(self.binary) is None:
            logger.error(f"1Password CLI ({self.binary}) is not installed or not in PATH")
            return False

        if self.token_env and not os.environ.get(self.token_env):
            logger.error(f"1Password token environment variable not found: {self.token_env}")
            return False

        return True

    def resolve(self, reference: str) -> str:
        if not self.can_resolve(reference):
            raise self._unsupported(reference)

        logger.debug(f"Resolving 1Password reference: {reference}")
        try:
            completed = subprocess.run(
                [self.binary, "read", reference],
                capture_output=True,
                text=True,
                timeout=self.timeout,
                env=self._command_env(),
                check=False,
            )
        except FileNotFoundError as e:
            raise ResolutionError(
                FailureKind.BACKEND_UNAVAILABLE,
                reference,
                f"1Password CLI ({self.binary}) is not installed or not in PATH",
            ) from e
        except subprocess.TimeoutExpired as e:
            raise ResolutionError(
                FailureKind.TIMEOUT, reference, f"op read did not finish within {self.timeout}s"
            ) from e
        except OSError as e:
            raise ResolutionError(
                FailureKind.BACKEND_UNAVAILABLE, reference, f"Failed to execute 1Password CLI: {e}"
            ) from e

        if completed.returncode != 0:
            detail = _first_line(completed.stderr) or f"exit status {completed.returncode}"
            raise ResolutionError(classify_cli_error(completed.stderr), reference, detail)

        return completed.stdout.rstrip("\r\n")

    def _command_env(self) -> dict[str, str] | None:
        if not self.token_env:
            return None
        token = os.environ.get(self.token_env)
        if not token:
            return None
        return {**os.environ, "OP_SERVICE_ACCOUNT_TOKEN": token}


def classify_cli_error(stderr: str) -> FailureKind:
    """Map `op` error output to a failure kind."""
    message = stderr.lower()
    if any(marker in message for marker in _DENIED_MARKERS):
        return FailureKind.DENIED
    if any(marker in message for marker in _NOT_FOUND_MARKERS):
        return FailureKind.NOT_FOUND
    return FailureKind.BACKEND_UNAVAILABLE


def _first_line(text: str) -> str:
    for line in text.splitlines():
        if line.strip():
            return line.strip()
    return ""

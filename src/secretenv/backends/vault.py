"""
Vault backend.

This module provides the VaultBackend class for resolving HashiCorp Vault
references like vault://secret/path#key from a KV version 2 engine.
"""

import logging
import os
import re
import threading
from typing import Any

from secretenv.core.errors import ResolutionError
from secretenv.core.types import FailureKind

from .base import SecretBackend

logger = logging.getLogger(__name__)


class VaultBackend(SecretBackend):
    """Backend for HashiCorp Vault references like vault://secret/path#key.

    The key defaults to "value" when the reference has no fragment. The token
    is read from the variable named by `token_env` (default VAULT_TOKEN).
    """

    VAULT_URL_PATTERN = re.compile(r"^vault://([^#]+)(?:#(.+))?$")

    def __init__(self, config: dict[str, Any] | None = None):
        super().__init__(config)
        self.address = self.config.get("address")
        self.token_env = self.config.get("token_env") or "VAULT_TOKEN"
        self.mount_point = self.config.get("mount_point") or "secret"
        self.timeout = float(self.config.get("timeout") or 30)
        self._vault_client = None
        self._client_lock = threading.Lock()

    @property
    def name(self) -> str:
        return "vault"

    @property
    def bare_schemes(self) -> tuple[str, ...]:
        return ("vault://",)

    def validate_config(self) -> bool:
        if not self.address:
            logger.error("Vault address is required")
            return False

        if not os.environ.get(self.token_env):
            logger.error(f"Vault token environment variable not found: {self.token_env}")
            return False

        return True

    def resolve(self, reference: str) -> str:
        match = self.VAULT_URL_PATTERN.match(reference)
        if not match:
            raise self._unsupported(reference)

        secret_path = match.group(1)
        key = match.group(2) or "value"

        client = self._get_client(reference)

        import requests
        from hvac import exceptions as vault_errors

        try:
            response = client.secrets.kv.v2.read_secret_version(
                path=secret_path, mount_point=self.mount_point, raise_on_deleted_version=True
            )
        except vault_errors.InvalidPath as e:
            raise ResolutionError(FailureKind.NOT_FOUND, reference, "secret path not found") from e
        except (vault_errors.Forbidden, vault_errors.Unauthorized) as e:
            raise ResolutionError(FailureKind.DENIED, reference, str(e) or "permission denied") from e
        except requests.exceptions.Timeout as e:
            raise ResolutionError(FailureKind.TIMEOUT, reference, "Vault request timed out") from e
        except (vault_errors.VaultError, requests.exceptions.RequestException) as e:
            raise ResolutionError(
                FailureKind.BACKEND_UNAVAILABLE, reference, f"Failed to read from vault: {e}"
            ) from e

        secret_data = response["data"]["data"]
        if key not in secret_data:
            raise ResolutionError(
                FailureKind.NOT_FOUND, reference, f"key '{key}' not found in vault secret"
            )
        return str(secret_data[key])

    def cleanup(self) -> None:
        """Clean up the vault client."""
        with self._client_lock:
            # hvac Client has no close method; dropping the reference is enough
            self._vault_client = None

    def _get_client(self, reference: str):
        with self._client_lock:
            if self._vault_client is None:
                self._vault_client = self._init_vault_client(reference)
            return self._vault_client

    def _init_vault_client(self, reference: str):
        try:
            import hvac
        except ImportError as e:
            raise ResolutionError(
                FailureKind.BACKEND_UNAVAILABLE,
                reference,
                "hvac package is required for Vault support. Install with: pip install 'secretenv[vault]'",
            ) from e

        token = os.environ.get(self.token_env)
        if not self.address or not token:
            raise ResolutionError(
                FailureKind.BACKEND_UNAVAILABLE, reference, "Vault address or token not configured"
            )

        client = hvac.Client(url=self.address, token=token, timeout=self.timeout)
        if not client.is_authenticated():
            raise ResolutionError(FailureKind.DENIED, reference, "Failed to authenticate with Vault")
        return client

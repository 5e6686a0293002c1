"""Pydantic models for the secretenv configuration file.

The configuration selects the secret manager backend and tunes the
resolution pipeline:

```yaml
secret_manager:
  type: 1password
  timeout: 30
resolution:
  prefix: SECRETENV_SECRET_
  max_workers: 8
  bare_references: true
  fail_fast: false
```
"""

from typing import Literal

from pydantic import Field

from secretenv.core.resolver import DEFAULT_MAX_WORKERS
from secretenv.core.scanner import DEFAULT_PREFIX
from secretenv.models import SecretEnvBaseModel

SecretManagerType = Literal["1password", "vault", "static"]


class SecretManagerConfigModel(SecretEnvBaseModel):
    """Configuration of the secret manager backend.

    Attributes:
        type: Backend to use ("1password", "vault" or "static")
        binary: 1Password CLI executable (1password only)
        timeout: Seconds to wait for one lookup before giving up
        token_env: Environment variable holding the service token. For
            1Password it is passed to the CLI as OP_SERVICE_ACCOUNT_TOKEN;
            for Vault it defaults to VAULT_TOKEN.
        address: Vault server address (vault only)
        mount_point: KV v2 mount point (vault only)
        values: Reference text to value mapping (static only)

    Example:
        >>> config = SecretManagerConfigModel(type="1password", timeout=10)
    """

    type: SecretManagerType
    binary: str = "op"
    timeout: float = Field(default=30.0, gt=0)
    token_env: str | None = None
    address: str | None = None
    mount_point: str = "secret"
    values: dict[str, str] = Field(default_factory=dict, repr=False)


class ResolutionConfigModel(SecretEnvBaseModel):
    """Settings of the resolution pipeline.

    Attributes:
        prefix: Name prefix selecting candidate variables, stripped on output
        max_workers: Upper bound of concurrent backend lookups
        bare_references: Whether legacy undelimited references are recognized
        fail_fast: Abort on the first failed entry instead of collecting
    """

    prefix: str = Field(default=DEFAULT_PREFIX, min_length=1)
    max_workers: int = Field(default=DEFAULT_MAX_WORKERS, ge=1, le=64)
    bare_references: bool = True
    fail_fast: bool = False


class SecretEnvConfigModel(SecretEnvBaseModel):
    """Root configuration model.

    Attributes:
        secret_manager: Backend configuration; None disables secret lookups
        resolution: Pipeline settings
    """

    secret_manager: SecretManagerConfigModel | None = None
    resolution: ResolutionConfigModel = Field(default_factory=ResolutionConfigModel)

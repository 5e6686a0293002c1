"""Backend selection from configuration."""

import logging
from collections.abc import Callable

from secretenv.config.models import SecretManagerConfigModel

from .base import SecretBackend
from .onepassword import OnePasswordBackend
from .static import StaticBackend
from .vault import VaultBackend

logger = logging.getLogger(__name__)

BackendFactory = Callable[[SecretManagerConfigModel], SecretBackend]

BACKEND_FACTORIES: dict[str, BackendFactory] = {
    "1password": lambda config: OnePasswordBackend(config.model_dump(exclude_none=True)),
    "vault": lambda config: VaultBackend(config.model_dump(exclude_none=True)),
    "static": lambda config: StaticBackend(config.values),
}


def create_backend(config: SecretManagerConfigModel | None) -> SecretBackend | None:
    """Create the backend a secret manager configuration selects.

    Returns:
        The backend, or None when no secret manager is configured. A backend
        whose configuration does not validate is still returned; its lookups
        then fail individually, which keeps unrelated entries working.
    """
    if config is None:
        logger.debug("No secret manager configured")
        return None

    factory = BACKEND_FACTORIES.get(config.type)
    if factory is None:
        raise ValueError(f"Unknown secret manager type: {config.type}")

    backend = factory(config)
    if not backend.validate_config():
        logger.warning(f"Backend {backend.name} has invalid configuration, lookups may fail")
    logger.debug(f"Using secret backend: {backend.name}")
    return backend

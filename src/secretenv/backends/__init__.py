"""
Secret backends.

Each backend resolves one kind of reference:

- `OnePasswordBackend`: op://vault/item/field through the 1Password CLI
- `VaultBackend`: vault://path#key through HashiCorp Vault (KV v2)
- `StaticBackend`: a fixed in-memory mapping
"""

from .base import SecretBackend
from .onepassword import OnePasswordBackend
from .registry import create_backend
from .static import StaticBackend
from .vault import VaultBackend

__all__ = [
    "OnePasswordBackend",
    "SecretBackend",
    "StaticBackend",
    "VaultBackend",
    "create_backend",
]

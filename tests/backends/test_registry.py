import os
from unittest.mock import patch

import pytest

from secretenv.backends.onepassword import OnePasswordBackend
from secretenv.backends.registry import create_backend
from secretenv.backends.static import StaticBackend
from secretenv.backends.vault import VaultBackend
from secretenv.config.models import SecretManagerConfigModel
from secretenv.core.errors import ResolutionError


class TestCreateBackend:
    """Test backend selection from configuration."""

    def test_no_secret_manager(self):
        """Test that no secret manager means no backend."""
        assert create_backend(None) is None

    def test_onepassword(self):
        """Test creating the 1Password backend from config."""
        config = SecretManagerConfigModel(type="1password", binary="/opt/op", timeout=10)
        with patch("shutil.which", return_value="/opt/op"):
            backend = create_backend(config)

        assert isinstance(backend, OnePasswordBackend)
        assert backend.binary == "/opt/op"
        assert backend.timeout == 10.0
        assert backend.bare_schemes == ("op://",)

    def test_vault(self):
        """Test creating the Vault backend from config."""
        config = SecretManagerConfigModel(
            type="vault", address="https://vault.example.com", mount_point="kv"
        )
        with patch.dict(os.environ, {"VAULT_TOKEN": "t"}):
            backend = create_backend(config)

        assert isinstance(backend, VaultBackend)
        assert backend.address == "https://vault.example.com"
        assert backend.mount_point == "kv"
        assert backend.token_env == "VAULT_TOKEN"

    def test_static(self):
        """Test creating the static backend from config."""
        config = SecretManagerConfigModel(type="static", values={"op://v/i/f": "42"})
        backend = create_backend(config)
        assert isinstance(backend, StaticBackend)
        assert backend.resolve("op://v/i/f") == "42"

    def test_invalid_config_still_returns_backend(self, caplog):
        """Test that an invalid backend config only logs a warning."""
        config = SecretManagerConfigModel(type="1password")
        with patch("shutil.which", return_value=None):
            backend = create_backend(config)
        assert isinstance(backend, OnePasswordBackend)
        assert "invalid configuration" in caplog.text


class TestStaticBackend:
    """Test the in-memory backend."""

    def test_can_resolve(self):
        """Test that can_resolve checks the mapping."""
        backend = StaticBackend({"op://v/i/f": "42"})
        assert backend.can_resolve("op://v/i/f")
        assert not backend.can_resolve("op://v/i/other")

    def test_missing_reference(self):
        """Test that unknown references are not found."""
        with pytest.raises(ResolutionError, match="not found"):
            StaticBackend({}).resolve("op://v/i/f")

    def test_values_from_config(self):
        """Test reading values from the config dict."""
        backend = StaticBackend(config={"values": {"x": "y"}})
        assert backend.resolve("x") == "y"

"""Configuration file handling for secretenv."""

from .loader import CONFIG_ENV_VAR, default_config_path, find_config_path, load_config, parse_config
from .models import ResolutionConfigModel, SecretEnvConfigModel, SecretManagerConfigModel

__all__ = [
    "CONFIG_ENV_VAR",
    "ResolutionConfigModel",
    "SecretEnvConfigModel",
    "SecretManagerConfigModel",
    "default_config_path",
    "find_config_path",
    "load_config",
    "parse_config",
]

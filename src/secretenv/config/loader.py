"""Configuration loader.

This module provides functions to locate, load and validate the secretenv
configuration file.
"""

import logging
import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from secretenv.core.errors import ConfigError

from .models import SecretEnvConfigModel

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "SECRETENV_CONFIG"
CONFIG_FILE_NAME = "config.yaml"


def default_config_path(environ: Mapping[str, str] | None = None) -> Path:
    """Return the default configuration file location.

    Honors XDG_CONFIG_HOME, falling back to ~/.config.
    """
    environ = os.environ if environ is None else environ
    base = environ.get("XDG_CONFIG_HOME")
    config_home = Path(base) if base else Path.home() / ".config"
    return config_home / "secretenv" / CONFIG_FILE_NAME


def find_config_path(
    config_path: Path | None = None, environ: Mapping[str, str] | None = None
) -> Path | None:
    """Determine which configuration file to load.

    Priority order:
    1. Explicit path (--config)
    2. SECRETENV_CONFIG environment variable
    3. Default location, only if the file exists

    Returns:
        The path to load, or None when no configuration file applies
    """
    if config_path is not None:
        return config_path

    environ = os.environ if environ is None else environ
    env_path = environ.get(CONFIG_ENV_VAR)
    if env_path:
        return Path(env_path)

    candidate = default_config_path(environ)
    return candidate if candidate.exists() else None


def load_config(
    config_path: Path | None = None, environ: Mapping[str, str] | None = None
) -> SecretEnvConfigModel:
    """Load the secretenv configuration.

    Args:
        config_path: Optional explicit path to the YAML configuration file
        environ: Environment used to locate the file (defaults to os.environ)

    Returns:
        The validated configuration; defaults when no file is found

    Raises:
        ConfigError: If an explicitly requested file is missing, or the file
            is not valid YAML or does not match the schema
    """
    path = find_config_path(config_path, environ)
    if path is None:
        logger.info("No secretenv config file found, using default configuration")
        return SecretEnvConfigModel()

    if not path.exists():
        raise ConfigError(f"Config file not found at {path}")

    logger.debug(f"Loading config from: {path}")
    try:
        with open(path) as f:
            raw_config = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        raise ConfigError(f"Failed to parse YAML config file {path}: {e}") from e

    if not raw_config:
        logger.info("Empty config file, using default configuration")
        return SecretEnvConfigModel()

    return parse_config(raw_config, source=str(path))


def parse_config(raw_config: Any, source: str = "<config>") -> SecretEnvConfigModel:
    """Validate an already parsed configuration mapping."""
    if not isinstance(raw_config, dict):
        raise ConfigError(f"Invalid config in {source}: expected a mapping at the top level")

    try:
        config = SecretEnvConfigModel.model_validate(raw_config)
    except ValidationError as e:
        raise ConfigError(f"Invalid config in {source}: {e}") from e

    if config.secret_manager is not None:
        logger.debug(f"Secret manager configured: {config.secret_manager.type}")
    return config

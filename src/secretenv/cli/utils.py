import json
import logging
import os
import traceback
from pathlib import Path
from typing import Any

import click

from secretenv.config.loader import load_config
from secretenv.core.pipeline import resolve_environment
from secretenv.core.types import PipelineResult

DEBUG_ENV_VAR = "SECRETENV_DEBUG"
PROFILE_ENV_VAR = "SECRETENV_PROFILE"


def get_env_flag(env_var: str, default: bool = False) -> bool:
    """Get a boolean flag from an environment variable.

    Args:
        env_var: Name of the environment variable
        default: Default value if environment variable is not set

    Returns:
        True if the environment variable is set to "1", "true", or "yes" (case insensitive)
        False otherwise
    """
    value = os.environ.get(env_var, "").lower()
    return value in ("1", "true", "yes") if value else default


def configure_logging(debug: bool = False, log_level: str | None = None) -> None:
    """Configure logging for all modules.

    Args:
        debug: Whether to enable debug logging (overrides log_level if True)
        log_level: Log level string ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
    """
    # Check environment variable if debug flag is not set
    if not debug:
        debug = get_env_flag(DEBUG_ENV_VAR)

    if debug:
        level = logging.DEBUG
    elif log_level:
        level = getattr(logging, log_level.upper(), logging.WARNING)
    elif get_env_flag(PROFILE_ENV_VAR):
        # Metrics summary is logged at INFO
        level = logging.INFO
    else:
        level = logging.WARNING

    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    # Remove any existing handlers to avoid duplicate messages
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    stream_handler = logging.StreamHandler()
    stream_handler.setLevel(level)
    stream_handler.setFormatter(logging.Formatter("%(levelname)s:%(name)s:%(message)s"))
    root_logger.addHandler(stream_handler)

    for logger_name in logging.root.manager.loggerDict:
        logger = logging.getLogger(logger_name)
        logger.setLevel(level)
        logger.propagate = True


def format_error(error: Exception, debug: bool = False) -> dict[str, Any]:
    """Format an error for output.

    Args:
        error: The exception that occurred
        debug: Whether to include debug information

    Returns:
        Dict containing error information
    """
    error_info = {"error": str(error)}

    if debug:
        error_info["traceback"] = traceback.format_exc()
        error_info["type"] = error.__class__.__name__

    return error_info


def output_error(error: Exception, json_output: bool = False, debug: bool = False) -> None:
    """Output an error in either JSON or human-readable format and abort.

    Args:
        error: The exception that occurred
        json_output: Whether to output in JSON format
        debug: Whether to include debug information
    """
    error_info = format_error(error, debug)

    if json_output:
        print(json.dumps({"status": "error", **error_info}, indent=2))
    else:
        click.echo(f"Error: {error_info['error']}", err=True)
        if debug and "traceback" in error_info:
            click.echo("\nTraceback:", err=True)
            click.echo(error_info["traceback"], err=True)

    raise click.Abort()


def log_metrics_if_profiling(result: PipelineResult) -> None:
    """Log the resolution metrics summary when SECRETENV_PROFILE is set."""
    if result.metrics is not None and get_env_flag(PROFILE_ENV_VAR):
        result.metrics.log_summary()


def resolve_from_config(
    config_path: Path | None = None, fail_fast: bool | None = None
) -> PipelineResult:
    """Load configuration and resolve the current process environment.

    Raises:
        SecretEnvError: On invalid configuration, a dependency cycle, or, with
            fail-fast, the first failed entry
    """
    config = load_config(config_path)
    result = resolve_environment(os.environ, config, fail_fast=fail_fast)
    log_metrics_if_profiling(result)
    return result

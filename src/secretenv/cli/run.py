from pathlib import Path

import click

from secretenv.cli.utils import configure_logging, output_error, resolve_from_config
from secretenv.core.errors import SecretEnvError
from secretenv.core.types import PipelineResult
from secretenv.launcher import build_child_environment, run_command


def report_failures(result: PipelineResult, strict: bool) -> None:
    """Warn about entries that failed to resolve, or raise when strict."""
    if not result.failures:
        return

    if strict:
        keys = ", ".join(result.failures)
        raise SecretEnvError(f"Failed to resolve {len(result.failures)} variable(s): {keys}")

    for key, errors in result.failures.items():
        for error in errors:
            click.echo(f"Warning: {key} omitted: {error}", err=True)


@click.command(
    name="run",
    context_settings={"ignore_unknown_options": True, "allow_interspersed_args": False},
)
@click.argument("command", nargs=-1, required=True, type=click.UNPROCESSED)
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Path to the configuration file",
)
@click.option("--strict", is_flag=True, help="Abort if any variable fails to resolve")
@click.option("--fail-fast", is_flag=True, help="Stop at the first resolution failure")
@click.option("--debug", is_flag=True, help="Show detailed debug information")
@click.pass_context
def run(
    ctx: click.Context,
    command: tuple[str, ...],
    config_path: Path | None,
    strict: bool,
    fail_fast: bool,
    debug: bool,
) -> None:
    """Resolve secrets and run a command with them in its environment.

    Variables named with the configured prefix (SECRETENV_SECRET_ by default)
    are resolved and exported without the prefix. The command's exit code
    becomes the exit code of secretenv.

    \b
    Examples:
        SECRETENV_SECRET_API_KEY='{{op://vault/item/api-key}}' secretenv run -- ./app
        secretenv run --strict -- python manage.py migrate
        secretenv run --config ./secretenv.yaml -- env
    """
    configure_logging(debug)

    try:
        result = resolve_from_config(config_path, fail_fast=True if fail_fast else None)
        report_failures(result, strict)
        exit_code = run_command(command, build_child_environment(result.resolved))
    except SecretEnvError as e:
        output_error(e, debug=debug)
    except KeyboardInterrupt as e:
        raise click.Abort() from e

    ctx.exit(exit_code)

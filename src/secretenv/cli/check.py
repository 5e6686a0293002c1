import json
from pathlib import Path

import click

from secretenv.cli.utils import configure_logging, output_error, resolve_from_config
from secretenv.core.errors import SecretEnvError
from secretenv.core.types import PipelineResult


def format_check_result(result: PipelineResult) -> str:
    output = []

    total = len(result.resolved) + len(result.failures)
    if total == 0:
        output.append(click.style("ℹ️  No secret variables found", fg="blue"))
        return "\n".join(output)

    output.append(f"\n{click.style('🔍 Secret Resolution', fg='cyan', bold=True)}")
    output.append(f"   Checked {click.style(str(total), fg='yellow')} variable(s)")

    for key in result.resolved:
        output.append(f"  {click.style('✓', fg='green')} {key}")

    for key, errors in result.failures.items():
        output.append(f"  {click.style('✗', fg='red')} {key}")
        for error in errors:
            output.append(f"    {click.style('Error:', fg='red')} {error}")

    if result.ok:
        output.append(f"\n{click.style('🎉 All variables resolved!', fg='green', bold=True)}")
    else:
        output.append(
            f"\n{click.style('💡 Tip:', fg='yellow')} Run with --debug to see backend details"
        )

    return "\n".join(output)


def check_payload(result: PipelineResult) -> dict:
    """JSON-serializable summary of a run, without any values."""
    variables = [{"key": key, "status": "ok"} for key in result.resolved]
    variables.extend(
        {"key": key, "status": "error", "errors": [str(error) for error in errors]}
        for key, errors in result.failures.items()
    )
    return {
        "status": "ok" if result.ok else "error",
        "order": result.order,
        "variables": variables,
    }


@click.command(name="check")
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Path to the configuration file",
)
@click.option("--json-output", is_flag=True, help="Output in JSON format")
@click.option("--debug", is_flag=True, help="Show detailed debug information")
@click.pass_context
def check(ctx: click.Context, config_path: Path | None, json_output: bool, debug: bool) -> None:
    """Resolve secret variables and report which ones succeed.

    Values are never printed. Exits with status 1 if any variable fails.

    \b
    Examples:
        secretenv check                 # Human-readable report
        secretenv check --json-output   # Output results in JSON format
    """
    configure_logging(debug)

    try:
        result = resolve_from_config(config_path)
    except SecretEnvError as e:
        output_error(e, json_output, debug)

    if json_output:
        print(json.dumps(check_payload(result), indent=2))
    else:
        click.echo(format_check_result(result))

    if not result.ok:
        ctx.exit(1)

import click

from secretenv.cli.check import check
from secretenv.cli.run import run
from secretenv.version import PACKAGE_NAME, PACKAGE_VERSION


@click.group(invoke_without_command=True)
@click.version_option(PACKAGE_VERSION, prog_name=PACKAGE_NAME)
@click.pass_context
def cli(ctx: click.Context) -> None:
    """secretenv - run commands with secrets resolved into their environment"""
    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


cli.add_command(run)
cli.add_command(check)


if __name__ == "__main__":
    cli()

"""
Fail2Ban Redux CLI entry point.

Usage:
    fail2ban-redux [OPTIONS] COMMAND [ARGS]...
"""

import logging

import click
import typer
from rich import box
from rich.console import Console
from rich.table import Table

from fail2ban_redux import __version__
from fail2ban_redux.cli import emit_app, filters_app
from fail2ban_redux.core.config import config_path, get_config
from fail2ban_redux.errors import ConfigError

console = Console()


@click.group()
@click.version_option(version=__version__, prog_name="fail2ban-redux")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output")
@click.pass_context
def cli(ctx, verbose):
    """Fail2Ban Redux - Security event logging for fail2ban."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        )


@cli.command()
def status():
    """Show the effective configuration."""
    try:
        config = get_config()
    except ConfigError as e:
        console.print(f"[red]Invalid configuration: {e.message}[/red]")
        raise SystemExit(1)

    console.print("[bold]Fail2Ban Redux Status[/bold]\n")
    console.print(f"Version: {__version__}")
    path = config_path()
    source = str(path) if path.exists() else "defaults"
    console.print(f"Config: {source}\n")

    table = Table(title="Effective Configuration", box=box.ROUNDED)
    table.add_column("Setting", style="cyan")
    table.add_column("Value")

    for section, values in config.to_dict()["fail2ban_redux"].items():
        for key, value in values.items():
            if isinstance(value, list):
                value = ", ".join(value) or "-"
            elif value is None:
                value = "-"
            table.add_row(f"{section}.{key}", str(value))

    console.print(table)


cli.add_command(typer.main.get_command(emit_app), "emit")
cli.add_command(typer.main.get_command(filters_app), "filters")


def main():
    """Main entry point."""
    cli()


if __name__ == "__main__":
    main()

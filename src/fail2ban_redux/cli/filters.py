"""
Fail2Ban Redux CLI - fail2ban filter commands.
"""

from pathlib import Path

import typer
from rich.console import Console
from rich.syntax import Syntax

from fail2ban_redux.core.config import get_config
from fail2ban_redux.filters import FILTERS, classify_line, get_filter, write_filters

console = Console()

filters_app = typer.Typer(
    name="filters",
    help="fail2ban filter.d commands",
    no_args_is_help=True,
)


@filters_app.command("show")
def filters_show(
    name: str = typer.Argument(..., help=f"Filter name ({', '.join(FILTERS)})"),
    plain: bool = typer.Option(False, "--plain", help="Print without highlighting"),
):
    """Print one filter.d file."""
    try:
        definition = get_filter(name)
    except KeyError as e:
        console.print(f"[red]{e.args[0]}[/red]")
        raise typer.Exit(1)

    text = definition.render(get_config().syslog.tag)
    if plain:
        console.print(text, markup=False, highlight=False, soft_wrap=True, end="")
    else:
        console.print(Syntax(text, "ini", theme="ansi_dark"))


@filters_app.command("write")
def filters_write(
    directory: Path = typer.Argument(..., help="Target directory, e.g. /etc/fail2ban/filter.d"),
):
    """Write every filter into a directory."""
    try:
        written = write_filters(directory, get_config().syslog.tag)
    except OSError as e:
        console.print(f"[red]Could not write filters: {e}[/red]")
        raise typer.Exit(1)

    for path in written:
        console.print(f"[green]✓[/green] {path}")


@filters_app.command("test")
def filters_test(
    line: str = typer.Argument(..., help="A syslog line to check"),
):
    """Check which filter catches a log line."""
    match = classify_line(line, get_config().syslog.tag)
    if match is None:
        console.print("[yellow]No filter matches.[/yellow]")
        raise typer.Exit(1)

    name, host = match
    console.print(f"[bold]{name}[/bold] bans [cyan]{host}[/cyan]")

"""
aitherlog CLI - Main entry point
"""

import platform
from typing import List, Optional

import typer
from rich.console import Console
from rich.table import Table

from aitherlog import __version__
from aitherlog.cli.commands import config, logs
from aitherlog.cli.utils.validators import parse_context_pairs, validate_level_name
from aitherlog.core.exceptions.custom_exceptions import ValidationError
from aitherlog.core.logging.engine import get_engine

# Initialize CLI app
app = typer.Typer(
    name="aitherlog",
    help="Structured logging for AitherZero automation",
    no_args_is_help=True,
    add_completion=False,
    rich_markup_mode="rich",
)

console = Console()

# Add subcommands
app.add_typer(logs.app, name="logs", help="Log file commands")
app.add_typer(config.app, name="config", help="Logging configuration commands")


def _version_table() -> Table:
    engine = get_engine()
    settings = engine.get_configuration()

    table = Table(title="aitherlog Version Information")
    table.add_column("Component", style="cyan")
    table.add_column("Version", style="green")
    table.add_column("Detail", style="yellow")

    table.add_row("aitherlog", __version__, settings.log_format.value)
    table.add_row("Python", platform.python_version(), platform.system())
    table.add_row("Log File", str(settings.log_file_path), settings.log_level.name)
    return table


def version_callback(value: bool) -> None:
    """Handle version callback"""
    if value:
        console.print(_version_table())
        raise typer.Exit()


@app.callback()
def main(
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Show DEBUG entries on the console"
    ),
    version: bool = typer.Option(
        False,
        "--version",
        callback=version_callback,
        is_eager=True,
        help="Show aitherlog version and exit",
    ),
) -> None:
    """
    aitherlog CLI - Structured logging for AitherZero automation

    Run 'aitherlog --help' for available commands.
    """
    if verbose:
        get_engine().update_configuration(console_level="DEBUG")


@app.command()
def write(
    message: str = typer.Argument(..., help="Message to log"),
    level: str = typer.Option("INFO", "--level", "-l", help="Entry level"),
    source: Optional[str] = typer.Option(None, "--source", "-s", help="Entry source"),
    category: Optional[str] = typer.Option(None, "--category", help="Entry category"),
    event_id: Optional[int] = typer.Option(None, "--event-id", help="Numeric event id"),
    context: Optional[List[str]] = typer.Option(
        None, "--context", "-c", help="Context entry as key=value, repeatable"
    ),
    no_console: bool = typer.Option(False, "--no-console", help="Skip the console sink"),
    no_file: bool = typer.Option(False, "--no-file", help="Skip the file sink"),
) -> None:
    """Write a single log entry"""
    try:
        level_name = validate_level_name(level)
        context_map = parse_context_pairs(context)
    except ValidationError as e:
        console.print(e.message, style="red", markup=False)
        raise typer.Exit(1)

    get_engine().write(
        message,
        level=level_name,
        source=source or "aitherlog",
        context=context_map or None,
        category=category,
        event_id=event_id,
        no_console=no_console,
        no_file=no_file,
    )


@app.command()
def version() -> None:
    """Show aitherlog version information"""
    console.print(_version_table())


if __name__ == "__main__":
    app()

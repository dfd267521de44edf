"""
Configuration commands for the aitherlog CLI
"""

from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from aitherlog.cli.utils.validators import validate_level_name
from aitherlog.core.config.settings import env_names
from aitherlog.core.exceptions.custom_exceptions import ConfigurationError, ValidationError
from aitherlog.core.logging.engine import get_engine

app = typer.Typer(help="Logging configuration commands")
console = Console()


@app.command()
def show() -> None:
    """Show the active logging configuration"""
    engine = get_engine()
    settings = engine.get_configuration()

    table = Table(title="AitherZero Logging Configuration")
    table.add_column("Setting", style="cyan")
    table.add_column("Value", style="green")
    table.add_column("Environment", style="yellow")

    for name, value in settings.model_dump(mode="json").items():
        new_name, legacy_name = env_names(name)
        table.add_row(name, str(value), f"{new_name} / {legacy_name}")

    console.print(table)
    console.print(f"Initialized: {engine.initialized}")


@app.command()
def init(
    log_path: Optional[str] = typer.Option(None, "--log-path", help="Live log file"),
    log_level: Optional[str] = typer.Option(None, "--log-level", help="File threshold"),
    console_level: Optional[str] = typer.Option(
        None, "--console-level", help="Console threshold"
    ),
    force: bool = typer.Option(False, "--force", help="Re-initialize"),
) -> None:
    """Initialize the logging session and write the session header"""
    try:
        settings = get_engine().initialize(
            log_path=log_path,
            log_level=validate_level_name(log_level) if log_level else None,
            console_level=validate_level_name(console_level) if console_level else None,
            force=force,
        )
    except (ConfigurationError, ValidationError) as e:
        console.print(str(e), style="red", markup=False)
        raise typer.Exit(1)

    console.print(f"Logging to {settings.log_file_path}", style="green")

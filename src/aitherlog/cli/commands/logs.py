"""
Log file commands for the aitherlog CLI.

Key Commands:
    tail: Show the end of the live log file
    rotate: Rotate the live log file now
    bulk: Write a batch of requests from a JSON or JSON-lines file

Example Usage:
    $ aitherlog logs tail --lines 50
    $ aitherlog logs rotate
    $ aitherlog logs bulk requests.jsonl --parallel --level DEBUG
"""

import typer
from rich.console import Console
from rich.table import Table

from aitherlog.cli.utils.validators import load_bulk_requests, validate_level_name
from aitherlog.core.exceptions.custom_exceptions import ValidationError
from aitherlog.core.logging.engine import get_engine

app = typer.Typer(help="Log file commands")
console = Console()


@app.command()
def tail(
    lines: int = typer.Option(20, "--lines", "-n", help="Number of lines to show"),
) -> None:
    """Show the last lines of the live log file"""
    engine = get_engine()
    content = engine.get_recent_logs(lines)
    if not content:
        console.print(
            f"No log entries at {engine.get_configuration().log_file_path}",
            style="yellow",
        )
        return
    console.print(content.rstrip("\n"), markup=False, highlight=False, soft_wrap=True)


@app.command()
def rotate() -> None:
    """Rotate the live log file regardless of its size"""
    engine = get_engine()
    path = engine.get_configuration().log_file_path
    if engine.rotate():
        console.print(f"Rotated {path}", style="green")
    else:
        console.print(f"Rotation of {path} reported errors", style="red")
        raise typer.Exit(1)


@app.command()
def bulk(
    file: str = typer.Argument(..., help="JSON array or JSON-lines file of requests"),
    level: str = typer.Option("INFO", "--level", "-l", help="Default level"),
    parallel: bool = typer.Option(
        False, "--parallel", help="Fan large batches out to worker threads"
    ),
) -> None:
    """Write a batch of log requests"""
    try:
        requests = load_bulk_requests(file)
        default_level = validate_level_name(level)
    except ValidationError as e:
        console.print(e.message, style="red", markup=False)
        raise typer.Exit(1)

    result = get_engine().write_bulk(requests, default_level=default_level, parallel=parallel)

    table = Table(title="Bulk Write Summary")
    table.add_column("Total", style="cyan")
    table.add_column("Processed", style="green")
    table.add_column("Failed", style="red")
    table.add_column("Mode", style="yellow")
    table.add_row(
        str(result.total),
        str(result.processed),
        str(result.failed),
        "parallel" if result.parallel else "sequential",
    )
    console.print(table)

    for error in result.errors:
        console.print(f"  {error}", style="red", markup=False)
    if result.failed:
        raise typer.Exit(1)

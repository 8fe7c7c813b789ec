"""Config command for configuration management."""

from pathlib import Path
from typing import Annotated

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.table import Table

from lazconv.config import get_settings
from lazconv.config.constants import CONFIG_LOCATIONS, DEFAULT_CONFIG_FILE
from lazconv.converters.potree import PotreeConverter
from lazconv.exceptions import ConfigurationError

config_app = typer.Typer(help="Configuration management.")
console = Console()


@config_app.command("show")
def show() -> None:
    """Show current configuration."""
    settings = get_settings()

    console.print("\n[bold blue]Current Configuration[/bold blue]\n")

    table = Table(show_header=True, header_style="bold")
    table.add_column("Setting", style="cyan")
    table.add_column("Value")

    table.add_row("Log Level", settings.log_level)
    table.add_row("Log Directory", settings.log_dir)

    table.add_row("Input Directory", str(settings.input_dir))
    table.add_row("Output Directory", str(settings.output_dir))
    table.add_row("Temp Directory", str(settings.temp_dir))
    table.add_row("Input Extensions", ", ".join(settings.paths.input_extensions))

    table.add_row("PotreeConverter", settings.converter.path or "[yellow]not set[/yellow]")
    timeout = settings.converter.timeout
    table.add_row("Converter Timeout", f"{timeout}s" if timeout else "none")

    table.add_row("Chunk Size", f"{settings.chunking.chunk_size_mb} MB")
    table.add_row("Copy Buffer", f"{settings.chunking.buffer_size} bytes")
    table.add_row("Max Concurrent Processes", str(settings.concurrency.max_concurrent_processes))

    console.print(table)
    console.print()


DEFAULT_CONFIG_TEMPLATE = """# lazconv Configuration
# Environment variables override these values, e.g. LAZCONV_CONVERTER__PATH.

log_level: "WARNING"  # Console log level: DEBUG, INFO, WARNING, ERROR, CRITICAL (--verbose shows DEBUG)
log_dir: ".logs"  # Per-run log files

paths:
  input_dir: "input"  # Searched recursively for inputs
  output_dir: "output"  # One subdirectory per conversion
  temp_dir: "temp"  # Extracted chunks, purged before and after each run
  input_extensions: [".laz"]

converter:
  path: ""  # Path to the PotreeConverter executable (required)
  # timeout: 3600  # Seconds before a converter process is killed

chunking:
  chunk_size_mb: 100  # Files larger than this are split into chunks of this size
  buffer_size: 1048576  # Read size while extracting a chunk

concurrency:
  max_concurrent_processes: 2  # Files converted at the same time
"""


@config_app.command("init")
def init(
    path: Annotated[
        Path | None,
        typer.Option(
            "--path",
            "-p",
            help="Path to create config file.",
        ),
    ] = None,
    force: Annotated[
        bool,
        typer.Option(
            "--force",
            "-f",
            help="Overwrite existing config file.",
        ),
    ] = False,
) -> None:
    """Initialize a configuration file."""
    config_path = path or Path.cwd() / DEFAULT_CONFIG_FILE

    if config_path.exists() and not force:
        console.print(f"[red]Error:[/red] Config file already exists at {config_path}")
        console.print("Use --force to overwrite.")
        raise typer.Exit(1)

    config_path.write_text(DEFAULT_CONFIG_TEMPLATE, encoding="utf-8")
    console.print(f"[green]Created config file at:[/green] {config_path}")


@config_app.command("validate")
def validate() -> None:
    """Validate current configuration."""
    try:
        settings = get_settings()
    except ValidationError as e:
        console.print(f"[red]Configuration error:[/red] {e}")
        raise typer.Exit(1) from e

    console.print("\n[bold blue]Configuration Validation[/bold blue]\n")

    try:
        converter_path = PotreeConverter(settings.converter_path).ensure_available()
    except ConfigurationError as e:
        console.print(f"[red]Configuration error:[/red] {e}")
        raise typer.Exit(1) from e

    console.print(f"[green]PotreeConverter:[/green] {converter_path}")
    if not settings.input_dir.is_dir():
        console.print(f"[yellow]Input directory does not exist yet:[/yellow] {settings.input_dir}")

    console.print()
    console.print("[green]Configuration is valid![/green]")


@config_app.command("locations")
def locations() -> None:
    """Show configuration file search locations."""
    console.print("\n[bold blue]Configuration File Locations[/bold blue]\n")
    console.print("lazconv searches for configuration files in the following order:\n")

    for i, loc in enumerate(CONFIG_LOCATIONS, 1):
        exists = "[green]exists[/green]" if loc.exists() else "[dim]not found[/dim]"
        console.print(f"  {i}. {loc} ({exists})")

    console.print()
    console.print("[dim]Environment variables with LAZCONV_ prefix are also supported.[/dim]")
    console.print()

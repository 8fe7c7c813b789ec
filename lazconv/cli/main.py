"""Main CLI application using Typer."""

from typing import Annotated

import typer
from dotenv import load_dotenv
from rich.console import Console

from lazconv import __version__
from lazconv.cli.commands.config import config_app
from lazconv.cli.commands.run import run

# Load environment variables from .env file
load_dotenv()

app = typer.Typer(
    name="lazconv",
    help="Batch LAZ point cloud conversion with PotreeConverter.",
    add_completion=False,
    no_args_is_help=True,
    rich_markup_mode="rich",
    context_settings={"help_option_names": ["-h", "--help"]},
)

console = Console()

app.command(name="run", help="Convert LAZ files from the input directory.")(run)
app.add_typer(config_app, name="config")


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"[bold blue]lazconv[/bold blue] version [green]{__version__}[/green]")
        raise typer.Exit()


@app.callback()
def main(
    version: Annotated[
        bool | None,
        typer.Option(
            "--version",
            "-V",
            help="Show version and exit.",
            callback=version_callback,
            is_eager=True,
        ),
    ] = None,
) -> None:
    """lazconv - LAZ to Potree batch converter.

    Large inputs are split into byte-range chunks and every chunk is run
    through PotreeConverter, with several files converted in parallel.
    """
    pass


if __name__ == "__main__":
    app()

"""Run command for batch LAZ conversion."""

import asyncio
import time
from datetime import timedelta
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.progress import BarColumn, Progress, SpinnerColumn, TextColumn, TimeElapsedColumn
from rich.table import Table

from lazconv.config import get_settings
from lazconv.config.constants import BYTES_PER_MB
from lazconv.converters.potree import PotreeConverter
from lazconv.core.chunking import mb_to_bytes, needs_chunking, plan_chunks
from lazconv.core.models import ConversionResult
from lazconv.core.orchestrator import BatchOrchestrator
from lazconv.core.pipeline import ConversionPipeline
from lazconv.exceptions import ConfigurationError
from lazconv.services.directory import DirectoryService, select_files
from lazconv.services.results import ResultsWriter
from lazconv.utils.concurrency import ConcurrencyManager
from lazconv.utils.fs import format_size
from lazconv.utils.logging import console_logging_suppressed, get_logger, setup_task_logging
from lazconv.utils.stats import BatchStats, format_duration

console = Console()
log = get_logger(__name__)


def run(
    files: Annotated[
        list[str] | None,
        typer.Argument(
            help="File names to convert (matched case-insensitively). Default: all inputs.",
            show_default=False,
        ),
    ] = None,
    input_dir: Annotated[
        Path | None,
        typer.Option("--input-dir", "-i", help="Directory searched for LAZ files."),
    ] = None,
    output_dir: Annotated[
        Path | None,
        typer.Option("--output-dir", "-o", help="Directory for conversion output."),
    ] = None,
    temp_dir: Annotated[
        Path | None,
        typer.Option("--temp-dir", help="Directory for extracted chunks."),
    ] = None,
    converter: Annotated[
        Path | None,
        typer.Option("--converter", "-c", help="Path to the PotreeConverter executable."),
    ] = None,
    chunk_size: Annotated[
        int | None,
        typer.Option("--chunk-size", min=1, help="Chunk threshold and size in MB."),
    ] = None,
    max_concurrent: Annotated[
        int | None,
        typer.Option("--max-concurrent", "-j", min=1, help="Files converted in parallel."),
    ] = None,
    timeout: Annotated[
        float | None,
        typer.Option("--timeout", min=1.0, help="Seconds before a converter run is killed."),
    ] = None,
    dry_run: Annotated[
        bool,
        typer.Option("--dry-run", help="Show the conversion plan without running it."),
    ] = False,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Show log output on the console."),
    ] = False,
) -> None:
    """Convert LAZ files into Potree output directories."""
    settings = get_settings()

    task_id, log_path = setup_task_logging(
        settings.log_dir,
        prefix="run",
        verbose=verbose,
        console_level=settings.log_level,
    )

    input_path = (input_dir or settings.input_dir).resolve()
    output_path = (output_dir or settings.output_dir).resolve()
    temp_path = (temp_dir or settings.temp_dir).resolve()
    converter_path = converter or settings.converter_path
    chunk_size_mb = chunk_size or settings.chunking.chunk_size_mb
    workers = max_concurrent or settings.concurrency.max_concurrent_processes
    process_timeout = timeout or settings.converter.timeout

    log.info("Task Configuration", task_id=task_id, config=settings.model_dump())

    _show_configuration(
        input_dir=input_path,
        output_dir=output_path,
        temp_dir=temp_path,
        converter_path=converter_path,
        chunk_size_mb=chunk_size_mb,
        max_concurrent=workers,
        timeout=process_timeout,
    )

    directories = DirectoryService(
        input_path, output_path, temp_path, settings.paths.input_extensions
    )
    potree = PotreeConverter(converter_path, timeout=process_timeout)
    try:
        potree.ensure_available()
    except ConfigurationError as e:
        console.print(f"[red]Error:[/red] {e}")
        log.error("Converter check failed", error=str(e))
        raise typer.Exit(1) from e

    available = directories.list_input_files()
    if not available:
        console.print(f"[yellow]No LAZ files found in {input_path}[/yellow]")
        return

    unmatched: list[str] = []
    if files:
        selected, unmatched = select_files(files, available)
        for name in unmatched:
            console.print(f"[yellow]Warning:[/yellow] File not found: {name}")
    else:
        selected = available

    if not selected:
        console.print("[red]Error:[/red] None of the requested files were found.")
        raise typer.Exit(1)

    if dry_run:
        _show_dry_run(selected, input_path, chunk_size_mb)
        if unmatched:
            raise typer.Exit(1)
        return

    directories.ensure_directories()
    directories.purge_temp_area()

    pipeline = ConversionPipeline(
        converter=potree,
        output_root=output_path,
        temp_dir=temp_path,
        chunk_size_mb=chunk_size_mb,
        buffer_size=settings.chunking.buffer_size,
    )
    orchestrator = BatchOrchestrator(pipeline, potree, ConcurrencyManager(workers))

    try:
        results, total_duration = asyncio.run(
            _execute_run(
                selected,
                orchestrator,
                ResultsWriter(output_path),
                input_path,
                verbose=verbose,
            )
        )
    except KeyboardInterrupt:
        console.print("\n[yellow]Conversion interrupted.[/yellow]")
        raise typer.Exit(130) from None
    except Exception as e:
        console.print(f"[red]Error:[/red] {e}")
        log.error("Batch conversion failed", error=str(e), exc_info=True)
        raise typer.Exit(1) from e
    finally:
        directories.purge_temp_area()

    stats = BatchStats.from_results(results, total_duration)
    _display_summary(results, stats)
    console.print(f"[dim]Log file: {log_path}[/dim]")

    if not stats.all_succeeded or unmatched:
        raise typer.Exit(1)


async def _execute_run(
    files: list[Path],
    orchestrator: BatchOrchestrator,
    results_writer: ResultsWriter,
    input_dir: Path,
    verbose: bool = False,
) -> tuple[list[ConversionResult], timedelta]:
    """Run the batch and save its results.

    A progress bar is shown unless logs go to the console.
    """
    start = time.perf_counter()

    if verbose:
        results = await orchestrator.run_batch(files)
    else:
        results = await _run_with_progress(files, orchestrator, input_dir)

    total_duration = timedelta(seconds=time.perf_counter() - start)
    await results_writer.save(results)
    return results, total_duration


async def _run_with_progress(
    files: list[Path],
    orchestrator: BatchOrchestrator,
    input_dir: Path,
) -> list[ConversionResult]:
    """Run the batch behind a Rich progress bar."""
    with (
        console_logging_suppressed(),
        Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            BarColumn(),
            TextColumn("({task.completed}/{task.total})"),
            TimeElapsedColumn(),
            console=console,
            transient=False,
        ) as progress,
    ):
        progress_task_id = progress.add_task("[cyan]Converting files...", total=len(files))

        def on_result(item: Path | str, result: ConversionResult) -> None:
            progress.advance(progress_task_id)
            rel_path = _display_name(item, input_dir)
            if result.is_success:
                progress.console.print(f"  [green]✓[/green] {rel_path}")
            else:
                progress.console.print(f"  [red]x[/red] {rel_path}")
                progress.console.print(f"    [dim]{result.error_message}[/dim]")

        return await orchestrator.run_batch(files, on_result=on_result)


def _display_name(path: Path | str, input_dir: Path) -> str:
    path = Path(path)
    try:
        return str(path.relative_to(input_dir))
    except ValueError:
        return path.name


def _show_configuration(
    input_dir: Path,
    output_dir: Path,
    temp_dir: Path,
    converter_path: Path | None,
    chunk_size_mb: int,
    max_concurrent: int,
    timeout: float | None,
) -> None:
    table = Table(title="Configuration", show_header=False)
    table.add_column("Setting", style="bold")
    table.add_column("Value")

    table.add_row("Input Directory", str(input_dir))
    table.add_row("Output Directory", str(output_dir))
    table.add_row("Temp Directory", str(temp_dir))
    table.add_row("PotreeConverter", str(converter_path) if converter_path else "not set")
    table.add_row("Chunk Size", f"{chunk_size_mb} MB")
    table.add_row("Max Concurrent Processes", str(max_concurrent))
    table.add_row("Timeout", f"{timeout}s" if timeout else "none")

    console.print(table)


def _show_dry_run(files: list[Path], input_dir: Path, chunk_size_mb: int) -> None:
    """Show how each file would be processed."""
    chunk_bytes = mb_to_bytes(chunk_size_mb)

    console.print("\n[bold blue]Conversion Plan (Dry Run)[/bold blue]\n")
    console.print(f"[bold]Files:[/bold] {len(files)}  [bold]Chunk Size:[/bold] {chunk_size_mb} MB")
    console.print()

    for file_path in files:
        size = file_path.stat().st_size
        if needs_chunking(size, chunk_bytes):
            plan = f"{len(plan_chunks(size, chunk_bytes))} chunks"
        else:
            plan = "direct"
        console.print(f"  - {_display_name(file_path, input_dir)} ({format_size(size)}): {plan}")

    console.print()


def _display_summary(results: list[ConversionResult], stats: BatchStats) -> None:
    """Display batch summary and per-file results."""
    console.print()

    table = Table(title="Conversion Summary", show_header=False)
    table.add_column("Metric", style="bold")
    table.add_column("Value")

    table.add_row("Total Files", str(stats.total_files))
    table.add_row("Succeeded", f"[green]{stats.success_files}[/green]")
    table.add_row("Failed", f"[red]{stats.failed_files}[/red]")
    if stats.total_files > 0:
        table.add_row("Success Rate", f"{stats.success_rate * 100:.1f}%")
    table.add_row("Total Duration", format_duration(stats.total_duration))

    console.print(table)

    if not results:
        return

    details = Table(title="Results", show_header=True, header_style="bold")
    details.add_column("File")
    details.add_column("Status")
    details.add_column("Duration")
    details.add_column("Size (MB)", justify="right")
    details.add_column("Details")

    for result in results:
        name = Path(result.input_file_path).name
        size_mb = f"{result.input_file_size_bytes / BYTES_PER_MB:.2f}"
        duration = format_duration(result.duration)
        if result.is_success:
            status = "[green]OK[/green]"
            info = f"{result.output_directory} ({len(result.output_files)} files)"
        else:
            status = "[red]FAILED[/red]"
            info = result.error_message
        details.add_row(name, status, duration, size_mb, info)

    console.print()
    console.print(details)
    console.print()

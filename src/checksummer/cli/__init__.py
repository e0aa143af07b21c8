"""
CLI for Checksummer.

Provides command-line interface for scanning configured directories and
reviewing suspicious checksum changes.
"""

from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.progress import (
    BarColumn,
    Progress,
    SpinnerColumn,
    TaskProgressColumn,
    TextColumn,
)
from rich.table import Table

from checksummer.core.checksum import HashMethod
from checksummer.core.config import ChecksummerConfig, ConfigError, ScanConfig, load_config
from checksummer.core.file_scanner import format_timestamp
from checksummer.core.logging_utils import configure_logging
from checksummer.core.path_utils import display_path, normalize_root
from checksummer.infrastructure import ChecksumStore, ChecksumStoreError, RunLock, RunLockError
from checksummer.services import ScanResult, create_services

# Initialize Rich Console
console = Console()

app = typer.Typer(
    name="checksummer",
    help="Checksummer - detect silent file corruption across runs",
    add_completion=False,
)


def _error(message: str) -> None:
    console.print(f"[bold red]Error:[/bold red] {escape(display_path(message))}")


def _format_runtime(seconds: float) -> str:
    total = int(seconds)
    hours, rest = divmod(total, 3600)
    minutes, secs = divmod(rest, 60)
    return f"{hours}h{minutes}m{secs}s"


def _print_summary(result: ScanResult) -> None:
    summary = Table.grid(padding=1)
    summary.add_column(style="bold")
    summary.add_column()
    summary.add_row("Files Checked:", str(result.total_files))
    summary.add_row("New Files:", str(result.new_files))
    summary.add_row("Changed Files:", str(result.changed_files))
    summary.add_row("Pruned Records:", str(result.pruned_files))
    summary.add_row("Runtime:", _format_runtime(result.duration_seconds))

    if result.suspicious_files:
        summary.add_row("Suspicious Files:", f"[red]{len(result.suspicious_files)}[/red]")
    if result.failed_paths:
        summary.add_row("Failed Paths:", f"[red]{len(result.failed_paths)}[/red]")

    if result.success:
        title = "[bold green]Scan Complete[/bold green]"
        border = "green"
    else:
        title = "[bold red]Scan Failed[/bold red]"
        border = "red"

    console.print(Panel(summary, title=title, border_style=border, expand=False))

    if result.suspicious_files:
        console.print("\n[bold yellow]Suspicious Files:[/bold yellow]")
        for path in result.suspicious_files:
            console.print(f"  - {escape(display_path(path))}")

    if result.failed_paths:
        console.print("\n[bold red]Failed Paths:[/bold red]")
        for path in result.failed_paths:
            console.print(f"  - {escape(display_path(path))}")


@app.command()
def scan(
    config_path: Path = typer.Option(
        ..., "--config", "-c", help="Config file listing directories to examine"
    ),
    db: Optional[Path] = typer.Option(
        None, "--db", "-d", help="SQLite database storing paths and checksums (created if missing)"
    ),
    method: Optional[str] = typer.Option(
        None, "--method", "-m", help="Hash method: sha256 or md5"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug output"),
    prune: bool = typer.Option(
        False, "--prune", "-p", help="Remove records of files no longer present"
    ),
):
    """Checksum every file under the configured paths and compare with the last run."""
    try:
        cfg = load_config(config_path)
        if db is not None:
            cfg.database.path = str(db)
        if method is not None:
            cfg.checksum.hash_method = method
        cfg.validate()
    except (FileNotFoundError, ConfigError) as e:
        _error(f"Configuration problem: {e}")
        raise typer.Exit(1)

    run_logger = configure_logging(cfg.logging, verbose=verbose)

    try:
        with RunLock(cfg.database.resolved_lock_path()):
            with Progress(
                SpinnerColumn(),
                TextColumn("[progress.description]{task.description}"),
                BarColumn(),
                TaskProgressColumn(),
                console=console,
            ) as progress:
                task = progress.add_task("Initializing...", total=None)

                def update_progress(current: int, total: int, message: str) -> None:
                    progress.update(
                        task,
                        completed=current,
                        total=total,
                        description=escape(display_path(message)),
                    )

                services = create_services(
                    cfg, logger=run_logger, progress_callback=update_progress
                )
                try:
                    result = services.scan_service.run(cfg.scan.paths, prune=prune)
                finally:
                    services.close()
    except RunLockError as e:
        run_logger.error(str(e))
        raise typer.Exit(1)
    except ChecksumStoreError as e:
        run_logger.error(f"Database failure: {e}")
        raise typer.Exit(1)

    _print_summary(result)

    if not result.success:
        run_logger.error("Scan failed")
        raise typer.Exit(1)


@app.command()
def report(
    db: Path = typer.Option(..., "--db", "-d", help="SQLite database written by scan"),
):
    """Show record counts and files whose last change looked suspicious."""
    if not db.exists():
        _error(f"Database not found: {db}")
        raise typer.Exit(1)

    try:
        with ChecksumStore(db) as store:
            stats = store.get_stats()
            suspicious = store.get_suspicious_records()
    except ChecksumStoreError as e:
        _error(str(e))
        raise typer.Exit(1)

    grid = Table.grid(padding=1)
    grid.add_column(style="bold")
    grid.add_column()
    grid.add_row("Total Files:", str(stats["total_files"]))
    grid.add_row("OK Files:", str(stats["ok_files"]))
    grid.add_row("Suspicious Files:", str(stats["suspicious_files"]))
    if stats["last_checked"]:
        last = format_timestamp(stats["last_checked"])
        grid.add_row("Last Checked:", last)

    console.print(Panel(grid, title="Checksum Database", border_style="blue", expand=False))

    if not suspicious:
        console.print("[green]No suspicious files.[/green]")
        return

    table = Table(title="Suspicious Files", show_header=True)
    table.add_column("File", style="cyan")
    table.add_column("Modified", justify="right")
    table.add_column("Checked", justify="right")
    for record in suspicious:
        table.add_row(
            escape(display_path(record.path)),
            format_timestamp(record.modified_time),
            format_timestamp(record.checksum_time),
        )
    console.print(table)


@app.command("init-config")
def init_config(
    output: Path = typer.Option(..., "--output", "-o", help="Config file to write (.yaml or .json)"),
    paths: List[str] = typer.Option(
        ..., "--path", "-p", help="Absolute directory to scan. Can be specified multiple times."
    ),
    exclusions: Optional[List[str]] = typer.Option(
        None, "--exclude", "-x", help="Absolute path prefix to skip. Can be specified multiple times."
    ),
    method: str = typer.Option("sha256", "--method", "-m", help="Hash method: sha256 or md5"),
):
    """Write a configuration file."""
    try:
        hash_method = HashMethod.parse(method)
    except ValueError as e:
        _error(str(e))
        raise typer.Exit(1)

    cfg = ChecksummerConfig()
    cfg.scan = ScanConfig(
        paths=[normalize_root(p) for p in paths],
        exclusions=list(exclusions or []),
    )
    cfg.checksum.hash_method = hash_method.value

    try:
        cfg.validate()
    except ConfigError as e:
        _error(str(e))
        raise typer.Exit(1)

    try:
        cfg.save(output)
    except (ValueError, OSError) as e:
        _error(str(e))
        raise typer.Exit(1)

    console.print(f"[green]Wrote configuration to[/green] {escape(str(output))}")

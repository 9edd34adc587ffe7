"""CLI interface for diskscope."""

import os
from pathlib import Path
from typing import Optional

import typer

from diskscope import __version__
from diskscope.config import CONFIG_FILE, Settings, load_settings
from diskscope.display import (
    confirm_action,
    console,
    setup_logging,
    show_result,
    show_scanning_progress,
    show_settings,
    show_trash_result,
)
from diskscope.models import ScanProgress, ScanResult, SizeMode, SortOption
from diskscope.session import ScanSession

app = typer.Typer(
    name="diskscope",
    help="See what is taking up space on your disk",
    add_completion=False,
)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"diskscope version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        None,
        "--version",
        "-v",
        help="Show version and exit.",
        callback=version_callback,
        is_eager=True,
    ),
) -> None:
    """diskscope - hierarchical disk usage breakdown."""


def _settings(apparent_size: bool, skip_hidden: bool) -> Settings:
    settings = load_settings()
    updates = {}
    if apparent_size:
        updates["size_mode"] = SizeMode.APPARENT
    if skip_hidden:
        updates["skip_hidden"] = True
    return settings.model_copy(update=updates) if updates else settings


def _run_scan(settings: Settings, root: Path, parallel: bool) -> tuple[ScanSession, ScanResult | None]:
    """Scan ``root`` with a live progress line; Ctrl-C keeps the partial result."""
    with show_scanning_progress() as progress:
        task = progress.add_task("Scanning...", total=None, folder="")

        def update_progress(snapshot: ScanProgress) -> None:
            progress.update(
                task,
                description=(
                    f"Scanning... {snapshot.files_scanned:,} files, {snapshot.bytes_human}"
                ),
                folder=snapshot.current_folder,
            )

        session = ScanSession(settings=settings, on_progress=update_progress)
        session.start(root, parallel=parallel)
        try:
            while not session.wait(0.2):
                pass
        except KeyboardInterrupt:
            session.cancel()
            session.wait()

    return session, session.result


@app.command()
def scan(
    path: Optional[Path] = typer.Argument(None, help="Folder to scan (default: home)"),
    parallel: Optional[bool] = typer.Option(
        None,
        "--parallel/--no-parallel",
        help="Scan top-level folders concurrently (default: only for /)",
    ),
    sort: Optional[SortOption] = typer.Option(None, "--sort", "-s", help="Sort order"),
    depth: int = typer.Option(2, "--depth", "-d", help="Levels of the tree to show"),
    top: int = typer.Option(20, "--top", "-n", help="Children shown per folder"),
    apparent_size: bool = typer.Option(
        False, "--apparent-size", help="Count file length instead of disk blocks"
    ),
    skip_hidden: bool = typer.Option(False, "--skip-hidden", help="Ignore dot-files"),
    verbose: bool = typer.Option(False, "--verbose", help="Show debug logging"),
) -> None:
    """Scan a folder and show where the space goes."""
    setup_logging(verbose)
    settings = _settings(apparent_size, skip_hidden)

    root = (path or Path.home()).expanduser()
    if not root.is_dir():
        console.print(f"[red]Not a directory: {root}[/red]")
        raise typer.Exit(1)

    if parallel is None:
        parallel = settings.parallel_root_scan and os.path.abspath(root) == os.path.abspath(os.sep)

    console.print(f"[bold blue]Scanning {os.path.abspath(root)}...[/bold blue]")
    session, result = _run_scan(settings, root, parallel)
    if result is None:
        console.print("[red]Scan failed.[/red]")
        raise typer.Exit(1)

    show_result(result, session.sorted_tree(sort), max_depth=depth, top=top)


@app.command()
def trash(
    path: Path = typer.Argument(..., help="File or folder to move to the trash"),
    root: Optional[Path] = typer.Option(
        None, "--root", "-r", help="Folder to scan and report on (default: parent)"
    ),
    yes: bool = typer.Option(False, "-y", "--yes", help="Skip confirmation prompt"),
    apparent_size: bool = typer.Option(
        False, "--apparent-size", help="Count file length instead of disk blocks"
    ),
    verbose: bool = typer.Option(False, "--verbose", help="Show debug logging"),
) -> None:
    """Move an item to the trash and show the updated breakdown."""
    setup_logging(verbose)
    settings = _settings(apparent_size, False)

    target = Path(os.path.abspath(path.expanduser()))
    if not target.exists():
        console.print(f"[red]No such file or folder: {target}[/red]")
        raise typer.Exit(1)

    scan_root = Path(os.path.abspath((root or target.parent).expanduser()))
    session, result = _run_scan(settings, scan_root, parallel=False)
    if result is None or result.root is None:
        console.print("[red]Scan failed.[/red]")
        raise typer.Exit(1)

    item = result.root.find(str(target))
    if item is None:
        console.print(f"[red]{target} is not part of the scan of {scan_root}[/red]")
        raise typer.Exit(1)

    if settings.confirm_delete and not yes:
        if not confirm_action(f"Move {target} ({item.size_human}) to the trash?"):
            console.print("[yellow]Cancelled[/yellow]")
            raise typer.Exit(0)

    outcome = session.trash(target)
    show_trash_result(outcome)
    if not outcome.success:
        raise typer.Exit(1)

    show_result(session.result, session.sorted_tree(), max_depth=1)


@app.command()
def config() -> None:
    """Show effective configuration."""
    console.print(f"[dim]{CONFIG_FILE}[/dim]")
    show_settings(load_settings())


if __name__ == "__main__":
    app()

"""Rich terminal display for diskscope."""

import logging

from rich.console import Console
from rich.logging import RichHandler
from rich.progress import Progress, SpinnerColumn, TextColumn, TimeElapsedColumn
from rich.table import Table
from rich.tree import Tree

from diskscope.config import Settings
from diskscope.models import DisplayItem, ScanResult, TrashResult, format_bytes

console = Console()


def setup_logging(verbose: bool = False) -> None:
    """Route log records through rich."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True, show_path=False)],
        force=True,
    )


def size_color(part: int, total: int) -> str:
    """Color for a size bar, by share of the total."""
    ratio = part / total if total > 0 else 0
    if ratio < 0.25:
        return "green"
    elif ratio < 0.5:
        return "yellow"
    elif ratio < 0.75:
        return "dark_orange"
    else:
        return "red"


def item_label(item: DisplayItem, total: int) -> str:
    """One tree row: icon, name, size and share of the scan."""
    icon = "📄" if item.is_file else "📁"
    color = size_color(item.size, total)
    return (
        f"{icon} [bold]{item.name}[/bold]  "
        f"[{color}]{item.size_human}[/{color}] "
        f"[dim]({item.percent_of(total)})[/dim]"
    )


def build_tree(root: DisplayItem, max_depth: int = 2, top: int = 20) -> Tree:
    """Render a display tree down to ``max_depth`` levels."""
    total = root.size
    tree = Tree(item_label(root, total) + f"  [dim]{root.path}[/dim]")

    def _add(branch: Tree, item: DisplayItem, depth: int) -> None:
        if depth >= max_depth:
            return
        shown = item.children[:top]
        for child in shown:
            _add(branch.add(item_label(child, total)), child, depth + 1)
        hidden = len(item.children) - len(shown)
        if hidden > 0:
            rest = sum(child.size for child in item.children[top:])
            branch.add(f"[dim]… {hidden} more ({format_bytes(rest)})[/dim]")

    _add(tree, root, 0)
    return tree


def show_result(
    result: ScanResult,
    tree: DisplayItem | None,
    max_depth: int = 2,
    top: int = 20,
) -> None:
    """Display a scan result."""
    if tree is None or not tree.children:
        console.print("[yellow]Scan finished. No data found or no access.[/yellow]")
    else:
        console.print(build_tree(tree, max_depth=max_depth, top=top))
        console.print()
        console.print(
            f"[bold]Total:[/bold] {format_bytes(result.total_size)} "
            f"[dim]in {result.elapsed_sec:.1f}s[/dim]"
        )

    if result.cancelled:
        console.print("[yellow]Scan was cancelled - results are partial.[/yellow]")

    if result.restricted:
        show_restricted(result.restricted)


def show_restricted(paths) -> None:
    """List top-level folders that could not be read."""
    console.print()
    console.print(f"[bold]🔒 Folders Without Access[/bold] [dim]({len(paths)})[/dim]")
    for path in paths:
        console.print(f"  [dim]{path}[/dim]")
    console.print(
        "[dim]Run with elevated permissions (or grant Full Disk Access on macOS) "
        "for a more complete analysis.[/dim]"
    )


def show_trash_result(result: TrashResult) -> None:
    """Display the outcome of a trash operation."""
    if result.success:
        console.print(
            f"[green]✓[/green] Moved {result.path} to trash "
            f"([bold]{format_bytes(result.bytes_freed)}[/bold] freed)"
        )
    else:
        console.print(f"[red]✗[/red] Could not move {result.path} to trash: {result.error}")


def show_settings(settings: Settings) -> None:
    """Display effective settings."""
    table = Table(title="Settings", show_header=True, header_style="bold")
    table.add_column("Setting")
    table.add_column("Value", justify="right")
    for name, value in settings.model_dump(mode="json").items():
        table.add_row(name, str(value))
    console.print(table)


def show_scanning_progress() -> Progress:
    """Create a live progress line for scanning."""
    return Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        TextColumn("[dim]{task.fields[folder]}[/dim]"),
        TimeElapsedColumn(),
        console=console,
        transient=True,
    )


def confirm_action(message: str) -> bool:
    """Ask for confirmation."""
    from rich.prompt import Confirm

    return Confirm.ask(message, console=console)

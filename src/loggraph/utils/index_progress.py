"""Progress feedback for graph indexing in the CLI."""

from typing import Callable, Optional

import click
from rich.console import Console
from rich.status import Status


def create_index_progress_callback(
    console: Console,
    reindex: bool = False,
) -> tuple[Callable[[int, int], None], Callable[[], None]]:
    """Create progress callback and cleanup function for an indexing pass.

    - Initial message (Indexing/Reindexing) on the first call
    - Percentage line while files are ingested
    - Spinner while the graph is linked (after the last file)

    Args:
        console: Rich Console instance for output
        reindex: True if the store was cleared first (shows "Reindexing")

    Returns:
        Tuple of (progress_callback, cleanup_function)
        - progress_callback(current, total): Called by Indexer.index_files()
        - cleanup_function(): Call this to stop any active spinner

    Example:
        >>> console = Console()
        >>> progress_cb, cleanup = create_index_progress_callback(console)
        >>> try:
        ...     await indexer.index_files(graph_path, progress_callback=progress_cb)
        ... finally:
        ...     cleanup()
    """
    status_context: Optional[Status] = None
    showed_initial_message = False

    def progress_callback(current: int, total: int):
        nonlocal status_context, showed_initial_message

        if not showed_initial_message:
            message = "Reindexing graph..." if reindex else "Indexing graph..."
            console.print(f"[bold cyan]{message}[/bold cyan]")
            showed_initial_message = True

        percent = int((current / total) * 100) if total > 0 else 100
        click.echo(f"\rIndexing files: {current}/{total} ({percent}%)", nl=False)

        if current >= total and status_context is None:
            click.echo()
            status_context = console.status("[bold green]Linking graph...")
            status_context.__enter__()

    def cleanup():
        nonlocal status_context
        if status_context is not None:
            status_context.__exit__(None, None, None)
            status_context = None

    return progress_callback, cleanup

"""CLI entry point for loggraph."""

import asyncio
from pathlib import Path
from typing import Optional

import click
from rich.console import Console

from loggraph import __version__
from loggraph.config import DEFAULT_CONFIG_PATH, ConfigManager
from loggraph.models.config import Config, LogseqConfig
from loggraph.services.document_store import BLOCKS, FILES, ChromaDocumentStore
from loggraph.services.exceptions import LoggraphError
from loggraph.services.indexer import Indexer, SkippedFile
from loggraph.utils.index_progress import create_index_progress_callback
from loggraph.utils.logging import configure_logging, get_logger


logger = get_logger(__name__)
console = Console()


def load_config(config_path: Optional[Path] = None, graph: Optional[Path] = None) -> Config:
    """
    Load configuration, optionally overriding the graph path.

    When a graph is given on the command line and no config file exists at
    the default location, defaults are used for everything else.

    Args:
        config_path: Explicit config file (default: ~/.config/loggraph/config.yaml)
        graph: Graph directory overriding logseq.graph_path

    Returns:
        Validated Config instance

    Raises:
        click.ClickException: If config is missing, has invalid permissions, or validation fails
    """
    path = config_path or DEFAULT_CONFIG_PATH

    try:
        if graph is not None and config_path is None and not path.exists():
            return Config(logseq=LogseqConfig(graph_path=str(graph)))

        config = ConfigManager.load_from_path(path).config
        if graph is not None:
            config = config.model_copy(update={"logseq": LogseqConfig(graph_path=str(graph))})
        return config
    except (FileNotFoundError, PermissionError) as e:
        raise click.ClickException(str(e))
    except ValueError as e:
        logger.error("config_validation_error", error=str(e))
        raise click.ClickException(f"Configuration validation failed:\n{e}")


def create_store(config: Config) -> ChromaDocumentStore:
    """Open the document store for the configured graph."""
    store_config = config.store
    return ChromaDocumentStore(
        graph_path=Path(config.logseq.graph_path),
        db_path=Path(store_config.db_path) if store_config.db_path else None,
        endpoint=str(store_config.endpoint) if store_config.endpoint else None,
        api_key=store_config.api_key,
        embedding_model=store_config.embedding_model,
    )


@click.group()
@click.version_option(version=__version__, prog_name="loggraph")
def cli():
    """loggraph: Index a Logseq graph into a knowledge graph and a searchable document store."""
    configure_logging()


@cli.command()
@click.argument(
    "graph",
    required=False,
    type=click.Path(exists=True, file_okay=False, path_type=Path),
)
@click.option(
    "--config",
    "config_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Path to configuration file (default: ~/.config/loggraph/config.yaml)",
)
@click.option("--no-blocks", is_flag=True, help="Index pages only, not their blocks")
@click.option("--lenient", is_flag=True, help="Warn instead of failing on links to missing pages")
@click.option("--reindex", is_flag=True, help="Clear the store before indexing")
def index(
    graph: Optional[Path],
    config_path: Optional[Path],
    no_blocks: bool,
    lenient: bool,
    reindex: bool,
):
    """
    Index every markdown file of a Logseq graph.

    GRAPH defaults to logseq.graph_path from the config file. Files that
    cannot be read or parsed are reported and skipped; any other error stops
    the run.

    Examples:
        loggraph index ~/Documents/logseq
        loggraph index --no-blocks --lenient
    """
    config = load_config(config_path, graph)
    indexing = config.indexing
    if no_blocks or lenient:
        indexing = indexing.model_copy(update={
            "index_blocks": indexing.index_blocks and not no_blocks,
            "strict_links": indexing.strict_links and not lenient,
        })
    graph_path = Path(config.logseq.graph_path)

    logger.info("index_command_started", graph_path=str(graph_path), reindex=reindex)

    def report_skip(skipped: SkippedFile) -> None:
        click.echo(f"\nError: {skipped.path}: {skipped.reason}", err=True)

    async def run_index():
        store = create_store(config)
        progress_callback, cleanup = create_index_progress_callback(console, reindex=reindex)
        try:
            if reindex:
                store.clear()
            indexer = Indexer(store, config=indexing)
            return await indexer.index_files(
                graph_path,
                progress_callback=progress_callback,
                on_skip=report_skip,
            )
        finally:
            cleanup()
            await store.close()

    try:
        report = asyncio.run(run_index())
    except (LoggraphError, ValueError) as e:
        logger.error("index_command_failed", error=str(e))
        raise click.ClickException(f"Indexing failed: {e}")

    click.echo(
        f"Indexed {report.files_indexed} files and {report.blocks_indexed} blocks "
        f"({len(report.skipped)} skipped) in {report.duration_seconds:.1f}s"
    )
    click.echo(f"Graph: {report.nodes} nodes, {report.edges} edges")
    logger.info("index_command_completed")


@cli.command()
@click.argument("query")
@click.option(
    "--config",
    "config_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Path to configuration file (default: ~/.config/loggraph/config.yaml)",
)
@click.option("--files", "search_files", is_flag=True, help="Search page titles instead of blocks")
@click.option("--limit", type=click.IntRange(min=1), default=10, show_default=True)
def search(query: str, config_path: Optional[Path], search_files: bool, limit: int):
    """
    Find indexed blocks (or pages) whose text contains QUERY.

    Examples:
        loggraph search "meeting notes"
        loggraph search projects --files
    """
    config = load_config(config_path)

    async def run_search():
        store = create_store(config)
        try:
            if search_files:
                return [(file.title, file.path) for file in await store.search(FILES, query, limit)]

            results = []
            for block in await store.search(BLOCKS, query, limit):
                file = await store.get_file(block.file_id)
                results.append((file.title, block.content))
            return results
        finally:
            await store.close()

    try:
        results = asyncio.run(run_search())
    except LoggraphError as e:
        logger.error("search_command_failed", error=str(e))
        raise click.ClickException(f"Search failed: {e}")

    if not results:
        click.echo("No results found.")
        return

    for idx, (title, snippet) in enumerate(results, 1):
        click.echo(f"{idx}. {title}")
        click.echo("   " + "\n   ".join(snippet.splitlines()))
        click.echo()


def main():
    """Main entry point for setuptools console script."""
    cli()


if __name__ == "__main__":
    main()

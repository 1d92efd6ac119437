"""Indexer: ingest a Logseq graph into the document store and knowledge graph.

One pass runs in two phases:

1. Ingest: files are processed one at a time. For each file the File and
   Block entities are built, their nodes inserted into the graph, and their
   upserts submitted to the store without waiting; the pass then waits for
   that file's writes before moving on.
2. Link: once every file is ingested, every node's entity is read back from
   the store and its edges are resolved. Deferring edges until all nodes
   exist lets a block link to a page that appears later in the walk.
"""

import asyncio
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Optional

import structlog
from logseq_outline.parser import Node, NodeKind

from loggraph.graph.knowledge_graph import KnowledgeGraph
from loggraph.graph.linking import link_block, link_file
from loggraph.models.config import IndexingConfig
from loggraph.models.entities import Block, BlockNode, File, FileNode
from loggraph.parsing.block import BlockBuilder
from loggraph.parsing.file import FileBuilder
from loggraph.services.document_store import BLOCKS, FILES, DocumentStore
from loggraph.services.exceptions import DuplicateBlockIdError, InputError
from loggraph.services.walker import DocumentError, ParsedDocument, walk_documents

logger = structlog.get_logger()


@dataclass
class SkippedFile:
    """A file left out of the index and why."""

    path: str
    reason: str


@dataclass
class IndexingReport:
    """Outcome of one indexing pass."""

    files_indexed: int = 0
    blocks_indexed: int = 0
    skipped: list[SkippedFile] = field(default_factory=list)
    nodes: int = 0
    edges: int = 0
    duration_seconds: float = 0.0


def top_level_items(root: Node) -> list[Node]:
    """List items at the top of a page, inside a wrapping list or bare."""
    items = []
    for child in root.children:
        if child.kind is NodeKind.LIST:
            items.extend(item for item in child.children if item.kind is NodeKind.LIST_ITEM)
        elif child.kind is NodeKind.LIST_ITEM:
            items.append(child)
    return items


def build_block_batches(root: Node, content: str, file_id: str) -> list[list[Block]]:
    """Build the blocks of a page, one batch per top-level item."""
    return [
        BlockBuilder(file_id).build(content, item)
        for item in top_level_items(root)
    ]


class Indexer:
    """Drives an ingestion pass over a Logseq graph.

    Attributes:
        store: Document store receiving File and Block entities
        config: Indexing options
        graph: Knowledge graph populated by the pass
    """

    def __init__(
        self,
        store: DocumentStore,
        config: Optional[IndexingConfig] = None,
        graph: Optional[KnowledgeGraph] = None,
    ):
        self.store = store
        self.config = config or IndexingConfig()
        self.graph = graph if graph is not None else KnowledgeGraph()

    async def index_files(
        self,
        graph_path: Path,
        index_blocks: Optional[bool] = None,
        progress_callback: Optional[Callable[[int, int], None]] = None,
        on_skip: Optional[Callable[[SkippedFile], None]] = None,
    ) -> IndexingReport:
        """
        Index every markdown file under graph_path, then link the graph.

        Files that cannot be read, parsed or built are reported and skipped.
        Store and linking failures abort the pass.

        Args:
            graph_path: Root directory of the graph
            index_blocks: Index list items as Blocks (default: from config)
            progress_callback: Optional callback(current, total) after each file
            on_skip: Optional callback for each skipped file

        Returns:
            IndexingReport for the pass

        Raises:
            ValueError: If graph_path doesn't exist or isn't a directory
            StoreError: If a store read or write fails
            LinkError: If an edge cannot be resolved (strict mode)
        """
        if index_blocks is None:
            index_blocks = self.config.index_blocks

        start_time = time.monotonic()
        report = IndexingReport()
        documents = list(walk_documents(graph_path))

        logger.info(
            "indexing_started",
            graph_path=str(graph_path),
            total_files=len(documents),
            index_blocks=index_blocks,
        )

        for idx, document in enumerate(documents, 1):
            if isinstance(document, DocumentError):
                self._skip(report, str(document.path), document.error, on_skip)
            else:
                try:
                    _, blocks = await self.index_file(document, index_blocks)
                except InputError as e:
                    self._skip(report, str(document.path), e.message, on_skip)
                else:
                    report.files_indexed += 1
                    report.blocks_indexed += len(blocks)

            if progress_callback:
                progress_callback(idx, len(documents))

        await self.link()

        report.nodes = len(self.graph)
        report.edges = self.graph.edge_count
        report.duration_seconds = time.monotonic() - start_time

        logger.info(
            "indexing_completed",
            files_indexed=report.files_indexed,
            blocks_indexed=report.blocks_indexed,
            skipped=len(report.skipped),
            nodes=report.nodes,
            edges=report.edges,
            duration=report.duration_seconds,
        )
        return report

    async def index_file(
        self, document: ParsedDocument, index_blocks: bool = True
    ) -> tuple[File, list[Block]]:
        """
        Ingest one parsed file: insert its nodes and store its entities.

        All entities are built before anything is inserted, so a file that
        fails to build leaves no trace in the graph or store.

        Args:
            document: Parsed file
            index_blocks: Also index the file's list items

        Returns:
            The File and its Blocks

        Raises:
            InputError: If the file cannot be turned into entities
                (including a block id that is already in the graph)
            StoreError: If a store write fails
        """
        file = FileBuilder(
            document.path, stable_ids=self.config.stable_file_ids
        ).build(document.content, document.outline.root)

        batches = []
        if index_blocks:
            batches = build_block_batches(document.outline.root, document.content, file.id)
        self._check_block_ids(batches, file.path)

        self.graph.add_node(file.to_node())
        for batch in batches:
            for block in batch:
                self.graph.add_node(block.to_node())

        pending = [self.store.submit_upsert(FILES, [file])]
        pending.extend(self.store.submit_upsert(BLOCKS, batch) for batch in batches)
        await asyncio.gather(*pending)

        blocks = [block for batch in batches for block in batch]
        logger.debug("file_indexed", path=file.path, file_id=file.id, blocks=len(blocks))
        return file, blocks

    async def index_blocks(self, root: Node, content: str, file_id: str) -> list[Block]:
        """
        Index the blocks of one page under an already known file id.

        Args:
            root: ROOT node of the parsed page
            content: Raw page text
            file_id: Id of the owning File

        Returns:
            Indexed blocks (children before parents within each top-level item)

        Raises:
            DuplicateBlockIdError: If a block id is already in the graph
        """
        batches = build_block_batches(root, content, file_id)
        self._check_block_ids(batches)
        for batch in batches:
            for block in batch:
                self.graph.add_node(block.to_node())

        await asyncio.gather(*(self.store.submit_upsert(BLOCKS, batch) for batch in batches))
        return [block for batch in batches for block in batch]

    async def link(self) -> None:
        """
        Resolve the edges of every node in the graph.

        Each entity is re-read from the store by id; blocks are linked
        before files. Existing edges are not duplicated, so linking again
        is harmless.

        Raises:
            StoreError: If an entity cannot be read back
            LinkError: If an edge cannot be resolved (strict mode)
        """
        nodes = self.graph.nodes()
        block_ids = [node.id for node in nodes if isinstance(node, BlockNode)]
        file_ids = [node.id for node in nodes if isinstance(node, FileNode)]
        strict = self.config.strict_links

        logger.info("linking_started", blocks=len(block_ids), files=len(file_ids), strict=strict)

        for block_id in block_ids:
            link_block(self.graph, await self.store.get_block(block_id), strict=strict)

        for file_id in file_ids:
            link_file(self.graph, await self.store.get_file(file_id), strict=strict)

        logger.info("linking_completed", edges=self.graph.edge_count)

    def _check_block_ids(self, batches: list[list[Block]], path: Optional[str] = None) -> None:
        """Reject blocks whose ids collide with existing nodes or each other."""
        seen = set()
        for batch in batches:
            for block in batch:
                if block.id in seen or self.graph.find_by_id(block.id) is not None:
                    raise DuplicateBlockIdError(f"Duplicate block id {block.id}", path=path)
                seen.add(block.id)

    @staticmethod
    def _skip(
        report: IndexingReport,
        path: str,
        reason: str,
        on_skip: Optional[Callable[[SkippedFile], None]],
    ) -> None:
        skipped = SkippedFile(path=path, reason=reason)
        report.skipped.append(skipped)
        logger.warning("file_skipped", path=path, reason=reason)
        if on_skip:
            on_skip(skipped)

"""Edge resolution for indexed entities.

Each entity connects its own node to:
- its parent block (blocks only)
- every file whose title equals one of its tags
- every file whose title equals one of its wikilinks

With strict=True an unresolved target raises MissingTargetError; with
strict=False it is logged and skipped. A missing own node always raises.
"""

from typing import Iterable, Union

import structlog

from loggraph.graph.knowledge_graph import KnowledgeGraph
from loggraph.models.entities import Block, File
from loggraph.services.exceptions import MissingNodeError, MissingTargetError

logger = structlog.get_logger()


def _own_index(graph: KnowledgeGraph, entity: Union[Block, File]) -> int:
    index = graph.find_by_id(entity.id)
    if index is None:
        raise MissingNodeError(entity.id)
    return index


def _unresolved(entity_id: str, relation: str, target: str, strict: bool) -> None:
    if strict:
        raise MissingTargetError(entity_id, relation, target)
    logger.warning("link_target_missing", entity_id=entity_id, relation=relation, target=target)


def _link_titles(
    graph: KnowledgeGraph,
    source: int,
    entity_id: str,
    relation: str,
    titles: Iterable[str],
    strict: bool,
) -> None:
    for title in titles:
        targets = graph.find_files_by_title(title)
        if not targets:
            _unresolved(entity_id, relation, title, strict)
            continue
        for target in targets:
            graph.add_edge(source, target)


def link_block(graph: KnowledgeGraph, block: Block, strict: bool = True) -> None:
    """Add a block's parent, tag and wikilink edges.

    Raises:
        MissingNodeError: If the block's own node is not in the graph
        MissingTargetError: If strict and a target is not in the graph
    """
    source = _own_index(graph, block)

    if block.parent_block_id is not None:
        parent = graph.find_by_id(block.parent_block_id)
        if parent is None:
            _unresolved(block.id, "parent", block.parent_block_id, strict)
        else:
            graph.add_edge(source, parent)

    _link_titles(graph, source, block.id, "tag", block.tags, strict)
    _link_titles(graph, source, block.id, "wikilink", block.wikilinks, strict)


def link_file(graph: KnowledgeGraph, file: File, strict: bool = True) -> None:
    """Add a file's tag and wikilink edges.

    Raises:
        MissingNodeError: If the file's own node is not in the graph
        MissingTargetError: If strict and a target is not in the graph
    """
    source = _own_index(graph, file)
    _link_titles(graph, source, file.id, "tag", file.tags, strict)
    _link_titles(graph, source, file.id, "wikilink", file.wikilinks, strict)

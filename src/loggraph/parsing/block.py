"""Build Block entities from list items of a parsed outline."""

from typing import Optional

from logseq_outline.parser import Node, NodeKind

from loggraph.models.entities import Block
from loggraph.parsing.annotations import (
    extract_id,
    extract_properties,
    extract_tags,
    extract_wikilinks,
)
from loggraph.services.exceptions import InvariantViolationError, MissingPositionError


class BlockBuilder:
    """Turns one list item and its subtree into a flat list of Blocks.

    Attributes:
        file_id: Id of the File owning the blocks
        parent_block_id: Id of the enclosing block (None for top-level items)
    """

    def __init__(self, file_id: str, parent_block_id: Optional[str] = None):
        self.file_id = file_id
        self.parent_block_id = parent_block_id

    def build(self, content: str, list_item: Node) -> list[Block]:
        """Build blocks for a list item and all of its descendants.

        Descendants come first and the item's own Block is last, so every
        block precedes its ancestors.

        Args:
            content: Full source text the item's offsets refer to
            list_item: LIST_ITEM node

        Returns:
            Non-empty list of blocks

        Raises:
            MissingPositionError: If the item or a nested list has no position
            InvariantViolationError: If the node is not a list item
        """
        if list_item.kind is not NodeKind.LIST_ITEM:
            raise InvariantViolationError(
                f"Expected a list item, got {list_item.kind.value}"
            )

        own_text = self._own_text(content, list_item)
        block_id = extract_id(own_text)

        blocks = []
        for child in list_item.children:
            if child.kind is not NodeKind.LIST:
                continue
            for item in child.children:
                if item.kind is NodeKind.LIST_ITEM:
                    builder = BlockBuilder(self.file_id, parent_block_id=block_id)
                    blocks.extend(builder.build(content, item))

        blocks.append(
            Block(
                id=block_id,
                content=own_text,
                file_id=self.file_id,
                parent_block_id=self.parent_block_id,
                properties=extract_properties(own_text),
                tags=extract_tags(own_text),
                wikilinks=extract_wikilinks(own_text),
            )
        )
        return blocks

    @staticmethod
    def _own_text(content: str, list_item: Node) -> str:
        """Slice the item's text up to its first nested list, trimmed."""
        if list_item.position is None:
            raise MissingPositionError("List item has no position information")

        end = list_item.position.end
        nested = list_item.first_child(NodeKind.LIST)
        if nested is not None:
            if nested.position is None:
                raise MissingPositionError("Nested list has no position information")
            end = nested.position.start

        return content[list_item.position.start:end].strip()

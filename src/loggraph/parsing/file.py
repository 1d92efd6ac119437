"""Build File entities from parsed pages."""

import uuid
from pathlib import Path

from logseq_outline.graph import page_title_from_path
from logseq_outline.parser import Node, NodeKind

from loggraph.models.entities import File
from loggraph.parsing.annotations import (
    extract_declared_tags,
    extract_page_properties,
    extract_tags,
    extract_title_property,
    extract_wikilinks,
    generate_id,
)
from loggraph.services.exceptions import MalformedDocumentError

# Namespace for path-derived file ids
FILE_ID_NAMESPACE = uuid.uuid5(uuid.NAMESPACE_URL, "loggraph:file")


def stable_file_id(path: str) -> str:
    """Derive a file id that stays the same across runs for the same path."""
    return str(uuid.uuid5(FILE_ID_NAMESPACE, path))


def get_top_text(root: Node) -> str:
    """Collect text of the paragraphs that precede the first list.

    This leading section is where page-level properties (tags::, title::,
    key:: value) are declared.

    Args:
        root: ROOT node of the page

    Returns:
        Text of the leading paragraphs joined with newlines
    """
    parts = []
    for child in root.children:
        if child.kind in (NodeKind.LIST, NodeKind.LIST_ITEM):
            break
        if child.kind is NodeKind.PARAGRAPH:
            parts.extend(leaf.value or "" for leaf in child.text_leaves())
    return "\n".join(parts)


class FileBuilder:
    """Builds the File entity for one page.

    Attributes:
        path: Path of the page file
        stable_ids: Derive the id from the path instead of generating one
    """

    def __init__(self, path: Path, stable_ids: bool = False):
        self.path = path
        self.stable_ids = stable_ids

    def build(self, content: str, root: Node) -> File:
        """Build the File for a page.

        Page properties and tags:: are read from the leading text only;
        inline tags and wikilinks are read from the whole page.

        Args:
            content: Raw page text
            root: ROOT node of the parsed page

        Returns:
            File entity

        Raises:
            MalformedDocumentError: If the page tree has no children
        """
        path = str(self.path)
        if not root.children:
            raise MalformedDocumentError("Document has no content", path=path)

        top_text = get_top_text(root)

        return File(
            id=stable_file_id(path) if self.stable_ids else generate_id(),
            path=path,
            title=page_title_from_path(self.path),
            properties=extract_page_properties(top_text),
            wikilinks=extract_wikilinks(content),
            tags=extract_declared_tags(top_text) + extract_tags(content),
            display_title=extract_title_property(top_text),
        )

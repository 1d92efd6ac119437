"""Indexed entities: files, blocks and the graph nodes that stand for them."""

import json
from typing import Literal, Optional, Union

from pydantic import BaseModel, Field


class StoreRecord(BaseModel):
    """One document-store row: id, searchable text and scalar metadata."""

    id: str
    document: str
    metadata: dict[str, Union[str, int, float, bool]]


def _dumps(value) -> str:
    return json.dumps(value, ensure_ascii=False)


class File(BaseModel):
    """One indexed Logseq page or journal.

    Attributes:
        id: Entity id (fresh per build unless stable file ids are enabled)
        path: Path of the source file, used verbatim
        title: Page title derived from the file name ("a___b.md" -> "a/b")
        properties: Page properties from the leading text, minus title:: and tags::
        wikilinks: Titles referenced as [[links]] anywhere in the page
        tags: tags:: values followed by inline #tags
        display_title: Value of a title:: page property, if any
    """

    id: str
    path: str
    title: str
    properties: dict[str, str] = Field(default_factory=dict)
    wikilinks: list[str] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)
    display_title: Optional[str] = None

    model_config = {"frozen": True}

    def to_node(self) -> "FileNode":
        return FileNode(id=self.id, title=self.title)

    def to_record(self) -> StoreRecord:
        """Flatten into a store record (list/map fields JSON encoded)."""
        metadata = {
            "path": self.path,
            "title": self.title,
            "properties": _dumps(self.properties),
            "wikilinks": _dumps(self.wikilinks),
            "tags": _dumps(self.tags),
        }
        if self.display_title is not None:
            metadata["display_title"] = self.display_title
        return StoreRecord(id=self.id, document=self.title, metadata=metadata)

    @classmethod
    def from_record(cls, record: StoreRecord) -> "File":
        metadata = record.metadata
        return cls(
            id=record.id,
            path=metadata["path"],
            title=metadata["title"],
            properties=json.loads(metadata["properties"]),
            wikilinks=json.loads(metadata["wikilinks"]),
            tags=json.loads(metadata["tags"]),
            display_title=metadata.get("display_title"),
        )


class Block(BaseModel):
    """One list item of a page, without its nested children's text.

    Attributes:
        id: Value of an id:: property, or a generated id
        content: Trimmed source text of the item up to its first nested list
        file_id: Id of the File the block belongs to
        parent_block_id: Id of the enclosing block (None for top-level items)
        properties: Block properties, minus id::
        tags: Inline #tags
        wikilinks: Inline [[links]]
    """

    id: str
    content: str
    file_id: str
    parent_block_id: Optional[str] = None
    properties: dict[str, str] = Field(default_factory=dict)
    tags: list[str] = Field(default_factory=list)
    wikilinks: list[str] = Field(default_factory=list)

    model_config = {"frozen": True}

    def to_node(self) -> "BlockNode":
        return BlockNode(id=self.id)

    def to_record(self) -> StoreRecord:
        """Flatten into a store record (list/map fields JSON encoded)."""
        metadata = {
            "file_id": self.file_id,
            "properties": _dumps(self.properties),
            "tags": _dumps(self.tags),
            "wikilinks": _dumps(self.wikilinks),
        }
        # ChromaDB metadata values cannot be None
        if self.parent_block_id is not None:
            metadata["parent_block_id"] = self.parent_block_id
        return StoreRecord(id=self.id, document=self.content, metadata=metadata)

    @classmethod
    def from_record(cls, record: StoreRecord) -> "Block":
        metadata = record.metadata
        return cls(
            id=record.id,
            content=record.document,
            file_id=metadata["file_id"],
            parent_block_id=metadata.get("parent_block_id"),
            properties=json.loads(metadata["properties"]),
            tags=json.loads(metadata["tags"]),
            wikilinks=json.loads(metadata["wikilinks"]),
        )


class FileNode(BaseModel):
    """Graph node standing for a File."""

    kind: Literal["file"] = "file"
    id: str
    title: str

    model_config = {"frozen": True}


class BlockNode(BaseModel):
    """Graph node standing for a Block."""

    kind: Literal["block"] = "block"
    id: str

    model_config = {"frozen": True}


GraphNode = Union[FileNode, BlockNode]

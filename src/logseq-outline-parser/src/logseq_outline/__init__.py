"""Logseq outline parser - Parse Logseq markdown files into a node tree.

This package provides tools for parsing Logseq's outline-based markdown format
into a positioned node tree (root, list, list item, paragraph, text) and for
navigating Logseq graph directories.

Key features:
- Parse Logseq markdown into an mdast-like tree of Node objects
- Every node records character offsets into the source text
- Detect indentation style (spaces or tabs) from the source
- Encode and decode namespaced page titles ("a/b" <-> "a___b.md")

Example:
    >>> from logseq_outline import LogseqOutline
    >>> outline = LogseqOutline.parse("- My bullet\\n  - Child bullet")
    >>> item = outline.lists[0].children[0]
    >>> outline.slice(item)
    '- My bullet\\n  - Child bullet'
"""

from logseq_outline.parser import LogseqOutline, Node, NodeKind, Position
from logseq_outline.graph import GraphPaths, page_file_name, page_title_from_path

__version__ = "0.1.0"

__all__ = [
    "LogseqOutline",
    "Node",
    "NodeKind",
    "Position",
    "GraphPaths",
    "page_file_name",
    "page_title_from_path",
]

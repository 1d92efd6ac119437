"""Logseq graph path operations.

This module provides utilities for navigating a Logseq graph directory and
for the file-name encoding Logseq uses for namespaced page titles.
"""

from pathlib import Path
from typing import Iterator

# Logseq stores "a/b" pages as "a___b.md" since page files live in a flat directory
NAMESPACE_SEPARATOR = "___"
PAGE_EXTENSION = ".md"
LOGSEQ_DIR = "logseq"


def page_title_from_path(path: Path) -> str:
    """Derive a page title from a page file path.

    Args:
        path: Path to page file (e.g., pages/tests___parsing___basic.md)

    Returns:
        Page title (e.g., "tests/parsing/basic")
    """
    name = Path(path).name
    if name.endswith(PAGE_EXTENSION):
        name = name[: -len(PAGE_EXTENSION)]
    return name.replace(NAMESPACE_SEPARATOR, "/")


def page_file_name(title: str) -> str:
    """Encode a page title as a page file name.

    Inverse of page_title_from_path for titles without a literal "___".

    Args:
        title: Page title (e.g., "Projects/Acme")

    Returns:
        File name (e.g., "Projects___Acme.md")
    """
    return title.replace("/", NAMESPACE_SEPARATOR) + PAGE_EXTENSION


class GraphPaths:
    """Utility class for Logseq graph path operations.

    Attributes:
        graph_path: Root path to Logseq graph directory
    """

    def __init__(self, graph_path: Path):
        """Initialize with graph root path.

        Args:
            graph_path: Path to Logseq graph directory

        Raises:
            ValueError: If graph_path doesn't exist or isn't a directory
        """
        if not graph_path.exists():
            raise ValueError(f"Graph path does not exist: {graph_path}")
        if not graph_path.is_dir():
            raise ValueError(f"Graph path is not a directory: {graph_path}")

        self.graph_path = graph_path

    @property
    def logseq_dir(self) -> Path:
        """Get Logseq's own directory (config, bak/ and version-files/ copies)."""
        return self.graph_path / LOGSEQ_DIR

    def iter_markdown_files(self) -> Iterator[Path]:
        """Yield every markdown file under the graph root.

        Walks the whole tree in sorted order so repeated runs see files in
        the same sequence. The logseq/ directory is skipped: its backups
        repeat the block ids of the live pages.

        Yields:
            Paths of *.md files
        """
        for path in sorted(self.graph_path.rglob(f"*{PAGE_EXTENSION}")):
            if self.logseq_dir in path.parents:
                continue
            if path.is_file():
                yield path

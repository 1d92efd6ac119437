"""Enumerate and parse the markdown files of a Logseq graph."""

from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, Union

import structlog
from logseq_outline.graph import GraphPaths
from logseq_outline.parser import LogseqOutline

logger = structlog.get_logger()


@dataclass
class ParsedDocument:
    """A markdown file read and parsed successfully.

    Attributes:
        path: File path
        outline: Parsed outline (node tree)
        content: Raw file text the outline's offsets refer to
    """

    path: Path
    outline: LogseqOutline
    content: str


@dataclass
class DocumentError:
    """A markdown file that could not be read or parsed.

    Attributes:
        path: File path
        error: Human-readable reason
    """

    path: Path
    error: str


def walk_documents(graph_path: Path) -> Iterator[Union[ParsedDocument, DocumentError]]:
    """Yield every markdown file under a graph, parsed.

    Unreadable or unparseable files are yielded as DocumentError values so
    the caller decides whether to skip them.

    Args:
        graph_path: Root directory to walk

    Yields:
        ParsedDocument or DocumentError, in sorted path order

    Raises:
        ValueError: If graph_path doesn't exist or isn't a directory
    """
    graph_paths = GraphPaths(graph_path)

    for path in graph_paths.iter_markdown_files():
        try:
            # utf-8-sig strips a leading byte-order mark
            content = path.read_text(encoding="utf-8-sig")
        except (OSError, UnicodeDecodeError) as e:
            logger.warning("document_read_failed", path=str(path), error=str(e))
            yield DocumentError(path=path, error=str(e))
            continue

        try:
            outline = LogseqOutline.parse(content)
        except ValueError as e:
            logger.warning("document_parse_failed", path=str(path), error=str(e))
            yield DocumentError(path=path, error=str(e))
            continue

        yield ParsedDocument(path=path, outline=outline, content=content)

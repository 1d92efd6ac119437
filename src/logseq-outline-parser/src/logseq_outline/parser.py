"""Logseq markdown parser for outline-based documents.

This module parses Logseq's outline format, which uses indented bullets
(2 spaces per level by default) with properties and page links, into a small
mdast-like node tree. Every node records the character offsets of the source
text it covers so callers can slice exact spans back out of the document.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterator, Optional


class NodeKind(Enum):
    """Closed set of node kinds produced by the parser."""

    ROOT = "root"
    LIST = "list"
    LIST_ITEM = "listItem"
    PARAGRAPH = "paragraph"
    TEXT = "text"


@dataclass
class Position:
    """Character offsets of a node in the source text.

    Attributes:
        start: Offset of the first character covered by the node
        end: Offset one past the last character covered by the node
    """

    start: int
    end: int


@dataclass
class Node:
    """Single node of the outline tree.

    Attributes:
        kind: Node kind
        children: Child nodes in document order
        value: Text value (TEXT nodes only)
        position: Source offsets (None for synthesized nodes)
    """

    kind: NodeKind
    children: list["Node"] = field(default_factory=list)
    value: Optional[str] = None
    position: Optional[Position] = None

    def text_leaves(self) -> Iterator["Node"]:
        """Yield all TEXT descendants in document order."""
        for child in self.children:
            if child.kind is NodeKind.TEXT:
                yield child
            else:
                yield from child.text_leaves()

    def first_child(self, kind: NodeKind) -> Optional["Node"]:
        """Return the first direct child of the given kind, if any."""
        for child in self.children:
            if child.kind is kind:
                return child
        return None


@dataclass
class LogseqOutline:
    """Parsed representation of Logseq's outline-based markdown structure.

    Attributes:
        root: ROOT node of the document tree
        source_text: Original markdown (offsets in the tree index into it)
        indent_str: Indentation string (detected from source, default "  ")
    """

    root: Node
    source_text: str
    indent_str: str = "  "

    @classmethod
    def parse(cls, markdown: str) -> "LogseqOutline":
        """Parse Logseq markdown into a positioned node tree.

        Leading lines before the first bullet become PARAGRAPH nodes (split
        at blank lines). Bullets become LIST_ITEM nodes wrapped in LIST
        nodes; a bullet's own text becomes a PARAGRAPH child and deeper
        bullets a nested LIST child.

        Args:
            markdown: Logseq markdown content

        Returns:
            Parsed LogseqOutline
        """
        root = Node(kind=NodeKind.ROOT, position=Position(0, len(markdown)))
        if not markdown.strip():
            return cls(root=root, source_text=markdown)

        lines = markdown.split("\n")
        indent_str = _detect_indentation(lines)
        root.children = _parse_nodes(lines, indent_str)

        return cls(root=root, source_text=markdown, indent_str=indent_str)

    @property
    def lists(self) -> list[Node]:
        """Top-level LIST nodes of the document."""
        return [child for child in self.root.children if child.kind is NodeKind.LIST]

    def slice(self, node: Node) -> str:
        """Return the exact source text covered by a positioned node."""
        if node.position is None:
            raise ValueError(f"Node has no position: {node.kind.value}")
        return self.source_text[node.position.start:node.position.end]


@dataclass
class _Line:
    """One source line and the offset it starts at."""

    text: str
    offset: int

    @property
    def leading(self) -> str:
        return self.text[: len(self.text) - len(self.text.lstrip())]

    @property
    def end(self) -> int:
        return self.offset + len(self.text.rstrip())


def _is_bullet_line(line: str) -> bool:
    """Check if a line is a bullet (including empty bullets).

    Args:
        line: Line to check

    Returns:
        True if line is a bullet, False otherwise
    """
    stripped = line.lstrip()
    return stripped.startswith("-") and (
        stripped == "-" or  # Empty bullet
        stripped.startswith("- ")  # Bullet with content
    )


def _index_lines(lines: list[str]) -> list[_Line]:
    indexed = []
    offset = 0
    for line in lines:
        indexed.append(_Line(text=line, offset=offset))
        offset += len(line) + 1
    return indexed


def _text_node(values: list[str], start: int, end: int) -> Node:
    """Build a PARAGRAPH with a single TEXT child spanning start..end."""
    return Node(
        kind=NodeKind.PARAGRAPH,
        children=[
            Node(kind=NodeKind.TEXT, value="\n".join(values), position=Position(start, end))
        ],
        position=Position(start, end),
    )


def _frontmatter_paragraphs(lines: list[_Line]) -> list[Node]:
    """Split lines before the first bullet into paragraphs at blank lines."""
    paragraphs = []
    current: list[_Line] = []
    for line in lines + [_Line(text="", offset=-1)]:
        if line.text.strip():
            current.append(line)
        elif current:
            paragraphs.append(
                _text_node(
                    [own.text.strip() for own in current],
                    current[0].offset + len(current[0].leading),
                    max(own.end for own in current),
                )
            )
            current = []
    return paragraphs


def _nested_list(item: Node) -> Node:
    """Return the nested LIST of an item, creating it if needed."""
    nested = item.first_child(NodeKind.LIST)
    if nested is None:
        nested = Node(kind=NodeKind.LIST)
        item.children.append(nested)
    return nested


def _close_positions(node: Node) -> int:
    """Fill in end offsets of LIST/LIST_ITEM nodes bottom-up.

    Returns:
        End offset of the node
    """
    if node.kind is NodeKind.LIST:
        ends = [_close_positions(child) for child in node.children]
        node.position = Position(node.children[0].position.start, max(ends))
        return node.position.end

    if node.kind is NodeKind.LIST_ITEM:
        end = node.position.end
        for child in node.children:
            if child.kind is NodeKind.LIST:
                end = max(end, _close_positions(child))
        node.position = Position(node.position.start, end)
        return end

    return node.position.end


def _parse_nodes(lines: list[str], indent_str: str = "  ") -> list[Node]:
    """Parse lines into ROOT children.

    A list item consists of:
    - A bullet line (starts with "- " after leading whitespace)
    - All continuation lines until the next bullet (or end of file)

    Lines before the first bullet are captured as frontmatter paragraphs
    (page-level properties).

    Args:
        lines: Markdown lines
        indent_str: Indentation string (e.g., "  ", "\\t", "    ")

    Returns:
        ROOT children in document order
    """
    indexed = _index_lines(lines)
    frontmatter: list[_Line] = []
    root_list: Optional[Node] = None
    stack: list[tuple[int, Node]] = []  # (indent_level, LIST_ITEM) of open parents
    found_first_bullet = False
    in_code_fence = False

    i = 0
    while i < len(indexed):
        line = indexed[i]

        # Track code fence state
        if line.text.lstrip().startswith("```"):
            in_code_fence = not in_code_fence

        if in_code_fence or not _is_bullet_line(line.text):
            if not found_first_bullet:
                frontmatter.append(line)
            # else: orphan line after blocks started - skip it
            i += 1
            continue

        found_first_bullet = True
        leading = line.leading
        indent_level = leading.count(indent_str)
        stripped = line.text.lstrip()
        first_line = "" if stripped == "-" else stripped[2:]

        # Collect continuation lines
        own_lines = [line]
        j = i + 1
        continuation_in_code_fence = first_line.startswith("```")
        while j < len(indexed):
            next_line = indexed[j]

            if next_line.text.lstrip().startswith("```"):
                continuation_in_code_fence = not continuation_in_code_fence

            if not continuation_in_code_fence and _is_bullet_line(next_line.text):
                next_leading = next_line.leading
                next_indent_level = next_leading.count(indent_str)

                # Deeper bullet is a child
                if next_indent_level > indent_level:
                    break

                # Same level or shallower, exactly on a level boundary
                if next_leading == indent_str * next_indent_level:
                    break
                # Otherwise mixed indentation - treat as continuation content

            own_lines.append(next_line)
            j += 1

        continuation = [own for own in own_lines[1:] if own.text.strip()]
        item_start = line.offset + len(leading)
        item_end = max([line.end] + [own.end for own in continuation])
        item = Node(kind=NodeKind.LIST_ITEM, position=Position(item_start, item_end))

        values = [own.text.strip() for own in continuation]
        if first_line.strip():
            item.children.append(
                _text_node([first_line.strip()] + values, item_start + 2, item_end)
            )
        elif continuation:
            first = continuation[0]
            item.children.append(
                _text_node(values, first.offset + len(first.leading), item_end)
            )

        # Attach to parent by indent level
        while stack and stack[-1][0] >= indent_level:
            stack.pop()

        if indent_level > 0 and stack and stack[-1][0] == indent_level - 1:
            _nested_list(stack[-1][1]).children.append(item)
        else:
            # Root level, or malformed indentation treated as root
            if root_list is None:
                root_list = Node(kind=NodeKind.LIST)
            root_list.children.append(item)
            stack = []
        stack.append((indent_level, item))

        i = j

    children = _frontmatter_paragraphs(frontmatter)
    if root_list is not None:
        _close_positions(root_list)
        children.append(root_list)
    return children


def _detect_indentation(lines: list[str]) -> str:
    """Detect indentation style from markdown lines.

    Looks for the first level-1 indented bullet (smallest indent).
    Falls back to 2 spaces if no indented bullets found.

    Args:
        lines: Lines of markdown

    Returns:
        Indentation string (e.g., "  ", "    ", "\\t")
    """
    indents = []

    for line in lines:
        if not line or not line.strip():
            continue

        # Only look at bullet lines
        if not _is_bullet_line(line):
            continue

        stripped = line.lstrip()
        if line != stripped:
            indents.append(line[: len(line) - len(stripped)])

    if not indents:
        return "  "

    # Shortest indentation is the indent unit
    return min(indents, key=len)

"""Annotation extraction for Logseq text.

Pure functions that pull ids, properties, tags and wikilinks out of a span of
Logseq markdown. The regular expressions below are the annotation grammar
other tools writing the same graph rely on; do not loosen them.
"""

import re
import uuid

from loggraph.services.exceptions import InvariantViolationError

ID_PATTERN = re.compile(r"id:: ([a-f0-9-]+)")
PROPERTY_PATTERN = re.compile(r"([a-z]+):: ([a-z]+)")
# [[something]] but not #[[something]]
WIKILINK_PATTERN = re.compile(r"\s\[\[([\w\s]+)\]\]")
# #something or #[[something]]
TAG_PATTERN = re.compile(r"#\[\[([\w\s]+)\]\]|#(\w+)", re.IGNORECASE)

BLOCK_RESERVED_KEYS = frozenset({"id"})
PAGE_RESERVED_KEYS = frozenset({"id", "title", "tags"})


def generate_id() -> str:
    """Generate a fresh entity id."""
    return str(uuid.uuid4())


def extract_id(text: str) -> str:
    """Return the id:: property of a block, or a fresh id if there is none.

    Args:
        text: Block content span

    Returns:
        Declared id token, or a newly generated UUID string
    """
    match = ID_PATTERN.search(text)
    if match:
        return match.group(1)
    return generate_id()


def _property_pairs(text: str):
    for match in PROPERTY_PATTERN.finditer(text):
        groups = match.groups()
        if len(groups) != 2 or None in groups:
            raise InvariantViolationError(
                f"Property match should yield a key and a value: {match.group(0)!r}"
            )
        yield groups


def extract_properties(text: str) -> dict[str, str]:
    """Extract key:: value properties, excluding id::.

    Only lowercase single-word keys and values are recognised.

    Args:
        text: Text span to scan

    Returns:
        Mapping of property key to value (later duplicates win)
    """
    return {
        key: value
        for key, value in _property_pairs(text)
        if key not in BLOCK_RESERVED_KEYS
    }


def extract_page_properties(top_text: str) -> dict[str, str]:
    """Extract page properties, excluding id::, title:: and tags::."""
    return {
        key: value
        for key, value in _property_pairs(top_text)
        if key not in PAGE_RESERVED_KEYS
    }


def extract_wikilinks(text: str) -> list[str]:
    """Extract [[wikilink]] titles preceded by whitespace.

    A bracket link directly after "#" is a tag, not a wikilink.

    Args:
        text: Text span to scan

    Returns:
        Trimmed link titles in match order (duplicates kept)
    """
    return [match.group(1).strip() for match in WIKILINK_PATTERN.finditer(text)]


def extract_tags(text: str) -> list[str]:
    """Extract inline #tag and #[[multi word tag]] references.

    Args:
        text: Text span to scan

    Returns:
        Tags in document order (duplicates kept)
    """
    tags = []
    for match in TAG_PATTERN.finditer(text):
        bracketed, single = match.groups()
        if (bracketed is None) == (single is None):
            raise InvariantViolationError(
                f"Tag match should yield exactly one tag: {match.group(0)!r}"
            )
        tags.append(bracketed if bracketed is not None else single)
    return tags


def _declared_values(top_text: str, key: str) -> list[str]:
    """Return the raw values of every `key:: value` line with exactly one '::'."""
    found = []
    for line in top_text.splitlines():
        parts = line.split("::")
        if len(parts) == 2 and parts[0].strip() == key:
            found.append(parts[1])
    return found


def extract_declared_tags(top_text: str) -> list[str]:
    """Extract comma separated values of a page's tags:: line.

    Args:
        top_text: Leading text of the page (before the first list)

    Returns:
        Declared tags, trimmed, empty values dropped
    """
    tags = []
    for value in _declared_values(top_text, "tags"):
        tags.extend(tag.strip() for tag in value.split(",") if tag.strip())
    return tags


def extract_title_property(top_text: str) -> str | None:
    """Return the value of a page's title:: line, if present and non-empty."""
    for value in _declared_values(top_text, "title"):
        if value.strip():
            return value.strip()
    return None

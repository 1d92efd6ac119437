"""Custom exceptions for loggraph services.

Only InputError is recoverable: the indexer reports it and skips the file.
Every other LoggraphError aborts the indexing pass.
"""


class LoggraphError(Exception):
    """Base class for all loggraph errors."""


class InputError(LoggraphError):
    """Raised when a single input document cannot be turned into entities.

    Attributes:
        path: Path of the offending document, if known
        message: Human-readable error message
    """

    def __init__(self, message: str, path: str | None = None):
        """Initialize InputError.

        Args:
            message: Human-readable error message
            path: Path of the offending document, if known
        """
        self.path = path
        self.message = message
        super().__init__(f"{message}: {path}" if path else message)


class MalformedDocumentError(InputError):
    """Raised when a document tree has no children."""


class MissingPositionError(InputError):
    """Raised when a node needed for text slicing has no position metadata."""


class DuplicateBlockIdError(InputError):
    """Raised when a block declares an id already used by another node."""


class InvariantViolationError(LoggraphError):
    """Raised when an internal invariant does not hold (a defect, not bad input)."""


class StoreError(LoggraphError):
    """Raised when a document store read or write fails."""


class LinkError(LoggraphError):
    """Raised when the linking phase cannot resolve an edge."""


class MissingNodeError(LinkError):
    """Raised when an entity's own node is not in the graph.

    This means an entity was stored without its node being inserted first.
    """

    def __init__(self, entity_id: str):
        self.entity_id = entity_id
        super().__init__(f"No graph node for entity: {entity_id}")


class MissingTargetError(LinkError):
    """Raised when a parent, tag or wikilink target is not in the graph.

    Attributes:
        entity_id: Id of the entity whose edge could not be resolved
        relation: Relationship kind ("parent", "tag" or "wikilink")
        target: Id or title that was looked up
    """

    def __init__(self, entity_id: str, relation: str, target: str):
        self.entity_id = entity_id
        self.relation = relation
        self.target = target
        super().__init__(f"Unresolved {relation} '{target}' on entity {entity_id}")

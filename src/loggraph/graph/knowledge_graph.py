"""In-memory knowledge graph of files and blocks.

Nodes live in an undirected networkx graph keyed by integer indices handed
out in insertion order. Lookups by entity id and by file title are kept in
side indices updated on every insertion, so edge resolution never scans the
whole graph.
"""

from typing import Iterator, Optional

import networkx as nx

from loggraph.models.entities import FileNode, GraphNode
from loggraph.services.exceptions import InvariantViolationError


class KnowledgeGraph:
    """Undirected graph of FileNode and BlockNode entries."""

    def __init__(self):
        self.graph = nx.Graph()
        self._next_index = 0
        self._by_id: dict[str, int] = {}
        self._by_title: dict[str, list[int]] = {}

    def __len__(self) -> int:
        return self.graph.number_of_nodes()

    @property
    def edge_count(self) -> int:
        return self.graph.number_of_edges()

    def add_node(self, node: GraphNode) -> int:
        """Insert a node and return its index.

        Raises:
            InvariantViolationError: If a node with the same id already exists
        """
        if node.id in self._by_id:
            raise InvariantViolationError(f"Duplicate graph node id: {node.id}")

        index = self._next_index
        self._next_index += 1
        self.graph.add_node(index, node=node)
        self._by_id[node.id] = index
        if isinstance(node, FileNode):
            self._by_title.setdefault(node.title, []).append(index)
        return index

    def node(self, index: int) -> GraphNode:
        return self.graph.nodes[index]["node"]

    def nodes(self) -> list[GraphNode]:
        """All nodes in insertion order."""
        return [self.node(index) for index in sorted(self.graph.nodes)]

    def find_by_id(self, entity_id: str) -> Optional[int]:
        return self._by_id.get(entity_id)

    def find_files_by_title(self, title: str) -> list[int]:
        """Indices of every file node with the given title."""
        return list(self._by_title.get(title, []))

    def add_edge(self, a: int, b: int) -> None:
        """Connect two existing nodes (adding an existing edge is a no-op)."""
        for index in (a, b):
            if index not in self.graph:
                raise InvariantViolationError(f"No graph node at index {index}")
        self.graph.add_edge(a, b)

    def neighbors(self, entity_id: str) -> Iterator[GraphNode]:
        """Yield the nodes adjacent to an entity's node."""
        index = self.find_by_id(entity_id)
        if index is None:
            return
        for neighbor in sorted(self.graph.neighbors(index)):
            yield self.node(neighbor)

    def has_edge(self, a_id: str, b_id: str) -> bool:
        a = self.find_by_id(a_id)
        b = self.find_by_id(b_id)
        return a is not None and b is not None and self.graph.has_edge(a, b)

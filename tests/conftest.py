"""Shared test fixtures for all test modules."""

import asyncio
import hashlib
import shutil
from pathlib import Path
from unittest.mock import Mock

import pytest
from logseq_outline.parser import Node, NodeKind, Position

from loggraph.services.document_store import ChromaDocumentStore, DocumentStore
from loggraph.services.exceptions import StoreError

FIXTURE_GRAPH = Path(__file__).parent / "fixtures" / "graph"

EMBEDDING_DIM = 16


def fake_encode(texts, **kwargs):
    """Deterministic embeddings derived from a hash of each text."""
    vectors = []
    for text in texts:
        digest = hashlib.sha256(text.encode("utf-8")).digest()
        vectors.append([byte / 255.0 + 0.01 for byte in digest[:EMBEDDING_DIM]])
    return vectors


@pytest.fixture
def mock_embedding_model():
    """Create a mock embedding model for testing."""
    mock_model = Mock()
    mock_model.encode = fake_encode
    return mock_model


@pytest.fixture
def fixture_graph(tmp_path):
    """Copy of the fixture Logseq graph in a temporary directory."""
    graph_path = tmp_path / "graph"
    shutil.copytree(FIXTURE_GRAPH, graph_path)
    return graph_path


@pytest.fixture
def store(tmp_path, mock_embedding_model):
    """ChromaDB document store in a temporary directory."""
    graph_path = tmp_path / "store-graph"
    graph_path.mkdir()
    document_store = ChromaDocumentStore(
        graph_path,
        db_path=tmp_path / "chroma",
        encoder=mock_embedding_model,
    )
    yield document_store
    asyncio.run(document_store.close())


BARE_ITEM_PAGE = "lead:: one\n- bare\n  - child\ntail:: two"


def _paragraph(start, end):
    text = Node(kind=NodeKind.TEXT, value=BARE_ITEM_PAGE[start:end], position=Position(start, end))
    return Node(kind=NodeKind.PARAGRAPH, children=[text], position=Position(start, end))


@pytest.fixture
def bare_item_page():
    """Page text and a ROOT node whose list item sits directly under the root.

    Layout: a leading paragraph, the bare item "- bare" with one nested
    child "- child", then a trailing paragraph.
    """
    child = Node(
        kind=NodeKind.LIST_ITEM,
        children=[_paragraph(22, 27)],
        position=Position(20, 27),
    )
    nested = Node(kind=NodeKind.LIST, children=[child], position=Position(18, 27))
    bare = Node(
        kind=NodeKind.LIST_ITEM,
        children=[_paragraph(13, 17), nested],
        position=Position(11, 27),
    )
    root = Node(
        kind=NodeKind.ROOT,
        children=[_paragraph(0, 10), bare, _paragraph(28, 38)],
        position=Position(0, len(BARE_ITEM_PAGE)),
    )
    return BARE_ITEM_PAGE, root


class RecordingStore(DocumentStore):
    """In-memory DocumentStore that records when writes are submitted and applied.

    Writes complete on a later event loop iteration, so a caller that does
    not await them observes them as still pending.

    Attributes:
        events: ("submit" | "complete", collection, ids) tuples in order
        fail_on: Collection whose writes fail with StoreError
    """

    def __init__(self, fail_on=None):
        self.data = {"files": {}, "blocks": {}}
        self.events = []
        self.fail_on = fail_on

    def submit_upsert(self, collection, entities):
        ids = [entity.id for entity in entities]
        self.events.append(("submit", collection, ids))
        loop = asyncio.get_running_loop()
        future = loop.create_future()

        def apply():
            if collection == self.fail_on:
                future.set_exception(StoreError(f"write to {collection} failed"))
                return
            for entity in entities:
                self.data[collection][entity.id] = entity
            self.events.append(("complete", collection, ids))
            future.set_result(None)

        loop.call_soon(apply)
        return future

    async def get(self, collection, entity_id):
        try:
            return self.data[collection][entity_id]
        except KeyError:
            raise StoreError(f"Document {entity_id} not found in {collection}")

    async def search(self, collection, text, limit=10):
        matches = [
            entity for entity in self.data[collection].values()
            if text in (entity.title if collection == "files" else entity.content)
        ]
        return matches[:limit]

    def count(self, collection):
        return len(self.data[collection])

    def clear(self):
        self.data = {"files": {}, "blocks": {}}

    async def close(self):
        pass


@pytest.fixture
def recording_store():
    return RecordingStore()

"""Document store for indexed files and blocks.

NOTE: SentenceTransformer is imported lazily to avoid startup delays.
The encoder is initialized on first write, not at __init__.

Writes and reads run on one worker thread. submit_upsert() returns at once
with a future that completes when the write has been applied; since the
worker processes requests in submission order, a read issued after a
completed write always sees it.
"""

import asyncio
import hashlib
from abc import ABC, abstractmethod
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Any, Optional, Sequence, Union

import chromadb
import structlog
from chromadb.config import Settings

from loggraph.models.entities import Block, File, StoreRecord
from loggraph.services.exceptions import StoreError

logger = structlog.get_logger()

# Index schema version - increment when changing the stored record layout
# Version history:
# - 1: files and blocks collections, JSON-encoded list/map metadata
INDEX_SCHEMA_VERSION = 1

FILES = "files"
BLOCKS = "blocks"

Entity = Union[File, Block]
_ENTITY_TYPES = {FILES: File, BLOCKS: Block}


def generate_graph_db_name(graph_path: Path) -> str:
    """
    Generate unique database directory name for a graph.

    Uses pattern: (basename)-(16-digit-hash)

    Example:
        /home/user/Documents/my-graph -> my-graph-a1b2c3d4e5f6a7b8

    Args:
        graph_path: Path to Logseq graph directory

    Returns:
        Database directory name string safe for filesystem
    """
    basename = graph_path.name

    abs_path = str(graph_path.resolve())
    hash_hex = hashlib.sha256(abs_path.encode('utf-8')).hexdigest()[:16]

    return f"{basename}-{hash_hex}"


class DocumentStore(ABC):
    """Abstract interface for the "files" and "blocks" collections."""

    @abstractmethod
    def submit_upsert(self, collection: str, entities: Sequence[Entity]) -> asyncio.Future:
        """Queue an upsert keyed by entity id without waiting for it.

        Must be called from a running event loop.

        Args:
            collection: FILES or BLOCKS
            entities: Entities to write

        Returns:
            Future that resolves when the write is applied (raises StoreError on failure)
        """

    @abstractmethod
    async def get(self, collection: str, entity_id: str) -> Entity:
        """Read one entity back by id.

        Raises:
            StoreError: If the entity is missing or the read fails
        """

    @abstractmethod
    async def search(self, collection: str, text: str, limit: int = 10) -> list[Entity]:
        """Return entities whose stored text contains `text`."""

    @abstractmethod
    def count(self, collection: str) -> int:
        """Number of stored entities in a collection."""

    @abstractmethod
    def clear(self) -> None:
        """Remove every stored entity."""

    @abstractmethod
    async def close(self) -> None:
        """Release resources."""

    async def get_file(self, file_id: str) -> File:
        return await self.get(FILES, file_id)

    async def get_block(self, block_id: str) -> Block:
        return await self.get(BLOCKS, block_id)


class ChromaDocumentStore(DocumentStore):
    """ChromaDB implementation of DocumentStore.

    Uses a per-graph persistent directory, or a ChromaDB server when an
    endpoint is given. Each collection stores the entity's searchable text
    (block content or file title) as the document and the remaining fields
    as metadata.
    """

    def __init__(
        self,
        graph_path: Path,
        db_path: Optional[Path] = None,
        endpoint: Optional[str] = None,
        api_key: Optional[str] = None,
        embedding_model: str = "all-MiniLM-L6-v2",
        encoder: Optional[Any] = None,
    ):
        """
        Initialize the store.

        Args:
            graph_path: Logseq graph the store belongs to
            db_path: Optional base path for local storage. If None, uses ~/.cache/loggraph/chromadb.
                     A per-graph subdirectory will be created under this path.
            endpoint: Optional ChromaDB server URL (db_path is ignored when set)
            api_key: Optional token for the ChromaDB server
            embedding_model: SentenceTransformer model name (loaded lazily if encoder not provided)
            encoder: Optional pre-loaded encoder with an encode(list[str]) method
        """
        self.embedding_model = embedding_model
        self._encoder: Optional[Any] = encoder
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="loggraph-store")

        if endpoint is not None:
            self.db_path = None
            self.client = self._http_client(endpoint, api_key)
        else:
            if db_path is None:
                db_path = Path.home() / ".cache" / "loggraph" / "chromadb"
            self.db_path = Path(db_path).expanduser() / generate_graph_db_name(graph_path)
            self.db_path.mkdir(parents=True, exist_ok=True)
            self.client = chromadb.PersistentClient(
                path=str(self.db_path),
                settings=Settings(anonymized_telemetry=False),
            )

        self.collections = {name: self._open_collection(name) for name in (FILES, BLOCKS)}

        logger.info(
            "document_store_initialized",
            graph_path=str(graph_path),
            db_path=str(self.db_path) if self.db_path else None,
            endpoint=endpoint,
            schema_version=INDEX_SCHEMA_VERSION,
        )

    @staticmethod
    def _http_client(endpoint: str, api_key: Optional[str]):
        from urllib.parse import urlparse

        url = urlparse(str(endpoint))
        ssl = url.scheme == "https"
        headers = {"Authorization": f"Bearer {api_key}"} if api_key else None
        return chromadb.HttpClient(
            host=url.hostname,
            port=url.port or (443 if ssl else 8000),
            ssl=ssl,
            headers=headers,
            settings=Settings(anonymized_telemetry=False),
        )

    @staticmethod
    def _collection_name(name: str) -> str:
        return f"loggraph_{name}"

    def _open_collection(self, name: str):
        """Get or create a collection, dropping it on schema version mismatch."""
        collection_name = self._collection_name(name)
        existing = [c.name if hasattr(c, "name") else c for c in self.client.list_collections()]

        if collection_name in existing:
            collection = self.client.get_collection(name=collection_name)
            stored_version = (collection.metadata or {}).get("schema_version")
            if stored_version != INDEX_SCHEMA_VERSION:
                logger.warning(
                    "index_schema_mismatch",
                    collection=collection_name,
                    stored_version=stored_version,
                    current_version=INDEX_SCHEMA_VERSION,
                    action="will_rebuild",
                )
                self.client.delete_collection(name=collection_name)

        return self.client.get_or_create_collection(
            name=collection_name,
            metadata={
                "hnsw:space": "cosine",
                "schema_version": INDEX_SCHEMA_VERSION,
            },
        )

    @property
    def encoder(self) -> Any:
        """Lazy-load the SentenceTransformer encoder on first access."""
        if self._encoder is None:
            from sentence_transformers import SentenceTransformer
            logger.info("loading_embedding_model", model=self.embedding_model)
            self._encoder = SentenceTransformer(self.embedding_model)
        return self._encoder

    def _collection(self, name: str):
        if name not in self.collections:
            raise ValueError(f"Unknown collection: {name}")
        return self.collections[name]

    def submit_upsert(self, collection: str, entities: Sequence[Entity]) -> asyncio.Future:
        target = self._collection(collection)
        records = [entity.to_record() for entity in entities]
        loop = asyncio.get_running_loop()
        logger.debug("store_upsert_submitted", collection=collection, count=len(records))
        return loop.run_in_executor(self._executor, self._upsert, target, records)

    def _upsert(self, target, records: list[StoreRecord]) -> None:
        if not records:
            return

        documents = [record.document for record in records]
        try:
            encoded = self.encoder.encode(documents, convert_to_numpy=True, show_progress_bar=False)
            target.upsert(
                ids=[record.id for record in records],
                documents=documents,
                embeddings=[[float(x) for x in vector] for vector in encoded],
                metadatas=[record.metadata for record in records],
            )
        except Exception as e:
            logger.error("store_upsert_failed", collection=target.name, error=str(e))
            raise StoreError(f"Failed to write {len(records)} documents to {target.name}: {e}") from e

    async def get(self, collection: str, entity_id: str) -> Entity:
        target = self._collection(collection)
        loop = asyncio.get_running_loop()
        record = await loop.run_in_executor(self._executor, self._get, target, entity_id)
        return _ENTITY_TYPES[collection].from_record(record)

    def _get(self, target, entity_id: str) -> StoreRecord:
        try:
            result = target.get(ids=[entity_id], include=["documents", "metadatas"])
        except Exception as e:
            logger.error("store_get_failed", collection=target.name, id=entity_id, error=str(e))
            raise StoreError(f"Failed to read {entity_id} from {target.name}: {e}") from e

        if not result["ids"]:
            raise StoreError(f"Document {entity_id} not found in {target.name}")

        return StoreRecord(
            id=result["ids"][0],
            document=result["documents"][0],
            metadata=result["metadatas"][0],
        )

    async def search(self, collection: str, text: str, limit: int = 10) -> list[Entity]:
        target = self._collection(collection)
        loop = asyncio.get_running_loop()
        records = await loop.run_in_executor(self._executor, self._search, target, text, limit)
        entity_type = _ENTITY_TYPES[collection]
        return [entity_type.from_record(record) for record in records]

    def _search(self, target, text: str, limit: int) -> list[StoreRecord]:
        try:
            result = target.get(
                where_document={"$contains": text},
                limit=limit,
                include=["documents", "metadatas"],
            )
        except Exception as e:
            logger.error("store_search_failed", collection=target.name, text=text, error=str(e))
            raise StoreError(f"Search failed in {target.name}: {e}") from e

        return [
            StoreRecord(id=entity_id, document=document, metadata=metadata)
            for entity_id, document, metadata in zip(
                result["ids"], result["documents"], result["metadatas"]
            )
        ]

    def count(self, collection: str) -> int:
        return self._collection(collection).count()

    def clear(self) -> None:
        """Drop and recreate both collections."""
        for name in (FILES, BLOCKS):
            self.client.delete_collection(name=self._collection_name(name))
        self.collections = {name: self._open_collection(name) for name in (FILES, BLOCKS)}
        logger.info("document_store_cleared")

    async def close(self) -> None:
        """Wait for queued requests and stop the worker thread."""
        self._executor.shutdown(wait=True)

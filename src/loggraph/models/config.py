"""Configuration models for loggraph."""

from pydantic import BaseModel, Field, HttpUrl, field_validator
from pathlib import Path
from typing import Optional
import yaml
import os
import stat


class LogseqConfig(BaseModel):
    """Configuration for Logseq graph location."""

    graph_path: str = Field(
        ...,
        description="Path to Logseq graph directory"
    )

    @field_validator('graph_path')
    @classmethod
    def validate_graph_path(cls, v: str) -> str:
        """Validate graph path exists and is a directory."""
        path = Path(v).expanduser()
        if not path.exists():
            raise ValueError(
                f"Graph path does not exist: {path}\n"
                f"Please create the directory or update config.yaml"
            )
        if not path.is_dir():
            raise ValueError(
                f"Graph path is not a directory: {path}\n"
                f"Please provide a valid directory path"
            )
        return str(path)

    model_config = {"frozen": True}


class StoreConfig(BaseModel):
    """Configuration for the ChromaDB document store."""

    db_path: Optional[str] = Field(
        default=None,
        description="Base directory for local ChromaDB storage (default: ~/.cache/loggraph/chromadb)"
    )

    endpoint: Optional[HttpUrl] = Field(
        default=None,
        description="URL of a ChromaDB server; overrides db_path when set"
    )

    api_key: Optional[str] = Field(
        default=None,
        description="Token sent to the ChromaDB server"
    )

    embedding_model: str = Field(
        default="all-MiniLM-L6-v2",
        description="SentenceTransformer model used to embed stored documents"
    )

    model_config = {"frozen": True}


class IndexingConfig(BaseModel):
    """Configuration for the ingestion pass."""

    index_blocks: bool = Field(
        default=True,
        description="Index every list item as a Block (files only when false)"
    )

    strict_links: bool = Field(
        default=True,
        description="Abort linking on unresolved tag/wikilink/parent targets"
    )

    stable_file_ids: bool = Field(
        default=False,
        description="Derive file ids from the path instead of generating fresh ones"
    )

    model_config = {"frozen": True}


class Config(BaseModel):
    """Root configuration for loggraph."""

    logseq: LogseqConfig = Field(..., description="Logseq graph settings")
    store: StoreConfig = Field(default_factory=StoreConfig, description="Document store settings")
    indexing: IndexingConfig = Field(default_factory=IndexingConfig, description="Indexing settings")

    @classmethod
    def load(cls, path: Path) -> "Config":
        """
        Load configuration from YAML file.

        Validates file permissions before loading, since the file may carry
        a store API key. Raises PermissionError if file is group/world readable.

        Args:
            path: Path to config.yaml file

        Returns:
            Validated Config instance

        Raises:
            PermissionError: If file permissions are too open
            FileNotFoundError: If config file doesn't exist
            ValueError: If YAML is invalid or validation fails
        """
        if not path.exists():
            raise FileNotFoundError(
                f"Configuration file not found at {path}\n\n"
                f"Please create the file with the following format:\n\n"
                f"logseq:\n"
                f"  graph_path: ~/Documents/logseq-graph\n\n"
                f"store:\n"
                f"  db_path: ~/.cache/loggraph/chromadb\n\n"
                f"indexing:\n"
                f"  index_blocks: true\n"
                f"  strict_links: true\n"
            )

        # Check file permissions (must be 600)
        mode = os.stat(path).st_mode
        if mode & (stat.S_IRWXG | stat.S_IRWXO):
            raise PermissionError(
                f"Config file has overly permissive permissions: {oct(mode)}\n"
                f"Run: chmod 600 {path}"
            )

        try:
            with open(path) as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid YAML in {path}: {e}") from e

        if not isinstance(data, dict):
            raise ValueError(f"Configuration must be a mapping: {path}")

        return cls(**data)

    model_config = {"frozen": True}

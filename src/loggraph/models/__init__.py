"""Pydantic data models for loggraph."""

from loggraph.models.entities import Block, BlockNode, File, FileNode, GraphNode, StoreRecord

__all__ = ["Block", "BlockNode", "File", "FileNode", "GraphNode", "StoreRecord"]

"""loggraph - Index Logseq graphs into a knowledge graph and a document store."""

__version__ = "0.1.0"

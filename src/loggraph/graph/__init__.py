"""Knowledge graph of indexed files and blocks."""

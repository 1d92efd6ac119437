"""Entity extraction from parsed Logseq pages."""

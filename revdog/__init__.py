"""Unified diff parsing, CI build information, review comment writers and diff sources."""

__version__ = "0.1.0"
__all__ = ["cienv", "comments", "diffservice", "udiff"]
"""Batch refresh of Ghost post metadata, visibility and search indexing."""

__version__ = "0.1.0"

"""Reorder comp-key exports into the canonical column layout."""

__version__ = "0.1.0"

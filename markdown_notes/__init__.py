"""Markdown notes: editor with live preview, full-text search and debounced autosave."""

__version__ = "0.1.0"

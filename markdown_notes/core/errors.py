from __future__ import annotations


class NotesError(Exception):
    """Base class for errors raised by the notes core."""


class MalformedImport(NotesError):
    """Imported document is not a valid application state. Nothing was changed."""


class PersistenceWriteFailure(NotesError):
    """Application state could not be written to the persistent store."""


class SearchQueryError(NotesError):
    """Query string could not be parsed by the search index."""

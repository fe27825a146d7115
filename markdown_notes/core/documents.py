from __future__ import annotations

import json

from markdown_notes.core.errors import MalformedImport
from markdown_notes.core.models import AppState, now_ms
from markdown_notes.settings import EXPORT_FILE_PREFIX


def dump_state_document(state: AppState) -> str:
    """Application state -> export/backup JSON text."""
    return json.dumps(state.to_dict(), ensure_ascii=False, indent=2)


def parse_state_document(text: str | bytes) -> AppState:
    """
    Backup JSON text -> application state.
    Raises MalformedImport when the text is not JSON or `notes` is not a list
    of valid notes.
    """
    try:
        raw = json.loads(text)
    except (TypeError, ValueError) as e:
        raise MalformedImport(f"Error reading backup file: {e}") from e

    try:
        return AppState.from_dict(raw, strict=True)
    except ValueError as e:
        raise MalformedImport(f"Invalid backup file format: {e}") from e


def export_filename(ms: int | None = None) -> str:
    return f"{EXPORT_FILE_PREFIX}-{now_ms() if ms is None else ms}.json"

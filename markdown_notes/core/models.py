from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Any

from markdown_notes.settings import DEFAULT_NOTE_TITLE, DEFAULT_THEME, THEMES

log = logging.getLogger(__name__)


def now_ms() -> int:
    return int(time.time() * 1000)


def normalize_theme(name: Any) -> str:
    name = str(name or "").strip().lower()
    return name if name in THEMES else DEFAULT_THEME


def _as_ms(value: Any, *, key: str) -> int:
    # bool is an int subclass; a flag is never a timestamp
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"{key} must be a number, got {type(value).__name__}")
    return int(value)


@dataclass
class Note:
    id: str
    title: str = DEFAULT_NOTE_TITLE
    content: str = ""
    created_at: int = 0
    updated_at: int = 0
    favorite: bool = False

    @classmethod
    def from_dict(cls, raw: Any, *, strict: bool = False) -> "Note":
        """
        Build a note from its serialized form.
        Missing optional fields get defaults; a missing/blank id or wrongly typed
        field raises ValueError. A non-boolean `favorite` raises too when strict,
        otherwise it reads as False.
        """
        if not isinstance(raw, dict):
            raise ValueError(f"note must be an object, got {type(raw).__name__}")

        note_id = raw.get("id")
        if not isinstance(note_id, str) or not note_id.strip():
            raise ValueError("note id must be a non-empty string")

        title = raw.get("title", DEFAULT_NOTE_TITLE)
        content = raw.get("content", "")
        if not isinstance(title, str) or not isinstance(content, str):
            raise ValueError(f"note {note_id}: title and content must be strings")

        updated_at = _as_ms(raw.get("updatedAt", raw.get("createdAt", 0)), key="updatedAt")
        created_at = _as_ms(raw.get("createdAt", updated_at), key="createdAt")

        favorite = raw.get("favorite", False)
        if not isinstance(favorite, bool):
            if strict:
                raise ValueError(f"note {note_id}: favorite must be true or false")
            log.warning("Note %s: ignoring non-boolean favorite %r", note_id, favorite)
            favorite = False

        return cls(
            id=note_id,
            title=title,
            content=content,
            created_at=created_at,
            updated_at=updated_at,
            favorite=favorite,
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "content": self.content,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
            "favorite": self.favorite,
        }


@dataclass
class AppState:
    notes: list[Note] = field(default_factory=list)
    active_note_id: str | None = None
    theme: str = DEFAULT_THEME
    sidebar_collapsed: bool = False

    @classmethod
    def from_dict(cls, raw: Any, *, strict: bool = False) -> "AppState":
        """
        Merge a serialized state over the defaults.

        strict=False (startup load): bad note entries and duplicate ids are
        skipped with a warning.
        strict=True (import): `notes` must be a list and every entry valid,
        otherwise ValueError.
        """
        if not isinstance(raw, dict):
            raise ValueError(f"state must be an object, got {type(raw).__name__}")

        raw_notes = raw.get("notes", [] if not strict else None)
        if not isinstance(raw_notes, list):
            if strict:
                raise ValueError("`notes` is missing or not a list")
            log.warning("Stored `notes` is not a list (%s); starting empty", type(raw_notes).__name__)
            raw_notes = []

        notes: list[Note] = []
        seen: set[str] = set()
        for i, item in enumerate(raw_notes):
            try:
                note = Note.from_dict(item, strict=strict)
                if note.id in seen:
                    raise ValueError(f"duplicate note id {note.id!r}")
            except ValueError as e:
                if strict:
                    raise ValueError(f"notes[{i}]: {e}") from e
                log.warning("Skipping stored note #%d: %s", i, e)
                continue
            seen.add(note.id)
            notes.append(note)

        active = raw.get("activeNoteId")
        if active not in seen:
            active = None

        return cls(
            notes=notes,
            active_note_id=active,
            theme=normalize_theme(raw.get("theme")),
            sidebar_collapsed=bool(raw.get("sidebarCollapsed", False)),
        )

    def to_dict(self) -> dict:
        return {
            "notes": [n.to_dict() for n in self.notes],
            "activeNoteId": self.active_note_id,
            "theme": self.theme,
            "sidebarCollapsed": self.sidebar_collapsed,
        }

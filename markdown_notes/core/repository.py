from __future__ import annotations

import logging
import uuid
from typing import Callable, Iterable

from markdown_notes.core.models import Note, now_ms
from markdown_notes.settings import DEFAULT_NOTE_CONTENT, DEFAULT_NOTE_TITLE

log = logging.getLogger(__name__)

EDITABLE_FIELDS = ("title", "content")


class NoteRepository:
    """
    In-memory ordered collection of notes plus the active note id.

    Every mutation of notes goes through this class, so the invariants live here:
      - ids are unique
      - active id is None or points at an existing note
      - updated_at never goes backwards and only moves on a real change
    """

    def __init__(
        self,
        notes: Iterable[Note] = (),
        active_note_id: str | None = None,
        *,
        clock: Callable[[], int] = now_ms,
    ):
        self._clock = clock
        self._notes: list[Note] = []
        self._active_id: str | None = None
        self.replace(notes, active_note_id)

    def __len__(self) -> int:
        return len(self._notes)

    @property
    def notes(self) -> list[Note]:
        """Notes in stored order (shallow copy of the list)."""
        return list(self._notes)

    @property
    def active_note_id(self) -> str | None:
        return self._active_id

    def active_note(self) -> Note | None:
        return self.find(self._active_id) if self._active_id else None

    # ───────────────────────── queries ─────────────────────────

    def find(self, note_id: str | None) -> Note | None:
        for note in self._notes:
            if note.id == note_id:
                return note
        return None

    def list_sorted(self) -> list[Note]:
        # sorted() is stable, reverse=True included
        return sorted(self._notes, key=lambda n: n.updated_at, reverse=True)

    # ───────────────────────── mutations ─────────────────────────

    def create(self) -> Note:
        ts = self._clock()
        note = Note(
            id=self._new_id(ts),
            title=DEFAULT_NOTE_TITLE,
            content=DEFAULT_NOTE_CONTENT,
            created_at=ts,
            updated_at=ts,
            favorite=False,
        )
        self._notes.insert(0, note)
        self._active_id = note.id
        log.info("Note created: id=%s total=%d", note.id, len(self._notes))
        return note

    def update(self, note_id: str, field: str, value: str) -> bool:
        """
        Set title or content of a note and bump updated_at.
        Returns False (and touches nothing) when the value is unchanged or the
        note does not exist.
        """
        if field not in EDITABLE_FIELDS:
            raise ValueError(f"field must be one of {EDITABLE_FIELDS}, got {field!r}")

        note = self.find(note_id)
        if note is None:
            log.debug("update ignored: unknown note id=%s", note_id)
            return False
        if getattr(note, field) == value:
            return False

        setattr(note, field, value)
        note.updated_at = max(note.updated_at, self._clock())
        return True

    def delete(self, note_id: str) -> bool:
        note = self.find(note_id)
        if note is None:
            return False
        self._notes.remove(note)
        if self._active_id == note_id:
            self._active_id = None
        log.info("Note deleted: id=%s total=%d", note_id, len(self._notes))
        return True

    def set_active(self, note_id: str | None) -> None:
        if note_id is not None and self.find(note_id) is None:
            log.debug("set_active: stale id=%s, clearing selection", note_id)
            note_id = None
        self._active_id = note_id

    def select_default_active(self) -> str | None:
        """No active note but notes exist: pick the most recently updated one."""
        if self._active_id is None and self._notes:
            self._active_id = self.list_sorted()[0].id
        return self._active_id

    def toggle_favorite(self, note_id: str) -> bool:
        note = self.find(note_id)
        if note is None:
            return False
        note.favorite = not note.favorite
        return True

    def replace(self, notes: Iterable[Note], active_note_id: str | None = None) -> None:
        """Swap the whole collection (load/import). Duplicate ids raise ValueError."""
        new_notes = list(notes)
        ids = [n.id for n in new_notes]
        if len(ids) != len(set(ids)):
            raise ValueError("duplicate note ids")
        self._notes = new_notes
        self._active_id = active_note_id if active_note_id in set(ids) else None

    # ───────────────────────── internals ─────────────────────────

    def _new_id(self, ts: int) -> str:
        while True:
            candidate = f"note-{ts}-{uuid.uuid4().hex[:8]}"
            if self.find(candidate) is None:
                return candidate

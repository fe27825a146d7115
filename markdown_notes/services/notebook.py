# markdown_notes/services/notebook.py

from __future__ import annotations

import logging
import time
from pathlib import Path
from typing import Callable

from markdown_notes.core.documents import dump_state_document, parse_state_document
from markdown_notes.core.errors import PersistenceWriteFailure, SearchQueryError
from markdown_notes.core.models import AppState, Note, normalize_theme
from markdown_notes.core.repository import NoteRepository
from markdown_notes.core.search import SearchIndex
from markdown_notes.infrastructure.filesystem import atomic_write_text
from markdown_notes.infrastructure.state_store import StateStore
from markdown_notes.services.autosave import AutosaveCoordinator, DebounceTimer
from markdown_notes.settings import AUTOSAVE_DEBOUNCE_MS, DEFAULT_THEME

log = logging.getLogger(__name__)


class NotebookService:
    """
    The one owner of application state.

    Responsibilities:
    - route presentation events into NoteRepository mutations
    - debounce keystroke edits through AutosaveCoordinator
    - flush (save + reindex) immediately on discrete actions
    - answer list/search/active-note queries for the UI
    - import/export the whole state
    """

    def __init__(
        self,
        *,
        store: StateStore,
        timer: DebounceTimer,
        on_note_flushed: Callable[[str | None], None] | None = None,
        on_persist_error: Callable[[PersistenceWriteFailure], None] | None = None,
        delay_ms: int = AUTOSAVE_DEBOUNCE_MS,
        repository: NoteRepository | None = None,
        autosave_clock: Callable[[], float] | None = None,
    ):
        self._store = store
        self._on_note_flushed = on_note_flushed
        self._repo = repository if repository is not None else NoteRepository()
        self._index = SearchIndex()

        self.theme: str = DEFAULT_THEME
        self.sidebar_collapsed: bool = False

        self._autosave = AutosaveCoordinator(
            timer=timer,
            flush=self._flush,
            on_error=on_persist_error,
            delay_ms=delay_ms,
            clock=autosave_clock or time.monotonic,
        )

    @property
    def repository(self) -> NoteRepository:
        return self._repo

    @property
    def autosave(self) -> AutosaveCoordinator:
        return self._autosave

    @property
    def index(self) -> SearchIndex:
        return self._index

    # ───────────────────────── lifecycle ─────────────────────────

    def load(self) -> AppState:
        """Read the store, merge over defaults, pick the default active note, index."""
        raw = self._store.load()
        state = AppState.from_dict(raw) if raw is not None else AppState()
        self._apply_state(state)
        self._repo.select_default_active()
        self._index.rebuild(self._repo.notes)
        log.info(
            "Notebook loaded: notes=%d active=%s theme=%s",
            len(self._repo), self._repo.active_note_id, self.theme,
        )
        return self.snapshot()

    def shutdown(self) -> None:
        """Persist edits still waiting for the debounce (window close)."""
        if self._autosave.flush_now():
            log.info("Pending edits flushed on shutdown")

    def close(self) -> None:
        """shutdown, then release the search index. The service is unusable afterwards."""
        try:
            self.shutdown()
        finally:
            self._index.close()

    def snapshot(self) -> AppState:
        return AppState(
            notes=self._repo.notes,
            active_note_id=self._repo.active_note_id,
            theme=self.theme,
            sidebar_collapsed=self.sidebar_collapsed,
        )

    # ───────────────────────── presentation events ─────────────────────────

    def edit_note(self, note_id: str, field: str, value: str) -> bool:
        """Keystroke-level edit of title/content. Debounced; no-op edits schedule nothing."""
        changed = self._repo.update(note_id, field, value)
        if changed:
            self._index.invalidate()
            self._autosave.note_edited(note_id)
        return changed

    def create_note(self) -> Note:
        self._autosave.cancel()
        note = self._repo.create()
        self._index.invalidate()
        self._flush(note.id)
        return note

    def delete_note(self, note_id: str) -> bool:
        """Pure delete; the UI asks for confirmation before calling it."""
        if not self._repo.delete(note_id):
            return False
        self._autosave.cancel()
        self._index.invalidate()
        self._flush(None)
        return True

    def select_note(self, note_id: str | None) -> Note | None:
        if note_id == self._repo.active_note_id:
            return self._repo.active_note()
        self._autosave.cancel()
        self._repo.set_active(note_id)
        self._flush(None)
        return self._repo.active_note()

    def toggle_favorite(self, note_id: str) -> bool:
        if not self._repo.toggle_favorite(note_id):
            return False
        self._autosave.cancel()
        self._flush(note_id)
        return True

    def toggle_theme(self) -> str:
        self.theme = "dark" if self.theme == "light" else "light"
        self._autosave.cancel()
        self._flush(None)
        return self.theme

    def set_sidebar_collapsed(self, collapsed: bool) -> None:
        if bool(collapsed) == self.sidebar_collapsed:
            return
        self.sidebar_collapsed = bool(collapsed)
        self._autosave.cancel()
        self._flush(None)

    # ───────────────────────── queries ─────────────────────────

    def current_list(self) -> list[Note]:
        return self._repo.list_sorted()

    def active_note(self) -> Note | None:
        return self._repo.active_note()

    def search(self, query: str) -> list[Note]:
        """
        Empty query -> full sorted list.
        Malformed query -> full sorted list (never raised to the UI).
        """
        if not (query or "").strip():
            return self._repo.list_sorted()

        self._index.ensure_fresh(self._repo.notes)
        try:
            ids = self._index.search(query)
        except SearchQueryError as e:
            log.debug("Search query rejected, showing all notes: %s", e)
            return self._repo.list_sorted()

        results = []
        for note_id in ids:
            note = self._repo.find(note_id)
            if note is not None:
                results.append(note)
        return results

    # ───────────────────────── import / export ─────────────────────────

    def export_document(self) -> str:
        return dump_state_document(self.snapshot())

    def export_to(self, path: Path) -> Path:
        path = Path(path)
        atomic_write_text(path, self.export_document())
        log.info("Notes exported: %s (notes=%d)", path, len(self._repo))
        return path

    def parse_import(self, raw: str | bytes) -> AppState:
        """Validate a backup document. Raises MalformedImport; never touches state."""
        return parse_state_document(raw)

    def apply_import(self, state: AppState) -> None:
        """Replace the whole application state with an already validated document."""
        self._autosave.cancel()
        self._apply_state(state)
        self._index.invalidate()
        self._flush(None)
        log.info("Notes imported: notes=%d active=%s", len(self._repo), self._repo.active_note_id)

    def import_document(self, raw: str | bytes, *, confirm: Callable[[], bool] = lambda: True) -> bool:
        """parse_import + confirmation + apply_import. Returns False if the user declined."""
        state = self.parse_import(raw)
        if not confirm():
            log.info("Import cancelled by user")
            return False
        self.apply_import(state)
        return True

    # ───────────────────────── internals ─────────────────────────

    def _apply_state(self, state: AppState) -> None:
        self._repo.replace(state.notes, state.active_note_id)
        self.theme = normalize_theme(state.theme)
        self.sidebar_collapsed = bool(state.sidebar_collapsed)

    def _flush(self, note_id: str | None) -> None:
        self._store.save(self.snapshot().to_dict())
        self._index.rebuild(self._repo.notes)
        if self._on_note_flushed is not None:
            self._on_note_flushed(note_id)

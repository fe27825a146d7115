# markdown_notes/services/autosave.py

from __future__ import annotations

import enum
import logging
import time
from typing import Callable, Protocol

from markdown_notes.core.errors import PersistenceWriteFailure
from markdown_notes.settings import AUTOSAVE_DEBOUNCE_MS

log = logging.getLogger(__name__)


class DebounceTimer(Protocol):
    """Single-shot, restartable timer (QTimer-like)."""

    def start(self, interval_ms: int, callback: Callable[[], None]) -> None: ...

    def stop(self) -> None: ...

    def is_active(self) -> bool: ...


class AutosaveState(enum.Enum):
    IDLE = "idle"
    PENDING = "pending"


class AutosaveCoordinator:
    """
    Batches edit events into one flush after a quiet period.

    IDLE --edit--> PENDING(deadline = now + delay)
    PENDING --edit--> PENDING(deadline reset)
    PENDING --deadline--> flush, IDLE
    PENDING --cancel--> IDLE

    Title and content edits share the one timer.
    """

    def __init__(
        self,
        *,
        timer: DebounceTimer,
        flush: Callable[[str | None], None],
        on_error: Callable[[PersistenceWriteFailure], None] | None = None,
        delay_ms: int = AUTOSAVE_DEBOUNCE_MS,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._timer = timer
        self._flush = flush
        self._on_error = on_error
        self._delay_ms = int(delay_ms)
        self._clock = clock

        self._state = AutosaveState.IDLE
        self._deadline: float | None = None
        self._note_id: str | None = None

    @property
    def state(self) -> AutosaveState:
        return self._state

    @property
    def deadline(self) -> float | None:
        return self._deadline

    @property
    def pending_note_id(self) -> str | None:
        return self._note_id

    @property
    def delay_ms(self) -> int:
        return self._delay_ms

    # ───────────────────────── public API ─────────────────────────

    def note_edited(self, note_id: str) -> None:
        if self._state is AutosaveState.PENDING and self._note_id != note_id:
            # edits for another note without a switch in between: flush the first
            log.debug("Autosave: edit for %s while %s pending, flushing first", note_id, self._note_id)
            self._flush_reporting(self.cancel())

        self._state = AutosaveState.PENDING
        self._note_id = note_id
        self._deadline = self._clock() + self._delay_ms / 1000.0
        self._timer.start(self._delay_ms, self._on_deadline)

    def cancel(self) -> str | None:
        """Drop the pending flush. Returns the note id it belonged to."""
        note_id = self._note_id
        if self._state is AutosaveState.PENDING:
            log.debug("Autosave cancelled: note=%s", note_id)
        self._timer.stop()
        self._reset()
        return note_id

    def flush_now(self) -> bool:
        """Run a pending flush synchronously. Returns False if nothing was pending."""
        if self._state is not AutosaveState.PENDING:
            return False
        note_id = self.cancel()
        self._flush(note_id)
        return True

    # ───────────────────────── internals ─────────────────────────

    def _reset(self) -> None:
        self._state = AutosaveState.IDLE
        self._deadline = None
        self._note_id = None

    def _on_deadline(self) -> None:
        if self._state is not AutosaveState.PENDING:
            return
        note_id = self._note_id
        self._reset()
        log.debug("Autosave flush: note=%s", note_id)
        self._flush_reporting(note_id)

    def _flush_reporting(self, note_id: str | None) -> None:
        try:
            self._flush(note_id)
        except PersistenceWriteFailure as e:
            log.error("Autosave flush failed: %s", e)
            if self._on_error is not None:
                self._on_error(e)

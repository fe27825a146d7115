# markdown_notes/infrastructure/state_store.py

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

from markdown_notes.core.errors import PersistenceWriteFailure
from markdown_notes.infrastructure.filesystem import atomic_write_text, write_recovery_copy
from markdown_notes.settings import RECOVERY_DIR

log = logging.getLogger(__name__)


@dataclass
class StateStore:
    """
    Durable blob holding the whole application state as one JSON document.
    Loaded once at startup, overwritten wholesale on every save.
    """

    path: Path
    recovery_dir: Path = RECOVERY_DIR
    retries: int = 1

    def load(self) -> dict | None:
        """
        Raw stored document, or None when there is nothing usable.
        A corrupt file is moved aside so the next save does not destroy it.
        """
        if not self.path.exists():
            log.info("No state file at %s, starting fresh", self.path)
            return None

        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            log.error("Failed to read state file %s: %s", self.path, e)
            self._move_aside()
            return None

        if not isinstance(raw, dict):
            log.error("State file %s holds %s, expected an object", self.path, type(raw).__name__)
            self._move_aside()
            return None

        log.info("State loaded from %s (notes=%s)", self.path, len(raw.get("notes") or []))
        return raw

    def save(self, state: dict) -> None:
        """
        Write the document, retrying once.
        On final failure a recovery copy is attempted and PersistenceWriteFailure raised.
        """
        text = json.dumps(state, ensure_ascii=False, indent=2)

        attempts = 1 + max(0, self.retries)
        last_error: OSError | None = None
        for attempt in range(1, attempts + 1):
            try:
                atomic_write_text(self.path, text)
                log.debug("State saved: %s (attempt %d)", self.path, attempt)
                return
            except OSError as e:
                last_error = e
                log.warning("State save failed (attempt %d/%d): %s", attempt, attempts, e)

        log.error("State save gave up after %d attempts: %s", attempts, self.path)
        try:
            rec = write_recovery_copy(self.path.stem, text, recovery_dir=self.recovery_dir)
            log.warning("Recovery copy written: %s", rec)
        except OSError:
            log.exception("Recovery copy failed too")
        raise PersistenceWriteFailure(f"Could not save notes to {self.path}: {last_error}") from last_error

    def _move_aside(self) -> None:
        ts = datetime.now().strftime("%Y%m%d-%H%M%S")
        target = self.path.with_name(f"{self.path.stem}.corrupt-{ts}{self.path.suffix}")
        try:
            self.path.replace(target)
            log.warning("Unreadable state file moved to %s", target)
        except OSError:
            log.exception("Could not move unreadable state file %s", self.path)

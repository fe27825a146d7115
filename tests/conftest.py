import sys
import os

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

import pytest

from markdown_notes.core.repository import NoteRepository
from markdown_notes.infrastructure.state_store import StateStore
from markdown_notes.services.notebook import NotebookService


class FakeClock:
    """Manual monotonic clock in ms; advance() fires due ManualTimers in order."""

    def __init__(self):
        self.ms = 0
        self.timers = []

    def __call__(self) -> float:
        return self.ms / 1000.0

    def advance(self, ms: int) -> None:
        target = self.ms + ms
        while True:
            due = [t for t in self.timers if t.due_ms is not None and t.due_ms <= target]
            if not due:
                break
            timer = min(due, key=lambda t: t.due_ms)
            self.ms = timer.due_ms
            timer.due_ms = None
            timer.callback()
        self.ms = target


class ManualTimer:
    def __init__(self, clock: FakeClock):
        self.clock = clock
        self.due_ms = None
        self.callback = None
        self.starts = 0
        clock.timers.append(self)

    def start(self, interval_ms, callback):
        self.starts += 1
        self.callback = callback
        self.due_ms = self.clock.ms + int(interval_ms)

    def stop(self):
        self.due_ms = None

    def is_active(self):
        return self.due_ms is not None


class Ticker:
    """Wall clock for note timestamps: returns `now`, then steps it."""

    def __init__(self, start: int = 1_700_000_000_000, step: int = 1000):
        self.now = start
        self.step = step

    def __call__(self) -> int:
        value = self.now
        self.now += self.step
        return value


class RecordingStore(StateStore):
    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.saves = []

    def save(self, state):
        super().save(state)
        self.saves.append(state)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def timer(clock):
    return ManualTimer(clock)


@pytest.fixture
def ticker():
    return Ticker()


@pytest.fixture
def store(tmp_path):
    return RecordingStore(tmp_path / "state.json", recovery_dir=tmp_path / "recovery")


@pytest.fixture
def make_service(tmp_path, clock, ticker):
    flushed = []

    def _make(store=None, *, on_persist_error=None):
        store = store or RecordingStore(tmp_path / "state.json", recovery_dir=tmp_path / "recovery")
        service = NotebookService(
            store=store,
            timer=ManualTimer(clock),
            on_note_flushed=flushed.append,
            on_persist_error=on_persist_error,
            repository=NoteRepository(clock=ticker),
            autosave_clock=clock,
        )
        service.flushed = flushed
        return service

    return _make

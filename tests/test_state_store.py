import json
import logging

import pytest

from markdown_notes.core.errors import PersistenceWriteFailure
from markdown_notes.infrastructure.filesystem import atomic_write_text
from markdown_notes.infrastructure.state_store import StateStore


@pytest.fixture
def state_store(tmp_path):
    return StateStore(tmp_path / "state.json", recovery_dir=tmp_path / "recovery")


def test_missing_file_loads_none(state_store):
    assert state_store.load() is None


def test_save_then_load(state_store):
    doc = {"notes": [], "activeNoteId": None, "theme": "dark", "sidebarCollapsed": True}
    state_store.save(doc)
    assert state_store.load() == doc


def test_save_leaves_no_temp_files(state_store, tmp_path):
    state_store.save({"notes": []})
    state_store.save({"notes": [], "theme": "dark"})
    assert sorted(p.name for p in tmp_path.iterdir()) == ["state.json"]


def test_corrupt_file_moved_aside(state_store, tmp_path):
    state_store.path.write_text("{not json", encoding="utf-8")

    assert state_store.load() is None
    assert not state_store.path.exists()
    moved = list(tmp_path.glob("state.corrupt-*.json"))
    assert len(moved) == 1
    assert moved[0].read_text(encoding="utf-8") == "{not json"


def test_non_object_document_moved_aside(state_store, tmp_path):
    state_store.path.write_text(json.dumps([1, 2, 3]), encoding="utf-8")
    assert state_store.load() is None
    assert list(tmp_path.glob("state.corrupt-*.json"))


def test_save_retries_once(state_store, monkeypatch, caplog):
    calls = []

    def flaky(path, text, encoding="utf-8"):
        calls.append(path)
        if len(calls) == 1:
            raise OSError("temporarily unavailable")
        atomic_write_text(path, text, encoding)

    monkeypatch.setattr("markdown_notes.infrastructure.state_store.atomic_write_text", flaky)
    with caplog.at_level(logging.WARNING):
        state_store.save({"notes": []})

    assert len(calls) == 2
    assert state_store.load() == {"notes": []}
    assert "attempt 1/2" in caplog.text


def test_save_gives_up_and_writes_recovery(state_store, tmp_path, monkeypatch):
    state_store.save({"notes": [], "theme": "light"})
    before = state_store.path.read_bytes()

    def broken(path, text, encoding="utf-8"):
        raise OSError("no space left on device")

    monkeypatch.setattr("markdown_notes.infrastructure.state_store.atomic_write_text", broken)
    with pytest.raises(PersistenceWriteFailure, match="no space left"):
        state_store.save({"notes": [], "theme": "dark"})

    assert state_store.path.read_bytes() == before
    recovered = list((tmp_path / "recovery").glob("state.recovery.*.json"))
    assert len(recovered) == 1
    assert json.loads(recovered[0].read_text(encoding="utf-8"))["theme"] == "dark"

import json

import pytest

from markdown_notes.core.documents import dump_state_document, export_filename, parse_state_document
from markdown_notes.core.errors import MalformedImport
from markdown_notes.core.models import AppState, Note


def test_note_serialized_keys():
    note = Note(id="n1", title="T", content="C", created_at=1, updated_at=2, favorite=True)
    assert note.to_dict() == {
        "id": "n1", "title": "T", "content": "C",
        "createdAt": 1, "updatedAt": 2, "favorite": True,
    }


def test_note_from_dict_fills_defaults():
    note = Note.from_dict({"id": "n1", "updatedAt": 9})
    assert note.title == "Untitled Note"
    assert note.content == ""
    assert note.created_at == 9
    assert note.favorite is False


@pytest.mark.parametrize("raw", [
    {"title": "x"},
    {"id": ""},
    {"id": "n", "title": 3},
    {"id": "n", "updatedAt": "yesterday"},
    {"id": "n", "updatedAt": True},
    "n1",
])
def test_note_from_dict_rejects(raw):
    with pytest.raises(ValueError):
        Note.from_dict(raw)


def test_lenient_state_skips_bad_and_duplicate_notes():
    state = AppState.from_dict({
        "notes": [{"id": "a"}, {"title": "broken"}, {"id": "a", "title": "dup"}, {"id": "b"}],
        "activeNoteId": "b",
        "theme": "purple",
        "sidebarCollapsed": 1,
    })
    assert [n.id for n in state.notes] == ["a", "b"]
    assert state.notes[0].title == "Untitled Note"
    assert state.active_note_id == "b"
    assert state.theme == "light"
    assert state.sidebar_collapsed is True


def test_lenient_state_tolerates_non_list_notes():
    assert AppState.from_dict({"notes": "oops"}).notes == []


def test_strict_state_rejects_duplicates():
    with pytest.raises(ValueError, match="duplicate"):
        AppState.from_dict({"notes": [{"id": "a"}, {"id": "a"}]}, strict=True)


@pytest.mark.parametrize("flag", ["false", "true", 1, None])
def test_strict_favorite_must_be_boolean(flag):
    raw = {"notes": [{"id": "a", "favorite": flag}]}
    with pytest.raises(MalformedImport, match="favorite"):
        parse_state_document(json.dumps(raw))


def test_lenient_non_boolean_favorite_reads_false():
    state = AppState.from_dict({"notes": [{"id": "a", "favorite": "false"}, {"id": "b", "favorite": True}]})
    assert [(n.id, n.favorite) for n in state.notes] == [("a", False), ("b", True)]


def test_parse_document_drops_dangling_active():
    state = parse_state_document(json.dumps({"notes": [{"id": "a"}], "activeNoteId": "zzz"}))
    assert state.active_note_id is None


def test_parse_document_requires_notes_list():
    with pytest.raises(MalformedImport):
        parse_state_document(json.dumps({"activeNoteId": None}))
    with pytest.raises(MalformedImport):
        parse_state_document(json.dumps([]))
    with pytest.raises(MalformedImport):
        parse_state_document(b"\xff\xfe garbage")


def test_dump_and_parse():
    state = AppState(
        notes=[Note(id="n1", title="Émoji ✓", content="# hi", created_at=1, updated_at=2)],
        active_note_id="n1",
        theme="dark",
        sidebar_collapsed=True,
    )
    text = dump_state_document(state)
    assert "Émoji ✓" in text
    assert parse_state_document(text) == state


def test_export_filename():
    assert export_filename(1700000000000) == "markdown-notes-backup-1700000000000.json"
    assert export_filename().startswith("markdown-notes-backup-")

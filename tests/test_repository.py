import pytest

from markdown_notes.core.models import Note
from markdown_notes.core.repository import NoteRepository
from markdown_notes.settings import DEFAULT_NOTE_CONTENT, DEFAULT_NOTE_TITLE


def _note(note_id, updated_at, title="t"):
    return Note(id=note_id, title=title, content="", created_at=updated_at, updated_at=updated_at)


def test_create_defaults_and_becomes_active(ticker):
    repo = NoteRepository(clock=ticker)
    note = repo.create()

    assert note.title == DEFAULT_NOTE_TITLE
    assert note.content == DEFAULT_NOTE_CONTENT
    assert note.created_at == note.updated_at
    assert note.favorite is False
    assert repo.active_note_id == note.id
    assert repo.notes[0] is note


def test_create_inserts_at_front_with_unique_ids(ticker):
    repo = NoteRepository(clock=ticker)
    created = [repo.create() for _ in range(50)]

    assert len({n.id for n in created}) == 50
    assert repo.notes[0] is created[-1]


def test_ids_unique_with_frozen_clock():
    repo = NoteRepository(clock=lambda: 42)
    ids = {repo.create().id for _ in range(20)}
    assert len(ids) == 20


def test_find():
    repo = NoteRepository([_note("a", 1)])
    assert repo.find("a").id == "a"
    assert repo.find("missing") is None


def test_update_bumps_updated_at(ticker):
    repo = NoteRepository(clock=ticker)
    note = repo.create()
    before = note.updated_at

    assert repo.update(note.id, "content", "hello")
    assert note.content == "hello"
    assert note.updated_at > before


def test_update_same_value_is_noop(ticker):
    repo = NoteRepository(clock=ticker)
    note = repo.create()
    before = note.updated_at

    assert not repo.update(note.id, "title", note.title)
    assert not repo.update(note.id, "content", note.content)
    assert note.updated_at == before


def test_update_never_moves_timestamp_backwards():
    times = iter([5000, 1000])
    repo = NoteRepository(clock=lambda: next(times))
    note = repo.create()

    assert repo.update(note.id, "title", "x")
    assert note.updated_at == 5000


def test_update_unknown_field_or_note():
    repo = NoteRepository([_note("a", 1)])
    with pytest.raises(ValueError):
        repo.update("a", "favorite", True)
    assert not repo.update("missing", "title", "x")


def test_delete_active_clears_active(ticker):
    repo = NoteRepository(clock=ticker)
    first = repo.create()
    second = repo.create()

    assert repo.delete(second.id)
    assert repo.active_note_id is None
    assert [n.id for n in repo.notes] == [first.id]
    assert not repo.delete(second.id)


def test_delete_other_keeps_active(ticker):
    repo = NoteRepository(clock=ticker)
    first = repo.create()
    second = repo.create()

    repo.delete(first.id)
    assert repo.active_note_id == second.id


def test_list_sorted_desc_and_stable():
    repo = NoteRepository([_note("a", 10), _note("b", 30), _note("c", 10), _note("d", 30)])

    first = [n.id for n in repo.list_sorted()]
    assert first == ["b", "d", "a", "c"]
    for _ in range(5):
        assert [n.id for n in repo.list_sorted()] == first


def test_set_active_stale_id_clears():
    repo = NoteRepository([_note("a", 1)], active_note_id="a")
    repo.set_active("gone")
    assert repo.active_note_id is None
    repo.set_active("a")
    assert repo.active_note().id == "a"


def test_select_default_active_picks_most_recent():
    repo = NoteRepository([_note("old", 1), _note("new", 99)])
    assert repo.select_default_active() == "new"


def test_select_default_active_keeps_existing():
    repo = NoteRepository([_note("old", 1), _note("new", 99)], active_note_id="old")
    assert repo.select_default_active() == "old"


def test_toggle_favorite_does_not_bump():
    note = _note("a", 7)
    repo = NoteRepository([note])

    assert repo.toggle_favorite("a")
    assert note.favorite is True
    assert note.updated_at == 7
    assert not repo.toggle_favorite("missing")


def test_replace_rejects_duplicates_and_dangling_active():
    repo = NoteRepository()
    with pytest.raises(ValueError):
        repo.replace([_note("a", 1), _note("a", 2)])

    repo.replace([_note("a", 1)], active_note_id="zzz")
    assert repo.active_note_id is None

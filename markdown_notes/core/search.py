from __future__ import annotations

import logging
import sqlite3
import time
from typing import Iterable

from markdown_notes.core.errors import SearchQueryError
from markdown_notes.core.models import Note

log = logging.getLogger(__name__)

TITLE_WEIGHT = 10.0
CONTENT_WEIGHT = 1.0

# trigram tokenizer cannot match terms shorter than this via MATCH
_TRIGRAM_MIN = 3

# presence of any of these switches the query to raw FTS5 syntax
_SYNTAX_CHARS = frozenset('"()')
_SYNTAX_WORDS = frozenset({"AND", "OR", "NOT", "NEAR"})


class SearchIndex:
    """
    Full-text index over note title + content (in-memory SQLite FTS5).

    Derived cache only: it is rebuilt from scratch from a notes snapshot and
    never consulted as a source of note data, just for ranked ids.
    """

    def __init__(self) -> None:
        self._conn = sqlite3.connect(":memory:")
        self._size = 0
        self.rebuild(())
        self._stale = True

    @property
    def stale(self) -> bool:
        return self._stale

    def __len__(self) -> int:
        return self._size

    def invalidate(self) -> None:
        self._stale = True

    def rebuild(self, notes: Iterable[Note]) -> None:
        t0 = time.perf_counter()
        rows = [(n.id, n.title, n.content) for n in notes if n is not None]
        with self._conn:
            self._conn.execute("DROP TABLE IF EXISTS notes_fts")
            self._conn.execute(
                "CREATE VIRTUAL TABLE notes_fts USING fts5("
                "ref UNINDEXED, title, content, tokenize='trigram')"
            )
            self._conn.executemany(
                "INSERT INTO notes_fts(ref, title, content) VALUES (?, ?, ?)", rows
            )
        self._size = len(rows)
        self._stale = False
        log.debug(
            "Search index rebuilt: notes=%d time_ms=%.1f",
            self._size, (time.perf_counter() - t0) * 1000.0,
        )

    def ensure_fresh(self, notes: Iterable[Note]) -> None:
        if self._stale:
            self.rebuild(notes)

    def search(self, query: str) -> list[str]:
        """
        Substring search over title and content, best match first.

        Plain text is split on whitespace and every term must occur somewhere
        in the note, punctuation included. Terms of 3+ characters go through
        the trigram index as quoted strings; shorter ones through LIKE.

        A query using double quotes, parentheses or an upper-case AND/OR/NOT/NEAR
        is handed to FTS5 as written. Raises SearchQueryError when that
        syntax does not parse.
        """
        q = (query or "").strip()
        if not q:
            return []
        if _uses_query_syntax(q):
            sql = (
                "SELECT ref FROM notes_fts WHERE notes_fts MATCH :match "
                "ORDER BY bm25(notes_fts, 0.0, :tw, :cw), rowid"
            )
            params = {"match": q, "tw": TITLE_WEIGHT, "cw": CONTENT_WEIGHT}
        else:
            sql, params = _plain_query(q.split())
        try:
            rows = self._conn.execute(sql, params).fetchall()
        except sqlite3.OperationalError as e:
            raise SearchQueryError(f"{q!r}: {e}") from e

        return [r[0] for r in rows]

    def close(self) -> None:
        self._conn.close()


def _uses_query_syntax(q: str) -> bool:
    return any(c in _SYNTAX_CHARS for c in q) or any(t in _SYNTAX_WORDS for t in q.split())


def _quote_term(term: str) -> str:
    return '"' + term.replace('"', '""') + '"'


def _plain_query(terms: list[str]) -> tuple[str, dict]:
    long_terms = [t for t in terms if len(t) >= _TRIGRAM_MIN]
    short_terms = [t for t in terms if len(t) < _TRIGRAM_MIN]

    where: list[str] = []
    title_hits: list[str] = []
    params: dict = {}
    if long_terms:
        where.append("notes_fts MATCH :match")
        params["match"] = " ".join(_quote_term(t) for t in long_terms)
    for i, term in enumerate(short_terms):
        key = f"p{i}"
        params[key] = f"%{_escape_like(term)}%"
        where.append(f"(title LIKE :{key} ESCAPE '\\' OR content LIKE :{key} ESCAPE '\\')")
        title_hits.append(f"(title LIKE :{key} ESCAPE '\\')")

    if long_terms:
        order = "bm25(notes_fts, 0.0, :tw, :cw), rowid"
        params["tw"] = TITLE_WEIGHT
        params["cw"] = CONTENT_WEIGHT
    else:
        order = f"({' + '.join(title_hits)}) DESC, rowid"

    sql = f"SELECT ref FROM notes_fts WHERE {' AND '.join(where)} ORDER BY {order}"
    return sql, params


def _escape_like(text: str) -> str:
    return text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")

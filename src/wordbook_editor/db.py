"""Database connection, DDL, and low-level lookups for wordbook-editor."""

from __future__ import annotations

import json
import sqlite3
from collections.abc import Generator, Iterable
from contextlib import contextmanager
from pathlib import Path

from wordbook_editor.exceptions import DatabaseError

SCHEMA_VERSION = "1.0"

# Headwords bound per existence query; stays under SQLITE_MAX_VARIABLE_NUMBER
# on builds that still use the old 999 default.
EXISTENCE_CHUNK_SIZE = 900

# ---------------------------------------------------------------------------
# META type adapter/converter
# ---------------------------------------------------------------------------

def _adapt_metadata(obj: dict) -> str:
    return json.dumps(obj, ensure_ascii=False)


def _convert_metadata(data: bytes) -> dict | list | None:
    if data is None or data == b"":
        return None
    return json.loads(data)


sqlite3.register_adapter(dict, _adapt_metadata)
sqlite3.register_converter("META", _convert_metadata)


def dump_json(value: object) -> str | None:
    """Serialize a JSON column value; empty containers are stored as NULL."""
    if value is None or value == [] or value == {}:
        return None
    return json.dumps(value, ensure_ascii=False)


# ---------------------------------------------------------------------------
# DDL statements
# ---------------------------------------------------------------------------

_DDL = """
-- Meta table
CREATE TABLE IF NOT EXISTS meta (
    key TEXT NOT NULL,
    value TEXT,
    UNIQUE (key)
);

-- Books
CREATE TABLE IF NOT EXISTS books (
    rowid INTEGER PRIMARY KEY,
    id TEXT NOT NULL,
    name TEXT NOT NULL,
    description TEXT,
    cover_url TEXT,
    grade TEXT,
    level TEXT,
    publisher TEXT,
    tags META,
    sort_order INTEGER,
    is_active BOOLEAN CHECK( is_active IN (0, 1) ) DEFAULT 1 NOT NULL,
    created_at TEXT NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%f', 'now')),
    updated_at TEXT NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%f', 'now')),
    UNIQUE (id)
);
CREATE INDEX IF NOT EXISTS book_sort_order_index ON books (sort_order);

-- Words
CREATE TABLE IF NOT EXISTS words (
    rowid INTEGER PRIMARY KEY,
    id TEXT NOT NULL,
    headword TEXT NOT NULL,
    rank INTEGER,
    book_id TEXT REFERENCES books (id) ON DELETE SET NULL ON UPDATE CASCADE,
    phonetic_us TEXT,
    phonetic_uk TEXT,
    audio_us TEXT,
    audio_uk TEXT,
    audio_us_raw TEXT,
    audio_uk_raw TEXT,
    phonetic TEXT,
    speech TEXT,
    star INTEGER,
    source_word_id TEXT,
    memory_tip TEXT,
    memory_tip_desc TEXT,
    sentence_desc TEXT,
    synonym_desc TEXT,
    phrase_desc TEXT,
    related_desc TEXT,
    antonym_desc TEXT,
    real_exam_sentence_desc TEXT,
    picture_url TEXT,
    created_at TEXT NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%f', 'now')),
    updated_at TEXT NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%f', 'now')),
    UNIQUE (id)
);
CREATE INDEX IF NOT EXISTS word_headword_book_index ON words (headword, book_id);
CREATE INDEX IF NOT EXISTS word_book_index ON words (book_id);
CREATE INDEX IF NOT EXISTS word_updated_index ON words (updated_at);

-- Nested word tables
CREATE TABLE IF NOT EXISTS definitions (
    rowid INTEGER PRIMARY KEY,
    word_rowid INTEGER NOT NULL REFERENCES words (rowid) ON DELETE CASCADE,
    part_of_speech TEXT,
    pos TEXT,
    meaning_cn TEXT,
    meaning_en TEXT,
    note TEXT
);
CREATE INDEX IF NOT EXISTS definition_word_index ON definitions (word_rowid);

CREATE TABLE IF NOT EXISTS example_sentences (
    rowid INTEGER PRIMARY KEY,
    word_rowid INTEGER NOT NULL REFERENCES words (rowid) ON DELETE CASCADE,
    definition_rowid INTEGER REFERENCES definitions (rowid) ON DELETE CASCADE,
    source TEXT NOT NULL,
    translation TEXT,
    meta META
);
CREATE INDEX IF NOT EXISTS example_word_index ON example_sentences (word_rowid);
CREATE INDEX IF NOT EXISTS example_definition_index ON example_sentences (definition_rowid);

CREATE TABLE IF NOT EXISTS synonym_groups (
    rowid INTEGER PRIMARY KEY,
    word_rowid INTEGER NOT NULL REFERENCES words (rowid) ON DELETE CASCADE,
    part_of_speech TEXT,
    meaning_cn TEXT,
    note TEXT
);
CREATE INDEX IF NOT EXISTS synonym_group_word_index ON synonym_groups (word_rowid);

CREATE TABLE IF NOT EXISTS synonyms (
    rowid INTEGER PRIMARY KEY,
    group_rowid INTEGER NOT NULL REFERENCES synonym_groups (rowid) ON DELETE CASCADE,
    value TEXT NOT NULL
);
CREATE INDEX IF NOT EXISTS synonym_group_index ON synonyms (group_rowid);

CREATE TABLE IF NOT EXISTS phrases (
    rowid INTEGER PRIMARY KEY,
    word_rowid INTEGER NOT NULL REFERENCES words (rowid) ON DELETE CASCADE,
    content TEXT NOT NULL,
    meaning_cn TEXT,
    meaning_en TEXT
);
CREATE INDEX IF NOT EXISTS phrase_word_index ON phrases (word_rowid);

CREATE TABLE IF NOT EXISTS related_words (
    rowid INTEGER PRIMARY KEY,
    word_rowid INTEGER NOT NULL REFERENCES words (rowid) ON DELETE CASCADE,
    headword TEXT NOT NULL,
    part_of_speech TEXT,
    meaning_cn TEXT
);
CREATE INDEX IF NOT EXISTS related_word_index ON related_words (word_rowid);

CREATE TABLE IF NOT EXISTS antonyms (
    rowid INTEGER PRIMARY KEY,
    word_rowid INTEGER NOT NULL REFERENCES words (rowid) ON DELETE CASCADE,
    headword TEXT NOT NULL,
    meta META
);
CREATE INDEX IF NOT EXISTS antonym_word_index ON antonyms (word_rowid);

CREATE TABLE IF NOT EXISTS real_exam_sentences (
    rowid INTEGER PRIMARY KEY,
    word_rowid INTEGER NOT NULL REFERENCES words (rowid) ON DELETE CASCADE,
    content TEXT NOT NULL,
    level TEXT,
    paper TEXT,
    source_type TEXT,
    year TEXT,
    sort_order INTEGER,
    source_info META
);
CREATE INDEX IF NOT EXISTS real_exam_sentence_word_index ON real_exam_sentences (word_rowid);

CREATE TABLE IF NOT EXISTS exam_questions (
    rowid INTEGER PRIMARY KEY,
    word_rowid INTEGER NOT NULL REFERENCES words (rowid) ON DELETE CASCADE,
    question TEXT NOT NULL,
    exam_type INTEGER,
    explanation TEXT,
    right_index INTEGER
);
CREATE INDEX IF NOT EXISTS exam_question_word_index ON exam_questions (word_rowid);

CREATE TABLE IF NOT EXISTS exam_choices (
    rowid INTEGER PRIMARY KEY,
    question_rowid INTEGER NOT NULL REFERENCES exam_questions (rowid) ON DELETE CASCADE,
    value TEXT NOT NULL,
    choice_index INTEGER
);
CREATE INDEX IF NOT EXISTS exam_choice_question_index ON exam_choices (question_rowid);

-- Import bookkeeping
CREATE TABLE IF NOT EXISTS import_batches (
    rowid INTEGER PRIMARY KEY,
    id TEXT NOT NULL,
    source_name TEXT,
    total_count INTEGER NOT NULL DEFAULT 0,
    success_count INTEGER NOT NULL DEFAULT 0,
    skipped_count INTEGER NOT NULL DEFAULT 0,
    failed_count INTEGER NOT NULL DEFAULT 0,
    error_details META,
    created_at TEXT NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%f', 'now')),
    updated_at TEXT NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%f', 'now')),
    UNIQUE (id)
);
CREATE INDEX IF NOT EXISTS import_batch_created_index ON import_batches (created_at);

CREATE TABLE IF NOT EXISTS import_logs (
    rowid INTEGER PRIMARY KEY,
    batch_id TEXT NOT NULL REFERENCES import_batches (id) ON DELETE CASCADE,
    word_id TEXT REFERENCES words (id) ON DELETE SET NULL,
    raw_headword TEXT NOT NULL,
    status TEXT NOT NULL CHECK( status IN ('success', 'skipped', 'failed') ),
    message TEXT,
    created_at TEXT NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%f', 'now'))
);
CREATE INDEX IF NOT EXISTS import_log_batch_index ON import_logs (batch_id);
CREATE INDEX IF NOT EXISTS import_log_word_index ON import_logs (word_id);
"""


def connect(db_path: str | Path = ":memory:") -> sqlite3.Connection:
    """Open a database connection with editor PRAGMA settings."""
    db_path_str = str(db_path)
    conn = sqlite3.connect(
        db_path_str,
        detect_types=sqlite3.PARSE_DECLTYPES | sqlite3.PARSE_COLNAMES,
    )
    conn.execute("PRAGMA foreign_keys = ON")
    if db_path_str != ":memory:":
        conn.execute("PRAGMA journal_mode = WAL")
    conn.row_factory = sqlite3.Row
    return conn


def init_db(conn: sqlite3.Connection) -> None:
    """Initialize all tables if they don't exist. Set schema version."""
    conn.executescript(_DDL)
    conn.execute(
        "INSERT OR IGNORE INTO meta (key, value) VALUES ('schema_version', ?)",
        (SCHEMA_VERSION,),
    )
    conn.execute(
        "INSERT OR IGNORE INTO meta (key, value) "
        "VALUES ('created_at', strftime('%Y-%m-%dT%H:%M:%f', 'now'))",
    )
    conn.commit()


def check_schema_version(conn: sqlite3.Connection) -> None:
    """Verify the database schema version is compatible."""
    try:
        row = conn.execute(
            "SELECT value FROM meta WHERE key = 'schema_version'"
        ).fetchone()
    except sqlite3.OperationalError:
        # meta table doesn't exist - uninitialized DB
        return
    if row is None:
        return
    version = row[0]
    if version != SCHEMA_VERSION:
        raise DatabaseError(
            f"Incompatible schema version: {version} "
            f"(expected {SCHEMA_VERSION})"
        )


@contextmanager
def transaction(conn: sqlite3.Connection) -> Generator[sqlite3.Connection, None, None]:
    """Run the enclosed statements as one unit of work.

    Commits when the block exits normally and rolls back when it raises.
    Units of work do not nest: opening one while the connection already
    has a pending transaction raises :class:`DatabaseError`.
    """
    if conn.in_transaction:
        raise DatabaseError("A transaction is already open on this connection")
    conn.execute("BEGIN")
    try:
        yield conn
    except BaseException:
        conn.rollback()
        raise
    else:
        conn.commit()


# ---------------------------------------------------------------------------
# Book helpers
# ---------------------------------------------------------------------------

def get_book_row(conn: sqlite3.Connection, book_id: str) -> sqlite3.Row | None:
    """Get a full book row by its external ID."""
    return conn.execute(
        "SELECT rowid, * FROM books WHERE id = ?",
        (book_id,),
    ).fetchone()


def find_existing_books(
    conn: sqlite3.Connection, book_ids: Iterable[str]
) -> set[str]:
    """Return the subset of *book_ids* that already have a books row."""
    wanted = sorted(set(book_ids))
    found: set[str] = set()
    for start in range(0, len(wanted), EXISTENCE_CHUNK_SIZE):
        chunk = wanted[start:start + EXISTENCE_CHUNK_SIZE]
        placeholders = ", ".join("?" * len(chunk))
        rows = conn.execute(
            f"SELECT id FROM books WHERE id IN ({placeholders})",
            chunk,
        ).fetchall()
        found.update(row["id"] for row in rows)
    return found


def create_books_if_missing(
    conn: sqlite3.Connection, book_ids: Iterable[str]
) -> list[str]:
    """Insert a minimal books row (id = name) for each unknown ID.

    Returns the IDs that were missing, in first-seen order. The insert is
    ``OR IGNORE`` so a row created concurrently is left untouched.
    """
    ordered = list(dict.fromkeys(book_ids))
    existing = find_existing_books(conn, ordered)
    missing = [b for b in ordered if b not in existing]
    if missing:
        conn.executemany(
            "INSERT OR IGNORE INTO books (id, name) VALUES (?, ?)",
            [(b, b) for b in missing],
        )
    return missing


# ---------------------------------------------------------------------------
# Word helpers
# ---------------------------------------------------------------------------

def get_word_rowid(conn: sqlite3.Connection, word_id: str) -> int | None:
    """Get the rowid for a word by its ID, or None."""
    row = conn.execute(
        "SELECT rowid FROM words WHERE id = ?",
        (word_id,),
    ).fetchone()
    return row[0] if row else None


def get_word_row(conn: sqlite3.Connection, word_id: str) -> sqlite3.Row | None:
    """Get a full word row by ID."""
    return conn.execute(
        "SELECT rowid, * FROM words WHERE id = ?",
        (word_id,),
    ).fetchone()


def find_existing_pairs(
    conn: sqlite3.Connection,
    pairs: Iterable[tuple[str, str | None]],
) -> set[tuple[str, str | None]]:
    """Return the ``(headword, book_id)`` pairs already stored.

    All candidate headwords are looked up together (in chunks of
    ``EXISTENCE_CHUNK_SIZE``) rather than one query per pair; the
    ``book_id`` side, which may be NULL, is matched in Python.
    """
    wanted = set(pairs)
    headwords = sorted({headword for headword, _ in wanted})
    found: set[tuple[str, str | None]] = set()
    for start in range(0, len(headwords), EXISTENCE_CHUNK_SIZE):
        chunk = headwords[start:start + EXISTENCE_CHUNK_SIZE]
        placeholders = ", ".join("?" * len(chunk))
        rows = conn.execute(
            f"SELECT headword, book_id FROM words WHERE headword IN ({placeholders})",
            chunk,
        ).fetchall()
        for row in rows:
            pair = (row["headword"], row["book_id"])
            if pair in wanted:
                found.add(pair)
    return found


# ---------------------------------------------------------------------------
# Import batch helpers
# ---------------------------------------------------------------------------

def get_batch_row(conn: sqlite3.Connection, batch_id: str) -> sqlite3.Row | None:
    """Get a full import batch row by ID."""
    return conn.execute(
        "SELECT rowid, * FROM import_batches WHERE id = ?",
        (batch_id,),
    ).fetchone()

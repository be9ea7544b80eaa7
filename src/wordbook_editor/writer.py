"""Persistence of a word and its nested graph.

Both entry points run inside a unit of work owned by the caller (see
:func:`wordbook_editor.db.transaction`); they never commit or roll back,
so a word's rows become visible all at once or not at all.
"""

from __future__ import annotations

import sqlite3
import uuid

from wordbook_editor import db as _db
from wordbook_editor.audio import derive_audio_urls
from wordbook_editor.exceptions import EntityNotFoundError
from wordbook_editor.models import ExampleSentence, NormalizedWord

# Column names match the NormalizedWord attribute names
SCALAR_COLUMNS = (
    "headword",
    "rank",
    "book_id",
    "phonetic_us",
    "phonetic_uk",
    "audio_us",
    "audio_uk",
    "audio_us_raw",
    "audio_uk_raw",
    "phonetic",
    "speech",
    "star",
    "source_word_id",
    "memory_tip",
    "memory_tip_desc",
    "sentence_desc",
    "synonym_desc",
    "phrase_desc",
    "related_desc",
    "antonym_desc",
    "real_exam_sentence_desc",
    "picture_url",
)


def create_word(conn: sqlite3.Connection, word: NormalizedWord) -> str:
    """Insert *word* with all nested records and return the new word ID."""
    word_id = uuid.uuid4().hex
    columns = ", ".join(("id",) + SCALAR_COLUMNS)
    placeholders = ", ".join("?" * (len(SCALAR_COLUMNS) + 1))
    cur = conn.execute(
        f"INSERT INTO words ({columns}) VALUES ({placeholders})",
        (word_id, *_scalar_values(word)),
    )
    _insert_children(conn, cur.lastrowid, word)
    return word_id


def replace_word(
    conn: sqlite3.Connection, word_id: str, word: NormalizedWord
) -> None:
    """Overwrite an existing word's scalars and rebuild its nested graph."""
    word_rowid = _db.get_word_rowid(conn, word_id)
    if word_rowid is None:
        raise EntityNotFoundError(f"Word not found: {word_id!r}")

    _delete_children(conn, word_rowid)

    assignments = ", ".join(f"{col} = ?" for col in SCALAR_COLUMNS)
    conn.execute(
        f"UPDATE words SET {assignments}, "
        "updated_at = strftime('%Y-%m-%dT%H:%M:%f', 'now') "
        "WHERE rowid = ?",
        (*_scalar_values(word), word_rowid),
    )
    _insert_children(conn, word_rowid, word)


def _scalar_values(word: NormalizedWord) -> list:
    audio = derive_audio_urls(word.headword)
    values = []
    for column in SCALAR_COLUMNS:
        value = getattr(word, column)
        if column == "audio_us" and not value:
            value = audio.us
        elif column == "audio_uk" and not value:
            value = audio.uk
        values.append(value)
    return values


# ---------------------------------------------------------------------------
# Nested records
# ---------------------------------------------------------------------------

def _delete_children(conn: sqlite3.Connection, word_rowid: int) -> None:
    # Dependents first: choices before questions, synonyms before groups,
    # examples before the definitions they may point at.
    conn.execute(
        "DELETE FROM exam_choices WHERE question_rowid IN "
        "(SELECT rowid FROM exam_questions WHERE word_rowid = ?)",
        (word_rowid,),
    )
    conn.execute("DELETE FROM exam_questions WHERE word_rowid = ?", (word_rowid,))
    conn.execute("DELETE FROM example_sentences WHERE word_rowid = ?", (word_rowid,))
    conn.execute(
        "DELETE FROM synonyms WHERE group_rowid IN "
        "(SELECT rowid FROM synonym_groups WHERE word_rowid = ?)",
        (word_rowid,),
    )
    for table in (
        "synonym_groups",
        "phrases",
        "related_words",
        "antonyms",
        "real_exam_sentences",
        "definitions",
    ):
        conn.execute(f"DELETE FROM {table} WHERE word_rowid = ?", (word_rowid,))


def _insert_children(
    conn: sqlite3.Connection, word_rowid: int, word: NormalizedWord
) -> None:
    for definition in word.definitions:
        cur = conn.execute(
            "INSERT INTO definitions "
            "(word_rowid, part_of_speech, pos, meaning_cn, meaning_en, note) "
            "VALUES (?, ?, ?, ?, ?, ?)",
            (word_rowid, definition.part_of_speech, definition.pos,
             definition.meaning_cn, definition.meaning_en, definition.note),
        )
        _insert_examples(conn, word_rowid, definition.examples, cur.lastrowid)

    _insert_examples(conn, word_rowid, word.examples, None)

    for group in word.synonym_groups:
        cur = conn.execute(
            "INSERT INTO synonym_groups "
            "(word_rowid, part_of_speech, meaning_cn, note) VALUES (?, ?, ?, ?)",
            (word_rowid, group.part_of_speech, group.meaning_cn, group.note),
        )
        conn.executemany(
            "INSERT INTO synonyms (group_rowid, value) VALUES (?, ?)",
            [(cur.lastrowid, item) for item in group.items],
        )

    conn.executemany(
        "INSERT INTO phrases (word_rowid, content, meaning_cn, meaning_en) "
        "VALUES (?, ?, ?, ?)",
        [(word_rowid, p.content, p.meaning_cn, p.meaning_en) for p in word.phrases],
    )
    conn.executemany(
        "INSERT INTO related_words (word_rowid, headword, part_of_speech, meaning_cn) "
        "VALUES (?, ?, ?, ?)",
        [(word_rowid, r.headword, r.part_of_speech, r.meaning_cn)
         for r in word.related_words],
    )
    conn.executemany(
        "INSERT INTO antonyms (word_rowid, headword, meta) VALUES (?, ?, ?)",
        [(word_rowid, a.headword, _db.dump_json(a.meta)) for a in word.antonyms],
    )
    conn.executemany(
        "INSERT INTO real_exam_sentences "
        "(word_rowid, content, level, paper, source_type, year, sort_order, source_info) "
        "VALUES (?, ?, ?, ?, ?, ?, ?, ?)",
        [(word_rowid, s.content, s.level, s.paper, s.source_type, s.year,
          s.order, _db.dump_json(s.source_info))
         for s in word.real_exam_sentences],
    )

    for question in word.exam_questions:
        cur = conn.execute(
            "INSERT INTO exam_questions "
            "(word_rowid, question, exam_type, explanation, right_index) "
            "VALUES (?, ?, ?, ?, ?)",
            (word_rowid, question.question, question.exam_type,
             question.explanation, question.right_index),
        )
        conn.executemany(
            "INSERT INTO exam_choices (question_rowid, value, choice_index) "
            "VALUES (?, ?, ?)",
            [(cur.lastrowid, c.value, c.index) for c in question.choices],
        )


def _insert_examples(
    conn: sqlite3.Connection,
    word_rowid: int,
    examples: tuple[ExampleSentence, ...],
    definition_rowid: int | None,
) -> None:
    conn.executemany(
        "INSERT INTO example_sentences "
        "(word_rowid, definition_rowid, source, translation, meta) "
        "VALUES (?, ?, ?, ?, ?)",
        [(word_rowid, definition_rowid, e.source, e.translation,
          _db.dump_json(e.meta))
         for e in examples],
    )

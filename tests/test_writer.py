"""Tests for writing a word's nested graph."""

import sqlite3

import pytest

from wordbook_editor import db
from wordbook_editor.audio import derive_audio_urls
from wordbook_editor.exceptions import EntityNotFoundError
from wordbook_editor.normalizer import normalize_dictionary_entry
from wordbook_editor.validator import validate_word
from wordbook_editor.writer import create_word, replace_word


def _count(conn, table):
    return conn.execute(f"SELECT COUNT(*) FROM {table}").fetchone()[0]


class TestAudioUrls:

    def test_derived_urls(self):
        urls = derive_audio_urls(" ice cream ")
        assert urls.us == "https://dict.youdao.com/dictvoice?audio=ice%20cream&type=1"
        assert urls.uk == "https://dict.youdao.com/dictvoice?audio=ice%20cream&type=2"


class TestCreateWord:

    def test_scalars_and_derived_audio(self, conn):
        word = validate_word({"headword": "apple", "rank": 4}).word
        with db.transaction(conn):
            word_id = create_word(conn, word)
        row = db.get_word_row(conn, word_id)
        assert row["headword"] == "apple"
        assert row["rank"] == 4
        assert row["audio_us"] == derive_audio_urls("apple").us
        assert row["audio_uk"] == derive_audio_urls("apple").uk

    def test_explicit_audio_kept(self, conn):
        word = validate_word({"headword": "apple", "audioUs": "https://x/us.mp3"}).word
        with db.transaction(conn):
            word_id = create_word(conn, word)
        row = db.get_word_row(conn, word_id)
        assert row["audio_us"] == "https://x/us.mp3"
        assert row["audio_uk"] == derive_audio_urls("apple").uk

    def test_nested_graph(self, conn, legacy_entry):
        word = normalize_dictionary_entry(legacy_entry).word
        conn.execute("INSERT INTO books (id, name) VALUES ('CET4_1', 'CET4_1')")
        conn.commit()
        with db.transaction(conn):
            create_word(conn, word)
        assert _count(conn, "definitions") == 1
        assert _count(conn, "example_sentences") == 1
        assert _count(conn, "synonyms") == 1
        assert _count(conn, "phrases") == 1
        assert _count(conn, "related_words") == 1
        assert _count(conn, "antonyms") == 1
        assert _count(conn, "real_exam_sentences") == 1
        assert _count(conn, "exam_choices") == 2
        meta = conn.execute("SELECT meta FROM antonyms").fetchone()["meta"]
        assert meta == {"note": "pet"}

    def test_definition_examples_linked(self, conn):
        word = validate_word({
            "headword": "apple",
            "definitions": [{"meaningCn": "苹果", "examples": [{"source": "Red apple"}]}],
            "examples": [{"source": "Green apple"}],
        }).word
        with db.transaction(conn):
            create_word(conn, word)
        rows = conn.execute(
            "SELECT source, definition_rowid FROM example_sentences ORDER BY rowid"
        ).fetchall()
        assert rows[0]["definition_rowid"] is not None
        assert rows[1]["definition_rowid"] is None

    def test_failure_leaves_nothing_behind(self, conn):
        conn.execute(
            "CREATE TRIGGER no_phrases BEFORE INSERT ON phrases "
            "BEGIN SELECT RAISE(ABORT, 'no phrases'); END"
        )
        conn.commit()
        word = validate_word({
            "headword": "apple",
            "definitions": [{"meaningCn": "苹果"}],
            "phrases": [{"content": "apple pie"}],
        }).word
        with pytest.raises(sqlite3.IntegrityError):
            with db.transaction(conn):
                create_word(conn, word)
        assert _count(conn, "words") == 0
        assert _count(conn, "definitions") == 0


class TestReplaceWord:

    def test_rebuilds_nested_graph(self, conn, legacy_entry):
        conn.execute("INSERT INTO books (id, name) VALUES ('CET4_1', 'CET4_1')")
        conn.commit()
        with db.transaction(conn):
            word_id = create_word(conn, normalize_dictionary_entry(legacy_entry).word)

        new = validate_word({
            "headword": "cat",
            "phoneticUs": "kat",
            "phrases": [{"content": "fat cat"}],
        }).word
        with db.transaction(conn):
            replace_word(conn, word_id, new)

        row = db.get_word_row(conn, word_id)
        assert row["phonetic_us"] == "kat"
        assert row["book_id"] is None
        assert _count(conn, "words") == 1
        assert _count(conn, "definitions") == 0
        assert _count(conn, "exam_questions") == 0
        assert _count(conn, "exam_choices") == 0
        assert _count(conn, "synonyms") == 0
        phrases = conn.execute("SELECT content FROM phrases").fetchall()
        assert [p["content"] for p in phrases] == ["fat cat"]

    def test_unknown_word(self, conn):
        word = validate_word({"headword": "apple"}).word
        with pytest.raises(EntityNotFoundError):
            with db.transaction(conn):
                replace_word(conn, "missing", word)

"""Tests for the WordbookEditor facade."""

import sqlite3

import pytest

from wordbook_editor import WordbookEditor
from wordbook_editor.exceptions import (
    ConflictError,
    DuplicateEntityError,
    EntityNotFoundError,
    ValidationError,
)
from wordbook_editor.validator import validate_word


class TestEditorLifecycle:

    def test_context_manager(self):
        with WordbookEditor(":memory:") as ed:
            assert ed.list_books() == []

    def test_file_database_reopens(self, tmp_path):
        path = tmp_path / "words.db"
        with WordbookEditor(path) as ed:
            ed.create_word({"headword": "apple"})
        with WordbookEditor(path) as ed:
            assert ed.count_words() == 1


class TestBooks:

    def test_create_and_get(self, editor):
        book = editor.create_book(" CET4 ", "College English 4", tags=["exam"], sort_order=2)
        assert book.id == "CET4"
        assert book.name == "College English 4"
        assert book.tags == ("exam",)
        assert book.is_active
        assert book.word_count == 0
        assert editor.get_book("CET4") == book

    def test_name_defaults_to_id(self, editor):
        assert editor.create_book("CET6").name == "CET6"

    def test_duplicate(self, editor):
        editor.create_book("CET4")
        with pytest.raises(DuplicateEntityError):
            editor.create_book("CET4")

    def test_blank_id(self, editor):
        with pytest.raises(ValidationError) as exc_info:
            editor.create_book("  ")
        assert exc_info.value.issues[0].path == "bookId"

    def test_get_missing(self, editor):
        with pytest.raises(EntityNotFoundError):
            editor.get_book("nope")

    def test_list_order_and_active_filter(self, editor):
        editor.create_book("late", sort_order=5)
        editor.create_book("unsorted")
        editor.create_book("early", sort_order=1)
        editor.create_book("hidden", sort_order=0, is_active=False)
        assert [b.id for b in editor.list_books()] == ["early", "late", "unsorted"]
        assert "hidden" in [b.id for b in editor.list_books(include_inactive=True)]

    def test_word_count(self, editor):
        editor.import_words([
            {"headword": "apple", "bookId": "fruit"},
            {"headword": "pear", "bookId": "fruit"},
        ])
        assert editor.get_book("fruit").word_count == 2

    def test_update(self, editor):
        editor.create_book("CET4", description="old", grade="college")
        book = editor.update_book("CET4", name="CET-4", description=None, tags=["a", "b"])
        assert book.name == "CET-4"
        assert book.description is None
        assert book.grade == "college"
        assert book.tags == ("a", "b")

    def test_update_missing(self, editor):
        with pytest.raises(EntityNotFoundError):
            editor.update_book("nope", name="x")

    def test_delete_empty_book(self, editor):
        editor.create_book("CET4")
        editor.delete_book("CET4")
        with pytest.raises(EntityNotFoundError):
            editor.get_book("CET4")

    def test_delete_book_with_words_refused(self, editor):
        editor.create_word({"headword": "apple", "bookId": "fruit"})
        with pytest.raises(ConflictError):
            editor.delete_book("fruit")
        assert editor.count_words() == 1

    def test_delete_book_cascade(self, editor):
        editor.create_word({"headword": "apple", "bookId": "fruit"})
        editor.create_word({"headword": "rice"})
        editor.delete_book("fruit", cascade=True)
        assert [w.headword for w in editor.find_words()] == ["rice"]

    def test_delete_book_words(self, editor):
        editor.create_word({"headword": "apple", "bookId": "fruit"})
        editor.create_word({"headword": "pear", "bookId": "fruit"})
        assert editor.delete_book_words("fruit") == 2
        assert editor.get_book("fruit").word_count == 0


class TestWords:

    def test_create_and_read_back(self, editor):
        data = {
            "headword": "apple",
            "rank": 1,
            "bookId": "fruit",
            "definitions": [{"meaningCn": "苹果", "examples": [{"source": "Red apple"}]}],
            "examples": [{"source": "Green apple", "meta": {"s": 1}}],
            "synonymGroups": [{"partOfSpeech": "n", "items": ["pome", "malus"]}],
            "phrases": [{"content": "apple pie"}],
            "relatedWords": [{"headword": "applet"}],
            "antonyms": [{"headword": "pear"}],
            "realExamSentences": [{"content": "Apples fell.", "order": 0}],
            "examQuestions": [{"question": "Fruit?", "choices": [{"value": "apple", "index": 1}]}],
        }
        detail = editor.create_word(data)
        word = detail.word
        assert word.headword == "apple"
        assert word.book_id == "fruit"
        assert word.audio_us.endswith("audio=apple&type=1")
        assert word.definitions[0].examples[0].source == "Red apple"
        assert word.examples[0].meta == {"s": 1}
        assert word.synonym_groups[0].items == ("pome", "malus")
        assert word.exam_questions[0].choices[0].value == "apple"
        assert editor.get_book("fruit").word_count == 1

    def test_accepts_normalized_word(self, editor):
        word = validate_word({"headword": "apple"}).word
        assert editor.create_word(word).word.headword == "apple"

    def test_invalid_data(self, editor):
        with pytest.raises(ValidationError) as exc_info:
            editor.create_word({"headword": "", "rank": -2})
        assert [i.path for i in exc_info.value.issues] == ["headword", "rank"]
        assert editor.count_words() == 0

    def test_failed_create_rolls_back(self, editor, fail_on_headword):
        fail_on_headword(editor.connection, "apple")
        with pytest.raises(sqlite3.IntegrityError):
            editor.create_word({"headword": "apple", "bookId": "fruit"})
        assert editor.list_books() == []

    def test_update(self, editor):
        detail = editor.create_word({"headword": "apple", "phrases": [{"content": "apple pie"}]})
        updated = editor.update_word(detail.id, {
            "headword": "apple",
            "bookId": "fruit",
            "phrases": [{"content": "big apple"}],
        })
        assert updated.id == detail.id
        assert [p.content for p in updated.word.phrases] == ["big apple"]
        assert updated.word.book_id == "fruit"
        assert editor.count_words() == 1

    def test_update_missing(self, editor):
        with pytest.raises(EntityNotFoundError):
            editor.update_word("nope", {"headword": "apple"})

    def test_find_and_count(self, editor):
        editor.create_word({"headword": "Apple", "bookId": "fruit"})
        editor.create_word({"headword": "pineapple", "bookId": "fruit"})
        editor.create_word({"headword": "rice"})
        assert {w.headword for w in editor.find_words(query="apple")} == {"Apple", "pineapple"}
        assert editor.count_words(query="APPLE") == 2
        assert editor.count_words(book_id="fruit") == 2
        assert len(editor.find_words(limit=1)) == 1
        assert len(editor.find_words(limit=10, offset=2)) == 1

    def test_find_escapes_wildcards(self, editor):
        editor.create_word({"headword": "100%"})
        editor.create_word({"headword": "1000"})
        assert [w.headword for w in editor.find_words(query="0%")] == ["100%"]

    def test_delete(self, editor):
        detail = editor.create_word({"headword": "apple", "phrases": [{"content": "apple pie"}]})
        editor.delete_word(detail.id)
        with pytest.raises(EntityNotFoundError):
            editor.get_word(detail.id)
        assert editor.connection.execute("SELECT COUNT(*) FROM phrases").fetchone()[0] == 0

    def test_delete_missing(self, editor):
        with pytest.raises(EntityNotFoundError):
            editor.delete_word("nope")


class TestImports:

    def test_import_and_history(self, editor):
        summary = editor.import_words(
            [{"headword": "apple"}, {"headword": "apple"}], source_name="a.json"
        )
        (batch,) = editor.list_import_batches()
        assert batch.id == summary.batch_id
        assert editor.get_import_batch(batch.id).skipped_count == 1
        logs = editor.get_import_logs(batch.id, status="skipped")
        assert [log.message for log in logs] == ["same as entry #1, skipped"]

    def test_created_words_are_readable(self, editor, legacy_entry):
        editor.import_words([legacy_entry])
        (listed,) = editor.find_words()
        word = editor.get_word(listed.id).word
        assert word.headword == "cat"
        assert word.antonyms[0].meta == {"note": "pet"}
        assert word.real_exam_sentences[0].source_info["year"] == 2015

    def test_logs_of_missing_batch(self, editor):
        with pytest.raises(EntityNotFoundError):
            editor.get_import_logs("nope")

    def test_import_after_editor_writes(self, editor):
        editor.create_book("fruit")
        editor.create_word({"headword": "apple", "bookId": "fruit"})
        summary = editor.import_words([{"headword": "apple", "bookId": "fruit"}])
        assert summary.skipped == 1

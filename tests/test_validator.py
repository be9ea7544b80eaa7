"""Tests for canonical word validation."""

import pytest

from wordbook_editor.validator import MAX_LENGTHS, validate_word


def _paths(result):
    return [issue.path for issue in result.issues]


class TestValidHeadword:

    def test_minimal_word(self):
        result = validate_word({"headword": "apple"})
        assert result.ok
        assert result.word.headword == "apple"
        assert result.word.definitions == ()
        assert result.issues == ()

    def test_headword_is_trimmed(self):
        result = validate_word({"headword": "  apple \n"})
        assert result.word.headword == "apple"

    def test_unknown_keys_ignored(self):
        result = validate_word({"headword": "apple", "foo": "bar"})
        assert result.ok


class TestInvalidInput:

    @pytest.mark.parametrize("value", [None, "apple", 42, ["apple"]])
    def test_not_an_object(self, value):
        result = validate_word(value)
        assert not result.ok
        assert result.reason == "expected an object"

    def test_missing_headword(self):
        result = validate_word({"foo": "bar"})
        assert not result.ok
        assert result.reason == "headword: must be a non-empty string"

    def test_blank_headword(self):
        result = validate_word({"headword": "   "})
        assert _paths(result) == ["headword"]

    def test_headword_wrong_type(self):
        result = validate_word({"headword": 12})
        assert str(result.issues[0]) == "headword: expected a string"

    def test_headword_too_long(self):
        result = validate_word({"headword": "a" * (MAX_LENGTHS["headword"] + 1)})
        assert not result.ok
        assert "at most 255" in result.reason

    def test_every_problem_reported(self):
        result = validate_word({"headword": "", "rank": "x", "phrases": {}})
        assert _paths(result) == ["headword", "rank", "phrases"]


class TestScalars:

    def test_optional_strings_blank_to_none(self):
        result = validate_word({"headword": "apple", "bookId": "  ", "phoneticUs": None})
        assert result.word.book_id is None
        assert result.word.phonetic_us is None

    def test_book_id_trimmed(self):
        result = validate_word({"headword": "apple", "bookId": " Book-1 "})
        assert result.word.book_id == "Book-1"

    def test_rank_must_be_positive(self):
        result = validate_word({"headword": "apple", "rank": 0})
        assert result.reason == "rank: must be a positive integer"

    def test_rank_rejects_bool(self):
        result = validate_word({"headword": "apple", "rank": True})
        assert result.reason == "rank: expected an integer"

    def test_integral_float_rank_accepted(self):
        result = validate_word({"headword": "apple", "rank": 3.0})
        assert result.word.rank == 3

    def test_string_field_wrong_type(self):
        result = validate_word({"headword": "apple", "memoryTip": ["x"]})
        assert result.reason == "memoryTip: expected a string"


class TestNestedRecords:

    def test_blank_definition_dropped(self):
        result = validate_word({
            "headword": "apple",
            "definitions": [
                {"meaningCn": "  ", "note": "", "examples": []},
                {"meaningCn": "苹果", "partOfSpeech": "n."},
            ],
        })
        assert result.ok
        assert len(result.word.definitions) == 1
        assert result.word.definitions[0].meaning_cn == "苹果"

    def test_definition_kept_for_examples_alone(self):
        result = validate_word({
            "headword": "apple",
            "definitions": [{"examples": [{"source": "An apple a day."}]}],
        })
        definition = result.word.definitions[0]
        assert definition.examples[0].source == "An apple a day."

    def test_examples_without_source_dropped(self):
        result = validate_word({
            "headword": "apple",
            "examples": [{"translation": "orphan"}, {"source": "Red apple", "meta": {"k": 1}}],
        })
        assert [e.source for e in result.word.examples] == ["Red apple"]
        assert result.word.examples[0].meta == {"k": 1}

    def test_synonym_items_trimmed(self):
        result = validate_word({
            "headword": "apple",
            "synonymGroups": [{"items": [" pome ", ""]}, {"items": []}],
        })
        assert len(result.word.synonym_groups) == 1
        assert result.word.synonym_groups[0].items == ("pome",)

    def test_exam_question_choices(self):
        result = validate_word({
            "headword": "apple",
            "examQuestions": [
                {
                    "question": "Which is a fruit?",
                    "rightIndex": 1,
                    "choices": [{"value": "apple", "index": 1}, {"value": " "}],
                },
                {"choices": [{"value": "orphan"}]},
            ],
        })
        (question,) = result.word.exam_questions
        assert question.right_index == 1
        assert [c.value for c in question.choices] == ["apple"]

    def test_nested_issue_path(self):
        result = validate_word({
            "headword": "apple",
            "definitions": [{"examples": [{"source": "x"}, {"source": "y", "meta": "bad"}]}],
        })
        assert _paths(result) == ["definitions[0].examples[1].meta"]

    def test_collection_item_must_be_object(self):
        result = validate_word({"headword": "apple", "phrases": ["cat nap"]})
        assert str(result.issues[0]) == "phrases[0]: expected an object"

    def test_nested_headword_not_length_bounded(self):
        result = validate_word({
            "headword": "apple",
            "relatedWords": [{"headword": "a" * 300}],
        })
        assert result.ok

    def test_to_dict_round_trips_through_validator(self):
        data = {
            "headword": "apple",
            "rank": 1,
            "definitions": [{"meaningCn": "苹果", "examples": [{"source": "Red apple"}]}],
            "antonyms": [{"headword": "pear", "meta": {"note": "fruit"}}],
        }
        word = validate_word(data).word
        again = validate_word(word.to_dict()).word
        assert again == word

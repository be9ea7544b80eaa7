"""Shared test fixtures for wordbook-editor."""

import pytest

from wordbook_editor import WordbookEditor
from wordbook_editor import db


@pytest.fixture
def editor():
    """Create an in-memory editor for testing."""
    with WordbookEditor(":memory:") as ed:
        yield ed


@pytest.fixture
def conn():
    """A raw initialized in-memory connection."""
    connection = db.connect(":memory:")
    db.init_db(connection)
    yield connection
    connection.close()


@pytest.fixture
def fail_on_headword():
    """Install a trigger that aborts any insert of the given headword."""

    def install(connection, headword, message="boom"):
        connection.execute(
            "CREATE TRIGGER fail_insert BEFORE INSERT ON words "
            f"WHEN NEW.headword = '{headword}' "
            f"BEGIN SELECT RAISE(ABORT, '{message}'); END"
        )
        connection.commit()

    return install


@pytest.fixture
def legacy_entry():
    """A legacy export entry with every section populated."""
    return {
        "book_id": "CET4_1",
        "head_word": "cat",
        "word_rank": 3,
        "content": {
            "word": {
                "word_id": "CET4_1_3",
                "word_head": "cat",
                "content": {
                    "usphone": "kæt",
                    "ukphone": "kæt",
                    "usspeech": "cat&type=2",
                    "star": "2",
                    "rem_method": {"val": "c-a-t", "desc": "mnemonic"},
                    "trans": [
                        {"tran_cn": "猫", "pos": "n", "desc_cn": "中释"},
                        {"tran_cn": "  ", "tran_other": ""},
                    ],
                    "sentence": {
                        "desc": "例句",
                        "sentences": [
                            {"s_content": "The cat sat.", "s_cn": "猫坐着。"},
                            {"s_content": " "},
                        ],
                    },
                    "syno": {
                        "desc": "同近",
                        "synos": [
                            {"pos": "n", "tran": "猫", "hwds": [{"w": "kitty"}, {"w": ""}]},
                        ],
                    },
                    "phrase": {
                        "phrases": [
                            {"p_content": "cat nap", "p_cn": "打盹"},
                            {"p_cn": "orphan"},
                        ],
                    },
                    "rel_word": {
                        "rels": [
                            {"pos": "adj", "words": [{"hwd": "catty", "tran": "恶毒的"}]},
                        ],
                    },
                    "antos": {"anto": [{"hwd": "dog", "note": "pet"}]},
                    "real_exam_sentence": {
                        "sentences": [
                            {
                                "s_content": "A cat appeared.",
                                "source_info": {"level": "CET4", "year": 2015, "type": "reading"},
                            },
                        ],
                    },
                    "exam": [
                        {
                            "question": "Pick the animal",
                            "exam_type": 1,
                            "answer": {"explain": "it meows", "right_index": "2"},
                            "choices": [
                                {"choice": "dog", "choice_index": 1},
                                {"choice": "cat", "choice_index": 2},
                            ],
                        },
                    ],
                },
            },
        },
    }

"""Tests for the wordbook command-line interface."""

import json

import pytest

from wordbook_editor import WordbookEditor
from wordbook_editor.cli import main


@pytest.fixture
def db_path(tmp_path):
    return tmp_path / "wordbook.db"


@pytest.fixture
def payload(tmp_path):
    path = tmp_path / "fruit.json"
    path.write_text(
        json.dumps([{"headword": "apple"}, {"headword": "apple"}, {"foo": "bar"}]),
        encoding="utf-8",
    )
    return path


def _import_json(db_path, payload, capsys, *extra):
    code = main(["--db", str(db_path), "import", str(payload), "--json", *extra])
    return code, json.loads(capsys.readouterr().out)


class TestImportCommand:

    def test_summary(self, db_path, payload, capsys):
        assert main(["--db", str(db_path), "import", str(payload)]) == 0
        out = capsys.readouterr().out
        assert "Results:" in out
        assert "Success: 1" in out
        assert "Skipped: 2" in out
        assert "same as entry #1, skipped" in out

    def test_json_output(self, db_path, payload, capsys):
        code, summary = _import_json(db_path, payload, capsys)
        assert code == 0
        assert (summary["total"], summary["success"], summary["skipped"]) == (3, 1, 2)
        assert summary["errors"][1]["headword"] == "#3"
        assert summary["batchId"]

    def test_dry_run(self, db_path, payload, capsys):
        code, summary = _import_json(db_path, payload, capsys, "--dry-run")
        assert code == 0
        assert summary["batchId"] is None
        assert not db_path.exists()
        assert main(["--db", str(db_path), "history"]) == 0
        assert "No import batches found." in capsys.readouterr().out

    def test_dry_run_against_existing_database(self, db_path, payload, capsys):
        _import_json(db_path, payload, capsys)
        code, summary = _import_json(db_path, payload, capsys, "--dry-run")
        assert code == 0
        assert (summary["success"], summary["skipped"]) == (0, 3)
        with WordbookEditor(db_path) as editor:
            assert len(editor.list_import_batches()) == 1

    def test_invalid_entries_are_skipped(self, db_path, tmp_path, capsys):
        path = tmp_path / "words.json"
        path.write_text(json.dumps([{"headword": "apple", "bookId": "b" * 300}]), encoding="utf-8")
        code, summary = _import_json(db_path, path, capsys)
        assert code == 0
        assert summary["skipped"] == 1

    def test_failed_entries_exit_nonzero(self, db_path, payload, capsys, fail_on_headword):
        with WordbookEditor(db_path) as editor:
            fail_on_headword(editor.connection, "apple")
        code, summary = _import_json(db_path, payload, capsys)
        assert code == 1
        assert summary["failed"] == 1

    def test_parse_error(self, db_path, tmp_path, capsys):
        path = tmp_path / "broken.json"
        path.write_text("[\n{oops}\n]", encoding="utf-8")
        assert main(["--db", str(db_path), "import", str(path)]) == 1
        assert "Parse error: Invalid JSON" in capsys.readouterr().err

    def test_missing_file(self, db_path, tmp_path, capsys):
        assert main(["--db", str(db_path), "import", str(tmp_path / "nope.json")]) == 1
        assert "File not found" in capsys.readouterr().err

    def test_clean_script_failure(self, db_path, payload, tmp_path, capsys):
        script = tmp_path / "clean.sh"
        script.write_text("#!/bin/sh\nexit 1\n", encoding="utf-8")
        script.chmod(0o755)
        code = main(["--db", str(db_path), "import", str(payload), "--clean-script", str(script)])
        assert code == 1
        assert "Cleaning failed: JSON syntax error" in capsys.readouterr().err


class TestHistoryCommands:

    def test_history_lists_batches(self, db_path, payload, capsys):
        _, summary = _import_json(db_path, payload, capsys)
        assert main(["--db", str(db_path), "history"]) == 0
        out = capsys.readouterr().out
        assert summary["batchId"] in out
        assert "Source: fruit.json" in out

    def test_show_batch(self, db_path, payload, capsys):
        _, summary = _import_json(db_path, payload, capsys, "--source", "upload-1")
        assert main(["--db", str(db_path), "show", summary["batchId"], "--status", "skipped"]) == 0
        out = capsys.readouterr().out
        assert "Source:  upload-1" in out
        assert "[SKIPPED] apple" in out
        assert "[SUCCESS]" not in out

    def test_show_unknown_batch(self, db_path, capsys):
        assert main(["--db", str(db_path), "show", "nope"]) == 1
        assert "Import batch nope not found." in capsys.readouterr().out


class TestCleanCommand:

    def test_writes_output(self, tmp_path, capsys):
        script = tmp_path / "clean.sh"
        script.write_text('#!/bin/sh\ncp "$1" "$2"\n', encoding="utf-8")
        script.chmod(0o755)
        source = tmp_path / "raw.txt"
        source.write_text('[{"head_word": "cat"}]', encoding="utf-8")
        target = tmp_path / "clean.json"

        code = main(["clean", str(source), str(target), "--script", str(script)])
        assert code == 0
        assert json.loads(target.read_text(encoding="utf-8")) == [{"head_word": "cat"}]
        assert f"Cleaned data written to {target}" in capsys.readouterr().out


def test_no_command(capsys):
    assert main([]) == 1

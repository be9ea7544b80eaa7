"""WordbookEditor: main entry point for the wordbook-editor library."""

from __future__ import annotations

import functools
import sqlite3
from collections.abc import Callable, Mapping, Sequence
from pathlib import Path
from typing import Any, TypeVar

from wordbook_editor import db as _db
from wordbook_editor import history as _hist
from wordbook_editor import importer as _importer
from wordbook_editor import writer as _writer
from wordbook_editor.exceptions import (
    ConflictError,
    DuplicateEntityError,
    EntityNotFoundError,
    ValidationError,
)
from wordbook_editor.models import (
    Antonym,
    BookModel,
    Definition,
    ExamChoice,
    ExampleSentence,
    ExamQuestion,
    ImportBatchModel,
    ImportLogModel,
    ImportStatus,
    ImportSummary,
    NormalizedWord,
    Phrase,
    RealExamSentence,
    RelatedWord,
    SynonymGroup,
    ValidationIssue,
    WordDetail,
    WordModel,
)
from wordbook_editor.validator import MAX_LENGTHS, validate_word

_F = TypeVar("_F", bound=Callable[..., Any])

# Sentinel for "no change" in update methods
_UNSET: Any = type("_UNSET", (), {"__repr__": lambda self: "..."})()

DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100

_BOOK_SELECT = (
    "SELECT b.rowid, b.*, "
    "(SELECT COUNT(*) FROM words w WHERE w.book_id = b.id) AS word_count "
    "FROM books b"
)


def _modifies_db(method: _F) -> _F:
    """Decorator: wraps mutation methods in a transaction."""

    @functools.wraps(method)
    def wrapper(self: WordbookEditor, *args: Any, **kwargs: Any) -> Any:
        with self._conn:
            return method(self, *args, **kwargs)

    return wrapper  # type: ignore[return-value]


class WordbookEditor:
    """Programmatic API over a wordbook store: books, words and imports."""

    def __init__(self, db_path: str | Path = ":memory:") -> None:
        self._db_path = str(db_path)
        self._conn = _db.connect(db_path)
        _db.check_schema_version(self._conn)
        _db.init_db(self._conn)

    @property
    def connection(self) -> sqlite3.Connection:
        return self._conn

    def close(self) -> None:
        """Close the database connection."""
        self._conn.close()

    def __enter__(self) -> WordbookEditor:
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Books
    # ------------------------------------------------------------------

    @_modifies_db
    def create_book(
        self,
        book_id: str,
        name: str | None = None,
        *,
        description: str | None = None,
        cover_url: str | None = None,
        grade: str | None = None,
        level: str | None = None,
        publisher: str | None = None,
        tags: Sequence[str] | None = None,
        sort_order: int | None = None,
        is_active: bool = True,
    ) -> BookModel:
        book_id = _check_book_id(book_id)
        name = _nullable_str(name) or book_id
        try:
            self._conn.execute(
                "INSERT INTO books "
                "(id, name, description, cover_url, grade, level, publisher, "
                "tags, sort_order, is_active) "
                "VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
                (book_id, name, _nullable_str(description),
                 _nullable_str(cover_url), _nullable_str(grade),
                 _nullable_str(level), _nullable_str(publisher),
                 _db.dump_json(list(tags or [])), sort_order, int(is_active)),
            )
        except sqlite3.IntegrityError as e:
            raise DuplicateEntityError(f"Book already exists: {book_id!r}") from e
        return self.get_book(book_id)

    def get_book(self, book_id: str) -> BookModel:
        row = self._conn.execute(
            f"{_BOOK_SELECT} WHERE b.id = ?", (book_id,)
        ).fetchone()
        if row is None:
            raise EntityNotFoundError(f"Book not found: {book_id!r}")
        return self._row_to_book(row)

    def list_books(self, *, include_inactive: bool = False) -> list[BookModel]:
        where = "1=1" if include_inactive else "b.is_active = 1"
        rows = self._conn.execute(
            f"{_BOOK_SELECT} WHERE {where} "
            "ORDER BY b.sort_order IS NULL, b.sort_order ASC, "
            "b.created_at DESC, b.rowid DESC"
        ).fetchall()
        return [self._row_to_book(r) for r in rows]

    @_modifies_db
    def update_book(
        self,
        book_id: str,
        *,
        name: str | None = None,
        description: Any = _UNSET,
        cover_url: Any = _UNSET,
        grade: Any = _UNSET,
        level: Any = _UNSET,
        publisher: Any = _UNSET,
        tags: Any = _UNSET,
        sort_order: Any = _UNSET,
        is_active: bool | None = None,
    ) -> BookModel:
        if _db.get_book_row(self._conn, book_id) is None:
            raise EntityNotFoundError(f"Book not found: {book_id!r}")

        updates: dict[str, Any] = {}
        if name is not None and name.strip():
            updates["name"] = name.strip()
        for field, val in (
            ("description", description),
            ("cover_url", cover_url),
            ("grade", grade),
            ("level", level),
            ("publisher", publisher),
        ):
            if val is not _UNSET:
                updates[field] = _nullable_str(val)
        if tags is not _UNSET:
            updates["tags"] = _db.dump_json(list(tags or []))
        if sort_order is not _UNSET:
            updates["sort_order"] = sort_order
        if is_active is not None:
            updates["is_active"] = int(is_active)

        if updates:
            assignments = ", ".join(f"{field} = ?" for field in updates)
            self._conn.execute(
                f"UPDATE books SET {assignments}, "
                "updated_at = strftime('%Y-%m-%dT%H:%M:%f', 'now') WHERE id = ?",
                (*updates.values(), book_id),
            )
        return self.get_book(book_id)

    @_modifies_db
    def delete_book(self, book_id: str, cascade: bool = False) -> None:
        book = self.get_book(book_id)
        if book.word_count and not cascade:
            raise ConflictError(
                f"Book {book_id!r} still has {book.word_count} word(s); "
                "delete or move them first"
            )
        if cascade:
            self._conn.execute("DELETE FROM words WHERE book_id = ?", (book_id,))
        self._conn.execute("DELETE FROM books WHERE id = ?", (book_id,))

    @_modifies_db
    def delete_book_words(self, book_id: str) -> int:
        """Delete every word of a book, keeping the book itself."""
        if _db.get_book_row(self._conn, book_id) is None:
            raise EntityNotFoundError(f"Book not found: {book_id!r}")
        cur = self._conn.execute("DELETE FROM words WHERE book_id = ?", (book_id,))
        return cur.rowcount

    def _row_to_book(self, row: sqlite3.Row) -> BookModel:
        return BookModel(
            id=row["id"],
            name=row["name"],
            description=row["description"],
            cover_url=row["cover_url"],
            grade=row["grade"],
            level=row["level"],
            publisher=row["publisher"],
            tags=tuple(row["tags"] or ()),
            sort_order=row["sort_order"],
            is_active=bool(row["is_active"]),
            word_count=row["word_count"],
            created_at=row["created_at"],
            updated_at=row["updated_at"],
        )

    # ------------------------------------------------------------------
    # Words
    # ------------------------------------------------------------------

    @_modifies_db
    def create_word(self, data: NormalizedWord | Mapping[str, Any]) -> WordDetail:
        word = _coerce_word(data)
        if word.book_id:
            _db.create_books_if_missing(self._conn, [word.book_id])
        word_id = _writer.create_word(self._conn, word)
        return self._build_word_detail(word_id)

    @_modifies_db
    def update_word(
        self, word_id: str, data: NormalizedWord | Mapping[str, Any]
    ) -> WordDetail:
        word = _coerce_word(data)
        if _db.get_word_rowid(self._conn, word_id) is None:
            raise EntityNotFoundError(f"Word not found: {word_id!r}")
        if word.book_id:
            _db.create_books_if_missing(self._conn, [word.book_id])
        _writer.replace_word(self._conn, word_id, word)
        return self._build_word_detail(word_id)

    def get_word(self, word_id: str) -> WordDetail:
        return self._build_word_detail(word_id)

    def find_words(
        self,
        *,
        query: str | None = None,
        book_id: str | None = None,
        limit: int = DEFAULT_PAGE_SIZE,
        offset: int = 0,
    ) -> list[WordModel]:
        where, params = _word_filter(query, book_id)
        limit = min(max(limit, 1), MAX_PAGE_SIZE)
        rows = self._conn.execute(
            "SELECT id, headword, rank, book_id, phonetic_us, phonetic_uk, updated_at "
            f"FROM words WHERE {where} "
            "ORDER BY updated_at DESC, rowid DESC LIMIT ? OFFSET ?",
            (*params, limit, max(offset, 0)),
        ).fetchall()
        return [
            WordModel(
                id=r["id"],
                headword=r["headword"],
                rank=r["rank"],
                book_id=r["book_id"],
                phonetic_us=r["phonetic_us"],
                phonetic_uk=r["phonetic_uk"],
                updated_at=r["updated_at"],
            )
            for r in rows
        ]

    def count_words(
        self, *, query: str | None = None, book_id: str | None = None
    ) -> int:
        where, params = _word_filter(query, book_id)
        row = self._conn.execute(
            f"SELECT COUNT(*) FROM words WHERE {where}", params
        ).fetchone()
        return row[0]

    @_modifies_db
    def delete_word(self, word_id: str) -> None:
        cur = self._conn.execute("DELETE FROM words WHERE id = ?", (word_id,))
        if cur.rowcount == 0:
            raise EntityNotFoundError(f"Word not found: {word_id!r}")

    def _build_word_detail(self, word_id: str) -> WordDetail:
        row = _db.get_word_row(self._conn, word_id)
        if row is None:
            raise EntityNotFoundError(f"Word not found: {word_id!r}")
        rowid = row["rowid"]

        def children(sql: str, key: int = rowid) -> list[sqlite3.Row]:
            return self._conn.execute(sql, (key,)).fetchall()

        definitions = []
        for d in children("SELECT rowid, * FROM definitions WHERE word_rowid = ? ORDER BY rowid"):
            examples = children(
                "SELECT * FROM example_sentences WHERE definition_rowid = ? ORDER BY rowid",
                d["rowid"],
            )
            definitions.append(Definition(
                part_of_speech=d["part_of_speech"],
                pos=d["pos"],
                meaning_cn=d["meaning_cn"],
                meaning_en=d["meaning_en"],
                note=d["note"],
                examples=tuple(_row_to_example(e) for e in examples),
            ))

        groups = []
        for g in children("SELECT rowid, * FROM synonym_groups WHERE word_rowid = ? ORDER BY rowid"):
            items = children(
                "SELECT value FROM synonyms WHERE group_rowid = ? ORDER BY rowid",
                g["rowid"],
            )
            groups.append(SynonymGroup(
                part_of_speech=g["part_of_speech"],
                meaning_cn=g["meaning_cn"],
                note=g["note"],
                items=tuple(i["value"] for i in items),
            ))

        questions = []
        for q in children("SELECT rowid, * FROM exam_questions WHERE word_rowid = ? ORDER BY rowid"):
            choices = children(
                "SELECT value, choice_index FROM exam_choices "
                "WHERE question_rowid = ? ORDER BY rowid",
                q["rowid"],
            )
            questions.append(ExamQuestion(
                question=q["question"],
                exam_type=q["exam_type"],
                explanation=q["explanation"],
                right_index=q["right_index"],
                choices=tuple(
                    ExamChoice(value=c["value"], index=c["choice_index"])
                    for c in choices
                ),
            ))

        word = NormalizedWord(
            **{col: row[col] for col in _writer.SCALAR_COLUMNS},
            definitions=tuple(definitions),
            examples=tuple(
                _row_to_example(e) for e in children(
                    "SELECT * FROM example_sentences "
                    "WHERE word_rowid = ? AND definition_rowid IS NULL ORDER BY rowid"
                )
            ),
            synonym_groups=tuple(groups),
            phrases=tuple(
                Phrase(content=p["content"], meaning_cn=p["meaning_cn"],
                       meaning_en=p["meaning_en"])
                for p in children("SELECT * FROM phrases WHERE word_rowid = ? ORDER BY rowid")
            ),
            related_words=tuple(
                RelatedWord(headword=r["headword"], part_of_speech=r["part_of_speech"],
                            meaning_cn=r["meaning_cn"])
                for r in children("SELECT * FROM related_words WHERE word_rowid = ? ORDER BY rowid")
            ),
            antonyms=tuple(
                Antonym(headword=a["headword"], meta=a["meta"])
                for a in children("SELECT * FROM antonyms WHERE word_rowid = ? ORDER BY rowid")
            ),
            real_exam_sentences=tuple(
                RealExamSentence(
                    content=s["content"],
                    level=s["level"],
                    paper=s["paper"],
                    source_type=s["source_type"],
                    year=s["year"],
                    order=s["sort_order"],
                    source_info=s["source_info"],
                )
                for s in children(
                    "SELECT * FROM real_exam_sentences WHERE word_rowid = ? "
                    "ORDER BY sort_order IS NULL, sort_order, rowid"
                )
            ),
            exam_questions=tuple(questions),
        )
        return WordDetail(
            id=row["id"],
            word=word,
            created_at=row["created_at"],
            updated_at=row["updated_at"],
        )

    # ------------------------------------------------------------------
    # Imports
    # ------------------------------------------------------------------

    def import_words(
        self,
        raw_entries: Sequence[Any],
        *,
        dry_run: bool = False,
        source_name: str | None = None,
    ) -> ImportSummary:
        """Run the import pipeline; see :func:`wordbook_editor.importer.import_words`."""
        return _importer.import_words(
            self._conn, raw_entries, dry_run=dry_run, source_name=source_name
        )

    def list_import_batches(
        self,
        *,
        source_name: str | None = None,
        limit: int | None = None,
    ) -> list[ImportBatchModel]:
        return _hist.query_batches(self._conn, source_name=source_name, limit=limit)

    def get_import_batch(self, batch_id: str) -> ImportBatchModel:
        return _hist.get_batch(self._conn, batch_id)

    def get_import_logs(
        self,
        batch_id: str,
        *,
        status: ImportStatus | str | None = None,
    ) -> list[ImportLogModel]:
        if _db.get_batch_row(self._conn, batch_id) is None:
            raise EntityNotFoundError(f"Import batch not found: {batch_id!r}")
        return _hist.query_logs(self._conn, batch_id, status=status)


# ----------------------------------------------------------------------
# Helpers
# ----------------------------------------------------------------------

def _coerce_word(data: NormalizedWord | Mapping[str, Any]) -> NormalizedWord:
    if isinstance(data, NormalizedWord):
        return data
    result = validate_word(data)
    if result.word is None:
        raise ValidationError(f"Invalid word data: {result.reason}", list(result.issues))
    return result.word


def _check_book_id(book_id: Any) -> str:
    value = book_id.strip() if isinstance(book_id, str) else ""
    if not value:
        raise ValidationError(
            "Book ID must be a non-empty string",
            [ValidationIssue("bookId", "must be a non-empty string")],
        )
    limit = MAX_LENGTHS["bookId"]
    if len(value) > limit:
        raise ValidationError(
            f"Book ID must be at most {limit} characters",
            [ValidationIssue("bookId", f"must be at most {limit} characters")],
        )
    return value


def _nullable_str(value: str | None) -> str | None:
    if value is None:
        return None
    value = value.strip()
    return value or None


def _word_filter(query: str | None, book_id: str | None) -> tuple[str, list[str]]:
    clauses: list[str] = []
    params: list[str] = []
    if query is not None and query.strip():
        escaped = (
            query.strip()
            .replace("\\", "\\\\")
            .replace("%", "\\%")
            .replace("_", "\\_")
        )
        clauses.append("headword LIKE ? ESCAPE '\\'")
        params.append(f"%{escaped}%")
    if book_id is not None:
        clauses.append("book_id = ?")
        params.append(book_id)
    where = " AND ".join(clauses) if clauses else "1=1"
    return where, params


def _row_to_example(row: sqlite3.Row) -> ExampleSentence:
    return ExampleSentence(
        source=row["source"],
        translation=row["translation"],
        meta=row["meta"],
    )

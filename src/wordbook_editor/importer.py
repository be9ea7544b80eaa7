"""Import pipeline for wordbook-editor.

:func:`import_words` takes a decoded payload (a list of raw entries in
either the canonical or the legacy export shape) and accounts for every
entry as exactly one of ``success``, ``skipped`` or ``failed``::

    validate / normalize -> deduplicate -> provision books
        -> existence filter -> open batch -> write each record -> finalize

Data-quality problems never raise; they become
:class:`~wordbook_editor.models.ImportErrorDetail` entries in the returned
summary. Each record is written in its own transaction, so one bad record
never rolls back another.
"""

from __future__ import annotations

import logging
import sqlite3
from collections.abc import Generator, Iterable, Mapping, Sequence
from contextlib import contextmanager
from typing import Any, NamedTuple

from wordbook_editor import db as _db
from wordbook_editor import history as _hist
from wordbook_editor.exceptions import BookkeepingError, DataImportError
from wordbook_editor.models import (
    ImportErrorDetail,
    ImportStatus,
    ImportSummary,
    NormalizedWord,
)
from wordbook_editor.normalizer import normalize_dictionary_entry
from wordbook_editor.validator import validate_word
from wordbook_editor.writer import create_word

logger = logging.getLogger(__name__)

UNRECOGNIZED_FORMAT = "unrecognized data format"
ALREADY_EXISTS = "already exists in database, skipped"


class Candidate(NamedTuple):
    """A raw entry that parsed, tagged with its position in the payload."""

    index: int
    word: NormalizedWord


# ---------------------------------------------------------------------------
# Pipeline stages
# ---------------------------------------------------------------------------

def parse_entry(raw: Any) -> tuple[NormalizedWord | None, str | None]:
    """Parse one raw entry, trying the canonical shape then the legacy one.

    Returns ``(word, None)`` on success, or ``(None, reason)`` where
    *reason* joins the distinct messages of both attempts.
    """
    strict = validate_word(raw)
    if strict.ok:
        return strict.word, None

    legacy = normalize_dictionary_entry(raw)
    if legacy.ok:
        return legacy.word, None

    reasons = [str(issue) for issue in strict.issues]
    if legacy.reason:
        reasons.extend(legacy.reason.split("; "))
    reason = "; ".join(dict.fromkeys(r for r in reasons if r))
    return None, reason or UNRECOGNIZED_FORMAT


def dedup_key(word: NormalizedWord) -> str:
    return f"{word.headword.strip()}::{word.book_id or ''}"


def deduplicate(
    candidates: Iterable[Candidate],
) -> tuple[list[Candidate], list[ImportErrorDetail]]:
    """Keep the first candidate per ``(headword, book_id)`` key.

    Later repeats are rejected as ``skipped`` with a reason naming the
    1-based position of the first occurrence.
    """
    first_seen: dict[str, int] = {}
    kept: list[Candidate] = []
    rejected: list[ImportErrorDetail] = []
    for candidate in candidates:
        key = dedup_key(candidate.word)
        if key in first_seen:
            rejected.append(ImportErrorDetail(
                index=candidate.index,
                headword=candidate.word.headword,
                reason=f"same as entry #{first_seen[key] + 1}, skipped",
                status=ImportStatus.SKIPPED,
            ))
            continue
        first_seen[key] = candidate.index
        kept.append(candidate)
    return kept, rejected


def filter_existing(
    conn: sqlite3.Connection, candidates: Sequence[Candidate]
) -> tuple[list[Candidate], list[ImportErrorDetail]]:
    """Drop candidates whose ``(headword, book_id)`` is already stored."""
    if not candidates:
        return [], []
    existing = _db.find_existing_pairs(
        conn, [(c.word.headword, c.word.book_id) for c in candidates]
    )
    kept: list[Candidate] = []
    rejected: list[ImportErrorDetail] = []
    for candidate in candidates:
        if (candidate.word.headword, candidate.word.book_id) in existing:
            rejected.append(ImportErrorDetail(
                index=candidate.index,
                headword=candidate.word.headword,
                reason=ALREADY_EXISTS,
                status=ImportStatus.SKIPPED,
            ))
        else:
            kept.append(candidate)
    return kept, rejected


def provision_books(
    conn: sqlite3.Connection, candidates: Iterable[Candidate]
) -> list[str]:
    """Create a minimal book row for each referenced but unknown book ID."""
    book_ids = [c.word.book_id for c in candidates if c.word.book_id]
    if not book_ids:
        return []
    with _bookkeeping(conn, "provision books"):
        created = _db.create_books_if_missing(conn, book_ids)
    if created:
        logger.info(f"Created {len(created)} missing book(s): {', '.join(created)}")
    return created


# ---------------------------------------------------------------------------
# Orchestrator
# ---------------------------------------------------------------------------

def import_words(
    conn: sqlite3.Connection,
    raw_entries: Sequence[Any],
    *,
    dry_run: bool = False,
    source_name: str | None = None,
) -> ImportSummary:
    """Import a list of raw word entries and return the outcome summary.

    With *dry_run* every check runs (including the existence lookup) but
    nothing is written: no books, no batch, no logs, no words.

    Raises:
        DataImportError: *raw_entries* is not a list.
        BookkeepingError: the batch or log rows could not be written.
    """
    if not isinstance(raw_entries, (list, tuple)):
        raise DataImportError("Import payload must be an array of word entries")

    summary = ImportSummary(total=len(raw_entries))
    logger.info(
        f"Importing {summary.total} entries"
        f"{' (dry run)' if dry_run else ''}"
        f"{f' from {source_name}' if source_name else ''}"
    )

    # 1. validate / normalize
    parsed: list[Candidate] = []
    skipped: list[ImportErrorDetail] = []
    for index, raw in enumerate(raw_entries):
        word, reason = parse_entry(raw)
        if word is None:
            skipped.append(ImportErrorDetail(
                index=index,
                headword=_pick_headword(raw, index),
                reason=reason or UNRECOGNIZED_FORMAT,
                status=ImportStatus.SKIPPED,
            ))
        else:
            parsed.append(Candidate(index, word))

    # 2. deduplicate
    candidates, duplicates = deduplicate(parsed)
    skipped.extend(duplicates)

    # 3. provision books
    if not dry_run:
        provision_books(conn, candidates)

    # 4. existence filter
    candidates, existing = filter_existing(conn, candidates)
    skipped.extend(existing)

    for detail in skipped:
        logger.debug(f"Skipping entry #{detail.index + 1} ({detail.headword}): {detail.reason}")
    summary.skipped = len(skipped)
    summary.errors.extend(skipped)

    # 5. open batch
    if not dry_run:
        with _bookkeeping(conn, "open import batch"):
            summary.batch_id = _hist.create_batch(
                conn,
                total=summary.total,
                skipped=summary.skipped,
                source_name=source_name,
            )
            for detail in skipped:
                _hist.record_log(
                    conn, summary.batch_id, detail.headword,
                    ImportStatus.SKIPPED, detail.reason,
                )

    # 6. write phase
    failed = 0
    batch_id = summary.batch_id
    for candidate in candidates:
        if batch_id is None:
            summary.success += 1
            continue
        if _write_candidate(conn, batch_id, summary, candidate):
            summary.success += 1
        else:
            failed += 1

    # 7. finalize
    summary.failed = max(0, summary.total - summary.success - summary.skipped)
    if summary.failed != failed:
        logger.warning(
            f"Failure count mismatch: tracked {failed}, "
            f"recomputed {summary.failed}"
        )
    summary.errors.sort(key=lambda e: e.index)

    if summary.batch_id is not None:
        with _bookkeeping(conn, "finish import batch"):
            _hist.finish_batch(conn, summary.batch_id, summary)

    logger.info(
        f"Import finished: {summary.success} created, "
        f"{summary.skipped} skipped, {summary.failed} failed"
    )
    return summary


def _write_candidate(
    conn: sqlite3.Connection,
    batch_id: str,
    summary: ImportSummary,
    candidate: Candidate,
) -> bool:
    headword = candidate.word.headword
    try:
        with _db.transaction(conn):
            word_id = create_word(conn, candidate.word)
            _hist.record_log(
                conn, batch_id, headword, ImportStatus.SUCCESS, "created",
                word_id=word_id,
            )
    except Exception as e:
        logger.exception(f"Error importing entry #{candidate.index + 1} ({headword})")
        reason = _error_message(e)
        summary.errors.append(ImportErrorDetail(
            index=candidate.index,
            headword=headword,
            reason=reason,
            status=ImportStatus.FAILED,
        ))
        with _bookkeeping(conn, "record import log"):
            _hist.record_log(conn, batch_id, headword, ImportStatus.FAILED, reason)
        return False

    logger.debug(f"Created word {word_id} for entry #{candidate.index + 1} ({headword})")
    return True


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

@contextmanager
def _bookkeeping(conn: sqlite3.Connection, action: str) -> Generator[None, None, None]:
    try:
        with _db.transaction(conn):
            yield
    except sqlite3.Error as e:
        raise BookkeepingError(f"Could not {action}: {e}") from e


def _pick_headword(raw: Any, index: int) -> str:
    if isinstance(raw, Mapping):
        for key in ("headword", "head_word"):
            value = raw.get(key)
            if isinstance(value, str) and value.strip():
                return value.strip()
    return f"#{index + 1}"


def _error_message(error: BaseException) -> str:
    if isinstance(error, sqlite3.Error):
        code = getattr(error, "sqlite_errorname", None) or type(error).__name__
        return f"database error ({code}): {error}" if str(error) else f"database error ({code})"
    return str(error) or "unknown error"

"""Import batch and log recording and querying for wordbook-editor."""

from __future__ import annotations

import sqlite3
import uuid

from wordbook_editor import db as _db
from wordbook_editor.exceptions import EntityNotFoundError
from wordbook_editor.models import (
    ImportBatchModel,
    ImportLogModel,
    ImportStatus,
    ImportSummary,
)


def create_batch(
    conn: sqlite3.Connection,
    *,
    total: int,
    skipped: int = 0,
    source_name: str | None = None,
) -> str:
    """Open an import batch row and return its ID."""
    batch_id = uuid.uuid4().hex
    conn.execute(
        "INSERT INTO import_batches (id, source_name, total_count, skipped_count) "
        "VALUES (?, ?, ?, ?)",
        (batch_id, source_name, total, skipped),
    )
    return batch_id


def record_log(
    conn: sqlite3.Connection,
    batch_id: str,
    raw_headword: str,
    status: ImportStatus,
    message: str | None = None,
    *,
    word_id: str | None = None,
) -> None:
    """Record the outcome of one raw entry."""
    conn.execute(
        "INSERT INTO import_logs (batch_id, word_id, raw_headword, status, message) "
        "VALUES (?, ?, ?, ?, ?)",
        (batch_id, word_id, raw_headword, ImportStatus(status).value, message),
    )


def finish_batch(
    conn: sqlite3.Connection, batch_id: str, summary: ImportSummary
) -> None:
    """Store the final counts and error list on a batch row."""
    cur = conn.execute(
        "UPDATE import_batches SET total_count = ?, success_count = ?, "
        "skipped_count = ?, failed_count = ?, error_details = ?, "
        "updated_at = strftime('%Y-%m-%dT%H:%M:%f', 'now') "
        "WHERE id = ?",
        (
            summary.total,
            summary.success,
            summary.skipped,
            summary.failed,
            _db.dump_json([e.to_dict() for e in summary.errors]),
            batch_id,
        ),
    )
    if cur.rowcount == 0:
        raise EntityNotFoundError(f"Import batch not found: {batch_id!r}")


def get_batch(conn: sqlite3.Connection, batch_id: str) -> ImportBatchModel:
    row = _db.get_batch_row(conn, batch_id)
    if row is None:
        raise EntityNotFoundError(f"Import batch not found: {batch_id!r}")
    return _row_to_batch(row)


def query_batches(
    conn: sqlite3.Connection,
    *,
    source_name: str | None = None,
    since: str | None = None,
    limit: int | None = None,
) -> list[ImportBatchModel]:
    """Query import batches, newest first, with optional filters."""
    clauses: list[str] = []
    params: list[object] = []

    if source_name is not None:
        clauses.append("source_name = ?")
        params.append(source_name)
    if since is not None:
        clauses.append("created_at > ?")
        params.append(since)

    where = " AND ".join(clauses) if clauses else "1=1"
    sql = (
        f"SELECT rowid, * FROM import_batches WHERE {where} "
        "ORDER BY created_at DESC, rowid DESC"
    )
    if limit is not None:
        sql += " LIMIT ?"
        params.append(limit)

    rows = conn.execute(sql, params).fetchall()
    return [_row_to_batch(row) for row in rows]


def query_logs(
    conn: sqlite3.Connection,
    batch_id: str,
    *,
    status: ImportStatus | str | None = None,
) -> list[ImportLogModel]:
    """Query the log rows of one batch in the order they were written."""
    sql = "SELECT rowid, * FROM import_logs WHERE batch_id = ?"
    params: list[str] = [batch_id]
    if status is not None:
        sql += " AND status = ?"
        params.append(ImportStatus(status).value)
    sql += " ORDER BY rowid ASC"

    rows = conn.execute(sql, params).fetchall()
    return [
        ImportLogModel(
            id=row["rowid"],
            batch_id=row["batch_id"],
            word_id=row["word_id"],
            raw_headword=row["raw_headword"],
            status=row["status"],
            message=row["message"],
            created_at=row["created_at"],
        )
        for row in rows
    ]


def _row_to_batch(row: sqlite3.Row) -> ImportBatchModel:
    return ImportBatchModel(
        id=row["id"],
        source_name=row["source_name"],
        total_count=row["total_count"],
        success_count=row["success_count"],
        skipped_count=row["skipped_count"],
        failed_count=row["failed_count"],
        error_details=row["error_details"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )

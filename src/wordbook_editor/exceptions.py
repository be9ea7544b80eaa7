"""Custom exception hierarchy for wordbook-editor."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from wordbook_editor.models import ValidationIssue


class WordbookEditorError(Exception):
    """Base exception for all wordbook-editor errors."""


class ValidationError(WordbookEditorError):
    """Word or book data rejected by the schema validator."""

    def __init__(self, message: str, issues: list[ValidationIssue] | None = None):
        self.issues = list(issues or [])
        super().__init__(message)


class EntityNotFoundError(WordbookEditorError):
    """Entity doesn't exist in the database."""


class DuplicateEntityError(WordbookEditorError):
    """Entity with same ID already exists."""


class ConflictError(WordbookEditorError):
    """Conflicting state (e.g., deleting a book that still has words)."""


class DataImportError(WordbookEditorError):
    """Import payload rejected before the pipeline runs."""


class ParseError(DataImportError):
    """Import payload could not be parsed into a list of entries."""

    def __init__(self, message: str, line: int | None = None):
        self.line = line
        super().__init__(message)


class DatabaseError(WordbookEditorError):
    """Schema version mismatch, nested transaction, connection failure."""


class BookkeepingError(DatabaseError):
    """Import batch or log rows could not be written."""

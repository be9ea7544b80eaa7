"""
Dictionary word-book store with a validating, auditable import pipeline.

Example usage:
    from wordbook_editor import WordbookEditor, load_import_payload

    with WordbookEditor("wordbook.db") as editor:
        summary = editor.import_words(
            load_import_payload("cet4.json"), source_name="cet4.json"
        )
        print(f"{summary.success}/{summary.total} created")
        for error in summary.errors:
            print(f"#{error.index + 1} {error.headword}: {error.reason}")
"""

__version__ = "0.1.0"

from .editor import WordbookEditor as WordbookEditor

from .importer import (
    import_words as import_words,
    deduplicate as deduplicate,
    filter_existing as filter_existing,
)

from .validator import validate_word as validate_word
from .normalizer import normalize_dictionary_entry as normalize_dictionary_entry
from .audio import derive_audio_urls as derive_audio_urls
from .parser import load_import_payload as load_import_payload
from .cleaner import (
    CleanResult as CleanResult,
    clean_json_data as clean_json_data,
    should_clean_data as should_clean_data,
)

from .models import (
    ImportStatus as ImportStatus,
    NormalizedWord as NormalizedWord,
    Definition as Definition,
    ExampleSentence as ExampleSentence,
    SynonymGroup as SynonymGroup,
    Phrase as Phrase,
    RelatedWord as RelatedWord,
    Antonym as Antonym,
    RealExamSentence as RealExamSentence,
    ExamQuestion as ExamQuestion,
    ExamChoice as ExamChoice,
    ValidationIssue as ValidationIssue,
    WordParseResult as WordParseResult,
    NormalizationResult as NormalizationResult,
    ImportErrorDetail as ImportErrorDetail,
    ImportSummary as ImportSummary,
    BookModel as BookModel,
    WordModel as WordModel,
    WordDetail as WordDetail,
    ImportBatchModel as ImportBatchModel,
    ImportLogModel as ImportLogModel,
)

from .exceptions import (
    WordbookEditorError as WordbookEditorError,
    ValidationError as ValidationError,
    EntityNotFoundError as EntityNotFoundError,
    DuplicateEntityError as DuplicateEntityError,
    ConflictError as ConflictError,
    DataImportError as DataImportError,
    ParseError as ParseError,
    DatabaseError as DatabaseError,
    BookkeepingError as BookkeepingError,
)

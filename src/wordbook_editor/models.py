"""Domain model dataclasses and enums for wordbook-editor."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class ImportStatus(str, Enum):
    """Outcome of one raw entry in an import batch."""

    SUCCESS = "success"
    SKIPPED = "skipped"
    FAILED = "failed"


# ---------------------------------------------------------------------------
# Canonical word shape
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class ExampleSentence:
    """A usage example, standalone or attached to a definition."""

    source: str
    translation: str | None = None
    meta: dict[str, Any] | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "source": self.source,
            "translation": self.translation,
            "meta": self.meta,
        }


@dataclass(frozen=True, slots=True)
class Definition:
    """One meaning of a headword."""

    part_of_speech: str | None = None
    pos: str | None = None
    meaning_cn: str | None = None
    meaning_en: str | None = None
    note: str | None = None
    examples: tuple[ExampleSentence, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "partOfSpeech": self.part_of_speech,
            "pos": self.pos,
            "meaningCn": self.meaning_cn,
            "meaningEn": self.meaning_en,
            "note": self.note,
            "examples": [e.to_dict() for e in self.examples],
        }


@dataclass(frozen=True, slots=True)
class SynonymGroup:
    """Synonyms sharing a part of speech and translation."""

    part_of_speech: str | None = None
    meaning_cn: str | None = None
    note: str | None = None
    items: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "partOfSpeech": self.part_of_speech,
            "meaningCn": self.meaning_cn,
            "note": self.note,
            "items": list(self.items),
        }


@dataclass(frozen=True, slots=True)
class Phrase:
    """A set phrase containing the headword."""

    content: str
    meaning_cn: str | None = None
    meaning_en: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "content": self.content,
            "meaningCn": self.meaning_cn,
            "meaningEn": self.meaning_en,
        }


@dataclass(frozen=True, slots=True)
class RelatedWord:
    """A derived or cognate word."""

    headword: str
    part_of_speech: str | None = None
    meaning_cn: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "headword": self.headword,
            "partOfSpeech": self.part_of_speech,
            "meaningCn": self.meaning_cn,
        }


@dataclass(frozen=True, slots=True)
class Antonym:
    """An antonym, with whatever extra keys the source carried."""

    headword: str
    meta: dict[str, Any] | None = None

    def to_dict(self) -> dict[str, Any]:
        return {"headword": self.headword, "meta": self.meta}


@dataclass(frozen=True, slots=True)
class RealExamSentence:
    """A sentence quoted from a past exam paper."""

    content: str
    level: str | None = None
    paper: str | None = None
    source_type: str | None = None
    year: str | None = None
    order: int | None = None
    source_info: dict[str, Any] | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "content": self.content,
            "level": self.level,
            "paper": self.paper,
            "sourceType": self.source_type,
            "year": self.year,
            "order": self.order,
            "sourceInfo": self.source_info,
        }


@dataclass(frozen=True, slots=True)
class ExamChoice:
    """One answer option of an exam question."""

    value: str
    index: int | None = None

    def to_dict(self) -> dict[str, Any]:
        return {"value": self.value, "index": self.index}


@dataclass(frozen=True, slots=True)
class ExamQuestion:
    """A multiple-choice question testing the headword."""

    question: str
    exam_type: int | None = None
    explanation: str | None = None
    right_index: int | None = None
    choices: tuple[ExamChoice, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "question": self.question,
            "examType": self.exam_type,
            "explanation": self.explanation,
            "rightIndex": self.right_index,
            "choices": [c.to_dict() for c in self.choices],
        }


@dataclass(frozen=True, slots=True)
class NormalizedWord:
    """A validated word entry with its full nested graph."""

    headword: str
    rank: int | None = None
    book_id: str | None = None
    phonetic_us: str | None = None
    phonetic_uk: str | None = None
    audio_us: str | None = None
    audio_uk: str | None = None
    audio_us_raw: str | None = None
    audio_uk_raw: str | None = None
    phonetic: str | None = None
    speech: str | None = None
    star: int | None = None
    source_word_id: str | None = None
    memory_tip: str | None = None
    memory_tip_desc: str | None = None
    sentence_desc: str | None = None
    synonym_desc: str | None = None
    phrase_desc: str | None = None
    related_desc: str | None = None
    antonym_desc: str | None = None
    real_exam_sentence_desc: str | None = None
    picture_url: str | None = None
    definitions: tuple[Definition, ...] = ()
    examples: tuple[ExampleSentence, ...] = ()
    synonym_groups: tuple[SynonymGroup, ...] = ()
    phrases: tuple[Phrase, ...] = ()
    related_words: tuple[RelatedWord, ...] = ()
    antonyms: tuple[Antonym, ...] = ()
    real_exam_sentences: tuple[RealExamSentence, ...] = ()
    exam_questions: tuple[ExamQuestion, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        """Render the camelCase shape accepted by the validator."""
        return {
            "headword": self.headword,
            "rank": self.rank,
            "bookId": self.book_id,
            "phoneticUs": self.phonetic_us,
            "phoneticUk": self.phonetic_uk,
            "audioUs": self.audio_us,
            "audioUk": self.audio_uk,
            "audioUsRaw": self.audio_us_raw,
            "audioUkRaw": self.audio_uk_raw,
            "phonetic": self.phonetic,
            "speech": self.speech,
            "star": self.star,
            "sourceWordId": self.source_word_id,
            "memoryTip": self.memory_tip,
            "memoryTipDesc": self.memory_tip_desc,
            "sentenceDesc": self.sentence_desc,
            "synonymDesc": self.synonym_desc,
            "phraseDesc": self.phrase_desc,
            "relatedDesc": self.related_desc,
            "antonymDesc": self.antonym_desc,
            "realExamSentenceDesc": self.real_exam_sentence_desc,
            "pictureUrl": self.picture_url,
            "definitions": [d.to_dict() for d in self.definitions],
            "examples": [e.to_dict() for e in self.examples],
            "synonymGroups": [g.to_dict() for g in self.synonym_groups],
            "phrases": [p.to_dict() for p in self.phrases],
            "relatedWords": [r.to_dict() for r in self.related_words],
            "antonyms": [a.to_dict() for a in self.antonyms],
            "realExamSentences": [s.to_dict() for s in self.real_exam_sentences],
            "examQuestions": [q.to_dict() for q in self.exam_questions],
        }


# ---------------------------------------------------------------------------
# Validation / normalization results
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class ValidationIssue:
    """A single field-level validation failure."""

    path: str
    message: str

    def __str__(self) -> str:
        return f"{self.path}: {self.message}" if self.path else self.message


@dataclass(frozen=True, slots=True)
class WordParseResult:
    """Outcome of strict schema validation."""

    word: NormalizedWord | None
    issues: tuple[ValidationIssue, ...] = ()

    @property
    def ok(self) -> bool:
        return self.word is not None

    @property
    def reason(self) -> str:
        return "; ".join(str(i) for i in self.issues)


@dataclass(frozen=True, slots=True)
class NormalizationResult:
    """Outcome of adapting a legacy dictionary entry."""

    word: NormalizedWord | None
    reason: str | None = None

    @property
    def ok(self) -> bool:
        return self.word is not None


# ---------------------------------------------------------------------------
# Import results
# ---------------------------------------------------------------------------

@dataclass
class ImportErrorDetail:
    """A raw entry that was skipped or failed to persist."""
    index: int
    headword: str
    reason: str
    status: ImportStatus

    def to_dict(self) -> dict[str, Any]:
        return {
            "index": self.index,
            "headword": self.headword,
            "reason": self.reason,
            "status": self.status.value,
        }


@dataclass
class ImportSummary:
    """Aggregate result of one import invocation."""
    total: int
    success: int = 0
    skipped: int = 0
    failed: int = 0
    batch_id: str | None = None
    errors: list[ImportErrorDetail] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "total": self.total,
            "success": self.success,
            "skipped": self.skipped,
            "failed": self.failed,
            "batchId": self.batch_id,
            "errors": [e.to_dict() for e in self.errors],
        }


# ---------------------------------------------------------------------------
# Read models
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class BookModel:
    """A named grouping of words (a textbook or unit)."""

    id: str
    name: str
    description: str | None
    cover_url: str | None
    grade: str | None
    level: str | None
    publisher: str | None
    tags: tuple[str, ...]
    sort_order: int | None
    is_active: bool
    word_count: int
    created_at: str
    updated_at: str


@dataclass(frozen=True, slots=True)
class WordModel:
    """A word as listed in search results."""

    id: str
    headword: str
    rank: int | None
    book_id: str | None
    phonetic_us: str | None
    phonetic_uk: str | None
    updated_at: str


@dataclass(frozen=True, slots=True)
class WordDetail:
    """A stored word with its full nested graph."""

    id: str
    word: NormalizedWord
    created_at: str
    updated_at: str


@dataclass(frozen=True, slots=True)
class ImportBatchModel:
    """One persisted import invocation."""

    id: str
    source_name: str | None
    total_count: int
    success_count: int
    skipped_count: int
    failed_count: int
    error_details: list[dict[str, Any]] | None
    created_at: str
    updated_at: str


@dataclass(frozen=True, slots=True)
class ImportLogModel:
    """Outcome of one raw entry within a batch."""

    id: int
    batch_id: str
    word_id: str | None
    raw_headword: str
    status: str
    message: str | None
    created_at: str

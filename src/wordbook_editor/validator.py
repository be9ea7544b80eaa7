"""Schema validation for canonical word records.

:func:`validate_word` parses an arbitrary value (usually one element of a
decoded JSON payload) into a :class:`~wordbook_editor.models.NormalizedWord`.
Malformed input is an expected case: every problem is reported as a
:class:`~wordbook_editor.models.ValidationIssue` and nothing is raised.

Strings are trimmed and blank strings read as absent. Nested records that
end up with no content (a definition with no text and no examples, an
example without ``source``, a phrase without ``content``...) are dropped
rather than reported.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from typing import Any

from wordbook_editor.models import (
    Antonym,
    Definition,
    ExamChoice,
    ExampleSentence,
    ExamQuestion,
    NormalizedWord,
    Phrase,
    RealExamSentence,
    RelatedWord,
    SynonymGroup,
    ValidationIssue,
    WordParseResult,
)

MAX_LENGTHS: dict[str, int] = {
    "headword": 255,
    "bookId": 255,
    "phoneticUs": 255,
    "phoneticUk": 255,
}

# (attribute, wire key) pairs for the optional top-level strings
_WORD_STRING_FIELDS = (
    ("book_id", "bookId"),
    ("phonetic_us", "phoneticUs"),
    ("phonetic_uk", "phoneticUk"),
    ("audio_us", "audioUs"),
    ("audio_uk", "audioUk"),
    ("audio_us_raw", "audioUsRaw"),
    ("audio_uk_raw", "audioUkRaw"),
    ("phonetic", "phonetic"),
    ("speech", "speech"),
    ("source_word_id", "sourceWordId"),
    ("memory_tip", "memoryTip"),
    ("memory_tip_desc", "memoryTipDesc"),
    ("sentence_desc", "sentenceDesc"),
    ("synonym_desc", "synonymDesc"),
    ("phrase_desc", "phraseDesc"),
    ("related_desc", "relatedDesc"),
    ("antonym_desc", "antonymDesc"),
    ("real_exam_sentence_desc", "realExamSentenceDesc"),
    ("picture_url", "pictureUrl"),
)


def validate_word(value: Any) -> WordParseResult:
    """Validate *value* against the canonical word shape."""
    issues: list[ValidationIssue] = []
    if not isinstance(value, Mapping):
        return WordParseResult(None, (ValidationIssue("", "expected an object"),))

    headword = _required_str(value, "headword", "", issues)
    rank = _opt_int(value, "rank", "", issues, positive=True)
    scalars = {
        attr: _opt_str(value, key, "", issues)
        for attr, key in _WORD_STRING_FIELDS
    }
    star = _opt_int(value, "star", "", issues)

    definitions = tuple(
        d for d in (
            _definition(item, path, issues)
            for path, item in _items(value, "definitions", "", issues)
        ) if d is not None
    )
    examples = _examples(value, "examples", "", issues)
    synonym_groups = tuple(
        g for g in (
            _synonym_group(item, path, issues)
            for path, item in _items(value, "synonymGroups", "", issues)
        ) if g is not None
    )
    phrases = tuple(
        p for p in (
            _phrase(item, path, issues)
            for path, item in _items(value, "phrases", "", issues)
        ) if p is not None
    )
    related_words = tuple(
        r for r in (
            _related_word(item, path, issues)
            for path, item in _items(value, "relatedWords", "", issues)
        ) if r is not None
    )
    antonyms = tuple(
        a for a in (
            _antonym(item, path, issues)
            for path, item in _items(value, "antonyms", "", issues)
        ) if a is not None
    )
    real_exam_sentences = tuple(
        s for s in (
            _real_exam_sentence(item, path, issues)
            for path, item in _items(value, "realExamSentences", "", issues)
        ) if s is not None
    )
    exam_questions = tuple(
        q for q in (
            _exam_question(item, path, issues)
            for path, item in _items(value, "examQuestions", "", issues)
        ) if q is not None
    )

    if issues or headword is None:
        return WordParseResult(None, tuple(issues))

    return WordParseResult(
        NormalizedWord(
            headword=headword,
            rank=rank,
            star=star,
            definitions=definitions,
            examples=examples,
            synonym_groups=synonym_groups,
            phrases=phrases,
            related_words=related_words,
            antonyms=antonyms,
            real_exam_sentences=real_exam_sentences,
            exam_questions=exam_questions,
            **scalars,
        )
    )


# ---------------------------------------------------------------------------
# Nested records
# ---------------------------------------------------------------------------

def _examples(
    data: Mapping, key: str, parent: str, issues: list[ValidationIssue]
) -> tuple[ExampleSentence, ...]:
    result = []
    for path, item in _items(data, key, parent, issues):
        source = _opt_str(item, "source", path, issues)
        translation = _opt_str(item, "translation", path, issues)
        meta = _opt_mapping(item, "meta", path, issues)
        if source is None:
            continue
        result.append(ExampleSentence(source=source, translation=translation, meta=meta))
    return tuple(result)


def _definition(
    item: Mapping, path: str, issues: list[ValidationIssue]
) -> Definition | None:
    definition = Definition(
        part_of_speech=_opt_str(item, "partOfSpeech", path, issues),
        pos=_opt_str(item, "pos", path, issues),
        meaning_cn=_opt_str(item, "meaningCn", path, issues),
        meaning_en=_opt_str(item, "meaningEn", path, issues),
        note=_opt_str(item, "note", path, issues),
        examples=_examples(item, "examples", path, issues),
    )
    has_content = any((
        definition.part_of_speech,
        definition.pos,
        definition.meaning_cn,
        definition.meaning_en,
        definition.note,
        definition.examples,
    ))
    return definition if has_content else None


def _synonym_group(
    item: Mapping, path: str, issues: list[ValidationIssue]
) -> SynonymGroup | None:
    items: list[str] = []
    raw_items = item.get("items")
    items_path = _join(path, "items")
    if raw_items is not None:
        if not isinstance(raw_items, list):
            issues.append(ValidationIssue(items_path, "expected a list"))
        else:
            for i, raw in enumerate(raw_items):
                if not isinstance(raw, str):
                    issues.append(ValidationIssue(f"{items_path}[{i}]", "expected a string"))
                elif raw.strip():
                    items.append(raw.strip())

    group = SynonymGroup(
        part_of_speech=_opt_str(item, "partOfSpeech", path, issues),
        meaning_cn=_opt_str(item, "meaningCn", path, issues),
        note=_opt_str(item, "note", path, issues),
        items=tuple(items),
    )
    if group.items or group.part_of_speech or group.meaning_cn or group.note:
        return group
    return None


def _phrase(item: Mapping, path: str, issues: list[ValidationIssue]) -> Phrase | None:
    content = _opt_str(item, "content", path, issues)
    meaning_cn = _opt_str(item, "meaningCn", path, issues)
    meaning_en = _opt_str(item, "meaningEn", path, issues)
    if content is None:
        return None
    return Phrase(content=content, meaning_cn=meaning_cn, meaning_en=meaning_en)


def _related_word(
    item: Mapping, path: str, issues: list[ValidationIssue]
) -> RelatedWord | None:
    headword = _opt_str(item, "headword", path, issues)
    part_of_speech = _opt_str(item, "partOfSpeech", path, issues)
    meaning_cn = _opt_str(item, "meaningCn", path, issues)
    if headword is None:
        return None
    return RelatedWord(
        headword=headword, part_of_speech=part_of_speech, meaning_cn=meaning_cn
    )


def _antonym(item: Mapping, path: str, issues: list[ValidationIssue]) -> Antonym | None:
    headword = _opt_str(item, "headword", path, issues)
    meta = _opt_mapping(item, "meta", path, issues)
    if headword is None:
        return None
    return Antonym(headword=headword, meta=meta)


def _real_exam_sentence(
    item: Mapping, path: str, issues: list[ValidationIssue]
) -> RealExamSentence | None:
    sentence = RealExamSentence(
        content=_opt_str(item, "content", path, issues) or "",
        level=_opt_str(item, "level", path, issues),
        paper=_opt_str(item, "paper", path, issues),
        source_type=_opt_str(item, "sourceType", path, issues),
        year=_opt_str(item, "year", path, issues),
        order=_opt_int(item, "order", path, issues),
        source_info=_opt_mapping(item, "sourceInfo", path, issues),
    )
    return sentence if sentence.content else None


def _exam_question(
    item: Mapping, path: str, issues: list[ValidationIssue]
) -> ExamQuestion | None:
    question = _opt_str(item, "question", path, issues)
    exam_type = _opt_int(item, "examType", path, issues)
    explanation = _opt_str(item, "explanation", path, issues)
    right_index = _opt_int(item, "rightIndex", path, issues)
    choices = []
    for choice_path, choice in _items(item, "choices", path, issues):
        value = _opt_str(choice, "value", choice_path, issues)
        index = _opt_int(choice, "index", choice_path, issues)
        if value is not None:
            choices.append(ExamChoice(value=value, index=index))
    if question is None:
        return None
    return ExamQuestion(
        question=question,
        exam_type=exam_type,
        explanation=explanation,
        right_index=right_index,
        choices=tuple(choices),
    )


# ---------------------------------------------------------------------------
# Field readers
# ---------------------------------------------------------------------------

def _join(parent: str, key: str) -> str:
    return f"{parent}.{key}" if parent else key


def _required_str(
    data: Mapping, key: str, parent: str, issues: list[ValidationIssue]
) -> str | None:
    path = _join(parent, key)
    raw = data.get(key)
    if raw is not None and not isinstance(raw, str):
        issues.append(ValidationIssue(path, "expected a string"))
        return None
    value = raw.strip() if raw else ""
    if not value:
        issues.append(ValidationIssue(path, "must be a non-empty string"))
        return None
    return _check_length(value, key, path, issues)


def _opt_str(
    data: Mapping, key: str, parent: str, issues: list[ValidationIssue]
) -> str | None:
    raw = data.get(key)
    if raw is None:
        return None
    path = _join(parent, key)
    if not isinstance(raw, str):
        issues.append(ValidationIssue(path, "expected a string"))
        return None
    value = raw.strip()
    if not value:
        return None
    return _check_length(value, key, path, issues)


def _check_length(
    value: str, key: str, path: str, issues: list[ValidationIssue]
) -> str:
    limit = MAX_LENGTHS.get(key) if "." not in path else None
    if limit is not None and len(value) > limit:
        issues.append(ValidationIssue(path, f"must be at most {limit} characters"))
    return value


def _opt_int(
    data: Mapping,
    key: str,
    parent: str,
    issues: list[ValidationIssue],
    *,
    positive: bool = False,
) -> int | None:
    raw = data.get(key)
    if raw is None:
        return None
    path = _join(parent, key)
    if isinstance(raw, bool):
        value = None
    elif isinstance(raw, int):
        value = raw
    elif isinstance(raw, float) and raw.is_integer():
        value = int(raw)
    else:
        value = None
    if value is None:
        issues.append(ValidationIssue(path, "expected an integer"))
        return None
    if positive and value <= 0:
        issues.append(ValidationIssue(path, "must be a positive integer"))
        return None
    return value


def _opt_mapping(
    data: Mapping, key: str, parent: str, issues: list[ValidationIssue]
) -> dict[str, Any] | None:
    raw = data.get(key)
    if raw is None:
        return None
    if not isinstance(raw, Mapping):
        issues.append(ValidationIssue(_join(parent, key), "expected an object"))
        return None
    return dict(raw)


def _items(
    data: Mapping, key: str, parent: str, issues: list[ValidationIssue]
) -> Iterator[tuple[str, Mapping]]:
    """Yield ``(path, item)`` for each mapping in the list at *key*."""
    raw = data.get(key)
    if raw is None:
        return
    path = _join(parent, key)
    if not isinstance(raw, list):
        issues.append(ValidationIssue(path, "expected a list"))
        return
    for i, item in enumerate(raw):
        item_path = f"{path}[{i}]"
        if not isinstance(item, Mapping):
            issues.append(ValidationIssue(item_path, "expected an object"))
            continue
        yield item_path, item

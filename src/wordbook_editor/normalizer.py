"""Adapter for entries in the third-party dictionary export layout.

Export entries look like::

    {
      "book_id": "CET4_1",
      "head_word": "cat",
      "word_rank": 12,
      "content": {"word": {"word_id": "...", "word_head": "cat",
                           "content": {"trans": [...], "sentence": {...}, ...}}}
    }

Every field access is treated as fallible; missing or mistyped fields
read as absent. The reshaped candidate is then run through
:func:`~wordbook_editor.validator.validate_word`, which has the final say.
"""

from __future__ import annotations

import math
import re
from collections.abc import Mapping
from typing import Any

from wordbook_editor.models import NormalizationResult
from wordbook_editor.validator import validate_word

_LEADING_INT = re.compile(r"\s*([+-]?\d+)")


def normalize_dictionary_entry(entry: Any) -> NormalizationResult:
    """Reshape a legacy export entry into the canonical word shape."""
    if not isinstance(entry, Mapping):
        return NormalizationResult(None, "not an object")

    word_node = _record(_record(entry.get("content")).get("word"))
    content = _record(word_node.get("content"))

    headword = _trimmed(entry.get("head_word")) or _trimmed(word_node.get("word_head"))
    if not headword:
        return NormalizationResult(None, "missing a valid head_word field")

    rem_method = _record(content.get("rem_method"))
    candidate: dict[str, Any] = {
        "headword": headword,
        "rank": _lenient_int(entry.get("word_rank")),
        "bookId": _trimmed(entry.get("book_id")),
        "phoneticUs": _trimmed(content.get("usphone")),
        "phoneticUk": _trimmed(content.get("ukphone")),
        "audioUsRaw": _trimmed(content.get("usspeech")),
        "audioUkRaw": _trimmed(content.get("ukspeech")),
        "phonetic": _trimmed(content.get("phone")),
        "speech": _trimmed(content.get("speech")),
        "star": _lenient_int(content.get("star")),
        "sourceWordId": _text(word_node.get("word_id")),
        "memoryTip": _trimmed(rem_method.get("val")),
        "memoryTipDesc": _trimmed(rem_method.get("desc")),
        "sentenceDesc": _trimmed(_record(content.get("sentence")).get("desc")),
        "synonymDesc": _trimmed(_record(content.get("syno")).get("desc")),
        "phraseDesc": _trimmed(_record(content.get("phrase")).get("desc")),
        "relatedDesc": _trimmed(_record(content.get("rel_word")).get("desc")),
        "antonymDesc": _trimmed(_record(content.get("antos")).get("desc")),
        "realExamSentenceDesc": _trimmed(
            _record(content.get("real_exam_sentence")).get("desc")
        ),
        "pictureUrl": _trimmed(content.get("picture")),
        "definitions": _build_definitions(content),
        "examples": _build_examples(content),
        "synonymGroups": _build_synonym_groups(content),
        "phrases": _build_phrases(content),
        "relatedWords": _build_related_words(content),
        "antonyms": _build_antonyms(content),
        "realExamSentences": _build_real_exam_sentences(content),
        "examQuestions": _build_exam_questions(content),
    }

    result = validate_word(candidate)
    if not result.ok:
        return NormalizationResult(
            None, result.reason or "converted entry failed validation"
        )
    return NormalizationResult(result.word)


# ---------------------------------------------------------------------------
# Section builders
# ---------------------------------------------------------------------------

def _build_definitions(content: Mapping) -> list[dict[str, Any]]:
    definitions = []
    for item in _records(content.get("trans")):
        definition = {
            "meaningCn": _trimmed(item.get("tran_cn")),
            "meaningEn": _trimmed(item.get("tran_other")),
            "note": _trimmed(item.get("desc_other")),
            "partOfSpeech": _trimmed(item.get("desc_cn")),
            "pos": _trimmed(item.get("pos")),
        }
        if any(definition.values()):
            definition["examples"] = []
            definitions.append(definition)
    return definitions


def _build_examples(content: Mapping) -> list[dict[str, Any]]:
    examples = []
    for item in _records(_record(content.get("sentence")).get("sentences")):
        source = _trimmed(item.get("s_content")) or _trimmed(item.get("s_content_eng"))
        if not source:
            continue
        examples.append({
            "source": source,
            "translation": _trimmed(item.get("s_cn")),
            "meta": dict(item),
        })
    return examples


def _build_synonym_groups(content: Mapping) -> list[dict[str, Any]]:
    groups = []
    for group in _records(_record(content.get("syno")).get("synos")):
        items = [
            word for word in (
                _trimmed(hwd.get("w")) for hwd in _records(group.get("hwds"))
            ) if word
        ]
        part_of_speech = _trimmed(group.get("pos"))
        meaning_cn = _trimmed(group.get("tran"))
        if items or part_of_speech or meaning_cn:
            groups.append({
                "partOfSpeech": part_of_speech,
                "meaningCn": meaning_cn,
                "note": None,
                "items": items,
            })
    return groups


def _build_phrases(content: Mapping) -> list[dict[str, Any]]:
    phrases = []
    for phrase in _records(_record(content.get("phrase")).get("phrases")):
        text = _trimmed(phrase.get("p_content"))
        if not text:
            continue
        phrases.append({
            "content": text,
            "meaningCn": _trimmed(phrase.get("p_cn")),
            "meaningEn": _trimmed(phrase.get("p_en")),
        })
    return phrases


def _build_related_words(content: Mapping) -> list[dict[str, Any]]:
    related = []
    for group in _records(_record(content.get("rel_word")).get("rels")):
        part_of_speech = _trimmed(group.get("pos"))
        for word in _records(group.get("words")):
            headword = _trimmed(word.get("hwd"))
            if not headword:
                continue
            related.append({
                "headword": headword,
                "partOfSpeech": part_of_speech,
                "meaningCn": _trimmed(word.get("tran")),
            })
    return related


def _build_antonyms(content: Mapping) -> list[dict[str, Any]]:
    antonyms = []
    for item in _records(_record(content.get("antos")).get("anto")):
        headword = _trimmed(item.get("hwd"))
        if not headword:
            continue
        meta = {k: v for k, v in item.items() if k != "hwd"}
        antonyms.append({"headword": headword, "meta": meta or None})
    return antonyms


def _build_real_exam_sentences(content: Mapping) -> list[dict[str, Any]]:
    sentences = []
    container = _record(content.get("real_exam_sentence"))
    for order, item in enumerate(_records(container.get("sentences"))):
        text = _trimmed(item.get("s_content"))
        if not text:
            continue
        source_info = item.get("source_info")
        info = _record(source_info)
        sentences.append({
            "content": text,
            "level": _text(info.get("level")),
            "paper": _text(info.get("paper")),
            "sourceType": _text(info.get("type")),
            "year": _text(info.get("year")),
            "order": order,
            "sourceInfo": dict(info) if isinstance(source_info, Mapping) else None,
        })
    return sentences


def _build_exam_questions(content: Mapping) -> list[dict[str, Any]]:
    questions = []
    for item in _records(content.get("exam")):
        question = _trimmed(item.get("question"))
        if not question:
            continue
        choices = []
        for choice in _records(item.get("choices")):
            value = _trimmed(choice.get("choice"))
            if value:
                choices.append({
                    "value": value,
                    "index": _lenient_int(choice.get("choice_index")),
                })
        answer = _record(item.get("answer"))
        questions.append({
            "question": question,
            "examType": _lenient_int(item.get("exam_type")),
            "explanation": _trimmed(answer.get("explain")),
            "rightIndex": _lenient_int(answer.get("right_index")),
            "choices": choices,
        })
    return questions


# ---------------------------------------------------------------------------
# Fallible accessors
# ---------------------------------------------------------------------------

def _trimmed(value: Any) -> str | None:
    if not isinstance(value, str):
        return None
    value = value.strip()
    return value or None


def _text(value: Any) -> str | None:
    """Like :func:`_trimmed` but also accepts numbers (years, levels, ids)."""
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return _trimmed(value)


def _lenient_int(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return math.trunc(value) if math.isfinite(value) else None
    if isinstance(value, str):
        match = _LEADING_INT.match(value)
        if match:
            return int(match.group(1))
    return None


def _record(value: Any) -> Mapping:
    return value if isinstance(value, Mapping) else {}


def _records(value: Any) -> list[Mapping]:
    if not isinstance(value, list):
        return []
    return [item for item in value if isinstance(item, Mapping)]

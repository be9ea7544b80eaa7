"""
Loader for import payloads (JSON or YAML).
"""
from __future__ import annotations

import json
from pathlib import Path
from typing import Any, List, Union

import yaml

from wordbook_editor.exceptions import ParseError

NOT_AN_ARRAY = "Import payload must be an array of word entries"

_YAML_SUFFIXES = (".yaml", ".yml")


def load_import_payload(source: Union[str, Path, List[Any]]) -> List[Any]:
    """Load the list of raw word entries to import.

    Args:
        source: An already-decoded list, a path to a ``.json``/``.yaml``
            file, or JSON text

    Returns:
        The decoded list of entries (elements are not inspected)

    Raises:
        ParseError: If the content cannot be parsed or is not a list
        FileNotFoundError: If the file does not exist
    """
    if isinstance(source, list):
        return source
    if isinstance(source, Path) or (isinstance(source, str) and _is_file_path(source)):
        path = Path(source)
        if not path.exists():
            raise FileNotFoundError(f"File not found: {path}")
        text = path.read_text(encoding="utf-8-sig")
        if path.suffix.lower() in _YAML_SUFFIXES:
            return _load_yaml_string(text)
        return _load_json_string(text)
    return _load_json_string(source)


def _is_file_path(s: str) -> bool:
    """Check if a string looks like a file path rather than JSON text."""
    stripped = s.strip()
    if stripped.startswith(("[", "{")):
        return False
    if "\n" in stripped:
        return False
    return "/" in s or "\\" in s or s.endswith((".json",) + _YAML_SUFFIXES)


def _load_json_string(s: str) -> List[Any]:
    if not s.strip():
        raise ParseError("Empty import payload")
    try:
        data = json.loads(s)
    except json.JSONDecodeError as e:
        raise ParseError(f"Invalid JSON: {e.msg}", line=e.lineno) from e
    return _require_list(data)


def _load_yaml_string(s: str) -> List[Any]:
    try:
        data = yaml.safe_load(s)
    except yaml.YAMLError as e:
        mark = getattr(e, "problem_mark", None)
        line_num = mark.line + 1 if mark else None
        raise ParseError(f"Invalid YAML: {e}", line=line_num) from e

    if data is None:
        raise ParseError("Empty import payload")
    return _require_list(data)


def _require_list(data: Any) -> List[Any]:
    if not isinstance(data, list):
        raise ParseError(NOT_AN_ARRAY)
    return data

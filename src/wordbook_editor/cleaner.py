"""Pre-import text cleaning through an external shell script.

The script is invoked as ``<script> <input> <output>``: it reads the raw
export text, repairs it (HTML tags and entities, accented letters,
camelCase keys, one-object-per-line dumps) and writes a JSON array. Its
exit status follows the taxonomy in :data:`EXIT_CODE_MESSAGES`.
"""

from __future__ import annotations

import json
import logging
import os
import re
import shutil
import stat
import subprocess
import tempfile
from dataclasses import dataclass, field
from pathlib import Path

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30 * 60  # seconds

EXIT_CODE_MESSAGES: dict[int, str] = {
    1: "JSON syntax error",
    2: "keys that are not snake_case remain",
    3: "leftover HTML tags remain",
    4: "leftover French letters remain",
    5: "undecoded HTML entities remain (possibly an unsupported entity; see the log for examples)",
    6: "data is not an array of objects, or jq is missing",
    100: "cannot read the input file",
    101: "failed to clean French letters",
    102: "failed to strip HTML tags",
    103: "failed to decode HTML entities",
    110: "invalid JSON lines found",
    111: "JSON lines that are not objects found",
    112: "no valid data left after cleaning",
    120: "failed to aggregate the JSON array",
    121: "aggregated result is not an array of objects",
    130: "failed to convert camelCase keys to snake_case",
    200: "failed to extract key names",
}

_NEEDS_CLEANING = (
    re.compile(r"[éêèëàâçîïôùûüÿ]"),  # French letters
    re.compile(r"<[^>]+>"),  # HTML tags
    re.compile(r"&[A-Za-z]{2,};"),  # HTML entities
    re.compile(r"[A-Z][a-z]+[A-Z]"),  # camelCase keys
)


@dataclass
class CleanResult:
    """Outcome of one cleaning run."""
    success: bool
    cleaned_data: str | None = None
    error: str | None = None
    logs: list[str] = field(default_factory=list)


def should_clean_data(raw_text: str) -> bool:
    """Quick heuristic: does *raw_text* look like it needs cleaning?"""
    return any(pattern.search(raw_text) for pattern in _NEEDS_CLEANING)


def clean_json_data(
    raw_text: str,
    script: str | Path,
    *,
    timeout: float = DEFAULT_TIMEOUT,
) -> CleanResult:
    """Run the cleaning *script* over *raw_text*.

    Never raises for script problems; failures (missing script, non-zero
    exit, timeout, output that is not a JSON array) come back as
    ``CleanResult(success=False, error=...)`` with the collected log lines.
    """
    logs: list[str] = []
    script_path = Path(script)

    if not script_path.is_file():
        return CleanResult(False, error=f"Cleaning script not found: {script_path}", logs=logs)
    if not os.access(script_path, os.X_OK):
        try:
            script_path.chmod(script_path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
        except OSError as e:
            return CleanResult(
                False,
                error=f"Cleaning script is not executable: {script_path} ({e})",
                logs=logs,
            )
        logs.append("Made cleaning script executable")
    logs.append(f"Using cleaning script: {script_path}")

    tmp_dir = Path(tempfile.mkdtemp(prefix="wordbook-clean-"))
    try:
        input_path = tmp_dir / "input.txt"
        output_path = tmp_dir / "output.json"
        input_path.write_text(raw_text, encoding="utf-8")
        logs.append(f"Wrote raw data to temporary file ({len(raw_text)} characters)")

        logs.append("Running cleaning script...")
        try:
            proc = subprocess.run(
                [str(script_path), str(input_path), str(output_path)],
                capture_output=True,
                text=True,
                timeout=timeout,
                env={**os.environ, "LC_ALL": "C.UTF-8"},
            )
        except subprocess.TimeoutExpired:
            logger.warning(f"Cleaning script timed out after {timeout}s")
            return CleanResult(
                False, error=f"Cleaning script timed out after {timeout} seconds", logs=logs
            )
        except OSError as e:
            return CleanResult(False, error=f"Could not run cleaning script: {e}", logs=logs)

        logs.extend(f"[script] {line}" for line in proc.stdout.splitlines() if line)
        logs.extend(f"[stderr] {line}" for line in proc.stderr.splitlines() if line)

        if proc.returncode != 0:
            logger.warning(f"Cleaning script exited with code {proc.returncode}")
            return CleanResult(False, error=_exit_code_error(proc.returncode, proc.stderr), logs=logs)

        try:
            cleaned = output_path.read_text(encoding="utf-8")
        except OSError as e:
            return CleanResult(False, error=f"Cleaning script produced no output: {e}", logs=logs)
        logs.append(f"Cleaning finished, output size: {len(cleaned)} characters")

        try:
            parsed = json.loads(cleaned)
        except json.JSONDecodeError as e:
            return CleanResult(False, error=f"Cleaned data is not valid JSON: {e}", logs=logs)
        if not isinstance(parsed, list):
            return CleanResult(
                False, error="Cleaned data is not valid JSON: not an array", logs=logs
            )
        logs.append(f"JSON check passed, {len(parsed)} objects")
    finally:
        shutil.rmtree(tmp_dir, ignore_errors=True)

    logs.append("Removed temporary files")
    return CleanResult(True, cleaned_data=cleaned, logs=logs)


def _exit_code_error(code: int, stderr: str) -> str:
    detail = stderr.strip()
    message = EXIT_CODE_MESSAGES.get(code)
    if message is None:
        message = f"Cleaning script failed (exit code {code})"
    return f"{message}\nDetails: {detail}" if detail else message

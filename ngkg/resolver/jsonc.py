"""Lenient JSON loading for tsconfig-style files (comments and trailing commas)."""

import json
import re
from pathlib import Path
from typing import Any

from ngkg.core.exceptions import ConfigLoadError

_STRING_OR_COMMENT = re.compile(r'("(?:\\.|[^"\\])*")|//[^\n]*|/\*.*?\*/', re.DOTALL)
_TRAILING_COMMA = re.compile(r'("(?:\\.|[^"\\])*")|,(\s*[}\]])', re.DOTALL)


def strip_jsonc(text: str) -> str:
    """Remove ``//`` and ``/* */`` comments and trailing commas, leaving strings intact."""
    text = _STRING_OR_COMMENT.sub(lambda m: m.group(1) or "", text)
    return _TRAILING_COMMA.sub(lambda m: m.group(1) or m.group(2), text)


def load_jsonc(path: Path) -> dict[str, Any]:
    """Read a JSON-with-comments file into a dict.

    Raises:
        ConfigLoadError: If the file cannot be read, is not valid JSON or
            does not hold an object.
    """
    try:
        text = path.read_text(encoding="utf-8-sig")
    except OSError as e:
        raise ConfigLoadError(f"Failed to read file: {e}", config_path=str(path)) from e
    try:
        data = json.loads(strip_jsonc(text))
    except json.JSONDecodeError as e:
        raise ConfigLoadError(f"Invalid JSON: {e}", config_path=str(path)) from e
    if not isinstance(data, dict):
        raise ConfigLoadError("Expected a JSON object", config_path=str(path))
    return data


def find_upwards(start: Path, file_name: str) -> Path | None:
    """First ``file_name`` found in ``start`` or one of its parents."""
    current = start if start.is_dir() else start.parent
    for directory in (current, *current.parents):
        candidate = directory / file_name
        if candidate.is_file():
            return candidate
    return None

"""
CLI input validation utilities for aitherlog commands.

Turns raw command-line strings into the values the logging engine expects:
``key=value`` context pairs, level names and request files for batch
ingestion. Every function raises ValidationError with a message that can be
shown to the user as-is.
"""

import json
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from aitherlog.core.exceptions.custom_exceptions import ValidationError
from aitherlog.core.logging.levels import normalize_level_name


def parse_context_pairs(pairs: Optional[List[str]]) -> Dict[str, str]:
    """
    Parse ``key=value`` strings into a context map.

    Later pairs override earlier ones with the same key.

    Raises:
        ValidationError: If a pair has no ``=`` or an empty key
    """
    context: Dict[str, str] = {}
    for pair in pairs or []:
        key, sep, value = pair.partition("=")
        if not sep or not key.strip():
            raise ValidationError(f"Context entries must look like key=value, got: {pair}")
        context[key.strip()] = value
    return context


def validate_level_name(level: str) -> str:
    """Return the canonical level label for ``level``."""
    try:
        return normalize_level_name(level)
    except ValueError as e:
        raise ValidationError(str(e)) from e


def load_bulk_requests(file_path: Union[str, Path]) -> List[Dict[str, Any]]:
    """
    Load batch requests from a JSON array or a JSON-lines file.

    Raises:
        ValidationError: If the file is missing or not valid JSON
    """
    path_obj = Path(file_path)
    if not path_obj.is_file():
        raise ValidationError(f"File does not exist: {file_path}")

    text = path_obj.read_text(encoding="utf-8").strip()
    if not text:
        return []

    try:
        if text.startswith("["):
            data = json.loads(text)
        else:
            data = [json.loads(line) for line in text.splitlines() if line.strip()]
    except json.JSONDecodeError as e:
        raise ValidationError(f"Invalid JSON in {file_path}: {e}") from e

    if not isinstance(data, list):
        raise ValidationError(f"Expected a list of log requests in {file_path}")
    return data

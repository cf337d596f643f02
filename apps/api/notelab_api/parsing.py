from __future__ import annotations

import json
from typing import Any

from .domain.entities import DEFAULT_LANGUAGE
from .domain.exceptions import ParseError


def parse_json_document(text: str | bytes) -> Any:
    try:
        return json.loads(text)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise ParseError(f"Invalid JSON: {e}") from e


def detect_language(content: str, fallback: str | None = None) -> str:
    """
    Editor language hint sniffed from the content, falling back to the note's
    stored language.
    """
    lowered = content.lower()
    if "<!doctype" in lowered or "<html" in lowered:
        return "html"
    if lowered.startswith("{") or lowered.startswith("["):
        return "json"
    if "def " in lowered or "import " in lowered:
        return "python"
    return fallback or DEFAULT_LANGUAGE

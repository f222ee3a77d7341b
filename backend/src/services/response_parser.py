"""Extract structured entries from free-form generation output."""

from __future__ import annotations

import json
import logging
import re
from typing import Any, Dict, List

logger = logging.getLogger(__name__)

FALLBACK_CONTENT = "Continuing analysis..."

# Earliest "[" through the last "]" anywhere in the text (greedy, spans newlines).
JSON_ARRAY_PATTERN = re.compile(r"\[[\s\S]*\]")


def extract_json_array(text: str) -> List[Any] | None:
    """Return the parsed JSON array embedded in ``text``, or None."""
    match = JSON_ARRAY_PATTERN.search(text or "")
    if not match:
        return None
    try:
        parsed = json.loads(match.group(0))
    except json.JSONDecodeError as e:
        logger.debug(f"Embedded JSON array did not parse: {e}")
        return None
    if not isinstance(parsed, list):
        return None
    return parsed


def parse_thoughts(text: str) -> List[Any]:
    """
    Parse generation output into an ordered list of thought entries.

    Entries are returned exactly as they appear in the embedded JSON array;
    shaping them is left to the caller. When no usable array is found the
    whole output becomes a single ``analysis`` entry, so the result is never
    empty.
    """
    entries = extract_json_array(text)
    if entries:
        return entries

    logger.info("No JSON array in generation output, using raw text as a single thought")
    content = (text or "").strip() or FALLBACK_CONTENT
    return [fallback_entry(content)]


def fallback_entry(content: str) -> Dict[str, str]:
    return {"type": "analysis", "content": content}


__all__ = ["parse_thoughts", "extract_json_array", "fallback_entry", "FALLBACK_CONTENT"]

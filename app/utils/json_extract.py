import json
import re
import logging
from typing import Any, Optional

logger = logging.getLogger(__name__)

_FENCED_BLOCK_RE = re.compile(r"```(?:json)?\s*([\s\S]*?)\s*```")


def extract_json(text: Optional[str]) -> Optional[Any]:
    """
    Pull a JSON value out of an LLM response.
    Prefers a ```json fenced block, then the outermost {...} span, then the raw text.
    Returns None when nothing parses.
    """
    if not text:
        return None

    json_string = text.strip()
    match = _FENCED_BLOCK_RE.search(text)
    if match and match.group(1):
        json_string = match.group(1)
    else:
        first_brace = json_string.find("{")
        last_brace = json_string.rfind("}")
        if first_brace != -1 and last_brace > first_brace:
            json_string = json_string[first_brace:last_brace + 1]

    try:
        return json.loads(json_string)
    except (ValueError, TypeError):
        logger.error(f"Failed to parse extracted JSON string ({len(json_string)} chars)")
        logger.debug(f"Original string was: {text}")
        return None


def strip_code_fence(text: str) -> str:
    """Return the contents of the first fenced block, or the trimmed text when there is none."""
    match = _FENCED_BLOCK_RE.search(text)
    if match:
        return match.group(1).strip()
    return text.strip()


def looks_truncated(text: str) -> bool:
    """True for output that opened a JSON object but never closed it (max_tokens cut it off)."""
    return "{" in text and not text.rstrip().endswith("}")

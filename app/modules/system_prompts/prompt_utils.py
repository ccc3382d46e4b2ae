import math
import re
from typing import Any, Dict, List, Mapping

from app.config.prompts_config import (
    PROMPT_CATEGORIES,
    PROMPT_CONTENT_MAX_LENGTH,
    PROMPT_NAME_MAX_LENGTH,
)

_VARIABLE_RE = re.compile(r"\{\{([^}]*)\}\}")
_CONTROL_CHARS_RE = re.compile(r"[\x00-\x08\x0B\x0C\x0E-\x1F\x7F]")


def sanitize_prompt_content(content: str) -> str:
    """Drop control characters (tabs and newlines stay) and trim before a prompt is stored."""
    if content is None:
        return content
    return _CONTROL_CHARS_RE.sub("", content).strip()


def extract_prompt_variables(content: str) -> List[str]:
    """Distinct {{variable}} names in order of first appearance."""
    seen: List[str] = []
    for raw in _VARIABLE_RE.findall(content or ""):
        name = raw.strip()
        if name and name not in seen:
            seen.append(name)
    return seen


def replace_prompt_variables(content: str, variables: Mapping[str, Any]) -> str:
    result = content
    for key, value in variables.items():
        result = result.replace("{{" + key + "}}", str(value))
    return result


def validate_prompt_content(content: str) -> List[str]:
    errors = []
    if not content or not content.strip():
        errors.append("Prompt content cannot be empty")
        return errors
    if len(content) > PROMPT_CONTENT_MAX_LENGTH:
        errors.append(f"Prompt content is too long (max {PROMPT_CONTENT_MAX_LENGTH:,} characters)")
    if any(not raw.strip() for raw in _VARIABLE_RE.findall(content)):
        errors.append("Empty template variable found")
    return errors


def validate_system_prompt_data(data: Dict[str, Any]) -> List[str]:
    """Validate the fields present in a create/update payload. Absent keys are not checked."""
    errors: List[str] = []

    if "name" in data:
        name = data["name"]
        if not name or not name.strip():
            errors.append("Prompt name is required")
        elif len(name) > PROMPT_NAME_MAX_LENGTH:
            errors.append(f"Prompt name too long (max {PROMPT_NAME_MAX_LENGTH} characters)")

    if "prompt_content" in data:
        errors.extend(validate_prompt_content(data["prompt_content"]))

    if "category" in data and data["category"] not in PROMPT_CATEGORIES:
        errors.append("Invalid category. Must be one of: " + ", ".join(PROMPT_CATEGORIES))

    return errors


def estimate_tokens(text: str) -> int:
    # Rough approximation: 1 token ~ 4 characters of English text
    return math.ceil(len(text or "") / 4)


def calculate_estimated_cost(
    prompt_tokens: int,
    completion_tokens: int,
    pricing_prompt: float = 0.0015,
    pricing_completion: float = 0.002,
) -> float:
    """Cost in dollars given per-1k-token prices."""
    return (prompt_tokens / 1000) * pricing_prompt + (completion_tokens / 1000) * pricing_completion


def combine_with_training_data(prompt_content: str, training_data: List[Dict[str, Any]]) -> str:
    """Append training examples to a prompt as markdown sections."""
    if not training_data:
        return prompt_content
    sections = "\n\n".join(f"## {td['title']}\n\n{td['content']}" for td in training_data)
    return f"{prompt_content}\n\n{sections}"

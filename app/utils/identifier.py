"""Helpers for telling automation UUIDs apart from slugs."""
import re

# Hyphens optional: accepts both canonical and compact forms
UUID_RE = re.compile(
    r"^[0-9a-f]{8}-?[0-9a-f]{4}-?[0-9a-f]{4}-?[0-9a-f]{4}-?[0-9a-f]{12}$",
    re.IGNORECASE,
)


def is_uuid(identifier: str) -> bool:
    return bool(identifier) and bool(UUID_RE.match(identifier))

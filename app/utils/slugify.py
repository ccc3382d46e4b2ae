import re
import secrets

_SUFFIX_ALPHABET = "1234567890abcdef"
_SUFFIX_LENGTH = 6


def _random_suffix(length: int = _SUFFIX_LENGTH) -> str:
    return "".join(secrets.choice(_SUFFIX_ALPHABET) for _ in range(length))


def slugify_base(title: str) -> str:
    """Lowercase, dash-separated, word characters only. No uniqueness suffix."""
    slug = title.lower()
    slug = re.sub(r"\s+", "-", slug)
    slug = re.sub(r"[^\w-]+", "", slug, flags=re.ASCII)
    slug = re.sub(r"--+", "-", slug)
    return slug.strip("-")


def generate_slug(title: str) -> str:
    """URL-friendly slug from a title with a short random hex suffix so titles can repeat."""
    return f"{slugify_base(title)}-{_random_suffix()}"

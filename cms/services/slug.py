from __future__ import annotations

import re
import unicodedata


_slug_pattern = re.compile(r"[^a-z0-9]+")
_category_slug_pattern = re.compile(r"^[a-z0-9-]+$")


def generate_slug(value: str, fallback: str = "post") -> str:
    """Turn a title or category name into a URL-safe slug."""
    normalized = unicodedata.normalize("NFKD", value.strip().lower())
    normalized = normalized.encode("ascii", "ignore").decode("ascii")
    normalized = _slug_pattern.sub("-", normalized)
    normalized = normalized.strip("-")
    return normalized or fallback


def is_valid_category_slug(value: str) -> bool:
    return bool(value) and _category_slug_pattern.match(value) is not None

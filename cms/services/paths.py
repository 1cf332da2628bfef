from __future__ import annotations

import posixpath
import re
from pathlib import Path

from cms.errors import InvalidPostIdError


MARKDOWN_EXTENSIONS = {".md", ".mdx"}

_drive_pattern = re.compile(r"^[a-zA-Z]:")


def is_path_safe(relative_path: str) -> bool:
    """Reject absolute paths and anything that climbs out of the content root."""
    if not relative_path or not relative_path.strip() or "\x00" in relative_path:
        return False
    candidate = relative_path.replace("\\", "/")
    if candidate.startswith("/") or _drive_pattern.match(candidate):
        return False
    normalized = posixpath.normpath(candidate)
    return ".." not in normalized.split("/")


def has_markdown_extension(relative_path: str) -> bool:
    return posixpath.splitext(relative_path)[1] in MARKDOWN_EXTENSIONS


def validate_post_id(post_id: str) -> None:
    if not is_path_safe(post_id):
        raise InvalidPostIdError("Invalid postId")
    if not has_markdown_extension(post_id):
        raise InvalidPostIdError("Invalid file extension")


def resolve_post_path(content_dir: Path, post_id: str) -> Path:
    return content_dir / posixpath.normpath(post_id.replace("\\", "/"))


def post_slug(post_id: str) -> str:
    """Post id without its markdown extension."""
    root, ext = posixpath.splitext(post_id)
    return root if ext in MARKDOWN_EXTENSIONS else post_id

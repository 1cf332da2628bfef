from __future__ import annotations

from pathlib import Path
from typing import List

from cms.services.paths import MARKDOWN_EXTENSIONS


def list_post_ids(content_dir: Path) -> List[str]:
    """Relative POSIX paths of every markdown file under the content dir, sorted."""
    if not content_dir.exists():
        return []
    post_ids: List[str] = []
    for path in sorted(content_dir.rglob("*")):
        if path.is_file() and path.suffix in MARKDOWN_EXTENSIONS:
            post_ids.append(path.relative_to(content_dir).as_posix())
    return post_ids


def read_text(path: Path) -> str:
    return path.read_text(encoding="utf-8")


def write_text(path: Path, text: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")


def exists(path: Path) -> bool:
    return path.exists()

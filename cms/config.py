from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional


DEFAULT_CONTENT_DIR = "src/content/blog"
DEFAULT_CONFIG_PATH = "config/site.yaml"
DEFAULT_CACHE_PATH = ".cache/og-data.json"
DEFAULT_OG_TIMEOUT = 5.0

# Number of posts in the dashboard "recent" slice.
RECENT_POSTS_COUNT = 10


@dataclass(slots=True)
class Settings:
    project_root: Path
    content_dir_name: str = DEFAULT_CONTENT_DIR
    config_path_name: str = DEFAULT_CONFIG_PATH
    cache_path_name: str = DEFAULT_CACHE_PATH
    og_timeout: float = DEFAULT_OG_TIMEOUT

    @property
    def content_dir(self) -> Path:
        return self.project_root / self.content_dir_name

    @property
    def config_path(self) -> Path:
        return self.project_root / self.config_path_name

    @property
    def cache_path(self) -> Path:
        return self.project_root / self.cache_path_name


def load_settings(project_root: Optional[Path] = None) -> Settings:
    """Build settings from the environment, an explicit root wins over BLOGCMS_PROJECT_ROOT."""
    root = project_root or Path(os.getenv("BLOGCMS_PROJECT_ROOT", ".")).expanduser()
    return Settings(
        project_root=root.resolve(),
        content_dir_name=os.getenv("BLOGCMS_CONTENT_DIR", DEFAULT_CONTENT_DIR),
        config_path_name=os.getenv("BLOGCMS_CONFIG_PATH", DEFAULT_CONFIG_PATH),
        cache_path_name=os.getenv("BLOGCMS_CACHE_PATH", DEFAULT_CACHE_PATH),
        og_timeout=float(os.getenv("BLOGCMS_OG_TIMEOUT", str(DEFAULT_OG_TIMEOUT))),
    )

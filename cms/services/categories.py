from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional

import yaml

from cms.errors import SiteConfigError
from cms.services.slug import generate_slug


logger = logging.getLogger(__name__)

CATEGORY_MAP_KEY = "categoryMap"

_section_pattern = re.compile(rf"^{CATEGORY_MAP_KEY}:(.*)$")
_trailing_comment = re.compile(r"[}\]]\s+(#.*)$")
_indent_pattern = re.compile(r"^(\s+)\S")


def load_site_config(path: Path) -> Dict[str, Any]:
    if not path.exists():
        logger.warning("Site config %s not found", path)
        return {}
    try:
        with path.open("r", encoding="utf-8") as fp:
            data = yaml.safe_load(fp) or {}
    except (OSError, yaml.YAMLError) as exc:
        logger.warning("Failed to load site config from %s: %s", path, exc)
        return {}
    if not isinstance(data, dict):
        logger.warning("Site config %s is not in expected format", path)
        return {}
    return data


def _clean_mapping(raw: Any) -> Dict[str, str]:
    if not isinstance(raw, dict):
        return {}
    mapping: Dict[str, str] = {}
    for name, slug in raw.items():
        if name is None or slug is None or not str(slug).strip():
            continue
        mapping[str(name)] = str(slug).strip()
    return mapping


def extract_category_names(categories: Any) -> List[str]:
    """Flatten ``A``, ``[A, B]`` or the legacy ``[[A, B], C]`` form into unique names."""
    if not categories:
        return []
    if isinstance(categories, str):
        return [categories.strip()] if categories.strip() else []
    if not isinstance(categories, Iterable):
        return [str(categories)]

    names: List[str] = []
    for item in categories:
        values = item if isinstance(item, (list, tuple)) else [item]
        for value in values:
            if value is None:
                continue
            name = str(value).strip()
            if name and name not in names:
                names.append(name)
    return names


class CategoryMap:
    """Display name -> URL slug mapping held for the lifetime of the app."""

    def __init__(self, mappings: Optional[Mapping[str, str]] = None) -> None:
        self._mappings: Dict[str, str] = dict(mappings or {})

    @classmethod
    def from_config(cls, config: Mapping[str, Any]) -> "CategoryMap":
        return cls(_clean_mapping(config.get(CATEGORY_MAP_KEY)))

    @classmethod
    def load(cls, config_path: Path) -> "CategoryMap":
        return cls.from_config(load_site_config(config_path))

    def __contains__(self, name: object) -> bool:
        return name in self._mappings

    def __len__(self) -> int:
        return len(self._mappings)

    def as_dict(self) -> Dict[str, str]:
        return dict(self._mappings)

    def slug_for(self, name: str, overrides: Optional[Mapping[str, str]] = None) -> str:
        if overrides and overrides.get(name):
            return overrides[name]
        if self._mappings.get(name):
            return self._mappings[name]
        return suggest_category_slug(name)

    def detect_new(self, categories: Any) -> Dict[str, str]:
        """Names without a slug in the map, each with a suggested slug."""
        return {
            name: suggest_category_slug(name)
            for name in extract_category_names(categories)
            if not self._mappings.get(name)
        }

    def merge(self, mappings: Mapping[str, str]) -> Dict[str, str]:
        """Add names that have no slug yet; existing slugs are never overwritten."""
        added: Dict[str, str] = {}
        for name, slug in mappings.items():
            if not slug or self._mappings.get(name):
                continue
            self._mappings[name] = slug
            added[name] = slug
        return added

    def reload(self, config_path: Path) -> None:
        self._mappings = CategoryMap.load(config_path).as_dict()


def suggest_category_slug(name: str) -> str:
    return generate_slug(name, fallback="category")


def _render_entry(indent: str, name: Any, slug: Any) -> str:
    line = yaml.safe_dump({name: slug}, allow_unicode=True, default_flow_style=False, width=float("inf"))
    return f"{indent}{line.strip()}"


def _entry_name(line: str) -> Optional[str]:
    try:
        entry = yaml.safe_load(line.strip())
    except yaml.YAMLError:
        return None
    if isinstance(entry, dict) and len(entry) == 1:
        return str(next(iter(entry)))
    return None


def _update_block_section(lines: List[str], header_index: int, mappings: Dict[str, str]) -> None:
    """Rewrite entries with an empty slug in place and insert the rest after the last entry."""
    pending = dict(mappings)
    last_entry: Optional[int] = None
    indent = ""

    for index in range(header_index + 1, len(lines)):
        line = lines[index]
        if line and not line[0].isspace() and not line.startswith("#"):
            break
        match = _indent_pattern.match(line)
        if not match or line.strip().startswith("#"):
            continue
        last_entry = index
        indent = indent or match.group(1)
        name = _entry_name(line)
        if name in pending:
            lines[index] = _render_entry(match.group(1), name, pending.pop(name))

    entries = [_render_entry(indent or "  ", name, slug) for name, slug in pending.items()]
    insert_at = (last_entry if last_entry is not None else header_index) + 1
    lines[insert_at:insert_at] = entries


def _expand_inline_section(
    config_path: Path, lines: List[str], header_index: int, value: str, mappings: Dict[str, str]
) -> None:
    """Turn ``categoryMap: {a: b}`` into a block mapping holding the old and new entries."""
    try:
        section = yaml.safe_load(lines[header_index]).get(CATEGORY_MAP_KEY)
    except (yaml.YAMLError, AttributeError) as exc:
        logger.error("Cannot rewrite multi-line %s in %s", CATEGORY_MAP_KEY, config_path)
        raise SiteConfigError(
            f"{CATEGORY_MAP_KEY} in {config_path} must be a block mapping or fit on one line"
        ) from exc

    merged = {str(name): slug for name, slug in (section or {}).items()}
    merged.update(mappings)

    comment = _trailing_comment.search(value)
    lines[header_index] = f"{CATEGORY_MAP_KEY}:" + (f" {comment.group(1)}" if comment else "")
    lines[header_index + 1:header_index + 1] = [_render_entry("  ", name, slug) for name, slug in merged.items()]


def add_category_mappings(config_path: Path, mappings: Mapping[str, str]) -> Dict[str, str]:
    """Insert new mappings into the ``categoryMap`` section of the site config.

    The file is edited line by line so comments and layout elsewhere survive.
    Names already mapped are skipped; an entry with an empty slug is filled in.
    An inline ``categoryMap: {...}`` is expanded into a block mapping first.
    Returns what was written.
    """
    content = config_path.read_text(encoding="utf-8") if config_path.exists() else ""
    try:
        config = yaml.safe_load(content) if content.strip() else {}
    except yaml.YAMLError as exc:
        raise SiteConfigError(f"Site config {config_path} is not valid YAML") from exc
    if not isinstance(config, dict):
        raise SiteConfigError(f"Site config {config_path} is not a mapping")

    section = config.get(CATEGORY_MAP_KEY)
    if section is not None and not isinstance(section, dict):
        raise SiteConfigError(f"{CATEGORY_MAP_KEY} in {config_path} is not a mapping")
    current = _clean_mapping(section)

    new_mappings = {name: slug for name, slug in mappings.items() if slug and not current.get(name)}
    if not new_mappings:
        return {}

    lines = content.split("\n")
    header_index = next((index for index, line in enumerate(lines) if _section_pattern.match(line)), None)

    if header_index is None:
        if CATEGORY_MAP_KEY in config:
            raise SiteConfigError(f"Cannot locate the {CATEGORY_MAP_KEY} section in {config_path}")
        while lines and lines[-1] == "":
            lines.pop()
        lines.extend([f"{CATEGORY_MAP_KEY}:", *(_render_entry("  ", n, s) for n, s in new_mappings.items()), ""])
    else:
        value = _section_pattern.match(lines[header_index]).group(1).strip()
        if value and not value.startswith("#"):
            _expand_inline_section(config_path, lines, header_index, value, new_mappings)
        else:
            _update_block_section(lines, header_index, new_mappings)

    config_path.parent.mkdir(parents=True, exist_ok=True)
    config_path.write_text("\n".join(lines), encoding="utf-8")
    logger.info("Added category mappings to %s: %s", config_path, ", ".join(new_mappings))
    return new_mappings

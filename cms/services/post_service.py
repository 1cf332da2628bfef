from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from cms.config import Settings
from cms.errors import InvalidPostIdError, PostExistsError, PostNotFoundError, UnmappedCategoryError
from cms.models.post import PostListing, PostListItem
from cms.repositories import posts as post_repo
from cms.services import frontmatter_codec
from cms.services.categories import CategoryMap, add_category_mappings, extract_category_names
from cms.services.paths import is_path_safe, post_slug, resolve_post_path, validate_post_id
from cms.services.slug import generate_slug
from cms.services.stats import ListFilters, calculate_stats, collect_names, filter_posts, sort_posts


logger = logging.getLogger(__name__)


def load_post_item(content_dir: Path, post_id: str) -> PostListItem:
    text = post_repo.read_text(resolve_post_path(content_dir, post_id))
    meta, _ = frontmatter_codec.parse(text)

    slug = post_slug(post_id)
    updated = meta.get("updated")

    return PostListItem(
        id=post_id,
        slug=slug,
        title=str(meta.get("title") or slug),
        date=frontmatter_codec.parse_local_date(meta.get("date")),
        updated=frontmatter_codec.parse_local_date(updated) if updated else None,
        categories=extract_category_names(meta.get("categories")),
        tags=_normalize_tags(meta.get("tags")),
        draft=meta.get("draft") is True,
        sticky=meta.get("sticky") is True,
    )


def load_all_posts(content_dir: Path) -> List[PostListItem]:
    """Parse every post; files that fail are logged and left out."""
    posts: List[PostListItem] = []
    for post_id in post_repo.list_post_ids(content_dir):
        try:
            posts.append(load_post_item(content_dir, post_id))
        except Exception as exc:  # pylint: disable=broad-except
            logger.exception("Failed to parse post %s: %s", post_id, exc)
    return posts


def list_posts(content_dir: Path, filters: Optional[ListFilters] = None) -> PostListing:
    filters = filters or ListFilters()
    all_posts = load_all_posts(content_dir)

    visible = sort_posts(filter_posts(all_posts, filters), filters.sort, filters.order)

    return PostListing(
        posts=visible,
        stats=calculate_stats(all_posts),
        categories=collect_names(all_posts, "categories"),
        tags=collect_names(all_posts, "tags"),
    )


def read_post(content_dir: Path, post_id: str, *, keep_body: bool = False) -> Tuple[Dict[str, Any], str]:
    validate_post_id(post_id)
    try:
        text = post_repo.read_text(resolve_post_path(content_dir, post_id))
    except FileNotFoundError as exc:
        raise PostNotFoundError(post_id) from exc
    return frontmatter_codec.parse(text, keep_body=keep_body)


def write_post(
    settings: Settings,
    category_map: CategoryMap,
    post_id: str,
    metadata: Dict[str, Any],
    content: str,
    category_mappings: Optional[Mapping[str, str]] = None,
) -> None:
    validate_post_id(post_id)
    require_category_slugs(category_map, metadata.get("categories"), category_mappings)
    prepared = frontmatter_codec.coerce_dates(metadata, strict=True)
    text = frontmatter_codec.serialize(prepared, content)

    if category_mappings:
        persist_category_mappings(settings, category_map, category_mappings)

    post_repo.write_text(resolve_post_path(settings.content_dir, post_id), text)
    logger.info("Saved post %s", post_id)


def create_post(
    settings: Settings,
    category_map: CategoryMap,
    title: str,
    categories: Optional[List[str]] = None,
    tags: Optional[List[str]] = None,
    draft: bool = True,
    category_mappings: Optional[Mapping[str, str]] = None,
    now: Optional[datetime] = None,
) -> str:
    """Create a new post file and return its id."""
    require_category_slugs(category_map, categories, category_mappings)
    now = (now or datetime.now()).replace(microsecond=0)
    post_id = build_post_id(category_map, title, categories, category_mappings, now)
    if not is_path_safe(post_id):
        raise InvalidPostIdError("Invalid file path")

    path = resolve_post_path(settings.content_dir, post_id)
    if post_repo.exists(path):
        raise PostExistsError(post_id)

    if category_mappings:
        persist_category_mappings(settings, category_map, category_mappings)

    metadata: Dict[str, Any] = {"title": title, "date": now, "updated": now}
    if categories:
        metadata["categories"] = [list(categories)]
    if tags:
        metadata["tags"] = list(tags)
    if draft:
        metadata["draft"] = True
    metadata["catalog"] = True

    post_repo.write_text(path, frontmatter_codec.serialize(metadata, ""))
    logger.info("Created post %s", post_id)
    return post_id


def build_post_id(
    category_map: CategoryMap,
    title: str,
    categories: Optional[Iterable[str]] = None,
    category_mappings: Optional[Mapping[str, str]] = None,
    now: Optional[datetime] = None,
) -> str:
    """``['笔记', '前端']`` + ``React Hooks`` -> ``note/front-end/react-hooks.md``."""
    fallback = f"post-{(now or datetime.now()):%Y%m%d%H%M%S}"
    filename = f"{generate_slug(title, fallback=fallback)}.md"
    segments = [category_map.slug_for(name, category_mappings) for name in categories or []]
    return "/".join([*segments, filename])


def toggle_draft(content_dir: Path, post_id: str) -> bool:
    return _toggle_flag(content_dir, post_id, "draft")


def toggle_sticky(content_dir: Path, post_id: str) -> bool:
    return _toggle_flag(content_dir, post_id, "sticky")


def _toggle_flag(content_dir: Path, post_id: str, flag: str) -> bool:
    meta, content = read_post(content_dir, post_id, keep_body=True)
    value = meta.get(flag) is not True
    meta[flag] = value
    post_repo.write_text(resolve_post_path(content_dir, post_id), frontmatter_codec.serialize(meta, content))
    logger.info("Set %s=%s on %s", flag, value, post_id)
    return value


def require_category_slugs(
    category_map: CategoryMap, categories: Any, category_mappings: Optional[Mapping[str, str]] = None
) -> None:
    """Every category must have a slug, from the map or from the request."""
    overrides = category_mappings or {}
    missing = {
        name: slug for name, slug in category_map.detect_new(categories).items() if not overrides.get(name)
    }
    if missing:
        raise UnmappedCategoryError(missing)


def persist_category_mappings(
    settings: Settings, category_map: CategoryMap, mappings: Mapping[str, str]
) -> Dict[str, str]:
    """Write new mappings to the site config and fold them into the live map."""
    added = add_category_mappings(settings.config_path, mappings)
    category_map.merge(mappings)
    return added


def _normalize_tags(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value.strip()] if value.strip() else []
    if not isinstance(value, (list, tuple)):
        return []
    tags: List[str] = []
    for item in value:
        if item is None or isinstance(item, (list, dict)):
            continue
        tag = str(item).strip()
        if tag and tag not in tags:
            tags.append(tag)
    return tags

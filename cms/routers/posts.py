from __future__ import annotations

from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Query, status

from cms.config import Settings
from cms.dependencies import get_category_map, get_settings
from cms.errors import InvalidRequestError
from cms.models.requests import CreatePostRequest, PostIdRequest, WritePostRequest
from cms.services import post_service
from cms.services.categories import CategoryMap
from cms.services.embeds import extract_embed_links
from cms.services.stats import ListFilters


router = APIRouter()


def _require_post_id(post_id: Optional[str]) -> str:
    if not post_id:
        raise InvalidRequestError("Missing postId parameter")
    return post_id


@router.get("/list", name="list_posts")
def list_posts(
    category: Optional[str] = Query(None),
    tag: Optional[str] = Query(None),
    status_filter: Optional[str] = Query(None, alias="status"),
    search: Optional[str] = Query(None),
    sort: str = Query("date"),
    order: str = Query("desc"),
    settings: Settings = Depends(get_settings),
) -> Dict[str, Any]:
    filters = ListFilters(
        category=category or None,
        tag=tag or None,
        status=status_filter or None,
        search=search or None,
        sort=sort or "date",
        order=order or "desc",
    )
    return post_service.list_posts(settings.content_dir, filters).as_payload()


@router.get("/read", name="read_post")
def read_post(
    post_id: Optional[str] = Query(None, alias="postId"),
    settings: Settings = Depends(get_settings),
) -> Dict[str, Any]:
    frontmatter, content = post_service.read_post(settings.content_dir, _require_post_id(post_id))
    return {"frontmatter": frontmatter, "content": content}


@router.post("/write", name="write_post")
def write_post(
    payload: WritePostRequest,
    settings: Settings = Depends(get_settings),
    category_map: CategoryMap = Depends(get_category_map),
) -> Dict[str, Any]:
    post_service.write_post(
        settings,
        category_map,
        payload.post_id,
        payload.frontmatter,
        payload.content,
        category_mappings=payload.category_mappings,
    )
    return {"success": True}


@router.post("/create", name="create_post", status_code=status.HTTP_201_CREATED)
def create_post(
    payload: CreatePostRequest,
    settings: Settings = Depends(get_settings),
    category_map: CategoryMap = Depends(get_category_map),
) -> Dict[str, Any]:
    post_id = post_service.create_post(
        settings,
        category_map,
        payload.title,
        categories=payload.categories,
        tags=payload.tags,
        draft=payload.draft,
        category_mappings=payload.category_mappings,
    )
    return {"success": True, "postId": post_id}


@router.post("/toggle-draft", name="toggle_draft")
def toggle_draft(payload: PostIdRequest, settings: Settings = Depends(get_settings)) -> Dict[str, Any]:
    draft = post_service.toggle_draft(settings.content_dir, payload.post_id)
    return {"success": True, "draft": draft}


@router.post("/toggle-sticky", name="toggle_sticky")
def toggle_sticky(payload: PostIdRequest, settings: Settings = Depends(get_settings)) -> Dict[str, Any]:
    sticky = post_service.toggle_sticky(settings.content_dir, payload.post_id)
    return {"success": True, "sticky": sticky}


@router.get("/embeds", name="post_embeds")
def post_embeds(
    post_id: Optional[str] = Query(None, alias="postId"),
    settings: Settings = Depends(get_settings),
) -> Dict[str, Any]:
    """Standalone links in a post, so the editor can preload their previews."""
    _, content = post_service.read_post(settings.content_dir, _require_post_id(post_id))
    return {"embeds": [link.as_payload() for link in extract_embed_links(content)]}

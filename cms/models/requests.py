from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from cms.services.slug import is_valid_category_slug


class CMSRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


def _check_mappings(value: Optional[Dict[str, str]]) -> Optional[Dict[str, str]]:
    if not value:
        return value
    for name, slug in value.items():
        if not is_valid_category_slug(slug):
            raise ValueError(
                f'Invalid slug for category "{name}": only lowercase letters, digits and hyphens are allowed'
            )
    return value


class PostIdRequest(CMSRequest):
    post_id: str = Field(alias="postId", min_length=1)


class WritePostRequest(CMSRequest):
    post_id: str = Field(alias="postId", min_length=1)
    frontmatter: Dict[str, Any]
    content: str
    category_mappings: Optional[Dict[str, str]] = Field(default=None, alias="categoryMappings")

    @field_validator("category_mappings")
    @classmethod
    def check_mappings(cls, value: Optional[Dict[str, str]]) -> Optional[Dict[str, str]]:
        return _check_mappings(value)


class CreatePostRequest(CMSRequest):
    title: str
    categories: Optional[List[str]] = None
    tags: Optional[List[str]] = None
    draft: bool = True
    category_mappings: Optional[Dict[str, str]] = Field(default=None, alias="categoryMappings")

    @field_validator("category_mappings")
    @classmethod
    def check_mappings(cls, value: Optional[Dict[str, str]]) -> Optional[Dict[str, str]]:
        return _check_mappings(value)

    @field_validator("title")
    @classmethod
    def strip_title(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Title is required")
        return value

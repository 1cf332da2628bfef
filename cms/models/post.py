from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional


@dataclass(slots=True)
class PostListItem:
    id: str
    slug: str
    title: str
    date: datetime
    updated: Optional[datetime] = None
    categories: List[str] = field(default_factory=list)
    tags: List[str] = field(default_factory=list)
    draft: bool = False
    sticky: bool = False

    @property
    def last_modified(self) -> datetime:
        return self.updated or self.date

    def as_payload(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "id": self.id,
            "slug": self.slug,
            "title": self.title,
            "date": self.date.isoformat(),
            "categories": list(self.categories),
            "tags": list(self.tags),
            "draft": self.draft,
            "sticky": self.sticky,
        }
        if self.updated is not None:
            payload["updated"] = self.updated.isoformat()
        return payload


@dataclass(slots=True)
class NameCount:
    name: str
    count: int


@dataclass(slots=True)
class DashboardStats:
    total: int
    published: int
    draft: int
    category_stats: List[NameCount] = field(default_factory=list)
    tag_stats: List[NameCount] = field(default_factory=list)
    recent_posts: List[PostListItem] = field(default_factory=list)

    def as_payload(self) -> Dict[str, Any]:
        return {
            "total": self.total,
            "published": self.published,
            "draft": self.draft,
            "categoryStats": [{"name": item.name, "count": item.count} for item in self.category_stats],
            "tagStats": [{"name": item.name, "count": item.count} for item in self.tag_stats],
            "recentPosts": [post.as_payload() for post in self.recent_posts],
        }


@dataclass(slots=True)
class PostListing:
    posts: List[PostListItem]
    stats: DashboardStats
    categories: List[str]
    tags: List[str]

    @property
    def total(self) -> int:
        return len(self.posts)

    def as_payload(self) -> Dict[str, Any]:
        return {
            "posts": [post.as_payload() for post in self.posts],
            "total": self.total,
            "stats": self.stats.as_payload(),
            "categories": list(self.categories),
            "tags": list(self.tags),
        }

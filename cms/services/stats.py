from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from operator import attrgetter
from typing import Any, Callable, Iterable, List, Optional

from cms.config import RECENT_POSTS_COUNT
from cms.models.post import DashboardStats, NameCount, PostListItem


@dataclass(slots=True)
class ListFilters:
    category: Optional[str] = None
    tag: Optional[str] = None
    status: Optional[str] = None
    search: Optional[str] = None
    sort: str = "date"
    order: str = "desc"


def filter_posts(posts: Iterable[PostListItem], filters: ListFilters) -> List[PostListItem]:
    filtered = list(posts)

    if filters.category:
        filtered = [post for post in filtered if filters.category in post.categories]

    if filters.tag:
        filtered = [post for post in filtered if filters.tag in post.tags]

    if filters.status == "draft":
        filtered = [post for post in filtered if post.draft]
    elif filters.status == "published":
        filtered = [post for post in filtered if not post.draft]

    if filters.search:
        needle = filters.search.lower()
        filtered = [post for post in filtered if needle in post.title.lower()]

    return filtered


def sort_posts(posts: Iterable[PostListItem], sort: str = "date", order: str = "desc") -> List[PostListItem]:
    """Sort by date, updated-or-date, or title. Ties keep their input order."""
    return sorted(posts, key=_sort_key(sort), reverse=order != "asc")


def _sort_key(sort: str) -> Callable[[PostListItem], Any]:
    if sort == "title":
        return lambda post: post.title.casefold()
    if sort == "updated":
        return attrgetter("last_modified")
    return attrgetter("date")


def _ranked(counter: Counter) -> List[NameCount]:
    # Counter.most_common keeps first-seen order for equal counts.
    return [NameCount(name=name, count=count) for name, count in counter.most_common()]


def calculate_stats(posts: List[PostListItem], recent_count: int = RECENT_POSTS_COUNT) -> DashboardStats:
    category_count: Counter = Counter()
    tag_count: Counter = Counter()
    draft = 0

    for post in posts:
        if post.draft:
            draft += 1
        category_count.update(post.categories)
        tag_count.update(post.tags)

    recent = sorted(posts, key=lambda post: post.last_modified, reverse=True)[:recent_count]

    return DashboardStats(
        total=len(posts),
        published=len(posts) - draft,
        draft=draft,
        category_stats=_ranked(category_count),
        tag_stats=_ranked(tag_count),
        recent_posts=recent,
    )


def collect_names(posts: Iterable[PostListItem], attribute: str) -> List[str]:
    names = set()
    for post in posts:
        names.update(getattr(post, attribute))
    return sorted(names)

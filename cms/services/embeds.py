"""Detection of standalone links that the editor preview turns into embeds."""
from __future__ import annotations

import re
from typing import List, Optional, Tuple
from urllib.parse import urlparse

from markdown_it import MarkdownIt

from cms.models.og import LinkInfo


TWITTER_HOSTS = {"twitter.com", "www.twitter.com", "x.com", "www.x.com"}
CODEPEN_HOSTS = {"codepen.io", "www.codepen.io"}

_markdown = MarkdownIt("commonmark")

_tweet_path = re.compile(r"/status/(\d+)")
_codepen_path = re.compile(r"^/([^/]+)/(?:pen|details)/([^/]+)")
_bare_url = re.compile(r"^https?://\S+$")


def _hostname(url: str) -> Optional[str]:
    try:
        hostname = urlparse(url).hostname
    except ValueError:
        return None
    return hostname.lower() if hostname else None


def extract_tweet_id(url: str) -> Optional[str]:
    if _hostname(url) not in TWITTER_HOSTS:
        return None
    match = _tweet_path.search(urlparse(url).path)
    return match.group(1) if match else None


def extract_codepen_id(url: str) -> Optional[Tuple[str, str]]:
    if _hostname(url) not in CODEPEN_HOSTS:
        return None
    match = _codepen_path.match(urlparse(url).path)
    if match:
        return match.group(1), match.group(2)
    return None


def classify_link(url: str) -> LinkInfo:
    tweet_id = extract_tweet_id(url)
    if tweet_id:
        return LinkInfo(url=url, type="tweet", tweet_id=tweet_id)

    codepen = extract_codepen_id(url)
    if codepen:
        return LinkInfo(url=url, type="codepen", codepen_user=codepen[0], codepen_pen_id=codepen[1])

    return LinkInfo(url=url, type="general")


def get_domain(url: str) -> str:
    hostname = _hostname(url)
    if not hostname:
        return url
    return hostname[4:] if hostname.startswith("www.") else hostname


def _standalone_url(children) -> Optional[str]:
    if len(children) == 1 and children[0].type == "text":
        text = children[0].content.strip()
        return text if _bare_url.match(text) else None

    if len(children) == 3 and [child.type for child in children] == ["link_open", "text", "link_close"]:
        href = str(children[0].attrGet("href") or "")
        text = children[1].content
        if href and (text == href or href.endswith(text) or text.endswith(href)):
            return href
    return None


def extract_embed_links(markdown: str) -> List[LinkInfo]:
    """Links that make up a whole paragraph on their own, in document order."""
    tokens = _markdown.parse(markdown)
    links: List[LinkInfo] = []
    for index, token in enumerate(tokens):
        if token.type != "inline" or index == 0:
            continue
        opener = tokens[index - 1]
        if opener.type != "paragraph_open" or opener.hidden:
            continue
        url = _standalone_url(token.children or [])
        if url:
            links.append(classify_link(url))
    return links

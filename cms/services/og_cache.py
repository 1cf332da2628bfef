from __future__ import annotations

import json
import logging
import time
from datetime import timedelta
from pathlib import Path
from typing import Any, Callable, Dict, Optional
from urllib.parse import urljoin, urlparse

import requests
from bs4 import BeautifulSoup

from cms.errors import InvalidRequestError
from cms.models.og import OgData


logger = logging.getLogger(__name__)

CACHE_TTL = timedelta(days=7)
FETCH_TIMEOUT = 5.0

REQUEST_HEADERS = {
    "User-Agent": (
        "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/142.0.0.0 Safari/537.36"
    ),
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/avif,image/webp,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.9,zh-CN;q=0.8,zh;q=0.7",
    "Cache-Control": "no-cache",
    "Pragma": "no-cache",
}

Fetcher = Callable[[str], OgData]


def validate_og_url(url: Optional[str]) -> str:
    if not url:
        raise InvalidRequestError("Missing url parameter")
    try:
        parsed = urlparse(url)
    except ValueError as exc:
        raise InvalidRequestError("Invalid URL") from exc
    if parsed.scheme not in {"http", "https"}:
        raise InvalidRequestError("Invalid URL protocol" if parsed.scheme else "Invalid URL")
    if not parsed.netloc:
        raise InvalidRequestError("Invalid URL")
    return url


def _meta_content(soup: BeautifulSoup, *keys: str) -> Optional[str]:
    for key in keys:
        tag = soup.find("meta", attrs={"property": key}) or soup.find("meta", attrs={"name": key})
        if tag and tag.get("content") and tag["content"].strip():
            return tag["content"].strip()
    return None


def _link_href(soup: BeautifulSoup, *rels: str) -> Optional[str]:
    for rel in rels:
        for tag in soup.find_all("link", href=True):
            values = tag.get("rel") or []
            if isinstance(values, str):
                values = values.split()
            if rel in [value.lower() for value in values]:
                return tag["href"].strip()
    return None


def scrape_metadata(html: str, url: str) -> OgData:
    """Pull Open Graph / Twitter card metadata out of an HTML document."""
    soup = BeautifulSoup(html, "html.parser")

    title = _meta_content(soup, "og:title", "twitter:title")
    if not title and soup.title and soup.title.string:
        title = soup.title.string.strip() or None

    canonical = _meta_content(soup, "og:url") or _link_href(soup, "canonical")
    page_url = urljoin(url, canonical) if canonical else url

    image = _meta_content(soup, "og:image", "og:image:url", "twitter:image", "twitter:image:src")
    logo = _link_href(soup, "apple-touch-icon", "icon")
    if logo is None:
        parsed = urlparse(page_url)
        logo = f"{parsed.scheme}://{parsed.netloc}/favicon.ico"

    return OgData(
        origin_url=url,
        url=page_url,
        title=title,
        description=_meta_content(soup, "og:description", "twitter:description", "description"),
        image=urljoin(page_url, image) if image else None,
        logo=urljoin(page_url, logo),
    )


def fetch_og_data(url: str, timeout: float = FETCH_TIMEOUT) -> OgData:
    """Fetch a page and scrape it. Failures come back as an ``error`` field."""
    try:
        response = requests.get(url, headers=REQUEST_HEADERS, timeout=timeout)
    except requests.Timeout:
        logger.warning("Timed out fetching OG data for %s", url)
        return OgData(origin_url=url, url=url, error="Request timeout")
    except requests.RequestException as exc:
        logger.warning("Failed to fetch OG data for %s: %s", url, exc)
        return OgData(origin_url=url, url=url, error=str(exc) or "Failed to fetch")

    if not response.ok:
        return OgData(origin_url=url, url=url, error=f"Failed to fetch: {response.status_code}")

    return scrape_metadata(response.text, url)


class OgCache:
    """URL -> OG metadata cache stored as one JSON document on disk.

    Entries look like ``{"data": {...}, "timestamp": <epoch ms>}`` and are
    refetched once older than the TTL. Every store rewrites the whole file.
    """

    def __init__(
        self,
        cache_path: Path,
        fetcher: Optional[Fetcher] = None,
        ttl: timedelta = CACHE_TTL,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.cache_path = cache_path
        self.fetcher = fetcher or fetch_og_data
        self.ttl = ttl
        self.clock = clock

    def _now_ms(self) -> int:
        return int(self.clock() * 1000)

    def load(self) -> Dict[str, Any]:
        if not self.cache_path.exists():
            return {}
        try:
            data = json.loads(self.cache_path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            logger.warning("Failed to load OG cache from %s: %s", self.cache_path, exc)
            return {}
        if not isinstance(data, dict):
            logger.warning("OG cache %s is not in expected format", self.cache_path)
            return {}
        return data

    def save(self, cache: Dict[str, Any]) -> None:
        try:
            self.cache_path.parent.mkdir(parents=True, exist_ok=True)
            self.cache_path.write_text(json.dumps(cache, indent=2, ensure_ascii=False), encoding="utf-8")
        except OSError as exc:
            logger.warning("Failed to save OG cache to %s: %s", self.cache_path, exc)

    def is_fresh(self, entry: Any) -> bool:
        if not isinstance(entry, dict) or not isinstance(entry.get("data"), dict):
            return False
        timestamp = entry.get("timestamp")
        if not isinstance(timestamp, (int, float)):
            return False
        return self._now_ms() - timestamp < self.ttl.total_seconds() * 1000

    def get(self, url: str) -> OgData:
        cache = self.load()
        entry = cache.get(url)
        if self.is_fresh(entry):
            return OgData.from_payload(entry["data"])

        data = self.fetcher(url)
        cache[url] = {"data": data.as_payload(), "timestamp": self._now_ms()}
        self.save(cache)
        return data

    def dump(self) -> Dict[str, Any]:
        return self.load()

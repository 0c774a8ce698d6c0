"""RSS and Atom feed adapter."""

import calendar
import logging
from datetime import datetime
from typing import Any, List, Optional, Tuple

import feedparser
import httpx
import pendulum
from bs4 import BeautifulSoup

from ..config.models import SourceConfig
from ..models import CandidateItem, ContentType
from .base import FetchResult, SourceAdapter

logger = logging.getLogger(__name__)


def _strip_html(html: str) -> str:
    """Plain text of an HTML fragment, entities decoded."""
    if not html:
        return ""
    text = BeautifulSoup(html, "html.parser").get_text(" ", strip=True)
    return " ".join(text.split())


def _entry_published(entry: Any) -> Optional[datetime]:
    """Publication date from feedparser's UTC time tuples."""
    for attr in ("published_parsed", "updated_parsed"):
        parsed = entry.get(attr)
        if parsed:
            return pendulum.from_timestamp(calendar.timegm(parsed))
    return None


def _entry_media(entry: Any) -> Tuple[Optional[str], Optional[ContentType]]:
    """First image or video attached to an entry."""
    for media in entry.get("media_content", []) or []:
        medium = media.get("medium") or media.get("type", "").split("/")[0]
        if medium == "video":
            return media.get("url"), ContentType.VIDEO
        if medium == "image":
            return media.get("url"), None

    for enclosure in entry.get("enclosures", []) or []:
        kind = enclosure.get("type", "")
        if kind.startswith("video/"):
            return enclosure.get("href"), ContentType.VIDEO
        if kind.startswith("image/"):
            return enclosure.get("href"), None

    thumbnails = entry.get("media_thumbnail") or []
    if thumbnails:
        return thumbnails[0].get("url"), ContentType.IMAGE

    return None, None


class RSSAdapter(SourceAdapter):
    """Fetch and parse RSS feeds."""

    platform = "rss"

    def __init__(self, timeout: float = 30.0, transport: Optional[httpx.AsyncBaseTransport] = None) -> None:
        """Initialize RSS adapter."""
        self.timeout = timeout
        self.transport = transport

    async def fetch(self, budget: int, config: SourceConfig) -> FetchResult:
        """Fetch and parse a single RSS feed."""
        if not config.url:
            return FetchResult(errors=["No feed URL configured"])

        try:
            async with httpx.AsyncClient(
                timeout=self.timeout, follow_redirects=True, transport=self.transport
            ) as client:
                response = await client.get(config.url)
                response.raise_for_status()
        except httpx.HTTPError as e:
            return FetchResult(errors=[f"HTTP error: {e}"])

        return self.parse_feed(response.text, config.name, budget)

    def parse_feed(self, content: str, source_name: str, budget: int) -> FetchResult:
        """Turn feed XML into at most budget candidates."""
        feed = feedparser.parse(content)

        if feed.bozo and not feed.entries:
            return FetchResult(errors=[f"Invalid RSS feed: {feed.bozo_exception}"])

        items: List[CandidateItem] = []
        for entry in feed.entries:
            if len(items) >= budget:
                break

            link = entry.get("link")
            if not link:
                logger.debug("Skipping entry without link in %s", source_name)
                continue

            parts = [entry.get("title", ""), _strip_html(entry.get("summary", ""))]
            parts.extend(tag.get("term", "") for tag in entry.get("tags", []) or [])
            media_url, content_type = _entry_media(entry)

            items.append(
                CandidateItem(
                    source_id=source_name,
                    external_id=entry.get("id") or link,
                    text=" ".join(p for p in parts if p),
                    canonical_url=link,
                    media_url=media_url,
                    content_type=content_type,
                    published_at=_entry_published(entry),
                    author=entry.get("author"),
                )
            )

        return FetchResult(items=items)

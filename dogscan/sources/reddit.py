"""Reddit search adapter using the public JSON endpoints."""

import logging
from typing import Any, Dict, List, Optional

import httpx
import pendulum

from ..config.models import SourceConfig
from ..errors import SourceError
from ..models import CandidateItem, ContentType
from .base import FetchResult, SourceAdapter

logger = logging.getLogger(__name__)

REDDIT_BASE_URL = "https://www.reddit.com"
DEFAULT_QUERY = "hotdog OR \"hot dog\""
MAX_LIMIT = 100


class RedditAdapter(SourceAdapter):
    """Search posts site-wide or within one subreddit."""

    platform = "reddit"

    def __init__(
        self,
        timeout: float = 30.0,
        user_agent: str = "dogscan/0.1",
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.timeout = timeout
        self.user_agent = user_agent
        self.transport = transport

    def _search_url(self, config: SourceConfig) -> str:
        if config.url:
            return config.url
        subreddit = config.options.get("subreddit")
        if subreddit:
            return f"{REDDIT_BASE_URL}/r/{subreddit}/search.json"
        return f"{REDDIT_BASE_URL}/search.json"

    async def fetch(self, budget: int, config: SourceConfig) -> FetchResult:
        params = {
            "q": config.query or DEFAULT_QUERY,
            "limit": min(budget, MAX_LIMIT),
            "sort": config.options.get("sort", "new"),
            "t": config.options.get("time_filter", "week"),
            "raw_json": 1,
        }
        if config.options.get("subreddit"):
            params["restrict_sr"] = 1

        try:
            async with httpx.AsyncClient(
                timeout=self.timeout,
                headers={"User-Agent": self.user_agent},
                transport=self.transport,
            ) as client:
                response = await client.get(self._search_url(config), params=params)
                response.raise_for_status()
                payload = response.json()
        except httpx.HTTPStatusError as e:
            if e.response.status_code == 429:
                return FetchResult(errors=["Rate limited by Reddit"])
            if e.response.status_code in (403, 404) and config.options.get("subreddit"):
                raise SourceError(
                    config.name, f"Subreddit r/{config.options['subreddit']} is not accessible"
                ) from e
            return FetchResult(errors=[f"HTTP error: {e.response.status_code}"])
        except httpx.HTTPError as e:
            return FetchResult(errors=[f"HTTP error: {e}"])
        except ValueError as e:
            return FetchResult(errors=[f"Invalid JSON response: {e}"])

        return self.parse_listing(payload, config.name, budget)

    def parse_listing(self, payload: Any, source_name: str, budget: int) -> FetchResult:
        """Turn a search listing into at most budget candidates."""
        try:
            children = payload["data"]["children"]
        except (KeyError, TypeError):
            return FetchResult(errors=["Unexpected listing format"])

        result = FetchResult()
        for child in children:
            if len(result.items) >= budget:
                break
            post = child.get("data") if isinstance(child, dict) else None
            if not post:
                continue
            try:
                candidate = self._to_candidate(post, source_name)
            except (KeyError, TypeError, ValueError) as e:
                result.errors.append(f"Skipped malformed post {post.get('id', '?')}: {e}")
                continue
            if candidate is not None:
                result.items.append(candidate)
        return result

    def _to_candidate(self, post: Dict[str, Any], source_name: str) -> Optional[CandidateItem]:
        if post.get("over_18"):
            logger.debug("Skipping NSFW post %s", post.get("id"))
            return None

        parts: List[str] = [post["title"], post.get("selftext") or ""]
        if post.get("link_flair_text"):
            parts.append(post["link_flair_text"])

        media_url, content_type = self._media(post)
        created = post.get("created_utc")

        return CandidateItem(
            source_id=source_name,
            external_id=post["id"],
            text=" ".join(p for p in parts if p),
            canonical_url=f"{REDDIT_BASE_URL}{post['permalink']}",
            media_url=media_url,
            content_type=content_type,
            engagement_score=float(post.get("score") or 0),
            published_at=pendulum.from_timestamp(float(created)) if created else None,
            author=post.get("author"),
        )

    @staticmethod
    def _media(post: Dict[str, Any]):
        if post.get("is_video"):
            video = (post.get("secure_media") or {}).get("reddit_video") or {}
            return video.get("fallback_url") or post.get("url"), ContentType.VIDEO

        hint = post.get("post_hint")
        url = post.get("url_overridden_by_dest") or post.get("url")
        if hint == "image" and url:
            return url, None
        if hint in ("rich:video", "hosted:video") and url:
            return url, ContentType.VIDEO

        images = (post.get("preview") or {}).get("images") or []
        if images:
            return images[0]["source"]["url"], ContentType.IMAGE
        return None, None

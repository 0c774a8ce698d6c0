import asyncio

import httpx
import pytest

from dogscan.config import SourceConfig
from dogscan.errors import SourceError
from dogscan.models import ContentType
from dogscan.sources import RedditAdapter, default_registry


def _post(post_id: str, **fields) -> dict:
    post = {
        "id": post_id,
        "title": f"Post {post_id}",
        "selftext": "",
        "permalink": f"/r/hotdogs/comments/{post_id}/post/",
        "url": f"https://www.reddit.com/r/hotdogs/comments/{post_id}/post/",
        "score": 10,
        "created_utc": 1736164800,
        "author": "someone",
    }
    post.update(fields)
    return {"kind": "t3", "data": post}


LISTING = {
    "kind": "Listing",
    "data": {
        "children": [
            _post("a1", title="My homemade hot dog", post_hint="image",
                  url="https://i.redd.it/abc.jpg", score=250, link_flair_text="Homemade"),
            _post("a2", title="Hotdog NSFW", over_18=True),
            _post("a3", title="Grilling franks", is_video=True,
                  secure_media={"reddit_video": {"fallback_url": "https://v.redd.it/xyz/DASH_720.mp4"}}),
            {"kind": "t3", "data": {"id": "a4", "permalink": "/r/hotdogs/comments/a4/"}},
        ]
    },
}


class TestParseListing:
    """Listing JSON to candidates."""

    def test_posts(self) -> None:
        result = RedditAdapter().parse_listing(LISTING, "reddit-hotdogs", 10)

        assert [i.external_id for i in result.items] == ["a1", "a3"]
        assert len(result.errors) == 1
        assert result.errors[0].startswith("Skipped malformed post a4")

        image = result.items[0]
        assert image.text == "My homemade hot dog Homemade"
        assert image.canonical_url == "https://www.reddit.com/r/hotdogs/comments/a1/post/"
        assert image.media_url == "https://i.redd.it/abc.jpg"
        assert image.engagement_score == 250.0
        assert image.published_at.year == 2025

        video = result.items[1]
        assert video.media_url == "https://v.redd.it/xyz/DASH_720.mp4"
        assert video.content_type is ContentType.VIDEO

    def test_budget_caps_items(self) -> None:
        result = RedditAdapter().parse_listing(LISTING, "reddit-hotdogs", 1)

        assert [i.external_id for i in result.items] == ["a1"]

    def test_unexpected_shape(self) -> None:
        result = RedditAdapter().parse_listing({"error": 403}, "reddit-hotdogs", 10)

        assert result.items == []
        assert result.errors == ["Unexpected listing format"]


class TestFetch:
    """HTTP behaviour with a mocked transport."""

    def test_subreddit_search(self) -> None:
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["url"] = request.url
            return httpx.Response(200, json=LISTING)

        adapter = RedditAdapter(transport=httpx.MockTransport(handler))
        config = SourceConfig(name="reddit-hotdogs", platform="reddit", query="chili dog",
                              options={"subreddit": "hotdogs"})

        result = asyncio.run(adapter.fetch(5, config))

        assert len(result.items) == 2
        assert seen["url"].path == "/r/hotdogs/search.json"
        assert seen["url"].params["q"] == "chili dog"
        assert seen["url"].params["limit"] == "5"
        assert seen["url"].params["restrict_sr"] == "1"

    def test_site_wide_default_query(self) -> None:
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["url"] = request.url
            return httpx.Response(200, json={"data": {"children": []}})

        adapter = RedditAdapter(transport=httpx.MockTransport(handler))

        asyncio.run(adapter.fetch(500, SourceConfig(name="search", platform="reddit")))

        assert seen["url"].path == "/search.json"
        assert seen["url"].params["q"] == 'hotdog OR "hot dog"'
        assert seen["url"].params["limit"] == "100"
        assert "restrict_sr" not in seen["url"].params

    def test_rate_limited(self) -> None:
        adapter = RedditAdapter(transport=httpx.MockTransport(lambda request: httpx.Response(429)))

        result = asyncio.run(adapter.fetch(5, SourceConfig(name="search", platform="reddit")))

        assert result.errors == ["Rate limited by Reddit"]

    def test_private_subreddit(self) -> None:
        adapter = RedditAdapter(transport=httpx.MockTransport(lambda request: httpx.Response(403)))
        config = SourceConfig(name="secret", platform="reddit", options={"subreddit": "secret"})

        with pytest.raises(SourceError, match="not accessible"):
            asyncio.run(adapter.fetch(5, config))

    def test_invalid_json(self) -> None:
        adapter = RedditAdapter(transport=httpx.MockTransport(lambda request: httpx.Response(200, text="<html>")))

        result = asyncio.run(adapter.fetch(5, SourceConfig(name="search", platform="reddit")))

        assert result.errors[0].startswith("Invalid JSON response")


def test_default_registry() -> None:
    registry = default_registry()

    assert registry.platforms() == ["reddit", "rss"]
    assert "reddit" in registry
    assert registry.get("tiktok") is None

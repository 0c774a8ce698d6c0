"""Source adapters and the platform registry."""

from .base import FetchResult, SourceAdapter
from .reddit import RedditAdapter
from .registry import SourceRegistry, default_registry
from .rss import RSSAdapter

__all__ = [
    "FetchResult",
    "RSSAdapter",
    "RedditAdapter",
    "SourceAdapter",
    "SourceRegistry",
    "default_registry",
]

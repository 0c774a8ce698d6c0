"""Platform name to adapter lookup table."""

from typing import Dict, List, Optional

from .base import SourceAdapter
from .reddit import RedditAdapter
from .rss import RSSAdapter


class SourceRegistry:
    """Adapters keyed by platform."""

    def __init__(self) -> None:
        self._adapters: Dict[str, SourceAdapter] = {}

    def register(self, platform: str, adapter: SourceAdapter) -> None:
        self._adapters[platform] = adapter

    def get(self, platform: str) -> Optional[SourceAdapter]:
        return self._adapters.get(platform)

    def platforms(self) -> List[str]:
        return sorted(self._adapters)

    def __contains__(self, platform: str) -> bool:
        return platform in self._adapters


def default_registry(timeout: float = 30.0) -> SourceRegistry:
    """A new registry with the built-in adapters."""
    registry = SourceRegistry()
    registry.register(RSSAdapter.platform, RSSAdapter(timeout=timeout))
    registry.register(RedditAdapter.platform, RedditAdapter(timeout=timeout))
    return registry

"""Source adapter contract."""

from abc import ABC, abstractmethod
from typing import List

from pydantic import BaseModel, Field

from ..config.models import SourceConfig
from ..models import CandidateItem


class FetchResult(BaseModel):
    """Items and errors returned by one adapter call."""

    items: List[CandidateItem] = Field(default_factory=list, description="Candidates found")
    errors: List[str] = Field(default_factory=list, description="Recoverable failures")


class SourceAdapter(ABC):
    """
    One platform integration.

    fetch() reports expected failures (network, auth, rate limits, parse
    errors) in FetchResult.errors instead of raising.
    """

    platform: str = ""

    @abstractmethod
    async def fetch(self, budget: int, config: SourceConfig) -> FetchResult:
        """
        Fetch up to budget candidates for one configured source.

        Args:
            budget: Maximum number of items to return
            config: Source configuration (name, url, query, options)
        """
        pass

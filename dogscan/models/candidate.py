"""Candidate items surfaced by source adapters."""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class ContentType(str, Enum):
    """Kind of media attached to a candidate."""

    TEXT = "text"
    IMAGE = "image"
    GIF = "gif"
    VIDEO = "video"

    @property
    def is_visual(self) -> bool:
        return self is not ContentType.TEXT


class CandidateItem(BaseModel):
    """A prospective content unit from one source, not yet decided."""

    source_id: str = Field(..., description="Name of the originating source")
    external_id: str = Field(..., description="Source-native identifier")
    text: str = Field("", description="Title, body, captions and tags joined together")
    canonical_url: str = Field(..., description="Globally unique locator for the item")
    media_url: Optional[str] = Field(None, description="Image or video URL")
    content_type: Optional[ContentType] = Field(
        None, description="Media kind if the adapter knows it; derived from media_url otherwise"
    )
    engagement_score: Optional[float] = Field(None, description="Upvotes, views or likes")
    published_at: Optional[datetime] = Field(None, description="Publication timestamp (advisory)")
    author: Optional[str] = Field(None, description="Original author handle")

    class Config:
        """Pydantic config."""

        frozen = True

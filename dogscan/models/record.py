"""Decision actions and the persisted content record."""

from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import Field

from .base import DBModel
from .candidate import ContentType


class DecisionAction(str, Enum):
    """Terminal state of a candidate."""

    APPROVED = "approved"
    REJECTED = "rejected"
    DUPLICATE = "duplicate"
    FLAGGED = "flagged"


class RecordStatus(str, Enum):
    """Queue status of a stored record."""

    APPROVED = "approved"
    PENDING_REVIEW = "pending_review"


class ContentRecord(DBModel):
    """Content accepted into the queue (approved or flagged for review)."""

    content_hash: str = Field(..., description="Deduplication identity, unique in the store")
    canonical_url: str = Field(..., description="Canonical URL of the item")
    source_id: str = Field(..., description="Source that surfaced the item")
    text: str = Field("", description="Candidate text")
    media_url: Optional[str] = Field(None, description="Image or video URL")
    content_type: ContentType = Field(ContentType.TEXT, description="Classified media kind")
    decision_action: DecisionAction = Field(..., description="approved or flagged")
    status: RecordStatus = Field(..., description="Queue status")
    confidence: float = Field(..., description="Filter confidence", ge=0.0, le=1.0)
    flagged_patterns: List[str] = Field(default_factory=list, description="Rule ids for audit")
    discovered_at: datetime = Field(..., description="When the scan found the item")

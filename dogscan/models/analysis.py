"""Filter verdict for a single candidate."""

from typing import List

from pydantic import BaseModel, Field

from .candidate import ContentType


class ContentAnalysis(BaseModel):
    """Result of classifying a candidate against the rule sets."""

    is_spam: bool = Field(False, description="Spam rules or spam heuristics matched")
    is_inappropriate: bool = Field(False, description="Inappropriate rules matched")
    is_unrelated: bool = Field(False, description="Unrelated-chatter rules matched")
    is_valid_topic: bool = Field(False, description="Item passed the topic gate and safety checks")
    confidence: float = Field(0.0, description="Combined confidence", ge=0.0, le=1.0)
    spam_confidence: float = Field(0.0, description="Heuristic spam score", ge=0.0, le=1.0)
    content_type: ContentType = Field(ContentType.TEXT, description="Classified media kind")
    matched_topic_rules: List[str] = Field(
        default_factory=list, description="Required-topic rule ids that matched"
    )
    flagged_patterns: List[str] = Field(
        default_factory=list, description="Spam/inappropriate/unrelated rule ids that matched, in order"
    )
    processing_notes: List[str] = Field(
        default_factory=list, description="Scoring steps, for audit only"
    )

"""Per-item decision state machine."""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

import pendulum

from ..config.models import ScanSettings
from ..db.store import ContentStore
from ..errors import ConfigError
from ..filtering import FilterEngine
from ..models import (
    CandidateItem,
    ContentAnalysis,
    ContentRecord,
    DecisionAction,
    RecordStatus,
)
from .dedup import Deduplicator, ScanDedupSet

logger = logging.getLogger(__name__)


@dataclass
class Decision:
    """Terminal action for one candidate."""

    action: DecisionAction
    content_hash: str
    reason: str
    analysis: Optional[ContentAnalysis] = None
    record: Optional[ContentRecord] = None


class DecisionEngine:
    """
    Move a candidate from discovered to approved, rejected, duplicate or flagged.

    Approved and flagged items are written to the store exactly once;
    rejected and duplicate items are never written.
    """

    def __init__(
        self,
        filter_engine: FilterEngine,
        deduplicator: Deduplicator,
        store: ContentStore,
        auto_approval_threshold: float = 0.7,
        auto_rejection_threshold: float = 0.3,
    ) -> None:
        """
        Initialize decision engine.

        Raises:
            ConfigError: if the thresholds are out of range or not ordered
        """
        for name, value in (
            ("auto_approval_threshold", auto_approval_threshold),
            ("auto_rejection_threshold", auto_rejection_threshold),
        ):
            if not 0.0 <= value <= 1.0:
                raise ConfigError(f"{name} must be within [0, 1], got {value}")
        if auto_rejection_threshold >= auto_approval_threshold:
            raise ConfigError(
                "auto_rejection_threshold must be lower than auto_approval_threshold, "
                f"got {auto_rejection_threshold} >= {auto_approval_threshold}"
            )

        self.filter_engine = filter_engine
        self.deduplicator = deduplicator
        self.store = store
        self.auto_approval_threshold = auto_approval_threshold
        self.auto_rejection_threshold = auto_rejection_threshold

    @classmethod
    def from_settings(
        cls,
        filter_engine: FilterEngine,
        deduplicator: Deduplicator,
        store: ContentStore,
        settings: ScanSettings,
    ) -> "DecisionEngine":
        return cls(
            filter_engine,
            deduplicator,
            store,
            auto_approval_threshold=settings.auto_approval_threshold,
            auto_rejection_threshold=settings.auto_rejection_threshold,
        )

    def decide(
        self,
        item: CandidateItem,
        seen: Optional[ScanDedupSet] = None,
        content_hash: Optional[str] = None,
        discovered_at: Optional[datetime] = None,
    ) -> Decision:
        """
        Decide one candidate.

        Args:
            item: Candidate to decide
            seen: Scan-local dedup set; None when the caller already claimed the item
            content_hash: Precomputed hash, computed here if omitted
            discovered_at: Timestamp for the stored record

        Raises:
            StoreError: if the store cannot be read or written
        """
        if content_hash is None:
            content_hash = self.deduplicator.compute_hash(item)

        if self.deduplicator.is_duplicate(content_hash, seen, self.store, item.canonical_url):
            return Decision(DecisionAction.DUPLICATE, content_hash, "Content already exists")

        analysis = self.filter_engine.classify(item)

        if not analysis.is_valid_topic:
            if analysis.is_spam:
                reason = "Content detected as spam"
            elif analysis.is_inappropriate:
                reason = "Content flagged as inappropriate"
            else:
                reason = "Content is not on topic"
            return Decision(DecisionAction.REJECTED, content_hash, reason, analysis)

        if analysis.confidence >= self.auto_approval_threshold:
            action = DecisionAction.APPROVED
            status = RecordStatus.APPROVED
            reason = f"High confidence ({analysis.confidence:.2f})"
        elif analysis.confidence <= self.auto_rejection_threshold:
            return Decision(
                DecisionAction.REJECTED,
                content_hash,
                f"Low confidence ({analysis.confidence:.2f})",
                analysis,
            )
        else:
            action = DecisionAction.FLAGGED
            status = RecordStatus.PENDING_REVIEW
            reason = "Content requires manual review"

        record = ContentRecord(
            content_hash=content_hash,
            canonical_url=item.canonical_url,
            source_id=item.source_id,
            text=item.text,
            media_url=item.media_url,
            content_type=analysis.content_type,
            decision_action=action,
            status=status,
            confidence=analysis.confidence,
            flagged_patterns=analysis.flagged_patterns,
            discovered_at=discovered_at or pendulum.now("UTC"),
        )

        result = self.store.upsert_if_absent(content_hash, record)
        if not result.inserted:
            logger.debug("Store conflict for %s, downgrading to duplicate", content_hash[:12])
            return Decision(
                DecisionAction.DUPLICATE, content_hash, "Content already exists", analysis
            )

        record = record.model_copy(update={"id": result.record_id})
        logger.debug("%s %s from %s: %s", action.value, content_hash[:12], item.source_id, reason)
        return Decision(action, content_hash, reason, analysis, record)

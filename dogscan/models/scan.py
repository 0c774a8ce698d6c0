"""Scan result models."""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from .record import DecisionAction


class SourceScanStats(BaseModel):
    """Per-source breakdown of one scan."""

    source: str = Field(..., description="Source name")
    platform: str = Field(..., description="Adapter platform key")
    budget: int = Field(0, description="Items requested from the adapter", ge=0)
    found: int = Field(0, description="Candidates returned by the adapter", ge=0)
    processed: int = Field(0, description="Candidates that reached a terminal action", ge=0)
    approved: int = Field(0, description="Accepted into the queue (includes flagged)", ge=0)
    rejected: int = Field(0, description="Rejected candidates", ge=0)
    duplicates: int = Field(0, description="Duplicates within the scan or against history", ge=0)
    flagged: int = Field(0, description="Accepted but held for manual review", ge=0)
    errors: List[str] = Field(default_factory=list, description="Source and item level errors")
    duration: float = Field(0.0, description="Fetch duration in seconds", ge=0.0)

    def record(self, action: DecisionAction) -> None:
        """Count a terminal action."""
        self.processed += 1
        if action is DecisionAction.APPROVED:
            self.approved += 1
        elif action is DecisionAction.FLAGGED:
            self.approved += 1
            self.flagged += 1
        elif action is DecisionAction.REJECTED:
            self.rejected += 1
        else:
            self.duplicates += 1


class ScanResult(BaseModel):
    """Aggregate output of one orchestration run."""

    started_at: datetime = Field(..., description="When the scan started")
    finished_at: Optional[datetime] = Field(None, description="When the scan finished")
    sources: List[SourceScanStats] = Field(default_factory=list, description="Per-source stats")

    @property
    def duration(self) -> float:
        """Scan duration in seconds."""
        if self.finished_at is None:
            return 0.0
        return (self.finished_at - self.started_at).total_seconds()

    @property
    def total_found(self) -> int:
        return sum(s.found for s in self.sources)

    @property
    def total_processed(self) -> int:
        return sum(s.processed for s in self.sources)

    @property
    def total_approved(self) -> int:
        return sum(s.approved for s in self.sources)

    @property
    def total_rejected(self) -> int:
        return sum(s.rejected for s in self.sources)

    @property
    def total_duplicates(self) -> int:
        return sum(s.duplicates for s in self.sources)

    @property
    def total_flagged(self) -> int:
        return sum(s.flagged for s in self.sources)

    @property
    def errors(self) -> List[str]:
        """All errors, prefixed with the source they belong to."""
        return [f"{s.source}: {error}" for s in self.sources for error in s.errors]

    @property
    def success(self) -> bool:
        """True when no source reported an error."""
        return not any(s.errors for s in self.sources)

    def get(self, source: str) -> Optional[SourceScanStats]:
        """Look up the stats of one source by name."""
        for stats in self.sources:
            if stats.source == source:
                return stats
        return None

    def summary(self) -> Dict[str, Any]:
        """JSON-friendly summary with totals."""
        return {
            "started_at": self.started_at.isoformat(),
            "finished_at": self.finished_at.isoformat() if self.finished_at else None,
            "duration": self.duration,
            "success": self.success,
            "totals": {
                "found": self.total_found,
                "processed": self.total_processed,
                "approved": self.total_approved,
                "rejected": self.total_rejected,
                "duplicates": self.total_duplicates,
                "flagged": self.total_flagged,
                "errors": len(self.errors),
            },
            "sources": [s.model_dump() for s in self.sources],
        }

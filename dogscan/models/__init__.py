"""Data models for dogscan."""

from .analysis import ContentAnalysis
from .candidate import CandidateItem, ContentType
from .record import ContentRecord, DecisionAction, RecordStatus
from .scan import ScanResult, SourceScanStats

__all__ = [
    "CandidateItem",
    "ContentAnalysis",
    "ContentRecord",
    "ContentType",
    "DecisionAction",
    "RecordStatus",
    "ScanResult",
    "SourceScanStats",
]

"""Deduplication and per-item decisions."""

from .decision import Decision, DecisionEngine
from .dedup import Deduplicator, ScanDedupSet

__all__ = ["Decision", "DecisionEngine", "Deduplicator", "ScanDedupSet"]

"""Content store contract."""

from abc import ABC, abstractmethod
from typing import NamedTuple, Optional

from ..models import ContentRecord


class UpsertResult(NamedTuple):
    """Outcome of a conditional insert."""

    inserted: bool
    record_id: Optional[int] = None


class ContentStore(ABC):
    """
    Durable store of accepted content, keyed by content hash.

    Implementations must be safe under concurrent callers, and
    upsert_if_absent must be idempotent: of several concurrent inserts
    with the same hash exactly one reports inserted=True.
    """

    @abstractmethod
    def upsert_if_absent(self, content_hash: str, record: ContentRecord) -> UpsertResult:
        """
        Insert a record unless one with the same hash exists.

        Raises:
            StoreError: if the store cannot complete the write
        """
        pass

    @abstractmethod
    def exists_by_hash(self, content_hash: str) -> bool:
        """Whether a record with this hash exists."""
        pass

    @abstractmethod
    def exists_by_url(self, canonical_url: str) -> bool:
        """Whether a record with this canonical URL exists."""
        pass

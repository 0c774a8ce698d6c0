"""In-process content store for dry runs and tests."""

import threading
from typing import Dict, List

from ..models import ContentRecord
from .store import ContentStore, UpsertResult


class MemoryContentStore(ContentStore):
    """Thread-safe dictionary-backed store."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._records: Dict[str, ContentRecord] = {}
        self._urls: Dict[str, str] = {}
        self._next_id = 1

    def upsert_if_absent(self, content_hash: str, record: ContentRecord) -> UpsertResult:
        with self._lock:
            if content_hash in self._records:
                return UpsertResult(inserted=False)

            record_id = self._next_id
            self._next_id += 1
            self._records[content_hash] = record.model_copy(
                update={"id": record_id, "content_hash": content_hash}
            )
            self._urls.setdefault(record.canonical_url, content_hash)
            return UpsertResult(inserted=True, record_id=record_id)

    def exists_by_hash(self, content_hash: str) -> bool:
        with self._lock:
            return content_hash in self._records

    def exists_by_url(self, canonical_url: str) -> bool:
        with self._lock:
            return canonical_url in self._urls

    def records(self) -> List[ContentRecord]:
        """Stored records in insertion order."""
        with self._lock:
            return list(self._records.values())

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)

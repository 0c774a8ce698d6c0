"""Content hashing and duplicate detection."""

import hashlib
import logging
import re
import threading
from typing import Optional, Set

from ..config.models import DedupSettings
from ..db.store import ContentStore
from ..models import CandidateItem

logger = logging.getLogger(__name__)

_NON_WORD = re.compile(r"[^\w\s]")


class ScanDedupSet:
    """
    Hashes and canonical URLs seen during one scan.

    Owned by a single scan and discarded afterwards. claim() is the
    critical section: check and insert happen under one lock.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._hashes: Set[str] = set()
        self._urls: Set[str] = set()

    def contains(self, content_hash: str, canonical_url: Optional[str] = None) -> bool:
        with self._lock:
            return content_hash in self._hashes or (
                canonical_url is not None and canonical_url in self._urls
            )

    def claim(self, content_hash: str, canonical_url: Optional[str] = None) -> bool:
        """Add the item; False if its hash or URL was already claimed."""
        with self._lock:
            if content_hash in self._hashes:
                return False
            if canonical_url is not None and canonical_url in self._urls:
                return False
            self._hashes.add(content_hash)
            if canonical_url is not None:
                self._urls.add(canonical_url)
            return True

    def __len__(self) -> int:
        with self._lock:
            return len(self._hashes)


class Deduplicator:
    """Compute content hashes and check them against the scan set and the store."""

    def __init__(self, settings: Optional[DedupSettings] = None) -> None:
        self.settings = settings or DedupSettings()

    @staticmethod
    def normalize_text(text: str) -> str:
        """Lowercase, strip punctuation, collapse whitespace."""
        text = _NON_WORD.sub("", text.lower())
        return " ".join(text.split())

    def compute_hash(self, item: CandidateItem) -> str:
        """
        SHA-256 of the normalized text.

        The canonical URL is folded in when hash_includes_url is set, and
        always for items without any text, so media-only posts do not all
        share the hash of the empty string.
        """
        normalized = self.normalize_text(item.text or "")
        if self.settings.hash_includes_url or not normalized:
            normalized = f"{normalized}|{item.canonical_url}"
        return hashlib.sha256(normalized.encode()).hexdigest()

    def is_duplicate(
        self,
        content_hash: str,
        seen: Optional[ScanDedupSet],
        store: ContentStore,
        canonical_url: Optional[str] = None,
    ) -> bool:
        """
        Check the scan set, then the store.

        An item that passes both checks is claimed in the scan set before
        returning. Pass seen=None when the item was already claimed.

        Raises:
            StoreError: if the store lookup fails
        """
        url = canonical_url if self.settings.match_canonical_url else None

        if seen is not None and seen.contains(content_hash, url):
            logger.debug("Duplicate within scan: %s", content_hash[:12])
            return True

        if store.exists_by_hash(content_hash):
            logger.debug("Duplicate in store: %s", content_hash[:12])
            return True
        if url is not None and store.exists_by_url(url):
            logger.debug("Duplicate URL in store: %s", url)
            return True

        if seen is not None and not seen.claim(content_hash, url):
            return True
        return False

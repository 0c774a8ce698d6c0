from concurrent.futures import ThreadPoolExecutor
from unittest.mock import MagicMock

from dogscan.config import DedupSettings
from dogscan.processing import Deduplicator, ScanDedupSet


class TestHashing:
    """Normalization and hash identity."""

    def test_normalize_text(self) -> None:
        assert Deduplicator.normalize_text("  Best   HOTDOG, ever!!\n") == "best hotdog ever"

    def test_hash_is_deterministic(self, make_item) -> None:
        dedup = Deduplicator()
        item = make_item("Best Chicago hotdog recipe!!")

        assert dedup.compute_hash(item) == dedup.compute_hash(item)
        assert len(dedup.compute_hash(item)) == 64

    def test_equivalent_texts_share_a_hash(self, make_item) -> None:
        dedup = Deduplicator()

        first = dedup.compute_hash(make_item("Best Chicago hotdog recipe!!"))
        second = dedup.compute_hash(make_item("best   chicago HOTDOG recipe"))

        assert first == second

    def test_different_texts_differ(self, make_item) -> None:
        dedup = Deduplicator()

        assert dedup.compute_hash(make_item("hotdog")) != dedup.compute_hash(make_item("bratwurst"))

    def test_url_is_ignored_by_default(self, make_item) -> None:
        dedup = Deduplicator()

        first = dedup.compute_hash(make_item("hotdog", canonical_url="https://a.example/1"))
        second = dedup.compute_hash(make_item("hotdog", canonical_url="https://b.example/2"))

        assert first == second

    def test_url_can_be_part_of_the_hash(self, make_item) -> None:
        dedup = Deduplicator(DedupSettings(hash_includes_url=True))

        first = dedup.compute_hash(make_item("hotdog", canonical_url="https://a.example/1"))
        second = dedup.compute_hash(make_item("hotdog", canonical_url="https://b.example/2"))

        assert first != second

    def test_items_without_text_hash_by_url(self, make_item) -> None:
        dedup = Deduplicator()

        first = dedup.compute_hash(make_item("", media_url="https://i.redd.it/a.jpg"))
        second = dedup.compute_hash(make_item("!!!", media_url="https://i.redd.it/b.jpg"))

        assert first != second


class TestScanDedupSet:
    """Scan-local claim set."""

    def test_claim_once(self) -> None:
        seen = ScanDedupSet()

        assert seen.claim("abc", "https://example.com/1")
        assert not seen.claim("abc", "https://example.com/2")
        assert not seen.claim("def", "https://example.com/1")
        assert seen.claim("def")
        assert len(seen) == 2

    def test_concurrent_claims_have_one_winner(self) -> None:
        seen = ScanDedupSet()

        with ThreadPoolExecutor(max_workers=16) as pool:
            results = list(pool.map(lambda _: seen.claim("same-hash"), range(200)))

        assert results.count(True) == 1


class TestIsDuplicate:
    """Check order: scan set first, then the store."""

    def _store(self, by_hash=False, by_url=False) -> MagicMock:
        store = MagicMock()
        store.exists_by_hash.return_value = by_hash
        store.exists_by_url.return_value = by_url
        return store

    def test_new_item_is_claimed(self) -> None:
        dedup = Deduplicator()
        seen = ScanDedupSet()

        assert not dedup.is_duplicate("h1", seen, self._store(), "https://example.com/1")
        assert seen.contains("h1")
        assert dedup.is_duplicate("h1", seen, self._store(), "https://example.com/1")

    def test_scan_hit_skips_the_store(self) -> None:
        dedup = Deduplicator()
        seen = ScanDedupSet()
        seen.claim("h1")
        store = self._store()

        assert dedup.is_duplicate("h1", seen, store)
        store.exists_by_hash.assert_not_called()

    def test_store_hash_hit(self) -> None:
        dedup = Deduplicator()
        seen = ScanDedupSet()

        assert dedup.is_duplicate("h1", seen, self._store(by_hash=True))
        assert not seen.contains("h1")

    def test_store_url_hit(self) -> None:
        dedup = Deduplicator()

        assert dedup.is_duplicate("h1", ScanDedupSet(), self._store(by_url=True), "https://example.com/1")

    def test_url_matching_can_be_disabled(self) -> None:
        dedup = Deduplicator(DedupSettings(match_canonical_url=False))
        store = self._store(by_url=True)

        assert not dedup.is_duplicate("h1", ScanDedupSet(), store, "https://example.com/1")
        store.exists_by_url.assert_not_called()

    def test_without_scan_set_only_the_store_is_checked(self) -> None:
        dedup = Deduplicator()

        assert not dedup.is_duplicate("h1", None, self._store())
        assert dedup.is_duplicate("h1", None, self._store(by_hash=True))

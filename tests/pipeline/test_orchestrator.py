import asyncio
from typing import Dict, List

import pytest

from dogscan.config import ScanSettings, SourceConfig
from dogscan.db import MemoryContentStore
from dogscan.errors import ConfigError, SourceError, StoreError
from dogscan.filtering import FilterEngine, default_rule_sets
from dogscan.models import CandidateItem
from dogscan.pipeline import ScanOrchestrator, split_budget
from dogscan.processing import DecisionEngine, Deduplicator
from dogscan.sources import FetchResult, SourceAdapter, SourceRegistry

APPROVABLE = "Best Chicago hotdog recipe!!"
SPAM = "Buy now!!! Click here for discount hotdog merch"


def _item(source: str, text: str, url: str) -> CandidateItem:
    return CandidateItem(source_id=source, external_id=url, text=text, canonical_url=url)


class StaticAdapter(SourceAdapter):
    """Serves canned items per source name."""

    platform = "static"

    def __init__(self, items: Dict[str, List[CandidateItem]]) -> None:
        self.items = items
        self.calls = []

    async def fetch(self, budget, config):
        self.calls.append((config.name, budget))
        return FetchResult(items=self.items.get(config.name, [])[:budget])


class GreedyAdapter(StaticAdapter):
    """Ignores its budget."""

    platform = "greedy"

    async def fetch(self, budget, config):
        return FetchResult(items=self.items.get(config.name, []))


class SlowAdapter(SourceAdapter):
    platform = "slow"

    async def fetch(self, budget, config):
        await asyncio.sleep(5)
        return FetchResult()


class FailingAdapter(SourceAdapter):
    platform = "failing"

    async def fetch(self, budget, config):
        raise RuntimeError("boom")


class LockedAdapter(SourceAdapter):
    platform = "locked"

    async def fetch(self, budget, config):
        raise SourceError(config.name, "Subreddit is private")


class ReportingAdapter(SourceAdapter):
    """Fails the expected way: no items, one error."""

    platform = "reporting"

    async def fetch(self, budget, config):
        return FetchResult(errors=["HTTP error: 503"])


class GarbageAdapter(SourceAdapter):
    platform = "garbage"

    async def fetch(self, budget, config):
        return {"items": []}


class BrokenStore(MemoryContentStore):
    def upsert_if_absent(self, content_hash, record):
        raise StoreError("database unavailable")


def _source(name: str, platform: str = "static", **kwargs) -> SourceConfig:
    return SourceConfig(name=name, platform=platform, **kwargs)


def _orchestrator(items=None, store=None, **settings) -> ScanOrchestrator:
    registry = SourceRegistry()
    static = StaticAdapter(items or {})
    registry.register("static", static)
    registry.register("greedy", GreedyAdapter(items or {}))
    registry.register("slow", SlowAdapter())
    registry.register("failing", FailingAdapter())
    registry.register("reporting", ReportingAdapter())
    registry.register("garbage", GarbageAdapter())
    registry.register("locked", LockedAdapter())

    decision_engine = DecisionEngine(
        FilterEngine(default_rule_sets()), Deduplicator(), store if store is not None else MemoryContentStore()
    )
    settings.setdefault("per_source_timeout_ms", 200)
    orchestrator = ScanOrchestrator(registry, decision_engine, ScanSettings(**settings))
    orchestrator.static = static
    return orchestrator


def _assert_identity(result) -> None:
    for stats in result.sources:
        assert stats.processed == stats.approved + stats.rejected + stats.duplicates
        assert stats.found >= stats.processed
    assert result.total_processed == result.total_approved + result.total_rejected + result.total_duplicates


class TestSplitBudget:
    """Even split, remainder to the first sources."""

    @pytest.mark.parametrize(
        "total,count,expected",
        [(10, 3, [4, 3, 3]), (9, 3, [3, 3, 3]), (2, 3, [1, 1, 0]), (0, 2, [0, 0]), (5, 0, [])],
    )
    def test_split(self, total, count, expected) -> None:
        assert split_budget(total, count) == expected


class TestRunScan:
    """End-to-end scans with fake adapters."""

    def test_basic_scan(self) -> None:
        orchestrator = _orchestrator({
            "a": [_item("a", APPROVABLE, "https://a.example/1")],
            "b": [_item("b", SPAM, "https://b.example/1")],
        })

        result = orchestrator.run_scan_sync([_source("a"), _source("b")], 10)

        assert result.success
        assert result.get("a").approved == 1
        assert result.get("b").rejected == 1
        assert result.total_found == 2
        assert result.finished_at is not None
        _assert_identity(result)

    def test_same_canonical_url_from_two_sources(self) -> None:
        orchestrator = _orchestrator({
            "a": [_item("a", APPROVABLE, "https://shared.example/post")],
            "b": [_item("b", "Another caption about a chili dog", "https://shared.example/post")],
        })

        result = orchestrator.run_scan_sync([_source("a"), _source("b")], 10)

        assert result.total_found == 2
        assert result.total_processed == 2
        assert result.total_duplicates == 1
        assert result.get("a").approved == 1
        assert result.get("b").duplicates == 1
        _assert_identity(result)

    def test_same_text_from_two_sources(self) -> None:
        orchestrator = _orchestrator({
            "a": [_item("a", APPROVABLE, "https://a.example/1")],
            "b": [_item("b", "best chicago HOTDOG recipe", "https://b.example/1")],
        })

        result = orchestrator.run_scan_sync([_source("a"), _source("b")], 10)

        assert result.get("b").duplicates == 1
        assert result.total_approved == 1

    def test_rescan_finds_only_duplicates(self) -> None:
        store = MemoryContentStore()
        items = {"a": [_item("a", APPROVABLE, "https://a.example/1")]}

        first = _orchestrator(items, store=store).run_scan_sync([_source("a")], 5)
        second = _orchestrator(items, store=store).run_scan_sync([_source("a")], 5)

        assert first.total_approved == 1
        assert second.total_approved == 0
        assert second.total_duplicates == 1
        assert len(store) == 1

    def test_flagged_items_count_as_approved(self) -> None:
        orchestrator = _orchestrator({"a": [_item("a", "Hotdog, wow", "https://a.example/1")]})

        result = orchestrator.run_scan_sync([_source("a")], 5)

        assert result.get("a").approved == 1
        assert result.get("a").flagged == 1
        _assert_identity(result)

    def test_no_sources(self) -> None:
        result = _orchestrator().run_scan_sync([], 10)

        assert result.success
        assert result.total_found == 0
        assert result.sources == []

    def test_negative_budget_is_rejected(self) -> None:
        with pytest.raises(ConfigError):
            _orchestrator().run_scan_sync([_source("a")], -1)

    def test_default_budget_from_settings(self) -> None:
        orchestrator = _orchestrator(default_budget=7)

        orchestrator.run_scan_sync([_source("a")])

        assert orchestrator.static.calls == [("a", 7)]


class TestBudgets:
    """Budget split and enforcement."""

    def test_zero_budget_sources_are_not_invoked(self) -> None:
        orchestrator = _orchestrator()

        result = orchestrator.run_scan_sync([_source("a"), _source("b"), _source("c")], 2)

        assert sorted(orchestrator.static.calls) == [("a", 1), ("b", 1)]
        assert result.get("c").budget == 0
        assert result.get("c").errors == []

    def test_items_beyond_budget_are_dropped(self) -> None:
        items = {"a": [_item("a", f"hotdog number {i}", f"https://a.example/{i}") for i in range(5)]}
        orchestrator = _orchestrator(items)

        result = orchestrator.run_scan_sync([_source("a", platform="greedy")], 2)

        assert result.get("a").found == 2
        assert result.get("a").processed == 2

    def test_disabled_sources_are_ignored(self) -> None:
        orchestrator = _orchestrator()

        result = orchestrator.run_scan_sync([_source("a"), _source("b", enabled=False)], 4)

        assert [s.source for s in result.sources] == ["a"]
        assert orchestrator.static.calls == [("a", 4)]


class TestIsolation:
    """One failing source never affects its siblings."""

    def _items(self):
        return {
            "a": [_item("a", APPROVABLE, "https://a.example/1")],
            "b": [_item("b", SPAM, "https://b.example/1")],
        }

    def test_timeout_is_isolated(self) -> None:
        orchestrator = _orchestrator(self._items())

        result = orchestrator.run_scan_sync(
            [_source("a"), _source("b"), _source("c", platform="slow")], 9
        )

        assert not result.success
        assert len(result.errors) == 1
        assert result.errors[0].startswith("c: Timed out")
        assert result.get("c").found == 0
        assert result.get("a").approved == 1
        assert result.get("b").rejected == 1
        _assert_identity(result)

    def test_source_timeout_override(self) -> None:
        orchestrator = _orchestrator(per_source_timeout_ms=10_000, overall_timeout_ms=10_000)

        result = orchestrator.run_scan_sync([_source("c", platform="slow", timeout_ms=50)], 3)

        assert result.get("c").errors[0].startswith("Timed out")

    def test_overall_deadline_cancels_pending_sources(self) -> None:
        orchestrator = _orchestrator(
            self._items(), per_source_timeout_ms=10_000, overall_timeout_ms=300
        )

        result = orchestrator.run_scan_sync([_source("a"), _source("c", platform="slow")], 4)

        assert result.get("c").errors == ["Cancelled: overall scan deadline exceeded"]
        assert result.get("a").approved == 1

    @pytest.mark.parametrize(
        "platform,error",
        [
            ("failing", "Adapter error: boom"),
            ("reporting", "HTTP error: 503"),
            ("locked", "Subreddit is private"),
            ("garbage", "Malformed adapter response: dict"),
            ("nope", "Unknown platform: nope"),
        ],
    )
    def test_source_failures_are_recorded(self, platform, error) -> None:
        orchestrator = _orchestrator(self._items())

        result = orchestrator.run_scan_sync([_source("a"), _source("x", platform=platform)], 4)

        assert result.get("x").errors == [error]
        assert result.get("x").found == 0
        assert result.get("a").errors == []
        assert result.get("a").approved == 1
        assert result.errors == [f"x: {error}"]

    def test_store_errors_are_per_item(self) -> None:
        orchestrator = _orchestrator(
            {"a": [_item("a", APPROVABLE, "https://a.example/1"), _item("a", SPAM, "https://a.example/2")]},
            store=BrokenStore(),
        )

        result = orchestrator.run_scan_sync([_source("a")], 5)

        stats = result.get("a")
        assert stats.found == 2
        assert stats.processed == 1
        assert stats.rejected == 1
        assert len(stats.errors) == 1
        assert "database unavailable" in stats.errors[0]
        _assert_identity(result)

    def test_summary_totals(self) -> None:
        orchestrator = _orchestrator(self._items())

        result = orchestrator.run_scan_sync([_source("a"), _source("b"), _source("x", platform="failing")], 6)
        summary = result.summary()

        assert summary["success"] is False
        assert summary["totals"]["found"] == 2
        assert summary["totals"]["errors"] == 1
        assert [s["source"] for s in summary["sources"]] == ["a", "b", "x"]

"""Scan orchestrator: concurrent source fetch, cross-source dedup, bounded decisions."""

import asyncio
import logging
import time
from datetime import datetime
from typing import Dict, List, Optional, Sequence, Tuple

import pendulum
from rich.console import Console
from rich.table import Table

from ..config.models import ConfigModel, ScanSettings, SourceConfig
from ..db.store import ContentStore
from ..errors import ConfigError, SourceError, StoreError
from ..filtering import FilterEngine, RuleSets
from ..models import CandidateItem, DecisionAction, ScanResult, SourceScanStats
from ..processing import DecisionEngine, Deduplicator, ScanDedupSet
from ..sources import FetchResult, SourceRegistry, default_registry

logger = logging.getLogger(__name__)

console = Console()


def split_budget(total_budget: int, source_count: int) -> List[int]:
    """
    Split a budget evenly, remainder one apiece to the first sources.

    >>> split_budget(10, 3)
    [4, 3, 3]
    """
    if source_count <= 0:
        return []
    share, remainder = divmod(total_budget, source_count)
    return [share + (1 if i < remainder else 0) for i in range(source_count)]


class ScanOrchestrator:
    """
    Run one scan across a set of sources.

    Each call to run_scan owns its own dedup set, so scans may run
    concurrently against the same store.
    """

    def __init__(
        self,
        registry: SourceRegistry,
        decision_engine: DecisionEngine,
        settings: Optional[ScanSettings] = None,
    ) -> None:
        """
        Initialize scan orchestrator.

        Args:
            registry: Platform to adapter lookup
            decision_engine: Per-item decisions; its deduplicator computes hashes
            settings: Timeouts and concurrency limits
        """
        self.registry = registry
        self.decision_engine = decision_engine
        self.deduplicator: Deduplicator = decision_engine.deduplicator
        self.settings = settings or ScanSettings()

    @classmethod
    def from_config(
        cls,
        config: ConfigModel,
        store: ContentStore,
        rule_sets: RuleSets,
        registry: Optional[SourceRegistry] = None,
    ) -> "ScanOrchestrator":
        """Wire filter, dedup and decision engines from configuration."""
        filter_engine = FilterEngine(
            rule_sets,
            settings=config.filtering,
            topic_gate_policy=config.scan.topic_gate_policy,
        )
        decision_engine = DecisionEngine.from_settings(
            filter_engine, Deduplicator(config.dedup), store, config.scan
        )
        if registry is None:
            registry = default_registry(timeout=config.scan.per_source_timeout_ms / 1000)
        return cls(registry, decision_engine, config.scan)

    async def _fetch_source(self, config: SourceConfig, stats: SourceScanStats,
                            semaphore: asyncio.Semaphore) -> List[CandidateItem]:
        """Invoke one adapter; every failure ends up in stats.errors."""
        adapter = self.registry.get(config.platform)
        if adapter is None:
            stats.errors.append(f"Unknown platform: {config.platform}")
            return []

        timeout = (config.timeout_ms or self.settings.per_source_timeout_ms) / 1000

        async with semaphore:
            started = time.monotonic()
            try:
                result = await asyncio.wait_for(adapter.fetch(stats.budget, config), timeout)
            except asyncio.TimeoutError:
                logger.warning("Source %s timed out after %.1fs", config.name, timeout)
                stats.errors.append(f"Timed out after {timeout:g}s")
                return []
            except SourceError as e:
                logger.warning("Source %s failed: %s", config.name, e.message)
                stats.errors.append(e.message)
                return []
            except Exception as e:
                logger.warning("Source %s failed: %s", config.name, e)
                stats.errors.append(f"Adapter error: {e}")
                return []
            finally:
                stats.duration = round(time.monotonic() - started, 3)

        if not isinstance(result, FetchResult):
            stats.errors.append(f"Malformed adapter response: {type(result).__name__}")
            return []

        stats.errors.extend(str(e) for e in result.errors)

        items = [item for item in result.items if isinstance(item, CandidateItem)]
        if len(items) < len(result.items):
            stats.errors.append(f"Dropped {len(result.items) - len(items)} malformed items")
        if len(items) > stats.budget:
            logger.warning("Source %s returned %d items for budget %d, truncating",
                           config.name, len(items), stats.budget)
            items = items[:stats.budget]

        stats.found = len(items)
        logger.info("Source %s: %d items in %.2fs", config.name, stats.found, stats.duration)
        return items

    async def _fetch_all(self, plan: List[Tuple[SourceConfig, SourceScanStats]]
                         ) -> List[Tuple[SourceScanStats, List[CandidateItem]]]:
        """Fetch all sources under the concurrency cap and the overall deadline."""
        semaphore = asyncio.Semaphore(self.settings.max_concurrency)
        tasks: Dict[asyncio.Task, SourceScanStats] = {}
        for config, stats in plan:
            if stats.budget == 0:
                continue
            task = asyncio.create_task(self._fetch_source(config, stats, semaphore))
            tasks[task] = stats

        fetched: Dict[str, List[CandidateItem]] = {}
        if tasks:
            done, pending = await asyncio.wait(
                tasks, timeout=self.settings.overall_timeout_ms / 1000
            )

            for task in pending:
                task.cancel()
            if pending:
                await asyncio.gather(*pending, return_exceptions=True)

            for task, stats in tasks.items():
                if task in pending:
                    stats.found = 0
                    stats.errors.append("Cancelled: overall scan deadline exceeded")
                    continue
                try:
                    fetched[stats.source] = task.result()
                except Exception as e:
                    stats.errors.append(f"Adapter error: {e}")

        return [(stats, fetched.get(stats.source, [])) for _, stats in plan]

    def _claim(self, fetched: List[Tuple[SourceScanStats, List[CandidateItem]]]
               ) -> List[Tuple[SourceScanStats, CandidateItem, str]]:
        """
        Single-threaded cross-source dedup pass.

        Items already claimed by an earlier item in this scan are counted
        as duplicates of the source that surfaced them.
        """
        seen = ScanDedupSet()
        match_url = self.deduplicator.settings.match_canonical_url
        queue = []
        for stats, items in fetched:
            for item in items:
                content_hash = self.deduplicator.compute_hash(item)
                url = item.canonical_url if match_url else None
                if seen.claim(content_hash, url):
                    queue.append((stats, item, content_hash))
                else:
                    stats.record(DecisionAction.DUPLICATE)
        return queue

    async def _decide_all(self, queue: List[Tuple[SourceScanStats, CandidateItem, str]],
                          discovered_at: datetime) -> None:
        semaphore = asyncio.Semaphore(self.settings.decision_concurrency)

        async def decide_one(stats: SourceScanStats, item: CandidateItem, content_hash: str) -> None:
            async with semaphore:
                try:
                    decision = await asyncio.to_thread(
                        self.decision_engine.decide, item, None, content_hash, discovered_at
                    )
                except StoreError as e:
                    logger.warning("Store error for %s: %s", item.canonical_url, e)
                    stats.errors.append(f"Store error for {item.canonical_url}: {e}")
                    return
                except Exception as e:
                    logger.exception("Failed to process %s", item.canonical_url)
                    stats.errors.append(f"Failed to process {item.canonical_url}: {e}")
                    return
            stats.record(decision.action)

        await asyncio.gather(*(decide_one(*entry) for entry in queue))

    async def run_scan(self, sources: Sequence[SourceConfig],
                       total_budget: Optional[int] = None) -> ScanResult:
        """
        Run one scan.

        Args:
            sources: Configured sources; disabled ones are ignored
            total_budget: Items to request across all sources, split evenly

        Returns:
            ScanResult; per-source and per-item failures are recorded in it, never raised

        Raises:
            ConfigError: if total_budget is negative
        """
        if total_budget is None:
            total_budget = self.settings.default_budget
        if total_budget < 0:
            raise ConfigError(f"total_budget must be non-negative, got {total_budget}")

        result = ScanResult(started_at=pendulum.now("UTC"))

        enabled: List[SourceConfig] = []
        names = set()
        for source in sources:
            if not source.enabled:
                continue
            if source.name in names:
                logger.warning("Ignoring duplicate source name %s", source.name)
                continue
            names.add(source.name)
            enabled.append(source)

        budgets = split_budget(total_budget, len(enabled))
        plan = []
        for source, budget in zip(enabled, budgets):
            stats = SourceScanStats(source=source.name, platform=source.platform, budget=budget)
            result.sources.append(stats)
            plan.append((source, stats))

        logger.info("Scanning %d sources with budget %d", len(plan), total_budget)

        fetched = await self._fetch_all(plan)
        queue = self._claim(fetched)
        await self._decide_all(queue, result.started_at)

        result.finished_at = pendulum.now("UTC")
        logger.info(
            "Scan finished in %.2fs: found=%d approved=%d rejected=%d duplicates=%d errors=%d",
            result.duration, result.total_found, result.total_approved,
            result.total_rejected, result.total_duplicates, len(result.errors),
        )
        return result

    def run_scan_sync(self, sources: Sequence[SourceConfig],
                      total_budget: Optional[int] = None) -> ScanResult:
        """Synchronous wrapper for run_scan."""
        return asyncio.run(self.run_scan(sources, total_budget))


def print_scan_summary(result: ScanResult) -> None:
    """Print per-source breakdown and totals."""
    table = Table(title="Scan Summary")
    table.add_column("Source", style="cyan")
    table.add_column("Platform")
    table.add_column("Found", justify="right")
    table.add_column("Processed", justify="right")
    table.add_column("Approved", justify="right", style="green")
    table.add_column("Flagged", justify="right", style="yellow")
    table.add_column("Rejected", justify="right", style="red")
    table.add_column("Duplicates", justify="right")
    table.add_column("Errors", justify="right")
    table.add_column("Time", justify="right")

    for s in result.sources:
        table.add_row(
            s.source,
            s.platform,
            str(s.found),
            str(s.processed),
            str(s.approved),
            str(s.flagged),
            str(s.rejected),
            str(s.duplicates),
            f"[red]{len(s.errors)}[/red]" if s.errors else "0",
            f"{s.duration:.1f}s",
        )

    table.add_section()
    table.add_row(
        "[bold]Total[/bold]",
        "",
        str(result.total_found),
        str(result.total_processed),
        str(result.total_approved),
        str(result.total_flagged),
        str(result.total_rejected),
        str(result.total_duplicates),
        str(len(result.errors)),
        f"{result.duration:.1f}s",
    )
    console.print(table)

    if result.errors:
        console.print("\n[bold red]Errors:[/bold red]")
        for error in result.errors:
            console.print(f"  - {error}")
    elif result.sources:
        console.print("\n[green]All sources scanned without errors[/green]")

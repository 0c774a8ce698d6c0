from concurrent.futures import ThreadPoolExecutor
from unittest.mock import MagicMock

import pytest

from dogscan.config import ScanSettings
from dogscan.db import UpsertResult
from dogscan.errors import ConfigError, StoreError
from dogscan.filtering import FilterEngine, default_rule_sets
from dogscan.models import DecisionAction, RecordStatus
from dogscan.processing import DecisionEngine, Deduplicator, ScanDedupSet


class TestDecide:
    """Terminal actions for single items."""

    def test_high_confidence_is_approved_and_stored(self, decision_engine, store, make_item) -> None:
        decision = decision_engine.decide(make_item("Best Chicago hotdog recipe!!"))

        assert decision.action is DecisionAction.APPROVED
        assert decision.record is not None
        assert decision.record.status is RecordStatus.APPROVED
        assert decision.record.id == 1
        assert len(store) == 1
        assert store.records()[0].content_hash == decision.content_hash

    def test_spam_is_rejected_without_write(self, decision_engine, store, make_item) -> None:
        decision = decision_engine.decide(make_item("Buy now!!! Click here for discount hotdog merch"))

        assert decision.action is DecisionAction.REJECTED
        assert decision.reason == "Content detected as spam"
        assert decision.record is None
        assert len(store) == 0

    def test_off_topic_is_rejected(self, decision_engine, store, make_item) -> None:
        decision = decision_engine.decide(make_item("Stock market update"))

        assert decision.action is DecisionAction.REJECTED
        assert decision.reason == "Content is not on topic"
        assert len(store) == 0

    def test_middle_confidence_is_flagged(self, decision_engine, store, make_item) -> None:
        decision = decision_engine.decide(make_item("Hotdog, wow"))

        assert decision.action is DecisionAction.FLAGGED
        assert decision.reason == "Content requires manual review"
        assert decision.record.status is RecordStatus.PENDING_REVIEW
        assert len(store) == 1

    def test_low_confidence_is_rejected(self, store, make_item) -> None:
        engine = DecisionEngine(
            FilterEngine(default_rule_sets(), topic_gate_policy="permissive"), Deduplicator(), store
        )

        decision = engine.decide(make_item("What a delicious lunch today"))

        assert decision.analysis.is_valid_topic
        assert decision.action is DecisionAction.REJECTED
        assert decision.reason.startswith("Low confidence")
        assert len(store) == 0

    def test_decide_again_is_duplicate(self, decision_engine, store, make_item) -> None:
        item = make_item("Best Chicago hotdog recipe!!")

        first = decision_engine.decide(item)
        second = decision_engine.decide(item)

        assert first.action is DecisionAction.APPROVED
        assert second.action is DecisionAction.DUPLICATE
        assert second.analysis is None
        assert len(store) == 1

    def test_scan_set_duplicate(self, decision_engine, make_item) -> None:
        seen = ScanDedupSet()

        first = decision_engine.decide(make_item("Chili dog night"), seen=seen)
        second = decision_engine.decide(make_item("chili dog night!"), seen=seen)

        assert first.action is not DecisionAction.DUPLICATE
        assert second.action is DecisionAction.DUPLICATE

    def test_rejected_items_are_claimed_in_the_scan(self, decision_engine, make_item) -> None:
        seen = ScanDedupSet()

        decision_engine.decide(make_item("Stock market update"), seen=seen)
        decision = decision_engine.decide(make_item("stock market update"), seen=seen)

        assert decision.action is DecisionAction.DUPLICATE


class TestStoreInteraction:
    """Conflicts and failures reported by the store."""

    def _store(self) -> MagicMock:
        store = MagicMock()
        store.exists_by_hash.return_value = False
        store.exists_by_url.return_value = False
        return store

    def test_conflict_downgrades_to_duplicate(self, filter_engine, make_item) -> None:
        store = self._store()
        store.upsert_if_absent.return_value = UpsertResult(inserted=False)
        engine = DecisionEngine(filter_engine, Deduplicator(), store)

        decision = engine.decide(make_item("Best Chicago hotdog recipe!!"))

        assert decision.action is DecisionAction.DUPLICATE
        assert decision.record is None
        store.upsert_if_absent.assert_called_once()

    def test_store_error_propagates(self, filter_engine, make_item) -> None:
        store = self._store()
        store.upsert_if_absent.side_effect = StoreError("connection refused")
        engine = DecisionEngine(filter_engine, Deduplicator(), store)

        with pytest.raises(StoreError):
            engine.decide(make_item("Best Chicago hotdog recipe!!"))

    def test_concurrent_decisions_write_once(self, decision_engine, store, make_item) -> None:
        items = [make_item("Best Chicago hotdog recipe!!") for _ in range(50)]

        with ThreadPoolExecutor(max_workers=8) as pool:
            decisions = list(pool.map(decision_engine.decide, items))

        actions = [d.action for d in decisions]
        assert actions.count(DecisionAction.APPROVED) == 1
        assert actions.count(DecisionAction.DUPLICATE) == 49
        assert len(store) == 1


class TestThresholds:
    """Threshold validation at construction time."""

    @pytest.mark.parametrize("approval,rejection", [(0.5, 0.5), (0.3, 0.7), (1.2, 0.3), (0.7, -0.1)])
    def test_invalid_thresholds_raise(self, filter_engine, store, approval, rejection) -> None:
        with pytest.raises(ConfigError):
            DecisionEngine(filter_engine, Deduplicator(), store, approval, rejection)

    def test_config_error_is_a_value_error(self, filter_engine, store) -> None:
        with pytest.raises(ValueError):
            DecisionEngine(filter_engine, Deduplicator(), store, 0.2, 0.4)

    def test_from_settings(self, filter_engine, store) -> None:
        settings = ScanSettings(auto_approval_threshold=0.9, auto_rejection_threshold=0.1)

        engine = DecisionEngine.from_settings(filter_engine, Deduplicator(), store, settings)

        assert engine.auto_approval_threshold == 0.9
        assert engine.auto_rejection_threshold == 0.1

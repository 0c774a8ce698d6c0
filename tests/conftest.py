import itertools

import pytest

from dogscan.db import MemoryContentStore
from dogscan.filtering import FilterEngine, default_rule_sets
from dogscan.models import CandidateItem
from dogscan.processing import DecisionEngine, Deduplicator


@pytest.fixture
def make_item():
    """Factory for candidate items with unique ids and URLs."""
    counter = itertools.count(1)

    def _make(text: str = "", source_id: str = "test", canonical_url: str = None, **kwargs) -> CandidateItem:
        n = next(counter)
        return CandidateItem(
            source_id=source_id,
            external_id=str(n),
            text=text,
            canonical_url=canonical_url or f"https://example.com/posts/{n}",
            **kwargs,
        )

    return _make


@pytest.fixture
def filter_engine() -> FilterEngine:
    return FilterEngine(default_rule_sets())


@pytest.fixture
def store() -> MemoryContentStore:
    return MemoryContentStore()


@pytest.fixture
def decision_engine(filter_engine, store) -> DecisionEngine:
    return DecisionEngine(filter_engine, Deduplicator(), store)

"""
Unit tests for the simulated corpus index.
"""

import pytest

from rag_cost_sim.core.corpus import DEFAULT_CORPUS, RELEVANCE_THRESHOLD, CorpusIndex, Record
from rag_cost_sim.core.errors import InvalidArgument


def make_record(record_id: str, similarity: float) -> Record:
    """Create a minimal test record."""
    return Record(
        id=record_id,
        type="Apartment",
        bedrooms=1,
        bathrooms=1,
        address="1 Test St",
        price=100,
        features=("parking",),
        description="Test listing",
        similarity=similarity,
    )


class TestCorpusSearch:
    """Test threshold filtering and ordering."""

    def test_default_corpus_results(self):
        """Verify the demo corpus returns all four listings best first."""
        results = DEFAULT_CORPUS.search("2-bedroom near the beach")
        assert [r.id for r in results] == ["prop1", "prop2", "prop3", "prop4"]
        assert len(DEFAULT_CORPUS) == 4

    def test_filters_at_threshold(self):
        """Verify records at or below 0.5 are excluded."""
        index = CorpusIndex([
            make_record("low", 0.2),
            make_record("edge", 0.5),
            make_record("high", 0.51),
        ])
        results = index.search("anything")
        assert [r.id for r in results] == ["high"]
        assert all(r.similarity > RELEVANCE_THRESHOLD for r in results)

    def test_sorted_descending(self):
        """Verify results are sorted by descending similarity."""
        index = CorpusIndex([
            make_record("b", 0.6),
            make_record("a", 0.9),
            make_record("c", 0.75),
        ])
        scores = [r.similarity for r in index.search("q")]
        assert scores == sorted(scores, reverse=True)
        assert scores == [0.9, 0.75, 0.6]

    def test_ties_keep_registration_order(self):
        """Verify equal scores preserve original order."""
        index = CorpusIndex([
            make_record("first", 0.8),
            make_record("top", 0.95),
            make_record("second", 0.8),
            make_record("third", 0.8),
        ])
        assert [r.id for r in index.search("q")] == ["top", "first", "second", "third"]

    def test_top_k_truncates(self):
        """Verify top_k caps the result count."""
        assert [r.id for r in DEFAULT_CORPUS.search("q", top_k=2)] == ["prop1", "prop2"]

    def test_negative_top_k_rejected(self):
        """Verify negative top_k is rejected."""
        with pytest.raises(InvalidArgument):
            DEFAULT_CORPUS.search("q", top_k=-1)

    def test_empty_corpus(self):
        """Verify an empty index returns no results."""
        assert CorpusIndex([]).search("q") == []

    def test_search_does_not_mutate_index(self):
        """Verify searching leaves the registered records untouched."""
        before = DEFAULT_CORPUS.records
        DEFAULT_CORPUS.search("q", top_k=1)
        assert DEFAULT_CORPUS.records == before


class TestRecord:
    """Test record validation."""

    def test_similarity_out_of_range(self):
        """Verify similarity must lie within [0, 1]."""
        with pytest.raises(ValueError, match="between 0 and 1"):
            make_record("bad", 1.2)

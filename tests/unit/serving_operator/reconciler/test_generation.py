"""
Tests for generation tracking.
"""

import pytest

from serving_operator.errors import StaleGenerationError
from serving_operator.reconciler import GenerationTracker


class TestGenerationTracker:
    """Tests for GenerationTracker.observe."""

    def test_first_sighting_at_one_is_creation(self):
        assert GenerationTracker().observe("ns/ks", 1) == "creation"

    def test_first_sighting_later_is_unclassified(self):
        tracker = GenerationTracker()
        assert tracker.observe("ns/ks", 4) is None
        assert tracker.get("ns/ks") == 4

    def test_increase_is_edit(self):
        tracker = GenerationTracker()
        tracker.observe("ns/ks", 1)
        assert tracker.observe("ns/ks", 2) == "edit"

    def test_same_generation_is_unclassified(self):
        tracker = GenerationTracker()
        tracker.observe("ns/ks", 2)
        assert tracker.observe("ns/ks", 2) is None

    def test_decrease_rejected(self):
        tracker = GenerationTracker()
        tracker.observe("ns/ks", 3)
        with pytest.raises(StaleGenerationError) as exc_info:
            tracker.observe("ns/ks", 2)
        assert str(exc_info.value) == (
            "reconciling obsolete generation of ns/ks: newGen = 2 and oldGen = 3"
        )
        assert tracker.get("ns/ks") == 3

    def test_forget(self):
        tracker = GenerationTracker()
        tracker.observe("ns/ks", 3)
        tracker.forget("ns/ks")
        assert "ns/ks" not in tracker
        assert tracker.observe("ns/ks", 1) == "creation"

    def test_keys_independent(self):
        tracker = GenerationTracker()
        tracker.observe("ns/a", 5)
        assert tracker.observe("ns/b", 1) == "creation"
        assert len(tracker) == 2

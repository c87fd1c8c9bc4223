"""
Tests for the in-process fallback store
"""

from datetime import datetime, timezone

from fintrack.core.schemas.quiz import QuizResultIn
from fintrack.services.fallback_store import FallbackStore
from fintrack.services.quiz_engine import new_progress

NOW = datetime(2026, 10, 19, tzinfo=timezone.utc)


class TestFallbackStore:
    def test_snapshot_is_a_copy(self):
        store = FallbackStore()
        progress = new_progress()
        store.remember(1, progress)

        progress.points = 500
        snapshot = store.snapshot(1)
        assert snapshot.points == 0

        snapshot.points = 42
        assert store.snapshot(1).points == 0

    def test_unknown_user_has_nothing(self):
        store = FallbackStore()
        assert store.snapshot(7) is None
        assert store.pending(7) == []

    def test_queue_is_per_user_and_ordered(self):
        store = FallbackStore()
        assert store.enqueue(1, QuizResultIn(score=1, total=5), NOW) == 1
        assert store.enqueue(1, QuizResultIn(score=2, total=5), NOW) == 2
        store.enqueue(2, QuizResultIn(score=3, total=5), NOW)

        assert [item.result.score for item in store.pending(1)] == [1, 2]
        assert [item.result.score for item in store.pending(2)] == [3]

    def test_acknowledge_removes_only_replayed_items(self):
        store = FallbackStore()
        for score in (1, 2, 3):
            store.enqueue(1, QuizResultIn(score=score, total=5), NOW)

        store.acknowledge(1, 2)
        assert [item.result.score for item in store.pending(1)] == [3]

        store.acknowledge(1, 1)
        assert store.pending(1) == []

    def test_limit(self):
        store = FallbackStore(pending_limit=2)
        store.enqueue(1, QuizResultIn(score=1, total=5), NOW)
        assert store.can_enqueue(1)
        store.enqueue(1, QuizResultIn(score=1, total=5), NOW)
        assert not store.can_enqueue(1)
        assert store.can_enqueue(2)


def test_lock_is_per_user():
    store = FallbackStore()

    first = store.lock(1)
    assert store.lock(1) is first
    assert store.lock(2) is not first

    store.clear()
    assert store.lock(1) is not first

"""
Tests for QuizProgressService and ProgressRepository against SQLite
"""

import asyncio
from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm.exc import StaleDataError

from fintrack.core.database import db_helper
from fintrack.core.exceptions import DatabaseError, PendingQueueFullError
from fintrack.core.schemas.quiz import Difficulty, QuizResultIn
from fintrack.repositories.progress_repository import ProgressRepository
from fintrack.services.fallback_store import FallbackStore
from fintrack.services.quiz_service import QuizProgressService


class FakeClock:
    def __init__(self, now=datetime(2026, 10, 19, 8, 0, tzinfo=timezone.utc)):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, **kwargs):
        self.now += timedelta(**kwargs)


class UnavailableRepository:
    """Репозиторий, у которого БД всегда недоступна"""

    async def get_or_create(self, user_id):
        raise OperationalError("SELECT user_progress", {}, ConnectionError("database is down"))

    async def rollback(self):
        pass


class RacingRepository(ProgressRepository):
    """Первые conflicts записей проигрывают гонку"""

    def __init__(self, session, conflicts=1):
        super().__init__(session)
        self.conflicts = conflicts
        self.save_calls = 0

    async def save_state(self, progress, state):
        self.save_calls += 1
        if self.conflicts:
            self.conflicts -= 1
            raise StaleDataError("UPDATE statement on table 'user_progress' expected to update 1 row(s); 0 were matched.")
        return await super().save_state(progress, state)


def make_service(session, store=None, clock=None, **kwargs):
    return QuizProgressService(
        repository=ProgressRepository(session),
        fallback_store=store or FallbackStore(),
        clock=clock or FakeClock(),
        **kwargs,
    )


class TestProgressRepository:
    @pytest.mark.asyncio
    async def test_get_or_create_seeds_defaults_once(self, session, user_id):
        repo = ProgressRepository(session)

        first = await repo.get_or_create(user_id)
        second = await repo.get_or_create(user_id)

        assert first.id == second.id
        assert await repo.count() == 1
        state = repo.to_state(first)
        assert state.level == 1
        assert state.quizzes_taken == 0
        assert len(state.badges) == 9
        assert not any(b.unlocked for b in state.badges)

    @pytest.mark.asyncio
    async def test_concurrent_write_is_detected(self, session, user_id):
        await ProgressRepository(session).get_or_create(user_id)

        async with db_helper.session_factory() as first_session, db_helper.session_factory() as second_session:
            first_repo = ProgressRepository(first_session)
            second_repo = ProgressRepository(second_session)

            first_row = await first_repo.get_by_user_id(user_id)
            second_row = await second_repo.get_by_user_id(user_id)

            second_state = second_repo.to_state(second_row)
            second_state.points = 5
            await second_repo.save_state(second_row, second_state)

            first_state = first_repo.to_state(first_row)
            first_state.points = 7
            with pytest.raises(StaleDataError):
                await first_repo.save_state(first_row, first_state)
            await first_repo.rollback()

        async with db_helper.session_factory() as check_session:
            row = await ProgressRepository(check_session).get_by_user_id(user_id)
            assert row.points == 5


class TestQuizProgressService:
    @pytest.mark.asyncio
    async def test_get_or_create_progress(self, session, user_id):
        response = await make_service(session).get_or_create_progress(user_id)

        assert response.degraded is False
        assert response.user_progress.level == 1
        assert len(response.user_progress.badges) == 9

    @pytest.mark.asyncio
    async def test_submit_persists_progress(self, session, user_id):
        service = make_service(session)
        response = await service.submit_quiz_attempt(
            user_id, QuizResultIn(category="budgeting", difficulty=Difficulty.HARD, score=4, total=5)
        )

        assert response.degraded is False
        assert response.pending_sync == 0
        assert response.user_progress.points == 12
        assert [b.id for b in response.unlocked_badges] == ["first-quiz"]

        async with db_helper.session_factory() as check_session:
            row = await ProgressRepository(check_session).get_by_user_id(user_id)
            assert row.quizzes_taken == 1
            assert row.correct_answers == 4
            assert row.points == 12
            assert row.streak_days == 1
            assert len(row.quiz_history) == 1
            assert row.quiz_history[0]["category"] == "budgeting"
            assert next(b for b in row.badges if b["id"] == "first-quiz")["unlocked"] is True

    @pytest.mark.asyncio
    async def test_streak_across_days(self, session, user_id):
        clock = FakeClock()
        service = make_service(session, clock=clock)

        await service.submit_quiz_attempt(user_id, QuizResultIn(score=1, total=5))
        clock.advance(hours=3)
        response = await service.submit_quiz_attempt(user_id, QuizResultIn(score=1, total=5))
        assert response.user_progress.streak_days == 1

        clock.advance(days=1)
        await service.submit_quiz_attempt(user_id, QuizResultIn(score=1, total=5))
        clock.advance(days=1)
        response = await service.submit_quiz_attempt(user_id, QuizResultIn(score=1, total=5))

        assert response.user_progress.streak_days == 3
        assert [b.id for b in response.unlocked_badges] == ["streak-master"]
        assert response.user_progress.quizzes_taken == 4

    @pytest.mark.asyncio
    async def test_version_conflict_is_retried(self, session, user_id):
        repo = RacingRepository(session, conflicts=1)
        service = QuizProgressService(repository=repo, fallback_store=FallbackStore(), clock=FakeClock())

        response = await service.submit_quiz_attempt(user_id, QuizResultIn(score=2, total=5))

        assert repo.save_calls == 2
        assert response.degraded is False
        assert response.user_progress.quizzes_taken == 1

        async with db_helper.session_factory() as check_session:
            row = await ProgressRepository(check_session).get_by_user_id(user_id)
            assert row.quizzes_taken == 1
            assert len(row.quiz_history) == 1

    @pytest.mark.asyncio
    async def test_exhausted_retries_fall_back(self, session, user_id):
        store = FallbackStore()
        repo = RacingRepository(session, conflicts=5)
        service = QuizProgressService(
            repository=repo, fallback_store=store, clock=FakeClock(), max_update_attempts=3
        )

        response = await service.submit_quiz_attempt(user_id, QuizResultIn(score=2, total=5))

        assert repo.save_calls == 3
        assert response.degraded is True
        assert response.pending_sync == 1
        assert len(store.pending(user_id)) == 1


class TestFallback:
    @pytest.mark.asyncio
    async def test_degraded_submit_from_default(self):
        store = FallbackStore()
        service = QuizProgressService(
            repository=UnavailableRepository(), fallback_store=store, clock=FakeClock()
        )

        response = await service.submit_quiz_attempt(42, QuizResultIn(score=5, total=5))

        assert response.degraded is True
        assert response.pending_sync == 1
        assert response.user_progress.quizzes_taken == 1
        assert {b.id for b in response.unlocked_badges} == {"first-quiz", "perfect-score"}

    @pytest.mark.asyncio
    async def test_degraded_submit_uses_last_snapshot(self, session, user_id):
        store = FallbackStore()
        clock = FakeClock()
        await make_service(session, store=store, clock=clock).submit_quiz_attempt(
            user_id, QuizResultIn(score=3, total=5)
        )

        offline = QuizProgressService(repository=UnavailableRepository(), fallback_store=store, clock=clock)
        response = await offline.submit_quiz_attempt(user_id, QuizResultIn(score=2, total=5))

        assert response.user_progress.quizzes_taken == 2
        assert response.user_progress.points == 5
        # first-quiz уже был открыт в снимке
        assert response.unlocked_badges == []

        progress = await offline.get_or_create_progress(user_id)
        assert progress.degraded is True
        assert progress.user_progress.quizzes_taken == 2

    @pytest.mark.asyncio
    async def test_buffered_attempts_are_replayed(self, session, user_id):
        store = FallbackStore()
        clock = FakeClock()
        offline = QuizProgressService(repository=UnavailableRepository(), fallback_store=store, clock=clock)
        await offline.submit_quiz_attempt(user_id, QuizResultIn(score=4, total=5, category="saving"))
        clock.advance(hours=1)
        await offline.submit_quiz_attempt(user_id, QuizResultIn(score=5, total=5, category="saving"))
        assert len(store.pending(user_id)) == 2

        clock.advance(hours=1)
        online = make_service(session, store=store, clock=clock)
        response = await online.submit_quiz_attempt(
            user_id, QuizResultIn(score=5, total=5, category="saving")
        )

        assert response.degraded is False
        assert store.pending(user_id) == []
        assert response.user_progress.quizzes_taken == 3
        assert len(response.user_progress.quiz_history) == 3
        assert [b.id for b in response.unlocked_badges] == ["saving-expert"]

        async with db_helper.session_factory() as check_session:
            row = await ProgressRepository(check_session).get_by_user_id(user_id)
            assert row.quizzes_taken == 3
            assert row.correct_answers == 14

    @pytest.mark.asyncio
    async def test_read_path_replays_buffer(self, session, user_id):
        store = FallbackStore()
        offline = QuizProgressService(repository=UnavailableRepository(), fallback_store=store, clock=FakeClock())
        await offline.submit_quiz_attempt(user_id, QuizResultIn(score=1, total=5))

        response = await make_service(session, store=store).get_or_create_progress(user_id)

        assert response.degraded is False
        assert response.user_progress.quizzes_taken == 1
        assert store.pending(user_id) == []

    @pytest.mark.asyncio
    async def test_fallback_disabled_raises(self):
        service = QuizProgressService(
            repository=UnavailableRepository(), fallback_store=FallbackStore(), fallback_enabled=False
        )

        with pytest.raises(DatabaseError):
            await service.submit_quiz_attempt(1, QuizResultIn(score=1, total=5))
        with pytest.raises(DatabaseError):
            await service.get_or_create_progress(1)

    @pytest.mark.asyncio
    async def test_full_buffer_raises(self):
        store = FallbackStore(pending_limit=1)
        service = QuizProgressService(repository=UnavailableRepository(), fallback_store=store)

        await service.submit_quiz_attempt(1, QuizResultIn(score=1, total=5))
        with pytest.raises(PendingQueueFullError):
            await service.submit_quiz_attempt(1, QuizResultIn(score=1, total=5))
        assert len(store.pending(1)) == 1

    @pytest.mark.asyncio
    async def test_concurrent_submits_replay_buffer_once(self, session, user_id):
        store = FallbackStore()
        clock = FakeClock()
        offline = QuizProgressService(repository=UnavailableRepository(), fallback_store=store, clock=clock)
        await offline.submit_quiz_attempt(user_id, QuizResultIn(score=3, total=5))

        async with db_helper.session_factory() as first_session, db_helper.session_factory() as second_session:
            await asyncio.gather(
                make_service(first_session, store=store, clock=clock).submit_quiz_attempt(
                    user_id, QuizResultIn(score=4, total=5)
                ),
                make_service(second_session, store=store, clock=clock).submit_quiz_attempt(
                    user_id, QuizResultIn(score=5, total=5)
                ),
            )

        assert store.pending(user_id) == []
        async with db_helper.session_factory() as check_session:
            row = await ProgressRepository(check_session).get_by_user_id(user_id)
            assert row.quizzes_taken == 3
            assert row.correct_answers == 12
            assert len(row.quiz_history) == 3

# fintrack/services/quiz_service.py
from datetime import datetime, timezone
from typing import Callable, List
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm.exc import StaleDataError
from fintrack.repositories.progress_repository import ProgressRepository
from fintrack.services.fallback_store import FallbackStore, PendingAttempt
from fintrack.services.quiz_engine import apply_attempt, new_progress
from fintrack.core.schemas.quiz import (
    QuizResultIn,
    QuizSubmitResponse,
    ProgressResponse,
    UserProgressSchema,
)
from fintrack.core.exceptions import DatabaseError, PendingQueueFullError
import logging

logger = logging.getLogger(__name__)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class QuizProgressService:
    def __init__(
        self,
        repository: ProgressRepository,
        fallback_store: FallbackStore,
        clock: Callable[[], datetime] = utcnow,
        max_update_attempts: int = 3,
        fallback_enabled: bool = True,
    ):
        self.repository = repository
        self.fallback_store = fallback_store
        self.clock = clock
        self.max_update_attempts = max_update_attempts
        self.fallback_enabled = fallback_enabled

    async def submit_quiz_attempt(self, user_id: int, result: QuizResultIn) -> QuizSubmitResponse:
        """
        Записывает попытку квиза и открывает заслуженные значки.

        Запись идет с проверкой версии строки: при гонке двух запросов
        проигравший перечитывает прогресс и применяет попытку заново.
        Если БД недоступна, ответ считается по последнему снимку,
        а попытка встает в очередь на дозапись.
        """
        submitted_at = self.clock()
        logger.info(
            f"Quiz submission for user {user_id}: category={result.category}, "
            f"difficulty={result.difficulty}, score={result.score}/{result.total}"
        )

        async with self.fallback_store.lock(user_id):
            try:
                return await self._submit_to_database(user_id, result, submitted_at)
            except SQLAlchemyError as e:
                logger.error(f"Failed to persist quiz attempt for user {user_id}: {e}")
                await self._rollback_quietly()
                return self._submit_locally(user_id, result, submitted_at, e)

    async def get_or_create_progress(self, user_id: int) -> ProgressResponse:
        """Текущий прогресс; при первом обращении создает пустую запись"""
        async with self.fallback_store.lock(user_id):
            return await self._load_progress(user_id)

    async def _load_progress(self, user_id: int) -> ProgressResponse:
        try:
            progress = await self.repository.get_or_create(user_id)
            state = self.repository.to_state(progress)

            pending = self.fallback_store.pending(user_id)
            if pending:
                state = self._replay(state, pending)
                await self.repository.save_state(progress, state)
                self.fallback_store.acknowledge(user_id, len(pending))

            self.fallback_store.remember(user_id, state)
            return ProgressResponse(user_progress=state)
        except SQLAlchemyError as e:
            logger.error(f"Failed to load quiz progress for user {user_id}: {e}")
            await self._rollback_quietly()
            if not self.fallback_enabled:
                raise DatabaseError("Quiz progress is temporarily unavailable") from e

            state = self._replay(self._local_base(user_id), self.fallback_store.pending(user_id))
            return ProgressResponse(user_progress=state, degraded=True)

    async def _submit_to_database(
        self, user_id: int, result: QuizResultIn, submitted_at: datetime
    ) -> QuizSubmitResponse:
        for attempt in range(1, self.max_update_attempts + 1):
            progress = await self.repository.get_or_create(user_id)
            pending = self.fallback_store.pending(user_id)

            state = self._replay(self.repository.to_state(progress), pending)
            state, unlocked = apply_attempt(state, result, submitted_at)

            try:
                await self.repository.save_state(progress, state)
            except StaleDataError:
                await self.repository.rollback()
                if attempt == self.max_update_attempts:
                    raise
                logger.warning(
                    f"Concurrent progress update for user {user_id}, "
                    f"retrying ({attempt}/{self.max_update_attempts})"
                )
                continue

            if pending:
                self.fallback_store.acknowledge(user_id, len(pending))
            self.fallback_store.remember(user_id, state)

            if unlocked:
                logger.info(f"User {user_id} unlocked badges: {[badge.id for badge in unlocked]}")
            return QuizSubmitResponse(user_progress=state, unlocked_badges=unlocked)

    def _submit_locally(
        self, user_id: int, result: QuizResultIn, submitted_at: datetime, error: Exception
    ) -> QuizSubmitResponse:
        if not self.fallback_enabled:
            raise DatabaseError("Failed to submit quiz results") from error
        if not self.fallback_store.can_enqueue(user_id):
            logger.error(f"Pending queue for user {user_id} is full, rejecting submission")
            raise PendingQueueFullError() from error

        state = self._replay(self._local_base(user_id), self.fallback_store.pending(user_id))
        state, unlocked = apply_attempt(state, result, submitted_at)
        pending_sync = self.fallback_store.enqueue(user_id, result, submitted_at)

        return QuizSubmitResponse(
            user_progress=state,
            unlocked_badges=unlocked,
            degraded=True,
            pending_sync=pending_sync,
        )

    def _local_base(self, user_id: int) -> UserProgressSchema:
        return self.fallback_store.snapshot(user_id) or new_progress()

    @staticmethod
    def _replay(state: UserProgressSchema, pending: List[PendingAttempt]) -> UserProgressSchema:
        for item in pending:
            state, _ = apply_attempt(state, item.result, item.submitted_at)
        return state

    async def _rollback_quietly(self) -> None:
        try:
            await self.repository.rollback()
        except SQLAlchemyError as e:
            logger.warning(f"Rollback after database failure also failed: {e}")

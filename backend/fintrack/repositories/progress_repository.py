# fintrack/repositories/progress_repository.py
from typing import Optional
from sqlalchemy import select, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from fintrack.models.progress import UserProgress
from fintrack.core.schemas.quiz import UserProgressSchema
from fintrack.services.quiz_engine import new_progress
import logging

logger = logging.getLogger(__name__)

class ProgressRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_user_id(self, user_id: int) -> Optional[UserProgress]:
        """Получить прогресс пользователя"""
        stmt = select(UserProgress).where(UserProgress.user_id == user_id)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_or_create(self, user_id: int) -> UserProgress:
        """Получить прогресс или создать пустой с полным каталогом значков"""
        progress = await self.get_by_user_id(user_id)
        if progress:
            return progress

        progress = UserProgress(user_id=user_id)
        self._write_state(progress, new_progress())
        self.session.add(progress)
        try:
            await self.session.commit()
        except IntegrityError:
            # Параллельный запрос успел создать запись первым
            await self.session.rollback()
            logger.info(f"Progress for user {user_id} was created concurrently, re-reading")
            progress = await self.get_by_user_id(user_id)
            if progress is None:
                raise
            return progress

        logger.info(f"Created quiz progress for user {user_id}")
        return progress

    async def save_state(self, progress: UserProgress, state: UserProgressSchema) -> UserProgress:
        """
        Записывает состояние целиком.
        UPDATE идет с проверкой версии, при гонке будет StaleDataError.
        """
        self._write_state(progress, state)
        await self.session.commit()
        return progress

    async def count(self) -> int:
        stmt = select(func.count()).select_from(UserProgress)
        result = await self.session.execute(stmt)
        return result.scalar() or 0

    async def rollback(self) -> None:
        await self.session.rollback()

    @staticmethod
    def to_state(progress: UserProgress) -> UserProgressSchema:
        return UserProgressSchema.model_validate(progress)

    @staticmethod
    def _write_state(progress: UserProgress, state: UserProgressSchema) -> None:
        progress.level = state.level
        progress.points = state.points
        progress.quizzes_taken = state.quizzes_taken
        progress.correct_answers = state.correct_answers
        progress.streak_days = state.streak_days
        progress.last_quiz_date = state.last_quiz_date
        # Новые списки, чтобы SQLAlchemy увидел изменение JSON-колонок
        progress.badges = [badge.model_dump(mode="json") for badge in state.badges]
        progress.quiz_history = [quiz.model_dump(mode="json") for quiz in state.quiz_history]

# fintrack/services/fallback_store.py
import asyncio
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, List, Optional
import logging

from fintrack.core.schemas.quiz import QuizResultIn, UserProgressSchema

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PendingAttempt:
    result: QuizResultIn
    submitted_at: datetime


class FallbackStore:
    """
    Локальная копия прогресса на время недоступности БД.

    Для каждого пользователя хранит последний снимок, успешно записанный в БД,
    и очередь попыток, которые еще не попали в БД. Очередь дозаписывается
    сервером через тот же движок, локально посчитанные значки не сохраняются.
    """
    def __init__(self, pending_limit: int = 50):
        self.pending_limit = pending_limit
        self._snapshots: Dict[int, UserProgressSchema] = {}
        self._pending: Dict[int, List[PendingAttempt]] = {}
        self._locks: Dict[int, asyncio.Lock] = {}

    def lock(self, user_id: int) -> asyncio.Lock:
        """Один запрос за раз читает и разбирает очередь пользователя"""
        return self._locks.setdefault(user_id, asyncio.Lock())

    def remember(self, user_id: int, progress: UserProgressSchema) -> None:
        """Запоминает состояние, подтвержденное БД"""
        self._snapshots[user_id] = progress.model_copy(deep=True)

    def snapshot(self, user_id: int) -> Optional[UserProgressSchema]:
        progress = self._snapshots.get(user_id)
        return progress.model_copy(deep=True) if progress else None

    def pending(self, user_id: int) -> List[PendingAttempt]:
        return list(self._pending.get(user_id, []))

    def can_enqueue(self, user_id: int) -> bool:
        return len(self._pending.get(user_id, [])) < self.pending_limit

    def enqueue(self, user_id: int, result: QuizResultIn, submitted_at: datetime) -> int:
        """Кладет попытку в очередь, возвращает длину очереди"""
        queue = self._pending.setdefault(user_id, [])
        queue.append(PendingAttempt(result=result, submitted_at=submitted_at))
        logger.warning(f"Buffered quiz attempt for user {user_id} ({len(queue)} pending)")
        return len(queue)

    def acknowledge(self, user_id: int, count: int) -> None:
        """Убирает из очереди первые count попыток, уже записанные в БД"""
        queue = self._pending.get(user_id)
        if not queue:
            return
        del queue[:count]
        if not queue:
            del self._pending[user_id]
        logger.info(f"Reconciled {count} buffered quiz attempt(s) for user {user_id}")

    def clear(self) -> None:
        self._snapshots.clear()
        self._pending.clear()
        self._locks.clear()

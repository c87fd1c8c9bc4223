# fintrack/core/utils.py
"""FastAPI-зависимости: сессия, текущий пользователь, сервисы"""
from typing import Optional
from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.ext.asyncio import AsyncSession
from fintrack.core.config import settings
from fintrack.core.database import db_helper
from fintrack.core.exceptions import AppException, AuthenticationError
from fintrack.repositories.user_repository import UserRepository
from fintrack.repositories.progress_repository import ProgressRepository
from fintrack.services.auth_service import AuthService
from fintrack.services.fallback_store import FallbackStore
from fintrack.services.quiz_service import QuizProgressService
from fintrack.models.user import User
import logging

logger = logging.getLogger(__name__)
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="api/v1/auth/login")
optional_oauth2_scheme = OAuth2PasswordBearer(tokenUrl="api/v1/auth/login", auto_error=False)

# Один на процесс: снимки и очередь попыток должны переживать запрос
fallback_store = FallbackStore(pending_limit=settings.quiz.PENDING_LIMIT)


def _credentials_error() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )


def get_auth_service(session: AsyncSession = Depends(db_helper.session_getter)) -> AuthService:
    return AuthService(UserRepository(session))


async def get_current_user(
    token: str = Depends(oauth2_scheme),
    auth_service: AuthService = Depends(get_auth_service),
) -> User:
    """Полная запись пользователя из access token"""
    try:
        return await auth_service.get_current_user(token)
    except AuthenticationError as e:
        logger.warning(f"Authentication failed: {e.detail}")
        raise _credentials_error()


async def get_current_user_id(
    token: str = Depends(oauth2_scheme),
    auth_service: AuthService = Depends(get_auth_service),
) -> int:
    """Канонический id пользователя; квизовые маршруты работают только с ним"""
    try:
        return await auth_service.get_current_user_id(token)
    except AuthenticationError as e:
        logger.warning(f"Authentication failed: {e.detail}")
        raise _credentials_error()
    except AppException as e:
        logger.error(f"Identity resolution failed: {e.detail}")
        raise HTTPException(status_code=e.status_code, detail=e.detail)


async def get_optional_user_id(
    token: Optional[str] = Depends(optional_oauth2_scheme),
    auth_service: AuthService = Depends(get_auth_service),
) -> Optional[int]:
    """Как get_current_user_id, но без токена (или с плохим) возвращает None"""
    if not token:
        return None
    try:
        return await auth_service.get_current_user_id(token)
    except AppException:
        return None


def get_fallback_store() -> FallbackStore:
    return fallback_store


def get_quiz_service(
    session: AsyncSession = Depends(db_helper.session_getter),
    store: FallbackStore = Depends(get_fallback_store),
) -> QuizProgressService:
    return QuizProgressService(
        repository=ProgressRepository(session),
        fallback_store=store,
        max_update_attempts=settings.quiz.MAX_UPDATE_ATTEMPTS,
        fallback_enabled=settings.quiz.FALLBACK_ENABLED,
    )

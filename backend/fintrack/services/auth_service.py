# fintrack/services/auth_service.py
from typing import Any, Dict, Tuple
from datetime import timedelta
from sqlalchemy.exc import SQLAlchemyError
from fintrack.core.security import (
    ACCESS_TOKEN,
    REFRESH_TOKEN,
    get_password_hash,
    verify_password,
    create_access_token,
    create_refresh_token,
    decode_token
)
from fintrack.repositories.user_repository import UserRepository
from fintrack.core.schemas.auth import UserCreate, Token
from fintrack.core.config import settings
from fintrack.core.exceptions import AuthenticationError, DatabaseError, ValidationError
from fintrack.models.user import User
import logging

logger = logging.getLogger(__name__)

class AuthService:
    def __init__(self, user_repository: UserRepository):
        self.user_repository = user_repository

    async def register_user(self, user_create: UserCreate) -> Tuple[User, Token]:
        if await self.user_repository.get_by_email(user_create.email):
            raise ValidationError("User with this email already exists")

        user = await self.user_repository.create(user_create, get_password_hash(user_create.password))
        return user, self._generate_tokens(user.id)

    async def authenticate_user(self, email: str, password: str) -> Tuple[User, Token]:
        """Проверка email и пароля, выдача пары токенов"""
        user = await self.user_repository.get_by_email(email)
        if not user or not verify_password(password, user.password_hash):
            raise AuthenticationError("Invalid email or password")

        await self.user_repository.update_last_login(user.id)
        return user, self._generate_tokens(user.id)

    async def refresh_tokens(self, refresh_token: str) -> Token:
        payload = self._verified_payload(refresh_token, REFRESH_TOKEN)
        user = await self.resolve_identity(payload.get("sub"))
        return self._generate_tokens(user.id)

    async def get_current_user(self, token: str) -> User:
        """Пользователь целиком (для /auth/me); нужна живая БД"""
        payload = self._verified_payload(token, ACCESS_TOKEN)
        return await self.resolve_identity(payload.get("sub"))

    async def get_current_user_id(self, token: str) -> int:
        """
        Канонический id пользователя из access token.

        Подпись токена уже подтверждает числовой subject, поэтому при
        недоступной БД id берется прямо из токена: квизы продолжают
        работать по локальному снимку. Старый токен с email без БД
        разрешить нельзя.
        """
        payload = self._verified_payload(token, ACCESS_TOKEN)
        subject = str(payload.get("sub") or "")

        try:
            user = await self.resolve_identity(subject)
        except SQLAlchemyError as e:
            if subject.isdigit():
                logger.warning(f"User lookup failed ({e}), trusting signed subject {subject}")
                await self._rollback_quietly()
                return int(subject)
            raise DatabaseError("Cannot resolve user while the database is unavailable") from e
        return user.id

    async def resolve_identity(self, subject) -> User:
        """
        Приводит subject токена к пользователю.
        Числовой subject это id, email встречается в токенах старого формата.
        """
        if not subject:
            raise AuthenticationError("Invalid token payload")

        subject = str(subject)
        if subject.isdigit():
            user = await self.user_repository.get_by_id(int(subject))
        elif "@" in subject:
            user = await self.user_repository.get_by_email(subject)
        else:
            user = None

        if not user:
            logger.warning(f"Token subject {subject!r} does not match any user")
            raise AuthenticationError("User not found")
        return user

    @staticmethod
    def _verified_payload(token: str, token_type: str) -> Dict[str, Any]:
        try:
            return decode_token(token, expected_type=token_type)
        except ValueError as e:
            raise AuthenticationError(str(e))

    async def _rollback_quietly(self) -> None:
        try:
            await self.user_repository.rollback()
        except SQLAlchemyError as e:
            logger.warning(f"Rollback after failed user lookup also failed: {e}")

    def _generate_tokens(self, user_id: int) -> Token:
        lifetime = timedelta(minutes=settings.security.JWT_ACCESS_TOKEN_EXPIRE_MINUTES)
        subject = {"sub": str(user_id)}
        return Token(
            access_token=create_access_token(data=subject, expires_delta=lifetime),
            refresh_token=create_refresh_token(data=subject),
            expires_in=int(lifetime.total_seconds())
        )

# fintrack/repositories/user_repository.py
from typing import Optional
from datetime import datetime, timezone
from sqlalchemy import select, update, func
from sqlalchemy.ext.asyncio import AsyncSession
from fintrack.models.user import User, UserRole
from fintrack.core.schemas.auth import UserCreate


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class UserRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def _first(self, *criteria) -> Optional[User]:
        result = await self.session.execute(select(User).where(*criteria))
        return result.scalar_one_or_none()

    async def get_by_email(self, email: str) -> Optional[User]:
        """Поиск без учета регистра: email в старых токенах мог прийти как угодно"""
        return await self._first(func.lower(User.email) == email.strip().lower())

    async def get_by_id(self, user_id: int) -> Optional[User]:
        return await self._first(User.id == user_id)

    async def create(self, user_create: UserCreate, password_hash: str, role: UserRole = UserRole.USER) -> User:
        now = _utcnow()
        user = User(
            email=user_create.email.lower(),
            name=user_create.name,
            password_hash=password_hash,
            role=role.value,
            created_at=now,
            updated_at=now,
        )
        self.session.add(user)
        await self.session.commit()
        await self.session.refresh(user)
        return user

    async def update_last_login(self, user_id: int) -> None:
        now = _utcnow()
        await self.session.execute(
            update(User).where(User.id == user_id).values(last_login_at=now, updated_at=now)
        )
        await self.session.commit()

    async def rollback(self) -> None:
        await self.session.rollback()

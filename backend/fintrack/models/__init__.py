# fintrack/models/__init__.py
from .base import Base
from .user import User, UserRole
from .progress import UserProgress

# Этот список нужен, чтобы IDE и инструменты видели, что экспортируется
__all__ = [
    "Base",
    "User", "UserRole",
    "UserProgress",
]

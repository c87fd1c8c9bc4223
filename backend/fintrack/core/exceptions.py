# fintrack/core/exceptions.py
from fastapi import status

class AppException(Exception):
    """Базовое исключение для приложения"""
    def __init__(self, status_code: int, detail: str):
        super().__init__(detail)
        self.status_code = status_code
        self.detail = detail

class AuthenticationError(AppException):
    """Неверные учетные данные или токен"""
    def __init__(self, detail: str = "Authentication failed"):
        super().__init__(status.HTTP_401_UNAUTHORIZED, detail)

class ValidationError(AppException):
    """Некорректные данные (дубликат email и т.п.)"""
    def __init__(self, detail: str = "Validation error"):
        super().__init__(status.HTTP_400_BAD_REQUEST, detail)

class DatabaseError(AppException):
    """Хранилище прогресса недоступно, а локальный режим выключен"""
    def __init__(self, detail: str = "Database error"):
        super().__init__(status.HTTP_500_INTERNAL_SERVER_ERROR, detail)

class PendingQueueFullError(DatabaseError):
    """Очередь отложенных попыток пользователя переполнена"""
    def __init__(self, detail: str = "Too many quiz results are waiting for the database"):
        super().__init__(detail)

class NotFoundError(AppException):
    """Ресурс не найден"""
    def __init__(self, detail: str = "Resource not found"):
        super().__init__(status.HTTP_404_NOT_FOUND, detail)

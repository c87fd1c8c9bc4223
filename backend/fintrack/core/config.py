# fintrack/core/config.py
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import BaseModel, Field, SecretStr
from typing import List, Optional
from functools import lru_cache

class DataBaseConfig(BaseModel):
    DB_HOST: str = Field("localhost", description="Database host")
    DB_PORT: int = Field(5432, description="Database port")
    DB_NAME: str = Field("fintrack", description="Database name")
    DB_USER: str = Field("postgres", description="Database user")
    DB_PASSWORD: SecretStr = Field(..., description="Database password")  # SecretStr скрывает значение в логах
    DB_ECHO: bool = Field(False, description="Enable SQL echo")
    DB_POOL_SIZE: int = Field(5, description="Database pool size")
    DB_MAX_OVERFLOW: int = Field(10, description="Database max overflow")
    # Полный URL перекрывает параметры выше (sqlite+aiosqlite для тестов)
    DB_URL: Optional[str] = Field(None, description="Full database URL override")

    @property
    def DATABASE_URL(self) -> str:
        if self.DB_URL:
            return self.DB_URL
        return f"postgresql+asyncpg://{self.DB_USER}:{self.DB_PASSWORD.get_secret_value()}@{self.DB_HOST}:{self.DB_PORT}/{self.DB_NAME}"

    naming_convention: dict[str, str] = {
        "ix": "ix_%(column_0_label)s",
        "uq": "uq_%(table_name)s_%(column_0_N_name)s",
        "ck": "ck_%(table_name)s_%(constraint_name)s",
        "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
        "pk": "pk_%(table_name)s",
    }

class SecurityConfig(BaseModel):
    JWT_SECRET_KEY: SecretStr = Field(..., description="JWT secret key")  # Обязательное поле!
    JWT_ALGORITHM: str = Field("HS256", description="JWT algorithm")
    JWT_ACCESS_TOKEN_EXPIRE_MINUTES: int = Field(30, description="Access token expiration")
    JWT_REFRESH_TOKEN_EXPIRE_DAYS: int = Field(7, description="Refresh token expiration")
    RATE_LIMIT_ENABLED: bool = Field(True, description="Enable per-IP rate limits on auth endpoints")

class QuizConfig(BaseModel):
    MAX_UPDATE_ATTEMPTS: int = Field(3, description="Optimistic update attempts per submission", ge=1)
    PENDING_LIMIT: int = Field(50, description="Max buffered attempts per user while the DB is unavailable", ge=1)
    FALLBACK_ENABLED: bool = Field(True, description="Answer from the local snapshot when the DB fails")

class Settings(BaseSettings):
    app_name: str = Field("FinTrack Quiz", description="Application name")
    debug: bool = Field(False, description="Debug mode")
    cors_origins: List[str] = Field(
        default_factory=lambda: [
            "http://localhost:3000",
            "http://127.0.0.1:3000",
        ],
        description="CORS origins"
    )

    db: DataBaseConfig
    security: SecurityConfig
    quiz: QuizConfig = QuizConfig()

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        env_nested_delimiter="__",  # Для вложенных объектов
        extra="ignore",
    )

@lru_cache()
def get_settings() -> Settings:
    """Кэшированный экземпляр настроек"""
    return Settings()

settings = get_settings()

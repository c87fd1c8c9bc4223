# main.py
from fastapi import FastAPI
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from datetime import datetime, timezone
from contextlib import asynccontextmanager
from typing import Any
from sqlalchemy import text
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
import logging
from fintrack.core.admin import setup_admin
from fintrack.api.v1.routes import api_router
from fintrack.api.v1.routes.auth import limiter
from fintrack.core.config import settings
from fintrack.core.database import db_helper
from fintrack.core.exceptions import AppException

# Настройка логирования
logging.basicConfig(
    level=logging.INFO if settings.debug else logging.WARNING,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

ENVIRONMENT = "development" if settings.debug else "production"


def utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


async def ping_database() -> Any:
    async with db_helper.session_factory() as session:
        result = await session.execute(text("SELECT 1"))
        return result.scalar()


def error_response(status_code: int, detail: Any, error: str, **extra) -> JSONResponse:
    """Единый формат ошибок: detail, error, timestamp"""
    return JSONResponse(
        status_code=status_code,
        content={"detail": detail, "error": error, "timestamp": utc_timestamp(), **extra},
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(f"🚀 Starting {settings.app_name} in {'DEBUG' if settings.debug else 'PRODUCTION'} mode")

    masked_db_url = settings.db.DATABASE_URL
    db_password = settings.db.DB_PASSWORD.get_secret_value()
    if db_password:
        masked_db_url = masked_db_url.replace(db_password, "***")
    logger.info(f"📝 Database: {masked_db_url}")
    logger.info(
        f"🧮 Quiz: fallback={'on' if settings.quiz.FALLBACK_ENABLED else 'off'}, "
        f"pending limit={settings.quiz.PENDING_LIMIT}"
    )

    try:
        await ping_database()
        logger.info("✅ Database connection successful")
    except Exception as e:
        # Квизы умеют работать по локальному снимку, поэтому не падаем
        logger.error(f"❌ Database connection failed: {e}")

    yield

    await db_helper.dispose()
    logger.info("👋 Application shutdown complete")


app = FastAPI(
    title=settings.app_name,
    debug=settings.debug,
    lifespan=lifespan,
    docs_url="/docs" if settings.debug else None,
    redoc_url="/redoc" if settings.debug else None,
)

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(api_router, prefix="/api/v1")
# Админка монтируется один раз при импорте, а не в lifespan
setup_admin(app, db_helper.engine)


@app.get("/", summary="Root endpoint", tags=["root"])
async def root():
    return {
        "message": f"Welcome to {settings.app_name} API",
        "docs": {"swagger": "/docs", "redoc": "/redoc"} if settings.debug else None,
        "environment": ENVIRONMENT,
        "timestamp": utc_timestamp(),
    }


@app.get("/health", summary="Health check", tags=["health"])
async def health_check():
    """Живость приложения и пинг БД; 503, если БД не отвечает"""
    try:
        db_value = await ping_database()
    except Exception as e:
        logger.error(f"Health check failed: {e}")
        return JSONResponse(
            status_code=503,
            content={
                "status": "unhealthy",
                "timestamp": utc_timestamp(),
                "database": "connection failed",
                "error": str(e) if settings.debug else "Database connection error",
            },
        )

    return {
        "status": "healthy",
        "timestamp": utc_timestamp(),
        "environment": ENVIRONMENT,
        "database": "connected",
        "database_ping": db_value,
        "app_name": settings.app_name,
    }


@app.exception_handler(AppException)
async def app_exception_handler(request, exc: AppException):
    logger.error(f"AppException: {exc.detail} (type: {type(exc).__name__})")
    return error_response(exc.status_code, exc.detail, type(exc).__name__)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request, exc: RequestValidationError):
    """Невалидное тело запроса (нет score/total, score > total и т.п.) -> 400"""
    logger.warning(f"Invalid request to {request.url.path}: {exc.errors()}")
    return error_response(400, jsonable_encoder(exc.errors()), "ValidationError")


@app.exception_handler(Exception)
async def global_exception_handler(request, exc: Exception):
    logger.exception(f"Unhandled exception: {exc}")
    return error_response(
        500,
        "Internal server error",
        "InternalServerError",
        debug_info=str(exc) if settings.debug else None,
    )


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.debug,
        log_level="info" if settings.debug else "warning",
        access_log=False
    )

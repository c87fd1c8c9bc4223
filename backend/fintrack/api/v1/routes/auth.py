# fintrack/api/v1/routes/auth.py
from fastapi import APIRouter, Depends, HTTPException, status, Request
from fastapi.security import OAuth2PasswordRequestForm
from fintrack.core.config import settings
from fintrack.core.utils import get_auth_service, get_current_user
from fintrack.services.auth_service import AuthService
from fintrack.core.schemas.auth import (
    UserCreate,
    UserResponse,
    Token,
    RefreshTokenRequest,
)
from fintrack.models.user import User
from fintrack.core.exceptions import AuthenticationError, ValidationError
from slowapi import Limiter
from slowapi.util import get_remote_address
import logging

logger = logging.getLogger(__name__)

# In-memory хранилище лимитов, на несколько воркеров нужен storage_uri (Redis)
limiter = Limiter(key_func=get_remote_address, enabled=settings.security.RATE_LIMIT_ENABLED)

router = APIRouter(prefix="/auth", tags=["authentication"])


def _client_ip(request: Request) -> str:
    return request.client.host if request.client else "unknown"


def _unauthorized(e: AuthenticationError) -> HTTPException:
    return HTTPException(
        status_code=e.status_code,
        detail=e.detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def _internal_error(action: str, e: Exception) -> HTTPException:
    logger.error(f"Internal error during {action}: {e}")
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail="Internal server error"
    )


@router.post("/register", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit("5/minute")
async def register_user(
    request: Request,
    user_create: UserCreate,
    auth_service: AuthService = Depends(get_auth_service),
):
    """Регистрация; прогресс квизов заводится позже, при первом обращении"""
    logger.info(f"Registration attempt from IP: {_client_ip(request)} for email: {user_create.email}")

    try:
        user, _ = await auth_service.register_user(user_create)
    except ValidationError as e:
        logger.warning(f"Registration rejected for {user_create.email}: {e.detail}")
        raise HTTPException(status_code=e.status_code, detail=e.detail)
    except Exception as e:
        raise _internal_error("registration", e)

    logger.info(f"Registered user {user.id} ({user.email})")
    return user


@router.post("/login", response_model=Token)
@limiter.limit("10/minute")
async def login_for_access_token(
    request: Request,
    form_data: OAuth2PasswordRequestForm = Depends(),
    auth_service: AuthService = Depends(get_auth_service),
):
    """OAuth2 password flow: username это email"""
    try:
        user, token = await auth_service.authenticate_user(form_data.username, form_data.password)
    except AuthenticationError as e:
        logger.warning(f"Failed login for {form_data.username} from IP: {_client_ip(request)}")
        raise _unauthorized(e)
    except Exception as e:
        raise _internal_error("login", e)

    logger.info(f"User {user.id} logged in")
    return token


@router.post("/refresh", response_model=Token)
@limiter.limit("20/hour")
async def refresh_access_token(
    request: Request,
    refresh_request: RefreshTokenRequest,
    auth_service: AuthService = Depends(get_auth_service),
):
    try:
        return await auth_service.refresh_tokens(refresh_request.refresh_token)
    except AuthenticationError as e:
        logger.warning(f"Token refresh failed: {e.detail}")
        raise _unauthorized(e)
    except Exception as e:
        raise _internal_error("token refresh", e)


@router.get("/me", response_model=UserResponse)
async def read_current_user(current_user: User = Depends(get_current_user)):
    return current_user

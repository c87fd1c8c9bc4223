# fintrack/core/security.py
import bcrypt
from jose import jwt, JWTError, ExpiredSignatureError
import secrets
from datetime import datetime, timedelta, timezone
from typing import Optional, Dict, Any
from fintrack.core.config import settings

ACCESS_TOKEN = "access"
REFRESH_TOKEN = "refresh"


def get_password_hash(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")

def verify_password(plain_password: str, hashed_password: str) -> bool:
    return bcrypt.checkpw(plain_password.encode("utf-8"), hashed_password.encode("utf-8"))

def _issue(data: Dict[str, Any], token_type: str, lifetime: timedelta, **claims) -> str:
    payload = {
        **data,
        **claims,
        "exp": datetime.now(timezone.utc) + lifetime,
        "type": token_type,
    }
    return jwt.encode(
        payload,
        settings.security.JWT_SECRET_KEY.get_secret_value(),
        algorithm=settings.security.JWT_ALGORITHM
    )

def create_access_token(data: Dict[str, Any], expires_delta: Optional[timedelta] = None) -> str:
    """Access token; sub несет id пользователя строкой"""
    lifetime = expires_delta or timedelta(minutes=settings.security.JWT_ACCESS_TOKEN_EXPIRE_MINUTES)
    return _issue(data, ACCESS_TOKEN, lifetime)

def create_refresh_token(data: Dict[str, Any]) -> str:
    lifetime = timedelta(days=settings.security.JWT_REFRESH_TOKEN_EXPIRE_DAYS)
    # jti делает каждый refresh token уникальным
    return _issue(data, REFRESH_TOKEN, lifetime, jti=secrets.token_urlsafe(32))

def decode_token(token: str, expected_type: Optional[str] = None) -> Dict[str, Any]:
    """
    Проверяет подпись и срок действия.
    Если задан expected_type, токен другого типа тоже считается невалидным.
    Все ошибки приходят как ValueError с текстом для клиента.
    """
    try:
        payload = jwt.decode(
            token,
            settings.security.JWT_SECRET_KEY.get_secret_value(),
            algorithms=[settings.security.JWT_ALGORITHM]
        )
    except ExpiredSignatureError:
        raise ValueError("Token expired")
    except JWTError:
        raise ValueError("Invalid token")

    if expected_type and payload.get("type") != expected_type:
        raise ValueError("Invalid token type for this operation")
    return payload

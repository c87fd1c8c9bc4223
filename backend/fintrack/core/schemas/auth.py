# fintrack/core/schemas/auth.py
from pydantic import BaseModel, EmailStr, Field, ConfigDict, field_validator
from typing import List, Optional
from datetime import datetime

DISPOSABLE_EMAIL_DOMAINS = frozenset({
    "tempmail.com", "10minutemail.com", "guerrillamail.com",
    "mailinator.com", "trashmail.com", "fakeinbox.com",
})


class PasswordComplexity:
    """Правила сложности пароля; validate собирает все нарушения сразу"""
    MIN_LENGTH = 12
    MAX_LENGTH = 64
    SPECIAL_CHARS = "!@#$%^&*()_+-=[]{}|;:,.<>?"
    COMMON_PASSWORDS = frozenset({
        "password", "123456", "12345678", "qwerty", "abc123", "password1",
        "iloveyou", "1q2w3e4r", "admin", "welcome", "monkey", "sunshine",
    })

    @classmethod
    def problems(cls, password: str) -> List[str]:
        checks = [
            (len(password) >= cls.MIN_LENGTH, f"at least {cls.MIN_LENGTH} characters"),
            (len(password) <= cls.MAX_LENGTH, f"at most {cls.MAX_LENGTH} characters"),
            (any(c.isupper() for c in password), "an uppercase letter"),
            (any(c.islower() for c in password), "a lowercase letter"),
            (any(c.isdigit() for c in password), "a digit"),
            (any(c in cls.SPECIAL_CHARS for c in password), f"a special character ({cls.SPECIAL_CHARS})"),
        ]
        problems = [f"Password must contain {rule}" for ok, rule in checks if not ok]
        if password.lower() in cls.COMMON_PASSWORDS:
            problems.append("Password is too common and easily guessable")
        return problems

    @classmethod
    def validate(cls, password: str) -> None:
        problems = cls.problems(password)
        if problems:
            raise ValueError("; ".join(problems))


class UserCreate(BaseModel):
    email: EmailStr = Field(..., description="User email address")
    password: str = Field(..., description="User password")
    name: Optional[str] = Field(None, description="Display name", max_length=100)

    @field_validator("email")
    @classmethod
    def reject_disposable_email(cls, v: str) -> str:
        if v.rsplit("@", 1)[-1].lower() in DISPOSABLE_EMAIL_DOMAINS:
            raise ValueError("Disposable email addresses are not allowed")
        return v.lower()

    @field_validator("password")
    @classmethod
    def check_password(cls, v: str) -> str:
        PasswordComplexity.validate(v)
        return v


class Token(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    expires_in: int = Field(..., description="Access token lifetime in seconds")


class UserResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    email: str
    name: Optional[str] = None
    role: str = "user"
    created_at: Optional[datetime] = None
    last_login_at: Optional[datetime] = None


class RefreshTokenRequest(BaseModel):
    refresh_token: str

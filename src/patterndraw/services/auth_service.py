"""Authentication service: password hashing, JWT tokens, registration and login."""

from __future__ import annotations

import re
from datetime import datetime, timedelta, timezone
from uuid import UUID

import bcrypt
from fastapi import HTTPException, status
from jose import JWTError, jwt
from pydantic import BaseModel, Field, field_validator
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from patterndraw.config import settings
from patterndraw.models import User

# ---------------------------------------------------------------------------
# Password hashing (bcrypt, cost 12)
# ---------------------------------------------------------------------------

_BCRYPT_ROUNDS = 12
_JWT_ALGORITHM = "HS256"
_EMAIL_RE = re.compile(r"^[a-zA-Z0-9_.+-]+@[a-zA-Z0-9-]+\.[a-zA-Z0-9-.]+$")


def hash_password(password: str) -> str:
    salt = bcrypt.gensalt(rounds=_BCRYPT_ROUNDS)
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return bcrypt.checkpw(
        plain_password.encode("utf-8"),
        hashed_password.encode("utf-8"),
    )


# ---------------------------------------------------------------------------
# Pydantic schemas
# ---------------------------------------------------------------------------


class RegisterRequest(BaseModel):
    email: str = Field(..., max_length=320)
    username: str = Field(..., min_length=3, max_length=40)
    password: str = Field(..., min_length=8)

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        v = v.lower().strip()
        if not _EMAIL_RE.match(v):
            raise ValueError("Invalid email address")
        return v


class LoginRequest(BaseModel):
    email: str
    password: str


class TokenResponse(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"


class UserResponse(BaseModel):
    user_id: UUID
    email: str
    username: str
    created_at: datetime

    model_config = {"from_attributes": True}


# ---------------------------------------------------------------------------
# Tokens
# ---------------------------------------------------------------------------


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def _encode_token(
    user_id: UUID,
    token_version: int,
    token_type: str,
    lifetime: timedelta,
) -> str:
    now = datetime.now(timezone.utc)
    payload = {
        "sub": str(user_id),
        "token_version": token_version,
        "type": token_type,
        "exp": now + lifetime,
        "iat": now,
    }
    return jwt.encode(payload, settings.JWT_SECRET_KEY, algorithm=_JWT_ALGORITHM)


def create_tokens(user_id: UUID, token_version: int) -> TokenResponse:
    """Issue an access + refresh token pair."""
    return TokenResponse(
        access_token=_encode_token(
            user_id,
            token_version,
            "access",
            timedelta(minutes=settings.JWT_ACCESS_TOKEN_EXPIRE_MINUTES),
        ),
        refresh_token=_encode_token(
            user_id,
            token_version,
            "refresh",
            timedelta(days=settings.JWT_REFRESH_TOKEN_EXPIRE_DAYS),
        ),
    )


def verify_token(token: str, token_type: str) -> dict:
    """Decode *token* and check it is of *token_type* ("access" or "refresh").

    Raises HTTPException(401) for bad signatures, expiry, or the wrong type.
    """
    try:
        payload = jwt.decode(token, settings.JWT_SECRET_KEY, algorithms=[_JWT_ALGORITHM])
    except JWTError:
        raise _unauthorized("Invalid or expired token")

    if payload.get("type") != token_type:
        raise _unauthorized(f"Expected {token_type} token")
    return payload


async def get_user_for_token(db: AsyncSession, payload: dict) -> User:
    """Resolve the user named by a verified token payload.

    Raises 401 if the user is gone, deactivated, or the token was revoked.
    """
    try:
        user_id = UUID(payload["sub"])
    except (KeyError, ValueError):
        raise _unauthorized("Malformed token subject")

    result = await db.execute(select(User).where(User.user_id == user_id))
    user = result.scalar_one_or_none()

    if user is None or not user.is_active:
        raise _unauthorized("User not found or deactivated")
    if user.token_version != payload.get("token_version"):
        raise _unauthorized("Token has been revoked")
    return user


# ---------------------------------------------------------------------------
# Service functions
# ---------------------------------------------------------------------------


async def register_user(db: AsyncSession, request: RegisterRequest) -> UserResponse:
    """Create an account.  Raises 409 if the email or username is taken."""
    result = await db.execute(select(User).where(User.email == request.email))
    if result.scalar_one_or_none() is not None:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Email already registered",
        )

    result = await db.execute(select(User).where(User.username == request.username))
    if result.scalar_one_or_none() is not None:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Username already taken",
        )

    user = User(
        email=request.email,
        username=request.username,
        password_hash=hash_password(request.password),
    )
    db.add(user)
    await db.flush()
    await db.refresh(user)

    return UserResponse.model_validate(user)


async def authenticate_user(db: AsyncSession, email: str, password: str) -> User | None:
    """Return the user for valid credentials, else ``None``.

    A hash is computed even for unknown emails so response timing does not
    reveal which addresses are registered.
    """
    result = await db.execute(select(User).where(User.email == email.lower().strip()))
    user = result.scalar_one_or_none()

    if user is None:
        hash_password(password)
        return None
    if not user.is_active or not verify_password(password, user.password_hash):
        return None
    return user


async def refresh_tokens(db: AsyncSession, refresh_token: str) -> TokenResponse:
    payload = verify_token(refresh_token, "refresh")
    user = await get_user_for_token(db, payload)
    return create_tokens(user.user_id, user.token_version)


async def revoke_all_tokens(db: AsyncSession, user: User) -> None:
    """Invalidate every outstanding token for *user*."""
    user.token_version += 1
    await db.flush()

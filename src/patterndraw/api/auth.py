"""Authentication API router -- /api/v1/auth/*.

Tokens are returned in the body and also set as httpOnly cookies so the
editor can authenticate without touching them from script.
"""

from __future__ import annotations

from fastapi import APIRouter, Cookie, Depends, HTTPException, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from patterndraw.api.dependencies import get_current_user
from patterndraw.config import settings
from patterndraw.database import get_db
from patterndraw.models import User
from patterndraw.services.auth_service import (
    LoginRequest,
    RegisterRequest,
    TokenResponse,
    UserResponse,
    authenticate_user,
    create_tokens,
    refresh_tokens as refresh_tokens_service,
    register_user,
    revoke_all_tokens,
)

router = APIRouter(prefix="/api/v1/auth", tags=["auth"])

# The refresh cookie is only ever sent back to the auth endpoints.
_REFRESH_COOKIE_PATH = "/api/v1/auth"
_COOKIE_FLAGS = {"httponly": True, "secure": True, "samesite": "strict"}


def _set_token_cookies(response: Response, tokens: TokenResponse) -> None:
    response.set_cookie(
        "access_token",
        tokens.access_token,
        max_age=settings.JWT_ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        path="/",
        **_COOKIE_FLAGS,
    )
    response.set_cookie(
        "refresh_token",
        tokens.refresh_token,
        max_age=settings.JWT_REFRESH_TOKEN_EXPIRE_DAYS * 24 * 60 * 60,
        path=_REFRESH_COOKIE_PATH,
        **_COOKIE_FLAGS,
    )


def _clear_token_cookies(response: Response) -> None:
    response.delete_cookie("access_token", path="/", **_COOKIE_FLAGS)
    response.delete_cookie("refresh_token", path=_REFRESH_COOKIE_PATH, **_COOKIE_FLAGS)


@router.post(
    "/register",
    response_model=UserResponse,
    status_code=status.HTTP_201_CREATED,
)
async def register(
    request: RegisterRequest,
    db: AsyncSession = Depends(get_db),
) -> UserResponse:
    user = await register_user(db, request)
    await db.commit()
    return user


@router.post("/login", response_model=TokenResponse)
async def login(
    request: LoginRequest,
    response: Response,
    db: AsyncSession = Depends(get_db),
) -> TokenResponse:
    user = await authenticate_user(db, request.email, request.password)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password",
        )

    tokens = create_tokens(user.user_id, user.token_version)
    _set_token_cookies(response, tokens)
    return tokens


@router.post("/refresh", response_model=TokenResponse)
async def refresh(
    response: Response,
    db: AsyncSession = Depends(get_db),
    refresh_token: str | None = Cookie(default=None),
) -> TokenResponse:
    """Swap the refresh cookie for a new token pair."""
    if refresh_token is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Refresh token missing",
        )

    tokens = await refresh_tokens_service(db, refresh_token)
    _set_token_cookies(response, tokens)
    return tokens


@router.get("/me", response_model=UserResponse)
async def me(current_user: User = Depends(get_current_user)) -> UserResponse:
    """The signed-in account; the editor calls this to decide whether to show Save."""
    return UserResponse.model_validate(current_user)


@router.post("/logout")
async def logout(
    response: Response,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> dict:
    """Revoke every outstanding token for the caller, on all devices."""
    await revoke_all_tokens(db, current_user)
    await db.commit()
    _clear_token_cookies(response)
    return {"detail": "Successfully logged out"}
